"""Story IDs embedded in branch names (``<name>-pv-<id>``)."""

import re
from typing import Optional

BRANCH_MARKER = "-pv-"

# Tracker IDs are 64-bit; longer digit runs are not story IDs
MAX_ID_DIGITS = 18

# Greedy prefix so the last marker wins: "x-pv-12-pv-7" -> 7
_STORY_ID_PATTERN = re.compile(r"^.*-pv-([0-9]{1,%d})\Z" % MAX_ID_DIGITS, re.DOTALL)


def parse_story_id(branch: Optional[str]) -> Optional[int]:
    """Extract the story ID from a branch name.

    Returns:
        The trailing digit run after the last ``-pv-`` marker, or None
    """
    if not branch:
        return None
    match = _STORY_ID_PATTERN.match(branch)
    if match is None:
        return None
    return int(match.group(1))


def build_branch_name(name: str, story_id: int) -> str:
    """Branch name that ties ``name`` to a story."""
    return f"{name}{BRANCH_MARKER}{story_id}"
