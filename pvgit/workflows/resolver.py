"""Resolving which story a command is about."""

import re
from typing import List, Optional, Tuple

from pvgit.display import format_story, selection_labels
from pvgit.integrations.tracker import TrackerClient
from pvgit.models import Story
from pvgit.utils.logger import get_logger
from pvgit.workflows.branch_name import MAX_ID_DIGITS, parse_story_id

logger = get_logger(__name__)


class ResolverError(Exception):
    """Story resolution error."""
    pass


class SelectionError(ResolverError):
    """The chooser returned an index outside the list."""
    pass


class NoStoriesError(ResolverError):
    """There is nothing to choose from."""
    pass


def parse_explicit_id(value: Optional[str]) -> Optional[int]:
    """Story ID from a command-line argument; None if absent or not an integer."""
    if value is None:
        return None
    value = value.strip().lstrip("#")
    if not re.fullmatch(r"[0-9]{1,%d}" % MAX_ID_DIGITS, value):
        return None
    story_id = int(value)
    return story_id if story_id > 0 else None


class StoryResolver:
    """Turns an ID, the current branch, or an interactive choice into a Story."""

    def __init__(self, client: TrackerClient, chooser, git):
        """Initialize resolver.

        Args:
            client: Tracker client
            chooser: Object with choose_index(labels) -> 1-based index
            git: Object with current_branch_name() -> Optional[str]
        """
        self.client = client
        self.chooser = chooser
        self.git = git

    def resolve(self, explicit_id: Optional[str] = None, allow_create: bool = False) -> Story:
        """Resolve a story, falling back to interactive selection.

        Args:
            explicit_id: ID given on the command line; ignored unless it is an integer
            allow_create: Offer a "create a new story" entry at the end of the list

        Raises:
            SelectionError: If the chooser returns an out-of-range index
            NoStoriesError: If there is nothing to select
        """
        story_id = parse_explicit_id(explicit_id)
        if story_id is not None:
            story = self.client.find_story(story_id)
            if story is not None:
                logger.debug(f"Resolved story {story_id} from argument")
                return story
            logger.info(f"Story {story_id} not found; choose one instead")
        elif explicit_id is not None:
            logger.debug(f"Ignoring non-numeric story ID {explicit_id!r}")

        return self.select(allow_create)

    def selection_entries(self, allow_create: bool) -> Tuple[List[Story], List[str]]:
        """Flattened stories across projects plus their display labels."""
        groups = self.client.list_my_stories()
        entries = [story for group in groups for story in group.stories]
        labels = selection_labels(groups)

        if allow_create:
            placeholder = Story.placeholder()
            entries.append(placeholder)
            labels.append(format_story(placeholder))

        return entries, labels

    def select(self, allow_create: bool = False) -> Story:
        """Ask the chooser to pick from the user's stories."""
        entries, labels = self.selection_entries(allow_create)
        if not entries:
            raise NoStoriesError("No stories are assigned to you in the configured projects")

        index = self.chooser.choose_index(labels)
        if not 1 <= index <= len(entries):
            raise SelectionError(f"Selection {index} is out of range 1..{len(entries)}")

        return entries[index - 1]

    def resolve_from_current_branch(self) -> Optional[Story]:
        """Story named by the checked-out branch.

        Returns:
            The story, or None when the branch carries no story ID or the
            tracker does not know it
        """
        branch = self.git.current_branch_name()
        story_id = parse_story_id(branch)
        if story_id is None:
            logger.debug(f"Branch {branch!r} does not reference a story")
            return None

        story = self.client.find_story(story_id)
        if story is None:
            logger.debug(f"Story {story_id} from branch {branch!r} not found")
        return story
