"""Story workflow: branch names, story resolution and lifecycle transitions."""

from pvgit.workflows.branch_name import build_branch_name, parse_story_id
from pvgit.workflows.resolver import (
    NoStoriesError,
    ResolverError,
    SelectionError,
    StoryResolver,
    parse_explicit_id,
)
from pvgit.workflows.transitions import (
    ExternalActionError,
    InvalidStateError,
    StoryValidationError,
    TransitionEngine,
    TransitionError,
    commit_message,
)

__all__ = [
    # Branch names
    "build_branch_name",
    "parse_story_id",
    # Resolver
    "StoryResolver",
    "parse_explicit_id",
    "ResolverError",
    "SelectionError",
    "NoStoriesError",
    # Transitions
    "TransitionEngine",
    "commit_message",
    "TransitionError",
    "StoryValidationError",
    "ExternalActionError",
    "InvalidStateError",
]
