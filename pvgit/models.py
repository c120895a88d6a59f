"""Data models for pvgit."""

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

MIN_ESTIMATE = 0
MAX_ESTIMATE = 8

PLACEHOLDER_NAME = "<Create a new story>"
STORY_URL_TEMPLATE = "https://www.pivotaltracker.com/story/show/{id}"
API_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9]{32}$")


class StoryType(str, Enum):
    """Story types known to the tracker."""

    FEATURE = "feature"
    BUG = "bug"
    CHORE = "chore"
    RELEASE = "release"


class StoryState(str, Enum):
    """Story lifecycle states.

    pvgit drives UNSTARTED -> STARTED -> FINISHED -> DELIVERED. ACCEPTED and
    REJECTED are set by the tracker; UNSCHEDULED and PLANNED are read-only
    aliases of "not started yet".
    """

    UNSCHEDULED = "unscheduled"
    PLANNED = "planned"
    UNSTARTED = "unstarted"
    STARTED = "started"
    FINISHED = "finished"
    DELIVERED = "delivered"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


def validate_estimate(points: int) -> int:
    """Check that an estimate is within the accepted point range.

    Raises:
        ValueError: If points is not an integer in MIN_ESTIMATE..MAX_ESTIMATE
    """
    if isinstance(points, bool) or not isinstance(points, int):
        raise ValueError(f"Estimate must be an integer, got {points!r}")
    if not MIN_ESTIMATE <= points <= MAX_ESTIMATE:
        raise ValueError(
            f"Estimate must be between {MIN_ESTIMATE} and {MAX_ESTIMATE}, got {points}"
        )
    return points


class Story(BaseModel):
    """A tracked work item."""

    id: int | None = Field(default=None, description="Story ID (None until created remotely)")
    name: str = Field(description="Story title")
    description: str = Field(default="", description="Story description")
    story_type: StoryType = Field(default=StoryType.FEATURE, description="Story type")
    estimate: int | None = Field(default=None, description="Points (None when unestimated)")
    current_state: StoryState = Field(
        default=StoryState.UNSTARTED, description="Lifecycle state"
    )
    project_id: int | None = Field(default=None, description="Owning project ID")
    url: str | None = Field(default=None, description="Story URL")
    errors: list[str] = Field(
        default_factory=list, description="Validation messages from a failed create/update"
    )

    model_config = {"extra": "ignore"}

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: int | None) -> int | None:
        """Remote IDs are positive integers."""
        if v is not None and v <= 0:
            raise ValueError(f"Story ID must be positive, got {v}")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: Any) -> Any:
        """The tracker omits or nulls empty descriptions."""
        return "" if v is None else v

    @classmethod
    def placeholder(cls) -> "Story":
        """Synthetic entry standing for "create a new story" in a selection list."""
        return cls(id=None, name=PLACEHOLDER_NAME, estimate=None)

    @property
    def is_placeholder(self) -> bool:
        """True until the story exists on the tracker."""
        return self.id is None

    @property
    def needs_estimate(self) -> bool:
        """Feature stories have to be estimated before they are started."""
        return self.story_type == StoryType.FEATURE and self.estimate is None

    @property
    def has_errors(self) -> bool:
        """Whether the tracker rejected the last create/update."""
        return bool(self.errors)

    @property
    def browser_url(self) -> str | None:
        """URL to open this story in a browser."""
        if self.url:
            return self.url
        if self.id is None:
            return None
        return STORY_URL_TEMPLATE.format(id=self.id)


class ProjectStoryGroup(BaseModel):
    """Stories assigned to the current user within one project."""

    project_id: int = Field(description="Project ID")
    project_name: str = Field(description="Project name")
    stories: list[Story] = Field(default_factory=list, description="Stories in tracker order")


class TrackerConfig(BaseModel):
    """Tracker connection settings."""

    username: str | None = Field(default=None, description="Tracker username")
    api_token: str | None = Field(default=None, description="Tracker API token")
    project_ids: list[int] = Field(default_factory=list, description="Project IDs to work with")
    base_url: str = Field(
        default="https://www.pivotaltracker.com/services/v5",
        description="Tracker API base URL",
    )
    timeout: float = Field(default=30.0, description="HTTP timeout (seconds)")

    @field_validator("api_token")
    @classmethod
    def validate_api_token(cls, v: str | None) -> str | None:
        """Tokens are 32 alphanumeric characters."""
        if v is None:
            return v
        v = v.strip()
        if not API_TOKEN_PATTERN.match(v):
            raise ValueError("API token must be 32 alphanumeric characters") from None
        return v

    @field_validator("project_ids", mode="before")
    @classmethod
    def split_project_ids(cls, v: Any) -> Any:
        """Accept a single ID or a comma-separated string (env overrides, prompts)."""
        if isinstance(v, int):
            return [v]
        if isinstance(v, str):
            return [int(part) for part in v.replace(" ", "").split(",") if part]
        return v

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """The token travels in a header, so only HTTPS is accepted."""
        if not v.startswith("https://"):
            raise ValueError("Tracker base URL must use https://") from None
        return v.rstrip("/")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is reasonable."""
        if v <= 0:
            raise ValueError("Timeout must be positive")
        if v > 300:
            raise ValueError("Timeout cannot exceed 5 minutes")
        return v


class WorkflowsConfig(BaseModel):
    """External tools used by the story workflow."""

    pull_request_command: str = Field(
        default="hub pull-request -m {title}",
        description="Command that opens a pull request ({title} is substituted)",
    )
    land_command: str = Field(
        default="git land",
        description="Command that lands the current branch ({title} is substituted)",
    )

    @field_validator("pull_request_command", "land_command")
    @classmethod
    def validate_command(cls, v: str) -> str:
        """Commands cannot be empty."""
        if not v or not v.strip():
            raise ValueError("Command cannot be empty") from None
        return v.strip()


class Config(BaseModel):
    """Main configuration model."""

    version: str = Field(default="1.0", description="Config version")
    tracker: TrackerConfig = Field(default_factory=TrackerConfig, description="Tracker settings")
    workflows: WorkflowsConfig = Field(
        default_factory=WorkflowsConfig, description="Workflow settings"
    )

    model_config = {"extra": "allow"}

    def is_complete(self) -> bool:
        """Whether there is enough configuration to talk to the tracker."""
        tracker = self.tracker
        return bool(tracker.username and tracker.api_token and tracker.project_ids)
