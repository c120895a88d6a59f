"""Tests for data models."""

import pytest
from pydantic import ValidationError

from pvgit.models import (
    Config,
    MAX_ESTIMATE,
    MIN_ESTIMATE,
    PLACEHOLDER_NAME,
    Story,
    StoryState,
    StoryType,
    TrackerConfig,
    WorkflowsConfig,
    validate_estimate,
)

from conftest import VALID_TOKEN


class TestStory:
    """Test Story model."""

    def test_from_tracker_payload(self):
        """Test parsing a tracker story ignores unknown fields."""
        story = Story.model_validate(
            {
                "kind": "story",
                "id": 99,
                "name": "Add login",
                "description": None,
                "story_type": "feature",
                "estimate": 3,
                "current_state": "started",
                "project_id": 1,
                "url": "https://www.pivotaltracker.com/story/show/99",
                "labels": [],
            }
        )
        assert story.id == 99
        assert story.description == ""
        assert story.current_state == StoryState.STARTED
        assert story.errors == []

    def test_remote_only_states_accepted(self):
        """Test unscheduled and planned stories can be read."""
        assert Story(id=1, name="a", current_state="unscheduled").current_state == StoryState.UNSCHEDULED
        assert Story(id=1, name="a", current_state="planned").current_state == StoryState.PLANNED

    def test_invalid_story_type(self):
        """Test unknown story types are rejected."""
        with pytest.raises(ValidationError):
            Story(id=1, name="a", story_type="epic")

    def test_non_positive_id_rejected(self):
        """Test remote IDs must be positive."""
        with pytest.raises(ValidationError):
            Story(id=0, name="a")

    def test_placeholder(self):
        """Test the create-a-new-story entry."""
        placeholder = Story.placeholder()
        assert placeholder.id is None
        assert placeholder.is_placeholder
        assert placeholder.name == PLACEHOLDER_NAME
        assert placeholder.estimate is None
        assert placeholder.browser_url is None

    def test_needs_estimate_only_for_unestimated_features(self):
        """Test only features without an estimate need one."""
        assert Story(id=1, name="a", story_type=StoryType.FEATURE).needs_estimate
        assert not Story(id=1, name="a", story_type=StoryType.FEATURE, estimate=0).needs_estimate
        assert not Story(id=1, name="a", story_type=StoryType.CHORE).needs_estimate
        assert not Story(id=1, name="a", story_type=StoryType.BUG).needs_estimate

    def test_browser_url(self):
        """Test browser URL prefers the tracker's URL."""
        assert Story(id=5, name="a").browser_url == "https://www.pivotaltracker.com/story/show/5"
        assert Story(id=5, name="a", url="https://example.com/5").browser_url == "https://example.com/5"

    def test_has_errors(self):
        """Test validation errors are reported on the story."""
        assert not Story(name="a").has_errors
        assert Story(name="a", errors=["name: can't be blank"]).has_errors


class TestValidateEstimate:
    """Test estimate range rule."""

    @pytest.mark.parametrize("points", [MIN_ESTIMATE, 1, 2, 3, 5, MAX_ESTIMATE])
    def test_valid(self, points):
        assert validate_estimate(points) == points

    @pytest.mark.parametrize("points", [-1, MAX_ESTIMATE + 1, 100])
    def test_out_of_range(self, points):
        with pytest.raises(ValueError, match="between"):
            validate_estimate(points)

    @pytest.mark.parametrize("points", ["3", 2.5, None, True])
    def test_not_an_integer(self, points):
        with pytest.raises(ValueError, match="integer"):
            validate_estimate(points)


class TestTrackerConfig:
    """Test tracker settings validation."""

    def test_token_format(self):
        """Test tokens must be 32 alphanumeric characters."""
        assert TrackerConfig(api_token=VALID_TOKEN).api_token == VALID_TOKEN

        for bad in ["short", VALID_TOKEN + "x", VALID_TOKEN[:-1] + "-"]:
            with pytest.raises(ValidationError, match="32 alphanumeric"):
                TrackerConfig(api_token=bad)

    def test_token_whitespace_stripped(self):
        assert TrackerConfig(api_token=f"  {VALID_TOKEN}\n").api_token == VALID_TOKEN

    def test_project_ids_from_string(self):
        """Test comma-separated project IDs are accepted."""
        assert TrackerConfig(project_ids="1, 2,3").project_ids == [1, 2, 3]
        assert TrackerConfig(project_ids=42).project_ids == [42]

    def test_https_required(self):
        with pytest.raises(ValidationError, match="https"):
            TrackerConfig(base_url="http://tracker.example.com")

    def test_base_url_trailing_slash_removed(self):
        assert TrackerConfig(base_url="https://tracker.example.com/v5/").base_url == "https://tracker.example.com/v5"


class TestConfig:
    """Test main configuration model."""

    def test_defaults_incomplete(self):
        config = Config()
        assert not config.is_complete()
        assert config.workflows.pull_request_command == "hub pull-request -m {title}"
        assert config.workflows.land_command == "git land"

    def test_complete(self, tracker_config):
        assert Config(tracker=tracker_config).is_complete()

    def test_missing_projects_incomplete(self):
        config = Config(tracker=TrackerConfig(username="alice", api_token=VALID_TOKEN))
        assert not config.is_complete()

    def test_empty_command_rejected(self):
        with pytest.raises(ValidationError, match="cannot be empty"):
            WorkflowsConfig(land_command="  ")
