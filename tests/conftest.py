"""Shared test configuration and fixtures."""

import os
from pathlib import Path

import pytest

from pvgit.config import ConfigManager
from pvgit.models import (
    Config,
    ProjectStoryGroup,
    Story,
    StoryState,
    StoryType,
    TrackerConfig,
    validate_estimate,
)

VALID_TOKEN = "abcdefghijklmnopqrstuvwxyz012345"


class FakeTracker:
    """In-memory stand-in for TrackerClient that records every call."""

    def __init__(self, groups=None, extra_stories=None):
        self.groups = groups or []
        self.extra_stories = extra_stories or []
        self.calls = []
        self.create_errors = []
        self.update_errors = []
        self.next_id = 5000
        self.updated = {}

    def _all_stories(self):
        stories = [story for group in self.groups for story in group.stories]
        return stories + self.extra_stories

    def list_my_stories(self):
        self.calls.append(("list_my_stories",))
        return self.groups

    def find_story(self, story_id):
        self.calls.append(("find_story", story_id))
        if story_id in self.updated:
            return self.updated[story_id]
        for story in self._all_stories():
            if story.id == story_id:
                return story
        return None

    def project_name(self, project_id):
        for group in self.groups:
            if group.project_id == project_id:
                return group.project_name
        return f"Project {project_id}"

    def create_story(self, draft):
        self.calls.append(("create_story", draft.name))
        if self.create_errors:
            return draft.model_copy(update={"errors": list(self.create_errors)})
        self.next_id += 1
        return draft.model_copy(update={"id": self.next_id})

    def set_estimate(self, story, points):
        validate_estimate(points)
        self.calls.append(("set_estimate", story.id, points))
        return self._saved(
            story.model_copy(update={"estimate": points, "errors": list(self.update_errors)})
        )

    def transition_state(self, story, new_state):
        self.calls.append(("transition_state", story.id, StoryState(new_state)))
        if self.update_errors:
            return story.model_copy(update={"errors": list(self.update_errors)})
        return self._saved(story.model_copy(update={"current_state": StoryState(new_state)}))

    def _saved(self, story):
        if not story.has_errors:
            self.updated[story.id] = story
        return story

    def transitions(self):
        return [call for call in self.calls if call[0] == "transition_state"]

    def close(self):
        pass


class FakeGit:
    """Version-control collaborator with a scripted branch and results."""

    def __init__(self, branch="main", create_succeeds=True):
        self.branch = branch
        self.create_succeeds = create_succeeds
        self.created_branches = []
        self.staged = 0
        self.commits = []

    def current_branch_name(self):
        return self.branch

    def create_and_checkout_branch(self, name):
        self.created_branches.append(name)
        if self.create_succeeds:
            self.branch = name
        return self.create_succeeds

    def stage_all(self):
        self.staged += 1

    def commit(self, message):
        self.commits.append(message)


class FakeAction:
    """Pull-request or land action returning a fixed result."""

    def __init__(self, succeeds=True):
        self.succeeds = succeeds
        self.titles = []

    def execute(self, title):
        self.titles.append(title)
        return self.succeeds


class FakePrompter:
    """Non-interactive chooser and prompts."""

    def __init__(self, choice=1, texts=None, estimate=3, story_type=StoryType.FEATURE, project=None):
        self.choice = choice
        self.texts = list(texts or [])
        self.estimate = estimate
        self.story_type = story_type
        self.project = project
        self.labels_seen = []
        self.projects_seen = []
        self.estimate_asked = 0

    def choose_index(self, labels):
        self.labels_seen.append(list(labels))
        return self.choice

    def ask_text(self, prompt, default=None):
        if self.texts:
            return self.texts.pop(0)
        return default or ""

    def ask_estimate(self):
        self.estimate_asked += 1
        return self.estimate

    def ask_story_type(self):
        return self.story_type

    def choose_project(self, projects):
        self.projects_seen.append(list(projects))
        return self.project if self.project is not None else projects[0][0]


def make_story(story_id, name=None, story_type=StoryType.FEATURE, estimate=3, project_id=1, **kwargs):
    return Story(
        id=story_id,
        name=name or f"Story {story_id}",
        story_type=story_type,
        estimate=estimate,
        project_id=project_id,
        **kwargs,
    )


@pytest.fixture(autouse=True)
def clean_pvgit_env(monkeypatch):
    """Keep PVGIT_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("PVGIT_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def temp_home(tmp_path):
    """Create a temporary home directory for tests."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def isolated_config_manager(temp_home, monkeypatch):
    """ConfigManager that never touches real config files."""
    monkeypatch.setattr(Path, "home", lambda: temp_home)
    monkeypatch.setattr("pvgit.config.get_git_root", lambda: None)

    manager = ConfigManager()
    manager._user_config_path = temp_home / ".pvgit" / "config.yaml"
    manager._project_config_path = None
    manager._config = None
    return manager


@pytest.fixture
def tracker_config():
    return TrackerConfig(username="alice", api_token=VALID_TOKEN, project_ids=[1, 2])


@pytest.fixture
def complete_config(tracker_config):
    return Config(tracker=tracker_config)


@pytest.fixture
def two_groups():
    """Two projects with 2 and 3 stories."""
    return [
        ProjectStoryGroup(
            project_id=1,
            project_name="Web",
            stories=[make_story(11, "Login form"), make_story(12, "Logout", story_type=StoryType.BUG, estimate=None)],
        ),
        ProjectStoryGroup(
            project_id=2,
            project_name="API",
            stories=[
                make_story(21, "Rate limits", project_id=2),
                make_story(22, "Docs", story_type=StoryType.CHORE, estimate=None, project_id=2),
                make_story(23, "Pagination", estimate=None, project_id=2),
            ],
        ),
    ]


@pytest.fixture
def fake_tracker(two_groups):
    return FakeTracker(groups=two_groups)


@pytest.fixture
def fake_git():
    return FakeGit()


@pytest.fixture
def fake_prompter():
    return FakePrompter()


@pytest.fixture
def runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner
    return CliRunner()
