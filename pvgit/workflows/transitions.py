"""Story lifecycle transitions.

Every transition runs its local or external side effect first (branch,
pull request, land) and only asks the tracker to change state once that
side effect has reported success.
"""

from typing import List, Optional

from pvgit.integrations.tracker import TrackerClient
from pvgit.models import Story, StoryState
from pvgit.utils.logger import get_logger
from pvgit.workflows.branch_name import build_branch_name

logger = get_logger(__name__)


class TransitionError(Exception):
    """Story transition error."""
    pass


class StoryValidationError(TransitionError):
    """The tracker rejected a create or update."""

    def __init__(self, message: str, errors: List[str]):
        super().__init__(message)
        self.errors = errors


class ExternalActionError(TransitionError):
    """A local or external action failed; the story was left unchanged."""
    pass


class InvalidStateError(TransitionError):
    """The story is not in a state the transition can start from."""
    pass


# Lifecycle is one-way: unstarted -> started -> finished -> delivered
START_FROM = frozenset({StoryState.UNSCHEDULED, StoryState.PLANNED, StoryState.UNSTARTED})
FINISH_FROM = frozenset({StoryState.STARTED})
DELIVER_FROM = frozenset({StoryState.FINISHED})


def _require_state(story: Story, allowed: frozenset, action: str) -> None:
    if story.current_state not in allowed:
        expected = " or ".join(sorted(state.value for state in allowed))
        raise InvalidStateError(
            f"Cannot {action} story {story.id}: it is {story.current_state.value}, "
            f"expected {expected}"
        )


def commit_message(story: Story, message: Optional[str] = None) -> str:
    """Commit message referencing a story: ``[#123] Story name``."""
    subject = f"[#{story.id}] {story.name}"
    if message and message.strip():
        return f"{subject}\n\n{message.strip()}"
    return subject


def _check(story: Story, action: str) -> Story:
    if story.has_errors:
        raise StoryValidationError(f"Tracker rejected {action}", story.errors)
    return story


class TransitionEngine:
    """Moves stories from unstarted through started, finished and delivered."""

    def __init__(
        self,
        client: TrackerClient,
        git,
        pull_request,
        land,
        prompter,
        project_ids: Optional[List[int]] = None,
    ):
        """Initialize engine.

        Args:
            client: Tracker client
            git: Version-control collaborator (create_and_checkout_branch, stage_all, commit)
            pull_request: Action with execute(title) -> bool
            land: Action with execute(title) -> bool
            prompter: Interactive prompts (ask_text, ask_estimate, ask_story_type, choose_project)
            project_ids: Projects new stories can be created in
        """
        self.client = client
        self.git = git
        self.pull_request = pull_request
        self.land = land
        self.prompter = prompter
        self.project_ids = list(project_ids or [])

    def create_story(self) -> Story:
        """Collect a new story from the prompter and create it on the tracker.

        Raises:
            StoryValidationError: If the tracker rejects the story
        """
        if not self.project_ids:
            raise StoryValidationError(
                "No project to create the story in", ["project_id: is required"]
            )
        if len(self.project_ids) == 1:
            project_id = self.project_ids[0]
        else:
            projects = [(pid, self.client.project_name(pid)) for pid in self.project_ids]
            project_id = self.prompter.choose_project(projects)

        draft = Story(
            name=self.prompter.ask_text("Story name"),
            description=self.prompter.ask_text("Description", default=""),
            story_type=self.prompter.ask_story_type(),
            project_id=project_id,
        )

        return _check(self.client.create_story(draft), "the new story")

    def ensure_estimate(self, story: Story) -> Story:
        """Estimate an unestimated feature; other stories pass through."""
        if not story.needs_estimate:
            return story

        points = self.prompter.ask_estimate()
        logger.info(f"Estimating story {story.id} at {points} points")
        return _check(self.client.set_estimate(story, points), "the estimate")

    def start(self, story: Story, requested_name: str) -> Story:
        """Branch off for a story and mark it started.

        A placeholder story is created first. Unestimated features are
        estimated before anything else happens.

        Raises:
            InvalidStateError: If the story has already been started
            StoryValidationError: If the tracker rejects the story, estimate or state
            ExternalActionError: If the branch cannot be created
        """
        _require_state(story, START_FROM, "start")
        if story.is_placeholder:
            story = self.create_story()

        story = self.ensure_estimate(story)

        branch = build_branch_name(requested_name, story.id)
        if not self.git.create_and_checkout_branch(branch):
            raise ExternalActionError(f"Could not create branch {branch}")

        started = _check(self.client.transition_state(story, StoryState.STARTED), "start")
        logger.info(f"Story {story.id} started on branch {branch}")
        return started

    def finish(self, story: Story) -> Story:
        """Open a pull request for the story and mark it finished.

        Raises:
            InvalidStateError: If the story is not started
            ExternalActionError: If the pull request cannot be created
            StoryValidationError: If the tracker rejects the state change
        """
        _require_state(story, FINISH_FROM, "finish")
        if not self.pull_request.execute(story.name):
            raise ExternalActionError(f"Pull request for story {story.id} was not created")

        finished = _check(self.client.transition_state(story, StoryState.FINISHED), "finish")
        logger.info(f"Story {story.id} finished")
        return finished

    def deliver(self, story: Story) -> Story:
        """Land the story's branch and mark it delivered.

        Raises:
            InvalidStateError: If the story is not finished
            ExternalActionError: If landing fails
            StoryValidationError: If the tracker rejects the state change
        """
        _require_state(story, DELIVER_FROM, "deliver")
        if not self.land.execute(story.name):
            raise ExternalActionError(f"Story {story.id} was not landed")

        delivered = _check(self.client.transition_state(story, StoryState.DELIVERED), "deliver")
        logger.info(f"Story {story.id} delivered")
        return delivered

    def commit(self, story: Story, message: Optional[str] = None) -> str:
        """Stage everything and commit with a message referencing the story.

        Returns:
            The commit message used

        Raises:
            GitError: If staging or committing fails
        """
        full_message = commit_message(story, message)
        self.git.stage_all()
        self.git.commit(full_message)
        return full_message
