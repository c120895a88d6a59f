"""Per-invocation wiring of the tracker client, git and workflow objects."""

from typing import Optional

from rich.console import Console

from pvgit.integrations.git import GitRepository
from pvgit.integrations.hub import land_action, pull_request_action
from pvgit.integrations.prompts import InteractivePrompter
from pvgit.integrations.tracker import TrackerClient
from pvgit.models import Config
from pvgit.utils.logger import get_logger
from pvgit.workflows.resolver import StoryResolver
from pvgit.workflows.transitions import TransitionEngine

logger = get_logger(__name__)


class PvCore:
    """Everything one command needs, built once and passed explicitly."""

    def __init__(
        self,
        config: Config,
        client: Optional[TrackerClient] = None,
        git=None,
        prompter=None,
        pull_request=None,
        land=None,
        console: Optional[Console] = None,
    ):
        """Initialize core.

        Collaborators default to the real implementations; tests pass fakes.
        """
        self.config = config
        self.console = console or Console()
        self.client = client or TrackerClient(config.tracker)
        self.git = git or GitRepository()
        self.prompter = prompter or InteractivePrompter(self.console)
        self.pull_request = pull_request or pull_request_action(
            config.workflows.pull_request_command
        )
        self.land = land or land_action(config.workflows.land_command)

        self.resolver = StoryResolver(self.client, self.prompter, self.git)
        self.engine = TransitionEngine(
            self.client,
            self.git,
            self.pull_request,
            self.land,
            self.prompter,
            project_ids=config.tracker.project_ids,
        )
        logger.debug(f"Core ready for projects {config.tracker.project_ids}")

    def close(self) -> None:
        self.client.close()
