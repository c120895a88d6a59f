"""Pull-request and land actions backed by external commands."""

import shlex
from typing import List

from pvgit.utils.logger import get_logger
from pvgit.utils.shell import ShellError, check_command_exists, run_command

logger = get_logger(__name__)


class ExternalAction:
    """Runs a configured command such as ``hub pull-request -m {title}``.

    The template is split shell-style first and ``{title}`` is substituted in
    each argument afterwards, so titles never need quoting.
    """

    def __init__(self, name: str, command_template: str):
        """Initialize action.

        Args:
            name: Short label used in log messages ("pull request", "land")
            command_template: Command line with an optional {title} placeholder
        """
        self.name = name
        self.command_template = command_template

    def build_command(self, title: str) -> List[str]:
        """Build the argument list for a story title."""
        return [part.replace("{title}", title) for part in shlex.split(self.command_template)]

    def execute(self, title: str) -> bool:
        """Run the command in the foreground.

        Returns:
            True if the command exited successfully
        """
        command = self.build_command(title)
        if not command:
            logger.error(f"No command configured for {self.name}")
            return False

        if not check_command_exists(command[0]):
            logger.error(f"'{command[0]}' not found in PATH; cannot run {self.name}")
            return False

        logger.debug(f"Running {self.name}: {shlex.join(command)}")
        try:
            # Let the tool talk to the terminal (editors, confirmations)
            result = run_command(command, capture_output=False)
        except ShellError as e:
            logger.error(f"{self.name} failed: {e}")
            return False

        if not result.success:
            logger.error(f"{self.name} exited with code {result.returncode}")
            return False

        return True


def pull_request_action(command_template: str) -> ExternalAction:
    """Action that opens a pull request for the current branch."""
    return ExternalAction("pull request", command_template)


def land_action(command_template: str) -> ExternalAction:
    """Action that lands (merges) the current branch."""
    return ExternalAction("land", command_template)
