"""Local git repository operations."""

from pathlib import Path
from typing import Optional, Union

from pvgit.utils.logger import get_logger
from pvgit.utils.shell import ShellError, run_command

logger = get_logger(__name__)


class GitError(Exception):
    """Git command error."""
    pass


class GitRepository:
    """Version-control collaborator backed by the git CLI."""

    def __init__(self, cwd: Optional[Union[str, Path]] = None):
        """Initialize repository wrapper.

        Args:
            cwd: Working directory for git commands (defaults to the process cwd)
        """
        self.cwd = cwd

    def current_branch_name(self) -> Optional[str]:
        """Get the checked-out branch name.

        Returns:
            Branch name, or None outside a repository or on a detached HEAD
        """
        try:
            result = run_command(["git", "branch", "--show-current"], cwd=self.cwd, check=True)
        except ShellError as e:
            logger.debug(f"Could not read current branch: {e.stderr.strip()}")
            return None

        branch = result.stdout.strip()
        return branch or None

    def create_and_checkout_branch(self, name: str) -> bool:
        """Create a branch from HEAD and switch to it.

        Returns:
            True if git reported success
        """
        try:
            result = run_command(["git", "checkout", "-b", name], cwd=self.cwd)
        except ShellError as e:
            logger.error(f"Failed to create branch {name}: {e}")
            return False

        if not result.success:
            logger.error(f"Failed to create branch {name}: {result.stderr.strip()}")
            return False

        logger.info(f"Switched to new branch {name}")
        return True

    def stage_all(self) -> None:
        """Stage every change in the working tree.

        Raises:
            GitError: If staging fails
        """
        try:
            run_command(["git", "add", "--all"], cwd=self.cwd, check=True)
        except ShellError as e:
            raise GitError(f"Failed to stage changes: {e.stderr.strip() or e}")

    def commit(self, message: str) -> None:
        """Commit the staged changes.

        Raises:
            GitError: If the commit fails (including "nothing to commit")
        """
        try:
            run_command(["git", "commit", "-m", message], cwd=self.cwd, check=True)
        except ShellError as e:
            detail = e.stderr.strip() or e.stdout.strip() or str(e)
            raise GitError(f"Failed to commit: {detail}")
        logger.info("Changes committed")
