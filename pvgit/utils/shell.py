"""Shell command execution utilities."""

import shlex
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Union

from pvgit.utils.logger import get_logger

logger = get_logger(__name__)


class ShellError(Exception):
    """Shell command execution error."""

    def __init__(self, message: str, returncode: int, stdout: str = "", stderr: str = ""):
        """Initialize shell error.

        Args:
            message: Error message
            returncode: Process return code
            stdout: Standard output
            stderr: Standard error
        """
        super().__init__(message)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class ShellResult:
    """Shell command result."""

    def __init__(
        self,
        returncode: int,
        stdout: str,
        stderr: str,
        command: str,
        cwd: Optional[Path] = None,
    ):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.command = command
        self.cwd = cwd

    @property
    def success(self) -> bool:
        """Check if command succeeded."""
        return self.returncode == 0

    def check(self) -> "ShellResult":
        """Check result and raise error if failed.

        Returns:
            Self for chaining

        Raises:
            ShellError: If command failed
        """
        if not self.success:
            raise ShellError(
                f"Command failed: {self.command}",
                self.returncode,
                self.stdout,
                self.stderr,
            )
        return self


def run_command(
    command: Union[str, List[str]],
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[Dict[str, str]] = None,
    check: bool = False,
    capture_output: bool = True,
    timeout: Optional[float] = None,
) -> ShellResult:
    """Run a command synchronously.

    String commands are split shell-style; no shell is involved either way.

    Args:
        command: Command to execute
        cwd: Working directory
        env: Environment variables
        check: Raise exception on failure
        capture_output: Capture stdout/stderr (False lets the command talk to the terminal)
        timeout: Command timeout in seconds

    Returns:
        Command result

    Raises:
        ShellError: If the command cannot be run, times out, or fails with check=True
    """
    if isinstance(command, str):
        command_str = command
        command_list = shlex.split(command)
    else:
        command_list = list(command)
        command_str = shlex.join(command_list)

    cwd_path = Path(cwd) if cwd else None

    logger.debug(f"Running command: {command_str} (cwd: {cwd_path})")

    try:
        result = subprocess.run(
            command_list,
            cwd=cwd_path,
            env=env,
            capture_output=capture_output,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        logger.error(f"Command timed out after {timeout}s: {command_str}")
        raise ShellError(f"Command timed out: {command_str}", -1, "", str(e))
    except FileNotFoundError as e:
        logger.error(f"Command not found: {command_str}")
        raise ShellError(f"Command not found: {command_str}", -1, "", str(e))

    shell_result = ShellResult(
        returncode=result.returncode,
        stdout=result.stdout or "",
        stderr=result.stderr or "",
        command=command_str,
        cwd=cwd_path,
    )

    if result.returncode == 0:
        logger.debug(f"Command succeeded: {command_str}")
    else:
        logger.debug(f"Command failed with code {result.returncode}: {command_str}")
        if result.stderr:
            logger.debug(f"stderr: {result.stderr}")

    if check:
        shell_result.check()

    return shell_result


def check_command_exists(command: str) -> bool:
    """Check if a command exists in PATH.

    Args:
        command: Command name to check

    Returns:
        True if command exists, False otherwise
    """
    try:
        return run_command(["which", command]).success
    except ShellError:
        return False


def get_git_root() -> Optional[Path]:
    """Get git repository root directory.

    Returns:
        Git root path or None if not in a git repo
    """
    try:
        result = run_command("git rev-parse --show-toplevel", check=True)
        return Path(result.stdout.strip())
    except ShellError:
        return None
