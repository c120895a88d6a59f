"""Click CLI interface for pvgit."""

import functools
import sys
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pvgit import __version__
from pvgit.config import ConfigError, ConfigManager
from pvgit.core import PvCore
from pvgit.display import story_details, story_table
from pvgit.integrations.git import GitError
from pvgit.integrations.tracker import TrackerClient, TrackerError
from pvgit.models import TrackerConfig
from pvgit.utils.logger import enable_verbose_logging, get_logger
from pvgit.workflows.resolver import ResolverError
from pvgit.workflows.transitions import StoryValidationError, TransitionError

logger = get_logger(__name__)
console = Console()


class CliContext:
    """State shared by the commands of one invocation."""

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        core: Optional[PvCore] = None,
    ):
        self._config_manager = config_manager
        self.core = core

    @property
    def config_manager(self) -> ConfigManager:
        if self._config_manager is None:
            self._config_manager = ConfigManager()
        return self._config_manager


def get_core(ctx: click.Context) -> PvCore:
    """Build the core for this invocation from a complete configuration.

    Raises:
        ConfigError: If the configuration is invalid or incomplete
    """
    state = ctx.ensure_object(CliContext)
    if state.core is None:
        config = state.config_manager.get_config()
        if not config.is_complete():
            raise ConfigError("pvgit is not configured yet.")
        state.core = PvCore(config, console=console)
        ctx.call_on_close(state.core.close)
    return state.core


def handle_errors(func):
    """Print expected failures and return normally instead of crashing."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ConfigError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            console.print("[yellow]Hint:[/yellow] Run 'pv setup' to configure pvgit")
        except TrackerError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
        except StoryValidationError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}:")
            for message in e.errors:
                console.print(f"  - {escape(message)}")
        except (TransitionError, ResolverError, GitError) as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
        except ValueError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
        return None

    return wrapper


def _story_from_branch(core: PvCore):
    story = core.resolver.resolve_from_current_branch()
    if story is None:
        branch = core.git.current_branch_name() or "(no branch)"
        console.print(f"[yellow]No story found for branch {escape(branch)}.[/yellow]")
        console.print("[dim]Branches created with 'pv branch' end in -pv-<story id>.[/dim]")
    return story


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version and exit")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, version: bool, verbose: bool) -> None:
    """pvgit - tie git branches to tracker stories.

    Pick a story, branch from it, commit against it, and move it along as
    pull requests are opened and landed.
    """
    if version:
        click.echo(f"pvgit version {__version__}")
        ctx.exit(0)

    if verbose:
        enable_verbose_logging()

    ctx.ensure_object(CliContext)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command("list")
@click.pass_context
@handle_errors
def list_stories(ctx: click.Context) -> None:
    """List stories assigned to you, by project."""
    core = get_core(ctx)
    groups = core.client.list_my_stories()

    if not any(group.stories for group in groups):
        console.print("[yellow]No stories assigned to you.[/yellow]")
        return

    for group in groups:
        if group.stories:
            console.print(story_table(group))


@cli.command("open")
@click.argument("story_id", required=False)
@click.pass_context
@handle_errors
def open_story(ctx: click.Context, story_id: Optional[str]) -> None:
    """Open a story in the browser.

    STORY_ID: Story to open; choose interactively when omitted
    """
    core = get_core(ctx)
    story = core.resolver.resolve(story_id)
    url = story.browser_url

    console.print(story_details(story), highlight=False)
    if url:
        click.launch(url)


@cli.command()
@click.argument("name")
@click.argument("story_id", required=False)
@click.pass_context
@handle_errors
def branch(ctx: click.Context, name: str, story_id: Optional[str]) -> None:
    """Create a branch for a story and start it.

    NAME: Branch name; the story ID is appended as -pv-<id>
    STORY_ID: Story to start; choose (or create) interactively when omitted
    """
    core = get_core(ctx)
    story = core.resolver.resolve(story_id, allow_create=True)
    started = core.engine.start(story, name)

    console.print(f"[green]✓[/green] Started story #{started.id}: [bold]{escape(started.name)}[/bold]")
    if started.browser_url:
        console.print(f"  {started.browser_url}", highlight=False)


@cli.command()
@click.option("--message", "-m", help="Extra text for the commit message body")
@click.pass_context
@handle_errors
def commit(ctx: click.Context, message: Optional[str]) -> None:
    """Commit all changes with a message naming the branch's story."""
    core = get_core(ctx)
    story = _story_from_branch(core)
    if story is None:
        return

    full_message = core.engine.commit(story, message)
    console.print(f"[green]✓[/green] Committed: {escape(full_message.splitlines()[0])}", highlight=False)


@cli.command("pull-request")
@click.pass_context
@handle_errors
def pull_request(ctx: click.Context) -> None:
    """Open a pull request for the branch's story and finish it."""
    core = get_core(ctx)
    story = _story_from_branch(core)
    if story is None:
        return

    finished = core.engine.finish(story)
    console.print(f"[green]✓[/green] Story #{finished.id} finished")


@cli.command()
@click.pass_context
@handle_errors
def land(ctx: click.Context) -> None:
    """Land the branch's story and deliver it."""
    core = get_core(ctx)
    story = _story_from_branch(core)
    if story is None:
        return

    delivered = core.engine.deliver(story)
    console.print(f"[green]✓[/green] Story #{delivered.id} delivered")


@cli.command()
@click.option("--verify/--no-verify", default=True, help="Check the token against the tracker")
@click.pass_context
@handle_errors
def setup(ctx: click.Context, verify: bool) -> None:
    """Configure tracker username, API token and projects."""
    state = ctx.ensure_object(CliContext)
    manager = state.config_manager

    try:
        current = manager.get_config().tracker
    except ConfigError as e:
        logger.debug(f"Ignoring unreadable configuration during setup: {e}")
        current = TrackerConfig()

    username = click.prompt("Tracker username", default=current.username)
    api_token = click.prompt(
        "API token (32 characters, from your tracker profile)",
        default=current.api_token,
        hide_input=True,
        show_default=False,
    )
    default_projects = ",".join(str(pid) for pid in current.project_ids) or None
    project_ids = click.prompt("Project IDs (comma separated)", default=default_projects)

    try:
        tracker = TrackerConfig(username=username, api_token=api_token, project_ids=project_ids)
    except ValueError as e:
        raise ConfigError(f"Invalid settings: {e}")

    if verify:
        with TrackerClient(tracker) as client:
            me = client.me()
        console.print(f"[green]✓[/green] Authenticated as {me.get('username', username)}")

    path = manager.save_tracker_settings(
        tracker.username, tracker.api_token, tracker.project_ids
    )
    console.print(f"[green]✓[/green] Configuration saved: {path}")


@cli.group()
def config() -> None:
    """Configuration management."""
    pass


@config.command("get")
@click.argument("key")
@click.pass_context
@handle_errors
def config_get(ctx: click.Context, key: str) -> None:
    """Get configuration value by key.

    KEY: Dot-separated configuration key (e.g., 'tracker.username')
    """
    manager = ctx.ensure_object(CliContext).config_manager
    value = manager.get_config_value(key)
    if key.endswith("api_token") and value:
        value = f"{value[:4]}…"
    console.print(f"{key}: {value}", highlight=False)


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.option(
    "--project", "-p", is_flag=True,
    help="Set in project config instead of user config"
)
@click.pass_context
@handle_errors
def config_set(ctx: click.Context, key: str, value: str, project: bool) -> None:
    """Set configuration value.

    KEY: Dot-separated configuration key (e.g., 'workflows.land_command')
    VALUE: Value to set
    """
    manager = ctx.ensure_object(CliContext).config_manager

    parsed_value = value
    if value.lower() in ("true", "false"):
        parsed_value = value.lower() == "true"
    elif value.isdigit() and not key.endswith("api_token"):
        parsed_value = int(value)

    manager.set_config_value(key, parsed_value, user_level=not project)

    config_type = "project" if project else "user"
    console.print(f"[green]✓[/green] {config_type.title()} config updated: {key}")


@config.command("list")
@click.pass_context
@handle_errors
def config_list(ctx: click.Context) -> None:
    """List configuration files and their status."""
    manager = ctx.ensure_object(CliContext).config_manager

    table = Table(title="Configuration Files")
    table.add_column("Type", style="cyan")
    table.add_column("Path")
    table.add_column("Status", style="green")

    for config_type, path in manager.list_config_files().items():
        if path and path.exists():
            status, path_str = "✓ Exists", str(path)
        else:
            status, path_str = "✗ Not found", "N/A" if path is None else str(path)
        table.add_row(config_type.title(), path_str, status)

    console.print(table)
    complete = "yes" if manager.is_complete() else "no (run 'pv setup')"
    console.print(f"Tracker configured: {complete}")


def main() -> None:
    """Console script entry point."""
    try:
        cli()
    except Exception as e:
        logger.exception("Unexpected error")
        console.print(f"[red]Error:[/red] Unexpected error: {escape(str(e))}")
        sys.exit(1)


if __name__ == "__main__":
    main()
