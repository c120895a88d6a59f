"""Interactive terminal prompts."""

from typing import List, Optional, Sequence, Tuple

import click
from rich.console import Console
from rich.markup import escape

from pvgit.models import MAX_ESTIMATE, MIN_ESTIMATE, StoryType


class InteractivePrompter:
    """Chooser and free-text prompts on the terminal."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def choose_index(self, labels: Sequence[str]) -> int:
        """Print a numbered list and read a 1-based selection.

        click re-prompts until the answer is within range.
        """
        for index, label in enumerate(labels, start=1):
            self.console.print(f"[cyan]{index:>3}[/cyan]  {escape(label)}", highlight=False)
        return click.prompt("Select a story", type=click.IntRange(1, len(labels)))

    def ask_text(self, prompt: str, default: Optional[str] = None) -> str:
        return click.prompt(prompt, default=default, show_default=default is not None)

    def ask_estimate(self) -> int:
        """Ask for story points in the accepted range."""
        return click.prompt(
            f"Estimate ({MIN_ESTIMATE}-{MAX_ESTIMATE} points)",
            type=click.IntRange(MIN_ESTIMATE, MAX_ESTIMATE),
        )

    def ask_story_type(self) -> StoryType:
        value = click.prompt(
            "Story type",
            type=click.Choice([story_type.value for story_type in StoryType]),
            default=StoryType.FEATURE.value,
        )
        return StoryType(value)

    def choose_project(self, projects: List[Tuple[int, str]]) -> int:
        """Pick a project from (project_id, name) pairs; returns the project ID."""
        for index, (project_id, name) in enumerate(projects, start=1):
            self.console.print(f"[cyan]{index:>3}[/cyan]  {escape(name)} ({project_id})", highlight=False)
        choice = click.prompt("Select a project", type=click.IntRange(1, len(projects)))
        return projects[choice - 1][0]
