"""Rendering stories for the terminal."""

from typing import List

from rich.markup import escape
from rich.table import Table

from pvgit.models import ProjectStoryGroup, Story, StoryState

STATE_STYLES = {
    StoryState.STARTED: "yellow",
    StoryState.FINISHED: "blue",
    StoryState.DELIVERED: "magenta",
    StoryState.ACCEPTED: "green",
    StoryState.REJECTED: "red",
}


def format_estimate(story: Story) -> str:
    if story.estimate is None:
        return "unestimated" if story.needs_estimate else "-"
    return f"{story.estimate} pts"


def format_story(story: Story) -> str:
    """One-line plain text summary of a story."""
    if story.is_placeholder:
        return story.name
    return (
        f"#{story.id} [{story.story_type.value}] {story.name} "
        f"({story.current_state.value}, {format_estimate(story)})"
    )


def selection_labels(groups: List[ProjectStoryGroup]) -> List[str]:
    """Labels for the flattened selection list, prefixed with the project name."""
    return [
        f"{group.project_name}: {format_story(story)}"
        for group in groups
        for story in group.stories
    ]


def story_table(group: ProjectStoryGroup) -> Table:
    """Table of one project's stories."""
    table = Table(title=f"{escape(group.project_name)} ({group.project_id})")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("State")
    table.add_column("Estimate", justify="right")
    table.add_column("Name")

    for story in group.stories:
        style = STATE_STYLES.get(story.current_state)
        state = story.current_state.value
        table.add_row(
            str(story.id),
            story.story_type.value,
            f"[{style}]{state}[/{style}]" if style else state,
            format_estimate(story),
            escape(story.name),
        )

    return table


def story_details(story: Story) -> str:
    """Multi-line description shown after a story is resolved."""
    lines = [f"[bold]{escape(story.name)}[/bold]", escape(format_story(story))]
    if story.browser_url:
        lines.append(story.browser_url)
    if story.description:
        lines.extend(["", escape(story.description)])
    return "\n".join(lines)
