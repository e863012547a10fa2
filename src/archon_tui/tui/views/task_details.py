"""Task details panel renderer."""

from __future__ import annotations

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models import Task
from ..tui_utils import get_status_badge


def _format_time(value) -> str:
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M")


def detail_lines(task: Task) -> list[Text]:
    """Lines of the scrollable body: description, sources and code examples."""
    lines: list[Text] = []
    if task.description:
        lines.extend(Text(line) for line in task.description.splitlines())
    else:
        lines.append(Text("No description", style="dim italic"))

    if task.sources:
        lines.append(Text(""))
        lines.append(Text("Sources", style="bold cyan"))
        for source in task.sources:
            label = f"- {source.url}"
            if source.type:
                label += f" ({source.type})"
            lines.append(Text(label))

    if task.code_examples:
        lines.append(Text(""))
        lines.append(Text("Code examples", style="bold cyan"))
        for example in task.code_examples:
            label = f"- {example.file}"
            if example.function:
                label += f":{example.function}"
            if example.purpose:
                label += f" - {example.purpose}"
            lines.append(Text(label))
    return lines


def render_task_details(task: Task | None, scroll: int = 0, focused: bool = False) -> Panel:
    """Build Rich Panel with metadata and body of the selected task.

    Args:
        task: Selected task, or None when the list is empty
        scroll: Number of body lines scrolled past
        focused: Whether the details panel has keyboard focus

    Returns:
        Rich Panel component ready for rendering
    """
    border = "cyan" if focused else "blue"
    if task is None:
        return Panel(
            Text("No task selected", justify="center", style="dim italic"),
            title="Details",
            border_style=border,
            padding=(1, 2),
        )

    icon, color = get_status_badge(task.status)
    metadata = Table.grid(padding=(0, 2))
    metadata.add_column(style="bold cyan", justify="right")
    metadata.add_column()
    metadata.add_row("ID:", Text(task.id))
    metadata.add_row("Status:", Text(f"{icon} {task.status}", style=color))
    metadata.add_row("Priority:", str(task.task_order))
    metadata.add_row("Feature:", Text(task.feature or "-"))
    metadata.add_row("Assignee:", Text(task.assignee or "-"))
    metadata.add_row("Created:", _format_time(task.created_at))
    metadata.add_row("Updated:", _format_time(task.updated_at))

    lines = detail_lines(task)
    scroll = max(0, min(scroll, len(lines) - 1))
    body = Text("\n").join(lines[scroll:])

    return Panel(
        Group(metadata, Text(""), body),
        title=Text(task.title, style="bold white"),
        border_style=border,
        padding=(0, 1),
    )
