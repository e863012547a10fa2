"""Task list panel renderer.

This module provides the render_task_list_panel function that displays the
visible tasks with a status badge, highlighting the selection and search
matches, scrolled so the selected row stays in view.
"""

from __future__ import annotations

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models import Task
from ..tui_utils import get_status_badge, truncate_text


def viewport_offset(selected_index: int, total: int, viewport_size: int) -> int:
    """First row to draw so that ``selected_index`` is visible.

    Examples:
        >>> viewport_offset(0, 100, 10)
        0
        >>> viewport_offset(25, 100, 10)
        20
        >>> viewport_offset(99, 100, 10)
        90
    """
    if viewport_size <= 0 or total <= viewport_size:
        return 0
    offset = selected_index - viewport_size // 2
    return max(0, min(offset, total - viewport_size))


def render_task_list_panel(
    tasks: list[Task],
    selected_index: int,
    viewport_size: int,
    matches: list[int] | None = None,
    focused: bool = True,
    title_width: int = 60,
) -> Panel:
    """Build Rich Panel displaying the visible task list.

    Args:
        tasks: Visible tasks in display order
        selected_index: Index of the selected task
        viewport_size: Maximum number of rows to draw
        matches: Indices of search matches to highlight
        focused: Whether the task list has keyboard focus
        title_width: Maximum title width before truncation

    Returns:
        Rich Panel component with task list
    """
    match_set = set(matches or ())
    table = Table(
        show_header=False,
        box=None,
        padding=(0, 1),
        expand=True,
    )
    table.add_column("Status", no_wrap=True, width=2)
    table.add_column("Task", no_wrap=True, ratio=1)
    table.add_column("Feature", style="dim", no_wrap=True)

    total = len(tasks)
    offset = viewport_offset(selected_index, total, viewport_size)
    for index in range(offset, min(offset + max(viewport_size, 1), total)):
        task = tasks[index]
        icon, color = get_status_badge(task.status)
        title = Text(truncate_text(task.title, title_width))
        if index in match_set:
            title.stylize("bold yellow")
        row_style = "reverse" if index == selected_index else None
        table.add_row(
            Text(icon, style=color),
            title,
            Text(task.feature or ""),
            style=row_style,
        )

    if total == 0:
        table.add_row("", Text("No tasks", style="dim italic"), "")

    range_text = f"{offset + 1}-{min(offset + viewport_size, total)}" if total else "0"
    return Panel(
        table,
        title=f"[bold white]Tasks[/bold white] [dim]({range_text}/{total})[/dim]",
        border_style="cyan" if focused else "blue",
    )
