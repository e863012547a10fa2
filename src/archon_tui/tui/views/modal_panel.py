"""Modal overlay renderers.

One renderer per modal kind; ``render_modal`` picks the one matching the
active modal. Option lists mark the cursor with ">" and checkboxes with
"[x]"/"[ ]".
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from ..modals import (
    CREATE_FEATURE_LABEL,
    ConfirmationModal,
    FeatureSelectModal,
    HelpModal,
    ProjectSelectModal,
    StatusChangeModal,
    StatusFilterModal,
    TaskEditModal,
    help_page_size,
)
from ..models import TASK_STATUSES
from ..state import ALL_TASKS_LABEL
from ..tui_utils import get_status_badge
from .help_panel import render_help_panel

if TYPE_CHECKING:
    from ..state import AppState


def _option(label: str, selected: bool, style: str | None = None) -> Text:
    line = Text("> " if selected else "  ", style="bold cyan")
    line.append(label, style=style)
    if selected:
        line.stylize("reverse", 2)
    return line


def _checkbox(label: str, checked: bool, selected: bool) -> Text:
    return _option(f"[{'x' if checked else ' '}] {label}", selected)


def _modal_panel(body: RenderableType, title: str, hint: str, border_style: str = "magenta") -> Panel:
    return Panel(
        body,
        title=f"[bold white]{title}[/bold white]",
        subtitle=f"[dim]{hint}[/dim]",
        border_style=border_style,
        padding=(1, 2),
    )


def render_status_change(modal: StatusChangeModal) -> Panel:
    lines = []
    for index, status in enumerate(TASK_STATUSES):
        icon, color = get_status_badge(status)
        lines.append(_option(f"{icon} {status}", index == modal.selected_index, color))
    return _modal_panel(Text("\n").join(lines), "Change Status", "j/k: move · enter: apply · esc: cancel")


def render_confirmation(modal: ConfirmationModal) -> Panel:
    buttons = Text()
    for index, label in enumerate((modal.confirm_label, modal.cancel_label)):
        if index:
            buttons.append("   ")
        style = "bold reverse" if index == modal.selected_index else "bold"
        buttons.append(f" {label} ", style=style)
    return _modal_panel(
        Group(Text(modal.message), Text(""), buttons),
        "Confirm",
        "y: yes · n/esc: no",
        border_style="red",
    )


def render_project_select(state: AppState, modal: ProjectSelectModal) -> Panel:
    lines = [
        _option(project.title, index == modal.selected_index)
        for index, project in enumerate(state.data.projects)
    ]
    lines.append(
        _option(ALL_TASKS_LABEL, modal.selected_index == len(state.data.projects), "italic")
    )
    return _modal_panel(Text("\n").join(lines), "Select Project", "enter: select · a: all · esc: cancel")


def render_feature_select(modal: FeatureSelectModal) -> Panel:
    matches = set(modal.search.matches)
    lines = []
    for index, name in enumerate(modal.features):
        line = _checkbox(name, modal.selections.get(name, False), index == modal.selected_index)
        if index in matches:
            line.stylize("yellow", 6)
        lines.append(line)
    body: list[RenderableType] = [Text("\n").join(lines)]
    if modal.search.active or modal.search.has_query:
        body.append(Text(""))
        body.append(Text(f"/{modal.search.query}", style="bold yellow"))
    enabled = sum(1 for on in modal.selections.values() if on)
    return _modal_panel(
        Group(*body),
        f"Filter Features ({enabled}/{len(modal.features)})",
        "space: toggle · a: all · /: search · enter: apply · esc: cancel",
    )


def render_task_edit(modal: TaskEditModal) -> Panel:
    if modal.creating:
        body: list[RenderableType] = [
            Text("New feature name:"),
            Text(f"{modal.new_feature}_", style="bold yellow"),
        ]
        if modal.error:
            body.append(Text(modal.error, style="red"))
        return _modal_panel(Group(*body), "Create Feature", "enter: save · esc: back")

    lines = [
        _option(name, index == modal.selected_index)
        for index, name in enumerate(modal.features)
    ]
    lines.append(
        _option(CREATE_FEATURE_LABEL, modal.selected_index == len(modal.features), "green")
    )
    return _modal_panel(Text("\n").join(lines), "Edit Feature", "enter: assign · esc: cancel")


def render_status_filter(modal: StatusFilterModal) -> Panel:
    lines = [
        _checkbox(status, modal.selections[status], index == modal.selected_index)
        for index, status in enumerate(TASK_STATUSES)
    ]
    return _modal_panel(
        Text("\n").join(lines),
        "Filter Statuses",
        "space: toggle · a/n: all/none · enter: apply · esc: cancel",
    )


def render_modal(state: AppState) -> Panel | None:
    """Render the active modal, or None when no modal is open."""
    modal = state.modal.active
    if modal is None:
        return None
    if isinstance(modal, HelpModal):
        return render_help_panel(modal.scroll, help_page_size(state.window.height))
    if isinstance(modal, StatusChangeModal):
        return render_status_change(modal)
    if isinstance(modal, ConfirmationModal):
        return render_confirmation(modal)
    if isinstance(modal, ProjectSelectModal):
        return render_project_select(state, modal)
    if isinstance(modal, FeatureSelectModal):
        return render_feature_select(modal)
    if isinstance(modal, TaskEditModal):
        return render_task_edit(modal)
    if isinstance(modal, StatusFilterModal):
        return render_status_filter(modal)
    return None
