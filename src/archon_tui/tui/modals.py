"""Modal overlay state machine.

Seven mutually exclusive overlays share a single ``ModalState.active`` slot,
so at most one can be open. Each modal captures all input while open: keys it
does not declare are ignored. Modals that preview filter changes live take a
deep-copied FilterSnapshot on open and restore it wholesale on cancel.
"""

from __future__ import annotations

import copy
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from .chords import JUMP_TO_FIRST
from .effects import DeleteTask, Effect, ListTasks, Quit, UpdateTask
from .models import (
    TASK_STATUSES,
    FeatureFilter,
    SearchState,
    Unfiltered,
    explicit_filter,
    feature_selections,
)
from .pipeline import unique_features
from .search import compute_matches, first_match_from, next_match, previous_match

if TYPE_CHECKING:
    from .state import AppState

logger = logging.getLogger(__name__)

CREATE_FEATURE_LABEL = "+ Create new feature"
FEATURE_NAME_MAX_LENGTH = 30
_FEATURE_NAME_CHAR = re.compile(r"[A-Za-z0-9_-]")

HELP_SECTIONS: tuple[tuple[str, tuple[tuple[str, str], ...]], ...] = (
    (
        "Navigation",
        (
            ("j/k, ↑/↓", "Move selection"),
            ("J/K", "Move 4 tasks"),
            ("Ctrl+d/u, PgDn/PgUp", "Move half a page"),
            ("gg, Home", "Jump to first task"),
            ("G, End", "Jump to last task"),
            ("h/l", "Focus task list / details"),
        ),
    ),
    (
        "Search",
        (
            ("/, Ctrl+f", "Search task titles"),
            ("n/N", "Next / previous match"),
            ("Ctrl+x, Ctrl+l", "Clear search"),
            ("Esc", "Clear committed search"),
        ),
    ),
    (
        "Tasks",
        (
            ("t", "Change status"),
            ("e", "Edit feature"),
            ("d", "Delete task"),
            ("y/Y", "Copy task ID / title"),
        ),
    ),
    (
        "Filters",
        (
            ("p", "Select project"),
            ("a", "Show all tasks"),
            ("f", "Filter by feature"),
            ("v", "Filter by status"),
            ("s/S", "Cycle sort mode"),
        ),
    ),
    (
        "Application",
        (
            ("r, F5", "Refresh data"),
            ("?", "Toggle help"),
            ("q", "Quit (or close dialog)"),
            ("Ctrl+c", "Quit immediately"),
        ),
    ),
)


def help_line_count() -> int:
    """Rendered line count of the help content (title plus blank per section)."""
    return sum(len(entries) + 2 for _, entries in HELP_SECTIONS)


def help_page_size(window_height: int) -> int:
    return max(1, window_height - 8)


@dataclass(frozen=True)
class FilterSnapshot:
    """Deep copy of the view-defining state taken when a modal opens."""

    selected_project_id: str | None
    status_filter: frozenset[str] | None
    feature_filter: FeatureFilter
    selected_task_id: str | None

    @classmethod
    def capture(cls, state: AppState) -> FilterSnapshot:
        task = state.selected_task
        return cls(
            selected_project_id=state.data.selected_project_id,
            status_filter=copy.deepcopy(state.data.status_filter),
            feature_filter=copy.deepcopy(state.data.feature_filter),
            selected_task_id=task.id if task else None,
        )

    def restore(self, state: AppState) -> None:
        state.data.selected_project_id = self.selected_project_id
        state.data.status_filter = self.status_filter
        state.data.feature_filter = self.feature_filter
        state.refresh_view(self.selected_task_id)


@dataclass
class HelpModal:
    scroll: int = 0


@dataclass
class StatusChangeModal:
    task_id: str
    selected_index: int = 0


class ConfirmAction(Enum):
    QUIT = "quit"
    DELETE = "delete"


@dataclass
class ConfirmationModal:
    action: ConfirmAction
    message: str
    confirm_label: str
    cancel_label: str
    selected_index: int = 0
    task_id: str | None = None


@dataclass
class ProjectSelectModal:
    snapshot: FilterSnapshot
    selected_index: int = 0


@dataclass
class FeatureSelectModal:
    features: list[str]
    selections: dict[str, bool]
    snapshot: FilterSnapshot
    selected_index: int = 0
    search: SearchState = field(default_factory=SearchState)


@dataclass
class TaskEditModal:
    task_id: str
    features: list[str]
    selected_index: int = 0
    creating: bool = False
    new_feature: str = ""
    error: str | None = None

    @property
    def option_count(self) -> int:
        return len(self.features) + 1


@dataclass
class StatusFilterModal:
    selections: dict[str, bool]
    snapshot: FilterSnapshot
    selected_index: int = 0


Modal = (
    HelpModal
    | StatusChangeModal
    | ConfirmationModal
    | ProjectSelectModal
    | FeatureSelectModal
    | TaskEditModal
    | StatusFilterModal
)


@dataclass
class ModalState:
    """Single slot holding the active modal, if any."""

    active: Modal | None = None

    @property
    def is_open(self) -> bool:
        return self.active is not None

    def open(self, modal: Modal) -> None:
        if self.active is not None:
            logger.warning(
                f"Replacing open modal {type(self.active).__name__} with {type(modal).__name__}"
            )
        self.active = modal

    def close(self) -> None:
        self.active = None


def _clamp(value: int, upper: int) -> int:
    return max(0, min(value, upper))


# Opening


def open_help(state: AppState) -> None:
    state.modal.open(HelpModal())


def open_status_change(state: AppState) -> bool:
    """Open the status picker for the selected task. Returns False without a selection."""
    task = state.selected_task
    if task is None:
        return False
    index = TASK_STATUSES.index(task.status) if task.status in TASK_STATUSES else 0
    state.modal.open(StatusChangeModal(task_id=task.id, selected_index=index))
    return True


def open_quit_confirmation(state: AppState) -> None:
    state.modal.open(
        ConfirmationModal(
            action=ConfirmAction.QUIT,
            message="Are you sure you want to quit?",
            confirm_label="Quit",
            cancel_label="Stay",
        )
    )


def open_delete_confirmation(state: AppState) -> bool:
    task = state.selected_task
    if task is None:
        return False
    state.modal.open(
        ConfirmationModal(
            action=ConfirmAction.DELETE,
            message=f"Delete task '{task.title}'? This cannot be undone.",
            confirm_label="Delete",
            cancel_label="Cancel",
            task_id=task.id,
        )
    )
    return True


def open_project_select(state: AppState) -> None:
    projects = state.data.projects
    index = len(projects)
    for position, project in enumerate(projects):
        if project.id == state.data.selected_project_id:
            index = position
            break
    state.modal.open(
        ProjectSelectModal(snapshot=FilterSnapshot.capture(state), selected_index=index)
    )


def open_feature_select(state: AppState) -> bool:
    """Open the feature filter. Returns False when no task carries a feature.

    An Unfiltered filter is first materialized into an explicit all-enabled
    set so every checkbox has a concrete value.
    """
    features = state.available_features()
    if not features:
        return False
    snapshot = FilterSnapshot.capture(state)
    if isinstance(state.data.feature_filter, Unfiltered):
        state.data.feature_filter = explicit_filter(features)
    state.modal.open(
        FeatureSelectModal(
            features=features,
            selections=feature_selections(state.data.feature_filter, features),
            snapshot=snapshot,
        )
    )
    return True


def open_task_edit(state: AppState) -> bool:
    task = state.selected_task
    if task is None:
        return False
    features = unique_features(state.data.tasks)
    index = features.index(task.feature) if task.feature in features else 0
    state.modal.open(TaskEditModal(task_id=task.id, features=features, selected_index=index))
    return True


def _default_statuses(state: AppState) -> frozenset[str]:
    if state.data.show_completed:
        return frozenset(TASK_STATUSES)
    return frozenset(s for s in TASK_STATUSES if s != "done")


def open_status_filter(state: AppState) -> None:
    visible = state.data.status_filter
    if visible is None:
        visible = _default_statuses(state)
    state.modal.open(
        StatusFilterModal(
            selections={status: status in visible for status in TASK_STATUSES},
            snapshot=FilterSnapshot.capture(state),
        )
    )


# Key handling


def _keep_task_id(state: AppState) -> str | None:
    task = state.selected_task
    return task.id if task else None


def _handle_help(state: AppState, modal: HelpModal, key: str) -> list[Effect]:
    if key in ("?", "esc", "q"):
        state.modal.close()
        return []

    page = help_page_size(state.window.height)
    max_scroll = max(0, help_line_count() - page)
    half = max(1, page // 2)
    deltas = {
        "j": 1,
        "down": 1,
        "k": -1,
        "up": -1,
        "J": 4,
        "K": -4,
        "ctrl+d": half,
        "pgdown": half,
        "ctrl+u": -half,
        "pgup": -half,
    }
    if key in deltas:
        modal.scroll = _clamp(modal.scroll + deltas[key], max_scroll)
    elif key in (JUMP_TO_FIRST, "home"):
        modal.scroll = 0
    elif key in ("G", "end"):
        modal.scroll = max_scroll
    return []


def _handle_status_change(state: AppState, modal: StatusChangeModal, key: str) -> list[Effect]:
    last = len(TASK_STATUSES) - 1
    if key in ("esc", "q"):
        state.modal.close()
    elif key in ("j", "down"):
        modal.selected_index = _clamp(modal.selected_index + 1, last)
    elif key in ("k", "up"):
        modal.selected_index = _clamp(modal.selected_index - 1, last)
    elif key == "enter":
        status = TASK_STATUSES[modal.selected_index]
        state.modal.close()
        state.set_loading(f"Updating task status to {status}...")
        logger.info(f"Updating task {modal.task_id} status to {status}")
        return [UpdateTask(task_id=modal.task_id, fields={"status": status})]
    return []


def _confirm(state: AppState, modal: ConfirmationModal) -> list[Effect]:
    state.modal.close()
    if modal.action == ConfirmAction.QUIT:
        return [Quit()]
    if modal.action == ConfirmAction.DELETE and modal.task_id is not None:
        state.set_loading("Deleting task...")
        logger.info(f"Deleting task {modal.task_id}")
        return [DeleteTask(task_id=modal.task_id)]
    return []


def _handle_confirmation(state: AppState, modal: ConfirmationModal, key: str) -> list[Effect]:
    if key == "y":
        return _confirm(state, modal)
    if key in ("n", "esc", "q"):
        state.modal.close()
    elif key == "enter":
        if modal.selected_index == 0:
            return _confirm(state, modal)
        state.modal.close()
    elif key in ("k", "up", "h", "left"):
        modal.selected_index = 0
    elif key in ("j", "down", "l", "right"):
        modal.selected_index = 1
    return []


def _select_project(state: AppState, index: int) -> list[Effect]:
    projects = state.data.projects
    project_id = projects[index].id if index < len(projects) else None
    state.modal.close()
    state.data.selected_project_id = project_id
    state.data.search.clear()
    state.select_index(0)
    state.set_loading("Loading project tasks..." if project_id else "Loading all tasks...")
    logger.info(f"Switching project to {project_id or 'all'}")
    return [ListTasks(project_id=project_id)]


def _handle_project_select(state: AppState, modal: ProjectSelectModal, key: str) -> list[Effect]:
    last = len(state.data.projects)
    if key in ("esc", "q", "h"):
        modal.snapshot.restore(state)
        state.modal.close()
    elif key in ("j", "down"):
        modal.selected_index = _clamp(modal.selected_index + 1, last)
    elif key in ("k", "up"):
        modal.selected_index = _clamp(modal.selected_index - 1, last)
    elif key in (JUMP_TO_FIRST, "home"):
        modal.selected_index = 0
    elif key in ("G", "end"):
        modal.selected_index = last
    elif key in ("enter", "l"):
        return _select_project(state, _clamp(modal.selected_index, last))
    elif key == "a":
        return _select_project(state, last)
    return []


def _preview_features(state: AppState, modal: FeatureSelectModal) -> None:
    keep = _keep_task_id(state)
    state.data.feature_filter = explicit_filter(
        name for name, enabled in modal.selections.items() if enabled
    )
    state.refresh_view(keep)


def _handle_feature_search(state: AppState, modal: FeatureSelectModal, key: str) -> list[Effect]:
    search = modal.search
    if key == "esc":
        search.clear()
        return []
    if key == "enter":
        search.query = search.query.strip()
        search.active = False
        search.matches = compute_matches(modal.features, search.query)
        target = first_match_from(search.matches, 0)
        modal.selected_index = target if target is not None else 0
        return []
    if key == "backspace":
        search.query = search.query[:-1]
    elif key == "ctrl+u":
        search.query = ""
    elif key == "space":
        search.query += " "
    elif len(key) == 1 and 32 <= ord(key) <= 126:
        search.query += key
    else:
        return []
    search.matches = compute_matches(modal.features, search.query)
    return []


def _handle_feature_select(state: AppState, modal: FeatureSelectModal, key: str) -> list[Effect]:
    if modal.search.active:
        return _handle_feature_search(state, modal, key)

    last = len(modal.features) - 1
    moves = {
        "j": 1,
        "down": 1,
        "k": -1,
        "up": -1,
        "J": 5,
        "K": -5,
        "ctrl+d": 4,
        "pgdown": 4,
        "ctrl+u": -4,
        "pgup": -4,
    }
    if key in ("esc", "q", "h"):
        modal.snapshot.restore(state)
        state.modal.close()
    elif key in ("enter", "l"):
        _preview_features(state, modal)
        state.modal.close()
        logger.info(
            "Feature filter applied",
            extra={"extra_context": {"enabled": sorted(f for f, on in modal.selections.items() if on)}},
        )
    elif key in moves:
        modal.selected_index = _clamp(modal.selected_index + moves[key], last)
    elif key in (JUMP_TO_FIRST, "home"):
        modal.selected_index = 0
    elif key in ("G", "end"):
        modal.selected_index = last
    elif key == "space":
        name = modal.features[modal.selected_index]
        modal.selections[name] = not modal.selections.get(name, False)
        _preview_features(state, modal)
    elif key == "a":
        if modal.search.has_query:
            scope = [modal.features[i] for i in modal.search.matches]
        else:
            scope = list(modal.features)
        enable = not all(modal.selections.get(name, False) for name in scope)
        for name in scope:
            modal.selections[name] = enable
        _preview_features(state, modal)
    elif key == "/":
        modal.search.clear()
        modal.search.active = True
    elif key == "n":
        target = next_match(modal.search.matches, modal.selected_index)
        if target is not None:
            modal.selected_index = target
    elif key == "N":
        target = previous_match(modal.search.matches, modal.selected_index)
        if target is not None:
            modal.selected_index = target
    elif key == "ctrl+l":
        modal.search.clear()
    return []


def _handle_task_edit(state: AppState, modal: TaskEditModal, key: str) -> list[Effect]:
    if modal.creating:
        return _handle_feature_entry(state, modal, key)

    last = modal.option_count - 1
    if key in ("esc", "q"):
        state.modal.close()
    elif key in ("j", "down"):
        modal.selected_index = _clamp(modal.selected_index + 1, last)
    elif key in ("k", "up"):
        modal.selected_index = _clamp(modal.selected_index - 1, last)
    elif key == "enter":
        if modal.selected_index >= len(modal.features):
            modal.creating = True
            modal.new_feature = ""
            modal.error = None
            return []
        return _assign_feature(state, modal, modal.features[modal.selected_index])
    return []


def _handle_feature_entry(state: AppState, modal: TaskEditModal, key: str) -> list[Effect]:
    if key == "esc":
        modal.creating = False
        modal.new_feature = ""
        modal.error = None
    elif key == "enter":
        name = modal.new_feature.strip()
        if not name:
            modal.error = "Feature name cannot be empty"
            state.show_status(modal.error)
            return []
        return _assign_feature(state, modal, name)
    elif key == "backspace":
        modal.new_feature = modal.new_feature[:-1]
        modal.error = None
    elif (
        len(key) == 1
        and _FEATURE_NAME_CHAR.fullmatch(key)
        and len(modal.new_feature) < FEATURE_NAME_MAX_LENGTH
    ):
        modal.new_feature += key
        modal.error = None
    return []


def _assign_feature(state: AppState, modal: TaskEditModal, feature: str) -> list[Effect]:
    state.modal.close()
    state.set_loading("Updating task feature...")
    logger.info(f"Assigning feature {feature!r} to task {modal.task_id}")
    return [UpdateTask(task_id=modal.task_id, fields={"feature": feature})]


def _preview_statuses(state: AppState, modal: StatusFilterModal) -> None:
    keep = _keep_task_id(state)
    selected = frozenset(s for s, enabled in modal.selections.items() if enabled)
    state.data.status_filter = None if selected == _default_statuses(state) else selected
    state.refresh_view(keep)


def _handle_status_filter(state: AppState, modal: StatusFilterModal, key: str) -> list[Effect]:
    last = len(TASK_STATUSES) - 1
    if key in ("esc", "q"):
        modal.snapshot.restore(state)
        state.modal.close()
    elif key == "enter":
        _preview_statuses(state, modal)
        state.modal.close()
    elif key in ("j", "down"):
        modal.selected_index = _clamp(modal.selected_index + 1, last)
    elif key in ("k", "up"):
        modal.selected_index = _clamp(modal.selected_index - 1, last)
    elif key == "space":
        status = TASK_STATUSES[modal.selected_index]
        modal.selections[status] = not modal.selections[status]
        _preview_statuses(state, modal)
    elif key in ("a", "n"):
        for status in TASK_STATUSES:
            modal.selections[status] = key == "a"
        _preview_statuses(state, modal)
    return []


_HANDLERS = {
    HelpModal: _handle_help,
    StatusChangeModal: _handle_status_change,
    ConfirmationModal: _handle_confirmation,
    ProjectSelectModal: _handle_project_select,
    FeatureSelectModal: _handle_feature_select,
    TaskEditModal: _handle_task_edit,
    StatusFilterModal: _handle_status_filter,
}


def _uses_chords(modal: Modal) -> bool:
    if isinstance(modal, FeatureSelectModal):
        return not modal.search.active
    return isinstance(modal, (HelpModal, ProjectSelectModal))


def handle_modal_key(state: AppState, key: str) -> list[Effect]:
    """Route a key to the active modal.

    Modals with their own jump-to-first binding see a completed ``gg`` chord
    as the key name "gg"; the others never arm the chord tracker.

    Args:
        state: Application state with an open modal
        key: Normalized key name

    Returns:
        Effects requested by the modal
    """
    modal = state.modal.active
    if modal is None:
        return []

    chord_tracker = state.navigation.chord
    if _uses_chords(modal):
        consumed, chord = chord_tracker.feed(key)
        if chord == JUMP_TO_FIRST:
            key = JUMP_TO_FIRST
        elif consumed:
            return []
    else:
        chord_tracker.clear()

    return _HANDLERS[type(modal)](state, modal, key)
