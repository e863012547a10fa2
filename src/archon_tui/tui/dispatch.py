"""Central update/dispatch engine.

``update(state, event)`` is the only path that mutates AppState. Key presses
are routed by precedence (force quit, active modal, inline search, chord and
default key table); result and realtime events update the data slice. Side
effects are never performed here: handlers return Effect descriptions that
the EffectExecutor runs, and their outcomes come back as new events.
"""

from __future__ import annotations

import logging

from .effects import ConnectRealtime, Effect, HealthCheck, ListProjects, ListTasks, Quit
from .error_messages import describe_error
from .events import (
    ClipboardWritten,
    Event,
    HealthChecked,
    KeyPressed,
    ProjectChanged,
    ProjectsLoaded,
    RealtimeConnected,
    RealtimeDisconnected,
    Resize,
    TaskChanged,
    TaskDeleted,
    TasksLoaded,
    TaskUpdated,
    Tick,
)
from .keybindings import KeybindingHandler, handle_search_input
from .modals import HelpModal, handle_modal_key, help_line_count, help_page_size
from .models import ConnectionState
from .realtime import apply_realtime_event
from .state import SPINNER_FRAMES, AppState

logger = logging.getLogger(__name__)


def startup_effects(state: AppState) -> list[Effect]:
    """Effects issued once when the application starts."""
    state.set_loading("Loading tasks...")
    effects: list[Effect] = [
        HealthCheck(),
        ListProjects(),
        ListTasks(project_id=state.data.selected_project_id),
    ]
    if state.settings.realtime_enabled:
        state.data.connection_state = ConnectionState.CONNECTING
        effects.append(ConnectRealtime(delay_seconds=0.0))
    return effects


def update(state: AppState, event: Event) -> tuple[AppState, list[Effect]]:
    """Apply one event to the state.

    Args:
        state: Application state (mutated in place, single writer)
        event: Input, timer, result or realtime event

    Returns:
        Tuple of (state, effects) where effects are to be run by the executor
    """
    if isinstance(event, KeyPressed):
        return state, _route_key(state, event.key)
    if isinstance(event, Tick):
        return state, _handle_tick(state, event)
    if isinstance(event, Resize):
        return state, _handle_resize(state, event)
    if isinstance(event, TasksLoaded):
        return state, _handle_tasks_loaded(state, event)
    if isinstance(event, ProjectsLoaded):
        return state, _handle_projects_loaded(state, event)
    if isinstance(event, (TaskUpdated, TaskDeleted)):
        return state, _handle_task_mutated(state, event)
    if isinstance(event, ClipboardWritten):
        return state, _handle_clipboard_written(state, event)
    if isinstance(event, HealthChecked):
        return state, _handle_health_checked(state, event)
    if isinstance(event, (RealtimeConnected, RealtimeDisconnected, TaskChanged, ProjectChanged)):
        return state, apply_realtime_event(state, event)

    logger.debug(f"Ignoring unknown event {event!r}")
    return state, []


def _route_key(state: AppState, key: str) -> list[Effect]:
    # ctrl+c quits from every context, including modals and search input
    if key == "ctrl+c":
        logger.info("Force quit requested")
        return [Quit()]
    if state.modal.is_open:
        return handle_modal_key(state, key)
    if state.data.search.active:
        state.navigation.chord.clear()
        return handle_search_input(state, key)
    return KeybindingHandler(state).handle_key(key)


def _handle_tick(state: AppState, event: Tick) -> list[Effect]:
    data = state.data
    if data.loading:
        data.spinner_index = (data.spinner_index + 1) % len(SPINNER_FRAMES)
    if data.status_message is not None and event.now >= data.status_message_expires_at:
        data.status_message = None
    state.navigation.chord.expire(event.now)
    return []


def _handle_resize(state: AppState, event: Resize) -> list[Effect]:
    state.window.width = event.width
    state.window.height = event.height
    modal = state.modal.active
    if isinstance(modal, HelpModal):
        max_scroll = max(0, help_line_count() - help_page_size(event.height))
        modal.scroll = min(modal.scroll, max_scroll)
    return []


def _apply_error(state: AppState, message: str) -> None:
    banner, disconnected = describe_error(message)
    state.data.error_message = banner
    if disconnected:
        state.data.connected = False


def _handle_tasks_loaded(state: AppState, event: TasksLoaded) -> list[Effect]:
    if event.project_id != state.data.selected_project_id:
        logger.debug(
            "Discarding stale task list",
            extra={
                "extra_context": {
                    "response_project": event.project_id,
                    "current_project": state.data.selected_project_id,
                }
            },
        )
        return []

    state.clear_loading()
    if event.error is not None:
        logger.warning(f"Failed to load tasks: {event.error}")
        _apply_error(state, event.error)
        return []

    task = state.selected_task
    keep = task.id if task else None
    state.data.tasks = list(event.tasks or ())
    state.data.connected = True
    state.data.error_message = None
    state.refresh_view(keep)
    logger.info(f"Loaded {len(state.data.tasks)} task(s)")
    return []


def _handle_projects_loaded(state: AppState, event: ProjectsLoaded) -> list[Effect]:
    if event.error is not None:
        logger.warning(f"Failed to load projects: {event.error}")
        _apply_error(state, event.error)
        return []

    state.data.projects = list(event.projects or ())
    selected = state.data.selected_project_id
    if selected is not None and all(p.id != selected for p in state.data.projects):
        logger.info(f"Selected project {selected} no longer exists, showing all tasks")
        state.data.selected_project_id = None
        state.set_loading("Loading all tasks...")
        return [ListTasks(project_id=None)]
    return []


def _handle_task_mutated(state: AppState, event: TaskUpdated | TaskDeleted) -> list[Effect]:
    if event.error is not None:
        state.clear_loading()
        logger.warning(f"Task {event.task_id} change failed: {event.error}")
        _apply_error(state, event.error)
        return []
    state.set_loading("Refreshing tasks...")
    return [ListTasks(project_id=state.data.selected_project_id)]


def _handle_clipboard_written(state: AppState, event: ClipboardWritten) -> list[Effect]:
    if event.error is not None:
        state.show_status(f"Clipboard unavailable: {event.error}")
    else:
        state.show_status(f"Copied {event.label} to clipboard")
    return []


def _handle_health_checked(state: AppState, event: HealthChecked) -> list[Effect]:
    if event.error is not None:
        logger.warning(f"Health check failed: {event.error}")
        _apply_error(state, event.error)
        state.data.connected = False
    else:
        state.data.connected = True
    return []
