"""Keyboard input handling for the main task view.

This module maps keys to actions when no modal is open: navigation, search,
sorting, task operations, mode toggles, refresh and quit. Inline search
editing has its own small key table.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from . import modals
from .chords import JUMP_TO_FIRST
from .effects import (
    ConnectRealtime,
    Effect,
    ListTasks,
    Quit,
    WriteClipboard,
    refresh_data,
)
from .models import ConnectionState, Panel
from .search import first_match_from, next_match, previous_match, push_history, refresh_matches

if TYPE_CHECKING:
    from .state import AppState

logger = logging.getLogger(__name__)


class KeybindingHandler:
    """Handles keyboard input for the main view and returns requested effects."""

    def __init__(self, app_state: AppState) -> None:
        """Initialize keybinding handler.

        Args:
            app_state: Application state to act on
        """
        self.app_state = app_state

    def handle_key(self, key: str) -> list[Effect]:
        """Process keyboard input and execute the corresponding action.

        Args:
            key: Normalized key name (e.g., "j", "up", "ctrl+d", "enter")

        Returns:
            Effects to run; empty when the key only changed state or is unbound
        """
        consumed, chord = self.app_state.navigation.chord.feed(key)
        if chord == JUMP_TO_FIRST:
            return self._handle_jump_top()
        if consumed:
            return []

        # Navigation handlers
        if key in ("k", "up"):
            return self._handle_move(-1)
        if key in ("j", "down"):
            return self._handle_move(1)
        if key == "K":
            return self._handle_move(-4)
        if key == "J":
            return self._handle_move(4)
        if key in ("ctrl+u", "pgup"):
            return self._handle_move(-self.app_state.window.half_page)
        if key in ("ctrl+d", "pgdown"):
            return self._handle_move(self.app_state.window.half_page)
        if key == "home":
            return self._handle_jump_top()
        if key in ("G", "end"):
            return self._handle_jump_bottom()
        if key in ("h", "left"):
            return self._handle_focus(Panel.TASKS)
        if key in ("l", "right"):
            return self._handle_focus(Panel.DETAILS)

        # Search handlers
        if key in ("/", "ctrl+f"):
            return self._handle_search_start()
        if key == "n":
            return self._handle_search_next()
        if key == "N":
            return self._handle_search_previous()
        if key in ("ctrl+x", "ctrl+l"):
            return self._handle_search_clear()
        if key == "esc":
            if self.app_state.data.search.has_query:
                return self._handle_search_clear()
            return []

        # Sort handlers
        if key == "s":
            return self._handle_sort(forward=True)
        if key == "S":
            return self._handle_sort(forward=False)

        # Task operation handlers
        if key == "t":
            return self._handle_status_change()
        if key == "e":
            return self._handle_edit()
        if key == "d":
            return self._handle_delete()
        if key == "y":
            return self._handle_copy(title=False)
        if key == "Y":
            return self._handle_copy(title=True)

        # Mode handlers
        if key == "f":
            return self._handle_feature_filter()
        if key == "v":
            return self._handle_status_filter()
        if key == "p":
            modals.open_project_select(self.app_state)
            return []
        if key == "a":
            return self._handle_show_all()

        # Meta handlers
        if key in ("r", "f5"):
            return self._handle_refresh()
        if key == "?":
            modals.open_help(self.app_state)
            return []
        if key == "q":
            modals.open_quit_confirmation(self.app_state)
            return []
        if key == "ctrl+c":
            return [Quit()]

        logger.debug(f"Key {key!r} not assigned")
        return []

    # Navigation handlers

    def _handle_move(self, delta: int) -> list[Effect]:
        state = self.app_state
        if state.window.active_panel == Panel.DETAILS and abs(delta) == 1:
            state.window.details_scroll = max(0, state.window.details_scroll + delta)
            return []
        state.move_selection(delta)
        return []

    def _handle_jump_top(self) -> list[Effect]:
        self.app_state.select_index(0)
        return []

    def _handle_jump_bottom(self) -> list[Effect]:
        self.app_state.select_index(len(self.app_state.visible_tasks()) - 1)
        return []

    def _handle_focus(self, panel: Panel) -> list[Effect]:
        self.app_state.window.active_panel = panel
        return []

    # Search handlers

    def _handle_search_start(self) -> list[Effect]:
        search = self.app_state.data.search
        search.clear()
        search.active = True
        return []

    def _jump_to(self, target: int | None) -> list[Effect]:
        if target is None:
            return []
        self.app_state.select_index(target)
        search = self.app_state.data.search
        search.current_match = search.matches.index(target)
        return []

    def _handle_search_next(self) -> list[Effect]:
        search = self.app_state.data.search
        return self._jump_to(next_match(search.matches, self.app_state.navigation.selected_index))

    def _handle_search_previous(self) -> list[Effect]:
        search = self.app_state.data.search
        return self._jump_to(
            previous_match(search.matches, self.app_state.navigation.selected_index)
        )

    def _handle_search_clear(self) -> list[Effect]:
        state = self.app_state
        task = state.selected_task
        state.data.search.clear()
        state.refresh_view(task.id if task else None)
        return []

    # Sort handlers

    def _handle_sort(self, forward: bool) -> list[Effect]:
        state = self.app_state
        task = state.selected_task
        mode = state.data.sort_mode
        state.data.sort_mode = mode.next() if forward else mode.previous()
        state.refresh_view(task.id if task else None)
        logger.debug(f"Sort mode changed to {state.data.sort_mode.display_name}")
        return []

    # Task operation handlers

    def _handle_status_change(self) -> list[Effect]:
        if not modals.open_status_change(self.app_state):
            self.app_state.show_status("No task selected")
        return []

    def _handle_edit(self) -> list[Effect]:
        if not modals.open_task_edit(self.app_state):
            self.app_state.show_status("No task selected")
        return []

    def _handle_delete(self) -> list[Effect]:
        if not modals.open_delete_confirmation(self.app_state):
            self.app_state.show_status("No task selected")
        return []

    def _handle_copy(self, title: bool) -> list[Effect]:
        task = self.app_state.selected_task
        if task is None:
            self.app_state.show_status("No task selected")
            return []
        if title:
            return [WriteClipboard(text=task.title, label="task title")]
        return [WriteClipboard(text=task.id, label="task ID")]

    # Mode handlers

    def _handle_feature_filter(self) -> list[Effect]:
        if not modals.open_feature_select(self.app_state):
            self.app_state.show_status("No features available")
        return []

    def _handle_status_filter(self) -> list[Effect]:
        modals.open_status_filter(self.app_state)
        return []

    def _handle_show_all(self) -> list[Effect]:
        state = self.app_state
        state.data.selected_project_id = None
        state.data.search.clear()
        state.select_index(0)
        state.set_loading("Loading all tasks...")
        return [ListTasks(project_id=None)]

    # Meta handlers

    def _handle_refresh(self) -> list[Effect]:
        state = self.app_state
        if state.data.error_message:
            state.data.error_message = None
            state.set_loading("Retrying...")
        else:
            state.set_loading("Refreshing data...")
        effects = refresh_data(state.data.selected_project_id)
        if (
            state.settings.realtime_enabled
            and state.data.connection_state == ConnectionState.DISCONNECTED
        ):
            state.data.connection_state = ConnectionState.CONNECTING
            effects.append(ConnectRealtime(delay_seconds=0.0))
        return effects


def handle_search_input(app_state: AppState, key: str) -> list[Effect]:
    """Handle a key while the inline search prompt is being edited.

    Matches follow every edit. Enter commits the query (recording it in the
    history) and jumps to the first match at or after the selection; Esc
    cancels and clears the search.

    Args:
        app_state: Application state with an active search
        key: Normalized key name

    Returns:
        Always an empty effect list
    """
    search = app_state.data.search
    task = app_state.selected_task
    keep = task.id if task else None

    if key == "esc":
        search.clear()
        app_state.refresh_view(keep)
        return []
    if key == "enter":
        search.active = False
        search.query = search.query.strip()
        push_history(search.history, search.query)
        app_state.refresh_view(keep)
        target = first_match_from(search.matches, app_state.navigation.selected_index)
        if target is not None:
            app_state.select_index(target)
            search.current_match = search.matches.index(target)
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

    refresh_matches(
        search,
        [t.title for t in app_state.visible_tasks()],
        app_state.navigation.selected_index,
    )
    return []
