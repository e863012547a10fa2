"""Tests for the modal state machine."""

from __future__ import annotations

import pytest

from archon_tui.tui import modals
from archon_tui.tui.effects import DeleteTask, ListTasks, Quit, UpdateTask
from archon_tui.tui.modals import (
    FEATURE_NAME_MAX_LENGTH,
    ConfirmAction,
    ConfirmationModal,
    FeatureSelectModal,
    HelpModal,
    ProjectSelectModal,
    StatusChangeModal,
    StatusFilterModal,
    TaskEditModal,
    handle_modal_key,
    help_line_count,
    help_page_size,
)
from archon_tui.tui.models import ExcludeAll, Explicit, Project, Task, Unfiltered
from archon_tui.tui.state import AppState


@pytest.fixture
def app_state() -> AppState:
    """State with three visible tasks and two projects."""
    state = AppState(clock=lambda: 10.0)
    state.data.tasks = [
        Task(id="t1", title="Write docs", status="todo", task_order=5, feature="docs", project_id="p1"),
        Task(id="t2", title="Fix bug", status="doing", task_order=3, feature="api", project_id="p1"),
        Task(id="t3", title="Plan", status="review", task_order=1, project_id="p2"),
    ]
    state.data.projects = [Project(id="p1", title="Alpha"), Project(id="p2", title="Beta")]
    return state


def _press(state: AppState, *keys: str) -> list:
    effects: list = []
    for key in keys:
        effects.extend(handle_modal_key(state, key))
    return effects


def _visible_ids(state: AppState) -> list[str]:
    return [task.id for task in state.visible_tasks()]


class TestModalState:
    """Tests for the single modal slot."""

    def test_one_modal_at_a_time(self, app_state: AppState) -> None:
        modals.open_help(app_state)
        modals.open_status_filter(app_state)
        assert isinstance(app_state.modal.active, StatusFilterModal)

    def test_close(self, app_state: AppState) -> None:
        modals.open_help(app_state)
        app_state.modal.close()
        assert app_state.modal.is_open is False

    def test_no_modal_ignores_keys(self, app_state: AppState) -> None:
        assert handle_modal_key(app_state, "j") == []


class TestHelpModal:
    """Tests for the scrollable help overlay."""

    def test_scroll_and_bounds(self, app_state: AppState) -> None:
        modals.open_help(app_state)
        max_scroll = help_line_count() - help_page_size(app_state.window.height)

        _press(app_state, "j", "j")
        assert app_state.modal.active.scroll == 2
        _press(app_state, "G")
        assert app_state.modal.active.scroll == max_scroll
        _press(app_state, "j")
        assert app_state.modal.active.scroll == max_scroll

    def test_gg_chord_jumps_to_top(self, app_state: AppState) -> None:
        modals.open_help(app_state)
        _press(app_state, "G", "g", "g")
        assert app_state.modal.active.scroll == 0

    @pytest.mark.parametrize("key", ["?", "esc", "q"])
    def test_close_keys(self, app_state: AppState, key: str) -> None:
        modals.open_help(app_state)
        _press(app_state, key)
        assert app_state.modal.active is None


class TestStatusChangeModal:
    """Tests for the status picker."""

    def test_opens_on_current_status(self, app_state: AppState) -> None:
        app_state.select_index(1)
        assert modals.open_status_change(app_state) is True
        assert app_state.modal.active == StatusChangeModal(task_id="t2", selected_index=1)

    def test_apply(self, app_state: AppState) -> None:
        app_state.select_index(1)
        modals.open_status_change(app_state)

        effects = _press(app_state, "j", "enter")

        assert effects == [UpdateTask(task_id="t2", fields={"status": "review"})]
        assert app_state.modal.active is None
        assert app_state.data.loading is True
        assert app_state.data.loading_message == "Updating task status to review..."

    def test_undeclared_keys_ignored(self, app_state: AppState) -> None:
        modals.open_status_change(app_state)
        assert _press(app_state, "x", "/") == []
        assert isinstance(app_state.modal.active, StatusChangeModal)

    def test_no_selection(self) -> None:
        state = AppState()
        assert modals.open_status_change(state) is False
        assert state.modal.active is None


class TestConfirmationModal:
    """Tests for quit and delete confirmation."""

    def test_quit_confirmed(self, app_state: AppState) -> None:
        modals.open_quit_confirmation(app_state)
        assert _press(app_state, "y") == [Quit()]
        assert app_state.modal.active is None

    def test_enter_on_default_button_confirms(self, app_state: AppState) -> None:
        modals.open_quit_confirmation(app_state)
        assert _press(app_state, "enter") == [Quit()]

    def test_enter_on_cancel_button(self, app_state: AppState) -> None:
        modals.open_quit_confirmation(app_state)
        assert _press(app_state, "l", "enter") == []
        assert app_state.modal.active is None

    @pytest.mark.parametrize("key", ["n", "esc", "q"])
    def test_cancel_keys(self, app_state: AppState, key: str) -> None:
        modals.open_quit_confirmation(app_state)
        assert _press(app_state, key) == []
        assert app_state.modal.active is None

    def test_delete(self, app_state: AppState) -> None:
        assert modals.open_delete_confirmation(app_state) is True
        modal = app_state.modal.active
        assert isinstance(modal, ConfirmationModal)
        assert modal.action == ConfirmAction.DELETE
        assert "Write docs" in modal.message

        assert _press(app_state, "y") == [DeleteTask(task_id="t1")]
        assert app_state.data.loading_message == "Deleting task..."


class TestProjectSelectModal:
    """Tests for project selection."""

    def test_opens_on_all_tasks_entry(self, app_state: AppState) -> None:
        modals.open_project_select(app_state)
        assert app_state.modal.active.selected_index == 2

    def test_opens_on_current_project(self, app_state: AppState) -> None:
        app_state.data.selected_project_id = "p2"
        modals.open_project_select(app_state)
        assert app_state.modal.active.selected_index == 1

    def test_cursor_is_owned_by_modal(self, app_state: AppState) -> None:
        """Moving the project cursor leaves the task selection untouched."""
        app_state.navigation.selected_index = 0
        modals.open_project_select(app_state)

        _press(app_state, "k")

        assert app_state.modal.active.selected_index == 1
        assert app_state.navigation.selected_index == 0

    def test_select_project(self, app_state: AppState) -> None:
        modals.open_project_select(app_state)

        effects = _press(app_state, "k", "enter")

        assert effects == [ListTasks(project_id="p2")]
        assert app_state.data.selected_project_id == "p2"
        assert app_state.data.loading_message == "Loading project tasks..."
        assert app_state.modal.active is None

    def test_select_all(self, app_state: AppState) -> None:
        app_state.data.selected_project_id = "p1"
        modals.open_project_select(app_state)

        assert _press(app_state, "a") == [ListTasks(project_id=None)]
        assert app_state.data.selected_project_id is None
        assert app_state.data.loading_message == "Loading all tasks..."

    def test_cancel_restores(self, app_state: AppState) -> None:
        app_state.data.selected_project_id = "p1"
        modals.open_project_select(app_state)
        assert _press(app_state, "j", "esc") == []
        assert app_state.data.selected_project_id == "p1"
        assert app_state.modal.active is None

    def test_gg_jumps_to_first_project(self, app_state: AppState) -> None:
        modals.open_project_select(app_state)
        _press(app_state, "g", "g")
        assert app_state.modal.active.selected_index == 0


class TestFeatureSelectModal:
    """Tests for the feature filter with live preview."""

    def test_no_features(self) -> None:
        state = AppState()
        state.data.tasks = [Task(id="t", title="Untagged")]
        assert modals.open_feature_select(state) is False
        assert state.modal.active is None

    def test_open_materializes_unfiltered(self, app_state: AppState) -> None:
        modals.open_feature_select(app_state)
        modal = app_state.modal.active
        assert isinstance(modal, FeatureSelectModal)
        assert modal.features == ["api", "docs"]
        assert modal.selections == {"api": True, "docs": True}
        assert app_state.data.feature_filter == Explicit(frozenset({"api", "docs"}))

    def test_toggle_previews_live(self, app_state: AppState) -> None:
        modals.open_feature_select(app_state)
        _press(app_state, "space")
        assert app_state.data.feature_filter == Explicit(frozenset({"docs"}))
        assert _visible_ids(app_state) == ["t1", "t3"]

    def test_cancel_restores_snapshot(self, app_state: AppState) -> None:
        modals.open_feature_select(app_state)
        _press(app_state, "space", "j", "space", "esc")
        assert app_state.data.feature_filter == Unfiltered()
        assert _visible_ids(app_state) == ["t1", "t2", "t3"]
        assert app_state.modal.active is None

    def test_deselect_all_is_exclude_all(self, app_state: AppState) -> None:
        modals.open_feature_select(app_state)
        _press(app_state, "a", "enter")
        assert app_state.data.feature_filter == ExcludeAll()
        assert _visible_ids(app_state) == ["t3"]

    def test_select_all_after_partial(self, app_state: AppState) -> None:
        modals.open_feature_select(app_state)
        _press(app_state, "space", "a")
        assert app_state.modal.active.selections == {"api": True, "docs": True}

    def test_nested_search(self, app_state: AppState) -> None:
        modals.open_feature_select(app_state)
        _press(app_state, "/", "d", "o")
        modal = app_state.modal.active
        assert modal.search.active is True
        assert modal.search.matches == [1]

        _press(app_state, "enter")
        assert modal.search.active is False
        assert modal.selected_index == 1

    def test_search_typing_does_not_toggle(self, app_state: AppState) -> None:
        """Letters typed into the nested search never act as commands."""
        modals.open_feature_select(app_state)
        _press(app_state, "/", "a")
        assert app_state.modal.active.selections == {"api": True, "docs": True}
        assert app_state.modal.active.search.query == "a"


class TestTaskEditModal:
    """Tests for feature assignment."""

    def test_assign_existing_feature(self, app_state: AppState) -> None:
        assert modals.open_task_edit(app_state) is True
        assert app_state.modal.active.selected_index == 1

        effects = _press(app_state, "k", "enter")

        assert effects == [UpdateTask(task_id="t1", fields={"feature": "api"})]
        assert app_state.data.loading_message == "Updating task feature..."

    def test_create_feature(self, app_state: AppState) -> None:
        modals.open_task_edit(app_state)
        _press(app_state, "j", "enter")
        modal = app_state.modal.active
        assert isinstance(modal, TaskEditModal)
        assert modal.creating is True

        effects = _press(app_state, "n", "e", "w", "!", "-", "x", "backspace", "enter")

        assert effects == [UpdateTask(task_id="t1", fields={"feature": "new-"})]
        assert app_state.modal.active is None

    def test_empty_name_rejected(self, app_state: AppState) -> None:
        modals.open_task_edit(app_state)
        _press(app_state, "j", "enter")

        assert _press(app_state, "enter") == []
        modal = app_state.modal.active
        assert modal.error == "Feature name cannot be empty"
        assert app_state.data.status_message == "Feature name cannot be empty"

    def test_name_length_limited(self, app_state: AppState) -> None:
        modals.open_task_edit(app_state)
        _press(app_state, "j", "enter")
        _press(app_state, *(["a"] * (FEATURE_NAME_MAX_LENGTH + 5)))
        assert len(app_state.modal.active.new_feature) == FEATURE_NAME_MAX_LENGTH

    def test_esc_leaves_entry_then_closes(self, app_state: AppState) -> None:
        modals.open_task_edit(app_state)
        _press(app_state, "j", "enter", "x", "esc")
        assert app_state.modal.active.creating is False
        _press(app_state, "esc")
        assert app_state.modal.active is None


class TestStatusFilterModal:
    """Tests for the status filter with live preview."""

    def test_opens_with_default_visibility(self, app_state: AppState) -> None:
        modals.open_status_filter(app_state)
        assert app_state.modal.active.selections == {
            "todo": True,
            "doing": True,
            "review": True,
            "done": True,
        }

    def test_opens_without_done_when_hidden(self, app_state: AppState) -> None:
        app_state.data.show_completed = False
        modals.open_status_filter(app_state)
        assert app_state.modal.active.selections["done"] is False

    def test_toggle_previews(self, app_state: AppState) -> None:
        modals.open_status_filter(app_state)
        _press(app_state, "space")
        assert app_state.data.status_filter == frozenset({"doing", "review", "done"})
        assert _visible_ids(app_state) == ["t2", "t3"]

    def test_cancel_restores(self, app_state: AppState) -> None:
        modals.open_status_filter(app_state)
        _press(app_state, "space", "esc")
        assert app_state.data.status_filter is None
        assert _visible_ids(app_state) == ["t1", "t2", "t3"]

    def test_none_then_all(self, app_state: AppState) -> None:
        modals.open_status_filter(app_state)
        _press(app_state, "n")
        assert app_state.data.status_filter == frozenset()
        assert _visible_ids(app_state) == []

        _press(app_state, "a", "enter")
        assert app_state.data.status_filter is None
        assert app_state.modal.active is None


class TestChordIsolation:
    """Modals without a jump binding never arm the chord tracker."""

    def test_status_change_clears_chord(self, app_state: AppState) -> None:
        modals.open_status_change(app_state)
        _press(app_state, "g")
        assert app_state.navigation.chord.pending is None

    def test_help_uses_chord(self, app_state: AppState) -> None:
        modals.open_help(app_state)
        _press(app_state, "g")
        assert app_state.navigation.chord.pending == "g"
        assert isinstance(app_state.modal.active, HelpModal)

    def test_project_modal_type(self, app_state: AppState) -> None:
        modals.open_project_select(app_state)
        assert isinstance(app_state.modal.active, ProjectSelectModal)
