"""Application state container.

AppState aggregates the window, modal, navigation and data slices. Derived
views (visible tasks, selected task, features) are computed on demand from
the filters and sort mode; nothing is cached.

AppState is mutated only by the dispatch engine, one event at a time.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .chords import ChordTracker
from .modals import ModalState
from .models import (
    DataState,
    EngineSettings,
    Project,
    SortMode,
    Task,
    WindowState,
)
from .pipeline import index_of_task, unique_features, visible_tasks
from .search import match_position, refresh_matches

if TYPE_CHECKING:
    from ..utils import Config

logger = logging.getLogger(__name__)

ALL_TASKS_LABEL = "All Tasks"
SPINNER_FRAMES = "|/-\\"


@dataclass
class NavigationState:
    """Task selection plus the key chord tracker."""

    selected_index: int = 0
    chord: ChordTracker = field(default_factory=ChordTracker)


@dataclass
class AppState:
    """Aggregate root for all TUI state."""

    window: WindowState = field(default_factory=WindowState)
    modal: ModalState = field(default_factory=ModalState)
    navigation: NavigationState = field(default_factory=NavigationState)
    data: DataState = field(default_factory=DataState)
    settings: EngineSettings = field(default_factory=EngineSettings)
    clock: Callable[[], float] = field(default=time.monotonic, repr=False, compare=False)

    def __post_init__(self) -> None:
        # chord timing and status message expiry share one time source
        self.navigation.chord.clock = self.clock

    @classmethod
    def from_config(
        cls,
        config: Config,
        clock: Callable[[], float] = time.monotonic,
        project_id: str | None = None,
    ) -> AppState:
        """Create the startup state from configuration.

        Args:
            config: Runtime configuration
            clock: Monotonic time source shared with the chord tracker
            project_id: Project to start in (defaults to config.default_project_id)

        Returns:
            Fresh AppState with no data loaded yet
        """
        state = cls(clock=clock)
        state.navigation.chord = ChordTracker(timeout_ms=config.chord_timeout_ms, clock=clock)
        state.data.sort_mode = SortMode(config.default_sort_mode)
        state.data.show_completed = config.show_completed_tasks
        state.data.selected_project_id = project_id or config.default_project_id
        state.settings = EngineSettings(
            realtime_enabled=config.realtime_enabled,
            reconnect_base_seconds=config.reconnect_base_seconds,
            reconnect_max_seconds=config.reconnect_max_seconds,
            status_message_seconds=config.status_message_seconds,
        )
        return state

    # Derived accessors

    def visible_tasks(self) -> list[Task]:
        """Tasks after project, status and feature filters, in sort order."""
        return visible_tasks(
            self.data.tasks,
            project_id=self.data.selected_project_id,
            status_filter=self.data.status_filter,
            feature_filter=self.data.feature_filter,
            show_completed=self.data.show_completed,
            sort_mode=self.data.sort_mode,
        )

    @property
    def selected_task(self) -> Task | None:
        tasks = self.visible_tasks()
        index = self.navigation.selected_index
        if 0 <= index < len(tasks):
            return tasks[index]
        return None

    def project_tasks(self) -> list[Task]:
        """Tasks of the selected project, before status/feature filtering."""
        project_id = self.data.selected_project_id
        if project_id is None:
            return list(self.data.tasks)
        return [task for task in self.data.tasks if task.project_id == project_id]

    def available_features(self) -> list[str]:
        """Sorted unique features of the project-filtered tasks."""
        return unique_features(self.project_tasks())

    @property
    def selected_project(self) -> Project | None:
        project_id = self.data.selected_project_id
        if project_id is None:
            return None
        for project in self.data.projects:
            if project.id == project_id:
                return project
        return None

    @property
    def project_label(self) -> str:
        project = self.selected_project
        if project is not None:
            return project.title
        if self.data.selected_project_id is not None:
            return self.data.selected_project_id
        return ALL_TASKS_LABEL

    @property
    def spinner_frame(self) -> str:
        return SPINNER_FRAMES[self.data.spinner_index % len(SPINNER_FRAMES)]

    def search_position(self) -> tuple[int, int]:
        """(position, total) of the selection among search matches."""
        return match_position(self.data.search.matches, self.navigation.selected_index)

    # Mutation helpers, called from the dispatch path only

    def clamp_selection(self, count: int | None = None) -> None:
        """Keep the selection inside [0, count - 1], or 0 when empty."""
        if count is None:
            count = len(self.visible_tasks())
        if count <= 0:
            self.navigation.selected_index = 0
        else:
            self.navigation.selected_index = max(
                0, min(self.navigation.selected_index, count - 1)
            )

    def select_index(self, index: int) -> None:
        """Move the selection to ``index`` (clamped), resetting detail scroll."""
        previous = self.navigation.selected_index
        self.navigation.selected_index = index
        self.clamp_selection()
        if self.navigation.selected_index != previous:
            self.window.details_scroll = 0

    def move_selection(self, delta: int) -> None:
        self.select_index(self.navigation.selected_index + delta)

    def refresh_view(self, keep_task_id: str | None) -> None:
        """Re-derive the visible list after data/filter/sort changes.

        The selection follows ``keep_task_id`` when it is still visible;
        otherwise it is clamped into range. Search matches are recomputed
        against the new order.
        """
        tasks = self.visible_tasks()
        index = index_of_task(tasks, keep_task_id)
        if index is not None:
            self.navigation.selected_index = index
        else:
            self.clamp_selection(len(tasks))
        if self.data.search.has_query:
            refresh_matches(
                self.data.search,
                [task.title for task in tasks],
                self.navigation.selected_index,
            )
        else:
            self.data.search.matches = []
            self.data.search.current_match = -1

    def set_loading(self, message: str) -> None:
        self.data.loading = True
        self.data.loading_message = message

    def clear_loading(self) -> None:
        self.data.loading = False
        self.data.loading_message = ""

    def show_status(self, message: str) -> None:
        """Show a transient status message for the configured duration."""
        self.data.status_message = message
        self.data.status_message_expires_at = (
            self.clock() + self.settings.status_message_seconds
        )
