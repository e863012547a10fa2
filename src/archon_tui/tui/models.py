"""Data models for TUI state management.

Server entities (Task, Project) are immutable snapshots replaced wholesale on
every fetch. The mutable dataclasses below are the state slices owned by
AppState and mutated only by the dispatch engine.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, IntEnum
from typing import Any

logger = logging.getLogger(__name__)

TASK_STATUSES = ("todo", "doing", "review", "done")
STATUS_RANK = {status: rank for rank, status in enumerate(TASK_STATUSES)}
UNKNOWN_STATUS_RANK = len(TASK_STATUSES)

_TIMESTAMP_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
)
# strptime's %f accepts at most 6 digits; servers may send nanoseconds.
_LONG_FRACTION = re.compile(r"(\.\d{6})\d+")


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a server timestamp in any of the formats the API emits.

    Args:
        value: ISO/RFC3339 string (with or without zone, fraction or "T"),
            a datetime, or None

    Returns:
        Timezone-aware datetime (naive values are taken as UTC), or None when
        the value is missing or unparseable
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = _LONG_FRACTION.sub(r"\1", str(value).strip())
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = None
        for fmt in _TIMESTAMP_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
        if parsed is None:
            logger.debug(f"Unable to parse timestamp: {value!r}")
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class TaskSource:
    """Reference material attached to a task."""

    url: str
    type: str = ""
    relevance: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> TaskSource:
        return cls(
            url=str(data.get("url", "")),
            type=str(data.get("type", "")),
            relevance=str(data.get("relevance", "")),
        )


@dataclass(frozen=True)
class CodeExample:
    """Code pointer attached to a task."""

    file: str
    function: str = ""
    purpose: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> CodeExample:
        return cls(
            file=str(data.get("file", "")),
            function=str(data.get("function", "")),
            purpose=str(data.get("purpose", "")),
        )


@dataclass(frozen=True)
class Task:
    """Read-only cached copy of a server task."""

    id: str
    title: str
    status: str = "todo"
    task_order: int = 0
    feature: str | None = None
    assignee: str = ""
    description: str = ""
    project_id: str | None = None
    parent_task_id: str | None = None
    sources: tuple[TaskSource, ...] = ()
    code_examples: tuple[CodeExample, ...] = ()
    archived: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def status_rank(self) -> int:
        """Sort rank of the status (todo < doing < review < done < unknown)."""
        return STATUS_RANK.get(self.status, UNKNOWN_STATUS_RANK)

    @classmethod
    def from_dict(cls, data: dict) -> Task:
        """Build a Task from an API payload, tolerating missing fields."""
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            status=str(data.get("status") or "todo").lower(),
            task_order=int(data.get("task_order") or 0),
            feature=_opt_str(data.get("feature")),
            assignee=str(data.get("assignee") or ""),
            description=str(data.get("description") or ""),
            project_id=_opt_str(data.get("project_id")),
            parent_task_id=_opt_str(data.get("parent_task_id")),
            sources=tuple(TaskSource.from_dict(s) for s in data.get("sources") or ()),
            code_examples=tuple(
                CodeExample.from_dict(c) for c in data.get("code_examples") or ()
            ),
            archived=bool(data.get("archived", False)),
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
        )


@dataclass(frozen=True)
class Project:
    """Read-only cached copy of a server project."""

    id: str
    title: str
    description: str = ""
    github_repo: str | None = None
    pinned: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict) -> Project:
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            github_repo=_opt_str(data.get("github_repo")),
            pinned=bool(data.get("pinned", False)),
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
        )


class SortMode(IntEnum):
    """Task list orderings, cycled with s/S."""

    STATUS_PRIORITY = 0
    PRIORITY = 1
    CREATED = 2
    ALPHABETICAL = 3

    @property
    def display_name(self) -> str:
        return _SORT_MODE_NAMES[self]

    def next(self) -> SortMode:
        return SortMode((self.value + 1) % len(SortMode))

    def previous(self) -> SortMode:
        return SortMode((self.value - 1) % len(SortMode))


_SORT_MODE_NAMES = {
    SortMode.STATUS_PRIORITY: "Status",
    SortMode.PRIORITY: "Priority",
    SortMode.CREATED: "Created",
    SortMode.ALPHABETICAL: "Alpha",
}


@dataclass(frozen=True)
class Unfiltered:
    """No feature filtering: every task passes."""

    def allows(self, feature: str) -> bool:
        return True


@dataclass(frozen=True)
class ExcludeAll:
    """Every tagged task is hidden; untagged tasks still pass."""

    def allows(self, feature: str) -> bool:
        return False


@dataclass(frozen=True)
class Explicit:
    """Only tasks tagged with an enabled feature (or untagged) pass."""

    enabled: frozenset[str] = frozenset()

    def allows(self, feature: str) -> bool:
        return feature in self.enabled


FeatureFilter = Unfiltered | ExcludeAll | Explicit


def explicit_filter(enabled: Iterable[str]) -> FeatureFilter:
    """Build a feature filter from the enabled names, normalizing empty to ExcludeAll."""
    names = frozenset(enabled)
    if not names:
        return ExcludeAll()
    return Explicit(names)


def feature_selections(feature_filter: FeatureFilter, features: Iterable[str]) -> dict[str, bool]:
    """Materialize a filter into an explicit per-feature checkbox map."""
    return {name: feature_filter.allows(name) for name in features}


class ConnectionState(Enum):
    """Realtime channel lifecycle."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class Panel(Enum):
    """Focusable main panels."""

    TASKS = "tasks"
    DETAILS = "details"


@dataclass
class SearchState:
    """Inline search session over a list of titles.

    ``active`` marks the editing phase (matches follow every keystroke);
    a non-empty query with ``active`` False is the committed phase.
    """

    query: str = ""
    active: bool = False
    matches: list[int] = field(default_factory=list)
    current_match: int = -1
    history: list[str] = field(default_factory=list)

    @property
    def has_query(self) -> bool:
        return bool(self.query.strip())

    def clear(self) -> None:
        """Drop query and matches, keeping history."""
        self.query = ""
        self.active = False
        self.matches = []
        self.current_match = -1


@dataclass
class WindowState:
    """Terminal dimensions and panel focus."""

    width: int = 80
    height: int = 24
    active_panel: Panel = Panel.TASKS
    details_scroll: int = 0

    @property
    def list_rows(self) -> int:
        """Rows available to the task list (header, footer and borders excluded)."""
        return max(1, self.height - 6)

    @property
    def half_page(self) -> int:
        return max(1, self.list_rows // 2)


@dataclass
class EngineSettings:
    """Behavioral knobs injected from Config at startup."""

    realtime_enabled: bool = True
    reconnect_base_seconds: float = 1.0
    reconnect_max_seconds: float = 30.0
    status_message_seconds: float = 2.0


@dataclass
class DataState:
    """Server data plus the filters, sort and status flags derived from it."""

    tasks: list[Task] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)
    selected_project_id: str | None = None
    status_filter: frozenset[str] | None = None
    feature_filter: FeatureFilter = field(default_factory=Unfiltered)
    sort_mode: SortMode = SortMode.STATUS_PRIORITY
    show_completed: bool = True
    search: SearchState = field(default_factory=SearchState)
    connected: bool = False
    connection_state: ConnectionState = ConnectionState.DISCONNECTED
    reconnect_attempts: int = 0
    loading: bool = False
    loading_message: str = ""
    spinner_index: int = 0
    error_message: str | None = None
    status_message: str | None = None
    status_message_expires_at: float = 0.0
