"""Events consumed by the dispatch engine and the queue that carries them.

Background threads (effect workers, realtime listener, tick source) only ever
talk to the main loop by putting events on the EventQueue.
"""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass

from .models import Project, Task


@dataclass(frozen=True)
class KeyPressed:
    key: str


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class Tick:
    """Periodic timer event; ``now`` is a monotonic timestamp in seconds."""

    now: float


@dataclass(frozen=True)
class TasksLoaded:
    """Result of ListTasks. Exactly one of ``tasks``/``error`` is set."""

    project_id: str | None
    tasks: tuple[Task, ...] | None = None
    error: str | None = None


@dataclass(frozen=True)
class ProjectsLoaded:
    projects: tuple[Project, ...] | None = None
    error: str | None = None


@dataclass(frozen=True)
class TaskUpdated:
    task_id: str
    task: Task | None = None
    error: str | None = None


@dataclass(frozen=True)
class TaskDeleted:
    task_id: str
    error: str | None = None


@dataclass(frozen=True)
class ClipboardWritten:
    label: str
    error: str | None = None


@dataclass(frozen=True)
class HealthChecked:
    error: str | None = None


@dataclass(frozen=True)
class RealtimeConnected:
    pass


@dataclass(frozen=True)
class RealtimeDisconnected:
    error: str | None = None


@dataclass(frozen=True)
class TaskChanged:
    """Realtime notice that a task was created, updated or deleted."""

    kind: str
    task_id: str


@dataclass(frozen=True)
class ProjectChanged:
    project_id: str


Event = (
    KeyPressed
    | Resize
    | Tick
    | TasksLoaded
    | ProjectsLoaded
    | TaskUpdated
    | TaskDeleted
    | ClipboardWritten
    | HealthChecked
    | RealtimeConnected
    | RealtimeDisconnected
    | TaskChanged
    | ProjectChanged
)

_TICK_MARKER = object()


class EventQueue:
    """Thread-safe FIFO of events that keeps at most one pending Tick.

    A Tick put while another is still queued replaces it in place, so timer
    events never pile up behind slow dispatch cycles.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[object] = queue.Queue()
        self._lock = threading.Lock()
        self._pending_tick: Tick | None = None

    def put(self, event: Event) -> None:
        """Enqueue an event (never blocks)."""
        if isinstance(event, Tick):
            with self._lock:
                queued = self._pending_tick is not None
                self._pending_tick = event
            if not queued:
                self._queue.put_nowait(_TICK_MARKER)
            return
        self._queue.put_nowait(event)

    def get_nowait(self) -> Event:
        """Dequeue the next event.

        Raises:
            queue.Empty: If no event is pending
        """
        while True:
            item = self._queue.get_nowait()
            if item is not _TICK_MARKER:
                return item  # type: ignore[return-value]
            with self._lock:
                tick, self._pending_tick = self._pending_tick, None
            if tick is not None:
                return tick

    def drain(self) -> list[Event]:
        """Dequeue every pending event in order."""
        events: list[Event] = []
        try:
            while True:
                events.append(self.get_nowait())
        except queue.Empty:
            pass
        return events

    def qsize(self) -> int:
        return self._queue.qsize()
