"""Realtime update integration.

Three pieces live here:

- ``apply_realtime_event``: the adapter's state transitions. It never applies
  a local delta; every change notice triggers a full re-fetch and re-arms
  listening, since listening is one-shot.
- ``RealtimeListener``: background thread performing one ``next_event()``
  per arm and enqueuing the result.
- ``PollingRealtimeClient``: RealtimeClient that detects changes by polling
  the task API and comparing (id, updated_at) fingerprints.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from .exceptions import RealtimeError
from .effects import ConnectRealtime, Effect, ListenRealtime, ListProjects, ListTasks
from .events import (
    EventQueue,
    ProjectChanged,
    RealtimeConnected,
    RealtimeDisconnected,
    TaskChanged,
)
from .models import ConnectionState

if TYPE_CHECKING:
    from .interfaces import RealtimeClient, TaskClient
    from .state import AppState

logger = logging.getLogger(__name__)

RealtimeEvent = RealtimeConnected | RealtimeDisconnected | TaskChanged | ProjectChanged


def reconnect_delay(attempts: int, base: float, maximum: float) -> float:
    """Exponential backoff delay for the given attempt count."""
    return min(base * (2**attempts), maximum)


def apply_realtime_event(state: AppState, event: RealtimeEvent) -> list[Effect]:
    """Apply a realtime notification to state.

    Args:
        state: Application state
        event: Realtime event from the listener or connect worker

    Returns:
        Follow-up effects (re-fetches, re-arm, reconnect)
    """
    data = state.data
    if isinstance(event, RealtimeConnected):
        data.connection_state = ConnectionState.CONNECTED
        data.connected = True
        data.reconnect_attempts = 0
        logger.info("Realtime connected")
        return [ListenRealtime()]

    if isinstance(event, RealtimeDisconnected):
        data.connection_state = ConnectionState.DISCONNECTED
        data.connected = False
        if not state.settings.realtime_enabled:
            return []
        delay = reconnect_delay(
            data.reconnect_attempts,
            state.settings.reconnect_base_seconds,
            state.settings.reconnect_max_seconds,
        )
        data.reconnect_attempts += 1
        data.connection_state = ConnectionState.CONNECTING
        logger.warning(
            "Realtime disconnected, scheduling reconnect",
            extra={
                "extra_context": {
                    "error": event.error,
                    "delay_seconds": delay,
                    "attempt": data.reconnect_attempts,
                }
            },
        )
        return [ConnectRealtime(delay_seconds=delay)]

    if isinstance(event, TaskChanged):
        logger.debug(f"Realtime task {event.kind}: {event.task_id}")
        return [ListTasks(project_id=data.selected_project_id), ListenRealtime()]

    if isinstance(event, ProjectChanged):
        logger.debug(f"Realtime project updated: {event.project_id}")
        return [
            ListTasks(project_id=data.selected_project_id),
            ListProjects(),
            ListenRealtime(),
        ]

    return []


class RealtimeListener:
    """Background thread delivering one realtime event per arm.

    The listener never touches application state; it only puts events on the
    queue. A failed read becomes a RealtimeDisconnected event.
    """

    def __init__(self, client: RealtimeClient, event_queue: EventQueue) -> None:
        """Initialize realtime listener.

        Args:
            client: Realtime client to read events from
            event_queue: Queue to publish events to
        """
        self.client = client
        self.event_queue = event_queue
        self._armed = threading.Event()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def armed(self) -> bool:
        return self._armed.is_set()

    def arm(self) -> None:
        """Request one more event.

        The flag is cleared before each read starts, so an arm that lands
        while a read is in flight schedules the next read. Repeated arms
        before a read starts collapse into one.
        """
        self._armed.set()

    def _listen_once(self) -> None:
        try:
            event = self.client.next_event()
        except Exception as err:
            logger.warning(f"Realtime listener error: {err}")
            self.event_queue.put(RealtimeDisconnected(error=str(err)))
            return
        if event is not None:
            self.event_queue.put(event)

    def _run(self) -> None:
        logger.info("RealtimeListener started")
        while not self._stop_event.is_set():
            if not self._armed.wait(timeout=0.5):
                continue
            self._armed.clear()
            if self._stop_event.is_set():
                break
            self._listen_once()
        logger.info("RealtimeListener stopped")

    def start(self) -> None:
        """Start the background listener thread."""
        if self._thread is not None and self._thread.is_alive():
            logger.warning("RealtimeListener already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name="RealtimeListener")
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        """Stop the listener thread gracefully."""
        if self._thread is None:
            return
        self._stop_event.set()
        self._armed.set()
        try:
            self.client.disconnect()
        except Exception as err:
            logger.warning(f"Error disconnecting realtime client: {err}")
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("RealtimeListener thread did not stop within timeout")
        self._thread = None


class PollingRealtimeClient:
    """RealtimeClient that turns API polling into change notifications."""

    def __init__(self, task_client: TaskClient, poll_seconds: float = 5.0) -> None:
        """Initialize polling realtime client.

        Args:
            task_client: Client used for health checks and list calls
            poll_seconds: Interval between polls while waiting for a change
        """
        self.task_client = task_client
        self.poll_seconds = poll_seconds
        self._connected = False
        self._closed = threading.Event()
        self._task_prints: dict[str, str | None] = {}
        self._project_prints: dict[str, str | None] = {}

    def connect(self) -> None:
        """Check the server and take a baseline of fingerprints."""
        self._closed.clear()
        self.task_client.health_check()
        self._task_prints, self._project_prints = self._snapshot()
        self._connected = True

    def disconnect(self) -> None:
        self._connected = False
        self._closed.set()

    def is_connected(self) -> bool:
        return self._connected

    def _snapshot(self) -> tuple[dict[str, str | None], dict[str, str | None]]:
        tasks = self.task_client.list_tasks(include_closed=True)
        projects = self.task_client.list_projects()
        task_prints = {
            task.id: task.updated_at.isoformat() if task.updated_at else None for task in tasks
        }
        project_prints = {
            project.id: project.updated_at.isoformat() if project.updated_at else None
            for project in projects
        }
        return task_prints, project_prints

    def _diff(
        self,
        task_prints: dict[str, str | None],
        project_prints: dict[str, str | None],
    ) -> RealtimeEvent | None:
        old_tasks = self._task_prints
        for task_id in task_prints:
            if task_id not in old_tasks:
                return TaskChanged(kind="created", task_id=task_id)
        for task_id, stamp in task_prints.items():
            if old_tasks.get(task_id) != stamp:
                return TaskChanged(kind="updated", task_id=task_id)
        for task_id in old_tasks:
            if task_id not in task_prints:
                return TaskChanged(kind="deleted", task_id=task_id)
        old_projects = self._project_prints
        for project_id, stamp in project_prints.items():
            if project_id not in old_projects or old_projects[project_id] != stamp:
                return ProjectChanged(project_id=project_id)
        for project_id in old_projects:
            if project_id not in project_prints:
                return ProjectChanged(project_id=project_id)
        return None

    def next_event(self) -> RealtimeEvent:
        """Block until the next change is detected.

        Raises:
            RealtimeError: If the client is not connected or gets disconnected
            ClientError: If polling the API fails
        """
        while True:
            if not self._connected:
                raise RealtimeError("realtime client is not connected")
            if self._closed.wait(self.poll_seconds):
                raise RealtimeError("realtime client disconnected")
            task_prints, project_prints = self._snapshot()
            event = self._diff(task_prints, project_prints)
            self._task_prints, self._project_prints = task_prints, project_prints
            if event is not None:
                return event
