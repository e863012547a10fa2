"""Runs effect descriptions on a worker pool.

Each effect becomes a call on a collaborator (task client, clipboard,
realtime client) whose outcome is published back to the event queue as a
result event. Workers never touch AppState, and collaborator exceptions
become error-carrying events instead of propagating.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING

from .effects import (
    ConnectRealtime,
    DeleteTask,
    Effect,
    HealthCheck,
    ListenRealtime,
    ListProjects,
    ListTasks,
    Quit,
    UpdateTask,
    WriteClipboard,
)
from .events import (
    ClipboardWritten,
    Event,
    EventQueue,
    HealthChecked,
    ProjectsLoaded,
    RealtimeConnected,
    RealtimeDisconnected,
    TaskDeleted,
    TasksLoaded,
    TaskUpdated,
)

if TYPE_CHECKING:
    from .interfaces import ClipboardWriter, RealtimeClient, TaskClient
    from .realtime import RealtimeListener

logger = logging.getLogger(__name__)


class EffectExecutor:
    """Thread pool translating effects into result events."""

    def __init__(
        self,
        task_client: TaskClient,
        clipboard: ClipboardWriter,
        event_queue: EventQueue,
        realtime_client: RealtimeClient | None = None,
        listener: RealtimeListener | None = None,
        max_workers: int = 4,
    ):
        """Initialize effect executor.

        Args:
            task_client: Client for task/project API calls
            clipboard: Clipboard writer for copy effects
            event_queue: Queue receiving result events
            realtime_client: Realtime client, None when realtime is disabled
            listener: Listener thread armed by ListenRealtime effects
            max_workers: Worker pool size
        """
        self.task_client = task_client
        self.clipboard = clipboard
        self.event_queue = event_queue
        self.realtime_client = realtime_client
        self.listener = listener
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="effect")
        self._stop_event = threading.Event()

    def submit(self, effect: Effect) -> Future | None:
        """Schedule one effect.

        Args:
            effect: Effect description returned by the dispatch engine

        Returns:
            Future of the worker, or None when nothing was scheduled
        """
        if isinstance(effect, Quit):
            return None
        if isinstance(effect, ListenRealtime):
            if self.listener is not None:
                self.listener.arm()
            return None
        if self._stop_event.is_set():
            logger.debug(f"Executor stopped, dropping {effect!r}")
            return None

        logger.debug(f"Submitting effect {type(effect).__name__}")
        try:
            return self._pool.submit(self._run, effect)
        except RuntimeError as err:
            logger.warning(f"Cannot submit {type(effect).__name__}: {err}")
            return None

    def submit_all(self, effects: list[Effect]) -> None:
        for effect in effects:
            self.submit(effect)

    def _run(self, effect: Effect) -> None:
        event = self.execute(effect)
        if event is not None:
            self.event_queue.put(event)

    def execute(self, effect: Effect) -> Event | None:
        """Perform an effect synchronously and return its result event."""
        if isinstance(effect, ListTasks):
            try:
                tasks = self.task_client.list_tasks(
                    project_id=effect.project_id, include_closed=effect.include_closed
                )
            except Exception as err:
                logger.warning(f"list_tasks failed: {err}")
                return TasksLoaded(project_id=effect.project_id, error=str(err))
            return TasksLoaded(project_id=effect.project_id, tasks=tuple(tasks))

        if isinstance(effect, ListProjects):
            try:
                projects = self.task_client.list_projects()
            except Exception as err:
                logger.warning(f"list_projects failed: {err}")
                return ProjectsLoaded(error=str(err))
            return ProjectsLoaded(projects=tuple(projects))

        if isinstance(effect, UpdateTask):
            try:
                task = self.task_client.update_task(effect.task_id, dict(effect.fields))
            except Exception as err:
                logger.warning(f"update_task {effect.task_id} failed: {err}")
                return TaskUpdated(task_id=effect.task_id, error=str(err))
            logger.info(
                "Task updated",
                extra={"extra_context": {"task_id": effect.task_id, "fields": dict(effect.fields)}},
            )
            return TaskUpdated(task_id=effect.task_id, task=task)

        if isinstance(effect, DeleteTask):
            try:
                self.task_client.delete_task(effect.task_id)
            except Exception as err:
                logger.warning(f"delete_task {effect.task_id} failed: {err}")
                return TaskDeleted(task_id=effect.task_id, error=str(err))
            logger.info(f"Task {effect.task_id} deleted")
            return TaskDeleted(task_id=effect.task_id)

        if isinstance(effect, WriteClipboard):
            try:
                self.clipboard.write_text(effect.text)
            except Exception as err:
                return ClipboardWritten(label=effect.label, error=str(err))
            return ClipboardWritten(label=effect.label)

        if isinstance(effect, HealthCheck):
            try:
                self.task_client.health_check()
            except Exception as err:
                return HealthChecked(error=str(err))
            return HealthChecked()

        if isinstance(effect, ConnectRealtime):
            return self._connect_realtime(effect.delay_seconds)

        logger.warning(f"Unhandled effect {effect!r}")
        return None

    def _connect_realtime(self, delay_seconds: float) -> Event | None:
        if self.realtime_client is None:
            return RealtimeDisconnected(error="realtime disabled")
        if delay_seconds > 0 and self._stop_event.wait(delay_seconds):
            return None
        try:
            self.realtime_client.connect()
        except Exception as err:
            logger.warning(f"Realtime connect failed: {err}")
            return RealtimeDisconnected(error=str(err))
        return RealtimeConnected()

    def shutdown(self, wait: bool = False) -> None:
        """Stop accepting effects and release the worker pool."""
        self._stop_event.set()
        self._pool.shutdown(wait=wait, cancel_futures=True)
        logger.info("EffectExecutor shut down")
