"""Collaborator contracts consumed by the TUI engine.

The engine depends only on these structural types, so tests can pass Mock
objects and the app can wire in the httpx client, the polling realtime
client and the subprocess clipboard.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from .events import ProjectChanged, RealtimeConnected, RealtimeDisconnected, TaskChanged
from .models import Project, Task


class TaskClient(Protocol):
    """Task/project API. Failures raise ClientError subclasses."""

    def list_tasks(
        self,
        project_id: str | None = None,
        status: str | None = None,
        include_closed: bool = True,
    ) -> list[Task]: ...

    def update_task(self, task_id: str, fields: Mapping[str, Any]) -> Task: ...

    def delete_task(self, task_id: str) -> None: ...

    def list_projects(self) -> list[Project]: ...

    def health_check(self) -> None: ...


class RealtimeClient(Protocol):
    """One-shot realtime channel: each next_event() call yields one event."""

    def connect(self) -> None: ...

    def disconnect(self) -> None: ...

    def is_connected(self) -> bool: ...

    def next_event(
        self,
    ) -> RealtimeConnected | RealtimeDisconnected | TaskChanged | ProjectChanged: ...


class ClipboardWriter(Protocol):
    """System clipboard. Failures raise ClipboardError."""

    def write_text(self, text: str) -> None: ...
