"""Effect descriptions returned by the dispatch engine.

Effects are plain values; the EffectExecutor performs them off the main
thread and feeds the outcome back as events.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ListTasks:
    """Fetch tasks; ``project_id`` tags the response for staleness checks."""

    project_id: str | None = None
    include_closed: bool = True


@dataclass(frozen=True)
class ListProjects:
    """Fetch the project list."""


@dataclass(frozen=True)
class UpdateTask:
    """Partially update a task."""

    task_id: str
    fields: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeleteTask:
    task_id: str


@dataclass(frozen=True)
class WriteClipboard:
    """Copy text; ``label`` names what was copied in the feedback message."""

    text: str
    label: str


@dataclass(frozen=True)
class HealthCheck:
    """Probe the server once."""


@dataclass(frozen=True)
class ConnectRealtime:
    """Open the realtime channel after ``delay_seconds``."""

    delay_seconds: float = 0.0


@dataclass(frozen=True)
class ListenRealtime:
    """Arm the realtime listener for exactly one event."""


@dataclass(frozen=True)
class Quit:
    """Terminate the application."""


Effect = (
    ListTasks
    | ListProjects
    | UpdateTask
    | DeleteTask
    | WriteClipboard
    | HealthCheck
    | ConnectRealtime
    | ListenRealtime
    | Quit
)


def refresh_data(project_id: str | None) -> list[Effect]:
    """Effects for a full data refresh (tasks and projects)."""
    return [ListTasks(project_id=project_id), ListProjects()]
