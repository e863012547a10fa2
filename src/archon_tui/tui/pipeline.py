"""Sort and filter pipeline for the task list.

Stages run in a fixed order (project, status, feature, sort), each narrowing
the previous output. Every function is pure and leaves its input untouched.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .models import FeatureFilter, SortMode, Task, Unfiltered

_OLDEST = float("-inf")


def filter_by_project(tasks: Iterable[Task], project_id: str | None) -> list[Task]:
    """Keep tasks of the given project; no-op when project_id is None."""
    if project_id is None:
        return list(tasks)
    return [task for task in tasks if task.project_id == project_id]


def filter_by_status(
    tasks: Iterable[Task],
    status_filter: frozenset[str] | None,
    show_completed: bool,
) -> list[Task]:
    """Apply the explicit status set, or hide done tasks when configured.

    Args:
        tasks: Tasks to filter
        status_filter: Visible statuses when a custom filter is active, else None
        show_completed: Whether done tasks are shown when no custom filter is active

    Returns:
        Tasks passing the status stage
    """
    if status_filter is not None:
        return [task for task in tasks if task.status in status_filter]
    if not show_completed:
        return [task for task in tasks if task.status != "done"]
    return list(tasks)


def filter_by_feature(tasks: Iterable[Task], feature_filter: FeatureFilter) -> list[Task]:
    """Apply the tri-state feature filter. Untagged tasks always pass."""
    if isinstance(feature_filter, Unfiltered):
        return list(tasks)
    return [
        task for task in tasks if task.feature is None or feature_filter.allows(task.feature)
    ]


def _timestamp(value) -> float:
    return value.timestamp() if value is not None else _OLDEST


def _status_priority_key(task: Task) -> tuple[int, float]:
    # done: most recently updated first; other groups by priority
    if task.status == "done":
        return (task.status_rank, -_timestamp(task.updated_at))
    return (task.status_rank, float(-task.task_order))


def sort_tasks(tasks: Iterable[Task], mode: SortMode) -> list[Task]:
    """Return tasks ordered by the given mode.

    Python's sort is stable, so tasks with equal keys keep their input order
    under every mode.
    """
    if mode == SortMode.STATUS_PRIORITY:
        return sorted(tasks, key=_status_priority_key)
    if mode == SortMode.PRIORITY:
        return sorted(tasks, key=lambda task: -task.task_order)
    if mode == SortMode.CREATED:
        return sorted(tasks, key=lambda task: -_timestamp(task.created_at))
    if mode == SortMode.ALPHABETICAL:
        return sorted(tasks, key=lambda task: task.title.lower())
    return list(tasks)


def visible_tasks(
    tasks: Sequence[Task],
    *,
    project_id: str | None = None,
    status_filter: frozenset[str] | None = None,
    feature_filter: FeatureFilter | None = None,
    show_completed: bool = True,
    sort_mode: SortMode = SortMode.STATUS_PRIORITY,
) -> list[Task]:
    """Run the full pipeline and return the tasks to display, in order."""
    result = filter_by_project(tasks, project_id)
    result = filter_by_status(result, status_filter, show_completed)
    result = filter_by_feature(result, feature_filter or Unfiltered())
    return sort_tasks(result, sort_mode)


def unique_features(tasks: Iterable[Task]) -> list[str]:
    """Sorted unique non-empty feature names of the given tasks."""
    return sorted({task.feature for task in tasks if task.feature})


def index_of_task(tasks: Sequence[Task], task_id: str | None) -> int | None:
    """Position of the task with the given id, or None if absent."""
    if task_id is None:
        return None
    for index, task in enumerate(tasks):
        if task.id == task_id:
            return index
    return None
