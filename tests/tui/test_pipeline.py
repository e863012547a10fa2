"""Tests for the sort and filter pipeline."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from archon_tui.tui.models import ExcludeAll, Explicit, SortMode, Task, Unfiltered
from archon_tui.tui.pipeline import (
    filter_by_feature,
    filter_by_project,
    filter_by_status,
    index_of_task,
    sort_tasks,
    unique_features,
    visible_tasks,
)


def _at(day: int) -> datetime:
    return datetime(2024, 1, day, tzinfo=UTC)


@pytest.fixture
def tasks() -> list[Task]:
    """Mixed tasks across two projects."""
    return [
        Task(id="t1", title="Beta", status="todo", task_order=1, feature="api", project_id="p1",
             created_at=_at(1)),
        Task(id="t2", title="alpha", status="done", task_order=9, feature="ui", project_id="p1",
             created_at=_at(2), updated_at=_at(5)),
        Task(id="t3", title="Gamma", status="doing", task_order=3, project_id="p2",
             created_at=_at(3)),
        Task(id="t4", title="delta", status="todo", task_order=5, feature="ui", project_id="p1",
             created_at=_at(4)),
        Task(id="t5", title="Epsilon", status="done", task_order=2, project_id="p2",
             created_at=None, updated_at=_at(9)),
        Task(id="t6", title="zeta", status="review", task_order=0, feature="api", project_id="p2"),
    ]


def _ids(tasks: list[Task]) -> list[str]:
    return [task.id for task in tasks]


class TestFilters:
    """Tests for the individual filter stages."""

    def test_project_filter(self, tasks: list[Task]) -> None:
        assert _ids(filter_by_project(tasks, "p2")) == ["t3", "t5", "t6"]
        assert len(filter_by_project(tasks, None)) == len(tasks)

    def test_status_filter_hides_done_by_default_setting(self, tasks: list[Task]) -> None:
        """Without a custom filter, show_completed decides about done tasks."""
        assert "t2" not in _ids(filter_by_status(tasks, None, show_completed=False))
        assert "t2" in _ids(filter_by_status(tasks, None, show_completed=True))

    def test_explicit_status_filter_overrides_show_completed(self, tasks: list[Task]) -> None:
        """A custom status set wins over show_completed."""
        result = filter_by_status(tasks, frozenset({"done"}), show_completed=False)
        assert _ids(result) == ["t2", "t5"]

    def test_empty_status_filter_hides_everything(self, tasks: list[Task]) -> None:
        assert filter_by_status(tasks, frozenset(), show_completed=True) == []

    def test_feature_filter_untagged_always_pass(self, tasks: list[Task]) -> None:
        """Tasks without a feature pass every feature filter."""
        assert _ids(filter_by_feature(tasks, ExcludeAll())) == ["t3", "t5"]
        assert _ids(filter_by_feature(tasks, Explicit(frozenset({"ui"})))) == ["t2", "t3", "t4", "t5"]
        assert len(filter_by_feature(tasks, Unfiltered())) == len(tasks)


class TestSortTasks:
    """Tests for sort modes."""

    def test_status_priority(self, tasks: list[Task]) -> None:
        """Groups by status; priority descending, done by most recent update."""
        assert _ids(sort_tasks(tasks, SortMode.STATUS_PRIORITY)) == ["t4", "t1", "t3", "t6", "t5", "t2"]

    def test_priority(self, tasks: list[Task]) -> None:
        assert _ids(sort_tasks(tasks, SortMode.PRIORITY)) == ["t2", "t4", "t3", "t5", "t1", "t6"]

    def test_created_newest_first_missing_last(self, tasks: list[Task]) -> None:
        result = _ids(sort_tasks(tasks, SortMode.CREATED))
        assert result[:4] == ["t4", "t3", "t2", "t1"]
        assert result[4:] == ["t5", "t6"]

    def test_alphabetical_case_insensitive(self, tasks: list[Task]) -> None:
        assert _ids(sort_tasks(tasks, SortMode.ALPHABETICAL)) == ["t2", "t1", "t4", "t5", "t3", "t6"]

    def test_stable_for_equal_keys(self) -> None:
        """Equal keys keep their input order."""
        same = [Task(id=str(i), title="same", task_order=1) for i in range(5)]
        for mode in SortMode:
            assert _ids(sort_tasks(same, mode)) == ["0", "1", "2", "3", "4"]

    def test_input_untouched(self, tasks: list[Task]) -> None:
        before = list(tasks)
        sort_tasks(tasks, SortMode.ALPHABETICAL)
        assert tasks == before


class TestVisibleTasks:
    """Tests for the composed pipeline."""

    def test_all_stages(self, tasks: list[Task]) -> None:
        result = visible_tasks(
            tasks,
            project_id="p1",
            status_filter=frozenset({"todo", "done"}),
            feature_filter=Explicit(frozenset({"ui"})),
            sort_mode=SortMode.PRIORITY,
        )
        assert _ids(result) == ["t2", "t4"]

    def test_defaults_show_everything(self, tasks: list[Task]) -> None:
        assert len(visible_tasks(tasks)) == len(tasks)

    @pytest.mark.parametrize("sort_mode", list(SortMode))
    def test_idempotent(self, tasks: list[Task], sort_mode: SortMode) -> None:
        """Running the pipeline on its own output changes nothing."""
        options = {
            "project_id": "p1",
            "status_filter": frozenset({"todo", "done", "review"}),
            "feature_filter": Explicit(frozenset({"ui", "api"})),
            "sort_mode": sort_mode,
        }
        once = visible_tasks(tasks, **options)
        assert visible_tasks(once, **options) == once
        assert visible_tasks(tasks, **options) == once

    @pytest.mark.parametrize(
        ("show_completed", "expected"), [(True, ["1", "2"]), (False, ["1"])]
    )
    def test_show_completed_with_default_sort(
        self, show_completed: bool, expected: list[str]
    ) -> None:
        tasks = [
            Task(id="1", title="One", status="todo", task_order=5),
            Task(id="2", title="Two", status="done", task_order=10),
        ]
        assert _ids(visible_tasks(tasks, show_completed=show_completed)) == expected


class TestHelpers:
    """Tests for helper functions."""

    def test_unique_features_sorted(self, tasks: list[Task]) -> None:
        assert unique_features(tasks) == ["api", "ui"]

    def test_index_of_task(self, tasks: list[Task]) -> None:
        assert index_of_task(tasks, "t3") == 2
        assert index_of_task(tasks, "missing") is None
        assert index_of_task(tasks, None) is None
