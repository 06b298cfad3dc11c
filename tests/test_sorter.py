"""Tests for dependency ordering."""

from datetime import date

from tui_gantt.models import Task
from tui_gantt.sorter import collect_dependents, sort_by_dependencies


def _task(task_id: str, day: int, *deps: str) -> Task:
    return Task(
        id=task_id,
        name=task_id,
        start=date(2026, 3, day),
        end=date(2026, 3, day + 1),
        dependency_ids=tuple(deps),
    )


def _ids(tasks):
    return [t.id for t in tasks]


class TestSortByDependencies:
    def test_chain(self):
        tasks = [_task("C", 1, "B"), _task("B", 2, "A"), _task("A", 3)]
        assert _ids(sort_by_dependencies(tasks)) == ["A", "B", "C"]

    def test_independent_tasks_by_start(self):
        tasks = [_task("late", 9), _task("early", 1), _task("mid", 5)]
        assert _ids(sort_by_dependencies(tasks)) == ["early", "mid", "late"]

    def test_ties_keep_input_order(self):
        tasks = [_task("x", 4), _task("y", 4), _task("z", 4)]
        assert _ids(sort_by_dependencies(tasks)) == ["x", "y", "z"]

    def test_round_is_sorted_by_start(self):
        tasks = [_task("A", 1), _task("B2", 9, "A"), _task("B1", 3, "A")]
        assert _ids(sort_by_dependencies(tasks)) == ["A", "B1", "B2"]

    def test_cycle_terminates_with_every_task_once(self):
        tasks = [_task("A", 5, "B"), _task("B", 3, "A"), _task("C", 1)]
        result = _ids(sort_by_dependencies(tasks))
        assert sorted(result) == ["A", "B", "C"]
        assert result == ["C", "B", "A"]

    def test_dangling_dependency_falls_back_to_dates(self):
        tasks = [_task("A", 5, "ghost"), _task("B", 2)]
        assert _ids(sort_by_dependencies(tasks)) == ["B", "A"]

    def test_self_dependency(self):
        tasks = [_task("A", 1, "A"), _task("B", 2)]
        assert _ids(sort_by_dependencies(tasks)) == ["B", "A"]

    def test_small_inputs(self):
        assert sort_by_dependencies([]) == []
        single = [_task("A", 1, "missing")]
        assert sort_by_dependencies(single) == single


class TestCollectDependents:
    def test_transitive(self):
        tasks = [_task("A", 1), _task("B", 2, "A"), _task("C", 3, "B"), _task("D", 4)]
        assert _ids(collect_dependents(tasks, "A")) == ["B", "C"]

    def test_leaf_has_none(self):
        tasks = [_task("A", 1), _task("B", 2, "A")]
        assert collect_dependents(tasks, "B") == []

    def test_cycle(self):
        tasks = [_task("A", 1, "B"), _task("B", 2, "A")]
        assert _ids(collect_dependents(tasks, "A")) == ["B"]
