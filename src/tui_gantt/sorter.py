"""Dependency-aware ordering of tasks."""

from __future__ import annotations

import logging

from tui_gantt.models import Task

logger = logging.getLogger(__name__)


def sort_by_dependencies(tasks: list[Task]) -> list[Task]:
    """Order tasks so every dependency is placed before its dependents.

    Each round places, sorted by start date, all remaining tasks whose
    dependencies are already placed. When a round finds nothing to place (a
    cycle, or a dependency on a task outside *tasks*) the remainder is
    appended sorted by start date. Always terminates; ties keep input order.
    """
    if len(tasks) <= 1:
        return list(tasks)

    placed: set[str] = set()
    remaining = list(tasks)
    result: list[Task] = []

    while remaining:
        ready = [t for t in remaining if all(d in placed for d in t.dependency_ids)]
        if not ready:
            logger.debug(
                "Unresolvable dependencies among %d task(s), falling back to date order",
                len(remaining),
            )
            result.extend(sorted(remaining, key=lambda t: t.start_str))
            break

        ready.sort(key=lambda t: t.start_str)
        result.extend(ready)
        placed.update(t.id for t in ready)
        ready_ids = {t.id for t in ready}
        remaining = [t for t in remaining if t.id not in ready_ids]

    return result


def collect_dependents(tasks: list[Task], task_id: str) -> list[Task]:
    """Tasks depending on *task_id*, directly or transitively, in list order."""
    found: set[str] = {task_id}
    changed = True
    while changed:
        changed = False
        for task in tasks:
            if task.id not in found and any(d in found for d in task.dependency_ids):
                found.add(task.id)
                changed = True
    return [t for t in tasks if t.id in found and t.id != task_id]
