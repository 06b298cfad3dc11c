"""Build the full task list for one render pass."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from tui_gantt.detect import RoleResolver
from tui_gantt.groups import (
    RecordGroup,
    create_group_header,
    group_records,
    has_named_groups,
)
from tui_gantt.mapper import map_records
from tui_gantt.models import MapperConfig, Record, RoleAssignment, Task, ViewConfig


@dataclass(frozen=True)
class Timeline:
    """Result of one render pass. Rebuilt from scratch on every change."""

    tasks: tuple[Task, ...] = ()
    roles: RoleAssignment = field(default_factory=RoleAssignment)
    show_progress: bool = False

    @property
    def needs_configuration(self) -> bool:
        return not self.roles.is_configured

    def find(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def earliest_start(self) -> str | None:
        starts = [t.start_str for t in self.tasks]
        return min(starts) if starts else None

    def dependency_names(self, task: Task) -> list[str]:
        by_id = {t.id: t for t in self.tasks}
        return [by_id[d].name if d in by_id else d for d in task.dependency_ids]


def mapper_config(view: ViewConfig, roles: RoleAssignment) -> MapperConfig:
    if view.show_progress is None:
        show_progress = roles.progress is not None
    else:
        show_progress = view.show_progress
    return MapperConfig(roles=roles, show_progress=show_progress)


def build_timeline(
    records: Sequence[Record],
    view: ViewConfig,
    resolver: RoleResolver | None = None,
    groups: Sequence[RecordGroup] | None = None,
) -> Timeline:
    """Detect roles, map, sort and add group headers.

    *groups* comes from an external grouping step; when omitted, records are
    grouped by ``view.group_by``. Pure apart from the resolver's cache.
    """
    resolver = resolver or RoleResolver()
    roles = resolver.resolve(records, view.pinned_roles())
    config = mapper_config(view, roles)

    if groups is None:
        groups = group_records(records, view.group_by)

    tasks: list[Task] = []
    if has_named_groups(groups):
        for index, group in enumerate(groups):
            group_tasks = map_records(group.records, config)
            if not group_tasks:
                continue
            header = create_group_header(group.label, index, group_tasks)
            if header is not None:
                tasks.append(header)
            tasks.extend(group_tasks)
    else:
        tasks = map_records(records, config)

    return Timeline(tasks=tuple(tasks), roles=roles, show_progress=config.show_progress)
