"""Record grouping and synthetic group header tasks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from tui_gantt.mapper import raw_text
from tui_gantt.models import GROUP_HEADER_PREFIX, Record, Task

UNGROUPED_LABEL = "Ungrouped"


@dataclass
class RecordGroup:
    """A cluster of records sharing a grouping key. ``key=None`` means no key."""

    key: str | None
    records: list[Record] = field(default_factory=list)

    @property
    def has_key(self) -> bool:
        return self.key is not None

    @property
    def label(self) -> str:
        return self.key if self.key is not None else UNGROUPED_LABEL


def group_records(records: Sequence[Record], field_id: str | None) -> list[RecordGroup]:
    """Partition *records* by the text of *field_id*, in first-seen order.

    Records without a value land in one keyless group placed last. Without a
    field everything is a single keyless group.
    """
    if not field_id:
        return [RecordGroup(None, list(records))]

    groups: dict[str, RecordGroup] = {}
    ungrouped = RecordGroup(None)
    for record in records:
        key = raw_text(record.get(field_id))
        if key is None or not key.strip():
            ungrouped.records.append(record)
            continue
        groups.setdefault(key, RecordGroup(key)).records.append(record)

    result = list(groups.values())
    if ungrouped.records:
        result.append(ungrouped)
    return result


def has_named_groups(groups: Sequence[RecordGroup]) -> bool:
    """Headers are only drawn for several groups, or a single named one."""
    return len(groups) > 1 or (len(groups) == 1 and groups[0].has_key)


def create_group_header(label: str, index: int, tasks: Sequence[Task]) -> Task | None:
    """A header task spanning the earliest start to the latest end of *tasks*."""
    if not tasks:
        return None
    return Task(
        id=f"{GROUP_HEADER_PREFIX}{index}",
        name=label,
        start=min(t.start for t in tasks),
        end=max(t.end for t in tasks),
        progress=0,
        dependency_ids=(),
        source_key="",
    )
