"""Translate timeline edits into frontmatter field updates."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Protocol, Union

from tui_gantt.dates import format_date_with_time
from tui_gantt.detect import field_name
from tui_gantt.pipeline import Timeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DateChange:
    """A bar was moved or resized."""

    task_id: str
    start: date | datetime
    end: date | datetime


@dataclass(frozen=True)
class ProgressChange:
    """A bar's progress handle was dragged."""

    task_id: str
    progress: float


EditEvent = Union[DateChange, ProgressChange]


@dataclass(frozen=True)
class FieldUpdate:
    """Field values to write on exactly one record."""

    record_key: str
    values: dict[str, Any]


class RecordStore(Protocol):
    def update_fields(self, key: str, values: dict[str, Any]) -> bool: ...


def _span(start: date | datetime, end: date | datetime) -> int:
    if isinstance(start, datetime):
        start = start.date()
    if isinstance(end, datetime):
        end = end.date()
    return (end - start).days


def translate(event: EditEvent, timeline: Timeline, include_time: bool = False) -> FieldUpdate | None:
    """Field update for *event*, or None when there is nothing to write.

    Group headers, unknown tasks and roles without a field are ignored.
    """
    task = timeline.find(event.task_id)
    if task is None or task.is_group_header or not task.source_key:
        return None
    roles = timeline.roles

    values: dict[str, Any] = {}
    if isinstance(event, DateChange):
        if roles.start:
            values[field_name(roles.start)] = format_date_with_time(event.start, include_time)
        if roles.end:
            end = event.end
            if task.is_milestone and _span(event.start, event.end) == _span(task.start, task.end):
                # A moved milestone is drawn one day long but stored with end == start.
                end = end - timedelta(days=1)
            values[field_name(roles.end)] = format_date_with_time(end, include_time)
    elif isinstance(event, ProgressChange):
        if not timeline.show_progress or not roles.progress:
            return None
        values[field_name(roles.progress)] = max(0, min(100, round(event.progress)))

    if not values:
        return None
    return FieldUpdate(record_key=task.source_key, values=values)


class RecordWriter:
    """Apply field updates to a store, one record at a time.

    Updates for the same record are applied in the order they were
    submitted; updates for different records do not wait on each other.
    Nothing is batched or debounced: several bars moving together each get
    their own write.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self._locks: dict[str, asyncio.Lock] = {}
        self._pending: dict[str, int] = {}

    def apply(self, update: FieldUpdate) -> bool:
        written = self._store.update_fields(update.record_key, update.values)
        if not written:
            logger.debug("Write skipped, record '%s' is gone", update.record_key)
        return written

    async def write(self, update: FieldUpdate) -> bool:
        key = update.record_key
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._pending[key] = self._pending.get(key, 0) + 1
        try:
            async with lock:
                return await asyncio.to_thread(self.apply, update)
        finally:
            self._pending[key] -= 1
            if not self._pending[key]:
                del self._pending[key]
                del self._locks[key]
