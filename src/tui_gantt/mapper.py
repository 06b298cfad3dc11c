"""Map records to timeline tasks."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Any, Sequence

from tui_gantt.dates import add_days, format_date, parse_date
from tui_gantt.models import COLOR_BUCKET_COUNT, MapperConfig, Record, Task
from tui_gantt.sorter import sort_by_dependencies

logger = logging.getLogger(__name__)

WIKI_LINK_RE = re.compile(r"\[\[([^\]|]+)(?:\|[^\]]+)?\]\]")
EXTENSION_RE = re.compile(r"\.[^./]+$")


def _is_bare_wiki_link(value: Any) -> bool:
    # YAML reads an unquoted [[Target]] as a list holding a one-string list.
    return (
        isinstance(value, list)
        and len(value) == 1
        and isinstance(value[0], str)
    )


def raw_text(value: Any) -> str | None:
    """Text form of a typed field value. None for absent values."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime)):
        return format_date(value)
    if isinstance(value, (list, tuple)):
        parts: list[str] = []
        for item in value:
            if _is_bare_wiki_link(item):
                parts.append(f"[[{item[0]}]]")
                continue
            text = raw_text(item)
            if text is not None:
                parts.append(text)
        return ", ".join(parts)
    return str(value)


def make_task_id(key: str) -> str:
    """Stable task id from a record key. Spaces become underscores."""
    return key.replace(" ", "_")


def strip_extension(key: str) -> str:
    return EXTENSION_RE.sub("", key)


def build_name_index(records: Sequence[Record]) -> dict[str, str]:
    """Map basenames and extension-less paths to task ids.

    Duplicate basenames resolve to the record indexed last; the full path
    form is always unambiguous.
    """
    index: dict[str, str] = {}
    for record in records:
        task_id = make_task_id(record.key)
        index[record.name] = task_id
        index[strip_extension(record.key)] = task_id
    return index


def parse_dependency_names(text: str) -> list[str]:
    """Link targets in *text*.

    ``[[Target]]`` and ``[[Target|Alias]]`` links are used when present. Only
    when the text holds no link syntax at all is it read as a comma
    separated list of plain names.
    """
    targets = [m.group(1).strip() for m in WIKI_LINK_RE.finditer(text)]
    if targets:
        return targets
    if "[[" in text:
        return []
    return [name.strip() for name in text.split(",") if name.strip()]


def resolve_dependencies(text: str, name_index: dict[str, str]) -> tuple[str, ...]:
    ids: list[str] = []
    for name in parse_dependency_names(text):
        task_id = name_index.get(name)
        if task_id is None:
            logger.debug("Dropping unresolved dependency '%s'", name)
            continue
        if task_id not in ids:
            ids.append(task_id)
    return tuple(ids)


def assign_color_buckets(records: Sequence[Record], field_id: str) -> dict[str, int]:
    """Bucket per distinct value in first-seen order, wrapping at the palette size."""
    buckets: dict[str, int] = {}
    for record in records:
        text = raw_text(record.get(field_id))
        if text is not None and text not in buckets:
            buckets[text] = len(buckets) % COLOR_BUCKET_COUNT
    return buckets


def _resolve_progress(value: Any) -> int:
    text = raw_text(value)
    if text is None:
        return 0
    try:
        number = float(text.strip().rstrip("%"))
    except ValueError:
        return 0
    if number != number:  # NaN
        return 0
    return int(round(max(0.0, min(100.0, number))))


def _date_value(value: Any) -> datetime | None:
    # Numbers are epoch milliseconds; sequences are read through their text.
    if isinstance(value, (list, tuple)):
        return parse_date(raw_text(value))
    return parse_date(value)


def _map_record(
    record: Record,
    config: MapperConfig,
    name_index: dict[str, str],
    buckets: dict[str, int],
) -> Task | None:
    roles = config.roles
    start = _date_value(record.get(roles.start))
    if start is None:
        logger.debug("Skipping '%s': no usable start date", record.key)
        return None

    end: datetime | None = None
    if roles.end:
        end = _date_value(record.get(roles.end))
    if end is not None and end < start:
        logger.debug("Ignoring end before start on '%s'", record.key)
        end = None

    is_milestone = end is not None and format_date(end) == format_date(start)
    if end is None or is_milestone:
        end = add_days(start, 1)

    name = record.name
    if roles.label:
        label = raw_text(record.get(roles.label))
        if label is not None and label.strip():
            name = label

    progress = 0
    if config.show_progress and roles.progress:
        progress = _resolve_progress(record.get(roles.progress))

    dependency_ids: tuple[str, ...] = ()
    if roles.dependencies:
        text = raw_text(record.get(roles.dependencies))
        if text is not None:
            dependency_ids = resolve_dependencies(text, name_index)

    color_bucket: int | None = None
    if roles.color_by:
        text = raw_text(record.get(roles.color_by))
        if text is not None:
            color_bucket = buckets.get(text)

    return Task(
        id=make_task_id(record.key),
        name=name,
        start=start.date(),
        end=end.date(),
        progress=progress,
        dependency_ids=dependency_ids,
        color_bucket=color_bucket,
        is_milestone=is_milestone,
        source_key=record.key,
    )


def map_records(records: Sequence[Record], config: MapperConfig) -> list[Task]:
    """Map *records* to tasks ordered so dependencies come first.

    Returns an empty list when no start field is configured. Records with a
    missing or unparseable start are left out; nothing here raises for bad
    row data.
    """
    if not config.roles.is_configured:
        return []

    name_index = build_name_index(records)
    buckets = assign_color_buckets(records, config.roles.color_by) if config.roles.color_by else {}

    tasks: list[Task] = []
    seen_ids: set[str] = set()
    for record in records:
        task = _map_record(record, config, name_index, buckets)
        if task is None:
            continue
        if task.id in seen_ids:
            logger.debug("Skipping duplicate task id '%s'", task.id)
            continue
        seen_ids.add(task.id)
        tasks.append(task)

    return sort_by_dependencies(tasks)
