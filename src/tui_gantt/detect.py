"""Infer which frontmatter field plays which role when the view leaves it unset."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Sequence

from tui_gantt.dates import is_date_string
from tui_gantt.models import FieldKind, Record, RoleAssignment

logger = logging.getLogger(__name__)

START_KEYWORDS = ("start", "begin", "from", "created")
END_KEYWORDS = ("end", "due", "finish", "deadline", "until")
DEPENDENCY_KEYWORDS = ("depend", "block", "after", "prerequisite", "requires")
PROGRESS_KEYWORDS = ("progress", "percent", "completion", "complete", "done")
CATEGORY_KEYWORDS = ("status", "priority", "type", "category", "phase", "stage")


@dataclass(frozen=True)
class ObservedField:
    """A field id together with the kind of value seen on the sample record."""

    field_id: str
    kind: FieldKind


def field_name(field_id: str) -> str:
    """Strip a namespace prefix: ``note.start-date`` -> ``start-date``."""
    dot = field_id.find(".")
    return field_id[dot + 1:] if dot >= 0 else field_id


def normalize_field_name(field_id: str) -> str:
    return field_name(field_id).lower().replace("-", "").replace("_", "")


def classify_value(value: Any) -> FieldKind | None:
    """Kind of a raw value, or None when the value is absent."""
    if value is None:
        return None
    if isinstance(value, date):
        return FieldKind.DATE
    if isinstance(value, bool):
        return FieldKind.TEXT
    if isinstance(value, (int, float)):
        return FieldKind.NUMBER
    if isinstance(value, str) and is_date_string(value):
        return FieldKind.DATE
    return FieldKind.TEXT


def observe_fields(records: Sequence[Record]) -> list[ObservedField]:
    """Collect every field id across *records*, typed by the first record.

    Field ids keep first-seen order. Fields absent on the sample record are
    not observable and are left out.
    """
    if not records:
        return []
    all_ids: list[str] = []
    seen: set[str] = set()
    for record in records:
        for field_id in record.field_ids():
            if field_id not in seen:
                seen.add(field_id)
                all_ids.append(field_id)

    sample = records[0]
    observed: list[ObservedField] = []
    for field_id in all_ids:
        kind = classify_value(sample.get(field_id))
        if kind is not None:
            observed.append(ObservedField(field_id, kind))
    return observed


def _find_by_keywords(
    candidates: list[str], keywords: Sequence[str], claimed: set[str]
) -> str | None:
    for field_id in candidates:
        if field_id in claimed:
            continue
        name = normalize_field_name(field_id)
        if any(k in name for k in keywords):
            return field_id
    return None


def detect_roles(
    observed: Sequence[ObservedField], pinned: RoleAssignment | None = None
) -> RoleAssignment:
    """Best-effort role assignment for every role *pinned* leaves unset.

    A field already pinned, or claimed by an earlier role in this pass, is
    never considered again. The label role is never detected.
    """
    pinned = pinned or RoleAssignment()
    claimed = set(pinned.assigned_fields())

    dates = [f.field_id for f in observed if f.kind == FieldKind.DATE]
    numbers = [f.field_id for f in observed if f.kind == FieldKind.NUMBER]
    texts = [f.field_id for f in observed if f.kind == FieldKind.TEXT]

    def claim(field_id: str | None) -> str | None:
        if field_id is not None:
            claimed.add(field_id)
        return field_id

    # Start falls back to the first free date field before end gets a chance,
    # so a lone ``due`` still renders.
    start = pinned.start
    if start is None:
        start = claim(_find_by_keywords(dates, START_KEYWORDS, claimed))
    if start is None:
        start = claim(next((f for f in dates if f not in claimed), None))

    end = pinned.end
    if end is None:
        end = claim(_find_by_keywords(dates, END_KEYWORDS, claimed))
    if end is None:
        end = claim(next((f for f in dates if f not in claimed), None))

    dependencies = pinned.dependencies
    if dependencies is None:
        dependencies = claim(_find_by_keywords(texts, DEPENDENCY_KEYWORDS, claimed))

    progress = pinned.progress
    if progress is None:
        progress = claim(_find_by_keywords(numbers, PROGRESS_KEYWORDS, claimed))

    color_by = pinned.color_by
    if color_by is None:
        color_by = claim(_find_by_keywords(texts, CATEGORY_KEYWORDS, claimed))

    return RoleAssignment(
        start=start,
        end=end,
        label=pinned.label,
        dependencies=dependencies,
        color_by=color_by,
        progress=progress,
    )


def record_set_fingerprint(records: Sequence[Record]) -> tuple:
    """Identity of a record set for caching: keys and field ids, not values."""
    keys = tuple(r.key for r in records)
    ids = tuple(sorted({f for r in records for f in r.field_ids()}))
    return keys, ids


class RoleResolver:
    """Resolve the role assignment for a view, caching detection results.

    Detection is re-run only when the pinned roles or the record set change.
    Re-detecting on every pass could pick a different sample record and flip
    the mapping mid-session.
    """

    def __init__(self) -> None:
        self._cache_key: tuple | None = None
        self._cached: RoleAssignment | None = None

    def invalidate(self) -> None:
        self._cache_key = None
        self._cached = None

    def resolve(self, records: Sequence[Record], pinned: RoleAssignment) -> RoleAssignment:
        if pinned.is_configured or not records:
            return pinned

        key = (pinned, record_set_fingerprint(records))
        if self._cache_key == key and self._cached is not None:
            return self._cached

        detected = detect_roles(observe_fields(records), pinned)
        logger.debug("Detected roles: %s", detected.as_dict())
        self._cache_key = key
        self._cached = detected
        return detected
