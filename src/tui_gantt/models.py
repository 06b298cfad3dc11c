"""Data models for TUI Gantt."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date
from enum import Enum
from typing import Any, Protocol


COLOR_BUCKET_COUNT = 8
GROUP_HEADER_PREFIX = "__group__"

VIEW_MODES: tuple[str, ...] = ("Quarter day", "Half day", "Day", "Week", "Month", "Year")
DEFAULT_VIEW_MODE = "Day"

BAR_HEIGHT_MIN = 16
BAR_HEIGHT_MAX = 60
DEFAULT_BAR_HEIGHT = 30

ROLES: tuple[str, ...] = ("start", "end", "label", "dependencies", "color_by", "progress")


class FieldKind(Enum):
    """Primitive kind of a field value, as seen by the property detector."""

    DATE = "date"
    NUMBER = "number"
    TEXT = "text"


class Record(Protocol):
    """Anything the mapper can read: a stable key, a display name and fields."""

    key: str
    name: str

    def get(self, field_id: str) -> Any: ...

    def field_ids(self) -> list[str]: ...


@dataclass(frozen=True)
class NoteRecord:
    """A markdown note. Frontmatter keys are its fields."""

    key: str  # vault-relative POSIX path, e.g. "projects/Task A.md"
    name: str  # basename without extension
    fields: dict[str, Any] = field(default_factory=dict)
    body: str = ""

    def get(self, field_id: str) -> Any:
        """Look up a field by id. ``note.start`` and ``start`` are equivalent."""
        if field_id in self.fields:
            return self.fields[field_id]
        dot = field_id.find(".")
        if dot >= 0:
            return self.fields.get(field_id[dot + 1:])
        return None

    def field_ids(self) -> list[str]:
        return list(self.fields.keys())


@dataclass(frozen=True)
class RoleAssignment:
    """Which field plays which semantic role. ``None`` means unset."""

    start: str | None = None
    end: str | None = None
    label: str | None = None
    dependencies: str | None = None
    color_by: str | None = None
    progress: str | None = None

    @property
    def is_configured(self) -> bool:
        return self.start is not None

    def assigned_fields(self) -> set[str]:
        return {getattr(self, f.name) for f in fields(self) if getattr(self, f.name)}

    def as_dict(self) -> dict[str, str | None]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class MapperConfig:
    """Everything the task mapper needs for one render pass."""

    roles: RoleAssignment = field(default_factory=RoleAssignment)
    show_progress: bool = False


@dataclass(frozen=True)
class Task:
    """A render-ready projection of a record (or of a group). Immutable."""

    id: str
    name: str
    start: date
    end: date
    progress: int = 0
    dependency_ids: tuple[str, ...] = ()
    color_bucket: int | None = None
    is_milestone: bool = False
    source_key: str = ""  # empty for group headers

    @property
    def is_group_header(self) -> bool:
        return self.id.startswith(GROUP_HEADER_PREFIX)

    @property
    def start_str(self) -> str:
        return self.start.isoformat()

    @property
    def end_str(self) -> str:
        return self.end.isoformat()

    @property
    def duration_days(self) -> int:
        return max(1, (self.end - self.start).days)

    @property
    def css_class(self) -> str:
        """Single style class. Colour wins over milestone, headers are fixed."""
        if self.is_group_header:
            return "gantt-group-header"
        if self.color_bucket is not None:
            return f"gantt-color-{self.color_bucket}"
        if self.is_milestone:
            return "gantt-milestone"
        return ""


@dataclass(frozen=True)
class DisplayConfig:
    """Display options handed to the rendering collaborator."""

    view_mode: str = DEFAULT_VIEW_MODE
    bar_height: int = DEFAULT_BAR_HEIGHT
    show_progress: bool = False
    show_expected_progress: bool = False


@dataclass
class ViewConfig:
    """Configuration for the timeline view, stored in .tui-gantt/config.toml."""

    start: str | None = None
    end: str | None = None
    label: str | None = None
    dependencies: str | None = None
    color_by: str | None = None
    progress: str | None = None
    group_by: str | None = None
    view_mode: str = DEFAULT_VIEW_MODE
    bar_height: int = DEFAULT_BAR_HEIGHT
    show_progress: bool | None = None  # None = auto (on when a progress field is known)
    show_expected_progress: bool = False
    include_time: bool = False

    def pinned_roles(self) -> RoleAssignment:
        return RoleAssignment(
            start=self.start or None,
            end=self.end or None,
            label=self.label or None,
            dependencies=self.dependencies or None,
            color_by=self.color_by or None,
            progress=self.progress or None,
        )

    def display(self, show_progress: bool) -> DisplayConfig:
        return DisplayConfig(
            view_mode=self.view_mode,
            bar_height=self.bar_height,
            show_progress=show_progress,
            show_expected_progress=self.show_expected_progress and show_progress,
        )


@dataclass
class ProjectConfig:
    """Vault-level configuration stored in .tui-gantt/config.toml."""

    name: str = ""
    view: ViewConfig = field(default_factory=ViewConfig)


@dataclass
class ParseWarning:
    """A warning generated while reading the vault."""

    file_path: str
    line_number: int
    message: str

    def __str__(self) -> str:
        return f"{self.file_path}:{self.line_number}: {self.message}"


class TuiGanttError(Exception):
    """Base class for errors raised by tui-gantt."""


class ConfigError(TuiGanttError):
    """Invalid configuration or command-line input."""
