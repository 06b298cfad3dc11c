"""Vault configuration management using tomlkit."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import tomlkit

from tui_gantt.models import (
    BAR_HEIGHT_MAX,
    BAR_HEIGHT_MIN,
    DEFAULT_BAR_HEIGHT,
    DEFAULT_VIEW_MODE,
    ROLES,
    VIEW_MODES,
    ProjectConfig,
    RoleAssignment,
    ViewConfig,
)

logger = logging.getLogger(__name__)

CONFIG_DIR = ".tui-gantt"
CONFIG_FILE = "config.toml"

# Extra config keys stored next to the roles in [view].
_FIELD_KEYS = ROLES + ("group_by",)


def _get_config_path(vault_dir: Path) -> Path:
    return vault_dir / CONFIG_DIR / CONFIG_FILE


def normalize_view_mode(value: object) -> str:
    """Accept any casing ("half day", "Half Day") and fall back to Day."""
    text = str(value).strip().lower()
    for mode in VIEW_MODES:
        if mode.lower() == text:
            return mode
    return DEFAULT_VIEW_MODE


def clamp_bar_height(value: object) -> int:
    try:
        height = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return DEFAULT_BAR_HEIGHT
    return max(BAR_HEIGHT_MIN, min(BAR_HEIGHT_MAX, height))


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_view(data: dict) -> ViewConfig:
    """Parse the [view] table."""
    view = ViewConfig()
    for key in _FIELD_KEYS:
        setattr(view, key, _optional_str(data.get(key)))

    if "view_mode" in data:
        view.view_mode = normalize_view_mode(data["view_mode"])
    if "bar_height" in data:
        view.bar_height = clamp_bar_height(data["bar_height"])
    if isinstance(data.get("show_progress"), bool):
        view.show_progress = bool(data["show_progress"])
    view.show_expected_progress = bool(data.get("show_expected_progress", False))
    view.include_time = bool(data.get("include_time", False))
    return view


def load_config(vault_dir: Path) -> ProjectConfig:
    """Load configuration from .tui-gantt/config.toml. Never raises."""
    config_path = _get_config_path(vault_dir)
    config = ProjectConfig()

    if not config_path.exists():
        return config

    try:
        content = config_path.read_text(encoding="utf-8")
        doc = tomlkit.parse(content)
    except Exception as e:
        logger.warning("Ignoring unreadable config %s: %s", config_path, e)
        return config

    project_section = doc.get("project", {})
    if isinstance(project_section, dict):
        config.name = str(project_section.get("name", ""))

    view_section = doc.get("view", {})
    if isinstance(view_section, dict):
        config.view = _parse_view(view_section)

    return config


def save_config(vault_dir: Path, config: ProjectConfig) -> None:
    """Save configuration to .tui-gantt/config.toml."""
    config_path = _get_config_path(vault_dir)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    doc = tomlkit.document()

    project_table = tomlkit.table()
    project_table.add("name", config.name)
    doc.add("project", project_table)

    view = config.view
    view_table = tomlkit.table()
    for key in _FIELD_KEYS:
        value = getattr(view, key)
        if value:
            view_table.add(key, value)
    view_table.add("view_mode", view.view_mode)
    view_table.add("bar_height", view.bar_height)
    if view.show_progress is not None:
        view_table.add("show_progress", view.show_progress)
    view_table.add("show_expected_progress", view.show_expected_progress)
    view_table.add("include_time", view.include_time)
    doc.add("view", view_table)

    config_path.write_text(tomlkit.dumps(doc), encoding="utf-8")


def display_snapshot(view: ViewConfig, roles: RoleAssignment) -> str:
    """Identity of everything that requires rebuilding the chart when changed."""
    return json.dumps(
        {
            "roles": roles.as_dict(),
            "view_mode": view.view_mode,
            "bar_height": view.bar_height,
            "show_progress": view.show_progress,
            "show_expected_progress": view.show_expected_progress,
        },
        sort_keys=True,
    )
