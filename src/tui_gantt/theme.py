"""YAML-based colour system for TUI Gantt.

Loads colours from default_theme.yaml and optionally merges
vault-level overrides from {vault_dir}/.tui-gantt/theme.yaml.
"""

from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import NamedTuple

import yaml

from tui_gantt.models import COLOR_BUCKET_COUNT


class ColorPair(NamedTuple):
    """A pair of colors for dark and light themes."""

    dark: str
    light: str

    def resolve(self, is_dark: bool) -> str:
        return self.dark if is_dark else self.light


# ── Module-level variables (populated by _apply) ──────────────────

BUCKET_COLORS: list[ColorPair]

GANTT_HEADER: ColorPair
GANTT_BAR: ColorPair
GANTT_MILESTONE: ColorPair
GANTT_GROUP_HEADER: ColorPair
GANTT_PROGRESS: ColorPair
GANTT_EXPECTED_PROGRESS: ColorPair
GANTT_TODAY_MARKER: ColorPair
GANTT_DEPENDENCY_ARROW: ColorPair
GANTT_BAND_BG: ColorPair
GANTT_BASE_BG: ColorPair
GANTT_HIGHLIGHT_BG: ColorPair
GANTT_WEEKEND_BG: ColorPair

STATUSBAR_WARNING: ColorPair
WARNING_ICON: ColorPair


# ── Internal helpers ──────────────────────────────────────────────

def _load_yaml(path: Path) -> dict:
    """Load a YAML file and return a dict (empty dict on error)."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (returns a new dict)."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val  # lists are replaced, not appended
    return result


def _pair(d: object) -> ColorPair:
    """Convert a {dark: ..., light: ...} dict to a ColorPair."""
    if not isinstance(d, dict):
        d = {}
    return ColorPair(str(d.get("dark", "white")), str(d.get("light", "black")))


def _apply(data: dict) -> None:
    """Map parsed YAML data onto module-level constants."""
    mod = sys.modules[__name__]

    raw_buckets = data.get("buckets", [])
    buckets = [_pair(b) for b in raw_buckets] if isinstance(raw_buckets, list) else []
    # Short palettes repeat; the mapper always hands out COLOR_BUCKET_COUNT buckets.
    while buckets and len(buckets) < COLOR_BUCKET_COUNT:
        buckets.append(buckets[len(buckets) % len(raw_buckets)])
    mod.BUCKET_COLORS = buckets[:COLOR_BUCKET_COUNT] or [_pair({})] * COLOR_BUCKET_COUNT

    gantt = data.get("gantt", {})
    mod.GANTT_HEADER = _pair(gantt.get("header"))
    mod.GANTT_BAR = _pair(gantt.get("bar"))
    mod.GANTT_MILESTONE = _pair(gantt.get("milestone"))
    mod.GANTT_GROUP_HEADER = _pair(gantt.get("group_header"))
    mod.GANTT_PROGRESS = _pair(gantt.get("progress"))
    mod.GANTT_EXPECTED_PROGRESS = _pair(gantt.get("expected_progress"))
    mod.GANTT_TODAY_MARKER = _pair(gantt.get("today_marker"))
    mod.GANTT_DEPENDENCY_ARROW = _pair(gantt.get("dependency_arrow"))
    mod.GANTT_BAND_BG = _pair(gantt.get("band_bg"))
    mod.GANTT_BASE_BG = _pair(gantt.get("base_bg"))
    mod.GANTT_HIGHLIGHT_BG = _pair(gantt.get("highlight_bg"))
    mod.GANTT_WEEKEND_BG = _pair(gantt.get("weekend_bg", {"dark": "#2a1a1a", "light": "#e8d8d8"}))

    ui = data.get("ui", {})
    mod.STATUSBAR_WARNING = _pair(ui.get("statusbar_warning"))
    mod.WARNING_ICON = _pair(ui.get("warning_icon"))


def bucket_color(bucket: int | None) -> ColorPair:
    """Colour for a task's colour bucket; the plain bar colour when unbucketed."""
    if bucket is None:
        return GANTT_BAR
    return BUCKET_COLORS[bucket % len(BUCKET_COLORS)]


# ── Public API ────────────────────────────────────────────────────

def init_theme(vault_dir: Path) -> Path:
    """Copy default_theme.yaml → {vault_dir}/.tui-gantt/theme.yaml.

    Raises FileExistsError if the destination already exists.
    """
    dest = vault_dir / ".tui-gantt" / "theme.yaml"
    if dest.exists():
        raise FileExistsError(str(dest))
    dest.parent.mkdir(parents=True, exist_ok=True)
    src = Path(__file__).parent / "default_theme.yaml"
    shutil.copy2(src, dest)
    return dest


def load_theme(vault_dir: Path | None = None) -> None:
    """Load the default theme and optionally merge vault overrides."""
    default_path = Path(__file__).parent / "default_theme.yaml"
    data = _load_yaml(default_path)

    if vault_dir is not None:
        override_path = vault_dir / ".tui-gantt" / "theme.yaml"
        if override_path.is_file():
            override = _load_yaml(override_path)
            if override:
                data = _deep_merge(data, override)

    _apply(data)


# Apply default theme on module import
load_theme()
