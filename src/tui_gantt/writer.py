"""Frontmatter writer for notes. Touches only the fields it is given."""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from typing import Any

import yaml

from tui_gantt.dates import DATE_ONLY_RE

ISO_DATETIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}$")
PLAIN_KEY_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_\- ]*$")
DELIMITER_RE = re.compile(r"^---[ \t]*$")

PREVIEW_LIMIT = 300


def _format_key(key: str) -> str:
    if PLAIN_KEY_RE.match(key) and not key.endswith(" "):
        return key
    return _dump_scalar(key)


def _dump_scalar(value: Any) -> str:
    text = yaml.safe_dump(value, default_flow_style=True, allow_unicode=True, width=10_000)
    if text.endswith("\n...\n"):
        text = text[: -len("\n...\n")]
    return text.strip()


def format_value(value: Any) -> str:
    """YAML text for a field value. Dates stay bare so they read back as dates."""
    if isinstance(value, str) and (DATE_ONLY_RE.match(value) or ISO_DATETIME_RE.match(value)):
        return value
    return _dump_scalar(value)


def _key_pattern(key: str) -> re.Pattern[str]:
    quoted = re.escape(key)
    return re.compile(rf"^(?:{quoted}|'{quoted}'|\"{quoted}\")[ \t]*:(?:[ \t]|$)")


def _is_continuation(line: str) -> bool:
    """Lines that still belong to the previous top-level key's value."""
    return line.startswith((" ", "\t", "- ")) or line.rstrip() == "-"


def _find_key(lines: list[str], start: int, stop: int, key: str) -> tuple[int, int] | None:
    """Line span [first, last) holding top-level *key* within lines[start:stop]."""
    pattern = _key_pattern(key)
    for i in range(start, stop):
        if pattern.match(lines[i]):
            j = i + 1
            while j < stop:
                if _is_continuation(lines[j]):
                    j += 1
                elif not lines[j].strip() and j + 1 < stop and _is_continuation(lines[j + 1]):
                    j += 1  # blank line inside a block value
                else:
                    break
            return i, j
    return None


def _frontmatter_bounds(lines: list[str]) -> tuple[int, int] | None:
    """Indices of the opening and closing ``---`` lines, if the note has frontmatter."""
    if not lines or not DELIMITER_RE.match(lines[0]):
        return None
    for i in range(1, len(lines)):
        if DELIMITER_RE.match(lines[i]):
            return 0, i
    return None


def update_frontmatter(content: str, values: dict[str, Any]) -> str:
    """Return *content* with the given top-level frontmatter keys set.

    Existing keys are rewritten in place, new keys are appended at the end of
    the block, and a block is created when the note has none. Every other
    line is left exactly as it was.
    """
    newline = "\r\n" if "\r\n" in content else "\n"
    lines = content.split(newline)

    bounds = _frontmatter_bounds(lines)
    if bounds is None:
        header = ["---"] + [f"{_format_key(k)}: {format_value(v)}" for k, v in values.items()] + ["---"]
        return newline.join(header) + newline + content

    _, close = bounds
    for key, value in values.items():
        new_line = f"{_format_key(key)}: {format_value(value)}"
        span = _find_key(lines, 1, close, key)
        if span is None:
            lines.insert(close, new_line)
            close += 1
        else:
            first, last = span
            lines[first:last] = [new_line]
            close -= (last - first) - 1
    return newline.join(lines)


def write_note(path: Path, content: str) -> None:
    """Write a note atomically.

    1. Write to a temp file in the same directory
    2. Atomic rename (os.replace) temp -> target
    """
    target_dir = path.parent
    target_dir.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=target_dir, suffix=".tmp", prefix=".tui-gantt-")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def _unique_note_path(vault_dir: Path, title: str) -> Path:
    candidate = vault_dir / f"{title}.md"
    counter = 1
    while candidate.exists():
        candidate = vault_dir / f"{title} {counter}.md"
        counter += 1
    return candidate


def create_note(vault_dir: Path, title: str, values: dict[str, Any]) -> Path:
    """Create ``title.md`` (or ``title N.md``) holding only frontmatter."""
    path = _unique_note_path(vault_dir, title)
    write_note(path, update_frontmatter("", values))
    return path


def read_body(path: Path, limit: int = PREVIEW_LIMIT) -> str:
    """Body text of a note for previews: frontmatter removed, truncated."""
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return ""
    lines = content.replace("\r\n", "\n").split("\n")
    bounds = _frontmatter_bounds(lines)
    if bounds is not None:
        lines = lines[bounds[1] + 1:]
    body = "\n".join(lines).strip()
    if len(body) > limit:
        return body[:limit] + "..."
    return body
