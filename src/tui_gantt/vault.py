"""Read a folder of markdown notes into records."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from tui_gantt.models import NoteRecord, ParseWarning
from tui_gantt.writer import update_frontmatter, write_note

logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE)


def _is_binary(content: bytes) -> bool:
    """Check if content appears to be binary."""
    return b"\x00" in content[:8192]


def split_frontmatter(content: str) -> tuple[str | None, str]:
    """Split a note into its raw YAML frontmatter (or None) and body."""
    m = FRONTMATTER_RE.match(content)
    if not m:
        return None, content
    return m.group(1), content[m.end():]


def _parse_fields(
    raw: str, file_path: str, warnings: list[ParseWarning]
) -> dict[str, Any] | None:
    try:
        data = yaml.safe_load(raw) if raw.strip() else {}
    except yaml.YAMLError as e:
        line = 0
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            line = mark.line + 2  # 1-based, after the opening ---
        warnings.append(ParseWarning(file_path, line, f"Invalid frontmatter: {e}"))
        return None
    if data is None:
        return {}
    if not isinstance(data, dict):
        warnings.append(ParseWarning(file_path, 1, "Frontmatter is not a mapping, skipping"))
        return None
    return {str(k): v for k, v in data.items()}


def note_key(path: Path, vault_dir: Path) -> str:
    return path.relative_to(vault_dir).as_posix()


def parse_note_text(content: str, key: str, warnings: list[ParseWarning]) -> NoteRecord | None:
    """Build a record from note text. None when the frontmatter is unusable."""
    raw, body = split_frontmatter(content)
    fields: dict[str, Any] = {}
    if raw is not None:
        parsed = _parse_fields(raw, key, warnings)
        if parsed is None:
            return None
        fields = parsed
    name = key.rsplit("/", 1)[-1]
    if name.endswith(".md"):
        name = name[:-3]
    return NoteRecord(key=key, name=name, fields=fields, body=body)


def parse_note(path: Path, vault_dir: Path, warnings: list[ParseWarning]) -> NoteRecord | None:
    """Parse a single note. Problems are appended to *warnings*."""
    key = note_key(path, vault_dir)

    try:
        raw_bytes = path.read_bytes()
    except OSError as e:
        warnings.append(ParseWarning(key, 0, f"Cannot read file: {e}"))
        return None

    if _is_binary(raw_bytes):
        warnings.append(ParseWarning(key, 0, "File appears to be binary, skipping"))
        return None

    try:
        content = raw_bytes.decode("utf-8")
    except UnicodeDecodeError:
        warnings.append(ParseWarning(key, 0, "File is not valid UTF-8, skipping"))
        return None

    return parse_note_text(content, key, warnings)


def _note_paths(vault_dir: Path) -> list[Path]:
    paths = []
    for path in sorted(vault_dir.rglob("*.md")):
        rel = path.relative_to(vault_dir)
        if any(part.startswith(".") for part in rel.parts):
            continue
        if path.is_file():
            paths.append(path)
    return paths


class Vault:
    """The notes of one folder, in path order. Also the write target for edits."""

    def __init__(self, dir_path: Path) -> None:
        self.dir_path = dir_path
        self.parse_warnings: list[ParseWarning] = []
        self._records: dict[str, NoteRecord] = {}

    @property
    def records(self) -> list[NoteRecord]:
        return list(self._records.values())

    def get(self, key: str) -> NoteRecord | None:
        return self._records.get(key)

    def path_of(self, key: str) -> Path:
        return self.dir_path / key

    def reload(self) -> None:
        self.parse_warnings = []
        records: dict[str, NoteRecord] = {}
        if not self.dir_path.is_dir():
            self.parse_warnings.append(
                ParseWarning(str(self.dir_path), 0, "Vault directory does not exist")
            )
        else:
            for path in _note_paths(self.dir_path):
                record = parse_note(path, self.dir_path, self.parse_warnings)
                if record is not None:
                    records[record.key] = record
        self._records = records
        logger.debug(
            "Loaded %d note(s) from %s with %d warning(s)",
            len(records), self.dir_path, len(self.parse_warnings),
        )

    def update_fields(self, key: str, values: dict[str, Any]) -> bool:
        """Write *values* into one note's frontmatter. False if the note is gone."""
        path = self.path_of(key)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self._records.pop(key, None)
            return False
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Cannot update %s: %s", key, e)
            return False

        updated = update_frontmatter(content, values)
        write_note(path, updated)

        warnings: list[ParseWarning] = []
        record = parse_note_text(updated, key, warnings)
        if record is not None:
            self._records[key] = record
        return True


def load_vault(dir_path: Path) -> Vault:
    """Read every ``*.md`` note below *dir_path*, skipping hidden folders."""
    vault = Vault(dir_path)
    vault.reload()
    return vault
