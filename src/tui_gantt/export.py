"""Export timeline tasks to JSON, CSV and Mermaid Gantt formats."""

from __future__ import annotations

import csv
import json
from pathlib import Path

from tui_gantt.models import ConfigError, Task
from tui_gantt.pipeline import Timeline

EXPORT_FORMATS = {".json": "json", ".csv": "csv", ".mmd": "mermaid"}


def _task_to_dict(task: Task) -> dict:
    return {
        "id": task.id,
        "name": task.name,
        "start": task.start_str,
        "end": task.end_str,
        "progress": task.progress,
        "dependencies": list(task.dependency_ids),
        "color_bucket": task.color_bucket,
        "milestone": task.is_milestone,
        "group_header": task.is_group_header,
        "custom_class": task.css_class,
        "source": task.source_key,
    }


def export_json(timeline: Timeline, output_path: Path) -> None:
    """Export tasks plus the resolved role assignment to a JSON file."""
    data = {
        "roles": timeline.roles.as_dict(),
        "show_progress": timeline.show_progress,
        "tasks": [_task_to_dict(t) for t in timeline.tasks],
    }
    output_path.write_text(
        json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8"
    )


def export_csv(timeline: Timeline, output_path: Path) -> None:
    """Export real tasks (no group headers) to a CSV file."""
    headers = ["id", "name", "start", "end", "progress", "dependencies", "color_bucket", "milestone", "source"]

    rows: list[dict[str, str]] = []
    for task in timeline.tasks:
        if task.is_group_header:
            continue
        rows.append({
            "id": task.id,
            "name": task.name,
            "start": task.start_str,
            "end": task.end_str,
            "progress": str(task.progress),
            "dependencies": ", ".join(task.dependency_ids),
            "color_bucket": "" if task.color_bucket is None else str(task.color_bucket),
            "milestone": str(task.is_milestone),
            "source": task.source_key,
        })

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=headers)
        writer.writeheader()
        writer.writerows(rows)


def _safe_mermaid_id(task_id: str) -> str:
    """Create a safe Mermaid task ID from a task id."""
    return "".join(ch if ch.isalnum() or ch in "_-" else "_" for ch in task_id)


def _safe_mermaid_label(name: str) -> str:
    return name.replace(":", " ").replace("#", " ").strip() or "Untitled"


def export_mermaid(timeline: Timeline, output_path: Path) -> None:
    """Export tasks to a Mermaid Gantt chart (.mmd) file.

    Group headers become sections. Dates are written as they are; nothing
    is rescheduled from dependencies.
    """
    lines: list[str] = ["gantt", "    dateFormat YYYY-MM-DD", ""]

    for task in timeline.tasks:
        if task.is_group_header:
            lines.append(f"    section {_safe_mermaid_label(task.name)}")
            continue

        tags = []
        if task.is_milestone:
            tags.append("milestone")
        elif timeline.show_progress and task.progress >= 100:
            tags.append("done")
        elif timeline.show_progress and task.progress > 0:
            tags.append("active")
        tags.append(_safe_mermaid_id(task.id))
        lines.append(
            f"    {_safe_mermaid_label(task.name)} :{', '.join(tags)}, {task.start_str}, {task.end_str}"
        )

    output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def export_timeline(timeline: Timeline, output_path: Path) -> str:
    """Export by file suffix. Returns the format name used."""
    fmt = EXPORT_FORMATS.get(output_path.suffix.lower())
    if fmt is None:
        supported = ", ".join(sorted(EXPORT_FORMATS))
        raise ConfigError(f"Unsupported export format '{output_path.suffix}' (use {supported})")
    if fmt == "json":
        export_json(timeline, output_path)
    elif fmt == "csv":
        export_csv(timeline, output_path)
    else:
        export_mermaid(timeline, output_path)
    return fmt
