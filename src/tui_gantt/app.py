"""Main Textual App for TUI Gantt."""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from datetime import date
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.markup import escape
from textual.widgets import Footer, Header, Static

from tui_gantt import theme
from tui_gantt.commands import GanttCommandProvider
from tui_gantt.config import display_snapshot, load_config, save_config
from tui_gantt.dates import format_date_with_time
from tui_gantt.detect import RoleResolver, field_name
from tui_gantt.editback import DateChange, EditEvent, FieldUpdate, ProgressChange, RecordWriter, translate
from tui_gantt.export import EXPORT_FORMATS, export_timeline
from tui_gantt.models import ProjectConfig, TuiGanttError
from tui_gantt.pipeline import Timeline, build_timeline
from tui_gantt.screens.edit_screen import EditScreen
from tui_gantt.screens.task_screen import TaskScreen
from tui_gantt.screens.warning_screen import WarningScreen
from tui_gantt.vault import Vault, load_vault
from tui_gantt.widgets.gantt_chart import GanttChart, GanttToolbar
from tui_gantt.writer import create_note, read_body

logger = logging.getLogger(__name__)

NEEDS_CONFIGURATION_MESSAGE = (
    "No start date property found.\n"
    "Add a date field such as 'start' to your notes, or set [view] start "
    "in .tui-gantt/config.toml."
)
NO_TASKS_MESSAGE = "No notes with a valid start date."


class GanttApp(App):
    """TUI Gantt Application."""

    TITLE = "TUI Gantt"
    CSS = """
    #state-message {
        height: 1fr;
        content-align: center middle;
        text-align: center;
        color: $text-muted;
        display: none;
    }
    GanttChart {
        height: 1fr;
        border: round $surface-lighten-2;
    }
    GanttChart:focus-within {
        border: round $accent;
    }
    #status-bar {
        dock: bottom;
        height: 1;
        padding: 0 1;
        background: $primary-background;
        color: $text;
    }
    """

    COMMANDS = App.COMMANDS | {GanttCommandProvider}

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("t", "scroll_today", "Today"),
        Binding("r", "reload", "Reload"),
        Binding("exclamation_mark", "warnings", "Warnings"),
        Binding("ctrl+e", "export", "Export", show=False, priority=True),
        Binding("D", "view_day", show=False),
        Binding("W", "view_week", show=False),
        Binding("M", "view_month", show=False),
        Binding("Y", "view_year", show=False),
    ]

    def __init__(self, vault_dir: Path, no_color: bool = False) -> None:
        if no_color:
            os.environ["NO_COLOR"] = "1"
        super().__init__()
        self.vault_dir = vault_dir
        self.config: ProjectConfig = ProjectConfig()
        self.vault: Vault | None = None
        self.timeline = Timeline()
        self._resolver = RoleResolver()
        self._writer: RecordWriter | None = None
        self._chart: GanttChart
        self._snapshot: str = ""

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="state-message")
        self._chart = GanttChart()
        yield self._chart
        yield Static("", id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        self.set_timer(0.01, self._load_vault)

    # ── Loading ──

    def _load_vault(self) -> None:
        theme.load_theme(self.vault_dir)
        self.config = load_config(self.vault_dir)
        self.vault = load_vault(self.vault_dir)
        self._writer = RecordWriter(self.vault)
        self.title = f"TUI Gantt - {self.config.name or self.vault_dir.name}"
        if self.vault.parse_warnings:
            self.notify(f"{len(self.vault.parse_warnings)} note(s) skipped (!)", severity="warning")
        self._refresh_timeline(scroll_to=date.today())

    def _refresh_timeline(self, scroll_to: date | None = None) -> None:
        """Rebuild the task list and hand it to the chart."""
        if self.vault is None:
            return
        view = self.config.view
        self.timeline = build_timeline(self.vault.records, view, self._resolver)

        snapshot = display_snapshot(view, self.timeline.roles)
        if self._snapshot and snapshot != self._snapshot:
            self._rebuild_chart()
        self._snapshot = snapshot

        message = self.query_one("#state-message", Static)
        if self.timeline.needs_configuration or not self.timeline.tasks:
            message.update(NEEDS_CONFIGURATION_MESSAGE if self.timeline.needs_configuration else NO_TASKS_MESSAGE)
            message.display = True
            self._chart.display = False
        else:
            message.display = False
            self._chart.display = True

        self._chart.update_tasks(
            list(self.timeline.tasks),
            view.display(self.timeline.show_progress),
            scroll_to=scroll_to,
        )
        self._update_status_bar()

    def _rebuild_chart(self) -> None:
        """Replace the chart widget, keeping the scroll target at today."""
        logger.debug("Display settings changed, rebuilding chart")
        old = self._chart
        self._chart = GanttChart()
        self.mount(self._chart, before="#status-bar")
        old.remove()
        self._chart.scroll_to_today()

    def _update_status_bar(self) -> None:
        try:
            bar = self.query_one("#status-bar", Static)
        except Exception:
            return
        parts: list[str] = []
        warning_count = len(self.vault.parse_warnings) if self.vault else 0
        if warning_count > 0:
            color = theme.STATUSBAR_WARNING.resolve(self.current_theme.dark)
            parts.append(f"[{color}]⚠ {warning_count} warning(s)[/{color}]")
        task_count = sum(1 for t in self.timeline.tasks if not t.is_group_header)
        parts.append(f"{task_count} task(s)")
        roles = self.timeline.roles
        if roles.start:
            mapped = [f"{name}={value}" for name, value in roles.as_dict().items() if value]
            parts.append(escape(" ".join(mapped)))
        parts.append(f"View: {self.config.view.view_mode}")
        bar.update(" | ".join(parts))

    # ── Chart messages ──

    def on_gantt_chart_task_clicked(self, event: GanttChart.TaskClicked) -> None:
        task = self.timeline.find(event.task_id)
        if task is None or task.is_group_header or self.vault is None:
            return
        body = read_body(self.vault.path_of(task.source_key))
        screen = TaskScreen(
            task,
            dependency_names=self.timeline.dependency_names(task),
            body=body,
            show_progress=self.timeline.show_progress,
        )

        def on_preset(progress: int | None) -> None:
            if progress is not None:
                self._submit(ProgressChange(task.id, progress))

        self.push_screen(screen, callback=on_preset)

    def on_gantt_chart_date_changed(self, event: GanttChart.DateChanged) -> None:
        self._submit(DateChange(event.task_id, event.start, event.end))

    def on_gantt_chart_progress_changed(self, event: GanttChart.ProgressChanged) -> None:
        self._submit(ProgressChange(event.task_id, event.progress))

    def on_gantt_chart_date_clicked(self, event: GanttChart.DateClicked) -> None:
        self._create_task_at(event.date)

    def on_gantt_toolbar_view_mode_changed(self, event: GanttToolbar.ViewModeChanged) -> None:
        self._set_view_mode(event.view_mode)

    # ── Edits ──

    def _submit(self, event: EditEvent) -> None:
        update = translate(event, self.timeline, include_time=self.config.view.include_time)
        if update is None or self._writer is None:
            return
        self.run_worker(self._write(update), group="writes")

    async def _write(self, update: FieldUpdate) -> None:
        if self._writer is None:
            return
        try:
            written = await self._writer.write(update)
        except OSError as e:
            logger.warning("Write to %s failed: %s", update.record_key, e)
            self.notify(f"Could not save {update.record_key}: {e}", severity="error", markup=False)
            return
        if written:
            self._refresh_timeline()
        else:
            self.notify(f"{update.record_key} no longer exists", severity="warning", markup=False)

    def _create_task_at(self, day: date) -> None:
        roles = self.timeline.roles
        if roles.start is None:
            self.notify("Configure a start date property first.", severity="warning")
            return

        def on_title(title: str | None) -> None:
            title = (title or "").strip()
            if not title:
                return
            stamp = format_date_with_time(day, self.config.view.include_time)
            values = {field_name(roles.start): stamp}
            if roles.end:
                values[field_name(roles.end)] = stamp
            try:
                path = create_note(self.vault_dir, title, values)
            except OSError as e:
                self.notify(f"Could not create note: {e}", severity="error", markup=False)
                return
            self.notify(f"Created {path.name}", severity="information", markup=False)
            self.action_reload()

        self.push_screen(EditScreen(f"New task on {day.isoformat()}", "Untitled"), callback=on_title)

    # ── Actions ──

    def action_scroll_today(self) -> None:
        self._chart.scroll_to_today()

    def action_create_task(self) -> None:
        self._create_task_at(date.today())

    def action_reload(self) -> None:
        self._resolver.invalidate()
        theme.load_theme(self.vault_dir)
        self.config = load_config(self.vault_dir)
        if self.vault is None:
            self._load_vault()
            return
        self.vault.reload()
        self._refresh_timeline()

    def action_warnings(self) -> None:
        warnings = self.vault.parse_warnings if self.vault else []
        self.push_screen(WarningScreen(warnings))

    def _set_view_mode(self, view_mode: str) -> None:
        if view_mode == self.config.view.view_mode:
            return
        self.config.view = replace(self.config.view, view_mode=view_mode)
        try:
            save_config(self.vault_dir, self.config)
        except OSError as e:
            logger.warning("Cannot save config: %s", e)
        self._refresh_timeline()

    def action_view_day(self) -> None:
        self._set_view_mode("Day")

    def action_view_week(self) -> None:
        self._set_view_mode("Week")

    def action_view_month(self) -> None:
        self._set_view_mode("Month")

    def action_view_year(self) -> None:
        self._set_view_mode("Year")

    def action_export(self) -> None:
        suffixes = "/".join(sorted(EXPORT_FORMATS))
        self.push_screen(
            EditScreen(f"Export filename ({suffixes})", "timeline.json"),
            callback=self._on_export_filename,
        )

    def _on_export_filename(self, filename: str | None) -> None:
        if not filename or not filename.strip():
            return
        output_path = self.vault_dir / filename.strip()
        try:
            export_timeline(self.timeline, output_path)
            self.notify(f"Exported to {output_path.name}", severity="information")
        except (TuiGanttError, OSError) as e:
            self.notify(f"Export failed: {e}", severity="error", markup=False)
