"""Gantt chart custom widget.

Draws a flat list of tasks and reports user edits as messages. It never
changes a task itself; the app turns the messages into record writes and
hands back a fresh task list.
"""

from __future__ import annotations

import asyncio
import time
from datetime import date, timedelta

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.geometry import Size
from textual.message import Message
from textual.scroll_view import ScrollView
from textual.strip import Strip
from textual.widget import Widget

from rich.segment import Segment
from rich.style import Style
from rich.text import Text

from tui_gantt import theme
from tui_gantt.models import DEFAULT_VIEW_MODE, VIEW_MODES, DisplayConfig, Task
from tui_gantt.sorter import collect_dependents


# view mode -> (days per column block, characters per block)
SCALE_CONFIG: dict[str, tuple[int, int]] = {
    "Quarter day": (1, 8),
    "Half day": (1, 4),
    "Day": (1, 3),
    "Week": (7, 7),
    "Month": (30, 6),
    "Year": (365, 6),
}

SCALE_LABELS = {
    "Quarter day": "QD",
    "Half day": "HD",
    "Day": "D",
    "Week": "W",
    "Month": "M",
    "Year": "Y",
}

PROGRESS_STEP = 10
# Seconds after a drag during which a click on the chart is ignored.
DRAG_CLICK_SUPPRESSION = 0.05


def date_to_col(d: date, date_start: date, view_mode: str) -> int:
    """Character column of the left edge of day *d*."""
    days_per_col, col_width = SCALE_CONFIG.get(view_mode, SCALE_CONFIG[DEFAULT_VIEW_MODE])
    return (d - date_start).days * col_width // days_per_col


def col_to_date(col: int, date_start: date, view_mode: str) -> date:
    days_per_col, col_width = SCALE_CONFIG.get(view_mode, SCALE_CONFIG[DEFAULT_VIEW_MODE])
    return date_start + timedelta(days=col * days_per_col // col_width)


def chart_range(tasks: list[Task], today: date, view_mode: str) -> tuple[date, date]:
    """First and last day drawn: all tasks plus today, with some padding."""
    days_per_col, _ = SCALE_CONFIG.get(view_mode, SCALE_CONFIG[DEFAULT_VIEW_MODE])
    starts = [t.start for t in tasks] + [today]
    ends = [t.end for t in tasks] + [today]
    date_start = min(starts) - timedelta(days=days_per_col * 2)
    date_end = max(ends) + timedelta(days=days_per_col * 4)
    if view_mode == "Week":
        date_start -= timedelta(days=date_start.weekday())
    return date_start, date_end


def expected_progress(task: Task, today: date) -> int:
    """Share of the task's span already elapsed today, in percent."""
    span = (task.end - task.start).days
    if span <= 0:
        return 100 if today >= task.start else 0
    elapsed = (today - task.start).days
    return max(0, min(100, elapsed * 100 // span))


def _group_label(view_mode: str, d: date) -> str:
    if view_mode in ("Month",):
        return d.strftime("%Y")
    if view_mode == "Year":
        return ""
    return d.strftime("%b %Y")


def _detail_label(view_mode: str, d: date) -> str:
    if view_mode == "Week":
        return f"W{d.isocalendar()[1]}"
    if view_mode == "Month":
        return d.strftime("%b")
    if view_mode == "Year":
        return d.strftime("%Y")
    return d.strftime("%d")


class GanttToolbar(Widget):
    """1-line toolbar showing today's date and clickable view mode buttons."""

    class ViewModeChanged(Message):
        def __init__(self, view_mode: str) -> None:
            super().__init__()
            self.view_mode = view_mode

    DEFAULT_CSS = """
    GanttToolbar {
        height: 1;
        background: $background;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._view_mode: str = DEFAULT_VIEW_MODE
        self._today: date = date.today()
        self._button_regions: list[tuple[int, int, str]] = []

    def update_toolbar(self, view_mode: str, today: date | None = None) -> None:
        self._view_mode = view_mode
        if today is not None:
            self._today = today
        self.refresh()

    @property
    def _is_dark(self) -> bool:
        try:
            return self.app.current_theme.dark
        except Exception:
            return True

    def render(self) -> Text:
        text = Text()
        today_str = f"Today: {self._today.isoformat()}"
        text.append(today_str, Style(bold=True, color=theme.GANTT_TODAY_MARKER.resolve(self._is_dark)))

        self._button_regions = []
        text.append("  │ ", Style(dim=True))
        for i, mode in enumerate(VIEW_MODES):
            label = SCALE_LABELS[mode]
            start = len(text)
            if mode == self._view_mode:
                text.append(f" {label} ", Style(bold=True, reverse=True))
            else:
                text.append(f" {label} ", Style(dim=True))
            self._button_regions.append((start, len(text), mode))
            if i < len(VIEW_MODES) - 1:
                text.append("│", Style(dim=True))
        return text

    def on_click(self, event) -> None:
        for start, end, mode in self._button_regions:
            if start <= event.x < end:
                if mode != self._view_mode:
                    self.post_message(self.ViewModeChanged(mode))
                return


class GanttHeader(Widget):
    """Fixed two-row header: group labels (month/year) and block labels."""

    DEFAULT_CSS = """
    GanttHeader {
        height: 2;
        background: $background;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._view_mode: str = DEFAULT_VIEW_MODE
        self._date_start: date = date.today()
        self._date_end: date = date.today()
        self._chart_width: int = 60
        self.scroll_x_offset: int = 0

    def update_header(self, view_mode: str, date_start: date, date_end: date, chart_width: int) -> None:
        self._view_mode = view_mode
        self._date_start = date_start
        self._date_end = date_end
        self._chart_width = chart_width
        self.refresh()

    @property
    def _is_dark(self) -> bool:
        try:
            return self.app.current_theme.dark
        except Exception:
            return True

    def _blocks(self) -> list[tuple[int, date]]:
        days_per_col, _ = SCALE_CONFIG.get(self._view_mode, SCALE_CONFIG[DEFAULT_VIEW_MODE])
        blocks = []
        cur = self._date_start
        while cur <= self._date_end:
            blocks.append((date_to_col(cur, self._date_start, self._view_mode), cur))
            cur += timedelta(days=days_per_col)
        return blocks

    def render_line(self, y: int) -> Strip:
        width = max(self.size.width, self._chart_width)
        if y > 1:
            return Strip.blank(self.size.width)
        dark = self._is_dark
        header_style = Style(bold=True, color=theme.GANTT_HEADER.resolve(dark))
        band = Style(bgcolor=theme.GANTT_BAND_BG.resolve(dark))
        base = Style(bgcolor=theme.GANTT_BASE_BG.resolve(dark))

        chars = [" "] * width
        styles = [base] * width
        blocks = self._blocks()
        prev_group = None
        group_index = -1
        for i, (col, d) in enumerate(blocks):
            next_col = blocks[i + 1][0] if i + 1 < len(blocks) else width
            if y == 0:
                label = _group_label(self._view_mode, d)
                if label != prev_group:
                    prev_group = label
                    group_index += 1
                    for j, ch in enumerate(label):
                        if col + j < width:
                            chars[col + j] = ch
                bg = band if group_index % 2 == 1 else base
            else:
                label = _detail_label(self._view_mode, d)[: max(0, next_col - col)]
                for j, ch in enumerate(label):
                    if col + j < width:
                        chars[col + j] = ch
                bg = band if i % 2 == 1 else base
            for c in range(col, min(next_col, width)):
                styles[c] = header_style + bg

        full = Strip([Segment(ch, st) for ch, st in zip(chars, styles)])
        return full.crop(self.scroll_x_offset, self.scroll_x_offset + self.size.width)


class GanttChart(Container):
    """Gantt chart showing one row per task."""

    DEFAULT_CSS = """
    GanttChart {
        width: 1fr;
        height: 1fr;
    }
    GanttChart #gantt-header {
        height: 2;
    }
    GanttChart #gantt-view {
        height: 1fr;
    }
    """

    class TaskClicked(Message):
        def __init__(self, task_id: str) -> None:
            super().__init__()
            self.task_id = task_id

    class DateChanged(Message):
        def __init__(self, task_id: str, start: date, end: date) -> None:
            super().__init__()
            self.task_id = task_id
            self.start = start
            self.end = end

    class ProgressChanged(Message):
        def __init__(self, task_id: str, progress: int) -> None:
            super().__init__()
            self.task_id = task_id
            self.progress = progress

    class DateClicked(Message):
        def __init__(self, clicked: date) -> None:
            super().__init__()
            self.date = clicked

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._tasks: list[Task] = []
        self._display = DisplayConfig()
        self._today = date.today()
        self._scroll_target: date | None = None
        self._pending_rebuild: bool = False

    def compose(self) -> ComposeResult:
        yield GanttToolbar(id="gantt-toolbar")
        yield GanttHeader(id="gantt-header")
        yield GanttView(id="gantt-view")

    def on_mount(self) -> None:
        if self._tasks:
            self._push_to_view()

    def update_tasks(self, tasks: list[Task], display: DisplayConfig, scroll_to: date | None = None) -> None:
        """Replace the drawn tasks. *scroll_to* centres the view on a date once."""
        self._tasks = list(tasks)
        self._display = display
        if scroll_to is not None:
            self._scroll_target = scroll_to
        self._push_to_view()

    def scroll_to_today(self) -> None:
        self._scroll_target = self._today
        self._push_to_view()

    def on_gantt_view_scroll_x_changed(self, event: GanttView.ScrollXChanged) -> None:
        header = self.query_one("#gantt-header", GanttHeader)
        header.scroll_x_offset = int(event.scroll_x)
        header.refresh()

    def _push_to_view(self) -> None:
        """Push current tasks and display config to the view and header."""
        try:
            view = self.query_one("#gantt-view", GanttView)
            header = self.query_one("#gantt-header", GanttHeader)
            toolbar = self.query_one("#gantt-toolbar", GanttToolbar)
        except Exception:
            if not self._pending_rebuild:
                try:
                    asyncio.get_running_loop()
                except RuntimeError:
                    return
                self._pending_rebuild = True
                self.set_timer(0.01, self._push_to_view)
            return

        self._pending_rebuild = False
        view.update_gantt(self._tasks, self._display, self._today)
        header.update_header(
            view_mode=self._display.view_mode,
            date_start=view.date_start,
            date_end=view.date_end,
            chart_width=view.chart_width,
        )
        toolbar.update_toolbar(self._display.view_mode, self._today)
        if self._scroll_target is not None:
            view.scroll_to_date(self._scroll_target)
            self._scroll_target = None


class GanttView(ScrollView, can_focus=True):
    """Renders the Gantt bars (data rows only, no header)."""

    BINDINGS = [
        Binding("up", "cursor_up", "Up", show=False),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", show=False),
        Binding("j", "cursor_down", show=False),
        Binding("left", "move(-1)", "Earlier", show=False),
        Binding("right", "move(1)", "Later", show=False),
        Binding("shift+left", "move_with_dependents(-1)", show=False),
        Binding("shift+right", "move_with_dependents(1)", show=False),
        Binding("less_than_sign", "resize(-1)", "Shorter", show=False),
        Binding("greater_than_sign", "resize(1)", "Longer", show=False),
        Binding("plus", "progress(1)", "Progress +", show=False),
        Binding("minus", "progress(-1)", "Progress -", show=False),
        Binding("enter", "open_task", "Open", show=False),
        Binding("n", "new_at_cursor", "New task", show=False),
    ]

    class ScrollXChanged(Message):
        """Emitted when horizontal scroll position changes."""

        def __init__(self, scroll_x: float) -> None:
            super().__init__()
            self.scroll_x = scroll_x

    DEFAULT_CSS = """
    GanttView {
        height: 1fr;
        background: $background;
        overflow-y: auto;
        overflow-x: auto;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._tasks: list[Task] = []
        self._display = DisplayConfig()
        self._today: date = date.today()
        self.date_start: date = date.today()
        self.date_end: date = date.today()
        self.chart_width: int = 60
        self.cursor_row: int = 0
        self._drag_task: Task | None = None
        self._drag_origin: int = 0
        self._drag_offset: int = 0
        self._last_drag_end: float = 0.0

    # ── Data ──

    def update_gantt(self, tasks: list[Task], display: DisplayConfig, today: date) -> None:
        selected = self.selected_task
        self._tasks = tasks
        self._display = display
        self._today = today
        self.date_start, self.date_end = chart_range(tasks, today, display.view_mode)
        self.chart_width = max(40, date_to_col(self.date_end, self.date_start, display.view_mode))

        # Keep the cursor on the same task across refreshes.
        self.cursor_row = 0
        if selected is not None:
            for i, t in enumerate(tasks):
                if t.id == selected.id:
                    self.cursor_row = i
                    break

        self.virtual_size = Size(self.chart_width, len(tasks))
        self.refresh()

    @property
    def selected_task(self) -> Task | None:
        if 0 <= self.cursor_row < len(self._tasks):
            return self._tasks[self.cursor_row]
        return None

    def scroll_to_date(self, d: date) -> None:
        col = date_to_col(d, self.date_start, self._display.view_mode)
        self.scroll_to(x=max(0, col - self.size.width // 4), animate=False)

    def watch_scroll_x(self, old: float, new: float) -> None:
        super().watch_scroll_x(old, new)
        self.post_message(self.ScrollXChanged(new))

    # ── Actions ──

    def _set_cursor(self, row: int) -> None:
        if not self._tasks:
            return
        self.cursor_row = max(0, min(len(self._tasks) - 1, row))
        top = int(self.scroll_y)
        height = max(1, self.size.height)
        if self.cursor_row < top:
            self.scroll_to(y=self.cursor_row, animate=False)
        elif self.cursor_row >= top + height:
            self.scroll_to(y=self.cursor_row - height + 1, animate=False)
        self.refresh()

    def action_cursor_up(self) -> None:
        self._set_cursor(self.cursor_row - 1)

    def action_cursor_down(self) -> None:
        self._set_cursor(self.cursor_row + 1)

    def _editable_task(self) -> Task | None:
        task = self.selected_task
        if task is None or task.is_group_header:
            return None
        return task

    def action_move(self, days: int) -> None:
        task = self._editable_task()
        if task is None:
            return
        delta = timedelta(days=days)
        self.post_message(GanttChart.DateChanged(task.id, task.start + delta, task.end + delta))

    def action_move_with_dependents(self, days: int) -> None:
        """Shift a bar and everything depending on it; one message per bar."""
        task = self._editable_task()
        if task is None:
            return
        delta = timedelta(days=days)
        for t in [task, *collect_dependents(self._tasks, task.id)]:
            if t.is_group_header:
                continue
            self.post_message(GanttChart.DateChanged(t.id, t.start + delta, t.end + delta))

    def action_resize(self, days: int) -> None:
        task = self._editable_task()
        if task is None:
            return
        new_end = max(task.start + timedelta(days=1), task.end + timedelta(days=days))
        if new_end != task.end:
            self.post_message(GanttChart.DateChanged(task.id, task.start, new_end))

    def action_progress(self, direction: int) -> None:
        task = self._editable_task()
        if task is None or not self._display.show_progress:
            return
        progress = max(0, min(100, task.progress + direction * PROGRESS_STEP))
        if progress != task.progress:
            self.post_message(GanttChart.ProgressChanged(task.id, progress))

    def action_open_task(self) -> None:
        task = self._editable_task()
        if task is not None:
            self.post_message(GanttChart.TaskClicked(task.id))

    def action_new_at_cursor(self) -> None:
        task = self.selected_task
        self.post_message(GanttChart.DateClicked(task.start if task else self._today))

    def _task_at(self, x: int, y: int) -> Task | None:
        """The task whose bar covers widget position (x, y)."""
        row = y + int(self.scroll_y)
        col = x + int(self.scroll_x)
        if not 0 <= row < len(self._tasks):
            return None
        task = self._tasks[row]
        if task.is_group_header:
            return None
        start_col = date_to_col(task.start, self.date_start, self._display.view_mode)
        end_col = date_to_col(task.end, self.date_start, self._display.view_mode)
        if start_col <= col < max(start_col + 1, end_col):
            return task
        return None

    def on_mouse_down(self, event) -> None:
        task = self._task_at(event.x, event.y)
        if task is None:
            return
        self._drag_task = task
        self._drag_origin = event.x + int(self.scroll_x)
        self._drag_offset = 0
        self.capture_mouse()

    def on_mouse_move(self, event) -> None:
        if self._drag_task is not None:
            self._drag_offset = event.x + int(self.scroll_x) - self._drag_origin

    def on_mouse_up(self, event) -> None:
        task = self._drag_task
        if task is None:
            return
        self._drag_task = None
        self.capture_mouse(False)
        mode = self._display.view_mode
        origin_date = col_to_date(self._drag_origin, self.date_start, mode)
        days = (col_to_date(self._drag_origin + self._drag_offset, self.date_start, mode) - origin_date).days
        if days:
            self._last_drag_end = time.monotonic()
            delta = timedelta(days=days)
            self.post_message(GanttChart.DateChanged(task.id, task.start + delta, task.end + delta))

    def on_click(self, event) -> None:
        # A drag ends with a click; that click must not open the task.
        if time.monotonic() - self._last_drag_end < DRAG_CLICK_SUPPRESSION:
            return
        row = event.y + int(self.scroll_y)
        col = event.x + int(self.scroll_x)
        if 0 <= row < len(self._tasks):
            self._set_cursor(row)
        task = self._task_at(event.x, event.y)
        if task is not None:
            self.post_message(GanttChart.TaskClicked(task.id))
            return
        self.post_message(GanttChart.DateClicked(col_to_date(col, self.date_start, self._display.view_mode)))

    # ── Rendering ──

    @property
    def _is_dark(self) -> bool:
        try:
            return self.app.current_theme.dark
        except Exception:
            return True

    def render_line(self, y: int) -> Strip:
        width = max(self.size.width, self.chart_width)
        scroll_x = int(self.scroll_x)
        # ScrollView does not offset y for us.
        row = y + int(self.scroll_y)

        if not self._tasks:
            if y == 0:
                text = Text("  No tasks", style="dim")
                return Strip(text.render(self.app.console))
            return Strip.blank(self.size.width)

        if row < 0 or row >= len(self._tasks):
            return Strip.blank(self.size.width)

        full = self._render_row(self._tasks[row], row, width)
        return full.crop(scroll_x, scroll_x + self.size.width)

    def _row_background(self, row: int) -> tuple[Style, Style | None]:
        dark = self._is_dark
        if row == self.cursor_row and self.has_focus:
            return Style(bgcolor=theme.GANTT_HIGHLIGHT_BG.resolve(dark)), None
        bg = theme.GANTT_BAND_BG if row % 2 == 1 else theme.GANTT_BASE_BG
        weekend = None
        if self._display.view_mode in ("Quarter day", "Half day", "Day"):
            weekend = Style(bgcolor=theme.GANTT_WEEKEND_BG.resolve(dark))
        return Style(bgcolor=bg.resolve(dark)), weekend

    def _render_row(self, task: Task, row: int, width: int) -> Strip:
        dark = self._is_dark
        mode = self._display.view_mode
        base, weekend = self._row_background(row)

        chars = [" "] * width
        styles = [base] * width
        if weekend is not None:
            for c in range(width):
                if col_to_date(c, self.date_start, mode).weekday() >= 5:
                    styles[c] = weekend

        today_col = date_to_col(self._today, self.date_start, mode)
        if 0 <= today_col < width:
            chars[today_col] = "│"
            styles[today_col] = styles[today_col] + Style(color=theme.GANTT_TODAY_MARKER.resolve(dark))

        start_col = date_to_col(task.start, self.date_start, mode)
        end_col = max(start_col + 1, date_to_col(task.end, self.date_start, mode))

        def put(c: int, ch: str, style: Style) -> None:
            if 0 <= c < width:
                chars[c] = ch
                styles[c] = styles[c] + style

        if task.is_group_header:
            header_style = Style(color=theme.GANTT_GROUP_HEADER.resolve(dark), bold=True)
            for c in range(start_col, end_col):
                put(c, "━", header_style)
        elif task.is_milestone:
            put(start_col, "◆", Style(color=theme.GANTT_MILESTONE.resolve(dark), bold=True))
        else:
            bar_style = Style(color=theme.bucket_color(task.color_bucket).resolve(dark))
            bar_len = end_col - start_col
            filled = bar_len * task.progress // 100 if self._display.show_progress else 0
            expected = 0
            if self._display.show_expected_progress:
                expected = bar_len * expected_progress(task, self._today) // 100
            for i, c in enumerate(range(start_col, end_col)):
                if i < filled:
                    put(c, "█", bar_style)
                elif i < expected:
                    put(c, "▒", bar_style)
                else:
                    put(c, "▓" if not self._display.show_progress else "░", bar_style)
            if task.dependency_ids and start_col > 0:
                put(start_col - 1, "→", Style(color=theme.GANTT_DEPENDENCY_ARROW.resolve(dark)))

        # Label after the bar, or before it when the bar reaches the edge.
        label = f" {task.name}"
        label_style = Style(bold=task.is_group_header)
        label_col = end_col if end_col + len(label) <= width else max(0, start_col - len(label) - 1)
        for i, ch in enumerate(label):
            put(label_col + i, ch, label_style)

        return Strip([Segment(ch, st) for ch, st in zip(chars, styles)])
