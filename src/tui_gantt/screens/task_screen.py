"""Task details modal with progress presets."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Static

from tui_gantt.models import Task

PROGRESS_PRESETS = (0, 25, 50, 75, 100)


def describe_range(task: Task) -> str:
    if task.is_milestone:
        return f"{task.start_str} (milestone)"
    days = task.duration_days
    return f"{task.start_str} → {task.end_str} ({days} day{'s' if days != 1 else ''})"


class TaskScreen(ModalScreen[int | None]):
    """Shows one task. Dismisses with the chosen progress preset, if any."""

    BINDINGS = [("escape", "cancel", "Close")]

    DEFAULT_CSS = """
    TaskScreen {
        align: center middle;
    }
    #task-container {
        width: 70;
        max-height: 85%;
        height: auto;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }
    #task-title {
        text-style: bold;
        margin-bottom: 1;
    }
    .field-label {
        margin-top: 1;
        color: $text-muted;
    }
    #task-body {
        margin-top: 1;
        color: $text-muted;
    }
    #task-presets {
        align: center middle;
        height: 3;
        margin-top: 1;
    }
    #task-presets Button {
        min-width: 8;
        margin: 0 1;
    }
    """

    def __init__(
        self,
        task: Task,
        dependency_names: list[str] | None = None,
        body: str = "",
        show_progress: bool = False,
    ) -> None:
        super().__init__()
        self._shown = task
        self._dependency_names = dependency_names or []
        self._body = body
        self._show_progress = show_progress

    def compose(self) -> ComposeResult:
        task = self._shown
        with VerticalScroll(id="task-container"):
            yield Static(task.name, id="task-title", markup=False)
            yield Static("Dates", classes="field-label")
            yield Static(describe_range(task), id="task-dates")
            if self._show_progress:
                yield Static("Progress", classes="field-label")
                yield Static(f"{task.progress}%", id="task-progress")
            if self._dependency_names:
                yield Static("Depends on", classes="field-label")
                yield Static(", ".join(self._dependency_names), id="task-dependencies", markup=False)
            if self._body:
                yield Static(self._body, id="task-body", markup=False)
            if self._show_progress:
                with Horizontal(id="task-presets"):
                    for value in PROGRESS_PRESETS:
                        yield Button(f"{value}%", id=f"preset-{value}")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""
        if button_id.startswith("preset-"):
            self.dismiss(int(button_id.removeprefix("preset-")))

    def action_cancel(self) -> None:
        self.dismiss(None)
