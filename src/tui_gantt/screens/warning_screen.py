"""Vault warnings modal screen."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.markup import escape
from textual.screen import ModalScreen
from textual.widgets import Static

from tui_gantt.models import ParseWarning
from tui_gantt import theme


class WarningScreen(ModalScreen[None]):
    """Modal screen listing notes that could not be read."""

    BINDINGS = [("escape", "dismiss", "Close")]

    DEFAULT_CSS = """
    WarningScreen {
        align: center middle;
    }
    #warning-container {
        width: 70;
        max-height: 80%;
        background: $surface;
        border: thick $warning;
        padding: 1 2;
    }
    #warning-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }
    """

    def __init__(self, warnings: list[ParseWarning]) -> None:
        super().__init__()
        self.warnings = warnings

    def compose(self) -> ComposeResult:
        icon = theme.WARNING_ICON.resolve(self.app.current_theme.dark)
        with VerticalScroll(id="warning-container"):
            yield Static(
                f"[bold]Skipped notes ({len(self.warnings)})[/bold]",
                id="warning-title",
            )
            if not self.warnings:
                yield Static("No warnings.")
            for w in self.warnings:
                yield Static(f"[{icon}]⚠[/{icon}] {escape(str(w))}", markup=True, classes="warning-item")
