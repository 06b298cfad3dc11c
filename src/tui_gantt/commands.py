"""Command Palette provider for TUI Gantt."""

from __future__ import annotations

from dataclasses import dataclass

from textual.command import Hit, Hits, Provider


@dataclass(frozen=True)
class CommandDef:
    """A single command entry for the palette."""

    display: str
    action: str
    help: str = ""
    category: str = ""


COMMANDS: list[CommandDef] = [
    # -- Navigation --
    CommandDef("Scroll to Today", "scroll_today", "Scroll the chart to today (t)", "Navigation"),
    # -- Edit --
    CommandDef("Create Task", "create_task", "Create a note starting on the selected date (n)", "Edit"),
    # -- View --
    CommandDef("View: Day", "view_day", "Show one column per day (D)", "View"),
    CommandDef("View: Week", "view_week", "Show one column per week (W)", "View"),
    CommandDef("View: Month", "view_month", "Show one column per month (M)", "View"),
    CommandDef("View: Year", "view_year", "Show one column per year (Y)", "View"),
    CommandDef("Warnings", "warnings", "Show notes that could not be read (!)", "View"),
    # -- File --
    CommandDef("Reload", "reload", "Re-read all notes and configuration (r)", "File"),
    CommandDef("Export", "export", "Export to JSON/CSV/Mermaid (ctrl+e)", "File"),
]


class GanttCommandProvider(Provider):
    """Textual Command Palette provider for TUI Gantt actions."""

    async def discover(self) -> Hits:
        for cmd in COMMANDS:
            yield Hit(1.0, cmd.display, self._make_callback(cmd.action), help=cmd.help)

    async def search(self, query: str) -> Hits:
        """Search commands with in-order character matching."""
        lowered = query.lower()
        for cmd in COMMANDS:
            searchable = f"{cmd.display} {cmd.help} {cmd.category}".lower()
            if self._fuzzy_match(lowered, searchable):
                yield Hit(
                    self._score(lowered, cmd.display.lower()),
                    cmd.display,
                    self._make_callback(cmd.action),
                    help=cmd.help,
                )

    def _make_callback(self, action: str):
        async def callback() -> None:
            await self.app.run_action(action)
        return callback

    @staticmethod
    def _fuzzy_match(query: str, text: str) -> bool:
        """Check if all characters of query appear in order in text."""
        it = iter(text)
        return all(ch in it for ch in query)

    @staticmethod
    def _score(query: str, text: str) -> float:
        """Score a match: higher is better (closer to 1.0)."""
        if not query:
            return 0.5
        if text == query:
            return 1.0
        if text.startswith(query):
            return 0.9
        if query in text:
            return 0.8
        return 0.7
