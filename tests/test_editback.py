"""Tests for translating chart edits into record writes."""

import asyncio
import time
from datetime import date

import pytest

from tui_gantt.editback import DateChange, FieldUpdate, ProgressChange, RecordWriter, translate
from tui_gantt.models import NoteRecord, ViewConfig
from tui_gantt.pipeline import build_timeline
from tui_gantt.vault import load_vault


def _note(key: str, **fields) -> NoteRecord:
    return NoteRecord(key=key, name=key.removesuffix(".md"), fields=fields)


def _timeline(view: ViewConfig | None = None, **extra):
    records = [
        _note("A.md", start="2026-03-01", end="2026-03-04", progress=10, phase="x", **extra),
        _note("B.md", start="2026-03-05", progress=0, phase="y"),
    ]
    return build_timeline(records, view or ViewConfig())


class TestTranslate:
    def test_date_change_writes_start_and_end(self):
        update = translate(DateChange("A.md", date(2026, 3, 2), date(2026, 3, 6)), _timeline())
        assert update == FieldUpdate("A.md", {"start": "2026-03-02", "end": "2026-03-06"})

    def test_date_change_without_end_role(self):
        view = ViewConfig(start="start")
        update = translate(DateChange("A.md", date(2026, 3, 2), date(2026, 3, 3)), _timeline(view))
        assert update.values == {"start": "2026-03-02"}

    def test_namespace_prefix_stripped(self):
        view = ViewConfig(start="note.start", end="note.end")
        update = translate(DateChange("A.md", date(2026, 3, 2), date(2026, 3, 6)), _timeline(view))
        assert set(update.values) == {"start", "end"}

    def test_moved_milestone_stays_a_milestone(self):
        records = [_note("M.md", start="2026-03-08", end="2026-03-08")]
        timeline = build_timeline(records, ViewConfig())
        assert timeline.tasks[0].is_milestone
        update = translate(DateChange("M.md", date(2026, 3, 9), date(2026, 3, 10)), timeline)
        assert update.values == {"start": "2026-03-09", "end": "2026-03-09"}

    def test_resized_milestone_keeps_new_end(self):
        records = [_note("M.md", start="2026-03-15", end="2026-03-15")]
        timeline = build_timeline(records, ViewConfig())
        update = translate(DateChange("M.md", date(2026, 3, 15), date(2026, 3, 17)), timeline)
        assert update.values == {"start": "2026-03-15", "end": "2026-03-17"}

        resized = build_timeline([_note("M.md", **update.values)], ViewConfig())
        [task] = resized.tasks
        assert not task.is_milestone
        assert task.end == date(2026, 3, 17)

    def test_group_header_ignored(self):
        timeline = _timeline(ViewConfig(group_by="phase"))
        assert timeline.tasks[0].is_group_header
        assert translate(DateChange("__group__0", date(2026, 3, 2), date(2026, 3, 3)), timeline) is None

    def test_unknown_task_ignored(self):
        assert translate(DateChange("nope", date(2026, 3, 2), date(2026, 3, 3)), _timeline()) is None

    @pytest.mark.parametrize("value, expected", [(42.4, 42), (104.6, 100), (-3, 0), (75, 75)])
    def test_progress_change(self, value, expected):
        update = translate(ProgressChange("A.md", value), _timeline())
        assert update == FieldUpdate("A.md", {"progress": expected})

    def test_progress_needs_display(self):
        timeline = _timeline(ViewConfig(show_progress=False))
        assert translate(ProgressChange("A.md", 50), timeline) is None

    def test_progress_needs_role(self):
        timeline = _timeline(ViewConfig(start="start", show_progress=True))
        assert translate(ProgressChange("A.md", 50), timeline) is None


class _RecordingStore:
    def __init__(self, known: set[str]):
        self.known = known
        self.calls: list[tuple[str, dict]] = []

    def update_fields(self, key, values):
        time.sleep(0.01)
        if key not in self.known:
            return False
        self.calls.append((key, dict(values)))
        return True


class TestRecordWriter:
    def test_apply_missing_record_is_noop(self):
        store = _RecordingStore(known=set())
        writer = RecordWriter(store)
        assert writer.apply(FieldUpdate("gone.md", {"start": "2026-03-01"})) is False
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_same_record_writes_in_submit_order(self):
        store = _RecordingStore(known={"A.md"})
        writer = RecordWriter(store)
        updates = [FieldUpdate("A.md", {"progress": p}) for p in (10, 20, 30, 40)]
        results = await asyncio.gather(*(writer.write(u) for u in updates))
        assert results == [True] * 4
        assert [values["progress"] for _, values in store.calls] == [10, 20, 30, 40]
        assert writer._locks == {}

    @pytest.mark.asyncio
    async def test_every_write_is_applied(self):
        store = _RecordingStore(known={"A.md", "B.md"})
        writer = RecordWriter(store)
        updates = [
            FieldUpdate("A.md", {"start": "2026-03-02"}),
            FieldUpdate("B.md", {"start": "2026-03-06"}),
            FieldUpdate("A.md", {"start": "2026-03-03"}),
        ]
        await asyncio.gather(*(writer.write(u) for u in updates))
        assert len(store.calls) == 3
        a_writes = [values["start"] for key, values in store.calls if key == "A.md"]
        assert a_writes == ["2026-03-02", "2026-03-03"]

    @pytest.mark.asyncio
    async def test_idle_records_hold_no_lock(self):
        store = _RecordingStore(known={"A.md", "B.md"})
        writer = RecordWriter(store)
        await writer.write(FieldUpdate("A.md", {"progress": 5}))
        assert writer._locks == {}
        await asyncio.gather(
            writer.write(FieldUpdate("A.md", {"progress": 6})),
            writer.write(FieldUpdate("B.md", {"progress": 7})),
        )
        assert writer._locks == {}
        assert writer._pending == {}


class TestProgressEditOnDisk:
    def test_only_progress_field_changes(self, tmp_path):
        task_a = "---\ntitle: Task A\nstart: 2026-03-01\nprogress: 10\nowner: Kim\n---\n\nNotes about A.\n"
        task_b = "---\nstart: 2026-03-05\nprogress: 0\n---\nB body\n"
        (tmp_path / "A.md").write_text(task_a, encoding="utf-8")
        (tmp_path / "B.md").write_text(task_b, encoding="utf-8")

        vault = load_vault(tmp_path)
        timeline = build_timeline(vault.records, ViewConfig())
        update = translate(ProgressChange("A.md", 60), timeline)
        assert RecordWriter(vault).apply(update)

        assert (tmp_path / "A.md").read_text(encoding="utf-8") == task_a.replace("progress: 10", "progress: 60")
        assert (tmp_path / "B.md").read_text(encoding="utf-8") == task_b
        assert vault.get("A.md").fields["progress"] == 60
