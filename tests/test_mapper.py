"""Tests for the record-to-task mapper."""

from datetime import date, datetime

import pytest

from tui_gantt.mapper import (
    assign_color_buckets,
    build_name_index,
    make_task_id,
    map_records,
    parse_dependency_names,
    raw_text,
    resolve_dependencies,
)
from tui_gantt.models import MapperConfig, NoteRecord, RoleAssignment


def _note(key: str, **fields) -> NoteRecord:
    name = key.rsplit("/", 1)[-1].removesuffix(".md")
    return NoteRecord(key=key, name=name, fields=fields)


def _config(show_progress: bool = False, **roles) -> MapperConfig:
    roles.setdefault("start", "start")
    return MapperConfig(roles=RoleAssignment(**roles), show_progress=show_progress)


def _by_name(tasks):
    return {t.name: t for t in tasks}


class TestDefaults:
    def test_missing_end_defaults_to_next_day(self):
        [task] = map_records([_note("A.md", start="2026-03-15")], _config(end="end"))
        assert task.end == date(2026, 3, 16)
        assert not task.is_milestone

    def test_milestone(self):
        note = _note("A.md", start="2026-03-15", end="2026-03-15")
        [task] = map_records([note], _config(end="end"))
        assert task.is_milestone
        assert task.start == date(2026, 3, 15)
        assert task.end == date(2026, 3, 16)

    def test_milestone_ignores_time_of_day(self):
        note = _note("A.md", start="2026-03-15 09:00", end="2026-03-15 17:00")
        [task] = map_records([note], _config(end="end"))
        assert task.is_milestone

    def test_end_before_start_is_defaulted(self):
        note = _note("A.md", start="2026-03-15", end="2026-03-01")
        [task] = map_records([note], _config(end="end"))
        assert task.end == date(2026, 3, 16)
        assert not task.is_milestone

    def test_unparseable_end_is_defaulted(self):
        note = _note("A.md", start="2026-03-15", end="whenever")
        [task] = map_records([note], _config(end="end"))
        assert task.end == date(2026, 3, 16)

    def test_end_never_before_start(self):
        notes = [
            _note("A.md", start="2026-03-15", end="2026-03-10"),
            _note("B.md", start="2026-03-15", end="2026-03-20"),
            _note("C.md", start="2026-03-15"),
            _note("D.md", start="2026-03-15", end="2026-03-15"),
        ]
        for task in map_records(notes, _config(end="end")):
            assert task.end > task.start

    def test_missing_or_bad_start_is_skipped(self):
        notes = [
            _note("A.md", start="2026-03-15"),
            _note("B.md"),
            _note("C.md", start="someday"),
        ]
        assert [t.name for t in map_records(notes, _config())] == ["A"]

    def test_yaml_dates_and_epoch_millis(self):
        millis = datetime(2026, 3, 15, 12, 0).timestamp() * 1000
        notes = [_note("A.md", start=date(2026, 3, 1)), _note("B.md", start=millis)]
        tasks = _by_name(map_records(notes, _config()))
        assert tasks["A"].start == date(2026, 3, 1)
        assert tasks["B"].start == date(2026, 3, 15)

    def test_no_start_role(self):
        config = MapperConfig(roles=RoleAssignment(end="end"))
        assert map_records([_note("A.md", start="2026-03-15")], config) == []

    def test_namespaced_field_ids(self):
        [task] = map_records([_note("A.md", start="2026-03-15")], _config(start="note.start"))
        assert task.start == date(2026, 3, 15)


class TestLabelAndIds:
    def test_task_id_from_key(self):
        assert make_task_id("projects/Task A.md") == "projects/Task_A.md"
        [task] = map_records([_note("projects/Task A.md", start="2026-03-15")], _config())
        assert task.id == "projects/Task_A.md"
        assert task.source_key == "projects/Task A.md"

    def test_label_role(self):
        notes = [
            _note("a.md", start="2026-03-15", title="Launch"),
            _note("b.md", start="2026-03-16", title="  "),
        ]
        tasks = map_records(notes, _config(label="title"))
        assert [t.name for t in tasks] == ["Launch", "b"]


class TestProgress:
    @pytest.mark.parametrize(
        "value, expected",
        [(45, 45), ("45%", 45), (33.6, 34), (150, 100), (-5, 0), ("abc", 0), (None, 0)],
    )
    def test_values(self, value, expected):
        note = _note("A.md", start="2026-03-15", progress=value)
        [task] = map_records([note], _config(show_progress=True, progress="progress"))
        assert task.progress == expected

    def test_hidden_progress_is_zero(self):
        note = _note("A.md", start="2026-03-15", progress=80)
        [task] = map_records([note], _config(show_progress=False, progress="progress"))
        assert task.progress == 0


class TestDependencies:
    def test_wiki_links_resolve(self):
        notes = [
            _note("Research.md", start="2026-03-01"),
            _note("Design.md", start="2026-03-05"),
            _note("Build.md", start="2026-03-10", **{"depends-on": "[[Research]], [[Design]]"}),
        ]
        tasks = _by_name(map_records(notes, _config(dependencies="depends-on")))
        assert tasks["Build"].dependency_ids == ("Research.md", "Design.md")

    def test_unmatched_link_is_dropped(self):
        notes = [
            _note("Research.md", start="2026-03-01"),
            _note("Build.md", start="2026-03-10", after="[[Research]], [[Missing]]"),
        ]
        tasks = _by_name(map_records(notes, _config(dependencies="after")))
        assert tasks["Build"].dependency_ids == ("Research.md",)

    def test_bare_yaml_link(self):
        notes = [
            _note("Research.md", start="2026-03-01"),
            _note("Build.md", start="2026-03-10", after=[["Research"]]),
        ]
        tasks = _by_name(map_records(notes, _config(dependencies="after")))
        assert tasks["Build"].dependency_ids == ("Research.md",)

    def test_link_list(self):
        notes = [
            _note("Research.md", start="2026-03-01"),
            _note("Design.md", start="2026-03-02"),
            _note("Build.md", start="2026-03-10", after=["[[Research]]", "[[Design|the design]]"]),
        ]
        tasks = _by_name(map_records(notes, _config(dependencies="after")))
        assert tasks["Build"].dependency_ids == ("Research.md", "Design.md")

    def test_parse_names(self):
        assert parse_dependency_names("[[A]] and [[B|Bee]]") == ["A", "B"]
        assert parse_dependency_names("A, B ,, C") == ["A", "B", "C"]
        # Comma splitting is not a per-token fallback.
        assert parse_dependency_names("[[A]], B") == ["A"]
        assert parse_dependency_names("[[broken") == []
        assert parse_dependency_names("") == []

    def test_duplicates_collapsed(self):
        index = {"A": "A.md"}
        assert resolve_dependencies("[[A]], [[A]]", index) == ("A.md",)

    def test_duplicate_basenames_last_wins(self):
        notes = [_note("one/Notes.md"), _note("two/Notes.md")]
        index = build_name_index(notes)
        assert index["Notes"] == "two/Notes.md"
        assert index["one/Notes"] == "one/Notes.md"

    def test_raw_text(self):
        assert raw_text(None) is None
        assert raw_text(date(2026, 3, 15)) == "2026-03-15"
        assert raw_text(False) == "false"
        assert raw_text(["x", 3]) == "x, 3"
        assert raw_text([["Target"]]) == "[[Target]]"


class TestColorBuckets:
    def test_first_seen_order(self):
        notes = [
            _note("a.md", start="2026-03-01", status="Done"),
            _note("b.md", start="2026-03-02", status="Done"),
            _note("c.md", start="2026-03-03", status="InProgress"),
        ]
        tasks = _by_name(map_records(notes, _config(color_by="status")))
        assert tasks["a"].color_bucket == 0
        assert tasks["b"].color_bucket == 0
        assert tasks["c"].color_bucket == 1
        assert tasks["c"].css_class == "gantt-color-1"

    def test_wraps_after_eight(self):
        notes = [_note(f"n{i}.md", kind=f"k{i}") for i in range(10)]
        buckets = assign_color_buckets(notes, "kind")
        assert buckets["k7"] == 7
        assert buckets["k8"] == 0
        assert buckets["k9"] == 1

    def test_missing_value_has_no_bucket(self):
        notes = [_note("a.md", start="2026-03-01")]
        [task] = map_records(notes, _config(color_by="status"))
        assert task.color_bucket is None
        assert task.css_class == ""

    def test_milestone_class(self):
        notes = [_note("a.md", start="2026-03-01", end="2026-03-01")]
        [task] = map_records(notes, _config(end="end"))
        assert task.css_class == "gantt-milestone"


class TestOrdering:
    def test_dependencies_come_first(self):
        notes = [
            _note("C.md", start="2026-03-01", after="[[B]]"),
            _note("B.md", start="2026-03-02", after="[[A]]"),
            _note("A.md", start="2026-03-03"),
        ]
        tasks = map_records(notes, _config(dependencies="after"))
        assert [t.name for t in tasks] == ["A", "B", "C"]

    def test_duplicate_ids_skipped(self):
        notes = [_note("A.md", start="2026-03-01"), _note("A.md", start="2026-03-05")]
        tasks = map_records(notes, _config())
        assert len(tasks) == 1
        assert tasks[0].start == date(2026, 3, 1)
