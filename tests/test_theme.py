"""Tests for the YAML colour theme."""

import pytest

from tui_gantt import theme
from tui_gantt.models import COLOR_BUCKET_COUNT


@pytest.fixture(autouse=True)
def default_theme():
    theme.load_theme()
    yield
    theme.load_theme()


def test_default_palette_has_every_bucket():
    assert len(theme.BUCKET_COLORS) == COLOR_BUCKET_COUNT
    assert theme.bucket_color(0) == theme.BUCKET_COLORS[0]
    assert theme.bucket_color(COLOR_BUCKET_COUNT + 1) == theme.BUCKET_COLORS[1]


def test_unbucketed_uses_bar_colour():
    assert theme.bucket_color(None) == theme.GANTT_BAR


def test_resolve():
    pair = theme.ColorPair("#111111", "#eeeeee")
    assert pair.resolve(True) == "#111111"
    assert pair.resolve(False) == "#eeeeee"


def test_vault_override_merges(tmp_path):
    cfg_dir = tmp_path / ".tui-gantt"
    cfg_dir.mkdir()
    (cfg_dir / "theme.yaml").write_text(
        'gantt:\n  milestone: { dark: "red", light: "maroon" }\n'
        'buckets:\n  - { dark: "cyan", light: "teal" }\n',
        encoding="utf-8",
    )
    bar = theme.GANTT_BAR
    theme.load_theme(tmp_path)
    assert theme.GANTT_MILESTONE == ("red", "maroon")
    assert theme.GANTT_BAR == bar
    # A short palette repeats to fill every bucket.
    assert theme.BUCKET_COLORS == [("cyan", "teal")] * COLOR_BUCKET_COUNT


def test_broken_override_is_ignored(tmp_path):
    cfg_dir = tmp_path / ".tui-gantt"
    cfg_dir.mkdir()
    (cfg_dir / "theme.yaml").write_text("gantt: [unclosed\n", encoding="utf-8")
    milestone = theme.GANTT_MILESTONE
    theme.load_theme(tmp_path)
    assert theme.GANTT_MILESTONE == milestone


def test_init_theme(tmp_path):
    dest = theme.init_theme(tmp_path)
    assert dest.read_text(encoding="utf-8").startswith("# Default colours")
    with pytest.raises(FileExistsError):
        theme.init_theme(tmp_path)
