"""Tests for the mark log and marks.txt format (Layer 1b)."""

import pytest

from screen_narrator.constants import MARKS_HEADER
from screen_narrator.errors import MarkConflict, NoDurationKnown, NotStarted
from screen_narrator.marks import (
    MarkLog,
    append_mark,
    format_mark,
    load_mark_log,
    parse_marks,
    read_marks,
)
from screen_narrator.models import Mark
from screen_narrator.session import save_session


class StepClock:
    def __init__(self, *values):
        self.values = list(values)

    def __call__(self):
        return self.values.pop(0)


def test_mark_before_start_raises():
    log = MarkLog({1: 3000}, clock=lambda: 0)
    with pytest.raises(NotStarted):
        log.mark(1)


def test_mark_without_duration_raises():
    log = MarkLog({}, clock=StepClock(1000, 2000))
    log.start()
    with pytest.raises(NoDurationKnown) as exc:
        log.mark(1)
    assert exc.value.clip_number == 1


def test_mark_offset_from_t0():
    log = MarkLog({1: 3000, 2: 2500}, clock=StepClock(10_000, 12_500, 19_000))
    log.start()
    first = log.mark(1)
    second = log.mark(2)
    assert first == Mark(1, 2500, 3000)
    assert second == Mark(2, 9000, 2500)


def test_remark_same_clip_conflicts():
    log = MarkLog({1: 3000}, clock=StepClock(0, 100, 200))
    log.start()
    log.mark(1)
    with pytest.raises(MarkConflict):
        log.mark(1)
    assert log.marks == [Mark(1, 100, 3000)]


def test_marks_keep_insertion_order():
    """Revisiting a page can produce non-monotonic offsets; order is call order."""
    log = MarkLog({1: 1000, 2: 1000}, t0_ms=0, marks=[Mark(1, 9000, 1000)], clock=lambda: 4000)
    log.mark(2)
    assert [m.clip_number for m in log.marks] == [1, 2]
    assert log.marks[1].offset_ms < log.marks[0].offset_ms


def test_marks_property_is_a_copy():
    log = MarkLog({1: 1000}, t0_ms=0, clock=lambda: 5)
    log.mark(1)
    log.marks.clear()
    assert len(log.marks) == 1


def test_parse_marks_skips_comments_and_malformed(capsys):
    lines = [
        MARKS_HEADER,
        "1 0 3000",
        "",
        "2 abc 3000",
        "3 4000",
        "4 -5 1000",
        "5 6000 0",
        "  6 7000 2000  ",
    ]
    marks = parse_marks(lines)
    assert marks == [Mark(1, 0, 3000), Mark(6, 7000, 2000)]
    out = capsys.readouterr().out
    assert "Malformed mark line: 2 abc 3000" in out


def test_append_and_read_roundtrip_file(tmp_path):
    path = str(tmp_path / "marks.txt")
    append_mark(path, Mark(1, 1200, 3000))
    append_mark(path, Mark(2, 8000, 2500))
    with open(path) as f:
        assert f.readline().strip() == MARKS_HEADER
    assert read_marks(path) == [Mark(1, 1200, 3000), Mark(2, 8000, 2500)]


def test_read_marks_missing_file(tmp_path):
    assert read_marks(str(tmp_path / "nope.txt")) == []


def test_format_mark():
    assert format_mark(Mark(3, 42, 1000)) == "3 42 1000"


def test_load_mark_log_from_session(session):
    session.recording_start_ms = 1000
    session.durations = {1: 3000, 2: 2000}
    save_session(session)
    append_mark(session.marks_path, Mark(1, 500, 3000))

    log = load_mark_log(session, clock=lambda: 9000)
    assert log.started
    with pytest.raises(MarkConflict):
        log.mark(1)
    assert log.mark(2) == Mark(2, 8000, 2000)
