"""Tests for per-mark segment extraction (Layer 1b)."""

import os

import pytest

from screen_narrator.errors import EncodeFailure, OutOfBounds
from screen_narrator.extractor import check_bounds, extract_one, extract_segments
from screen_narrator.ffmpeg import ToolResult
from screen_narrator.models import Mark


@pytest.fixture
def recording(tmp_path):
    path = tmp_path / "recording.webm"
    path.write_bytes(b"\x1a\x45\xdf\xa3")
    return str(path)


def test_check_bounds_allows_exact_end():
    check_bounds(Mark(1, 1000, 3000), total_duration_ms=4000)


def test_check_bounds_rejects_overrun():
    with pytest.raises(OutOfBounds) as exc:
        check_bounds(Mark(2, 1000, 3001), total_duration_ms=4000)
    assert exc.value.clip_number == 2


def test_extract_one_trims_requested_window(tmp_path, recording, fake_media):
    out = str(tmp_path / "segment_1.mp4")
    seg = extract_one(Mark(1, 1500, 3000), recording, out, runner=fake_media.run, probe=fake_media.probe)
    trim = fake_media.commands("-t")[0]
    assert trim[trim.index("-ss") + 1] == "1.500"
    assert trim[trim.index("-t") + 1] == "3.000"
    assert seg.file_path == out
    assert seg.measured_duration_sec == pytest.approx(3.0)


def test_extract_one_failure_carries_stderr(tmp_path, recording, make_media):
    media = make_media(fail_outputs={"segment_1.mp4"})
    with pytest.raises(EncodeFailure) as exc:
        extract_one(Mark(1, 0, 1000), recording, str(tmp_path / "segment_1.mp4"),
                    runner=media.run, probe=media.probe)
    assert exc.value.stage == "extract"
    assert "Conversion failed!" in str(exc.value)


def test_extract_one_missing_output(tmp_path, recording):
    with pytest.raises(EncodeFailure, match="NOT created"):
        extract_one(Mark(1, 0, 1000), recording, str(tmp_path / "segment_1.mp4"),
                    runner=lambda args: ToolResult(0), probe=lambda p: 1.0)


def test_out_of_bounds_mark_is_skipped(tmp_path, recording, fake_media, capsys):
    marks = [Mark(1, 0, 3000), Mark(2, 5000, 2000)]
    segments = extract_segments(marks, recording, str(tmp_path), total_duration_ms=4000,
                                runner=fake_media.run, probe=fake_media.probe)
    assert [s.clip_number for s in segments] == [1]
    assert len(fake_media.commands("-t")) == 1
    assert not os.path.exists(tmp_path / "segment_2.mp4")
    assert "[skip]" in capsys.readouterr().out


def test_encode_failure_skips_only_that_clip(tmp_path, recording, make_media):
    media = make_media(fail_outputs={"segment_2.mp4"})
    marks = [Mark(1, 0, 1000), Mark(2, 1000, 1000), Mark(3, 2000, 1000)]
    segments = extract_segments(marks, recording, str(tmp_path), total_duration_ms=10000,
                                runner=media.run, probe=media.probe)
    assert [s.clip_number for s in segments] == [1, 3]


def test_duplicate_clip_uses_first_mark(tmp_path, recording, fake_media, capsys):
    marks = [Mark(1, 0, 1000), Mark(1, 2000, 1000)]
    segments = extract_segments(marks, recording, str(tmp_path), total_duration_ms=10000,
                                runner=fake_media.run, probe=fake_media.probe)
    assert len(segments) == 1
    assert len(fake_media.commands("-t")) == 1
    assert "Duplicate mark for clip 1" in capsys.readouterr().out


def test_segments_follow_mark_order(tmp_path, recording, fake_media):
    marks = [Mark(3, 0, 1000), Mark(1, 1000, 2000), Mark(2, 3000, 500)]
    segments = extract_segments(marks, recording, str(tmp_path), total_duration_ms=10000,
                                runner=fake_media.run, probe=fake_media.probe)
    assert [s.clip_number for s in segments] == [3, 1, 2]
    assert [os.path.basename(s.file_path) for s in segments] == [
        "segment_3.mp4", "segment_1.mp4", "segment_2.mp4",
    ]
