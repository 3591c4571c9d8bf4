"""Tests for typed media commands and probing (Layer 1c)."""

from unittest.mock import patch

import pytest

from screen_narrator.errors import EncodeFailure
from screen_narrator.ffmpeg import (
    ConcatCommand,
    MixCommand,
    ToolResult,
    TrimCommand,
    probe_duration,
    run_tool,
)


def test_trim_seeks_after_input_and_reencodes():
    args = TrimCommand(source="rec.webm", output="segment_1.mp4", start_ms=1500, duration_ms=3250).to_args()
    assert args.index("-ss") > args.index("-i")
    assert args[args.index("-ss") + 1] == "1.500"
    assert args[args.index("-t") + 1] == "3.250"
    assert args[args.index("-c:v") + 1] == "libx264"
    assert "copy" not in args
    assert args[-1] == "segment_1.mp4"


@pytest.mark.parametrize("start,duration", [(-1, 1000), (0, 0), (0, -5)])
def test_trim_rejects_bad_window(start, duration):
    with pytest.raises(ValueError):
        TrimCommand(source="rec.webm", output="out.mp4", start_ms=start, duration_ms=duration)


def test_paths_with_newlines_rejected():
    with pytest.raises(ValueError):
        ConcatCommand(list_path="list.txt", output="out\n.mp4")


def test_concat_is_stream_copy():
    args = ConcatCommand(list_path="concat_list.txt", output="concat.mp4").to_args()
    assert args[args.index("-f") + 1] == "concat"
    assert args[args.index("-c") + 1] == "copy"
    assert args[-1] == "concat.mp4"


def test_mix_command_maps_video_and_mixed_audio():
    cmd = MixCommand(video="concat.mp4", audio=(("clip_1.mp3", 0), ("clip_2.mp3", 3040)), output="output.mp4")
    args = cmd.to_args()
    assert args[:4] == ["ffmpeg", "-y", "-i", "concat.mp4"]
    assert args.count("-i") == 3
    assert "[1:a]adelay=0|0[a1]" in cmd.filter_complex
    assert "[2:a]adelay=3040|3040[a2]" in cmd.filter_complex
    assert args[args.index("-c:v") + 1] == "copy"
    assert "[aout]" in args


def test_mix_command_requires_audio():
    with pytest.raises(ValueError):
        MixCommand(video="concat.mp4", audio=(), output="output.mp4")


def test_mix_command_rejects_negative_or_float_delay():
    with pytest.raises(ValueError):
        MixCommand(video="v.mp4", audio=(("a.mp3", -1),), output="o.mp4")
    with pytest.raises(ValueError):
        MixCommand(video="v.mp4", audio=(("a.mp3", 1.5),), output="o.mp4")


@patch("screen_narrator.ffmpeg.subprocess.run")
def test_run_tool_returns_structured_result(mock_run):
    mock_run.return_value.returncode = 1
    mock_run.return_value.stderr = "Invalid data found"
    result = run_tool(["ffmpeg", "-i", "x"])
    assert result == ToolResult(returncode=1, stderr="Invalid data found")
    assert not result.ok


@patch("screen_narrator.ffmpeg.mediainfo", return_value={"duration": "12.345000"})
def test_probe_duration(mock_info):
    assert probe_duration("recording.webm") == pytest.approx(12.345)


@patch("screen_narrator.ffmpeg.mediainfo", return_value={})
def test_probe_duration_missing(mock_info):
    with pytest.raises(EncodeFailure):
        probe_duration("broken.mp4")
