"""Tests for data models and errors (Layer 0)."""

from screen_narrator.errors import EncodeFailure, MarkConflict, NarratorError
from screen_narrator.models import Mark, SpeechClip, TextSegment
from screen_narrator import constants


def test_mark_end():
    mark = Mark(clip_number=2, offset_ms=1500, duration_ms=4000)
    assert mark.end_ms == 5500


def test_text_segment_default_target():
    seg = TextSegment(text="Hi.")
    assert seg.scroll_target == "top"


def test_speech_clip_duration_ms_rounds():
    clip = SpeechClip(clip_number=1, audio_path="clip_1.mp3", total_duration_sec=3.2126)
    assert clip.duration_ms == 3213
    assert clip.character_start_times == []


def test_error_message_names_stage_and_clip():
    err = MarkConflict("already marked", stage="mark", clip_number=3)
    assert str(err) == "[mark] clip 3: already marked"
    assert err.stage == "mark"
    assert err.clip_number == 3
    assert isinstance(err, NarratorError)


def test_encode_failure_keeps_stderr_tail():
    err = EncodeFailure("ffmpeg concat failed", stage="concat", returncode=1, stderr="moov atom not found\n")
    assert err.returncode == 1
    assert "moov atom not found" in str(err)
    assert str(err).startswith("[concat]")


def test_constants_exist():
    """All module-level constants are defined."""
    expected = [
        "SESSION_BASE",
        "MARKS_HEADER",
        "SEGMENT_VIDEO_CODEC",
        "SEGMENT_PRESET",
        "SEGMENT_CRF",
        "DRIFT_TOLERANCE_MS",
        "PAGE_SETTLE_MS",
        "ELEVENLABS_MODEL_ID",
        "EDGE_TTS_VOICE",
        "MUX_API_URL",
        "VERSION",
    ]
    for name in expected:
        assert hasattr(constants, name), f"Missing constant: {name}"
