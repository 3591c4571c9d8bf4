"""Typed ffmpeg commands, the tool runner, and duration probing."""

import subprocess
from dataclasses import dataclass

from pydub.utils import mediainfo

from screen_narrator.constants import (
    FFMPEG_BIN,
    OUTPUT_AUDIO_CODEC,
    SEGMENT_CRF,
    SEGMENT_PRESET,
    SEGMENT_VIDEO_CODEC,
)
from screen_narrator.errors import EncodeFailure
from screen_narrator.mixplan import build_mix_filter


@dataclass(frozen=True)
class ToolResult:
    returncode: int
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _check_path(path: str, what: str) -> None:
    if not path or "\n" in path or "\r" in path:
        raise ValueError(f"Invalid {what} path: {path!r}")


def _seconds(ms: int) -> str:
    return f"{ms / 1000:.3f}"


@dataclass(frozen=True)
class TrimCommand:
    """Re-encode [start_ms, start_ms + duration_ms] of source into output.

    -ss comes after -i (output seeking) so the cut lands on the exact frame
    rather than the nearest keyframe.
    """

    source: str
    output: str
    start_ms: int
    duration_ms: int
    codec: str = SEGMENT_VIDEO_CODEC
    preset: str = SEGMENT_PRESET
    crf: int = SEGMENT_CRF

    def __post_init__(self):
        _check_path(self.source, "source")
        _check_path(self.output, "output")
        if self.start_ms < 0 or self.duration_ms <= 0:
            raise ValueError(f"Invalid trim window: start={self.start_ms} duration={self.duration_ms}")

    def to_args(self) -> list[str]:
        return [
            FFMPEG_BIN, "-y",
            "-i", self.source,
            "-ss", _seconds(self.start_ms),
            "-t", _seconds(self.duration_ms),
            "-an",
            "-c:v", self.codec, "-preset", self.preset, "-crf", str(self.crf),
            self.output,
        ]


@dataclass(frozen=True)
class ConcatCommand:
    """Stream-copy the files named in list_path into one output."""

    list_path: str
    output: str

    def __post_init__(self):
        _check_path(self.list_path, "concat list")
        _check_path(self.output, "output")

    def to_args(self) -> list[str]:
        return [
            FFMPEG_BIN, "-y",
            "-f", "concat", "-safe", "0",
            "-i", self.list_path,
            "-c", "copy",
            self.output,
        ]


@dataclass(frozen=True)
class MixCommand:
    """Lay delayed narration clips under a video track.

    audio is a tuple of (path, delay_ms) in input order; the video is input 0.
    """

    video: str
    audio: tuple[tuple[str, int], ...]
    output: str
    audio_codec: str = OUTPUT_AUDIO_CODEC

    def __post_init__(self):
        _check_path(self.video, "video")
        _check_path(self.output, "output")
        if not self.audio:
            raise ValueError("MixCommand needs at least one audio input")
        for path, delay in self.audio:
            _check_path(path, "audio")
            if not isinstance(delay, int) or delay < 0:
                raise ValueError(f"Invalid delay for {path}: {delay!r}")

    @property
    def filter_complex(self) -> str:
        return build_mix_filter([delay for _, delay in self.audio])

    def to_args(self) -> list[str]:
        args = [FFMPEG_BIN, "-y", "-i", self.video]
        for path, _ in self.audio:
            args.extend(["-i", path])
        args.extend([
            "-filter_complex", self.filter_complex,
            "-map", "0:v", "-map", "[aout]",
            "-c:v", "copy", "-c:a", self.audio_codec,
            self.output,
        ])
        return args


def run_tool(args: list[str]) -> ToolResult:
    """Run a media command synchronously. Never raises on non-zero exit."""
    result = subprocess.run(args, capture_output=True, text=True)
    return ToolResult(returncode=result.returncode, stderr=result.stderr or "")


def probe_duration(path: str) -> float:
    """Container duration in seconds, as reported by ffprobe."""
    info = mediainfo(path)
    try:
        return float(info["duration"])
    except (KeyError, TypeError, ValueError) as e:
        raise EncodeFailure(f"Could not read duration of {path}", stage="probe") from e
