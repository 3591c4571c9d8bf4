"""Data models for narrated screen recordings."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Mark:
    clip_number: int       # 1-based, one per narrated page
    offset_ms: int         # ms since recording T0
    duration_ms: int       # narration length for this clip

    @property
    def end_ms(self) -> int:
        return self.offset_ms + self.duration_ms


@dataclass(frozen=True)
class TextSegment:
    text: str
    scroll_target: str = "top"   # "top", "bottom", or an element reference


@dataclass(frozen=True)
class SegmentTiming:
    text: str
    scroll_target: str
    start_time_ms: int
    end_time_ms: int


@dataclass
class SpeechClip:
    clip_number: int
    audio_path: str
    total_duration_sec: float
    character_start_times: list[float] = field(default_factory=list)

    @property
    def duration_ms(self) -> int:
        return int(round(self.total_duration_sec * 1000))


@dataclass(frozen=True)
class ExtractedSegment:
    clip_number: int
    file_path: str
    measured_duration_sec: float


@dataclass(frozen=True)
class MixEntry:
    clip_number: int
    audio_path: str
    cumulative_delay_ms: int
