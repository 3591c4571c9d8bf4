"""Cue timing: character-level speech timing mapped onto narration segments, and scroll animations."""

from screen_narrator.constants import SCROLL_ANIMATION_PX, SCROLL_ANIMATION_SHARE, SCROLL_ANIMATION_STEPS
from screen_narrator.errors import InvalidSegment
from screen_narrator.models import SegmentTiming, TextSegment


def join_segments(segments: list[TextSegment]) -> str:
    """Narration text as sent to the speech provider: one space between segments."""
    return " ".join(seg.text for seg in segments)


def _to_ms(seconds: float) -> int:
    return int(round(seconds * 1000))


def map_segment_timings(
    segments: list[TextSegment],
    character_start_times: list[float],
) -> list[SegmentTiming]:
    """Compute start/end times for each segment of the joined narration.

    character_start_times has one entry per character of join_segments(segments).
    Segment i starts at the timestamp of its first character and ends at the
    timestamp of the character right after it. The joining space is skipped,
    it has no cue of its own. Offsets past the end of the array clamp to the
    last timestamp.
    """
    if not character_start_times:
        raise InvalidSegment("no character timing available", stage="timing")

    last = len(character_start_times) - 1
    timings = []
    offset = 0
    for index, seg in enumerate(segments):
        length = len(seg.text)
        if length == 0:
            raise InvalidSegment(f"segment {index + 1} has no text", stage="timing")

        start = character_start_times[min(offset, last)]
        end_index = offset + length
        end = character_start_times[end_index] if end_index <= last else character_start_times[last]

        timings.append(SegmentTiming(
            text=seg.text,
            scroll_target=seg.scroll_target,
            start_time_ms=_to_ms(start),
            end_time_ms=_to_ms(end),
        ))
        offset += length + 1

    return timings


def character_times_from_words(text: str, words: list[tuple[str, float, float]]) -> list[float]:
    """Spread word-boundary events over the characters of text.

    words holds (word, start_sec, duration_sec) in spoken order. Characters
    inside a word are interpolated linearly across the word; characters
    between words (spaces, punctuation the provider did not report) take the
    end time of the previous word. Returns one start time per character.
    """
    times = [0.0] * len(text)
    cursor = 0
    previous_end = 0.0

    for word, start, duration in words:
        pos = text.find(word, cursor)
        if pos < 0:
            continue
        for i in range(cursor, pos):
            times[i] = previous_end
        for i in range(len(word)):
            times[pos + i] = start + duration * i / len(word)
        cursor = pos + len(word)
        previous_end = start + duration

    for i in range(cursor, len(text)):
        times[i] = previous_end

    return times


SCROLL_BY_PREFIX = "by:"


def scroll_by_target(dy: float) -> str:
    """Cue target that scrolls the window by dy pixels (negative is up)."""
    return f"{SCROLL_BY_PREFIX}{dy:g}"


def parse_scroll_by(target: str) -> float | None:
    """Pixel offset of a scroll-by target, or None for any other target."""
    if not target.startswith(SCROLL_BY_PREFIX):
        return None
    try:
        return float(target[len(SCROLL_BY_PREFIX):])
    except ValueError:
        return None


def scroll_animation(
    clip_duration_ms: int,
    distance_px: float = SCROLL_ANIMATION_PX,
    steps: int = SCROLL_ANIMATION_STEPS,
    share: float = SCROLL_ANIMATION_SHARE,
) -> list[SegmentTiming]:
    """Cues that ease a page down by distance_px and back while a clip plays.

    The first `share` of the clip scrolls down in `steps` even steps, the
    middle holds still, and the last `share` scrolls back up the same way.
    """
    if clip_duration_ms <= 0:
        raise InvalidSegment(f"clip duration must be positive, got {clip_duration_ms}", stage="timing")

    leg_ms = clip_duration_ms * share
    step_ms = leg_ms / steps
    step_px = distance_px / steps
    up_start_ms = clip_duration_ms - leg_ms

    timings = []
    for leg_start, dy in ((0.0, step_px), (up_start_ms, -step_px)):
        for i in range(steps):
            timings.append(SegmentTiming(
                text="",
                scroll_target=scroll_by_target(dy),
                start_time_ms=_to_ms(leg_start + i * step_ms),
                end_time_ms=_to_ms(leg_start + (i + 1) * step_ms),
            ))
    return timings
