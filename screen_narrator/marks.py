"""Mark log: wall-clock offsets of each narrated clip within the raw recording."""

import os
import time

from screen_narrator.constants import MARKS_HEADER
from screen_narrator.errors import MarkConflict, NoDurationKnown, NotStarted
from screen_narrator.models import Mark
from screen_narrator.session import Session


def now_ms() -> int:
    """Wall-clock milliseconds since the epoch."""
    return int(time.time() * 1000)


class MarkLog:
    """Append-only, insertion-ordered record of marks against a T0 baseline.

    durations maps clip number to the narration length in ms, filled in by
    the synthesis step before the clip is marked.
    """

    def __init__(self, durations: dict[int, int], clock=now_ms, t0_ms: int | None = None, marks=()):
        self.durations = durations
        self.clock = clock
        self.t0_ms = t0_ms
        self._marks = list(marks)

    @property
    def marks(self) -> list[Mark]:
        return list(self._marks)

    @property
    def started(self) -> bool:
        return self.t0_ms is not None

    def start(self) -> int:
        self.t0_ms = self.clock()
        return self.t0_ms

    def mark(self, clip_number: int) -> Mark:
        if not self.started:
            raise NotStarted(
                "Recording start time not set. Call start right after the browser opens.",
                stage="mark", clip_number=clip_number,
            )
        if clip_number < 1:
            raise ValueError(f"clip number must be >= 1, got {clip_number}")

        duration_ms = self.durations.get(clip_number)
        if not duration_ms:
            raise NoDurationKnown(
                "No duration found. Generate its audio first.",
                stage="mark", clip_number=clip_number,
            )
        if any(m.clip_number == clip_number for m in self._marks):
            raise MarkConflict("already marked", stage="mark", clip_number=clip_number)

        mark = Mark(clip_number=clip_number, offset_ms=self.clock() - self.t0_ms, duration_ms=duration_ms)
        self._marks.append(mark)
        return mark


def format_mark(mark: Mark) -> str:
    return f"{mark.clip_number} {mark.offset_ms} {mark.duration_ms}"


def _parse_line(line: str) -> Mark | None:
    fields = line.split()
    if len(fields) < 3:
        return None
    try:
        clip_number, offset_ms, duration_ms = (int(v) for v in fields[:3])
    except ValueError:
        return None
    if clip_number < 1 or offset_ms < 0 or duration_ms <= 0:
        return None
    return Mark(clip_number, offset_ms, duration_ms)


def parse_marks(lines) -> list[Mark]:
    """Parse mark lines, skipping comments, blanks, and malformed entries."""
    marks = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        mark = _parse_line(line)
        if mark is None:
            print(f"  [skip] Malformed mark line: {line}")
            continue
        marks.append(mark)
    return marks


def read_marks(path: str) -> list[Mark]:
    if not os.path.exists(path):
        return []
    with open(path) as f:
        return parse_marks(f)


def append_mark(path: str, mark: Mark) -> None:
    new_file = not os.path.exists(path)
    with open(path, "a") as f:
        if new_file:
            f.write(MARKS_HEADER + "\n")
        f.write(format_mark(mark) + "\n")


def load_mark_log(session: Session, clock=now_ms) -> MarkLog:
    """Rebuild the mark log from a session's persisted state."""
    return MarkLog(
        durations=session.durations,
        clock=clock,
        t0_ms=session.recording_start_ms,
        marks=read_marks(session.marks_path),
    )


def reset_marks(path: str) -> None:
    """Truncate a marks file back to its header."""
    with open(path, "w") as f:
        f.write(MARKS_HEADER + "\n")
