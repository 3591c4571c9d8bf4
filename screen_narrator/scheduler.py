"""Drive sub-segment cues at their narration offsets during the live recording."""

import time
from dataclasses import dataclass, field

from screen_narrator.errors import ActionFailed
from screen_narrator.models import SegmentTiming


def monotonic_ms() -> float:
    return time.monotonic() * 1000


def sleep_ms(ms: float) -> None:
    time.sleep(ms / 1000)


@dataclass
class ScheduleResult:
    waits_ms: list[float] = field(default_factory=list)     # one per cue, never negative
    failed_targets: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0


class SubSegmentScheduler:
    """Run each cue at its start offset within a clip, then hold for the rest of the clip.

    Every wait is measured against the clip's own start, so a slow action
    shortens the next wait instead of pushing every later cue back.

    executor(target) performs a scroll/navigate cue and raises ActionFailed
    when the cue cannot be shown.
    """

    def __init__(self, executor, clock=monotonic_ms, sleep=sleep_ms):
        self.executor = executor
        self.clock = clock
        self.sleep = sleep

    def run(self, timings: list[SegmentTiming], clip_duration_ms: int) -> ScheduleResult:
        result = ScheduleResult()
        segment_start = self.clock()

        for timing in timings:
            wait = timing.start_time_ms - (self.clock() - segment_start)
            if wait > 0:
                self.sleep(wait)
            result.waits_ms.append(max(wait, 0))

            try:
                self.executor(timing.scroll_target)
            except ActionFailed as e:
                print(f"    [warn] Cue '{timing.scroll_target}' failed, narration continues: {e}")
                result.failed_targets.append(timing.scroll_target)

        remaining = clip_duration_ms - (self.clock() - segment_start)
        if remaining > 0:
            self.sleep(remaining)

        result.elapsed_ms = self.clock() - segment_start
        return result
