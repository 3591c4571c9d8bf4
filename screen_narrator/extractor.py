"""Cut one frame-accurate sub-clip per mark out of the raw recording."""

import os

from screen_narrator.errors import EncodeFailure, OutOfBounds
from screen_narrator.ffmpeg import TrimCommand, probe_duration, run_tool
from screen_narrator.models import ExtractedSegment, Mark


def check_bounds(mark: Mark, total_duration_ms: int) -> None:
    if mark.end_ms > total_duration_ms:
        raise OutOfBounds(
            f"Segment end ({mark.end_ms / 1000:.3f}s) exceeds recording duration "
            f"({total_duration_ms / 1000:.3f}s)",
            stage="extract", clip_number=mark.clip_number,
        )


def extract_one(
    mark: Mark,
    recording_path: str,
    output_path: str,
    runner=run_tool,
    probe=probe_duration,
) -> ExtractedSegment:
    cmd = TrimCommand(
        source=recording_path,
        output=output_path,
        start_ms=mark.offset_ms,
        duration_ms=mark.duration_ms,
    )
    result = runner(cmd.to_args())
    if not result.ok:
        raise EncodeFailure(
            "ffmpeg trim failed", stage="extract", clip_number=mark.clip_number,
            returncode=result.returncode, stderr=result.stderr,
        )
    if not os.path.exists(output_path):
        raise EncodeFailure(
            f"{os.path.basename(output_path)} NOT created",
            stage="extract", clip_number=mark.clip_number,
        )
    return ExtractedSegment(
        clip_number=mark.clip_number,
        file_path=output_path,
        measured_duration_sec=probe(output_path),
    )


def extract_segments(
    marks: list[Mark],
    recording_path: str,
    output_dir: str,
    total_duration_ms: int,
    runner=run_tool,
    probe=probe_duration,
) -> list[ExtractedSegment]:
    """Extract every in-bounds mark, in mark order.

    A mark that is out of bounds, duplicated, or fails to encode is reported
    and skipped; the rest of the session still goes through.
    """
    segments = []
    seen = set()
    for mark in marks:
        start_sec = mark.offset_ms / 1000
        end_sec = mark.end_ms / 1000
        print(f"  Extracting segment {mark.clip_number}: {start_sec:.3f}s to {end_sec:.3f}s "
              f"({mark.duration_ms / 1000:.3f}s)")

        if mark.clip_number in seen:
            print(f"    [skip] Duplicate mark for clip {mark.clip_number}")
            continue
        seen.add(mark.clip_number)

        output_path = os.path.join(output_dir, f"segment_{mark.clip_number}.mp4")
        try:
            check_bounds(mark, total_duration_ms)
            segment = extract_one(mark, recording_path, output_path, runner=runner, probe=probe)
        except (OutOfBounds, EncodeFailure) as e:
            print(f"    [skip] {e}")
            continue

        size = os.path.getsize(segment.file_path)
        print(f"    [ok] {os.path.basename(segment.file_path)} ({size} bytes, "
              f"{segment.measured_duration_sec:.3f}s)")
        segments.append(segment)

    return segments
