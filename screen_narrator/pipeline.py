"""Post-production: extract marked segments, concatenate, and mix narration."""

import os

from screen_narrator.concat import concatenate_segments
from screen_narrator.constants import DRIFT_TOLERANCE_MS
from screen_narrator.errors import SessionError
from screen_narrator.exporter import composite, write_manifest
from screen_narrator.extractor import extract_segments
from screen_narrator.ffmpeg import probe_duration, run_tool
from screen_narrator.marks import read_marks
from screen_narrator.mixplan import plan_mix
from screen_narrator.models import ExtractedSegment
from screen_narrator.session import Session, cleanup_intermediates


def check_drift(segments: list[ExtractedSegment], concat_duration_sec: float) -> float:
    """Difference in ms between the concatenated track and its segments' sum.

    Prints a warning when it exceeds one encoder rounding step per segment.
    """
    expected_ms = sum(seg.measured_duration_sec for seg in segments) * 1000
    drift_ms = concat_duration_sec * 1000 - expected_ms
    if abs(drift_ms) > DRIFT_TOLERANCE_MS * len(segments):
        print(f"  [warn] Concatenated track is {drift_ms:+.0f}ms off the sum of its segments")
    return drift_ms


def finalize(session: Session, runner=run_tool, probe=probe_duration) -> str:
    """Turn a session's raw recording and clips into output.mp4.

    Returns path to the composite.
    """
    if not os.path.exists(session.recording_path):
        raise SessionError("No recording found. Run 'video' first.", stage="finalize")

    marks = read_marks(session.marks_path)
    if not marks:
        raise SessionError("No marks found.", stage="finalize")

    print(f"Finalizing {len(marks)} clips...")
    recording_sec = probe(session.recording_path)
    print(f"Recording duration: {recording_sec:.3f}s")

    print("Step 1: Extracting video segments...")
    segments = extract_segments(
        marks, session.recording_path, session.directory,
        total_duration_ms=int(round(recording_sec * 1000)),
        runner=runner, probe=probe,
    )

    print("Step 2: Concatenating video segments...")
    print(f"  Concatenating {len(segments)} segments...")
    concatenate_segments(segments, session.concat_list_path, session.concat_path, runner=runner)
    concat_sec = probe(session.concat_path)
    print(f"    [ok] concat.mp4 created ({concat_sec:.3f}s)")
    check_drift(segments, concat_sec)

    print("Step 3: Building audio mix...")
    clip_audio = {
        seg.clip_number: session.clip_path(seg.clip_number)
        for seg in segments
        if os.path.exists(session.clip_path(seg.clip_number))
    }
    plan = plan_mix(segments, clip_audio)
    for entry in plan:
        print(f"  clip {entry.clip_number}: delay {entry.cumulative_delay_ms}ms")

    print("Step 4: Merging audio onto video...")
    if not plan:
        print("  No audio clips found, copying video as-is")
    composite(session.concat_path, plan, session.output_path, runner=runner)
    print(f"Created: {session.output_path}")

    write_manifest(
        session.directory, session.session_id, session.persona,
        marks, segments, plan, recording_sec, concat_sec,
    )
    cleanup_intermediates(session)
    return session.output_path
