"""Composite the final video and write its provenance manifest."""

import json
import os
import shutil
from datetime import datetime, timezone

from screen_narrator.constants import VERSION
from screen_narrator.errors import EncodeFailure
from screen_narrator.ffmpeg import MixCommand, run_tool
from screen_narrator.models import ExtractedSegment, Mark, MixEntry


def composite(
    video_path: str,
    plan: list[MixEntry],
    output_path: str,
    runner=run_tool,
) -> str:
    """Mix the planned narration under video_path into output_path.

    An empty plan is the video-only case: the track is copied unchanged and
    no mix filter runs.

    Returns path to the composite.
    """
    if not plan:
        shutil.copyfile(video_path, output_path)
        return output_path

    cmd = MixCommand(
        video=video_path,
        audio=tuple((entry.audio_path, entry.cumulative_delay_ms) for entry in plan),
        output=output_path,
    )
    result = runner(cmd.to_args())
    if not result.ok:
        raise EncodeFailure(
            "ffmpeg audio mix failed", stage="mix",
            returncode=result.returncode, stderr=result.stderr,
        )
    return output_path


def write_manifest(
    session_dir: str,
    session_id: str,
    persona: str,
    marks: list[Mark],
    segments: list[ExtractedSegment],
    plan: list[MixEntry],
    recording_duration_sec: float,
    concat_duration_sec: float | None,
) -> str:
    """Write output.json next to the composite.

    Returns path to the manifest.
    """
    delays = {entry.clip_number: entry.cumulative_delay_ms for entry in plan}
    measured = {seg.clip_number: seg.measured_duration_sec for seg in segments}

    clips = []
    for mark in marks:
        clips.append({
            "clip": mark.clip_number,
            "offset_ms": mark.offset_ms,
            "duration_ms": mark.duration_ms,
            "extracted": mark.clip_number in measured,
            "measured_ms": round(measured[mark.clip_number] * 1000) if mark.clip_number in measured else None,
            "delay_ms": delays.get(mark.clip_number),
        })

    manifest = {
        "session": session_id,
        "persona": persona,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "producer_version": VERSION,
        "clips": clips,
        "stats": {
            "marks": len(marks),
            "segments": len(segments),
            "narrated": len(plan),
            "recording_seconds": round(recording_duration_sec, 3),
            "duration_seconds": round(concat_duration_sec, 3) if concat_duration_sec is not None else None,
        },
    }

    path = os.path.join(session_dir, "output.json")
    with open(path, "w") as f:
        json.dump(manifest, f, indent=2)
    return path
