"""Join extracted segments, in mark order, into one continuous video track."""

import os

from screen_narrator.errors import EncodeFailure, NoSegmentsSurvived
from screen_narrator.ffmpeg import ConcatCommand, run_tool
from screen_narrator.models import ExtractedSegment


def quote_concat_path(path: str) -> str:
    """Quote a path for the concat demuxer: ' becomes '\\''."""
    return "'" + path.replace("'", "'\\''") + "'"


def write_concat_list(segments: list[ExtractedSegment], list_path: str) -> str:
    """One line per segment. Paths are written absolute: the demuxer resolves
    relative entries against the list file's directory, not the cwd."""
    with open(list_path, "w") as f:
        for seg in segments:
            f.write(f"file {quote_concat_path(os.path.abspath(seg.file_path))}\n")
    return list_path


def concatenate_segments(
    segments: list[ExtractedSegment],
    list_path: str,
    output_path: str,
    runner=run_tool,
) -> str:
    """Stream-copy segments into output_path.

    All segments come out of the same TrimCommand settings, so codec,
    resolution and frame rate match and no re-encode is needed.
    """
    if not segments:
        raise NoSegmentsSurvived("No segments survived extraction", stage="concat")

    write_concat_list(segments, list_path)
    result = runner(ConcatCommand(list_path=list_path, output=output_path).to_args())
    if not result.ok:
        raise EncodeFailure(
            "ffmpeg concat failed", stage="concat",
            returncode=result.returncode, stderr=result.stderr,
        )
    return output_path
