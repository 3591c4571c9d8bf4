"""Plan narration delays from measured segment durations and build the mix filter."""

from screen_narrator.models import ExtractedSegment, MixEntry


def plan_mix(
    segments: list[ExtractedSegment],
    clip_audio: dict[int, str],
) -> list[MixEntry]:
    """Place each clip's narration at the start of its segment in the concatenated track.

    The delay for the k-th segment is the running sum of the measured
    durations of segments 0..k-1, converted to ms once on the sum. Requested
    mark durations are never used here: re-encoding at arbitrary cut points
    makes each segment slightly longer or shorter, and that drift compounds
    over many clips.

    clip_audio maps clip number to its narration file. Segments without one
    still occupy track time but get no entry. An empty result means the
    composite is video-only.
    """
    plan = []
    elapsed_sec = 0.0
    for seg in segments:
        audio_path = clip_audio.get(seg.clip_number)
        if audio_path:
            plan.append(MixEntry(
                clip_number=seg.clip_number,
                audio_path=audio_path,
                cumulative_delay_ms=int(round(elapsed_sec * 1000)),
            ))
        elapsed_sec += seg.measured_duration_sec
    return plan


def build_mix_filter(delays: list[int]) -> str:
    """filter_complex for inputs 1..N delayed by delays[i] ms, mixed to [aout].

    Output lasts as long as the longest delayed stream so a final clip that
    outruns the video is not cut. normalize=0 keeps each clip at full level;
    the clips never overlap.
    """
    if not delays:
        raise ValueError("No narration clips to mix")
    parts = []
    labels = ""
    for index, delay in enumerate(delays, start=1):
        parts.append(f"[{index}:a]adelay={delay}|{delay}[a{index}]")
        labels += f"[a{index}]"
    parts.append(f"{labels}amix=inputs={len(delays)}:duration=longest:normalize=0[aout]")
    return ";".join(parts)
