"""CLI interface with subcommand routing for the narrated recording workflow."""

import argparse
import os
import shutil
import sys

from screen_narrator import config
from screen_narrator.constants import DEFAULT_PERSONA, FFMPEG_BIN, FFPROBE_BIN, VIDEOS_SUBDIR, VERSION
from screen_narrator.errors import NarratorError, NoDurationKnown
from screen_narrator.marks import load_mark_log, append_mark, now_ms, reset_marks
from screen_narrator.pipeline import finalize
from screen_narrator.recorder import animation_script, default_driver, record_tour
from screen_narrator.session import (
    adopt_recording,
    get_session_status,
    init_session,
    list_sessions,
    load_session,
    save_session,
)
from screen_narrator.tour import load_tour
from screen_narrator.tts import generate_clip, get_synthesizer
from screen_narrator.upload import MuxUploader

WORKFLOW = """Workflow:
  1. browser_navigate to first URL
  2. narrator start <session>  <- IMMEDIATELY after browser opens
  3. For each page:
     a. browser_snapshot
     b. narrator audio <session> <num> "commentary"
     c. narrator mark <session> <num>
     d. browser_run_code with the output of: narrator animate <session> <num>
        (or browser_wait_for time=<duration>)
     e. browser_navigate to next page (or close if done)
  4. browser_close
  5. narrator video <session>
  6. narrator finalize <session>
  7. narrator upload <session>"""


def _check_ffmpeg():
    """Verify ffmpeg is installed."""
    if not shutil.which(FFMPEG_BIN) or not shutil.which(FFPROBE_BIN):
        print("Error: ffmpeg and ffprobe are required but not found.", file=sys.stderr)
        print("Install with: brew install ffmpeg", file=sys.stderr)
        raise SystemExit(1)


def _load(args):
    return load_session(args.session, base=config.session_base())


def cmd_init(args):
    """Create a new session."""
    session = init_session(args.persona, base=config.session_base())
    print(f"Session initialized: {session.directory}")
    print(f"Session id: {session.session_id}")
    print(f"Persona: {session.persona}")
    print()
    print(WORKFLOW)


def cmd_start(args):
    """Log the recording T0."""
    session = _load(args)
    if session.recording_start_ms is not None and not args.force:
        print(f"Error: Recording start already logged for {session.session_id}. Use --force to reset.",
              file=sys.stderr)
        raise SystemExit(1)
    log = load_mark_log(session, clock=now_ms)
    if log.marks:
        # old marks are offsets from the previous T0
        reset_marks(session.marks_path)
        print(f"Cleared {len(log.marks)} marks logged against the previous start time")
    session.recording_start_ms = log.start()
    save_session(session)
    print("Recording start time logged")
    print()
    print(f"Next: browser_snapshot, then narrator audio {session.session_id} 1 \"...\"")


def cmd_audio(args):
    """Generate the narration clip for one page."""
    session = _load(args)
    clip = generate_clip(session, args.clip, args.text, get_synthesizer(args.tts))
    print()
    print("Next steps:")
    print(f"  1. narrator mark {session.session_id} {args.clip}")
    print(f"  2. browser_wait_for time={clip.total_duration_sec:.2f}")


def cmd_mark(args):
    """Mark the start of a clip's good segment in the recording."""
    session = _load(args)
    log = load_mark_log(session, clock=now_ms)
    mark = log.mark(args.clip)
    append_mark(session.marks_path, mark)
    print(f"Marked clip {mark.clip_number}: starts at {mark.offset_ms / 1000:.2f}s in video, "
          f"duration {mark.duration_ms / 1000:.2f}s")
    print()
    print(f"Next: narrator animate {session.session_id} {mark.clip_number} "
          f"(or browser_wait_for time={mark.duration_ms / 1000:.2f})")


def cmd_animate(args):
    """Print the scroll animation script to run while a clip plays."""
    session = _load(args)
    duration_ms = session.durations.get(args.clip)
    if not duration_ms:
        raise NoDurationKnown("No duration found. Generate its audio first.", stage="animate", clip_number=args.clip)
    print(animation_script(duration_ms))
    print()
    print("Use with: browser_run_code with the above code")


def cmd_video(args):
    """Move the browser's raw recording into the session."""
    session = _load(args)
    videos_dir = args.videos_dir or os.path.join(config.session_base(), VIDEOS_SUBDIR)
    path = adopt_recording(session, videos_dir)
    print(f"Video saved: {path}")
    print()
    print(f"Next: narrator finalize {session.session_id}")


def cmd_status(args):
    """Show session status."""
    session = _load(args)
    log = load_mark_log(session)
    status = get_session_status(session, marked={m.clip_number for m in log.marks})

    print(f"Session: {session.directory}")
    print(f"Persona: {session.persona}")
    print(f"Clips:   {session.clip_count}")
    print(f"Started: {'yes' if status['started'] else 'no'}")

    if log.marks:
        print("Marks:")
        for m in log.marks:
            print(f"  Clip {m.clip_number}: {m.offset_ms / 1000:.2f}s for {m.duration_ms / 1000:.2f}s")

    for n, info in status["clips"].items():
        audio = "[x]" if info["audio"] else "[ ]"
        marked = "[x]" if info["marked"] else "[ ]"
        print(f"  Clip {n}: Audio {audio}  Marked {marked}")

    print(f"Recording: {'saved' if status['recording'] else 'not saved'}")
    print(f"Output: {'ready' if status['output'] else 'not ready'}")


def cmd_list(args):
    """List all sessions."""
    base = config.session_base()
    sessions = list_sessions(base)
    if not sessions:
        print("No sessions found.")
        return
    print("Sessions:")
    for name in sessions:
        done = os.path.exists(os.path.join(base, name, "output.mp4"))
        marker = "[done]" if done else "[----]"
        print(f"  {marker} {name}")


def cmd_finalize(args):
    """Extract segments and merge narration."""
    _check_ffmpeg()
    session = _load(args)
    finalize(session)
    print()
    print("Finalization complete!")
    print(f"Next: narrator upload {session.session_id}")


def cmd_upload(args):
    """Upload the composite and print its playback URL."""
    session = _load(args)
    video_file = args.file or session.output_path
    print("Uploading to Mux...")
    url = MuxUploader().upload(video_file)
    print()
    print("Upload complete!")
    print(f"Watch URL: {url}")


def cmd_record(args):
    """Record a whole tour unattended: capture, finalize, upload."""
    _check_ffmpeg()
    tour = load_tour(args.tour)
    session = init_session(args.persona or tour.persona, base=config.session_base())
    print(f"Starting session: {session.directory}")
    print(f"Persona: {session.persona}")
    print(f"Pages: {len(tour.pages)}")

    record_tour(session, tour, get_synthesizer(args.tts), default_driver(session, headless=args.headless))
    output = finalize(session)

    if args.no_upload:
        print(f"Done: {output}")
        return
    url = MuxUploader().upload(output)
    print(f"Upload complete: {url}")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="narrator",
        description="Narrator: time-aligned narration for continuous screen recordings",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    tts_choices = ["elevenlabs", "edge"]

    init_parser = subparsers.add_parser("init", help="Initialize a new session")
    init_parser.add_argument("persona", nargs="?", default=DEFAULT_PERSONA, help="Narration persona")
    init_parser.set_defaults(func=cmd_init)

    start_parser = subparsers.add_parser("start", help="Log video start time (right after the browser opens)")
    start_parser.add_argument("session", help="Session id or directory")
    start_parser.add_argument("--force", action="store_true", help="Reset the start time and clear existing marks")
    start_parser.set_defaults(func=cmd_start)

    audio_parser = subparsers.add_parser("audio", help="Generate a narration clip")
    audio_parser.add_argument("session", help="Session id or directory")
    audio_parser.add_argument("clip", type=int, help="Clip number (1-based)")
    audio_parser.add_argument("text", help="Narration text")
    audio_parser.add_argument("--tts", choices=tts_choices, help="Speech provider")
    audio_parser.set_defaults(func=cmd_audio)

    mark_parser = subparsers.add_parser("mark", help="Mark timestamp for segment extraction")
    mark_parser.add_argument("session", help="Session id or directory")
    mark_parser.add_argument("clip", type=int, help="Clip number (1-based)")
    mark_parser.set_defaults(func=cmd_mark)

    animate_parser = subparsers.add_parser("animate", help="Print scroll animation JS (use instead of wait)")
    animate_parser.add_argument("session", help="Session id or directory")
    animate_parser.add_argument("clip", type=int, help="Clip number (1-based)")
    animate_parser.set_defaults(func=cmd_animate)

    video_parser = subparsers.add_parser("video", help="Save the recording into the session")
    video_parser.add_argument("session", help="Session id or directory")
    video_parser.add_argument("--videos-dir", help="Where the browser wrote its .webm files")
    video_parser.set_defaults(func=cmd_video)

    status_parser = subparsers.add_parser("status", help="Show session status")
    status_parser.add_argument("session", help="Session id or directory")
    status_parser.set_defaults(func=cmd_status)

    list_parser = subparsers.add_parser("list", help="List all sessions")
    list_parser.set_defaults(func=cmd_list)

    finalize_parser = subparsers.add_parser("finalize", help="Extract segments, merge audio")
    finalize_parser.add_argument("session", help="Session id or directory")
    finalize_parser.set_defaults(func=cmd_finalize)

    upload_parser = subparsers.add_parser("upload", help="Upload to Mux")
    upload_parser.add_argument("session", help="Session id or directory")
    upload_parser.add_argument("--file", help="Upload this file instead of the session output")
    upload_parser.set_defaults(func=cmd_upload)

    record_parser = subparsers.add_parser("record", help="Record, finalize and upload a tour script")
    record_parser.add_argument("tour", help="Path to tour JSON")
    record_parser.add_argument("--persona", help="Override the tour's persona")
    record_parser.add_argument("--tts", choices=tts_choices, help="Speech provider")
    record_parser.add_argument("--headless", action="store_true", help="Run the browser headless")
    record_parser.add_argument("--no-upload", action="store_true", help="Stop after finalize")
    record_parser.set_defaults(func=cmd_record)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    config.load_env()
    try:
        args.func(args)
    except NarratorError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
