"""Session directory management, persisted session state, and cleanup."""

import glob
import json
import os
import shutil
import time
from dataclasses import dataclass, field

from screen_narrator.constants import DEFAULT_PERSONA, MARKS_HEADER, SESSION_BASE
from screen_narrator.errors import SessionError

SESSION_FILE = "session.json"
INTERMEDIATE_PATTERNS = ["segment_*.mp4", "concat.mp4", "concat_list.txt"]


@dataclass
class Session:
    """State of one recording session, rooted at its directory."""

    directory: str
    persona: str = DEFAULT_PERSONA
    recording_start_ms: int | None = None
    durations: dict[int, int] = field(default_factory=dict)   # clip number -> ms

    @property
    def session_id(self) -> str:
        return os.path.basename(self.directory.rstrip(os.sep))

    @property
    def marks_path(self) -> str:
        return os.path.join(self.directory, "marks.txt")

    @property
    def recording_path(self) -> str:
        return os.path.join(self.directory, "recording.webm")

    @property
    def output_path(self) -> str:
        return os.path.join(self.directory, "output.mp4")

    @property
    def concat_path(self) -> str:
        return os.path.join(self.directory, "concat.mp4")

    @property
    def concat_list_path(self) -> str:
        return os.path.join(self.directory, "concat_list.txt")

    def clip_path(self, clip_number: int) -> str:
        return os.path.join(self.directory, f"clip_{clip_number}.mp3")

    def segment_path(self, clip_number: int) -> str:
        return os.path.join(self.directory, f"segment_{clip_number}.mp4")

    @property
    def clip_count(self) -> int:
        return max(self.durations, default=0)


def write_artifact(directory: str, filename: str, data: dict) -> str:
    """Write JSON artifact to directory/filename.

    Returns path to the written file.
    """
    path = os.path.join(directory, filename)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    return path


def load_artifact(directory: str, filename: str) -> dict | None:
    """Read JSON artifact. Returns None if file doesn't exist."""
    path = os.path.join(directory, filename)
    if not os.path.exists(path):
        return None
    with open(path) as f:
        return json.load(f)


def init_session(
    persona: str = DEFAULT_PERSONA,
    base: str = SESSION_BASE,
    clock=time.time,
) -> Session:
    """Create base/session-<unix seconds>/ with session.json and an empty marks log."""
    session_dir = os.path.abspath(os.path.join(base, f"session-{int(clock())}"))
    if os.path.exists(os.path.join(session_dir, SESSION_FILE)):
        raise SessionError(f"Session already exists: {session_dir}", stage="init")
    os.makedirs(session_dir, exist_ok=True)

    session = Session(directory=session_dir, persona=persona or DEFAULT_PERSONA)
    save_session(session)
    with open(session.marks_path, "w") as f:
        f.write(MARKS_HEADER + "\n")
    return session


def save_session(session: Session) -> str:
    return write_artifact(session.directory, SESSION_FILE, {
        "persona": session.persona,
        "recording_start_ms": session.recording_start_ms,
        # JSON keys are strings; load_session converts back
        "durations": {str(k): v for k, v in sorted(session.durations.items())},
    })


def resolve_session_dir(ref: str, base: str = SESSION_BASE) -> str:
    """Accept either a session directory path or a session id under base."""
    if os.path.isdir(ref):
        return os.path.abspath(ref)
    return os.path.abspath(os.path.join(base, ref))


def load_session(ref: str, base: str = SESSION_BASE) -> Session:
    directory = resolve_session_dir(ref, base)
    try:
        data = load_artifact(directory, SESSION_FILE)
    except json.JSONDecodeError as e:
        raise SessionError(f"Corrupt {SESSION_FILE} in {directory}: {e}") from e
    if data is None:
        raise SessionError(f"No session found at {directory}. Run 'init' first.")

    return Session(
        directory=directory,
        persona=data.get("persona", DEFAULT_PERSONA),
        recording_start_ms=data.get("recording_start_ms"),
        durations={int(k): int(v) for k, v in data.get("durations", {}).items()},
    )


def list_sessions(base: str = SESSION_BASE) -> list[str]:
    """Sorted ids of directories under base that hold a session.json."""
    if not os.path.exists(base):
        return []
    sessions = []
    for name in os.listdir(base):
        if os.path.exists(os.path.join(base, name, SESSION_FILE)):
            sessions.append(name)
    return sorted(sessions)


def get_session_status(session: Session, marked: set[int] | None = None) -> dict:
    """Per-clip audio/mark flags plus recording and output presence."""
    marked = marked or set()
    clips = {}
    for n in range(1, session.clip_count + 1):
        clips[n] = {
            "audio": os.path.exists(session.clip_path(n)),
            "marked": n in marked,
            "duration_ms": session.durations.get(n),
        }
    return {
        "started": session.recording_start_ms is not None,
        "clips": clips,
        "recording": os.path.exists(session.recording_path),
        "output": os.path.exists(session.output_path),
    }


def adopt_recording(session: Session, videos_dir: str) -> str:
    """Move the newest .webm the browser wrote into the session as recording.webm."""
    candidates = glob.glob(os.path.join(videos_dir, "*.webm"))
    if not candidates:
        raise SessionError(f"No video file found in {videos_dir}", stage="video")
    newest = max(candidates, key=os.path.getmtime)
    shutil.move(newest, session.recording_path)
    return session.recording_path


def cleanup_intermediates(session: Session) -> list[str]:
    """Delete per-segment files, the bare concat track and the concat list.

    Returns the removed file names.
    """
    removed = []
    for pattern in INTERMEDIATE_PATTERNS:
        for path in glob.glob(os.path.join(session.directory, pattern)):
            os.remove(path)
            removed.append(os.path.basename(path))
    return sorted(removed)
