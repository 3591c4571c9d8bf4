"""Shared fixtures for screen narrator tests."""

import os

import pytest

from screen_narrator.ffmpeg import ToolResult
from screen_narrator.models import TextSegment
from screen_narrator.session import init_session


class FakeMedia:
    """Stands in for ffmpeg/ffprobe.

    Writes a small file for every command's output. Trimmed segments come out
    `drift` seconds longer than requested, like a real re-encode; the
    concatenated track is the sum of its listed segments.
    """

    def __init__(self, durations=None, fail_outputs=(), drift=0.0):
        self.calls = []
        self.durations = dict(durations or {})
        self.fail_outputs = set(fail_outputs)
        self.drift = drift

    def run(self, args):
        self.calls.append(list(args))
        output = args[-1]
        name = os.path.basename(output)
        if name in self.fail_outputs:
            return ToolResult(returncode=1, stderr="Conversion failed!")

        if "-t" in args:
            self.durations[name] = float(args[args.index("-t") + 1]) + self.drift
        elif "concat" in args:
            list_path = args[args.index("-i") + 1]
            with open(list_path) as f:
                listed = [line.strip()[len("file '"):-1] for line in f if line.strip()]
            # the demuxer resolves relative entries against the list's directory
            listed = [os.path.join(os.path.dirname(list_path), p) for p in listed]
            missing = [p for p in listed if not os.path.exists(p)]
            if missing:
                return ToolResult(returncode=1, stderr=f"{missing[0]}: No such file or directory")
            self.durations[name] = sum(self.durations[os.path.basename(p)] for p in listed)

        with open(output, "wb") as f:
            f.write(b"\0" * 16)
        return ToolResult(returncode=0)

    def probe(self, path):
        return self.durations[os.path.basename(path)]

    def commands(self, kind):
        """Calls whose argument list contains kind ("-t", "concat", "-filter_complex")."""
        return [c for c in self.calls if kind in c]


@pytest.fixture
def fake_media():
    return FakeMedia()


@pytest.fixture
def session(tmp_path):
    """Fresh session under tmp_path/sessions."""
    return init_session("roast", base=str(tmp_path / "sessions"), clock=lambda: 1700000000)


@pytest.fixture
def sample_segments():
    return [
        TextSegment(text="Hello world.", scroll_target="top"),
        TextSegment(text="Goodbye.", scroll_target="#footer"),
    ]


@pytest.fixture
def recorded_session(session):
    """Session with a (fake) raw recording in place."""
    with open(session.recording_path, "wb") as f:
        f.write(b"\x1a\x45\xdf\xa3")
    return session


@pytest.fixture
def make_media():
    """FakeMedia factory for tests that need failures or drift."""
    return FakeMedia
