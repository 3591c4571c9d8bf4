"""Error taxonomy for the recording and compositing pipeline."""


class NarratorError(Exception):
    """Base error. Carries the failing stage and clip number when known."""

    def __init__(self, message: str, stage: str | None = None, clip_number: int | None = None):
        self.stage = stage
        self.clip_number = clip_number
        prefix = []
        if stage:
            prefix.append(f"[{stage}]")
        if clip_number is not None:
            prefix.append(f"clip {clip_number}:")
        super().__init__(" ".join(prefix + [message]))


class NotStarted(NarratorError):
    """mark() called before start()."""


class NoDurationKnown(NarratorError):
    """mark() called for a clip whose audio has not been synthesized."""


class MarkConflict(NarratorError):
    """A clip number was marked twice."""


class InvalidSegment(NarratorError):
    """Narration segment or timing input that cannot be mapped."""


class OutOfBounds(NarratorError):
    """Extraction window runs past the end of the raw recording."""


class EncodeFailure(NarratorError):
    """The media tool exited non-zero."""

    def __init__(self, message: str, stage: str | None = None, clip_number: int | None = None,
                 returncode: int | None = None, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        if stderr:
            message = f"{message}: {stderr.strip()[-600:]}"
        super().__init__(message, stage=stage, clip_number=clip_number)


class NoSegmentsSurvived(NarratorError):
    """Every mark was dropped during extraction."""


class SessionError(NarratorError):
    """Missing or unreadable session state."""


class TourError(NarratorError):
    """Invalid tour script."""


class SynthesisError(NarratorError):
    """Speech provider rejected the request."""


class UploadError(NarratorError):
    """Video host rejected the upload."""


class ConfigError(NarratorError):
    """Required setting missing from the environment."""


class ActionFailed(NarratorError):
    """A scroll/navigate cue could not be performed. Never fatal."""
