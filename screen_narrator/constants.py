"""All magic numbers and configuration constants."""

import os

SESSION_BASE = os.path.join(os.path.expanduser("~"), "Movies", "agent-recordings")
VIDEOS_SUBDIR = "videos"                     # where the browser drops raw .webm files
MARKS_HEADER = "# clip_num start_ms duration_ms"
FFMPEG_BIN = "ffmpeg"
FFPROBE_BIN = "ffprobe"
SEGMENT_VIDEO_CODEC = "libx264"              # re-encode so cuts are frame-accurate
SEGMENT_PRESET = "fast"
SEGMENT_CRF = 23
OUTPUT_AUDIO_CODEC = "aac"
DRIFT_TOLERANCE_MS = 40                      # ms per segment, one encoder rounding step
VIEWPORT_WIDTH = 1280
VIEWPORT_HEIGHT = 720
PAGE_SETTLE_MS = 500                         # pause after navigation before narrating
ELEMENT_TIMEOUT_MS = 2000                    # how long a scroll cue waits for its element
SCROLL_ANIMATION_PX = 150                    # how far a narration-only page drifts down and back
SCROLL_ANIMATION_STEPS = 20
SCROLL_ANIMATION_SHARE = 0.25                # of the clip for each leg; the rest is the pause
NAVIGATION_TIMEOUT_MS = 30000
ELEVENLABS_API_URL = "https://api.elevenlabs.io/v1/text-to-speech"
ELEVENLABS_VOICE_ID = "JBFqnCBsd6RMkjVDRZzb"
ELEVENLABS_MODEL_ID = "eleven_multilingual_v2"
ELEVENLABS_OUTPUT_FORMAT = "mp3_44100_128"
EDGE_TTS_VOICE = "en-US-GuyNeural"
EDGE_TTS_RATE = "+0%"
HTTP_TIMEOUT_SECONDS = 60
MUX_API_URL = "https://api.mux.com/video/v1"
MUX_STREAM_URL = "https://stream.mux.com"
MUX_POLL_INTERVAL_SECONDS = 5                # wait between asset lookups
MUX_POLL_ATTEMPTS = 12
DEFAULT_PERSONA = "default"
VERSION = "0.1.0"
