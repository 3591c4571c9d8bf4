"""Speech synthesis with character-level timing (ElevenLabs, or edge-tts word boundaries)."""

import asyncio
import base64
import io
import os
from dataclasses import dataclass, field

import edge_tts
import requests
from pydub import AudioSegment

from screen_narrator import config
from screen_narrator.constants import (
    EDGE_TTS_RATE,
    EDGE_TTS_VOICE,
    ELEVENLABS_API_URL,
    ELEVENLABS_MODEL_ID,
    ELEVENLABS_OUTPUT_FORMAT,
    HTTP_TIMEOUT_SECONDS,
)
from screen_narrator.errors import SynthesisError
from screen_narrator.models import SpeechClip
from screen_narrator.session import Session, save_session
from screen_narrator.timing import character_times_from_words


@dataclass
class Synthesis:
    audio: bytes
    character_start_times: list[float]
    character_end_times: list[float] = field(default_factory=list)
    duration_sec: float = 0.0


class ElevenLabsSynthesizer:
    """text-to-speech/<voice>/with-timestamps: MP3 plus per-character alignment."""

    def __init__(self, api_key: str | None = None, voice_id: str | None = None,
                 model_id: str = ELEVENLABS_MODEL_ID, http=None):
        self.api_key = api_key or config.require_env("ELEVENLABS_API_KEY")
        self.voice_id = voice_id or config.elevenlabs_voice_id()
        self.model_id = model_id
        self.http = http or requests.Session()

    def __call__(self, text: str) -> Synthesis:
        url = f"{ELEVENLABS_API_URL}/{self.voice_id}/with-timestamps"
        try:
            response = self.http.post(
                url,
                params={"output_format": ELEVENLABS_OUTPUT_FORMAT},
                headers={"xi-api-key": self.api_key, "Content-Type": "application/json"},
                json={"text": text, "model_id": self.model_id},
                timeout=HTTP_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            raise SynthesisError(f"ElevenLabs request failed: {e}", stage="audio") from e
        if response.status_code != 200:
            raise SynthesisError(f"ElevenLabs API error ({response.status_code}): {response.text[:500]}",
                                 stage="audio")

        data = response.json()
        alignment = data.get("alignment") or {}
        starts = alignment.get("character_start_times_seconds") or []
        ends = alignment.get("character_end_times_seconds") or []
        if not data.get("audio_base64") or not ends:
            raise SynthesisError("ElevenLabs response has no audio or alignment", stage="audio")

        return Synthesis(
            audio=base64.b64decode(data["audio_base64"]),
            character_start_times=[float(t) for t in starts],
            character_end_times=[float(t) for t in ends],
            duration_sec=float(ends[-1]),
        )


class EdgeSynthesizer:
    """edge-tts fallback. Only word boundaries are reported, so character
    times are interpolated within each word."""

    def __init__(self, voice: str = EDGE_TTS_VOICE, rate: str = EDGE_TTS_RATE):
        self.voice = voice
        self.rate = rate

    async def _stream(self, text: str) -> tuple[bytes, list[tuple[str, float, float]]]:
        communicate = edge_tts.Communicate(text, self.voice, rate=self.rate, boundary="WordBoundary")
        audio = bytearray()
        words = []
        async for chunk in communicate.stream():
            if chunk["type"] == "audio":
                audio.extend(chunk["data"])
            elif chunk["type"] == "WordBoundary":
                # offsets are in 100ns ticks
                words.append((chunk["text"], chunk["offset"] / 1e7, chunk["duration"] / 1e7))
        return bytes(audio), words

    def __call__(self, text: str) -> Synthesis:
        try:
            audio, words = asyncio.run(self._stream(text))
        except edge_tts.exceptions.EdgeTTSException as e:
            raise SynthesisError(f"edge-tts failed: {e}", stage="audio") from e
        if not audio:
            raise SynthesisError(f"edge-tts produced no audio for: {text[:50]}...", stage="audio")

        starts = character_times_from_words(text, words)
        duration = len(AudioSegment.from_file(io.BytesIO(audio), format="mp3")) / 1000
        return Synthesis(
            audio=audio,
            character_start_times=starts,
            character_end_times=starts[1:] + [duration],
            duration_sec=duration,
        )


def get_synthesizer(provider: str | None = None):
    provider = provider or config.tts_provider()
    if provider == "elevenlabs":
        return ElevenLabsSynthesizer()
    return EdgeSynthesizer()


def generate_clip(session: Session, clip_number: int, text: str, synthesize) -> SpeechClip:
    """Synthesize one narration clip into the session.

    Writes clip_<n>.mp3 and records its duration in session.json so the clip
    can be marked. Returns the SpeechClip.
    """
    if not text.strip():
        raise SynthesisError("Narration text is empty", stage="audio", clip_number=clip_number)

    print(f"Generating audio for clip {clip_number}...")
    result = synthesize(text)

    path = session.clip_path(clip_number)
    with open(path, "wb") as f:
        f.write(result.audio)
    if os.path.getsize(path) == 0:
        raise SynthesisError("0-byte audio file", stage="audio", clip_number=clip_number)

    clip = SpeechClip(
        clip_number=clip_number,
        audio_path=path,
        total_duration_sec=result.duration_sec,
        character_start_times=result.character_start_times,
    )
    session.durations[clip_number] = clip.duration_ms
    save_session(session)

    print(f"  Audio saved: {path}")
    print(f"  Duration: {clip.total_duration_sec:.2f}s")
    return clip
