"""Capture, synthesis, and playback adapters used by the voice session."""

from __future__ import annotations

import logging
import os
from collections import deque
from typing import Any, Deque, Dict, Optional, Tuple

import httpx

from halo_voice.config.defaults import ElevenLabsConfig, SpeechConfig, TurnTakingConfig

from .states import MicrophoneStatus

logger = logging.getLogger(__name__)


class CaptureStartError(RuntimeError):
    """The capture source could not be started."""

    def __init__(self, message: str, kind: str = "start-failed") -> None:
        super().__init__(message)
        self.kind = kind


class PlaybackError(RuntimeError):
    """Audio could not be played back."""


class TextToSpeechError(RuntimeError):
    """Synthesis request failed."""

    def __init__(self, message: str, status_code: int = 500, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class CaptureSource:
    """Speech capture facade; transcripts are fed to the session as events.

    The base class only tracks whether capture is running, which is all the
    session needs in tests and in the text-driven demo.
    """

    def __init__(self, config: TurnTakingConfig) -> None:
        self.config = config
        self.active = False
        self.start_count = 0

    def start(self) -> None:
        self.active = True
        self.start_count += 1

    def stop(self) -> None:
        self.active = False


class PermissionProbe:
    """Reports microphone availability."""

    def check(self) -> MicrophoneStatus:
        raise NotImplementedError


class StaticPermissionProbe(PermissionProbe):
    def __init__(self, status: MicrophoneStatus = MicrophoneStatus.AVAILABLE) -> None:
        self.status = status

    def check(self) -> MicrophoneStatus:
        return self.status


class SpeechSynthesizer:
    """Local speech fallback used when remote synthesis is unavailable."""

    def __init__(self, config: SpeechConfig) -> None:
        self.config = config
        self._spoken_log: Deque[str] = deque(maxlen=20)

    def speak(self, text: str) -> None:
        if not text:
            return
        self._spoken_log.append(text)

    def stop(self) -> None:
        """Interrupt local speech (no-op for the log-only synthesizer)."""

    def get_spoken_log(self) -> Tuple[str, ...]:
        return tuple(self._spoken_log)


class AudioPlayer:
    """Plays synthesized audio clips; the base player keeps them in memory."""

    def __init__(self) -> None:
        self._clips: Deque[bytes] = deque(maxlen=20)

    def play(self, audio: bytes) -> None:
        if not audio:
            raise PlaybackError("empty audio clip")
        self._clips.append(audio)

    def stop(self) -> None:
        """Interrupt playback (no-op for the in-memory player)."""

    def get_clips(self) -> Tuple[bytes, ...]:
        return tuple(self._clips)


class RemoteTextToSpeech:
    """Client for the service's ``POST /tts`` endpoint."""

    def __init__(self, config: SpeechConfig, client: Optional[httpx.Client] = None) -> None:
        self.config = config
        self._client = client or httpx.Client(timeout=config.timeout_s)
        self._owns_client = client is None

    def synthesize(self, text: str, voice_id: Optional[str] = None) -> bytes:
        body = {"text": text, "voiceId": voice_id or self.config.voice_id}
        try:
            response = self._client.post(self.config.tts_url, json=body)
        except httpx.HTTPError as exc:
            raise TextToSpeechError(f"TTS request failed: {exc}") from exc
        if response.status_code >= 400:
            raise TextToSpeechError(
                f"TTS request failed: {response.status_code}",
                status_code=response.status_code,
                detail=response.text[:200],
            )
        if not response.content:
            raise TextToSpeechError("TTS returned no audio")
        return response.content

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class ElevenLabsClient:
    """Server-side synthesis against the ElevenLabs REST API."""

    def __init__(
        self,
        config: ElevenLabsConfig,
        api_key: Optional[str] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.config = config
        self.api_key = api_key or os.environ.get("ELEVENLABS_API_KEY")
        self._client = client or httpx.Client(timeout=config.timeout_s)
        self._owns_client = client is None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def request_body(self, text: str) -> Dict[str, Any]:
        return {
            "text": text,
            "model_id": self.config.model_id,
            "voice_settings": {
                "stability": self.config.stability,
                "similarity_boost": self.config.similarity_boost,
                "style": self.config.style,
                "use_speaker_boost": self.config.use_speaker_boost,
            },
        }

    def synthesize(self, text: str, voice_id: str) -> bytes:
        if not self.api_key:
            raise TextToSpeechError("ElevenLabs API key not configured", status_code=500)
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self.api_key,
        }
        try:
            response = self._client.post(
                f"{self.config.base_url.rstrip('/')}/v1/text-to-speech/{voice_id}",
                json=self.request_body(text),
                headers=headers,
            )
        except httpx.HTTPError as exc:
            logger.error("ElevenLabs request failed: %s", exc)
            raise TextToSpeechError("Failed to generate speech", status_code=500, detail=str(exc)) from exc
        if response.status_code >= 400:
            logger.error("ElevenLabs API error %s: %s", response.status_code, response.text[:200])
            raise TextToSpeechError(
                f"ElevenLabs API error: {response.status_code}",
                status_code=response.status_code,
                detail=response.text,
            )
        return response.content

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class VoiceOutput:
    """Speaks agent replies: remote synthesis first, local speech as fallback.

    ``blocking`` outputs finish playback before :meth:`play` returns; the
    session then reports playback completion itself. Non-blocking outputs
    must feed ``PlaybackEnded`` back to the session when audio finishes.
    """

    blocking = True

    def __init__(
        self,
        config: SpeechConfig,
        tts: Optional[RemoteTextToSpeech] = None,
        player: Optional[AudioPlayer] = None,
        synthesizer: Optional[SpeechSynthesizer] = None,
    ) -> None:
        self.config = config
        self.tts = tts
        self.player = player or AudioPlayer()
        self.synthesizer = synthesizer or SpeechSynthesizer(config)

    def play(self, text: str) -> str:
        """Speak ``text`` and return the backend used.

        Raises :class:`PlaybackError` when synthesized audio cannot be played.
        """
        if not self.config.enable_tts or not text:
            return "muted"
        if self.tts is not None:
            try:
                audio = self.tts.synthesize(text, self.config.voice_id)
            except TextToSpeechError as exc:
                logger.warning("Remote TTS unavailable, using local speech: %s", exc)
            else:
                self.player.play(audio)
                return "remote"
        self.synthesizer.speak(text)
        return "local"

    def stop(self) -> None:
        self.player.stop()
        self.synthesizer.stop()
