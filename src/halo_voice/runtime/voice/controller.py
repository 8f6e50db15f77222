"""Turn-taking state machine for the listen / respond / speak loop.

The controller performs no I/O. Each call to :meth:`TurnTakingController.transition`
returns the new state plus the effects the caller must carry out (start or
stop capture, dispatch a turn, start or stop playback, arm or cancel the
resume timer, show a status message). Microphone and speaker activity are
tracked here so that the two are never on at the same time.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from halo_voice.config.defaults import TurnTakingConfig

from .states import (
    AUDIO_CAPTURE,
    NO_SPEECH,
    PERMISSION_ERRORS,
    CancelResume,
    CaptureEnded,
    CaptureError,
    Dispatch,
    Effect,
    FinalTranscript,
    InterimTranscript,
    MicrophoneStatus,
    Notify,
    PermissionChanged,
    PlaybackEnded,
    PlaybackFailed,
    ResponseReady,
    ResumeTimerElapsed,
    ScheduleResume,
    StartCapture,
    StartPlayback,
    StartRequested,
    StopCapture,
    StopPlayback,
    StopRequested,
    TextSubmitted,
    Transition,
    VoiceEvent,
    VoiceState,
)

logger = logging.getLogger(__name__)

PERMISSION_MESSAGES = {
    MicrophoneStatus.CHECKING: "Still checking microphone access. Please try again in a moment.",
    MicrophoneStatus.DENIED: "Microphone permission is denied. Please enable it in your browser settings.",
    MicrophoneStatus.UNSUPPORTED: (
        "Speech recognition is not supported in this browser. Please use Chrome, Edge, or Safari."
    ),
}


class TurnTakingController:
    """Coordinates capture, dispatch, and playback for one voice session."""

    def __init__(
        self,
        config: Optional[TurnTakingConfig] = None,
        permission: MicrophoneStatus = MicrophoneStatus.CHECKING,
    ) -> None:
        self.config = config or TurnTakingConfig()
        self.state = VoiceState.IDLE
        self.permission = permission
        self.conversation_active = False
        self.interim = ""
        self.mic_active = False
        self.speaker_active = False
        self._turn_id = 0
        self._timer_token = 0
        self._pending_resume: Optional[int] = None
        self._handlers: Dict[type, Callable[[Any], Transition]] = {
            StartRequested: self._on_start,
            StopRequested: self._on_stop,
            InterimTranscript: self._on_interim,
            FinalTranscript: self._on_final,
            TextSubmitted: self._on_text,
            CaptureEnded: self._on_capture_ended,
            CaptureError: self._on_capture_error,
            ResponseReady: self._on_response,
            PlaybackEnded: self._on_playback_ended,
            PlaybackFailed: self._on_playback_failed,
            ResumeTimerElapsed: self._on_resume,
            PermissionChanged: self._on_permission,
        }

    @property
    def turn_id(self) -> int:
        return self._turn_id

    @property
    def pending_resume(self) -> Optional[int]:
        return self._pending_resume

    def transition(self, event: VoiceEvent) -> Transition:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"unsupported voice event: {event!r}")
        previous = self.state
        result = handler(event)
        logger.debug(
            "%s: %s -> %s (accepted=%s%s)",
            type(event).__name__,
            previous.value,
            result.state.value,
            result.accepted,
            f", reason={result.reason}" if result.reason else "",
        )
        return result

    def snapshot(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "permission": self.permission.value,
            "conversation_active": self.conversation_active,
            "interim": self.interim,
            "mic_active": self.mic_active,
            "speaker_active": self.speaker_active,
            "turn_id": self._turn_id,
        }

    # Helpers ------------------------------------------------------------------
    def _accept(self, *effects: Effect, reason: Optional[str] = None) -> Transition:
        return Transition(state=self.state, effects=tuple(effects), accepted=True, reason=reason)

    def _ignore(self, reason: str, *effects: Effect) -> Transition:
        return Transition(state=self.state, effects=tuple(effects), accepted=False, reason=reason)

    def _start_capture(self) -> StartCapture:
        self.mic_active = True
        return StartCapture()

    def _halt(self) -> List[Effect]:
        """Return to idle, releasing microphone, speaker, and timer."""
        effects: List[Effect] = []
        if self.mic_active:
            self.mic_active = False
            effects.append(StopCapture())
        if self.speaker_active:
            self.speaker_active = False
            effects.append(StopPlayback())
        if self._pending_resume is not None:
            effects.append(CancelResume(self._pending_resume))
            self._pending_resume = None
        self.interim = ""
        self.conversation_active = False
        self.state = VoiceState.IDLE
        return effects

    def _resume_listening(self, reason: Optional[str] = None) -> Transition:
        if self.permission is not MicrophoneStatus.AVAILABLE:
            effects = self._halt()
            notice = Notify("error", PERMISSION_MESSAGES[self.permission])
            return self._accept(*effects, notice, reason="microphone unavailable")
        self.state = VoiceState.LISTENING
        return self._accept(self._start_capture(), reason=reason)

    def _begin_turn(self, text: str, confidence: Optional[float], mode: str) -> Transition:
        effects: List[Effect] = []
        if self.mic_active:
            self.mic_active = False
            effects.append(StopCapture())
        self.interim = ""
        self._turn_id += 1
        self.state = VoiceState.PROCESSING
        effects.append(Dispatch(turn_id=self._turn_id, text=text, confidence=confidence, mode=mode))
        return self._accept(*effects)

    # Handlers -----------------------------------------------------------------
    def _on_start(self, event: StartRequested) -> Transition:
        if self.state is not VoiceState.IDLE:
            return self._ignore("already running")
        if self.permission is not MicrophoneStatus.AVAILABLE:
            message = PERMISSION_MESSAGES[self.permission]
            return self._ignore(f"microphone {self.permission.value}", Notify("error", message))
        self.conversation_active = True
        self.interim = ""
        self.state = VoiceState.LISTENING
        return self._accept(self._start_capture())

    def _on_stop(self, event: StopRequested) -> Transition:
        return self._accept(*self._halt())

    def _on_interim(self, event: InterimTranscript) -> Transition:
        if self.state is not VoiceState.LISTENING:
            return self._ignore("not listening")
        self.interim = event.text
        return self._accept()

    def _on_final(self, event: FinalTranscript) -> Transition:
        if self.state is not VoiceState.LISTENING:
            return self._ignore(f"busy ({self.state.value})")
        text = event.text.strip()
        if not text:
            return self._ignore("empty transcript")
        return self._begin_turn(text, event.confidence, "voice")

    def _on_text(self, event: TextSubmitted) -> Transition:
        if self.state not in (VoiceState.IDLE, VoiceState.LISTENING):
            return self._ignore(f"busy ({self.state.value})")
        text = event.text.strip()
        if not text:
            return self._ignore("empty input")
        return self._begin_turn(text, None, "text")

    def _on_capture_ended(self, event: CaptureEnded) -> Transition:
        if self.state is VoiceState.LISTENING and self.mic_active:
            # The recognizer stops itself after silence; keep listening continuous.
            return self._accept(StartCapture(), reason="capture restarted")
        self.mic_active = False
        return self._ignore("capture not expected")

    def _on_capture_error(self, event: CaptureError) -> Transition:
        if event.kind == NO_SPEECH:
            logger.info("No speech detected; still listening")
            return self._accept(reason=NO_SPEECH)
        if event.kind in PERMISSION_ERRORS:
            self.permission = MicrophoneStatus.DENIED
            if event.kind == AUDIO_CAPTURE:
                message = "No microphone found or microphone is not working."
            else:
                message = "Microphone permission denied."
            logger.warning("Capture error %s: %s", event.kind, message)
            if self.state is VoiceState.IDLE:
                return self._accept(Notify("error", message), reason=event.kind)
            effects = self._halt()
            return self._accept(*effects, Notify("error", message), reason=event.kind)
        if self.state is not VoiceState.LISTENING:
            return self._ignore(f"capture inactive ({event.kind})")
        logger.warning("Capture error %s; stopping conversation", event.kind)
        effects = self._halt()
        return self._accept(*effects, Notify("warning", f"Speech recognition error: {event.kind}"), reason=event.kind)

    def _on_response(self, event: ResponseReady) -> Transition:
        if self.state is not VoiceState.PROCESSING or event.turn_id != self._turn_id:
            return self._ignore("stale response")
        self.state = VoiceState.SPEAKING
        self.speaker_active = True
        return self._accept(StartPlayback(turn_id=event.turn_id, text=event.text, confidence=event.confidence))

    def _on_playback_ended(self, event: PlaybackEnded) -> Transition:
        if self.state is not VoiceState.SPEAKING or not self.speaker_active:
            return self._ignore("not speaking")
        self.speaker_active = False
        if not self.conversation_active:
            self.state = VoiceState.IDLE
            return self._accept()
        # Hold capture back until the tail of our own audio has died away.
        self._timer_token += 1
        self._pending_resume = self._timer_token
        return self._accept(ScheduleResume(token=self._timer_token, delay_ms=self.config.resume_delay_ms))

    def _on_playback_failed(self, event: PlaybackFailed) -> Transition:
        if self.state is not VoiceState.SPEAKING or not self.speaker_active:
            return self._ignore("not speaking")
        self.speaker_active = False
        logger.warning("Playback failed: %s", event.reason or "unknown error")
        if not self.conversation_active:
            self.state = VoiceState.IDLE
            return self._accept(reason="playback failed")
        return self._resume_listening(reason="playback failed")

    def _on_resume(self, event: ResumeTimerElapsed) -> Transition:
        if (
            event.token != self._pending_resume
            or self.state is not VoiceState.SPEAKING
            or not self.conversation_active
        ):
            return self._ignore("stale timer")
        self._pending_resume = None
        return self._resume_listening()

    def _on_permission(self, event: PermissionChanged) -> Transition:
        self.permission = event.status
        if event.status in (MicrophoneStatus.DENIED, MicrophoneStatus.UNSUPPORTED) and self.state is not VoiceState.IDLE:
            effects = self._halt()
            return self._accept(*effects, Notify("error", PERMISSION_MESSAGES[event.status]))
        return self._accept()
