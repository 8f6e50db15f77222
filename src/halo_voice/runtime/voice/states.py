"""States, events, and effects of the turn-taking voice loop."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class VoiceState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"
    SPEAKING = "speaking"


class MicrophoneStatus(str, Enum):
    CHECKING = "checking"
    AVAILABLE = "available"
    DENIED = "denied"
    UNSUPPORTED = "unsupported"


NO_SPEECH = "no-speech"
AUDIO_CAPTURE = "audio-capture"
NOT_ALLOWED = "not-allowed"
PERMISSION_ERRORS = frozenset({AUDIO_CAPTURE, NOT_ALLOWED})


# Events ---------------------------------------------------------------------
@dataclass(frozen=True)
class StartRequested:
    pass


@dataclass(frozen=True)
class StopRequested:
    pass


@dataclass(frozen=True)
class InterimTranscript:
    text: str


@dataclass(frozen=True)
class FinalTranscript:
    text: str
    confidence: Optional[float] = None


@dataclass(frozen=True)
class TextSubmitted:
    """Typed input; accepted while idle or listening."""

    text: str


@dataclass(frozen=True)
class CaptureEnded:
    pass


@dataclass(frozen=True)
class CaptureError:
    kind: str


@dataclass(frozen=True)
class ResponseReady:
    turn_id: int
    text: str
    confidence: Optional[float] = None


@dataclass(frozen=True)
class PlaybackEnded:
    pass


@dataclass(frozen=True)
class PlaybackFailed:
    reason: str = ""


@dataclass(frozen=True)
class ResumeTimerElapsed:
    token: int


@dataclass(frozen=True)
class PermissionChanged:
    status: MicrophoneStatus


VoiceEvent = Union[
    StartRequested,
    StopRequested,
    InterimTranscript,
    FinalTranscript,
    TextSubmitted,
    CaptureEnded,
    CaptureError,
    ResponseReady,
    PlaybackEnded,
    PlaybackFailed,
    ResumeTimerElapsed,
    PermissionChanged,
]


# Effects --------------------------------------------------------------------
@dataclass(frozen=True)
class StartCapture:
    pass


@dataclass(frozen=True)
class StopCapture:
    pass


@dataclass(frozen=True)
class Dispatch:
    turn_id: int
    text: str
    confidence: Optional[float] = None
    mode: str = "voice"


@dataclass(frozen=True)
class StartPlayback:
    turn_id: int
    text: str
    confidence: Optional[float] = None


@dataclass(frozen=True)
class StopPlayback:
    pass


@dataclass(frozen=True)
class ScheduleResume:
    token: int
    delay_ms: int


@dataclass(frozen=True)
class CancelResume:
    token: int


@dataclass(frozen=True)
class Notify:
    """User-visible, non-blocking status message."""

    level: str
    message: str


Effect = Union[
    StartCapture,
    StopCapture,
    Dispatch,
    StartPlayback,
    StopPlayback,
    ScheduleResume,
    CancelResume,
    Notify,
]


@dataclass(frozen=True)
class Transition:
    """Outcome of feeding one event to the controller."""

    state: VoiceState
    effects: Tuple[Effect, ...] = ()
    accepted: bool = True
    reason: Optional[str] = None
