"""Turn-taking controller and the capture / playback adapters it drives."""

from .controller import TurnTakingController
from .speech import (
    AudioPlayer,
    CaptureSource,
    CaptureStartError,
    ElevenLabsClient,
    PermissionProbe,
    PlaybackError,
    RemoteTextToSpeech,
    SpeechSynthesizer,
    StaticPermissionProbe,
    TextToSpeechError,
    VoiceOutput,
)
from .states import MicrophoneStatus, Transition, VoiceState

__all__ = [
    "TurnTakingController",
    "AudioPlayer",
    "CaptureSource",
    "CaptureStartError",
    "ElevenLabsClient",
    "PermissionProbe",
    "PlaybackError",
    "RemoteTextToSpeech",
    "SpeechSynthesizer",
    "StaticPermissionProbe",
    "TextToSpeechError",
    "VoiceOutput",
    "MicrophoneStatus",
    "Transition",
    "VoiceState",
]
