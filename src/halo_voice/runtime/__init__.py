"""Voice loop runtime: rule engine, remote dispatch, transcript, and session."""

from .session import VoiceSession

__all__ = ["VoiceSession"]
