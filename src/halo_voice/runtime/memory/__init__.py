"""Conversation transcript storage."""

from .store import Speaker, Transcript, TranscriptStore, Utterance

__all__ = ["Speaker", "Transcript", "TranscriptStore", "Utterance"]
