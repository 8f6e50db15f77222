"""Lexical knowledge lookup over small question/answer sets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from halo_voice.config.defaults import MatcherConfig


@dataclass(frozen=True)
class KnowledgeEntry:
    """A single question/answer pair supplied by the business."""

    question: str
    answer: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KnowledgeEntry":
        question = data.get("question")
        answer = data.get("answer")
        if not isinstance(question, str) or not question.strip():
            raise ValueError("knowledge entry requires a non-empty question")
        if not isinstance(answer, str):
            raise ValueError("knowledge entry requires an answer string")
        return cls(question=question.strip(), answer=answer.strip())


def unique_entries(entries: Iterable[KnowledgeEntry]) -> List[KnowledgeEntry]:
    """Drop entries whose question was already seen; the first one wins."""
    seen = set()
    result: List[KnowledgeEntry] = []
    for entry in entries:
        key = entry.question.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(entry)
    return result


class KnowledgeMatcher:
    """Returns the first entry whose question shares enough tokens with the utterance.

    Tokens overlap when either one is a substring of the other, so "hours"
    matches "hours?" and "open" matches "opening". No ranking is applied.
    """

    def __init__(self, min_overlap: Optional[int] = None, config: Optional[MatcherConfig] = None) -> None:
        config = config or MatcherConfig()
        self.min_overlap = min_overlap if min_overlap is not None else config.min_overlap
        if self.min_overlap < 1:
            raise ValueError("min_overlap must be at least 1")

    def match(self, utterance: str, entries: Sequence[KnowledgeEntry]) -> Optional[KnowledgeEntry]:
        utterance_tokens = self._tokenize(utterance)
        if not utterance_tokens:
            return None
        for entry in entries:
            if self.overlap(utterance_tokens, entry.question) >= self.min_overlap:
                return entry
        return None

    def overlap(self, utterance_tokens: Sequence[str], question: str) -> int:
        """Count question tokens that overlap any utterance token."""
        count = 0
        for word in self._tokenize(question):
            if any(token in word or word in token for token in utterance_tokens):
                count += 1
        return count

    @staticmethod
    def _tokenize(text: str) -> List[str]:
        return [token.lower() for token in text.split() if token]
