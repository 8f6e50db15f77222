"""Conversation transcript and its SQLite-backed save/load port."""

from __future__ import annotations

import sqlite3
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from halo_voice.config.defaults import MemoryConfig


class Speaker(str, Enum):
    USER = "user"
    AGENT = "agent"


@dataclass(frozen=True)
class Utterance:
    """One turn by either party. Immutable once appended."""

    speaker: Speaker
    text: str
    timestamp: float = field(default_factory=time.time)
    confidence: Optional[float] = None

    def __post_init__(self) -> None:
        if not isinstance(self.speaker, Speaker):
            object.__setattr__(self, "speaker", Speaker(self.speaker))
        if self.confidence is not None and not 0.0 <= self.confidence <= 1.0:
            raise ValueError("confidence must be within [0, 1]")

    def to_payload(self) -> Dict[str, Any]:
        """Wire shape used by the simulation endpoint."""
        payload: Dict[str, Any] = {
            "speaker": self.speaker.value,
            "message": self.text,
            "timestamp": self.timestamp,
        }
        if self.confidence is not None:
            payload["confidence"] = self.confidence
        return payload


class Transcript:
    """Append-only ordered history of one session."""

    def __init__(self, utterances: Optional[List[Utterance]] = None) -> None:
        self._utterances: List[Utterance] = list(utterances or [])

    def append(self, utterance: Utterance) -> None:
        self._utterances.append(utterance)

    def recent(self, limit: int) -> List[Utterance]:
        if limit <= 0:
            return []
        return self._utterances[-limit:]

    def clear(self) -> None:
        self._utterances.clear()

    def to_lines(self) -> str:
        """Render as the ``User:`` / ``AI:`` history consumed by the chat endpoint."""
        lines = []
        for utterance in self._utterances:
            prefix = "User" if utterance.speaker is Speaker.USER else "AI"
            lines.append(f"{prefix}: {utterance.text}")
        return "\n".join(lines)

    def __iter__(self) -> Iterator[Utterance]:
        return iter(list(self._utterances))

    def __len__(self) -> int:
        return len(self._utterances)

    def __getitem__(self, index: int) -> Utterance:
        return self._utterances[index]


class TranscriptStore:
    """Persists transcripts at session boundaries."""

    def __init__(self, config: MemoryConfig) -> None:
        self.config = config
        if config.db_path == ":memory:":
            target = config.db_path
        else:
            db_path = Path(config.db_path)
            db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_path)
        self._conn = sqlite3.connect(target)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        cursor = self._conn.cursor()
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS utterances (
                session_id TEXT NOT NULL,
                turn_index INTEGER NOT NULL,
                speaker TEXT NOT NULL,
                text TEXT NOT NULL,
                confidence REAL,
                created_at REAL NOT NULL,
                PRIMARY KEY (session_id, turn_index)
            )
            """
        )
        self._conn.commit()

    def save(self, session_id: str, transcript: Transcript) -> None:
        """Replace the stored transcript for a session."""
        rows = [
            (session_id, index, item.speaker.value, item.text, item.confidence, item.timestamp)
            for index, item in enumerate(transcript)
        ]
        with self._conn:
            self._conn.execute("DELETE FROM utterances WHERE session_id = ?", (session_id,))
            self._conn.executemany(
                """
                INSERT INTO utterances
                (session_id, turn_index, speaker, text, confidence, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                rows,
            )

    def load(self, session_id: str) -> Transcript:
        cursor = self._conn.cursor()
        cursor.execute(
            """
            SELECT speaker, text, confidence, created_at
            FROM utterances
            WHERE session_id = ?
            ORDER BY turn_index ASC
            """,
            (session_id,),
        )
        return Transcript(
            [
                Utterance(
                    speaker=Speaker(row["speaker"]),
                    text=row["text"],
                    timestamp=row["created_at"],
                    confidence=row["confidence"],
                )
                for row in cursor.fetchall()
            ]
        )

    def clear(self, session_id: str) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM utterances WHERE session_id = ?", (session_id,))

    def close(self) -> None:
        self._conn.close()
