"""HTTP adapter that forwards a user turn to the hosted simulation endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import httpx

from halo_voice.config.defaults import DispatchConfig
from halo_voice.runtime.memory.store import Utterance

from .context import SimulationContext

logger = logging.getLogger(__name__)

DEGRADED_RESPONSE = (
    "I'm experiencing technical difficulties. Let me connect you with a team member "
    "who can help you right away."
)
DEGRADED_CONFIDENCE = 0.5
ESCALATION = "escalation"


@dataclass
class DispatchResult:
    """Normalized remote reply."""

    response: str
    confidence: float
    knowledge_used: List[str] = field(default_factory=list)
    functions_triggered: List[str] = field(default_factory=list)
    degraded: bool = False

    @classmethod
    def degraded_reply(cls) -> "DispatchResult":
        return cls(
            response=DEGRADED_RESPONSE,
            confidence=DEGRADED_CONFIDENCE,
            knowledge_used=[],
            functions_triggered=[ESCALATION],
            degraded=True,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "response": self.response,
            "confidence": self.confidence,
            "knowledgeUsed": list(self.knowledge_used),
            "functionsTriggered": list(self.functions_triggered),
        }


class RemoteDispatchAdapter:
    """Posts ``{userMessage, context, mode}`` and never raises to its caller."""

    def __init__(self, config: DispatchConfig, client: Optional[httpx.Client] = None) -> None:
        self.config = config
        self._client = client or httpx.Client(timeout=config.timeout_s)
        self._owns_client = client is None

    def dispatch(
        self,
        utterance: str,
        context: SimulationContext,
        transcript: Sequence[Utterance] = (),
        mode: Optional[str] = None,
    ) -> DispatchResult:
        history = list(transcript)[-self.config.history_window :] if self.config.history_window > 0 else []
        body = {
            "userMessage": utterance,
            "context": context.with_history(history).to_payload(),
            "mode": mode or self.config.mode,
        }
        try:
            response = self._client.post(self.config.endpoint_url, json=body)
        except httpx.HTTPError as exc:
            logger.warning("Remote dispatch transport failure: %s", exc)
            return DispatchResult.degraded_reply()

        if response.status_code >= 400:
            logger.warning(
                "Remote dispatch returned HTTP %s: %s", response.status_code, response.text[:200]
            )
            return DispatchResult.degraded_reply()

        try:
            return self._parse(response.json())
        except (ValueError, TypeError) as exc:
            logger.warning("Remote dispatch returned an unusable body: %s", exc)
            return DispatchResult.degraded_reply()

    @staticmethod
    def _parse(data: Any) -> DispatchResult:
        if not isinstance(data, dict):
            raise TypeError("response body must be a JSON object")
        text = data.get("response")
        if not isinstance(text, str) or not text.strip():
            raise ValueError("response text missing")
        confidence = float(data.get("confidence", DEGRADED_CONFIDENCE))
        return DispatchResult(
            response=text,
            confidence=min(1.0, max(0.0, confidence)),
            knowledge_used=[str(item) for item in data.get("knowledgeUsed") or []],
            functions_triggered=[str(item) for item in data.get("functionsTriggered") or []],
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
