from __future__ import annotations

import json
from typing import Any, Dict, List

import httpx

from halo_voice.config.defaults import DispatchConfig
from halo_voice.runtime.dispatch.context import SimulationContext
from halo_voice.runtime.dispatch.remote import (
    DEGRADED_CONFIDENCE,
    DEGRADED_RESPONSE,
    DispatchResult,
    RemoteDispatchAdapter,
)
from halo_voice.runtime.memory import Speaker, Utterance

ENDPOINT = "http://backend.test/intelligent-simulation"


def _context() -> SimulationContext:
    return SimulationContext.model_validate(
        {
            "businessProfile": {"name": "Bright Smiles", "industry": "dental", "phone": "555-0100"},
            "knowledgeBase": {
                "manualInput": {"faqs": [{"question": "Do you take insurance?", "answer": "Most plans."}]}
            },
            "agentConfig": {"voiceSettings": {"personality": "friendly", "responseStyle": "concise"}},
        }
    )


def _adapter(handler) -> RemoteDispatchAdapter:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return RemoteDispatchAdapter(DispatchConfig(endpoint_url=ENDPOINT), client=client)


def test_posts_message_context_and_mode() -> None:
    seen: List[Dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "response": "We accept most plans.",
                "confidence": 0.9,
                "knowledgeUsed": ["FAQ: Do you take insurance?..."],
                "functionsTriggered": [],
            },
        )

    transcript = [Utterance(Speaker.USER, f"turn {index}", timestamp=float(index)) for index in range(8)]
    result = _adapter(handler).dispatch("Do you take insurance?", _context(), transcript, mode="text")

    assert result == DispatchResult(
        response="We accept most plans.",
        confidence=0.9,
        knowledge_used=["FAQ: Do you take insurance?..."],
        functions_triggered=[],
    )
    body = seen[0]
    assert body["userMessage"] == "Do you take insurance?"
    assert body["mode"] == "text"
    assert body["context"]["businessProfile"]["name"] == "Bright Smiles"
    assert body["context"]["agentConfig"]["voiceSettings"]["personality"] == "friendly"
    history = body["context"]["conversationHistory"]
    assert [entry["message"] for entry in history] == [f"turn {index}" for index in range(2, 8)]
    assert history[0]["speaker"] == "user"


def test_http_500_yields_degraded_reply() -> None:
    result = _adapter(lambda request: httpx.Response(500, json={"error": "boom"})).dispatch(
        "hello", _context()
    )

    assert result.to_dict() == {
        "response": DEGRADED_RESPONSE,
        "confidence": DEGRADED_CONFIDENCE,
        "knowledgeUsed": [],
        "functionsTriggered": ["escalation"],
    }
    assert result.degraded is True


def test_transport_error_yields_degraded_reply() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = _adapter(handler).dispatch("hello", _context())

    assert result.response == DEGRADED_RESPONSE
    assert result.confidence == 0.5


def test_malformed_body_yields_degraded_reply() -> None:
    bodies = [
        httpx.Response(200, text="not json"),
        httpx.Response(200, json=["a", "list"]),
        httpx.Response(200, json={"confidence": 0.9}),
        httpx.Response(200, json={"response": "ok", "confidence": "high"}),
    ]
    for body in bodies:
        result = _adapter(lambda request, body=body: body).dispatch("hello", _context())
        assert result.degraded is True


def test_confidence_is_clamped() -> None:
    result = _adapter(lambda request: httpx.Response(200, json={"response": "ok", "confidence": 3})).dispatch(
        "hello", _context()
    )

    assert result.confidence == 1.0
    assert result.degraded is False


def test_context_exposes_unique_knowledge_entries() -> None:
    context = SimulationContext.model_validate(
        {
            "businessProfile": {"name": "Acme"},
            "knowledgeBase": {
                "manualInput": {
                    "faqs": [
                        {"question": "Hours?", "answer": "9-5"},
                        {"question": "hours?", "answer": "never"},
                    ]
                }
            },
        }
    )

    entries = context.knowledge_entries()

    assert [(entry.question, entry.answer) for entry in entries] == [("Hours?", "9-5")]
