from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, Iterator, List

import httpx
import openai
import pytest
from fastapi.testclient import TestClient

from halo_voice.config.defaults import ElevenLabsConfig, ModelRoutingConfig, RuntimeConfig
from halo_voice.runtime.dispatch.gateway import ChatGateway
from halo_voice.runtime.dispatch.simulation import SimulationService
from halo_voice.runtime.voice.speech import ElevenLabsClient
from halo_voice.service import api

CONTEXT: Dict[str, Any] = {
    "businessProfile": {"name": "Bright Smiles", "industry": "dental", "phone": "555-0100"},
    "knowledgeBase": {"manualInput": {"faqs": [{"question": "Do you take insurance?", "answer": "Most plans."}]}},
}


class FakeCompletions:
    def __init__(self, text: str = "Happy to help!", error: Exception = None) -> None:
        self.text = text
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.text)
        return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason="stop")], usage=None)


def _gateway(completions: FakeCompletions) -> ChatGateway:
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return ChatGateway(ModelRoutingConfig(), client=client)


@pytest.fixture
def config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> RuntimeConfig:
    runtime_config = RuntimeConfig()
    monkeypatch.setattr(api, "CONFIG_FILE", tmp_path / "runtime_config.json")
    monkeypatch.setattr(api, "_CONFIG_CACHE", runtime_config)
    monkeypatch.setattr(api, "API_TOKEN", None)
    return runtime_config


@pytest.fixture
def client(config: RuntimeConfig) -> Iterator[TestClient]:
    api.app.dependency_overrides.clear()
    with TestClient(api.app) as test_client:
        yield test_client
    api.app.dependency_overrides.clear()


def _use_gateway(completions: FakeCompletions) -> None:
    api.app.dependency_overrides[api.get_chat_gateway] = lambda: _gateway(completions)


def test_health_requires_token_when_set(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(api, "API_TOKEN", "s3cret")

    assert client.get("/health").status_code == 401
    assert client.get("/health", headers={"x-api-token": "s3cret"}).json() == {"status": "ok"}


def test_patch_and_replace_config(client: TestClient, tmp_path: Path) -> None:
    patched = client.patch("/config/matcher", json={"min_overlap": 3})

    assert patched.status_code == 200
    assert patched.json() == {"min_overlap": 3}
    assert client.get("/config").json()["matcher"]["min_overlap"] == 3
    assert (tmp_path / "runtime_config.json").exists()

    assert client.patch("/config/unknown", json={}).status_code == 404

    replaced = client.put("/config", json={"style": {"threshold": 60}})
    assert replaced.json()["style"]["threshold"] == 60
    assert replaced.json()["matcher"]["min_overlap"] == 2


def test_voice_agent_builds_history(client: TestClient) -> None:
    completions = FakeCompletions(text="We open at nine.")
    _use_gateway(completions)

    response = client.post(
        "/voice-agent",
        json={"message": "When do you open?", "conversationHistory": "User: hi\nAI: hello"},
    )

    assert response.status_code == 200
    assert response.json() == {"response": "We open at nine."}
    messages = completions.calls[0]["messages"]
    assert messages[0] == {"role": "system", "content": api.DEFAULT_SYSTEM_PROMPT}
    assert [message["role"] for message in messages[1:]] == ["user", "assistant", "user"]


def test_voice_agent_requires_message(client: TestClient) -> None:
    _use_gateway(FakeCompletions())

    response = client.post("/voice-agent", json={})

    assert response.status_code == 400
    assert response.json()["detail"] == "Message is required"


def test_voice_agent_without_key(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    response = client.post("/voice-agent", json={"message": "hi"})

    assert response.status_code == 500
    assert response.json()["detail"] == "OpenAI API key is not configured"


def test_intelligent_simulation_reply(client: TestClient) -> None:
    _use_gateway(FakeCompletions(text="We accept most plans. Would you like to book a visit?"))

    response = client.post(
        "/intelligent-simulation",
        json={"userMessage": "Do you take insurance?", "context": CONTEXT, "mode": "text"},
    )

    body = response.json()
    assert response.status_code == 200
    assert body["response"].startswith("We accept most plans.")
    assert body["functionsTriggered"] == ["booking"]
    assert 0 <= body["confidence"] <= 1


def test_intelligent_simulation_missing_context(client: TestClient) -> None:
    _use_gateway(FakeCompletions())

    response = client.post("/intelligent-simulation", json={"userMessage": "hi"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Missing required parameters"


def test_intelligent_simulation_failure_returns_degraded_reply(client: TestClient) -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    _use_gateway(FakeCompletions(error=openai.APIConnectionError(request=request)))

    response = client.post("/intelligent-simulation", json={"userMessage": "hi", "context": CONTEXT})

    body = response.json()
    assert response.status_code == 500
    assert body["confidence"] == 0.5
    assert body["functionsTriggered"] == ["escalation"]
    assert body["error"].startswith("Simulation failed:")


def test_tts_returns_audio(client: TestClient) -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"ID3mp3")

    def tts_client() -> ElevenLabsClient:
        transport = httpx.Client(transport=httpx.MockTransport(handler))
        return ElevenLabsClient(ElevenLabsConfig(), api_key="secret", client=transport)

    api.app.dependency_overrides[api.get_tts_client] = tts_client

    response = client.post("/tts", json={"text": "Hello there", "voiceId": "voice-7"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/mpeg"
    assert response.content == b"ID3mp3"
    assert seen[0].url.path == "/v1/text-to-speech/voice-7"


def test_tts_requires_text_and_key(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ELEVENLABS_API_KEY", raising=False)

    assert client.post("/tts", json={}).status_code == 400
    missing_key = client.post("/tts", json={"text": "Hello"})
    assert missing_key.status_code == 500
    assert missing_key.json()["detail"] == "ElevenLabs API key is not configured"


def test_respond_uses_knowledge(client: TestClient) -> None:
    response = client.post(
        "/respond",
        json={
            "message": "Do you have free parking",
            "knowledge": [{"question": "Is parking free?", "answer": "Yes, parking is free."}],
        },
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Yes, parking is free."
    assert response.json()["confidence"] == 0.8


def test_respond_rejects_blank_message(client: TestClient) -> None:
    assert client.post("/respond", json={"message": "   "}).status_code == 400


def test_knowledge_ingestion(client: TestClient) -> None:
    content = "Q: Do you take walk-ins?\nA: Yes, until 3pm.\nQuestion: What does a cleaning cost?"

    response = client.post(
        "/knowledge-ingestion",
        json={"fileId": "file-1", "content": content, "industry": "dental"},
    )

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["faqCount"] == 2
    assert body["detectedIntents"] == ["pricing_inquiry"]
    assert body["entries"] == [{"question": "Do you take walk-ins?", "answer": "Yes, until 3pm."}]
    assert client.post("/knowledge-ingestion", json={"content": content}).status_code == 400


def test_roi_uses_industry_defaults(client: TestClient) -> None:
    defaults = client.post("/roi", json={"industry": "dental"}).json()
    explicit = client.post(
        "/roi",
        json={"industry": "dental", "monthlyLeads": 100, "averageDeal": 1000, "currentConversion": 4},
    ).json()

    assert defaults["inputs"] == {"monthlyLeads": 80, "averageDeal": 650, "currentConversion": 8.1}
    assert explicit["annualIncrease"] == 120000
    assert explicit["paybackPeriod"] == 0.6
    assert client.post("/roi", json={"monthlyLeads": -5}).status_code == 422


def test_scenarios(client: TestClient) -> None:
    body = client.get("/scenarios/real_estate").json()

    assert body["industry"] == "real_estate"
    assert len(body["scenarios"]) == 3
    assert client.get("/scenarios/plumbing").json()["scenarios"] == []


def test_simulation_metrics(client: TestClient) -> None:
    response = client.post(
        "/simulation/metrics",
        json={
            "conversationHistory": [
                {"speaker": "user", "message": "Can I schedule a visit?"},
                {"speaker": "agent", "message": "Sure, what day works?"},
            ],
            "responseTime": 900,
            "confidence": 0.5,
            "knowledgeUsed": ["Business Hours"],
        },
    )

    body = response.json()
    assert response.status_code == 200
    assert body["responseTime"] == 900.0
    assert body["bookingSuccess"] is True
    assert body["intentAccuracy"] == 80


def test_simulation_metrics_without_agent_turns(client: TestClient) -> None:
    body = client.post(
        "/simulation/metrics",
        json={"conversationHistory": [{"speaker": "user", "message": "Can I book a visit?"}], "responseTime": 900},
    ).json()

    assert body["responseTime"] == 0.0
    assert body["bookingSuccess"] is False


def test_roi_config_rejects_zero_cost(client: TestClient) -> None:
    response = client.patch("/config/roi", json={"monthly_cost": 0})

    assert response.status_code == 400
    assert client.get("/config").json()["roi"]["monthly_cost"] == 497.0
    assert client.post("/roi", json={"industry": "dental"}).status_code == 200


def test_simulation_service_dependency_uses_window(config: RuntimeConfig) -> None:
    service = api.get_simulation_service(_gateway(FakeCompletions()), config)

    assert isinstance(service, SimulationService)
    assert service.history_window == config.dispatch.history_window
