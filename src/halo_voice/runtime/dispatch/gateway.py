"""Model selection and invocation for the hosted chat-completion backend."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, List, Optional, Sequence

import openai

from halo_voice.config.defaults import ModelRoutingConfig

logger = logging.getLogger(__name__)

VOICE_AGENT = "voice-agent"
SIMULATION = "simulation"


class GatewayError(RuntimeError):
    """Upstream chat completion failed."""


class GatewayNotConfigured(GatewayError):
    """No API key is available."""


class GatewayAuthError(GatewayError):
    """The upstream rejected the API key."""


@dataclass
class ModelSpec:
    """Generation parameters for one endpoint purpose."""

    name: str
    max_output_tokens: int
    temperature: float
    presence_penalty: float = 0.0
    frequency_penalty: float = 0.0
    empty_reply: str = "Sorry, I could not generate a response."


@dataclass
class ChatMessage:
    role: str
    content: str


@dataclass
class ChatCompletion:
    """Normalized completion for downstream consumption."""

    text: str
    model: str
    usage: Dict[str, int]
    latency_ms: float
    finish_reason: str = "stop"


def parse_history_lines(conversation: Optional[str]) -> List[ChatMessage]:
    """Turn a ``User:`` / ``AI:`` line transcript into chat messages."""
    messages: List[ChatMessage] = []
    if not conversation:
        return messages
    for raw_line in conversation.splitlines():
        line = raw_line.strip()
        if line.startswith("User:"):
            messages.append(ChatMessage(role="user", content=line[len("User:") :].strip()))
        elif line.startswith("AI:"):
            messages.append(ChatMessage(role="assistant", content=line[len("AI:") :].strip()))
    return messages


class ChatGateway:
    """Routes completion requests to the model configured for each purpose."""

    def __init__(
        self,
        config: ModelRoutingConfig,
        api_key: Optional[str] = None,
        client: Optional[Any] = None,
    ) -> None:
        self.config = config
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self._client = client
        self._catalog: Dict[str, ModelSpec] = {
            VOICE_AGENT: ModelSpec(
                name=config.chat_model,
                max_output_tokens=config.chat_max_tokens,
                temperature=config.temperature,
            ),
            SIMULATION: ModelSpec(
                name=config.simulation_model,
                max_output_tokens=config.simulation_max_tokens,
                temperature=config.temperature,
                presence_penalty=config.presence_penalty,
                frequency_penalty=config.frequency_penalty,
                empty_reply=(
                    "I apologize, but I'm having trouble processing your request. "
                    "Could you please try again?"
                ),
            ),
        }

    @property
    def configured(self) -> bool:
        return self._client is not None or bool(self.api_key)

    def get_spec(self, purpose: str) -> ModelSpec:
        try:
            return self._catalog[purpose]
        except KeyError:
            raise GatewayError(f"no model registered for '{purpose}'") from None

    def complete(self, messages: Sequence[ChatMessage], purpose: str = VOICE_AGENT) -> ChatCompletion:
        """Call the model registered for ``purpose``."""
        spec = self.get_spec(purpose)
        client = self._get_client()
        start_time = perf_counter()
        try:
            completion = client.chat.completions.create(
                model=spec.name,
                messages=[{"role": message.role, "content": message.content} for message in messages],
                temperature=spec.temperature,
                max_tokens=spec.max_output_tokens,
                presence_penalty=spec.presence_penalty,
                frequency_penalty=spec.frequency_penalty,
            )
        except openai.AuthenticationError as exc:
            raise GatewayAuthError("Invalid OpenAI API key. Please check your API key configuration.") from exc
        except openai.OpenAIError as exc:
            logger.error("Chat completion failed for %s: %s", spec.name, exc)
            raise GatewayError(str(exc) or "Unknown error") from exc
        latency_ms = (perf_counter() - start_time) * 1000.0

        choice = completion.choices[0] if completion.choices else None
        text = (choice.message.content if choice is not None else None) or spec.empty_reply
        usage = self._usage(completion)
        return ChatCompletion(
            text=text,
            model=getattr(completion, "model", None) or spec.name,
            usage=usage,
            latency_ms=latency_ms,
            finish_reason=(choice.finish_reason if choice is not None else None) or "stop",
        )

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client
        if not self.api_key:
            raise GatewayNotConfigured("OpenAI API key is not configured")
        self._client = openai.OpenAI(api_key=self.api_key)
        return self._client

    @staticmethod
    def _usage(completion: Any) -> Dict[str, int]:
        usage = getattr(completion, "usage", None)
        if usage is None:
            return {}
        return {
            "prompt_tokens": getattr(usage, "prompt_tokens", 0) or 0,
            "completion_tokens": getattr(usage, "completion_tokens", 0) or 0,
            "total_tokens": getattr(usage, "total_tokens", 0) or 0,
        }
