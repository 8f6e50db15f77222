"""Business-aware simulated conversations on top of the chat gateway."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from halo_voice.runtime.engine.telemetry import LatencyProbe

from .context import HistoryEntry, SimulationContext
from .gateway import SIMULATION, ChatGateway, ChatMessage

logger = logging.getLogger(__name__)

PERSONALITY_TRAITS = {
    "professional": (
        "formal, knowledgeable, and trustworthy. Use business-appropriate language and "
        "maintain a respectful tone."
    ),
    "friendly": (
        "warm, approachable, and conversational. Use a welcoming tone and show genuine "
        "interest in helping."
    ),
    "energetic": "upbeat, enthusiastic, and engaging. Show excitement about helping and use positive language.",
    "calm": "gentle, patient, and soothing. Take time to address concerns and provide reassurance.",
}

RESPONSE_STYLES = {
    "concise": "Keep responses brief and direct. Get straight to the point without unnecessary details.",
    "detailed": "Provide comprehensive responses with helpful context and additional information.",
    "consultative": (
        "Ask thoughtful follow-up questions to better understand customer needs before "
        "providing solutions."
    ),
}

FUNCTION_KEYWORDS = (
    ("booking", ("schedule", "appointment", "book")),
    ("pricing", ("price", "cost", "payment")),
    ("contact", ("call", "contact", "reach")),
    ("email", ("email", "send")),
)

BASE_CONFIDENCE = 0.75
KNOWLEDGE_BONUS = 0.15
FUNCTION_BONUS = 0.1


def _industry_label(industry: str) -> str:
    return industry.replace("_", " ")


def build_system_prompt(context: SimulationContext) -> str:
    """Describe the business, the agent's personality, and its knowledge."""
    profile = context.business_profile
    manual = context.knowledge_base.manual_input
    settings = context.agent_config

    knowledge_context = ""
    if manual.faqs:
        knowledge_context += "\n\nFREQUENTLY ASKED QUESTIONS:\n"
        for faq in manual.faqs:
            knowledge_context += f"Q: {faq.question}\nA: {faq.answer}\n\n"
    if manual.services:
        knowledge_context += "\nSERVICES OFFERED:\n"
        for service in manual.services:
            knowledge_context += f"- {service}\n"

    booking_rules = []
    if settings.booking_rules.allow_after_hours:
        booking_rules.append("Accept appointments outside regular business hours")
    if settings.booking_rules.require_deposit:
        booking_rules.append("Request deposit or payment information to secure appointments")
    if settings.booking_rules.auto_confirm:
        booking_rules.append("Automatically confirm appointments if calendar availability allows")
    rules_block = (
        "\n".join(f"- {rule}" for rule in booking_rules)
        if booking_rules
        else "- Follow standard business booking practices"
    )

    industry = _industry_label(profile.industry)
    return f"""You are an AI assistant representing {profile.name}, a {industry} business.

BUSINESS INFORMATION:
- Business Name: {profile.name}
- Industry: {industry}
- Phone: {profile.phone}
- Locations: {', '.join(profile.locations)}
- Operating Hours: {json.dumps(profile.operating_hours)}
- Primary Goals: {', '.join(profile.primary_goals)}

PERSONALITY & COMMUNICATION STYLE:
You should be {PERSONALITY_TRAITS[settings.voice_settings.personality]}

RESPONSE APPROACH:
{RESPONSE_STYLES[settings.voice_settings.response_style]}

BOOKING GUIDELINES:
{rules_block}

{knowledge_context}

IMPORTANT INSTRUCTIONS:
1. You are NOT a script reader. Use the knowledge provided as context, but respond naturally and conversationally.
2. If you don't know something specific to the business, politely say so and offer to have a team member follow up.
3. Always try to move conversations toward booking appointments or capturing contact information.
4. Be helpful and solution-oriented, but stay within your knowledge boundaries.
5. Use the business name naturally in conversation.
6. If asked about prices not in your knowledge base, give general ranges and suggest scheduling a consultation.
7. For scheduling requests, be enthusiastic and accommodating while following the booking rules.

Remember: You represent a real business. Be professional, helpful, and focused on providing excellent customer service that reflects well on {profile.name}."""


def detect_triggered_functions(response: str) -> List[str]:
    lowered = response.lower()
    return [name for name, keywords in FUNCTION_KEYWORDS if any(word in lowered for word in keywords)]


def detect_knowledge_used(response: str, context: SimulationContext) -> List[str]:
    """Guess which pieces of business knowledge the reply drew on."""
    lowered = response.lower()
    used: List[str] = []
    manual = context.knowledge_base.manual_input
    for faq in manual.faqs:
        words = [word for word in faq.answer.lower().split() if len(word) > 4]
        if any(word in lowered for word in words):
            used.append(f"FAQ: {faq.question[:30]}...")
    for service in manual.services:
        if service and service.lower() in lowered:
            used.append(f"Service: {service}")
    if any(word in lowered for word in ("hour", "open", "close")):
        used.append("Business Hours")
    profile = context.business_profile
    phone_used = bool(profile.phone) and profile.phone in lowered
    location_used = any(location and location.lower() in lowered for location in profile.locations)
    if phone_used or location_used:
        used.append("Contact Information")
    return list(dict.fromkeys(used))


def score_confidence(knowledge_used: Sequence[str], functions_triggered: Sequence[str]) -> float:
    confidence = BASE_CONFIDENCE
    if knowledge_used:
        confidence += KNOWLEDGE_BONUS
    if functions_triggered:
        confidence += FUNCTION_BONUS
    return min(1.0, round(confidence, 4))


@dataclass
class SimulationReply:
    response: str
    confidence: float
    knowledge_used: List[str] = field(default_factory=list)
    functions_triggered: List[str] = field(default_factory=list)
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "response": self.response,
            "confidence": self.confidence,
            "knowledgeUsed": list(self.knowledge_used),
            "functionsTriggered": list(self.functions_triggered),
            "timestamp": self.timestamp,
        }


class SimulationService:
    """Answers one simulated customer turn as the configured business."""

    def __init__(
        self,
        gateway: ChatGateway,
        history_window: int = 6,
        telemetry: Optional[LatencyProbe] = None,
    ) -> None:
        self.gateway = gateway
        self.history_window = history_window
        self.telemetry = telemetry or LatencyProbe()

    def build_messages(self, user_message: str, context: SimulationContext) -> List[ChatMessage]:
        messages = [ChatMessage(role="system", content=build_system_prompt(context))]
        recent = context.conversation_history[-self.history_window :] if self.history_window > 0 else []
        for entry in recent:
            role = "user" if entry.speaker == "user" else "assistant"
            messages.append(ChatMessage(role=role, content=entry.message))
        already_sent = any(entry.speaker == "user" and entry.message == user_message for entry in recent)
        if not already_sent:
            messages.append(ChatMessage(role="user", content=user_message))
        return messages

    def run(self, user_message: str, context: SimulationContext, mode: str = "voice") -> SimulationReply:
        """Generate and analyse a reply; gateway errors propagate to the caller."""
        logger.info(
            "Simulation request for %s (%s mode): %s",
            context.business_profile.name,
            mode,
            user_message[:50],
        )
        messages = self.build_messages(user_message, context)
        with self.telemetry.track("generation"):
            completion = self.gateway.complete(messages, purpose=SIMULATION)
        knowledge_used = detect_knowledge_used(completion.text, context)
        functions_triggered = detect_triggered_functions(completion.text)
        return SimulationReply(
            response=completion.text,
            confidence=score_confidence(knowledge_used, functions_triggered),
            knowledge_used=knowledge_used,
            functions_triggered=functions_triggered,
        )


@dataclass
class TurnMetrics:
    """Metrics reported for the most recent agent turn."""

    response_time_ms: float = 0.0
    confidence: float = 0.0
    knowledge_used: List[str] = field(default_factory=list)
    functions_triggered: List[str] = field(default_factory=list)


def summarize_simulation(history: Sequence[HistoryEntry], last: TurnMetrics) -> Dict[str, Any]:
    """Score a completed simulation for the results step."""
    agent_turns = sum(1 for entry in history if entry.speaker == "agent")
    response_time = (last.response_time_ms or 2000.0) if agent_turns else 0.0
    mentions_booking = any(
        "appointment" in entry.message.lower() or "schedule" in entry.message.lower() for entry in history
    )
    return {
        "responseTime": response_time,
        "intentAccuracy": min(95, 75 + len(last.knowledge_used) * 5),
        "bookingSuccess": "booking" in last.functions_triggered or mentions_booking,
        "satisfactionScore": min(95.0, 80 + last.confidence * 15),
        "knowledgeUtilization": min(100, len(last.knowledge_used) * 12),
    }
