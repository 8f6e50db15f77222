"""Rule-based response engine used when no hosted conversation backend is wired in."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

from halo_voice.config.defaults import StyleConfig

from .intents import Intent, IntentClassifier
from .knowledge import KnowledgeEntry, KnowledgeMatcher

KNOWLEDGE_CONFIDENCE = 0.8
TEMPLATE_CONFIDENCE = 0.4

FRIENDLY_OPENER = "Absolutely! "
FORMAL_OPENER = "Certainly. "
WARMTH_MARKER = " \U0001F60A"

TEMPLATES: Dict[Intent, str] = {
    Intent.APPOINTMENT_REQUEST: (
        "I'd be happy to help you schedule an appointment. Let me connect you with someone "
        "who can check availability and set that up for you."
    ),
    Intent.PRICING_INQUIRY: (
        "I understand you're interested in our pricing. Let me get you connected with someone "
        "who can provide detailed information about our rates and services."
    ),
    Intent.HOURS_INQUIRY: (
        "We're typically available Monday through Friday, 9 AM to 6 PM, and Saturday 10 AM to 4 PM. "
        "For specific scheduling, I can connect you with our team."
    ),
    Intent.LOCATION_INQUIRY: (
        "I can share our location details with you. Let me connect you with someone who can "
        "give you directions and parking information."
    ),
    Intent.CONTACT_INQUIRY: (
        "I can help you get in touch with the right person. Would you prefer a call back, "
        "or would you like me to schedule a meeting?"
    ),
    Intent.GENERAL_INQUIRY: (
        "Thank you for your question. Let me connect you with someone who can provide you "
        "with the detailed information you need."
    ),
}

CONCISE_SUBSTITUTIONS: Tuple[Tuple[str, str], ...] = (
    ("I'd be happy to help you ", "I'll "),
    ("I understand you're interested in ", "For "),
    ("Let me get you connected with someone who can ", "I'll connect you to "),
)


@dataclass(frozen=True)
class StyleWeights:
    """Tone sliders in the 0-100 range."""

    friendly: int = 50
    concise: int = 50
    professional: int = 50

    def __post_init__(self) -> None:
        for name in ("friendly", "concise", "professional"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} weight must be an integer")
            if not 0 <= value <= 100:
                raise ValueError(f"{name} weight must be between 0 and 100")

    @classmethod
    def from_config(cls, config: StyleConfig) -> "StyleWeights":
        return cls(friendly=config.friendly, concise=config.concise, professional=config.professional)


@dataclass(frozen=True)
class AgentReply:
    """Structured output of the response engine."""

    message: str
    intent: Intent
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "intent": self.intent.value, "confidence": self.confidence}


class ResponseEngine:
    """Classifies the utterance, looks up knowledge, and styles a canned reply."""

    def __init__(
        self,
        classifier: Optional[IntentClassifier] = None,
        matcher: Optional[KnowledgeMatcher] = None,
        style_config: Optional[StyleConfig] = None,
    ) -> None:
        self.classifier = classifier or IntentClassifier()
        self.matcher = matcher or KnowledgeMatcher()
        self.style_config = style_config or StyleConfig()

    def respond(
        self,
        utterance: str,
        entries: Sequence[KnowledgeEntry] = (),
        style: Optional[StyleWeights] = None,
    ) -> AgentReply:
        style = style or StyleWeights.from_config(self.style_config)
        normalized = utterance.lower().strip()
        intent = self.classifier.classify(normalized)
        knowledge = self.matcher.match(normalized, entries)
        if knowledge is not None:
            base, confidence = knowledge.answer, KNOWLEDGE_CONFIDENCE
        else:
            base, confidence = TEMPLATES[intent], TEMPLATE_CONFIDENCE
        return AgentReply(message=self.style(base, style), intent=intent, confidence=confidence)

    def style(self, message: str, weights: StyleWeights) -> str:
        """Apply friendly, concise, then professional adjustments.

        Professional runs last, so it removes the friendly warmth marker when
        both sliders are above the threshold.
        """
        threshold = self.style_config.threshold
        styled = message
        if weights.friendly > threshold:
            styled = FRIENDLY_OPENER + styled
            if styled.endswith("."):
                styled = styled[:-1]
            styled += WARMTH_MARKER
        if weights.concise > threshold:
            for phrase, replacement in CONCISE_SUBSTITUTIONS:
                styled = styled.replace(phrase, replacement)
        if weights.professional > threshold:
            if WARMTH_MARKER in styled:
                styled = styled.replace(WARMTH_MARKER, "").rstrip()
                if styled and styled[-1] not in ".!?":
                    styled += "."
            styled = styled.replace(FRIENDLY_OPENER, FORMAL_OPENER)
        return styled
