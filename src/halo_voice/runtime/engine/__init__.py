"""Rule-based intent, knowledge, and response components."""

from .intents import Intent, IntentClassifier
from .knowledge import KnowledgeEntry, KnowledgeMatcher, unique_entries
from .responder import (
    KNOWLEDGE_CONFIDENCE,
    TEMPLATE_CONFIDENCE,
    AgentReply,
    ResponseEngine,
    StyleWeights,
)
from .telemetry import LatencyProbe

__all__ = [
    "Intent",
    "IntentClassifier",
    "KnowledgeEntry",
    "KnowledgeMatcher",
    "unique_entries",
    "KNOWLEDGE_CONFIDENCE",
    "TEMPLATE_CONFIDENCE",
    "AgentReply",
    "ResponseEngine",
    "StyleWeights",
    "LatencyProbe",
]
