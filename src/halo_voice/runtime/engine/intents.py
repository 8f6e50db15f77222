"""Keyword intent classifier."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence, Tuple


class Intent(str, Enum):
    APPOINTMENT_REQUEST = "appointment_request"
    PRICING_INQUIRY = "pricing_inquiry"
    HOURS_INQUIRY = "hours_inquiry"
    LOCATION_INQUIRY = "location_inquiry"
    CONTACT_INQUIRY = "contact_inquiry"
    GENERAL_INQUIRY = "general_inquiry"


IntentRule = Tuple[Intent, Tuple[str, ...]]

# Checked top to bottom; the first rule with a keyword hit wins.
DEFAULT_RULES: Tuple[IntentRule, ...] = (
    (Intent.APPOINTMENT_REQUEST, ("schedule", "appointment", "showing", "meeting")),
    (Intent.PRICING_INQUIRY, ("price", "cost", "rate", "fee")),
    (Intent.HOURS_INQUIRY, ("hour", "time", "open", "available")),
    (Intent.LOCATION_INQUIRY, ("location", "address", "where")),
    (Intent.CONTACT_INQUIRY, ("contact", "phone", "email")),
)


class IntentClassifier:
    """Maps an utterance to a coarse intent by substring keyword checks."""

    def __init__(self, rules: Optional[Sequence[IntentRule]] = None) -> None:
        self.rules: Tuple[IntentRule, ...] = tuple(rules) if rules is not None else DEFAULT_RULES

    def classify(self, utterance: str) -> Intent:
        text = utterance.lower().strip()
        for intent, keywords in self.rules:
            if any(keyword in text for keyword in keywords):
                return intent
        return Intent.GENERAL_INQUIRY
