"""Knowledge document analysis for the onboarding flow."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from halo_voice.runtime.engine.knowledge import KnowledgeEntry, unique_entries

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 1000

_FAQ_MARKER = re.compile(r"Q:|Question:|FAQ:", re.IGNORECASE)
_QUESTION_LINE = re.compile(r"^\s*(?:Q|Question|FAQ)\s*:\s*(.*)$", re.IGNORECASE)
_ANSWER_LINE = re.compile(r"^\s*(?:A|Answer)\s*:\s*(.*)$", re.IGNORECASE)

# (intent, trigger words) checked in order; an intent fires on any word.
INDUSTRY_INTENT_RULES: Dict[str, Tuple[Tuple[str, Tuple[str, ...]], ...]] = {
    "real_estate": (
        ("schedule_showing", ("showing", "viewing")),
        ("make_offer", ("offer", "bid")),
        ("property_inquiry", ("listing", "property")),
    ),
    "dental": (
        ("book_appointment", ("appointment", "booking")),
        ("emergency_care", ("emergency", "urgent")),
        ("insurance_inquiry", ("insurance", "coverage")),
    ),
}
GENERIC_INTENT_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("pricing_inquiry", ("price", "cost")),
    ("hours_inquiry", ("hour", "schedule")),
)


@dataclass
class DocumentAnalysis:
    text_content: str
    faq_count: int
    detected_intents: List[str] = field(default_factory=list)
    processed_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "textContent": self.text_content,
            "faqCount": self.faq_count,
            "detectedIntents": list(self.detected_intents),
            "processedAt": self.processed_at,
        }


def count_faq_markers(content: str) -> int:
    return len(_FAQ_MARKER.findall(content))


def detect_intents(content: str, industry: Optional[str] = None) -> List[str]:
    """Industry-specific intents first, then the generic ones, without repeats."""
    lowered = content.lower()
    rules = INDUSTRY_INTENT_RULES.get(industry or "", ()) + GENERIC_INTENT_RULES
    detected = [intent for intent, words in rules if any(word in lowered for word in words)]
    return list(dict.fromkeys(detected))


def analyze_document(content: str, industry: Optional[str] = None) -> DocumentAnalysis:
    analysis = DocumentAnalysis(
        text_content=content[:PREVIEW_CHARS],
        faq_count=count_faq_markers(content),
        detected_intents=detect_intents(content, industry),
        processed_at=datetime.now(timezone.utc).isoformat(),
    )
    logger.info(
        "Processed knowledge document: %d FAQs, %d intents, %d chars",
        analysis.faq_count,
        len(analysis.detected_intents),
        len(content),
    )
    return analysis


def extract_entries(content: str) -> List[KnowledgeEntry]:
    """Parse ``Q:`` / ``A:`` pairs into knowledge entries.

    Continuation lines extend whichever part is open. Questions without an
    answer are dropped; repeated questions keep their first answer.
    """
    entries: List[KnowledgeEntry] = []
    question: List[str] = []
    answer: List[str] = []
    in_answer = False

    def flush() -> None:
        q_text = " ".join(question).strip()
        a_text = " ".join(answer).strip()
        if q_text and a_text:
            entries.append(KnowledgeEntry(question=q_text, answer=a_text))

    for raw_line in content.splitlines():
        question_match = _QUESTION_LINE.match(raw_line)
        if question_match:
            flush()
            question = [question_match.group(1).strip()]
            answer = []
            in_answer = False
            continue
        answer_match = _ANSWER_LINE.match(raw_line)
        if answer_match and question:
            answer.append(answer_match.group(1).strip())
            in_answer = True
            continue
        line = raw_line.strip()
        if not line or not question:
            continue
        (answer if in_answer else question).append(line)
    flush()
    return unique_entries(entries)
