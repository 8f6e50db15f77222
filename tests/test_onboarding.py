from __future__ import annotations

import pytest

from halo_voice.onboarding import (
    RoiInputs,
    analyze_document,
    extract_entries,
    find_scenario,
    get_scenarios,
    project_roi,
)
from halo_voice.runtime.engine import KnowledgeEntry, KnowledgeMatcher

DOCUMENT = """Bright Smiles Dental FAQ

FAQ: Do you take walk-ins?
A: Yes, until 3pm.
Question: What does a cleaning cost?
Answer: Around $120
including x-rays.
Q: Do you take walk-ins?
A: duplicate
Q: Do you handle emergency visits?
"""


def test_analyze_document_counts_faqs_and_intents() -> None:
    analysis = analyze_document(DOCUMENT, "dental")

    assert analysis.faq_count == 4
    assert analysis.detected_intents == ["emergency_care", "pricing_inquiry"]
    assert analysis.text_content == DOCUMENT
    assert analysis.processed_at
    assert set(analysis.to_dict()) == {"textContent", "faqCount", "detectedIntents", "processedAt"}


def test_analyze_document_industry_rules() -> None:
    content = "Book a showing or a viewing of any listing. Offers welcome. Open hours posted."

    real_estate = analyze_document(content, "real_estate").detected_intents
    generic = analyze_document(content, "salon").detected_intents

    assert real_estate == ["schedule_showing", "make_offer", "property_inquiry", "hours_inquiry"]
    assert generic == ["hours_inquiry"]


def test_analyze_document_truncates_preview() -> None:
    analysis = analyze_document("x" * 1500)

    assert len(analysis.text_content) == 1000


def test_extract_entries_pairs_questions_and_answers() -> None:
    entries = extract_entries(DOCUMENT)

    assert entries == [
        KnowledgeEntry(question="Do you take walk-ins?", answer="Yes, until 3pm."),
        KnowledgeEntry(question="What does a cleaning cost?", answer="Around $120 including x-rays."),
    ]


def test_extracted_entries_feed_the_matcher() -> None:
    entries = extract_entries(DOCUMENT)

    match = KnowledgeMatcher().match("how much is cleaning cost", entries)

    assert match is not None
    assert match.answer.startswith("Around $120")


def test_roi_projection() -> None:
    projection = project_roi(RoiInputs(monthly_leads=100, average_deal=1000, current_conversion=4))

    assert projection.to_dict() == {
        "currentMonthlyRevenue": 4000,
        "projectedMonthlyRevenue": 14000,
        "monthlyIncrease": 10000,
        "annualIncrease": 120000,
        "netROI": 1912,
        "paybackPeriod": 0.6,
    }


def test_roi_caps_improved_conversion() -> None:
    projection = project_roi(RoiInputs(monthly_leads=100, average_deal=100, current_conversion=10))

    assert projection.projected_monthly_revenue == 2500


def test_roi_without_increase_has_no_payback() -> None:
    projection = project_roi(RoiInputs(monthly_leads=100, average_deal=100, current_conversion=0))

    assert projection.monthly_increase == 0
    assert projection.payback_period is None
    assert projection.net_roi == -100


def test_roi_industry_defaults() -> None:
    dental = RoiInputs.for_industry("dental")
    unknown = RoiInputs.for_industry("plumbing")

    assert (dental.monthly_leads, dental.average_deal, dental.current_conversion) == (80, 650, 8.1)
    assert (unknown.monthly_leads, unknown.average_deal, unknown.current_conversion) == (100, 500, 5.0)


def test_roi_rejects_negative_inputs() -> None:
    with pytest.raises(ValueError):
        RoiInputs(monthly_leads=-1, average_deal=10, current_conversion=1)


def test_scenarios_by_industry() -> None:
    dental = get_scenarios("dental")

    assert [scenario.id for scenario in dental] == ["emergency_toothache", "routine_cleaning", "insurance_question"]
    assert get_scenarios("plumbing") == []
    assert find_scenario("salon", "last_minute_cut").difficulty == "Easy"
    assert find_scenario("salon", "missing") is None
    assert dental[0].to_dict()["expectedOutcomes"] == ["Assess urgency", "Same-day appointment", "Pain management advice"]
