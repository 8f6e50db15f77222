"""Catalogue of simulated customer conversations per industry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Scenario:
    id: str
    title: str
    description: str
    user_message: str
    difficulty: str
    expected_outcomes: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "userMessage": self.user_message,
            "difficulty": self.difficulty,
            "expectedOutcomes": list(self.expected_outcomes),
        }


SCENARIOS: Dict[str, Tuple[Scenario, ...]] = {
    "real_estate": (
        Scenario(
            id="zillow_lead",
            title="Zillow Lead Follow-up",
            description="New lead asks about a property listing after hours",
            user_message=(
                "Hi, I saw your listing for the house on Maple Street. Is it still available? "
                "Can I schedule a showing for this weekend?"
            ),
            difficulty="Medium",
            expected_outcomes=("Property availability check", "Showing scheduled", "Contact details captured"),
        ),
        Scenario(
            id="price_reduction",
            title="Price Reduction Inquiry",
            description="Potential buyer asks about negotiating price",
            user_message=(
                "I'm interested in the Colonial on Oak Drive, but the price seems high. "
                "Are you open to offers? What's the lowest you'd accept?"
            ),
            difficulty="Hard",
            expected_outcomes=("Qualify buyer interest", "Schedule agent callback", "Set expectations"),
        ),
        Scenario(
            id="first_time_buyer",
            title="First-Time Homebuyer",
            description="New buyer needs guidance on the process",
            user_message=(
                "I've never bought a house before and I'm feeling overwhelmed. "
                "Can you walk me through how this works?"
            ),
            difficulty="Easy",
            expected_outcomes=("Provide process overview", "Schedule consultation", "Lender referral offered"),
        ),
    ),
    "dental": (
        Scenario(
            id="emergency_toothache",
            title="Emergency Toothache",
            description="Patient with severe tooth pain needs immediate help",
            user_message=(
                "I have a terrible toothache that started last night. The pain is unbearable. "
                "Can someone see me today?"
            ),
            difficulty="Medium",
            expected_outcomes=("Assess urgency", "Same-day appointment", "Pain management advice"),
        ),
        Scenario(
            id="routine_cleaning",
            title="Routine Cleaning Booking",
            description="Returning patient wants to schedule cleaning",
            user_message=(
                "Hi, it's time for my 6-month cleaning. I prefer mornings if possible. "
                "What do you have available next week?"
            ),
            difficulty="Easy",
            expected_outcomes=("Check availability", "Book appointment", "Confirm insurance"),
        ),
        Scenario(
            id="insurance_question",
            title="Insurance Coverage Question",
            description="New patient asks about insurance acceptance",
            user_message=(
                "I just got new dental insurance through my job. Do you accept Blue Cross? "
                "What would a cleaning and X-rays cost me?"
            ),
            difficulty="Medium",
            expected_outcomes=("Verify insurance", "Explain benefits", "Schedule appointment"),
        ),
    ),
    "veterinary": (
        Scenario(
            id="sick_pet",
            title="Sick Pet Concern",
            description="Pet owner worried about their dog's symptoms",
            user_message=(
                "My dog has been vomiting since yesterday and won't eat. She seems lethargic. "
                "Should I be worried?"
            ),
            difficulty="Hard",
            expected_outcomes=("Assess symptoms", "Schedule urgent visit", "Provide guidance"),
        ),
        Scenario(
            id="vaccination",
            title="Puppy Vaccination Schedule",
            description="New pet owner asks about vaccination timeline",
            user_message=(
                "I just got a 8-week-old puppy. What vaccines does she need and when should I bring her in?"
            ),
            difficulty="Medium",
            expected_outcomes=("Explain vaccine schedule", "Book first visit", "New puppy guidance"),
        ),
        Scenario(
            id="routine_checkup",
            title="Annual Checkup",
            description="Pet owner scheduling yearly wellness exam",
            user_message=(
                "My cat is due for her annual checkup. She's 5 years old and seems healthy. "
                "What does the exam include?"
            ),
            difficulty="Easy",
            expected_outcomes=("Explain exam process", "Schedule appointment", "Discuss preventive care"),
        ),
    ),
    "salon": (
        Scenario(
            id="bridal_booking",
            title="Bridal Party Booking",
            description="Bride needs services for wedding day",
            user_message=(
                "I'm getting married in 3 months and need hair and makeup for myself and 4 bridesmaids. "
                "What packages do you offer?"
            ),
            difficulty="Hard",
            expected_outcomes=("Discuss bridal packages", "Schedule trial", "Group booking coordination"),
        ),
        Scenario(
            id="color_appointment",
            title="Hair Color Consultation",
            description="Client wants major color change",
            user_message=(
                "I have dark brown hair and want to go blonde. How long would that take and what would it cost?"
            ),
            difficulty="Medium",
            expected_outcomes=("Assess hair condition", "Schedule consultation", "Set expectations"),
        ),
        Scenario(
            id="last_minute_cut",
            title="Last-Minute Haircut",
            description="Client needs same-day appointment",
            user_message=(
                "I have a job interview tomorrow morning. Any chance I can get a haircut today? I just need a trim."
            ),
            difficulty="Easy",
            expected_outcomes=("Check availability", "Book same-day slot", "Confirm service"),
        ),
    ),
}


def get_scenarios(industry: str) -> List[Scenario]:
    """Scenarios for ``industry``; unknown industries have none."""
    return list(SCENARIOS.get(industry, ()))


def find_scenario(industry: str, scenario_id: str) -> Optional[Scenario]:
    for scenario in SCENARIOS.get(industry, ()):
        if scenario.id == scenario_id:
            return scenario
    return None
