"""Typed business/knowledge context exchanged with the simulation backend."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from halo_voice.runtime.engine.knowledge import KnowledgeEntry, unique_entries
from halo_voice.runtime.memory.store import Utterance

Personality = Literal["professional", "friendly", "energetic", "calm"]
ResponseStyle = Literal["concise", "detailed", "consultative"]
InteractionMode = Literal["voice", "text"]


class WireModel(BaseModel):
    """Snake-case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BusinessProfile(WireModel):
    name: str = Field(min_length=1)
    industry: str = "general"
    phone: str = ""
    locations: List[str] = Field(default_factory=list)
    operating_hours: Dict[str, Any] = Field(default_factory=dict)
    primary_goals: List[str] = Field(default_factory=list)


class FaqItem(WireModel):
    question: str
    answer: str


class ManualKnowledge(WireModel):
    faqs: List[FaqItem] = Field(default_factory=list)
    services: List[str] = Field(default_factory=list)
    policies: List[str] = Field(default_factory=list)


class ProcessingResults(WireModel):
    total_faqs: int = 0
    detected_intents: List[str] = Field(default_factory=list)


class KnowledgeBaseContext(WireModel):
    uploaded_files: List[Dict[str, Any]] = Field(default_factory=list)
    manual_input: ManualKnowledge = Field(default_factory=ManualKnowledge)
    processing_results: ProcessingResults = Field(default_factory=ProcessingResults)


class VoiceSettings(WireModel):
    personality: Personality = "professional"
    response_style: ResponseStyle = "concise"
    voice_id: Optional[str] = None


class BookingRules(WireModel):
    allow_after_hours: bool = False
    require_deposit: bool = False
    auto_confirm: bool = False


class AgentSettings(WireModel):
    channels: List[str] = Field(default_factory=lambda: ["voice"])
    voice_settings: VoiceSettings = Field(default_factory=VoiceSettings)
    booking_rules: BookingRules = Field(default_factory=BookingRules)


class HistoryEntry(WireModel):
    speaker: Literal["user", "agent"]
    message: str
    timestamp: Optional[float] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class SimulationContext(WireModel):
    """Everything the simulation backend needs to answer as the business."""

    business_profile: BusinessProfile
    knowledge_base: KnowledgeBaseContext = Field(default_factory=KnowledgeBaseContext)
    agent_config: AgentSettings = Field(default_factory=AgentSettings)
    conversation_history: List[HistoryEntry] = Field(default_factory=list)
    scenario: Optional[Dict[str, Any]] = None

    def knowledge_entries(self) -> List[KnowledgeEntry]:
        faqs = self.knowledge_base.manual_input.faqs
        return unique_entries(KnowledgeEntry(question=faq.question, answer=faq.answer) for faq in faqs)

    def with_history(self, utterances: Iterable[Utterance]) -> "SimulationContext":
        history = [HistoryEntry.model_validate(item.to_payload()) for item in utterances]
        return self.model_copy(update={"conversation_history": history})

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
