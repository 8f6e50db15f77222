"""FastAPI service for the voice agent, the simulation backend, and configuration."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from fastapi import Body, Depends, FastAPI, Header, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import Field

from halo_voice.config.defaults import RuntimeConfig
from halo_voice.config.logs import configure_logging
from halo_voice.config.runtime_store import (
    CONFIG_PATH,
    load_runtime_config,
    patch_runtime_section,
    runtime_config_from_dict,
    runtime_config_to_dict,
    save_runtime_config,
)
from halo_voice.onboarding import RoiInputs, analyze_document, extract_entries, get_scenarios, project_roi
from halo_voice.runtime.dispatch.context import (
    FaqItem,
    HistoryEntry,
    InteractionMode,
    SimulationContext,
    WireModel,
)
from halo_voice.runtime.dispatch.gateway import (
    VOICE_AGENT,
    ChatGateway,
    ChatMessage,
    GatewayAuthError,
    GatewayError,
    parse_history_lines,
)
from halo_voice.runtime.dispatch.remote import DispatchResult
from halo_voice.runtime.dispatch.simulation import SimulationService, TurnMetrics, summarize_simulation
from halo_voice.runtime.engine import KnowledgeEntry, KnowledgeMatcher, ResponseEngine, StyleWeights
from halo_voice.runtime.voice.speech import ElevenLabsClient, TextToSpeechError

DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."

logger = logging.getLogger(__name__)


def _default_cors_origins() -> List[str]:
    return ["http://localhost:3000", "http://127.0.0.1:3000"]


configure_logging()

app = FastAPI(title="Halo Voice Service", version="0.1.0")

cors_origins = os.environ.get("HALO_VOICE_CORS")
origins = (
    [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
    if cors_origins
    else _default_cors_origins()
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

API_TOKEN = os.environ.get("HALO_VOICE_API_TOKEN")
CONFIG_FILE = Path(os.environ.get("HALO_VOICE_CONFIG", str(CONFIG_PATH)))
_CONFIG_CACHE: RuntimeConfig = load_runtime_config(CONFIG_FILE)


async def verify_token(x_api_token: Optional[str] = Header(default=None)) -> None:
    """Simple header token check; bypassed when unset."""
    if API_TOKEN and x_api_token != API_TOKEN:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid api token")


def get_config() -> RuntimeConfig:
    return _CONFIG_CACHE


def _set_config(config: RuntimeConfig) -> None:
    global _CONFIG_CACHE  # noqa: PLW0603 - module level cache
    _CONFIG_CACHE = config
    save_runtime_config(config, CONFIG_FILE)


def get_chat_gateway(config: RuntimeConfig = Depends(get_config)) -> ChatGateway:
    return ChatGateway(config.models)


def get_simulation_service(
    gateway: ChatGateway = Depends(get_chat_gateway),
    config: RuntimeConfig = Depends(get_config),
) -> SimulationService:
    return SimulationService(gateway, history_window=config.dispatch.history_window)


def get_tts_client(config: RuntimeConfig = Depends(get_config)) -> Iterator[ElevenLabsClient]:
    client = ElevenLabsClient(config.elevenlabs)
    try:
        yield client
    finally:
        client.close()


def get_response_engine(config: RuntimeConfig = Depends(get_config)) -> ResponseEngine:
    return ResponseEngine(matcher=KnowledgeMatcher(config=config.matcher), style_config=config.style)


# Request bodies ---------------------------------------------------------------
class VoiceAgentRequest(WireModel):
    message: Optional[str] = None
    system_prompt: Optional[str] = None
    conversation_history: Optional[str] = None


class SimulationRequest(WireModel):
    user_message: Optional[str] = None
    context: Optional[SimulationContext] = None
    mode: InteractionMode = "voice"


class TtsRequest(WireModel):
    text: Optional[str] = None
    voice_id: Optional[str] = None


class StyleSliders(WireModel):
    friendly: int = Field(default=50, ge=0, le=100)
    concise: int = Field(default=50, ge=0, le=100)
    professional: int = Field(default=50, ge=0, le=100)


class RespondRequest(WireModel):
    message: str = ""
    knowledge: List[FaqItem] = Field(default_factory=list)
    style: Optional[StyleSliders] = None


class IngestionRequest(WireModel):
    file_id: Optional[str] = None
    content: Optional[str] = None
    file_name: Optional[str] = None
    business_id: Optional[str] = None
    industry: Optional[str] = None


class RoiRequest(WireModel):
    industry: Optional[str] = None
    monthly_leads: Optional[float] = Field(default=None, ge=0)
    average_deal: Optional[float] = Field(default=None, ge=0)
    current_conversion: Optional[float] = Field(default=None, ge=0)


class MetricsRequest(WireModel):
    conversation_history: List[HistoryEntry] = Field(default_factory=list)
    response_time: float = 0.0
    confidence: float = Field(default=0.0, ge=0, le=1)
    knowledge_used: List[str] = Field(default_factory=list)
    functions_triggered: List[str] = Field(default_factory=list)


# Configuration ----------------------------------------------------------------
@app.get("/health", dependencies=[Depends(verify_token)])
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/config", dependencies=[Depends(verify_token)])
async def get_runtime_config(config: RuntimeConfig = Depends(get_config)) -> Dict[str, Any]:
    """Return the complete runtime configuration."""
    return runtime_config_to_dict(config)


@app.put("/config", dependencies=[Depends(verify_token)])
async def replace_config(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """Replace the entire runtime configuration."""
    try:
        new_config = runtime_config_from_dict(payload, RuntimeConfig())
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    _set_config(new_config)
    return runtime_config_to_dict(new_config)


@app.patch("/config/{section}", dependencies=[Depends(verify_token)])
async def patch_section(
    section: str,
    payload: Dict[str, Any] = Body(...),
    config: RuntimeConfig = Depends(get_config),
) -> Dict[str, Any]:
    """Patch one configuration section (matcher, style, turn_taking, dispatch, ...)."""
    try:
        new_config = patch_runtime_section(config, section, payload)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="unknown section")
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    _set_config(new_config)
    return runtime_config_to_dict(new_config)[section]


# Conversation -----------------------------------------------------------------
@app.post("/voice-agent")
def voice_agent(
    request: VoiceAgentRequest,
    gateway: ChatGateway = Depends(get_chat_gateway),
) -> Dict[str, str]:
    """Free-form assistant chat with an optional ``User:`` / ``AI:`` history."""
    if not request.message:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message is required")
    if not gateway.configured:
        logger.error("OpenAI API key is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="OpenAI API key is not configured",
        )
    messages = [ChatMessage(role="system", content=request.system_prompt or DEFAULT_SYSTEM_PROMPT)]
    messages.extend(parse_history_lines(request.conversation_history))
    messages.append(ChatMessage(role="user", content=request.message))
    try:
        completion = gateway.complete(messages, purpose=VOICE_AGENT)
    except GatewayAuthError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    except GatewayError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to process request: {exc}",
        )
    logger.info("Generated response: %s", completion.text[:100])
    return {"response": completion.text}


@app.post("/intelligent-simulation")
def intelligent_simulation(
    request: SimulationRequest,
    service: SimulationService = Depends(get_simulation_service),
) -> Any:
    """Answer one customer turn as the business described in ``context``."""
    if not request.user_message or request.context is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required parameters")
    if not service.gateway.configured:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="OpenAI API key not configured",
        )
    try:
        reply = service.run(request.user_message, request.context, request.mode)
    except GatewayError as exc:
        logger.error("Intelligent simulation failed: %s", exc)
        payload = DispatchResult.degraded_reply().to_dict()
        payload["error"] = f"Simulation failed: {exc}"
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)
    return reply.to_dict()


@app.post("/tts")
def text_to_speech(
    request: TtsRequest,
    client: ElevenLabsClient = Depends(get_tts_client),
    config: RuntimeConfig = Depends(get_config),
) -> Response:
    """Synthesize ``text`` and return MPEG audio."""
    if not request.text:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Text is required")
    if not client.configured:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="ElevenLabs API key is not configured",
        )
    voice_id = request.voice_id or config.speech.voice_id
    try:
        audio = client.synthesize(request.text, voice_id)
    except TextToSpeechError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc))
    logger.info("Synthesized %d bytes of audio for voice %s", len(audio), voice_id)
    return Response(content=audio, media_type="audio/mpeg")


@app.post("/respond")
async def respond(
    request: RespondRequest,
    engine: ResponseEngine = Depends(get_response_engine),
) -> Dict[str, Any]:
    """Run the rule-based response engine without any remote calls."""
    if not request.message.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message is required")
    entries = [KnowledgeEntry(question=item.question, answer=item.answer) for item in request.knowledge]
    style = None
    if request.style is not None:
        style = StyleWeights(
            friendly=request.style.friendly,
            concise=request.style.concise,
            professional=request.style.professional,
        )
    return engine.respond(request.message, entries, style).to_dict()


# Onboarding -------------------------------------------------------------------
@app.post("/knowledge-ingestion")
async def knowledge_ingestion(request: IngestionRequest) -> Dict[str, Any]:
    """Analyse an uploaded knowledge document's text."""
    if not request.content or not request.file_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File and fileId are required")
    logger.info(
        "Processing knowledge file %s (%s) for %s",
        request.file_id,
        request.file_name or "unnamed",
        request.industry or "general",
    )
    analysis = analyze_document(request.content, request.industry)
    entries = extract_entries(request.content)
    return {
        "success": True,
        "extractedData": analysis.to_dict(),
        "faqCount": analysis.faq_count,
        "detectedIntents": list(analysis.detected_intents),
        "entries": [{"question": entry.question, "answer": entry.answer} for entry in entries],
    }


@app.post("/roi")
async def roi(request: RoiRequest, config: RuntimeConfig = Depends(get_config)) -> Dict[str, Any]:
    defaults = RoiInputs.for_industry(request.industry, config.roi)
    inputs = RoiInputs(
        monthly_leads=request.monthly_leads if request.monthly_leads is not None else defaults.monthly_leads,
        average_deal=request.average_deal if request.average_deal is not None else defaults.average_deal,
        current_conversion=(
            request.current_conversion if request.current_conversion is not None else defaults.current_conversion
        ),
    )
    result = project_roi(inputs, config.roi).to_dict()
    result["inputs"] = {
        "monthlyLeads": inputs.monthly_leads,
        "averageDeal": inputs.average_deal,
        "currentConversion": inputs.current_conversion,
    }
    return result


@app.get("/scenarios/{industry}")
async def scenarios(industry: str) -> Dict[str, Any]:
    return {"industry": industry, "scenarios": [scenario.to_dict() for scenario in get_scenarios(industry)]}


@app.post("/simulation/metrics")
async def simulation_metrics(request: MetricsRequest) -> Dict[str, Any]:
    last = TurnMetrics(
        response_time_ms=request.response_time,
        confidence=request.confidence,
        knowledge_used=list(request.knowledge_used),
        functions_triggered=list(request.functions_triggered),
    )
    return summarize_simulation(request.conversation_history, last)
