"""Default configuration definitions for the Halo voice agent."""

from dataclasses import dataclass, field
from typing import Dict, Any


ROI_DEFAULT_KEYS = ("monthly_leads", "average_deal", "conversion_rate")


@dataclass
class MatcherConfig:
    """Knowledge matcher tuning."""

    min_overlap: int = 2


@dataclass
class StyleConfig:
    """Tone thresholds and default style weights for the response engine."""

    threshold: int = 70
    friendly: int = 50
    concise: int = 50
    professional: int = 50


@dataclass
class TurnTakingConfig:
    """Voice loop timing and capture defaults."""

    resume_delay_ms: int = 1000
    language: str = "en-US"


@dataclass
class DispatchConfig:
    """Remote chat dispatch settings."""

    endpoint_url: str = "http://127.0.0.1:8080/intelligent-simulation"
    timeout_s: float = 15.0
    history_window: int = 6
    mode: str = "voice"
    use_remote: bool = False
    fallback_to_engine: bool = False


@dataclass
class SpeechConfig:
    """Client-side text-to-speech settings."""

    tts_url: str = "http://127.0.0.1:8080/tts"
    voice_id: str = "pNInz6obpgDQGcFmaJgB"
    enable_tts: bool = True
    timeout_s: float = 20.0


@dataclass
class ModelRoutingConfig:
    """Chat completion models used by the service endpoints."""

    chat_model: str = "gpt-3.5-turbo"
    simulation_model: str = "gpt-4"
    temperature: float = 0.7
    chat_max_tokens: int = 500
    simulation_max_tokens: int = 300
    presence_penalty: float = 0.1
    frequency_penalty: float = 0.1


@dataclass
class ElevenLabsConfig:
    """Upstream text-to-speech provider settings."""

    base_url: str = "https://api.elevenlabs.io"
    model_id: str = "eleven_multilingual_v2"
    stability: float = 0.5
    similarity_boost: float = 0.8
    style: float = 0.0
    use_speaker_boost: bool = True
    timeout_s: float = 30.0


@dataclass
class MemoryConfig:
    """Transcript persistence configuration."""

    db_path: str = "var/transcripts.db"


@dataclass
class RoiConfig:
    """ROI projection assumptions."""

    monthly_cost: float = 497.0
    improvement_factor: float = 3.5
    max_conversion_pct: float = 25.0
    industry_defaults: Dict[str, Dict[str, float]] = field(
        default_factory=lambda: {
            "real_estate": {"monthly_leads": 50, "average_deal": 8500, "conversion_rate": 0.023},
            "dental": {"monthly_leads": 80, "average_deal": 650, "conversion_rate": 0.081},
            "veterinary": {"monthly_leads": 120, "average_deal": 280, "conversion_rate": 0.067},
            "salon": {"monthly_leads": 200, "average_deal": 85, "conversion_rate": 0.042},
        }
    )

    def __post_init__(self) -> None:
        if self.monthly_cost <= 0:
            raise ValueError("roi.monthly_cost must be positive")
        if not isinstance(self.industry_defaults, dict):
            raise TypeError("roi.industry_defaults must be a JSON object")
        for industry, values in self.industry_defaults.items():
            missing = sorted(set(ROI_DEFAULT_KEYS) - set(values))
            if missing:
                raise ValueError(f"roi.industry_defaults.{industry} is missing {', '.join(missing)}")


@dataclass
class LoggingConfig:
    """Log level and format."""

    level: str = "INFO"
    format: str = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"


@dataclass
class RuntimeConfig:
    """Root configuration for the voice session and the service."""

    session: Dict[str, Any] = field(default_factory=lambda: {"default_session_id": "default"})
    matcher: MatcherConfig = field(default_factory=MatcherConfig)
    style: StyleConfig = field(default_factory=StyleConfig)
    turn_taking: TurnTakingConfig = field(default_factory=TurnTakingConfig)
    dispatch: DispatchConfig = field(default_factory=DispatchConfig)
    speech: SpeechConfig = field(default_factory=SpeechConfig)
    models: ModelRoutingConfig = field(default_factory=ModelRoutingConfig)
    elevenlabs: ElevenLabsConfig = field(default_factory=ElevenLabsConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    roi: RoiConfig = field(default_factory=RoiConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
