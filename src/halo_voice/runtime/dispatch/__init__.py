"""Remote chat dispatch, simulation prompts, and the chat gateway."""

from .context import SimulationContext
from .gateway import ChatGateway, ChatMessage, GatewayAuthError, GatewayError, GatewayNotConfigured
from .remote import DEGRADED_RESPONSE, DispatchResult, RemoteDispatchAdapter
from .simulation import SimulationReply, SimulationService, TurnMetrics, summarize_simulation

__all__ = [
    "SimulationContext",
    "ChatGateway",
    "ChatMessage",
    "GatewayAuthError",
    "GatewayError",
    "GatewayNotConfigured",
    "DEGRADED_RESPONSE",
    "DispatchResult",
    "RemoteDispatchAdapter",
    "SimulationReply",
    "SimulationService",
    "TurnMetrics",
    "summarize_simulation",
]
