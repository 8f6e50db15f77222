"""Runtime configuration for the Halo voice agent."""

from .defaults import RuntimeConfig
from .logs import configure_logging
from .runtime_store import load_runtime_config, save_runtime_config

__all__ = [
    "RuntimeConfig",
    "configure_logging",
    "load_runtime_config",
    "save_runtime_config",
]
