"""Single logging entry point shared by the scripts and the HTTP service."""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

from .defaults import LoggingConfig

ROOT_LOGGER = "halo_voice"

_configured = False


def configure_logging(config: Optional[LoggingConfig] = None, *, force: bool = False) -> logging.Logger:
    """Attach one stream handler to the package logger.

    ``HALO_VOICE_LOG_LEVEL`` overrides the configured level.
    """
    global _configured  # noqa: PLW0603 - module level guard
    config = config or LoggingConfig()
    logger = logging.getLogger(ROOT_LOGGER)
    level_name = os.environ.get("HALO_VOICE_LOG_LEVEL", config.level).upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    if _configured and not force:
        return logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(config.format))
    logger.addHandler(handler)
    logger.propagate = False
    _configured = True
    return logger
