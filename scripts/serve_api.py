#!/usr/bin/env python3
"""Serve the Halo voice agent, simulation, and onboarding endpoints."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

import uvicorn

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from halo_voice.config import configure_logging, load_runtime_config
from halo_voice.config.runtime_store import CONFIG_PATH


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--host", default="127.0.0.1", help="Bind address.")
    parser.add_argument("--port", type=int, default=8080, help="Port to expose.")
    parser.add_argument("--config", type=Path, default=CONFIG_PATH, help="Runtime configuration JSON.")
    parser.add_argument("--token", help="Require this x-api-token on the config endpoints.")
    parser.add_argument("--reload", action="store_true", help="Reload on source changes (development only).")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    config = load_runtime_config(args.config)
    logger = configure_logging(config.logging)
    # The service module reads these at import time.
    os.environ["HALO_VOICE_CONFIG"] = str(args.config)
    if args.token:
        os.environ["HALO_VOICE_API_TOKEN"] = args.token
    logger.info("Serving on %s:%d with config %s", args.host, args.port, args.config)
    uvicorn.run(
        "halo_voice.service.api:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        reload_dirs=[str(SRC_PATH)] if args.reload else None,
        log_level=config.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
