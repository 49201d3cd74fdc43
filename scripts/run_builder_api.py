#!/usr/bin/env python3

"""Serve the condition builder API.

Example:
  python3 scripts/run_builder_api.py --port 8010 --config my_builder.yml
"""

from __future__ import annotations

import argparse
import logging
import os
import socket
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config import configure_logging, load_builder_config
from config.config_loader import CONFIG_ENV_VAR

logger = logging.getLogger(__name__)


def _free_port(host: str) -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((host, 0))
        return int(s.getsockname()[1])


def main() -> int:
    parser = argparse.ArgumentParser(description="Serve the condition builder API.")
    parser.add_argument("--host", default="127.0.0.1", help="Bind host (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Bind port (0 = any free port)")
    parser.add_argument("--config", help="Builder config override YAML (exported as %s)" % CONFIG_ENV_VAR)
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (dev only)")
    args = parser.parse_args()

    if args.config:
        # The app module loads its config at import time, in this or the reloader's process.
        os.environ[CONFIG_ENV_VAR] = str(Path(args.config).resolve())
    config = load_builder_config()
    configure_logging(config.logging)

    port = args.port or _free_port(args.host)
    logger.info("Condition builder API on http://%s:%d/", args.host, port)

    import uvicorn

    uvicorn.run(
        "builder_api.app:app",
        host=args.host,
        port=port,
        reload=args.reload,
        log_level=config.logging.level.lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
