#!/usr/bin/env python3
# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Run the StockWatch REST API. Serves /api/stocks/*, /api/stocks/events and /health."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

repo_root = Path(__file__).resolve().parent.parent

from dotenv import load_dotenv

load_dotenv(repo_root / ".env")


def main() -> int:
    parser = argparse.ArgumentParser(description="Run StockWatch API server")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host")
    parser.add_argument("--port", type=int, default=3000, help="Port")
    parser.add_argument("--no-scheduler", action="store_true", help="Disable automatic refresh")
    args = parser.parse_args()

    import uvicorn

    from stockwatch.api.server import create_app
    from stockwatch.core.config import load_config

    config = load_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    if not config.provider.api_key:
        print("ERROR: STOCK_API_KEY is not set (environment, .env or config.yaml)", file=sys.stderr)
        return 1
    app = create_app(config, scheduler_enabled=False if args.no_scheduler else None)
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
