#!/usr/bin/env python3
"""Run the holdings API server with uvicorn.

Usage:
    python scripts/run_api.py [--host HOST] [--port PORT] [--reload]

Environment:
    DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD, TABLE_NAME - Required.
    COINGECKO_BASE_URL, QUOTE_CURRENCY, COINGECKO_TIMEOUT - Optional.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import uvicorn

# Ensure imports work when invoked as a script
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from core.errors import ConfigurationError
from core.storage.postgres.config import PostgresConfig


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the holdings and valuation API server.")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    args = parser.parse_args()

    # Fail fast before binding the port.
    try:
        PostgresConfig.from_env()
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    print(f"Starting holdings API on {args.host}:{args.port}")
    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
