#!/usr/bin/env python3
"""Initialize the holdings table.

Runs the SQL in db/schema.sql against the database described by the DB_*
environment variables, using TABLE_NAME as the holdings table.

Usage:
  python -m db.init_db

Requirements:
  - DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD, TABLE_NAME must be set
  - SQLAlchemy + psycopg2-binary installed
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from core.errors import ConfigurationError, StoreUnavailableError
from core.storage.postgres.config import PostgresConfig
from core.storage.postgres.stores import PostgresHoldingsStore

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a SQL script on `;`, dropping `--` line comments.

    Designed for our schema.sql (no string literals containing `;` or `--`).
    """
    lines = []
    for line in sql.splitlines():
        code = line.split("--", 1)[0].rstrip()
        if code:
            lines.append(code)

    for stmt in "\n".join(lines).split(";"):
        stmt = stmt.strip()
        if stmt:
            yield stmt


def render_schema(table_name: str, schema_path: Path = SCHEMA_PATH) -> list[str]:
    schema_sql = schema_path.read_text(encoding="utf-8")
    return list(iter_sql_statements(schema_sql.replace("{table_name}", table_name)))


def apply_schema(store: PostgresHoldingsStore) -> int:
    return store.execute_script(render_schema(store.table_name))


def main() -> int:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = PostgresConfig.from_env()
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 2

    store = PostgresHoldingsStore(config=config)
    try:
        count = apply_schema(store)
    except StoreUnavailableError as exc:
        logger.error("%s", exc)
        return 1
    finally:
        store.close()

    logger.info("Database schema applied (%d statements, table %s)", count, config.table_name)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
