from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Mapping

from sqlalchemy.engine import URL

from core.errors import ConfigurationError

REQUIRED_ENV = ("DB_HOST", "DB_PORT", "DB_NAME", "DB_USER", "DB_PASSWORD", "TABLE_NAME")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


@dataclass(frozen=True)
class PostgresConfig:
    """Connection configuration for the holdings table.

    Values come from the environment (see `from_env`). The password and the
    assembled URL must never be logged; use `safe_url` for diagnostics.
    """

    host: str
    port: int
    database: str
    user: str
    password: str
    table_name: str
    driver: str = "postgresql+psycopg2"

    def __post_init__(self) -> None:
        if not _IDENTIFIER.match(self.table_name):
            raise ConfigurationError(
                f"table name must be a plain SQL identifier, got {self.table_name!r}",
                missing=("TABLE_NAME",),
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PostgresConfig:
        env = os.environ if environ is None else environ

        missing = tuple(name for name in REQUIRED_ENV if not env.get(name))
        if missing:
            raise ConfigurationError(
                f"missing required database settings: {', '.join(missing)}",
                missing=missing,
            )

        raw_port = env["DB_PORT"]
        try:
            port = int(raw_port)
        except ValueError as exc:
            raise ConfigurationError(f"DB_PORT must be an integer, got {raw_port!r}", missing=("DB_PORT",)) from exc

        return cls(
            host=env["DB_HOST"],
            port=port,
            database=env["DB_NAME"],
            user=env["DB_USER"],
            password=env["DB_PASSWORD"],
            table_name=env["TABLE_NAME"],
        )

    @property
    def database_url(self) -> URL:
        return URL.create(
            self.driver,
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )

    @property
    def safe_url(self) -> str:
        return self.database_url.render_as_string(hide_password=True)
