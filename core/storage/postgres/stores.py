from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterable, Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from core.assets.catalog import AssetCatalog, default_catalog
from core.errors import StoreUnavailableError
from core.persistence.interfaces import HoldingsStore
from core.storage.postgres.config import PostgresConfig
from core.types import AssetId, Quantity

logger = logging.getLogger(__name__)

_CONNECTIVITY_ERRORS = (OperationalError, InterfaceError, DisconnectionError, PoolTimeoutError)


class PostgresHoldingsStore(HoldingsStore):
    """PostgreSQL-backed holdings ledger.

    One row per asset (`currency` is the primary key). Every public method
    checks the asset against the catalog before touching the database and
    runs inside its own `engine.begin()` block, so the connection goes back
    to the pool on every exit path.
    """

    def __init__(self, *, config: PostgresConfig, catalog: AssetCatalog | None = None) -> None:
        self._config = config
        self._catalog = catalog or default_catalog()
        self._engine: Any | None = None

    @property
    def catalog(self) -> AssetCatalog:
        return self._catalog

    @property
    def table_name(self) -> str:
        return self._config.table_name

    def _get_engine(self) -> Any:
        if self._engine is None:
            # Do not log the URL (it contains the password).
            self._engine = create_engine(self._config.database_url, echo=False, pool_pre_ping=True)
        return self._engine

    @contextmanager
    def _connection(self) -> Iterator[Any]:
        engine = self._get_engine()
        try:
            with engine.begin() as conn:
                yield conn
        except _CONNECTIVITY_ERRORS as exc:
            logger.error("Holdings store unavailable (%s): %s", self._config.safe_url, exc.__class__.__name__)
            raise StoreUnavailableError(f"holdings store unavailable: {exc}") from exc

    def ping(self) -> bool:
        with self._connection() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def execute_script(self, statements: Iterable[str]) -> int:
        """Run SQL statements (e.g. schema DDL) in a single transaction."""
        count = 0
        with self._connection() as conn:
            for stmt in statements:
                conn.execute(text(stmt))
                count += 1
        return count

    # ---- HoldingsStore

    def upsert(self, asset: AssetId, quantity: Quantity) -> None:
        self._catalog.require(asset)

        # Single statement so concurrent callers can not lose an update.
        stmt = text(
            f"""
            INSERT INTO {self.table_name} (currency, quantity)
            VALUES (:currency, :quantity)
            ON CONFLICT (currency) DO UPDATE
            SET quantity = {self.table_name}.quantity + EXCLUDED.quantity
            """
        )
        with self._connection() as conn:
            conn.execute(stmt, {"currency": asset, "quantity": float(quantity)})
        logger.debug("Upserted holding %s (+%s)", asset, quantity)

    def remove(self, asset: AssetId) -> None:
        self._catalog.require(asset)

        stmt = text(f"DELETE FROM {self.table_name} WHERE currency = :currency")
        with self._connection() as conn:
            result = conn.execute(stmt, {"currency": asset})
        if not result.rowcount:
            logger.debug("No holding to remove for %s", asset)

    def list_all(self) -> dict[AssetId, Quantity]:
        stmt = text(f"SELECT currency, quantity FROM {self.table_name}")
        with self._connection() as conn:
            rows = conn.execute(stmt).fetchall()

        holdings: dict[AssetId, Quantity] = {}
        for currency, quantity in rows:
            if not self._catalog.is_valid(currency):
                logger.warning("Skipping holding for unknown asset %r in %s", currency, self.table_name)
                continue
            holdings[currency] = float(quantity)
        return holdings

    def list_available(self) -> list[AssetId]:
        owned = self.list_all()
        return [asset for asset in self._catalog if asset not in owned]

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
