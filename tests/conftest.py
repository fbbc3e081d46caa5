"""Shared test fixtures for pytest.

Provides catalog/config fixtures, a mocked SQLAlchemy engine, a SQLite-backed
engine that understands the PostgreSQL upsert syntax we emit, and price
provider doubles.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import AbstractSet, Any, Iterator
from unittest.mock import Mock, patch

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.assets.catalog import AssetCatalog, default_catalog
from core.storage.memory import InMemoryHoldingsStore
from core.storage.postgres.config import PostgresConfig
from core.storage.postgres.stores import PostgresHoldingsStore


class StubPriceProvider:
    """Returns canned prices and records every request."""

    def __init__(self, prices: dict[str, float] | None = None, error: Exception | None = None) -> None:
        self.prices = prices or {}
        self.error = error
        self.calls: list[set[str]] = []

    def fetch_prices(self, asset_ids: AbstractSet[str]) -> dict[str, float]:
        self.calls.append(set(asset_ids))
        if self.error is not None:
            raise self.error
        return {asset: price for asset, price in self.prices.items() if asset in asset_ids}


class FailIfCalledPriceProvider:
    def fetch_prices(self, asset_ids: AbstractSet[str]) -> dict[str, float]:
        pytest.fail(f"price provider must not be called (asked for {sorted(asset_ids)})")


@pytest.fixture
def catalog() -> AssetCatalog:
    return default_catalog()


@pytest.fixture
def env() -> dict[str, str]:
    """A complete set of database settings."""
    return {
        "DB_HOST": "db.internal",
        "DB_PORT": "5432",
        "DB_NAME": "portfolio",
        "DB_USER": "ledger",
        "DB_PASSWORD": "s3cr@t/pw",
        "TABLE_NAME": "holdings",
    }


@pytest.fixture
def postgres_config(env: dict[str, str]) -> PostgresConfig:
    return PostgresConfig.from_env(env)


@pytest.fixture
def memory_store(catalog: AssetCatalog) -> InMemoryHoldingsStore:
    return InMemoryHoldingsStore(catalog)


@pytest.fixture
def mock_db_engine() -> Mock:
    """Mock SQLAlchemy engine for testing database operations."""
    mock_engine = Mock()
    mock_conn = Mock()
    mock_result = Mock()
    mock_result.rowcount = 1
    mock_result.scalar.return_value = 1
    mock_result.fetchall.return_value = []
    mock_conn.execute.return_value = mock_result
    mock_engine.begin.return_value.__enter__ = Mock(return_value=mock_conn)
    mock_engine.begin.return_value.__exit__ = Mock(return_value=False)
    return mock_engine


@pytest.fixture
def mock_postgres_store(postgres_config: PostgresConfig, mock_db_engine: Mock) -> Iterator[PostgresHoldingsStore]:
    """PostgresHoldingsStore with a mocked database engine."""
    store = PostgresHoldingsStore(config=postgres_config)

    with patch.object(store, "_get_engine", return_value=mock_db_engine):
        yield store


@pytest.fixture
def sqlite_store(postgres_config: PostgresConfig) -> Iterator[PostgresHoldingsStore]:
    """PostgresHoldingsStore running its real SQL against in-memory SQLite.

    SQLite accepts the same `ON CONFLICT ... DO UPDATE ... EXCLUDED` upsert,
    so accumulation semantics can be checked without a PostgreSQL server.
    """
    from sqlalchemy import create_engine
    from sqlalchemy.pool import StaticPool

    from db.init_db import apply_schema

    engine: Any = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    store = PostgresHoldingsStore(config=postgres_config)
    with patch.object(store, "_get_engine", return_value=engine):
        apply_schema(store)
        yield store
    engine.dispose()


@pytest.fixture
def stub_prices() -> StubPriceProvider:
    return StubPriceProvider({"bitcoin": 50000.123, "ethereum": 3000.5})


@pytest.fixture
def make_prices():
    """Factory for StubPriceProvider with custom prices or a raised error."""
    return StubPriceProvider


@pytest.fixture
def failing_prices() -> FailIfCalledPriceProvider:
    return FailIfCalledPriceProvider()
