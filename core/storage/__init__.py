"""Storage implementations of the holdings persistence interface."""

from .memory import InMemoryHoldingsStore
from .postgres import PostgresConfig, PostgresHoldingsStore
