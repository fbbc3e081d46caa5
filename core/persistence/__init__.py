"""Persistence and pricing boundaries.

These protocols define what the valuation pipeline needs from its
collaborators. Implementations live in `core.storage` (holdings) and
`core.market_data` (prices).
"""

from .interfaces import HoldingsStore, PriceProvider
