from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple

AssetId = str
Quantity = float


class AssetValuation(NamedTuple):
    quantity: Quantity
    value: float  # quantity * unit price, rounded to 3 decimals


@dataclass(frozen=True)
class PortfolioValuation:
    quote_currency: str
    positions: dict[AssetId, AssetValuation] = field(default_factory=dict)
    missing_prices: tuple[AssetId, ...] = ()
    total_value: float = 0.0
