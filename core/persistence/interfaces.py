from __future__ import annotations

from typing import AbstractSet, Protocol, Sequence

from core.types import AssetId, Quantity


class HoldingsStore(Protocol):
    def upsert(self, asset: AssetId, quantity: Quantity) -> None:
        """Insert a holding, or add `quantity` to the existing one (atomic)."""

    def remove(self, asset: AssetId) -> None:
        """Delete the holding for `asset`. Absent holdings are a no-op."""

    def list_all(self) -> dict[AssetId, Quantity]:
        """Fetch every current holding."""

    def list_available(self) -> Sequence[AssetId]:
        """Catalog assets with no current holding."""


class PriceProvider(Protocol):
    def fetch_prices(self, asset_ids: AbstractSet[AssetId]) -> dict[AssetId, float]:
        """Fetch unit prices for a non-empty set of assets in one request."""
