"""In-process holdings store.

Same contract as the PostgreSQL store, backed by a dict. Handy for tests and
for trying the CLI without a database.
"""

from __future__ import annotations

import threading
from typing import Mapping, Optional

from core.assets.catalog import AssetCatalog, default_catalog
from core.persistence.interfaces import HoldingsStore
from core.types import AssetId, Quantity


class InMemoryHoldingsStore(HoldingsStore):
    def __init__(
        self,
        catalog: Optional[AssetCatalog] = None,
        initial: Optional[Mapping[AssetId, Quantity]] = None,
    ) -> None:
        self._catalog = catalog or default_catalog()
        self._lock = threading.Lock()
        self._holdings: dict[AssetId, Quantity] = {}
        for asset, quantity in (initial or {}).items():
            self.upsert(asset, quantity)

    @property
    def catalog(self) -> AssetCatalog:
        return self._catalog

    def upsert(self, asset: AssetId, quantity: Quantity) -> None:
        self._catalog.require(asset)
        with self._lock:
            self._holdings[asset] = self._holdings.get(asset, 0.0) + float(quantity)

    def remove(self, asset: AssetId) -> None:
        self._catalog.require(asset)
        with self._lock:
            self._holdings.pop(asset, None)

    def list_all(self) -> dict[AssetId, Quantity]:
        with self._lock:
            return dict(self._holdings)

    def list_available(self) -> list[AssetId]:
        owned = self.list_all()
        return [asset for asset in self._catalog if asset not in owned]
