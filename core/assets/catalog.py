"""Fixed universe of tradable assets.

Asset ids are CoinGecko coin ids. Membership is exact: case-sensitive and
without any normalization, so "Bitcoin" is not "bitcoin".
"""

from __future__ import annotations

import os
from typing import Iterable, Iterator, Mapping

from core.errors import ConfigurationError, InvalidAssetError

DEFAULT_ASSETS: tuple[str, ...] = (
    "bitcoin",
    "ethereum",
    "binancecoin",
    "solana",
    "ripple",
    "dogecoin",
    "the-open-network",
)


class AssetCatalog:
    """Closed set of recognized asset ids."""

    def __init__(self, assets: Iterable[str]) -> None:
        ordered: list[str] = []
        for asset in assets:
            if asset not in ordered:
                ordered.append(asset)
        self._assets = tuple(ordered)
        self._members = frozenset(ordered)

    @classmethod
    def from_csv(cls, value: str) -> AssetCatalog:
        """Build a catalog from a comma-separated list (e.g. an env value)."""
        assets = [part.strip() for part in value.split(",") if part.strip()]
        if not assets:
            raise ConfigurationError("asset catalog can not be empty", missing=("ASSET_CATALOG",))
        return cls(assets)

    @property
    def assets(self) -> tuple[str, ...]:
        return self._assets

    def is_valid(self, asset_id: object) -> bool:
        if not isinstance(asset_id, str):
            return False
        return asset_id in self._members

    def require(self, asset_id: object) -> str:
        """Return `asset_id` unchanged or raise InvalidAssetError."""
        if not self.is_valid(asset_id):
            raise InvalidAssetError(asset_id)
        return asset_id  # type: ignore[return-value]

    def __contains__(self, asset_id: object) -> bool:
        return self.is_valid(asset_id)

    def __iter__(self) -> Iterator[str]:
        return iter(self._assets)

    def __len__(self) -> int:
        return len(self._assets)

    def __repr__(self) -> str:
        return f"AssetCatalog({list(self._assets)!r})"


def default_catalog() -> AssetCatalog:
    return AssetCatalog(DEFAULT_ASSETS)


def catalog_from_env(environ: Mapping[str, str] | None = None) -> AssetCatalog:
    """Catalog from ASSET_CATALOG if set, else the default asset list."""
    env = os.environ if environ is None else environ
    value = env.get("ASSET_CATALOG")
    if value is None:
        return default_catalog()
    return AssetCatalog.from_csv(value)
