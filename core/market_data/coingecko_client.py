"""CoinGecko API client for fetching spot prices.

Uses the free tier `/simple/price` endpoint (no API key required).
Rate limit: 10-30 calls/minute on free tier.

Every call to `fetch_prices` issues exactly one request. There is no cache and
no retry here; callers decide what to do with a `FetchError`.
"""

from __future__ import annotations

import logging
import math
import os
from numbers import Real
from typing import AbstractSet, Any, Mapping, Optional

import requests

from core.errors import FetchError, ParseError
from core.persistence.interfaces import PriceProvider
from core.types import AssetId

logger = logging.getLogger(__name__)


class CoinGeckoPriceClient(PriceProvider):
    """Client for CoinGecko simple price API (free tier, no API key)."""

    BASE_URL = "https://api.coingecko.com/api/v3"
    DEFAULT_TIMEOUT = 10  # seconds

    def __init__(
        self,
        *,
        base_url: str = BASE_URL,
        vs_currency: str = "usd",
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.vs_currency = vs_currency
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "User-Agent": "cryptoholdings/1.0",
        })

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> CoinGeckoPriceClient:
        env = os.environ if environ is None else environ
        return cls(
            base_url=env.get("COINGECKO_BASE_URL") or cls.BASE_URL,
            vs_currency=env.get("QUOTE_CURRENCY") or "usd",
            timeout=float(env.get("COINGECKO_TIMEOUT") or cls.DEFAULT_TIMEOUT),
        )

    def close(self) -> None:
        """Close the HTTP session."""
        if self.session:
            self.session.close()

    def __enter__(self) -> CoinGeckoPriceClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def fetch_prices(self, asset_ids: AbstractSet[AssetId]) -> dict[AssetId, float]:
        """Fetch the unit price of each asset in `vs_currency`.

        Args:
            asset_ids: Non-empty set of CoinGecko coin ids (e.g., {"bitcoin"})

        Returns:
            Mapping of coin id to price. Ids the API does not know are omitted.

        Raises:
            ValueError: If `asset_ids` is empty
            FetchError: Transport failure or non-success HTTP status
            ParseError: Body is not the expected JSON object
        """
        if not asset_ids:
            raise ValueError("fetch_prices requires at least one asset id")

        requested = sorted(asset_ids)
        url = f"{self.base_url}/simple/price"
        params = {
            "ids": ",".join(requested),
            "vs_currencies": self.vs_currency,
        }

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("CoinGecko price request failed: %s", exc)
            raise FetchError(f"CoinGecko price request failed: {exc}") from exc

        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = response.status_code
            logger.error("CoinGecko price request failed with HTTP %s", status)
            raise FetchError(f"CoinGecko price request failed with HTTP {status}", status_code=status) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise ParseError(f"CoinGecko returned a non-JSON body: {exc}") from exc

        prices = self._parse_prices(data, requested)
        logger.info("Fetched %d/%d prices from CoinGecko", len(prices), len(requested))
        return prices

    def _parse_prices(self, data: Any, requested: list[AssetId]) -> dict[AssetId, float]:
        if not isinstance(data, dict):
            raise ParseError(f"Unexpected CoinGecko response format: {type(data).__name__}")

        prices: dict[AssetId, float] = {}
        for asset in requested:
            if asset not in data:
                continue

            entry = data[asset]
            if not isinstance(entry, dict):
                raise ParseError(f"Unexpected price entry for {asset}: {type(entry).__name__}")

            price = entry.get(self.vs_currency)
            # bool is an int subclass; a true/false price is malformed.
            if isinstance(price, bool) or not isinstance(price, Real):
                raise ParseError(f"Missing or non-numeric {self.vs_currency} price for {asset}: {price!r}")
            # response.json() accepts the bare Infinity/NaN tokens.
            if not math.isfinite(price):
                raise ParseError(f"Non-finite {self.vs_currency} price for {asset}: {price!r}")

            prices[asset] = float(price)

        return prices
