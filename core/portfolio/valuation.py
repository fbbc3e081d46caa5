"""Portfolio valuation.

Joins the holdings ledger with a point-in-time price snapshot. Values are
rounded to 3 decimals with ROUND_HALF_UP, computed on decimals built from the
shortest repr of each float so results do not depend on binary float noise.
"""

from __future__ import annotations

import logging
import math
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Iterable

from core.persistence.interfaces import HoldingsStore, PriceProvider
from core.types import AssetId, AssetValuation, PortfolioValuation

logger = logging.getLogger(__name__)

MONEY_PLACES = 3

# Digits needed to quantize the exact product of two finite doubles
# (up to ~1e616) to MONEY_PLACES without hitting the context precision.
_MONEY_PRECISION = 800


def _to_decimal(value: float) -> Decimal:
    return Decimal(repr(float(value)))


def _quantum(places: int) -> Decimal:
    return Decimal(1).scaleb(-places)


def round_money(quantity: float, price: float, places: int = MONEY_PLACES) -> float:
    """Return `quantity * price` rounded half-up to `places` decimals.

    Example: round_money(2.0, 50000.123) == 100000.246

    Non-finite operands have no decimal value; their float product is
    returned as is.
    """
    if not (math.isfinite(quantity) and math.isfinite(price)):
        return float(quantity) * float(price)
    with localcontext() as ctx:
        ctx.prec = _MONEY_PRECISION
        product = _to_decimal(quantity) * _to_decimal(price)
        return float(product.quantize(_quantum(places), rounding=ROUND_HALF_UP))


def sum_money(values: Iterable[float], places: int = MONEY_PLACES) -> float:
    values = list(values)
    if not all(math.isfinite(v) for v in values):
        return math.fsum(values)
    with localcontext() as ctx:
        ctx.prec = _MONEY_PRECISION
        total = sum((_to_decimal(v) for v in values), Decimal("0"))
        return float(total.quantize(_quantum(places), rounding=ROUND_HALF_UP))


class ValuationEngine:
    """Values current holdings against freshly fetched prices.

    Owns no state: every call reads the store and, when something is held,
    issues one price request for exactly the held assets.
    """

    def __init__(self, store: HoldingsStore, prices: PriceProvider, *, quote_currency: str = "usd") -> None:
        self._store = store
        self._prices = prices
        self.quote_currency = quote_currency

    def get_valuation(self) -> dict[AssetId, AssetValuation]:
        """Map each priced holding to `(quantity, value)`.

        Holdings without a price are left out (see `value_portfolio` for the
        list of dropped assets). Store and fetch errors propagate unchanged.
        """
        return self.value_portfolio().positions

    def value_portfolio(self) -> PortfolioValuation:
        holdings = self._store.list_all()
        if not holdings:
            return PortfolioValuation(quote_currency=self.quote_currency)

        prices = self._prices.fetch_prices(set(holdings))

        positions: dict[AssetId, AssetValuation] = {}
        missing: list[AssetId] = []
        for asset, quantity in holdings.items():
            price = prices.get(asset)
            if price is None:
                missing.append(asset)
                continue
            positions[asset] = AssetValuation(quantity=quantity, value=round_money(quantity, price))

        if missing:
            logger.warning(
                "No %s price for held assets %s; left out of valuation",
                self.quote_currency,
                ", ".join(sorted(missing)),
            )

        total_value = sum_money(v.value for v in positions.values())

        logger.info("Valued %d holdings (%s %s)", len(positions), total_value, self.quote_currency)
        return PortfolioValuation(
            quote_currency=self.quote_currency,
            positions=positions,
            missing_prices=tuple(sorted(missing)),
            total_value=total_value,
        )
