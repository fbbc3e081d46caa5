"""Market data: spot prices from CoinGecko."""

from core.market_data.coingecko_client import CoinGeckoPriceClient

__all__ = [
    "CoinGeckoPriceClient",
]
