"""FastAPI application for the holdings ledger and its valuation.

Endpoints:
- GET /health - Database connectivity check
- GET /assets - Catalog of tradable asset ids
- GET /holdings - Current holdings (asset -> quantity)
- GET /holdings/available - Catalog assets not currently held
- POST /holdings/{asset} - Add quantity to a holding (creates it if needed)
- DELETE /holdings/{asset} - Remove a holding
- GET /valuation - Holdings valued at current CoinGecko prices

Requirements:
- DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD, TABLE_NAME in environment
- No authentication (local network only)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from core.assets.catalog import AssetCatalog, catalog_from_env
from core.errors import ErrorKind, HoldingsError
from core.market_data.coingecko_client import CoinGeckoPriceClient
from core.persistence.interfaces import HoldingsStore
from core.portfolio.valuation import ValuationEngine
from core.storage.postgres.config import PostgresConfig
from core.storage.postgres.stores import PostgresHoldingsStore

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Crypto Holdings API",
    description="API for managing crypto holdings and valuing them at current prices",
    version="1.0.0",
)

# Global instances (initialized on first use)
_store: HoldingsStore | None = None
_price_client: CoinGeckoPriceClient | None = None

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.INVALID_ASSET: 400,
    ErrorKind.STORE_UNAVAILABLE: 503,
    ErrorKind.FETCH: 502,
    ErrorKind.PARSE: 502,
    ErrorKind.CONFIGURATION: 500,
}


def _get_store() -> HoldingsStore:
    """Get or initialize the holdings store (fails fast on missing config)."""
    global _store
    if _store is None:
        _store = PostgresHoldingsStore(config=PostgresConfig.from_env(), catalog=_get_catalog())
    return _store


def _get_catalog() -> AssetCatalog:
    return catalog_from_env()


def _get_price_client() -> CoinGeckoPriceClient:
    """Get or initialize the CoinGecko client singleton."""
    global _price_client
    if _price_client is None:
        _price_client = CoinGeckoPriceClient.from_env()
    return _price_client


def _get_valuation_engine() -> ValuationEngine:
    client = _get_price_client()
    return ValuationEngine(_get_store(), client, quote_currency=client.vs_currency)


class HoldingUpdate(BaseModel):
    quantity: float = Field(..., allow_inf_nan=False)


@app.exception_handler(HoldingsError)
async def holdings_error_handler(_request, exc: HoldingsError):
    """Map domain errors to HTTP statuses by kind."""
    status = ERROR_STATUS.get(exc.kind, 500)
    if status >= 500:
        logger.error("Request failed (%s): %s", exc.kind.value, exc)
    return JSONResponse(
        status_code=status,
        content={
            "error": exc.kind.value,
            "message": str(exc),
            "retryable": exc.retryable,
        },
    )


@app.get("/health")
async def health() -> dict[str, Any]:
    """Health check endpoint.

    Raises:
        HTTPException: 503 if the database can not be reached.
    """
    try:
        store = _get_store()
        connected = await asyncio.to_thread(store.ping)
    except HoldingsError as e:
        raise HTTPException(
            status_code=503,
            detail={
                "status": "error",
                "database": {"connected": False, "error": str(e)},
            },
        ) from e

    return {"status": "ok", "database": {"connected": bool(connected)}}


@app.get("/assets")
async def list_assets() -> dict[str, Any]:
    return {"assets": list(_get_catalog())}


@app.get("/holdings")
async def list_holdings() -> dict[str, Any]:
    store = _get_store()
    holdings = await asyncio.to_thread(store.list_all)
    return {"holdings": holdings}


@app.get("/holdings/available")
async def list_available() -> dict[str, Any]:
    """Assets the user does not hold yet (check before adding a new one)."""
    store = _get_store()
    available = await asyncio.to_thread(store.list_available)
    return {"available": list(available)}


@app.post("/holdings/{asset}")
async def add_holding(asset: str, update: HoldingUpdate) -> dict[str, Any]:
    store = _get_store()
    await asyncio.to_thread(store.upsert, asset, update.quantity)
    holdings = await asyncio.to_thread(store.list_all)
    return {"holdings": holdings}


@app.delete("/holdings/{asset}", status_code=204)
async def remove_holding(asset: str) -> Response:
    store = _get_store()
    await asyncio.to_thread(store.remove, asset)
    return Response(status_code=204)


@app.get("/valuation")
async def get_valuation() -> dict[str, Any]:
    engine = _get_valuation_engine()
    result = await asyncio.to_thread(engine.value_portfolio)
    return {
        "quote_currency": result.quote_currency,
        "positions": {
            asset: {"quantity": position.quantity, "value": position.value}
            for asset, position in result.positions.items()
        },
        "missing_prices": list(result.missing_prices),
        "total_value": result.total_value,
    }
