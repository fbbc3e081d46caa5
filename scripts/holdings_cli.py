#!/usr/bin/env python
"""CLI for the holdings ledger.

Usage:
  python scripts/holdings_cli.py add bitcoin 0.5
  python scripts/holdings_cli.py remove dogecoin
  python scripts/holdings_cli.py list
  python scripts/holdings_cli.py available
  python scripts/holdings_cli.py value
  python scripts/holdings_cli.py init-schema

Exit codes:
  0 = success
  1 = failure (invalid asset, store or price service error)
  2 = configuration error (missing DB_* / TABLE_NAME)
"""

from __future__ import annotations

import argparse
import logging
import math
import os
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

# Add project root to path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.assets.catalog import catalog_from_env
from core.errors import ConfigurationError, HoldingsError
from core.market_data.coingecko_client import CoinGeckoPriceClient
from core.persistence.interfaces import HoldingsStore, PriceProvider
from core.portfolio.valuation import ValuationEngine
from core.storage.memory import InMemoryHoldingsStore
from core.storage.postgres.config import PostgresConfig
from core.storage.postgres.stores import PostgresHoldingsStore


def _finite_float(value: str) -> float:
    quantity = float(value)
    if not math.isfinite(quantity):
        raise argparse.ArgumentTypeError(f"quantity must be a finite number: {value!r}")
    return quantity


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Manage crypto holdings and value them at current prices.")
    p.add_argument(
        "--memory",
        action="store_true",
        help="Use a throwaway in-memory store instead of PostgreSQL",
    )
    p.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "WARNING"),
        help="Logging level (default: LOG_LEVEL or WARNING)",
    )
    sub = p.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Add quantity to a holding (creates it if needed)")
    add.add_argument("asset")
    add.add_argument("quantity", type=_finite_float)

    remove = sub.add_parser("remove", help="Remove a holding")
    remove.add_argument("asset")

    sub.add_parser("list", help="List current holdings")
    sub.add_parser("available", help="List catalog assets not currently held")
    sub.add_parser("value", help="Value holdings at current prices")
    sub.add_parser("init-schema", help="Create the holdings table if missing")
    return p.parse_args(argv)


def _build_store(args: argparse.Namespace) -> HoldingsStore:
    catalog = catalog_from_env()
    if args.memory:
        return InMemoryHoldingsStore(catalog)
    return PostgresHoldingsStore(config=PostgresConfig.from_env(), catalog=catalog)


def run(
    args: argparse.Namespace,
    store: HoldingsStore,
    price_client_factory: Optional[Callable[[], PriceProvider]] = None,
) -> int:
    if args.command == "add":
        store.upsert(args.asset, args.quantity)
        print(f"✅ {args.asset}: {store.list_all().get(args.asset)}")
    elif args.command == "remove":
        store.remove(args.asset)
        print(f"✅ removed {args.asset}")
    elif args.command == "list":
        holdings = store.list_all()
        if not holdings:
            print("No holdings")
        for asset, quantity in sorted(holdings.items()):
            print(f"{asset:<20} {quantity}")
    elif args.command == "available":
        for asset in store.list_available():
            print(asset)
    elif args.command == "value":
        prices = (price_client_factory or CoinGeckoPriceClient.from_env)()
        quote = getattr(prices, "vs_currency", "usd")
        try:
            result = ValuationEngine(store, prices, quote_currency=quote).value_portfolio()
        finally:
            if isinstance(prices, CoinGeckoPriceClient):
                prices.close()
        for asset, position in sorted(result.positions.items()):
            print(f"{asset:<20} {position.quantity:<16} {position.value:,.3f} {quote.upper()}")
        for asset in result.missing_prices:
            print(f"⚠️  {asset}: no {quote} price available")
        print(f"{'TOTAL':<20} {'':<16} {result.total_value:,.3f} {quote.upper()}")
    elif args.command == "init-schema":
        if not isinstance(store, PostgresHoldingsStore):
            print("init-schema requires the PostgreSQL store", file=sys.stderr)
            return 1
        from db.init_db import apply_schema

        apply_schema(store)
        print(f"✅ table {store.table_name} ready")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        store = _build_store(args)
    except ConfigurationError as exc:
        print(f"❌ config: {exc}", file=sys.stderr)
        return 2

    try:
        return run(args, store)
    except ConfigurationError as exc:
        print(f"❌ config: {exc}", file=sys.stderr)
        return 2
    except HoldingsError as exc:
        print(f"❌ {exc.kind.value}: {exc}", file=sys.stderr)
        return 1
    finally:
        if isinstance(store, PostgresHoldingsStore):
            store.close()


if __name__ == "__main__":
    raise SystemExit(main())
