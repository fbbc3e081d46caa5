"""Tests for the valuation engine."""

from __future__ import annotations

import logging
import math

import pytest

from core.errors import FetchError, ParseError, StoreUnavailableError
from core.portfolio.valuation import ValuationEngine, round_money, sum_money
from core.storage.memory import InMemoryHoldingsStore
from core.types import AssetValuation


class BrokenStore(InMemoryHoldingsStore):
    def list_all(self):
        raise StoreUnavailableError("holdings store unavailable: connection refused")


def test_empty_store_skips_price_fetch(memory_store, failing_prices) -> None:
    engine = ValuationEngine(memory_store, failing_prices)

    assert engine.get_valuation() == {}


def test_empty_store_portfolio(memory_store, failing_prices) -> None:
    result = ValuationEngine(memory_store, failing_prices).value_portfolio()

    assert result.positions == {}
    assert result.missing_prices == ()
    assert result.total_value == 0.0
    assert result.quote_currency == "usd"


def test_values_are_rounded_to_three_decimals(memory_store, stub_prices) -> None:
    memory_store.upsert("bitcoin", 2.0)

    valuation = ValuationEngine(memory_store, stub_prices).get_valuation()

    assert valuation == {"bitcoin": (2.0, 100000.246)}
    assert valuation["bitcoin"] == AssetValuation(quantity=2.0, value=100000.246)


def test_requests_exactly_the_held_assets(memory_store, stub_prices) -> None:
    memory_store.upsert("bitcoin", 1.0)
    memory_store.upsert("solana", 4.0)

    ValuationEngine(memory_store, stub_prices).get_valuation()

    assert stub_prices.calls == [{"bitcoin", "solana"}]


def test_missing_price_is_dropped(memory_store, make_prices, caplog) -> None:
    memory_store.upsert("bitcoin", 1.0)
    memory_store.upsert("ethereum", 2.0)
    prices = make_prices({"bitcoin": 50000.0})

    with caplog.at_level(logging.WARNING):
        valuation = ValuationEngine(memory_store, prices).get_valuation()

    assert valuation == {"bitcoin": (1.0, 50000.0)}
    assert "ethereum" in caplog.text


def test_portfolio_reports_missing_prices_and_total(memory_store, make_prices) -> None:
    memory_store.upsert("bitcoin", 0.5)
    memory_store.upsert("ethereum", 2.0)
    memory_store.upsert("dogecoin", 1000.0)
    prices = make_prices({"bitcoin": 60000.0, "dogecoin": 0.1234567})

    result = ValuationEngine(memory_store, prices).value_portfolio()

    assert result.positions == {
        "bitcoin": (0.5, 30000.0),
        "dogecoin": (1000.0, 123.457),
    }
    assert result.missing_prices == ("ethereum",)
    assert result.total_value == 30123.457


def test_parse_error_propagates(memory_store, make_prices) -> None:
    memory_store.upsert("bitcoin", 1.0)
    error = ParseError("Unexpected CoinGecko response format: list")
    engine = ValuationEngine(memory_store, make_prices(error=error))

    with pytest.raises(ParseError) as excinfo:
        engine.get_valuation()

    assert excinfo.value is error


def test_fetch_error_propagates(memory_store, make_prices) -> None:
    memory_store.upsert("bitcoin", 1.0)
    error = FetchError("CoinGecko price request failed with HTTP 503", status_code=503)

    with pytest.raises(FetchError) as excinfo:
        ValuationEngine(memory_store, make_prices(error=error)).get_valuation()

    assert excinfo.value is error


def test_store_error_propagates_before_fetch(failing_prices) -> None:
    engine = ValuationEngine(BrokenStore(), failing_prices)

    with pytest.raises(StoreUnavailableError):
        engine.get_valuation()


@pytest.mark.parametrize(
    "quantity,price,expected",
    [
        (2.0, 50000.123, 100000.246),
        (1.0, 0.0005, 0.001),  # half rounds up
        (1.0, 0.0004999, 0.0),
        (3.0, 0.1, 0.3),
        (0.1, 0.2, 0.02),
        (1.0, 1.0015, 1.002),
        (1.0, 2.0025, 2.003),  # half-up, not half-even
        (0.0, 61234.5, 0.0),
    ],
)
def test_round_money(quantity: float, price: float, expected: float) -> None:
    assert round_money(quantity, price) == expected


@pytest.mark.parametrize(
    "quantity,price,expected",
    [
        (1e25, 2.0, 2e25),
        (1e30, 1.5, 1.5e30),
        (1e154, 1e154, 1e308),
    ],
)
def test_round_money_large_magnitudes(quantity: float, price: float, expected: float) -> None:
    assert round_money(quantity, price) == expected


def test_round_money_non_finite_operand() -> None:
    assert round_money(float("inf"), 2.0) == float("inf")
    assert math.isnan(round_money(1.0, float("nan")))


def test_sum_money() -> None:
    assert sum_money([]) == 0.0
    assert sum_money([0.1, 0.2]) == 0.3
    assert sum_money([1e25, 1e25]) == 2e25
    assert sum_money([1.0, float("inf")]) == float("inf")


def test_large_holding_is_valued(memory_store, make_prices) -> None:
    memory_store.upsert("bitcoin", 1e25)
    prices = make_prices({"bitcoin": 2.0})

    result = ValuationEngine(memory_store, prices).value_portfolio()

    assert result.positions == {"bitcoin": (1e25, 2e25)}
    assert result.total_value == 2e25
