"""Tests for live price refresh and the quote fetch adapter."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import httpx

from budget_planner import prices
from budget_planner.models import AssetType, Frequency, make_item, new_budget
from budget_planner.prices import (
    collect_tickers,
    fetch_crypto_prices,
    fetch_quotes,
    fetch_stock_prices,
    has_priced_items,
    refresh_budget_prices,
    refresh_prices,
)

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def _holdings_budget():
    bitcoin = make_item("Bitcoin", 0, Frequency.ONE_TIME, asset_type=AssetType.CRYPTO, ticker="bitcoin", quantity=0.5)
    apple = make_item(
        "Apple", 0, Frequency.ONE_TIME, asset_type=AssetType.STOCK, ticker="AAPL", quantity=10, live_price=150,
    )
    savings = make_item("Savings", 2000, Frequency.ONE_TIME)
    fund = make_item("Index Fund", 0, Frequency.ONE_TIME, asset_type=AssetType.STOCK, ticker="voo", quantity=2)
    return new_budget().touch(liquid_assets=(bitcoin, apple, savings), retirement=(fund,))


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith('/simple/price'):
        return httpx.Response(200, json={'bitcoin': {'usd': 60000}, 'ethereum': {'usd': -1}})
    if request.url.path.endswith('/quote'):
        symbol = request.url.params['symbol']
        if symbol == 'AAPL':
            return httpx.Response(200, json={'c': 190.5})
        if symbol == 'VOO':
            return httpx.Response(200, json={'c': 0})
        return httpx.Response(500, json={'error': 'boom'})
    return httpx.Response(404)


def _run(coro_factory):
    async def runner():
        async with httpx.AsyncClient(transport=httpx.MockTransport(_handler)) as client:
            return await coro_factory(client)
    return asyncio.run(runner())


def test_collect_tickers_groups_by_feed():
    tickers = collect_tickers(_holdings_budget())
    assert tickers[AssetType.CRYPTO] == {'bitcoin'}
    assert tickers[AssetType.STOCK] == {'AAPL', 'VOO'}
    assert has_priced_items(_holdings_budget())
    assert not has_priced_items(new_budget())


def test_refresh_prices_updates_matching_items():
    budget = _holdings_budget()
    quotes = {AssetType.CRYPTO: {'bitcoin': 60000.0}, AssetType.STOCK: {'VOO': 450.0}}
    refreshed = refresh_prices(budget, quotes, now=NOW)

    bitcoin, apple, savings = refreshed.liquid_assets
    assert bitcoin.live_price == 60000.0
    assert bitcoin.amount == 30000.0
    assert bitcoin.total_value == 30000.0
    # no quote: last known price is kept
    assert apple == budget.liquid_assets[1]
    assert apple.amount == 1500
    assert savings == budget.liquid_assets[2]
    assert refreshed.retirement[0].amount == 900.0
    assert refreshed.last_price_refresh == NOW
    assert refreshed.updated_at == NOW


def test_refresh_prices_without_usable_quotes_is_a_no_op():
    budget = _holdings_budget()
    quotes = {AssetType.CRYPTO: {'bitcoin': float('nan')}, AssetType.STOCK: {'AAPL': 0, 'VOO': -5}}
    assert refresh_prices(budget, quotes, now=NOW) is budget
    assert refresh_prices(budget, {}, now=NOW) is budget


def test_fetch_crypto_prices_filters_bad_quotes():
    result = _run(lambda client: fetch_crypto_prices(['Bitcoin', 'ethereum', ''], client))
    assert result == {'bitcoin': 60000.0}


def test_fetch_stock_prices_skips_failures(monkeypatch):
    monkeypatch.setattr(prices, 'FINNHUB_API_KEY', 'test-key')
    result = _run(lambda client: fetch_stock_prices(['aapl', 'VOO', 'FAIL', 'AAPL'], client))
    assert result == {'AAPL': 190.5}


def test_fetch_stock_prices_caps_symbol_count(monkeypatch):
    monkeypatch.setattr(prices, 'FINNHUB_API_KEY', 'test-key')
    seen = []

    def handler(request):
        seen.append(request.url.params['symbol'])
        return httpx.Response(200, json={'c': 10})

    async def runner():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await fetch_stock_prices([f'S{i}' for i in range(30)], client)

    result = asyncio.run(runner())
    assert len(result) == prices.MAX_STOCK_SYMBOLS
    assert len(seen) == prices.MAX_STOCK_SYMBOLS


def test_fetch_stock_prices_requires_api_key(monkeypatch):
    monkeypatch.setattr(prices, 'FINNHUB_API_KEY', '')
    assert _run(lambda client: fetch_stock_prices(['AAPL'], client)) == {}


def test_fetch_quotes_and_refresh(monkeypatch):
    monkeypatch.setattr(prices, 'FINNHUB_API_KEY', 'test-key')
    budget = _holdings_budget()

    quotes = _run(lambda client: fetch_quotes(budget, client))
    assert quotes == {AssetType.CRYPTO: {'bitcoin': 60000.0}, AssetType.STOCK: {'AAPL': 190.5}}

    refreshed = _run(lambda client: refresh_budget_prices(budget, client, now=NOW))
    assert refreshed.liquid_assets[0].amount == 30000.0
    assert refreshed.liquid_assets[1].amount == 1905.0
    # a zero quote is ignored
    assert refreshed.retirement[0] == budget.retirement[0]


def test_network_errors_mean_no_quote():
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    async def runner():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await fetch_crypto_prices(['bitcoin'], client)

    assert asyncio.run(runner()) == {}
