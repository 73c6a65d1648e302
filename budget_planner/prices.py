"""Live price refresh for crypto and stock holdings.

:func:`refresh_prices` is pure: it takes already-fetched quotes and
returns an updated budget.  The network side lives in the ``fetch_*``
coroutines, which talk to CoinGecko (crypto, keyed by lowercase coin id)
and Finnhub (stocks, keyed by uppercase symbol).  A failed request never
raises; the affected tickers simply have no quote and keep their last
known price.
"""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Set

import httpx

from .config import COINGECKO_API_URL, FINNHUB_API_KEY, FINNHUB_API_URL, MAX_STOCK_SYMBOLS, QUOTE_TIMEOUT_SECONDS
from .models import PRICED_SECTIONS, AssetType, Budget, utcnow

logger = logging.getLogger(__name__)

Quotes = Dict[AssetType, Dict[str, float]]


def _quote_key(ticker: str, asset_type: AssetType) -> str:
    return ticker.lower() if asset_type is AssetType.CRYPTO else ticker.upper()


def collect_tickers(budget: Budget) -> Dict[AssetType, Set[str]]:
    """Tickers of every price-tracking item, grouped by feed."""
    tickers: Dict[AssetType, Set[str]] = {AssetType.CRYPTO: set(), AssetType.STOCK: set()}
    for section in PRICED_SECTIONS:
        for item in budget.items(section):
            if item.tracks_price:
                tickers[item.asset_type].add(_quote_key(item.ticker, item.asset_type))
    return tickers


def has_priced_items(budget: Budget) -> bool:
    return any(collect_tickers(budget).values())


def _valid_quote(value) -> Optional[float]:
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return price


def refresh_prices(budget: Budget, quotes: Mapping[AssetType, Mapping[str, float]], *,
                   now: Optional[datetime] = None) -> Budget:
    """Apply ``quotes`` to every matching crypto/stock item.

    Items whose ticker has no usable quote keep their previous price and
    amount.  ``last_price_refresh`` is only stamped when at least one item
    was updated; otherwise ``budget`` is returned unchanged.
    """
    changes = {}
    for section in PRICED_SECTIONS:
        items = list(budget.items(section))
        updated = False
        for index, item in enumerate(items):
            if not item.tracks_price:
                continue
            feed = quotes.get(item.asset_type) or {}
            price = _valid_quote(feed.get(_quote_key(item.ticker, item.asset_type)))
            if price is None:
                continue
            items[index] = item.with_changes(live_price=price)
            updated = True
        if updated:
            changes[section.attr] = tuple(items)

    if not changes:
        return budget
    stamp = now or utcnow()
    return budget.touch(stamp, last_price_refresh=stamp, **changes)


# ---------------------------------------------------------------------------
# Quote fetching
# ---------------------------------------------------------------------------


async def fetch_crypto_prices(coin_ids: Iterable[str], client: Optional[httpx.AsyncClient] = None) -> Dict[str, float]:
    """Fetch USD prices for CoinGecko coin ids in a single request."""
    ids = sorted({coin.strip().lower() for coin in coin_ids if coin and coin.strip()})
    if not ids:
        return {}

    params = {'ids': ','.join(ids), 'vs_currencies': 'usd'}
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=QUOTE_TIMEOUT_SECONDS) as own_client:
                response = await own_client.get(f'{COINGECKO_API_URL}/simple/price', params=params)
        else:
            response = await client.get(f'{COINGECKO_API_URL}/simple/price', params=params)
        response.raise_for_status()
        payload = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Crypto price fetch failed for %s: %s", ','.join(ids), exc)
        return {}

    prices: Dict[str, float] = {}
    for coin in ids:
        entry = payload.get(coin) if isinstance(payload, dict) else None
        price = _valid_quote(entry.get('usd')) if isinstance(entry, dict) else None
        if price is not None:
            prices[coin] = price
    return prices


async def _fetch_stock(client: httpx.AsyncClient, symbol: str) -> Optional[float]:
    try:
        response = await client.get(
            f'{FINNHUB_API_URL}/quote',
            params={'symbol': symbol, 'token': FINNHUB_API_KEY},
        )
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Stock quote fetch failed for %s: %s", symbol, exc)
        return None
    # "c" is Finnhub's current price
    return _valid_quote(data.get('c')) if isinstance(data, dict) else None


async def fetch_stock_prices(symbols: Iterable[str], client: Optional[httpx.AsyncClient] = None) -> Dict[str, float]:
    """Fetch current prices for up to ``MAX_STOCK_SYMBOLS`` symbols concurrently.

    Without a Finnhub API key nothing is fetched.
    """
    ordered: List[str] = []
    for symbol in symbols:
        cleaned = (symbol or '').strip().upper()
        if cleaned and cleaned not in ordered:
            ordered.append(cleaned)
    ordered = ordered[:MAX_STOCK_SYMBOLS]
    if not ordered:
        return {}
    if not FINNHUB_API_KEY:
        logger.warning("FINNHUB_API_KEY is not set; skipping stock quotes for %s", ','.join(ordered))
        return {}

    async def gather(active: httpx.AsyncClient) -> List[Optional[float]]:
        return await asyncio.gather(*(_fetch_stock(active, symbol) for symbol in ordered))

    if client is None:
        async with httpx.AsyncClient(timeout=QUOTE_TIMEOUT_SECONDS) as own_client:
            results = await gather(own_client)
    else:
        results = await gather(client)
    return {symbol: price for symbol, price in zip(ordered, results) if price is not None}


async def fetch_quotes(budget: Budget, client: Optional[httpx.AsyncClient] = None) -> Quotes:
    """Fetch quotes for every ticker tracked by ``budget``."""
    tickers = collect_tickers(budget)
    crypto, stocks = await asyncio.gather(
        fetch_crypto_prices(tickers[AssetType.CRYPTO], client),
        fetch_stock_prices(sorted(tickers[AssetType.STOCK]), client),
    )
    return {AssetType.CRYPTO: crypto, AssetType.STOCK: stocks}


async def refresh_budget_prices(budget: Budget, client: Optional[httpx.AsyncClient] = None, *,
                                now: Optional[datetime] = None) -> Budget:
    """Fetch quotes and apply them in one step."""
    if not has_priced_items(budget):
        return budget
    quotes = await fetch_quotes(budget, client)
    return refresh_prices(budget, quotes, now=now)
