# app/services/exchange_rates.py
"""
Exchange rates and currency conversion.

Rates are USD-relative: ``rates["EUR"] == 0.92`` means 1 USD buys 0.92 EUR,
so converting an EUR amount to USD divides by the rate.

Public API:
    ExchangeRateCache(fetcher=..., ttl_seconds=...).get_rates() -> dict
    convert_to_usd(amount, from_currency, rates) -> float
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional

import httpx

from app.config import (
    EXCHANGE_RATE_TIMEOUT,
    EXCHANGE_RATE_TTL_SECONDS,
    EXCHANGE_RATE_URL,
    REPORTING_CURRENCY,
)

logger = logging.getLogger(__name__)

Rates = Dict[str, float]

# Used when the rate API is unreachable
FALLBACK_RATES: Rates = {
    "USD": 1.0,
    "EUR": 0.92,
    "GBP": 0.79,
    "BRL": 6.10,
    "CAD": 1.44,
    "AUD": 1.60,
}


def fetch_rates_from_api(
    url: str = EXCHANGE_RATE_URL,
    timeout: float = EXCHANGE_RATE_TIMEOUT,
) -> Rates:
    """GET the public rate table and return its ``rates`` mapping."""
    resp = httpx.get(url, timeout=timeout)
    resp.raise_for_status()
    data = resp.json()

    rates = data.get("rates") if isinstance(data, dict) else None
    if not isinstance(rates, dict) or not rates:
        raise ValueError(f"rate payload has no 'rates' table: {str(data)[:200]!r}")

    return {str(code).upper(): float(value) for code, value in rates.items()}


class ExchangeRateCache:
    """
    Memoized rate table with a time-to-live.

    - Fresh cache: returned as-is, no network call.
    - Miss / expired: fetch; success replaces the cache.
    - Fetch failure: FALLBACK_RATES is returned and the cache is left alone,
      so the next call tries the network again.
    """

    def __init__(
        self,
        fetcher: Optional[Callable[[], Rates]] = None,
        ttl_seconds: float = EXCHANGE_RATE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.fetcher = fetcher or fetch_rates_from_api
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.rates: Optional[Rates] = None
        self.fetched_at: Optional[float] = None

    def is_fresh(self) -> bool:
        if self.rates is None or self.fetched_at is None:
            return False
        return self.clock() - self.fetched_at < self.ttl_seconds

    def get_rates(self) -> Rates:
        if self.is_fresh():
            return self.rates

        try:
            rates = self.fetcher()
        except Exception as e:
            logger.warning("Error fetching exchange rates, using fallback table: %r", e)
            return dict(FALLBACK_RATES)

        self.rates = rates
        self.fetched_at = self.clock()
        logger.info("Exchange rates loaded: %d currencies", len(rates))
        return rates

    def clear(self) -> None:
        self.rates = None
        self.fetched_at = None


def convert_to_usd(amount: float, from_currency: Optional[str], rates: Rates) -> float:
    """
    Convert an amount to the reporting currency.

    Unknown currencies are logged and returned unconverted.
    """
    if not from_currency or from_currency == REPORTING_CURRENCY:
        return amount

    rate = rates.get(from_currency)
    if not rate:
        logger.warning("Unknown currency: %s, keeping original amount", from_currency)
        return amount

    return amount / rate
