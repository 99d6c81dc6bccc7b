"""Exchange rate service with in-process caching and request batching.

Rates are fetched from an exchangerate-api compatible endpoint
(``{api_url}/{FROM}`` returning ``{"rates": {...}}``) and cached per currency
pair. Concurrent requests for the same pair share one in-flight fetch.
Failures are never cached.
"""

import asyncio
import json
import logging
import time
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any

from ..config import CurrencyConfig
from ..errors import DecodingError, FetchError, NoData, RateUnavailable
from ..models import CurrencyRate
from .http import Fetcher

logger = logging.getLogger(__name__)


class ExchangeRateService:
    """Resolve exchange rates between ISO currency codes.

    Attributes:
        fetcher: HTTP collaborator used for rate lookups.
        config: Currency settings (endpoint, cache TTL).
    """

    def __init__(
        self,
        fetcher: Fetcher,
        config: CurrencyConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.fetcher = fetcher
        self.config = config or CurrencyConfig()
        self._clock = clock
        self._cache: dict[str, tuple[CurrencyRate, float]] = {}
        self._batch_requests: dict[str, asyncio.Task[CurrencyRate]] = {}
        self._request_lock = asyncio.Lock()

    @staticmethod
    def _key(from_currency: str, to_currency: str) -> str:
        return f"{from_currency}_{to_currency}"

    async def get_rate(self, from_currency: str, to_currency: str) -> Decimal:
        """Get the multiplier converting ``from_currency`` into ``to_currency``.

        Args:
            from_currency: Source currency code.
            to_currency: Target currency code.

        Returns:
            Exchange rate as a Decimal.

        Raises:
            RateUnavailable: If the rate could not be fetched.
        """
        rate = await self.get_currency_rate(from_currency, to_currency)
        return rate.rate

    async def get_currency_rate(self, from_currency: str, to_currency: str) -> CurrencyRate:
        """Get the full rate record for a currency pair.

        Raises:
            RateUnavailable: If the rate could not be fetched.
        """
        from_currency = from_currency.upper()
        to_currency = to_currency.upper()

        if from_currency == to_currency:
            return CurrencyRate(
                from_currency=from_currency, to_currency=to_currency, rate=Decimal("1"), source="identity"
            )

        key = self._key(from_currency, to_currency)

        async with self._request_lock:
            cached = self._get_cached_if_fresh(key)
            if cached is not None:
                logger.debug(f"Using cached {key} rate")
                return cached

            task = self._batch_requests.get(key)
            if task is None:
                task = asyncio.create_task(self._fetch_rate(from_currency, to_currency))
                self._batch_requests[key] = task
                task.add_done_callback(lambda _t, k=key: self._batch_requests.pop(k, None))
            else:
                logger.debug(f"Waiting for in-flight request: {key}")

        return await asyncio.shield(task)

    def _get_cached_if_fresh(self, key: str) -> CurrencyRate | None:
        cached = self._cache.get(key)
        if cached is None:
            return None

        rate, stored_at = cached
        ttl = self.config.cache_ttl_seconds
        if ttl is not None and self._clock() - stored_at > ttl:
            self._cache.pop(key, None)
            return None
        return CurrencyRate(
            from_currency=rate.from_currency,
            to_currency=rate.to_currency,
            rate=rate.rate,
            source="cache",
            fetched_at=rate.fetched_at,
        )

    async def _fetch_rate(self, from_currency: str, to_currency: str) -> CurrencyRate:
        """Fetch one pair from the API and cache it on success."""
        url = f"{self.config.api_url.rstrip('/')}/{from_currency}"
        logger.info(f"Fetching {from_currency}/{to_currency} rate from {url}")

        try:
            body = await self.fetcher.fetch(url)
            rate_value = self._parse_rate(body, to_currency)
        except FetchError as e:
            logger.error(f"Failed to get {from_currency}/{to_currency} rate: {e}")
            raise RateUnavailable(from_currency, to_currency, e) from e

        rate = CurrencyRate(
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate_value,
            source="api",
            fetched_at=datetime.now(),
        )
        self._cache[self._key(from_currency, to_currency)] = (rate, self._clock())
        logger.info(f"{from_currency}/{to_currency} rate: {rate_value}")
        return rate

    @staticmethod
    def _parse_rate(body: bytes, to_currency: str) -> Decimal:
        try:
            data: Any = json.loads(body, parse_float=Decimal)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodingError(f"Invalid rate response: {e}") from e

        rates = data.get("rates") if isinstance(data, dict) else None
        if not isinstance(rates, dict) or to_currency not in rates:
            raise NoData(f"Rate for {to_currency} missing from response")

        try:
            value = Decimal(str(rates[to_currency]))
        except ArithmeticError as e:
            raise DecodingError(f"Unparseable rate for {to_currency}: {rates[to_currency]!r}") from e
        if not value.is_finite():
            raise DecodingError(f"Non-finite rate for {to_currency}: {value}")
        if value <= 0:
            raise NoData(f"Non-positive rate for {to_currency}: {value}")
        return value

    def cached_rates(self) -> dict[str, Decimal]:
        """Currently cached rates keyed ``FROM_TO``, expired entries excluded."""
        result = {}
        for key in list(self._cache):
            cached = self._get_cached_if_fresh(key)
            if cached is not None:
                result[key] = cached.rate
        return result

    def invalidate_cache(self) -> None:
        """Drop every cached rate."""
        cleared = len(self._cache)
        self._cache.clear()
        logger.info(f"Currency cache cleared: {cleared} entries removed")

    def get_cache_stats(self) -> dict[str, int]:
        """Get cache statistics."""
        return {
            "cache_size": len(self._cache),
            "active_batch_requests": len(self._batch_requests),
        }
