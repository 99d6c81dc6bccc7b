"""Tests for the exchange rate service: caching, batching and failures."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from byabroad.config import CurrencyConfig
from byabroad.errors import DecodingError, NetworkUnavailable, NoData, RateUnavailable, Unauthorized
from byabroad.services.currency import ExchangeRateService


class TestGetRate:
    """Test rate lookups against the fake API."""

    @pytest.mark.asyncio
    async def test_fetches_rate(self, currency_service, fake_fetcher):
        rate = await currency_service.get_rate("USD", "ILS")

        assert rate == Decimal("3.7")
        fake_fetcher.fetch.assert_awaited_once_with("https://api.exchangerate-api.com/v4/latest/USD")

    @pytest.mark.asyncio
    async def test_same_currency_returns_one_without_fetch(self, currency_service, fake_fetcher):
        assert await currency_service.get_rate("ILS", "ils") == Decimal("1")
        fake_fetcher.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cache_hit_skips_network(self, currency_service, fake_fetcher):
        await currency_service.get_rate("USD", "ILS")
        record = await currency_service.get_currency_rate("USD", "ILS")

        assert record.rate == Decimal("3.7")
        assert record.source == "cache"
        assert fake_fetcher.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_pairs_are_cached_separately(self, currency_service, fake_fetcher):
        await currency_service.get_rate("USD", "ILS")
        await currency_service.get_rate("USD", "EUR")

        assert fake_fetcher.fetch.await_count == 2
        assert currency_service.cached_rates() == {"USD_ILS": Decimal("3.7"), "USD_EUR": Decimal("0.92")}

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_fetch(self, currency_service, fake_fetcher, rate_body):
        gate = asyncio.Event()

        async def slow_fetch(url, params=None):
            await gate.wait()
            return rate_body({"ILS": "3.65"})

        fake_fetcher.fetch = AsyncMock(side_effect=slow_fetch)

        tasks = [asyncio.create_task(currency_service.get_rate("USD", "ILS")) for _ in range(5)]
        await asyncio.sleep(0.01)
        assert currency_service.get_cache_stats()["active_batch_requests"] == 1
        gate.set()
        rates = await asyncio.gather(*tasks)

        assert rates == [Decimal("3.65")] * 5
        assert fake_fetcher.fetch.await_count == 1
        assert currency_service.get_cache_stats()["active_batch_requests"] == 0


class TestFailures:
    """Test that failures surface as RateUnavailable and are not cached."""

    @pytest.mark.asyncio
    async def test_network_failure(self, currency_service, fake_fetcher):
        fake_fetcher.fetch = AsyncMock(side_effect=NetworkUnavailable("offline"))

        with pytest.raises(RateUnavailable) as exc_info:
            await currency_service.get_rate("USD", "ILS")

        assert exc_info.value.transient is True
        assert isinstance(exc_info.value.cause, NetworkUnavailable)

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self, currency_service, fake_fetcher, rate_body):
        fake_fetcher.fetch = AsyncMock(
            side_effect=[NetworkUnavailable("offline"), rate_body({"ILS": "3.7"})]
        )

        with pytest.raises(RateUnavailable):
            await currency_service.get_rate("USD", "ILS")
        assert await currency_service.get_rate("USD", "ILS") == Decimal("3.7")
        assert fake_fetcher.fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_missing_target_currency(self, currency_service, fake_fetcher, rate_body):
        fake_fetcher.fetch.return_value = rate_body({"EUR": "0.92"})

        with pytest.raises(RateUnavailable) as exc_info:
            await currency_service.get_rate("USD", "ILS")

        assert isinstance(exc_info.value.cause, NoData)
        assert exc_info.value.transient is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["NaN", "Infinity"])
    async def test_non_finite_rate(self, currency_service, fake_fetcher, rate_body, value):
        fake_fetcher.fetch.return_value = rate_body({"ILS": value})

        with pytest.raises(RateUnavailable) as exc_info:
            await currency_service.get_rate("USD", "ILS")

        assert isinstance(exc_info.value.cause, DecodingError)
        assert currency_service.cached_rates() == {}

    @pytest.mark.asyncio
    async def test_malformed_body(self, currency_service, fake_fetcher):
        fake_fetcher.fetch.return_value = b"<html>maintenance</html>"

        with pytest.raises(RateUnavailable) as exc_info:
            await currency_service.get_rate("USD", "ILS")

        assert isinstance(exc_info.value.cause, DecodingError)

    @pytest.mark.asyncio
    async def test_unauthorized_is_permanent(self, currency_service, fake_fetcher):
        fake_fetcher.fetch = AsyncMock(side_effect=Unauthorized("bad key"))

        with pytest.raises(RateUnavailable) as exc_info:
            await currency_service.get_rate("USD", "ILS")

        assert exc_info.value.transient is False

    @pytest.mark.asyncio
    async def test_non_positive_rate_rejected(self, currency_service, fake_fetcher, rate_body):
        fake_fetcher.fetch.return_value = rate_body({"ILS": "0"})

        with pytest.raises(RateUnavailable):
            await currency_service.get_rate("USD", "ILS")


class TestCacheExpiry:
    """Test TTL handling with an injected clock."""

    def setup_method(self):
        self.now = 1000.0

    def _service(self, fetcher, ttl):
        return ExchangeRateService(fetcher, CurrencyConfig(cache_ttl_seconds=ttl), clock=lambda: self.now)

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self, fake_fetcher):
        service = self._service(fake_fetcher, 60)

        await service.get_rate("USD", "ILS")
        self.now += 30
        await service.get_rate("USD", "ILS")
        assert fake_fetcher.fetch.await_count == 1

        self.now += 31
        await service.get_rate("USD", "ILS")
        assert fake_fetcher.fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_no_ttl_never_expires(self, fake_fetcher):
        service = self._service(fake_fetcher, None)

        await service.get_rate("USD", "ILS")
        self.now += 10**9
        await service.get_rate("USD", "ILS")

        assert fake_fetcher.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_invalidate_cache(self, currency_service, fake_fetcher):
        await currency_service.get_rate("USD", "ILS")
        currency_service.invalidate_cache()

        assert currency_service.get_cache_stats()["cache_size"] == 0
        await currency_service.get_rate("USD", "ILS")
        assert fake_fetcher.fetch.await_count == 2
