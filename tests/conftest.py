"""Global test configuration and fixtures.

Provides shared fixtures for all tests: a fake HTTP fetcher, default
configuration sections, forwarder profiles and sample products. No test
touches the network.
"""

import json
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from byabroad.config import DEFAULT_FORWARDERS, DEFAULT_STORES, CostConfig, CurrencyConfig, SearchConfig
from byabroad.models import Product, ProductCategory, ShippingProviderProfile
from byabroad.services.currency import ExchangeRateService
from byabroad.services.customs import DutyRuleTable
from byabroad.services.landed_cost import LandedCostCalculator
from byabroad.services.shipping import ForwarderRegistry, ShippingQuoteCalculator


def rate_payload(rates: dict[str, str], base: str = "USD") -> bytes:
    """Body of an exchange rate API response; rates given as strings."""
    items = ", ".join(f'"{code}": {value}' for code, value in rates.items())
    return f'{{"base": "{base}", "rates": {{{items}}}}}'.encode()


@pytest.fixture
def rate_body():
    """Builder for exchange rate API response bodies."""
    return rate_payload


@pytest.fixture
def fake_fetcher():
    """Fetcher double whose ``fetch`` coroutine is an AsyncMock."""
    fetcher = AsyncMock()
    fetcher.fetch = AsyncMock(return_value=rate_payload({"ILS": "3.7", "EUR": "0.92"}))
    return fetcher


@pytest.fixture
def cost_config():
    return CostConfig()


@pytest.fixture
def currency_config():
    return CurrencyConfig()


@pytest.fixture
def search_config():
    return SearchConfig(api_key="test-key")


@pytest.fixture
def duty_rules(cost_config):
    return DutyRuleTable(cost_config)


@pytest.fixture
def currency_service(fake_fetcher, currency_config):
    return ExchangeRateService(fake_fetcher, currency_config)


@pytest.fixture
def calculator(currency_service, duty_rules, cost_config):
    return LandedCostCalculator(currency_service, duty_rules, ShippingQuoteCalculator(), cost_config)


@pytest.fixture
def forwarder_registry():
    return ForwarderRegistry(DEFAULT_FORWARDERS)


@pytest.fixture
def store_records():
    return [dict(record) for record in DEFAULT_STORES]


@pytest.fixture
def uninsured_forwarder():
    """Forwarder with base 45, 25/kg, fee 15 and no insurance."""
    return ShippingProviderProfile(
        id="flat",
        name="flat",
        display_name="Flat Forwarder",
        base_rate=Decimal("45"),
        per_kg_rate=Decimal("25"),
        processing_fee=Decimal("15"),
        has_insurance=False,
    )


@pytest.fixture
def sample_products():
    """Sample products for testing."""
    return {
        "headphones": Product(
            name="Sony WH-1000XM5 Headphones",
            price=Decimal("999"),
            currency="USD",
            product_url="https://example.com/headphones",
            category=ProductCategory.ELECTRONICS,
            origin_tax=Decimal("79.92"),
            weight_kg=Decimal("1.0"),
        ),
        "cheap_book": Product(
            name="Paperback novel",
            price=Decimal("10"),
            currency="USD",
            category=ProductCategory.BOOKS,
        ),
        "expensive_book": Product(
            name="Art book",
            price=Decimal("200"),
            currency="USD",
            category=ProductCategory.BOOKS,
        ),
        "socks": Product(
            name="Socks",
            price=Decimal("5"),
            currency="USD",
            category=ProductCategory.CLOTHING,
        ),
    }


@pytest.fixture
def search_response_json():
    """Search API response with shopping results."""
    return json.dumps(
        {
            "search_metadata": {"id": "abc", "status": "Success"},
            "search_parameters": {"engine": "google_shopping", "q": "headphones"},
            "shopping_results": [
                {
                    "position": 1,
                    "title": "Sony WH-1000XM5",
                    "product_link": "https://shop.example.com/sony",
                    "link": "https://example.com/sony",
                    "source": "Best Buy",
                    "price": "$349.99",
                    "extracted_price": 349.99,
                    "thumbnail": "https://img.example.com/sony.jpg",
                },
                {
                    "position": 2,
                    "title": "Bose QuietComfort",
                    "link": "https://example.com/bose",
                    "source": "Amazon.com",
                },
            ],
        }
    ).encode()
