"""Tests for the URL to product extraction pipeline."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from byabroad.errors import NetworkUnavailable, Timeout, Unauthorized
from byabroad.models import ExtractionStatus, ParsingError, ProductCategory
from byabroad.scrapers import create_extractor_registry
from byabroad.scrapers.pipeline import ProductExtractionPipeline
from byabroad.scrapers.stores import StoreResolver
from byabroad.services.analytics import DomainRequestTracker

ZARA_PAGE = (
    b"<html><body>"
    b'<h1 class="product-detail-info__header-name">Wool Blend Coat</h1>'
    b'<span class="money-amount__main">100,00 EUR</span>'
    b"</body></html>"
)
GENERIC_PAGE = (
    b"<html><head>"
    b'<meta property="og:title" content="Handmade Mug">'
    b'<meta property="og:price:amount" content="18.00">'
    b'<meta property="og:price:currency" content="USD">'
    b"</head></html>"
)
EMPTY_PAGE = b"<html><body><p>Nothing here</p></body></html>"


@pytest.fixture
def page_fetcher():
    fetcher = AsyncMock()
    fetcher.fetch = AsyncMock(return_value=EMPTY_PAGE)
    return fetcher


@pytest.fixture
def tracker():
    return DomainRequestTracker()


@pytest.fixture
def pipeline(page_fetcher, store_records, tracker):
    return ProductExtractionPipeline(
        fetcher=page_fetcher,
        resolver=StoreResolver(store_records),
        extractors=create_extractor_registry(),
        tracker=tracker,
    )


class TestInvalidAndUnsupported:
    """Test outcomes that never fetch a page."""

    @pytest.mark.asyncio
    async def test_invalid_url(self, pipeline, page_fetcher):
        result = await pipeline.parse_url("definitely not a url")

        assert result.status is ExtractionStatus.INVALID_URL
        assert result.error is ParsingError.INVALID_URL
        assert result.requires_manual_entry is True
        assert result.store is None
        assert result.is_supported is False
        page_fetcher.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_known_store_without_extractor(self, pipeline, page_fetcher):
        result = await pipeline.parse_url("https://www.amazon.com/dp/B0CHX1W1XY")

        assert result.status is ExtractionStatus.SCRAPING_UNAVAILABLE
        assert result.error is ParsingError.SCRAPING_FAILED
        assert result.requires_manual_entry is True
        assert result.is_supported is True
        assert result.store.display_name == "Amazon"
        page_fetcher.fetch.assert_not_awaited()


class TestStoreExtraction:
    """Test stores that have a dedicated extractor."""

    @pytest.mark.asyncio
    async def test_extracted_with_store_heuristics(self, pipeline, page_fetcher):
        page_fetcher.fetch.return_value = ZARA_PAGE
        url = "https://www.zara.com/us/en/wool-coat-p123.html"

        result = await pipeline.parse_url(url)

        assert result.status is ExtractionStatus.EXTRACTED
        assert result.error is None
        assert result.requires_manual_entry is False
        product = result.product
        assert product.name == "Wool Blend Coat"
        assert product.price == Decimal("100.00")
        assert product.currency == "EUR"
        assert product.origin_tax == Decimal("21.0000")
        assert product.weight_kg == Decimal("0.5")
        assert product.category is ProductCategory.CLOTHING
        assert product.store_id == "zara_global"
        assert product.store_name == "Zara"
        assert product.product_url == url
        page_fetcher.fetch.assert_awaited_once_with(url)

    @pytest.mark.asyncio
    async def test_markup_missing(self, pipeline):
        result = await pipeline.parse_url("https://www.zara.com/us/en/wool-coat-p123.html")

        assert result.status is ExtractionStatus.EXTRACTION_FAILED
        assert result.error is ParsingError.PRODUCT_NOT_FOUND
        assert result.requires_manual_entry is True

    @pytest.mark.asyncio
    async def test_transient_network_failure(self, pipeline, page_fetcher):
        page_fetcher.fetch = AsyncMock(side_effect=Timeout("slow"))

        result = await pipeline.parse_url("https://www.nike.com/t/air-max-90")

        assert result.status is ExtractionStatus.EXTRACTION_FAILED
        assert result.error is ParsingError.NETWORK_ERROR
        assert result.transient is True

    @pytest.mark.asyncio
    async def test_permanent_network_failure(self, pipeline, page_fetcher):
        page_fetcher.fetch = AsyncMock(side_effect=Unauthorized("blocked"))

        result = await pipeline.parse_url("https://www.nike.com/t/air-max-90")

        assert result.error is ParsingError.NETWORK_ERROR
        assert result.transient is False


class TestGenericExtraction:
    """Test domains that are not in the store registry."""

    @pytest.mark.asyncio
    async def test_generic_success(self, pipeline, page_fetcher):
        page_fetcher.fetch.return_value = GENERIC_PAGE

        result = await pipeline.parse_url("https://shop.example.org/mug")

        assert result.status is ExtractionStatus.EXTRACTED
        assert result.is_supported is False
        product = result.product
        assert product.store_id == "generic_example.org"
        assert product.category is ProductCategory.OTHER
        assert product.price == Decimal("18.00")
        assert product.currency == "USD"
        assert product.origin_tax is None

    @pytest.mark.asyncio
    async def test_generic_failure(self, pipeline):
        result = await pipeline.parse_url("https://shop.example.org/mug")

        assert result.status is ExtractionStatus.GENERIC_EXTRACTION_FAILED
        assert result.error is ParsingError.SCRAPING_FAILED
        assert result.requires_manual_entry is True

    @pytest.mark.asyncio
    async def test_generic_non_finite_price_is_reported(self, pipeline, page_fetcher):
        page_fetcher.fetch.return_value = (
            b'<html><head><script type="application/ld+json">'
            b'{"@type": "Product", "name": "Mug", "offers": {"price": NaN, "priceCurrency": "USD"}}'
            b"</script></head></html>"
        )

        result = await pipeline.parse_url("https://shop.example.org/mug")

        assert result.status is ExtractionStatus.GENERIC_EXTRACTION_FAILED
        assert result.product is None

    @pytest.mark.asyncio
    async def test_generic_network_failure(self, pipeline, page_fetcher):
        page_fetcher.fetch = AsyncMock(side_effect=NetworkUnavailable("dns"))

        result = await pipeline.parse_url("https://shop.example.org/mug")

        assert result.status is ExtractionStatus.GENERIC_EXTRACTION_FAILED
        assert result.error is ParsingError.NETWORK_ERROR
        assert result.transient is True


class TestDomainTracking:
    @pytest.mark.asyncio
    async def test_requests_are_counted_per_domain(self, pipeline, tracker):
        await pipeline.parse_url("https://www.amazon.com/dp/1")
        await pipeline.parse_url("https://www.amazon.com/dp/2")
        await pipeline.parse_url("https://shop.example.org/mug")
        await pipeline.parse_url("not a url")

        assert tracker.most_requested() == [("amazon.com", 2), ("example.org", 1)]
        stats = tracker.get_stats()
        assert stats["total_requests"] == 3
        assert stats["failed_requests"] == 3
