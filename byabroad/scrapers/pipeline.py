"""URL to product extraction pipeline.

Turns a product URL into a ``URLParsingResult``:

- malformed URL: ``invalid_url``, manual entry required, nothing fetched
- unregistered domain: page fetched and read with the generic extractor
- registered store without an extractor: ``scraping_unavailable``, nothing
  fetched, manual entry required
- registered store with an extractor: page fetched and read with it

Failures are reported in the result; ``parse_url`` does not raise.
"""

import logging
from decimal import Decimal

from ..errors import FetchError, InvalidURL
from ..models import (
    ExtractedFields,
    ExtractionStatus,
    ParsingError,
    Product,
    ProductCategory,
    StoreIdentity,
    StoreProfile,
    URLParsingResult,
)
from ..services.analytics import DomainRequestTracker
from ..services.http import Fetcher
from .base import ExtractorProtocol, ExtractorRegistry
from .generic import GenericExtractor
from .stores import StoreResolver

logger = logging.getLogger(__name__)


class ProductExtractionPipeline:
    """Resolve, fetch and extract a product from its URL.

    Attributes:
        fetcher: HTTP collaborator for page fetches.
        resolver: Store registry.
        extractors: Store-specific extractors keyed by store id.
        generic_extractor: Extractor used for unregistered domains.
        tracker: Per-domain request counter.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        resolver: StoreResolver,
        extractors: ExtractorRegistry,
        generic_extractor: ExtractorProtocol | None = None,
        tracker: DomainRequestTracker | None = None,
    ):
        self.fetcher = fetcher
        self.resolver = resolver
        self.extractors = extractors
        self.generic_extractor = generic_extractor or GenericExtractor()
        self.tracker = tracker or DomainRequestTracker()

    async def parse_url(self, url: str) -> URLParsingResult:
        """Extract a product from a URL.

        Args:
            url: Product page URL.

        Returns:
            URLParsingResult describing the outcome.
        """
        try:
            store = self.resolver.resolve(url)
        except InvalidURL:
            logger.info(f"Rejected invalid URL: {url!r}")
            return URLParsingResult(
                status=ExtractionStatus.INVALID_URL,
                error=ParsingError.INVALID_URL,
                requires_manual_entry=True,
            )

        if store.is_unknown:
            result = await self._parse_with_generic(url, store)
        elif not store.has_structured_extractor:
            logger.info(f"No extractor for {store.display_name}, manual entry required")
            result = URLParsingResult(
                status=ExtractionStatus.SCRAPING_UNAVAILABLE,
                store=store,
                error=ParsingError.SCRAPING_FAILED,
                requires_manual_entry=True,
            )
        else:
            result = await self._parse_with_store_extractor(url, store)

        self.tracker.record(store.domain, success=result.product is not None)
        return result

    async def _fetch(self, url: str, store: StoreIdentity, failed_status: ExtractionStatus):
        """Fetch the page; on failure return the network error result instead."""
        try:
            return await self.fetcher.fetch(url), None
        except FetchError as e:
            logger.warning(f"Fetching {url} failed: {e}")
            return None, URLParsingResult(
                status=failed_status,
                store=store,
                error=ParsingError.NETWORK_ERROR,
                requires_manual_entry=True,
                transient=e.transient,
            )

    async def _parse_with_generic(self, url: str, store: StoreIdentity) -> URLParsingResult:
        html, failure = await self._fetch(url, store, ExtractionStatus.GENERIC_EXTRACTION_FAILED)
        if failure is not None:
            return failure

        fields = self.generic_extractor.extract(html)
        if fields is None:
            return URLParsingResult(
                status=ExtractionStatus.GENERIC_EXTRACTION_FAILED,
                store=store,
                error=ParsingError.SCRAPING_FAILED,
                requires_manual_entry=True,
            )

        product = Product(
            name=fields.name,
            price=fields.price,
            currency=fields.currency,
            product_url=url,
            store_name=store.domain,
            store_id=f"generic_{store.domain}",
            category=ProductCategory.OTHER,
            image_url=fields.image_url,
        )
        logger.info(f"Generic extraction succeeded for {store.domain}: {product.name}")
        return URLParsingResult(status=ExtractionStatus.EXTRACTED, store=store, product=product)

    async def _parse_with_store_extractor(self, url: str, store: StoreIdentity) -> URLParsingResult:
        extractor = self.extractors.get(store.id)
        if extractor is None:
            logger.error(f"Store {store.id} is marked as supported but has no extractor")
            return URLParsingResult(
                status=ExtractionStatus.SCRAPING_UNAVAILABLE,
                store=store,
                error=ParsingError.UNSUPPORTED_STORE,
                requires_manual_entry=True,
            )

        html, failure = await self._fetch(url, store, ExtractionStatus.EXTRACTION_FAILED)
        if failure is not None:
            return failure

        fields = extractor.extract(html)
        if fields is None:
            return URLParsingResult(
                status=ExtractionStatus.EXTRACTION_FAILED,
                store=store,
                error=ParsingError.PRODUCT_NOT_FOUND,
                requires_manual_entry=True,
            )

        product = self._build_product(url, store, fields, self.resolver.get_profile(store.id))
        return URLParsingResult(status=ExtractionStatus.EXTRACTED, store=store, product=product)

    @staticmethod
    def _build_product(
        url: str,
        store: StoreIdentity,
        fields: ExtractedFields,
        profile: StoreProfile | None,
    ) -> Product:
        """Apply the store's tax, weight and category heuristics."""
        origin_tax = None
        weight = None
        category = ProductCategory.OTHER
        if profile is not None:
            if profile.sales_tax_rate > 0:
                origin_tax = fields.price * profile.sales_tax_rate
            weight = profile.estimated_weight_kg
            category = profile.default_category or ProductCategory.OTHER

        return Product(
            name=fields.name,
            price=fields.price,
            currency=fields.currency,
            product_url=url,
            store_name=store.display_name,
            store_id=store.id,
            category=category,
            image_url=fields.image_url,
            origin_tax=origin_tax if origin_tax is not None else Decimal("0"),
            weight_kg=weight,
        )
