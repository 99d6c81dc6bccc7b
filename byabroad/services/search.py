"""Multi-engine product search.

Queries a SearchAPI compatible endpoint and normalizes shopping or organic
results into canonical products. Search results carry USD prices; the
category and store id of each product are inferred from keywords.
"""

import asyncio
import logging
from collections import deque
from decimal import Decimal
from urllib.parse import urlparse

from pydantic import ValidationError

from ..config import SearchConfig
from ..errors import DecodingError, InvalidQuery
from ..models import Product, ProductCategory, SearchAPIResponse
from .http import Fetcher

logger = logging.getLogger(__name__)

SEARCH_RESULT_CURRENCY = "USD"
UNKNOWN_STORE_NAME = "Unknown Store"

# Checked in order; the first category with a matching keyword wins
CATEGORY_KEYWORDS: list[tuple[ProductCategory, list[str]]] = [
    (
        ProductCategory.ELECTRONICS,
        [
            "iphone", "samsung", "laptop", "computer", "headphones", "speaker", "tv",
            "tablet", "smartwatch", "camera", "gaming", "console", "monitor",
        ],
    ),
    (
        ProductCategory.CLOTHING,
        [
            "shirt", "dress", "pants", "jeans", "jacket", "shoes", "sneakers", "boots",
            "hat", "bag", "handbag", "clothing", "apparel",
        ],
    ),
    (
        ProductCategory.HOME,
        ["furniture", "chair", "table", "bed", "sofa", "lamp", "kitchen", "bathroom", "home", "decor"],
    ),
    (
        ProductCategory.BEAUTY,
        ["makeup", "skincare", "perfume", "cosmetics", "beauty", "cream", "serum", "lipstick"],
    ),
    (
        ProductCategory.SPORTS,
        ["fitness", "gym", "sports", "exercise", "running", "workout", "athletic"],
    ),
]

STORE_ID_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("amazon", ("amazon",)),
    ("ebay", ("ebay",)),
    ("walmart", ("walmart",)),
    ("target", ("target",)),
    ("bestbuy", ("bestbuy", "best buy")),
    ("zara", ("zara",)),
    ("asos", ("asos",)),
    ("hm", ("h&m", "hm")),
]

POPULAR_SEARCHES = [
    "iPhone 16",
    "MacBook Pro",
    "Nike Air Max",
    "Samsung TV",
    "Sony Headphones",
    "Zara Jacket",
    "ASOS Dress",
    "Kitchen Mixer",
    "Gaming Chair",
    "Smart Watch",
]
MAX_SUGGESTIONS = 8

ENGINE_GOOGLE_SHOPPING = "google_shopping"
ENGINE_AMAZON = "amazon_search"
ENGINE_EBAY = "ebay_search"
ENGINE_WALMART = "walmart_search"


class SearchAPIClient:
    """Thin client for the search endpoint."""

    def __init__(self, fetcher: Fetcher, config: SearchConfig | None = None):
        self.fetcher = fetcher
        self.config = config or SearchConfig()

    async def search(
        self, query: str, engine: str | None = None, location: str | None = None
    ) -> SearchAPIResponse:
        """Run one search request.

        Args:
            query: Search terms.
            engine: Search engine name, defaults to the configured engine.
            location: Location parameter, defaults to the configured location.

        Returns:
            Decoded search response.

        Raises:
            FetchError: On transport failure (see ``Fetcher``).
            DecodingError: If the response does not match the expected shape.
        """
        if not self.config.is_configured:
            logger.warning("SEARCHAPI_API_KEY is not set, request will likely be rejected")

        params = {
            "engine": engine or self.config.default_engine,
            "q": query,
            "location": location or self.config.location,
            "hl": self.config.language,
            "gl": self.config.country,
            "api_key": self.config.api_key,
        }
        logger.info(f"Searching '{query}' with engine {params['engine']}")
        body = await self.fetcher.fetch(self.config.base_url, params=params)

        try:
            return SearchAPIResponse.model_validate_json(body)
        except ValidationError as e:
            logger.error(f"Could not decode search response: {e}")
            raise DecodingError(f"Invalid search response: {e}") from e


class SearchResultNormalizer:
    """Convert search responses into canonical products."""

    def __init__(self, max_organic_results: int = 5):
        self.max_organic_results = max_organic_results

    def to_products(self, response: SearchAPIResponse, query: str) -> list[Product]:
        """Normalize a response into products.

        Shopping results are used when present; otherwise the first organic
        results become products with an unknown (zero) price.

        Args:
            response: Decoded search response.
            query: Query the response answers, used for categorization.

        Returns:
            Products in result order.
        """
        products = [
            Product(
                name=result.title,
                price=result.extracted_price if result.extracted_price is not None else Decimal("0"),
                currency=SEARCH_RESULT_CURRENCY,
                product_url=result.product_link or result.link or "",
                store_name=result.source or UNKNOWN_STORE_NAME,
                store_id=self.determine_store_id(result.source or ""),
                category=self.categorize(result.title, query),
                image_url=result.thumbnail,
            )
            for result in response.shopping_results or []
            if result.extracted_price is None or result.extracted_price >= 0
        ]
        if products:
            return products

        organic = (response.organic_results or [])[: self.max_organic_results]
        for result in organic:
            store_name = self.store_name_from_url(result.link)
            products.append(
                Product(
                    name=result.title,
                    price=Decimal("0"),
                    currency=SEARCH_RESULT_CURRENCY,
                    product_url=result.link,
                    store_name=store_name,
                    store_id=self.determine_store_id(store_name),
                    category=self.categorize(result.title, query),
                )
            )
        return products

    @staticmethod
    def categorize(title: str, query: str = "") -> ProductCategory:
        """Infer a category from keywords in the title and query."""
        text = f"{title} {query}".lower()
        for category, keywords in CATEGORY_KEYWORDS:
            if any(keyword in text for keyword in keywords):
                return category
        return ProductCategory.OTHER

    @staticmethod
    def determine_store_id(source: str) -> str:
        """Map a store name or URL to a store id, ``unknown`` if unrecognized."""
        lowered = source.lower()
        for store_id, fragments in STORE_ID_KEYWORDS:
            if any(fragment in lowered for fragment in fragments):
                return store_id
        return "unknown"

    @staticmethod
    def store_name_from_url(url: str) -> str:
        """``https://www.example.com/x`` -> ``Example``."""
        host = (urlparse(url).hostname or "").lower()
        if host.startswith("www."):
            host = host[4:]
        label = host.split(".")[0] if host else ""
        return label.capitalize() if label else UNKNOWN_STORE_NAME


class ProductSearchService:
    """Product search with query history and engine shortcuts.

    Attributes:
        client: Search endpoint client.
        normalizer: Response to product converter.
        config: Search settings.
    """

    def __init__(
        self,
        client: SearchAPIClient,
        normalizer: SearchResultNormalizer | None = None,
        config: SearchConfig | None = None,
    ):
        self.client = client
        self.config = config or client.config
        self.normalizer = normalizer or SearchResultNormalizer(self.config.max_organic_results)
        self._history: deque[str] = deque(maxlen=self.config.history_size)

    async def search(self, query: str, engine: str | None = None) -> list[Product]:
        """Search for products.

        Args:
            query: Search terms.
            engine: Search engine name, defaults to the configured engine.

        Returns:
            Normalized products.

        Raises:
            InvalidQuery: If the query is empty or whitespace.
            FetchError: On transport failure.
        """
        cleaned = query.strip() if query else ""
        if not cleaned:
            raise InvalidQuery("Search query must not be empty")

        self._remember(cleaned)
        response = await self.client.search(cleaned, engine)
        products = self.normalizer.to_products(response, cleaned)
        logger.info(f"Search '{cleaned}' returned {len(products)} products")
        return products

    async def search_google_shopping(self, query: str) -> list[Product]:
        return await self.search(query, ENGINE_GOOGLE_SHOPPING)

    async def search_amazon(self, query: str) -> list[Product]:
        return await self.search(query, ENGINE_AMAZON)

    async def search_ebay(self, query: str) -> list[Product]:
        return await self.search(query, ENGINE_EBAY)

    async def search_walmart(self, query: str) -> list[Product]:
        return await self.search(query, ENGINE_WALMART)

    def _remember(self, query: str) -> None:
        if query in self._history:
            self._history.remove(query)
        self._history.appendleft(query)

    @property
    def recent_searches(self) -> list[str]:
        """Distinct recent queries, most recent first."""
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()

    def suggestions(self) -> list[str]:
        """Recent queries, or popular searches when there is no history."""
        source = self.recent_searches or POPULAR_SEARCHES
        return source[:MAX_SUGGESTIONS]


class DebouncedSearch:
    """Latest-wins search for as-you-type input.

    Each submission waits ``delay`` seconds before searching. A newer
    submission cancels the pending or in-flight one, whose awaiter then
    receives ``asyncio.CancelledError``.
    """

    def __init__(self, service: ProductSearchService, delay: float | None = None):
        self.service = service
        self.delay = service.config.debounce_seconds if delay is None else delay
        self._pending: asyncio.Task[list[Product]] | None = None

    async def _run(self, query: str, engine: str | None) -> list[Product]:
        await asyncio.sleep(self.delay)
        return await self.service.search(query, engine)

    async def submit(self, query: str, engine: str | None = None) -> list[Product]:
        """Schedule a search, superseding any earlier submission.

        Raises:
            asyncio.CancelledError: If a newer submission superseded this one.
        """
        if self._pending is not None and not self._pending.done():
            logger.debug("Cancelling superseded search")
            self._pending.cancel()

        task = asyncio.create_task(self._run(query, engine))
        self._pending = task
        try:
            return await task
        finally:
            if self._pending is task:
                self._pending = None

    def cancel(self) -> None:
        """Cancel the pending search, if any."""
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
