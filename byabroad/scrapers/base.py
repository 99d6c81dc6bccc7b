"""Base extractor protocol and shared page-metadata helpers.

Defines the interface every product extractor implements, the common helpers
for reading JSON-LD, Open Graph and microdata product metadata, and the
registry that maps store ids to their extractors.
"""

import json
import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol

from bs4 import BeautifulSoup

from ..models import KNOWN_CURRENCIES, ExtractedFields

logger = logging.getLogger(__name__)

PRICE_NUMBER_RE = re.compile(r"\d+(?:[.,\s]\d{3})*(?:[.,]\d{1,2})?")
CURRENCY_SYMBOLS = {
    "$": "USD",
    "€": "EUR",
    "£": "GBP",
    "₪": "ILS",
    "¥": "JPY",
}

# (selector, attribute) pairs for price, currency, title and image in page head
OPEN_GRAPH_PRICE_SELECTORS = [
    ("meta[property='product:price:amount']", "content"),
    ("meta[property='og:price:amount']", "content"),
]
OPEN_GRAPH_CURRENCY_SELECTORS = [
    ("meta[property='product:price:currency']", "content"),
    ("meta[property='og:price:currency']", "content"),
]
MICRODATA_PRICE_SELECTORS = [
    ("[itemprop='price']", "content"),
    ("[itemprop='price']", "text"),
]
MICRODATA_CURRENCY_SELECTORS = [
    ("[itemprop='priceCurrency']", "content"),
    ("[itemprop='priceCurrency']", "text"),
]
META_TITLE_SELECTORS = [
    ("meta[property='og:title']", "content"),
    ("[itemprop='name']", "content"),
    ("[itemprop='name']", "text"),
    ("h1", "text"),
]
META_IMAGE_SELECTORS = [
    ("meta[property='og:image']", "content"),
    ("meta[property='og:image:url']", "content"),
    ("[itemprop='image']", "content"),
    ("[itemprop='image']", "src"),
]


def make_soup(html: bytes | str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def clean_price(raw: object) -> Decimal | None:
    """Parse a price string such as ``"1,299.00"``, ``"29,99 €"`` or ``42``.

    Args:
        raw: Raw price value from markup or JSON.

    Returns:
        Non-negative Decimal, or None if no number could be read.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float, Decimal)):
        value = Decimal(str(raw))
        return value if value.is_finite() and value >= 0 else None

    match = PRICE_NUMBER_RE.search(str(raw).replace("\xa0", " "))
    if not match:
        return None
    number = match.group(0).replace(" ", "")

    if "," in number and "." in number:
        # The right-most separator is the decimal point
        if number.rfind(",") > number.rfind("."):
            number = number.replace(".", "").replace(",", ".")
        else:
            number = number.replace(",", "")
    elif "," in number:
        head, _, tail = number.rpartition(",")
        number = f"{head.replace(',', '')}.{tail}" if len(tail) <= 2 else number.replace(",", "")
    elif number.count(".") > 1 or (number.count(".") == 1 and len(number.rpartition(".")[2]) == 3):
        # Dots as thousands separators: 1.299 or 1.299.000
        number = number.replace(".", "")

    try:
        return Decimal(number)
    except InvalidOperation:
        return None


def normalize_currency(raw: object) -> str | None:
    """Map an ISO code or currency symbol to a known ISO code."""
    if not raw:
        return None
    text = str(raw).strip()
    code = text.upper()
    if code in KNOWN_CURRENCIES:
        return code
    for symbol, symbol_code in CURRENCY_SYMBOLS.items():
        if symbol in text:
            return symbol_code
    return None


def select_value(soup: BeautifulSoup, selectors: list[tuple[str, str]]) -> str | None:
    """Return the first non-empty value matched by ``(css, attr)`` selectors."""
    for css, attr in selectors:
        tag = soup.select_one(css)
        if tag is None:
            continue
        raw = tag.get_text(strip=True) if attr == "text" else tag.get(attr)
        if isinstance(raw, list):
            raw = " ".join(raw)
        if raw and str(raw).strip():
            return str(raw).strip()
    return None


def extract_json_ld(soup: BeautifulSoup) -> list[dict[str, Any]]:
    """Collect every JSON-LD object on the page, skipping malformed blocks."""
    objects: list[dict[str, Any]] = []
    for script in soup.find_all("script", type="application/ld+json"):
        text = script.string or script.get_text()
        if not text or not text.strip():
            continue
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            continue

        items = data if isinstance(data, list) else [data]
        for item in items:
            if not isinstance(item, dict):
                continue
            objects.append(item)
            graph = item.get("@graph")
            if isinstance(graph, list):
                objects.extend(node for node in graph if isinstance(node, dict))
    return objects


def _is_product(node: dict[str, Any]) -> bool:
    node_type = node.get("@type")
    if isinstance(node_type, list):
        return "Product" in node_type
    return node_type == "Product"


def find_json_ld_product(soup: BeautifulSoup) -> dict[str, Any] | None:
    """First JSON-LD node typed ``Product``, including ``@graph`` members."""
    for node in extract_json_ld(soup):
        if _is_product(node):
            return node
    return None


def _first_offer(offers: object) -> dict[str, Any] | None:
    if isinstance(offers, dict):
        if offers.get("@type") == "AggregateOffer" and "price" not in offers:
            return {"price": offers.get("lowPrice"), "priceCurrency": offers.get("priceCurrency")}
        return offers
    if isinstance(offers, list):
        for offer in offers:
            if isinstance(offer, dict) and offer.get("price") is not None:
                return offer
    return None


def _image_from_json_ld(image: object) -> str | None:
    if isinstance(image, str):
        return image
    if isinstance(image, list):
        for item in image:
            found = _image_from_json_ld(item)
            if found:
                return found
    if isinstance(image, dict):
        url = image.get("url") or image.get("contentUrl")
        return url if isinstance(url, str) else None
    return None


def fields_from_json_ld(product: dict[str, Any]) -> ExtractedFields | None:
    """Build extracted fields from a JSON-LD Product node.

    Returns:
        ExtractedFields, or None when name, price or a known currency is missing.
    """
    name = product.get("name")
    offer = _first_offer(product.get("offers"))
    if not isinstance(name, str) or not name.strip() or offer is None:
        return None

    price = clean_price(offer.get("price"))
    currency = normalize_currency(offer.get("priceCurrency"))
    if price is None or currency is None:
        return None

    return ExtractedFields(
        name=name.strip(),
        price=price,
        currency=currency,
        image_url=_image_from_json_ld(product.get("image")),
    )


def fields_from_meta(soup: BeautifulSoup) -> ExtractedFields | None:
    """Build extracted fields from Open Graph tags, then microdata."""
    name = select_value(soup, META_TITLE_SELECTORS)
    if not name:
        return None

    for price_selectors, currency_selectors in (
        (OPEN_GRAPH_PRICE_SELECTORS, OPEN_GRAPH_CURRENCY_SELECTORS),
        (MICRODATA_PRICE_SELECTORS, MICRODATA_CURRENCY_SELECTORS),
    ):
        raw_price = select_value(soup, price_selectors)
        if raw_price is None:
            continue
        price = clean_price(raw_price)
        currency = normalize_currency(select_value(soup, currency_selectors)) or normalize_currency(
            raw_price
        )
        if price is not None and currency is not None:
            return ExtractedFields(
                name=name,
                price=price,
                currency=currency,
                image_url=select_value(soup, META_IMAGE_SELECTORS),
            )
    return None


class ExtractorProtocol(Protocol):
    """Protocol defining the interface for all product extractors.

    Extractors are pure: they receive an already fetched page and never touch
    the network.

    Methods:
        extract: Read product fields from a page.
        get_store_id: Get store identifier.
    """

    def extract(self, html: bytes | str) -> ExtractedFields | None:
        """Extract product fields from a product page.

        Args:
            html: Raw page markup.

        Returns:
            ExtractedFields if the page describes a product, None otherwise.
        """
        ...

    def get_store_id(self) -> str:
        """Get the store identifier (e.g., 'zara_global')."""
        ...


class BaseExtractor:
    """Base class providing common functionality for all extractors.

    Subclasses list store-specific ``(css, attr)`` selectors; the default
    ``extract`` tries those first and falls back to JSON-LD and then Open
    Graph / microdata metadata.

    Attributes:
        TITLE_SELECTORS: Store-specific title selectors.
        PRICE_SELECTORS: Store-specific price selectors.
        CURRENCY_SELECTORS: Store-specific currency selectors.
        IMAGE_SELECTORS: Store-specific image selectors.
        DEFAULT_CURRENCY: Currency assumed when a store price has no currency.
    """

    TITLE_SELECTORS: list[tuple[str, str]] = []
    PRICE_SELECTORS: list[tuple[str, str]] = []
    CURRENCY_SELECTORS: list[tuple[str, str]] = []
    IMAGE_SELECTORS: list[tuple[str, str]] = []
    DEFAULT_CURRENCY: str | None = None

    def __init__(self, store_id: str):
        """Initialize base extractor.

        Args:
            store_id: Store identifier from the store table.
        """
        self.store_id = store_id
        self.logger = logging.getLogger(f"{__name__}.{store_id}")

    def get_store_id(self) -> str:
        """Get the store identifier."""
        return self.store_id

    def extract(self, html: bytes | str) -> ExtractedFields | None:
        soup = make_soup(html)

        fields = self._extract_store_markup(soup)
        if fields is None:
            product = find_json_ld_product(soup)
            if product is not None:
                fields = fields_from_json_ld(product)
        if fields is None:
            fields = fields_from_meta(soup)

        if fields is None:
            self.logger.info(f"No product markup found for {self.store_id}")
        else:
            self.logger.info(f"Extracted from {self.store_id}: {fields.name} {fields.price} {fields.currency}")
        return fields

    def _extract_store_markup(self, soup: BeautifulSoup) -> ExtractedFields | None:
        """Read fields using the store's own selectors."""
        if not self.PRICE_SELECTORS:
            return None

        name = select_value(soup, self.TITLE_SELECTORS) if self.TITLE_SELECTORS else None
        raw_price = select_value(soup, self.PRICE_SELECTORS)
        if not name or raw_price is None:
            return None

        price = clean_price(raw_price)
        currency = (
            normalize_currency(select_value(soup, self.CURRENCY_SELECTORS))
            if self.CURRENCY_SELECTORS
            else None
        )
        currency = currency or normalize_currency(raw_price) or self.DEFAULT_CURRENCY
        if price is None or currency is None:
            return None

        image = select_value(soup, self.IMAGE_SELECTORS) if self.IMAGE_SELECTORS else None
        return ExtractedFields(
            name=name,
            price=price,
            currency=currency,
            image_url=image or select_value(soup, META_IMAGE_SELECTORS),
        )


class ExtractorRegistry:
    """Registry for managing store extractors.

    Provides centralized lookup of extractors by store id.
    """

    def __init__(self) -> None:
        """Initialize empty extractor registry."""
        self._extractors: dict[str, ExtractorProtocol] = {}
        self.logger = logging.getLogger(f"{__name__}.registry")

    def register(self, extractor: ExtractorProtocol) -> None:
        """Register a new extractor.

        Args:
            extractor: Extractor instance implementing ExtractorProtocol.
        """
        store_id = extractor.get_store_id()
        self._extractors[store_id] = extractor
        self.logger.debug(f"Registered extractor for store: {store_id}")

    def get(self, store_id: str) -> ExtractorProtocol | None:
        """Get extractor by store id.

        Args:
            store_id: Store identifier (e.g., 'asos_uk').

        Returns:
            Extractor instance if found, None otherwise.
        """
        return self._extractors.get(store_id)

    def get_all_store_ids(self) -> list[str]:
        return list(self._extractors.keys())

    def __len__(self) -> int:
        return len(self._extractors)
