"""Data models for the landed-cost engine.

Defines Pydantic models for all data structures used throughout the engine
including canonical products, shipping forwarder profiles, cost calculations,
store identities, URL parsing results, and external search API responses.
All money amounts are Decimals.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

# ISO 4217 codes accepted on canonical products
KNOWN_CURRENCIES = frozenset(
    {
        "AED", "ARS", "AUD", "BGN", "BRL", "CAD", "CHF", "CLP", "CNY", "COP",
        "CZK", "DKK", "EGP", "EUR", "GBP", "HKD", "HUF", "IDR", "ILS", "INR",
        "ISK", "JOD", "JPY", "KRW", "MXN", "MYR", "NOK", "NZD", "PHP", "PLN",
        "RON", "RUB", "SAR", "SEK", "SGD", "THB", "TRY", "TWD", "UAH", "USD",
        "ZAR",
    }
)


class ProductCategory(str, Enum):
    """Product classes used for duty lookup and search categorization."""

    ELECTRONICS = "Electronics"
    CLOTHING = "Clothing"
    HOME = "Home"
    BEAUTY = "Beauty"
    SPORTS = "Sports"
    BOOKS = "Books"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: "str | ProductCategory | None") -> "ProductCategory":
        """Map a free-form category name onto a known category, Other if unknown."""
        if isinstance(value, ProductCategory):
            return value
        normalized = (value or "").strip().lower()
        for category in cls:
            if category.value.lower() == normalized:
                return category
        return cls.OTHER


def _new_id() -> str:
    return str(uuid.uuid4())


def _exact_decimal(value: object) -> object:
    """Convert floats through their repr so 0.21 becomes Decimal("0.21")."""
    if isinstance(value, float):
        return Decimal(repr(value))
    return value


ExactDecimal = Annotated[Decimal, BeforeValidator(_exact_decimal)]


def plain_number(value: Decimal) -> str:
    """Render a Decimal without trailing zeros or exponent, e.g. ``17.00`` as ``17``."""
    return f"{value.normalize():f}"


class Product(BaseModel):
    """Canonical product record, independent of where it was found.

    Attributes:
        id: Opaque identifier.
        name: Product title.
        price: Listed price in ``currency``; 0 means not known yet.
        currency: ISO 4217 code of the listed price.
        product_url: Page the product was found on.
        store_name: Human readable store name.
        store_id: Store identifier (``manual_entry`` for manual products).
        category: Category used for duty lookup.
        is_available: Whether the store shows the item as purchasable.
        image_url: Primary product image.
        origin_tax: Sales tax charged by the store, in ``currency``.
        weight_kg: Shipping weight if known.
        dimensions: Free-form package dimensions.
        last_updated: When the record was produced.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    name: str
    price: ExactDecimal = Field(ge=0)
    currency: str
    product_url: str = ""
    store_name: str = "Unknown Store"
    store_id: str = "unknown"
    category: ProductCategory = ProductCategory.OTHER
    is_available: bool = True
    image_url: str | None = None
    origin_tax: ExactDecimal | None = Field(default=None, ge=0)
    weight_kg: ExactDecimal | None = Field(default=None, gt=0)
    dimensions: str | None = None
    last_updated: datetime = Field(default_factory=datetime.now)

    @field_validator("currency")
    @classmethod
    def _check_currency(cls, value: str) -> str:
        code = value.strip().upper()
        if code not in KNOWN_CURRENCIES:
            raise ValueError(f"Unrecognized currency code: {value!r}")
        return code

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: object) -> ProductCategory:
        return ProductCategory.parse(value if isinstance(value, (str, ProductCategory)) else None)


class ShippingProviderProfile(BaseModel):
    """Package forwarder with its own rate schedule.

    Attributes:
        id: Registry key.
        name: Short machine name.
        display_name: Name shown to users.
        website_url: Forwarder website.
        calculator_url: Forwarder's own shipping calculator, if any.
        country_code: Where the forwarder's warehouse is.
        base_rate: Flat shipping charge in destination currency.
        per_kg_rate: Charge per kilogram in destination currency.
        processing_fee: Fixed processing fee per shipment.
        insurance_rate: Fraction of declared value charged for insurance.
        estimated_days: Typical transit time.
        has_consolidation: Can combine packages.
        has_insurance: Whether insurance is included in quotes.
        has_tracking: Offers tracking.
        accepts_returns: Handles returns.
        us_address: Warehouse address customers ship their orders to.
        phone_number: Support phone.
        email_support: Support email.
        is_active: Included in comparisons.
    """

    id: str
    name: str = ""
    display_name: str
    website_url: str = ""
    calculator_url: str | None = None
    country_code: str = "US"
    base_rate: ExactDecimal = Field(ge=0)
    per_kg_rate: ExactDecimal = Field(ge=0)
    processing_fee: ExactDecimal = Field(default=Decimal("0"), ge=0)
    insurance_rate: ExactDecimal = Field(default=Decimal("0.02"), ge=0)
    estimated_days: int = Field(default=7, ge=0)
    has_consolidation: bool = True
    has_insurance: bool = True
    has_tracking: bool = True
    accepts_returns: bool = False
    us_address: str | None = None
    phone_number: str | None = None
    email_support: str | None = None
    is_active: bool = True

    def shipping_address(self, customer_id: str) -> str:
        """Address block a customer enters at the store checkout."""
        if not self.us_address:
            return "Address not available"
        return (
            f"{customer_id} - Your Name\n"
            f"{self.us_address}\n"
            "\n"
            f"Phone: {self.phone_number or 'N/A'}\n"
            f"Email: {self.email_support or 'N/A'}"
        )


class ShippingQuote(BaseModel):
    """Shipping charge for one forwarder, weight and declared value.

    Attributes:
        weight_kg: Weight the quote was computed for.
        transport_cost: Base rate plus per-kilogram charge.
        processing_fee: Forwarder processing fee.
        insurance_cost: Insurance on the declared value, 0 without insurance.
        total: Sum of the three charges.
        description: Explanation of how the cost was determined.
    """

    weight_kg: Decimal
    transport_cost: Decimal
    processing_fee: Decimal
    insurance_cost: Decimal = Decimal("0")
    total: Decimal
    description: str = ""


class CostCalculation(BaseModel):
    """Landed cost of one product shipped through one forwarder.

    Every derived amount is recomputed from the stored inputs by
    ``recalculate``; the stored total always equals
    price_in_destination + shipping_cost + processing_fee + import_duty
    + vat + customs_handling_fee.

    Attributes:
        product_id: Source product id.
        product_name: Source product name.
        product_url: Source product URL.
        category: Category the duty rate was taken from.
        original_price: Listed price in the original currency.
        original_currency: Currency of the listed price.
        origin_tax: Store sales tax in the original currency.
        exchange_rate: Original to destination currency rate.
        exchange_rate_date: When the rate was applied.
        destination_currency: Currency of all derived amounts.
        price_in_destination: (original_price + origin_tax) * exchange_rate.
        provider_id: Forwarder id.
        provider_name: Forwarder display name.
        weight_kg: Weight used for the shipping quote.
        transport_cost: Forwarder base + per-kg charge.
        insurance_rate: Effective insurance fraction, 0 if not insured.
        shipping_cost: transport_cost + insurance on price_in_destination.
        processing_fee: Forwarder processing fee.
        duty_rate: Duty rate applied for ``category``.
        de_minimis_threshold: Value at or below which duty is waived.
        vat_rate: Destination VAT rate.
        import_duty: Duty on price_in_destination.
        vat: VAT on price_in_destination + import_duty.
        customs_handling_fee: Flat customs handling charge.
        total_cost: Landed cost in destination currency.
        total_cost_reference: Landed cost converted back with the same rate.
        calculation_date: When the calculation was produced.
        is_active: Whether the calculation is still relevant to the caller.
    """

    id: str = Field(default_factory=_new_id)
    product_id: str
    product_name: str
    product_url: str = ""
    category: ProductCategory = ProductCategory.OTHER

    original_price: Decimal
    original_currency: str
    origin_tax: Decimal = Decimal("0")

    exchange_rate: Decimal = Field(gt=0)
    exchange_rate_date: datetime = Field(default_factory=datetime.now)
    destination_currency: str = "ILS"
    price_in_destination: Decimal = Decimal("0")

    provider_id: str
    provider_name: str
    weight_kg: Decimal = Decimal("1.0")
    transport_cost: Decimal = Decimal("0")
    insurance_rate: ExactDecimal = Decimal("0")
    shipping_cost: Decimal = Decimal("0")
    processing_fee: ExactDecimal = Decimal("0")

    duty_rate: Decimal = Decimal("0.12")
    de_minimis_threshold: Decimal = Decimal("75")
    vat_rate: Decimal = Decimal("0.17")
    import_duty: Decimal = Decimal("0")
    vat: Decimal = Decimal("0")
    customs_handling_fee: Decimal = Decimal("50")

    total_cost: Decimal = Decimal("0")
    total_cost_reference: Decimal = Decimal("0")

    calculation_date: datetime = Field(default_factory=datetime.now)
    is_active: bool = True

    @property
    def reference_currency(self) -> str:
        """Currency of ``total_cost_reference`` (the original currency)."""
        return self.original_currency

    def recalculate(self) -> None:
        """Re-derive every dependent amount from the stored inputs."""
        from .services.customs import compute_import_duty, compute_vat

        self.price_in_destination = (self.original_price + self.origin_tax) * self.exchange_rate
        self.shipping_cost = self.transport_cost + self.price_in_destination * self.insurance_rate
        self.import_duty = compute_import_duty(
            self.price_in_destination, self.duty_rate, self.de_minimis_threshold
        )
        self.vat = compute_vat(self.price_in_destination + self.import_duty, self.vat_rate)
        self.total_cost = (
            self.price_in_destination
            + self.shipping_cost
            + self.processing_fee
            + self.import_duty
            + self.vat
            + self.customs_handling_fee
        )
        self.total_cost_reference = self.total_cost / self.exchange_rate

    def update_exchange_rate(self, new_rate: Decimal | float | str) -> None:
        """Apply a new exchange rate and re-derive all amounts.

        Args:
            new_rate: Original to destination currency rate, must be positive.

        Raises:
            ValueError: If the rate is not positive.
        """
        rate = Decimal(str(new_rate))
        if rate <= 0:
            raise ValueError(f"Exchange rate must be positive, got {new_rate}")
        self.exchange_rate = rate
        self.exchange_rate_date = datetime.now()
        self.recalculate()

    def potential_savings(self, local_price: Decimal) -> Decimal:
        """Savings compared to buying locally, never negative."""
        return max(Decimal("0"), local_price - self.total_cost)

    def breakdown(self) -> list[tuple[str, Decimal, str]]:
        """Line items for display as (label, amount, currency)."""
        dest = self.destination_currency
        return [
            ("Product Price", self.original_price, self.original_currency),
            ("Origin Tax", self.origin_tax, self.original_currency),
            (f"Price in {dest}", self.price_in_destination, dest),
            (f"Shipping ({self.provider_name})", self.shipping_cost, dest),
            ("Processing Fee", self.processing_fee, dest),
            ("Import Duty", self.import_duty, dest),
            (f"VAT ({plain_number(self.vat_rate * 100)}%)", self.vat, dest),
            ("Customs Handling", self.customs_handling_fee, dest),
            ("Total Cost", self.total_cost, dest),
        ]


class CurrencyRate(BaseModel):
    """Exchange rate data from external API.

    Attributes:
        from_currency: Source currency code (e.g., 'USD').
        to_currency: Target currency code (e.g., 'ILS').
        rate: Exchange rate multiplier.
        source: Where the rate came from ('api' or 'cache').
        fetched_at: When rate was retrieved.
    """

    from_currency: str
    to_currency: str
    rate: Decimal
    source: str
    fetched_at: datetime = Field(default_factory=datetime.now)


class StoreProfile(BaseModel):
    """Known storefront and the heuristics applied to its products.

    Attributes:
        id: Store identifier.
        display_name: Store name shown to users.
        domains: Registrable domains that belong to the store.
        country_code: Store country.
        currency: Usual listing currency.
        has_structured_extractor: Whether a store-specific extractor exists.
        sales_tax_rate: Origin tax estimate applied as price * rate.
        estimated_weight_kg: Typical item weight when the store sells one class.
        default_category: Category assigned to every extracted product.
        supported_categories: Categories the store sells.
    """

    id: str
    display_name: str
    domains: list[str] = Field(default_factory=list)
    country_code: str = "US"
    currency: str = "USD"
    has_structured_extractor: bool = False
    sales_tax_rate: ExactDecimal = Field(default=Decimal("0"), ge=0)
    estimated_weight_kg: ExactDecimal | None = None
    default_category: ProductCategory | None = None
    supported_categories: list[str] = Field(default_factory=list)


class StoreIdentity(BaseModel):
    """Classification of a URL's domain.

    Attributes:
        id: Store id, ``unknown`` for unregistered domains.
        display_name: Store name, or the domain itself when unknown.
        domain: Registrable domain the URL resolved to.
        has_structured_extractor: A store-specific extractor exists.
        is_known_unsupported: Store is registered but has no extractor yet.
        is_unknown: Domain is not in the registry at all.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    domain: str
    has_structured_extractor: bool = False
    is_known_unsupported: bool = False
    is_unknown: bool = False


class ExtractedFields(BaseModel):
    """Product fields recovered from a page by an extractor."""

    name: str
    price: ExactDecimal = Field(ge=0)
    currency: str
    image_url: str | None = None


class ParsingError(str, Enum):
    """Reasons a URL could not be turned into a product."""

    INVALID_URL = "invalid_url"
    UNSUPPORTED_STORE = "unsupported_store"
    SCRAPING_FAILED = "scraping_failed"
    PRODUCT_NOT_FOUND = "product_not_found"
    NETWORK_ERROR = "network_error"
    PRICE_NOT_FOUND = "price_not_found"

    @property
    def description(self) -> str:
        return _PARSING_ERROR_DESCRIPTIONS[self]


_PARSING_ERROR_DESCRIPTIONS = {
    ParsingError.INVALID_URL: "Invalid URL format",
    ParsingError.UNSUPPORTED_STORE: "Store not supported yet",
    ParsingError.SCRAPING_FAILED: "Couldn't read product information",
    ParsingError.PRODUCT_NOT_FOUND: "Product not found on the page",
    ParsingError.NETWORK_ERROR: "Network connection error",
    ParsingError.PRICE_NOT_FOUND: "Price information not available",
}


class ExtractionStatus(str, Enum):
    """Terminal states of the URL extraction pipeline."""

    EXTRACTED = "extracted"
    GENERIC_EXTRACTION_FAILED = "generic_extraction_failed"
    SCRAPING_UNAVAILABLE = "scraping_unavailable"
    EXTRACTION_FAILED = "extraction_failed"
    INVALID_URL = "invalid_url"


class URLParsingResult(BaseModel):
    """Outcome of turning a product URL into a canonical product.

    Attributes:
        status: Terminal pipeline state.
        store: Store classification, None for unparseable URLs.
        product: Extracted product, None on any failure.
        error: Failure reason, None on success.
        requires_manual_entry: Caller should ask the user for product details.
        transient: The failure was a retryable network error.
    """

    status: ExtractionStatus
    store: StoreIdentity | None = None
    product: Product | None = None
    error: ParsingError | None = None
    requires_manual_entry: bool = False
    transient: bool = False

    @property
    def is_supported(self) -> bool:
        """Whether the store is in the registry."""
        return self.store is not None and not self.store.is_unknown

    @property
    def store_name(self) -> str:
        return self.store.display_name if self.store else "Unknown"


class SearchMetadata(BaseModel):
    id: str | None = None
    status: str | None = None
    request_time_taken: float | None = None


class SearchParameters(BaseModel):
    engine: str | None = None
    q: str | None = None
    location: str | None = None
    hl: str | None = None
    gl: str | None = None


class ShoppingResult(BaseModel):
    """One entry of a search engine's shopping result list."""

    model_config = ConfigDict(populate_by_name=True)

    position: int | None = None
    title: str
    link: str | None = None
    product_link: str | None = None
    product_id: str | None = None
    source: str | None = None
    price: str | None = None
    extracted_price: ExactDecimal | None = None
    rating: float | None = None
    rating_count: int | None = None
    delivery: str | None = None
    thumbnail: str | None = None


class OrganicResult(BaseModel):
    """One entry of a search engine's organic web results."""

    position: int | None = None
    title: str
    link: str
    snippet: str | None = None
    displayed_link: str | None = None


class SearchAPIResponse(BaseModel):
    """Multi-engine search response; every section is optional."""

    search_metadata: SearchMetadata | None = None
    search_parameters: SearchParameters | None = None
    shopping_results: list[ShoppingResult] | None = None
    organic_results: list[OrganicResult] | None = None
