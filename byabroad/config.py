"""Configuration management for the landed-cost engine.

Handles all application configuration including environment variables, YAML
tables, and default settings. Provides structured configuration classes for
the different parts of the engine (duties, currency, search, HTTP) plus the
forwarder and store tables that seed the registries at startup.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CostConfig(BaseSettings):
    """Destination-country import cost parameters.

    Attributes:
        destination_currency: Currency all landed costs are expressed in.
        vat_rate: Destination VAT applied to (price + import duty).
        de_minimis_threshold: Value at or below which no duty is charged.
        default_duty_rate: Duty rate for categories without an explicit rate.
        category_duty_rates: Per-category duty rates keyed by category name.
        customs_handling_fee: Flat customs handling fee per shipment.
        default_weight_kg: Weight assumed when nothing better is known.
    """

    model_config = SettingsConfigDict(populate_by_name=True)

    destination_currency: str = Field(default="ILS", validation_alias="DESTINATION_CURRENCY")
    vat_rate: float = 0.17
    de_minimis_threshold: float = 75.0
    default_duty_rate: float = 0.12
    category_duty_rates: dict[str, float] = Field(
        default_factory=lambda: {
            "Electronics": 0.12,
            "Clothing": 0.12,
            "Home": 0.12,
            "Beauty": 0.12,
            "Sports": 0.12,
            "Books": 0.0,
            "Other": 0.12,
        }
    )
    customs_handling_fee: float = 50.0
    default_weight_kg: float = 1.0


class CurrencyConfig(BaseSettings):
    """Exchange rate source settings.

    Attributes:
        api_url: Base URL; the source currency code is appended as a path segment.
        cache_ttl_seconds: Lifetime of cached rates, None keeps them for the
            whole process.
        timeout: Request timeout in seconds.
    """

    model_config = SettingsConfigDict(populate_by_name=True)

    api_url: str = Field(
        default="https://api.exchangerate-api.com/v4/latest",
        validation_alias="EXCHANGE_RATE_API_URL",
    )
    cache_ttl_seconds: float | None = Field(default=None, validation_alias="CURRENCY_CACHE_TTL_SECONDS")
    timeout: int = 10


class SearchConfig(BaseSettings):
    """Multi-engine product search settings.

    Attributes:
        api_key: SearchAPI key from environment.
        base_url: SearchAPI endpoint.
        default_engine: Engine used when the caller does not pick one.
        location: Location parameter sent with every search.
        language: Interface language (``hl``).
        country: Country code (``gl``).
        max_organic_results: Organic results kept when no shopping results exist.
        history_size: Number of distinct recent queries remembered.
        debounce_seconds: Quiet period before a keystroke-driven search is sent.
    """

    model_config = SettingsConfigDict(populate_by_name=True)

    api_key: str = Field(default="", validation_alias="SEARCHAPI_API_KEY")
    base_url: str = "https://www.searchapi.io/api/v1/search"
    default_engine: str = "google_shopping"
    location: str = "Israel"
    language: str = "en"
    country: str = "il"
    max_organic_results: int = 5
    history_size: int = 10
    debounce_seconds: float = 0.3

    @property
    def is_configured(self) -> bool:
        """Check if an API key is available.

        Returns:
            True if the key is set, False otherwise.
        """
        return bool(self.api_key)


class HttpConfig(BaseSettings):
    """HTTP transport settings.

    Attributes:
        timeout: Total request timeout in seconds.
        user_agent: User-Agent header sent with page fetches.
        log_level: Root log level for the command line entry point.
    """

    model_config = SettingsConfigDict(populate_by_name=True)

    timeout: int = Field(default=30, validation_alias="HTTP_TIMEOUT")
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")


DEFAULT_FORWARDERS: list[dict[str, Any]] = [
    {
        "id": "ushops",
        "name": "ushops",
        "display_name": "UShops",
        "website_url": "https://ushops.co.il",
        "calculator_url": "https://ushops.co.il/calculator",
        "base_rate": 45.0,
        "per_kg_rate": 25.0,
        "processing_fee": 15.0,
        "estimated_days": 5,
    },
    {
        "id": "dealtas",
        "name": "dealtas",
        "display_name": "DealTas",
        "website_url": "https://dealtas.com",
        "calculator_url": "https://dealtas.com/shipping-calculator",
        "base_rate": 50.0,
        "per_kg_rate": 28.0,
        "processing_fee": 20.0,
        "estimated_days": 7,
    },
    {
        "id": "shipito",
        "name": "shipito",
        "display_name": "Shipito",
        "website_url": "https://shipito.com",
        "base_rate": 55.0,
        "per_kg_rate": 30.0,
        "processing_fee": 10.0,
        "estimated_days": 6,
        "accepts_returns": True,
    },
]

DEFAULT_STORES: list[dict[str, Any]] = [
    {
        "id": "amazon_us",
        "display_name": "Amazon",
        "domains": ["amazon.com", "amazon.co.uk", "amazon.de", "amazon.fr"],
        "country_code": "US",
        "currency": "USD",
        "sales_tax_rate": 0.08,
        "supported_categories": ["Electronics", "Home", "Books", "Sports", "Beauty"],
    },
    {
        "id": "ebay_global",
        "display_name": "eBay",
        "domains": ["ebay.com", "ebay.co.uk"],
        "country_code": "US",
        "currency": "USD",
        "sales_tax_rate": 0.08,
        "supported_categories": ["Electronics", "Clothing", "Home", "Sports"],
    },
    {
        "id": "bestbuy_us",
        "display_name": "Best Buy",
        "domains": ["bestbuy.com"],
        "country_code": "US",
        "currency": "USD",
        "sales_tax_rate": 0.08,
        "supported_categories": ["Electronics"],
    },
    {
        "id": "zara_global",
        "display_name": "Zara",
        "domains": ["zara.com"],
        "country_code": "ES",
        "currency": "EUR",
        "has_structured_extractor": True,
        "sales_tax_rate": 0.21,
        "estimated_weight_kg": 0.5,
        "default_category": "Clothing",
        "supported_categories": ["Clothing"],
    },
    {
        "id": "asos_uk",
        "display_name": "ASOS",
        "domains": ["asos.com"],
        "country_code": "UK",
        "currency": "GBP",
        "has_structured_extractor": True,
        "sales_tax_rate": 0.20,
        "estimated_weight_kg": 0.4,
        "default_category": "Clothing",
        "supported_categories": ["Clothing", "Beauty"],
    },
    {
        "id": "hm_global",
        "display_name": "H&M",
        "domains": ["hm.com"],
        "country_code": "SE",
        "currency": "EUR",
        "has_structured_extractor": True,
        "sales_tax_rate": 0.25,
        "estimated_weight_kg": 0.4,
        "default_category": "Clothing",
        "supported_categories": ["Clothing"],
    },
    {
        "id": "nike_global",
        "display_name": "Nike",
        "domains": ["nike.com"],
        "country_code": "US",
        "currency": "USD",
        "has_structured_extractor": True,
        "sales_tax_rate": 0.08,
        "estimated_weight_kg": 1.2,
        "default_category": "Sports",
        "supported_categories": ["Sports", "Clothing"],
    },
    {
        "id": "adidas_global",
        "display_name": "Adidas",
        "domains": ["adidas.com"],
        "country_code": "DE",
        "currency": "EUR",
        "has_structured_extractor": True,
        "sales_tax_rate": 0.19,
        "estimated_weight_kg": 1.2,
        "default_category": "Sports",
        "supported_categories": ["Sports", "Clothing"],
    },
]


class Config:
    """Application configuration manager.

    Centralizes loading and management of all configuration sources including
    environment variables, YAML files, and default values. Provides typed
    access to configuration sections for the different engine components.
    """

    def __init__(self, config_dir: Path | None = None):
        """Initialize configuration manager.

        Args:
            config_dir: Path to configuration directory, defaults to byabroad/config.
        """
        if config_dir is None:
            config_dir = Path(__file__).parent / "config"

        self.config_dir = Path(config_dir)

        self.currency = CurrencyConfig()
        self.search = SearchConfig()
        self.http = HttpConfig()

        # Load duty configuration
        duties_path = self.config_dir / "duties.yml"
        if duties_path.exists():
            duties_data = self._read_yaml(duties_path)
            defaults = CostConfig()
            categories = dict(defaults.category_duty_rates)
            categories.update(duties_data.get("categories", {}) or {})
            self.cost = CostConfig(
                destination_currency=duties_data.get(
                    "destination_currency", defaults.destination_currency
                ),
                vat_rate=duties_data.get("vat_rate", defaults.vat_rate),
                de_minimis_threshold=duties_data.get(
                    "de_minimis_threshold", defaults.de_minimis_threshold
                ),
                default_duty_rate=duties_data.get("default_duty_rate", defaults.default_duty_rate),
                category_duty_rates=categories,
                customs_handling_fee=duties_data.get(
                    "customs_handling_fee", defaults.customs_handling_fee
                ),
                default_weight_kg=duties_data.get("default_weight_kg", defaults.default_weight_kg),
            )
        else:
            # Use defaults if config file not found
            self.cost = CostConfig()

        self.forwarders = self._load_table("forwarders.yml", "forwarders", DEFAULT_FORWARDERS)
        self.stores = self._load_table("stores.yml", "stores", DEFAULT_STORES)

    def _load_table(
        self, filename: str, key: str, default: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """Load a list of records from a YAML file.

        Args:
            filename: File name inside the config directory.
            key: Top-level key holding the list.
            default: Records used when the file or key is missing.

        Returns:
            List of record dictionaries.
        """
        path = self.config_dir / filename
        if not path.exists():
            return [dict(item) for item in default]

        records = self._read_yaml(path).get(key)
        if not records:
            return [dict(item) for item in default]
        return list(records)

    @staticmethod
    def _read_yaml(path: Path) -> dict[str, Any]:
        with open(path) as f:
            data = yaml.safe_load(f)
        return data or {}
