"""Dependency-injection container.

This module defines a dependency-injection (DI) container that wires together
the engine's components. Every service is constructed here from the loaded
``Config``; nothing in the package keeps a module-level service instance.
"""

from dependency_injector import containers, providers

from byabroad.config import Config
from byabroad.scrapers import create_extractor_registry
from byabroad.scrapers.generic import GenericExtractor
from byabroad.scrapers.pipeline import ProductExtractionPipeline
from byabroad.scrapers.stores import StoreResolver
from byabroad.services.analytics import DomainRequestTracker
from byabroad.services.comparison import ForwarderComparisonEngine
from byabroad.services.currency import ExchangeRateService
from byabroad.services.customs import DutyRuleTable
from byabroad.services.http import HttpFetcher
from byabroad.services.landed_cost import LandedCostCalculator
from byabroad.services.search import (
    DebouncedSearch,
    ProductSearchService,
    SearchAPIClient,
    SearchResultNormalizer,
)
from byabroad.services.shipping import ForwarderRegistry, ShippingQuoteCalculator


class Container(containers.DeclarativeContainer):
    """DI container for the engine.

    Override ``app_config`` (or ``fetcher``) to run against other settings
    or a fake transport.
    """

    app_config = providers.Singleton(Config)

    # Transport
    fetcher = providers.Singleton(HttpFetcher, config=app_config.provided.http)

    # Cost engine
    currency_service = providers.Singleton(
        ExchangeRateService, fetcher=fetcher, config=app_config.provided.currency
    )
    duty_rules = providers.Singleton(DutyRuleTable, config=app_config.provided.cost)
    shipping_calculator = providers.Singleton(ShippingQuoteCalculator)
    forwarder_registry = providers.Singleton(ForwarderRegistry, records=app_config.provided.forwarders)
    landed_cost_calculator = providers.Singleton(
        LandedCostCalculator,
        currency_service=currency_service,
        duty_rules=duty_rules,
        shipping_calculator=shipping_calculator,
        config=app_config.provided.cost,
    )
    comparison_engine = providers.Singleton(
        ForwarderComparisonEngine, calculator=landed_cost_calculator, registry=forwarder_registry
    )

    # Product extraction
    store_resolver = providers.Singleton(StoreResolver, records=app_config.provided.stores)
    extractor_registry = providers.Singleton(create_extractor_registry)
    generic_extractor = providers.Singleton(GenericExtractor)
    domain_tracker = providers.Singleton(DomainRequestTracker)
    extraction_pipeline = providers.Singleton(
        ProductExtractionPipeline,
        fetcher=fetcher,
        resolver=store_resolver,
        extractors=extractor_registry,
        generic_extractor=generic_extractor,
        tracker=domain_tracker,
    )

    # Search
    search_client = providers.Singleton(SearchAPIClient, fetcher=fetcher, config=app_config.provided.search)
    result_normalizer = providers.Singleton(
        SearchResultNormalizer, max_organic_results=app_config.provided.search.max_organic_results
    )
    search_service = providers.Singleton(
        ProductSearchService,
        client=search_client,
        normalizer=result_normalizer,
        config=app_config.provided.search,
    )
    debounced_search = providers.Factory(DebouncedSearch, service=search_service)
