"""Product extraction package.

Contains store-specific and generic extractors that turn a fetched product
page into name, price and currency, the store registry that classifies URLs,
and the pipeline that ties them together.

Architecture:
- ExtractorProtocol: Unified interface for all extractors
- ExtractorRegistry: Lookup of extractors by store id
- StoreResolver: URL to store classification
- ProductExtractionPipeline: URL to URLParsingResult state machine
"""

from .adidas import AdidasExtractor
from .asos import AsosExtractor
from .base import BaseExtractor, ExtractorProtocol, ExtractorRegistry
from .generic import GenericExtractor
from .hm import HMExtractor
from .nike import NikeExtractor
from .pipeline import ProductExtractionPipeline
from .stores import StoreResolver
from .zara import ZaraExtractor

STORE_EXTRACTORS: list[type[BaseExtractor]] = [
    ZaraExtractor,
    AsosExtractor,
    HMExtractor,
    NikeExtractor,
    AdidasExtractor,
]


def create_extractor_registry() -> ExtractorRegistry:
    """Build a registry holding every store-specific extractor."""
    registry = ExtractorRegistry()
    for extractor_class in STORE_EXTRACTORS:
        registry.register(extractor_class())
    return registry


__all__ = [
    "BaseExtractor",
    "ExtractorProtocol",
    "ExtractorRegistry",
    "GenericExtractor",
    "ProductExtractionPipeline",
    "STORE_EXTRACTORS",
    "StoreResolver",
    "create_extractor_registry",
]
