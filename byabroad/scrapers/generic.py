"""Generic product extractor for stores without a dedicated extractor.

Relies only on conventions shared across e-commerce sites: a JSON-LD
``Product`` node (top-level, in a list, or inside ``@graph``), Open Graph
``product:price:*`` / ``og:price:*`` tags, and ``itemprop`` microdata.
"""

from .base import BaseExtractor

GENERIC_STORE_ID = "generic"


class GenericExtractor(BaseExtractor):
    """Extract name, price and currency from standard product metadata."""

    def __init__(self) -> None:
        super().__init__(GENERIC_STORE_ID)
