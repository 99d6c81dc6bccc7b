"""ASOS product page extractor."""

from .base import BaseExtractor

ASOS_STORE_ID = "asos_uk"


class AsosExtractor(BaseExtractor):
    TITLE_SELECTORS = [
        ("[data-testid='product-title'] h1", "text"),
        ("div#pdp-react-critical-app h1", "text"),
    ]
    PRICE_SELECTORS = [
        ("span[data-testid='current-price']", "text"),
        ("[data-testid='price-screenreader-only-text']", "text"),
    ]
    IMAGE_SELECTORS = [
        ("img.gallery-image", "src"),
    ]
    DEFAULT_CURRENCY = "GBP"

    def __init__(self, store_id: str = ASOS_STORE_ID):
        super().__init__(store_id)
