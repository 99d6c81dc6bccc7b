"""Adidas product page extractor."""

from .base import BaseExtractor

ADIDAS_STORE_ID = "adidas_global"


class AdidasExtractor(BaseExtractor):
    TITLE_SELECTORS = [
        ("h1[data-auto-id='product-title']", "text"),
        ("h1.name___120FN", "text"),
    ]
    PRICE_SELECTORS = [
        ("[data-auto-id='gl-price-item'] div", "text"),
        ("div.gl-price-item", "text"),
    ]
    IMAGE_SELECTORS = [
        ("[data-auto-id='image-viewer'] img", "src"),
    ]
    DEFAULT_CURRENCY = "EUR"

    def __init__(self, store_id: str = ADIDAS_STORE_ID):
        super().__init__(store_id)
