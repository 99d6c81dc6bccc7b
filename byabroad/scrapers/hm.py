"""H&M product page extractor."""

from .base import BaseExtractor

HM_STORE_ID = "hm_global"


class HMExtractor(BaseExtractor):
    TITLE_SELECTORS = [
        ("h1.product-item-headline", "text"),
        ("hm-product-name h1", "text"),
    ]
    PRICE_SELECTORS = [
        ("#product-price span.price-value", "text"),
        ("span.price-value", "text"),
    ]
    IMAGE_SELECTORS = [
        ("div.product-detail-main-image-container img", "src"),
    ]
    DEFAULT_CURRENCY = "EUR"

    def __init__(self, store_id: str = HM_STORE_ID):
        super().__init__(store_id)
