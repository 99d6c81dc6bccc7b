"""Nike product page extractor."""

from .base import BaseExtractor

NIKE_STORE_ID = "nike_global"


class NikeExtractor(BaseExtractor):
    TITLE_SELECTORS = [
        ("h1#pdp_product_title", "text"),
        ("h1[data-testid='product_title']", "text"),
    ]
    PRICE_SELECTORS = [
        ("[data-testid='currentPrice-container']", "text"),
        ("div[data-test='product-price']", "text"),
    ]
    IMAGE_SELECTORS = [
        ("img[data-testid='HeroImg']", "src"),
    ]
    DEFAULT_CURRENCY = "USD"

    def __init__(self, store_id: str = NIKE_STORE_ID):
        super().__init__(store_id)
