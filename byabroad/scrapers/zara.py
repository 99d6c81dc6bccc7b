"""Zara product page extractor."""

from .base import BaseExtractor

ZARA_STORE_ID = "zara_global"


class ZaraExtractor(BaseExtractor):
    """Zara renders the price inside ``money-amount`` spans without a currency code."""

    TITLE_SELECTORS = [
        ("h1.product-detail-info__header-name", "text"),
        ("h1.product-detail-card-info__name", "text"),
    ]
    PRICE_SELECTORS = [
        ("span.money-amount__main", "text"),
        ("div.product-detail-info__price span.price__amount", "text"),
    ]
    IMAGE_SELECTORS = [
        ("img.media-image__image", "src"),
    ]
    DEFAULT_CURRENCY = "EUR"

    def __init__(self, store_id: str = ZARA_STORE_ID):
        super().__init__(store_id)
