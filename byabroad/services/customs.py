"""Israeli import duty and VAT rules.

Duty is charged per product category on personal imports whose value in the
destination currency exceeds the 75 ILS de-minimis threshold. VAT is charged
on the product value plus duty. The threshold is compared against the
product value only; shipping does not count towards it.
"""

import logging
from decimal import Decimal
from typing import Any

from ..config import CostConfig
from ..models import ProductCategory

logger = logging.getLogger(__name__)

# Israeli personal import rules
VAT_RATE = Decimal("0.17")  # 17%
DE_MINIMIS_THRESHOLD = Decimal("75")  # 75 ILS
DEFAULT_DUTY_RATE = Decimal("0.12")  # 12%
CATEGORY_DUTY_RATES: dict[ProductCategory, Decimal] = {
    ProductCategory.ELECTRONICS: Decimal("0.12"),
    ProductCategory.CLOTHING: Decimal("0.12"),
    ProductCategory.HOME: Decimal("0.12"),
    ProductCategory.BEAUTY: Decimal("0.12"),
    ProductCategory.SPORTS: Decimal("0.12"),
    ProductCategory.BOOKS: Decimal("0"),
    ProductCategory.OTHER: Decimal("0.12"),
}


def _to_decimal(value: float | int | str | Decimal) -> Decimal:
    """Convert config values to Decimal without float artefacts."""
    return value if isinstance(value, Decimal) else Decimal(str(value))


def compute_import_duty(value: Decimal, rate: Decimal, threshold: Decimal) -> Decimal:
    """Duty on ``value``; nothing at or below the de-minimis threshold."""
    if value <= threshold:
        return Decimal("0")
    return value * rate


def compute_vat(base: Decimal, rate: Decimal) -> Decimal:
    """VAT on ``base``, which callers pass as value plus duty."""
    return base * rate


class DutyRuleTable:
    """Category duty rates, de-minimis threshold and VAT for the destination.

    Built from the module constants, optionally overridden by ``CostConfig``
    (``duties.yml``).
    """

    def __init__(self, config: CostConfig | None = None):
        """Initialize the rule table.

        Args:
            config: Cost configuration; module constants are used when None.
        """
        self.vat_rate = VAT_RATE
        self.de_minimis_threshold = DE_MINIMIS_THRESHOLD
        self.default_duty_rate = DEFAULT_DUTY_RATE
        self.category_rates = dict(CATEGORY_DUTY_RATES)

        if config is not None:
            self.vat_rate = _to_decimal(config.vat_rate)
            self.de_minimis_threshold = _to_decimal(config.de_minimis_threshold)
            self.default_duty_rate = _to_decimal(config.default_duty_rate)
            for name, rate in config.category_duty_rates.items():
                category = ProductCategory.parse(name)
                if category is ProductCategory.OTHER and name.strip().lower() != "other":
                    logger.warning(f"Ignoring duty rate for unknown category '{name}'")
                    continue
                self.category_rates[category] = _to_decimal(rate)

    def duty_rate(self, category: ProductCategory) -> Decimal:
        """Duty rate for a category, the default rate if it has none."""
        return self.category_rates.get(category, self.default_duty_rate)

    def import_duty(self, value: Decimal, category: ProductCategory) -> Decimal:
        """Calculate import duty on a product value in destination currency.

        Args:
            value: Product value (price plus origin tax) in destination currency.
            category: Product category.

        Returns:
            Duty amount, 0 when the value does not exceed the threshold.
        """
        duty = compute_import_duty(value, self.duty_rate(category), self.de_minimis_threshold)
        if duty == 0:
            logger.debug(f"Value {value} within de-minimis {self.de_minimis_threshold}, no duty")
        return duty

    def vat(self, base: Decimal) -> Decimal:
        """VAT on ``base`` (price in destination currency plus duty)."""
        return compute_vat(base, self.vat_rate)

    def get_duty_info(self) -> dict[str, Any]:
        """Get information about duty calculation parameters.

        Returns:
            Dictionary with duty rates and threshold information
        """
        return {
            "vat_rate": float(self.vat_rate),
            "vat_rate_percent": float(self.vat_rate * 100),
            "de_minimis_threshold": float(self.de_minimis_threshold),
            "default_duty_rate": float(self.default_duty_rate),
            "category_rates": {
                category.value: float(rate) for category, rate in self.category_rates.items()
            },
            "description": (
                f"{float(self.default_duty_rate * 100):g}% duty above "
                f"{float(self.de_minimis_threshold):g}, VAT {float(self.vat_rate * 100):g}% "
                "on price plus duty"
            ),
        }
