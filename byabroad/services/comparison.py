"""Forwarder comparison.

Runs one landed cost calculation per forwarder concurrently and ranks the
successful ones by total cost. A failing forwarder is logged and left out of
the ranking; it never fails the whole comparison.
"""

import asyncio
import logging
from decimal import Decimal

from ..models import CostCalculation, Product, ProductCategory, ShippingProviderProfile
from .landed_cost import LandedCostCalculator
from .shipping import ForwarderRegistry, validate_weight

logger = logging.getLogger(__name__)

MANUAL_ENTRY_STORE_ID = "manual_entry"


class ForwarderComparisonEngine:
    """Rank forwarders by landed cost for a product."""

    def __init__(self, calculator: LandedCostCalculator, registry: ForwarderRegistry):
        self.calculator = calculator
        self.registry = registry

    async def compare_all(
        self,
        product: Product,
        providers: list[ShippingProviderProfile] | None = None,
        weight_override: Decimal | float | None = None,
    ) -> list[CostCalculation]:
        """Calculate the landed cost through every forwarder.

        Args:
            product: Product to import.
            providers: Forwarders to compare, defaults to the active registry.
            weight_override: Weight to use instead of the product's.

        Returns:
            Successful calculations sorted by ascending total cost; empty if
            every calculation failed.

        Raises:
            ValueError: If the weight override is not a positive number.
        """
        if weight_override is not None:
            weight_override = validate_weight(weight_override)
        if providers is None:
            providers = self.registry.list_active()
        if not providers:
            logger.warning("No forwarders to compare")
            return []

        tasks = [
            asyncio.create_task(self.calculator.calculate(product, provider, weight_override))
            for provider in providers
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        calculations: list[CostCalculation] = []
        for provider, result in zip(providers, results):
            if isinstance(result, CostCalculation):
                calculations.append(result)
            elif isinstance(result, BaseException):
                logger.error(f"Calculation via {provider.display_name} failed: {result}")

        calculations.sort(key=lambda c: c.total_cost)
        logger.info(
            f"Compared {len(providers)} forwarders for '{product.name}': "
            f"{len(calculations)} succeeded"
        )
        return calculations

    async def compare_manual_entry(
        self,
        name: str,
        url: str,
        price: Decimal,
        currency: str,
        weight: Decimal | float | None = None,
        store_name: str = "Manual Entry",
        category: ProductCategory = ProductCategory.OTHER,
        origin_tax: Decimal | None = None,
    ) -> list[CostCalculation]:
        """Compare forwarders for a product the user typed in.

        Raises:
            pydantic.ValidationError: If the price is negative or the currency
                is not recognized.
        """
        product = Product(
            name=name,
            price=price,
            currency=currency,
            product_url=url,
            store_name=store_name,
            store_id=MANUAL_ENTRY_STORE_ID,
            category=category,
            origin_tax=origin_tax,
            weight_kg=weight,
        )
        return await self.compare_all(product)
