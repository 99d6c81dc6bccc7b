"""Landed cost calculation.

Combines the exchange rate, forwarder quote, import duty and VAT into a
single ``CostCalculation`` for one product and one forwarder:

    price_in_destination = (price + origin_tax) * rate
    duty                 = price_in_destination * duty_rate, above de-minimis
    vat                  = (price_in_destination + duty) * vat_rate
    total                = price_in_destination + shipping + processing_fee
                           + duty + vat + customs_handling_fee
"""

import logging
from decimal import Decimal

from ..config import CostConfig
from ..models import CostCalculation, Product, ShippingProviderProfile, plain_number
from .currency import ExchangeRateService
from .customs import DutyRuleTable
from .shipping import ShippingQuoteCalculator, resolve_weight

logger = logging.getLogger(__name__)

CONSOLIDATION_THRESHOLD = Decimal("100")
LOW_VALUE_TIP_THRESHOLD = Decimal("50")


class LandedCostCalculator:
    """Compute the total cost of importing a product through a forwarder."""

    def __init__(
        self,
        currency_service: ExchangeRateService,
        duty_rules: DutyRuleTable,
        shipping_calculator: ShippingQuoteCalculator,
        config: CostConfig | None = None,
    ):
        self.currency_service = currency_service
        self.duty_rules = duty_rules
        self.shipping_calculator = shipping_calculator
        self.config = config or CostConfig()
        self.destination_currency = self.config.destination_currency.upper()
        self.customs_handling_fee = Decimal(str(self.config.customs_handling_fee))
        self.default_weight = Decimal(str(self.config.default_weight_kg))

    async def calculate(
        self,
        product: Product,
        provider: ShippingProviderProfile,
        weight_override: Decimal | float | None = None,
        customs_handling_fee: Decimal | None = None,
    ) -> CostCalculation:
        """Calculate the landed cost of ``product`` shipped via ``provider``.

        Args:
            product: Product to import.
            provider: Forwarder to ship through.
            weight_override: Weight to use instead of the product's.
            customs_handling_fee: Per-call handling fee override.

        Returns:
            CostCalculation whose total equals the sum of its components.

        Raises:
            ValueError: If the weight override is not a positive number.
            RateUnavailable: If the exchange rate cannot be resolved.
        """
        weight = resolve_weight(weight_override, product.weight_kg, self.default_weight)
        rate = await self.currency_service.get_rate(product.currency, self.destination_currency)

        origin_tax = product.origin_tax or Decimal("0")
        price_in_destination = (product.price + origin_tax) * rate
        quote = self.shipping_calculator.quote(provider, weight, price_in_destination)

        calculation = CostCalculation(
            product_id=product.id,
            product_name=product.name,
            product_url=product.product_url,
            category=product.category,
            original_price=product.price,
            original_currency=product.currency,
            origin_tax=origin_tax,
            exchange_rate=rate,
            destination_currency=self.destination_currency,
            provider_id=provider.id,
            provider_name=provider.display_name,
            weight_kg=weight,
            transport_cost=quote.transport_cost,
            insurance_rate=provider.insurance_rate if provider.has_insurance else Decimal("0"),
            processing_fee=quote.processing_fee,
            duty_rate=self.duty_rules.duty_rate(product.category),
            de_minimis_threshold=self.duty_rules.de_minimis_threshold,
            vat_rate=self.duty_rules.vat_rate,
            customs_handling_fee=(
                customs_handling_fee if customs_handling_fee is not None else self.customs_handling_fee
            ),
        )
        calculation.recalculate()

        logger.info(
            f"Landed cost for '{product.name}' via {provider.display_name}: "
            f"{calculation.total_cost:.2f} {self.destination_currency}"
        )
        return calculation

    async def refresh_rate(self, calculation: CostCalculation) -> CostCalculation:
        """Fetch the current rate for a calculation and re-derive its amounts.

        Raises:
            RateUnavailable: If the exchange rate cannot be resolved.
        """
        rate = await self.currency_service.get_rate(
            calculation.original_currency, calculation.destination_currency
        )
        calculation.update_exchange_rate(rate)
        return calculation

    @staticmethod
    def update_exchange_rate(calculation: CostCalculation, new_rate: Decimal) -> CostCalculation:
        """Apply ``new_rate`` to ``calculation`` and return it."""
        calculation.update_exchange_rate(new_rate)
        return calculation

    @staticmethod
    def compare_with_local_price(
        calculation: CostCalculation, local_price: Decimal
    ) -> tuple[Decimal, Decimal]:
        """Compare the landed cost with the local purchase price.

        Args:
            calculation: Landed cost calculation.
            local_price: Price of the same item bought locally.

        Returns:
            Tuple of (savings, savings percentage of the local price). Savings
            are negative when importing is more expensive.
        """
        savings = local_price - calculation.total_cost
        percentage = savings / local_price * 100 if local_price > 0 else Decimal("0")
        return savings, percentage

    def savings_tips(
        self,
        calculation: CostCalculation,
        providers: list[ShippingProviderProfile] | None = None,
    ) -> list[str]:
        """Advisory tips for lowering the landed cost.

        Args:
            calculation: Calculation to advise on.
            providers: Forwarders to compare the shipping cost against.

        Returns:
            Human readable tips.
        """
        tips = []

        if calculation.shipping_cost > CONSOLIDATION_THRESHOLD:
            tips.append("Consider consolidating multiple orders to save on shipping")

        if (
            LOW_VALUE_TIP_THRESHOLD < calculation.price_in_destination <= calculation.de_minimis_threshold
        ):
            tips.append(
                f"Great! This order is under the {plain_number(calculation.de_minimis_threshold)} "
                f"{calculation.destination_currency} duty threshold"
            )

        if providers:
            cheapest = min(p.base_rate for p in providers)
            if calculation.shipping_cost > cheapest:
                tips.append("Check other shipping providers for better rates")

        tips.append("Monitor exchange rates for better timing")
        return tips
