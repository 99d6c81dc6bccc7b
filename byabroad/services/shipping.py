"""Forwarder shipping quotes and the forwarder registry.

A forwarder charges a flat base rate plus a per-kilogram rate, a fixed
processing fee, and optionally insurance as a fraction of the declared value.
All amounts are in the destination currency.
"""

import logging
from decimal import Decimal
from typing import Any

from ..models import ShippingProviderProfile, ShippingQuote, plain_number

logger = logging.getLogger(__name__)

DEFAULT_WEIGHT_KG = Decimal("1.0")


def validate_weight(value: Decimal | float | str) -> Decimal:
    """Convert a caller-supplied weight to Decimal.

    Raises:
        ValueError: If the weight is not a finite positive number.
    """
    try:
        weight = value if isinstance(value, Decimal) else Decimal(str(value))
    except ArithmeticError as e:
        raise ValueError(f"Weight is not a number: {value!r}") from e
    if not weight.is_finite() or weight <= 0:
        raise ValueError(f"Weight must be positive, got {value}")
    return weight


def resolve_weight(
    override: Decimal | float | None,
    product_weight: Decimal | None,
    default: Decimal = DEFAULT_WEIGHT_KG,
) -> Decimal:
    """Pick the shipping weight: explicit override, product weight, or default.

    Args:
        override: Weight supplied by the caller.
        product_weight: Weight recorded on the product.
        default: Fallback weight in kilograms.

    Returns:
        Weight in kilograms as a Decimal.

    Raises:
        ValueError: If the override is not a positive number.
    """
    if override is not None:
        return validate_weight(override)
    if product_weight is not None:
        return product_weight
    logger.debug(f"No weight known, assuming {default} kg")
    return default


class ShippingQuoteCalculator:
    """Compute forwarder shipping quotes."""

    def quote(
        self,
        profile: ShippingProviderProfile,
        weight_kg: Decimal,
        declared_value: Decimal,
    ) -> ShippingQuote:
        """Quote shipping for one package through one forwarder.

        Args:
            profile: Forwarder rate schedule.
            weight_kg: Package weight in kilograms.
            declared_value: Value of the contents in destination currency,
                used for insurance.

        Returns:
            ShippingQuote with transport, processing and insurance components.
        """
        transport = profile.base_rate + weight_kg * profile.per_kg_rate
        insurance = declared_value * profile.insurance_rate if profile.has_insurance else Decimal("0")
        total = transport + profile.processing_fee + insurance

        description = (
            f"{profile.display_name}: base {profile.base_rate} + "
            f"{weight_kg} kg x {profile.per_kg_rate} + fee {profile.processing_fee}"
        )
        if profile.has_insurance:
            description += f" + insurance {plain_number(profile.insurance_rate * 100)}%"

        return ShippingQuote(
            weight_kg=weight_kg,
            transport_cost=transport,
            processing_fee=profile.processing_fee,
            insurance_cost=insurance,
            total=total,
            description=description,
        )


class ForwarderRegistry:
    """In-memory registry of known forwarders.

    Seeded from the forwarder table at construction; providers are only
    removed by an explicit ``remove`` call.
    """

    def __init__(self, records: list[dict[str, Any]] | None = None):
        """Initialize the registry.

        Args:
            records: Forwarder records (as loaded from ``forwarders.yml``).
        """
        self._providers: dict[str, ShippingProviderProfile] = {}
        for record in records or []:
            self.add(ShippingProviderProfile(**record))

    def add(self, profile: ShippingProviderProfile) -> bool:
        """Register a forwarder.

        Returns:
            True if added, False if a forwarder with the same id already exists.
        """
        if profile.id in self._providers:
            logger.debug(f"Forwarder '{profile.id}' already registered, ignoring")
            return False
        self._providers[profile.id] = profile
        return True

    def remove(self, provider_id: str) -> bool:
        """Remove a forwarder by id; returns whether it was present."""
        return self._providers.pop(provider_id, None) is not None

    def get(self, provider_id: str) -> ShippingProviderProfile | None:
        return self._providers.get(provider_id)

    def list_all(self) -> list[ShippingProviderProfile]:
        return list(self._providers.values())

    def list_active(self) -> list[ShippingProviderProfile]:
        """Forwarders included in comparisons."""
        return [p for p in self._providers.values() if p.is_active]

    def cheapest_base_rate(self) -> Decimal | None:
        """Lowest base rate among active forwarders, None if there are none."""
        active = self.list_active()
        if not active:
            return None
        return min(p.base_rate for p in active)

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers
