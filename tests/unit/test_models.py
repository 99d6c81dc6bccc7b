"""Tests for the canonical data models."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from byabroad.models import (
    CostCalculation,
    ExtractionStatus,
    ParsingError,
    Product,
    ProductCategory,
    StoreIdentity,
    URLParsingResult,
)


class TestProduct:
    """Test product validation."""

    def test_currency_is_upper_cased(self):
        product = Product(name="Mug", price=Decimal("12"), currency=" usd ")
        assert product.currency == "USD"

    def test_unknown_currency_rejected(self):
        with pytest.raises(ValidationError):
            Product(name="Mug", price=Decimal("12"), currency="XYZ")

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            Product(name="Mug", price=Decimal("-1"), currency="USD")

    def test_float_price_is_exact(self):
        product = Product(name="Mug", price=19.99, currency="USD")
        assert product.price == Decimal("19.99")

    def test_products_are_immutable(self):
        product = Product(name="Mug", price=Decimal("12"), currency="USD")
        with pytest.raises(ValidationError):
            product.price = Decimal("1")

    def test_free_form_category_is_mapped(self):
        assert Product(name="A", price=1, currency="USD", category="electronics").category is (
            ProductCategory.ELECTRONICS
        )
        assert Product(name="A", price=1, currency="USD", category="Gadgets").category is (
            ProductCategory.OTHER
        )

    def test_ids_are_unique(self):
        first = Product(name="A", price=1, currency="USD")
        second = Product(name="A", price=1, currency="USD")
        assert first.id != second.id


class TestProductCategory:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Books", ProductCategory.BOOKS),
            ("  sports ", ProductCategory.SPORTS),
            ("", ProductCategory.OTHER),
            (None, ProductCategory.OTHER),
            (ProductCategory.HOME, ProductCategory.HOME),
        ],
    )
    def test_parse(self, value, expected):
        assert ProductCategory.parse(value) is expected


class TestCostCalculation:
    """Test derived amounts on a stored calculation."""

    def make_calculation(self, **overrides) -> CostCalculation:
        values = {
            "product_id": "p1",
            "product_name": "Lamp",
            "original_price": Decimal("100"),
            "original_currency": "USD",
            "exchange_rate": Decimal("3.7"),
            "provider_id": "flat",
            "provider_name": "Flat Forwarder",
            "transport_cost": Decimal("70"),
            "processing_fee": Decimal("15"),
        }
        values.update(overrides)
        calc = CostCalculation(**values)
        calc.recalculate()
        return calc

    def test_recalculate(self):
        calc = self.make_calculation()

        assert calc.price_in_destination == Decimal("370.0")
        assert calc.import_duty == Decimal("44.400")
        assert calc.vat == Decimal("70.44800")
        assert calc.total_cost == Decimal("619.84800")
        assert calc.total_cost_reference == calc.total_cost / Decimal("3.7")
        assert calc.reference_currency == "USD"

    def test_non_positive_rate_rejected_on_construction(self):
        with pytest.raises(ValidationError):
            self.make_calculation(exchange_rate=Decimal("0"))

    def test_potential_savings_never_negative(self):
        calc = self.make_calculation()

        assert calc.potential_savings(Decimal("700")) == Decimal("80.15200")
        assert calc.potential_savings(Decimal("500")) == Decimal("0")

    def test_breakdown_lines(self):
        calc = self.make_calculation()
        labels = [label for label, _, _ in calc.breakdown()]

        assert labels[0] == "Product Price"
        assert "Shipping (Flat Forwarder)" in labels
        assert "VAT (17%)" in labels
        assert labels[-1] == "Total Cost"
        assert calc.breakdown()[-1][1] == calc.total_cost

    def test_vat_label_has_no_exponent(self):
        calc = self.make_calculation(vat_rate=Decimal("0.10"))
        assert "VAT (10%)" in [label for label, _, _ in calc.breakdown()]


class TestURLParsingResult:
    def test_description_per_error(self):
        assert ParsingError.NETWORK_ERROR.description == "Network connection error"
        assert all(error.description for error in ParsingError)

    def test_unknown_store_is_not_supported(self):
        store = StoreIdentity(id="unknown", display_name="shop.example", domain="shop.example", is_unknown=True)
        result = URLParsingResult(status=ExtractionStatus.GENERIC_EXTRACTION_FAILED, store=store)

        assert result.is_supported is False
        assert result.store_name == "shop.example"

    def test_missing_store(self):
        result = URLParsingResult(status=ExtractionStatus.INVALID_URL, error=ParsingError.INVALID_URL)

        assert result.is_supported is False
        assert result.store_name == "Unknown"
