"""
Unit tests for Money, Discount and ProductSnapshot.
"""

from decimal import Decimal

import pytest

from store_service.app.models.value_objects import (
    Discount,
    DiscountType,
    Money,
    ProductSnapshot,
)


class TestMoney:
    def test_create(self):
        result = Money.create("19.99", "usd")

        assert result.is_success
        assert result.value.amount == Decimal("19.99")
        assert result.value.currency == "USD"

    def test_negative_amount_rejected(self):
        result = Money.create(-1)

        assert result.is_failure
        assert result.error.code == "Order.NegativeAmount"

    def test_empty_currency_rejected(self):
        result = Money.create(10, " ")

        assert result.is_failure
        assert result.error.code == "Order.InvalidCurrency"

    def test_factories(self):
        assert Money.from_dollars(5).value.currency == "USD"
        assert Money.from_euros(5).value.currency == "EUR"
        assert Money.zero().amount == Decimal("0")

    def test_add_and_multiply(self):
        price = Money.from_dollars("2.50").value

        assert price.multiply(3).add(price).amount == Decimal("10.00")

    def test_add_with_different_currency_raises(self):
        with pytest.raises(ValueError):
            Money.from_dollars(1).value.add(Money.from_euros(1).value)

    def test_subtract_below_zero_raises(self):
        with pytest.raises(ValueError):
            Money.from_dollars(1).value.subtract(Money.from_dollars(2).value)

    def test_safe_operations_return_failures(self):
        dollars = Money.from_dollars(10).value

        assert dollars.add_safe(Money.from_euros(1).value).error.code == (
            "Order.CurrencyMismatch"
        )
        assert dollars.add_safe(None).error.code == "Order.InvalidAmount"
        assert dollars.subtract_safe(Money.from_dollars(11).value).error.code == (
            "Order.NegativeAmount"
        )
        assert dollars.subtract_safe(Money.from_dollars(4).value).value.amount == Decimal(
            "6"
        )

    def test_value_equality(self):
        assert Money.from_dollars("1.0").value == Money.create(Decimal("1.0")).value

    def test_rounded(self):
        assert Money.from_dollars("1.005").value.rounded().amount == Decimal("1.01")


class TestDiscount:
    def test_percentage_discount(self):
        discount = Discount.create_percentage(25, code="SPRING").value
        base = Money.from_dollars(80).value

        assert discount.type == DiscountType.PERCENTAGE
        assert discount.calculate_discount(base).value.amount == Decimal("20")
        assert discount.apply_discount(base).value.amount == Decimal("60")

    @pytest.mark.parametrize(
        "value,code",
        [(-1, "Order.NegativeDiscount"), (101, "Order.InvalidDiscountPercentage")],
    )
    def test_invalid_percentage(self, value, code):
        result = Discount.create_percentage(value)

        assert result.is_failure
        assert result.error.code == code

    def test_fixed_discount_is_capped_at_base(self):
        discount = Discount.create_fixed_amount(50).value
        base = Money.from_dollars(30).value

        assert discount.calculate_discount(base).value.amount == Decimal("30")
        assert discount.apply_discount(base).value.amount == Decimal("0")

    def test_negative_fixed_discount_rejected(self):
        assert Discount.create_fixed_amount(-5).error.code == "Order.NegativeDiscount"

    def test_discount_on_missing_amount(self):
        discount = Discount.create_fixed_amount(5).value

        assert discount.calculate_discount(None).error.code == "Order.InvalidAmount"


class TestProductSnapshot:
    def test_dict_round_trip_copies_attributes(self):
        snapshot = ProductSnapshot(
            name="Phone X",
            sku="PX-1",
            slug="phone-x",
            variant_sku="PX-1-BLK",
            variant_attributes={"color": "black"},
        )

        restored = ProductSnapshot.from_dict(snapshot.to_dict())

        assert restored == snapshot
        assert restored.variant_attributes is not snapshot.variant_attributes
