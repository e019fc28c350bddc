"""
Value objects shared by the catalog and sales aggregates.

Value objects are immutable and compared by value. Factories return a
``Result`` so callers can surface validation failures without exceptions.
"""

import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..core.errors import Error, Result

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")

Number = Union[int, float, str, Decimal]


class SlugErrors:
    Required = Error.validation("Category.SlugRequired", "Category slug cannot be empty")
    InvalidFormat = Error.validation(
        "Category.InvalidSlug",
        "Slug may only contain lowercase letters, numbers and hyphens",
    )


class MoneyErrors:
    NegativeAmount = Error.validation("Order.NegativeAmount", "Amount cannot be negative")
    InvalidCurrency = Error.validation("Order.InvalidCurrency", "Currency is required")
    CurrencyMismatch = Error.validation(
        "Order.CurrencyMismatch", "Cannot combine amounts in different currencies"
    )
    InvalidAmount = Error.validation("Order.InvalidAmount", "Amount is required")


class DiscountErrors:
    NegativeDiscount = Error.validation(
        "Order.NegativeDiscount", "Discount cannot be negative"
    )
    InvalidPercentage = Error.validation(
        "Order.InvalidDiscountPercentage",
        "Discount percentage must be between 0 and 100",
    )


@dataclass(frozen=True)
class Slug:
    """URL-safe category identifier"""

    value: str

    @classmethod
    def create(cls, value: Optional[str]) -> Result["Slug"]:
        if value is None or not value.strip():
            return Result.failure(SlugErrors.Required)
        if not SLUG_PATTERN.match(value):
            return Result.failure(SlugErrors.InvalidFormat)
        return Result.success(cls(value))

    def __str__(self) -> str:
        return self.value


def _to_decimal(amount: Number) -> Decimal:
    return amount if isinstance(amount, Decimal) else Decimal(str(amount))


@dataclass(frozen=True)
class Money:
    """Currency-aware non-negative amount"""

    amount: Decimal
    currency: str = "USD"

    @classmethod
    def create(cls, amount: Number, currency: str = "USD") -> Result["Money"]:
        value = _to_decimal(amount)
        if value < 0:
            return Result.failure(MoneyErrors.NegativeAmount)
        if not currency or not currency.strip():
            return Result.failure(MoneyErrors.InvalidCurrency)
        return Result.success(cls(value, currency.upper()))

    @classmethod
    def from_dollars(cls, amount: Number) -> Result["Money"]:
        return cls.create(amount, "USD")

    @classmethod
    def from_euros(cls, amount: Number) -> Result["Money"]:
        return cls.create(amount, "EUR")

    @classmethod
    def zero(cls, currency: str = "USD") -> "Money":
        return cls(Decimal("0"), currency)

    def add(self, other: "Money") -> "Money":
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def subtract(self, other: "Money") -> "Money":
        self._assert_same_currency(other)
        result = self.amount - other.amount
        if result < 0:
            raise ValueError("Subtraction would result in a negative amount")
        return Money(result, self.currency)

    def multiply(self, factor: Number) -> "Money":
        result = self.amount * _to_decimal(factor)
        if result < 0:
            raise ValueError("Multiplication would result in a negative amount")
        return Money(result, self.currency)

    def add_safe(self, other: Optional["Money"]) -> Result["Money"]:
        if other is None:
            return Result.failure(MoneyErrors.InvalidAmount)
        if other.currency != self.currency:
            return Result.failure(MoneyErrors.CurrencyMismatch)
        return Result.success(self.add(other))

    def subtract_safe(self, other: Optional["Money"]) -> Result["Money"]:
        if other is None:
            return Result.failure(MoneyErrors.InvalidAmount)
        if other.currency != self.currency:
            return Result.failure(MoneyErrors.CurrencyMismatch)
        if other.amount > self.amount:
            return Result.failure(MoneyErrors.NegativeAmount)
        return Result.success(Money(self.amount - other.amount, self.currency))

    def rounded(self) -> "Money":
        return Money(
            self.amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
            self.currency,
        )

    def _assert_same_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise ValueError(f"Cannot combine {self.currency} with {other.currency}")

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency}"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


@dataclass(frozen=True)
class Discount:
    value: Decimal
    type: DiscountType
    code: Optional[str] = None

    @classmethod
    def create_percentage(
        cls, percentage: Number, code: Optional[str] = None
    ) -> Result["Discount"]:
        value = _to_decimal(percentage)
        if value < 0:
            return Result.failure(DiscountErrors.NegativeDiscount)
        if value > 100:
            return Result.failure(DiscountErrors.InvalidPercentage)
        return Result.success(cls(value, DiscountType.PERCENTAGE, code))

    @classmethod
    def create_fixed_amount(
        cls, amount: Number, code: Optional[str] = None
    ) -> Result["Discount"]:
        value = _to_decimal(amount)
        if value < 0:
            return Result.failure(DiscountErrors.NegativeDiscount)
        return Result.success(cls(value, DiscountType.FIXED_AMOUNT, code))

    def calculate_discount(self, base_amount: Optional[Money]) -> Result[Money]:
        """Amount taken off ``base_amount``; fixed discounts cap at the base"""
        if base_amount is None:
            return Result.failure(MoneyErrors.InvalidAmount)

        if self.type == DiscountType.PERCENTAGE:
            discount = base_amount.amount * self.value / Decimal("100")
        else:
            discount = min(self.value, base_amount.amount)

        return Result.success(Money(discount, base_amount.currency))

    def apply_discount(self, base_amount: Optional[Money]) -> Result[Money]:
        discount_result = self.calculate_discount(base_amount)
        if discount_result.is_failure:
            return discount_result
        return base_amount.subtract_safe(discount_result.value)  # type: ignore[union-attr]


@dataclass(frozen=True)
class ProductSnapshot:
    """Product details captured when an order item is created"""

    name: str
    sku: Optional[str] = None
    slug: Optional[str] = None
    variant_sku: Optional[str] = None
    variant_attributes: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "sku": self.sku,
            "slug": self.slug,
            "variant_sku": self.variant_sku,
            "variant_attributes": dict(self.variant_attributes),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductSnapshot":
        return cls(
            name=data["name"],
            sku=data.get("sku"),
            slug=data.get("slug"),
            variant_sku=data.get("variant_sku"),
            variant_attributes=dict(data.get("variant_attributes") or {}),
        )
