import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, ForeignKey, Integer, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.errors import Error, Result
from ..events.domain_events import (
    CartAssignedToUserEvent,
    CartClearedEvent,
    CartCreatedEvent,
    CartItemAddedEvent,
    CartItemRemovedEvent,
    CartItemUpdatedEvent,
)
from .base import AggregateRoot, StoreServiceBaseModel
from .value_objects import Money, ProductSnapshot


class CartErrors:
    InvalidQuantity = Error.validation(
        "Cart.InvalidQuantity", "Quantity must be greater than zero"
    )
    UserRequired = Error.validation("Cart.UserRequired", "A user is required")
    CurrencyMismatch = Error.validation(
        "Cart.CurrencyMismatch", "All cart items must use the same currency"
    )

    @staticmethod
    def not_found(cart_id: object) -> Error:
        return Error.not_found("Cart.NotFound", f"Cart with ID {cart_id} was not found")

    @staticmethod
    def item_not_found(item_id: object) -> Error:
        return Error.not_found(
            "Cart.ItemNotFound", f"Cart item with ID {item_id} was not found"
        )


class CartItem(StoreServiceBaseModel):
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint(
            "cart_id", "product_id", "variant_id", name="uq_cart_items_product_variant"
        ),
    )

    cart_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    variant_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    product_data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    cart: Mapped["Cart"] = relationship(back_populates="items")

    @property
    def price(self) -> Money:
        return Money(self.unit_price, self.currency)

    @property
    def snapshot(self) -> ProductSnapshot:
        return ProductSnapshot.from_dict(self.product_data)

    def matches(self, product_id: uuid.UUID, variant_id: Optional[uuid.UUID]) -> bool:
        return self.product_id == product_id and self.variant_id == variant_id


class Cart(AggregateRoot):
    """
    Shopping cart; one line per product + variant combination.

    Every line change also updates the cart row, so concurrent edits of one
    cart are caught by its version check.
    """

    __tablename__ = "carts"

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True, index=True)

    items: Mapped[List[CartItem]] = relationship(
        back_populates="cart",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CartItem.created_at",
    )

    @classmethod
    def create(cls, user_id: Optional[uuid.UUID] = None) -> Result["Cart"]:
        cart = cls(id=uuid.uuid4(), user_id=user_id, items=[])
        cart.add_domain_event(CartCreatedEvent(cart_id=cart.id, user_id=user_id))
        return Result.success(cart)

    def assign_to_user(self, user_id: Optional[uuid.UUID]) -> Result[None]:
        if user_id is None:
            return Result.failure(CartErrors.UserRequired)

        self.user_id = user_id
        self.touch()
        self.add_domain_event(CartAssignedToUserEvent(cart_id=self.id, user_id=user_id))
        return Result.success()

    def add_item(
        self,
        product_id: uuid.UUID,
        product: ProductSnapshot,
        unit_price: Money,
        quantity: int = 1,
        variant_id: Optional[uuid.UUID] = None,
    ) -> Result[CartItem]:
        """Add a line, or bump the quantity of the matching product + variant"""
        if quantity <= 0:
            return Result.failure(CartErrors.InvalidQuantity)
        if self.items and unit_price.currency != self.items[0].currency:
            return Result.failure(CartErrors.CurrencyMismatch)

        existing = next(
            (item for item in self.items if item.matches(product_id, variant_id)), None
        )
        if existing is not None:
            existing.quantity += quantity
            self.touch()
            self.add_domain_event(
                CartItemUpdatedEvent(
                    cart_id=self.id, item_id=existing.id, user_id=self.user_id
                )
            )
            return Result.success(existing)

        item = CartItem(
            id=uuid.uuid4(),
            product_id=product_id,
            variant_id=variant_id,
            quantity=quantity,
            unit_price=unit_price.amount,
            currency=unit_price.currency,
            product_data=product.to_dict(),
        )
        self.items.append(item)
        self.touch()
        self.add_domain_event(
            CartItemAddedEvent(cart_id=self.id, item_id=item.id, user_id=self.user_id)
        )
        return Result.success(item)

    def update_item_quantity(self, item_id: uuid.UUID, quantity: int) -> Result[None]:
        item = self._find_item(item_id)
        if item is None:
            return Result.failure(CartErrors.item_not_found(item_id))

        if quantity <= 0:
            return self.remove_item(item_id)

        item.quantity = quantity
        self.touch()
        self.add_domain_event(
            CartItemUpdatedEvent(cart_id=self.id, item_id=item_id, user_id=self.user_id)
        )
        return Result.success()

    def remove_item(self, item_id: uuid.UUID) -> Result[None]:
        item = self._find_item(item_id)
        if item is None:
            return Result.failure(CartErrors.item_not_found(item_id))

        self.items.remove(item)
        self.touch()
        self.add_domain_event(
            CartItemRemovedEvent(cart_id=self.id, item_id=item_id, user_id=self.user_id)
        )
        return Result.success()

    def clear(self) -> Result[None]:
        self.items.clear()
        self.touch()
        self.add_domain_event(CartClearedEvent(cart_id=self.id, user_id=self.user_id))
        return Result.success()

    @property
    def total(self) -> Money:
        total = Money.zero(self.items[0].currency if self.items else "USD")
        for item in self.items:
            total = total.add(item.price.multiply(item.quantity))
        return total

    def _find_item(self, item_id: uuid.UUID) -> Optional[CartItem]:
        return next((item for item in self.items if item.id == item_id), None)
