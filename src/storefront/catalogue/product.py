"""Product aggregate: a sellable item with a price and a stock count.

Stock only moves through ``withdraw_stock`` (checkout), ``return_stock``
(cancellation or compensation) and ``restock`` (catalogue management).
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String, Text, ValueObject

from storefront.catalogue.events import (
    ProductAdded,
    ProductAvailabilityChanged,
    ProductPriceChanged,
    StockLevelChanged,
)
from storefront.domain import storefront
from storefront.errors import InsufficientStock
from storefront.shared.money import Money


@storefront.aggregate
class Product:
    name = String(required=True, max_length=200)
    description = Text()
    price = ValueObject(Money, required=True)
    stock_quantity = Integer(required=True, min_value=0, default=0)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def price_cannot_be_negative(self):
        if self.price is not None and self.price.is_negative():
            raise ValidationError({"price": ["Price cannot be negative"]})

    @classmethod
    def create(cls, name, price, stock_quantity=0, description=None, is_active=True):
        now = datetime.now(UTC)
        product = cls(
            name=name,
            description=description,
            price=Money.of(price),
            stock_quantity=stock_quantity,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductAdded(
                product_id=str(product.id),
                name=product.name,
                price=str(product.price),
                stock_quantity=product.stock_quantity,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Pricing and availability
    # -------------------------------------------------------------------
    def change_price(self, new_price):
        previous = self.price
        self.price = Money.of(new_price)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            ProductPriceChanged(
                product_id=str(self.id),
                previous_price=str(previous),
                new_price=str(self.price),
            )
        )

    def activate(self):
        self._set_active(True)

    def deactivate(self):
        self._set_active(False)

    def _set_active(self, is_active):
        if self.is_active == is_active:
            return
        self.is_active = is_active
        self.updated_at = datetime.now(UTC)
        self.raise_(ProductAvailabilityChanged(product_id=str(self.id), is_active=is_active))

    # -------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------
    def has_stock(self, quantity):
        return self.stock_quantity >= quantity

    def withdraw_stock(self, quantity, reason="checkout"):
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        if not self.has_stock(quantity):
            raise InsufficientStock(str(self.id), requested=quantity, available=self.stock_quantity)
        self._move_stock(self.stock_quantity - quantity, reason)

    def return_stock(self, quantity, reason="release"):
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        self._move_stock(self.stock_quantity + quantity, reason)

    def restock(self, quantity):
        self.return_stock(quantity, reason="restock")

    def _move_stock(self, new_quantity, reason):
        previous = self.stock_quantity
        self.stock_quantity = new_quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            StockLevelChanged(
                product_id=str(self.id),
                previous_quantity=previous,
                new_quantity=new_quantity,
                reason=reason,
            )
        )
