"""Cart aggregate: the products a customer intends to buy.

Each user has at most one cart. A product appears on at most one line;
adding it again increases that line's quantity. ``item_count`` counts
distinct lines and ``total_items`` sums their quantities.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer

from storefront.cart.aggregator import CartLine
from storefront.cart.events import CartCleared, CartItemAdded, CartItemQuantityUpdated, CartItemRemoved
from storefront.domain import storefront
from storefront.errors import CartItemNotFound


@storefront.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@storefront.aggregate
class Cart:
    user_id = Identifier(required=True, unique=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, user_id):
        now = datetime.now(UTC)
        return cls(user_id=user_id, created_at=now, updated_at=now)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def line_for(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def lines(self) -> list[CartLine]:
        return [CartLine(product_id=str(item.product_id), quantity=item.quantity) for item in self.items]

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity):
        """Add a product, or increase its quantity if it is already in the cart."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        now = datetime.now(UTC)
        existing = self.line_for(product_id)
        if existing:
            existing.quantity += quantity
        else:
            self.add_items(CartItem(product_id=product_id, quantity=quantity, added_at=now))
        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                user_id=str(self.user_id),
                product_id=str(product_id),
                quantity=quantity,
            )
        )

    def update_item_quantity(self, product_id, new_quantity):
        if new_quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        item = self.line_for(product_id)
        if item is None:
            raise CartItemNotFound(product_id)

        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemQuantityUpdated(
                cart_id=str(self.id),
                product_id=str(product_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, product_id):
        item = self.line_for(product_id)
        if item is None:
            raise CartItemNotFound(product_id)

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=str(self.id), product_id=str(product_id)))

    def clear(self):
        removed = len(self.items)
        for item in list(self.items):
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(cart_id=str(self.id), user_id=str(self.user_id), items_removed=removed))
