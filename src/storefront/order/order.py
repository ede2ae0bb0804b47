"""Order aggregate: a committed purchase and its fulfillment status.

Items and amounts are fixed when the order is created; afterwards only the
status (and its timestamps and notes) changes.

State Machine:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED
    CANCELLED (from PENDING, CONFIRMED, PROCESSING)
    DELIVERED and CANCELLED are terminal.
"""

import secrets
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront.domain import storefront
from storefront.errors import InvalidStatusTransition
from storefront.order.events import OrderCancelled, OrderPlaced, OrderStatusChanged
from storefront.shared.money import Money


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# Timestamp stamped when the order enters each status
_STATUS_TIMESTAMPS = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.PROCESSING: "processing_at",
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


def can_transition(from_status: OrderStatus, to_status: OrderStatus) -> bool:
    return to_status in _VALID_TRANSITIONS[from_status]


def new_order_number(user_id, now: datetime) -> str:
    """``ORD-<epoch millis>-<user id>-<6 hex>``; the suffix separates orders placed in the same millisecond."""
    return f"ORD-{int(now.timestamp() * 1000)}-{user_id}-{secrets.token_hex(3).upper()}"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """A purchased line, with name and price as they were at checkout."""

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=200)
    unit_price = ValueObject(Money, required=True)
    quantity = Integer(required=True, min_value=1)
    line_subtotal = ValueObject(Money, required=True)

    @invariant.post
    def line_subtotal_matches_price_and_quantity(self):
        if self.unit_price and self.line_subtotal and self.unit_price.multiply(self.quantity) != self.line_subtotal:
            raise ValidationError({"line_subtotal": ["Line subtotal must equal unit price times quantity"]})


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=100, unique=True)
    user_id = Identifier(required=True)
    items = HasMany(OrderItem)
    subtotal = ValueObject(Money, required=True)
    discount_code = String(max_length=50)
    discount_amount = ValueObject(Money, required=True)
    total_amount = ValueObject(Money, required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)

    shipping_address = String(max_length=500)
    customer_name = String(max_length=100)
    customer_email = String(max_length=255)
    phone_number = String(max_length=15)
    notes = String(max_length=1000)
    admin_notes = Text()

    reservation_id = Identifier()
    stock_released = Boolean(default=False)

    created_at = DateTime()
    updated_at = DateTime()
    confirmed_at = DateTime()
    processing_at = DateTime()
    shipped_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()

    @invariant.post
    def total_must_be_subtotal_less_discount(self):
        if self.total_amount is None or self.subtotal is None or self.discount_amount is None:
            return
        if self.total_amount.is_negative():
            raise ValidationError({"total_amount": ["Total amount cannot be negative"]})
        if self.total_amount != self.subtotal.subtract(self.discount_amount).max(Money.zero()):
            raise ValidationError({"total_amount": ["Total amount must equal subtotal less discount"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        user_id,
        priced_cart,
        discount_amount=None,
        discount_code=None,
        shipping_info=None,
        reservation_id=None,
    ):
        """Create a PENDING order from a priced cart.

        Args:
            priced_cart: ``PricedCart`` with the snapshotted lines.
            discount_amount: ``Money`` taken off the subtotal (zero if None).
            shipping_info: dict with shipping_address, customer_name,
                customer_email, phone_number and notes, all optional.
        """
        now = datetime.now(UTC)
        shipping_info = shipping_info or {}
        subtotal = priced_cart.subtotal
        discount_amount = discount_amount or Money.zero()
        total_amount = subtotal.subtract(discount_amount).max(Money.zero())

        items = [
            OrderItem(
                product_id=line.product_id,
                product_name=line.product_name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                line_subtotal=line.line_subtotal,
            )
            for line in priced_cart.lines
        ]
        if not items:
            raise ValidationError({"items": ["Order must contain at least one item"]})

        order = cls(
            order_number=new_order_number(user_id, now),
            user_id=user_id,
            items=items,
            subtotal=subtotal,
            discount_code=discount_code,
            discount_amount=discount_amount,
            total_amount=total_amount,
            status=OrderStatus.PENDING.value,
            shipping_address=shipping_info.get("shipping_address"),
            customer_name=shipping_info.get("customer_name"),
            customer_email=shipping_info.get("customer_email"),
            phone_number=shipping_info.get("phone_number"),
            notes=shipping_info.get("notes"),
            reservation_id=reservation_id,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(user_id),
                subtotal=str(subtotal),
                discount_code=discount_code,
                discount_amount=str(discount_amount),
                total_amount=str(total_amount),
                item_count=len(items),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    def is_owned_by(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    def can_be_cancelled(self) -> bool:
        return can_transition(self.current_status, OrderStatus.CANCELLED)

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        if not can_transition(self.current_status, target_status):
            raise InvalidStatusTransition(self.status, target_status.value)

    def transition_to(self, target_status, admin_notes=None):
        """Move the order to ``target_status`` (an OrderStatus or its value)."""
        target_status = OrderStatus(target_status) if not isinstance(target_status, OrderStatus) else target_status
        self._assert_can_transition(target_status)

        previous = self.current_status
        now = datetime.now(UTC)
        self.status = target_status.value
        setattr(self, _STATUS_TIMESTAMPS[target_status], now)
        if admin_notes:
            self.admin_notes = admin_notes
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                from_status=previous.value,
                to_status=target_status.value,
                changed_at=now,
            )
        )
        if target_status == OrderStatus.CANCELLED:
            self.raise_(
                OrderCancelled(
                    order_id=str(self.id),
                    user_id=str(self.user_id),
                    previous_status=previous.value,
                    cancelled_at=now,
                )
            )

    def confirm(self):
        self.transition_to(OrderStatus.CONFIRMED)

    def start_processing(self):
        self.transition_to(OrderStatus.PROCESSING)

    def ship(self):
        self.transition_to(OrderStatus.SHIPPED)

    def deliver(self):
        self.transition_to(OrderStatus.DELIVERED)

    def cancel(self, admin_notes=None):
        self.transition_to(OrderStatus.CANCELLED, admin_notes=admin_notes)

    def mark_stock_released(self):
        self.stock_released = True
