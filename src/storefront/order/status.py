"""Order status transitions: command and handler.

Cancelling an order gives its stock back in the same unit of work as the
status change.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.errors import OrderNotFound
from storefront.inventory.reservation import ReservationToken, StockReservation
from storefront.order.order import Order, OrderStatus


@storefront.command(part_of="Order")
class TransitionOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    admin_notes = Text()
    requested_by = Identifier()  # Set when a customer acts on their own order


def load_order(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise OrderNotFound(order_id) from exc


def parse_status(value) -> OrderStatus:
    try:
        return OrderStatus(str(value).strip().upper())
    except ValueError as exc:
        raise ValidationError({"status": [f"Unknown order status: {value}"]}) from exc


@storefront.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(TransitionOrderStatus)
    def transition(self, command):
        order = load_order(command.order_id)
        if command.requested_by and not order.is_owned_by(command.requested_by):
            raise OrderNotFound(command.order_id)

        target = parse_status(command.status)
        previous = order.status
        order.transition_to(target, admin_notes=command.admin_notes)

        if target == OrderStatus.CANCELLED and not order.stock_released:
            StockReservation().release(ReservationToken.for_order(order), reason="order_cancelled")
            order.mark_stock_released()

        current_domain.repository_for(Order).add(order)
        logger.info("Order status changed", order_id=str(order.id), from_status=previous, to_status=order.status)
        return order.status
