"""Checkout entry points used by the API and by other callers.

Each entry point processes one command (one unit of work). Concurrent
writers are kept apart by the aggregates' version checks, so stock and
discount usage stay correct across threads, workers and hosts alike.
Failures surface as ``StorefrontError`` or ``ValidationError``; any other
exception is reported as ``InternalError``.
"""

import functools

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.cart.aggregator import CartLine
from storefront.discount.evaluator import DiscountEvaluator, DiscountQuote
from storefront.dispatch import process
from storefront.domain import logger
from storefront.errors import InternalError, StorefrontError
from storefront.order.order import Order
from storefront.order.placement import PlaceOrder, encode_lines
from storefront.order.status import TransitionOrderStatus, load_order
from storefront.shared.money import Money

_SHIPPING_FIELDS = ("shipping_address", "customer_name", "customer_email", "phone_number", "notes")


def _reported(func):
    """Let domain errors through and wrap anything else as InternalError."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (StorefrontError, ValidationError):
            raise
        except Exception as exc:
            logger.exception("Checkout failed unexpectedly", operation=func.__name__)
            raise InternalError(f"{func.__name__} failed: {exc}") from exc

    return wrapper


def _as_line(line) -> CartLine:
    if isinstance(line, CartLine):
        return line
    if isinstance(line, dict):
        missing = [name for name in ("product_id", "quantity") if line.get(name) is None]
        if missing:
            raise ValidationError({name: ["is required"] for name in missing})
        return CartLine(product_id=str(line["product_id"]), quantity=line["quantity"])
    try:
        product_id, quantity = line
    except (TypeError, ValueError) as exc:
        raise ValidationError({"lines": [f"Expected (product_id, quantity), got {line!r}"]}) from exc
    return CartLine(product_id=str(product_id), quantity=quantity)


def _place(user_id, cart_lines, discount_code, shipping_info, from_cart=False) -> Order:
    shipping_info = shipping_info or {}
    command = PlaceOrder(
        user_id=user_id,
        lines=encode_lines(cart_lines),
        discount_code=discount_code,
        from_cart=from_cart,
        **{name: shipping_info.get(name) for name in _SHIPPING_FIELDS},
    )
    order_id = process(command)
    return current_domain.repository_for(Order).get(order_id)


@_reported
def create_order(user_id, cart_lines, discount_code=None, shipping_info=None) -> Order:
    """Place an order for explicit ``cart_lines``.

    Lines may be ``CartLine`` objects, ``{"product_id", "quantity"}`` dicts
    or ``(product_id, quantity)`` pairs.
    """
    lines = [_as_line(line) for line in cart_lines]
    return _place(user_id, lines, discount_code, shipping_info)


@_reported
def create_order_from_cart(user_id, discount_code=None, shipping_info=None) -> Order:
    """Place an order for everything in the user's cart, then empty the cart."""
    return _place(user_id, [], discount_code, shipping_info, from_cart=True)


@_reported
def evaluate_discount(code, amount, now=None) -> DiscountQuote:
    """Quote ``code`` against ``amount`` without recording a use."""
    return DiscountEvaluator().evaluate_code(code, Money.of(amount), now=now)


@_reported
def transition_order_status(order_id, status, admin_notes=None) -> Order:
    return _transition(order_id, status, admin_notes=admin_notes)


@_reported
def cancel_order(order_id, user_id) -> Order:
    """Cancel an order on behalf of its owner; other users see it as not found."""
    return _transition(order_id, "CANCELLED", requested_by=user_id)


def _transition(order_id, status, admin_notes=None, requested_by=None) -> Order:
    process(
        TransitionOrderStatus(
            order_id=order_id,
            status=status,
            admin_notes=admin_notes,
            requested_by=requested_by,
        )
    )
    return load_order(order_id)
