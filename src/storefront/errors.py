"""Checkout error taxonomy.

Every failure the engine reports is a ``StorefrontError`` with a stable
``code``, a human-readable ``message`` and a ``details`` mapping. The kind
(base class) decides how the API renders it.
"""

from typing import Any


class StorefrontError(Exception):
    code = "storefront_error"
    status_code = 500

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message, "details": self.details}


# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------
class InvalidInput(StorefrontError):
    code = "validation_error"
    status_code = 400


class NotFoundError(StorefrontError):
    code = "not_found"
    status_code = 404


class ConflictError(StorefrontError):
    code = "conflict"
    status_code = 409


class BusinessRuleViolation(StorefrontError):
    code = "business_rule_violation"
    status_code = 422


class InternalError(StorefrontError):
    code = "internal_error"
    status_code = 500


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------
class EmptyCart(InvalidInput):
    code = "empty_cart"

    def __init__(self) -> None:
        super().__init__("Cannot create an order from an empty cart")


class InvalidQuantity(InvalidInput):
    code = "invalid_quantity"

    def __init__(self, product_id: str, quantity: Any) -> None:
        super().__init__(
            f"Quantity must be a positive integer, got {quantity!r}",
            product_id=str(product_id),
            quantity=quantity,
        )


class InvalidMoney(InvalidInput):
    code = "invalid_money"

    def __init__(self, value: Any, reason: str) -> None:
        super().__init__(f"Invalid monetary value {value!r}: {reason}", value=str(value))


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------
class ProductNotFound(NotFoundError):
    code = "product_not_found"

    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product {product_id} not found", product_id=str(product_id))


class DiscountNotFound(NotFoundError):
    code = "discount_not_found"

    def __init__(self, code: str) -> None:
        super().__init__(f"Discount code {code} is not valid", discount_code=code)


class OrderNotFound(NotFoundError):
    code = "order_not_found"

    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order {order_id} not found", order_id=str(order_id))


class CartItemNotFound(NotFoundError):
    code = "cart_item_not_found"

    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product {product_id} is not in the cart", product_id=str(product_id))


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------
class InsufficientStock(ConflictError):
    code = "insufficient_stock"

    def __init__(self, product_id: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock for product {product_id}: {available} available, {requested} requested",
            product_id=str(product_id),
            requested=requested,
            available=available,
        )
        self.product_id = str(product_id)
        self.requested = requested
        self.available = available


class DiscountUsageExceeded(ConflictError):
    code = "discount_usage_exceeded"

    def __init__(self, code: str, usage_limit: int) -> None:
        super().__init__(
            f"Discount code {code} has reached its usage limit",
            discount_code=code,
            usage_limit=usage_limit,
        )


class InvalidStatusTransition(ConflictError):
    code = "invalid_status_transition"

    def __init__(self, from_status: str, to_status: str) -> None:
        super().__init__(
            f"Cannot change order status from {from_status} to {to_status}",
            from_status=from_status,
            to_status=to_status,
        )
        self.from_status = from_status
        self.to_status = to_status


class DuplicateDiscountCode(ConflictError):
    code = "duplicate_discount_code"

    def __init__(self, code: str) -> None:
        super().__init__(f"Discount code {code} already exists", discount_code=code)


class CheckoutBusy(ConflictError):
    code = "checkout_busy"

    def __init__(self, command: str, attempts: int) -> None:
        super().__init__(
            f"{command} kept conflicting with concurrent updates after {attempts} attempts",
            command=command,
            attempts=attempts,
        )


# ---------------------------------------------------------------------------
# Business rules
# ---------------------------------------------------------------------------
class ProductInactive(BusinessRuleViolation):
    code = "product_inactive"

    def __init__(self, product_id: str, name: str | None = None) -> None:
        label = name or product_id
        super().__init__(f"Product {label} is not available", product_id=str(product_id))


class DiscountExpired(BusinessRuleViolation):
    code = "discount_expired"

    def __init__(self, code: str, end_date) -> None:
        super().__init__(
            f"Discount code {code} has expired",
            discount_code=code,
            end_date=end_date.isoformat(),
        )


class DiscountNotYetActive(BusinessRuleViolation):
    code = "discount_not_yet_active"

    def __init__(self, code: str, start_date) -> None:
        super().__init__(
            f"Discount code {code} is not active yet",
            discount_code=code,
            start_date=start_date.isoformat(),
        )


class DiscountMinimumNotMet(BusinessRuleViolation):
    code = "discount_minimum_not_met"

    def __init__(self, code: str, minimum, order_amount) -> None:
        super().__init__(
            f"Order amount must be at least {minimum} to use discount code {code}",
            discount_code=code,
            min_order_amount=str(minimum),
            order_amount=str(order_amount),
        )
