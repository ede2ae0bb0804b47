"""Pydantic request/response schemas for the storefront API.

These are external contracts, kept separate from the internal Protean
commands. Monetary amounts are decimal strings in responses ("12.30").
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class ShippingInfo(BaseModel):
    shipping_address: str | None = Field(default=None, max_length=500)
    customer_name: str | None = Field(default=None, max_length=100)
    customer_email: str | None = Field(default=None, max_length=255)
    phone_number: str | None = Field(default=None, max_length=15)
    notes: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
class AddProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    price: Decimal = Field(ge=0, decimal_places=2)
    stock_quantity: int = Field(ge=0, default=0)
    description: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Honeycrisp Apple",
                    "price": "1.25",
                    "stock_quantity": 120,
                    "description": "Crisp and sweet",
                }
            ]
        }
    }


class ChangePriceRequest(BaseModel):
    price: Decimal = Field(ge=0, decimal_places=2)


class RestockRequest(BaseModel):
    quantity: int = Field(ge=1)


class ProductIdResponse(BaseModel):
    product_id: str


class ProductResponse(BaseModel):
    product_id: str
    name: str
    description: str | None = None
    price: str
    stock_quantity: int
    is_active: bool


# ---------------------------------------------------------------------------
# Discounts
# ---------------------------------------------------------------------------
class CreateDiscountRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    discount_type: str = Field(pattern="^(PERCENTAGE|FIXED_AMOUNT)$")
    value: Decimal = Field(gt=0, decimal_places=2)
    description: str | None = None
    min_order_amount: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    max_discount_amount: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    usage_limit: int | None = Field(default=None, ge=0)
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool = True


class DiscountIdResponse(BaseModel):
    discount_id: str


class ValidateDiscountRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    order_amount: Decimal = Field(ge=0, decimal_places=2)


class DiscountValidationResponse(BaseModel):
    valid: bool
    code: str
    message: str
    error: str | None = None
    discount_type: str | None = None
    discount_value: str | None = None
    calculated_discount_amount: str | None = None
    final_amount: str | None = None
    min_order_amount: str | None = None
    max_discount_amount: str | None = None
    usage_limit: int | None = None
    usage_count: int | None = None
    remaining_usage: int | None = None
    description: str | None = None


class DiscountResponse(BaseModel):
    code: str
    description: str | None = None
    discount_type: str
    value: str
    min_order_amount: str
    max_discount_amount: str | None = None
    usage_limit: int | None = None
    usage_count: int
    remaining_usage: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DiscountUsageResponse(BaseModel):
    code: str
    user_id: str
    order_id: str
    discount_amount: str
    used_at: datetime


class DiscountUsageStatsResponse(BaseModel):
    code: str
    total_usages: int
    total_discount_amount: str
    usage_count: int
    usage_limit: int | None = None
    remaining_usage: int | None = None


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(ge=1)


class CartItemResponse(BaseModel):
    product_id: str
    quantity: int


class CartResponse(BaseModel):
    user_id: str
    items: list[CartItemResponse] = []
    item_count: int = 0
    total_items: int = 0
    is_empty: bool = True
    # None while a line cannot be checked out (product missing or inactive)
    subtotal: str | None = "0.00"


class CartTotalResponse(BaseModel):
    user_id: str
    total_items: int
    subtotal: str


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderLineRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)


class CreateOrderRequest(ShippingInfo):
    items: list[OrderLineRequest] = Field(min_length=1)
    discount_code: str | None = Field(default=None, max_length=50)


class CheckoutRequest(ShippingInfo):
    discount_code: str | None = Field(default=None, max_length=50)


class ChangeStatusRequest(BaseModel):
    status: str
    admin_notes: str | None = None


class OrderItemResponse(BaseModel):
    product_id: str
    product_name: str
    unit_price: str
    quantity: int
    line_subtotal: str


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    user_id: str
    status: str
    items: list[OrderItemResponse]
    subtotal: str
    discount_code: str | None = None
    discount_amount: str
    total_amount: str
    shipping_address: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    phone_number: str | None = None
    notes: str | None = None
    admin_notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderStatisticsResponse(BaseModel):
    total_orders: int
    counts_by_status: dict[str, int]
    total_revenue: str
    average_order_value: str
