"""FastAPI routes for the storefront: products, discounts, carts and orders."""

from fastapi import APIRouter
from protean.utils.globals import current_domain

from storefront.api.identity import AdminCaller, CurrentCaller
from storefront.api.schemas import (
    AddCartItemRequest,
    AddProductRequest,
    CartItemResponse,
    CartResponse,
    CartTotalResponse,
    ChangePriceRequest,
    ChangeStatusRequest,
    CheckoutRequest,
    CreateDiscountRequest,
    CreateOrderRequest,
    DiscountIdResponse,
    DiscountResponse,
    DiscountUsageResponse,
    DiscountUsageStatsResponse,
    DiscountValidationResponse,
    OrderItemResponse,
    OrderResponse,
    OrderStatisticsResponse,
    ProductIdResponse,
    ProductResponse,
    RestockRequest,
    StatusResponse,
    UpdateCartItemRequest,
    ValidateDiscountRequest,
)
from storefront.cart.aggregator import CartAggregator
from storefront.cart.cart import Cart
from storefront.cart.items import AddCartItem, ClearCart, RemoveCartItem, UpdateCartItem
from storefront.catalogue.management import (
    ActivateProduct,
    AddProduct,
    ChangeProductPrice,
    DeactivateProduct,
    find_product,
    load_product,
    restock_product,
)
from storefront.discount.discount import Discount
from storefront.discount.management import ActivateDiscount, DeactivateDiscount, create_discount
from storefront.discount.reports import available_discounts, usage_records, usage_stats, user_usage_records
from storefront.dispatch import process
from storefront.errors import (
    DiscountNotFound,
    InternalError,
    OrderNotFound,
    ProductInactive,
    ProductNotFound,
    StorefrontError,
)
from storefront.order.checkout import (
    cancel_order,
    create_order,
    create_order_from_cart,
    evaluate_discount,
    transition_order_status,
)
from storefront.order.order import Order
from storefront.order.statistics import order_statistics
from storefront.order.status import load_order, parse_status


# ---------------------------------------------------------------------------
# Serializers
# ---------------------------------------------------------------------------
def _product_response(product) -> ProductResponse:
    return ProductResponse(
        product_id=str(product.id),
        name=product.name,
        description=product.description,
        price=str(product.price),
        stock_quantity=product.stock_quantity,
        is_active=product.is_active,
    )


def _cart_subtotal(cart) -> str | None:
    try:
        return str(CartAggregator().subtotal(cart.lines(), find_product))
    except (ProductInactive, ProductNotFound):
        return None


def _cart_response(user_id, cart) -> CartResponse:
    if cart is None:
        return CartResponse(user_id=str(user_id))
    return CartResponse(
        user_id=str(user_id),
        items=[CartItemResponse(product_id=str(i.product_id), quantity=i.quantity) for i in cart.items],
        item_count=cart.item_count,
        total_items=cart.total_items,
        is_empty=cart.is_empty,
        subtotal=_cart_subtotal(cart),
    )


def _discount_response(discount) -> DiscountResponse:
    return DiscountResponse(
        code=discount.code,
        description=discount.description,
        discount_type=discount.discount_type,
        value=str(discount.value),
        min_order_amount=str(discount.minimum),
        max_discount_amount=str(discount.max_discount_amount) if discount.max_discount_amount else None,
        usage_limit=discount.usage_limit,
        usage_count=discount.usage_count or 0,
        remaining_usage=discount.remaining_usage,
        start_date=discount.start_date,
        end_date=discount.end_date,
        is_active=discount.is_active,
        created_at=discount.created_at,
        updated_at=discount.updated_at,
    )


def _usage_response(record) -> DiscountUsageResponse:
    return DiscountUsageResponse(
        code=record.code,
        user_id=record.user_id,
        order_id=record.order_id,
        discount_amount=str(record.discount_amount),
        used_at=record.used_at,
    )


def _order_response(order) -> OrderResponse:
    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        user_id=str(order.user_id),
        status=order.status,
        items=[
            OrderItemResponse(
                product_id=str(item.product_id),
                product_name=item.product_name,
                unit_price=str(item.unit_price),
                quantity=item.quantity,
                line_subtotal=str(item.line_subtotal),
            )
            for item in order.items
        ],
        subtotal=str(order.subtotal),
        discount_code=order.discount_code,
        discount_amount=str(order.discount_amount),
        total_amount=str(order.total_amount),
        shipping_address=order.shipping_address,
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        phone_number=order.phone_number,
        notes=order.notes,
        admin_notes=order.admin_notes,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def add_product(body: AddProductRequest, caller: AdminCaller) -> ProductIdResponse:
    command = AddProduct(
        name=body.name,
        price=str(body.price),
        stock_quantity=body.stock_quantity,
        description=body.description,
    )
    result = process(command)
    return ProductIdResponse(product_id=result)


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str, caller: CurrentCaller) -> ProductResponse:
    return _product_response(load_product(product_id))


@product_router.put("/{product_id}/price", response_model=StatusResponse)
async def change_price(product_id: str, body: ChangePriceRequest, caller: AdminCaller) -> StatusResponse:
    process(ChangeProductPrice(product_id=product_id, price=str(body.price)))
    return StatusResponse()


@product_router.put("/{product_id}/stock", response_model=StatusResponse)
async def restock(product_id: str, body: RestockRequest, caller: AdminCaller) -> StatusResponse:
    restock_product(product_id, body.quantity)
    return StatusResponse()


@product_router.put("/{product_id}/activate", response_model=StatusResponse)
async def activate_product(product_id: str, caller: AdminCaller) -> StatusResponse:
    process(ActivateProduct(product_id=product_id))
    return StatusResponse()


@product_router.put("/{product_id}/deactivate", response_model=StatusResponse)
async def deactivate_product(product_id: str, caller: AdminCaller) -> StatusResponse:
    process(DeactivateProduct(product_id=product_id))
    return StatusResponse()


# ---------------------------------------------------------------------------
# Discount Router
# ---------------------------------------------------------------------------
discount_router = APIRouter(prefix="/discounts", tags=["discounts"])


@discount_router.post("", status_code=201, response_model=DiscountIdResponse)
async def add_discount(body: CreateDiscountRequest, caller: AdminCaller) -> DiscountIdResponse:
    discount_id = create_discount(
        code=body.code,
        discount_type=body.discount_type,
        value=str(body.value),
        description=body.description,
        min_order_amount=str(body.min_order_amount) if body.min_order_amount is not None else None,
        max_discount_amount=str(body.max_discount_amount) if body.max_discount_amount is not None else None,
        usage_limit=body.usage_limit,
        start_date=body.start_date,
        end_date=body.end_date,
        is_active=body.is_active,
    )
    return DiscountIdResponse(discount_id=discount_id)


def _load_discount(code: str, caller) -> Discount:
    """Inactive codes are only visible to admins."""
    discount = current_domain.repository_for(Discount).find_by_code(code)
    if discount is None or (not discount.is_active and not caller.is_admin):
        raise DiscountNotFound(code)
    return discount


@discount_router.get("/active", response_model=list[DiscountResponse])
async def list_active_discounts(caller: CurrentCaller) -> list[DiscountResponse]:
    return [_discount_response(discount) for discount in available_discounts()]


@discount_router.get("/code/{code}", response_model=DiscountResponse)
async def get_discount(code: str, caller: CurrentCaller) -> DiscountResponse:
    return _discount_response(_load_discount(code, caller))


@discount_router.get("/user/{user_id}/usages", response_model=list[DiscountUsageResponse])
async def list_user_usages(user_id: str, caller: AdminCaller) -> list[DiscountUsageResponse]:
    return [_usage_response(record) for record in user_usage_records(user_id)]


@discount_router.get("/{code}/usages", response_model=list[DiscountUsageResponse])
async def list_usages(code: str, caller: AdminCaller) -> list[DiscountUsageResponse]:
    return [_usage_response(record) for record in usage_records(_load_discount(code, caller))]


@discount_router.get("/{code}/stats", response_model=DiscountUsageStatsResponse)
async def discount_stats(code: str, caller: AdminCaller) -> DiscountUsageStatsResponse:
    stats = usage_stats(_load_discount(code, caller))
    return DiscountUsageStatsResponse(
        code=stats.code,
        total_usages=stats.total_usages,
        total_discount_amount=str(stats.total_discount_amount),
        usage_count=stats.usage_count,
        usage_limit=stats.usage_limit,
        remaining_usage=stats.remaining_usage,
    )


@discount_router.put("/{code}/activate", response_model=StatusResponse)
async def activate_discount(code: str, caller: AdminCaller) -> StatusResponse:
    process(ActivateDiscount(code=code))
    return StatusResponse()


@discount_router.put("/{code}/deactivate", response_model=StatusResponse)
async def deactivate_discount(code: str, caller: AdminCaller) -> StatusResponse:
    process(DeactivateDiscount(code=code))
    return StatusResponse()


@discount_router.post("/validate", response_model=DiscountValidationResponse)
async def validate_discount(body: ValidateDiscountRequest, caller: CurrentCaller) -> DiscountValidationResponse:
    """Preview a code against an amount. Rejections come back as ``valid=false``."""
    code = body.code.strip().upper()
    try:
        quote = evaluate_discount(body.code, body.order_amount)
    except InternalError:
        raise
    except StorefrontError as exc:
        return DiscountValidationResponse(valid=False, code=code, message=exc.message, error=exc.code)

    return DiscountValidationResponse(
        valid=True,
        code=quote.code,
        message="Discount code is valid",
        discount_type=quote.discount_type,
        discount_value=str(quote.value),
        calculated_discount_amount=str(quote.discount_amount),
        final_amount=str(quote.final_amount),
        min_order_amount=str(quote.min_order_amount),
        max_discount_amount=str(quote.max_discount_amount) if quote.max_discount_amount is not None else None,
        usage_limit=quote.usage_limit,
        usage_count=quote.usage_count,
        remaining_usage=quote.remaining_usage,
        description=quote.description,
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(caller: CurrentCaller) -> CartResponse:
    cart = current_domain.repository_for(Cart).find_by_user(caller.user_id)
    return _cart_response(caller.user_id, cart)


@cart_router.get("/total", response_model=CartTotalResponse)
async def get_cart_total(caller: CurrentCaller) -> CartTotalResponse:
    """What checkout would charge before discounts; unavailable products are errors here."""
    cart = current_domain.repository_for(Cart).find_by_user(caller.user_id)
    lines = cart.lines() if cart is not None else []
    subtotal = CartAggregator().subtotal(lines, find_product)
    return CartTotalResponse(
        user_id=str(caller.user_id),
        total_items=cart.total_items if cart is not None else 0,
        subtotal=str(subtotal),
    )


@cart_router.post("/items", response_model=CartResponse)
async def add_cart_item(body: AddCartItemRequest, caller: CurrentCaller) -> CartResponse:
    command = AddCartItem(user_id=caller.user_id, product_id=body.product_id, quantity=body.quantity)
    process(command)
    return await get_cart(caller)


@cart_router.put("/items/{product_id}", response_model=CartResponse)
async def update_cart_item(product_id: str, body: UpdateCartItemRequest, caller: CurrentCaller) -> CartResponse:
    command = UpdateCartItem(user_id=caller.user_id, product_id=product_id, quantity=body.quantity)
    process(command)
    return await get_cart(caller)


@cart_router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(product_id: str, caller: CurrentCaller) -> CartResponse:
    process(RemoveCartItem(user_id=caller.user_id, product_id=product_id))
    return await get_cart(caller)


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(caller: CurrentCaller) -> CartResponse:
    process(ClearCart(user_id=caller.user_id))
    return await get_cart(caller)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


def _shipping_info(body) -> dict:
    return body.model_dump(include={"shipping_address", "customer_name", "customer_email", "phone_number", "notes"})


@order_router.post("", status_code=201, response_model=OrderResponse)
async def place_order(body: CreateOrderRequest, caller: CurrentCaller) -> OrderResponse:
    order = create_order(
        caller.user_id,
        [line.model_dump() for line in body.items],
        discount_code=body.discount_code,
        shipping_info=_shipping_info(body),
    )
    return _order_response(order)


@order_router.post("/checkout", status_code=201, response_model=OrderResponse)
async def checkout(body: CheckoutRequest, caller: CurrentCaller) -> OrderResponse:
    order = create_order_from_cart(
        caller.user_id,
        discount_code=body.discount_code,
        shipping_info=_shipping_info(body),
    )
    return _order_response(order)


@order_router.get("", response_model=list[OrderResponse])
async def list_orders(caller: CurrentCaller, status: str | None = None) -> list[OrderResponse]:
    """The caller's orders, newest first. Admins filtering by ``status`` see every customer's."""
    repo = current_domain.repository_for(Order)
    if status is None:
        orders = repo.find_by_user(caller.user_id)
    else:
        wanted = parse_status(status).value
        if caller.is_admin:
            orders = sorted(repo.find_by_status(wanted), key=lambda order: order.created_at, reverse=True)
        else:
            orders = [order for order in repo.find_by_user(caller.user_id) if order.status == wanted]
    return [_order_response(order) for order in orders]


@order_router.get("/statistics", response_model=OrderStatisticsResponse)
async def statistics(caller: AdminCaller) -> OrderStatisticsResponse:
    stats = order_statistics()
    return OrderStatisticsResponse(
        total_orders=stats.total_orders,
        counts_by_status=stats.counts_by_status,
        total_revenue=str(stats.total_revenue),
        average_order_value=str(stats.average_order_value),
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, caller: CurrentCaller) -> OrderResponse:
    order = load_order(order_id)
    if not caller.is_admin and not order.is_owned_by(caller.user_id):
        raise OrderNotFound(order_id)
    return _order_response(order)


@order_router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel(order_id: str, caller: CurrentCaller) -> OrderResponse:
    return _order_response(cancel_order(order_id, caller.user_id))


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def change_status(order_id: str, body: ChangeStatusRequest, caller: AdminCaller) -> OrderResponse:
    order = transition_order_status(order_id, body.status, admin_notes=body.admin_notes)
    return _order_response(order)
