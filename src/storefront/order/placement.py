"""Order placement: command and handler."""

import json

from protean import handle
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.cart.aggregator import CartLine
from storefront.cart.cart import Cart
from storefront.domain import storefront
from storefront.order.assembler import OrderAssembler
from storefront.order.order import Order


@storefront.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    lines = Text()  # JSON: list of {product_id, quantity}; unused when from_cart
    discount_code = String(max_length=50)
    shipping_address = String(max_length=500)
    customer_name = String(max_length=100)
    customer_email = String(max_length=255)
    phone_number = String(max_length=15)
    notes = String(max_length=1000)
    from_cart = Boolean(default=False)


def encode_lines(cart_lines) -> str:
    return json.dumps([{"product_id": str(line.product_id), "quantity": line.quantity} for line in cart_lines])


def decode_lines(lines) -> list[CartLine]:
    data = json.loads(lines) if isinstance(lines, str) else lines
    return [CartLine(product_id=str(line["product_id"]), quantity=line["quantity"]) for line in data]


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        cart = None
        if command.from_cart:
            # Read in this unit of work: clearing it below is version-checked,
            # so a concurrent cart edit makes this attempt conflict and re-run.
            cart = current_domain.repository_for(Cart).find_by_user(command.user_id)
            cart_lines = cart.lines() if cart else []
        else:
            cart_lines = decode_lines(command.lines or "[]")

        order = OrderAssembler().assemble(
            user_id=command.user_id,
            cart_lines=cart_lines,
            discount_code=command.discount_code,
            shipping_info={
                "shipping_address": command.shipping_address,
                "customer_name": command.customer_name,
                "customer_email": command.customer_email,
                "phone_number": command.phone_number,
                "notes": command.notes,
            },
        )

        if cart is not None:
            cart.clear()
            current_domain.repository_for(Cart).add(cart)

        return str(order.id)
