"""Cart item management: commands and handler.

Adding or resizing a line checks that the product is on sale and that the
requested quantity is currently in stock. Stock is not held by the cart;
it is only taken when an order is placed.
"""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.catalogue.management import load_product
from storefront.domain import storefront
from storefront.errors import InsufficientStock, ProductInactive


@storefront.command(part_of="Cart")
class AddCartItem:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="Cart")
class UpdateCartItem:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="Cart")
class RemoveCartItem:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="Cart")
class ClearCart:
    user_id = Identifier(required=True)


def _ensure_available(product_id, quantity):
    product = load_product(product_id)
    if not product.is_active:
        raise ProductInactive(str(product.id), product.name)
    if not product.has_stock(quantity):
        raise InsufficientStock(str(product.id), requested=quantity, available=product.stock_quantity)


@storefront.command_handler(part_of=Cart)
class CartItemsHandler:
    @handle(AddCartItem)
    def add_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id)

        existing = cart.line_for(command.product_id)
        requested = command.quantity + (existing.quantity if existing else 0)
        _ensure_available(command.product_id, requested)

        cart.add_item(command.product_id, command.quantity)
        repo.add(cart)
        return str(cart.id)

    @handle(UpdateCartItem)
    def update_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id)
        _ensure_available(command.product_id, command.quantity)
        cart.update_item_quantity(command.product_id, command.quantity)
        repo.add(cart)

    @handle(RemoveCartItem)
    def remove_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id)
        cart.remove_item(command.product_id)
        repo.add(cart)

    @handle(ClearCart)
    def clear(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.find_by_user(command.user_id)
        if cart is None or cart.is_empty:
            return
        cart.clear()
        repo.add(cart)
