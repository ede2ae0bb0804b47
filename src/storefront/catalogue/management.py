"""Catalogue management: commands and handler for products."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.dispatch import process
from storefront.domain import logger, storefront
from storefront.errors import ProductNotFound


@storefront.command(part_of="Product")
class AddProduct:
    name = String(required=True, max_length=200)
    price = String(required=True, max_length=20)  # Decimal string, e.g. "12.50"
    stock_quantity = Integer(default=0, min_value=0)
    description = Text()


@storefront.command(part_of="Product")
class ChangeProductPrice:
    product_id = Identifier(required=True)
    price = String(required=True, max_length=20)


@storefront.command(part_of="Product")
class RestockProduct:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="Product")
class ActivateProduct:
    product_id = Identifier(required=True)


@storefront.command(part_of="Product")
class DeactivateProduct:
    product_id = Identifier(required=True)


def load_product(product_id) -> Product:
    try:
        return current_domain.repository_for(Product).get(product_id)
    except ObjectNotFoundError as exc:
        raise ProductNotFound(product_id) from exc


def find_product(product_id) -> Product | None:
    try:
        return current_domain.repository_for(Product).get(product_id)
    except ObjectNotFoundError:
        return None


@storefront.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(AddProduct)
    def add_product(self, command):
        product = Product.create(
            name=command.name,
            price=command.price,
            stock_quantity=command.stock_quantity or 0,
            description=command.description,
        )
        current_domain.repository_for(Product).add(product)
        logger.info("Product added", product_id=str(product.id), price=str(product.price))
        return str(product.id)

    @handle(ChangeProductPrice)
    def change_price(self, command):
        product = load_product(command.product_id)
        product.change_price(command.price)
        current_domain.repository_for(Product).add(product)

    @handle(RestockProduct)
    def restock(self, command):
        product = load_product(command.product_id)
        product.restock(command.quantity)
        current_domain.repository_for(Product).add(product)
        logger.info("Product restocked", product_id=str(product.id), stock_quantity=product.stock_quantity)

    @handle(ActivateProduct)
    def activate(self, command):
        product = load_product(command.product_id)
        product.activate()
        current_domain.repository_for(Product).add(product)

    @handle(DeactivateProduct)
    def deactivate(self, command):
        product = load_product(command.product_id)
        product.deactivate()
        current_domain.repository_for(Product).add(product)


def restock_product(product_id, quantity):
    """Restock; a concurrent checkout on the same product makes one of them retry."""
    process(RestockProduct(product_id=product_id, quantity=quantity))
