"""Domain events for the Product aggregate."""

from protean.fields import Boolean, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductAdded:
    """A product was added to the catalogue."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    price = String(required=True)
    stock_quantity = Integer(required=True)


@storefront.event(part_of="Product")
class ProductPriceChanged:
    __version__ = 1

    product_id = Identifier(required=True)
    previous_price = String(required=True)
    new_price = String(required=True)


@storefront.event(part_of="Product")
class StockLevelChanged:
    """Stock moved because of a checkout, a cancellation or a restock."""

    __version__ = 1

    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    reason = String(required=True)


@storefront.event(part_of="Product")
class ProductAvailabilityChanged:
    __version__ = 1

    product_id = Identifier(required=True)
    is_active = Boolean(required=True)
