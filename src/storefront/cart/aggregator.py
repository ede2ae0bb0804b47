"""Cart aggregation: price a list of cart lines against the live catalogue.

Unit prices are snapshotted from the product at the moment of aggregation,
so later price changes never alter a priced cart. Lines for the same product
are merged, keeping the position of the first one.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from storefront.errors import EmptyCart, InvalidQuantity, ProductInactive, ProductNotFound
from storefront.shared.money import Money


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class PricedLine:
    product_id: str
    product_name: str
    unit_price: Money
    quantity: int

    @property
    def line_subtotal(self) -> Money:
        return self.unit_price.multiply(self.quantity)


@dataclass(frozen=True)
class PricedCart:
    lines: tuple[PricedLine, ...]

    @property
    def subtotal(self) -> Money:
        return Money.total(line.line_subtotal for line in self.lines)

    @property
    def quantities(self) -> dict[str, int]:
        return {line.product_id: line.quantity for line in self.lines}


def _valid_quantity(quantity) -> bool:
    return isinstance(quantity, int) and not isinstance(quantity, bool) and quantity >= 1


def merge_lines(cart_lines: Iterable[CartLine]) -> list[CartLine]:
    """Validate quantities and merge duplicate products."""
    merged: dict[str, int] = {}
    for line in cart_lines:
        if not _valid_quantity(line.quantity):
            raise InvalidQuantity(line.product_id, line.quantity)
        product_id = str(line.product_id)
        merged[product_id] = merged.get(product_id, 0) + line.quantity
    return [CartLine(product_id=product_id, quantity=quantity) for product_id, quantity in merged.items()]


class CartAggregator:
    def build(self, cart_lines: Iterable[CartLine], product_lookup: Callable) -> PricedCart:
        """Price ``cart_lines``; ``product_lookup(product_id)`` returns a Product or None."""
        lines = merge_lines(cart_lines)
        if not lines:
            raise EmptyCart()

        priced = []
        for line in lines:
            product = product_lookup(line.product_id)
            if product is None:
                raise ProductNotFound(line.product_id)
            if not product.is_active:
                raise ProductInactive(line.product_id, product.name)
            priced.append(
                PricedLine(
                    product_id=line.product_id,
                    product_name=product.name,
                    unit_price=product.price,
                    quantity=line.quantity,
                )
            )
        return PricedCart(lines=tuple(priced))

    def subtotal(self, cart_lines: Iterable[CartLine], product_lookup: Callable) -> Money:
        """The subtotal checkout would charge for ``cart_lines``; zero for no lines."""
        lines = list(cart_lines)
        if not lines:
            return Money.zero()
        return self.build(lines, product_lookup).subtotal
