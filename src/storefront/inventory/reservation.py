"""Stock reservation: take stock for a whole order, or none of it.

Every requested quantity is compared with the current stock before any
product is touched, so a shortfall on the last line leaves the first lines
untouched. The decrements are saved with each product's version, so a
reservation that raced another writer fails on commit instead of overselling.
"""

from dataclasses import dataclass, field
from uuid import uuid4

from protean.utils.globals import current_domain

from storefront.catalogue.management import load_product
from storefront.catalogue.product import Product
from storefront.domain import logger
from storefront.errors import InsufficientStock, InvalidQuantity


@dataclass(frozen=True)
class ReservationToken:
    """Proof of a reservation: which products lost how many units."""

    quantities: tuple[tuple[str, int], ...]
    reservation_id: str = field(default_factory=lambda: str(uuid4()))

    @classmethod
    def for_order(cls, order) -> "ReservationToken":
        return cls(
            quantities=tuple((str(item.product_id), item.quantity) for item in order.items),
            reservation_id=order.reservation_id or str(uuid4()),
        )


class StockReservation:
    def reserve(self, items, reason="checkout") -> ReservationToken:
        """Decrement stock for ``items``, an iterable of (product_id, quantity)."""
        totals: dict[str, int] = {}
        for product_id, quantity in items:
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                raise InvalidQuantity(product_id, quantity)
            totals[str(product_id)] = totals.get(str(product_id), 0) + quantity
        requested = list(totals.items())
        repo = current_domain.repository_for(Product)

        products = {}
        for product_id, quantity in requested:
            product = load_product(product_id)
            products[product_id] = product
            if not product.has_stock(quantity):
                logger.info(
                    "Stock reservation refused",
                    product_id=product_id,
                    requested=quantity,
                    available=product.stock_quantity,
                )
                raise InsufficientStock(product_id, requested=quantity, available=product.stock_quantity)

        for product_id, quantity in requested:
            product = products[product_id]
            product.withdraw_stock(quantity, reason=reason)
            repo.add(product)

        token = ReservationToken(quantities=tuple(requested))
        logger.info("Stock reserved", reservation_id=token.reservation_id, lines=len(requested))
        return token

    def release(self, token: ReservationToken, reason="release") -> None:
        """Give back every unit taken by ``token``."""
        repo = current_domain.repository_for(Product)
        for product_id, quantity in token.quantities:
            product = load_product(product_id)
            product.return_stock(quantity, reason=reason)
            repo.add(product)
        logger.info("Stock released", reservation_id=token.reservation_id, lines=len(token.quantities))
