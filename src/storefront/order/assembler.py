"""Order assembly: turn cart lines and an optional discount code into an Order.

Steps, in order:

1. price the cart lines (``CartAggregator``)
2. evaluate the discount code against the subtotal (``DiscountEvaluator``)
3. total = subtotal - discount, never below zero
4. take the stock (``StockReservation``)
5. redeem the discount code
6. persist the PENDING order

Each step that changes state registers a compensation. When a later step
fails, the compensations run newest first and the original error is raised
again, so no partial order, stock movement or usage count survives. Inside a
command handler the unit of work rolls back as well.
"""

from collections.abc import Callable
from dataclasses import dataclass

from protean.utils.globals import current_domain

from storefront.cart.aggregator import CartAggregator
from storefront.catalogue.management import find_product
from storefront.discount.discount import Discount
from storefront.discount.evaluator import DiscountEvaluator
from storefront.domain import logger
from storefront.inventory.reservation import StockReservation
from storefront.order.order import Order
from storefront.shared.money import Money


@dataclass
class Compensation:
    name: str
    action: Callable[[], None]


class OrderAssembler:
    def __init__(self, aggregator=None, evaluator=None, reservation=None):
        self.aggregator = aggregator or CartAggregator()
        self.evaluator = evaluator or DiscountEvaluator()
        self.reservation = reservation or StockReservation()

    def assemble(self, user_id, cart_lines, discount_code=None, shipping_info=None, now=None) -> Order:
        priced_cart = self.aggregator.build(cart_lines, find_product)

        discount = None
        discount_amount = Money.zero()
        code = discount_code.strip() if discount_code else None
        if code:
            discount = current_domain.repository_for(Discount).find_by_code(code)
            quote = self.evaluator.evaluate(discount, priced_cart.subtotal, now=now, code=code)
            discount_amount = quote.discount_amount

        compensations: list[Compensation] = []
        try:
            token = self.reservation.reserve(priced_cart.quantities.items())
            compensations.append(
                Compensation("release_stock", lambda: self.reservation.release(token, reason="checkout_aborted"))
            )

            order = Order.create(
                user_id=user_id,
                priced_cart=priced_cart,
                discount_amount=discount_amount,
                discount_code=discount.code if discount else None,
                shipping_info=shipping_info,
                reservation_id=token.reservation_id,
            )

            if discount is not None:
                discount.redeem(user_id, order.id, discount_amount)
                current_domain.repository_for(Discount).add(discount)
                compensations.append(
                    Compensation("revoke_discount_usage", lambda: self._revoke_usage(discount.code, order.id))
                )
                logger.info(
                    "Discount redeemed",
                    code=discount.code,
                    order_id=str(order.id),
                    usage_count=discount.usage_count,
                )

            current_domain.repository_for(Order).add(order)
        except Exception as exc:
            self._compensate(compensations, exc)
            raise

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=str(user_id),
            subtotal=str(order.subtotal),
            discount_code=order.discount_code,
            discount_amount=str(order.discount_amount),
            total_amount=str(order.total_amount),
        )
        return order

    def _revoke_usage(self, code, order_id):
        repo = current_domain.repository_for(Discount)
        discount = repo.find_by_code(code)
        if discount is not None:
            discount.revoke_usage(order_id)
            repo.add(discount)

    def _compensate(self, compensations, error):
        names = [step.name for step in reversed(compensations)]
        logger.warning("Checkout aborted", error=type(error).__name__, compensations=names)
        for step in reversed(compensations):
            try:
                step.action()
            except Exception:
                # Keep unwinding; the original error is what the caller sees
                logger.exception("Compensation failed", compensation=step.name)
