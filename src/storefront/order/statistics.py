"""Order statistics for the admin dashboard and for a customer's history.

Revenue only counts delivered orders. The average order value divides that
revenue by the number of all orders, rounded half-up to the cent.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from protean.utils.globals import current_domain

from storefront.order.order import Order, OrderStatus
from storefront.shared.money import Money, round_half_up


@dataclass(frozen=True)
class OrderStatistics:
    total_orders: int
    counts_by_status: dict[str, int] = field(default_factory=dict)
    total_revenue: Money = field(default_factory=Money.zero)
    average_order_value: Money = field(default_factory=Money.zero)

    def count(self, status: OrderStatus) -> int:
        return self.counts_by_status.get(status.value, 0)


def summarize(orders) -> OrderStatistics:
    counts = {status.value: 0 for status in OrderStatus}
    revenue = Money.zero()
    for order in orders:
        counts[order.status] += 1
        if order.status == OrderStatus.DELIVERED.value:
            revenue = revenue.add(order.total_amount)

    total = sum(counts.values())
    average = Money.zero()
    if total:
        average = Money(minor_units=round_half_up(Decimal(revenue.minor_units) / total))

    return OrderStatistics(
        total_orders=total,
        counts_by_status=counts,
        total_revenue=revenue,
        average_order_value=average,
    )


def order_statistics(user_id=None) -> OrderStatistics:
    """Statistics over every order, or over one user's orders."""
    repo = current_domain.repository_for(Order)
    orders = repo.find_by_user(user_id) if user_id is not None else repo.find_all()
    return summarize(orders)
