"""Discount evaluation: decide whether a code applies and how much it takes off.

Checks run in a fixed order and the first failure wins:

1. the code exists and is active
2. ``now`` falls inside the validity window (bounds inclusive)
3. the usage limit has not been reached
4. the order amount meets the minimum

Evaluation never changes the Discount. Redemption happens separately when an
order commits.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from protean.utils.globals import current_domain

from storefront.discount.discount import Discount, DiscountType, normalize_code
from storefront.errors import (
    DiscountExpired,
    DiscountMinimumNotMet,
    DiscountNotFound,
    DiscountNotYetActive,
    DiscountUsageExceeded,
)
from storefront.shared.clock import as_utc, utcnow
from storefront.shared.money import Money


@dataclass(frozen=True)
class DiscountQuote:
    code: str
    discount_type: str
    value: Decimal
    order_amount: Money
    discount_amount: Money
    final_amount: Money
    min_order_amount: Money
    max_discount_amount: Money | None
    usage_limit: int | None
    usage_count: int
    remaining_usage: int | None
    description: str | None = None


class DiscountEvaluator:
    def evaluate(
        self,
        discount: Discount | None,
        order_amount: Money,
        now: datetime | None = None,
        code: str | None = None,
    ) -> DiscountQuote:
        if discount is None or not discount.is_active:
            raise DiscountNotFound(discount.code if discount else normalize_code(code or ""))

        now = as_utc(now) if now is not None else utcnow()
        if not discount.has_started(now):
            raise DiscountNotYetActive(discount.code, as_utc(discount.start_date))
        if discount.has_expired(now):
            raise DiscountExpired(discount.code, as_utc(discount.end_date))

        if not discount.can_be_used():
            raise DiscountUsageExceeded(discount.code, discount.usage_limit)

        if order_amount < discount.minimum:
            raise DiscountMinimumNotMet(discount.code, discount.minimum, order_amount)

        discount_amount = self.compute(discount, order_amount)
        return DiscountQuote(
            code=discount.code,
            discount_type=discount.discount_type,
            value=discount.value,
            order_amount=order_amount,
            discount_amount=discount_amount,
            final_amount=order_amount.subtract(discount_amount).max(Money.zero()),
            min_order_amount=discount.minimum,
            max_discount_amount=discount.max_discount_amount,
            usage_limit=discount.usage_limit,
            usage_count=discount.usage_count or 0,
            remaining_usage=discount.remaining_usage,
            description=discount.description,
        )

    def compute(self, discount: Discount, order_amount: Money) -> Money:
        """Discount amount for ``order_amount``, never more than the order itself."""
        if DiscountType(discount.discount_type) == DiscountType.PERCENTAGE:
            amount = order_amount.percentage(discount.value)
            if discount.max_discount_amount is not None:
                amount = amount.min(discount.max_discount_amount)
        else:
            amount = Money.of(discount.value.quantize(Decimal("0.01")))
        return amount.min(order_amount).max(Money.zero())

    def evaluate_code(self, code: str, order_amount: Money, now: datetime | None = None) -> DiscountQuote:
        """Look the code up and evaluate it against ``order_amount``."""
        discount = current_domain.repository_for(Discount).find_by_code(code)
        return self.evaluate(discount, order_amount, now=now, code=code)
