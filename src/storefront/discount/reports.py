"""Read-side views of discount codes: what is on offer and how codes were used."""

from dataclasses import dataclass
from datetime import datetime

from protean.utils.globals import current_domain

from storefront.discount.discount import Discount
from storefront.shared.clock import as_utc, utcnow
from storefront.shared.money import Money


@dataclass(frozen=True)
class UsageRecord:
    code: str
    user_id: str
    order_id: str
    discount_amount: Money
    used_at: datetime


@dataclass(frozen=True)
class DiscountUsageStats:
    code: str
    total_usages: int
    total_discount_amount: Money
    usage_count: int
    usage_limit: int | None
    remaining_usage: int | None


def _record(discount, usage) -> UsageRecord:
    return UsageRecord(
        code=discount.code,
        user_id=str(usage.user_id),
        order_id=str(usage.order_id),
        discount_amount=usage.discount_amount,
        used_at=as_utc(usage.used_at),
    )


def _newest_first(records) -> list[UsageRecord]:
    return sorted(records, key=lambda record: record.used_at, reverse=True)


def available_discounts(now=None) -> list[Discount]:
    """Active codes whose window contains ``now`` and that still have uses left."""
    now = as_utc(now) if now is not None else utcnow()
    return [
        discount
        for discount in current_domain.repository_for(Discount).active()
        if discount.has_started(now) and not discount.has_expired(now) and discount.can_be_used()
    ]


def usage_records(discount: Discount) -> list[UsageRecord]:
    return _newest_first(_record(discount, usage) for usage in discount.usages)


def user_usage_records(user_id) -> list[UsageRecord]:
    """Every recorded use of any code by ``user_id``."""
    user_id = str(user_id)
    return _newest_first(
        _record(discount, usage)
        for discount in current_domain.repository_for(Discount).find_all()
        for usage in discount.usages
        if str(usage.user_id) == user_id
    )


def usage_stats(discount: Discount) -> DiscountUsageStats:
    return DiscountUsageStats(
        code=discount.code,
        total_usages=len(discount.usages),
        total_discount_amount=Money.total(usage.discount_amount for usage in discount.usages),
        usage_count=discount.usage_count,
        usage_limit=discount.usage_limit,
        remaining_usage=discount.remaining_usage,
    )
