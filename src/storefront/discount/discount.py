"""Discount aggregate: a redeemable code with a validity window and usage cap.

Codes are case-insensitive and stored upper-cased. ``value`` is a percentage
for PERCENTAGE discounts and an amount for FIXED_AMOUNT ones; it is kept in
hundredths so values like 12.5% stay exact.

Every committed order that applied the code leaves a ``DiscountUsage``
record, and ``usage_count`` always equals the number of those records.
"""

from decimal import Decimal, InvalidOperation
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront.discount.events import (
    DiscountAvailabilityChanged,
    DiscountCreated,
    DiscountRedeemed,
    DiscountUsageRevoked,
)
from storefront.domain import storefront
from storefront.errors import DiscountUsageExceeded, InvalidMoney
from storefront.shared.clock import as_utc, utcnow
from storefront.shared.money import Money, round_half_up

MAX_PERCENTAGE_HUNDREDTHS = 100 * 100


class DiscountType(Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


def normalize_code(code: str) -> str:
    return code.strip().upper()


def _type_name(discount_type) -> str:
    if isinstance(discount_type, DiscountType):
        return discount_type.value
    return str(discount_type).strip().upper()


def to_hundredths(value) -> int:
    try:
        hundredths = Decimal(str(value).strip()) * 100
    except InvalidOperation as exc:
        raise InvalidMoney(value, "not a number") from exc
    if hundredths != hundredths.to_integral_value():
        raise InvalidMoney(value, "more than 2 decimal places")
    return round_half_up(hundredths)


@storefront.entity(part_of="Discount")
class DiscountUsage:
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    discount_amount = ValueObject(Money, required=True)
    used_at = DateTime(required=True)


@storefront.aggregate
class Discount:
    code = String(required=True, max_length=50, unique=True)
    description = Text()
    discount_type = String(required=True, choices=DiscountType)
    value_hundredths = Integer(required=True, min_value=1)
    min_order_amount = ValueObject(Money)
    max_discount_amount = ValueObject(Money)
    usage_limit = Integer(min_value=0)
    usage_count = Integer(default=0, min_value=0)
    start_date = DateTime()
    end_date = DateTime()
    is_active = Boolean(default=True)
    usages = HasMany(DiscountUsage)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def usage_count_must_not_exceed_limit(self):
        if self.usage_limit is not None and (self.usage_count or 0) > self.usage_limit:
            raise ValidationError({"usage_count": ["Usage count cannot exceed the usage limit"]})

    @invariant.post
    def percentage_must_be_at_most_one_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.value_hundredths > MAX_PERCENTAGE_HUNDREDTHS:
            raise ValidationError({"value": ["Percentage discount cannot exceed 100"]})

    @invariant.post
    def window_must_be_ordered(self):
        if self.start_date and self.end_date and as_utc(self.end_date) < as_utc(self.start_date):
            raise ValidationError({"end_date": ["End date must not be before start date"]})

    @classmethod
    def create(
        cls,
        code,
        discount_type,
        value,
        description=None,
        min_order_amount=None,
        max_discount_amount=None,
        usage_limit=None,
        start_date=None,
        end_date=None,
        is_active=True,
    ):
        now = utcnow()
        discount = cls(
            code=normalize_code(code),
            description=description,
            discount_type=_type_name(discount_type),
            value_hundredths=to_hundredths(value),
            min_order_amount=Money.of(min_order_amount) if min_order_amount is not None else Money.zero(),
            max_discount_amount=Money.of(max_discount_amount) if max_discount_amount is not None else None,
            usage_limit=usage_limit,
            usage_count=0,
            start_date=as_utc(start_date),
            end_date=as_utc(end_date),
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        discount.raise_(
            DiscountCreated(
                discount_id=str(discount.id),
                code=discount.code,
                discount_type=discount.discount_type,
                value=str(discount.value),
            )
        )
        return discount

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def value(self) -> Decimal:
        return Decimal(self.value_hundredths) / 100

    @property
    def minimum(self) -> Money:
        return self.min_order_amount or Money.zero()

    @property
    def remaining_usage(self) -> int | None:
        if self.usage_limit is None:
            return None
        return max(self.usage_limit - (self.usage_count or 0), 0)

    def has_started(self, now) -> bool:
        return self.start_date is None or as_utc(now) >= as_utc(self.start_date)

    def has_expired(self, now) -> bool:
        return self.end_date is not None and as_utc(now) > as_utc(self.end_date)

    def can_be_used(self) -> bool:
        return self.usage_limit is None or (self.usage_count or 0) < self.usage_limit

    # -------------------------------------------------------------------
    # Usage
    # -------------------------------------------------------------------
    def redeem(self, user_id, order_id, discount_amount: Money):
        """Count one use of the code by a committed order."""
        if not self.can_be_used():
            raise DiscountUsageExceeded(self.code, self.usage_limit)

        now = utcnow()
        self.add_usages(
            DiscountUsage(
                user_id=user_id,
                order_id=order_id,
                discount_amount=discount_amount,
                used_at=now,
            )
        )
        self.usage_count = (self.usage_count or 0) + 1
        self.updated_at = now

        self.raise_(
            DiscountRedeemed(
                discount_id=str(self.id),
                code=self.code,
                order_id=str(order_id),
                user_id=str(user_id),
                discount_amount=str(discount_amount),
                usage_count=self.usage_count,
            )
        )

    def revoke_usage(self, order_id):
        """Undo the use recorded for ``order_id``, if any."""
        usage = next((u for u in self.usages if str(u.order_id) == str(order_id)), None)
        if usage is None:
            return
        self.remove_usages(usage)
        self.usage_count = max((self.usage_count or 0) - 1, 0)
        self.updated_at = utcnow()

        self.raise_(
            DiscountUsageRevoked(
                discount_id=str(self.id),
                code=self.code,
                order_id=str(order_id),
                usage_count=self.usage_count,
            )
        )

    # -------------------------------------------------------------------
    # Availability
    # -------------------------------------------------------------------
    def activate(self):
        self._set_active(True)

    def deactivate(self):
        self._set_active(False)

    def _set_active(self, is_active):
        if self.is_active == is_active:
            return
        self.is_active = is_active
        self.updated_at = utcnow()
        self.raise_(DiscountAvailabilityChanged(discount_id=str(self.id), code=self.code, is_active=is_active))
