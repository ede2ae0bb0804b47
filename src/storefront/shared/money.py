"""Money value object backed by integer minor units.

Amounts carry exactly two fractional digits. Derived values (percentages)
are rounded half-up to the nearest minor unit; construction from a value
with more precision is rejected rather than silently rounded.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from protean.fields import Integer

from storefront.domain import storefront
from storefront.errors import InvalidMoney

CENT = Decimal("0.01")
_HUNDRED = Decimal(100)


def round_half_up(value: Decimal) -> int:
    """Round a decimal to the nearest integer, halves away from zero."""
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


@storefront.value_object
class Money:
    """A monetary amount in the store currency."""

    minor_units = Integer(required=True)

    # -------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------
    @classmethod
    def of(cls, value) -> "Money":
        """Build Money from a Decimal, str or int amount in major units."""
        if isinstance(value, Money):
            return value
        if isinstance(value, bool) or isinstance(value, float):
            raise InvalidMoney(value, "use a Decimal, str or int amount")
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise InvalidMoney(value, "not a number") from exc
        if not amount.is_finite():
            raise InvalidMoney(value, "not a finite number")
        if amount != amount.quantize(CENT):
            raise InvalidMoney(value, "more than 2 decimal places")
        return cls(minor_units=int(amount * _HUNDRED))

    @classmethod
    def zero(cls) -> "Money":
        return cls(minor_units=0)

    @classmethod
    def total(cls, amounts) -> "Money":
        result = cls.zero()
        for amount in amounts:
            result = result.add(amount)
        return result

    # -------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------
    @property
    def amount(self) -> Decimal:
        return (Decimal(self.minor_units) / _HUNDRED).quantize(CENT)

    def add(self, other: "Money") -> "Money":
        return Money(minor_units=self.minor_units + other.minor_units)

    def subtract(self, other: "Money") -> "Money":
        return Money(minor_units=self.minor_units - other.minor_units)

    def multiply(self, quantity: int) -> "Money":
        """Multiply by an integer quantity."""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidMoney(quantity, "can only multiply by an integer quantity")
        return Money(minor_units=self.minor_units * quantity)

    def percentage(self, percent) -> "Money":
        """Return ``percent`` % of this amount, rounded half-up to the cent."""
        if isinstance(percent, float):
            percent = Decimal(str(percent))
        return Money(minor_units=round_half_up(Decimal(self.minor_units) * Decimal(percent) / _HUNDRED))

    def min(self, other: "Money") -> "Money":
        return self if self.minor_units <= other.minor_units else other

    def max(self, other: "Money") -> "Money":
        return self if self.minor_units >= other.minor_units else other

    def is_negative(self) -> bool:
        return self.minor_units < 0

    def is_zero(self) -> bool:
        return self.minor_units == 0

    # -------------------------------------------------------------------
    # Operators
    # -------------------------------------------------------------------
    def __add__(self, other: "Money") -> "Money":
        return self.add(other)

    def __sub__(self, other: "Money") -> "Money":
        return self.subtract(other)

    def __mul__(self, quantity: int) -> "Money":
        return self.multiply(quantity)

    def __lt__(self, other: "Money") -> bool:
        return self.minor_units < other.minor_units

    def __le__(self, other: "Money") -> bool:
        return self.minor_units <= other.minor_units

    def __gt__(self, other: "Money") -> bool:
        return self.minor_units > other.minor_units

    def __ge__(self, other: "Money") -> bool:
        return self.minor_units >= other.minor_units

    def __str__(self) -> str:
        return str(self.amount)
