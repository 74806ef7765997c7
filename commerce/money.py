"""
Money

Integer minor-unit amounts with currency-safe arithmetic. Intermediate
results of a computation chain stay as exact `Decimal` minor units and are
rounded half-up exactly once, by `round_half_up`.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from functools import total_ordering
from typing import Union

from .errors import CurrencyMismatchError

MINOR_UNIT_EXPONENTS: dict[str, int] = {
    "INR": 2,
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
    "JPY": 0,
    "KWD": 3,
    "BHD": 3,
}

DEFAULT_CURRENCY = "INR"


def minor_unit_exponent(currency: str) -> int:
    """Number of decimal places of the currency's minor unit"""
    return MINOR_UNIT_EXPONENTS.get(currency.upper(), 2)


def round_half_up(minor_units: Decimal, currency: str = DEFAULT_CURRENCY) -> "Money":
    """Round an exact minor-unit value to a whole minor unit (half-up)"""
    rounded = minor_units.quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return Money(int(rounded), currency)


@total_ordering
@dataclass(frozen=True)
class Money:
    """Amount in integer minor units (e.g. paise) plus an ISO currency code"""
    amount: int
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self):
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise TypeError(f"Money amount must be an int of minor units, got {type(self.amount).__name__}")
        object.__setattr__(self, "currency", self.currency.upper())

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> "Money":
        return cls(0, currency)

    @classmethod
    def from_major(cls, value: Union[Decimal, str, int], currency: str = DEFAULT_CURRENCY) -> "Money":
        """
        Build Money from a major-unit value such as "499.99".

        Floats are rejected; pass a string or Decimal instead.
        """
        if isinstance(value, float):
            raise TypeError("Money cannot be built from a float; use str or Decimal")
        scale = Decimal(10) ** minor_unit_exponent(currency)
        return round_half_up(Decimal(value) * scale, currency)

    def to_major(self) -> Decimal:
        """Major-unit Decimal, e.g. Money(49999, "INR") -> Decimal("499.99")"""
        exponent = minor_unit_exponent(self.currency)
        return Decimal(self.amount).scaleb(-exponent)

    def as_decimal(self) -> Decimal:
        """Exact minor-unit Decimal, the starting point of a computation chain"""
        return Decimal(self.amount)

    def _check(self, other: "Money") -> None:
        if not isinstance(other, Money):
            raise TypeError(f"Expected Money, got {type(other).__name__}")
        if other.currency != self.currency:
            raise CurrencyMismatchError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    def __add__(self, other: "Money") -> "Money":
        self._check(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._check(other)
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, quantity: int) -> "Money":
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise TypeError("Money can only be multiplied by an integer quantity")
        return Money(self.amount * quantity, self.currency)

    __rmul__ = __mul__

    def __neg__(self) -> "Money":
        return Money(-self.amount, self.currency)

    def __lt__(self, other: "Money") -> bool:
        self._check(other)
        return self.amount < other.amount

    def __bool__(self) -> bool:
        return self.amount != 0

    def min(self, other: "Money") -> "Money":
        return self if self <= other else other

    def floor_zero(self) -> "Money":
        """Clamp negative amounts to zero"""
        return self if self.amount >= 0 else Money.zero(self.currency)

    def __str__(self) -> str:
        exponent = minor_unit_exponent(self.currency)
        return f"{self.currency} {self.to_major():.{exponent}f}"


def sum_money(values, currency: str = DEFAULT_CURRENCY) -> Money:
    """Sum an iterable of Money, starting from zero in `currency`"""
    total = Money.zero(currency)
    for value in values:
        total = total + value
    return total
