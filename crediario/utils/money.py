"""Fixed-precision money helpers. Amounts are integer cents everywhere."""

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Union

CENTS = Decimal("0.01")

AmountLike = Union[Decimal, str, int]


def round_cents(value: Decimal) -> int:
    """Round a fractional cent amount half-up to whole cents"""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_cents(amount: AmountLike) -> int:
    """
    Convert an amount in reais to integer cents.

    Accepts Decimal, numeric strings and ints; floats are rejected so binary
    rounding never leaks into stored amounts.

    Example:
        to_cents("1000.01") → 100001
    """
    if isinstance(amount, float):
        raise TypeError("float amounts are not accepted, use Decimal or str")
    value = Decimal(amount) if not isinstance(amount, Decimal) else amount
    return round_cents(value * 100)


def from_cents(cents: int) -> Decimal:
    """Integer cents → Decimal reais with 2 places"""
    return (Decimal(cents) / 100).quantize(CENTS)


def split_evenly(total_cents: int, parts: int) -> List[int]:
    """
    Split a total into `parts` amounts that add up to it exactly.

    Every part gets floor(total / parts); the last part absorbs the remainder
    (always < parts cents).

    Example:
        10000 / 3 → [3333, 3333, 3334]
    """
    if parts < 1:
        raise ValueError("parts must be >= 1")

    base = total_cents // parts
    remainder = total_cents % parts
    amounts = [base] * parts
    amounts[-1] += remainder
    return amounts


def format_brl(cents: int) -> str:
    """Render cents as a Brazilian real string, e.g. R$ 1.234,56"""
    sign = "-" if cents < 0 else ""
    integral, fraction = divmod(abs(cents), 100)
    grouped = f"{integral:,}".replace(",", ".")
    return f"{sign}R$ {grouped},{fraction:02d}"
