"""
Decimal money helpers.

Balances and amounts are `Decimal` values with exactly two places. Floats
never touch money: 0.1 + 0.2 != 0.3 in IEEE 754, while
Decimal("0.10") + Decimal("0.20") == Decimal("0.30") always.

Rounding rule:
  Results are rounded to the cent with ROUND_HALF_UP (0.005 -> 0.01).
  Amounts entering the system are already limited to two places, so for a
  transfer the rounding step never changes a value; it pins the scale so
  every stored and returned balance has exactly two places.
"""

from decimal import ROUND_HALF_UP, Decimal, localcontext

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Largest amount the schema accepts: 16 integer digits plus cents, which
# still fits a signed 64-bit count of cents.
MAX_DIGITS = 18


def quantize(value: Decimal | int | str) -> Decimal:
    """Round `value` to two decimal places using ROUND_HALF_UP."""
    value = Decimal(value)
    with localcontext() as ctx:
        # Enough precision for every integer digit plus the two cents
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENT, rounding=ROUND_HALF_UP)


def has_at_most_two_places(value: Decimal) -> bool:
    """True if `value` is finite and carries no digits past the cent."""
    if not value.is_finite():
        return False
    if value.as_tuple().exponent >= -2:
        return True
    # Trailing zeros past the cent ("1.500") still count as two places
    return value == quantize(value)


def format_money(value: Decimal) -> str:
    """Render `value` with two decimals: Decimal("5") -> "5.00"."""
    return f"{quantize(value):.2f}"


def to_cents(value: Decimal) -> int:
    """Decimal("12.34") -> 1234."""
    return int(quantize(value) * 100)


def from_cents(cents: int) -> Decimal:
    """1234 -> Decimal("12.34")."""
    return (Decimal(cents) / 100).quantize(CENT)
