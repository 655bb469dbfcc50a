"""
Module: budget_kernel.db.types
Responsibility: Money coercion and the rounding helper, so every model and
    service treats monetary values identically.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats anywhere in the kernel.  All monetary amounts use Decimal.
    - round_money() is the ONLY sanctioned rounding function for values the
      kernel exposes (snapshot totals, target budgets).
"""

from decimal import ROUND_HALF_UP, Decimal

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    Preconditions: value is a Decimal.
    Postconditions: Returns value quantized using the rounding mode.
    """
    quantize_str = "0." + "0" * decimal_places
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def to_money(value: Decimal | int | str) -> Decimal:
    """Coerce ints and strings to Decimal; floats are rejected."""
    if isinstance(value, float):
        raise TypeError("Monetary amounts must not be floats")
    return value if isinstance(value, Decimal) else Decimal(value)
