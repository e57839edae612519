"""
Module: ledger_kernel.db.types
Responsibility: Annotated type aliases and rounding helpers for money columns.
    Centralizes precision and rounding so that every model, engine and
    service uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, selectors/ and the engines.  MUST NOT import from any of those.

Invariants enforced:
    - round_money() is the ONLY sanctioned rounding function for money.
      It rounds half-up to the currency's minor unit (2 places).
    - BALANCE_TOLERANCE (0.01) is the single epsilon used to compare
      debit and credit totals and outstanding amounts.
    - No floats.  Every monetary amount is a Decimal.

Failure modes:
    - decimal.InvalidOperation on non-numeric strings passed to money().
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from sqlalchemy import Enum as SAEnum, Numeric, String

# 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

# Percentages (tax rate, discount) up to 999.999999
Percent = Annotated[Decimal, Numeric(9, 6)]

ShortCode = Annotated[str, String(50)]
Name = Annotated[str, String(255)]
LongText = Annotated[str, String(4000)]

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP
BALANCE_TOLERANCE = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def money(value: str | int | Decimal) -> Decimal:
    """
    Coerce a string, int or Decimal into a Decimal amount.

    Floats are rejected: binary floating point cannot represent most
    currency amounts exactly.

    Raises:
        TypeError: If value is a float.
    """
    if isinstance(value, float):
        raise TypeError("Money amounts must not be floats; pass str or Decimal")
    if isinstance(value, Decimal):
        return value
    return Decimal(value)


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the specified number of decimal places.

    Args:
        value: The value to round.
        decimal_places: Number of decimal places (default 2).
        rounding: Rounding mode (default ROUND_HALF_UP).

    Returns:
        Rounded Decimal value.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places > 0 else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def within_tolerance(a: Decimal, b: Decimal, tolerance: Decimal = BALANCE_TOLERANCE) -> bool:
    """True when |a - b| <= tolerance."""
    return abs(a - b) <= tolerance


def enum_column(enum_cls: type, length: int = 20) -> SAEnum:
    """
    Portable enum column type.

    Stored as VARCHAR of the enum values (no native PostgreSQL enum
    types), loaded back as enum members.
    """
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
