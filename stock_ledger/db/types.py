"""
Module: stock_ledger.db.types
Responsibility: Annotated type aliases and helpers for quantity and money
    columns, so every model and rule uses identical precision.
Architecture position: Ledger > DB.  May be imported by models/, domain/,
    services/ and selectors/.  MUST NOT import from any of those layers.

No floats anywhere in the ledger: stock quantities and amounts are Decimal.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated

from sqlalchemy import Numeric, String

# Every quantity and money column is Numeric(STORAGE_PRECISION, STORAGE_SCALE)
STORAGE_PRECISION = 38
STORAGE_SCALE = 9
MAX_INTEGER_DIGITS = STORAGE_PRECISION - STORAGE_SCALE

# Stock quantity (signed for consumption undo)
Quantity = Annotated[Decimal, Numeric(STORAGE_PRECISION, STORAGE_SCALE)]

# Monetary amount (single currency)
Money = Annotated[Decimal, Numeric(STORAGE_PRECISION, STORAGE_SCALE)]

# Names and labels
ShortText = Annotated[str, String(200)]

# Free text (descriptions, reasons, addresses)
LongText = Annotated[str, String(2000)]


MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP


def to_decimal(value, field: str = "value") -> Decimal:
    """
    Coerce an int, str or Decimal into a Decimal.

    Floats are rejected: ``Decimal(0.1)`` is not 0.1.

    Raises:
        TypeError: for float, bool or other non-numeric input.
        ValueError: for strings that are not numbers, NaN/Infinity, or values
            the quantity and money columns cannot store exactly.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"{field} must be Decimal, int or str, not {type(value).__name__}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"{field} is not a number: {value!r}") from exc
    else:
        raise TypeError(f"{field} must be Decimal, int or str, not {type(value).__name__}")
    if not result.is_finite():
        raise ValueError(f"{field} must be finite, got {value!r}")
    return check_storable(result, field)


def check_storable(value: Decimal, field: str = "value") -> Decimal:
    """
    Return ``value`` if a Numeric(STORAGE_PRECISION, STORAGE_SCALE) column
    holds it without rounding, else raise ValueError.
    """
    _, digits, exponent = value.as_tuple()
    # digits below the storage scale must all be zero
    if exponent < -STORAGE_SCALE and any(digits[len(digits) + STORAGE_SCALE + exponent:]):
        raise ValueError(f"{field} has more than {STORAGE_SCALE} decimal places: {value}")
    if value and value.adjusted() >= MAX_INTEGER_DIGITS:
        raise ValueError(f"{field} has more than {MAX_INTEGER_DIGITS} integer digits: {value}")
    return value


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """Round a monetary value to ``decimal_places`` (half-up by default)."""
    quantize_str = "0." + "0" * decimal_places if decimal_places else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def format_quantity(value: Decimal) -> str:
    """Render a quantity without storage padding: 4.000000000 -> '4'."""
    normalized = value.normalize()
    if normalized == 0:
        return "0"
    return format(normalized, "f")
