from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Union

Number = Union[int, Decimal]


def safe_ratio(numerator: Optional[Number], denominator: Optional[Number]) -> Optional[Decimal]:
    """Divide two values, returning None instead of dividing by zero.

    Args:
        numerator: Dividend (None propagates)
        denominator: Divisor (None or zero yields None)

    Returns:
        Quotient as Decimal or None
    """
    if numerator is None or denominator is None or denominator == 0:
        return None
    return Decimal(numerator) / Decimal(denominator)


def mean(values: Iterable[Number]) -> Optional[Decimal]:
    """Arithmetic mean of the values, None for an empty input."""
    values = list(values)
    return safe_ratio(sum(values, Decimal('0')), len(values))


def quantize(value: Optional[Number], places: int) -> Optional[Decimal]:
    """Round half away from zero to a fixed number of decimal places.

    Args:
        value: Value to round (None passes through)
        places: Number of decimal places

    Returns:
        Rounded Decimal or None
    """
    if value is None:
        return None
    exponent = Decimal(1).scaleb(-places)
    return Decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def percentage(numerator: Optional[Number], denominator: Optional[Number]) -> Optional[Decimal]:
    ratio = safe_ratio(numerator, denominator)
    return ratio * 100 if ratio is not None else None
