from datetime import date, datetime
from typing import Any, Optional

ALLOWED_DATE_FORMATS = ["%Y-%m-%d", "%Y/%m/%d", "%Y%m%d", "%m/%d/%Y"]


def days_between(start: Optional[date], end: Optional[date]) -> Optional[int]:
    """Whole days from start to end.

    Args:
        start: Start date
        end: End date

    Returns:
        Number of days, or None when either date is missing
    """
    if start is None or end is None:
        return None
    return (end - start).days


def convert_to_date(value: Any) -> Optional[date]:
    """Convert a date-like value into a date.

    Args:
        value: date, datetime, ISO-like string or None

    Returns:
        date object, or None for empty input

    Raises:
        ValueError: If a string does not match a supported format
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    for fmt in ALLOWED_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unsupported date format: {text!r}")
