"""Ordinal date helpers.

All temporal comparisons in the decision functions are done on
proleptic Gregorian ordinals (``date.toordinal()``), so dates from the
service are converted once at the boundary.
"""

from __future__ import annotations

from datetime import date, datetime

OrdinalLike = str | date | int


def to_ordinal(value: OrdinalLike) -> int:
    """Convert a date representation to a Gregorian ordinal.

    Args:
        value: ISO ``YYYY-MM-DD`` string (a time suffix is ignored),
            ``date``/``datetime``, or an ordinal ``int`` returned as is.

    Returns:
        The ordinal day number.

    Raises:
        ValueError: If a string is not an ISO date.
        TypeError: If *value* is of an unsupported type.

    Example:
        >>> to_ordinal("2000-01-01")
        730120
    """
    if isinstance(value, bool):
        raise TypeError(f"Cannot convert {value!r} to an ordinal date")
    if isinstance(value, int):
        return value
    if isinstance(value, datetime):
        return value.date().toordinal()
    if isinstance(value, date):
        return value.toordinal()
    if isinstance(value, str):
        return date.fromisoformat(value[:10]).toordinal()
    raise TypeError(f"Cannot convert {value!r} to an ordinal date")


def to_yyyy_mm_dd(ordinal: int) -> str:
    """Format an ordinal as ``YYYY-MM-DD``.

    Example:
        >>> to_yyyy_mm_dd(730120)
        '2000-01-01'
    """
    return date.fromordinal(ordinal).isoformat()


def subtract_year(ordinal: int) -> int:
    """Return the ordinal of the same calendar day one year earlier.

    February 29 maps to February 28 of the previous year.

    Example:
        >>> to_yyyy_mm_dd(subtract_year(to_ordinal("2004-02-29")))
        '2003-02-28'
    """
    day = date.fromordinal(ordinal)
    try:
        previous = day.replace(year=day.year - 1)
    except ValueError:
        previous = day.replace(year=day.year - 1, day=28)
    return previous.toordinal()
