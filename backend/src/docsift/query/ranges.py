"""Date and size literal normalisation for filter clauses.

Turns the right-hand side of ``created:``/``modified:``/``size:`` clauses
into :class:`DateRange` / :class:`SizeRange` values with concrete bounds.

Date-only literals are read as UTC calendar days so that the indexer and
the query host agree on day boundaries regardless of their local time
zones.  The operator-to-boundary mapping is asymmetric:

==========  =========================================
Expression  Bound
==========  =========================================
``>D``      ``gt``  = end of day D (excludes all of D)
``>=D``     ``gte`` = start of day D
``<D``      ``lt``  = start of day D (excludes all of D)
``<=D``     ``lte`` = end of day D
``A..B``    ``gte`` = start of A, ``lte`` = end of B
``D``       exact day, compiled to ``[D, D + 1 day)``
==========  =========================================
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time, timedelta, timezone

from docsift.core.exceptions import (
    InvalidDateError,
    InvalidSizeFormatError,
    NegativeSizeError,
    SizeOverflowError,
    UnknownSizeUnitError,
)
from docsift.core.models import DateRange, RangeKind, SizeRange

_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_SIZE_RE = re.compile(r"^(-?\d+(?:\.\d+)?)\s*([a-zA-Z]+)$")

RANGE_SEPARATOR = ".."

SIZE_UNITS: dict[str, int] = {
    "b": 1,
    "kb": 1024,
    "mb": 1024 * 1024,
    "gb": 1024 * 1024 * 1024,
}

_END_OF_DAY = time(23, 59, 59, 999_000)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def format_instant(value: datetime) -> str:
    """Render *value* as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_instant(value: str) -> datetime:
    """Parse an ISO-8601 instant (``Z`` suffix allowed) into an aware UTC datetime."""
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _calendar_day(literal: str) -> date:
    match = _DATE_RE.match(literal)
    if match:
        year, month, day = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError as exc:
            raise InvalidDateError(f"Invalid date: {literal}") from exc

    # Full timestamps are accepted; only their UTC calendar day is kept.
    if "T" in literal or "t" in literal:
        try:
            return parse_instant(literal).date()
        except ValueError as exc:
            raise InvalidDateError(f"Invalid date: {literal}") from exc

    raise InvalidDateError(f"Invalid date: {literal}")


def parse_date(literal: str, end_of_day: bool = False) -> str:
    """Convert a date literal to an ISO-8601 UTC instant on a day boundary.

    Parameters
    ----------
    literal:
        ``YYYY-MM-DD`` or a full ISO-8601 timestamp.
    end_of_day:
        Return ``23:59:59.999`` instead of ``00:00:00.000``.

    Raises
    ------
    InvalidDateError
        If *literal* is not a valid calendar date.
    """
    day = _calendar_day(literal.strip())
    moment = datetime.combine(day, _END_OF_DAY if end_of_day else time(0), tzinfo=timezone.utc)
    return format_instant(moment)


def next_day(instant: str) -> str:
    """Return the instant exactly one day after *instant*."""
    return format_instant(parse_instant(instant) + timedelta(days=1))


def parse_date_expression(expr: str) -> DateRange:
    """Parse a ``created:``/``modified:`` value into a :class:`DateRange`."""
    if RANGE_SEPARATOR in expr:
        start, end = expr.split(RANGE_SEPARATOR, 1)
        return DateRange(
            kind=RangeKind.RANGE,
            gte=parse_date(start, end_of_day=False),
            lte=parse_date(end, end_of_day=True),
        )
    if expr.startswith(">="):
        return DateRange(kind=RangeKind.RANGE, gte=parse_date(expr[2:], end_of_day=False))
    if expr.startswith(">"):
        return DateRange(kind=RangeKind.RANGE, gt=parse_date(expr[1:], end_of_day=True))
    if expr.startswith("<="):
        return DateRange(kind=RangeKind.RANGE, lte=parse_date(expr[2:], end_of_day=True))
    if expr.startswith("<"):
        return DateRange(kind=RangeKind.RANGE, lt=parse_date(expr[1:], end_of_day=False))
    return DateRange(kind=RangeKind.EXACT, date=parse_date(expr, end_of_day=False))


# ---------------------------------------------------------------------------
# Sizes
# ---------------------------------------------------------------------------


def parse_size(literal: str) -> int:
    """Convert a size literal such as ``"1.5MB"`` or ``"100 kb"`` to whole bytes.

    Units are powers of 1024.  Zero short-circuits to ``0`` before the unit
    is looked at.

    Raises
    ------
    InvalidSizeFormatError
        If *literal* is not ``<number><unit>``.
    NegativeSizeError
        If the number is below zero.
    UnknownSizeUnitError
        If the unit is not one of B, KB, MB, GB.
    SizeOverflowError
        If the byte count is not finite.
    """
    literal = literal.strip()
    match = _SIZE_RE.match(literal)
    if not match:
        raise InvalidSizeFormatError(
            f'Invalid size format: {literal}. Expected format: "100KB", "1.5MB", etc.'
        )

    number, unit = match.groups()
    value = float(number)
    if value < 0:
        raise NegativeSizeError(f"Size cannot be negative: {literal}")
    if value == 0:
        return 0

    multiplier = SIZE_UNITS.get(unit.lower())
    if multiplier is None:
        raise UnknownSizeUnitError(f"Unknown size unit: {unit}. Supported units: B, KB, MB, GB")

    size_bytes = value * multiplier
    if not math.isfinite(size_bytes):
        raise SizeOverflowError(f"Size value too large: {literal}")
    return math.floor(size_bytes)


def parse_size_expression(expr: str) -> SizeRange:
    """Parse a ``size:`` value into a :class:`SizeRange`."""
    if RANGE_SEPARATOR in expr:
        start, end = expr.split(RANGE_SEPARATOR, 1)
        return SizeRange(kind=RangeKind.RANGE, gte=parse_size(start), lte=parse_size(end))
    # Two-character operators first, otherwise ">=" would read as ">" + "=5MB".
    if expr.startswith(">="):
        return SizeRange(kind=RangeKind.RANGE, gte=parse_size(expr[2:]))
    if expr.startswith(">"):
        return SizeRange(kind=RangeKind.RANGE, gt=parse_size(expr[1:]))
    if expr.startswith("<="):
        return SizeRange(kind=RangeKind.RANGE, lte=parse_size(expr[2:]))
    if expr.startswith("<"):
        return SizeRange(kind=RangeKind.RANGE, lt=parse_size(expr[1:]))
    return SizeRange(kind=RangeKind.EXACT, size=parse_size(expr))
