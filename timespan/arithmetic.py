"""
Duration arithmetic and comparison.

Addition and subtraction work field by field, so they never need a reference
instant: ``PT30M + PT45M`` is ``PT75M``. Years with months, and days with
hours, minutes and seconds, are recomposed only when a result's fields would
otherwise disagree in sign. Multiplication needs an instant: a factor
applied to "one month" only means something once the month has a length.

Comparison is a partial order. Durations with years or months are compared
against the four XML Schema reference instants, and when those disagree the
result is :attr:`Ordering.INDETERMINATE`.
"""

from __future__ import annotations
from datetime import datetime, timezone
from decimal import localcontext
from enum import Enum
from typing import Optional

from timespan.conf import apply_settings
from timespan.duration import (
    MONTHS_PER_YEAR,
    SECONDS_PER_DAY,
    SECONDS_PER_HOUR,
    SECONDS_PER_MINUTE,
    Duration,
)
from timespan.errors import DurationArithmeticError
from timespan.units import EXACT, from_seconds, normalize, to_decimal, to_seconds


class Ordering(Enum):
    """Outcome of a comparison; ``INDETERMINATE`` when no order can be proven."""
    LESSER = -1
    EQUAL = 0
    GREATER = 1
    INDETERMINATE = 2


REFERENCE_INSTANTS = (
    datetime(1696, 9, 1, tzinfo=timezone.utc),
    datetime(1697, 2, 1, tzinfo=timezone.utc),
    datetime(1903, 3, 1, tzinfo=timezone.utc),
    datetime(1903, 7, 1, tzinfo=timezone.utc),
)


def _signum(value) -> int:
    return (value > 0) - (value < 0)


def _agrees(values, sign) -> bool:
    return all(_signum(value) in (0, sign) for value in values)


def _combine(left: Duration, right: Duration, factor: int) -> Duration:
    with localcontext(EXACT):
        values = [x + factor * y for x, y in zip(left.signed_fields(), right.signed_fields())]

        months = values[0] * MONTHS_PER_YEAR + values[1]
        seconds = (
            values[2] * SECONDS_PER_DAY
            + values[3] * SECONDS_PER_HOUR
            + values[4] * SECONDS_PER_MINUTE
            + values[5]
        )
        if _signum(months) * _signum(seconds) < 0:
            raise DurationArithmeticError(left, right)
        sign = _signum(months) or _signum(seconds)

        # Fields keep their values unless they disagree in sign with their group,
        # in which case the group is recomposed from its total.
        if not _agrees(values[:2], _signum(months)):
            values[0], values[1] = divmod(abs(months), MONTHS_PER_YEAR)
        if not _agrees(values[2:], _signum(seconds)):
            canonical = from_seconds(seconds)
            values[2:] = [canonical.days, canonical.hours, canonical.minutes, canonical.seconds]

        years, months, days, hours, minutes, seconds = (abs(value) for value in values)
        return Duration(
            years=int(years),
            months=int(months),
            days=int(days),
            hours=int(hours),
            minutes=int(minutes),
            seconds=seconds,
            sign=sign or 1,
        )


def add(*durations: Optional[Duration]) -> Duration:
    """Sum durations left to right, skipping ``None``; no durations sum to zero."""
    result = Duration.ZERO
    for duration in durations:
        if duration is not None:
            result = _combine(result, duration, 1)
    return result


def subtract(*durations: Optional[Duration]) -> Duration:
    """Subtract every following duration from the first, skipping ``None``."""
    result = None
    for duration in durations:
        if duration is None:
            continue
        if result is None:
            result = duration
        else:
            result = _combine(result, duration, -1)
    return Duration.ZERO if result is None else result


def negate(duration: Optional[Duration]) -> Optional[Duration]:
    if duration is None:
        return None
    return Duration(
        years=duration.years,
        months=duration.months,
        days=duration.days,
        hours=duration.hours,
        minutes=duration.minutes,
        seconds=duration.seconds,
        sign=-duration.sign,
    )


@apply_settings
def multiply(
    duration: Optional[Duration],
    factor,
    instant: Optional[datetime] = None,
    settings=None,
) -> Optional[Duration]:
    """Scale a duration by ``factor`` after resolving its years and months at ``instant``."""
    if duration is None or factor is None:
        return duration
    factor = to_decimal(factor)
    total = to_seconds(normalize(duration, instant, settings=settings))
    with localcontext(EXACT):
        return from_seconds(total * factor)


def _order(left, right) -> Ordering:
    if left < right:
        return Ordering.LESSER
    if left > right:
        return Ordering.GREATER
    return Ordering.EQUAL


def compare(left: Optional[Duration], right: Optional[Duration]) -> Ordering:
    """
    Compare two durations.

    ``None`` sorts before any duration and two ``None`` values are equal.
    """
    if left is None and right is None:
        return Ordering.EQUAL
    if left is None:
        return Ordering.LESSER
    if right is None:
        return Ordering.GREATER

    if left.is_determinate() and right.is_determinate():
        return _order(to_seconds(left), to_seconds(right))

    results = {
        _order(
            to_seconds(normalize(left, instant)),
            to_seconds(normalize(right, instant)),
        )
        for instant in REFERENCE_INSTANTS
    }
    if len(results) == 1:
        return results.pop()
    return Ordering.INDETERMINATE
