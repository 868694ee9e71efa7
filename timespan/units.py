"""
Conversion between durations and scalar counts of a single unit.

Determinate units (nanoseconds through weeks) have a fixed length and convert
through a total of fractional seconds. Months and years are indeterminate:
turning them into seconds needs a reference instant, from which the calendar
is walked to find out how many days they actually span.
"""

from __future__ import annotations
import logging
from datetime import datetime
from decimal import (
    MAX_EMAX,
    MAX_PREC,
    MIN_EMIN,
    Context,
    Decimal,
    DivisionByZero,
    Inexact,
    InvalidOperation,
    Overflow,
    localcontext,
)
from enum import Enum
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from timespan.conf import apply_settings
from timespan.duration import (
    MONTHS_PER_YEAR,
    NANOSECONDS_PER_SECOND,
    MILLISECONDS_PER_SECOND,
    SECONDS_PER_DAY,
    SECONDS_PER_HOUR,
    SECONDS_PER_MINUTE,
    SECONDS_PER_WEEK,
    Duration,
)
from timespan.errors import (
    IndeterminateDurationError,
    MalformedDurationError,
    PrecisionError,
    UnknownPatternError,
)
from timespan.timezone_parser import localize, now

logger = logging.getLogger(__name__)

# Unbounded precision; an operation that would have to round raises Inexact instead.
EXACT = Context(
    prec=MAX_PREC,
    Emax=MAX_EMAX,
    Emin=MIN_EMIN,
    traps=[Inexact, InvalidOperation, DivisionByZero, Overflow],
)


class DurationUnit(Enum):
    """Units a duration can be expressed in; ``ISO8601`` is the composite textual form."""
    ISO8601 = "xml"
    NANOSECONDS = "nanoseconds"
    MILLISECONDS = "milliseconds"
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    YEARS = "years"

    @property
    def is_scalar(self) -> bool:
        return self is not DurationUnit.ISO8601

    @property
    def is_determinate(self) -> bool:
        return self not in (DurationUnit.ISO8601, DurationUnit.MONTHS, DurationUnit.YEARS)

    @classmethod
    def from_name(cls, name: str) -> DurationUnit:
        key = name.strip().lower()
        for unit in cls:
            if key == unit.value or key == unit.name.lower():
                return unit
        raise UnknownPatternError(name)

    def __str__(self) -> str:
        return self.value


# Length of each determinate unit in seconds.
SECONDS_PER_UNIT = {
    DurationUnit.NANOSECONDS: Decimal(1) / NANOSECONDS_PER_SECOND,
    DurationUnit.MILLISECONDS: Decimal(1) / MILLISECONDS_PER_SECOND,
    DurationUnit.SECONDS: Decimal(1),
    DurationUnit.MINUTES: Decimal(SECONDS_PER_MINUTE),
    DurationUnit.HOURS: Decimal(SECONDS_PER_HOUR),
    DurationUnit.DAYS: Decimal(SECONDS_PER_DAY),
    DurationUnit.WEEKS: Decimal(SECONDS_PER_WEEK),
}

EXACT_UNITS = (DurationUnit.NANOSECONDS, DurationUnit.MILLISECONDS, DurationUnit.SECONDS)

UnitLike = Union[DurationUnit, str, None]


@apply_settings
def resolve_unit(pattern: UnitLike, settings=None) -> DurationUnit:
    """Resolve a unit, a case-insensitive alias or ``None`` (the configured default)."""
    if pattern is None:
        pattern = settings.DEFAULT_DURATION_PATTERN
    if isinstance(pattern, DurationUnit):
        return pattern
    if not isinstance(pattern, str):
        raise UnknownPatternError(pattern)
    return DurationUnit.from_name(pattern)


def to_decimal(value) -> Decimal:
    """Coerce an int, str, float or Decimal to a finite Decimal."""
    if isinstance(value, bool):
        raise MalformedDurationError(value)
    if isinstance(value, float):
        value = repr(value)
    try:
        result = Decimal(value.strip() if isinstance(value, str) else value)
    except (InvalidOperation, TypeError, ValueError):
        raise MalformedDurationError(value)
    if not result.is_finite():
        raise MalformedDurationError(value)
    return result


def from_seconds(total: Decimal) -> Duration:
    """Decompose signed fractional seconds into days, hours, minutes and seconds."""
    with localcontext(EXACT):
        magnitude = abs(total)
        whole = int(magnitude)
        fraction = magnitude - whole
        days, remainder = divmod(whole, SECONDS_PER_DAY)
        hours, remainder = divmod(remainder, SECONDS_PER_HOUR)
        minutes, seconds = divmod(remainder, SECONDS_PER_MINUTE)
        return Duration(
            days=days,
            hours=hours,
            minutes=minutes,
            seconds=fraction + seconds,
            sign=-1 if total < 0 else 1,
        )


def from_unit(value, unit: UnitLike) -> Duration:
    """Build a duration from a scalar count of ``unit``."""
    unit = resolve_unit(unit)
    if not unit.is_scalar:
        raise UnknownPatternError(unit, reason="%s is not a scalar unit" % unit)

    value = to_decimal(value)

    if not unit.is_determinate:
        if value != value.to_integral_value():
            raise PrecisionError(value, unit)
        count = int(value)
        sign = -1 if count < 0 else 1
        if unit is DurationUnit.MONTHS:
            return Duration(months=abs(count), sign=sign)
        return Duration(years=abs(count), sign=sign)

    with localcontext(EXACT):
        return from_seconds(value * SECONDS_PER_UNIT[unit])


def _reference(instant: Optional[datetime], settings) -> datetime:
    if instant is None:
        return now(settings=settings)
    return localize(instant, settings=settings)


@apply_settings
def normalize(duration: Duration, instant: Optional[datetime] = None, settings=None) -> Duration:
    """
    Fold years and months into days by walking the calendar from ``instant``.

    The walk goes forward for positive durations and backward for negative
    ones, so ``P1M`` from 2024-02-01 is 29 days and ``-P1M`` from 2024-03-01
    is also 29 days. Durations without years or months are returned as is.
    """
    if duration.is_determinate():
        return duration

    start = _reference(instant, settings).replace(tzinfo=None)
    step = relativedelta(years=duration.years, months=duration.months)
    if duration.sign < 0:
        days = (start - (start - step)).days
    else:
        days = ((start + step) - start).days

    logger.debug(f"{duration} spans {days} days from {start:%Y-%m-%d}")
    return Duration(
        days=duration.days + days,
        hours=duration.hours,
        minutes=duration.minutes,
        seconds=duration.seconds,
        sign=duration.sign,
    )


def to_seconds(duration: Duration) -> Decimal:
    """Signed fractional seconds of a determinate duration."""
    if not duration.is_determinate():
        raise IndeterminateDurationError(duration)
    with localcontext(EXACT):
        total = (
            duration.days * SECONDS_PER_DAY
            + duration.hours * SECONDS_PER_HOUR
            + duration.minutes * SECONDS_PER_MINUTE
        ) + duration.seconds
        return duration.sign * total


def _calendar_months(duration: Duration, instant: datetime) -> int:
    total = duration.years * MONTHS_PER_YEAR + duration.months
    if not (duration.days or duration.hours or duration.minutes or duration.seconds):
        return duration.sign * total

    from timespan.datetimes import add

    start = instant.replace(tzinfo=None)
    end = add(instant, duration).replace(tzinfo=None)
    count = (end.year - start.year) * MONTHS_PER_YEAR + (end.month - start.month)

    if duration.sign > 0:
        while count > 0 and start + relativedelta(months=count) > end:
            count -= 1
        while start + relativedelta(months=count + 1) <= end:
            count += 1
    else:
        while count < 0 and start + relativedelta(months=count) < end:
            count += 1
        while start + relativedelta(months=count - 1) >= end:
            count -= 1
    return count


@apply_settings
def to_unit(
    duration: Duration,
    unit: UnitLike,
    instant: Optional[datetime] = None,
    settings=None,
) -> Decimal:
    """
    Express ``duration`` as a count of ``unit``.

    Seconds, milliseconds and nanoseconds are exact. Minutes through weeks,
    months and years are truncated toward zero. ``instant`` anchors any
    years or months in the duration and defaults to now.
    """
    unit = resolve_unit(unit, settings=settings)
    if not unit.is_scalar:
        raise UnknownPatternError(unit, reason="%s is not a scalar unit" % unit)

    if not unit.is_determinate:
        months = _calendar_months(duration, _reference(instant, settings))
        if unit is DurationUnit.YEARS:
            years = abs(months) // MONTHS_PER_YEAR
            return Decimal(-years if months < 0 else years)
        return Decimal(months)

    total = to_seconds(normalize(duration, instant, settings=settings))
    with localcontext(EXACT):
        if unit in EXACT_UNITS:
            return total / SECONDS_PER_UNIT[unit]
        return total // SECONDS_PER_UNIT[unit]
