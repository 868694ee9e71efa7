"""
Datetime parsing, formatting and arithmetic.

Instants are timezone-aware :class:`datetime.datetime` objects. Naive values
are taken to be in the configured ``TIMEZONE``. Patterns are either one of the
named :class:`DatetimePattern` aliases or a custom ``strftime`` format.
"""

from __future__ import annotations
import logging
from collections import namedtuple
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, localcontext
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Optional, Sequence, Union

import regex as re
from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from timespan.arithmetic import Ordering, negate
from timespan.conf import apply_settings
from timespan.duration import MILLISECONDS_PER_SECOND, Duration
from timespan.errors import InvalidRangeError, MalformedDatetimeError, UnknownPatternError
from timespan.timezone_parser import convert, localize, now as _now, replace, resolve_timezone
from timespan.units import EXACT, DurationUnit, from_unit, to_decimal

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
MICROSECONDS_PER_SECOND = 1000000
MICROSECONDS_PER_MILLISECOND = MICROSECONDS_PER_SECOND // MILLISECONDS_PER_SECOND

_ZONE = r"(?P<zone>Z|[+-]\d{2}:\d{2})?"

JDBC_DATETIME_PATTERN = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2}) "
    r"(?P<hour>\d{1,2}):(?P<minute>\d{1,2}):(?P<second>\d{1,2})(?:\.(?P<fraction>\d{1,9}))?$"
)
DB2_DATETIME_PATTERN = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})-"
    r"(?P<hour>\d{2})\.(?P<minute>\d{2})\.(?P<second>\d{2})\.(?P<fraction>\d{6})$"
)
DATE_PATTERN = re.compile(r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})" + _ZONE + "$")
TIME_PATTERN = re.compile(
    r"^(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})(?:\.(?P<fraction>\d{1,9}))?" + _ZONE + "$"
)
JDBC_DATE_PATTERN = re.compile(r"^(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})$")
JDBC_TIME_PATTERN = re.compile(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2}):(?P<second>\d{2})$")


class DatetimePattern(Enum):
    """Well-known datetime patterns, addressed by their (case-sensitive) names."""
    DATETIME = "datetime"
    DATETIME_XML = "datetime.xml"
    DATETIME_JDBC = "datetime.jdbc"
    DATETIME_DB2 = "datetime.db2"
    DATE = "date"
    DATE_XML = "date.xml"
    DATE_JDBC = "date.jdbc"
    TIME = "time"
    TIME_XML = "time.xml"
    TIME_JDBC = "time.jdbc"
    MILLISECONDS = "milliseconds"
    SECONDS = "seconds"

    @classmethod
    def names(cls):
        return frozenset(pattern.value for pattern in cls)

    def __str__(self) -> str:
        return self.value


DEFAULT_DATETIME_PATTERN = DatetimePattern.DATETIME

Pattern = Union[DatetimePattern, str, None]
Patterns = Union[Pattern, Sequence[Pattern]]

ParseOutcome = namedtuple("ParseOutcome", ["pattern", "instant", "error"])


@apply_settings
def resolve_pattern(pattern: Pattern, settings=None) -> Union[DatetimePattern, str]:
    """Resolve a named pattern; custom ``strftime`` formats are returned unchanged."""
    if pattern is None:
        pattern = settings.DEFAULT_DATETIME_PATTERN
    if isinstance(pattern, DatetimePattern):
        return pattern
    if not isinstance(pattern, str):
        raise UnknownPatternError(pattern)
    if pattern in DatetimePattern.names():
        return DatetimePattern(pattern)
    if "%" in pattern:
        return pattern
    raise UnknownPatternError(pattern)


# =============================================================================
# Parsers
# =============================================================================

def _microseconds(fraction: Optional[str]) -> int:
    if not fraction:
        return 0
    return int(fraction[:6].ljust(6, "0"))


def _zoned(value: datetime, zone: Optional[str], settings) -> datetime:
    if zone:
        return value.replace(tzinfo=resolve_timezone(zone).tzinfo)
    return localize(value, settings=settings)


def _match(pattern, text):
    match = pattern.match(text)
    if not match:
        raise ValueError("%r does not match %s" % (text, pattern.pattern))
    return match


def _parse_iso_datetime(text, settings):
    return localize(isoparse(text), settings=settings)


def _parse_jdbc_datetime(text, settings):
    match = _match(JDBC_DATETIME_PATTERN, text)
    value = datetime(
        int(match.group("year")), int(match.group("month")), int(match.group("day")),
        int(match.group("hour")), int(match.group("minute")), int(match.group("second")),
        _microseconds(match.group("fraction")),
    )
    return localize(value, settings=settings)


def _parse_db2_datetime(text, settings):
    match = _match(DB2_DATETIME_PATTERN, text)
    value = datetime(
        int(match.group("year")), int(match.group("month")), int(match.group("day")),
        int(match.group("hour")), int(match.group("minute")), int(match.group("second")),
        int(match.group("fraction")),
    )
    return localize(value, settings=settings)


def _parse_date(text, settings):
    match = _match(DATE_PATTERN, text)
    value = datetime(int(match.group("year")), int(match.group("month")), int(match.group("day")))
    return _zoned(value, match.group("zone"), settings)


def _parse_jdbc_date(text, settings):
    match = _match(JDBC_DATE_PATTERN, text)
    value = datetime(int(match.group("year")), int(match.group("month")), int(match.group("day")))
    return localize(value, settings=settings)


def _parse_time(text, settings):
    match = _match(TIME_PATTERN, text)
    value = datetime.combine(
        EPOCH.date(),
        time(
            int(match.group("hour")), int(match.group("minute")), int(match.group("second")),
            _microseconds(match.group("fraction")),
        ),
    )
    return _zoned(value, match.group("zone"), settings)


def _parse_jdbc_time(text, settings):
    match = _match(JDBC_TIME_PATTERN, text)
    value = datetime.combine(
        EPOCH.date(),
        time(int(match.group("hour")), int(match.group("minute")), int(match.group("second"))),
    )
    return localize(value, settings=settings)


def _from_epoch(text, unit, settings):
    offset = add(EPOCH, from_unit(to_decimal(text), unit))
    return convert(offset, resolve_timezone(settings.TIMEZONE))


def _parse_milliseconds(text, settings):
    return _from_epoch(text, DurationUnit.MILLISECONDS, settings)


def _parse_seconds(text, settings):
    return _from_epoch(text, DurationUnit.SECONDS, settings)


_PARSERS = MappingProxyType({
    DatetimePattern.DATETIME: _parse_iso_datetime,
    DatetimePattern.DATETIME_XML: _parse_iso_datetime,
    DatetimePattern.DATETIME_JDBC: _parse_jdbc_datetime,
    DatetimePattern.DATETIME_DB2: _parse_db2_datetime,
    DatetimePattern.DATE: _parse_date,
    DatetimePattern.DATE_XML: _parse_date,
    DatetimePattern.DATE_JDBC: _parse_jdbc_date,
    DatetimePattern.TIME: _parse_time,
    DatetimePattern.TIME_XML: _parse_time,
    DatetimePattern.TIME_JDBC: _parse_jdbc_time,
    DatetimePattern.MILLISECONDS: _parse_milliseconds,
    DatetimePattern.SECONDS: _parse_seconds,
})


# =============================================================================
# Emitters
# =============================================================================

def _epoch_microseconds(instant: datetime) -> int:
    delta = instant - EPOCH
    return (delta.days * 86400 + delta.seconds) * MICROSECONDS_PER_SECOND + delta.microseconds


def _emit_iso_datetime(instant):
    timespec = "milliseconds" if instant.microsecond % MICROSECONDS_PER_MILLISECOND == 0 else "microseconds"
    text = instant.isoformat(timespec=timespec)
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


def _milliseconds(instant):
    return "%03d" % (instant.microsecond // MICROSECONDS_PER_MILLISECOND)


def _emit_jdbc_datetime(instant):
    return instant.strftime("%Y-%m-%d %H:%M:%S.") + _milliseconds(instant)


def _emit_db2_datetime(instant):
    return instant.strftime("%Y-%m-%d-%H.%M.%S.%f")


def _emit_date(instant):
    return instant.strftime("%Y-%m-%d")


def _emit_time(instant):
    return instant.strftime("%H:%M:%S.") + _milliseconds(instant)


def _emit_jdbc_time(instant):
    return instant.strftime("%H:%M:%S")


def _emit_milliseconds(instant):
    return str(_epoch_microseconds(instant) // MICROSECONDS_PER_MILLISECOND)


def _emit_seconds(instant):
    return str(_epoch_microseconds(instant) // MICROSECONDS_PER_SECOND)


_EMITTERS = MappingProxyType({
    DatetimePattern.DATETIME: _emit_iso_datetime,
    DatetimePattern.DATETIME_XML: _emit_iso_datetime,
    DatetimePattern.DATETIME_JDBC: _emit_jdbc_datetime,
    DatetimePattern.DATETIME_DB2: _emit_db2_datetime,
    DatetimePattern.DATE: _emit_date,
    DatetimePattern.DATE_XML: _emit_date,
    DatetimePattern.DATE_JDBC: _emit_date,
    DatetimePattern.TIME: _emit_time,
    DatetimePattern.TIME_XML: _emit_time,
    DatetimePattern.TIME_JDBC: _emit_jdbc_time,
    DatetimePattern.MILLISECONDS: _emit_milliseconds,
    DatetimePattern.SECONDS: _emit_seconds,
})


# =============================================================================
# Parse / emit dispatch
# =============================================================================

def _parse_one(text: str, pattern, settings) -> datetime:
    try:
        if isinstance(pattern, DatetimePattern):
            return _PARSERS[pattern](text, settings)
        return localize(datetime.strptime(text, pattern), settings=settings)
    except (ValueError, OverflowError, ArithmeticError) as error:
        raise MalformedDatetimeError(text, patterns=(pattern,), errors=(error,)) from error


def _attempt(text: str, pattern, settings) -> ParseOutcome:
    try:
        return ParseOutcome(pattern, _parse_one(text, pattern, settings), None)
    except MalformedDatetimeError as error:
        logger.debug(f"Datetime {text!r} does not conform to pattern {pattern}: {error.errors}")
        return ParseOutcome(pattern, None, error)


@apply_settings
def parse(text: Optional[str], pattern: Patterns = None, zone=None, settings=None) -> Optional[datetime]:
    """
    Parse a datetime string.

    :param text: The string to parse; ``None`` is returned unchanged.
    :param pattern: A pattern, or a list of candidate patterns tried in order.
    :param zone: If given, the parsed wall-clock reading is reinterpreted in this zone.
    :raises MalformedDatetimeError:
        When the text fits none of the patterns. With several candidates the
        error names all of them and carries every individual failure.
    """
    if text is None:
        return None
    if not isinstance(text, str):
        raise TypeError("Input type must be str")

    if isinstance(pattern, (list, tuple)):
        candidates = [resolve_pattern(candidate, settings=settings) for candidate in pattern]
        candidates = candidates or [resolve_pattern(None, settings=settings)]
        failures = []
        for candidate in candidates:
            outcome = _attempt(text, candidate, settings)
            if outcome.error is None:
                return replace(outcome.instant, zone)
            failures.append(outcome.error)
        raise MalformedDatetimeError(text, patterns=candidates, errors=failures)

    return replace(_parse_one(text, resolve_pattern(pattern, settings=settings), settings), zone)


@apply_settings
def emit(instant: Optional[datetime], pattern: Pattern = None, zone=None, settings=None) -> Optional[str]:
    """Render ``instant`` in ``pattern``, converting it to ``zone`` (or ``TO_TIMEZONE``) first."""
    if instant is None:
        return None
    pattern = resolve_pattern(pattern, settings=settings)
    instant = localize(instant, settings=settings)
    instant = convert(instant, zone or settings.TO_TIMEZONE)
    if isinstance(pattern, DatetimePattern):
        return _EMITTERS[pattern](instant)
    return instant.strftime(pattern)


@apply_settings
def format(
    text: Optional[str],
    in_pattern: Patterns = None,
    out_pattern: Pattern = None,
    in_zone=None,
    out_zone=None,
    settings=None,
) -> Optional[str]:
    """Parse ``text`` with ``in_pattern`` and render it with ``out_pattern``."""
    instant = parse(text, in_pattern, in_zone, settings=settings)
    return emit(instant, out_pattern, out_zone, settings=settings)


# =============================================================================
# Arithmetic
# =============================================================================

def _elapsed_part(duration: Duration) -> timedelta:
    whole = int(duration.seconds)
    with localcontext(EXACT):
        microseconds = int((duration.seconds - whole) * MICROSECONDS_PER_SECOND)
    return timedelta(
        hours=duration.hours,
        minutes=duration.minutes,
        seconds=whole,
        microseconds=microseconds,
    )


@apply_settings
def add(instant: Optional[datetime], duration: Optional[Duration], settings=None) -> Optional[datetime]:
    """
    Add a duration to an instant.

    Years, months and days move the wall-clock calendar; hours, minutes and
    seconds move the absolute timeline, so adding ``PT1H`` across a daylight
    savings change still advances exactly one hour. Sub-microsecond precision
    is truncated.
    """
    if instant is None or duration is None:
        return instant
    instant = localize(instant, settings=settings)
    sign = duration.sign

    shifted = instant + relativedelta(
        years=sign * duration.years,
        months=sign * duration.months,
        days=sign * duration.days,
    )
    elapsed = _elapsed_part(duration)
    if not elapsed:
        return shifted
    if sign < 0:
        elapsed = -elapsed
    return (shifted.astimezone(timezone.utc) + elapsed).astimezone(shifted.tzinfo)


@apply_settings
def subtract(instant: Optional[datetime], duration: Optional[Duration], settings=None) -> Optional[datetime]:
    return add(instant, negate(duration), settings=settings)


@apply_settings
def earlier(duration: Optional[Duration], settings=None) -> datetime:
    """The current instant minus ``duration``."""
    return subtract(_now(settings=settings), duration, settings=settings)


@apply_settings
def later(duration: Optional[Duration], settings=None) -> datetime:
    """The current instant plus ``duration``."""
    return add(_now(settings=settings), duration, settings=settings)


@apply_settings
def elapsed(start: Optional[datetime], end: Optional[datetime], settings=None) -> Optional[Duration]:
    """The determinate duration from ``start`` to ``end``."""
    if start is None or end is None:
        return None
    delta = localize(end, settings=settings) - localize(start, settings=settings)
    microseconds = (delta.days * 86400 + delta.seconds) * MICROSECONDS_PER_SECOND + delta.microseconds
    return from_unit(Decimal(microseconds) / MICROSECONDS_PER_SECOND, DurationUnit.SECONDS)


# =============================================================================
# Comparison and ranges
# =============================================================================

@apply_settings
def compare(left: Optional[datetime], right: Optional[datetime], settings=None) -> Ordering:
    """Compare two instants; ``None`` sorts before any instant."""
    if left is None and right is None:
        return Ordering.EQUAL
    if left is None:
        return Ordering.LESSER
    if right is None:
        return Ordering.GREATER
    left = localize(left, settings=settings)
    right = localize(right, settings=settings)
    if left < right:
        return Ordering.LESSER
    if left > right:
        return Ordering.GREATER
    return Ordering.EQUAL


@apply_settings
def within(
    instant: Optional[datetime],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    settings=None,
) -> bool:
    """
    True if ``start <= instant <= end``.

    Either bound may be ``None`` for an open-ended range; with neither bound
    every instant is within. A ``None`` instant is never within.
    """
    if instant is None:
        return False
    if start is not None and end is not None:
        if compare(start, end, settings=settings) is Ordering.GREATER:
            raise InvalidRangeError(emit(start, settings=settings), emit(end, settings=settings))
    if start is not None and compare(instant, start, settings=settings) is Ordering.LESSER:
        return False
    if end is not None and compare(instant, end, settings=settings) is Ordering.GREATER:
        return False
    return True


def _present(instants: Iterable[Optional[datetime]], settings):
    return [localize(instant, settings=settings) for instant in instants or () if instant is not None]


@apply_settings
def minimum(instants: Iterable[Optional[datetime]], settings=None) -> Optional[datetime]:
    """The earliest instant, ignoring ``None``; ``None`` if nothing is left."""
    present = _present(instants, settings)
    return min(present) if present else None


@apply_settings
def maximum(instants: Iterable[Optional[datetime]], settings=None) -> Optional[datetime]:
    """The latest instant, ignoring ``None``; ``None`` if nothing is left."""
    present = _present(instants, settings)
    return max(present) if present else None


# =============================================================================
# Conveniences
# =============================================================================

@apply_settings
def now(settings=None) -> datetime:
    return _now(settings=settings)


@apply_settings
def today(settings=None) -> datetime:
    """Midnight at the start of the current day in the configured zone."""
    return _now(settings=settings).replace(hour=0, minute=0, second=0, microsecond=0)


@apply_settings
def tomorrow(settings=None) -> datetime:
    return add(today(settings=settings), Duration(days=1), settings=settings)


@apply_settings
def yesterday(settings=None) -> datetime:
    return subtract(today(settings=settings), Duration(days=1), settings=settings)


def concatenate(day: Optional[datetime], clock: Optional[datetime]) -> Optional[datetime]:
    """Combine the date of ``day`` with the time of day and zone of ``clock``."""
    if day is None or clock is None:
        return None
    return datetime.combine(day.date(), clock.timetz())


@apply_settings
def coerce(value, pattern: Patterns = None, zone=None, settings=None) -> Optional[datetime]:
    """
    Turn a datetime, date, epoch millisecond number or string into an aware datetime.

    Datetimes are converted to ``zone``; strings are parsed with ``pattern``
    and their wall clock reinterpreted in ``zone``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return convert(localize(value, settings=settings), zone)
    if isinstance(value, date):
        return convert(localize(datetime.combine(value, time()), settings=settings), zone)
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return convert(_from_epoch(value, DurationUnit.MILLISECONDS, settings), zone)
    if isinstance(value, str):
        return parse(value, pattern, zone, settings=settings)
    raise TypeError("Cannot interpret %r as a datetime" % (value,))
