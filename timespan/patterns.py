"""
Parse and format durations by pattern name.

A pattern is a :class:`~timespan.units.DurationUnit` or one of its aliases
(``xml``, ``nanoseconds``, ``milliseconds``, ``seconds``, ``minutes``,
``hours``, ``days``, ``weeks``, ``months``, ``years``). Parsing also accepts
an ordered list of candidate patterns and returns the first that fits.
"""

import logging
from collections import namedtuple
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence, Union

from timespan.conf import apply_settings
from timespan.duration import Duration, parse_iso8601, plain
from timespan.errors import MalformedDurationError, TimespanError
from timespan.units import DurationUnit, from_unit, resolve_unit, to_unit

logger = logging.getLogger(__name__)

Pattern = Union[DurationUnit, str, None]
Patterns = Union[Pattern, Sequence[Pattern]]

ParseOutcome = namedtuple("ParseOutcome", ["pattern", "duration", "error"])


def _parse_one(value, unit: DurationUnit) -> Duration:
    if unit is DurationUnit.ISO8601:
        if not isinstance(value, str):
            raise MalformedDurationError(value, patterns=(unit,))
        return parse_iso8601(value)
    try:
        return from_unit(value, unit)
    except MalformedDurationError:
        raise MalformedDurationError(value, patterns=(unit,))


def _attempt(value, unit: DurationUnit) -> ParseOutcome:
    try:
        return ParseOutcome(unit, _parse_one(value, unit), None)
    except TimespanError as error:
        logger.debug(f"Duration {value!r} does not conform to pattern {unit}: {error}")
        return ParseOutcome(unit, None, error)


@apply_settings
def parse(value, pattern: Patterns = None, settings=None) -> Optional[Duration]:
    """
    Parse a duration literal.

    :param value:
        ISO-8601 text, or a decimal literal / number for scalar patterns.
        ``None`` is returned unchanged.
    :param pattern:
        A pattern, or a list of candidate patterns tried in order.
    :raises MalformedDurationError:
        When the value fits none of the patterns. With several candidates the
        error names all of them and carries every individual failure.
    :raises UnknownPatternError:
        When a pattern name is not recognized.
    """
    if value is None:
        return None
    if not isinstance(value, (str, int, float, Decimal)) or isinstance(value, bool):
        raise TypeError("Input type must be str or a number")

    if not isinstance(pattern, (list, tuple)):
        return _parse_one(value, resolve_unit(pattern, settings=settings))

    units = [resolve_unit(candidate, settings=settings) for candidate in pattern] or [
        resolve_unit(None, settings=settings)
    ]

    failures = []
    for unit in units:
        outcome = _attempt(value, unit)
        if outcome.error is None:
            return outcome.duration
        failures.append(outcome.error)

    raise MalformedDurationError(value, patterns=units, errors=failures)


def _instant(instant, settings):
    if instant is None or isinstance(instant, datetime):
        return instant
    from timespan.datetimes import coerce
    return coerce(instant, settings=settings)


@apply_settings
def format(
    duration: Optional[Duration],
    pattern: Pattern = None,
    instant=None,
    settings=None,
) -> Optional[str]:
    """
    Render a duration in ``pattern``.

    ``instant`` (a datetime, or a datetime string in the default datetime
    pattern) anchors years and months when a scalar pattern is requested;
    it defaults to now.
    """
    if duration is None:
        return None
    unit = resolve_unit(pattern, settings=settings)
    if unit is DurationUnit.ISO8601:
        return duration.to_iso8601()
    return plain(to_unit(duration, unit, _instant(instant, settings), settings=settings))


@apply_settings
def reformat(
    value,
    in_pattern: Patterns = None,
    out_pattern: Pattern = None,
    instant=None,
    settings=None,
) -> Optional[str]:
    """Parse ``value`` with ``in_pattern`` and render it with ``out_pattern``."""
    return format(
        parse(value, in_pattern, settings=settings),
        out_pattern,
        instant,
        settings=settings,
    )


@apply_settings
def coerce(value, pattern: Patterns = None, settings=None) -> Optional[Duration]:
    """
    Turn a duration, string or number into a :class:`Duration`.

    Numbers are read in ``pattern`` when it names a scalar unit, otherwise as
    milliseconds.
    """
    if value is None or isinstance(value, Duration):
        return value
    if isinstance(value, str):
        return parse(value, pattern, settings=settings)

    unit = None
    if not isinstance(pattern, (list, tuple)):
        unit = resolve_unit(pattern, settings=settings)
    if unit is None or not unit.is_scalar:
        unit = DurationUnit.MILLISECONDS
    return parse(value, unit, settings=settings)
