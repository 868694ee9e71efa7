"""
Duration value model.

A :class:`Duration` is an immutable, signed, decomposed span of time in the
shape of an ISO-8601 / XML Schema duration: years, months, days, hours,
minutes and fractional seconds. Magnitudes are never negative; the ``sign``
field alone carries the direction, and a duration with no magnitude at all
has ``sign == 0``.

Equality is field-wise: ``PT24H`` and ``P1D`` are different values. Use
:func:`timespan.arithmetic.compare` to test equivalence across fields.
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from typing import Union

import regex as re

from timespan.errors import MalformedDurationError

SECONDS_PER_MINUTE = 60
MINUTES_PER_HOUR = 60
HOURS_PER_DAY = 24
DAYS_PER_WEEK = 7
MONTHS_PER_YEAR = 12
SECONDS_PER_HOUR = SECONDS_PER_MINUTE * MINUTES_PER_HOUR
SECONDS_PER_DAY = SECONDS_PER_HOUR * HOURS_PER_DAY
SECONDS_PER_WEEK = SECONDS_PER_DAY * DAYS_PER_WEEK
MILLISECONDS_PER_SECOND = 1000
NANOSECONDS_PER_SECOND = 1000000000

ISO8601_PATTERN = re.compile(
    r"^(?P<sign>-)?P(?!$)"
    r"(?:(?P<years>\d+)Y)?(?:(?P<months>\d+)M)?(?:(?P<days>\d+)D)?"
    r"(?:T(?=\d)(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$"
)

_INTEGER_FIELDS = ("years", "months", "days", "hours", "minutes")

Number = Union[int, Decimal, str]


def plain(value: Decimal) -> str:
    """Render a decimal without exponent notation or trailing fractional zeros."""
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("", "-0"):
        text = "0"
    return text


def _digits(value: int) -> str:
    return plain(Decimal(value))


def _integer(name, value):
    if isinstance(value, bool):
        raise MalformedDurationError(value, reason="duration field %r must be an integer: %r" % (name, value))
    if isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise MalformedDurationError(value, reason="duration field %r must be an integer: %s" % (name, value))
        value = int(value)
    if not isinstance(value, int):
        raise MalformedDurationError(value, reason="duration field %r must be an integer: %r" % (name, value))
    if value < 0:
        raise MalformedDurationError(value, reason="duration field %r must be non-negative: %s" % (name, Decimal(value)))
    return value


def _seconds(value):
    if isinstance(value, bool):
        raise MalformedDurationError(value, reason="duration seconds must be a decimal: %r" % (value,))
    if isinstance(value, float):
        value = repr(value)
    try:
        value = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise MalformedDurationError(value, reason="duration seconds must be a decimal: %r" % (value,))
    if not value.is_finite():
        raise MalformedDurationError(value, reason="duration seconds must be finite: %s" % (value,))
    if value < 0:
        raise MalformedDurationError(value, reason="duration seconds must be non-negative: %s" % (value,))
    return value.copy_abs()


@dataclass(frozen=True)
class Duration:
    """
    A signed ISO-8601 duration.

    Examples:
        Duration(days=1, hours=2)                # P1DT2H
        Duration(months=1, sign=-1)              # -P1M
        Duration(seconds=Decimal("0.000000001")) # PT0.000000001S
    """
    years: int = 0
    months: int = 0
    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: Decimal = Decimal(0)
    sign: int = 1

    def __post_init__(self) -> None:
        for name in _INTEGER_FIELDS:
            object.__setattr__(self, name, _integer(name, getattr(self, name)))
        object.__setattr__(self, "seconds", _seconds(self.seconds))

        if self.sign not in (-1, 0, 1):
            raise MalformedDurationError(self.sign, reason="duration sign must be -1, 0 or 1: %r" % (self.sign,))

        empty = not any(getattr(self, name) for name in _INTEGER_FIELDS) and not self.seconds
        if empty:
            object.__setattr__(self, "sign", 0)
        elif self.sign == 0:
            raise MalformedDurationError(self, reason="a non-zero duration requires a sign of -1 or 1")

    def is_zero(self) -> bool:
        return self.sign == 0

    def is_determinate(self) -> bool:
        """True when the duration has no years or months, so its length is fixed."""
        return not (self.years or self.months)

    def to_iso8601(self) -> str:
        """Render the minimal ``PnYnMnDTnHnMnS`` form, e.g. ``-P1DT2H`` or ``PT0S``."""
        has_date = bool(self.years or self.months or self.days)
        has_time = bool(self.hours or self.minutes or self.seconds)

        parts = ["-P" if self.sign < 0 else "P"]
        if self.years:
            parts.append("%sY" % _digits(self.years))
        if self.months:
            parts.append("%sM" % _digits(self.months))
        if self.days:
            parts.append("%sD" % _digits(self.days))
        if has_time or not has_date:
            parts.append("T")
            if self.hours:
                parts.append("%sH" % _digits(self.hours))
            if self.minutes:
                parts.append("%sM" % _digits(self.minutes))
            if self.seconds or not has_time:
                parts.append("%sS" % plain(self.seconds))
        return "".join(parts)

    def signed_fields(self):
        """Return ``(years, months, days, hours, minutes, seconds)`` with the sign applied."""
        return tuple(self.sign * getattr(self, field.name) for field in fields(self) if field.name != "sign")

    def __str__(self) -> str:
        return self.to_iso8601()

    def __bool__(self) -> bool:
        return not self.is_zero()

    def __neg__(self) -> Duration:
        from timespan.arithmetic import negate
        return negate(self)

    def __add__(self, other):
        if not isinstance(other, Duration):
            return NotImplemented
        from timespan.arithmetic import add
        return add(self, other)

    def __sub__(self, other):
        if not isinstance(other, Duration):
            return NotImplemented
        from timespan.arithmetic import subtract
        return subtract(self, other)


Duration.ZERO = Duration()


def parse_iso8601(text: str) -> Duration:
    """Parse ``[-]PnYnMnDTnHnMnS``, raising :class:`MalformedDurationError` on failure."""
    if not isinstance(text, str):
        raise TypeError("Input type must be str")

    match = ISO8601_PATTERN.match(text.strip())
    if not match:
        raise MalformedDurationError(text, patterns=("xml",))

    values = {name: int(Decimal(match.group(name) or 0)) for name in _INTEGER_FIELDS}
    return Duration(
        seconds=Decimal(match.group("seconds") or 0),
        sign=-1 if match.group("sign") else 1,
        **values
    )
