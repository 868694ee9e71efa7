"""
Time zone identifier resolution.

Identifiers are tried in a fixed order and the first structural match wins:

1. ``$default``, ``local`` or ``self``: the host's zone
2. ``Z``: UTC
3. ``[+-]HH:mm``: a fixed offset
4. ``[-]PnDTnHnMnS``: an ISO-8601 duration used as a fixed offset
5. ``[+-]n``: a raw offset in milliseconds
6. a known zone ID, e.g. ``Australia/Brisbane``
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from functools import lru_cache
from typing import Optional, Union
from zoneinfo import ZoneInfo, available_timezones

import regex as re
from dateutil import tz
from tzlocal import get_localzone, get_localzone_name

from timespan.conf import apply_settings
from timespan.duration import SECONDS_PER_MINUTE, parse_iso8601
from timespan.errors import MalformedDurationError, UnknownTimeZoneError

logger = logging.getLogger(__name__)

DEFAULT_ALIASES = ("$default",)
LOCAL_ALIASES = ("local", "self")

OFFSET_HHMM_PATTERN = re.compile(r"^(?P<sign>[+-])?(?P<hours>\d?\d):(?P<minutes>[0-5]\d)$")
OFFSET_XML_PATTERN = re.compile(r"^-?P(\d+|T\d+).+$")
OFFSET_RAW_PATTERN = re.compile(r"^[+-]?\d+$")

ZONES = frozenset(available_timezones()) | {"UTC"}

MAXIMUM_OFFSET = timedelta(hours=24)


@dataclass(frozen=True)
class TimeZoneSpec:
    """A resolved time zone: its canonical ID and the ``tzinfo`` implementing it."""
    id: str
    tzinfo: tzinfo

    def utcoffset(self, instant: Optional[datetime] = None) -> timedelta:
        instant = instant or datetime.now(self.tzinfo)
        return self._aware(instant).utcoffset()

    def dst(self, instant: Optional[datetime] = None) -> timedelta:
        instant = instant or datetime.now(self.tzinfo)
        return self._aware(instant).dst() or timedelta(0)

    @property
    def observes_dst(self) -> bool:
        """True when the zone's offset differs between January and July of this year."""
        year = datetime.now(self.tzinfo).year
        january = datetime(year, 1, 1, tzinfo=self.tzinfo)
        july = datetime(year, 7, 1, tzinfo=self.tzinfo)
        return january.utcoffset() != july.utcoffset()

    def _aware(self, instant):
        if instant.tzinfo is None:
            return instant.replace(tzinfo=self.tzinfo)
        return instant.astimezone(self.tzinfo)

    def __str__(self) -> str:
        return self.id


ZoneLike = Union[str, TimeZoneSpec, tzinfo]


def format_offset(offset: timedelta) -> str:
    """Render an offset as ``+HH:MM``, or ``UTC`` when it is zero."""
    seconds = int(offset.total_seconds())
    if seconds == 0:
        return "UTC"
    sign = "-" if seconds < 0 else "+"
    minutes, _ = divmod(abs(seconds), SECONDS_PER_MINUTE)
    hours, minutes = divmod(minutes, 60)
    return "%s%02d:%02d" % (sign, hours, minutes)


def _fixed(offset: timedelta, identifier: str) -> TimeZoneSpec:
    if abs(offset) >= MAXIMUM_OFFSET:
        raise UnknownTimeZoneError(identifier)
    if not offset:
        return TimeZoneSpec(id="UTC", tzinfo=tz.UTC)
    name = format_offset(offset)
    return TimeZoneSpec(id=name, tzinfo=tz.tzoffset(name, offset))


def _from_hhmm(match):
    offset = timedelta(hours=int(match.group("hours")), minutes=int(match.group("minutes")))
    if match.group("sign") == "-":
        offset = -offset
    return offset


def _from_duration(identifier):
    duration = parse_iso8601(identifier)
    if not duration.is_determinate():
        raise UnknownTimeZoneError(identifier)
    whole = int(duration.seconds)
    offset = timedelta(
        days=duration.days,
        hours=duration.hours,
        minutes=duration.minutes,
        seconds=whole,
        microseconds=int((duration.seconds - whole) * 1000000),
    )
    return -offset if duration.sign < 0 else offset


def _host():
    zone = get_localzone()
    return TimeZoneSpec(id=get_localzone_name() or str(zone), tzinfo=zone)


@lru_cache(maxsize=512)
def _resolve(identifier: str) -> TimeZoneSpec:
    if identifier in DEFAULT_ALIASES or identifier.lower() in LOCAL_ALIASES:
        logger.debug(f"Time zone '{identifier}' resolved to the host default")
        return _host()

    if identifier == "Z":
        return TimeZoneSpec(id="UTC", tzinfo=tz.UTC)

    match = OFFSET_HHMM_PATTERN.match(identifier)
    if match:
        logger.debug(f"Time zone '{identifier}' resolved as an HH:mm offset")
        return _fixed(_from_hhmm(match), identifier)

    if OFFSET_XML_PATTERN.match(identifier):
        try:
            offset = _from_duration(identifier)
        except MalformedDurationError:
            raise UnknownTimeZoneError(identifier)
        logger.debug(f"Time zone '{identifier}' resolved as an ISO-8601 duration offset")
        return _fixed(offset, identifier)

    if OFFSET_RAW_PATTERN.match(identifier):
        milliseconds = int(identifier)
        logger.debug(f"Time zone '{identifier}' resolved as a millisecond offset")
        return _fixed(timedelta(milliseconds=milliseconds), identifier)

    if identifier in ZONES:
        if identifier == "UTC":
            return TimeZoneSpec(id="UTC", tzinfo=tz.UTC)
        return TimeZoneSpec(id=identifier, tzinfo=ZoneInfo(identifier))

    raise UnknownTimeZoneError(identifier)


def resolve_timezone(identifier: ZoneLike) -> TimeZoneSpec:
    """Resolve an identifier (or pass through a resolved zone) to a :class:`TimeZoneSpec`."""
    if isinstance(identifier, TimeZoneSpec):
        return identifier
    if isinstance(identifier, tzinfo):
        return TimeZoneSpec(id=str(identifier), tzinfo=identifier)
    if not isinstance(identifier, str):
        raise TypeError("Time zone identifier must be str (%r given)" % type(identifier))
    return _resolve(identifier.strip())


@apply_settings
def default_timezone(settings=None) -> TimeZoneSpec:
    return resolve_timezone(settings.TIMEZONE)


@apply_settings
def now(settings=None) -> datetime:
    return datetime.now(default_timezone(settings=settings).tzinfo)


@apply_settings
def localize(instant: datetime, settings=None) -> datetime:
    """Attach the configured zone to a naive datetime; aware datetimes are returned as is."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=default_timezone(settings=settings).tzinfo)
    return instant


def convert(instant: Optional[datetime], zone: Optional[ZoneLike]) -> Optional[datetime]:
    """Express the same absolute instant in another zone."""
    if instant is None or zone is None:
        return instant
    spec = resolve_timezone(zone)
    if instant.tzinfo is None:
        instant = localize(instant)
    return instant.astimezone(spec.tzinfo)


def replace(instant: Optional[datetime], zone: Optional[ZoneLike]) -> Optional[datetime]:
    """Keep the wall-clock reading and reinterpret it in another zone."""
    if instant is None or zone is None:
        return instant
    spec = resolve_timezone(zone)
    return instant.replace(tzinfo=spec.tzinfo)
