"""
Inclusive ranges of durations relative to a movable epoch.

``-P1D..PT12H`` is the window from one day before the epoch to twelve hours
after it. Either side may be left out for an open-ended range, and ``..`` or
an empty string is the range that contains every instant.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import regex as re

from timespan import datetimes
from timespan.arithmetic import Ordering, compare
from timespan.conf import apply_settings
from timespan.duration import Duration, parse_iso8601
from timespan.errors import InvalidRangeError, MalformedDurationError, MalformedRangeError
from timespan.timezone_parser import now
from timespan.units import normalize

_DURATION = r"-?P(?:\d+Y)?(?:\d+M)?(?:\d+D)?(?:T(?:\d+H)?(?:\d+M)?(?:\d+(?:\.\d+)?S)?)?"

RANGE_PATTERN = re.compile(r"^(?P<start>" + _DURATION + r")?(?:\.\.(?P<end>" + _DURATION + r")?)?$")

SEPARATOR = ".."


@dataclass(frozen=True)
class DurationRange:
    """An inclusive ``start..end`` window of durations; ``None`` leaves a side unbounded."""
    start: Optional[Duration] = None
    end: Optional[Duration] = None

    def __post_init__(self) -> None:
        if self.start is None or self.end is None:
            return
        reference = now()
        ordering = compare(normalize(self.start, reference), normalize(self.end, reference))
        if ordering is Ordering.GREATER:
            raise InvalidRangeError(self.start, self.end)

    @classmethod
    def parse(cls, text: Optional[str]) -> DurationRange:
        """
        Parse ``<start>..<end>``.

        A lone duration without the separator is a start with no end.
        """
        if text is None or text == "":
            return cls()
        if not isinstance(text, str):
            raise TypeError("Input type must be str")

        match = RANGE_PATTERN.match(text)
        if not match:
            raise MalformedRangeError(text)
        try:
            start = parse_iso8601(match.group("start")) if match.group("start") else None
            end = parse_iso8601(match.group("end")) if match.group("end") else None
        except MalformedDurationError as error:
            raise MalformedRangeError(text) from error
        return cls(start, end)

    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None

    @apply_settings
    def within(self, instant: Optional[datetime], epoch: Optional[datetime] = None, settings=None) -> bool:
        """True if ``instant`` falls between ``epoch + start`` and ``epoch + end``; ``epoch`` defaults to now."""
        if instant is None:
            return False
        if self.is_unbounded():
            return True
        if epoch is None:
            epoch = now(settings=settings)
        start = datetimes.add(epoch, self.start, settings=settings) if self.start is not None else None
        end = datetimes.add(epoch, self.end, settings=settings) if self.end is not None else None
        return datetimes.within(instant, start, end, settings=settings)

    def __str__(self) -> str:
        start = self.start.to_iso8601() if self.start is not None else ""
        end = self.end.to_iso8601() if self.end is not None else ""
        return start + SEPARATOR + end
