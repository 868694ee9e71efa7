"""
Tests for datetime parsing, emitting and arithmetic.
"""

import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from timespan import datetimes
from timespan.arithmetic import Ordering
from timespan.datetimes import DatetimePattern
from timespan.duration import Duration, parse_iso8601
from timespan.errors import InvalidRangeError, MalformedDatetimeError, UnknownPatternError

UTC = {"TIMEZONE": "UTC"}


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestResolvePattern:
    """Tests for datetime pattern alias resolution."""

    def test_names(self):
        assert datetimes.resolve_pattern("datetime.db2") is DatetimePattern.DATETIME_DB2
        assert datetimes.resolve_pattern("time.jdbc") is DatetimePattern.TIME_JDBC

    def test_default(self):
        assert datetimes.resolve_pattern(None) is DatetimePattern.DATETIME

    def test_case_sensitive(self):
        with pytest.raises(UnknownPatternError):
            datetimes.resolve_pattern("DATETIME")

    def test_custom_format(self):
        assert datetimes.resolve_pattern("%d/%m/%Y") == "%d/%m/%Y"

    def test_unknown(self):
        with pytest.raises(UnknownPatternError):
            datetimes.resolve_pattern("yyyy-MM-dd")


class TestParse:
    """Tests for parsing each named pattern."""

    def test_iso_datetime(self):
        result = datetimes.parse("2024-02-29T13:45:30.123+10:00")
        assert result == datetime(2024, 2, 29, 3, 45, 30, 123000, tzinfo=timezone.utc)

    def test_iso_datetime_naive_uses_setting(self):
        result = datetimes.parse("2024-02-29T13:45:30", settings={"TIMEZONE": "+02:00"})
        assert result.utcoffset() == timedelta(hours=2)

    def test_jdbc_datetime(self):
        result = datetimes.parse("2024-01-02 03:04:05.678", "datetime.jdbc", settings=UTC)
        assert result == utc(2024, 1, 2, 3, 4, 5, 678000)

    def test_db2_datetime(self):
        result = datetimes.parse("2024-01-02-03.04.05.123456", "datetime.db2", settings=UTC)
        assert result == utc(2024, 1, 2, 3, 4, 5, 123456)

    def test_db2_requires_fixed_width(self):
        with pytest.raises(MalformedDatetimeError):
            datetimes.parse("2024-01-02-03.04.05.123", "datetime.db2", settings=UTC)

    def test_date(self):
        assert datetimes.parse("2024-07-04", "date", settings=UTC) == utc(2024, 7, 4)

    def test_date_with_zone(self):
        result = datetimes.parse("2024-07-04+10:00", "date.xml")
        assert result.utcoffset() == timedelta(hours=10)

    def test_jdbc_date(self):
        assert datetimes.parse("2024-7-4", "date.jdbc", settings=UTC) == utc(2024, 7, 4)

    def test_time(self):
        result = datetimes.parse("13:14:15.5", "time", settings=UTC)
        assert result == utc(1970, 1, 1, 13, 14, 15, 500000)

    def test_jdbc_time(self):
        assert datetimes.parse("13:14:15", "time.jdbc", settings=UTC) == utc(1970, 1, 1, 13, 14, 15)

    def test_epoch_milliseconds(self):
        assert datetimes.parse("86400001", "milliseconds", settings=UTC) == utc(1970, 1, 2, 0, 0, 0, 1000)

    def test_epoch_seconds(self):
        assert datetimes.parse("-1.5", "seconds", settings=UTC) == utc(1969, 12, 31, 23, 59, 58, 500000)

    def test_custom_format(self):
        assert datetimes.parse("04/07/2024", "%d/%m/%Y", settings=UTC) == utc(2024, 7, 4)

    def test_zone_replaces_wall_clock(self):
        result = datetimes.parse("2024-01-01 12:00:00.000", "datetime.jdbc", "+10:00", settings=UTC)
        assert result.hour == 12
        assert result == utc(2024, 1, 1, 2)

    def test_none(self):
        assert datetimes.parse(None) is None

    def test_non_string(self):
        with pytest.raises(TypeError):
            datetimes.parse(20240101)

    def test_malformed(self):
        with pytest.raises(MalformedDatetimeError) as error:
            datetimes.parse("yesterday", "date")
        assert error.value.text == "yesterday"
        assert error.value.patterns == (DatetimePattern.DATE,)

    def test_candidates(self):
        result = datetimes.parse("2024-07-04", ["datetime.jdbc", "date"], settings=UTC)
        assert result == utc(2024, 7, 4)

    def test_candidates_all_fail(self):
        with pytest.raises(MalformedDatetimeError) as error:
            datetimes.parse("soon", ["datetime", "date", "%Y"])
        assert error.value.patterns == (DatetimePattern.DATETIME, DatetimePattern.DATE, "%Y")
        assert len(error.value.errors) == 3


class TestEmit:
    """Tests for rendering each named pattern."""

    def setup_method(self):
        self.instant = utc(2024, 1, 2, 3, 4, 5, 678000)

    def test_iso_datetime(self):
        assert datetimes.emit(self.instant) == "2024-01-02T03:04:05.678Z"

    def test_iso_datetime_microseconds(self):
        assert datetimes.emit(utc(2024, 1, 2, 3, 4, 5, 678901)) == "2024-01-02T03:04:05.678901Z"

    def test_iso_datetime_offset(self):
        assert datetimes.emit(self.instant, zone="+10:00") == "2024-01-02T13:04:05.678+10:00"

    def test_to_timezone_setting(self):
        assert datetimes.emit(self.instant, "time.jdbc", settings={"TO_TIMEZONE": "-01:00"}) == "02:04:05"

    @pytest.mark.parametrize(
        "pattern,expected",
        [
            ("datetime.jdbc", "2024-01-02 03:04:05.678"),
            ("datetime.db2", "2024-01-02-03.04.05.678000"),
            ("date", "2024-01-02"),
            ("date.jdbc", "2024-01-02"),
            ("time", "03:04:05.678"),
            ("time.jdbc", "03:04:05"),
            ("milliseconds", "1704164645678"),
            ("seconds", "1704164645"),
            ("%Y/%m/%d %H", "2024/01/02 03"),
        ],
    )
    def test_patterns(self, pattern, expected):
        assert datetimes.emit(self.instant, pattern) == expected

    def test_none(self):
        assert datetimes.emit(None) is None


class TestFormat:
    """Tests for converting datetime strings between patterns and zones."""

    def test_between_patterns(self):
        assert datetimes.format("2024-01-02-03.04.05.678000", "datetime.db2", "datetime", settings=UTC) == (
            "2024-01-02T03:04:05.678Z"
        )

    def test_between_zones(self):
        result = datetimes.format(
            "2024-01-02 03:04:05.000", "datetime.jdbc", "datetime.jdbc", "Z", "Australia/Brisbane"
        )
        assert result == "2024-01-02 13:04:05.000"


class TestAdd:
    """Tests for adding durations to instants."""

    def test_days(self):
        assert datetimes.add(utc(2024, 2, 28), parse_iso8601("P1D")) == utc(2024, 2, 29)

    def test_month_end_clamps(self):
        assert datetimes.add(utc(2024, 1, 31), parse_iso8601("P1M")) == utc(2024, 2, 29)

    def test_negative(self):
        assert datetimes.add(utc(2024, 3, 1), parse_iso8601("-P1DT1H")) == utc(2024, 2, 28, 23)

    def test_fractional_seconds(self):
        assert datetimes.add(utc(2024, 1, 1), parse_iso8601("PT0.0015S")) == utc(2024, 1, 1, 0, 0, 0, 1500)

    def test_sub_microsecond_truncated(self):
        assert datetimes.add(utc(2024, 1, 1), parse_iso8601("PT0.0000019S")) == utc(2024, 1, 1, 0, 0, 0, 1)

    def test_hours_follow_absolute_time_across_dst(self):
        sydney = ZoneInfo("Australia/Sydney")
        before = datetime(2024, 4, 7, 1, 30, tzinfo=sydney)
        after = datetimes.add(before, parse_iso8601("PT2H"))
        assert after.astimezone(timezone.utc) - before.astimezone(timezone.utc) == timedelta(hours=2)
        assert after.hour == 2

    def test_days_follow_wall_clock_across_dst(self):
        sydney = ZoneInfo("Australia/Sydney")
        before = datetime(2024, 4, 6, 12, 0, tzinfo=sydney)
        after = datetimes.add(before, parse_iso8601("P1D"))
        assert (after.day, after.hour) == (7, 12)

    def test_subtract(self):
        assert datetimes.subtract(utc(2024, 3, 1), parse_iso8601("P1M")) == utc(2024, 2, 1)

    def test_none(self):
        assert datetimes.add(None, parse_iso8601("P1D")) is None
        assert datetimes.add(utc(2024, 1, 1), None) == utc(2024, 1, 1)


class TestWithin:
    """Tests for inclusive range checks."""

    def setup_method(self):
        self.start = utc(2024, 1, 1)
        self.end = utc(2024, 1, 31)

    def test_bounds_are_inclusive(self):
        assert datetimes.within(self.start, self.start, self.end)
        assert datetimes.within(self.end, self.start, self.end)

    def test_just_outside(self):
        tick = timedelta(microseconds=1)
        assert not datetimes.within(self.start - tick, self.start, self.end)
        assert not datetimes.within(self.end + tick, self.start, self.end)

    def test_open_ended(self):
        assert datetimes.within(utc(1900, 1, 1), None, self.end)
        assert datetimes.within(utc(2100, 1, 1), self.start, None)
        assert not datetimes.within(utc(2100, 1, 1), None, self.end)

    def test_unbounded(self):
        assert datetimes.within(utc(2024, 6, 1))

    def test_absent_instant(self):
        assert not datetimes.within(None, self.start, self.end)

    def test_inverted_range(self):
        with pytest.raises(InvalidRangeError):
            datetimes.within(self.start, self.end, self.start)


class TestCompare:
    """Tests for instant ordering, extremes and elapsed time."""

    def test_compare(self):
        assert datetimes.compare(utc(2024, 1, 1), utc(2024, 1, 2)) is Ordering.LESSER
        assert datetimes.compare(utc(2024, 1, 1, 10), datetime(2024, 1, 1, 20, tzinfo=timezone(timedelta(hours=10)))) is (
            Ordering.EQUAL
        )
        assert datetimes.compare(None, utc(2024, 1, 1)) is Ordering.LESSER
        assert datetimes.compare(None, None) is Ordering.EQUAL

    def test_minimum_maximum(self):
        instants = [None, utc(2024, 5, 1), utc(2023, 1, 1), None, utc(2025, 1, 1)]
        assert datetimes.minimum(instants) == utc(2023, 1, 1)
        assert datetimes.maximum(instants) == utc(2025, 1, 1)

    def test_minimum_maximum_empty(self):
        assert datetimes.minimum([]) is None
        assert datetimes.maximum([None, None]) is None

    def test_elapsed(self):
        result = datetimes.elapsed(utc(2024, 1, 1), utc(2024, 1, 2, 1, 0, 0, 500000))
        assert result == Duration(days=1, hours=1, seconds=Decimal("0.5"))

    def test_elapsed_negative(self):
        assert datetimes.elapsed(utc(2024, 1, 2), utc(2024, 1, 1)) == Duration(days=1, sign=-1)


class TestConveniences:
    """Tests for relative instants and value coercion."""

    def test_today_is_midnight(self):
        today = datetimes.today(settings=UTC)
        assert (today.hour, today.minute, today.second, today.microsecond) == (0, 0, 0, 0)

    def test_tomorrow_and_yesterday(self):
        today = datetimes.today(settings=UTC)
        assert datetimes.tomorrow(settings=UTC) - today == timedelta(days=1)
        assert today - datetimes.yesterday(settings=UTC) == timedelta(days=1)

    def test_earlier_and_later(self):
        hour = parse_iso8601("PT1H")
        assert datetimes.earlier(hour, settings=UTC) < datetimes.now(settings=UTC)
        assert datetimes.later(hour, settings=UTC) > datetimes.now(settings=UTC)

    def test_concatenate(self):
        day = utc(2024, 7, 4, 23, 59)
        clock = datetime(1970, 1, 1, 8, 30, tzinfo=timezone(timedelta(hours=2)))
        result = datetimes.concatenate(day, clock)
        assert result == datetime(2024, 7, 4, 8, 30, tzinfo=timezone(timedelta(hours=2)))
        assert datetimes.concatenate(None, clock) is None

    def test_coerce(self):
        assert datetimes.coerce(0, settings=UTC) == utc(1970, 1, 1)
        assert datetimes.coerce(date(2024, 7, 4), settings=UTC) == utc(2024, 7, 4)
        assert datetimes.coerce("2024-07-04", "date", settings=UTC) == utc(2024, 7, 4)
        assert datetimes.coerce(utc(2024, 1, 1), zone="+10:00").hour == 10

    def test_coerce_unsupported(self):
        with pytest.raises(TypeError):
            datetimes.coerce(object())
