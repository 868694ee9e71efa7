"""
Tests for duration addition, subtraction, negation, multiplication and comparison.
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from timespan.arithmetic import Ordering, add, compare, multiply, negate, subtract
from timespan.duration import Duration, parse_iso8601
from timespan.errors import DurationArithmeticError
from timespan.units import to_seconds


def d(text):
    return parse_iso8601(text)


class TestAdd:
    """Tests for field-wise addition."""

    def test_identity(self):
        for text in ["P1Y", "-PT5S", "P1DT2H3M", "PT0S"]:
            assert add(d(text), Duration.ZERO) == d(text)

    def test_fields_do_not_carry(self):
        assert add(d("PT30M"), d("PT45M")) == d("PT75M")

    def test_empty(self):
        assert add() == Duration.ZERO

    def test_skips_none(self):
        assert add(None, d("P1D"), None) == d("P1D")

    def test_folds_left_to_right(self):
        assert add(d("P1D"), d("PT1H"), d("PT1M")) == d("P1DT1H1M")

    def test_mixed_signs_recompose(self):
        assert add(d("P1D"), d("-PT1H")) == d("PT23H")

    def test_months_recompose(self):
        assert add(d("P1Y"), d("-P13M")) == d("-P1M")

    def test_opposite_groups_rejected(self):
        with pytest.raises(DurationArithmeticError):
            add(d("P1M"), d("-P1D"))

    def test_associative_for_determinate(self):
        a, b, c = d("P1DT2H"), d("-PT3H30M"), d("PT45.5S")
        assert compare(add(add(a, b), c), add(a, add(b, c))) is Ordering.EQUAL

    def test_operator(self):
        assert d("PT1H") + d("PT1M") == d("PT1H1M")


class TestSubtract:
    """Tests for field-wise subtraction."""

    def test_basic(self):
        assert subtract(d("P2D"), d("P1D")) == d("P1D")

    def test_to_zero(self):
        assert subtract(d("PT5S"), d("PT5S")).is_zero()

    def test_negative_result(self):
        assert subtract(d("PT1H"), d("PT2H")) == d("-PT1H")

    def test_chain(self):
        assert subtract(d("P3D"), d("P1D"), None, d("PT12H")) == d("P1DT12H")

    def test_empty(self):
        assert subtract() == Duration.ZERO

    def test_operator(self):
        assert d("PT10M") - d("PT15M") == d("-PT5M")


class TestNegate:
    """Tests for sign flipping."""

    def test_double_negation(self):
        for text in ["P1Y2M", "-PT0.5S", "PT0S"]:
            assert negate(negate(d(text))) == d(text)

    def test_flips(self):
        assert negate(d("P1D")) == d("-P1D")
        assert -d("-P1D") == d("P1D")

    def test_zero_stays_zero(self):
        assert negate(Duration.ZERO).sign == 0

    def test_none(self):
        assert negate(None) is None

    def test_only_zero_equals_its_negation(self):
        assert compare(d("PT0S"), negate(d("PT0S"))) is Ordering.EQUAL
        assert compare(d("PT1S"), negate(d("PT1S"))) is Ordering.GREATER


class TestMultiply:
    """Tests for scaling."""

    def test_determinate(self):
        assert multiply(d("PT1H30M"), 2) == d("PT3H")

    def test_decimal_factor(self):
        assert multiply(d("PT1S"), Decimal("0.5")) == d("PT0.5S")

    def test_negative_factor(self):
        assert multiply(d("P1D"), -1) == d("-P1D")

    def test_month_needs_instant(self):
        february = datetime(2024, 2, 1, tzinfo=timezone.utc)
        march = datetime(2024, 3, 1, tzinfo=timezone.utc)
        assert multiply(d("P1M"), 2, february) == d("P58D")
        assert multiply(d("P1M"), 2, march) == d("P62D")

    def test_large_factor_stays_exact(self):
        factor = Decimal("1" + "0" * 1100 + ".5")
        assert to_seconds(multiply(d("PT2S"), factor)) == Decimal("2" + "0" * 1099 + "1")
        assert multiply(d("PT2S"), factor).seconds % 60 == 21

    def test_none(self):
        assert multiply(None, 2) is None


class TestCompare:
    """Tests for the partial order."""

    def test_determinate(self):
        assert compare(d("PT24H"), d("P1D")) is Ordering.EQUAL
        assert compare(d("PT23H"), d("P1D")) is Ordering.LESSER
        assert compare(d("PT1S"), d("PT0.999S")) is Ordering.GREATER

    def test_month_against_thirty_days_is_indeterminate(self):
        assert compare(d("P1M"), d("P30D")) is Ordering.INDETERMINATE

    def test_month_against_provable_bounds(self):
        assert compare(d("P1M"), d("P27D")) is Ordering.GREATER
        assert compare(d("P1M"), d("P32D")) is Ordering.LESSER

    def test_year_against_months(self):
        assert compare(d("P1Y"), d("P12M")) is Ordering.EQUAL

    def test_year_against_days(self):
        assert compare(d("P1Y"), d("P365D")) is Ordering.INDETERMINATE
        assert compare(d("P1Y"), d("P367D")) is Ordering.LESSER

    def test_absent_values(self):
        assert compare(None, None) is Ordering.EQUAL
        assert compare(None, d("PT1S")) is Ordering.LESSER
        assert compare(d("PT1S"), None) is Ordering.GREATER
