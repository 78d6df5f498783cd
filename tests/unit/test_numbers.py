"""Unit tests for numeric coercion helpers."""
import pytest

from chainglobe.utils.numbers import middle_value, optional_float, pct_change, safe_float, safe_int


class TestSafeFloat:
    """Test coercion of loosely-typed JSON values."""

    @pytest.mark.parametrize("value,expected", [
        (1234.5, 1234.5),
        ("1234.5", 1234.5),
        (7, 7.0),
        (None, 0.0),
        ("n/a", 0.0),
        ({}, 0.0),
        (True, 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
    ])
    def test_values(self, value, expected):
        assert safe_float(value) == expected

    def test_custom_default(self):
        assert safe_float(None, default=-1.0) == -1.0

    def test_safe_int_via_float(self):
        assert safe_int("42.0") == 42
        assert safe_int("x", default=3) == 3


class TestOptionalFloat:

    def test_missing_stays_none(self):
        assert optional_float(None) is None
        assert optional_float("garbage") is None

    def test_zero_is_kept(self):
        assert optional_float(0) == 0.0


class TestPctChange:

    def test_change(self):
        assert pct_change(110.0, 100.0) == pytest.approx(10.0)
        assert pct_change(50.0, 100.0) == pytest.approx(-50.0)

    def test_zero_previous(self):
        assert pct_change(10.0, 0.0) == 0.0


class TestMiddleValue:
    """Test the n // 2 order statistic used for yield medians."""

    def test_odd_count(self):
        assert middle_value([5.0, 1.0, 3.0]) == 3.0

    def test_even_count_takes_upper_middle(self):
        assert middle_value([1.0, 2.0, 3.0, 4.0]) == 3.0

    def test_empty(self):
        assert middle_value([]) == 0.0
