"""
Parsing Tests - Unit Tests for the Input Normalizer

Covers locale-ambiguous amounts ("1.234,56" vs "1,234.56"), ornamented
display text and the "<day> <Mon> <year>" date format.
"""
import math
from datetime import date

import pytest  # Testing framework for writing and running tests

from btcperf.shared.parsing import format_api_date, parse_amount, parse_date


class TestParseAmount:
    def test_both_separators_rightmost_is_decimal(self):
        assert parse_amount("1.234,56") == pytest.approx(1234.56)
        assert parse_amount("1,234.56") == pytest.approx(1234.56)

    def test_single_comma_three_trailing_digits_is_thousands(self):
        assert parse_amount("10,000") == 10000

    def test_single_comma_two_trailing_digits_is_decimal(self):
        assert parse_amount("12,5") == pytest.approx(12.5)
        assert parse_amount("12,50") == pytest.approx(12.5)

    def test_multiple_thousands_groups(self):
        assert parse_amount("10,948,570") == 10948570
        assert parse_amount("185.000,00") == pytest.approx(185000.0)
        assert parse_amount("1.234.567") == 1234567

    def test_lone_dot_is_decimal(self):
        assert parse_amount("0.25891") == pytest.approx(0.25891)
        assert parse_amount("12.5") == pytest.approx(12.5)

    def test_ornamentation_is_stripped(self):
        assert parse_amount("€3,732.68") == pytest.approx(3732.68)
        assert parse_amount("EUR 15,000") == 15000
        assert parse_amount("12.5%") == pytest.approx(12.5)
        assert parse_amount("0.25891 BTC") == pytest.approx(0.25891)

    def test_leading_minus_kept_embedded_minus_removed(self):
        assert parse_amount("-1.234,56") == pytest.approx(-1234.56)
        assert parse_amount("12-34") == 1234

    def test_plain_integer(self):
        assert parse_amount("42") == 42

    def test_numbers_pass_through(self):
        assert parse_amount(12.5) == 12.5
        assert parse_amount(7) == 7.0

    @pytest.mark.parametrize("text", [None, "", "abc", "-", ".", "€"])
    def test_unparsable_returns_nan(self, text):
        assert math.isnan(parse_amount(text))


class TestParseDate:
    def test_valid_date(self):
        assert parse_date("24 Nov 2024") == date(2024, 11, 24)

    def test_single_digit_day_and_lowercase_month(self):
        assert parse_date("3 jan 2023") == date(2023, 1, 3)

    @pytest.mark.parametrize(
        "text",
        [None, "", "2024-11-24", "24 November 2024", "Nov 24 2024", "24 Foo 2024", "31 Feb 2024"],
    )
    def test_rejects_other_shapes(self, text):
        assert parse_date(text) is None


class TestFormatApiDate:
    def test_day_month_year(self):
        assert format_api_date(date(2024, 11, 4)) == "04-11-2024"
