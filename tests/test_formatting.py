"""Tests for the number / percentage formatters."""

import pytest

from data.formatting import (
    currency_symbol,
    format_large_number,
    format_money,
    format_number,
    format_percentage,
    percentage_direction,
)


@pytest.mark.parametrize("num, expected", [
    (None, "--"),
    (0, "0"),
    (999, "999"),
    (1234567, "1,234,567"),
    (1234.5, "1,234.5"),
    (67234.12, "67,234.12"),
    (21000000.0, "21,000,000"),
    (0.00001234, "0.00001234"),
    (-512.3, "-512.3"),
])
def test_format_number(num, expected):
    assert format_number(num) == expected


@pytest.mark.parametrize("num, expected", [
    (None, "--"),
    (1.324e12, "1.32T"),
    (2.567e9, "2.57B"),
    (12_345_678, "12,345,678"),
    (1_234_567.891, "1,234,567.891"),
    (999_999, "999,999"),
])
def test_format_large_number(num, expected):
    assert format_large_number(num) == expected


@pytest.mark.parametrize("pct, expected", [
    (None, "--"),
    (0, "0.00 %"),
    (1.2, "1.20 %"),
    (-0.756, "-0.76 %"),
])
def test_format_percentage(pct, expected):
    assert format_percentage(pct) == expected


def test_percentage_direction():
    assert percentage_direction(None) is None
    assert percentage_direction(-0.01) == "down"
    assert percentage_direction(0) == "up"
    assert percentage_direction(3.2) == "up"


def test_currency_symbols():
    assert currency_symbol("usd") == "$"
    assert currency_symbol("EUR") == "€"
    with pytest.raises(KeyError):
        currency_symbol("gbp")


def test_format_money():
    assert format_money(1234.5, "usd") == "$1,234.5"
    assert format_money(None, "eur") == "--"
