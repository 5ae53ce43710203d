from __future__ import annotations

import pytest

from staking_airdrop.fixed_point import RAY, format_ray, parse_ray, ray_to_float, to_ray


def test_ray_to_float_handles_zero_and_whole_units():
    assert ray_to_float(0) == 0.0
    assert ray_to_float(RAY) == 1.0
    assert ray_to_float(1500 * RAY + RAY // 2) == 1500.5


def test_ray_to_float_keeps_fraction_on_large_balances():
    # ~3.4e11 WTON: the scaled integer is far beyond 2**53.
    whole = 340_282_366_920
    value = whole * RAY + 25 * 10**25
    assert value > 2**120
    assert ray_to_float(value) == pytest.approx(whole + 0.25, rel=1e-15)


def test_ray_to_float_sub_unit_amount():
    assert ray_to_float(1) == pytest.approx(1e-27)


@pytest.mark.parametrize("raw, expected", [("0", 0), ("1000", 1000), (" 42 ", 42), (7, 7)])
def test_parse_ray_accepts_integers(raw, expected):
    assert parse_ray(raw) == expected


@pytest.mark.parametrize("raw", ["1.5", "-1", "abc", "", "1e27", -5, True])
def test_parse_ray_rejects_malformed_values(raw):
    with pytest.raises(ValueError):
        parse_ray(raw)


def test_to_ray_scales_whole_and_fractional_tokens():
    assert to_ray(100) == 100 * RAY
    assert to_ray("0.5") == RAY // 2
    assert to_ray("1e-30") == 0


def test_to_ray_rejects_non_numeric():
    with pytest.raises(ValueError):
        to_ray("lots")
    with pytest.raises(ValueError):
        to_ray("nan")


def test_format_ray_truncates_to_places():
    assert format_ray(1234 * RAY + RAY // 4) == "1,234.25"
    assert format_ray(0) == "0.00"
    assert format_ray(5 * RAY + RAY - 1, places=0) == "5"
    assert format_ray(-2 * RAY) == "-2.00"
