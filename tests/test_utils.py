"""Tests for the shared helper functions."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from subsurface_tools.utils import (
    epoch_seconds,
    escape_xml,
    format_number,
    format_utc,
    is_numeric,
    parse_duration,
    parse_iso8601,
    parse_measure,
    round_to,
    string_hash,
)


def test_round_to_rounds_halves_away_from_zero():
    assert round_to(2.675, 2) == 2.68
    assert round_to(-2.5, 0) == -3.0
    assert round_to(1.23456789, 7) == 1.2345679


def test_string_hash_matches_32bit_polynomial_hash():
    assert string_hash("") == 0
    assert string_hash("hello") == 99162322
    # Wraps into the negative range like a signed 32-bit integer.
    assert string_hash("polygenelubricants") == -2147483648


@pytest.mark.parametrize(
    "value, expected",
    [(1, True), (2.5, True), ("3.5", True), (" ", False), ("abc", False), (None, False), (float("nan"), False)],
)
def test_is_numeric(value, expected):
    assert is_numeric(value) is expected


def test_parse_measure_strips_units():
    assert parse_measure("1.23 m") == 1.23
    assert parse_measure("-1.5 C") == -1.5
    assert parse_measure(None) == 0.0
    assert parse_measure("bar") == 0.0


def test_parse_duration_formats():
    assert parse_duration("12:34 min") == 754
    assert parse_duration("1:02:03") == 3723
    assert parse_duration("5") == 300
    assert parse_duration("") == 0


def test_format_number_drops_integral_fraction():
    assert format_number(3.0) == "3"
    assert format_number(-44.5) == "-44.5"


def test_escape_xml():
    assert escape_xml("a<b & 'c'") == "a&lt;b &amp; &apos;c&apos;"


def test_parse_iso8601_and_format_utc():
    value = parse_iso8601("2023-01-01T08:00:00-03:00")
    assert value.utcoffset() == timedelta(hours=-3)
    assert format_utc(value) == "2023-01-01T11:00:00Z"
    naive = parse_iso8601("2023-01-01 11:00:00")
    assert naive.tzinfo == timezone.utc
    assert parse_iso8601("2023-01-01T11:00:00Z") == naive
    with pytest.raises(ValueError):
        parse_iso8601("yesterday")


def test_epoch_seconds_treats_naive_as_utc():
    assert epoch_seconds(datetime(1970, 1, 1, 0, 1)) == 60
    assert epoch_seconds(datetime(1970, 1, 1, 1, 1, tzinfo=timezone(timedelta(hours=1)))) == 60
