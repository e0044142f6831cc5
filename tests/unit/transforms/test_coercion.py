"""Unit tests for null-safe numeric and timestamp coercion."""

from __future__ import annotations

import pandas as pd
import pytest

from src.etl.transformers.coercion import (
    coerce_number,
    coerce_number_series,
    coerce_timestamp,
    coerce_timestamp_series,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [("42", 42.0), ("3.5", 3.5), (" 7 ", 7.0), ("-1", -1.0)],
)
def test_coerce_number_parses_numeric_text(text: str, expected: float) -> None:
    """Plain numeric text should parse to a float."""
    assert coerce_number(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "1,5", "nan", "inf", "-inf", None, "12abc"])
def test_coerce_number_returns_none_for_unparseable_text(text: str | None) -> None:
    """Unparseable or non-finite text is null, never an exception."""
    assert coerce_number(text) is None


def test_coerce_timestamp_treats_naive_text_as_utc() -> None:
    """Timestamps without an offset are UTC."""
    assert coerce_timestamp("2024-01-01 05:30:00") == pd.Timestamp("2024-01-01 05:30:00", tz="UTC")
    assert coerce_timestamp("2024-01-01T00:00") == pd.Timestamp("2024-01-01", tz="UTC")


def test_coerce_timestamp_converts_offsets_to_utc() -> None:
    """Text with an explicit offset is converted to UTC."""
    assert coerce_timestamp("2024-01-01T00:00:00+02:00") == pd.Timestamp("2023-12-31 22:00", tz="UTC")


@pytest.mark.parametrize("text", ["", None, "not a date", "31/02/2024 25:61", "2024-13-45", "N/A"])
def test_coerce_timestamp_returns_none_for_unparseable_text(text: str | None) -> None:
    """Absent and malformed timestamps both become null."""
    assert coerce_timestamp(text) is None


def test_coerce_number_series_counts_only_malformed_cells() -> None:
    """Empty cells are absent values; only non-empty failures are malformed."""
    numbers, malformed = coerce_number_series(pd.Series(["1", "", "high", "2.0"], dtype=object))

    assert numbers.isna().tolist() == [False, True, True, False]
    assert numbers.iloc[3] == 2.0
    assert malformed == 1


def test_coerce_timestamp_series_counts_only_malformed_cells() -> None:
    """Column coercion nulls bad cells and reports how many were malformed."""
    series = pd.Series(["2024-01-01 00:00:00", "", "garbage", "2024-02-01T10:00"], dtype=object)

    timestamps, malformed = coerce_timestamp_series(series)

    assert timestamps.isna().tolist() == [False, True, True, False]
    assert str(timestamps.dt.tz) == "UTC"
    assert timestamps.iloc[3] == pd.Timestamp("2024-02-01 10:00", tz="UTC")
    assert malformed == 1


def test_coerce_timestamp_series_handles_empty_column() -> None:
    """An empty partition still produces a UTC datetime column."""
    timestamps, malformed = coerce_timestamp_series(pd.Series([], dtype=object))

    assert timestamps.empty
    assert str(timestamps.dt.tz) == "UTC"
    assert malformed == 0
