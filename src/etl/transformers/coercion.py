"""Best-effort parsing of sanitized text into numbers and timestamps.

A value that does not parse becomes null. Absent values ("") and malformed
values end up the same downstream; only the malformed ones are counted so
the run summary can report them.
"""

import math

import pandas as pd


def coerce_number(text: str | None) -> float | None:
    """Parse text as a finite number, or return None."""
    if text is None:
        return None
    try:
        value = float(text)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def coerce_timestamp(text: str | None) -> pd.Timestamp | None:
    """Parse ISO-8601 style text as a UTC timestamp, or return None.

    Naive text is taken to be UTC; text with an offset is converted to UTC.
    """
    if not text:
        return None
    try:
        value = pd.to_datetime(text, utc=True, errors="coerce", format="ISO8601")
    except (TypeError, ValueError, OverflowError):
        return None
    return None if pd.isna(value) else value


def coerce_number_series(series: pd.Series) -> tuple[pd.Series, int]:
    """Coerce a sanitized text column; return (float column, malformed count)."""
    numbers = series.map(coerce_number).astype("float64")
    return numbers, _count_malformed(series, numbers)


def coerce_timestamp_series(series: pd.Series) -> tuple[pd.Series, int]:
    """Coerce a sanitized text column; return (UTC datetime column, malformed count)."""
    timestamps = pd.to_datetime(
        series.where(series != "", None), utc=True, errors="coerce", format="ISO8601"
    ).astype("datetime64[ns, UTC]")
    return timestamps, _count_malformed(series, timestamps)


def _count_malformed(raw: pd.Series, coerced: pd.Series) -> int:
    return int(((raw != "") & coerced.isna()).sum())
