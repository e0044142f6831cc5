"""Convert UTC timestamps to the run's local business timezone."""

import pandas as pd


def to_local_time(value: pd.Timestamp | None, tz_name: str) -> pd.Timestamp | None:
    """Convert a UTC timestamp to tz_name; None and NaT pass through as None."""
    if value is None or pd.isna(value):
        return None
    value = pd.Timestamp(value)
    if value.tzinfo is None:
        value = value.tz_localize("UTC")
    return value.tz_convert(tz_name)


def localize_series(series: pd.Series, tz_name: str) -> pd.Series:
    """Column-wise to_local_time; NaT stays NaT."""
    if series.dt.tz is None:
        series = series.dt.tz_localize("UTC")
    return series.dt.tz_convert(tz_name)
