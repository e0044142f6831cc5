"""Strip non-printable characters from raw source cells.

The landing layer stores loosely typed values that can carry control bytes
(NUL padding, stray CR/LF, tabs, non-ASCII). Everything outside printable
ASCII 0x20-0x7E is removed before any string, numeric or timestamp
interpretation.
"""

import re
from typing import Iterable

import pandas as pd

NON_PRINTABLE = re.compile(r"[^\x20-\x7E]")


def sanitize_value(raw: object) -> str:
    """Return raw as text with all non-printable characters removed.

    None and missing values give an empty string. Never raises.
    """
    if raw is None or (pd.api.types.is_scalar(raw) and pd.isna(raw)):
        return ""
    if isinstance(raw, bytes):
        raw = raw.decode("latin-1")
    return NON_PRINTABLE.sub("", str(raw))


def sanitize_series(series: pd.Series) -> pd.Series:
    return series.map(sanitize_value).astype(object)


def sanitize_frame(frame: pd.DataFrame, columns: Iterable[str] | None = None) -> pd.DataFrame:
    """Return a copy of frame with the given (default: all) columns sanitized."""
    result = frame.copy()
    for column in columns if columns is not None else frame.columns:
        result[column] = sanitize_series(result[column])
    return result
