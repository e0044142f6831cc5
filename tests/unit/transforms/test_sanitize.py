"""Unit tests for the record sanitizer."""

from __future__ import annotations

import random

import pandas as pd

from src.etl.transformers.sanitize import sanitize_frame, sanitize_value

PRINTABLE = "".join(chr(code) for code in range(0x20, 0x7F))


def test_sanitize_value_removes_control_bytes() -> None:
    """NUL, BEL, tab and line breaks should all be stripped."""
    assert sanitize_value("ab\x00c\x07d\t\r\n") == "abcd"


def test_sanitize_value_removes_non_ascii() -> None:
    """Characters above 0x7E are outside the printable range."""
    assert sanitize_value("café \x7f☃") == "caf "


def test_sanitize_value_all_invalid_gives_empty_string() -> None:
    """Input with nothing printable should give an empty string, not fail."""
    assert sanitize_value("\x00\x01\x02\x1f") == ""


def test_sanitize_value_handles_missing_and_non_text() -> None:
    """None and NaN are treated as absent; other values are stringified."""
    assert sanitize_value(None) == ""
    assert sanitize_value(float("nan")) == ""
    assert sanitize_value(42) == "42"
    assert sanitize_value(b"7\x00") == "7"


def test_sanitize_value_keeps_clean_text_unchanged() -> None:
    """Sanitizing printable ASCII is a no-op."""
    assert sanitize_value(PRINTABLE) == PRINTABLE


def test_sanitize_value_output_is_printable_and_idempotent() -> None:
    """Random mixed input always yields printable ASCII and is stable on rerun."""
    rng = random.Random(7)
    for _ in range(200):
        raw = "".join(chr(rng.randint(0, 0x2FF)) for _ in range(rng.randint(0, 40)))
        once = sanitize_value(raw)
        assert all(0x20 <= ord(char) <= 0x7E for char in once)
        assert sanitize_value(once) == once


def test_sanitize_frame_only_touches_selected_columns() -> None:
    """Columns outside the selection are left as they were."""
    frame = pd.DataFrame({"a": ["x\x00"], "b": ["y\x00"]}, dtype=object)

    result = sanitize_frame(frame, ["a"])

    assert result.loc[0, "a"] == "x"
    assert result.loc[0, "b"] == "y\x00"
    assert frame.loc[0, "a"] == "x\x00"
