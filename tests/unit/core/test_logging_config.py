"""Unit tests for structured logging setup and the events the ETL emits."""

from __future__ import annotations

import json
from collections.abc import Iterator

import pandas as pd
import pytest
import structlog
from structlog.testing import capture_logs

from src.etl.transformers.joiner import build_joined_view, count_attachments
from src.logging_config import configure_logging


@pytest.fixture
def reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


def test_json_logging_renders_event_and_fields(reset_structlog, capsys) -> None:
    """JSON mode writes one object per event with level and timestamp."""
    configure_logging("info", json=True)

    structlog.get_logger("test").info("pipeline_started", timezone="UTC")

    record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert record["event"] == "pipeline_started"
    assert record["timezone"] == "UTC"
    assert record["level"] == "info"
    assert "timestamp" in record


def test_level_filters_lower_events(reset_structlog, capsys) -> None:
    """Events below the configured level are dropped."""
    configure_logging("warning")

    structlog.get_logger("test").info("hidden")
    structlog.get_logger("test").warning("shown")

    output = capsys.readouterr().out
    assert "hidden" not in output
    assert "shown" in output


def test_primary_key_violations_are_logged(make_incidents, empty_references, run_config) -> None:
    """Excluded rows produce a warning event with their count."""
    incidents = make_incidents([{}, {"sys_id": "short"}])

    with capture_logs() as logs:
        build_joined_view(incidents, empty_references, count_attachments(_no_attachments()), run_config)

    violations = [log for log in logs if log["event"] == "primary_key_violations"]
    assert violations == [
        {"event": "primary_key_violations", "log_level": "warning", "count": 1, "expected_length": 64}
    ]


def _no_attachments() -> pd.DataFrame:
    return pd.DataFrame(columns=["attachment_id", "incident_id", "file_name"], dtype=object)
