"""Unit tests for run configuration validation."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from src.config import RunConfig, Settings
from src.etl.errors import EtlConfigError


def _valid(**changes) -> dict:
    values = {
        "timezone": "America/New_York",
        "month_start": 1,
        "month_end": 12,
        "base_domain": "https://domain.com",
        "max_violation_rate": 0.05,
    }
    values.update(changes)
    return values


def test_run_config_defaults() -> None:
    """Optional fields fall back to a single sequential worker and caller precedence."""
    config = RunConfig(**_valid())

    assert config.workers == 1
    assert config.user_merge_priority == "caller"
    assert config.start_date is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("https://domain.com/", "https://domain.com"),
        ("  domain.com  ", "https://domain.com"),
        ("http://intranet.local", "http://intranet.local"),
    ],
)
def test_base_domain_is_normalized(raw: str, expected: str) -> None:
    """Trailing slashes are stripped and a missing scheme becomes https."""
    assert RunConfig(**_valid(base_domain=raw)).base_domain == expected


@pytest.mark.parametrize(
    "changes",
    [
        {"timezone": "Mars/Olympus_Mons"},
        {"month_start": 0},
        {"month_end": 13},
        {"max_violation_rate": 1.5},
        {"base_domain": "   "},
        {"workers": 0},
        {"user_merge_priority": "both"},
        {"start_date": date(2024, 2, 1)},
        {"start_date": date(2024, 3, 1), "end_date": date(2024, 2, 1)},
    ],
)
def test_invalid_run_config_is_rejected(changes: dict) -> None:
    """Out-of-range or inconsistent values fail validation."""
    with pytest.raises(ValidationError):
        RunConfig(**_valid(**changes))


def test_run_config_is_immutable() -> None:
    """A run config cannot be changed once a run has started."""
    config = RunConfig(**_valid())

    with pytest.raises(ValidationError):
        config.timezone = "UTC"


def test_settings_run_config_applies_overrides() -> None:
    """Explicit overrides win over environment defaults; None means not given."""
    settings = Settings(etl_timezone="UTC", etl_month_start=1, etl_month_end=12)

    config = settings.run_config(month_start=3, month_end=None, workers=2)

    assert config.timezone == "UTC"
    assert config.month_start == 3
    assert config.month_end == 12
    assert config.workers == 2


def test_settings_run_config_wraps_validation_errors() -> None:
    """Invalid values surface as the ETL's own configuration error."""
    settings = Settings(etl_timezone="Nowhere/Special")

    with pytest.raises(EtlConfigError, match="timezone"):
        settings.run_config()


def test_settings_build_postgres_urls() -> None:
    """Database URLs use the sync psycopg2 driver."""
    settings = Settings(source_db_host="db", source_db_password="secret")

    assert settings.source_db_url_sync == "postgresql+psycopg2://readonly_user:secret@db:5432/itsm"
    assert settings.reporting_db_url_sync.startswith("postgresql+psycopg2://reporting_user:")
