"""Shared fixtures: run config, SQLite sessions and frame builders."""

from __future__ import annotations

from collections.abc import Callable, Iterator

import pandas as pd
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.config import RunConfig
from src.etl.transformers.references import USER_COLUMNS, ReferenceTables
from src.models.reporting import ReportingBase
from src.models.source import SourceBase

TIMEZONE = "America/New_York"

VIEW_COLUMNS = ["incident_id", "process_name", "business_area_name", "opened_at", "resolved_at"]


def incident_id(number: int) -> str:
    """64-character numeric key for test incident `number`."""
    return f"{number:064d}"


@pytest.fixture
def run_config() -> RunConfig:
    return RunConfig(
        timezone=TIMEZONE,
        month_start=1,
        month_end=12,
        base_domain="https://domain.com",
        max_violation_rate=0.5,
        workers=1,
        partition_size=1000,
    )


@pytest.fixture
def empty_references() -> ReferenceTables:
    return ReferenceTables(users=pd.DataFrame(columns=USER_COLUMNS, dtype=object))


@pytest.fixture
def make_incidents() -> Callable[..., pd.DataFrame]:
    """Build a raw incident frame; every cell is text like the landing layer."""

    def build(rows: list[dict]) -> pd.DataFrame:
        defaults = {
            "short_description": "Process Invoice failed",
            "state": "1",
            "priority": "3",
            "opened_at": "2024-03-10 12:00:00",
            "resolved_at": "",
            "closed_at": "",
            "assigned_to": "",
            "caller_id": "",
            "business_area": "",
        }
        records = []
        for number, row in enumerate(rows, start=1):
            record = {"sys_id": incident_id(number), **defaults, **row}
            records.append(record)
        return pd.DataFrame(records, dtype=object)

    return build


@pytest.fixture
def make_view() -> Callable[..., pd.DataFrame]:
    """Build a minimal joined view for metric tests."""

    def build(rows: list[dict]) -> pd.DataFrame:
        records = []
        for number, row in enumerate(rows, start=1):
            records.append({
                "incident_id": incident_id(number),
                "process_name": "Invoice",
                "business_area_name": "Finance",
                "opened_at": "2024-03-10 12:00:00",
                "resolved_at": None,
                **row,
            })
        view = pd.DataFrame(records, columns=VIEW_COLUMNS)
        for column in ("opened_at", "resolved_at"):
            view[column] = pd.to_datetime(view[column], utc=True).dt.tz_convert(TIMEZONE)
        return view

    return build


def _sqlite_session(metadata) -> Iterator[Session]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    metadata.create_all(engine)
    session = sessionmaker(bind=engine, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def source_session() -> Iterator[Session]:
    yield from _sqlite_session(SourceBase.metadata)


@pytest.fixture
def reporting_session() -> Iterator[Session]:
    yield from _sqlite_session(ReportingBase.metadata)
