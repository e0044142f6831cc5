"""Integration tests: full pipeline runs from SQLite source to SQLite reporting."""

from __future__ import annotations

from decimal import Decimal

import pandas as pd
import pytest
from sqlalchemy import func, insert, select

from src.etl.errors import SchemaViolationError
from src.etl.pipeline import compute_metrics, extract_source_data, run_monthly_pipeline
from src.models.reporting import (
    METRIC_TABLES,
    EtlRunSummary,
    business_area_table,
    incident_link_table,
    note_digest_table,
    process_failure_table,
    resolution_time_table,
)
from src.models.source import (
    AssigneeUser,
    BusinessArea,
    CallerUser,
    Incident,
    SysAttachment,
    SysChoice,
    SysJournalField,
)


def incident_id(number: int) -> str:
    return f"{number:064d}"


def _incident(number: int, description: str, opened: str, resolved: str | None, **extra) -> dict:
    row = {
        "sys_id": incident_id(number),
        "short_description": description,
        "state": "1",
        "priority": "3",
        "opened_at": opened,
        "resolved_at": resolved,
        "closed_at": None,
        "assigned_to": "",
        "caller_id": "",
        "business_area": "ba1",
    }
    row.update(extra)
    return row


@pytest.fixture
def populated_source(source_session):
    """Three valid incidents and one with a truncated key."""
    source_session.execute(insert(SysChoice), [
        {"sys_id": "s1", "name": "incident", "element": "state", "value": "1", "label": "New"},
        {"sys_id": "p3", "name": "incident", "element": "priority", "value": "3", "label": "3 - Moderate"},
    ])
    source_session.execute(insert(BusinessArea), [
        {"sys_id": "ba1", "name": "Finance"},
        {"sys_id": "ba2", "name": "Sales"},
    ])
    source_session.execute(insert(AssigneeUser), [{"sys_id": "u1", "name": "Alice", "email": "a@x.com"}])
    source_session.execute(insert(CallerUser), [
        {"sys_id": "u1", "name": "Alice Caller", "email": "ac@x.com"},
        {"sys_id": "c2", "name": "Bob", "email": "b@x.com"},
    ])
    source_session.execute(insert(Incident), [
        _incident(1, "Process Invoice failed", "2024-03-10 12:00:00", "2024-03-11 12:00:00",
                  assigned_to="u1\r\n", caller_id="c2"),
        _incident(2, "PROCESS: Invoice stuck", "2024-03-12 12:00:00", "2024-03-14 12:00:00"),
        _incident(3, "Payroll job aborted", "2024-04-01 12:00:00", None, business_area="ba2"),
        {**_incident(4, "Quote lost", "2024-04-02 12:00:00", None), "sys_id": "123"},
    ])
    source_session.execute(insert(SysJournalField), [
        {"sys_id": "n2", "element_id": incident_id(1), "element": "work_notes", "name": "incident",
         "value": "second", "sys_created_on": "2024-03-10 14:00:00"},
        {"sys_id": "n1", "element_id": incident_id(1), "element": "work_notes", "name": "incident",
         "value": "first", "sys_created_on": "2024-03-10 13:00:00"},
        {"sys_id": "n3", "element_id": incident_id(1), "element": "comments", "name": "incident",
         "value": "customer comment", "sys_created_on": "2024-03-10 15:00:00"},
    ])
    source_session.execute(insert(SysAttachment), [
        {"sys_id": "a1", "table_name": "incident", "table_sys_id": incident_id(1), "file_name": "log.txt"},
    ])
    source_session.commit()
    return source_session


def _table_rows(session) -> dict[str, list[tuple]]:
    return {
        table.name: sorted(tuple(row) for row in session.execute(select(table)))
        for table in METRIC_TABLES.values()
    }


def test_full_run_publishes_all_metrics(populated_source, reporting_session, run_config) -> None:
    """A run publishes every metric and a summary of what was recovered."""
    _, summary = run_monthly_pipeline(populated_source, reporting_session, run_config)

    processes = reporting_session.execute(
        select(process_failure_table).order_by(process_failure_table.c.rank)
    ).all()
    assert [(row.process_name, row.failure_count, row.rank) for row in processes] == [
        ("Invoice", 2, 1),
        ("Payroll", 1, 2),
    ]
    leaders = reporting_session.execute(select(business_area_table)).all()
    assert [(row.business_area, row.issue_count) for row in leaders] == [("Finance", 2)]
    average = reporting_session.execute(select(resolution_time_table)).scalar_one()
    assert Decimal(str(average)) == Decimal("1.50")
    digests = reporting_session.execute(select(note_digest_table)).all()
    assert [(row.incident_id, row.note_digest) for row in digests] == [(incident_id(1), "first\n\nsecond")]
    links = reporting_session.execute(select(incident_link_table.c.web_link)).scalars().all()
    assert sorted(links) == [
        f"https://domain.com/incident.do?sys_id={incident_id(n)}" for n in (1, 2, 3)
    ]

    assert summary.source_rows == 4
    assert summary.excluded_rows == 1
    assert summary.joined_rows == 3
    run = reporting_session.execute(select(EtlRunSummary)).scalar_one()
    assert run.excluded_rows == 1


def test_rerun_is_idempotent(populated_source, reporting_session, run_config) -> None:
    """Running twice over the same source leaves identical metric tables."""
    run_monthly_pipeline(populated_source, reporting_session, run_config)
    first = _table_rows(reporting_session)

    run_monthly_pipeline(populated_source, reporting_session, run_config)

    assert _table_rows(reporting_session) == first


def test_parallel_run_matches_sequential(populated_source, run_config) -> None:
    """Partitioned parallel processing gives the same results as one partition."""
    source = extract_source_data(populated_source)
    sequential, sequential_summary = compute_metrics(source, run_config)
    parallel, parallel_summary = compute_metrics(
        source, run_config.model_copy(update={"workers": 4, "partition_size": 1})
    )

    for key, frame in sequential.as_frames().items():
        pd.testing.assert_frame_equal(parallel.as_frames()[key], frame, obj=key)
    assert parallel_summary.as_dict() == sequential_summary.as_dict()


def test_joined_view_uses_merged_users(populated_source, run_config) -> None:
    """The caller source wins for ids present in both user sources."""
    source = extract_source_data(populated_source)

    _, summary = compute_metrics(source, run_config)

    assert summary.unresolved_references == {}
    assert summary.nulled_values == {}


def test_violation_threshold_aborts_before_publishing(populated_source, reporting_session, run_config) -> None:
    """Too many bad keys stop the run and nothing is written."""
    strict = run_config.model_copy(update={"max_violation_rate": 0.1})

    with pytest.raises(SchemaViolationError):
        run_monthly_pipeline(populated_source, reporting_session, strict)

    assert reporting_session.execute(select(func.count()).select_from(EtlRunSummary)).scalar_one() == 0
    assert reporting_session.execute(select(func.count()).select_from(process_failure_table)).scalar_one() == 0


def test_dry_run_computes_without_publishing(populated_source, run_config) -> None:
    """Without a reporting session the metrics are returned but not written."""
    metrics, summary = run_monthly_pipeline(populated_source, None, run_config)

    assert metrics.process_failures["process_name"].tolist() == ["Invoice", "Payroll"]
    assert summary.joined_rows == 3


def test_empty_source_publishes_empty_metrics(source_session, reporting_session, run_config) -> None:
    """An empty source still replaces every table, with a null average."""
    metrics, summary = run_monthly_pipeline(source_session, reporting_session, run_config)

    assert metrics.process_failures.empty
    assert metrics.incident_links.empty
    assert summary.source_rows == 0
    assert reporting_session.execute(select(resolution_time_table)).scalar_one() is None
