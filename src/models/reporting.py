"""SQLAlchemy models for the reporting tables.

All tables live in the 'rpt' Postgres schema (applied through the engine's
schema_translate_map). The five metric tables are replaced wholesale on
every run and have no surrogate keys, so they are declared as Core tables
with exactly the published columns. The run summary is an append-only ORM
model.
"""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Float,
    Integer,
    Numeric,
    SmallInteger,
    String,
    Table,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import JSON

RPT_SCHEMA = "rpt"


class ReportingBase(DeclarativeBase):
    pass


# ===================================================================
# METRIC TABLES
# ===================================================================


process_failure_table = Table(
    "metric_process_failure",
    ReportingBase.metadata,
    Column("process_name", Text, nullable=False),
    Column("failure_count", Integer, nullable=False),
    Column("rank", SmallInteger, nullable=False),
)

business_area_table = Table(
    "metric_business_area",
    ReportingBase.metadata,
    Column("business_area", Text, nullable=False),
    Column("issue_count", Integer, nullable=False),
)

resolution_time_table = Table(
    "metric_resolution_time",
    ReportingBase.metadata,
    Column("average_resolution_time_days", Numeric(12, 2), nullable=True),
)

note_digest_table = Table(
    "metric_note_digest",
    ReportingBase.metadata,
    Column("incident_id", String(64), nullable=False),
    Column("note_digest", Text, nullable=False),
)

incident_link_table = Table(
    "metric_incident_link",
    ReportingBase.metadata,
    Column("incident_id", String(64), nullable=False),
    Column("web_link", Text, nullable=False),
)

# Publication order; also the key order of MetricResults.as_frames().
METRIC_TABLES: dict[str, Table] = {
    "process_failures": process_failure_table,
    "business_area_leaders": business_area_table,
    "resolution_time": resolution_time_table,
    "note_digests": note_digest_table,
    "incident_links": incident_link_table,
}


# ===================================================================
# RUN SUMMARY
# ===================================================================


class EtlRunSummary(ReportingBase):
    __tablename__ = "etl_run_summary"

    run_key: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    period_label: Mapped[str] = mapped_column(String(64), nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False)
    source_rows: Mapped[int] = mapped_column(Integer, nullable=False)
    joined_rows: Mapped[int] = mapped_column(Integer, nullable=False)
    excluded_rows: Mapped[int] = mapped_column(Integer, nullable=False)
    violation_rate: Mapped[float] = mapped_column(Float, nullable=False)
    nulled_values: Mapped[dict] = mapped_column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    unresolved_references: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False
    )
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
