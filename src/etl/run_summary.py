"""Run report for one ETL execution.

Counts every row-level issue that was recovered rather than raised, and
decides whether the primary-key violation rate is too high to publish.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog
from sqlalchemy.orm import Session

from src.config import RunConfig
from src.etl.errors import SchemaViolationError
from src.etl.transformers.joiner import JoinStats
from src.models.reporting import EtlRunSummary

logger = structlog.get_logger(__name__)


@dataclass
class RunSummary:
    source_rows: int = 0
    joined_rows: int = 0
    excluded_rows: int = 0
    nulled_values: Counter = field(default_factory=Counter)
    unresolved_references: Counter = field(default_factory=Counter)

    @property
    def violation_rate(self) -> float:
        return self.excluded_rows / self.source_rows if self.source_rows else 0.0

    def add_join_stats(self, stats: JoinStats) -> None:
        self.source_rows += stats.source_rows
        self.excluded_rows += stats.excluded_rows
        self.nulled_values.update(stats.nulled_values)
        self.unresolved_references.update(stats.unresolved_references)

    def check_violation_rate(self, max_rate: float) -> None:
        """Raise when excluded rows exceed the allowed share of the source."""
        if self.violation_rate > max_rate:
            raise SchemaViolationError(
                f"{self.excluded_rows} of {self.source_rows} incidents failed primary key "
                f"validation ({self.violation_rate:.2%} > {max_rate:.2%})"
            )

    def as_dict(self) -> dict:
        return {
            "source_rows": self.source_rows,
            "joined_rows": self.joined_rows,
            "excluded_rows": self.excluded_rows,
            "violation_rate": round(self.violation_rate, 4),
            "nulled_values": dict(sorted(self.nulled_values.items())),
            "unresolved_references": dict(sorted(self.unresolved_references.items())),
        }


def period_label(config: RunConfig) -> str:
    if config.start_date is not None:
        return f"{config.start_date.isoformat()}..{config.end_date.isoformat()}"
    return f"months {config.month_start:02d}..{config.month_end:02d}"


def record_run_summary(session: Session, summary: RunSummary, config: RunConfig) -> EtlRunSummary:
    """Add the run summary row to the session; the caller commits."""
    row = EtlRunSummary(
        period_label=period_label(config),
        timezone=config.timezone,
        source_rows=summary.source_rows,
        joined_rows=summary.joined_rows,
        excluded_rows=summary.excluded_rows,
        violation_rate=summary.violation_rate,
        nulled_values=dict(summary.nulled_values),
        unresolved_references=dict(summary.unresolved_references),
        completed_at=datetime.now(timezone.utc),
    )
    session.add(row)
    return row
