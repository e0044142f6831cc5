"""Monthly incident metrics ETL.

Reads incidents and reference data from the source database, computes the
five reporting metrics and publishes them to the reporting database in a
single transaction.

Usage:
    python scripts/run_incident_etl.py --month-start 1 --month-end 3
    python scripts/run_incident_etl.py --start-date 2024-01-01 --end-date 2024-01-31
    python scripts/run_incident_etl.py --month-start 11 --month-end 2 --dry-run
"""

import argparse
from contextlib import nullcontext
from datetime import date
from pathlib import Path
import sys

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import structlog

from src.config import settings
from src.etl.errors import IncidentEtlError
from src.logging_config import configure_logging

logger = structlog.get_logger("run_incident_etl")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the monthly incident metrics ETL")

    period = parser.add_argument_group("reporting period")
    period.add_argument("--month-start", type=int, help="First month (1-12), inclusive")
    period.add_argument("--month-end", type=int, help="Last month (1-12), inclusive")
    period.add_argument("--start-date", type=date.fromisoformat, help="First local date (YYYY-MM-DD)")
    period.add_argument("--end-date", type=date.fromisoformat, help="Last local date (YYYY-MM-DD)")

    parser.add_argument("--timezone", help="IANA timezone for local business time")
    parser.add_argument("--base-domain", help="Base URL for incident links")
    parser.add_argument("--workers", type=int, help="Partition worker threads")
    parser.add_argument("--partition-size", type=int, help="Incidents per partition")
    parser.add_argument("--max-violation-rate", type=float, help="Allowed share of excluded incidents")
    parser.add_argument(
        "--user-merge-priority",
        choices=["assignee", "caller"],
        help="User source that wins when both carry the same id",
    )
    parser.add_argument("--dry-run", action="store_true", help="Compute metrics without publishing")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(settings.etl_log_level, json=settings.etl_log_json)

    try:
        config = settings.run_config(
            month_start=args.month_start,
            month_end=args.month_end,
            start_date=args.start_date,
            end_date=args.end_date,
            timezone=args.timezone,
            base_domain=args.base_domain,
            workers=args.workers,
            partition_size=args.partition_size,
            max_violation_rate=args.max_violation_rate,
            user_merge_priority=args.user_merge_priority,
        )
    except IncidentEtlError as exc:
        logger.error("invalid_configuration", error=str(exc))
        return 2

    # Engines are created on import; keep that after configuration is validated.
    from src.db.reporting_engine import reporting_session
    from src.db.source_engine import source_session
    from src.etl.pipeline import run_monthly_pipeline

    print("=" * 60)
    print("Incident Metrics ETL")
    print("=" * 60)

    publish = nullcontext() if args.dry_run else reporting_session()
    try:
        with source_session() as source, publish as reporting:
            metrics, summary = run_monthly_pipeline(source, reporting, config)
    except IncidentEtlError as exc:
        logger.error("pipeline_failed", error_type=type(exc).__name__, error=str(exc))
        return 1

    print("\n" + "=" * 60)
    print("Run Summary:")
    print("=" * 60)
    for key, value in summary.as_dict().items():
        print(f"  {key}: {value}")
    print("\nMetrics:")
    for name, frame in metrics.as_frames().items():
        print(f"  {name}: {len(frame)} rows")
    if args.dry_run:
        print("\n  (dry run, nothing published)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
