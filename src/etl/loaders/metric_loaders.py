"""Publish metric results into the reporting database."""

import pandas as pd
import structlog
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from src.config import RunConfig
from src.etl.errors import PublishError, SourceUnavailableError
from src.etl.run_summary import RunSummary, record_run_summary
from src.etl.transformers.metrics import MetricResults
from src.models.reporting import METRIC_TABLES

logger = structlog.get_logger(__name__)


def frame_to_rows(frame: pd.DataFrame) -> list[dict]:
    """DataFrame rows as plain dicts with None for missing values."""
    plain = frame.astype(object)
    return plain.where(plain.notna(), None).to_dict("records")


def load_metric_results(
    reporting_session: Session,
    results: MetricResults,
    summary: RunSummary,
    config: RunConfig,
) -> dict[str, int]:
    """Replace all five metric tables and record the run, in one transaction.

    Either every table is replaced and the summary row is written, or the
    transaction is rolled back and nothing changes.

    Returns:
        Rows written per metric table.
    """
    written: dict[str, int] = {}
    try:
        for key, frame in results.as_frames().items():
            table = METRIC_TABLES[key]
            rows = frame_to_rows(frame[[column.name for column in table.columns]])
            reporting_session.execute(table.delete())
            if rows:
                reporting_session.execute(table.insert(), rows)
            written[table.name] = len(rows)
        record_run_summary(reporting_session, summary, config)
        reporting_session.commit()
    except (OperationalError, InterfaceError) as exc:
        reporting_session.rollback()
        raise SourceUnavailableError(f"reporting database unavailable: {exc}") from exc
    except DBAPIError as exc:
        reporting_session.rollback()
        raise PublishError(f"reporting database rejected metric rows: {exc}") from exc
    except Exception:
        reporting_session.rollback()
        raise

    logger.info("metrics_published", **written)
    return written
