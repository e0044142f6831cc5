"""Engine for the reporting database.

Metric tables are published through this engine in a single transaction
per run.
"""

from contextlib import AbstractContextManager

from sqlalchemy.orm import Session, sessionmaker

from src.config import settings
from src.db.session import build_sync_engine, session_scope

reporting_engine = build_sync_engine(settings.reporting_db_url_sync, settings.reporting_db_schema)

ReportingSessionLocal = sessionmaker(bind=reporting_engine, expire_on_commit=False)


def reporting_session() -> AbstractContextManager[Session]:
    return session_scope(ReportingSessionLocal)
