"""Read-only engine for the incident source database.

Used by the ETL pipeline for batch extraction and by the seed generator.
"""

from contextlib import AbstractContextManager

from sqlalchemy.orm import Session, sessionmaker

from src.config import settings
from src.db.session import build_sync_engine, session_scope

source_engine = build_sync_engine(settings.source_db_url_sync, settings.source_db_schema)

SourceSessionLocal = sessionmaker(bind=source_engine, expire_on_commit=False)


def source_session() -> AbstractContextManager[Session]:
    return session_scope(SourceSessionLocal)
