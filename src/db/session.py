"""Engine construction and session scoping shared by the source and reporting databases."""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker


def build_sync_engine(url: str, schema: str, pool_size: int = 5) -> Engine:
    """Sync engine whose unqualified tables resolve to `schema`."""
    return create_engine(
        url,
        echo=False,
        pool_pre_ping=True,
        pool_size=pool_size,
        max_overflow=pool_size * 2,
        execution_options={"schema_translate_map": {None: schema}},
    )


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    """Yield a session from `factory` and always close it.

    Commit and rollback stay with the caller: the loader owns the single
    publish transaction.
    """
    session = factory()
    try:
        yield session
    finally:
        session.close()
