"""Shared helper turning a source query into a raw DataFrame."""

import pandas as pd
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from src.etl.errors import SourceUnavailableError


def fetch_frame(source_session: Session, query: Select, source_name: str) -> pd.DataFrame:
    """Execute a select and return its rows as an all-object DataFrame.

    Driver and connection failures are fatal for the run and surface as
    SourceUnavailableError.
    """
    try:
        result = source_session.execute(query)
        rows = result.fetchall()
    except DBAPIError as exc:
        raise SourceUnavailableError(f"failed to read source '{source_name}': {exc}") from exc
    return pd.DataFrame(rows, columns=list(result.keys()), dtype=object)
