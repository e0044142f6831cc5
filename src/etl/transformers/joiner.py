"""Build the denormalized joined incident view.

One partition of raw incident rows goes in; one row per valid incident comes
out, carrying resolved users, code labels, business area, attachment count
and local-time timestamps. Joins are left joins against de-duplicated
dimensions, so they neither drop nor multiply rows. The only rows removed
are primary-key violations, which are counted.
"""

import re
from dataclasses import dataclass, field

import pandas as pd
import structlog

from src.config import RunConfig
from src.etl.errors import SchemaViolationError
from src.etl.transformers.coercion import coerce_number_series, coerce_timestamp_series
from src.etl.transformers.references import (
    UNKNOWN,
    ReferenceTables,
    resolve_codes,
    resolve_keys,
)
from src.etl.transformers.sanitize import sanitize_frame
from src.etl.transformers.timestamps import localize_series

logger = structlog.get_logger(__name__)

PRIMARY_KEY_LENGTH = 64

INCIDENT_COLUMNS = [
    "sys_id",
    "short_description",
    "state",
    "priority",
    "opened_at",
    "resolved_at",
    "closed_at",
    "assigned_to",
    "caller_id",
    "business_area",
]

TIMESTAMP_COLUMNS = ["opened_at", "resolved_at", "closed_at"]

JOINED_COLUMNS = [
    "incident_id",
    "short_description",
    "process_name",
    "state_code",
    "state_name",
    "priority_code",
    "priority_name",
    "opened_at",
    "resolved_at",
    "closed_at",
    "assigned_to_id",
    "assigned_to_name",
    "assigned_to_email",
    "caller_id",
    "caller_name",
    "caller_email",
    "business_area_id",
    "business_area_name",
    "attachment_count",
]

_PROCESS_PREFIX = re.compile(r"^(?:process: |process )", re.IGNORECASE)


@dataclass
class JoinStats:
    """Row-level issues recovered while joining one partition."""

    source_rows: int = 0
    excluded_rows: int = 0
    nulled_values: dict[str, int] = field(default_factory=dict)
    unresolved_references: dict[str, int] = field(default_factory=dict)


def derive_process_name(description: str) -> str:
    """First token of the description after an optional "Process "/"PROCESS: " prefix."""
    stripped = _PROCESS_PREFIX.sub("", description or "", count=1).strip()
    tokens = stripped.split()
    return tokens[0] if tokens else UNKNOWN


def require_columns(frame: pd.DataFrame, columns: list[str], source_name: str) -> None:
    missing = [column for column in columns if column not in frame.columns]
    if missing:
        raise SchemaViolationError(f"source '{source_name}' is missing required columns: {missing}")


def count_attachments(attachments: pd.DataFrame) -> pd.Series:
    """Attachment count per sanitized incident id."""
    if attachments.empty:
        return pd.Series(dtype="int64", name="attachment_count", index=pd.Index([], dtype=object))
    clean = sanitize_frame(attachments[["incident_id"]])
    return clean.groupby("incident_id").size().rename("attachment_count")


def build_joined_view(
    incidents: pd.DataFrame,
    references: ReferenceTables,
    attachment_counts: pd.Series,
    config: RunConfig,
) -> tuple[pd.DataFrame, JoinStats]:
    """Sanitize, validate, coerce, localize and enrich one partition."""
    require_columns(incidents, INCIDENT_COLUMNS, "incident")
    stats = JoinStats(source_rows=len(incidents))

    clean = sanitize_frame(incidents[INCIDENT_COLUMNS])

    valid_key = clean["sys_id"].str.len() == PRIMARY_KEY_LENGTH
    stats.excluded_rows = int((~valid_key).sum())
    if stats.excluded_rows:
        logger.warning(
            "primary_key_violations",
            count=stats.excluded_rows,
            expected_length=PRIMARY_KEY_LENGTH,
        )
    clean = clean[valid_key].reset_index(drop=True)

    view = pd.DataFrame({"incident_id": clean["sys_id"]})
    view["short_description"] = clean["short_description"]
    view["process_name"] = clean["short_description"].map(derive_process_name).astype(object)

    for source_column, code_column, name_column, mapping in (
        ("state", "state_code", "state_name", references.states),
        ("priority", "priority_code", "priority_name", references.priorities),
    ):
        codes, malformed = coerce_number_series(clean[source_column])
        _record(stats.nulled_values, source_column, malformed)
        view[code_column] = codes
        view[name_column], misses = resolve_codes(codes, mapping)
        _record(stats.unresolved_references, source_column, misses)

    for column in TIMESTAMP_COLUMNS:
        utc_values, malformed = coerce_timestamp_series(clean[column])
        _record(stats.nulled_values, column, malformed)
        view[column] = localize_series(utc_values, config.timezone)

    users = references.users.set_index("user_id")
    for source_column, prefix in (("assigned_to", "assigned_to"), ("caller_id", "caller")):
        keys = clean[source_column]
        view[f"{prefix}_id"] = keys
        joined = view[[f"{prefix}_id"]].join(users, on=f"{prefix}_id", how="left")
        view[f"{prefix}_name"] = joined["user_name"].fillna(UNKNOWN).astype(object)
        view[f"{prefix}_email"] = joined["user_email"].fillna(UNKNOWN).astype(object)
        misses = int(((keys != "") & ~keys.isin(users.index)).sum())
        _record(stats.unresolved_references, source_column, misses)

    view["business_area_id"] = clean["business_area"]
    view["business_area_name"], misses = resolve_keys(clean["business_area"], references.business_areas)
    _record(stats.unresolved_references, "business_area", misses)

    view = view.join(attachment_counts, on="incident_id", how="left")
    view["attachment_count"] = view["attachment_count"].fillna(0).astype("int64")

    for kind, count in stats.nulled_values.items():
        logger.warning("malformed_values_nulled", column=kind, count=count)
    for kind, count in stats.unresolved_references.items():
        logger.warning("unresolved_references", reference=kind, count=count)

    return view[JOINED_COLUMNS], stats


def _record(counter: dict[str, int], key: str, count: int) -> None:
    if count:
        counter[key] = counter.get(key, 0) + count
