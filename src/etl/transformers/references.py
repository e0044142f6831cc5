"""Build the per-run lookup tables used to enrich incidents.

Dimensions are small, so each is reduced to a de-duplicated DataFrame (users)
or a plain dict (codes, business areas). Every key column is sanitized the
same way incident foreign keys are, so lookups compare like with like.
"""

from dataclasses import dataclass, field
from typing import Literal

import pandas as pd
import structlog

from src.etl.transformers.coercion import coerce_number
from src.etl.transformers.sanitize import sanitize_frame

logger = structlog.get_logger(__name__)

UNKNOWN = "unknown"

USER_COLUMNS = ["user_id", "user_name", "user_email"]


@dataclass(frozen=True)
class ReferenceTables:
    """Lookup tables resolved once per run, read-only afterwards."""

    users: pd.DataFrame
    states: dict[int, str] = field(default_factory=dict)
    priorities: dict[int, str] = field(default_factory=dict)
    business_areas: dict[str, str] = field(default_factory=dict)


def merge_user_details(
    assignees: pd.DataFrame,
    callers: pd.DataFrame,
    prefer: Literal["assignee", "caller"] = "caller",
) -> pd.DataFrame:
    """Union the two user sources into one frame keyed by user_id.

    Conflict rule: when both sources carry the same user_id, the row from the
    preferred source wins. Within a single source the last row for an id
    wins. Rows with an empty id are dropped.
    """
    ordered = [assignees, callers] if prefer == "caller" else [callers, assignees]
    frames = [sanitize_frame(frame[USER_COLUMNS]) for frame in ordered if not frame.empty]
    if not frames:
        return pd.DataFrame(columns=USER_COLUMNS, dtype=object)

    merged = pd.concat(frames, ignore_index=True)
    merged = merged[merged["user_id"] != ""]
    collisions = int(merged["user_id"].duplicated().sum())
    if collisions:
        logger.info("user_detail_collisions", count=collisions, winner=prefer)
    merged = merged.drop_duplicates(subset="user_id", keep="last")
    return merged.sort_values("user_id").reset_index(drop=True)


def build_code_mapping(choices: pd.DataFrame) -> dict[int, str]:
    """Map integer choice codes to labels; unparseable codes are skipped."""
    clean = sanitize_frame(choices[["code", "label"]])
    mapping: dict[int, str] = {}
    for code_text, label in zip(clean["code"], clean["label"]):
        code = coerce_number(code_text)
        if code is None or not code.is_integer():
            logger.warning("choice_code_skipped", code=code_text, label=label)
            continue
        mapping[int(code)] = label
    return mapping


def build_business_area_mapping(areas: pd.DataFrame) -> dict[str, str]:
    clean = sanitize_frame(areas[["business_area_id", "business_area_name"]])
    clean = clean[clean["business_area_id"] != ""]
    return dict(zip(clean["business_area_id"], clean["business_area_name"]))


def build_reference_tables(
    assignees: pd.DataFrame,
    callers: pd.DataFrame,
    state_choices: pd.DataFrame,
    priority_choices: pd.DataFrame,
    business_areas: pd.DataFrame,
    prefer: Literal["assignee", "caller"] = "caller",
) -> ReferenceTables:
    tables = ReferenceTables(
        users=merge_user_details(assignees, callers, prefer=prefer),
        states=build_code_mapping(state_choices),
        priorities=build_code_mapping(priority_choices),
        business_areas=build_business_area_mapping(business_areas),
    )
    logger.info(
        "reference_tables_built",
        users=len(tables.users),
        states=len(tables.states),
        priorities=len(tables.priorities),
        business_areas=len(tables.business_areas),
    )
    return tables


def resolve_codes(codes: pd.Series, mapping: dict[int, str]) -> tuple[pd.Series, int]:
    """Resolve a float code column to labels.

    Returns (labels, misses). Null codes resolve to UNKNOWN without counting
    as a miss; a present code absent from the mapping is a miss.
    """
    def lookup(code: float) -> str:
        if pd.isna(code) or not float(code).is_integer():
            return UNKNOWN
        return mapping.get(int(code), UNKNOWN)

    labels = codes.map(lookup).astype(object)
    present = codes.notna()
    misses = int((present & (labels == UNKNOWN)).sum())
    return labels, misses


def resolve_keys(keys: pd.Series, mapping: dict[str, str]) -> tuple[pd.Series, int]:
    """Resolve a sanitized key column through a dict; returns (values, misses)."""
    values = keys.map(lambda key: mapping.get(key, UNKNOWN) if key else UNKNOWN).astype(object)
    misses = int(((keys != "") & ~keys.isin(list(mapping))).sum())
    return values, misses
