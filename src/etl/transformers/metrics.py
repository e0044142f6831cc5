"""Monthly reporting metrics over the joined incident view.

Aggregating metrics are computed in two steps so partitions can be processed
independently: compute_partials() reduces one partition to integer counters,
MetricPartials.merge() combines them (associative and commutative), and the
finalize helpers turn the merged counters into result frames. Per-incident
metrics (note digests, links) need no reduce step.

Output column names are the published reporting columns.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping

import pandas as pd
import structlog

from src.config import RunConfig
from src.etl.transformers.coercion import coerce_timestamp_series
from src.etl.transformers.sanitize import sanitize_frame

logger = structlog.get_logger(__name__)

TOP_PROCESS_LIMIT = 5
NOTE_SEPARATOR = "\n\n"
LINK_TEMPLATE = "{base_domain}/incident.do?sys_id={incident_id}"

_NS_PER_DAY = Decimal(24 * 60 * 60 * 10**9)
_TWO_PLACES = Decimal("0.01")


@dataclass
class MetricPartials:
    """Mergeable aggregates for one partition (or the merge of several)."""

    process_counts: Counter = field(default_factory=Counter)
    business_area_counts: Counter = field(default_factory=Counter)
    resolution_total_ns: int = 0
    resolution_count: int = 0

    def merge(self, other: "MetricPartials") -> "MetricPartials":
        return MetricPartials(
            process_counts=self.process_counts + other.process_counts,
            business_area_counts=self.business_area_counts + other.business_area_counts,
            resolution_total_ns=self.resolution_total_ns + other.resolution_total_ns,
            resolution_count=self.resolution_count + other.resolution_count,
        )


@dataclass(frozen=True)
class MetricResults:
    process_failures: pd.DataFrame
    business_area_leaders: pd.DataFrame
    resolution_time: pd.DataFrame
    note_digests: pd.DataFrame
    incident_links: pd.DataFrame

    def as_frames(self) -> dict[str, pd.DataFrame]:
        return {
            "process_failures": self.process_failures,
            "business_area_leaders": self.business_area_leaders,
            "resolution_time": self.resolution_time,
            "note_digests": self.note_digests,
            "incident_links": self.incident_links,
        }


def period_mask(opened_local: pd.Series, config: RunConfig) -> pd.Series:
    """True where the local opened timestamp falls inside the run's period."""
    present = opened_local.notna()
    if config.start_date is not None:
        tz = opened_local.dt.tz
        lower = _local_midnight(config.start_date, tz)
        upper = _local_midnight(config.end_date + timedelta(days=1), tz)
        return (present & (opened_local >= lower) & (opened_local < upper)).astype(bool)

    months = opened_local.dt.month
    if config.month_start <= config.month_end:
        in_range = (months >= config.month_start) & (months <= config.month_end)
    else:
        # Wrap-around period, e.g. November through February.
        in_range = (months >= config.month_start) | (months <= config.month_end)
    return (present & in_range).astype(bool)


def _local_midnight(day: date, tz) -> pd.Timestamp:
    """First instant of `day` in tz, even where a DST change skips or repeats midnight."""
    return pd.Timestamp(day).tz_localize(tz, ambiguous=True, nonexistent="shift_forward")


def compute_partials(view: pd.DataFrame, config: RunConfig) -> MetricPartials:
    in_period = view[period_mask(view["opened_at"], config)]

    resolved = in_period[in_period["opened_at"].notna() & in_period["resolved_at"].notna()]
    elapsed = (resolved["resolved_at"] - resolved["opened_at"]).astype("timedelta64[ns]")

    return MetricPartials(
        process_counts=Counter(in_period["process_name"].tolist()),
        business_area_counts=Counter(view["business_area_name"].tolist()),
        # Summed as Python ints; a numpy int64 sum wraps past ~292 years in total.
        resolution_total_ns=sum(elapsed.astype("int64").tolist()),
        resolution_count=len(resolved),
    )


def merge_partials(partials: Iterable[MetricPartials]) -> MetricPartials:
    merged = MetricPartials()
    for partial in partials:
        merged = merged.merge(partial)
    return merged


# ---------------------------------------------------------------------------
# Aggregating metrics
# ---------------------------------------------------------------------------


def rank_process_failures(counts: Mapping[str, int], limit: int = TOP_PROCESS_LIMIT) -> pd.DataFrame:
    """Rank processes by failure count desc, then name asc; keep the top `limit`."""
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:limit]
    return pd.DataFrame(
        {
            "process_name": pd.Series([name for name, _ in ordered], dtype=object),
            "failure_count": pd.Series([count for _, count in ordered], dtype="int64"),
            "rank": pd.Series(range(1, len(ordered) + 1), dtype="int64"),
        }
    )


def business_area_leaders(counts: Mapping[str, int]) -> pd.DataFrame:
    """Every business area whose issue count equals the maximum. Ties are kept."""
    top = max(counts.values(), default=0)
    leaders = sorted(name for name, count in counts.items() if count == top and top > 0)
    return pd.DataFrame(
        {
            "business_area": pd.Series(leaders, dtype=object),
            "issue_count": pd.Series([top] * len(leaders), dtype="int64"),
        }
    )


def resolution_time_days(total_ns: int, count: int) -> Decimal | None:
    """Average elapsed time in days, rounded half-up to two places."""
    if count == 0:
        return None
    days = Decimal(total_ns) / Decimal(count) / _NS_PER_DAY
    return days.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def resolution_time_frame(total_ns: int, count: int) -> pd.DataFrame:
    return pd.DataFrame(
        {"average_resolution_time_days": pd.Series([resolution_time_days(total_ns, count)], dtype=object)}
    )


def top_process_failures(view: pd.DataFrame, config: RunConfig) -> pd.DataFrame:
    return rank_process_failures(compute_partials(view, config).process_counts)


def top_business_area(view: pd.DataFrame) -> pd.DataFrame:
    return business_area_leaders(Counter(view["business_area_name"].tolist()))


def average_resolution_time(view: pd.DataFrame, config: RunConfig) -> pd.DataFrame:
    partials = compute_partials(view, config)
    return resolution_time_frame(partials.resolution_total_ns, partials.resolution_count)


# ---------------------------------------------------------------------------
# Per-incident metrics
# ---------------------------------------------------------------------------


def note_digests(notes: pd.DataFrame, incident_ids: Iterable[str]) -> tuple[pd.DataFrame, int]:
    """Concatenate work notes per incident in creation order.

    Notes are ordered by sys_created_on ascending (note id breaks ties, notes
    with an unparseable timestamp go last) and joined with a blank line.
    Only incidents in incident_ids that have at least one note appear.

    Returns:
        (digest frame, number of note timestamps that failed to parse)
    """
    columns = ["incident_id", "note_digest"]
    if notes.empty:
        return pd.DataFrame(columns=columns, dtype=object), 0

    clean = sanitize_frame(notes[["note_id", "incident_id", "value", "sys_created_on"]])
    clean["created_on"], malformed = coerce_timestamp_series(clean["sys_created_on"])
    if malformed:
        logger.warning("malformed_values_nulled", column="sys_created_on", count=malformed)

    clean = clean[clean["incident_id"].isin(set(incident_ids))]
    if clean.empty:
        return pd.DataFrame(columns=columns, dtype=object), malformed

    ordered = clean.sort_values(
        ["incident_id", "created_on", "note_id"], na_position="last", kind="mergesort"
    )
    digests = (
        ordered.groupby("incident_id", sort=True)["value"]
        .agg(NOTE_SEPARATOR.join)
        .reset_index()
        .rename(columns={"value": "note_digest"})
    )
    return digests[columns], malformed


def build_incident_link(incident_id: str, base_domain: str) -> str:
    return LINK_TEMPLATE.format(base_domain=base_domain.rstrip("/"), incident_id=incident_id)


def incident_links(view: pd.DataFrame, base_domain: str) -> pd.DataFrame:
    ids = sorted(set(view["incident_id"].tolist()))
    return pd.DataFrame(
        {
            "incident_id": pd.Series(ids, dtype=object),
            "web_link": pd.Series([build_incident_link(i, base_domain) for i in ids], dtype=object),
        }
    )


def finalize_metrics(
    partials: MetricPartials,
    digests: pd.DataFrame,
    links: pd.DataFrame,
) -> MetricResults:
    return MetricResults(
        process_failures=rank_process_failures(partials.process_counts),
        business_area_leaders=business_area_leaders(partials.business_area_counts),
        resolution_time=resolution_time_frame(partials.resolution_total_ns, partials.resolution_count),
        note_digests=digests.sort_values("incident_id", kind="mergesort").reset_index(drop=True),
        incident_links=links.sort_values("incident_id", kind="mergesort").reset_index(drop=True),
    )
