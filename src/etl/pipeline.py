"""Monthly incident metrics pipeline.

Extract everything, transform partitions of the fact stream in parallel,
reduce the metric partials, then publish all metric tables in one
transaction. No reads happen after transformation starts and nothing is
written until every metric is computed.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial

import pandas as pd
import structlog
from sqlalchemy.orm import Session

from src.config import RunConfig
from src.etl.extractors.dimensions import (
    extract_assignee_users,
    extract_business_areas,
    extract_caller_users,
    extract_choices,
)
from src.etl.extractors.incidents import extract_attachments, extract_incidents, extract_work_notes
from src.etl.loaders.metric_loaders import load_metric_results
from src.etl.run_summary import RunSummary
from src.etl.transformers.joiner import JoinStats, build_joined_view, count_attachments
from src.etl.transformers.metrics import (
    MetricPartials,
    MetricResults,
    compute_partials,
    finalize_metrics,
    incident_links,
    merge_partials,
    note_digests,
)
from src.etl.transformers.references import ReferenceTables, build_reference_tables

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SourceData:
    """Everything read from the source for one run."""

    incidents: pd.DataFrame
    assignees: pd.DataFrame
    callers: pd.DataFrame
    state_choices: pd.DataFrame
    priority_choices: pd.DataFrame
    business_areas: pd.DataFrame
    work_notes: pd.DataFrame
    attachments: pd.DataFrame


@dataclass(frozen=True)
class PartitionResult:
    view: pd.DataFrame
    stats: JoinStats
    partials: MetricPartials


def extract_source_data(source_session: Session) -> SourceData:
    data = SourceData(
        incidents=extract_incidents(source_session),
        assignees=extract_assignee_users(source_session),
        callers=extract_caller_users(source_session),
        state_choices=extract_choices(source_session, "state"),
        priority_choices=extract_choices(source_session, "priority"),
        business_areas=extract_business_areas(source_session),
        work_notes=extract_work_notes(source_session),
        attachments=extract_attachments(source_session),
    )
    logger.info(
        "source_extracted",
        incidents=len(data.incidents),
        work_notes=len(data.work_notes),
        attachments=len(data.attachments),
    )
    return data


def partition_frame(frame: pd.DataFrame, size: int) -> list[pd.DataFrame]:
    """Split a frame into consecutive chunks of at most `size` rows."""
    if frame.empty:
        return [frame]
    return [frame.iloc[start : start + size] for start in range(0, len(frame), size)]


def transform_partition(
    incidents: pd.DataFrame,
    references: ReferenceTables,
    attachment_counts: pd.Series,
    config: RunConfig,
) -> PartitionResult:
    view, stats = build_joined_view(incidents, references, attachment_counts, config)
    return PartitionResult(view=view, stats=stats, partials=compute_partials(view, config))


def compute_metrics(source: SourceData, config: RunConfig) -> tuple[MetricResults, RunSummary]:
    """Transform the extracted source into metric results and a run summary.

    Raises:
        SchemaViolationError: a required column is missing or the primary
            key violation rate is above config.max_violation_rate.
    """
    references = build_reference_tables(
        source.assignees,
        source.callers,
        source.state_choices,
        source.priority_choices,
        source.business_areas,
        prefer=config.user_merge_priority,
    )
    attachment_counts = count_attachments(source.attachments)
    partitions = partition_frame(source.incidents, config.partition_size)

    worker = partial(
        transform_partition,
        references=references,
        attachment_counts=attachment_counts,
        config=config,
    )
    with ThreadPoolExecutor(max_workers=config.workers) as pool:
        results = list(pool.map(worker, partitions))
    logger.info("partitions_transformed", partitions=len(results), workers=config.workers)

    summary = RunSummary()
    for result in results:
        summary.add_join_stats(result.stats)
    summary.check_violation_rate(config.max_violation_rate)

    view = pd.concat([result.view for result in results], ignore_index=True)
    summary.joined_rows = len(view)

    digests, malformed_notes = note_digests(source.work_notes, view["incident_id"])
    if malformed_notes:
        summary.nulled_values["sys_created_on"] += malformed_notes

    metrics = finalize_metrics(
        merge_partials(result.partials for result in results),
        digests,
        incident_links(view, config.base_domain),
    )
    return metrics, summary


def run_monthly_pipeline(
    source_session: Session,
    reporting_session: Session | None,
    config: RunConfig,
) -> tuple[MetricResults, RunSummary]:
    """Run extract, transform and (unless reporting_session is None) publish."""
    logger.info(
        "pipeline_started",
        month_start=config.month_start,
        month_end=config.month_end,
        start_date=str(config.start_date) if config.start_date else None,
        end_date=str(config.end_date) if config.end_date else None,
        timezone=config.timezone,
    )
    source = extract_source_data(source_session)
    metrics, summary = compute_metrics(source, config)

    if reporting_session is None:
        logger.info("publish_skipped", reason="dry_run")
    else:
        load_metric_results(reporting_session, metrics, summary, config)

    logger.info("pipeline_completed", **summary.as_dict())
    return metrics, summary
