"""Extract the incident fact stream and its one-to-many children."""

import pandas as pd
from sqlalchemy import select
from sqlalchemy.orm import Session

from src.etl.extractors._query import fetch_frame
from src.models.source import Incident, SysAttachment, SysJournalField


def extract_incidents(source_session: Session) -> pd.DataFrame:
    query = select(
        Incident.sys_id,
        Incident.short_description,
        Incident.state,
        Incident.priority,
        Incident.opened_at,
        Incident.resolved_at,
        Incident.closed_at,
        Incident.assigned_to,
        Incident.caller_id,
        Incident.business_area,
    ).order_by(Incident.sys_id)
    return fetch_frame(source_session, query, "incident")


def extract_work_notes(source_session: Session) -> pd.DataFrame:
    """Extract work-note journal entries keyed by incident sys_id."""
    query = (
        select(
            SysJournalField.sys_id.label("note_id"),
            SysJournalField.element_id.label("incident_id"),
            SysJournalField.value,
            SysJournalField.sys_created_on,
        )
        .where(SysJournalField.element == "work_notes")
        .where(SysJournalField.name == "incident")
        .order_by(SysJournalField.sys_id)
    )
    return fetch_frame(source_session, query, "sys_journal_field")


def extract_attachments(source_session: Session) -> pd.DataFrame:
    query = (
        select(
            SysAttachment.sys_id.label("attachment_id"),
            SysAttachment.table_sys_id.label("incident_id"),
            SysAttachment.file_name,
        )
        .where(SysAttachment.table_name == "incident")
        .order_by(SysAttachment.sys_id)
    )
    return fetch_frame(source_session, query, "sys_attachment")
