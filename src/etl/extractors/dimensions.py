"""Extract reference data (users, code labels, business areas)."""

import pandas as pd
from sqlalchemy import select
from sqlalchemy.orm import Session

from src.etl.extractors._query import fetch_frame
from src.models.source import AssigneeUser, BusinessArea, CallerUser, SysChoice


def extract_assignee_users(source_session: Session) -> pd.DataFrame:
    query = select(
        AssigneeUser.sys_id.label("user_id"),
        AssigneeUser.name.label("user_name"),
        AssigneeUser.email.label("user_email"),
    ).order_by(AssigneeUser.sys_id)
    return fetch_frame(source_session, query, "assignee_user")


def extract_caller_users(source_session: Session) -> pd.DataFrame:
    query = select(
        CallerUser.sys_id.label("user_id"),
        CallerUser.name.label("user_name"),
        CallerUser.email.label("user_email"),
    ).order_by(CallerUser.sys_id)
    return fetch_frame(source_session, query, "caller_user")


def extract_choices(source_session: Session, element: str) -> pd.DataFrame:
    """Extract incident code labels for one choice element ("state" or "priority")."""
    query = (
        select(SysChoice.value.label("code"), SysChoice.label)
        .where(SysChoice.name == "incident")
        .where(SysChoice.element == element)
        .order_by(SysChoice.sys_id)
    )
    return fetch_frame(source_session, query, f"sys_choice.{element}")


def extract_business_areas(source_session: Session) -> pd.DataFrame:
    query = select(
        BusinessArea.sys_id.label("business_area_id"),
        BusinessArea.name.label("business_area_name"),
    ).order_by(BusinessArea.sys_id)
    return fetch_frame(source_session, query, "business_area")
