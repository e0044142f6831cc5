"""Read-only SQLAlchemy ORM models for the incident source tables.

These map the raw landing layer of the ITSM export. Every cell is loosely
typed text (codes, timestamps and keys included) and may carry control
bytes, so nothing is typed here beyond Text; sanitizing and coercion happen
in the ETL transformers. Used for extraction only, never written to by the
pipeline (the seed generator creates and fills them for development).
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class SourceBase(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# incident (fact stream)
# ---------------------------------------------------------------------------
class Incident(SourceBase):
    __tablename__ = "incident"

    sys_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    number: Mapped[str | None] = mapped_column(Text, nullable=True)
    short_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    state: Mapped[str | None] = mapped_column(Text, nullable=True)
    priority: Mapped[str | None] = mapped_column(Text, nullable=True)
    opened_at: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved_at: Mapped[str | None] = mapped_column(Text, nullable=True)
    closed_at: Mapped[str | None] = mapped_column(Text, nullable=True)
    assigned_to: Mapped[str | None] = mapped_column(Text, nullable=True)
    caller_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    business_area: Mapped[str | None] = mapped_column(Text, nullable=True)


# ---------------------------------------------------------------------------
# assignee_user / caller_user (two user sources merged into one mapping)
# ---------------------------------------------------------------------------
class AssigneeUser(SourceBase):
    __tablename__ = "assignee_user"

    sys_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)


class CallerUser(SourceBase):
    __tablename__ = "caller_user"

    sys_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)


# ---------------------------------------------------------------------------
# sys_choice (state and priority code labels)
# ---------------------------------------------------------------------------
class SysChoice(SourceBase):
    __tablename__ = "sys_choice"

    sys_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(80), nullable=False)  # table name, "incident"
    element: Mapped[str] = mapped_column(String(80), nullable=False)  # "state" | "priority"
    value: Mapped[str | None] = mapped_column(Text, nullable=True)
    label: Mapped[str | None] = mapped_column(Text, nullable=True)


# ---------------------------------------------------------------------------
# business_area
# ---------------------------------------------------------------------------
class BusinessArea(SourceBase):
    __tablename__ = "business_area"

    sys_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)


# ---------------------------------------------------------------------------
# sys_journal_field (work notes)
# ---------------------------------------------------------------------------
class SysJournalField(SourceBase):
    __tablename__ = "sys_journal_field"

    sys_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    element_id: Mapped[str | None] = mapped_column(Text, nullable=True)  # incident sys_id
    element: Mapped[str] = mapped_column(String(80), nullable=False)  # "work_notes" | "comments"
    name: Mapped[str] = mapped_column(String(80), nullable=False, default="incident")
    value: Mapped[str | None] = mapped_column(Text, nullable=True)
    sys_created_on: Mapped[str | None] = mapped_column(Text, nullable=True)


# ---------------------------------------------------------------------------
# sys_attachment
# ---------------------------------------------------------------------------
class SysAttachment(SourceBase):
    __tablename__ = "sys_attachment"

    sys_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    table_name: Mapped[str] = mapped_column(String(80), nullable=False, default="incident")
    table_sys_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    content_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    size_bytes: Mapped[str | None] = mapped_column(Text, nullable=True)
    sys_created_on: Mapped[str | None] = mapped_column(Text, nullable=True)
