"""Add incident metric tables and run summary

Revision ID: rpt_001
Revises:
Create Date: 2026-10-17

Tables added:
- metric_process_failure
- metric_business_area
- metric_resolution_time
- metric_note_digest
- metric_incident_link
- etl_run_summary
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = 'rpt_001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'metric_process_failure',
        sa.Column('process_name', sa.Text(), nullable=False),
        sa.Column('failure_count', sa.Integer(), nullable=False),
        sa.Column('rank', sa.SmallInteger(), nullable=False),
        schema='rpt'
    )

    op.create_table(
        'metric_business_area',
        sa.Column('business_area', sa.Text(), nullable=False),
        sa.Column('issue_count', sa.Integer(), nullable=False),
        schema='rpt'
    )

    op.create_table(
        'metric_resolution_time',
        sa.Column('average_resolution_time_days', sa.Numeric(12, 2), nullable=True),
        schema='rpt'
    )

    op.create_table(
        'metric_note_digest',
        sa.Column('incident_id', sa.String(64), nullable=False),
        sa.Column('note_digest', sa.Text(), nullable=False),
        schema='rpt'
    )
    op.create_index('ix_rpt_metric_note_digest_incident_id', 'metric_note_digest', ['incident_id'], schema='rpt')

    op.create_table(
        'metric_incident_link',
        sa.Column('incident_id', sa.String(64), nullable=False),
        sa.Column('web_link', sa.Text(), nullable=False),
        schema='rpt'
    )
    op.create_index('ix_rpt_metric_incident_link_incident_id', 'metric_incident_link', ['incident_id'], schema='rpt')

    op.create_table(
        'etl_run_summary',
        sa.Column('run_key', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('period_label', sa.String(64), nullable=False),
        sa.Column('timezone', sa.String(64), nullable=False),
        sa.Column('source_rows', sa.Integer(), nullable=False),
        sa.Column('joined_rows', sa.Integer(), nullable=False),
        sa.Column('excluded_rows', sa.Integer(), nullable=False),
        sa.Column('violation_rate', sa.Float(), nullable=False),
        sa.Column('nulled_values', postgresql.JSONB(), nullable=False),
        sa.Column('unresolved_references', postgresql.JSONB(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('run_key'),
        schema='rpt'
    )


def downgrade() -> None:
    op.drop_table('etl_run_summary', schema='rpt')
    op.drop_index('ix_rpt_metric_incident_link_incident_id', table_name='metric_incident_link', schema='rpt')
    op.drop_table('metric_incident_link', schema='rpt')
    op.drop_index('ix_rpt_metric_note_digest_incident_id', table_name='metric_note_digest', schema='rpt')
    op.drop_table('metric_note_digest', schema='rpt')
    op.drop_table('metric_resolution_time', schema='rpt')
    op.drop_table('metric_business_area', schema='rpt')
    op.drop_table('metric_process_failure', schema='rpt')
