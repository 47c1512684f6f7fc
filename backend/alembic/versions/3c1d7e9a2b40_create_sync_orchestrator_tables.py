"""create sync orchestrator tables

Revision ID: 3c1d7e9a2b40
Revises:
Create Date: 2026-10-18 09:12:04.518230

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1d7e9a2b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('ad_integrations',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('tenant_id', sa.String(), nullable=False),
    sa.Column('provider_id', sa.String(), nullable=False),
    sa.Column('client_id', sa.String(), nullable=True),
    sa.Column('account_id', sa.String(), nullable=True),
    sa.Column('account_name', sa.String(), nullable=True),
    sa.Column('credentials_linked', sa.Boolean(), nullable=False),
    sa.Column('auto_sync_enabled', sa.Boolean(), nullable=True),
    sa.Column('sync_frequency_minutes', sa.Integer(), nullable=True),
    sa.Column('scheduled_timeframe_days', sa.Integer(), nullable=True),
    sa.Column('last_synced_at', sa.DateTime(), nullable=True),
    sa.Column('last_sync_requested_at', sa.DateTime(), nullable=True),
    sa.Column('last_sync_status', sa.String(), nullable=False),
    sa.Column('last_sync_message', sa.String(), nullable=True),
    sa.Column('last_sync_status_at', sa.DateTime(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.Column('updated_at', sa.DateTime(), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('tenant_id', 'provider_id', 'client_id', name='uix_integration_key')
    )
    op.create_index(op.f('ix_ad_integrations_tenant_id'), 'ad_integrations', ['tenant_id'], unique=False)
    op.create_index('uix_integration_tenant_level', 'ad_integrations', ['tenant_id', 'provider_id'], unique=True, sqlite_where=sa.text('client_id IS NULL'), postgresql_where=sa.text('client_id IS NULL'))

    op.create_table('sync_jobs',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('tenant_id', sa.String(), nullable=False),
    sa.Column('provider_id', sa.String(), nullable=False),
    sa.Column('client_id', sa.String(), nullable=True),
    sa.Column('job_type', sa.String(), nullable=False),
    sa.Column('timeframe_days', sa.Integer(), nullable=False),
    sa.Column('status', sa.String(), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.Column('started_at', sa.DateTime(), nullable=True),
    sa.Column('processed_at', sa.DateTime(), nullable=True),
    sa.Column('error_message', sa.String(), nullable=True),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_sync_jobs_tenant_status_created', 'sync_jobs', ['tenant_id', 'status', 'created_at'], unique=False)
    op.create_index('ix_sync_jobs_status_started', 'sync_jobs', ['status', 'started_at'], unique=False)
    op.create_index('ix_sync_jobs_status_processed', 'sync_jobs', ['status', 'processed_at'], unique=False)

    op.create_table('scheduler_events',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('source', sa.String(), nullable=False),
    sa.Column('operation', sa.String(), nullable=True),
    sa.Column('processed_jobs', sa.Integer(), nullable=False),
    sa.Column('successful_jobs', sa.Integer(), nullable=False),
    sa.Column('failed_jobs', sa.Integer(), nullable=False),
    sa.Column('had_queued_jobs', sa.Boolean(), nullable=False),
    sa.Column('inspected_queued_jobs', sa.Integer(), nullable=True),
    sa.Column('duration_ms', sa.Integer(), nullable=True),
    sa.Column('errors', sa.JSON(), nullable=False),
    sa.Column('notes', sa.String(), nullable=True),
    sa.Column('failure_threshold', sa.Integer(), nullable=True),
    sa.Column('provider_failure_thresholds', sa.JSON(), nullable=False),
    sa.Column('severity', sa.String(), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_scheduler_events_created_at'), 'scheduler_events', ['created_at'], unique=False)

    op.create_table('scheduler_alert_preferences',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('provider_id', sa.String(), nullable=False),
    sa.Column('failure_threshold', sa.Integer(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.Column('updated_at', sa.DateTime(), nullable=True),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_scheduler_alert_preferences_provider_id'), 'scheduler_alert_preferences', ['provider_id'], unique=True)

    op.create_table('ad_metrics',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('tenant_id', sa.String(), nullable=False),
    sa.Column('provider_id', sa.String(), nullable=False),
    sa.Column('client_id', sa.String(), nullable=True),
    sa.Column('metric_date', sa.Date(), nullable=False),
    sa.Column('campaign_id', sa.String(), nullable=False),
    sa.Column('campaign_name', sa.String(), nullable=True),
    sa.Column('impressions', sa.Integer(), nullable=False),
    sa.Column('clicks', sa.Integer(), nullable=False),
    sa.Column('spend', sa.Numeric(precision=18, scale=4), nullable=False),
    sa.Column('conversions', sa.Numeric(precision=18, scale=4), nullable=False),
    sa.Column('revenue', sa.Numeric(precision=18, scale=4), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.Column('updated_at', sa.DateTime(), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('tenant_id', 'provider_id', 'client_id', 'metric_date', 'campaign_id', name='uix_ad_metric_day')
    )
    op.create_index(op.f('ix_ad_metrics_tenant_id'), 'ad_metrics', ['tenant_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_ad_metrics_tenant_id'), table_name='ad_metrics')
    op.drop_table('ad_metrics')
    op.drop_index(op.f('ix_scheduler_alert_preferences_provider_id'), table_name='scheduler_alert_preferences')
    op.drop_table('scheduler_alert_preferences')
    op.drop_index(op.f('ix_scheduler_events_created_at'), table_name='scheduler_events')
    op.drop_table('scheduler_events')
    op.drop_index('ix_sync_jobs_status_processed', table_name='sync_jobs')
    op.drop_index('ix_sync_jobs_status_started', table_name='sync_jobs')
    op.drop_index('ix_sync_jobs_tenant_status_created', table_name='sync_jobs')
    op.drop_table('sync_jobs')
    op.drop_index('uix_integration_tenant_level', table_name='ad_integrations')
    op.drop_index(op.f('ix_ad_integrations_tenant_id'), table_name='ad_integrations')
    op.drop_table('ad_integrations')
