"""Integration service - persistence boundary for ad integrations.

Sync summary fields are written one field group at a time with conditional
UPDATEs: a timestamped value is only stored when the row holds nothing newer.
A slow worker finishing late can therefore never roll back what a faster one
already recorded.
"""

import logging
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session

from config import settings
from models import AdIntegration, IntegrationKey, JobType, SyncStatus, TenantRef, key_criteria, utc_now
from services.job_queue import JobQueue

logger = logging.getLogger(__name__)


class IntegrationService:
    """Service for reading and updating :class:`AdIntegration` rows."""

    @staticmethod
    def get(db: Session, key: IntegrationKey) -> AdIntegration | None:
        return db.query(AdIntegration).filter(*key_criteria(AdIntegration, key)).first()

    @staticmethod
    def list_for_tenant(
        db: Session, tenant: TenantRef, provider_ids: list[str] | None = None
    ) -> list[AdIntegration]:
        """All integrations for a tenant, optionally limited to some providers."""
        query = db.query(AdIntegration).filter(AdIntegration.tenant_id == tenant.tenant_id)
        if provider_ids:
            query = query.filter(AdIntegration.provider_id.in_(provider_ids))
        return query.order_by(AdIntegration.provider_id, AdIntegration.client_id).all()

    @staticmethod
    def list_tenants(db: Session, limit: int) -> list[TenantRef]:
        """Tenants with at least one integration, in stable order."""
        rows = (
            db.query(AdIntegration.tenant_id)
            .distinct()
            .order_by(AdIntegration.tenant_id)
            .limit(limit)
            .all()
        )
        return [TenantRef(tenant_id) for (tenant_id,) in rows]

    @staticmethod
    def mark_sync_requested(db: Session, key: IntegrationKey, now: datetime | None = None) -> bool:
        """Record that a sync was just enqueued for the integration.

        Returns:
            True if the request timestamp was stored, False if the row is
            missing or already holds a newer request.
        """
        now = now or utc_now()
        criteria = key_criteria(AdIntegration, key)
        requested = (
            db.query(AdIntegration)
            .filter(
                *criteria,
                or_(
                    AdIntegration.last_sync_requested_at.is_(None),
                    AdIntegration.last_sync_requested_at < now,
                ),
            )
            .update({AdIntegration.last_sync_requested_at: now}, synchronize_session="fetch")
        )
        IntegrationService._write_status(db, criteria, SyncStatus.PENDING, None, now)
        return requested == 1

    @staticmethod
    def mark_sync_outcome(
        db: Session,
        key: IntegrationKey,
        status: SyncStatus,
        message: str | None = None,
        now: datetime | None = None,
    ) -> bool:
        """Record how a sync finished.

        ``last_synced_at`` only moves forward on success; after an error the
        previous successful sync time is kept so throttling still applies.

        Returns:
            True if the status was stored.
        """
        status = SyncStatus(status)
        if status not in (SyncStatus.SUCCESS, SyncStatus.ERROR):
            raise ValueError(f"Sync outcome must be success or error, got {status.value!r}")

        now = now or utc_now()
        criteria = key_criteria(AdIntegration, key)
        stored = IntegrationService._write_status(db, criteria, status, message, now)
        if status == SyncStatus.SUCCESS:
            (
                db.query(AdIntegration)
                .filter(
                    *criteria,
                    or_(
                        AdIntegration.last_synced_at.is_(None),
                        AdIntegration.last_synced_at < now,
                    ),
                )
                .update({AdIntegration.last_synced_at: now}, synchronize_session="fetch")
            )
        return stored

    @staticmethod
    def _write_status(
        db: Session, criteria: list, status: SyncStatus, message: str | None, now: datetime
    ) -> bool:
        updated = (
            db.query(AdIntegration)
            .filter(
                *criteria,
                or_(
                    AdIntegration.last_sync_status_at.is_(None),
                    AdIntegration.last_sync_status_at <= now,
                ),
            )
            .update(
                {
                    AdIntegration.last_sync_status: status.value,
                    AdIntegration.last_sync_message: message,
                    AdIntegration.last_sync_status_at: now,
                },
                synchronize_session="fetch",
            )
        )
        return updated == 1

    @staticmethod
    def connect(
        db: Session,
        key: IntegrationKey,
        account_id: str | None = None,
        account_name: str | None = None,
        now: datetime | None = None,
    ) -> AdIntegration:
        """Create or relink an integration after its OAuth flow succeeded.

        A newly linked integration gets an ``initial-backfill`` job for the
        default timeframe.

        Returns:
            The integration row (flushed, not committed)
        """
        integration = IntegrationService.get(db, key)
        newly_linked = integration is None or not integration.credentials_linked
        if integration is None:
            integration = AdIntegration(
                tenant_id=key.tenant.tenant_id,
                provider_id=key.provider_id,
                client_id=key.client_id,
                last_sync_status=SyncStatus.NEVER.value,
            )
            db.add(integration)

        integration.account_id = account_id
        integration.account_name = account_name
        integration.credentials_linked = True
        db.flush()

        if newly_linked:
            JobQueue.enqueue(
                db, key, JobType.INITIAL_BACKFILL, settings.DEFAULT_TIMEFRAME_DAYS, now=now
            )
            IntegrationService.mark_sync_requested(db, key, now=now)
            logger.info("Integration connected: %s", key)
        return integration

    @staticmethod
    def disconnect(db: Session, key: IntegrationKey) -> bool:
        """Remove an integration and the jobs that can no longer run.

        Returns:
            True if an integration was removed.
        """
        integration = IntegrationService.get(db, key)
        if integration is None:
            return False
        removed_jobs = JobQueue.delete_jobs_for_integration(db, key)
        db.delete(integration)
        db.flush()
        logger.info("Integration disconnected: %s (%d jobs removed)", key, removed_jobs)
        return True

    @staticmethod
    def update_automation(
        db: Session,
        key: IntegrationKey,
        auto_sync_enabled: bool | None,
        sync_frequency_minutes: int | None,
        scheduled_timeframe_days: int | None,
    ) -> AdIntegration:
        """Replace the integration's automation preferences.

        ``None`` for any value restores the system default.

        Raises:
            ValueError: If the integration is missing or a value is out of range.
        """
        if sync_frequency_minutes is not None and sync_frequency_minutes < settings.MIN_SYNC_FREQUENCY_MINUTES:
            raise ValueError(
                f"sync_frequency_minutes must be at least {settings.MIN_SYNC_FREQUENCY_MINUTES}"
            )
        if scheduled_timeframe_days is not None and not (
            1 <= scheduled_timeframe_days <= settings.MAX_TIMEFRAME_DAYS
        ):
            raise ValueError(
                f"scheduled_timeframe_days must be between 1 and {settings.MAX_TIMEFRAME_DAYS}"
            )

        integration = IntegrationService.get(db, key)
        if integration is None:
            raise ValueError(f"Integration not found: {key}")

        integration.auto_sync_enabled = auto_sync_enabled
        integration.sync_frequency_minutes = sync_frequency_minutes
        integration.scheduled_timeframe_days = scheduled_timeframe_days
        db.flush()
        return integration
