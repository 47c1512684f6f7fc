"""Job queue service - enqueue, claim and finish sync jobs.

Jobs move ``queued -> running -> success | error``.  Every transition is a
conditional UPDATE on the current status, so two workers racing for the same
row cannot both win, whichever database is behind the session.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from config import settings
from models import IntegrationKey, JobStatus, JobType, SyncJob, TenantRef, key_criteria, utc_now

logger = logging.getLogger(__name__)

STALE_RESET_MESSAGE = "Reset due to stale execution"

# Candidates fetched per claim attempt; losing a race moves on to the next one.
_CLAIM_BATCH_SIZE = 5
_MAX_CLAIM_ROUNDS = 3

_TERMINAL_STATUSES = tuple(status.value for status in JobStatus if status.is_terminal)
_PENDING_STATUSES = (JobStatus.QUEUED.value, JobStatus.RUNNING.value)


class InvalidJobTransitionError(Exception):
    """A job was asked to complete or fail while not ``running``."""

    def __init__(self, job_id: int, status: str | None):
        self.job_id = job_id
        self.status = status
        if status is None:
            message = f"Sync job {job_id} not found"
        else:
            message = f"Sync job {job_id} is {status}, expected running"
        super().__init__(message)


def truncate_message(message: str, limit: int | None = None) -> str:
    """Trim an error message to the stored column budget."""
    limit = limit or settings.JOB_ERROR_MESSAGE_MAX_LENGTH
    if len(message) <= limit:
        return message
    return message[: max(limit - 3, 0)] + "..."


class JobQueue:
    """Persistence operations for :class:`~models.sync_job.SyncJob`."""

    @staticmethod
    def enqueue(
        db: Session,
        key: IntegrationKey,
        job_type: JobType,
        timeframe_days: int,
        now: datetime | None = None,
    ) -> SyncJob:
        """Insert a ``queued`` job.  No dedupe happens here.

        Args:
            db: Database session
            key: Integration the job syncs
            job_type: Why the job exists
            timeframe_days: Days of history to fetch (at least 1)

        Returns:
            The flushed SyncJob (not yet committed)
        """
        if timeframe_days < 1:
            raise ValueError(f"timeframe_days must be at least 1, got {timeframe_days}")

        job = SyncJob(
            tenant_id=key.tenant.tenant_id,
            provider_id=key.provider_id,
            client_id=key.client_id,
            job_type=JobType(job_type).value,
            timeframe_days=timeframe_days,
            status=JobStatus.QUEUED.value,
            created_at=now or utc_now(),
        )
        db.add(job)
        db.flush()
        logger.info(
            "Enqueued %s job %s for %s (%d days)", job.job_type, job.id, key, timeframe_days
        )
        return job

    @staticmethod
    def claim_next(db: Session, tenant: TenantRef, now: datetime | None = None) -> SyncJob | None:
        """Claim the tenant's oldest queued job.

        The claim is committed before returning so concurrent workers see
        the job as ``running`` immediately.  A round that loses every
        candidate to other workers is rolled back before re-reading, so the
        next round sees a fresh snapshot; the caller must not hold
        uncommitted work in ``db``.

        Returns:
            The claimed job, or ``None`` when nothing is queued or every
            round was lost to other workers.
        """
        now = now or utc_now()
        for _ in range(_MAX_CLAIM_ROUNDS):
            candidates = [
                job_id
                for (job_id,) in db.query(SyncJob.id)
                .filter(
                    SyncJob.tenant_id == tenant.tenant_id,
                    SyncJob.status == JobStatus.QUEUED.value,
                )
                .order_by(SyncJob.created_at, SyncJob.id)
                .limit(_CLAIM_BATCH_SIZE)
                .all()
            ]
            if not candidates:
                return None

            for job_id in candidates:
                if JobQueue._try_claim(db, job_id, now):
                    db.commit()
                    job = db.get(SyncJob, job_id)
                    logger.info("Claimed sync job %s for tenant %s", job_id, tenant)
                    return job
                logger.debug("Sync job %s was claimed by another worker", job_id)
            db.rollback()

        logger.warning(
            "Gave up claiming for tenant %s after %d contended rounds", tenant, _MAX_CLAIM_ROUNDS
        )
        return None

    @staticmethod
    def _try_claim(db: Session, job_id: int, now: datetime) -> bool:
        updated = (
            db.query(SyncJob)
            .filter(SyncJob.id == job_id, SyncJob.status == JobStatus.QUEUED.value)
            .update(
                {
                    SyncJob.status: JobStatus.RUNNING.value,
                    SyncJob.started_at: now,
                    SyncJob.error_message: None,
                },
                synchronize_session=False,
            )
        )
        return updated == 1

    @staticmethod
    def complete(db: Session, job_id: int, now: datetime | None = None) -> None:
        """Move a running job to ``success``.

        Raises:
            InvalidJobTransitionError: If the job is missing or not running.
        """
        JobQueue._finish(
            db,
            job_id,
            {
                SyncJob.status: JobStatus.SUCCESS.value,
                SyncJob.processed_at: now or utc_now(),
                SyncJob.error_message: None,
            },
        )

    @staticmethod
    def fail(db: Session, job_id: int, message: str, now: datetime | None = None) -> None:
        """Move a running job to ``error`` with a truncated message.

        Raises:
            InvalidJobTransitionError: If the job is missing or not running.
        """
        JobQueue._finish(
            db,
            job_id,
            {
                SyncJob.status: JobStatus.ERROR.value,
                SyncJob.processed_at: now or utc_now(),
                SyncJob.error_message: truncate_message(message),
            },
        )

    @staticmethod
    def _finish(db: Session, job_id: int, values: dict) -> None:
        updated = (
            db.query(SyncJob)
            .filter(SyncJob.id == job_id, SyncJob.status == JobStatus.RUNNING.value)
            .update(values, synchronize_session="fetch")
        )
        if updated != 1:
            current = db.query(SyncJob.status).filter(SyncJob.id == job_id).scalar()
            raise InvalidJobTransitionError(job_id, current)

    @staticmethod
    def has_pending_job(db: Session, key: IntegrationKey) -> bool:
        """True if a queued or running job exists for the integration."""
        query = db.query(SyncJob.id).filter(
            *key_criteria(SyncJob, key),
            SyncJob.status.in_(_PENDING_STATUSES),
        )
        return db.query(query.exists()).scalar()

    @staticmethod
    def list_tenants_with_queued_jobs(db: Session, limit: int) -> list[TenantRef]:
        """Tenants with queued work, the one waiting longest first."""
        rows = (
            db.query(SyncJob.tenant_id)
            .filter(SyncJob.status == JobStatus.QUEUED.value)
            .group_by(SyncJob.tenant_id)
            .order_by(func.min(SyncJob.id))
            .limit(limit)
            .all()
        )
        return [TenantRef(tenant_id) for (tenant_id,) in rows]

    @staticmethod
    def count_queued(db: Session, tenant: TenantRef, limit: int) -> int:
        """Count the tenant's queued jobs, looking at no more than ``limit``."""
        if limit <= 0:
            return 0
        return (
            db.query(SyncJob.id)
            .filter(
                SyncJob.tenant_id == tenant.tenant_id,
                SyncJob.status == JobStatus.QUEUED.value,
            )
            .limit(limit)
            .count()
        )

    @staticmethod
    def delete_jobs_for_integration(db: Session, key: IntegrationKey) -> int:
        """Drop queued and failed jobs when an integration is disconnected.

        Running jobs are left alone; they finish against a missing
        integration and fail on their own.
        """
        deleted = (
            db.query(SyncJob)
            .filter(
                *key_criteria(SyncJob, key),
                SyncJob.status.in_((JobStatus.QUEUED.value, JobStatus.ERROR.value)),
            )
            .delete(synchronize_session=False)
        )
        db.flush()
        return deleted

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    @staticmethod
    def cleanup_old_jobs(
        db: Session,
        retention_days: int | None = None,
        limit: int = 50,
        now: datetime | None = None,
    ) -> int:
        """Delete terminal jobs processed before the retention cutoff.

        Returns:
            Number of jobs deleted
        """
        retention_days = retention_days or settings.JOB_RETENTION_DAYS
        cutoff = (now or utc_now()) - timedelta(days=retention_days)
        job_ids = [
            job_id
            for (job_id,) in db.query(SyncJob.id)
            .filter(
                SyncJob.status.in_(_TERMINAL_STATUSES),
                SyncJob.processed_at.is_not(None),
                SyncJob.processed_at < cutoff,
            )
            .order_by(SyncJob.processed_at)
            .limit(limit)
            .all()
        ]
        if not job_ids:
            return 0

        deleted = (
            db.query(SyncJob)
            .filter(SyncJob.id.in_(job_ids), SyncJob.status.in_(_TERMINAL_STATUSES))
            .delete(synchronize_session=False)
        )
        db.flush()
        logger.info("Deleted %d sync jobs older than %d days", deleted, retention_days)
        return deleted

    @staticmethod
    def reset_stale_jobs(
        db: Session,
        stale_minutes: int | None = None,
        limit: int = 10,
        now: datetime | None = None,
    ) -> int:
        """Requeue jobs stuck in ``running`` past the staleness window.

        Returns:
            Number of jobs moved back to ``queued``
        """
        stale_minutes = stale_minutes or settings.STALE_JOB_MINUTES
        cutoff = (now or utc_now()) - timedelta(minutes=stale_minutes)
        job_ids = [
            job_id
            for (job_id,) in db.query(SyncJob.id)
            .filter(
                SyncJob.status == JobStatus.RUNNING.value,
                SyncJob.started_at.is_not(None),
                SyncJob.started_at < cutoff,
            )
            .order_by(SyncJob.started_at)
            .limit(limit)
            .all()
        ]
        if not job_ids:
            return 0

        reset = (
            db.query(SyncJob)
            .filter(SyncJob.id.in_(job_ids), SyncJob.status == JobStatus.RUNNING.value)
            .update(
                {
                    SyncJob.status: JobStatus.QUEUED.value,
                    SyncJob.started_at: None,
                    SyncJob.error_message: STALE_RESET_MESSAGE,
                },
                synchronize_session="fetch",
            )
        )
        db.flush()
        logger.warning(
            "Reset %d sync jobs running longer than %d minutes", reset, stale_minutes
        )
        return reset
