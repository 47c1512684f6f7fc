"""Cron service - runs one scheduled maintenance or scheduling operation."""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.orm import Session

from models import EventSource, Severity, TenantRef, utc_now
from schemas.cron import (
    CleanupOldJobsOperation,
    CronOperation,
    ResetStaleJobsOperation,
    ScheduleAllTenantsOperation,
    ScheduleTenantOperation,
)
from services.job_queue import JobQueue
from services.scheduler_monitor import MAX_EVENT_ERRORS, RunReport, SchedulerMonitor
from services.sync_scheduler_service import SyncSchedulerService, TenantScheduleResult

logger = logging.getLogger(__name__)


@dataclass
class CronRunResult:
    operation: str
    processed_count: int = 0
    enqueued_jobs: int = 0
    successful_count: int = 0
    errors: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=utc_now)
    severity: Severity = Severity.INFO


class CronService:
    """Dispatches a cron operation to its handler and records the run."""

    def __init__(self, scheduler: SyncSchedulerService, monitor: SchedulerMonitor):
        self._scheduler = scheduler
        self._monitor = monitor

    def run(self, db: Session, operation: CronOperation) -> CronRunResult:
        """Execute ``operation``, commit its writes and record a cron event.

        Raises:
            TypeError: If ``operation`` is not a known operation model.
        """
        started = time.monotonic()
        result = self._dispatch(db, operation)
        db.commit()

        report = RunReport(
            source=EventSource.CRON,
            operation=result.operation,
            processed_jobs=result.processed_count,
            successful_jobs=result.successful_count,
            failed_jobs=len(result.errors),
            duration_ms=int((time.monotonic() - started) * 1000),
            errors=list(result.errors),
        )
        result.severity = self._monitor.record(db, report).severity
        result.errors = result.errors[:MAX_EVENT_ERRORS]
        logger.info(
            "Cron %s finished: processed=%d enqueued=%d errors=%d",
            result.operation,
            result.processed_count,
            result.enqueued_jobs,
            len(result.errors),
        )
        return result

    def _dispatch(self, db: Session, operation: CronOperation) -> CronRunResult:
        if isinstance(operation, ScheduleAllTenantsOperation):
            return self._schedule_all_tenants(db, operation)
        if isinstance(operation, ScheduleTenantOperation):
            return self._schedule_tenant(db, operation)
        if isinstance(operation, CleanupOldJobsOperation):
            return self._cleanup_old_jobs(db, operation)
        if isinstance(operation, ResetStaleJobsOperation):
            return self._reset_stale_jobs(db, operation)
        raise TypeError(f"Unhandled cron operation: {operation!r}")

    def _schedule_all_tenants(
        self, db: Session, operation: ScheduleAllTenantsOperation
    ) -> CronRunResult:
        tenant_results = self._scheduler.schedule_all_tenants(
            db,
            max_tenants=operation.max_tenants,
            provider_ids=operation.provider_ids,
            force=operation.force,
            timeframe_days=operation.timeframe_days,
        )
        return _from_tenant_results(operation.operation, tenant_results)

    def _schedule_tenant(self, db: Session, operation: ScheduleTenantOperation) -> CronRunResult:
        tenant_result = self._scheduler.schedule_tenant(
            db,
            TenantRef(operation.tenant_id),
            provider_ids=operation.provider_ids,
            force=operation.force,
            timeframe_days=operation.timeframe_days,
        )
        return _from_tenant_results(operation.operation, [tenant_result])

    def _cleanup_old_jobs(self, db: Session, operation: CleanupOldJobsOperation) -> CronRunResult:
        deleted = JobQueue.cleanup_old_jobs(
            db, retention_days=operation.retention_days, limit=operation.limit
        )
        return CronRunResult(operation.operation, processed_count=deleted, successful_count=deleted)

    def _reset_stale_jobs(self, db: Session, operation: ResetStaleJobsOperation) -> CronRunResult:
        reset = JobQueue.reset_stale_jobs(
            db, stale_minutes=operation.stale_minutes, limit=operation.limit
        )
        return CronRunResult(operation.operation, processed_count=reset, successful_count=reset)


def _from_tenant_results(operation: str, tenant_results: list[TenantScheduleResult]) -> CronRunResult:
    result = CronRunResult(operation, processed_count=len(tenant_results))
    for tenant_result in tenant_results:
        result.enqueued_jobs += tenant_result.enqueued_jobs
        result.errors.extend(tenant_result.errors)
    result.successful_count = result.enqueued_jobs
    return result
