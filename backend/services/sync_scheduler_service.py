"""Sync scheduler service - applies the scheduling policy and enqueues jobs."""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.orm import Session

from models import IntegrationKey, TenantRef
from services.integration_service import IntegrationService
from services.job_queue import JobQueue
from services.scheduling_policy import ScheduleDecision, SchedulingPolicy

logger = logging.getLogger(__name__)

MAX_TENANTS_PER_SCHEDULING_RUN = 500


@dataclass(frozen=True)
class ScheduleOutcome:
    key: IntegrationKey
    decision: ScheduleDecision
    job_id: int | None = None

    @property
    def scheduled(self) -> bool:
        return self.decision.approve


@dataclass
class TenantScheduleResult:
    tenant: TenantRef
    scheduled: list[ScheduleOutcome] = field(default_factory=list)
    skipped: list[ScheduleOutcome] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def enqueued_jobs(self) -> int:
        return sum(1 for outcome in self.scheduled if outcome.job_id is not None)


class SyncSchedulerService:
    """Turns approved scheduling decisions into queued jobs.

    Writes are flushed, not committed; the caller owns the transaction.
    """

    def __init__(self, policy: SchedulingPolicy | None = None):
        self.policy = policy or SchedulingPolicy()

    def schedule_integration(
        self,
        db: Session,
        key: IntegrationKey,
        force: bool = False,
        timeframe_days=None,
        dry_run: bool = False,
        now: datetime | None = None,
    ) -> ScheduleOutcome:
        """Evaluate one integration and enqueue a job if approved.

        With ``dry_run`` the decision is returned without enqueueing or
        touching the integration.
        """
        integration = IntegrationService.get(db, key)
        decision = self.policy.should_schedule(
            integration,
            force=force,
            timeframe_days_override=timeframe_days,
            has_pending_job=lambda: JobQueue.has_pending_job(db, key),
            now=now,
        )
        if not decision.approve:
            logger.debug("Not scheduling %s: %s", key, decision.reason.value)
            return ScheduleOutcome(key, decision)
        if dry_run:
            return ScheduleOutcome(key, decision)

        job = JobQueue.enqueue(db, key, decision.job_type, decision.timeframe_days, now=now)
        IntegrationService.mark_sync_requested(db, key, now=now)
        return ScheduleOutcome(key, decision, job.id)

    def schedule_tenant(
        self,
        db: Session,
        tenant: TenantRef,
        provider_ids: list[str] | None = None,
        force: bool = False,
        timeframe_days=None,
        dry_run: bool = False,
        now: datetime | None = None,
    ) -> TenantScheduleResult:
        """Evaluate every integration of a tenant (or only ``provider_ids``).

        Requested providers with no integration are reported as skipped.  An
        error on one integration is rolled back to its savepoint and recorded;
        the remaining integrations are still evaluated.
        """
        result = TenantScheduleResult(tenant)
        integrations = IntegrationService.list_for_tenant(db, tenant, provider_ids)
        keys = [
            IntegrationKey(tenant, integration.provider_id, integration.client_id)
            for integration in integrations
        ]
        connected = {key.provider_id for key in keys}
        for provider_id in provider_ids or []:
            if provider_id not in connected:
                keys.append(IntegrationKey(tenant, provider_id))

        for key in keys:
            try:
                with db.begin_nested():
                    outcome = self.schedule_integration(
                        db, key, force=force, timeframe_days=timeframe_days, dry_run=dry_run, now=now
                    )
            except Exception as e:
                logger.warning("Failed to schedule %s", key, exc_info=True)
                result.errors.append(f"{key.provider_id}@{tenant}: {e}")
                continue

            if outcome.scheduled:
                result.scheduled.append(outcome)
            else:
                result.skipped.append(outcome)

        if result.scheduled and not dry_run:
            logger.info(
                "Scheduled %d sync jobs for tenant %s (%d skipped)",
                len(result.scheduled),
                tenant,
                len(result.skipped),
            )
        return result

    def schedule_all_tenants(
        self,
        db: Session,
        max_tenants: int = 50,
        provider_ids: list[str] | None = None,
        force: bool = False,
        timeframe_days=None,
        dry_run: bool = False,
        now: datetime | None = None,
    ) -> list[TenantScheduleResult]:
        """Run :meth:`schedule_tenant` for up to ``max_tenants`` tenants."""
        max_tenants = max(1, min(max_tenants, MAX_TENANTS_PER_SCHEDULING_RUN))
        return [
            self.schedule_tenant(
                db,
                tenant,
                provider_ids=provider_ids,
                force=force,
                timeframe_days=timeframe_days,
                dry_run=dry_run,
                now=now,
            )
            for tenant in IntegrationService.list_tenants(db, max_tenants)
        ]
