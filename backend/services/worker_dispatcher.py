"""Worker dispatcher - one bounded batch run across tenants with queued jobs."""

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable

from sqlalchemy.orm import Session

from config import settings
from models import EventSource, JobStatus, SyncJob, TenantRef
from services.job_processor import JobProcessor
from services.job_queue import InvalidJobTransitionError, JobQueue
from services.scheduler_monitor import RunReport

logger = logging.getLogger(__name__)

STUCK_QUEUE_NOTE = "Detected queued jobs without progress"
JOB_RESULTS_LIMIT = 20


@dataclass(frozen=True)
class JobResult:
    tenant_id: str
    job_id: int
    provider_id: str
    status: JobStatus
    error: str | None = None


@dataclass
class WorkerRunSummary:
    """Counters and per-job results of one dispatcher run."""

    processed_jobs: int = 0
    successful_jobs: int = 0
    failed_jobs: int = 0
    had_queued_jobs: bool = False
    inspected_queued_jobs: int = 0
    job_results: list[JobResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    duration_ms: int = 0
    notes: str | None = None

    def add_result(self, result: JobResult) -> None:
        self.job_results.append(result)
        if result.status == JobStatus.SUCCESS:
            self.successful_jobs += 1
        else:
            self.failed_jobs += 1
            self.errors.append(f"{result.provider_id}@{result.tenant_id}: {result.error}")

    @property
    def truncated_job_results(self) -> list[JobResult]:
        return self.job_results[:JOB_RESULTS_LIMIT]

    def provider_failure_counts(self) -> dict[str, int]:
        """Failures per provider, counted over every job in the run."""
        return dict(
            Counter(r.provider_id for r in self.job_results if r.status != JobStatus.SUCCESS)
        )

    def to_report(self) -> RunReport:
        return RunReport(
            source=EventSource.WORKER,
            operation="process_queued_jobs",
            processed_jobs=self.processed_jobs,
            successful_jobs=self.successful_jobs,
            failed_jobs=self.failed_jobs,
            had_queued_jobs=self.had_queued_jobs,
            inspected_queued_jobs=self.inspected_queued_jobs,
            duration_ms=self.duration_ms,
            errors=list(self.errors),
            provider_failures=self.provider_failure_counts(),
            notes=self.notes,
        )


class WorkerDispatcher:
    """Claims and processes queued jobs tenant by tenant.

    Each tenant contributes at most ``jobs_per_tenant`` jobs per run so one
    busy tenant cannot starve the others, and a short pause between jobs
    keeps provider APIs from being hit in bursts.
    """

    def __init__(
        self,
        processor: JobProcessor,
        jobs_per_tenant: int | None = None,
        job_delay_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._processor = processor
        self.jobs_per_tenant = jobs_per_tenant or settings.WORKER_JOBS_PER_TENANT
        self.job_delay_seconds = (
            settings.WORKER_JOB_DELAY_SECONDS if job_delay_seconds is None else job_delay_seconds
        )
        self._sleep = sleep

    @staticmethod
    def resolve_limits(max_jobs: int | None, max_tenants: int | None) -> tuple[int, int]:
        """Apply defaults and caps to the caller's limits."""
        max_jobs = max_jobs or settings.WORKER_DEFAULT_MAX_JOBS
        max_tenants = max_tenants or settings.WORKER_DEFAULT_MAX_TENANTS
        return (
            max(1, min(max_jobs, settings.WORKER_MAX_JOBS_CAP)),
            max(1, min(max_tenants, settings.WORKER_MAX_TENANTS_CAP)),
        )

    def run(
        self,
        db: Session,
        max_jobs: int | None = None,
        max_tenants: int | None = None,
    ) -> WorkerRunSummary:
        """Process up to ``max_jobs`` queued jobs across up to ``max_tenants`` tenants.

        Job failures never abort the run; they are counted and listed in the
        summary.  A failure counting or claiming for one tenant skips only
        that tenant.
        """
        started = time.monotonic()
        max_jobs, max_tenants = self.resolve_limits(max_jobs, max_tenants)
        summary = WorkerRunSummary()

        try:
            tenants = JobQueue.list_tenants_with_queued_jobs(db, max_tenants)
        except Exception as e:
            db.rollback()
            logger.error("Failed to list tenants with queued jobs", exc_info=True)
            summary.errors.append(f"Failed to list tenants with queued jobs: {e}")
            tenants = []

        for tenant in tenants:
            if summary.processed_jobs >= max_jobs:
                break
            try:
                self._drain_tenant(db, tenant, summary, max_jobs)
            except Exception as e:
                db.rollback()
                logger.warning("Skipping tenant %s: %s", tenant, e, exc_info=True)
                summary.errors.append(f"{tenant}: {e}")

        if summary.had_queued_jobs and summary.processed_jobs == 0:
            summary.notes = STUCK_QUEUE_NOTE
        summary.duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "Worker run finished: processed=%d successful=%d failed=%d in %d ms",
            summary.processed_jobs,
            summary.successful_jobs,
            summary.failed_jobs,
            summary.duration_ms,
        )
        return summary

    def _drain_tenant(
        self, db: Session, tenant: TenantRef, summary: WorkerRunSummary, max_jobs: int
    ) -> None:
        remaining = max_jobs - summary.processed_jobs
        queued = JobQueue.count_queued(db, tenant, limit=min(self.jobs_per_tenant, remaining))
        if queued == 0:
            return

        summary.had_queued_jobs = True
        summary.inspected_queued_jobs += queued

        for _ in range(min(queued, self.jobs_per_tenant, remaining)):
            if summary.processed_jobs > 0 and self.job_delay_seconds > 0:
                self._sleep(self.job_delay_seconds)

            job = JobQueue.claim_next(db, tenant)
            if job is None:
                # Another worker drained this tenant first
                break

            summary.processed_jobs += 1
            summary.add_result(self._process_one(db, job))

    def _process_one(self, db: Session, job: SyncJob) -> JobResult:
        tenant_id, job_id, provider_id = job.tenant_id, job.id, job.provider_id
        try:
            outcome = self._processor.process(db, job)
        except Exception as e:
            db.rollback()
            logger.error("Unhandled error processing sync job %s", job_id, exc_info=True)
            message = str(e) or e.__class__.__name__
            self._fail_quietly(db, job_id, message)
            return JobResult(tenant_id, job_id, provider_id, JobStatus.ERROR, message)

        if outcome.succeeded:
            return JobResult(tenant_id, job_id, provider_id, JobStatus.SUCCESS)
        return JobResult(tenant_id, job_id, provider_id, JobStatus.ERROR, outcome.message)

    @staticmethod
    def _fail_quietly(db: Session, job_id: int, message: str) -> None:
        """Make sure a job that blew up mid-processing does not stay running."""
        try:
            JobQueue.fail(db, job_id, message)
            db.commit()
        except InvalidJobTransitionError:
            db.rollback()
        except Exception:
            db.rollback()
            logger.error("Failed to mark sync job %s as failed", job_id, exc_info=True)
