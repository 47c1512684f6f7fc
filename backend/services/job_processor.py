"""Job processor - runs one claimed sync job against its provider."""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from integrations.provider_protocol import FetchRequest
from integrations.provider_registry import ProviderRegistry
from models import IntegrationKey, JobStatus, SyncJob, SyncStatus, TenantRef
from services.integration_service import IntegrationService
from services.job_queue import JobQueue, truncate_message
from services.metrics_service import MetricsService

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS_JOB_MESSAGE = "Integration or credentials not found"
MISSING_CREDENTIALS_INTEGRATION_MESSAGE = "Missing credentials"


@dataclass(frozen=True)
class JobOutcome:
    """How a processed job ended."""

    status: JobStatus
    message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == JobStatus.SUCCESS


class JobProcessor:
    """Fetches, stores and records the result of one running job.

    The processor never retries; a failed integration becomes eligible again
    on a later scheduling cycle (or immediately through a forced request).
    """

    def __init__(self, provider_registry: ProviderRegistry):
        self._registry = provider_registry

    def process(self, db: Session, job: SyncJob) -> JobOutcome:
        """Process a job that has already been claimed.

        Commits the job's terminal state together with the integration's
        sync summary.

        Args:
            db: Database session
            job: A job in ``running`` state

        Returns:
            JobOutcome with the terminal status and a short message
        """
        key = IntegrationKey(TenantRef(job.tenant_id), job.provider_id, job.client_id)
        job_id = job.id

        integration = IntegrationService.get(db, key)
        if integration is None or not integration.credentials_linked:
            return self._fail(
                db,
                job_id,
                key,
                MISSING_CREDENTIALS_JOB_MESSAGE,
                integration_message=MISSING_CREDENTIALS_INTEGRATION_MESSAGE,
            )

        try:
            provider = self._registry.get_provider(key.provider_id)
        except ValueError as e:
            return self._fail(db, job_id, key, str(e))

        request = FetchRequest(
            tenant_id=key.tenant.tenant_id,
            provider_id=key.provider_id,
            timeframe_days=job.timeframe_days,
            client_id=key.client_id,
            account_id=integration.account_id,
        )

        try:
            metrics = provider.fetch_and_normalize(request)
            # Savepoint so a failed write leaves the session usable for fail()
            with db.begin_nested():
                written = MetricsService.write_batch(db, key, metrics)
        except Exception as e:
            logger.warning("Sync job %s for %s failed: %s", job_id, key, e)
            return self._fail(db, job_id, key, str(e) or e.__class__.__name__)

        message = f"Synced {written} metric rows"
        JobQueue.complete(db, job_id)
        IntegrationService.mark_sync_outcome(db, key, SyncStatus.SUCCESS, message)
        db.commit()
        logger.info("Sync job %s for %s succeeded (%d rows)", job_id, key, written)
        return JobOutcome(JobStatus.SUCCESS, message)

    def _fail(
        self,
        db: Session,
        job_id: int,
        key: IntegrationKey,
        message: str,
        integration_message: str | None = None,
    ) -> JobOutcome:
        message = truncate_message(message)
        JobQueue.fail(db, job_id, message)
        IntegrationService.mark_sync_outcome(
            db, key, SyncStatus.ERROR, integration_message or message
        )
        db.commit()
        return JobOutcome(JobStatus.ERROR, message)
