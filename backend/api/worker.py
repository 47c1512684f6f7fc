"""Worker trigger endpoint."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api.auth import require_automation_credential
from api.dependencies import get_scheduler_monitor, get_worker_dispatcher
from database import get_db
from schemas.worker import WorkerJobResult, WorkerRunRequest, WorkerRunResponse
from services.scheduler_monitor import SchedulerMonitor
from services.worker_dispatcher import WorkerDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/integrations",
    tags=["integrations"],
    dependencies=[Depends(require_automation_credential)],
)


@router.post("/worker", response_model=WorkerRunResponse)
def run_worker(
    body: Optional[WorkerRunRequest] = None,
    db: Session = Depends(get_db),
    dispatcher: WorkerDispatcher = Depends(get_worker_dispatcher),
    monitor: SchedulerMonitor = Depends(get_scheduler_monitor),
):
    """Process queued sync jobs across tenants.

    Always returns 200 with the run summary when the run itself completed;
    individual job failures are reported in ``job_results`` and ``errors``.

    Raises:
        HTTPException:
            - 401: Missing or invalid automation credential
            - 500: The run could not start (configuration or database failure)
    """
    body = body or WorkerRunRequest()
    try:
        summary = dispatcher.run(db, max_jobs=body.max_jobs, max_tenants=body.max_tenants)
    except Exception:
        logger.error("Worker run failed", exc_info=True)
        raise HTTPException(status_code=500, detail="Worker run failed unexpectedly.")

    monitor_result = monitor.record(db, summary.to_report())

    return WorkerRunResponse(
        processed_jobs=summary.processed_jobs,
        successful_jobs=summary.successful_jobs,
        failed_jobs=summary.failed_jobs,
        had_queued_jobs=summary.had_queued_jobs,
        inspected_queued_jobs=summary.inspected_queued_jobs,
        job_results=[
            WorkerJobResult(
                tenant_id=r.tenant_id,
                job_id=r.job_id,
                provider_id=r.provider_id,
                status=r.status.value,
                error=r.error,
            )
            for r in summary.truncated_job_results
        ],
        errors=summary.errors,
        notes=summary.notes,
        duration_ms=summary.duration_ms,
        severity=monitor_result.severity.value,
        event_recorded=monitor_result.persisted.ok,
        alert_sent=bool(
            monitor_result.alerted
            and monitor_result.alerted.ok
            and not monitor_result.alerted.skipped
        ),
    )
