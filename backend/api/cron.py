"""Scheduling and cron trigger endpoints."""

import logging

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from api.auth import require_automation_credential
from api.dependencies import get_cron_service, get_sync_scheduler
from database import get_db
from models import TenantRef
from schemas.cron import CronRunResponse, cron_operation_adapter
from schemas.schedule import (
    ScheduleDecisionResponse,
    ScheduleRequest,
    ScheduleResponse,
    TenantScheduleResponse,
)
from services.cron_service import CronService
from services.sync_scheduler_service import (
    ScheduleOutcome,
    SyncSchedulerService,
    TenantScheduleResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/integrations",
    tags=["integrations"],
    dependencies=[Depends(require_automation_credential)],
)


def _decision_response(outcome: ScheduleOutcome) -> ScheduleDecisionResponse:
    decision = outcome.decision
    return ScheduleDecisionResponse(
        provider_id=outcome.key.provider_id,
        client_id=outcome.key.client_id,
        approved=decision.approve,
        reason=decision.reason.value,
        job_id=outcome.job_id,
        job_type=decision.job_type.value if decision.job_type else None,
        timeframe_days=decision.timeframe_days,
    )


def _tenant_response(result: TenantScheduleResult) -> TenantScheduleResponse:
    return TenantScheduleResponse(
        tenant_id=result.tenant.tenant_id,
        scheduled=[_decision_response(o) for o in result.scheduled],
        skipped=[_decision_response(o) for o in result.skipped],
        errors=result.errors,
    )


@router.post("/schedule", response_model=ScheduleResponse)
def schedule_syncs(
    body: ScheduleRequest,
    db: Session = Depends(get_db),
    scheduler: SyncSchedulerService = Depends(get_sync_scheduler),
):
    """Evaluate the scheduling policy for one tenant or all tenants.

    Approved integrations get a queued job unless ``dry_run`` is set.

    Raises:
        HTTPException:
            - 400: Neither ``tenant_id`` nor ``all_tenants`` was given
            - 401: Missing or invalid automation credential
            - 500: Unexpected scheduling failure
    """
    if not body.all_tenants and not body.tenant_id:
        raise HTTPException(status_code=400, detail="tenantId or allTenants is required.")

    provider_ids = body.requested_provider_ids()
    try:
        if body.all_tenants:
            results = scheduler.schedule_all_tenants(
                db,
                max_tenants=body.max_tenants,
                provider_ids=provider_ids,
                force=body.force,
                timeframe_days=body.timeframe_days,
                dry_run=body.dry_run,
            )
        else:
            results = [
                scheduler.schedule_tenant(
                    db,
                    TenantRef(body.tenant_id),
                    provider_ids=provider_ids,
                    force=body.force,
                    timeframe_days=body.timeframe_days,
                    dry_run=body.dry_run,
                )
            ]
        if body.dry_run:
            db.rollback()
        else:
            db.commit()
    except Exception:
        logger.error("Scheduling request failed", exc_info=True)
        raise HTTPException(status_code=500, detail="Scheduling failed unexpectedly.")

    errors = [error for result in results for error in result.errors]
    return ScheduleResponse(
        dry_run=body.dry_run,
        enqueued_jobs=sum(result.enqueued_jobs for result in results),
        tenants=[_tenant_response(result) for result in results],
        errors=errors,
    )


@router.post("/cron", response_model=CronRunResponse)
def run_cron_operation(
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    cron_service: CronService = Depends(get_cron_service),
):
    """Run one cron operation selected by the ``operation`` field.

    Supported operations: ``schedule_all_tenants``, ``schedule_tenant``,
    ``cleanup_old_jobs`` and ``reset_stale_jobs``.

    Raises:
        HTTPException:
            - 401: Missing or invalid automation credential
            - 422: Unknown operation or invalid parameters
            - 500: Unexpected failure while running the operation
    """
    try:
        operation = cron_operation_adapter.validate_python(payload)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))

    try:
        result = cron_service.run(db, operation)
    except Exception:
        logger.error("Cron operation %s failed", operation.operation, exc_info=True)
        raise HTTPException(status_code=500, detail="Cron operation failed unexpectedly.")

    return CronRunResponse(
        operation=result.operation,
        processed_count=result.processed_count,
        enqueued_jobs=result.enqueued_jobs,
        errors=result.errors,
        timestamp=result.timestamp,
        severity=result.severity.value,
    )
