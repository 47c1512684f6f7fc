"""Scheduler telemetry and alert preference endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from api.auth import require_automation_credential
from database import get_db
from models import EventSource, Severity
from schemas.scheduler import AlertPreferenceResponse, AlertPreferenceUpdate, SchedulerEventResponse
from services.alert_preference_service import AlertPreferenceService
from services.scheduler_monitor import SchedulerMonitor

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/scheduler",
    tags=["scheduler"],
    dependencies=[Depends(require_automation_credential)],
)


@router.get("/events", response_model=list[SchedulerEventResponse])
def list_scheduler_events(
    limit: int = Query(default=50, ge=1, le=500),
    severity: Optional[Severity] = None,
    source: Optional[EventSource] = None,
    db: Session = Depends(get_db),
):
    """List recent scheduler runs, newest first."""
    return SchedulerMonitor.list_events(db, limit=limit, severity=severity, source=source)


@router.get("/alert-preferences", response_model=list[AlertPreferenceResponse])
def list_alert_preferences(db: Session = Depends(get_db)):
    """List the failure threshold of every known provider."""
    return AlertPreferenceService.list_preferences(db)


@router.put("/alert-preferences/{provider_id}", response_model=AlertPreferenceResponse)
def update_alert_preference(
    provider_id: str,
    body: AlertPreferenceUpdate,
    db: Session = Depends(get_db),
):
    """Set or clear a provider's failure threshold."""
    try:
        AlertPreferenceService.set_threshold(db, provider_id, body.failure_threshold)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    db.commit()

    for preference in AlertPreferenceService.list_preferences(db):
        if preference.provider_id == provider_id:
            return preference

    raise HTTPException(status_code=404, detail=f"Unknown provider: {provider_id}")
