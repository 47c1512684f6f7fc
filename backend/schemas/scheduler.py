"""Pydantic schemas for scheduler telemetry and alert preferences."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ProviderFailureThreshold(BaseModel):
    provider_id: str
    failed_jobs: int
    threshold: int


class SchedulerEventResponse(BaseModel):
    """Response schema for a single scheduler event."""

    id: str
    source: str
    operation: Optional[str] = None
    processed_jobs: int
    successful_jobs: int
    failed_jobs: int
    had_queued_jobs: bool
    inspected_queued_jobs: Optional[int] = None
    duration_ms: Optional[int] = None
    errors: list[str]
    notes: Optional[str] = None
    failure_threshold: Optional[int] = None
    provider_failure_thresholds: list[ProviderFailureThreshold]
    severity: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AlertPreferenceResponse(BaseModel):
    provider_id: str
    failure_threshold: Optional[int] = None
    effective_threshold: int


class AlertPreferenceUpdate(BaseModel):
    """Request body for a provider's failure threshold.  ``None`` clears it."""

    failure_threshold: Optional[int] = Field(default=None, ge=1)
