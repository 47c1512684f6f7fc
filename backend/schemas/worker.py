"""Pydantic schemas for the worker trigger endpoint."""

from typing import Optional

from pydantic import BaseModel, Field

from schemas.common import CamelCaseRequest


class WorkerRunRequest(CamelCaseRequest):
    """Request body for a worker run.  Missing limits use the defaults."""

    max_jobs: Optional[int] = Field(default=None, ge=0)
    max_tenants: Optional[int] = Field(default=None, ge=0)


class WorkerJobResult(BaseModel):
    tenant_id: str
    job_id: int
    provider_id: str
    status: str
    error: Optional[str] = None


class WorkerRunResponse(BaseModel):
    """Summary of one worker run, returned even when jobs failed."""

    processed_jobs: int
    successful_jobs: int
    failed_jobs: int
    had_queued_jobs: bool
    inspected_queued_jobs: int
    job_results: list[WorkerJobResult]
    errors: list[str]
    notes: Optional[str] = None
    duration_ms: int
    severity: str
    event_recorded: bool
    alert_sent: bool
