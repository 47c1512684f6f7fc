"""Pydantic schemas for the scheduling trigger endpoint."""

from typing import Optional

from pydantic import BaseModel, Field

from schemas.common import CamelCaseRequest


class ScheduleRequest(CamelCaseRequest):
    """Request body for scheduling one tenant or every tenant.

    One of ``tenant_id`` or ``all_tenants`` is required.
    """

    tenant_id: Optional[str] = None
    provider_id: Optional[str] = None
    provider_ids: Optional[list[str]] = None
    force: bool = False
    timeframe_days: Optional[float] = None
    all_tenants: bool = False
    max_tenants: int = Field(default=50, ge=1)
    dry_run: bool = False

    def requested_provider_ids(self) -> Optional[list[str]]:
        ids = list(self.provider_ids or [])
        if self.provider_id and self.provider_id not in ids:
            ids.append(self.provider_id)
        return ids or None


class ScheduleDecisionResponse(BaseModel):
    provider_id: str
    client_id: Optional[str] = None
    approved: bool
    reason: str
    job_id: Optional[int] = None
    job_type: Optional[str] = None
    timeframe_days: Optional[int] = None


class TenantScheduleResponse(BaseModel):
    tenant_id: str
    scheduled: list[ScheduleDecisionResponse]
    skipped: list[ScheduleDecisionResponse]
    errors: list[str]


class ScheduleResponse(BaseModel):
    dry_run: bool
    enqueued_jobs: int
    tenants: list[TenantScheduleResponse]
    errors: list[str]
