"""Pydantic schemas for cron operations.

Each operation is its own model carrying only its parameters; the
``operation`` field selects the variant.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from schemas.common import CamelCaseRequest


class ScheduleAllTenantsOperation(CamelCaseRequest):
    operation: Literal["schedule_all_tenants"]
    force: bool = False
    provider_ids: Optional[list[str]] = None
    timeframe_days: Optional[float] = None
    max_tenants: int = Field(default=50, ge=1)


class ScheduleTenantOperation(CamelCaseRequest):
    operation: Literal["schedule_tenant"]
    tenant_id: str = Field(min_length=1)
    force: bool = False
    provider_ids: Optional[list[str]] = None
    timeframe_days: Optional[float] = None


class CleanupOldJobsOperation(CamelCaseRequest):
    operation: Literal["cleanup_old_jobs"]
    retention_days: Optional[int] = Field(default=None, ge=1)
    limit: int = Field(default=50, ge=1, le=1000)


class ResetStaleJobsOperation(CamelCaseRequest):
    operation: Literal["reset_stale_jobs"]
    stale_minutes: Optional[int] = Field(default=None, ge=1)
    limit: int = Field(default=10, ge=1, le=1000)


CronOperation = Annotated[
    Union[
        ScheduleAllTenantsOperation,
        ScheduleTenantOperation,
        CleanupOldJobsOperation,
        ResetStaleJobsOperation,
    ],
    Field(discriminator="operation"),
]

cron_operation_adapter: TypeAdapter[CronOperation] = TypeAdapter(CronOperation)


class CronRunResponse(BaseModel):
    operation: str
    processed_count: int
    enqueued_jobs: int
    errors: list[str]
    timestamp: datetime
    severity: str
