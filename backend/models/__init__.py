"""SQLAlchemy ORM models."""

from .ad_integration import AdIntegration
from .ad_metric import AdMetric
from .enums import EventSource, JobStatus, JobType, ScheduleReason, Severity, SyncStatus
from .refs import IntegrationKey, TenantRef, key_criteria
from .scheduler_alert_preference import SchedulerAlertPreference
from .scheduler_event import SchedulerEvent
from .sync_job import SyncJob
from .utils import as_utc, generate_uuid, utc_now

__all__ = [
    "AdIntegration",
    "AdMetric",
    "EventSource",
    "IntegrationKey",
    "JobStatus",
    "JobType",
    "ScheduleReason",
    "SchedulerAlertPreference",
    "SchedulerEvent",
    "Severity",
    "SyncJob",
    "SyncStatus",
    "TenantRef",
    "as_utc",
    "generate_uuid",
    "key_criteria",
    "utc_now",
]
