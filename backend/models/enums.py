"""String enums shared by the sync orchestrator models and services."""

from enum import Enum


class SyncStatus(str, Enum):
    """Summary status stored on an integration."""

    NEVER = "never"
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class JobStatus(str, Enum):
    """Lifecycle of a sync job: queued -> running -> success | error."""

    QUEUED = "queued"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCESS, JobStatus.ERROR)


class JobType(str, Enum):
    INITIAL_BACKFILL = "initial-backfill"
    SCHEDULED_SYNC = "scheduled-sync"
    MANUAL_SYNC = "manual-sync"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class EventSource(str, Enum):
    WORKER = "worker"
    CRON = "cron"


class ScheduleReason(str, Enum):
    """Why the scheduling policy approved or rejected a request."""

    MISSING_INTEGRATION = "missing_integration"
    AUTO_SYNC_DISABLED = "auto_sync_disabled"
    FORCED = "forced"
    DEBOUNCED = "debounced"
    THROTTLED = "throttled"
    PENDING_JOB = "pending_job"
    DUE = "due"
