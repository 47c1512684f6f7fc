"""SchedulerEvent model - append-only telemetry for dispatcher and cron runs."""

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String

from database import Base
from models.utils import generate_uuid, utc_now


class SchedulerEvent(Base):
    """Outcome of one worker or cron run.

    ``severity`` is classified once when the row is written and never
    updated afterwards.
    """

    __tablename__ = "scheduler_events"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    source = Column(String, nullable=False)  # "worker" | "cron"
    operation = Column(String, nullable=True)
    processed_jobs = Column(Integer, default=0, nullable=False)
    successful_jobs = Column(Integer, default=0, nullable=False)
    failed_jobs = Column(Integer, default=0, nullable=False)
    had_queued_jobs = Column(Boolean, default=False, nullable=False)
    inspected_queued_jobs = Column(Integer, nullable=True)
    duration_ms = Column(Integer, nullable=True)
    errors = Column(JSON, default=list, nullable=False)
    notes = Column(String, nullable=True)
    failure_threshold = Column(Integer, nullable=True)
    # [{"provider_id": ..., "failed_jobs": ..., "threshold": ...}]
    provider_failure_thresholds = Column(JSON, default=list, nullable=False)
    severity = Column(String, nullable=False)  # "info" | "warning" | "critical"
    created_at = Column(DateTime, default=utc_now, nullable=False, index=True)
