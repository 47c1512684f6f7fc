"""SyncJob model - one unit of queued provider sync work."""

from sqlalchemy import Column, DateTime, Index, Integer, String

from database import Base
from models.enums import JobStatus
from models.utils import utc_now


class SyncJob(Base):
    """A queued, running or finished sync for one integration.

    The integer primary key follows insertion order and breaks ties between
    jobs created in the same instant.
    """

    __tablename__ = "sync_jobs"
    __table_args__ = (
        Index("ix_sync_jobs_tenant_status_created", "tenant_id", "status", "created_at"),
        Index("ix_sync_jobs_status_started", "status", "started_at"),
        Index("ix_sync_jobs_status_processed", "status", "processed_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String, nullable=False)
    provider_id = Column(String, nullable=False)
    client_id = Column(String, nullable=True)
    job_type = Column(String, nullable=False)  # "initial-backfill" | "scheduled-sync" | "manual-sync"
    timeframe_days = Column(Integer, nullable=False)
    status = Column(String, default=JobStatus.QUEUED.value, nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    started_at = Column(DateTime, nullable=True)
    processed_at = Column(DateTime, nullable=True)
    error_message = Column(String, nullable=True)
