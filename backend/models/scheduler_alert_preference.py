"""SchedulerAlertPreference model - per-provider failure threshold override."""

from sqlalchemy import Column, DateTime, Integer, String

from database import Base
from models.utils import generate_uuid, utc_now


class SchedulerAlertPreference(Base):
    """Failed-job count at which a provider escalates a run to critical."""

    __tablename__ = "scheduler_alert_preferences"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    provider_id = Column(String, unique=True, index=True, nullable=False)
    failure_threshold = Column(Integer, nullable=True)  # NULL -> global default
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)
