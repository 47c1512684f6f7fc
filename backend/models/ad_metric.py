"""AdMetric model - normalized daily campaign metrics."""

from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String, UniqueConstraint

from database import Base
from models.utils import generate_uuid, utc_now


class AdMetric(Base):
    """One campaign's metrics for one day, as returned by a provider sync.

    Re-syncing the same window overwrites rows in place, so a job that runs
    twice leaves the same data behind.
    """

    __tablename__ = "ad_metrics"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "provider_id",
            "client_id",
            "metric_date",
            "campaign_id",
            name="uix_ad_metric_day",
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String, nullable=False, index=True)
    provider_id = Column(String, nullable=False)
    client_id = Column(String, nullable=True)
    metric_date = Column(Date, nullable=False)
    campaign_id = Column(String, nullable=False)
    campaign_name = Column(String, nullable=True)
    impressions = Column(Integer, default=0, nullable=False)
    clicks = Column(Integer, default=0, nullable=False)
    spend = Column(Numeric(18, 4), default=0, nullable=False)
    conversions = Column(Numeric(18, 4), default=0, nullable=False)
    revenue = Column(Numeric(18, 4), default=0, nullable=False)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)
