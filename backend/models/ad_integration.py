"""AdIntegration model - one connected ad-platform account for a tenant."""

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, UniqueConstraint, text

from database import Base
from models.enums import SyncStatus
from models.utils import generate_uuid, utc_now


class AdIntegration(Base):
    """Connection state for a (tenant, provider[, sub-account]) pair.

    Access tokens are owned by the OAuth layer; this row only records
    whether credentials exist.  Sync summary fields are written field by
    field by ``IntegrationService`` and are never overwritten by an
    earlier-timed update.
    """

    __tablename__ = "ad_integrations"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "provider_id", "client_id", name="uix_integration_key"
        ),
        # NULL client_id never collides in the constraint above
        Index(
            "uix_integration_tenant_level",
            "tenant_id",
            "provider_id",
            unique=True,
            sqlite_where=text("client_id IS NULL"),
            postgresql_where=text("client_id IS NULL"),
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String, nullable=False, index=True)
    provider_id = Column(String, nullable=False)  # e.g., "google", "facebook"
    client_id = Column(String, nullable=True)  # Agency sub-account, if any
    account_id = Column(String, nullable=True)  # Provider-side ad account ID
    account_name = Column(String, nullable=True)
    credentials_linked = Column(Boolean, default=False, nullable=False)

    # Automation preferences (NULL means "use the system default")
    auto_sync_enabled = Column(Boolean, nullable=True)
    sync_frequency_minutes = Column(Integer, nullable=True)
    scheduled_timeframe_days = Column(Integer, nullable=True)

    # Sync summary
    last_synced_at = Column(DateTime, nullable=True)
    last_sync_requested_at = Column(DateTime, nullable=True)
    last_sync_status = Column(String, default=SyncStatus.NEVER.value, nullable=False)
    last_sync_message = Column(String, nullable=True)
    last_sync_status_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)
