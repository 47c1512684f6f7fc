"""Test fixtures and sample data."""
import pytest
from datetime import datetime, timezone

from models import AdIntegration, IntegrationKey, JobStatus, JobType, SyncJob, TenantRef
from sqlalchemy.orm import Session

# Fixed clock used by tests that compare timestamps
NOW = datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)


def make_integration(
    db: Session,
    tenant_id: str = "acme",
    provider_id: str = "google",
    client_id: str | None = None,
    credentials_linked: bool = True,
    **fields,
) -> AdIntegration:
    """Create an integration row.

    This is a helper function (not a fixture) for tests that need several
    integrations across tenants and providers.
    """
    integration = AdIntegration(
        tenant_id=tenant_id,
        provider_id=provider_id,
        client_id=client_id,
        account_id=fields.pop("account_id", f"act_{provider_id}"),
        credentials_linked=credentials_linked,
        **fields,
    )
    db.add(integration)
    db.flush()
    return integration


def make_job(
    db: Session,
    tenant_id: str = "acme",
    provider_id: str = "google",
    client_id: str | None = None,
    status: JobStatus = JobStatus.QUEUED,
    job_type: JobType = JobType.SCHEDULED_SYNC,
    timeframe_days: int = 7,
    created_at: datetime | None = None,
    **fields,
) -> SyncJob:
    """Create a sync job row in any status."""
    job = SyncJob(
        tenant_id=tenant_id,
        provider_id=provider_id,
        client_id=client_id,
        job_type=job_type.value,
        timeframe_days=timeframe_days,
        status=status.value,
        created_at=created_at or NOW,
        **fields,
    )
    db.add(job)
    db.flush()
    return job


def key_for(tenant_id: str = "acme", provider_id: str = "google", client_id: str | None = None) -> IntegrationKey:
    return IntegrationKey(TenantRef(tenant_id), provider_id, client_id)


@pytest.fixture
def integration(db: Session) -> AdIntegration:
    """Create a linked Google integration for tenant 'acme'."""
    integration = make_integration(db, account_name="Acme Google Ads")
    db.commit()
    db.refresh(integration)
    return integration


@pytest.fixture
def integration_key(integration: AdIntegration) -> IntegrationKey:
    """Key of the ``integration`` fixture."""
    return key_for(integration.tenant_id, integration.provider_id, integration.client_id)
