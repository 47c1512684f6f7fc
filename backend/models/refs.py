"""Value types used to address tenant-scoped records."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TenantRef:
    """An isolated customer workspace. Every record is partitioned by it."""

    tenant_id: str

    def __post_init__(self):
        if not self.tenant_id:
            raise ValueError("tenant_id must be a non-empty string")

    def __str__(self) -> str:
        return self.tenant_id


@dataclass(frozen=True)
class IntegrationKey:
    """Identifies one (tenant, provider[, sub-account]) connection."""

    tenant: TenantRef
    provider_id: str
    client_id: str | None = None

    def __str__(self) -> str:
        if self.client_id:
            return f"{self.provider_id}@{self.tenant}/{self.client_id}"
        return f"{self.provider_id}@{self.tenant}"


def key_criteria(model, key: IntegrationKey) -> list:
    """SQLAlchemy filter clauses matching ``key`` on a model with
    ``tenant_id``, ``provider_id`` and ``client_id`` columns."""
    criteria = [
        model.tenant_id == key.tenant.tenant_id,
        model.provider_id == key.provider_id,
    ]
    if key.client_id is None:
        criteria.append(model.client_id.is_(None))
    else:
        criteria.append(model.client_id == key.client_id)
    return criteria
