"""External API integrations.

This package contains:
- Provider protocol: Common interface for ad platform metric sources
- Provider registry: Maps provider ids to clients
- Metrics gateway client: Fetches normalized metrics over HTTP
- Alert webhook client: Delivers scheduler alerts
"""

from integrations.provider_protocol import (
    AdProviderClient,
    FetchRequest,
    NormalizedMetric,
)
from integrations.provider_registry import ProviderRegistry, get_provider_registry

__all__ = [
    "AdProviderClient",
    "FetchRequest",
    "NormalizedMetric",
    "ProviderRegistry",
    "get_provider_registry",
]
