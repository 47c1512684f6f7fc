"""Provider protocol for ad-platform metric collaborators.

Each ad platform (Google Ads, Meta, LinkedIn, TikTok) is reached through an
object implementing :class:`AdProviderClient`.  The orchestrator never looks
inside a provider: it hands over a :class:`FetchRequest` and receives
normalized rows, or an exception on any failure.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Protocol


@dataclass(frozen=True)
class FetchRequest:
    """What one sync job asks a provider for."""

    tenant_id: str
    provider_id: str
    timeframe_days: int
    client_id: str | None = None  # Agency sub-account, if any
    account_id: str | None = None  # Provider-side ad account ID


@dataclass
class NormalizedMetric:
    """One campaign's metrics for one day, in provider-neutral units.

    All provider clients must map their reporting rows to this format.
    """

    metric_date: date
    campaign_id: str
    campaign_name: str | None = None
    impressions: int = 0
    clicks: int = 0
    spend: Decimal = Decimal("0")
    conversions: Decimal = Decimal("0")
    revenue: Decimal = Decimal("0")


class AdProviderClient(Protocol):
    """Protocol that all ad provider clients must implement."""

    @property
    def provider_id(self) -> str:
        """Return the provider id stored on integrations (e.g. 'google')."""
        ...

    def is_configured(self) -> bool:
        """Return True if the client can make calls."""
        ...

    def fetch_and_normalize(self, request: FetchRequest) -> list[NormalizedMetric]:
        """Fetch the requested window and normalize it.

        Args:
            request: Tenant, provider, sub-account and timeframe to fetch.

        Returns:
            Normalized metric rows (possibly empty).

        Raises:
            ProviderError: On auth expiry, rate limits, network failures
                or malformed responses.
        """
        ...
