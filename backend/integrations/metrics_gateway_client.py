"""HTTP client for the metrics gateway that wraps each ad platform's API.

The gateway owns provider OAuth tokens and reporting quirks; it returns one
JSON document per request:

    {"metrics": [{"date": "2026-01-31", "campaignId": "123",
                  "campaignName": "Brand", "impressions": 1000,
                  "clicks": 20, "spend": "12.50", "conversions": "2",
                  "revenue": "80.00"}]}
"""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation

import httpx

from integrations.exceptions import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderDataError,
)
from integrations.provider_protocol import FetchRequest, NormalizedMetric

logger = logging.getLogger(__name__)


class MetricsGatewayClient:
    """Ad provider client backed by the metrics gateway."""

    def __init__(
        self,
        provider_id: str,
        base_url: str,
        api_key: str = "",
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            provider_id: Ad platform handled by this client (e.g. 'google').
            base_url: Gateway root URL. Empty means unconfigured.
            api_key: Bearer token for the gateway.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests use ``MockTransport``).
        """
        self._provider_id = provider_id
        self._base_url = base_url.rstrip("/")
        headers: dict[str, str] = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.Client(
            base_url=self._base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    @property
    def provider_id(self) -> str:
        return self._provider_id

    def is_configured(self) -> bool:
        return self._base_url.startswith(("http://", "https://"))

    def fetch_and_normalize(self, request: FetchRequest) -> list[NormalizedMetric]:
        """Fetch ``request.timeframe_days`` of metrics and normalize them.

        Raises:
            ProviderAuthError: Gateway reported 401/403 (token expired/revoked).
            ProviderAPIError: Any other non-2xx response.
            ProviderConnectionError: Timeout or connection failure.
            ProviderDataError: Response body is not the expected shape.
        """
        if not self.is_configured():
            raise ProviderAuthError(
                "Metrics gateway URL is not configured",
                provider_id=self._provider_id,
            )

        payload = {
            "tenantId": request.tenant_id,
            "clientId": request.client_id,
            "accountId": request.account_id,
            "timeframeDays": request.timeframe_days,
        }
        try:
            response = self._client.post(
                f"/v1/{self._provider_id}/metrics", json=payload
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status in (401, 403):
                raise ProviderAuthError(
                    f"{self._provider_id} authentication failed (HTTP {status})",
                    provider_id=self._provider_id,
                ) from exc
            raise ProviderAPIError(
                f"{self._provider_id} API error (HTTP {status})",
                provider_id=self._provider_id,
                status_code=status,
            ) from exc
        except httpx.TransportError as exc:
            raise ProviderConnectionError(
                f"{self._provider_id} connection failed: {exc}",
                provider_id=self._provider_id,
            ) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise ProviderDataError(
                f"{self._provider_id} returned a non-JSON response",
                provider_id=self._provider_id,
            ) from exc

        rows = body.get("metrics") if isinstance(body, dict) else None
        if not isinstance(rows, list):
            raise ProviderDataError(
                f"{self._provider_id} response is missing the 'metrics' list",
                provider_id=self._provider_id,
            )

        metrics = [self._parse_row(row) for row in rows]
        logger.info(
            "%s: fetched %d metric rows for tenant %s (%d days)",
            self._provider_id,
            len(metrics),
            request.tenant_id,
            request.timeframe_days,
        )
        return metrics

    def _parse_row(self, row: dict) -> NormalizedMetric:
        try:
            return NormalizedMetric(
                metric_date=date.fromisoformat(row["date"]),
                campaign_id=str(row["campaignId"]),
                campaign_name=row.get("campaignName"),
                impressions=int(row.get("impressions") or 0),
                clicks=int(row.get("clicks") or 0),
                spend=_to_decimal(row.get("spend")),
                conversions=_to_decimal(row.get("conversions")),
                revenue=_to_decimal(row.get("revenue")),
            )
        except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
            raise ProviderDataError(
                f"{self._provider_id} returned a malformed metric row: {exc}",
                provider_id=self._provider_id,
            ) from exc


def _to_decimal(value) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    return Decimal(str(value))
