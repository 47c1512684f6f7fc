"""Outbound alert webhook for degraded scheduler runs."""

import logging
from datetime import datetime

import httpx

logger = logging.getLogger(__name__)


class AlertDeliveryError(Exception):
    """The alert webhook could not be reached or rejected the payload."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class AlertWebhookClient:
    """Posts ``{severity, message, source, timestamp}`` JSON to a webhook.

    Delivery is fire-and-forget: the response body is ignored and only the
    status code is checked.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._url = url
        self._client = httpx.Client(timeout=timeout, transport=transport)

    @property
    def is_configured(self) -> bool:
        return bool(self._url)

    def close(self) -> None:
        self._client.close()

    def send(self, severity: str, message: str, source: str, timestamp: datetime) -> None:
        """Deliver one alert.

        Raises:
            AlertDeliveryError: On transport failure or a non-2xx response.
        """
        payload = {
            "severity": severity,
            "message": message,
            "source": source,
            "timestamp": timestamp.isoformat(),
        }
        try:
            response = self._client.post(self._url, json=payload)
        except httpx.HTTPError as exc:
            raise AlertDeliveryError(f"Alert webhook request failed: {exc}") from exc

        if response.is_error:
            raise AlertDeliveryError(
                f"Alert webhook returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        logger.debug("Alert delivered (%s, %s)", severity, source)
