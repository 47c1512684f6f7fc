"""Unit tests for AlertWebhookClient."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from integrations.alert_webhook_client import AlertDeliveryError, AlertWebhookClient

WEBHOOK_URL = "https://hooks.example.com/scheduler"
TIMESTAMP = datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)


class TestAlertWebhookClient:
    """Tests for AlertWebhookClient."""

    def test_is_configured(self):
        assert AlertWebhookClient(WEBHOOK_URL).is_configured
        assert not AlertWebhookClient("").is_configured

    def test_posts_alert_payload(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(204)

        client = AlertWebhookClient(WEBHOOK_URL, transport=httpx.MockTransport(handler))
        client.send("critical", "[CRITICAL] Integration scheduler worker run", "worker", TIMESTAMP)

        assert seen["url"] == WEBHOOK_URL
        assert seen["body"] == {
            "severity": "critical",
            "message": "[CRITICAL] Integration scheduler worker run",
            "source": "worker",
            "timestamp": "2026-02-01T12:00:00+00:00",
        }

    def test_non_2xx_raises(self):
        client = AlertWebhookClient(
            WEBHOOK_URL, transport=httpx.MockTransport(lambda request: httpx.Response(500))
        )

        with pytest.raises(AlertDeliveryError) as exc_info:
            client.send("warning", "msg", "cron", TIMESTAMP)

        assert exc_info.value.status_code == 500

    def test_transport_failure_raises(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        client = AlertWebhookClient(WEBHOOK_URL, transport=httpx.MockTransport(handler))

        with pytest.raises(AlertDeliveryError, match="request failed"):
            client.send("warning", "msg", "cron", TIMESTAMP)
