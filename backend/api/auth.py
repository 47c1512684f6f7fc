"""Automation credential check for trigger and operator endpoints."""

import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException

from config import settings

logger = logging.getLogger(__name__)


def require_automation_credential(
    x_cron_key: Optional[str] = Header(default=None),
    authorization: Optional[str] = Header(default=None),
) -> None:
    """Reject callers that do not present ``INTEGRATIONS_CRON_SECRET``.

    The secret is accepted as ``X-Cron-Key: <secret>`` or
    ``Authorization: Bearer <secret>``.

    Raises:
        HTTPException:
            - 500: The secret is not configured on this server
            - 401: The credential is missing or wrong
    """
    expected = settings.INTEGRATIONS_CRON_SECRET
    if not expected:
        logger.error("INTEGRATIONS_CRON_SECRET is not configured")
        raise HTTPException(
            status_code=500,
            detail="Automation credential is not configured on the server.",
        )

    presented = x_cron_key or None
    if presented is None and authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer":
            presented = token.strip()

    if not presented or not hmac.compare_digest(presented.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Invalid automation credential.")
