"""Keyring-backed storage for orchestrator secrets.

Provides a thin wrapper around the ``keyring`` library so the automation
credential, the alert webhook URL and the metrics gateway key can live in
the OS keychain instead of a plain ``.env`` file.  The ``keyring`` import is
lazy so the rest of the app works even if keyring has no usable backend
(e.g. inside a container).
"""

import logging

logger = logging.getLogger(__name__)

SERVICE_NAME = "ad-sync-orchestrator"

CREDENTIAL_KEYS: frozenset[str] = frozenset(
    {
        "INTEGRATIONS_CRON_SECRET",
        "SCHEDULER_ALERT_WEBHOOK_URL",
        "METRICS_GATEWAY_API_KEY",
    }
)


def get_credential(key: str) -> str | None:
    """Retrieve a secret from the keychain.

    Args:
        key: The credential name (e.g. ``"INTEGRATIONS_CRON_SECRET"``).

    Returns:
        The credential value, or ``None`` if not found or keyring
        is unavailable.
    """
    try:
        import keyring
    except ImportError:
        return None

    try:
        return keyring.get_password(SERVICE_NAME, key)
    except Exception:
        logger.debug("keyring lookup failed for %s", key, exc_info=True)
        return None


def set_credential(key: str, value: str) -> bool:
    """Store a secret in the keychain.

    Only keys listed in :data:`CREDENTIAL_KEYS` are accepted.

    Returns:
        ``True`` if stored successfully, ``False`` otherwise.
    """
    if key not in CREDENTIAL_KEYS:
        logger.warning("Attempted to store non-credential key: %s", key)
        return False
    if not value or not value.strip():
        logger.warning("Attempted to store empty value for %s", key)
        return False

    try:
        import keyring
    except ImportError:
        logger.warning("keyring is not installed, cannot store %s", key)
        return False

    try:
        keyring.set_password(SERVICE_NAME, key, value)
        logger.info("Stored %s in keychain", key)
        return True
    except Exception:
        logger.warning("Failed to store %s in keychain", key, exc_info=True)
        return False
