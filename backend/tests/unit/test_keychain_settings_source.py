"""Tests for KeychainSettingsSource integration in config.py."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from config import KeychainSettingsSource, Settings
from services.credential_manager import CREDENTIAL_KEYS

# Environment variables that would interfere with Settings defaults if
# set in the test runner's shell.  We clear them for isolation.
_ENV_VARS_TO_CLEAR = {
    "DATABASE_URL",
    "ENVIRONMENT",
    "DEBUG",
    "LOG_LEVEL",
    "SCHEDULER_FAILURE_THRESHOLD",
    "WORKER_JOBS_PER_TENANT",
    *CREDENTIAL_KEYS,
}


def _clean_env():
    """Return a dict suitable for ``os.environ`` patching that removes
    any variables the Settings class reads."""
    return {k: v for k, v in os.environ.items() if k not in _ENV_VARS_TO_CLEAR}


class TestKeychainSettingsSource:
    """Test the KeychainSettingsSource pydantic-settings source."""

    def test_keychain_value_overrides_default(self):
        """A credential in keychain should override the empty-string default."""
        with (
            patch.dict(os.environ, _clean_env(), clear=True),
            patch("config.get_credential") as mock_get,
        ):
            mock_get.side_effect = lambda key: (
                "keychain-value" if key == "INTEGRATIONS_CRON_SECRET" else None
            )
            s = Settings(_env_file=None)
            assert s.INTEGRATIONS_CRON_SECRET == "keychain-value"

    def test_init_value_overrides_keychain(self):
        """An explicit init value should override keychain."""
        with (
            patch.dict(os.environ, _clean_env(), clear=True),
            patch("config.get_credential") as mock_get,
        ):
            mock_get.return_value = "keychain-value"
            s = Settings(_env_file=None, INTEGRATIONS_CRON_SECRET="init-value")
            assert s.INTEGRATIONS_CRON_SECRET == "init-value"

    def test_non_credential_fields_skip_keychain(self):
        """Fields not in CREDENTIAL_KEYS should not hit keychain."""
        with (
            patch.dict(os.environ, _clean_env(), clear=True),
            patch("config.get_credential") as mock_get,
        ):
            mock_get.return_value = "should-not-be-used"
            s = Settings(_env_file=None)
            assert s.DATABASE_URL == "sqlite:///./ad_sync.db"
            called_keys = [call.args[0] for call in mock_get.call_args_list]
            assert "DATABASE_URL" not in called_keys
            assert "METRICS_GATEWAY_URL" not in called_keys
            assert "LOG_LEVEL" not in called_keys

    def test_env_fallback_when_keychain_empty(self):
        """When keychain returns None, the .env/default chain still works."""
        with (
            patch.dict(os.environ, _clean_env(), clear=True),
            patch("config.get_credential", return_value=None),
        ):
            s = Settings(_env_file=None)
            assert s.INTEGRATIONS_CRON_SECRET == ""
            assert s.SCHEDULER_ALERT_WEBHOOK_URL == ""

    def test_source_is_in_priority_chain(self):
        """KeychainSettingsSource appears in the customised source tuple."""
        sources = Settings.settings_customise_sources(
            Settings,
            init_settings=object(),
            env_settings=object(),
            dotenv_settings=object(),
            file_secret_settings=object(),
        )
        source_types = [type(s) for s in sources]
        assert KeychainSettingsSource in source_types
        assert source_types.index(KeychainSettingsSource) == 1

    def test_keychain_overrides_env_var(self):
        """Keychain has higher priority than env vars in the source chain."""
        env = _clean_env()
        env["METRICS_GATEWAY_API_KEY"] = "from-env"
        with (
            patch.dict(os.environ, env, clear=True),
            patch("config.get_credential") as mock_get,
        ):
            mock_get.side_effect = lambda key: (
                "from-keychain" if key == "METRICS_GATEWAY_API_KEY" else None
            )
            s = Settings(_env_file=None)
            assert s.METRICS_GATEWAY_API_KEY == "from-keychain"


class TestSchedulerSettings:
    """Defaults and validation of the scheduler settings."""

    def test_defaults(self):
        with (
            patch.dict(os.environ, _clean_env(), clear=True),
            patch("config.get_credential", return_value=None),
        ):
            s = Settings(_env_file=None)
        assert s.DEFAULT_SYNC_FREQUENCY_MINUTES == 360
        assert s.DEFAULT_TIMEFRAME_DAYS == 90
        assert s.SCHEDULER_FAILURE_THRESHOLD == 3
        assert s.WORKER_MAX_JOBS_CAP == 25
        assert s.WORKER_MAX_TENANTS_CAP == 100
        assert s.WORKER_JOBS_PER_TENANT == 3
        assert s.STALE_JOB_MINUTES == 30

    def test_env_overrides(self):
        env = _clean_env()
        env["SCHEDULER_FAILURE_THRESHOLD"] = "5"
        with (
            patch.dict(os.environ, env, clear=True),
            patch("config.get_credential", return_value=None),
        ):
            s = Settings(_env_file=None)
        assert s.SCHEDULER_FAILURE_THRESHOLD == 5

    def test_threshold_must_be_positive(self):
        env = _clean_env()
        env["SCHEDULER_FAILURE_THRESHOLD"] = "0"
        with (
            patch.dict(os.environ, env, clear=True),
            patch("config.get_credential", return_value=None),
            pytest.raises(ValidationError, match="SCHEDULER_FAILURE_THRESHOLD"),
        ):
            Settings(_env_file=None)
