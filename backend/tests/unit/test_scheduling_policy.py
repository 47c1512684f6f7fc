"""Unit tests for the scheduling policy."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from models import AdIntegration, JobType, ScheduleReason
from services.scheduling_policy import SchedulingPolicy, minutes_since

NOW = datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)


def _integration(**fields) -> AdIntegration:
    fields.setdefault("tenant_id", "acme")
    fields.setdefault("provider_id", "google")
    fields.setdefault("credentials_linked", True)
    return AdIntegration(**fields)


@pytest.fixture
def policy() -> SchedulingPolicy:
    return SchedulingPolicy(
        default_frequency_minutes=360, default_timeframe_days=90, max_timeframe_days=365
    )


class TestMinutesSince:
    """Tests for minutes_since()."""

    def test_none_is_infinitely_long_ago(self):
        assert minutes_since(None, NOW) is None

    def test_elapsed_minutes(self):
        assert minutes_since(NOW - timedelta(hours=2), NOW) == 120

    def test_future_timestamp_is_zero(self):
        assert minutes_since(NOW + timedelta(minutes=30), NOW) == 0

    def test_naive_timestamp_treated_as_utc(self):
        naive = (NOW - timedelta(minutes=45)).replace(tzinfo=None)
        assert minutes_since(naive, NOW) == 45

    def test_iso_string_parsed(self):
        assert minutes_since("2026-02-01T11:00:00+00:00", NOW) == 60

    def test_invalid_string_is_infinitely_long_ago(self):
        assert minutes_since("not-a-date", NOW) is None

    def test_non_datetime_is_infinitely_long_ago(self):
        assert minutes_since(12345, NOW) is None


class TestResolveTimeframe:
    """Tests for SchedulingPolicy.resolve_timeframe()."""

    def test_default_when_nothing_set(self, policy):
        assert policy.resolve_timeframe(_integration()) == 90

    def test_integration_setting_used(self, policy):
        assert policy.resolve_timeframe(_integration(scheduled_timeframe_days=30)) == 30

    def test_override_beats_integration_setting(self, policy):
        integration = _integration(scheduled_timeframe_days=30)
        assert policy.resolve_timeframe(integration, override=14) == 14

    def test_fractional_override_floored(self, policy):
        assert policy.resolve_timeframe(_integration(), override=7.9) == 7

    def test_clamped_to_minimum_one(self, policy):
        assert policy.resolve_timeframe(_integration(), override=0.5) == 1
        assert policy.resolve_timeframe(_integration(), override=-4) == 1

    def test_clamped_to_maximum(self, policy):
        assert policy.resolve_timeframe(_integration(), override=1000) == 365

    def test_non_numeric_override_ignored(self, policy):
        assert policy.resolve_timeframe(_integration(), override="soon") == 90

    def test_infinite_override_ignored(self, policy):
        assert policy.resolve_timeframe(_integration(), override=float("inf")) == 90


class TestResolveFrequency:
    """Tests for SchedulingPolicy.resolve_frequency()."""

    def test_default_when_unset(self, policy):
        assert policy.resolve_frequency(_integration()) == 360

    def test_integration_setting_used(self, policy):
        assert policy.resolve_frequency(_integration(sync_frequency_minutes=60)) == 60

    def test_non_positive_setting_ignored(self, policy):
        assert policy.resolve_frequency(_integration(sync_frequency_minutes=0)) == 360


class TestShouldSchedule:
    """Tests for SchedulingPolicy.should_schedule()."""

    def test_missing_integration_rejected(self, policy):
        decision = policy.should_schedule(None, now=NOW)
        assert not decision.approve
        assert decision.reason == ScheduleReason.MISSING_INTEGRATION

    def test_missing_integration_rejected_even_when_forced(self, policy):
        decision = policy.should_schedule(None, force=True, now=NOW)
        assert not decision.approve
        assert decision.reason == ScheduleReason.MISSING_INTEGRATION

    def test_auto_sync_disabled_rejected(self, policy):
        decision = policy.should_schedule(_integration(auto_sync_enabled=False), now=NOW)
        assert not decision.approve
        assert decision.reason == ScheduleReason.AUTO_SYNC_DISABLED

    def test_auto_sync_unset_is_enabled(self, policy):
        decision = policy.should_schedule(_integration(auto_sync_enabled=None), now=NOW)
        assert decision.approve

    def test_force_overrides_disabled_auto_sync(self, policy):
        decision = policy.should_schedule(
            _integration(auto_sync_enabled=False), force=True, now=NOW
        )
        assert decision.approve
        assert decision.reason == ScheduleReason.FORCED
        assert decision.job_type == JobType.MANUAL_SYNC

    def test_force_bypasses_debounce_throttle_and_backpressure(self, policy):
        integration = _integration(
            last_sync_requested_at=NOW - timedelta(minutes=1),
            last_synced_at=NOW - timedelta(minutes=2),
        )
        decision = policy.should_schedule(
            integration, force=True, has_pending_job=True, now=NOW
        )
        assert decision.approve
        assert decision.reason == ScheduleReason.FORCED

    def test_force_uses_timeframe_override(self, policy):
        decision = policy.should_schedule(
            _integration(), force=True, timeframe_days_override=3, now=NOW
        )
        assert decision.timeframe_days == 3

    def test_debounced_when_recently_requested(self, policy):
        integration = _integration(last_sync_requested_at=NOW - timedelta(minutes=100))
        decision = policy.should_schedule(integration, now=NOW)
        assert not decision.approve
        assert decision.reason == ScheduleReason.DEBOUNCED

    def test_request_older_than_half_cadence_not_debounced(self, policy):
        integration = _integration(last_sync_requested_at=NOW - timedelta(minutes=180))
        decision = policy.should_schedule(integration, now=NOW)
        assert decision.approve

    def test_throttled_when_synced_two_hours_ago(self, policy):
        """360-minute cadence, last synced 120 minutes ago: too soon."""
        integration = _integration(
            sync_frequency_minutes=360,
            last_synced_at=NOW - timedelta(hours=2),
            last_sync_requested_at=None,
        )
        decision = policy.should_schedule(integration, has_pending_job=False, now=NOW)
        assert not decision.approve
        assert decision.reason == ScheduleReason.THROTTLED
        assert decision.frequency_minutes == 360

    def test_due_when_synced_seven_hours_ago(self, policy):
        """Same integration synced 7 hours ago gets a scheduled-sync of 90 days."""
        integration = _integration(
            sync_frequency_minutes=360,
            last_synced_at=NOW - timedelta(hours=7),
            last_sync_requested_at=None,
        )
        decision = policy.should_schedule(integration, has_pending_job=False, now=NOW)
        assert decision.approve
        assert decision.reason == ScheduleReason.DUE
        assert decision.job_type == JobType.SCHEDULED_SYNC
        assert decision.timeframe_days == 90

    def test_future_last_synced_at_throttles(self, policy):
        integration = _integration(last_synced_at=NOW + timedelta(hours=1))
        decision = policy.should_schedule(integration, now=NOW)
        assert decision.reason == ScheduleReason.THROTTLED

    def test_pending_job_rejected(self, policy):
        decision = policy.should_schedule(_integration(), has_pending_job=True, now=NOW)
        assert not decision.approve
        assert decision.reason == ScheduleReason.PENDING_JOB

    def test_pending_job_callable_evaluated_last(self, policy):
        """The backpressure lookup is skipped when a cheaper check rejects."""
        has_pending = MagicMock(return_value=False)
        integration = _integration(last_synced_at=NOW - timedelta(minutes=5))

        policy.should_schedule(integration, has_pending_job=has_pending, now=NOW)

        has_pending.assert_not_called()

    def test_pending_job_callable_used_when_due(self, policy):
        has_pending = MagicMock(return_value=True)

        decision = policy.should_schedule(_integration(), has_pending_job=has_pending, now=NOW)

        has_pending.assert_called_once_with()
        assert decision.reason == ScheduleReason.PENDING_JOB

    def test_decision_is_idempotent(self, policy):
        integration = _integration(last_synced_at=NOW - timedelta(hours=7))
        first = policy.should_schedule(integration, now=NOW)
        second = policy.should_schedule(integration, now=NOW)
        assert first == second
