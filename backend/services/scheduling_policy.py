"""Scheduling policy - decides whether an integration may be synced now.

The policy is a pure function of the integration's state, the request and
the clock.  It never writes; callers enqueue and mark the integration
themselves, or just report the decision (dry runs).
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from config import settings
from models import JobType, ScheduleReason, as_utc, utc_now


@dataclass(frozen=True)
class ScheduleDecision:
    """Outcome of :meth:`SchedulingPolicy.should_schedule`."""

    approve: bool
    reason: ScheduleReason
    job_type: JobType | None = None
    timeframe_days: int | None = None
    frequency_minutes: int | None = None


def minutes_since(value, now: datetime) -> float | None:
    """Minutes elapsed between ``value`` and ``now``.

    Returns ``None`` for a missing or unparseable timestamp ("infinitely long
    ago") and ``0`` for a timestamp in the future, so clock skew can never
    open the gate early.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None

    elapsed = (as_utc(now) - as_utc(value)).total_seconds() / 60
    return max(elapsed, 0.0)


class SchedulingPolicy:
    """Cadence, debounce, throttle and backpressure rules for auto-sync."""

    def __init__(
        self,
        default_frequency_minutes: int | None = None,
        default_timeframe_days: int | None = None,
        max_timeframe_days: int | None = None,
    ):
        self.default_frequency_minutes = (
            default_frequency_minutes or settings.DEFAULT_SYNC_FREQUENCY_MINUTES
        )
        self.default_timeframe_days = default_timeframe_days or settings.DEFAULT_TIMEFRAME_DAYS
        self.max_timeframe_days = max_timeframe_days or settings.MAX_TIMEFRAME_DAYS

    def resolve_frequency(self, integration) -> int:
        value = getattr(integration, "sync_frequency_minutes", None)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
            return int(value)
        return self.default_frequency_minutes

    def resolve_timeframe(self, integration, override=None) -> int:
        """Override, else the integration's setting, else the default;
        floored and clamped to ``[1, max_timeframe_days]``."""
        for candidate in (override, getattr(integration, "scheduled_timeframe_days", None)):
            days = _floor_days(candidate)
            if days is not None:
                return min(max(days, 1), self.max_timeframe_days)
        return min(max(self.default_timeframe_days, 1), self.max_timeframe_days)

    def should_schedule(
        self,
        integration,
        *,
        force: bool = False,
        timeframe_days_override=None,
        has_pending_job: Callable[[], bool] | bool = False,
        now: datetime | None = None,
    ) -> ScheduleDecision:
        """Decide whether a sync job may be enqueued now.

        Args:
            integration: The integration row, or ``None`` if it does not exist
            force: Manual request that bypasses cadence and backpressure
            timeframe_days_override: Days of history requested by the caller
            has_pending_job: Whether a queued/running job already exists for
                the integration.  A callable is only evaluated once every
                cheaper check has passed.
            now: Clock override

        Returns:
            A ScheduleDecision; rejections are normal outcomes, not errors.
        """
        if integration is None:
            return ScheduleDecision(False, ScheduleReason.MISSING_INTEGRATION)

        if integration.auto_sync_enabled is False and not force:
            return ScheduleDecision(False, ScheduleReason.AUTO_SYNC_DISABLED)

        now = now or utc_now()
        frequency = self.resolve_frequency(integration)
        timeframe = self.resolve_timeframe(integration, timeframe_days_override)

        if force:
            return ScheduleDecision(
                True, ScheduleReason.FORCED, JobType.MANUAL_SYNC, timeframe, frequency
            )

        since_request = minutes_since(integration.last_sync_requested_at, now)
        if since_request is not None and since_request < frequency / 2:
            return ScheduleDecision(
                False, ScheduleReason.DEBOUNCED, timeframe_days=timeframe, frequency_minutes=frequency
            )

        since_sync = minutes_since(integration.last_synced_at, now)
        if since_sync is not None and since_sync < frequency:
            return ScheduleDecision(
                False, ScheduleReason.THROTTLED, timeframe_days=timeframe, frequency_minutes=frequency
            )

        pending = has_pending_job() if callable(has_pending_job) else has_pending_job
        if pending:
            return ScheduleDecision(
                False, ScheduleReason.PENDING_JOB, timeframe_days=timeframe, frequency_minutes=frequency
            )

        return ScheduleDecision(
            True, ScheduleReason.DUE, JobType.SCHEDULED_SYNC, timeframe, frequency
        )


def _floor_days(value) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return math.floor(number)
