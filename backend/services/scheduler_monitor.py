"""Scheduler monitor - severity classification, telemetry and alerting.

Every worker or cron run is summarized as a :class:`RunReport`.  The monitor
classifies it, appends a :class:`~models.scheduler_event.SchedulerEvent` and,
for warning or critical runs, posts a message to the alert webhook.  Both
side effects are best-effort: their failures are logged and returned as
:class:`SideEffectResult`, never raised.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from config import settings
from integrations.alert_webhook_client import AlertWebhookClient
from models import EventSource, SchedulerEvent, Severity, utc_now
from services.alert_preference_service import AlertPreferenceService

logger = logging.getLogger(__name__)

MAX_EVENT_ERRORS = 10
MAX_ALERT_ERRORS = 5


@dataclass
class RunReport:
    """Counters of one scheduler run, as consumed by the monitor."""

    source: EventSource
    operation: str | None = None
    processed_jobs: int = 0
    successful_jobs: int = 0
    failed_jobs: int = 0
    had_queued_jobs: bool = False
    inspected_queued_jobs: int | None = None
    duration_ms: int | None = None
    errors: list[str] = field(default_factory=list)
    provider_failures: dict[str, int] = field(default_factory=dict)
    notes: str | None = None


@dataclass(frozen=True)
class ProviderFailure:
    provider_id: str
    failed_jobs: int
    threshold: int

    def to_dict(self) -> dict:
        return {
            "provider_id": self.provider_id,
            "failed_jobs": self.failed_jobs,
            "threshold": self.threshold,
        }


@dataclass(frozen=True)
class SideEffectResult:
    """Outcome of a side effect that must not fail the caller."""

    ok: bool
    skipped: bool = False
    error: str | None = None

    @classmethod
    def succeeded(cls) -> "SideEffectResult":
        return cls(ok=True)

    @classmethod
    def skipped_effect(cls, reason: str) -> "SideEffectResult":
        return cls(ok=True, skipped=True, error=reason)

    @classmethod
    def failed(cls, error: str) -> "SideEffectResult":
        return cls(ok=False, error=error)


@dataclass(frozen=True)
class MonitorResult:
    severity: Severity
    persisted: SideEffectResult
    alerted: SideEffectResult | None = None
    event_id: str | None = None
    provider_failures: tuple[ProviderFailure, ...] = ()


def provider_failure_breakdown(
    provider_failures: Mapping[str, int],
    provider_thresholds: Mapping[str, int],
    global_threshold: int,
) -> list[ProviderFailure]:
    """Failure count and effective threshold for every provider that failed."""
    return [
        ProviderFailure(
            provider_id,
            failed,
            provider_thresholds.get(provider_id) or global_threshold,
        )
        for provider_id, failed in sorted(provider_failures.items())
        if failed > 0
    ]


def classify_severity(
    report: RunReport,
    provider_thresholds: Mapping[str, int],
    global_threshold: int,
) -> Severity:
    """Classify a run.  Pure function of its inputs.

    Provider-level checks come first: any provider at or over its threshold
    is critical, any provider failure at all is a warning.  Without
    provider-level failures the run's totals are compared with the global
    threshold, and a queue that had work but processed nothing is a warning.
    """
    breakdown = provider_failure_breakdown(
        report.provider_failures, provider_thresholds, global_threshold
    )
    if any(item.failed_jobs >= item.threshold for item in breakdown):
        return Severity.CRITICAL
    if breakdown:
        return Severity.WARNING

    if report.failed_jobs >= global_threshold:
        return Severity.CRITICAL
    stuck = report.had_queued_jobs and report.processed_jobs == 0
    if report.failed_jobs > 0 or stuck:
        return Severity.WARNING
    return Severity.INFO


def build_alert_message(
    report: RunReport,
    severity: Severity,
    breakdown: list[ProviderFailure],
    global_threshold: int,
) -> str:
    """Multi-line, human-readable alert body."""
    header = f"[{severity.value.upper()}] Integration scheduler {EventSource(report.source).value} run"
    if report.operation:
        header += f" ({report.operation})"
    lines = [
        header,
        f"Processed: {report.processed_jobs} | Successful: {report.successful_jobs} "
        f"| Failed: {report.failed_jobs}",
        f"Failure threshold: {global_threshold}",
    ]
    if breakdown:
        lines.append(
            "Provider failures: "
            + ", ".join(f"{item.provider_id} {item.failed_jobs}/{item.threshold}" for item in breakdown)
        )
    if report.had_queued_jobs:
        lines.append(f"Queued jobs inspected: {report.inspected_queued_jobs or 0}")
    if report.duration_ms is not None:
        lines.append(f"Duration: {report.duration_ms} ms")
    if report.notes:
        lines.append(f"Notes: {report.notes}")
    if report.errors:
        lines.append("Errors:")
        lines.extend(f"- {error}" for error in report.errors[:MAX_ALERT_ERRORS])
        if len(report.errors) > MAX_ALERT_ERRORS:
            lines.append(f"... and {len(report.errors) - MAX_ALERT_ERRORS} more")
    return "\n".join(lines)


class SchedulerMonitor:
    """Records scheduler runs and raises alerts for degraded ones."""

    def __init__(
        self,
        alert_client: AlertWebhookClient | None = None,
        global_threshold: int | None = None,
    ):
        self._alert_client = alert_client
        self.global_threshold = global_threshold or settings.SCHEDULER_FAILURE_THRESHOLD

    def record(self, db: Session, report: RunReport) -> MonitorResult:
        """Classify, persist and (if needed) alert on a run.

        Never raises for telemetry or alert failures.
        """
        thresholds = self._resolve_thresholds(db, report.provider_failures)
        severity = classify_severity(report, thresholds, self.global_threshold)
        breakdown = provider_failure_breakdown(
            report.provider_failures, thresholds, self.global_threshold
        )

        persisted, event_id = self._persist(db, report, severity, breakdown)

        alerted = None
        if severity != Severity.INFO:
            alerted = self._alert(report, severity, breakdown)

        log = logger.info if severity == Severity.INFO else logger.warning
        log(
            "Scheduler %s run: severity=%s processed=%d successful=%d failed=%d",
            EventSource(report.source).value,
            severity.value,
            report.processed_jobs,
            report.successful_jobs,
            report.failed_jobs,
        )
        return MonitorResult(severity, persisted, alerted, event_id, tuple(breakdown))

    def _resolve_thresholds(self, db: Session, provider_failures: Mapping[str, int]) -> dict[str, int]:
        failing = [provider_id for provider_id, count in provider_failures.items() if count > 0]
        if not failing:
            return {}
        try:
            with db.begin_nested():
                return AlertPreferenceService.get_thresholds(db, failing)
        except Exception:
            logger.warning(
                "Failed to load alert thresholds, using global default", exc_info=True
            )
            return {}

    def _persist(
        self,
        db: Session,
        report: RunReport,
        severity: Severity,
        breakdown: list[ProviderFailure],
    ) -> tuple[SideEffectResult, str | None]:
        try:
            event = SchedulerEvent(
                source=EventSource(report.source).value,
                operation=report.operation,
                processed_jobs=report.processed_jobs,
                successful_jobs=report.successful_jobs,
                failed_jobs=report.failed_jobs,
                had_queued_jobs=report.had_queued_jobs,
                inspected_queued_jobs=report.inspected_queued_jobs,
                duration_ms=report.duration_ms,
                errors=list(report.errors[:MAX_EVENT_ERRORS]),
                notes=report.notes,
                failure_threshold=self.global_threshold,
                provider_failure_thresholds=[item.to_dict() for item in breakdown],
                severity=severity.value,
                created_at=utc_now(),
            )
            with db.begin_nested():
                db.add(event)
            db.commit()
            return SideEffectResult.succeeded(), event.id
        except Exception as e:
            db.rollback()
            logger.error("Failed to persist scheduler event", exc_info=True)
            return SideEffectResult.failed(str(e) or e.__class__.__name__), None

    def _alert(
        self, report: RunReport, severity: Severity, breakdown: list[ProviderFailure]
    ) -> SideEffectResult:
        if self._alert_client is None or not self._alert_client.is_configured:
            logger.debug("Alert webhook not configured, skipping %s alert", severity.value)
            return SideEffectResult.skipped_effect("Alert webhook not configured")

        message = build_alert_message(report, severity, breakdown, self.global_threshold)
        try:
            self._alert_client.send(
                severity.value, message, EventSource(report.source).value, utc_now()
            )
            return SideEffectResult.succeeded()
        except Exception as e:
            logger.warning("Failed to deliver scheduler alert", exc_info=True)
            return SideEffectResult.failed(str(e) or e.__class__.__name__)

    @staticmethod
    def list_events(
        db: Session,
        limit: int = 50,
        severity: Severity | None = None,
        source: EventSource | None = None,
    ) -> list[SchedulerEvent]:
        """Most recent scheduler events, newest first."""
        query = db.query(SchedulerEvent)
        if severity is not None:
            query = query.filter(SchedulerEvent.severity == Severity(severity).value)
        if source is not None:
            query = query.filter(SchedulerEvent.source == EventSource(source).value)
        return query.order_by(SchedulerEvent.created_at.desc()).limit(limit).all()
