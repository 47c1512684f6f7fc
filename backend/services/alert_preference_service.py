"""Alert preference service - per-provider failure thresholds."""

import logging

from sqlalchemy.orm import Session

from config import settings
from integrations.provider_registry import KNOWN_PROVIDER_IDS
from models import SchedulerAlertPreference
from schemas.scheduler import AlertPreferenceResponse

logger = logging.getLogger(__name__)


class AlertPreferenceService:
    """Reads and writes :class:`SchedulerAlertPreference` rows."""

    @staticmethod
    def get_thresholds(db: Session, provider_ids) -> dict[str, int]:
        """Configured overrides for the given providers.

        Providers without a row (or with a NULL threshold) are omitted so
        callers fall back to the global default.
        """
        provider_ids = list(provider_ids)
        if not provider_ids:
            return {}
        rows = (
            db.query(SchedulerAlertPreference)
            .filter(SchedulerAlertPreference.provider_id.in_(provider_ids))
            .all()
        )
        return {
            row.provider_id: row.failure_threshold
            for row in rows
            if row.failure_threshold is not None
        }

    @staticmethod
    def list_preferences(db: Session) -> list[AlertPreferenceResponse]:
        """Thresholds for every known provider, including defaults."""
        rows = {row.provider_id: row for row in db.query(SchedulerAlertPreference).all()}
        result = []
        for provider_id in KNOWN_PROVIDER_IDS:
            row = rows.get(provider_id)
            threshold = row.failure_threshold if row else None
            result.append(
                AlertPreferenceResponse(
                    provider_id=provider_id,
                    failure_threshold=threshold,
                    effective_threshold=threshold or settings.SCHEDULER_FAILURE_THRESHOLD,
                )
            )
        return result

    @staticmethod
    def set_threshold(
        db: Session, provider_id: str, failure_threshold: int | None
    ) -> SchedulerAlertPreference:
        """Set or clear a provider's failure threshold.

        Raises:
            ValueError: If provider_id is unknown or the threshold is below 1.
        """
        if provider_id not in KNOWN_PROVIDER_IDS:
            raise ValueError(f"Unknown provider: {provider_id}")
        if failure_threshold is not None and failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")

        row = (
            db.query(SchedulerAlertPreference)
            .filter(SchedulerAlertPreference.provider_id == provider_id)
            .first()
        )
        if row is None:
            row = SchedulerAlertPreference(provider_id=provider_id)
            db.add(row)
        row.failure_threshold = failure_threshold
        db.flush()
        logger.info("Alert threshold for %s set to %s", provider_id, failure_threshold)
        return row
