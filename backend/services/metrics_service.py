"""Metrics service - stores normalized provider metrics."""

import logging

from sqlalchemy.orm import Session

from integrations.provider_protocol import NormalizedMetric
from models import AdMetric, IntegrationKey, key_criteria

logger = logging.getLogger(__name__)


class MetricsService:
    """Upserts :class:`AdMetric` rows keyed by integration, day and campaign."""

    @staticmethod
    def write_batch(db: Session, key: IntegrationKey, metrics: list[NormalizedMetric]) -> int:
        """Insert or overwrite one row per (day, campaign).

        Later rows in ``metrics`` win when the provider repeats a
        (day, campaign) pair.

        Returns:
            Number of distinct rows written
        """
        latest: dict[tuple, NormalizedMetric] = {}
        for metric in metrics:
            latest[(metric.metric_date, metric.campaign_id)] = metric
        if not latest:
            return 0

        dates = {metric_date for metric_date, _ in latest}
        existing = {
            (row.metric_date, row.campaign_id): row
            for row in db.query(AdMetric)
            .filter(
                *key_criteria(AdMetric, key),
                AdMetric.metric_date.in_(dates),
            )
            .all()
        }

        for row_key, metric in latest.items():
            row = existing.get(row_key)
            if row is None:
                row = AdMetric(
                    tenant_id=key.tenant.tenant_id,
                    provider_id=key.provider_id,
                    client_id=key.client_id,
                    metric_date=metric.metric_date,
                    campaign_id=metric.campaign_id,
                )
                db.add(row)
            row.campaign_name = metric.campaign_name
            row.impressions = metric.impressions
            row.clicks = metric.clicks
            row.spend = metric.spend
            row.conversions = metric.conversions
            row.revenue = metric.revenue

        db.flush()
        logger.debug("Wrote %d metric rows for %s", len(latest), key)
        return len(latest)
