"""Service factories for route handlers.

Long-lived clients (provider registry, alert webhook) are built once in the
application lifespan and stored on ``app.state``; these factories wire them
into per-request services.  Tests replace them through
``app.dependency_overrides``.
"""

from fastapi import Depends, HTTPException, Request

from integrations.alert_webhook_client import AlertWebhookClient
from integrations.provider_registry import ProviderRegistry
from services.cron_service import CronService
from services.job_processor import JobProcessor
from services.scheduler_monitor import SchedulerMonitor
from services.sync_scheduler_service import SyncSchedulerService
from services.worker_dispatcher import WorkerDispatcher


def get_registry(request: Request) -> ProviderRegistry:
    registry = getattr(request.app.state, "provider_registry", None)
    if registry is None:
        raise HTTPException(status_code=500, detail="Provider registry is not initialized.")
    return registry


def get_alert_client(request: Request) -> AlertWebhookClient | None:
    return getattr(request.app.state, "alert_client", None)


def get_scheduler_monitor(
    alert_client: AlertWebhookClient | None = Depends(get_alert_client),
) -> SchedulerMonitor:
    return SchedulerMonitor(alert_client=alert_client)


def get_worker_dispatcher(
    registry: ProviderRegistry = Depends(get_registry),
) -> WorkerDispatcher:
    return WorkerDispatcher(JobProcessor(registry))


def get_sync_scheduler() -> SyncSchedulerService:
    return SyncSchedulerService()


def get_cron_service(
    scheduler: SyncSchedulerService = Depends(get_sync_scheduler),
    monitor: SchedulerMonitor = Depends(get_scheduler_monitor),
) -> CronService:
    return CronService(scheduler, monitor)
