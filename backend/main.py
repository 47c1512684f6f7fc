"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import cron, scheduler, worker
from config import settings
from integrations.alert_webhook_client import AlertWebhookClient
from integrations.provider_registry import get_provider_registry
from logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build long-lived clients once and close them on shutdown."""
    logger.info("Starting sync orchestrator (environment=%s)", settings.ENVIRONMENT)
    app.state.provider_registry = get_provider_registry()
    app.state.alert_client = AlertWebhookClient(
        settings.SCHEDULER_ALERT_WEBHOOK_URL,
        timeout=settings.SCHEDULER_ALERT_TIMEOUT_SECONDS,
    )
    if not settings.INTEGRATIONS_CRON_SECRET:
        logger.warning("INTEGRATIONS_CRON_SECRET is not set; trigger endpoints will return 500")
    if not app.state.alert_client.is_configured:
        logger.info("SCHEDULER_ALERT_WEBHOOK_URL is not set; scheduler alerts are disabled")
    try:
        yield
    finally:
        app.state.provider_registry.close()
        app.state.alert_client.close()


app = FastAPI(
    title="Ad Sync Orchestrator",
    description="Scheduling, job dispatch and telemetry for ad-platform integration syncs",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(worker.router)
app.include_router(cron.router)
app.include_router(scheduler.router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
