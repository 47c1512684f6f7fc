"""API route handlers."""
from . import cron, scheduler, worker

__all__ = ["cron", "scheduler", "worker"]
