#!/usr/bin/env python
"""Operator CLI for the integration sync scheduler.

Runs the same services as the HTTP trigger endpoints, against the database
in DATABASE_URL.  Scheduling is a dry run by default (decisions are printed,
nothing is enqueued); pass --commit to enqueue jobs.

Usage:
    python -m scripts.run_scheduler schedule --tenant acme
    python -m scripts.run_scheduler schedule --tenant acme --provider google --force --commit
    python -m scripts.run_scheduler schedule --all-tenants --commit
    python -m scripts.run_scheduler work --max-jobs 5
    python -m scripts.run_scheduler cleanup --retention-days 14
    python -m scripts.run_scheduler reset-stale --stale-minutes 45
"""

import argparse
import sys

from integrations.alert_webhook_client import AlertWebhookClient
from integrations.provider_registry import get_provider_registry
from logging_config import setup_logging
from models import TenantRef
from services.job_processor import JobProcessor
from services.job_queue import JobQueue
from services.scheduler_monitor import SchedulerMonitor
from services.sync_scheduler_service import SyncSchedulerService, TenantScheduleResult
from services.worker_dispatcher import WorkerDispatcher


def print_section(title: str) -> None:
    """Print a section header."""
    print(f"\n=== {title} ===")


def print_schedule_results(results: list[TenantScheduleResult], committed: bool) -> None:
    """Print one line per evaluated integration."""
    for result in results:
        print_section(f"Tenant {result.tenant}")
        for outcome in result.scheduled:
            decision = outcome.decision
            job = f"job {outcome.job_id}" if outcome.job_id is not None else "would enqueue"
            print(
                f"  APPROVE {outcome.key.provider_id:<10} {decision.reason.value:<20} "
                f"{decision.job_type.value} {decision.timeframe_days}d ({job})"
            )
        for outcome in result.skipped:
            print(f"  SKIP    {outcome.key.provider_id:<10} {outcome.decision.reason.value}")
        for error in result.errors:
            print(f"  ERROR   {error}")

    approved = sum(len(r.scheduled) for r in results)
    print_section("Summary")
    print(f"  Tenants: {len(results)}")
    print(f"  Approved: {approved}")
    print(f"  Skipped: {sum(len(r.skipped) for r in results)}")
    print(f"  Errors: {sum(len(r.errors) for r in results)}")
    if not committed:
        print("  (Dry-run, no jobs enqueued. Use --commit to enqueue.)")


def run_schedule(args: argparse.Namespace) -> int:
    from database import get_session_local

    if not args.all_tenants and not args.tenant:
        print("Error: pass --tenant or --all-tenants")
        return 1

    SessionLocal = get_session_local()
    db = SessionLocal()
    scheduler = SyncSchedulerService()
    dry_run = not args.commit
    try:
        if args.all_tenants:
            results = scheduler.schedule_all_tenants(
                db,
                max_tenants=args.max_tenants,
                provider_ids=args.provider or None,
                force=args.force,
                timeframe_days=args.timeframe_days,
                dry_run=dry_run,
            )
        else:
            results = [
                scheduler.schedule_tenant(
                    db,
                    TenantRef(args.tenant),
                    provider_ids=args.provider or None,
                    force=args.force,
                    timeframe_days=args.timeframe_days,
                    dry_run=dry_run,
                )
            ]
        if dry_run:
            db.rollback()
        else:
            db.commit()
    finally:
        db.close()

    print_schedule_results(results, committed=not dry_run)
    return 0


def run_work(args: argparse.Namespace) -> int:
    from config import settings
    from database import get_session_local

    SessionLocal = get_session_local()
    db = SessionLocal()
    registry = get_provider_registry()
    alert_client = AlertWebhookClient(
        settings.SCHEDULER_ALERT_WEBHOOK_URL,
        timeout=settings.SCHEDULER_ALERT_TIMEOUT_SECONDS,
    )
    try:
        dispatcher = WorkerDispatcher(JobProcessor(registry))
        summary = dispatcher.run(db, max_jobs=args.max_jobs, max_tenants=args.max_tenants)
        result = SchedulerMonitor(alert_client=alert_client).record(db, summary.to_report())
    finally:
        db.close()
        registry.close()
        alert_client.close()

    print_section("Worker Run")
    print(f"  Processed: {summary.processed_jobs}")
    print(f"  Successful: {summary.successful_jobs}")
    print(f"  Failed: {summary.failed_jobs}")
    print(f"  Inspected queued: {summary.inspected_queued_jobs}")
    print(f"  Duration: {summary.duration_ms} ms")
    print(f"  Severity: {result.severity.value}")
    if summary.notes:
        print(f"  Notes: {summary.notes}")
    for error in summary.errors:
        print(f"  ERROR {error}")
    return 1 if summary.failed_jobs else 0


def run_cleanup(args: argparse.Namespace) -> int:
    from database import get_session_local

    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        deleted = JobQueue.cleanup_old_jobs(
            db, retention_days=args.retention_days, limit=args.limit
        )
        db.commit()
    finally:
        db.close()
    print(f"Deleted {deleted} finished sync jobs")
    return 0


def run_reset_stale(args: argparse.Namespace) -> int:
    from database import get_session_local

    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        reset = JobQueue.reset_stale_jobs(
            db, stale_minutes=args.stale_minutes, limit=args.limit
        )
        db.commit()
    finally:
        db.close()
    print(f"Requeued {reset} stale sync jobs")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Schedule, process and clean up ad integration sync jobs.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    schedule = subparsers.add_parser("schedule", help="Evaluate the scheduling policy")
    schedule.add_argument("--tenant", help="Tenant to schedule")
    schedule.add_argument(
        "--all-tenants", action="store_true", help="Schedule every tenant with integrations"
    )
    schedule.add_argument(
        "--provider",
        action="append",
        help="Limit to a provider id (repeatable): google, facebook, linkedin, tiktok",
    )
    schedule.add_argument("--force", action="store_true", help="Bypass cadence and backpressure")
    schedule.add_argument("--timeframe-days", type=int, help="Days of history to sync")
    schedule.add_argument("--max-tenants", type=int, default=50)
    schedule.add_argument(
        "--commit", action="store_true", help="Actually enqueue jobs (default is dry-run)"
    )
    schedule.set_defaults(handler=run_schedule)

    work = subparsers.add_parser("work", help="Process queued jobs once")
    work.add_argument("--max-jobs", type=int)
    work.add_argument("--max-tenants", type=int)
    work.set_defaults(handler=run_work)

    cleanup = subparsers.add_parser("cleanup", help="Delete old finished jobs")
    cleanup.add_argument("--retention-days", type=int)
    cleanup.add_argument("--limit", type=int, default=50)
    cleanup.set_defaults(handler=run_cleanup)

    reset = subparsers.add_parser("reset-stale", help="Requeue jobs stuck in running")
    reset.add_argument("--stale-minutes", type=int)
    reset.add_argument("--limit", type=int, default=10)
    reset.set_defaults(handler=run_reset_stale)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point: parse args and run the selected command."""
    args = build_parser().parse_args(argv)
    setup_logging()
    sys.exit(args.handler(args))


if __name__ == "__main__":
    main()
