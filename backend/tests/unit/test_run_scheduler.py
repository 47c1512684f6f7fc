"""Tests for the run_scheduler operator CLI."""

from datetime import timedelta
from unittest.mock import patch

import pytest

from models import JobStatus, SchedulerEvent, SyncJob, utc_now
from scripts.run_scheduler import build_parser, main
from tests.fixtures import make_integration, make_job
from tests.fixtures.mocks import (
    SAMPLE_METRICS,
    MockAdProviderClient,
    MockProviderRegistry,
    RecordingAlertClient,
)


def _run(db, argv):
    with patch("database.get_session_local", return_value=lambda: db):
        with pytest.raises(SystemExit) as exc_info:
            main(argv)
    return exc_info.value.code


class TestParser:
    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_schedule_defaults_to_dry_run(self):
        args = build_parser().parse_args(["schedule", "--tenant", "acme"])
        assert args.commit is False
        assert args.provider is None
        assert args.max_tenants == 50

    def test_repeatable_provider(self):
        args = build_parser().parse_args(
            ["schedule", "--tenant", "acme", "--provider", "google", "--provider", "tiktok"]
        )
        assert args.provider == ["google", "tiktok"]


class TestScheduleCommand:
    """Tests for the ``schedule`` subcommand."""

    def test_requires_tenant_or_all(self, db, capsys):
        assert _run(db, ["schedule"]) == 1
        assert "--tenant or --all-tenants" in capsys.readouterr().out

    def test_dry_run_prints_decisions_without_enqueueing(self, db, capsys):
        make_integration(db, provider_id="google")
        make_integration(db, provider_id="facebook", auto_sync_enabled=False)
        db.commit()

        assert _run(db, ["schedule", "--tenant", "acme"]) == 0

        out = capsys.readouterr().out
        assert "APPROVE google" in out
        assert "would enqueue" in out
        assert "SKIP    facebook   auto_sync_disabled" in out
        assert "Dry-run" in out
        assert db.query(SyncJob).count() == 0

    def test_commit_enqueues(self, db, capsys):
        make_integration(db, provider_id="google")
        db.commit()

        assert _run(db, ["schedule", "--tenant", "acme", "--commit"]) == 0

        job = db.query(SyncJob).one()
        assert job.job_type == "scheduled-sync"
        assert f"job {job.id}" in capsys.readouterr().out

    def test_force_with_timeframe(self, db):
        make_integration(db, provider_id="google", last_synced_at=utc_now())
        db.commit()

        _run(
            db,
            ["schedule", "--tenant", "acme", "--provider", "google", "--force",
             "--timeframe-days", "3", "--commit"],
        )

        job = db.query(SyncJob).one()
        assert job.job_type == "manual-sync"
        assert job.timeframe_days == 3

    def test_all_tenants(self, db, capsys):
        make_integration(db, tenant_id="acme")
        make_integration(db, tenant_id="globex")
        db.commit()

        assert _run(db, ["schedule", "--all-tenants", "--commit"]) == 0

        assert db.query(SyncJob).count() == 2
        out = capsys.readouterr().out
        assert "Tenant acme" in out
        assert "Tenant globex" in out
        assert "Approved: 2" in out


class TestWorkCommand:
    """Tests for the ``work`` subcommand."""

    def test_processes_jobs_and_records_event(self, db, capsys):
        make_integration(db)
        make_job(db)
        db.commit()
        registry = MockProviderRegistry(
            {"google": MockAdProviderClient("google", metrics=SAMPLE_METRICS)}
        )

        with patch("scripts.run_scheduler.get_provider_registry", return_value=registry):
            code = _run(db, ["work", "--max-jobs", "5"])

        assert code == 0
        assert db.query(SyncJob).one().status == JobStatus.SUCCESS.value
        assert db.query(SchedulerEvent).one().source == "worker"
        out = capsys.readouterr().out
        assert "Processed: 1" in out
        assert "Severity: info" in out

    def test_failed_jobs_exit_nonzero_and_alert(self, db):
        make_integration(db)
        make_job(db)
        db.commit()
        registry = MockProviderRegistry(
            {"google": MockAdProviderClient("google", should_fail=True)}
        )
        alert_client = RecordingAlertClient()

        with (
            patch("scripts.run_scheduler.get_provider_registry", return_value=registry),
            patch("scripts.run_scheduler.AlertWebhookClient", return_value=alert_client),
        ):
            code = _run(db, ["work"])

        assert code == 1
        assert [alert["severity"] for alert in alert_client.sent] == ["warning"]


class TestHousekeepingCommands:
    """Tests for ``cleanup`` and ``reset-stale``."""

    def test_cleanup(self, db, capsys):
        make_job(db, status=JobStatus.SUCCESS, processed_at=utc_now() - timedelta(days=30))
        db.commit()

        assert _run(db, ["cleanup", "--retention-days", "7"]) == 0

        assert db.query(SyncJob).count() == 0
        assert "Deleted 1 finished sync jobs" in capsys.readouterr().out

    def test_reset_stale(self, db, capsys):
        make_job(db, status=JobStatus.RUNNING, started_at=utc_now() - timedelta(hours=2))
        db.commit()

        assert _run(db, ["reset-stale", "--stale-minutes", "30"]) == 0

        assert db.query(SyncJob).one().status == JobStatus.QUEUED.value
        assert "Requeued 1 stale sync jobs" in capsys.readouterr().out
