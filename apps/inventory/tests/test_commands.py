import json
from io import StringIO
from unittest import mock

import pytest
from django.core.management import CommandError, call_command
from django.test import TestCase, override_settings

from inventory_sources import PersistenceFailure, SchedulerBusy, Snapshot, SourceConfigurationError

from apps.inventory.models import Host, SyncRun
from apps.inventory.reconciler import ReconcileStats
from apps.inventory.scheduler import Scheduler
from apps.inventory.tasks import record_sync_run

from .fakes import FakeSource, UnavailableSource, host, workload

STATIC_SOURCE = {
    "kind": "static",
    "name": "files",
    "config": {"hosts": [{"name": "nas", "type": "docker-host"}]},
}


def _patch_scheduler(command, scheduler):
    return mock.patch(f"apps.inventory.management.commands.{command}.get_scheduler", return_value=scheduler)


class TestSyncInventoryCommand(TestCase):
    def test_sync_prints_stats(self):
        snapshot = Snapshot(hosts=[host("k8s-a")], workloads=[workload("web"), workload("db")])
        scheduler = Scheduler([FakeSource("k8s", snapshot), UnavailableSource("pve")], on_complete=record_sync_run)
        out = StringIO()

        with _patch_scheduler("sync_inventory", scheduler):
            call_command("sync_inventory", stdout=out)

        output = out.getvalue()
        self.assertIn("Discovered 1 hosts and 2 workloads", output)
        self.assertIn("hosts: 1 added, 0 updated", output)
        self.assertIn("workloads: 2 added, 0 updated", output)
        self.assertIn("pve [discover]: connection refused", output)
        self.assertIn("Sync partial", output)
        self.assertEqual(Host.objects.count(), 1)
        self.assertEqual(SyncRun.objects.get().status, "partial")

    def test_sync_json_output(self):
        scheduler = Scheduler([FakeSource("k8s", Snapshot(hosts=[host("k8s-a")]))])
        out = StringIO()

        with _patch_scheduler("sync_inventory", scheduler):
            call_command("sync_inventory", "--json", stdout=out)

        data = json.loads(out.getvalue())
        self.assertEqual(data["hosts_count"], 1)
        self.assertEqual(data["hosts_added"], 1)

    def test_persistence_failure_is_a_command_error(self):
        scheduler = mock.Mock(trigger=mock.Mock(side_effect=PersistenceFailure("insert hosts 1234", "disk full")))

        with _patch_scheduler("sync_inventory", scheduler):
            with self.assertRaisesMessage(CommandError, "Sync aborted at store stage (insert hosts 1234): disk full"):
                call_command("sync_inventory", stdout=StringIO())

    def test_busy_is_a_command_error(self):
        scheduler = mock.Mock(trigger=mock.Mock(side_effect=SchedulerBusy("A sync cycle is already running")))

        with _patch_scheduler("sync_inventory", scheduler):
            with self.assertRaisesMessage(CommandError, "already running"):
                call_command("sync_inventory", stdout=StringIO())

    def test_configuration_error_is_a_command_error(self):
        scheduler = mock.Mock(trigger=mock.Mock(side_effect=SourceConfigurationError("bad INVENTORY_SOURCES")))

        with _patch_scheduler("sync_inventory", scheduler):
            with self.assertRaisesMessage(CommandError, "Sync aborted at configure stage: bad INVENTORY_SOURCES"):
                call_command("sync_inventory", stdout=StringIO())


class TestListSourcesCommand(TestCase):
    @override_settings(INVENTORY_SOURCES=[STATIC_SOURCE])
    def test_text_listing(self):
        out = StringIO()

        call_command("list_sources", stdout=out)

        output = out.getvalue()
        self.assertIn("Registered Source Kinds", output)
        self.assertIn("kubernetes", output)
        self.assertIn("proxmox", output)
        self.assertIn("files", output)
        self.assertIn("enabled", output)

    @override_settings(INVENTORY_SOURCES=[])
    def test_no_configured_sources(self):
        out = StringIO()

        call_command("list_sources", stdout=out)

        self.assertIn("No sources configured", out.getvalue())

    @override_settings(INVENTORY_SOURCES=[STATIC_SOURCE, {"kind": "proxmox", "name": "pve", "enabled": False}])
    def test_json_listing(self):
        out = StringIO()

        call_command("list_sources", "--format", "json", stdout=out)

        data = json.loads(out.getvalue())
        self.assertIn("static", [k["kind"] for k in data["registered"]])
        self.assertEqual(data["configured"], [
            {"name": "files", "kind": "static", "enabled": True},
            {"name": "pve", "kind": "proxmox", "enabled": False},
        ])

    @override_settings(INVENTORY_SOURCES=[STATIC_SOURCE, {"kind": "mainframe", "name": "zos"}])
    def test_connectivity_check(self):
        out = StringIO()

        call_command("list_sources", "--test", stdout=out)

        output = out.getvalue()
        self.assertIn("Testing Source Connections", output)
        self.assertIn("✓ 1 hosts, 0 workloads declared", output)
        self.assertIn("✗", output)
        self.assertIn("mainframe", output)


# ── run_scheduler (no database: reconcile is faked) ───────────────────


def _fake_scheduler(interval_ms):
    return Scheduler(
        [FakeSource()],
        interval_ms=interval_ms,
        reconcile_fn=lambda snapshot, stale_after=None: ReconcileStats(),
    )


def test_run_scheduler_refuses_disabled_interval():
    with _patch_scheduler("run_scheduler", _fake_scheduler(0)):
        with pytest.raises(CommandError, match="disabled"):
            call_command("run_scheduler", stdout=StringIO())


def test_run_scheduler_once_with_disabled_interval():
    scheduler = _fake_scheduler(0)

    with _patch_scheduler("run_scheduler", scheduler):
        call_command("run_scheduler", "--once", stdout=StringIO())

    assert scheduler.last_report is not None
    assert scheduler.last_report.trigger == "interval"


def test_run_scheduler_runs_until_interrupted():
    scheduler = _fake_scheduler(60000)

    with _patch_scheduler("run_scheduler", scheduler), \
            mock.patch.object(scheduler, "run_forever", side_effect=KeyboardInterrupt):
        call_command("run_scheduler", "--interval-ms", "1000", stdout=StringIO())

    assert scheduler.interval_ms == 1000
    assert scheduler.state == "stopped"


# ── run_dispatcher (service is faked) ─────────────────────────────────


def _patch_dispatcher_service():
    module = "apps.inventory.management.commands.run_dispatcher"
    return (
        mock.patch(f"{module}.run_service"),
        mock.patch(f"{module}.dispatcher_settings", service={"pool_kwargs": {"min_workers": 1, "max_workers": 1}}),
    )


@override_settings(SYNC_INTERVAL_MS=30000)
def test_run_dispatcher_schedules_the_interval_sync():
    patch_service, patch_settings = _patch_dispatcher_service()
    out = StringIO()

    with patch_service as run_service, patch_settings as dispatcher_settings:
        call_command("run_dispatcher", "--max-workers", "3", stdout=out)

    run_service.assert_called_once_with()
    assert dispatcher_settings.service["pool_kwargs"]["max_workers"] == 3
    output = out.getvalue()
    assert "Scheduled apps.inventory.tasks.run_scheduled_sync every 30.0s" in output
    assert "Starting dispatcherd worker for inventory_tasks channel" in output


@override_settings(SYNC_INTERVAL_MS=0)
def test_run_dispatcher_warns_when_interval_is_disabled():
    patch_service, patch_settings = _patch_dispatcher_service()
    out = StringIO()

    with patch_service as run_service, patch_settings:
        call_command("run_dispatcher", stdout=out)

    run_service.assert_called_once_with()
    assert "Automatic sync is disabled" in out.getvalue()
