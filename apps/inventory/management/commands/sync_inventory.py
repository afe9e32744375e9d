"""
Management command: run one reconciliation cycle in the foreground.

Usage:
    python manage.py sync_inventory
    python manage.py sync_inventory --json

Exits non-zero when the cycle is rejected (another cycle is running in
this process) or the store aborts it.
"""

import json

from django.core.management.base import BaseCommand, CommandError

from inventory_sources import InventoryError, PersistenceFailure, SchedulerBusy

from apps.inventory.scheduler import Trigger
from apps.inventory.tasks import get_scheduler


class Command(BaseCommand):
    help = "Discover every configured source and reconcile the inventory once."

    def add_arguments(self, parser):
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print the cycle report as JSON.",
        )

    def handle(self, *args, **options):
        try:
            report = get_scheduler().trigger(Trigger.MANUAL)
        except SchedulerBusy as exc:
            raise CommandError(str(exc))
        except PersistenceFailure as exc:
            raise CommandError(f"Sync aborted at {exc.stage} stage ({exc.operation}): {exc.message}")
        except InventoryError as exc:
            raise CommandError(f"Sync aborted at {exc.stage} stage: {exc}")

        if options["json"]:
            self.stdout.write(json.dumps(report.as_dict(), indent=2))
            return

        stats = report.stats
        self.stdout.write(
            f"Discovered {report.hosts_count} hosts and {report.workloads_count} workloads"
        )
        self.stdout.write(
            f"  hosts: {stats.hosts_added} added, {stats.hosts_updated} updated, "
            f"{stats.hosts_marked_stale} marked stale"
        )
        self.stdout.write(
            f"  workloads: {stats.workloads_added} added, {stats.workloads_updated} updated, "
            f"{stats.workloads_marked_stale} marked stale"
        )
        for failure in report.source_failures:
            self.stdout.write(self.style.WARNING(f"  {failure.source} [{failure.stage}]: {failure.error}"))

        if report.status == "completed":
            self.stdout.write(self.style.SUCCESS("Sync completed"))
        else:
            self.stdout.write(self.style.WARNING(f"Sync {report.status}"))
