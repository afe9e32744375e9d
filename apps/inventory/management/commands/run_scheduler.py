"""
Management command to run the inventory scheduler in the foreground.

Usage:
    python manage.py run_scheduler
    python manage.py run_scheduler --interval-ms 30000
    python manage.py run_scheduler --once

Runs a cycle every SYNC_INTERVAL_MS until interrupted. With PostgreSQL,
prefer ``run_dispatcher``; without it, run this as a separate process next
to the web server instead of SCHEDULER_AUTOSTART:

    CMD ["python", "manage.py", "run_scheduler"]
"""

import logging

from django.core.management.base import BaseCommand, CommandError

from apps.inventory.tasks import get_scheduler

logger = logging.getLogger("apps.inventory.scheduler")


class Command(BaseCommand):
    help = "Run inventory reconciliation cycles on the configured interval."

    def add_arguments(self, parser):
        parser.add_argument(
            "--interval-ms",
            type=int,
            default=None,
            help="Override SYNC_INTERVAL_MS for this process.",
        )
        parser.add_argument(
            "--once",
            action="store_true",
            help="Run one cycle immediately before entering the interval loop.",
        )

    def handle(self, *args, **options):
        scheduler = get_scheduler()
        if options["interval_ms"] is not None:
            scheduler.interval_ms = options["interval_ms"]

        if not scheduler.timer_enabled and not options["once"]:
            raise CommandError(
                f"Automatic sync is disabled (interval {scheduler.interval_ms} ms). "
                "Set SYNC_INTERVAL_MS or pass --interval-ms."
            )

        if options["once"]:
            scheduler.tick()

        if not scheduler.timer_enabled:
            return

        self.stdout.write(self.style.SUCCESS(f"Starting inventory scheduler (every {scheduler.interval_ms} ms)..."))
        try:
            scheduler.run_forever()
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            scheduler.stop()
