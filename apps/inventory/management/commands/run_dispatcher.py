"""
Management command to start the dispatcherd background task service.

Usage:
    python manage.py run_dispatcher
    python manage.py run_dispatcher --max-workers 2

This starts the asyncio-based dispatcherd service that listens on the
``inventory_tasks`` pg_notify channel. Its scheduled producer submits the
interval sync (``run_scheduled_sync``) every SYNC_INTERVAL_MS and a
subprocess worker runs the cycle. Needs PostgreSQL.

Run it as a separate Deployment with the same image as the web server:

    CMD ["python", "manage.py", "run_dispatcher"]
"""

import logging

from dispatcherd import run_service
from dispatcherd.config import settings as dispatcher_settings
from django.core.management.base import BaseCommand

from apps.inventory.dispatcher import INVENTORY_CHANNEL, get_task_schedule, setup_dispatcher

logger = logging.getLogger("apps.inventory.dispatcher")


class Command(BaseCommand):
    help = "Start the dispatcherd worker that runs the scheduled inventory sync."

    def add_arguments(self, parser):
        parser.add_argument(
            "--max-workers",
            type=int,
            default=None,
            help="Override the maximum number of worker subprocesses (default: DISPATCHER_MAX_WORKERS).",
        )

    def handle(self, *args, **options):
        # Normally already configured by InventoryConfig.ready()
        setup_dispatcher()

        if options["max_workers"]:
            dispatcher_settings.service["pool_kwargs"]["max_workers"] = options["max_workers"]

        # Force-import the tasks module so @task decorators register
        import apps.inventory.tasks  # noqa: F401

        schedule = get_task_schedule()
        if schedule:
            for name, entry in schedule.items():
                self.stdout.write(f"Scheduled {name} every {entry['schedule']}s")
        else:
            self.stdout.write(self.style.WARNING(
                "Automatic sync is disabled (SYNC_INTERVAL_MS <= 0); only submitted tasks will run."
            ))

        self.stdout.write(self.style.SUCCESS(f"Starting dispatcherd worker for {INVENTORY_CHANNEL} channel..."))
        logger.info("Starting dispatcherd worker")
        run_service()
