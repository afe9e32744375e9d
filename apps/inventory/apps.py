import logging

from django.apps import AppConfig

logger = logging.getLogger("apps.inventory")


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.inventory"
    label = "inventory"
    verbose_name = "Infrastructure Inventory"

    scheduler = None

    def ready(self):
        # Configure dispatcherd so that both the web process (publisher)
        # and the worker process use the same pg_notify settings and the
        # same sync schedule.
        from apps.inventory.dispatcher import setup_dispatcher

        setup_dispatcher()

        # The scheduler builds its sources at the start of every cycle, so
        # creating it here touches neither the database nor any source API.
        from apps.inventory.tasks import build_scheduler

        self.scheduler = build_scheduler()
        logger.debug(
            "Inventory scheduler ready (interval %d ms, autostart=%s)",
            self.scheduler.interval_ms,
            self._autostart_enabled(),
        )

    def _autostart_enabled(self) -> bool:
        from django.conf import settings

        return bool(getattr(settings, "SCHEDULER_AUTOSTART", False))

    def start_scheduler(self) -> bool:
        """Start the interval timer if SCHEDULER_AUTOSTART is set. Called from wsgi."""
        if not self._autostart_enabled():
            return False
        return self.scheduler.start()
