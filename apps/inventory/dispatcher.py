"""
Dispatcherd configuration for the infra inventory service.

Builds the dispatcherd config from Django's DATABASES setting so there is
a single source of truth for the PostgreSQL connection. The pg_notify
channel ``inventory_tasks`` carries all task dispatch.

The interval sync is a dispatcherd schedule: the ``ScheduledProducer``
submits ``apps.inventory.tasks.run_scheduled_sync`` every
SYNC_INTERVAL_MS, and a worker runs it through the app's ``Scheduler``.
Start the worker with ``manage.py run_dispatcher``.

Usage:
    Called once from InventoryConfig.ready() so that both the web process
    (publisher) and the dispatcher worker process share the same config.
"""

import logging

from dispatcherd.config import is_setup, setup
from django.conf import settings

logger = logging.getLogger("apps.inventory.dispatcher")

INVENTORY_CHANNEL = "inventory_tasks"
SYNC_TASK = "apps.inventory.tasks.run_scheduled_sync"


def build_conninfo() -> str:
    """Build a libpq connection string from Django DATABASES['default']."""
    db = dict(settings.DATABASES.get("default", {}))
    if "postgresql" not in db.get("ENGINE", ""):
        # SQLite deployments have no broker; keep the defaults so the
        # config still builds.
        db = {}

    parts = [
        "dbname={}".format(db.get("NAME") or "infra_inventory"),
        "user={}".format(db.get("USER") or "inventory"),
    ]
    if db.get("PASSWORD"):
        parts.append("password={}".format(db["PASSWORD"]))
    parts.append("host={}".format(db.get("HOST") or "127.0.0.1"))
    parts.append("port={}".format(db.get("PORT") or 5432))
    parts.append("application_name=infra_inventory_dispatcher")
    return " ".join(parts)


def get_task_schedule() -> dict:
    """Periodic tasks for the ScheduledProducer. Empty when the interval is disabled."""
    interval_ms = int(settings.SYNC_INTERVAL_MS)
    if interval_ms <= 0:
        return {}
    return {SYNC_TASK: {"schedule": interval_ms / 1000}}


def get_dispatcher_config() -> dict:
    """Return the full dispatcherd config dictionary."""
    producers: dict = {"ControlProducer": {}}
    schedule = get_task_schedule()
    if schedule:
        producers["ScheduledProducer"] = {"task_schedule": schedule}

    return {
        "version": 2,
        "brokers": {
            "pg_notify": {
                "config": {"conninfo": build_conninfo()},
                "sync_connection_factory": "dispatcherd.brokers.pg_notify.connection_saver",
                "channels": [INVENTORY_CHANNEL],
                "default_publish_channel": INVENTORY_CHANNEL,
                "max_connection_idle_seconds": 30,
            },
        },
        "service": {
            "pool_kwargs": {
                "min_workers": int(settings.DISPATCHER_MIN_WORKERS),
                "max_workers": int(settings.DISPATCHER_MAX_WORKERS),
            },
        },
        "producers": producers,
        "publish": {
            "default_broker": "pg_notify",
        },
    }


def setup_dispatcher() -> None:
    """Configure dispatcherd from Django settings. Safe to call multiple times."""
    if is_setup():
        return

    setup(get_dispatcher_config())
    logger.info("dispatcherd configured: channel=%s", INVENTORY_CHANNEL)
