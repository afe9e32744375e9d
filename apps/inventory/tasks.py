"""Django glue between settings, the source registry, and the scheduler.

Also holds the dispatcherd task that drives the interval sync when the
service runs with ``manage.py run_dispatcher`` (see
``apps/inventory/dispatcher.py``).
"""
import logging
from datetime import timedelta

from dispatcherd.publish import task
from django.conf import settings
from django.db import close_old_connections

from inventory_sources import BaseSource, registry

from apps.inventory.dispatcher import INVENTORY_CHANNEL
from apps.inventory.scheduler import CycleReport, Scheduler

logger = logging.getLogger('apps.inventory.tasks')

_registry_initialized = False


def get_registry():
    """
    Return the source registry, applying Django settings filters on first call.

    Settings:
        INVENTORY_SOURCES_ENABLED:  list of source kinds to whitelist
        INVENTORY_SOURCES_DISABLED: list of source kinds to blacklist
    """
    global _registry_initialized
    if not _registry_initialized:
        registry.discover()
        registry.apply_filter(
            enabled=getattr(settings, 'INVENTORY_SOURCES_ENABLED', None),
            disabled=getattr(settings, 'INVENTORY_SOURCES_DISABLED', None),
        )
        _registry_initialized = True
    return registry


def configured_sources() -> list[dict]:
    """The INVENTORY_SOURCES setting with per-source defaults filled in."""
    configs = []
    for item in getattr(settings, 'INVENTORY_SOURCES', None) or []:
        item = dict(item)
        config = dict(item.get('config') or {})
        config.setdefault('max_workers', settings.SOURCE_MAX_WORKERS)
        item['config'] = config
        configs.append(item)
    return configs


def build_sources() -> list[BaseSource]:
    """
    Instantiate the enabled sources. Called at the start of every cycle.

    A source that cannot be built stays in the list as a
    ``MisconfiguredSource``; the cycle reports it at the configure stage
    and still runs the others.
    """
    return get_registry().build_sources(configured_sources(), strict=False)


def record_sync_run(report: CycleReport):
    """Persist a finished cycle as a SyncRun row."""
    from apps.inventory.models import SyncRun

    error = report.error
    run = SyncRun.objects.create(
        trigger=report.trigger,
        status=report.status,
        started_at=report.started_at,
        completed_at=report.completed_at,
        source_failures=[f.as_dict() for f in report.source_failures],
        error_message=error.message[:2000] if error else '',
        error_stage=error.stage if error else '',
        **report.stats.as_dict(),
    )
    logger.info('SyncRun %s recorded: %s', run.pk, run.status)
    return run


def build_scheduler() -> Scheduler:
    stale_seconds = int(getattr(settings, 'STALE_AFTER_SECONDS', 0) or 0)
    return Scheduler(
        build_sources,
        interval_ms=int(settings.SYNC_INTERVAL_MS),
        source_timeout=float(settings.SOURCE_TIMEOUT_SECONDS),
        stale_after=timedelta(seconds=stale_seconds) if stale_seconds > 0 else None,
        on_complete=record_sync_run,
    )


def get_scheduler() -> Scheduler:
    """The process-wide scheduler owned by the inventory app."""
    from django.apps import apps

    return apps.get_app_config('inventory').scheduler


@task(queue=INVENTORY_CHANNEL)
def run_scheduled_sync() -> dict:
    """
    One interval sync, run by the dispatcherd worker on its schedule.

    Goes through ``Scheduler.tick()``, so a cycle already running in this
    worker is skipped and failures are logged and recorded, never raised.
    Returns the scheduler status, including the last cycle.
    """
    scheduler = get_scheduler()
    close_old_connections()
    try:
        scheduler.tick()
    finally:
        close_old_connections()
    return scheduler.status()
