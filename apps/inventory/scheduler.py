"""Scheduler -- runs reconciliation cycles on an interval and on demand.

The scheduler is an ordinary object: the inventory app owns one instance
(see ``InventoryConfig.scheduler``) and tests construct their own.

State machine::

    idle --trigger--> running --cycle ends--> idle
    any  --stop()--> stopped

Busy policy: reject. At most one cycle runs at a time. An on-demand
``trigger()`` arriving while a cycle is running raises ``SchedulerBusy``;
an interval tick that finds a cycle running is skipped.

A cycle:
    1. calls ``discover()`` on every source concurrently, each bounded by
       ``source_timeout`` seconds
    2. concatenates the snapshots (no de-duplication)
    3. hands the merged snapshot to ``reconcile_fn``
    4. passes a ``CycleReport`` to ``on_complete``, failed cycles included

A source that raises, times out or could not be built degrades the cycle;
only a ``PersistenceFailure`` from the reconciler aborts it. A source whose
``discover()`` from an earlier cycle is still running is skipped and
reported as a timeout until that call returns, so a hung backend holds at
most one thread.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Sequence, Union

from django.db import close_old_connections
from django.utils import timezone

from inventory_sources import (
    BaseSource,
    PersistenceFailure,
    SchedulerBusy,
    Snapshot,
    SourceConfigurationError,
    SourceUnavailable,
)

from apps.core import metrics
from apps.inventory.reconciler import ReconcileStats, reconcile

logger = logging.getLogger("apps.inventory.scheduler")

SourcesProvider = Union[Sequence[BaseSource], Callable[[], Sequence[BaseSource]]]


class SchedulerState:
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class Trigger:
    INTERVAL = "interval"
    MANUAL = "manual"


@dataclass
class SourceFailure:
    """A source that failed in whole (configure, discover, timeout) or in part."""

    source: str
    stage: str
    error: str

    def as_dict(self) -> dict[str, str]:
        return {"source": self.source, "stage": self.stage, "error": self.error}


@dataclass
class CycleReport:
    trigger: str
    started_at: datetime
    completed_at: datetime | None = None
    hosts_count: int = 0
    workloads_count: int = 0
    stats: ReconcileStats = field(default_factory=ReconcileStats)
    source_failures: list[SourceFailure] = field(default_factory=list)
    error: PersistenceFailure | None = None

    @property
    def status(self) -> str:
        if self.error is not None:
            return "failed"
        if self.source_failures:
            return "partial"
        return "completed"

    def as_dict(self) -> dict:
        return {
            "hosts_count": self.hosts_count,
            "workloads_count": self.workloads_count,
            "timestamp": (self.completed_at or self.started_at).isoformat(),
            **self.stats.as_dict(),
            "source_failures": [f.as_dict() for f in self.source_failures],
        }


class Scheduler:
    """Serializes reconciliation cycles and drives the interval timer."""

    def __init__(
        self,
        sources: SourcesProvider,
        *,
        interval_ms: int = 0,
        source_timeout: float = 30,
        stale_after: timedelta | None = None,
        reconcile_fn: Callable[..., ReconcileStats] = reconcile,
        on_complete: Callable[[CycleReport], None] | None = None,
    ):
        self._sources = sources
        self.interval_ms = interval_ms
        self.source_timeout = source_timeout
        self.stale_after = stale_after
        self.reconcile_fn = reconcile_fn
        self.on_complete = on_complete

        self._cycle_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._stopped = False
        self._in_flight: dict[str, Future] = {}
        self.last_report: CycleReport | None = None

    # ── Lifecycle ─────────────────────────────────────────────────────

    @property
    def timer_enabled(self) -> bool:
        return self.interval_ms > 0

    @property
    def timer_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """
        Start the interval timer in a daemon thread.

        Returns False (and starts nothing) when the interval is zero or
        negative, or the timer is already running.
        """
        if not self.timer_enabled:
            logger.info("Automatic sync disabled (interval %d ms)", self.interval_ms)
            return False
        if self.timer_running:
            return False

        self._stop_event.clear()
        self._stopped = False
        self._thread = threading.Thread(target=self._run_timer, name="inventory-scheduler", daemon=True)
        self._thread.start()
        logger.info("Automatic sync every %d ms", self.interval_ms)
        return True

    def stop(self, timeout: float | None = None) -> None:
        """Stop the timer and wait for the timer thread to exit."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        self._stopped = True
        logger.info("Scheduler stopped")

    def run_forever(self) -> None:
        """Run the interval loop in the calling thread until ``stop()``."""
        if not self.timer_enabled:
            logger.info("Automatic sync disabled (interval %d ms)", self.interval_ms)
            return
        self._stop_event.clear()
        self._run_timer()

    def _run_timer(self) -> None:
        while not self._stop_event.wait(self.interval_ms / 1000):
            close_old_connections()
            try:
                self.tick()
            finally:
                close_old_connections()

    def tick(self) -> CycleReport | None:
        """One interval firing. Never raises; failures are only logged."""
        try:
            return self.trigger(Trigger.INTERVAL)
        except SchedulerBusy:
            logger.warning("Skipping scheduled sync: previous cycle still running")
        except PersistenceFailure:
            # already logged and reported by the cycle
            pass
        except Exception:
            logger.exception("Scheduled sync failed")
        return None

    # ── Cycles ────────────────────────────────────────────────────────

    @property
    def is_running(self) -> bool:
        return self._cycle_lock.locked()

    @property
    def state(self) -> str:
        if self.is_running:
            return SchedulerState.RUNNING
        if self._stopped:
            return SchedulerState.STOPPED
        return SchedulerState.IDLE

    def trigger(self, trigger: str = Trigger.MANUAL) -> CycleReport:
        """
        Run one cycle now.

        Raises:
            SchedulerBusy: a cycle is already running.
            PersistenceFailure: the reconciler aborted the cycle.
        """
        if not self._cycle_lock.acquire(blocking=False):
            raise SchedulerBusy("A sync cycle is already running")
        try:
            report = self._run_cycle(trigger)
        finally:
            self._cycle_lock.release()

        if report.error is not None:
            raise report.error
        return report

    def _run_cycle(self, trigger: str) -> CycleReport:
        report = CycleReport(trigger=trigger, started_at=timezone.now())
        logger.info("Starting %s sync cycle", trigger)

        snapshot = self._discover_all(report)
        report.hosts_count = len(snapshot.hosts)
        report.workloads_count = len(snapshot.workloads)

        try:
            report.stats = self.reconcile_fn(snapshot, stale_after=self.stale_after)
        except PersistenceFailure as exc:
            report.error = exc
            logger.error("Sync cycle aborted at %s stage (%s): %s", exc.stage, exc.operation, exc.message)

        report.completed_at = timezone.now()
        self.last_report = report
        metrics.record_cycle(report)
        logger.info(
            "Sync cycle %s: %d hosts, %d workloads, %d source failures",
            report.status, report.hosts_count, report.workloads_count, len(report.source_failures),
        )
        self._notify(report)
        return report

    def _current_sources(self) -> list[BaseSource]:
        sources = self._sources() if callable(self._sources) else self._sources
        return list(sources)

    def _discover_all(self, report: CycleReport) -> Snapshot:
        try:
            sources = self._current_sources()
        except Exception as exc:
            logger.exception("Cannot build the configured sources")
            report.source_failures.append(SourceFailure("sources", "configure", str(exc)))
            return Snapshot()
        if not sources:
            logger.warning("No inventory sources configured")
            return Snapshot()

        ready = []
        for source in sources:
            previous = self._in_flight.get(source.name)
            if previous is not None and not previous.done():
                logger.warning("Skipping source %s: previous discovery still running", source.name)
                self._source_failed(report, source.name, "timeout", "previous discovery still running")
                continue
            self._in_flight.pop(source.name, None)
            ready.append(source)
        if not ready:
            return Snapshot()

        pool = ThreadPoolExecutor(max_workers=len(ready), thread_name_prefix="inventory-source")
        try:
            futures = {pool.submit(_timed_discover, source): source for source in ready}
            _, not_done = wait(futures, timeout=self.source_timeout)
        finally:
            # a hung source keeps its thread; the cycle does not wait for it
            pool.shutdown(wait=False, cancel_futures=True)

        snapshots = []
        for future, source in futures.items():
            if future in not_done:
                # remembered so the next cycle skips the source until it returns
                self._in_flight[source.name] = future
                logger.warning("Source %s timed out after %ss", source.name, self.source_timeout)
                self._source_failed(report, source.name, "timeout", f"no response within {self.source_timeout}s")
                continue
            try:
                snapshot = future.result()
            except SourceConfigurationError as exc:
                logger.error("Source %s is misconfigured: %s", source.name, exc)
                self._source_failed(report, source.name, "configure", str(exc))
                continue
            except SourceUnavailable as exc:
                logger.warning("Source %s unavailable: %s", source.name, exc.message)
                self._source_failed(report, source.name, "discover", exc.message)
                continue
            except Exception as exc:
                logger.exception("Source %s failed", source.name)
                self._source_failed(report, source.name, "discover", str(exc))
                continue
            metrics.SOURCE_UP.labels(source=source.name).set(1)
            for failure in snapshot.failures:
                report.source_failures.append(
                    SourceFailure(source.name, "partial", f"{failure.resource}: {failure.error}")
                )
            snapshots.append(snapshot)

        return Snapshot.merge(snapshots)

    @staticmethod
    def _source_failed(report: CycleReport, name: str, stage: str, error: str) -> None:
        metrics.SOURCE_UP.labels(source=name).set(0)
        report.source_failures.append(SourceFailure(name, stage, error))

    def _notify(self, report: CycleReport) -> None:
        if self.on_complete is None:
            return
        try:
            self.on_complete(report)
        except Exception:
            logger.exception("Failed to record sync cycle")

    # ── Introspection ─────────────────────────────────────────────────

    def status(self) -> dict:
        last = self.last_report
        return {
            "state": self.state,
            "interval_ms": self.interval_ms,
            "timer_running": self.timer_running,
            "sources_in_flight": sorted(n for n, f in list(self._in_flight.items()) if not f.done()),
            "last_cycle": None if last is None else {
                "status": last.status,
                "trigger": last.trigger,
                "completed_at": last.completed_at.isoformat() if last.completed_at else None,
            },
        }


def _timed_discover(source: BaseSource) -> Snapshot:
    started = time.monotonic()
    try:
        return source.discover()
    finally:
        metrics.SOURCE_DISCOVERY_SECONDS.labels(source=source.name).observe(time.monotonic() - started)
