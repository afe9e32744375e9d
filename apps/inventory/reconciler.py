"""Reconciler -- apply a discovered snapshot to the hosts/workloads tables.

This module bridges the ``inventory_sources`` package (which has no
Django dependency) with the inventory service's ORM models. Sources hand
back ``HostRecord`` / ``WorkloadRecord`` objects with ids already
assigned; the reconciler only decides insert-or-update by id.

A whole cycle runs inside one ``transaction.atomic()`` block: readers
see either none or all of a cycle's writes. Any database error aborts
the cycle as a ``PersistenceFailure`` and everything written so far in
that cycle is rolled back with it.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Iterable

from django.db import DatabaseError, connection, transaction
from django.utils import timezone

from inventory_sources import HostRecord, PersistenceFailure, Snapshot, WorkloadRecord

from apps.inventory.models import HealthStatus, Host, HostStatus, Workload, WorkloadStatus

logger = logging.getLogger("apps.inventory.reconciler")

# Arbitrary constant shared by every process writing the inventory tables.
ADVISORY_LOCK_KEY = 0x1F0E_4A11

# Keeps ``pk__in`` lookups under SQLite's bound-parameter limit.
LOOKUP_BATCH_SIZE = 500


@dataclass
class ReconcileStats:
    hosts_added: int = 0
    hosts_updated: int = 0
    workloads_added: int = 0
    workloads_updated: int = 0
    hosts_marked_stale: int = 0
    workloads_marked_stale: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


# ── Entry point ───────────────────────────────────────────────────────


def reconcile(
    snapshot: Snapshot,
    now: datetime | None = None,
    stale_after: timedelta | None = None,
) -> ReconcileStats:
    """
    Insert or update every host and workload in ``snapshot``.

    Args:
        snapshot: merged discovery output; records carry their final ids.
        now: timestamp written to ``created_at`` / ``updated_at``.
        stale_after: when positive, rows not refreshed within this window
            are marked ``unknown`` after the upserts.

    Returns:
        ReconcileStats with per-table added/updated counts.

    Raises:
        PersistenceFailure: if any statement fails; nothing is committed.
    """
    now = now or timezone.now()
    stats = ReconcileStats()

    with transaction.atomic():
        _lock_writers()
        stats.hosts_added, stats.hosts_updated = _upsert(
            Host, snapshot.hosts, _host_values, now
        )
        stats.workloads_added, stats.workloads_updated = _upsert(
            Workload, snapshot.workloads, _workload_values, now
        )
        if stale_after and stale_after > timedelta(0):
            stats.hosts_marked_stale, stats.workloads_marked_stale = _mark_stale(now - stale_after, now)

    logger.info(
        "Reconciled %d hosts (+%d ~%d) and %d workloads (+%d ~%d)",
        len(snapshot.hosts), stats.hosts_added, stats.hosts_updated,
        len(snapshot.workloads), stats.workloads_added, stats.workloads_updated,
    )
    return stats


# ── ORM helpers (private) ─────────────────────────────────────────────


@contextmanager
def _store_operation(operation: str):
    """Translate database errors raised inside the block into PersistenceFailure."""
    try:
        yield
    except DatabaseError as exc:
        logger.error("Store operation failed: %s: %s", operation, exc)
        raise PersistenceFailure(operation, str(exc)) from exc


def _lock_writers() -> None:
    """Serialize writers across processes; held until the transaction ends."""
    if connection.vendor != "postgresql":
        return
    with _store_operation("advisory lock"), connection.cursor() as cursor:
        cursor.execute("SELECT pg_advisory_xact_lock(%s)", [ADVISORY_LOCK_KEY])


def _existing_ids(model, ids: list) -> set:
    found: set = set()
    table = model._meta.db_table
    for start in range(0, len(ids), LOOKUP_BATCH_SIZE):
        batch = ids[start:start + LOOKUP_BATCH_SIZE]
        with _store_operation(f"select {table}"):
            found.update(model.objects.filter(pk__in=batch).values_list("pk", flat=True))
    return found


def _insert(model, **values):
    return model.objects.create(**values)


def _update(model, pk, **values) -> int:
    return model.objects.filter(pk=pk).update(**values)


def _upsert(model, records: Iterable, values_fn, now: datetime) -> tuple[int, int]:
    records = list(records)
    existing = _existing_ids(model, [r.id for r in records])
    table = model._meta.db_table
    added = updated = 0

    for record in records:
        values = values_fn(record)
        if record.id in existing:
            with _store_operation(f"update {table} {record.id}"):
                _update(model, record.id, updated_at=now, **values)
            updated += 1
        else:
            with _store_operation(f"insert {table} {record.id}"):
                _insert(model, id=record.id, created_at=now, updated_at=now, **values)
            # a repeated id later in the same snapshot is an update
            existing.add(record.id)
            added += 1

    return added, updated


def _host_values(record: HostRecord) -> dict:
    return {
        "name": record.name,
        "type": record.type,
        "cluster": record.cluster,
        "addresses": dict(record.addresses),
        "status": record.status,
        "last_seen_at": record.last_seen_at,
        "tags": list(record.tags),
        "metadata": record.metadata,
    }


def _workload_values(record: WorkloadRecord) -> dict:
    return {
        "name": record.name,
        "type": record.type,
        "host_id": record.host_id,
        "status": record.status,
        "health_status": record.health_status,
        "namespace": record.namespace,
        "spec": record.spec,
        "last_updated_at": record.last_updated_at,
        "metadata": record.metadata,
    }


def _mark_stale(cutoff: datetime, now: datetime) -> tuple[int, int]:
    """Mark rows not refreshed since ``cutoff`` as unknown."""
    with _store_operation("mark stale hosts"):
        hosts = (
            Host.objects
            .filter(last_seen_at__lt=cutoff)
            .exclude(status=HostStatus.UNKNOWN)
            .update(status=HostStatus.UNKNOWN, updated_at=now)
        )
    with _store_operation("mark stale workloads"):
        workloads = (
            Workload.objects
            .filter(updated_at__lt=cutoff)
            .exclude(status=WorkloadStatus.UNKNOWN, health_status=HealthStatus.UNKNOWN)
            .update(status=WorkloadStatus.UNKNOWN, health_status=HealthStatus.UNKNOWN, updated_at=now)
        )
    if hosts or workloads:
        logger.info("Marked %d stale hosts and %d stale workloads as unknown", hosts, workloads)
    return hosts, workloads
