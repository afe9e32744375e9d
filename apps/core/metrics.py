"""
Prometheus metrics for the inventory service.

All metrics live on one ``CollectorRegistry`` so ``GET /metrics/`` exposes
exactly what this service defines and tests can read values back with
``REGISTRY.get_sample_value()``.
"""
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

REGISTRY = CollectorRegistry()

# Sources

SOURCE_UP = Gauge(
    "inventory_source_up",
    "1 if the source's last discovery returned a snapshot, 0 if it failed",
    ["source"],
    registry=REGISTRY,
)

SOURCE_DISCOVERY_SECONDS = Histogram(
    "inventory_source_discovery_seconds",
    "Duration of one source discover() call in seconds",
    ["source"],
    buckets=(0.05, 0.1, 0.5, 1, 2, 5, 10, 30, 60),
    registry=REGISTRY,
)

SOURCE_FAILURES = Counter(
    "inventory_source_failures_total",
    "Source failures recorded in sync cycles",
    ["source", "stage"],
    registry=REGISTRY,
)

# Sync cycles

SYNC_CYCLES = Counter(
    "inventory_sync_cycles_total",
    "Finished sync cycles",
    ["trigger", "status"],
    registry=REGISTRY,
)

SYNC_CYCLE_SECONDS = Histogram(
    "inventory_sync_cycle_duration_seconds",
    "Duration of one sync cycle in seconds",
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, 60, 120),
    registry=REGISTRY,
)

LAST_SYNC_TIMESTAMP = Gauge(
    "inventory_last_sync_timestamp_seconds",
    "Unix time the last sync cycle finished",
    ["status"],
    registry=REGISTRY,
)

INVENTORY_ENTITIES = Gauge(
    "inventory_discovered_entities",
    "Entities in the last merged snapshot",
    ["entity"],
    registry=REGISTRY,
)

# HTTP API

API_REQUESTS = Counter(
    "inventory_api_requests_total",
    "HTTP API requests",
    ["method", "route", "status"],
    registry=REGISTRY,
)

API_REQUEST_SECONDS = Histogram(
    "inventory_api_request_duration_seconds",
    "HTTP API request duration in seconds",
    ["method", "route"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1, 2, 5),
    registry=REGISTRY,
)


def record_cycle(report) -> None:
    """Update the cycle metrics from a finished ``CycleReport``."""
    SYNC_CYCLES.labels(trigger=report.trigger, status=report.status).inc()
    if report.completed_at is not None:
        SYNC_CYCLE_SECONDS.observe((report.completed_at - report.started_at).total_seconds())
        LAST_SYNC_TIMESTAMP.labels(status=report.status).set(report.completed_at.timestamp())
    INVENTORY_ENTITIES.labels(entity="hosts").set(report.hosts_count)
    INVENTORY_ENTITIES.labels(entity="workloads").set(report.workloads_count)
    for failure in report.source_failures:
        SOURCE_FAILURES.labels(source=failure.source, stage=failure.stage).inc()
