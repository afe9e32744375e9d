"""Inventory Sources -- pluggable discovery backends for the infra inventory service.

This package defines the source plugin interface, the identity assigner
and the built-in Kubernetes, Proxmox and static-file sources.

For source authors:

    from inventory_sources import BaseSource, Snapshot, WorkloadRecord, assign_id, natural_key

    class DockerSource(BaseSource):
        kind = "docker"
        display_name = "Docker"

        def discover(self):
            snapshot = Snapshot()
            for c in self.client.containers():
                snapshot.workloads.append(WorkloadRecord(
                    id=assign_id(natural_key("docker-container", self.name, c["Names"][0])),
                    ...
                ))
            return snapshot

Register via entry point in your package's pyproject.toml::

    [project.entry-points."inventory_sources"]
    docker = "my_package.source:DockerSource"

For the inventory service (consumer):

    from inventory_sources import registry

    sources = registry.build_sources(settings.INVENTORY_SOURCES)
    snapshot = sources[0].discover()
"""

from .base import (
    ADDRESS_KINDS,
    BaseSource,
    HealthStatus,
    HostRecord,
    HostStatus,
    HostType,
    Snapshot,
    SourceSettings,
    WorkloadRecord,
    WorkloadStatus,
    WorkloadType,
)
from .errors import (
    DiscoveryError,
    InventoryError,
    PartialDiscoveryFailure,
    PersistenceFailure,
    SchedulerBusy,
    SourceConfigurationError,
    SourceUnavailable,
)
from .identity import assign_id, natural_key, strip_cidr
from .registry import MisconfiguredSource, SourceRegistry, registry
from .values import JsonObject, JsonValue, to_json_object, to_json_value

__version__ = "0.1.0"

__all__ = [
    "ADDRESS_KINDS",
    "BaseSource",
    "DiscoveryError",
    "HealthStatus",
    "HostRecord",
    "HostStatus",
    "HostType",
    "InventoryError",
    "JsonObject",
    "JsonValue",
    "MisconfiguredSource",
    "PartialDiscoveryFailure",
    "PersistenceFailure",
    "SchedulerBusy",
    "Snapshot",
    "SourceConfigurationError",
    "SourceRegistry",
    "SourceSettings",
    "SourceUnavailable",
    "WorkloadRecord",
    "WorkloadStatus",
    "WorkloadType",
    "assign_id",
    "natural_key",
    "registry",
    "strip_cidr",
    "to_json_object",
    "to_json_value",
]
