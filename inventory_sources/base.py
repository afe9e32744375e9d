"""Base classes and data contracts for inventory sources.

This module defines the source plugin interface. It is intentionally
free of Django dependencies so that source authors can develop and test
sources without installing the full inventory service.

Source authors subclass ``BaseSource`` and implement one method:
    - ``discover()`` -- return a ``Snapshot`` of hosts and workloads

The inventory service's reconciler handles all Django ORM operations
(looking up existing rows, inserting, updating, committing).
"""
from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .errors import PartialDiscoveryFailure
from .values import JsonObject, to_json_object

logger = logging.getLogger("inventory_sources")


# ── Canonical vocabularies ────────────────────────────────────────────


class HostType:
    PROXMOX_NODE = "proxmox-node"
    VM = "vm"
    K8S_NODE = "k8s-node"
    DOCKER_HOST = "docker-host"
    LXC_CONTAINER = "lxc-container"

    ALL = (PROXMOX_NODE, VM, K8S_NODE, DOCKER_HOST, LXC_CONTAINER)


class HostStatus:
    ONLINE = "online"
    OFFLINE = "offline"
    DEGRADED = "degraded"
    UNKNOWN = "unknown"

    ALL = (ONLINE, OFFLINE, DEGRADED, UNKNOWN)


class WorkloadType:
    K8S_DEPLOYMENT = "k8s-deployment"
    K8S_STATEFULSET = "k8s-statefulset"
    K8S_POD = "k8s-pod"
    K8S_DAEMONSET = "k8s-daemonset"
    PROXMOX_VM = "proxmox-vm"
    PROXMOX_LXC = "proxmox-lxc"
    DOCKER_CONTAINER = "docker-container"
    COMPOSE_STACK = "compose-stack"

    ALL = (
        K8S_DEPLOYMENT, K8S_STATEFULSET, K8S_POD, K8S_DAEMONSET,
        PROXMOX_VM, PROXMOX_LXC, DOCKER_CONTAINER, COMPOSE_STACK,
    )


class WorkloadStatus:
    RUNNING = "running"
    STOPPED = "stopped"
    PENDING = "pending"
    FAILED = "failed"
    UNKNOWN = "unknown"

    ALL = (RUNNING, STOPPED, PENDING, FAILED, UNKNOWN)


class HealthStatus:
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"

    ALL = (HEALTHY, UNHEALTHY, UNKNOWN)


ADDRESS_KINDS = ("lan", "public", "tailscale")


# ── Data contracts ────────────────────────────────────────────────────


@dataclass
class HostRecord:
    """
    Canonical host as produced by a source.

    ``id`` must already be assigned from the host's natural key (see
    ``inventory_sources.identity``). ``last_seen_at`` is the discovery
    instant, timezone-aware; the reconciler stores it as-is.
    """

    id: uuid.UUID
    name: str
    type: str
    status: str
    last_seen_at: datetime
    cluster: str | None = None
    addresses: dict[str, str | None] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    metadata: JsonObject = field(default_factory=dict)

    def __post_init__(self):
        if self.type not in HostType.ALL:
            raise ValueError(f"unknown host type {self.type!r}")
        if self.status not in HostStatus.ALL:
            raise ValueError(f"unknown host status {self.status!r}")
        if not isinstance(self.last_seen_at, datetime) or self.last_seen_at.tzinfo is None:
            raise ValueError(f"last_seen_at must be a timezone-aware datetime, got {self.last_seen_at!r}")
        unknown = set(self.addresses) - set(ADDRESS_KINDS)
        if unknown:
            raise ValueError(f"unknown address kinds {sorted(unknown)}")
        # tags have set semantics; keep first-seen order
        self.tags = list(dict.fromkeys(self.tags))
        self.metadata = to_json_object(self.metadata)


@dataclass
class WorkloadRecord:
    """
    Canonical workload as produced by a source.

    ``host_id`` is a plain back-reference: it may point at a host that is
    discovered later in the same cycle, or by another source, or never.
    """

    id: uuid.UUID
    name: str
    type: str
    status: str
    health_status: str = HealthStatus.UNKNOWN
    host_id: uuid.UUID | None = None
    namespace: str | None = None
    spec: JsonObject = field(default_factory=dict)
    last_updated_at: datetime | None = None
    metadata: JsonObject = field(default_factory=dict)

    def __post_init__(self):
        if self.type not in WorkloadType.ALL:
            raise ValueError(f"unknown workload type {self.type!r}")
        if self.status not in WorkloadStatus.ALL:
            raise ValueError(f"unknown workload status {self.status!r}")
        if self.health_status not in HealthStatus.ALL:
            raise ValueError(f"unknown health status {self.health_status!r}")
        if self.last_updated_at is not None and self.last_updated_at.tzinfo is None:
            raise ValueError("last_updated_at must be timezone-aware")
        self.spec = to_json_object(self.spec)
        self.metadata = to_json_object(self.metadata)


@dataclass
class Snapshot:
    """Hosts and workloads from one discovery pass, before persistence."""

    hosts: list[HostRecord] = field(default_factory=list)
    workloads: list[WorkloadRecord] = field(default_factory=list)
    failures: list[PartialDiscoveryFailure] = field(default_factory=list)

    def extend(self, other: "Snapshot") -> None:
        """Concatenate ``other`` onto this snapshot. No de-duplication."""
        self.hosts.extend(other.hosts)
        self.workloads.extend(other.workloads)
        self.failures.extend(other.failures)

    @classmethod
    def merge(cls, snapshots) -> "Snapshot":
        merged = cls()
        for snapshot in snapshots:
            merged.extend(snapshot)
        return merged


@dataclass
class SourceSettings:
    """
    Resolved configuration for one configured source instance.

    ``config`` carries the kind-specific keys (API URL, token, cluster
    name, ...). Sources read what they need and raise
    ``SourceConfigurationError`` for anything missing.
    """

    name: str
    kind: str
    enabled: bool = True
    config: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SourceSettings":
        kind = data.get("kind", "")
        return cls(
            name=data.get("name") or kind,
            kind=kind,
            enabled=bool(data.get("enabled", True)),
            config=dict(data.get("config") or {}),
        )


# ── Abstract base source ──────────────────────────────────────────────


class BaseSource(ABC):
    """
    Abstract base class for inventory sources.

    Subclasses must set:
        - ``kind``          registry key, e.g. 'kubernetes', 'proxmox'
        - ``display_name``  human-readable name for listings

    Subclasses must implement:
        - ``discover()``    return a Snapshot; raise SourceUnavailable when
                            nothing at all could be read

    Optional overrides:
        - ``validate_connection()`` quick connectivity test

    Example::

        class MyCloudSource(BaseSource):
            kind = "mycloud"
            display_name = "My Cloud"

            def discover(self):
                now = datetime.now(timezone.utc)
                snapshot = Snapshot()
                for vm in self.client.list_vms():
                    key = natural_key("mycloud-vm", self.settings.name, vm.id)
                    snapshot.workloads.append(WorkloadRecord(
                        id=assign_id(key), name=vm.name,
                        type=WorkloadType.DOCKER_CONTAINER,
                        status=WorkloadStatus.RUNNING,
                        last_updated_at=now,
                    ))
                return snapshot
    """

    kind: str = ""
    display_name: str = ""

    def __init__(self, settings: SourceSettings):
        self.settings = settings
        self.name = settings.name
        self.logger = logging.getLogger(f"inventory_sources.{self.kind}")

    @abstractmethod
    def discover(self) -> Snapshot:
        """
        Return the current hosts and workloads of this source.

        Implementations should:
        1. Query the backend for everything they support
        2. Assign ids from natural keys
        3. Record sub-resource failures in ``Snapshot.failures`` and keep going
        4. Raise ``SourceUnavailable`` only when the source as a whole failed
        """
        ...

    def validate_connection(self) -> tuple[bool, str]:
        """
        Test connectivity without keeping the result.

        Returns:
            (success: bool, message: str)
        """
        try:
            snapshot = self.discover()
        except Exception as exc:
            return False, str(exc)
        return True, f"Discovered {len(snapshot.hosts)} hosts, {len(snapshot.workloads)} workloads"

    def _partial_failure(self, snapshot: Snapshot, resource: str, exc: Exception) -> None:
        self.logger.warning("%s: failed to read %s: %s", self.name, resource, exc)
        snapshot.failures.append(PartialDiscoveryFailure(resource=resource, error=str(exc)))

    # ── Metadata ──────────────────────────────────────────────────────

    @classmethod
    def metadata(cls) -> dict[str, Any]:
        """Return a metadata dict describing this source class."""
        return {
            "kind": cls.kind,
            "display_name": cls.display_name or cls.kind,
            "class": f"{cls.__module__}.{cls.__name__}",
        }
