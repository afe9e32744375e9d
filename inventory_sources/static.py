"""Static source -- hosts and workloads declared in a YAML file.

Useful for machines no API knows about (a NAS, a router, a docker host
managed by hand). The file is re-read on every discovery, so edits show
up on the next cycle::

    hosts:
      - name: nas
        type: docker-host
        cluster: homelab
        addresses: {lan: 192.168.1.20}
        tags: [storage]
    workloads:
      - name: jellyfin
        type: docker-container
        host: nas
        status: running
        spec: {image: jellyfin/jellyfin:latest}

Configuration: ``path`` to the YAML file, or inline ``hosts`` /
``workloads`` lists in the source config itself.

Natural keys:
    static-host:<name>
    static-workload:<host or "-">:<name>
"""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from .base import (
    BaseSource,
    HealthStatus,
    HostRecord,
    HostStatus,
    Snapshot,
    WorkloadRecord,
    WorkloadStatus,
)
from .errors import SourceUnavailable
from .identity import assign_id, natural_key, strip_cidr


def host_id(name: str):
    return assign_id(natural_key("static-host", name))


def workload_id(host: str | None, name: str):
    return assign_id(natural_key("static-workload", host or "-", name))


class StaticSource(BaseSource):
    kind = "static"
    display_name = "Static file"

    def load(self) -> dict[str, Any]:
        config = self.settings.config
        path = config.get("path")
        if not path:
            return {"hosts": config.get("hosts") or [], "workloads": config.get("workloads") or []}
        try:
            with Path(path).open() as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise SourceUnavailable(self.name, f"cannot read {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise SourceUnavailable(self.name, f"{path} must contain a mapping")
        return data

    def discover(self) -> Snapshot:
        now = datetime.now(timezone.utc)
        data = self.load()
        snapshot = Snapshot()

        for index, entry in enumerate(data.get("hosts") or []):
            try:
                snapshot.hosts.append(self._entry_to_host(entry, now))
            except (KeyError, TypeError, ValueError) as exc:
                self._partial_failure(snapshot, f"hosts[{index}]", exc)

        for index, entry in enumerate(data.get("workloads") or []):
            try:
                snapshot.workloads.append(self._entry_to_workload(entry, now))
            except (KeyError, TypeError, ValueError) as exc:
                self._partial_failure(snapshot, f"workloads[{index}]", exc)

        return snapshot

    def validate_connection(self) -> tuple[bool, str]:
        try:
            data = self.load()
        except SourceUnavailable as exc:
            return False, exc.message
        return True, f"{len(data.get('hosts') or [])} hosts, {len(data.get('workloads') or [])} workloads declared"

    def _entry_to_host(self, entry: dict, now: datetime) -> HostRecord:
        name = str(entry["name"]).strip()
        addresses = {
            kind: strip_cidr(str(value)) if value else None
            for kind, value in (entry.get("addresses") or {}).items()
        }
        return HostRecord(
            id=host_id(name),
            name=name,
            type=entry["type"],
            cluster=entry.get("cluster"),
            addresses=addresses,
            status=entry.get("status", HostStatus.ONLINE),
            last_seen_at=now,
            tags=[str(t) for t in entry.get("tags") or []],
            metadata=entry.get("metadata") or {},
        )

    def _entry_to_workload(self, entry: dict, now: datetime) -> WorkloadRecord:
        name = str(entry["name"]).strip()
        host = entry.get("host")
        host = str(host).strip() if host else None
        return WorkloadRecord(
            id=workload_id(host, name),
            name=name,
            type=entry["type"],
            host_id=host_id(host) if host else None,
            status=entry.get("status", WorkloadStatus.RUNNING),
            health_status=entry.get("health_status", HealthStatus.UNKNOWN),
            namespace=entry.get("namespace") or host,
            spec=entry.get("spec") or {},
            last_updated_at=now,
            metadata=entry.get("metadata") or {},
        )
