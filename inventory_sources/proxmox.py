"""Proxmox VE source -- nodes become hosts, QEMU VMs and LXC containers
become workloads.

Configuration (``SourceSettings.config``)::

    base_url      https://pve.example.lan:8006   (required)
    token_id      user@realm!tokenname           (required)
    token_secret  API token secret               (required)
    cluster       grouping key; defaults to the hostname of base_url
    verify_ssl    verify the API certificate (default True)
    timeout       per-request timeout in seconds (default 20)
    max_workers   concurrent node fan-out (default 4)

Natural keys:
    proxmox-node:<cluster>:<node>
    proxmox-vm:<cluster>:<vmid>
    proxmox-lxc:<cluster>:<vmid>

VMIDs are unique within a Proxmox cluster, so a guest keeps its id when
it migrates between nodes.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlparse

import requests

from .base import (
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
from .errors import SourceConfigurationError, SourceUnavailable
from .identity import assign_id, natural_key

RESOURCE_FIELDS = ("cpu", "maxcpu", "mem", "maxmem", "disk", "maxdisk", "uptime")

_GUEST_STATUS = {
    "running": WorkloadStatus.RUNNING,
    "stopped": WorkloadStatus.STOPPED,
    "paused": WorkloadStatus.STOPPED,
    "suspended": WorkloadStatus.STOPPED,
}


class ProxmoxApiError(RuntimeError):
    pass


class ProxmoxClient:
    """Thin wrapper over the ``/api2/json`` endpoints used for discovery."""

    def __init__(
        self,
        *,
        base_url: str,
        token_id: str,
        token_secret: str,
        verify_ssl: bool = True,
        timeout: float = 20,
        session: requests.Session | None = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        if not self.base_url.startswith("http"):
            raise SourceConfigurationError("Proxmox base_url must be an http(s) URL.")
        if not token_id or "!" not in token_id:
            raise SourceConfigurationError("Invalid Proxmox token_id (expected user@realm!tokenname).")
        if not token_secret:
            raise SourceConfigurationError("Missing Proxmox token_secret.")

        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.verify = bool(verify_ssl)
        self.session.headers.update({
            "Accept": "application/json",
            "Authorization": f"PVEAPIToken={token_id}={token_secret}",
        })

    def get(self, path: str, *, params: dict | None = None) -> Any:
        url = f"{self.base_url}/api2/json{path}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
        except requests.HTTPError as e:
            raise ProxmoxApiError(f"HTTP {e.response.status_code} for {path}: {e.response.text[:300]}") from e
        except requests.RequestException as e:
            raise ProxmoxApiError(f"Request failed for {path}: {e}") from e

        try:
            payload = resp.json()
        except ValueError as e:
            raise ProxmoxApiError(f"Invalid JSON from {path}") from e
        return payload.get("data")

    def version(self) -> dict:
        return self.get("/version") or {}

    def nodes(self) -> list[dict]:
        return self.get("/nodes") or []

    def qemu(self, node: str) -> list[dict]:
        return self.get(f"/nodes/{node}/qemu") or []

    def lxc(self, node: str) -> list[dict]:
        return self.get(f"/nodes/{node}/lxc") or []


def _derive_cluster_name(base_url: str) -> str:
    return urlparse(base_url or "").hostname or "proxmox"


def _resource_fields(item: dict) -> dict[str, Any]:
    return {name: item.get(name) for name in RESOURCE_FIELDS}


class ProxmoxSource(BaseSource):
    kind = "proxmox"
    display_name = "Proxmox VE"

    def __init__(self, settings: SourceSettings, session: requests.Session | None = None):
        super().__init__(settings)
        config = settings.config
        self.cluster = config.get("cluster") or _derive_cluster_name(config.get("base_url", ""))
        self.max_workers = int(config.get("max_workers", 4))
        self.client = ProxmoxClient(
            base_url=config.get("base_url", ""),
            token_id=config.get("token_id", ""),
            token_secret=config.get("token_secret", ""),
            verify_ssl=config.get("verify_ssl", True),
            timeout=float(config.get("timeout", 20)),
            session=session,
        )

    # ── Identity ──────────────────────────────────────────────────────

    def host_id(self, node: str):
        return assign_id(natural_key("proxmox-node", self.cluster, node))

    def guest_id(self, workload_type: str, vmid: int):
        return assign_id(natural_key(workload_type, self.cluster, vmid))

    # ── Discovery ─────────────────────────────────────────────────────

    def discover(self) -> Snapshot:
        now = datetime.now(timezone.utc)
        try:
            nodes = self.client.nodes()
        except ProxmoxApiError as exc:
            raise SourceUnavailable(self.name, f"cannot list nodes: {exc}") from exc

        snapshot = Snapshot()
        online = []
        for index, node in enumerate(nodes):
            try:
                snapshot.hosts.append(self._node_to_host(node, now))
            except (KeyError, TypeError, ValueError) as exc:
                self._partial_failure(snapshot, f"nodes[{index}]", exc)
                continue
            if node.get("status") == "online":
                online.append(node["node"])

        if not online:
            return snapshot

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            results = list(pool.map(self._discover_guests, online))

        for workloads, failures in results:
            for resource, exc in failures:
                self._partial_failure(snapshot, resource, exc)
            for workload in workloads:
                workload.last_updated_at = now
            snapshot.workloads.extend(workloads)

        self.logger.info(
            "%s: discovered %d nodes and %d guests",
            self.name, len(snapshot.hosts), len(snapshot.workloads),
        )
        return snapshot

    def _discover_guests(self, node: str) -> tuple[list[WorkloadRecord], list[tuple[str, Exception]]]:
        try:
            listings = [
                ("qemu", WorkloadType.PROXMOX_VM, self.client.qemu(node)),
                ("lxc", WorkloadType.PROXMOX_LXC, self.client.lxc(node)),
            ]
        except ProxmoxApiError as exc:
            return [], [(f"node/{node}", exc)]

        workloads: list[WorkloadRecord] = []
        failures: list[tuple[str, Exception]] = []
        for resource, workload_type, guests in listings:
            for index, guest in enumerate(guests):
                try:
                    workloads.append(self._guest_to_workload(guest, node, workload_type))
                except (KeyError, TypeError, ValueError) as exc:
                    failures.append((f"node/{node}/{resource}[{index}]", exc))
        return workloads, failures

    def validate_connection(self) -> tuple[bool, str]:
        try:
            version = self.client.version()
        except ProxmoxApiError as exc:
            return False, str(exc)
        return True, f"Proxmox VE {version.get('version', '?')}"

    # ── Conversion ────────────────────────────────────────────────────

    def _node_to_host(self, node: dict, now: datetime) -> HostRecord:
        status = node.get("status")
        return HostRecord(
            id=self.host_id(node["node"]),
            name=node["node"],
            type=HostType.PROXMOX_NODE,
            cluster=self.cluster,
            addresses={},
            status=status if status in (HostStatus.ONLINE, HostStatus.OFFLINE) else HostStatus.UNKNOWN,
            last_seen_at=now,
            tags=["proxmox"],
            metadata=_resource_fields(node),
        )

    def _guest_to_workload(self, guest: dict, node: str, workload_type: str) -> WorkloadRecord:
        vmid = int(guest["vmid"])
        prefix = "vm" if workload_type == WorkloadType.PROXMOX_VM else "lxc"
        status = guest.get("status")
        spec = {"vmid": vmid, "node": node, **_resource_fields(guest)}
        if guest.get("template"):
            spec["template"] = True
        return WorkloadRecord(
            id=self.guest_id(workload_type, vmid),
            name=guest.get("name") or f"{prefix}-{vmid}",
            type=workload_type,
            host_id=self.host_id(node),
            status=_GUEST_STATUS.get(status, WorkloadStatus.UNKNOWN),
            health_status=HealthStatus.HEALTHY if status == "running" else HealthStatus.UNKNOWN,
            namespace=node,
            spec=spec,
            metadata={"node": node, "tags": _split_tags(guest.get("tags"))},
        )


def _split_tags(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [t for t in raw.replace(",", ";").split(";") if t]
