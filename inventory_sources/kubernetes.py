"""Kubernetes source -- nodes become hosts; deployments, statefulsets,
daemonsets and pods become workloads.

Configuration (``SourceSettings.config``)::

    api_url       https://k8s.example.lan:6443   (required)
    token         bearer token for a read-only service account
    token_file    path to read the token from instead
    cluster       cluster name used in natural keys (default "default")
    ca_cert       CA bundle path; overrides verify_ssl
    verify_ssl    verify the API certificate (default True)
    timeout       per-request timeout in seconds (default 20)
    max_workers   concurrent namespace fan-out (default 4)
    namespaces    only read these namespaces (default: all but the
                  excluded ones)
    exclude_namespaces  default ["kube-node-lease", "kube-public"]

Natural keys:
    k8s-node:<cluster>:<node>
    k8s-<kind>:<cluster>:<namespace>/<name>

Object uids are not used: a deployment that is deleted and re-applied
is still the same workload to an operator. Pod IPs are DHCP-like (they
change on every reschedule) and only ever appear in ``spec``.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

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
from .identity import assign_id, natural_key, strip_cidr

DEFAULT_EXCLUDED_NAMESPACES = ("kube-node-lease", "kube-public")

_ADDRESS_TYPES = {
    "InternalIP": "lan",
    "ExternalIP": "public",
}

_POD_PHASES = {
    "Running": (WorkloadStatus.RUNNING, HealthStatus.HEALTHY),
    "Pending": (WorkloadStatus.PENDING, HealthStatus.UNHEALTHY),
    "Failed": (WorkloadStatus.FAILED, HealthStatus.UNHEALTHY),
    "Succeeded": (WorkloadStatus.STOPPED, HealthStatus.UNKNOWN),
    "Unknown": (WorkloadStatus.UNKNOWN, HealthStatus.UNHEALTHY),
}


class KubernetesApiError(RuntimeError):
    pass


class KubernetesClient:
    """Read-only client for the handful of list endpoints discovery needs."""

    def __init__(
        self,
        *,
        api_url: str,
        token: str,
        verify: bool | str = True,
        timeout: float = 20,
        session: requests.Session | None = None,
    ):
        self.api_url = (api_url or "").rstrip("/")
        if not self.api_url.startswith("http"):
            raise SourceConfigurationError("Kubernetes api_url must be an http(s) URL.")
        if not token:
            raise SourceConfigurationError("Missing Kubernetes token (set token or token_file).")

        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.verify = verify
        self.session.headers.update({
            "Accept": "application/json",
            "Authorization": f"Bearer {token}",
        })

    def list(self, path: str) -> list[dict]:
        url = f"{self.api_url}{path}"
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.HTTPError as e:
            raise KubernetesApiError(f"HTTP {e.response.status_code} for {path}") from e
        except requests.RequestException as e:
            raise KubernetesApiError(f"Request failed for {path}: {e}") from e

        try:
            payload = resp.json()
        except ValueError as e:
            raise KubernetesApiError(f"Invalid JSON from {path}") from e
        return payload.get("items") or []

    def version(self) -> dict:
        resp = self.session.get(f"{self.api_url}/version", timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def nodes(self) -> list[dict]:
        return self.list("/api/v1/nodes")

    def namespaces(self) -> list[dict]:
        return self.list("/api/v1/namespaces")

    def deployments(self, namespace: str) -> list[dict]:
        return self.list(f"/apis/apps/v1/namespaces/{namespace}/deployments")

    def statefulsets(self, namespace: str) -> list[dict]:
        return self.list(f"/apis/apps/v1/namespaces/{namespace}/statefulsets")

    def daemonsets(self, namespace: str) -> list[dict]:
        return self.list(f"/apis/apps/v1/namespaces/{namespace}/daemonsets")

    def pods(self, namespace: str) -> list[dict]:
        return self.list(f"/api/v1/namespaces/{namespace}/pods")


# ── Status and health rules ───────────────────────────────────────────


def node_status(node: dict) -> str:
    conditions = (node.get("status") or {}).get("conditions") or []
    ready = next((c for c in conditions if c.get("type") == "Ready"), None)
    if ready is None:
        return HostStatus.UNKNOWN
    if ready.get("status") == "True":
        return HostStatus.ONLINE
    if ready.get("status") == "False":
        return HostStatus.OFFLINE
    return HostStatus.DEGRADED


def replica_status(desired: int, ready: int) -> tuple[str, str]:
    """Status and health of a replicated controller from its replica counts."""
    if desired == 0:
        return WorkloadStatus.UNKNOWN, HealthStatus.UNKNOWN
    if ready == desired:
        return WorkloadStatus.RUNNING, HealthStatus.HEALTHY
    if ready == 0:
        return WorkloadStatus.PENDING, HealthStatus.UNHEALTHY
    return WorkloadStatus.UNKNOWN, HealthStatus.UNHEALTHY


def pod_status(pod: dict) -> tuple[str, str]:
    phase = (pod.get("status") or {}).get("phase")
    return _POD_PHASES.get(phase, (WorkloadStatus.UNKNOWN, HealthStatus.UNKNOWN))


def node_addresses(node: dict) -> dict[str, str]:
    addresses: dict[str, str] = {}
    for addr in (node.get("status") or {}).get("addresses") or []:
        value = addr.get("address") or ""
        kind = _ADDRESS_TYPES.get(addr.get("type"))
        if kind:
            addresses[kind] = strip_cidr(value)
        elif addr.get("type") == "Hostname" and "tailscale" in value:
            addresses["tailscale"] = value
    return addresses


def _containers(template_spec: dict | None) -> list[dict[str, Any]]:
    return [
        {"name": c.get("name"), "image": c.get("image")}
        for c in (template_spec or {}).get("containers") or []
    ]


class KubernetesSource(BaseSource):
    kind = "kubernetes"
    display_name = "Kubernetes"

    def __init__(self, settings: SourceSettings, session: requests.Session | None = None):
        super().__init__(settings)
        config = settings.config
        self.cluster = config.get("cluster") or "default"
        self.max_workers = int(config.get("max_workers", 4))
        self.namespaces = list(config.get("namespaces") or [])
        self.exclude_namespaces = set(config.get("exclude_namespaces", DEFAULT_EXCLUDED_NAMESPACES))
        self.client = KubernetesClient(
            api_url=config.get("api_url", ""),
            token=self._read_token(config),
            verify=config.get("ca_cert") or bool(config.get("verify_ssl", True)),
            timeout=float(config.get("timeout", 20)),
            session=session,
        )

    @staticmethod
    def _read_token(config: dict) -> str:
        if config.get("token"):
            return config["token"]
        token_file = config.get("token_file")
        if not token_file:
            return ""
        try:
            return Path(token_file).read_text().strip()
        except OSError as exc:
            raise SourceConfigurationError(f"Cannot read Kubernetes token_file {token_file}: {exc}") from exc

    # ── Identity ──────────────────────────────────────────────────────

    def node_id(self, node_name: str):
        return assign_id(natural_key("k8s-node", self.cluster, node_name))

    def workload_id(self, workload_type: str, namespace: str, name: str):
        return assign_id(natural_key(workload_type, self.cluster, f"{namespace}/{name}"))

    # ── Discovery ─────────────────────────────────────────────────────

    def discover(self) -> Snapshot:
        now = datetime.now(timezone.utc)
        try:
            nodes = self.client.nodes()
        except KubernetesApiError as exc:
            raise SourceUnavailable(self.name, f"cannot list nodes: {exc}") from exc

        snapshot = Snapshot()
        for index, node in enumerate(nodes):
            try:
                snapshot.hosts.append(self._node_to_host(node, now))
            except (KeyError, TypeError, ValueError) as exc:
                self._partial_failure(snapshot, f"nodes[{index}]", exc)

        try:
            namespaces = self._namespaces_to_read()
        except KubernetesApiError as exc:
            self._partial_failure(snapshot, "namespaces", exc)
            return snapshot

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            results = list(pool.map(lambda ns: self._discover_namespace(ns, now), namespaces))

        for workloads, failures in results:
            snapshot.workloads.extend(workloads)
            for resource, exc in failures:
                self._partial_failure(snapshot, resource, exc)

        self.logger.info(
            "%s: discovered %d nodes and %d workloads across %d namespaces",
            self.name, len(snapshot.hosts), len(snapshot.workloads), len(namespaces),
        )
        return snapshot

    def _namespaces_to_read(self) -> list[str]:
        if self.namespaces:
            return self.namespaces
        names = [(ns.get("metadata") or {}).get("name") for ns in self.client.namespaces()]
        return [n for n in names if n and n not in self.exclude_namespaces]

    def _discover_namespace(
        self, namespace: str, now: datetime,
    ) -> tuple[list[WorkloadRecord], list[tuple[str, Exception]]]:
        listings: list[tuple[str, Callable[[str], list[dict]], Callable[..., WorkloadRecord]]] = [
            ("deployments", self.client.deployments, self._deployment_to_workload),
            ("statefulsets", self.client.statefulsets, self._statefulset_to_workload),
            ("daemonsets", self.client.daemonsets, self._daemonset_to_workload),
            ("pods", self.client.pods, self._pod_to_workload),
        ]
        workloads: list[WorkloadRecord] = []
        failures: list[tuple[str, Exception]] = []
        for resource, fetch, convert in listings:
            try:
                items = fetch(namespace)
            except KubernetesApiError as exc:
                failures.append((f"namespace/{namespace}/{resource}", exc))
                continue
            for index, item in enumerate(items):
                try:
                    workload = convert(item, namespace)
                except (KeyError, TypeError, ValueError) as exc:
                    failures.append((f"namespace/{namespace}/{resource}[{index}]", exc))
                    continue
                workload.last_updated_at = now
                workloads.append(workload)
        return workloads, failures

    def validate_connection(self) -> tuple[bool, str]:
        try:
            version = self.client.version()
        except requests.RequestException as exc:
            return False, str(exc)
        return True, f"Kubernetes {version.get('gitVersion', '?')}"

    # ── Conversion ────────────────────────────────────────────────────

    def _node_to_host(self, node: dict, now: datetime) -> HostRecord:
        meta = node.get("metadata") or {}
        status = node.get("status") or {}
        labels = meta.get("labels") or {}
        return HostRecord(
            id=self.node_id(meta["name"]),
            name=meta["name"],
            type=HostType.K8S_NODE,
            cluster=self.cluster,
            addresses=node_addresses(node),
            status=node_status(node),
            last_seen_at=now,
            tags=list(labels),
            metadata={
                "capacity": status.get("capacity") or {},
                "allocatable": status.get("allocatable") or {},
                "labels": labels,
                "taints": (node.get("spec") or {}).get("taints") or [],
                "conditions": status.get("conditions") or [],
            },
        )

    def _controller_to_workload(
        self, obj: dict, namespace: str, workload_type: str,
        desired: int, ready: int, extra_spec: dict[str, Any],
    ) -> WorkloadRecord:
        meta = obj.get("metadata") or {}
        template_spec = ((obj.get("spec") or {}).get("template") or {}).get("spec")
        status, health = replica_status(desired, ready)
        return WorkloadRecord(
            id=self.workload_id(workload_type, namespace, meta["name"]),
            name=meta["name"],
            type=workload_type,
            status=status,
            health_status=health,
            namespace=namespace,
            spec={
                "desiredReplicas": desired,
                "readyReplicas": ready,
                "containers": _containers(template_spec),
                **extra_spec,
            },
            metadata={
                "labels": meta.get("labels") or {},
                "annotations": meta.get("annotations") or {},
            },
        )

    def _deployment_to_workload(self, obj: dict, namespace: str) -> WorkloadRecord:
        spec, status = obj.get("spec") or {}, obj.get("status") or {}
        return self._controller_to_workload(
            obj, namespace, WorkloadType.K8S_DEPLOYMENT,
            desired=int(spec.get("replicas") or 0),
            ready=int(status.get("readyReplicas") or 0),
            extra_spec={
                "updatedReplicas": int(status.get("updatedReplicas") or 0),
                "selector": (spec.get("selector") or {}).get("matchLabels") or {},
            },
        )

    def _statefulset_to_workload(self, obj: dict, namespace: str) -> WorkloadRecord:
        spec, status = obj.get("spec") or {}, obj.get("status") or {}
        return self._controller_to_workload(
            obj, namespace, WorkloadType.K8S_STATEFULSET,
            desired=int(spec.get("replicas") or 0),
            ready=int(status.get("readyReplicas") or 0),
            extra_spec={"serviceName": spec.get("serviceName")},
        )

    def _daemonset_to_workload(self, obj: dict, namespace: str) -> WorkloadRecord:
        status = obj.get("status") or {}
        return self._controller_to_workload(
            obj, namespace, WorkloadType.K8S_DAEMONSET,
            desired=int(status.get("desiredNumberScheduled") or 0),
            ready=int(status.get("numberReady") or 0),
            extra_spec={},
        )

    def _pod_to_workload(self, pod: dict, namespace: str) -> WorkloadRecord:
        meta = pod.get("metadata") or {}
        spec = pod.get("spec") or {}
        node_name = spec.get("nodeName")
        status, health = pod_status(pod)
        return WorkloadRecord(
            id=self.workload_id(WorkloadType.K8S_POD, namespace, meta["name"]),
            name=meta["name"],
            type=WorkloadType.K8S_POD,
            host_id=self.node_id(node_name) if node_name else None,
            status=status,
            health_status=health,
            namespace=namespace,
            spec={
                "nodeName": node_name,
                "podIP": (pod.get("status") or {}).get("podIP"),
                "restartPolicy": spec.get("restartPolicy"),
                "containers": _containers(spec),
            },
            metadata={
                "labels": meta.get("labels") or {},
                "annotations": meta.get("annotations") or {},
                "ownerReferences": meta.get("ownerReferences") or [],
            },
        )
