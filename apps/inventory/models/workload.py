"""
Workload model -- a runnable unit: deployment, pod, VM, container.

``host_id`` is a plain UUID column rather than a ForeignKey: a workload
may be discovered before its host in the same cycle, by a different
source, or point at a host that is never discovered at all.
"""

from django.db import models

from inventory_sources.base import HealthStatus as SourceHealthStatus
from inventory_sources.base import WorkloadStatus as SourceWorkloadStatus
from inventory_sources.base import WorkloadType as SourceWorkloadType


class WorkloadType(models.TextChoices):
    K8S_DEPLOYMENT = SourceWorkloadType.K8S_DEPLOYMENT, "Kubernetes deployment"
    K8S_STATEFULSET = SourceWorkloadType.K8S_STATEFULSET, "Kubernetes statefulset"
    K8S_POD = SourceWorkloadType.K8S_POD, "Kubernetes pod"
    K8S_DAEMONSET = SourceWorkloadType.K8S_DAEMONSET, "Kubernetes daemonset"
    PROXMOX_VM = SourceWorkloadType.PROXMOX_VM, "Proxmox VM"
    PROXMOX_LXC = SourceWorkloadType.PROXMOX_LXC, "Proxmox LXC"
    DOCKER_CONTAINER = SourceWorkloadType.DOCKER_CONTAINER, "Docker container"
    COMPOSE_STACK = SourceWorkloadType.COMPOSE_STACK, "Compose stack"


class WorkloadStatus(models.TextChoices):
    RUNNING = SourceWorkloadStatus.RUNNING, "Running"
    STOPPED = SourceWorkloadStatus.STOPPED, "Stopped"
    PENDING = SourceWorkloadStatus.PENDING, "Pending"
    FAILED = SourceWorkloadStatus.FAILED, "Failed"
    UNKNOWN = SourceWorkloadStatus.UNKNOWN, "Unknown"


class HealthStatus(models.TextChoices):
    HEALTHY = SourceHealthStatus.HEALTHY, "Healthy"
    UNHEALTHY = SourceHealthStatus.UNHEALTHY, "Unhealthy"
    UNKNOWN = SourceHealthStatus.UNKNOWN, "Unknown"


class Workload(models.Model):
    id = models.UUIDField(
        primary_key=True,
        editable=False,
        help_text="Derived from the source's natural key for this workload.",
    )

    name = models.CharField(max_length=255)
    type = models.CharField(max_length=32, choices=WorkloadType.choices)
    host_id = models.UUIDField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Back-reference to a Host id. Not enforced as a foreign key.",
    )

    status = models.CharField(
        max_length=16,
        choices=WorkloadStatus.choices,
        default=WorkloadStatus.UNKNOWN,
    )
    health_status = models.CharField(
        max_length=16,
        choices=HealthStatus.choices,
        default=HealthStatus.UNKNOWN,
        help_text="Computed by the source independently of status.",
    )
    namespace = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Kubernetes namespace, Proxmox node name, ...",
    )
    spec = models.JSONField(default=dict, blank=True)
    last_updated_at = models.DateTimeField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        db_table = "workloads"
        ordering = ["namespace", "name"]
        indexes = [
            models.Index(fields=["status"], name="workloads_status_idx"),
            models.Index(fields=["type"], name="workloads_type_idx"),
            models.Index(fields=["namespace"], name="workloads_namespace_idx"),
            models.Index(fields=["health_status"], name="workloads_health_status_idx"),
        ]

    def __str__(self):
        return f"{self.namespace or '-'}/{self.name} ({self.type}) [{self.status}]"
