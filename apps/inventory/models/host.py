"""
Host model -- a physical or virtual machine, or a cluster node.

Rows are keyed by the id the discovering source derived from the host's
natural key, so the primary key has no default: the reconciler always
supplies it. ``created_at`` and ``updated_at`` are written explicitly by
the reconciler (not ``auto_now``) so that every row touched in one cycle
carries the same timestamp.
"""

from django.db import models

from inventory_sources.base import HostStatus as SourceHostStatus
from inventory_sources.base import HostType as SourceHostType


class HostType(models.TextChoices):
    PROXMOX_NODE = SourceHostType.PROXMOX_NODE, "Proxmox node"
    VM = SourceHostType.VM, "Virtual machine"
    K8S_NODE = SourceHostType.K8S_NODE, "Kubernetes node"
    DOCKER_HOST = SourceHostType.DOCKER_HOST, "Docker host"
    LXC_CONTAINER = SourceHostType.LXC_CONTAINER, "LXC container"


class HostStatus(models.TextChoices):
    ONLINE = SourceHostStatus.ONLINE, "Online"
    OFFLINE = SourceHostStatus.OFFLINE, "Offline"
    DEGRADED = SourceHostStatus.DEGRADED, "Degraded"
    UNKNOWN = SourceHostStatus.UNKNOWN, "Unknown"


class Host(models.Model):
    id = models.UUIDField(
        primary_key=True,
        editable=False,
        help_text="Derived from the source's natural key for this host.",
    )

    name = models.CharField(max_length=255)
    type = models.CharField(max_length=32, choices=HostType.choices)
    cluster = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Grouping key: Kubernetes cluster or Proxmox cluster name.",
    )

    addresses = models.JSONField(
        default=dict,
        blank=True,
        help_text="Named addresses: lan, public, tailscale.",
    )
    status = models.CharField(
        max_length=16,
        choices=HostStatus.choices,
        default=HostStatus.UNKNOWN,
    )
    last_seen_at = models.DateTimeField(
        help_text="Most recent discovery that observed this host.",
    )
    tags = models.JSONField(default=list, blank=True)
    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Source-specific detail: capacity, labels, conditions.",
    )

    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        db_table = "hosts"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status"], name="hosts_status_idx"),
            models.Index(fields=["type"], name="hosts_type_idx"),
            models.Index(fields=["cluster"], name="hosts_cluster_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.type}) [{self.status}]"
