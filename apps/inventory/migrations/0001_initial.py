"""Create the hosts, workloads and sync_runs tables."""

import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Host",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        editable=False,
                        help_text="Derived from the source's natural key for this host.",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("proxmox-node", "Proxmox node"),
                            ("vm", "Virtual machine"),
                            ("k8s-node", "Kubernetes node"),
                            ("docker-host", "Docker host"),
                            ("lxc-container", "LXC container"),
                        ],
                        max_length=32,
                    ),
                ),
                (
                    "cluster",
                    models.CharField(
                        blank=True,
                        help_text="Grouping key: Kubernetes cluster or Proxmox cluster name.",
                        max_length=255,
                        null=True,
                    ),
                ),
                (
                    "addresses",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Named addresses: lan, public, tailscale.",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("online", "Online"),
                            ("offline", "Offline"),
                            ("degraded", "Degraded"),
                            ("unknown", "Unknown"),
                        ],
                        default="unknown",
                        max_length=16,
                    ),
                ),
                (
                    "last_seen_at",
                    models.DateTimeField(help_text="Most recent discovery that observed this host."),
                ),
                ("tags", models.JSONField(blank=True, default=list)),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Source-specific detail: capacity, labels, conditions.",
                    ),
                ),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
            ],
            options={
                "db_table": "hosts",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["status"], name="hosts_status_idx"),
                    models.Index(fields=["type"], name="hosts_type_idx"),
                    models.Index(fields=["cluster"], name="hosts_cluster_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Workload",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        editable=False,
                        help_text="Derived from the source's natural key for this workload.",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("k8s-deployment", "Kubernetes deployment"),
                            ("k8s-statefulset", "Kubernetes statefulset"),
                            ("k8s-pod", "Kubernetes pod"),
                            ("k8s-daemonset", "Kubernetes daemonset"),
                            ("proxmox-vm", "Proxmox VM"),
                            ("proxmox-lxc", "Proxmox LXC"),
                            ("docker-container", "Docker container"),
                            ("compose-stack", "Compose stack"),
                        ],
                        max_length=32,
                    ),
                ),
                (
                    "host_id",
                    models.UUIDField(
                        blank=True,
                        db_index=True,
                        help_text="Back-reference to a Host id. Not enforced as a foreign key.",
                        null=True,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("running", "Running"),
                            ("stopped", "Stopped"),
                            ("pending", "Pending"),
                            ("failed", "Failed"),
                            ("unknown", "Unknown"),
                        ],
                        default="unknown",
                        max_length=16,
                    ),
                ),
                (
                    "health_status",
                    models.CharField(
                        choices=[
                            ("healthy", "Healthy"),
                            ("unhealthy", "Unhealthy"),
                            ("unknown", "Unknown"),
                        ],
                        default="unknown",
                        help_text="Computed by the source independently of status.",
                        max_length=16,
                    ),
                ),
                (
                    "namespace",
                    models.CharField(
                        blank=True,
                        help_text="Kubernetes namespace, Proxmox node name, ...",
                        max_length=255,
                        null=True,
                    ),
                ),
                ("spec", models.JSONField(blank=True, default=dict)),
                ("last_updated_at", models.DateTimeField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
            ],
            options={
                "db_table": "workloads",
                "ordering": ["namespace", "name"],
                "indexes": [
                    models.Index(fields=["status"], name="workloads_status_idx"),
                    models.Index(fields=["type"], name="workloads_type_idx"),
                    models.Index(fields=["namespace"], name="workloads_namespace_idx"),
                    models.Index(fields=["health_status"], name="workloads_health_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SyncRun",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "trigger",
                    models.CharField(
                        choices=[("interval", "Interval timer"), ("manual", "Manual trigger")],
                        max_length=16,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("completed", "Completed"),
                            ("partial", "Partial (some sources failed)"),
                            ("failed", "Failed"),
                        ],
                        max_length=16,
                    ),
                ),
                ("started_at", models.DateTimeField()),
                ("completed_at", models.DateTimeField()),
                ("hosts_added", models.IntegerField(default=0)),
                ("hosts_updated", models.IntegerField(default=0)),
                ("workloads_added", models.IntegerField(default=0)),
                ("workloads_updated", models.IntegerField(default=0)),
                ("hosts_marked_stale", models.IntegerField(default=0)),
                ("workloads_marked_stale", models.IntegerField(default=0)),
                (
                    "source_failures",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="List of {source, stage, error} for sources that failed in whole or in part.",
                    ),
                ),
                ("error_message", models.TextField(blank=True, default="")),
                (
                    "error_stage",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Stage that aborted the cycle, e.g. 'store'.",
                        max_length=32,
                    ),
                ),
            ],
            options={
                "db_table": "sync_runs",
                "ordering": ["-started_at"],
                "indexes": [
                    models.Index(fields=["-started_at"], name="sync_runs_started_idx"),
                    models.Index(fields=["status"], name="sync_runs_status_idx"),
                ],
            },
        ),
    ]
