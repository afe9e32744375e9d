"""
Sync run tracking.

One row per reconciliation cycle: when it ran, what triggered it, what
it changed, and which sources failed. Rows are written after the
cycle's transaction has finished, so a failed cycle still leaves a
record behind.
"""

import uuid

from django.db import models


class SyncRun(models.Model):
    """A record of a single reconciliation cycle across all sources."""

    class Status(models.TextChoices):
        COMPLETED = "completed", "Completed"
        PARTIAL = "partial", "Partial (some sources failed)"
        FAILED = "failed", "Failed"

    class Trigger(models.TextChoices):
        INTERVAL = "interval", "Interval timer"
        MANUAL = "manual", "Manual trigger"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    trigger = models.CharField(max_length=16, choices=Trigger.choices)
    status = models.CharField(max_length=16, choices=Status.choices)

    started_at = models.DateTimeField()
    completed_at = models.DateTimeField()

    hosts_added = models.IntegerField(default=0)
    hosts_updated = models.IntegerField(default=0)
    workloads_added = models.IntegerField(default=0)
    workloads_updated = models.IntegerField(default=0)
    hosts_marked_stale = models.IntegerField(default=0)
    workloads_marked_stale = models.IntegerField(default=0)

    source_failures = models.JSONField(
        default=list,
        blank=True,
        help_text="List of {source, stage, error} for sources that failed in whole or in part.",
    )
    error_message = models.TextField(blank=True, default="")
    error_stage = models.CharField(
        max_length=32,
        blank=True,
        default="",
        help_text="Stage that aborted the cycle, e.g. 'store'.",
    )

    class Meta:
        db_table = "sync_runs"
        ordering = ["-started_at"]
        indexes = [
            models.Index(fields=["-started_at"], name="sync_runs_started_idx"),
            models.Index(fields=["status"], name="sync_runs_status_idx"),
        ]

    def __str__(self):
        return f"sync @ {self.started_at} [{self.status}]"

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()
