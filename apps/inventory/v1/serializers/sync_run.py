from rest_framework import serializers

from apps.inventory.models import SyncRun


class SyncRunSerializer(serializers.ModelSerializer):
    duration_seconds = serializers.FloatField(
        read_only=True,
        help_text="Elapsed seconds from start to completion.",
    )

    class Meta:
        model = SyncRun
        fields = [
            "id",
            "trigger",
            "status",
            "started_at",
            "completed_at",
            "duration_seconds",
            "hosts_added",
            "hosts_updated",
            "workloads_added",
            "workloads_updated",
            "hosts_marked_stale",
            "workloads_marked_stale",
            "source_failures",
            "error_message",
            "error_stage",
        ]
        read_only_fields = fields  # sync runs are recorded by the scheduler
