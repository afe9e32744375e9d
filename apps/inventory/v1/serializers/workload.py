from rest_framework import serializers

from apps.inventory.models import Workload


class WorkloadSerializer(serializers.ModelSerializer):
    class Meta:
        model = Workload
        fields = [
            "id",
            "name",
            "type",
            "host_id",
            "status",
            "health_status",
            "namespace",
            "spec",
            "last_updated_at",
            "metadata",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
