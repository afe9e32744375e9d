from rest_framework import serializers

from apps.inventory.models import Host


class HostSerializer(serializers.ModelSerializer):
    class Meta:
        model = Host
        fields = [
            "id",
            "name",
            "type",
            "cluster",
            "addresses",
            "status",
            "last_seen_at",
            "tags",
            "metadata",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields  # hosts are written by the reconciler only
