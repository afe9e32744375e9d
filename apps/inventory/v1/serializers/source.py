from rest_framework import serializers


class SourceKindSerializer(serializers.Serializer):
    """A source class known to the registry."""

    kind = serializers.CharField()
    display_name = serializers.CharField()
    class_path = serializers.CharField(source="class")


class ConfiguredSourceSerializer(serializers.Serializer):
    """One INVENTORY_SOURCES entry. The kind-specific config (tokens, URLs) is never exposed."""

    name = serializers.CharField()
    kind = serializers.CharField()
    enabled = serializers.BooleanField()
    registered = serializers.BooleanField()
