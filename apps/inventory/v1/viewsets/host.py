"""Host viewset -- read-only. Hosts are written by the reconciler, never via the API."""
from django_filters import rest_framework as filters
from rest_framework.mixins import ListModelMixin, RetrieveModelMixin
from rest_framework.permissions import IsAuthenticated
from rest_framework.viewsets import GenericViewSet

from apps.inventory.models import Host, HostStatus, HostType
from apps.inventory.v1.serializers import HostSerializer


class HostFilter(filters.FilterSet):
    status = filters.ChoiceFilter(choices=HostStatus.choices)
    type = filters.ChoiceFilter(choices=HostType.choices)
    last_seen_after = filters.DateTimeFilter(field_name="last_seen_at", lookup_expr="gte")
    last_seen_before = filters.DateTimeFilter(field_name="last_seen_at", lookup_expr="lte")

    class Meta:
        model = Host
        fields = ["status", "type", "cluster"]


class HostViewSet(ListModelMixin, RetrieveModelMixin, GenericViewSet):
    """
    Filtering examples:
        ?status=online
        ?type=k8s-node&cluster=homelab
        ?search=pve
    """

    queryset = Host.objects.all()
    serializer_class = HostSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = HostFilter
    search_fields = ["name"]
    ordering_fields = ["name", "status", "type", "cluster", "last_seen_at", "updated_at"]
