"""Workload viewset -- read-only."""
from django_filters import rest_framework as filters
from rest_framework.mixins import ListModelMixin, RetrieveModelMixin
from rest_framework.permissions import IsAuthenticated
from rest_framework.viewsets import GenericViewSet

from apps.inventory.models import HealthStatus, Workload, WorkloadStatus, WorkloadType
from apps.inventory.v1.serializers import WorkloadSerializer


class WorkloadFilter(filters.FilterSet):
    status = filters.ChoiceFilter(choices=WorkloadStatus.choices)
    type = filters.ChoiceFilter(choices=WorkloadType.choices)
    health_status = filters.ChoiceFilter(choices=HealthStatus.choices)
    host_id = filters.UUIDFilter()

    class Meta:
        model = Workload
        fields = ["status", "type", "namespace", "health_status", "host_id"]


class WorkloadViewSet(ListModelMixin, RetrieveModelMixin, GenericViewSet):
    """
    Filtering examples:
        ?namespace=default&type=k8s-pod
        ?health_status=unhealthy
        ?host_id=<uuid>
    """

    queryset = Workload.objects.all()
    serializer_class = WorkloadSerializer
    permission_classes = [IsAuthenticated]
    filterset_class = WorkloadFilter
    search_fields = ["name", "namespace"]
    ordering_fields = ["name", "namespace", "status", "health_status", "updated_at"]
