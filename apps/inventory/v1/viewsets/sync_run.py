"""
SyncRun viewset -- read-only list/detail.

Sync runs are recorded by the scheduler after every cycle; trigger a new
one with ``POST /api/v1/inventory/refresh/``.
"""
from rest_framework.mixins import ListModelMixin, RetrieveModelMixin
from rest_framework.permissions import IsAuthenticated
from rest_framework.viewsets import GenericViewSet

from apps.inventory.models import SyncRun
from apps.inventory.v1.serializers import SyncRunSerializer


class SyncRunViewSet(ListModelMixin, RetrieveModelMixin, GenericViewSet):
    queryset = SyncRun.objects.all()
    serializer_class = SyncRunSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["status", "trigger"]
    ordering_fields = ["started_at", "completed_at", "status"]
