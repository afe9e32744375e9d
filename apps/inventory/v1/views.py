"""
Inventory-wide endpoints that are not tied to one model.

GET  /api/v1/inventory/          -> every host and workload
GET  /api/v1/inventory/stats/    -> counts
GET  /api/v1/inventory/sources/  -> registered source kinds and configured instances
POST /api/v1/inventory/refresh/  -> run one sync cycle now
"""
import logging

from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from inventory_sources import InventoryError, PersistenceFailure, SchedulerBusy, SourceSettings

from apps.inventory.models import HealthStatus, Host, Workload
from apps.inventory.scheduler import Trigger
from apps.inventory.tasks import configured_sources, get_registry, get_scheduler
from apps.inventory.v1.serializers import (
    ConfiguredSourceSerializer,
    HostSerializer,
    SourceKindSerializer,
    WorkloadSerializer,
)

logger = logging.getLogger("apps.inventory.views")


class InventoryView(APIView):
    """The whole inventory in one response, unpaginated."""

    permission_classes = [IsAuthenticated]

    def get_view_name(self):
        return "Inventory"

    def get(self, request):
        return Response({
            "hosts": HostSerializer(Host.objects.all(), many=True).data,
            "workloads": WorkloadSerializer(Workload.objects.all(), many=True).data,
        })


class InventoryStatsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({
            "total_hosts": Host.objects.count(),
            "total_workloads": Workload.objects.count(),
            "healthy_workloads": Workload.objects.filter(health_status=HealthStatus.HEALTHY).count(),
            "unhealthy_workloads": Workload.objects.filter(health_status=HealthStatus.UNHEALTHY).count(),
        })


class InventorySourcesView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        registry = get_registry()
        configured = []
        for item in configured_sources():
            settings = SourceSettings.from_dict(item)
            configured.append({
                "name": settings.name,
                "kind": settings.kind,
                "enabled": settings.enabled,
                "registered": registry.get(settings.kind) is not None,
            })
        return Response({
            "registered": SourceKindSerializer(registry.list_sources(), many=True).data,
            "configured": ConfiguredSourceSerializer(configured, many=True).data,
        })


class InventoryRefreshView(APIView):
    """
    Run one reconciliation cycle now and report what it changed.

    Response:
        200 with counts, change stats and per-source failures
        409 when a cycle is already running
        500 with the failing stage and operation when the store rejected the cycle,
            or with the stage alone for any other inventory error
    """

    permission_classes = [IsAdminUser]

    def post(self, request):
        try:
            report = get_scheduler().trigger(Trigger.MANUAL)
        except SchedulerBusy as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        except PersistenceFailure as exc:
            return Response(
                {"error": exc.message, "stage": exc.stage, "operation": exc.operation},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        except InventoryError as exc:
            logger.error("Manual refresh failed at %s stage: %s", exc.stage, exc)
            return Response({"error": str(exc), "stage": exc.stage}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        logger.info("Manual refresh by %s: %s", request.user, report.status)
        return Response(report.as_dict(), status=status.HTTP_200_OK)
