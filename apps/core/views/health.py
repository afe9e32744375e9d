from django.apps import apps
from django.conf import settings
from django.db import DatabaseError, connection
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView


def _check_database() -> str:
    try:
        connection.ensure_connection()
    except DatabaseError as e:
        return f"error: {str(e)}"
    return "ok"


class HealthView(APIView):
    """
    Health check endpoint to verify service health.

    Checks database connectivity and reports the inventory scheduler state.
    Only the database decides the overall status; a busy or stopped
    scheduler is informational.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        health_status: dict = {"status": "healthy", "checks": {}}

        # Database check
        health_status["checks"]["database"] = _check_database()
        if health_status["checks"]["database"] != "ok":
            health_status["status"] = "unhealthy"

        if getattr(settings, "HEALTH_CHECK_INCLUDE_SCHEDULER", True):
            scheduler = getattr(apps.get_app_config("inventory"), "scheduler", None)
            if scheduler is not None:
                health_status["checks"]["scheduler"] = scheduler.status()

        http_status = (
            status.HTTP_200_OK if health_status["status"] == "healthy" else status.HTTP_503_SERVICE_UNAVAILABLE
        )

        return Response(health_status, status=http_status)


class ReadyView(APIView):
    """Readiness: ready to take traffic once the database answers."""

    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        database = _check_database()
        ready = database == "ok"
        return Response(
            {"ready": ready, "timestamp": timezone.now().isoformat(), "checks": {"database": database}},
            status=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        )


class LiveView(APIView):
    """Liveness: the process is up and serving requests."""

    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return Response({"alive": True, "timestamp": timezone.now().isoformat()}, status=status.HTTP_200_OK)
