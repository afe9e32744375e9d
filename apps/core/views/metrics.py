from django.http import HttpResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from rest_framework.permissions import AllowAny
from rest_framework.views import APIView

from apps.core.metrics import REGISTRY


class MetricsView(APIView):
    """Prometheus scrape endpoint, in the text exposition format."""

    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return HttpResponse(generate_latest(REGISTRY), content_type=CONTENT_TYPE_LATEST)
