from django.urls import include, path

from .v1 import urls as v1_urls
from .views import APIRootView, HealthView, LiveView, MetricsView, PingView, ReadyView

urlpatterns = [
    path("", APIRootView.as_view(view_name="infra-inventory"), name="api-root"),
    path("ping/", PingView.as_view(), name="ping"),
    path("health/", HealthView.as_view(), name="health"),
    path("health/ready/", ReadyView.as_view(), name="health-ready"),
    path("health/live/", LiveView.as_view(), name="health-live"),
    path("metrics/", MetricsView.as_view(), name="metrics"),
    path("api/v1/", include(v1_urls)),
]
