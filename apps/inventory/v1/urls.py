"""URL configuration for the inventory v1 API, mounted at /api/v1/inventory/."""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from apps.inventory.v1.views import (
    InventoryRefreshView,
    InventorySourcesView,
    InventoryStatsView,
    InventoryView,
)
from apps.inventory.v1.viewsets import HostViewSet, SyncRunViewSet, WorkloadViewSet

router = DefaultRouter()
# GET /api/v1/inventory/ returns the inventory itself, not a router index
router.include_root_view = False

router.register(r'hosts', HostViewSet, basename='host')
router.register(r'workloads', WorkloadViewSet, basename='workload')
router.register(r'sync-runs', SyncRunViewSet, basename='syncrun')

urlpatterns = [
    path('', InventoryView.as_view(), name='inventory'),
    path('stats/', InventoryStatsView.as_view(), name='inventory-stats'),
    path('sources/', InventorySourcesView.as_view(), name='inventory-sources'),
    path('refresh/', InventoryRefreshView.as_view(), name='inventory-refresh'),
    path('', include(router.urls)),
]
