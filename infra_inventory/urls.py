"""
Top-level URL configuration.

Loading order:

1. `apps/urls.py` - service-level patterns that must match first
2. `apps/core/urls.py` - ping, health and the /api/v1/ tree
3. DRF login/logout views for the browsable API
4. The read-only Django admin
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("", include("apps.urls")),
    path("", include("apps.core.urls")),
    path("api-auth/", include("rest_framework.urls")),
    path("admin/", admin.site.urls),
]
