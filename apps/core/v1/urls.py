from django.urls import include, path

from apps.core.views import APIRootView

urlpatterns = [
    path("", APIRootView.as_view(view_name="v1"), name="v1-root"),
    path("inventory/", include("apps.inventory.v1.urls")),
]
