"""
URL configuration for the apps package.

Patterns here load before the individual app URLs (see
infra_inventory/urls.py). Use it for service-level overrides that must
match before app-defined routes.
"""

urlpatterns = []
