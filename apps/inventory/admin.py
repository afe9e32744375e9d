from django.contrib import admin

from apps.inventory.models import Host, SyncRun, Workload


class ReadOnlyAdmin(admin.ModelAdmin):
    """Inventory rows are owned by the reconciler; the admin only inspects them."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Host)
class HostAdmin(ReadOnlyAdmin):
    list_display = ["name", "type", "cluster", "status", "last_seen_at"]
    list_filter = ["status", "type", "cluster"]
    search_fields = ["name"]


@admin.register(Workload)
class WorkloadAdmin(ReadOnlyAdmin):
    list_display = ["name", "namespace", "type", "status", "health_status", "updated_at"]
    list_filter = ["status", "health_status", "type"]
    search_fields = ["name", "namespace"]


@admin.register(SyncRun)
class SyncRunAdmin(ReadOnlyAdmin):
    list_display = ["started_at", "trigger", "status", "hosts_added", "workloads_added", "error_stage"]
    list_filter = ["status", "trigger"]
