from .host import HostViewSet
from .sync_run import SyncRunViewSet
from .workload import WorkloadViewSet

__all__ = [
    'HostViewSet',
    'SyncRunViewSet',
    'WorkloadViewSet',
]
