from .host import Host, HostStatus, HostType
from .sync_run import SyncRun
from .workload import HealthStatus, Workload, WorkloadStatus, WorkloadType

__all__ = [
    'HealthStatus',
    'Host',
    'HostStatus',
    'HostType',
    'SyncRun',
    'Workload',
    'WorkloadStatus',
    'WorkloadType',
]
