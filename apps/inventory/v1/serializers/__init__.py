from .host import HostSerializer
from .source import ConfiguredSourceSerializer, SourceKindSerializer
from .sync_run import SyncRunSerializer
from .workload import WorkloadSerializer

__all__ = [
    'ConfiguredSourceSerializer',
    'HostSerializer',
    'SourceKindSerializer',
    'SyncRunSerializer',
    'WorkloadSerializer',
]
