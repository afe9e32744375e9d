from .api_root import APIRootView
from .health import HealthView, LiveView, ReadyView
from .metrics import MetricsView
from .ping import PingView

__all__ = ["PingView", "HealthView", "ReadyView", "LiveView", "MetricsView", "APIRootView"]
