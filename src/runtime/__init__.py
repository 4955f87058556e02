from .context import RuntimeContext, build_context
from .session import MonitoringSession, MonitoringStartError

__all__ = ["RuntimeContext", "build_context", "MonitoringSession", "MonitoringStartError"]
