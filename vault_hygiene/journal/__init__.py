"""Best-effort journals written alongside vault mutations."""

from .audit import AuditLog
from .timeline import TimelineRecorder

__all__ = ["AuditLog", "TimelineRecorder"]
