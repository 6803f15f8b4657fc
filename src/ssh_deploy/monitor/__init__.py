"""Continuous (monitor) mode."""

from .service import DEFAULT_TRIGGER_FILE, MonitorService
from .watcher import TriggerFileWatcher

__all__ = ["MonitorService", "TriggerFileWatcher", "DEFAULT_TRIGGER_FILE"]
