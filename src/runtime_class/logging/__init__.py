"""Structured logging utilities."""

from .events import JsonlEventLogger, SyncEvent, utc_timestamp

__all__ = ["JsonlEventLogger", "SyncEvent", "utc_timestamp"]
