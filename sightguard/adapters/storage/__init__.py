"""
Storage adapters for SightGuard hexagonal architecture.

This module contains the SQLite-based repositories for devices,
theft reports, observations and owner notifications.
"""

from .sqlite_tracking import SQLiteTrackingStore
from .sqlite_notifications import SQLiteNotificationStore

__all__ = ["SQLiteTrackingStore", "SQLiteNotificationStore"]
