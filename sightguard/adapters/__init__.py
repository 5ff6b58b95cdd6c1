"""
Adapters for SightGuard hexagonal architecture.

This module contains the concrete implementations of port interfaces
that handle external I/O and infrastructure concerns.
"""

from .storage import SQLiteTrackingStore, SQLiteNotificationStore
from .geocoding.nominatim import NominatimGeocoder

__all__ = ["SQLiteTrackingStore", "SQLiteNotificationStore", "NominatimGeocoder"]
