"""
Port interfaces for SightGuard hexagonal architecture.

This module defines the port interfaces (Protocols) that define
the contracts between the core domain and external adapters.
"""

from .repository import DeviceRepositoryPort, TheftReportRepositoryPort, ObservationRepositoryPort
from .notify import NotificationPort
from .geocode import ReverseGeocoderPort
from .validate import ReportValidatorPort

__all__ = [
    "DeviceRepositoryPort", "TheftReportRepositoryPort", "ObservationRepositoryPort",
    "NotificationPort", "ReverseGeocoderPort", "ReportValidatorPort",
]
