"""
Core domain models and pure functions for SightGuard.

This module contains the domain models and pure business logic
that are independent of external I/O and infrastructure concerns.
"""

from .models import (
    Accepted, AnonymousReport, Device, DeviceStatus, Notification, Observation,
    ObservationStats, Outcome, Rejected, RejectReason, TheftReport, TheftReportStatus,
)
from .ghosts import make_ghosts
from .alerting import should_alert, compose_notification

__all__ = [
    "Accepted", "AnonymousReport", "Device", "DeviceStatus", "Notification", "Observation",
    "ObservationStats", "Outcome", "Rejected", "RejectReason", "TheftReport", "TheftReportStatus",
    "make_ghosts", "should_alert", "compose_notification",
]
