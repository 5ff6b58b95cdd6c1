"""
Orchestrators for SightGuard.

This module contains the orchestrators that coordinate
the flow between ports and adapters.
"""
from .orchestrator import ReportOrchestrator

__all__ = ["ReportOrchestrator"]
