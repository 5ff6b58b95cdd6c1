"""
SightGuard: anonymous sighting ingestion for stolen devices.
"""

__version__ = "0.1.0"
