"""
Metrics definitions for SightGuard.

This module defines Prometheus metrics for monitoring
the anonymous report pipeline and the retention jobs.
"""

from prometheus_client import Counter, Histogram, Gauge

# 카운터 메트릭
reports_received = Counter(
    "reports_received_total",
    "Number of anonymous reports received"
)

reports_rejected = Counter(
    "reports_rejected_total",
    "Number of anonymous reports silently dropped",
    ["reason"]
)

observations_recorded = Counter(
    "observations_recorded_total",
    "Number of real observations persisted"
)

ghosts_generated = Counter(
    "ghost_observations_total",
    "Number of ghost observations persisted"
)

alerts_dispatched = Counter(
    "owner_alerts_total",
    "Number of owner alerts handed to the notification subsystem"
)

alert_failures = Counter(
    "owner_alert_failures_total",
    "Number of owner alerts that could not be created"
)

geocode_fallbacks = Counter(
    "geocode_fallbacks_total",
    "Reverse geocoding lookups that fell back to the placeholder text"
)

retention_deleted = Counter(
    "retention_deleted_total",
    "Rows deleted by retention sweeps",
    ["kind"]
)

retention_failures = Counter(
    "retention_failures_total",
    "Retention sweeps that failed and will retry at the next run",
    ["kind"]
)

# 히스토그램 메트릭
process_seconds = Histogram(
    "report_process_duration_seconds",
    "Time spent processing one anonymous report",
    buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0]
)

geocode_seconds = Histogram(
    "geocode_duration_seconds",
    "Time spent on reverse geocoding",
    buckets=[0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0]
)

# 게이지 메트릭
queue_depth = Gauge(
    "report_queue_depth",
    "Current depth of the report queue"
)
