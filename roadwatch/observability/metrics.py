"""
Metrics definitions for RoadWatch.

This module defines Prometheus metrics for monitoring
the report pipeline and scheduled jobs.
"""

from prometheus_client import Counter, Histogram, Gauge

# 카운터 메트릭
reports_created = Counter(
    "reports_created_total",
    "Number of reports persisted",
    ["zone", "severity", "source"]
)

status_updates = Counter(
    "report_status_updates_total",
    "Number of report status changes",
    ["status"]
)

candidates_proposed = Counter(
    "candidates_proposed_total",
    "Candidate reports proposed from photo detections"
)

candidates_resolved = Counter(
    "candidates_resolved_total",
    "Candidate reports confirmed or discarded by the user",
    ["outcome"]
)

inference_failures = Counter(
    "inference_failures_total",
    "Failed calls to the image inference service"
)

notifications_sent = Counter(
    "notifications_sent_total",
    "Notifications delivered to the broker",
    ["topic"]
)

job_runs = Counter(
    "job_runs_total",
    "Scheduled job executions",
    ["job", "result"]
)

# 히스토그램 메트릭
inference_seconds = Histogram(
    "inference_duration_seconds",
    "Time spent waiting for the inference service",
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)

classify_seconds = Histogram(
    "classify_duration_seconds",
    "Time spent estimating and zoning a batch of detections",
    buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05]
)

# 게이지 메트릭
pending_candidates = Gauge(
    "pending_candidates",
    "Candidate reports awaiting confirmation"
)

outbox_size = Gauge(
    "outbox_size",
    "Current number of notifications in outbox"
)

uptime_seconds = Gauge(
    "uptime_seconds",
    "Service uptime in seconds"
)
