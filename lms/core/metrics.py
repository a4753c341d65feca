"""Prometheus metric inventory.

Every metric the service exports is declared here; the modules that own
the behavior import and increment them.  HTTP metrics are fed by
MetricsMiddleware, the quiz metrics by the service layer.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Quiz engine metrics
# ---------------------------------------------------------------------------

SUBMISSIONS_RECORDED = Counter(
    "quiz_submissions_total",
    "Quiz submissions recorded, by quiz type and resulting status",
    ["quiz_type", "status"],
)

GRADES_POSTED = Counter(
    "quiz_grades_posted_total",
    "Finalized quiz grades, by outcome",
    ["outcome"],  # passed|failed|practice
)

RESET_REQUESTS = Counter(
    "quiz_reset_requests_total",
    "Reset request transitions",
    ["action"],  # requested|approved|rejected
)

OPERATION_FAILURES = Counter(
    "operation_failures_total",
    "Service operations that returned an unsuccessful result",
    ["operation", "kind"],
)

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Course-status cache lookups and invalidations",
    ["operation"],  # hit|miss|invalidate
)

QUEUE_DEPTH = Gauge(
    "task_queue_depth",
    "Number of tasks waiting in a queue",
    ["queue_name"],
)
