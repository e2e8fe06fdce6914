"""Prometheus metric definitions.

HTTP metrics are recorded by MetricsMiddleware for every route.  The
domain counters below are incremented at the points where the event
happens (login, identity resolution, lesson completion, notification
enqueue) and scraped from GET /metrics together with the HTTP ones.

Label values are kept to small fixed sets; never label by user id or
course id, since every distinct value creates a new time series.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

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

AUTH_LOGINS = Counter(
    "auth_logins_total",
    "Login attempts by outcome",
    ["outcome"],  # success|invalid_credentials|not_active
)

IDENTITY_RESOLUTIONS = Counter(
    "identity_resolutions_total",
    "Bearer token resolution results in the identity middleware",
    ["outcome"],  # anonymous|authenticated|rejected
)

LESSON_COMPLETIONS = Counter(
    "lesson_completions_total",
    "First-time lesson completions recorded on enrollments",
)

NOTIFICATIONS_ENQUEUED = Counter(
    "notifications_enqueued_total",
    "Email notifications handed to the task queue",
    ["template", "outcome"],  # outcome: queued|failed
)

QUEUE_DEPTH = Gauge(
    "task_queue_depth",
    "Number of tasks waiting in a queue",
    ["queue_name"],
)
