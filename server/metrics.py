"""Prometheus metrics for the note service.

All metric objects are defined here so they can be imported from any module.
"""

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# Note store metrics
# ---------------------------------------------------------------------------

NOTE_OPERATIONS = Counter(
    "notes_store_operations_total",
    "Total note store operations",
    ["operation", "outcome"],  # outcome: ok, not_found, error
)

NOTE_COUNT = Gauge(
    "notes_total",
    "Number of notes returned by the last list request",
)

# ---------------------------------------------------------------------------
# Assistant metrics
# ---------------------------------------------------------------------------

ASSISTANT_REQUESTS = Counter(
    "notes_assistant_requests_total",
    "Total AI assistant requests",
    ["action", "status"],
)

ASSISTANT_DURATION = Histogram(
    "notes_assistant_duration_seconds",
    "Duration of AI assistant calls in seconds",
    ["action"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)

ACTIVE_SESSIONS = Gauge(
    "notes_assistant_active_sessions",
    "Number of assistant chat sessions with history",
)

# ---------------------------------------------------------------------------
# HTTP request metrics
# ---------------------------------------------------------------------------

HTTP_REQUESTS = Counter(
    "notes_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_DURATION = Histogram(
    "notes_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0, 30.0, 60.0, 120.0),
)
