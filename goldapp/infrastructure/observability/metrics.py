"""Prometheus metrics for order outcomes, degraded mode and backend latency"""

from prometheus_client import Counter, Histogram

# Order metrics
order_counter = Counter(
    "goldapp_orders_total",
    "Orders submitted to the backend",
    ["side", "outcome"],  # outcome: pending | simulated | rejected | error
)

validation_failure_counter = Counter(
    "goldapp_order_validation_failures_total",
    "Orders stopped before submission",
    ["side", "code"],
)

# Payment metrics
payment_session_counter = Counter(
    "goldapp_payment_sessions_total",
    "Mock checkout sessions by terminal state",
    ["outcome"],  # success | cancelled
)

reconciliation_counter = Counter(
    "goldapp_reconciliations_total",
    "Payment verification outcomes",
    ["outcome"],  # verified | verification_failed
)

status_update_failure_counter = Counter(
    "goldapp_status_update_failures_total",
    "Best-effort transaction status updates that failed after verification",
)

# Backend metrics
degraded_fallback_counter = Counter(
    "goldapp_degraded_fallback_total",
    "Backend calls answered from fallback/cached/simulated data",
    ["operation"],
)

backend_latency_histogram = Histogram(
    "goldapp_backend_request_seconds",
    "Backend API response time",
    ["operation"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_order(side: str, outcome: str) -> None:
    order_counter.labels(side=side, outcome=outcome).inc()
