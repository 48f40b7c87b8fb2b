"""
Prometheus metrics for the chat API.

This module provides:
- HTTP request counter (method, path, status)
- Request latency histogram (method, path)
- Add-message outcome counter (result)
- Real-time event counter (event)

Metrics are stored in-memory using prometheus-client.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST


# =============================================================================
# Metric Definitions
# =============================================================================

# HTTP request counter with labels for method, path, and status code
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=["method", "path", "status"]
)

# Add-message outcome counter
# result: created, invalid_request, invalid_body, error
message_add_total = Counter(
    "message_add_total",
    "Total add-message outcomes",
    labelnames=["result"]
)

# Events handed to the real-time notifier
realtime_events_total = Counter(
    "realtime_events_total",
    "Total real-time events published",
    labelnames=["event"]
)

# Request latency histogram in seconds
request_latency_seconds = Histogram(
    "request_latency_seconds",
    "Request latency in seconds",
    labelnames=["method", "path"]
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_http_request(method: str, path: str, status: int, latency_seconds: float) -> None:
    """
    Record an HTTP request in metrics.

    Args:
        method: HTTP method (GET, POST, etc.)
        path: Request path
        status: HTTP status code
        latency_seconds: Request processing time in seconds
    """
    # Usernames in /getUser/{username} would make labels unbounded
    normalized_path = path.split("?")[0]
    for prefix in ("/getUser/", "/deleteUser/"):
        head, sep, _ = normalized_path.partition(prefix)
        if sep:
            normalized_path = f"{head}{prefix}{{username}}"
            break

    http_requests_total.labels(
        method=method,
        path=normalized_path,
        status=str(status)
    ).inc()

    request_latency_seconds.labels(
        method=method,
        path=normalized_path
    ).observe(latency_seconds)


def record_message_outcome(result: str) -> None:
    """
    Record an add-message outcome.

    Args:
        result: Processing result - one of:
            - "created": Message stored and broadcast
            - "invalid_request": messageToAdd missing
            - "invalid_body": messageToAdd failed validation
            - "error": Persistence failed
    """
    message_add_total.labels(result=result).inc()


def record_realtime_event(event: str) -> None:
    realtime_events_total.labels(event=event).inc()


def get_metrics() -> bytes:
    """
    Generate Prometheus exposition format metrics.

    Returns:
        Metrics in Prometheus text format as bytes
    """
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
