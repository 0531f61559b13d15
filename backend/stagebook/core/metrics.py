"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Confirmation race
confirm_attempts = Counter(
    'stagebook_confirm_attempts_total',
    'Booking confirmation attempts',
    ['result']  # success, conflict, rejected, error
)

confirm_latency = Histogram(
    'stagebook_confirm_latency_seconds',
    'Booking confirmation latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

# Slot generation
slots_created = Counter(
    'stagebook_slots_created_total',
    'Slots inserted',
    ['slot_type']  # DATE, WEEK
)

overlap_conflicts = Counter(
    'stagebook_overlap_conflicts_total',
    'Slot batches rejected for overlapping existing slots'
)

# Applications
applications = Counter(
    'stagebook_applications_total',
    'Artist applications by outcome',
    ['result']  # created, duplicate, slot_closed, withdrawn
)

# Notification fan-out
event_publish_errors = Counter(
    'stagebook_event_publish_errors_total',
    'Domain events that could not be published'
)


def metrics_endpoint() -> Response:
    """Prometheus scrape payload."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_confirm_attempt(result: str):
    """Result: success, conflict, rejected, error"""
    confirm_attempts.labels(result=result).inc()


def record_slots_created(slot_type: str, count: int):
    slots_created.labels(slot_type=slot_type).inc(count)


def record_application(result: str):
    applications.labels(result=result).inc()
