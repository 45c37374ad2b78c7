"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Admission metrics
admission_requests = Counter(
    'admission_requests_total',
    'Total registration admission attempts',
    ['result']  # admitted, downgraded, duplicate, fully_booked, error
)

admission_latency = Histogram(
    'admission_latency_seconds',
    'Registration admission latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

seat_claim_retries = Counter(
    'seat_claim_retries_total',
    'Seat claims lost to a concurrent admission and re-resolved'
)

tier_occupancy = Gauge(
    'tier_occupancy',
    'Admitted registrants per seat tier',
    ['tier']
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set/invalidate, hit/miss/ok/error
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_admission(result: str):
    """Record admission outcome. Result: admitted, downgraded, duplicate, fully_booked, error"""
    admission_requests.labels(result=result).inc()


def record_seat_claim_retry():
    seat_claim_retries.inc()


def record_tier_occupancy(occupancy: dict[int, int]):
    """Publish the latest known occupancy per tier level."""
    for level, count in occupancy.items():
        tier_occupancy.labels(tier=str(level)).set(count)


def record_cache_operation(operation: str, result: str):
    """Record cache operation. Result: hit/miss for get, ok/error otherwise."""
    cache_operations.labels(operation=operation, result=result).inc()
