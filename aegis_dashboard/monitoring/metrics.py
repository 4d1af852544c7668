"""Prometheus metrics definitions for the Aegis dashboard."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

UPSTREAM_READS = Counter(
    "upstream_reads_total",
    "Total reads against external integrations by outcome.",
    labelnames=("integration", "operation", "outcome"),
)

UPSTREAM_READ_DURATION = Histogram(
    "upstream_read_duration_seconds",
    "Distribution of external integration read durations in seconds.",
    labelnames=("integration",),
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
)

VENDOR_CHECKS = Counter(
    "vendor_status_checks_total",
    "Vendor health evaluations grouped by resulting status.",
    labelnames=("status",),
)

STORE_OPERATIONS = Counter(
    "entity_store_operations_total",
    "Entity store operations grouped by entity type and operation.",
    labelnames=("entity_type", "operation"),
)


def record_upstream_read(integration: str, operation: str, outcome: str) -> None:
    """Increment the upstream read counter with the supplied labels."""

    UPSTREAM_READS.labels(integration=integration, operation=operation, outcome=outcome).inc()


def observe_upstream_duration(integration: str, duration_seconds: float) -> None:
    """Record the duration of an upstream read in seconds."""

    UPSTREAM_READ_DURATION.labels(integration=integration).observe(max(duration_seconds, 0.0))


def record_vendor_check(status: str) -> None:
    """Increment the vendor check counter for the resulting status."""

    VENDOR_CHECKS.labels(status=status).inc()


def record_store_operation(entity_type: str, operation: str) -> None:
    """Increment the store operation counter."""

    STORE_OPERATIONS.labels(entity_type=entity_type, operation=operation).inc()
