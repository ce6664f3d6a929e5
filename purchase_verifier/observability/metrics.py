"""
Metrics Collection with Prometheus.

Counts verification outcomes per product type.
"""

from enum import Enum

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram


class MetricLabels(str, Enum):
    """Standard metric label names."""

    PRODUCT_TYPE = "product_type"
    OUTCOME = "outcome"


class VerificationMetrics:
    """
    Metrics for purchase verification.

    Outcomes: confirmed, not_entitled, remote_error, confirmation_error.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize Prometheus metrics on the given (or default) registry."""
        registry = registry if registry is not None else REGISTRY

        self.verifications_total = Counter(
            "purchase_verifications_total",
            "Total purchase verifications by outcome",
            [MetricLabels.PRODUCT_TYPE.value, MetricLabels.OUTCOME.value],
            registry=registry,
        )

        self.verification_duration_seconds = Histogram(
            "purchase_verification_duration_seconds",
            "Purchase verification duration in seconds (remote check and confirmation)",
            [MetricLabels.PRODUCT_TYPE.value],
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
            registry=registry,
        )

    def record_verification(self, product_type: str, outcome: str, duration: float) -> None:
        """Record a finished verification."""
        self.verifications_total.labels(product_type=product_type, outcome=outcome).inc()
        self.verification_duration_seconds.labels(product_type=product_type).observe(duration)


# Global metrics instance
metrics = VerificationMetrics()
