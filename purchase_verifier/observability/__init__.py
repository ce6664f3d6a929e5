"""
Observability module - Logging and Metrics.
"""

from purchase_verifier.observability.logging import (
    get_logger,
    log_context,
    redact_token,
    setup_logging,
)
from purchase_verifier.observability.metrics import VerificationMetrics, metrics

__all__ = [
    "get_logger",
    "log_context",
    "redact_token",
    "setup_logging",
    "metrics",
    "VerificationMetrics",
]
