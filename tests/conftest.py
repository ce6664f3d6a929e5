"""
Pytest Configuration and Centralized Fixtures.

Provides reusable mocks for verification tests:
- Remote verification client with canned results
- Confirmation callbacks (sync and async)
- Dispatcher wired to the mocks
- Isolated Prometheus registry
"""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest
from prometheus_client import CollectorRegistry

# Keep settings deterministic regardless of the developer's shell
os.environ.setdefault("LOG_FORMAT", "console")
os.environ.setdefault("METRICS_ENABLED", "false")

from purchase_verifier.models.google_play import (
    ProductPurchaseResult,
    SubscriptionPurchaseResult,
)
from purchase_verifier.observability.metrics import VerificationMetrics
from purchase_verifier.services.dispatcher import VerificationDispatcher


# ============================================================================
# Result Fixtures
# ============================================================================


@pytest.fixture
def paid_product() -> ProductPurchaseResult:
    """Product purchase in purchased state."""
    return ProductPurchaseResult(
        order_id="GPA.1111-2222-3333-44444",
        purchase_state=0,
        purchase_time_millis=1700000000000,
    )


@pytest.fixture
def pending_product() -> ProductPurchaseResult:
    """Product purchase still pending payment."""
    return ProductPurchaseResult(order_id="", purchase_state=2)


@pytest.fixture
def active_subscription() -> SubscriptionPurchaseResult:
    """Active subscription."""
    return SubscriptionPurchaseResult(
        order_id="GPA.1234",
        start_time_millis=1700000000000,
        expiry_time_millis=1702592000000,
        auto_renewing=True,
        payment_state=1,
    )


@pytest.fixture
def inactive_subscription() -> SubscriptionPurchaseResult:
    """Subscription without an active order."""
    return SubscriptionPurchaseResult(order_id="")


# ============================================================================
# Collaborator Fixtures
# ============================================================================


@pytest.fixture
def remote_client(paid_product, active_subscription) -> MagicMock:
    """Mock remote verification client returning valid results by default."""
    client = MagicMock()
    client.check_product = AsyncMock(return_value=paid_product)
    client.check_subscription = AsyncMock(return_value=active_subscription)
    return client


@pytest.fixture
def confirm() -> AsyncMock:
    """Async confirmation callback that succeeds."""
    return AsyncMock(return_value=None)


@pytest.fixture
def metrics_registry() -> CollectorRegistry:
    """Isolated registry so metric values do not leak between tests."""
    return CollectorRegistry()


@pytest.fixture
def verification_metrics(metrics_registry: CollectorRegistry) -> VerificationMetrics:
    """Metrics bound to the isolated registry."""
    return VerificationMetrics(registry=metrics_registry)


@pytest.fixture
def dispatcher(remote_client: MagicMock, verification_metrics) -> VerificationDispatcher:
    """Dispatcher wired to the mock client and isolated metrics."""
    return VerificationDispatcher(remote_client, metrics=verification_metrics)
