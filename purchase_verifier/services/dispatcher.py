"""
Verification Dispatcher - Business policy on top of remote store checks.

Classifies a request by product type, runs exactly one remote check,
decides whether the purchase entitles the user, and invokes the caller's
confirmation callback only for valid purchases. Remote and callback
exceptions reach the caller unchanged.
"""

import inspect
import time
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError

from purchase_verifier.config import Settings, get_settings
from purchase_verifier.exceptions import ConfigurationError, UnknownProductTypeError
from purchase_verifier.models.google_play import (
    ProductType,
    SubscriptionPurchaseResult,
    VerificationOutcome,
)
from purchase_verifier.observability.logging import get_logger, redact_token
from purchase_verifier.observability.metrics import VerificationMetrics, metrics
from purchase_verifier.services.google_play_client import (
    GooglePlayClient,
    RemoteVerificationClient,
)

# (catalog_id, order_id); raise to signal failure
ConfirmCallback = Callable[[str, str], Awaitable[None] | None]


class VerificationDispatcher:
    """
    Stateless purchase verification dispatcher.

    Safe for concurrent use as long as the remote client is. Cancellation and
    timeouts belong to the caller's asyncio context.
    """

    def __init__(
        self,
        client: RemoteVerificationClient,
        logger: Any | None = None,
        metrics: VerificationMetrics | None = None,
        default_namespace: str = "",
    ) -> None:
        """
        Initialize dispatcher.

        Args:
            client: Remote verification client (read-only after construction)
            default_namespace: Package name used when a call passes no namespace
            logger: Structured logger (defaults to this module's logger)
            metrics: Prometheus metrics sink (no metrics when omitted)
        """
        self.client = client
        self.logger = logger or get_logger(__name__)
        self.metrics = metrics
        self.default_namespace = default_namespace

    @classmethod
    def from_service_account(
        cls,
        data: bytes,
        timeout: float = 30.0,
        logger: Any | None = None,
        metrics: VerificationMetrics | None = None,
        default_namespace: str = "",
    ) -> "VerificationDispatcher":
        """
        Build a dispatcher backed by Google Play from service account bytes.

        Misconfiguration is fatal: ConfigurationError is not meant to be
        caught and retried.

        Raises:
            ConfigurationError: If the service account data is invalid
        """
        client = GooglePlayClient.from_service_account(data, timeout=timeout)
        return cls(client, logger=logger, metrics=metrics, default_namespace=default_namespace)

    async def verify(
        self,
        product_type: ProductType | int,
        namespace: str | None,
        catalog_id: str,
        token: str,
        confirm: ConfirmCallback,
    ) -> VerificationOutcome:
        """
        Verify a purchase and confirm it when valid.

        Args:
            product_type: ONE_TIME_PRODUCT or SUBSCRIPTION
            namespace: App package name (None or empty uses default_namespace)
            catalog_id: Product or subscription ID
            token: Purchase token
            confirm: Called once with (catalog_id, order_id) for a valid purchase

        Returns:
            CONFIRMED if the callback ran and succeeded, NOT_ENTITLED if the
            purchase is pending/canceled or the subscription is inactive

        Raises:
            UnknownProductTypeError: If product_type is not a known selector
            RemoteVerificationError: Propagated unchanged from the remote client
            Exception: Whatever the confirm callback raises, unchanged
        """
        kind = _coerce_product_type(product_type)
        namespace = self._namespace(namespace)
        log = self.logger.bind(
            product_type=kind.name.lower(),
            namespace=namespace,
            catalog_id=catalog_id,
        )
        log.info("purchase_verification_started", token=redact_token(token))

        start = time.perf_counter()
        stage = "remote_error"
        try:
            if kind is ProductType.ONE_TIME_PRODUCT:
                product = await self.client.check_product(namespace, catalog_id, token)
                order_id = product.order_id
                entitled = product.is_paid()
                log = log.bind(purchase_state=product.purchase_state)
            else:
                subscription = await self.client.check_subscription(namespace, catalog_id, token)
                order_id = subscription.order_id
                entitled = subscription.is_active()

            if not entitled:
                log.info("purchase_not_entitled", order_id=order_id)
                self._record(kind, VerificationOutcome.NOT_ENTITLED.value, start)
                return VerificationOutcome.NOT_ENTITLED

            stage = "confirmation_error"
            log.info("purchase_valid_confirming", order_id=order_id)
            result = confirm(catalog_id, order_id)
            if inspect.isawaitable(result):
                await result

        except Exception as exc:
            log.warning(
                "purchase_verification_failed",
                stage=stage,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            self._record(kind, stage, start)
            raise

        log.info("purchase_confirmed", order_id=order_id)
        self._record(kind, VerificationOutcome.CONFIRMED.value, start)
        return VerificationOutcome.CONFIRMED

    def _namespace(self, namespace: str | None) -> str:
        return namespace or self.default_namespace

    def _record(self, kind: ProductType, outcome: str, start: float) -> None:
        if self.metrics is not None:
            self.metrics.record_verification(
                kind.name.lower(), outcome, time.perf_counter() - start
            )

    async def verify_product(
        self, namespace: str | None, product_id: str, token: str, confirm: ConfirmCallback
    ) -> VerificationOutcome:
        """Verify a one-time product purchase."""
        return await self.verify(ProductType.ONE_TIME_PRODUCT, namespace, product_id, token, confirm)

    async def verify_subscription(
        self, namespace: str | None, subscription_id: str, token: str, confirm: ConfirmCallback
    ) -> VerificationOutcome:
        """Verify a subscription purchase."""
        return await self.verify(ProductType.SUBSCRIPTION, namespace, subscription_id, token, confirm)

    async def active_subscription_order_id(
        self, namespace: str | None, subscription_id: str, token: str
    ) -> str:
        """
        Check whether a subscription is active without confirming it.

        Returns:
            The order ID when active, empty string otherwise
        """
        subscription = await self.client.check_subscription(
            self._namespace(namespace), subscription_id, token
        )
        return subscription.order_id if subscription.is_active() else ""

    async def fetch_subscription(
        self, namespace: str | None, subscription_id: str, token: str
    ) -> SubscriptionPurchaseResult:
        """Return the raw subscription check result (diagnostics)."""
        return await self.client.check_subscription(
            self._namespace(namespace), subscription_id, token
        )


def build_dispatcher(settings: Settings | None = None) -> VerificationDispatcher:
    """
    Wire settings into a Google Play backed dispatcher.

    FAIL FAST: the service must not start without valid store credentials.

    Raises:
        ConfigurationError: If settings or credentials are missing or invalid
    """
    if settings is None:
        try:
            settings = get_settings()
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid settings: {exc}") from exc

    data = settings.service_account_bytes()
    if not data:
        raise ConfigurationError("GOOGLE_PLAY_SERVICE_ACCOUNT is required but empty or missing")

    return VerificationDispatcher.from_service_account(
        data,
        timeout=settings.google_play_timeout_seconds,
        metrics=metrics if settings.metrics_enabled else None,
        default_namespace=settings.google_play_package_name,
    )


def _coerce_product_type(product_type: ProductType | int) -> ProductType:
    """Map a raw selector onto ProductType."""
    if isinstance(product_type, bool):
        raise UnknownProductTypeError(product_type)
    try:
        return ProductType(product_type)
    except ValueError as exc:
        raise UnknownProductTypeError(product_type) from exc
