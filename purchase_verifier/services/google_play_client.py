"""
Google Play Remote Verification Client.

NO DICTIONARIES - All data uses strongly typed models.

Performs the network call against the Google Play Developer API
(androidpublisher v3) and returns typed results. Any failure surfaces as
RemoteVerificationError.
"""

import asyncio
import json
from typing import Any, Protocol

import httplib2
from google.oauth2 import service_account
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import HttpRequest

from purchase_verifier.exceptions import ConfigurationError, RemoteVerificationError
from purchase_verifier.models.google_play import (
    ProductPurchaseResult,
    PurchaseIdentifier,
    SubscriptionPurchaseResult,
)
from purchase_verifier.observability.logging import get_logger, redact_token

logger = get_logger(__name__)

ANDROID_PUBLISHER_SCOPE = "https://www.googleapis.com/auth/androidpublisher"
DEFAULT_TIMEOUT_SECONDS = 30.0


class RemoteVerificationClient(Protocol):
    """
    Remote verification protocol.

    Implementations must be safe to call concurrently and apply their own
    network timeout.
    """

    async def check_product(
        self, namespace: str, product_id: str, token: str
    ) -> ProductPurchaseResult:
        """
        Verify a one-time product purchase.

        Raises:
            RemoteVerificationError: If the remote call fails
        """
        ...

    async def check_subscription(
        self, namespace: str, subscription_id: str, token: str
    ) -> SubscriptionPurchaseResult:
        """
        Verify a recurring subscription.

        Raises:
            RemoteVerificationError: If the remote call fails
        """
        ...


def load_service_account_info(data: bytes | str | dict[str, Any]) -> dict[str, Any]:
    """
    Parse service account JSON.

    Raises:
        ConfigurationError: If the data is empty or not a JSON object
    """
    if isinstance(data, dict):
        info = data
    else:
        if not data:
            raise ConfigurationError("Google Play service account is empty")
        try:
            info = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ConfigurationError("Google Play service account is not valid JSON") from exc

    if not isinstance(info, dict):
        raise ConfigurationError("Google Play service account must be a JSON object")
    return info


class GooglePlayClient:
    """
    Google Play Developer API client for purchase and subscription checks.

    The discovery-built service is shared; every request executes on its own
    authorized HTTP transport, since httplib2 connections are not thread-safe.
    """

    def __init__(
        self,
        credentials: Any,
        service: Any | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """
        Initialize Google Play client.

        Args:
            credentials: Service account credentials scoped for androidpublisher
            service: Prebuilt androidpublisher resource (built from credentials if omitted)
            timeout: Network timeout in seconds for each API call
        """
        self.credentials = credentials
        self.timeout = timeout
        self.service = service or build(
            "androidpublisher", "v3", credentials=credentials, cache_discovery=False
        )

        logger.info("google_play_client_initialized", timeout=timeout)

    @classmethod
    def from_service_account(
        cls,
        data: bytes | str | dict[str, Any],
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> "GooglePlayClient":
        """
        Build a client from service account JSON.

        Raises:
            ConfigurationError: If the credentials cannot be loaded
        """
        info = load_service_account_info(data)
        try:
            credentials = service_account.Credentials.from_service_account_info(  # type: ignore[no-untyped-call]
                info,
                scopes=[ANDROID_PUBLISHER_SCOPE],
            )
        except (ValueError, KeyError) as exc:
            raise ConfigurationError(f"Invalid Google Play service account: {exc}") from exc

        return cls(credentials, timeout=timeout)

    async def check_product(
        self, namespace: str, product_id: str, token: str
    ) -> ProductPurchaseResult:
        """
        Verify a one-time product purchase with Google Play.

        Args:
            namespace: Android package name
            product_id: In-app product ID
            token: Purchase token issued to the device

        Returns:
            Product purchase result

        Raises:
            RemoteVerificationError: If verification fails
        """
        identifier = _identify(namespace, product_id, token)

        logger.info(
            "checking_google_play_product",
            package_name=identifier.namespace,
            product_id=identifier.catalog_id,
            token=redact_token(identifier.token),
        )

        request = (
            self.service.purchases()
            .products()
            .get(
                packageName=identifier.namespace,
                productId=identifier.catalog_id,
                token=identifier.token,
            )
        )
        result = await self._execute(request)

        try:
            # purchaseType: None=real purchase, 0=test, 1=promo, 2=rewarded
            purchase_type = result.get("purchaseType")
            verification = ProductPurchaseResult(
                order_id=result.get("orderId") or "",
                purchase_state=int(result["purchaseState"]),
                purchase_time_millis=int(result.get("purchaseTimeMillis", 0)),
                acknowledgement_state=int(result.get("acknowledgementState", 0)),
                consumption_state=int(result.get("consumptionState", 0)),
                purchase_type=int(purchase_type) if purchase_type is not None else None,
            )
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("google_play_product_response_malformed", error=str(exc))
            raise RemoteVerificationError(f"Malformed product response: {exc}") from exc

        logger.info(
            "google_play_product_checked",
            product_id=identifier.catalog_id,
            order_id=verification.order_id,
            purchase_state=verification.purchase_state,
            is_test=verification.is_test_purchase(),
        )
        return verification

    async def check_subscription(
        self, namespace: str, subscription_id: str, token: str
    ) -> SubscriptionPurchaseResult:
        """
        Verify a subscription with Google Play.

        Args:
            namespace: Android package name
            subscription_id: Subscription product ID
            token: Purchase token issued to the device

        Returns:
            Subscription purchase result (order_id empty when inactive)

        Raises:
            RemoteVerificationError: If verification fails
        """
        identifier = _identify(namespace, subscription_id, token)

        logger.info(
            "checking_google_play_subscription",
            package_name=identifier.namespace,
            subscription_id=identifier.catalog_id,
            token=redact_token(identifier.token),
        )

        request = (
            self.service.purchases()
            .subscriptions()
            .get(
                packageName=identifier.namespace,
                subscriptionId=identifier.catalog_id,
                token=identifier.token,
            )
        )
        result = await self._execute(request)

        try:
            payment_state = result.get("paymentState")
            verification = SubscriptionPurchaseResult(
                order_id=result.get("orderId") or "",
                start_time_millis=int(result.get("startTimeMillis", 0)),
                expiry_time_millis=int(result.get("expiryTimeMillis", 0)),
                auto_renewing=bool(result.get("autoRenewing", False)),
                payment_state=int(payment_state) if payment_state is not None else None,
            )
        except (TypeError, ValueError) as exc:
            logger.error("google_play_subscription_response_malformed", error=str(exc))
            raise RemoteVerificationError(f"Malformed subscription response: {exc}") from exc

        logger.info(
            "google_play_subscription_checked",
            subscription_id=identifier.catalog_id,
            order_id=verification.order_id,
            expiry_time_millis=verification.expiry_time_millis,
            auto_renewing=verification.auto_renewing,
        )
        return verification

    def _authorized_http(self) -> AuthorizedHttp:
        """Create a fresh authorized transport carrying the network timeout."""
        return AuthorizedHttp(self.credentials, http=httplib2.Http(timeout=self.timeout))

    async def _execute(self, request: HttpRequest) -> dict[str, Any]:
        """
        Execute an API request off the event loop.

        The transport is closed on every exit. On cancellation this closes the
        socket under the worker thread, which aborts the in-flight call.
        """
        http = self._authorized_http()
        try:
            result = await asyncio.to_thread(request.execute, http=http, num_retries=0)

        except HttpError as exc:
            error_content = exc.content.decode("utf-8") if exc.content else str(exc)
            logger.error(
                "google_play_verification_failed",
                status=exc.resp.status,
                error=error_content,
            )

            if exc.resp.status == 404:
                raise RemoteVerificationError("Purchase not found or invalid token") from exc
            elif exc.resp.status == 410:
                raise RemoteVerificationError("Purchase token expired") from exc
            else:
                raise RemoteVerificationError(f"Google Play API error: {error_content}") from exc

        except TimeoutError as exc:
            logger.error("google_play_verification_timeout", timeout=self.timeout)
            raise RemoteVerificationError(
                f"Google Play API timed out after {self.timeout}s"
            ) from exc

        except Exception as exc:
            logger.exception("google_play_verification_unexpected_error")
            raise RemoteVerificationError(f"Verification failed: {exc}") from exc

        finally:
            http.http.close()

        if not isinstance(result, dict):
            raise RemoteVerificationError("Google Play API returned an unexpected payload")
        return result


def _identify(namespace: str, catalog_id: str, token: str) -> PurchaseIdentifier:
    """Validate the identifier triple before any network call."""
    try:
        return PurchaseIdentifier(namespace=namespace, catalog_id=catalog_id, token=token)
    except ValueError as exc:
        logger.warning("google_play_request_rejected", error=str(exc))
        raise RemoteVerificationError(str(exc)) from exc
