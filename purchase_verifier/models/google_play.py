"""
Google Play domain models - Immutable dataclasses for purchase verification.

NO DICTIONARIES - All data uses strongly typed models.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum


class ProductType(IntEnum):
    """Kind of catalog item being verified."""

    ONE_TIME_PRODUCT = 0
    SUBSCRIPTION = 1


class PurchaseState(IntEnum):
    """Google Play purchaseState values for one-time products."""

    PURCHASED = 0
    CANCELED = 1
    PENDING = 2


class VerificationOutcome(str, Enum):
    """Non-error result of a verification call."""

    CONFIRMED = "confirmed"  # Valid purchase, confirmation callback succeeded
    NOT_ENTITLED = "not_entitled"  # Pending/canceled product or inactive subscription


@dataclass(frozen=True)
class PurchaseIdentifier:
    """Validated (namespace, catalog id, token) triple sent to Google Play."""

    namespace: str
    catalog_id: str
    token: str

    def __post_init__(self) -> None:
        """Validate identifier fields."""
        if not self.namespace:
            raise ValueError("Package name required")
        if not self.catalog_id:
            raise ValueError("Product ID required")
        if not self.token:
            raise ValueError("Invalid purchase token")


@dataclass(frozen=True)
class ProductPurchaseResult:
    """Result of a Google Play one-time product check."""

    order_id: str
    purchase_state: int  # 0: purchased, 1: canceled, 2: pending
    purchase_time_millis: int = 0
    acknowledgement_state: int = 0  # 0: not acknowledged, 1: acknowledged
    consumption_state: int = 0  # 0: not consumed, 1: consumed
    purchase_type: int | None = None  # None: real, 0: test, 1: promo, 2: rewarded

    def is_paid(self) -> bool:
        """Check if purchase is paid and can be credited."""
        return self.purchase_state == PurchaseState.PURCHASED

    def is_test_purchase(self) -> bool:
        """Check if this is a test purchase (license tester account)."""
        return self.purchase_type == 0


@dataclass(frozen=True)
class SubscriptionPurchaseResult:
    """
    Result of a Google Play subscription check.

    A non-empty order_id is the only validity signal; Google Play omits it
    for subscriptions that are not currently active.
    """

    order_id: str
    start_time_millis: int = 0
    expiry_time_millis: int = 0
    auto_renewing: bool = False
    payment_state: int | None = None  # 0: pending, 1: received, 2: free trial, 3: deferred

    def is_active(self) -> bool:
        """Check if subscription currently entitles the user."""
        return bool(self.order_id)
