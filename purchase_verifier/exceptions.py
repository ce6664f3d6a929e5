"""
Exception Classes - Strongly typed exception hierarchy.

NO DICTIONARIES - All exceptions have typed attributes.
"""


class VerificationError(Exception):
    """Base exception for all purchase verification errors."""

    pass


class RemoteVerificationError(VerificationError):
    """Raised when the remote store verification call fails."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Remote verification failed: {message}")


class ConfirmationError(VerificationError):
    """Raised by confirmation callbacks when crediting a verified purchase fails."""

    def __init__(self, catalog_id: str, order_id: str, message: str) -> None:
        self.catalog_id = catalog_id
        self.order_id = order_id
        self.message = message
        super().__init__(f"Confirmation failed for {catalog_id} (order {order_id}): {message}")


class UnknownProductTypeError(VerificationError):
    """Raised when a verification request names an unsupported product type."""

    def __init__(self, product_type: object) -> None:
        self.product_type = product_type
        super().__init__(f"Unknown product type: {product_type!r}")


class ConfigurationError(VerificationError):
    """Raised when store credentials or settings are missing or invalid."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Configuration error: {message}")
