"""
Purchase Verifier - Google Play purchase and subscription verification.
"""

from purchase_verifier.exceptions import (
    ConfigurationError,
    ConfirmationError,
    RemoteVerificationError,
    UnknownProductTypeError,
    VerificationError,
)
from purchase_verifier.models.google_play import ProductType, VerificationOutcome
from purchase_verifier.services.dispatcher import VerificationDispatcher, build_dispatcher

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "ConfirmationError",
    "ProductType",
    "RemoteVerificationError",
    "UnknownProductTypeError",
    "VerificationDispatcher",
    "VerificationError",
    "VerificationOutcome",
    "build_dispatcher",
]
