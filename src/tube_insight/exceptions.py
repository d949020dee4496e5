"""Centralized exception hierarchy for the tube-insight package.

All domain-specific exceptions inherit from ``TubeInsightError`` so
callers can catch the entire family with a single ``except`` clause.

Malformed model output is deliberately absent from this hierarchy: it
degrades to normalized defaults instead of raising.
"""

from __future__ import annotations


class TubeInsightError(Exception):
    """Base exception for all tube-insight errors."""


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------


class ConfigurationError(TubeInsightError):
    """Raised when a required credential or setting is missing.

    Always raised before any network call is attempted.
    """


# ---------------------------------------------------------------------------
# Upstream errors
# ---------------------------------------------------------------------------


class UpstreamAPIError(TubeInsightError):
    """Raised when an upstream API returns an error body or is unreachable.

    The upstream ``error.message`` is kept verbatim as the exception message
    so it can be shown to the user as-is.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ChannelNotFoundError(UpstreamAPIError):
    """Raised when neither an ID lookup nor a search yields a channel."""


class GenerationError(TubeInsightError):
    """Raised when the generative-AI call itself fails after retries."""


# ---------------------------------------------------------------------------
# Commerce errors
# ---------------------------------------------------------------------------


class CommerceError(TubeInsightError):
    """Base exception for plan, coupon and payment operations."""


class InvalidCouponError(CommerceError):
    """Raised when a coupon code does not exist."""


class CouponAlreadyUsedError(CommerceError):
    """Raised when redeeming a coupon whose ``isUsed`` flag is already set."""


class InvalidPlanError(CommerceError):
    """Raised when a subscription plan ID is unknown."""


class PaymentFailedError(CommerceError):
    """Raised when the payment gateway reports a failed or cancelled payment."""


# ---------------------------------------------------------------------------
# Stored record errors
# ---------------------------------------------------------------------------


class RecordNotFoundError(TubeInsightError):
    """Raised when a stored record (instruction, folder, user) does not exist."""


class ProtectedRecordError(TubeInsightError):
    """Raised when deleting a record that must always exist."""


class StorageError(TubeInsightError):
    """Raised when the on-disk store cannot be read.

    Attributes:
        path: The store file that failed to decode.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(message)
