"""Unit tests for tube_insight.exceptions - hierarchy and attributes."""

from __future__ import annotations

import pytest

from tube_insight.exceptions import (
    ChannelNotFoundError,
    CommerceError,
    ConfigurationError,
    CouponAlreadyUsedError,
    GenerationError,
    InvalidCouponError,
    InvalidPlanError,
    PaymentFailedError,
    ProtectedRecordError,
    RecordNotFoundError,
    StorageError,
    TubeInsightError,
    UpstreamAPIError,
)


class TestHierarchy:
    """Every domain error is catchable as TubeInsightError."""

    @pytest.mark.parametrize(
        "exc_type",
        [
            ConfigurationError,
            UpstreamAPIError,
            ChannelNotFoundError,
            GenerationError,
            CommerceError,
            InvalidCouponError,
            CouponAlreadyUsedError,
            InvalidPlanError,
            PaymentFailedError,
            RecordNotFoundError,
            ProtectedRecordError,
            StorageError,
        ],
    )
    def test_subclass_of_base(self, exc_type: type[Exception]) -> None:
        assert issubclass(exc_type, TubeInsightError)

    @pytest.mark.parametrize(
        "exc_type",
        [InvalidCouponError, CouponAlreadyUsedError, InvalidPlanError, PaymentFailedError],
    )
    def test_commerce_family(self, exc_type: type[Exception]) -> None:
        assert issubclass(exc_type, CommerceError)

    def test_channel_not_found_is_upstream(self) -> None:
        assert issubclass(ChannelNotFoundError, UpstreamAPIError)


class TestUpstreamAPIError:
    """Attributes carried by upstream errors."""

    def test_message_and_status(self) -> None:
        exc = UpstreamAPIError(
            "The request cannot be completed because you have exceeded your quota.", 403
        )
        assert exc.message.startswith("The request cannot be completed")
        assert exc.status_code == 403
        assert str(exc) == exc.message

    def test_status_optional(self) -> None:
        assert UpstreamAPIError("offline").status_code is None
