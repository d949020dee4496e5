"""Subscription plans, coupons and payment.

Plans and coupons are stored as JSON lists in the key-value store with the
camelCase keys used on disk. A coupon's ``isUsed`` flag goes from false to
true exactly once; redeeming a used coupon fails without touching the
user's subscription. Payment is delegated to a ``PaymentGateway`` whose
only contract is ``request_payment(order) -> PaymentResult``.
"""

from __future__ import annotations

import calendar
import secrets
import string
import uuid
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Protocol

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from tube_insight.accounts import PlanId, Subscription, User, utc_now
from tube_insight.exceptions import (
    CommerceError,
    CouponAlreadyUsedError,
    InvalidCouponError,
    InvalidPlanError,
    PaymentFailedError,
)
from tube_insight.storage import read_json, write_json

if TYPE_CHECKING:
    from collections.abc import Callable

    from tube_insight.storage import KeyValueStore

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

PLANS_KEY = "tube_insight.plans"
COUPONS_KEY = "tube_insight.coupons"

COUPON_ALPHABET = string.ascii_uppercase + string.digits
COUPON_LENGTH = 12
COUPON_GROUP = 4
TRIAL_DAYS = 14

CouponDuration = int | float

PLAN_FOR_DURATION: dict[float, PlanId] = {
    0.5: "trial",
    1: "1month",
    3: "3months",
    6: "6months",
    12: "12months",
}

_FALLBACK_LABELS: dict[str, str] = {
    "event_launch": "Launch special (1 month)",
    "1month": "Starter plan (1 month)",
    "3months": "Growth plan (3 months)",
    "12months": "Pro plan (1 year)",
    "trial": "Free trial (2 weeks)",
    "6months": "6-month pass",
}
_FREE_LABEL = "Free member"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class SubscriptionPlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    price: int = Field(ge=0)
    duration_months: int = Field(alias="durationMonths", gt=0)
    discount: int | None = None
    description: str | None = None


class Coupon(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    code: str
    duration_months: CouponDuration = Field(alias="durationMonths")
    is_used: bool = Field(default=False, alias="isUsed")
    created_at: datetime = Field(alias="createdAt")
    used_by: str | None = Field(default=None, alias="usedBy")
    used_at: datetime | None = Field(default=None, alias="usedAt")

    @field_validator("duration_months")
    @classmethod
    def _check_duration(cls, value: CouponDuration) -> CouponDuration:
        if value not in PLAN_FOR_DURATION:
            msg = f"Unsupported coupon duration: {value!r}"
            raise ValueError(msg)
        return value


DEFAULT_PLANS: tuple[SubscriptionPlan, ...] = (
    SubscriptionPlan(
        id="event_launch",
        name="Launch special (1 month)",
        price=9900,
        duration_months=1,
        description="Limited to the first 500 members: unlimited AI features for a month.",
    ),
    SubscriptionPlan(id="1month", name="Starter plan (1 month)", price=18900, duration_months=1),
    SubscriptionPlan(
        id="3months", name="Growth plan (3 months)", price=49900, duration_months=3, discount=12
    ),
    SubscriptionPlan(
        id="12months", name="Pro plan (1 year)", price=169000, duration_months=12, discount=25
    ),
)


# ---------------------------------------------------------------------------
# Payment gateway contract
# ---------------------------------------------------------------------------


class PaymentOrder(BaseModel):
    merchant_uid: str
    name: str
    amount: int
    buyer_email: str
    buyer_name: str = ""


class PaymentResult(BaseModel):
    success: bool
    error: str | None = None


class PaymentGateway(Protocol):
    """External payment widget, reduced to a single request/response call."""

    async def request_payment(self, order: PaymentOrder) -> PaymentResult: ...


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def add_months(moment: datetime, months: int) -> datetime:
    """Shift by calendar months, clamping the day to the target month's length."""
    index = moment.month - 1 + months
    year = moment.year + index // 12
    month = index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def subscription_end(start: datetime, duration_months: float) -> datetime:
    """End of a window starting at ``start``; half a month means 14 days."""
    if duration_months == 0.5:
        return start + timedelta(days=TRIAL_DAYS)
    return add_months(start, int(duration_months))


def generate_coupon_code(choice: Callable[[str], str] = secrets.choice) -> str:
    """Random ``XXXX-XXXX-XXXX`` code over ``A-Z0-9``."""
    chars = [choice(COUPON_ALPHABET) for _ in range(COUPON_LENGTH)]
    groups = (
        "".join(chars[start : start + COUPON_GROUP])
        for start in range(0, COUPON_LENGTH, COUPON_GROUP)
    )
    return "-".join(groups)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class CommerceStore:
    """Plan catalogue, coupon ledger and subscription purchases."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    # Plans ------------------------------------------------------------------

    def get_plans(self) -> list[SubscriptionPlan]:
        raw = read_json(self._store, PLANS_KEY, None)
        if not isinstance(raw, list):
            return [plan.model_copy() for plan in DEFAULT_PLANS]
        return [SubscriptionPlan.model_validate(item) for item in raw if isinstance(item, dict)]

    def _save_plans(self, plans: list[SubscriptionPlan]) -> None:
        write_json(
            self._store,
            PLANS_KEY,
            [plan.model_dump(by_alias=True, exclude_none=True) for plan in plans],
        )

    def get_plan(self, plan_id: str) -> SubscriptionPlan:
        for plan in self.get_plans():
            if plan.id == plan_id:
                return plan
        raise InvalidPlanError(f"Unknown plan: {plan_id!r}")

    def update_plan_price(self, plan_id: str, price: int) -> list[SubscriptionPlan]:
        """Change one plan's price and persist the whole catalogue.

        Raises:
            InvalidPlanError: If ``plan_id`` is not in the catalogue.
            CommerceError: If ``price`` is negative.
        """
        if price < 0:
            raise CommerceError("Plan price must not be negative.")
        plans = self.get_plans()
        if not any(plan.id == plan_id for plan in plans):
            raise InvalidPlanError(f"Unknown plan: {plan_id!r}")
        updated = [
            plan.model_copy(update={"price": price}) if plan.id == plan_id else plan
            for plan in plans
        ]
        self._save_plans(updated)
        logger.info("plan_price_updated", plan_id=plan_id, price=price)
        return updated

    def reset_plans(self) -> list[SubscriptionPlan]:
        self._store.remove(PLANS_KEY)
        return [plan.model_copy() for plan in DEFAULT_PLANS]

    def plan_label(self, plan_id: str | None) -> str:
        """Display name for a plan ID, including the coupon-only plans."""
        if plan_id:
            for plan in self.get_plans():
                if plan.id == plan_id:
                    return plan.name
        return _FALLBACK_LABELS.get(plan_id or "", _FREE_LABEL)

    # Coupons ----------------------------------------------------------------

    def get_coupons(self) -> list[Coupon]:
        raw = read_json(self._store, COUPONS_KEY, [])
        if not isinstance(raw, list):
            return []
        return [Coupon.model_validate(item) for item in raw if isinstance(item, dict)]

    def _save_coupons(self, coupons: list[Coupon]) -> None:
        write_json(
            self._store,
            COUPONS_KEY,
            [
                coupon.model_dump(mode="json", by_alias=True, exclude_none=True)
                for coupon in coupons
            ],
        )

    def generate_coupons(
        self,
        duration_months: CouponDuration,
        count: int,
        *,
        code_factory: Callable[[], str] = generate_coupon_code,
        now: datetime | None = None,
    ) -> list[Coupon]:
        """Create ``count`` unused coupons with codes unique across the ledger.

        New coupons are stored ahead of existing ones.
        """
        if duration_months not in PLAN_FOR_DURATION:
            raise CommerceError(f"Unsupported coupon duration: {duration_months!r}")
        existing = self.get_coupons()
        taken = {coupon.code for coupon in existing}
        created_at = now or utc_now()

        created: list[Coupon] = []
        for _ in range(count):
            code = code_factory()
            while code in taken:
                code = code_factory()
            taken.add(code)
            created.append(
                Coupon(
                    id=uuid.uuid4().hex,
                    code=code,
                    duration_months=duration_months,
                    created_at=created_at,
                )
            )

        self._save_coupons([*created, *existing])
        logger.info("coupons_generated", count=len(created), duration_months=duration_months)
        return created

    def redeem_coupon(self, user: User, code: str, *, now: datetime | None = None) -> User:
        """Mark a coupon used and return the user with the granted subscription.

        Args:
            user: The redeeming user.
            code: Coupon code (case and surrounding whitespace ignored).
            now: Redemption time, for tests.

        Returns:
            A copy of ``user`` with a new active subscription.

        Raises:
            InvalidCouponError: If the code does not exist.
            CouponAlreadyUsedError: If the coupon was already redeemed. The
                ledger is left unchanged.
        """
        wanted = code.strip().upper()
        coupons = self.get_coupons()
        index = next((i for i, coupon in enumerate(coupons) if coupon.code == wanted), None)
        if index is None:
            raise InvalidCouponError(f"Invalid coupon code: {code}")

        coupon = coupons[index]
        if coupon.is_used:
            raise CouponAlreadyUsedError(f"Coupon {wanted} has already been used.")

        moment = now or utc_now()
        coupons[index] = coupon.model_copy(
            update={"is_used": True, "used_by": user.email, "used_at": moment}
        )
        self._save_coupons(coupons)

        subscription = Subscription(
            plan=PLAN_FOR_DURATION.get(coupon.duration_months, "trial"),
            start_date=moment,
            end_date=subscription_end(moment, coupon.duration_months),
        )
        logger.info("coupon_redeemed", code=wanted, user_id=user.id, plan=subscription.plan)
        return user.with_subscription(subscription)

    # Payment ----------------------------------------------------------------

    async def request_payment(
        self,
        user: User,
        plan_id: str,
        gateway: PaymentGateway,
        *,
        now: datetime | None = None,
    ) -> User:
        """Charge the current price of a plan and grant its subscription.

        Raises:
            InvalidPlanError: If ``plan_id`` is unknown.
            PaymentFailedError: If the gateway reports failure or cancellation.
        """
        plan = self.get_plan(plan_id)
        moment = now or utc_now()
        order = PaymentOrder(
            merchant_uid=f"mid_{int(moment.timestamp() * 1000)}",
            name=plan.name,
            amount=plan.price,
            buyer_email=user.email,
            buyer_name=user.name,
        )
        result = await gateway.request_payment(order)
        if not result.success:
            logger.warning("payment_failed", plan_id=plan_id, error=result.error)
            raise PaymentFailedError(result.error or "Payment was cancelled.")

        subscription = Subscription(
            plan=plan.id,  # type: ignore[arg-type]
            start_date=moment,
            end_date=add_months(moment, plan.duration_months),
        )
        logger.info("payment_succeeded", plan_id=plan_id, user_id=user.id, amount=plan.price)
        return user.with_subscription(subscription)
