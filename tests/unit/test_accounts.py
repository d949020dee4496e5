"""Unit tests for tube_insight.accounts - users and subscriptions."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from tube_insight.accounts import Subscription, User, UserStore
from tube_insight.exceptions import RecordNotFoundError
from tube_insight.storage import MemoryStore

START = datetime(2024, 1, 1, tzinfo=UTC)


class TestSubscription:
    """Window validation and activity checks."""

    def test_start_after_end_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Subscription(plan="trial", start_date=START, end_date=START - timedelta(days=1))

    def test_is_active_within_window(self) -> None:
        sub = Subscription(plan="1month", start_date=START, end_date=START + timedelta(days=30))
        assert sub.is_active(START + timedelta(days=10))
        assert not sub.is_active(START + timedelta(days=31))

    def test_expired_status(self) -> None:
        sub = Subscription(
            plan="1month", status="expired", start_date=START, end_date=START + timedelta(days=30)
        )
        assert not sub.is_active(START)

    def test_aliases(self) -> None:
        sub = Subscription.model_validate(
            {
                "plan": "trial",
                "startDate": "2024-01-01T00:00:00Z",
                "endDate": "2024-01-08T00:00:00Z",
            }
        )
        assert sub.end_date - sub.start_date == timedelta(days=7)


class TestUserStore:
    """Persistence and lookup."""

    def test_get_or_create_is_idempotent(self, memory_store: MemoryStore) -> None:
        users = UserStore(memory_store)
        first = users.get_or_create(" Ana@Example.com ")
        second = users.get_or_create("ana@example.com")
        assert first.id == second.id
        assert len(users.list_users()) == 1

    def test_save_replaces_by_id(self, memory_store: MemoryStore) -> None:
        users = UserStore(memory_store)
        user = users.get_or_create("ana@example.com")
        sub = Subscription(plan="trial", start_date=START, end_date=START + timedelta(days=7))
        users.save(user.with_subscription(sub))
        stored = users.get(user.id)
        assert stored.subscription is not None
        assert stored.subscription.plan == "trial"
        assert len(users.list_users()) == 1

    def test_get_unknown(self, memory_store: MemoryStore) -> None:
        with pytest.raises(RecordNotFoundError):
            UserStore(memory_store).get("nope")

    def test_round_trip_through_json(self, memory_store: MemoryStore) -> None:
        user = User(email="bo@example.com", is_admin=True)
        UserStore(memory_store).save(user)
        assert UserStore(memory_store).get(user.id).is_admin
