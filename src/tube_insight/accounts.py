"""User records and their subscription window.

Authentication itself is out of scope: users are plain records in the
key-value store, looked up by ID or email.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field, model_validator

from tube_insight.exceptions import RecordNotFoundError
from tube_insight.storage import read_json, write_json

if TYPE_CHECKING:
    from tube_insight.storage import KeyValueStore

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

STORAGE_KEY = "tube_insight.users"

PlanId = Literal["event_launch", "trial", "1month", "3months", "6months", "12months"]


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class Subscription(BaseModel):
    """A single subscription window. ``start_date`` never exceeds ``end_date``."""

    model_config = ConfigDict(populate_by_name=True)

    plan: PlanId
    status: Literal["active", "expired"] = "active"
    start_date: datetime = Field(alias="startDate")
    end_date: datetime = Field(alias="endDate")

    @model_validator(mode="after")
    def _check_window(self) -> Subscription:
        if self.start_date > self.end_date:
            msg = "Subscription start date must not be after its end date"
            raise ValueError(msg)
        return self

    def is_active(self, now: datetime | None = None) -> bool:
        moment = now or utc_now()
        return self.status == "active" and self.start_date <= moment <= self.end_date


class User(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    email: str
    name: str = ""
    joined_at: datetime = Field(default_factory=utc_now, alias="joinedAt")
    subscription: Subscription | None = None
    is_admin: bool = Field(default=False, alias="isAdmin")

    def with_subscription(self, subscription: Subscription) -> User:
        """Return a copy whose only subscription is ``subscription``."""
        return self.model_copy(update={"subscription": subscription})


class UserStore:
    """Users persisted as a JSON list in the key-value store."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def _load(self) -> list[User]:
        raw = read_json(self._store, STORAGE_KEY, [])
        if not isinstance(raw, list):
            return []
        return [User.model_validate(item) for item in raw if isinstance(item, dict)]

    def _save(self, users: list[User]) -> None:
        write_json(
            self._store,
            STORAGE_KEY,
            [user.model_dump(mode="json", by_alias=True) for user in users],
        )

    def list_users(self) -> list[User]:
        return self._load()

    def get(self, user_id: str) -> User:
        for user in self._load():
            if user.id == user_id:
                return user
        raise RecordNotFoundError(f"Unknown user: {user_id!r}")

    def find_by_email(self, email: str) -> User | None:
        wanted = email.strip().lower()
        return next((user for user in self._load() if user.email.lower() == wanted), None)

    def get_or_create(self, email: str, name: str = "") -> User:
        existing = self.find_by_email(email)
        if existing is not None:
            return existing
        user = User(email=email.strip(), name=name)
        self.save(user)
        logger.info("user_created", user_id=user.id)
        return user

    def save(self, user: User) -> User:
        """Insert or replace a user by ID."""
        users = [existing for existing in self._load() if existing.id != user.id]
        users.append(user)
        self._save(users)
        return user
