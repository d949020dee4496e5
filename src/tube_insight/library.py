"""Personal library: search history, favorite folders and notices.

All lists live in the key-value store. A stored list that is not valid
JSON is dropped and replaced by its fallback on the next read.
"""

from __future__ import annotations

import time
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field

from tube_insight.exceptions import RecordNotFoundError
from tube_insight.storage import read_json, write_json

if TYPE_CHECKING:
    from tube_insight.storage import KeyValueStore

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

HISTORY_KEY = "tube_insight.history"
FOLDERS_KEY = "tube_insight.folders"
FAVORITES_KEY = "tube_insight.favorites"
NOTICES_KEY = "tube_insight.notices"

HISTORY_LIMIT = 50

ItemType = Literal["channel", "keyword", "video"]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


class HistoryItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_new_id)
    type: ItemType
    value: str
    title: str = ""
    thumbnail_url: str | None = Field(default=None, alias="thumbnailUrl")
    timestamp: int = Field(default_factory=_now_ms)


class Folder(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_new_id)
    name: str
    created_at: int = Field(default_factory=_now_ms, alias="createdAt")


class FavoriteItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_new_id)
    folder_id: str = Field(alias="folderId")
    type: ItemType
    value: str
    title: str = ""
    thumbnail_url: str | None = Field(default=None, alias="thumbnailUrl")
    created_at: int = Field(default_factory=_now_ms, alias="createdAt")


class Notice(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_new_id)
    title: str
    content: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC), alias="createdAt")
    author: str = "Admin"


DEFAULT_NOTICES: tuple[tuple[str, str, str], ...] = (
    (
        "notice-1",
        "Service launch",
        "tube-insight is now available. Analyze channels and keywords in one step, "
        "get AI growth strategy reports, draft Shorts ideas and scripts, and run "
        "thumbnails through the AI clinic.",
    ),
    (
        "notice-3",
        "Getting a YouTube API key",
        "Analyses use the official YouTube Data API v3 with your own key.\n"
        "1. Open the Google Cloud Console\n"
        "2. Create a project\n"
        '3. Enable the "YouTube Data API v3" library\n'
        "4. Create an API key credential\n"
        "Then run `tube-insight keys set youtube <KEY>`.",
    ),
    (
        "notice-5",
        "Plans and refunds",
        "Launch special: 9,900 per month (first 500 members). Starter plan: 18,900 "
        "per month. Payments with no service usage within 7 days are fully refundable.",
    ),
)


def _default_notices() -> list[dict[str, str]]:
    created_at = datetime.now(tz=UTC).isoformat()
    return [
        {
            "id": notice_id,
            "title": title,
            "content": content,
            "createdAt": created_at,
            "author": "Admin",
        }
        for notice_id, title, content in DEFAULT_NOTICES
    ]


class Library:
    """History, folders, favorites and notices over one key-value store."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    # History ----------------------------------------------------------------

    def get_history(self) -> list[HistoryItem]:
        raw = read_json(self._store, HISTORY_KEY, [])
        return [HistoryItem.model_validate(item) for item in _as_list(raw)]

    def _save_history(self, items: list[HistoryItem]) -> None:
        write_json(self._store, HISTORY_KEY, [i.model_dump(by_alias=True) for i in items])

    def add_to_history(
        self, item_type: ItemType, value: str, title: str = "", thumbnail_url: str | None = None
    ) -> HistoryItem:
        """Record a lookup at the top of the history.

        An earlier entry with the same type and value is removed first, and
        the list is capped at ``HISTORY_LIMIT`` entries.
        """
        history = [
            item for item in self.get_history()
            if not (item.type == item_type and item.value == value)
        ]
        entry = HistoryItem(type=item_type, value=value, title=title, thumbnail_url=thumbnail_url)
        history.insert(0, entry)
        self._save_history(history[:HISTORY_LIMIT])
        return entry

    def remove_history_item(self, item_id: str) -> None:
        self._save_history([item for item in self.get_history() if item.id != item_id])

    def clear_history(self) -> None:
        self._store.remove(HISTORY_KEY)

    # Folders ----------------------------------------------------------------

    def get_folders(self) -> list[Folder]:
        raw = read_json(self._store, FOLDERS_KEY, [])
        return [Folder.model_validate(item) for item in _as_list(raw)]

    def _save_folders(self, folders: list[Folder]) -> None:
        write_json(self._store, FOLDERS_KEY, [f.model_dump(by_alias=True) for f in folders])

    def create_folder(self, name: str) -> Folder:
        folder = Folder(name=name)
        self._save_folders([*self.get_folders(), folder])
        return folder

    def rename_folder(self, folder_id: str, name: str) -> Folder:
        folders = self.get_folders()
        for index, folder in enumerate(folders):
            if folder.id == folder_id:
                folders[index] = folder.model_copy(update={"name": name})
                self._save_folders(folders)
                return folders[index]
        raise RecordNotFoundError(f"Unknown folder: {folder_id!r}")

    def delete_folder(self, folder_id: str) -> None:
        """Delete a folder together with every favorite filed under it."""
        self._save_folders([f for f in self.get_folders() if f.id != folder_id])
        remaining = [f for f in self.get_favorites() if f.folder_id != folder_id]
        self._save_favorites(remaining)
        logger.info("folder_deleted", folder_id=folder_id)

    # Favorites --------------------------------------------------------------

    def get_favorites(self, folder_id: str | None = None) -> list[FavoriteItem]:
        """Favorites in one folder, or all of them for None or ``"all"``."""
        raw = read_json(self._store, FAVORITES_KEY, [])
        favorites = [FavoriteItem.model_validate(item) for item in _as_list(raw)]
        if folder_id and folder_id != "all":
            return [f for f in favorites if f.folder_id == folder_id]
        return favorites

    def _save_favorites(self, favorites: list[FavoriteItem]) -> None:
        write_json(self._store, FAVORITES_KEY, [f.model_dump(by_alias=True) for f in favorites])

    def add_favorite(
        self,
        folder_id: str,
        item_type: ItemType,
        value: str,
        title: str = "",
        thumbnail_url: str | None = None,
    ) -> FavoriteItem | None:
        """File a favorite. Returns None if the same type and value already exist."""
        favorites = self.get_favorites()
        if any(f.type == item_type and f.value == value for f in favorites):
            return None
        favorite = FavoriteItem(
            folder_id=folder_id,
            type=item_type,
            value=value,
            title=title,
            thumbnail_url=thumbnail_url,
        )
        self._save_favorites([*favorites, favorite])
        return favorite

    def remove_favorite(self, favorite_id: str) -> None:
        self._save_favorites([f for f in self.get_favorites() if f.id != favorite_id])

    def remove_favorite_by_value(self, item_type: ItemType, value: str) -> None:
        self._save_favorites(
            [f for f in self.get_favorites() if not (f.type == item_type and f.value == value)]
        )

    def move_favorite(self, favorite_id: str, folder_id: str) -> None:
        self._save_favorites(
            [
                f.model_copy(update={"folder_id": folder_id}) if f.id == favorite_id else f
                for f in self.get_favorites()
            ]
        )

    def is_favorite(self, item_type: ItemType, value: str) -> bool:
        return any(f.type == item_type and f.value == value for f in self.get_favorites())

    # Notices ----------------------------------------------------------------

    def get_notices(self) -> list[Notice]:
        raw = read_json(self._store, NOTICES_KEY, None)
        if raw is None:
            raw = _default_notices()
        return [Notice.model_validate(item) for item in _as_list(raw)]

    def _save_notices(self, notices: list[Notice]) -> None:
        write_json(
            self._store,
            NOTICES_KEY,
            [n.model_dump(mode="json", by_alias=True) for n in notices],
        )

    def add_notice(self, title: str, content: str, author: str = "Admin") -> Notice:
        notice = Notice(title=title, content=content, author=author)
        self._save_notices([notice, *self.get_notices()])
        return notice

    def update_notice(self, notice_id: str, title: str, content: str) -> None:
        self._save_notices(
            [
                n.model_copy(update={"title": title, "content": content})
                if n.id == notice_id
                else n
                for n in self.get_notices()
            ]
        )

    def delete_notice(self, notice_id: str) -> None:
        self._save_notices([n for n in self.get_notices() if n.id != notice_id])


def _as_list(raw: object) -> list[dict[str, object]]:
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, dict)]
