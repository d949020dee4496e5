"""Injectable key-value storage.

Every persisted record (credentials, coupons, plans, instructions, library
entries, users) lives behind the small ``KeyValueStore`` protocol: string
keys mapping to string values, the same contract as browser local storage.
Structured values are JSON-encoded by ``read_json``/``write_json``.

Read-modify-write sequences built on top of a store are not guarded against
concurrent writers; a store is assumed to have a single user.
"""

from __future__ import annotations

import copy
import json
import os
import tempfile
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import structlog

from tube_insight.exceptions import StorageError

if TYPE_CHECKING:
    from pathlib import Path

    from tube_insight.config import Settings

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal string key-value store."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """In-process store, mostly for tests and one-shot CLI runs."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore:
    """Store persisted as a single JSON object on disk.

    The whole file is re-read on every access so several store instances
    pointing at the same path observe each other's writes. Writes replace
    the file atomically, so a crash mid-write leaves the previous contents.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.error("store_corrupt", path=str(self._path), error=str(exc))
            raise StorageError(
                f"Store file {self._path} is not valid JSON; "
                "restore it from a backup or delete it to start fresh",
                path=str(self._path),
            ) from exc
        if not isinstance(payload, dict):
            return {}
        return {str(key): str(value) for key, value in payload.items()}

    def _save(self, payload: dict[str, str]) -> None:
        data = json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")
        self._atomic_write(self._path, data)

    @staticmethod
    def _atomic_write(path: Path, data: bytes) -> None:
        """Write data atomically using temp file -> fsync -> os.replace.

        Args:
            path: Target file path.
            data: Bytes to write.
        """
        fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
        fd_closed = False
        try:
            os.write(fd, data)
            os.fsync(fd)
            os.close(fd)
            fd_closed = True
            os.replace(tmp_path, str(path))
        except BaseException:
            if not fd_closed:
                os.close(fd)
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        payload = self._load()
        payload[key] = value
        self._save(payload)

    def remove(self, key: str) -> None:
        payload = self._load()
        if payload.pop(key, None) is not None:
            self._save(payload)

    def keys(self) -> list[str]:
        return list(self._load())


# ---------------------------------------------------------------------------
# JSON helpers
# ---------------------------------------------------------------------------


def read_json(store: KeyValueStore, key: str, fallback: Any) -> Any:
    """Decode a JSON value from the store.

    A missing key returns a copy of ``fallback``. A value that is not valid
    JSON is removed from the store and ``fallback`` is returned, so a
    corrupt entry heals itself on the next write.

    Args:
        store: The key-value store.
        key: Storage key.
        fallback: Value returned (deep-copied) when the key is missing or
            unreadable.

    Returns:
        The decoded value or a copy of ``fallback``.
    """
    raw = store.get(key)
    if raw is None:
        return copy.deepcopy(fallback)
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("store_value_corrupt", key=key, preview=raw[:80])
        store.remove(key)
        return copy.deepcopy(fallback)


def write_json(store: KeyValueStore, key: str, value: Any) -> None:
    store.set(key, json.dumps(value, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

YOUTUBE_KEY = "tube_insight.youtube_api_key"
LLM_KEY = "tube_insight.llm_api_key"


def mask_secret(secret: str | None) -> str:
    """Render a secret for display, keeping only its last four characters."""
    if not secret:
        return "(not set)"
    if len(secret) <= 4:
        return "*" * len(secret)
    return "*" * (len(secret) - 4) + secret[-4:]


class CredentialStore:
    """API keys saved in the key-value store.

    Keys configured through settings (env, ``.env`` or YAML) take priority;
    saved keys fill in whatever settings leave empty.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def set_youtube_api_key(self, key: str) -> None:
        self._store.set(YOUTUBE_KEY, key.strip())
        logger.info("credential_saved", credential="youtube")

    def get_youtube_api_key(self) -> str | None:
        return self._store.get(YOUTUBE_KEY) or None

    def set_llm_api_key(self, key: str) -> None:
        self._store.set(LLM_KEY, key.strip())
        logger.info("credential_saved", credential="llm")

    def get_llm_api_key(self) -> str | None:
        return self._store.get(LLM_KEY) or None

    def resolve_youtube_api_key(self, settings: Settings) -> str | None:
        return settings.youtube.api_key or self.get_youtube_api_key()

    def resolve_llm_api_key(self, settings: Settings) -> str | None:
        return settings.llm.api_key or self.get_llm_api_key()
