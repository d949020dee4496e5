"""Async client for the YouTube Data API v3.

Thin wrappers return the decoded JSON of each endpoint; the helper methods
below them map items into ``VideoRecord``/``ChannelRecord`` instances.
Upstream error bodies (``{"error": {"message": ...}}``) surface as
``UpstreamAPIError`` carrying the message verbatim.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import httpx
import structlog
from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tube_insight.exceptions import (
    ChannelNotFoundError,
    ConfigurationError,
    UpstreamAPIError,
)
from tube_insight.records import ChannelRecord, VideoRecord, map_channel, map_video

if TYPE_CHECKING:
    from tube_insight.config import Settings
    from tube_insight.storage import CredentialStore

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://www.googleapis.com/youtube/v3"
MAX_PAGE_SIZE = 50
ANY_CATEGORY = "0"

_VIDEO_PARTS = "snippet,statistics,contentDetails"
_CHANNEL_PARTS = "snippet,statistics,contentDetails"
_BACKOFF_MAX_SECONDS = 10


class KeyCheck(BaseModel):
    """Outcome of a credential test call."""

    ok: bool
    error: str | None = None


class VideoCategory(BaseModel):
    id: str
    title: str


class YouTubeClient:
    """YouTube Data API client over ``httpx.AsyncClient``.

    Attributes:
        region_code: Default region for charts and categories.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        region_code: str = "KR",
        timeout: float = 30.0,
        retries: int = 3,
        retry_wait: float = 1.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: YouTube Data API key. May be None; every call then
                raises ``ConfigurationError`` before touching the network.
            base_url: API root.
            region_code: Default region for charts and categories.
            timeout: HTTP timeout in seconds (ignored when ``client`` is given).
            retries: Attempts per request on transport errors.
            retry_wait: Exponential backoff multiplier in seconds.
            client: Optional pre-built HTTP client (used by tests).
        """
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self.region_code = region_code
        self._retries = retries
        self._retry_wait = retry_wait
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        credentials: CredentialStore | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> YouTubeClient:
        api_key = (
            credentials.resolve_youtube_api_key(settings)
            if credentials is not None
            else settings.youtube.api_key
        )
        yt = settings.youtube
        return cls(
            api_key,
            base_url=yt.base_url,
            region_code=yt.region_code,
            timeout=yt.timeout,
            retries=yt.retries,
            client=client,
        )

    @property
    def has_key(self) -> bool:
        return bool(self._api_key)

    def require_key(self) -> str:
        """Return the API key or raise ``ConfigurationError``."""
        if not self._api_key:
            raise ConfigurationError(
                "YouTube API key is not set. Run `tube-insight keys set youtube <KEY>` "
                "or set TUBE_INSIGHT_YOUTUBE__API_KEY."
            )
        return self._api_key

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> YouTubeClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # -----------------------------------------------------------------------
    # Transport
    # -----------------------------------------------------------------------

    async def _get(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        key = self.require_key()
        query = {k: v for k, v in params.items() if v is not None}
        query["key"] = key
        url = f"{self._base_url}/{endpoint}"

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._retries),
                wait=wait_exponential(multiplier=self._retry_wait, max=_BACKOFF_MAX_SECONDS),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    response = await self._client.get(url, params=query)
        except httpx.TransportError as exc:
            logger.error("youtube_unreachable", endpoint=endpoint, error=str(exc))
            raise UpstreamAPIError(f"YouTube API is unreachable: {exc}") from exc

        return self._decode(endpoint, response)

    @staticmethod
    def _decode(endpoint: str, response: httpx.Response) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            message = str(payload["error"].get("message") or "Unknown YouTube API error")
            logger.warning(
                "youtube_api_error",
                endpoint=endpoint,
                status_code=response.status_code,
                message=message,
            )
            raise UpstreamAPIError(message, status_code=response.status_code)

        if response.is_error or not isinstance(payload, dict):
            raise UpstreamAPIError(
                f"YouTube API returned HTTP {response.status_code} for {endpoint}",
                status_code=response.status_code,
            )
        return payload

    # -----------------------------------------------------------------------
    # Endpoints
    # -----------------------------------------------------------------------

    async def search(
        self,
        query: str,
        *,
        search_type: str = "video",
        page_token: str | None = None,
        max_results: int = MAX_PAGE_SIZE,
        video_category_id: str | None = None,
        video_duration: str | None = None,
    ) -> dict[str, Any]:
        return await self._get(
            "search",
            {
                "part": "snippet",
                "q": query,
                "type": search_type,
                "maxResults": min(max_results, MAX_PAGE_SIZE),
                "pageToken": page_token or None,
                "videoCategoryId": video_category_id,
                "videoDuration": video_duration,
            },
        )

    async def list_videos(self, video_ids: Sequence[str]) -> dict[str, Any]:
        if not video_ids:
            return {"items": []}
        return await self._get("videos", {"part": _VIDEO_PARTS, "id": ",".join(video_ids)})

    async def list_channels(self, channel_id: str) -> dict[str, Any]:
        return await self._get("channels", {"part": _CHANNEL_PARTS, "id": channel_id})

    async def list_playlist_items(
        self,
        playlist_id: str,
        *,
        max_results: int = MAX_PAGE_SIZE,
        page_token: str | None = None,
    ) -> dict[str, Any]:
        return await self._get(
            "playlistItems",
            {
                "part": "snippet,contentDetails",
                "playlistId": playlist_id,
                "maxResults": min(max_results, MAX_PAGE_SIZE),
                "pageToken": page_token or None,
            },
        )

    async def list_video_categories(self, region_code: str | None = None) -> dict[str, Any]:
        return await self._get(
            "videoCategories",
            {"part": "snippet", "regionCode": region_code or self.region_code},
        )

    async def list_comment_threads(self, video_id: str, max_results: int = 100) -> dict[str, Any]:
        return await self._get(
            "commentThreads",
            {"part": "snippet", "videoId": video_id, "maxResults": max_results},
        )

    async def list_most_popular(
        self,
        *,
        region_code: str | None = None,
        max_results: int = MAX_PAGE_SIZE,
        category_id: str = ANY_CATEGORY,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "part": _VIDEO_PARTS,
            "chart": "mostPopular",
            "regionCode": region_code or self.region_code,
            "maxResults": min(max_results, MAX_PAGE_SIZE),
        }
        if category_id not in (ANY_CATEGORY, "all", ""):
            params["videoCategoryId"] = category_id
        return await self._get("videos", params)

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    async def find_channel(self, query: str) -> ChannelRecord:
        """Resolve a channel by ID, falling back to a name search.

        Args:
            query: A channel ID or free-text channel name.

        Returns:
            The resolved channel.

        Raises:
            ChannelNotFoundError: If neither lookup yields a channel.
            ConfigurationError: If the API key is missing.
        """
        try:
            data = await self.list_channels(query)
            items = data.get("items") or []
            if items:
                return map_channel(items[0])
        except UpstreamAPIError as exc:
            logger.debug("channel_id_lookup_failed", query=query, error=exc.message)

        found = await self.search(query, search_type="channel", max_results=1)
        results = found.get("items") or []
        if not results:
            raise ChannelNotFoundError(f"Channel not found: {query}")

        channel_id = (results[0].get("snippet") or {}).get("channelId") or (
            results[0].get("id") or {}
        ).get("channelId")
        data = await self.list_channels(str(channel_id))
        items = data.get("items") or []
        if not items:
            raise ChannelNotFoundError(f"Channel not found: {query}")
        return map_channel(items[0])

    async def get_channel_uploads(
        self, channel: ChannelRecord, max_results: int = MAX_PAGE_SIZE
    ) -> list[VideoRecord]:
        """Fetch and score the most recent uploads of a channel."""
        if not channel.uploads_playlist_id:
            return []
        playlist = await self.list_playlist_items(
            channel.uploads_playlist_id, max_results=max_results
        )
        video_ids = [
            str((item.get("contentDetails") or {}).get("videoId"))
            for item in playlist.get("items") or []
            if (item.get("contentDetails") or {}).get("videoId")
        ]
        if not video_ids:
            return []
        details = await self.list_videos(video_ids)
        return [map_video(item) for item in details.get("items") or []]

    async def get_video_comments(self, video_id: str, max_results: int = 100) -> list[str]:
        """Return the display text of top-level comments on a video."""
        data = await self.list_comment_threads(video_id, max_results=max_results)
        comments: list[str] = []
        for item in data.get("items") or []:
            text = (
                ((item.get("snippet") or {}).get("topLevelComment") or {}).get("snippet") or {}
            ).get("textDisplay")
            if text:
                comments.append(str(text))
        return comments

    async def get_trending_videos(
        self,
        region_code: str | None = None,
        max_results: int = MAX_PAGE_SIZE,
        category_id: str = ANY_CATEGORY,
    ) -> list[VideoRecord]:
        data = await self.list_most_popular(
            region_code=region_code, max_results=max_results, category_id=category_id
        )
        return [map_video(item) for item in data.get("items") or []]

    async def get_video_categories(self, region_code: str | None = None) -> list[VideoCategory]:
        data = await self.list_video_categories(region_code)
        return [
            VideoCategory(
                id=str(item.get("id", "")),
                title=str((item.get("snippet") or {}).get("title", "")),
            )
            for item in data.get("items") or []
        ]

    async def validate_key(self) -> KeyCheck:
        """Make the cheapest possible call to check the configured key."""
        try:
            await self.list_most_popular(max_results=1)
        except (ConfigurationError, UpstreamAPIError) as exc:
            return KeyCheck(ok=False, error=str(exc))
        return KeyCheck(ok=True)
