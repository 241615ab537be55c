"""Fetch a channel's public upload feed and normalise it into video records."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Protocol
from urllib.parse import urlencode

import feedparser
import httpx

from growth_pilot.core.config import settings
from growth_pilot.schema.analysis import ChannelFeed, ChannelInfo, VideoRecord
from growth_pilot.services.channel_resolver import YOUTUBE_API_BASE
from growth_pilot.services.errors import NotFoundError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

YOUTUBE_FEED_BASE = "https://www.youtube.com/feeds/videos.xml"
CHANNEL_URL = "https://www.youtube.com/channel/{channel_id}"
WATCH_URL = "https://www.youtube.com/watch?v={video_id}"


class UploadSource(Protocol):
    """Returns channel metadata and recent uploads for a canonical channel id."""

    async def fetch_uploads(self, channel_id: str) -> ChannelFeed: ...


def channel_feed_url(channel_id: str) -> str:
    """Return the public Atom feed URL for a channel id."""

    params = urlencode({"channel_id": channel_id})
    return f"{YOUTUBE_FEED_BASE}?{params}"


def parse_published(entry: feedparser.FeedParserDict) -> datetime | None:
    """Convert feed published timestamp to timezone-aware datetime."""

    struct_time = entry.get("published_parsed") or entry.get("updated_parsed")
    if not struct_time:
        return None
    return datetime(*struct_time[:6], tzinfo=timezone.utc)


def video_identity(entry: feedparser.FeedParserDict) -> tuple[str | None, str | None]:
    """Return (video_id, title) from a feed entry."""

    video_id = entry.get("yt_videoid") or entry.get("video_id") or entry.get("id")
    title = entry.get("title")
    if video_id and video_id.startswith("yt:video:"):
        video_id = video_id.split(":")[-1]
    return video_id, title


def _parse_count(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        count = int(value)
    except (TypeError, ValueError):
        return None
    return count if count >= 0 else None


def _entry_description(entry: feedparser.FeedParserDict) -> str | None:
    description = entry.get("media_description") or entry.get("summary") or entry.get("description")
    if not description or not description.strip():
        return None
    return description.strip()


def _entry_views(entry: feedparser.FeedParserDict) -> int | None:
    statistics = entry.get("media_statistics") or {}
    return _parse_count(statistics.get("views"))


def video_from_entry(entry: feedparser.FeedParserDict) -> VideoRecord | None:
    """Normalise one feed entry, or return ``None`` when it lacks an id, title or date."""

    video_id, title = video_identity(entry)
    published_at = parse_published(entry)
    if not video_id or not title or published_at is None:
        return None

    return VideoRecord(
        id=video_id,
        title=title,
        published_at=published_at,
        link=entry.get("link") or WATCH_URL.format(video_id=video_id),
        description=_entry_description(entry),
        views=_entry_views(entry),
    )


def feed_from_document(
    parsed: feedparser.FeedParserDict,
    *,
    channel_id: str,
    max_videos: int,
) -> ChannelFeed:
    """Build a :class:`ChannelFeed` from a parsed Atom document, newest uploads first."""

    videos: list[VideoRecord] = []
    for entry in parsed.entries:
        video = video_from_entry(entry)
        if video is None:
            logger.debug("Skipping feed entry missing identity or date")
            continue
        videos.append(video)

    videos.sort(key=lambda video: video.published_at, reverse=True)

    channel = ChannelInfo(
        id=parsed.feed.get("yt_channelid") or channel_id,
        title=parsed.feed.get("title") or channel_id,
        url=parsed.feed.get("link") or CHANNEL_URL.format(channel_id=channel_id),
        published_at=parse_published(parsed.feed),
    )
    return ChannelFeed(channel=channel, videos=videos[: max(0, max_videos)])


def apply_channel_details(channel: ChannelInfo, item: dict[str, Any]) -> ChannelInfo:
    """Merge a Data API ``channels`` item into feed-derived channel metadata."""

    snippet = item.get("snippet") or {}
    statistics = item.get("statistics") or {}

    updates: dict[str, Any] = {}
    if snippet.get("title"):
        updates["title"] = snippet["title"]
    if snippet.get("description"):
        updates["description"] = snippet["description"]
    if snippet.get("customUrl"):
        custom_url = snippet["customUrl"]
        updates["handle"] = custom_url if custom_url.startswith("@") else f"@{custom_url}"
    if snippet.get("publishedAt"):
        published = snippet["publishedAt"]
        if published.endswith("Z"):
            published = published[:-1] + "+00:00"
        try:
            updates["published_at"] = datetime.fromisoformat(published)
        except ValueError:
            logger.debug("Failed to parse channel publishedAt", extra={"value": published})
    if not statistics.get("hiddenSubscriberCount"):
        subscriber_count = _parse_count(statistics.get("subscriberCount"))
        if subscriber_count is not None:
            updates["subscriber_count"] = subscriber_count

    return channel.model_copy(update=updates)


class YouTubeFeedSource:
    """Upload source backed by the public Atom feed, enriched by the Data API when a key is set."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str | None = None,
        max_videos: int = 15,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._max_videos = max_videos

    async def fetch_uploads(self, channel_id: str) -> ChannelFeed:
        url = channel_feed_url(channel_id)
        logger.info("Fetching feed %s", url)
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("Failed to download feed %s: %s", url, exc)
            raise UpstreamUnavailableError(f"Unable to download feed for {channel_id}") from exc

        if response.status_code == 404:
            raise NotFoundError(f"No YouTube channel found with ID {channel_id}")
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning("Feed %s returned HTTP %s", url, response.status_code)
            raise UpstreamUnavailableError(f"Feed request returned HTTP {response.status_code}") from exc

        parsed = feedparser.parse(response.content)
        if parsed.get("bozo") and not parsed.entries and not parsed.feed.get("title"):
            raise UpstreamUnavailableError(f"Unreadable feed document for {channel_id}")

        feed = feed_from_document(parsed, channel_id=channel_id, max_videos=self._max_videos)
        if self._api_key:
            item = await self._fetch_channel_item(channel_id)
            if item is not None:
                feed = feed.model_copy(update={"channel": apply_channel_details(feed.channel, item)})

        logger.info("Feed for %s normalised; videos: %s", channel_id, len(feed.videos))
        return feed

    async def _fetch_channel_item(self, channel_id: str) -> dict[str, Any] | None:
        params = {
            "part": "snippet,statistics",
            "id": channel_id,
            "key": self._api_key,
        }
        try:
            response = await self._client.get(f"{YOUTUBE_API_BASE}/channels", params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            logger.warning("Channel details request failed for %s: %s", channel_id, exc)
            raise UpstreamUnavailableError("Unable to contact YouTube Data API") from exc
        except ValueError as exc:
            raise UpstreamUnavailableError("Invalid response from YouTube Data API") from exc

        items = payload.get("items") or []
        return items[0] if items else None


def default_source(client: httpx.AsyncClient) -> UploadSource:
    """Build the upload source configured for this deployment."""

    return YouTubeFeedSource(
        client,
        api_key=settings.youtube_api_key,
        max_videos=settings.feed_max_videos,
    )
