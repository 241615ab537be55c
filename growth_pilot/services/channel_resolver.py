"""Utilities for normalising YouTube channel references."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import parse_qs, unquote, urlparse

import httpx

from growth_pilot.core.config import settings
from growth_pilot.services.errors import InvalidQueryError, NotFoundError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

CHANNEL_ID_REGEX = re.compile(r"^UC[0-9A-Za-z_-]{22}$")
HANDLE_REGEX = re.compile(r"^[0-9A-Za-z._-]{3,30}$")
YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"
YOUTUBE_WEB_BASE = "https://www.youtube.com"
YOUTUBE_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com", "music.youtube.com"}
SHORT_LINK_HOSTS = {"youtu.be", "www.youtu.be"}

_PAGE_CHANNEL_ID_PATTERNS = (
    re.compile(r'<link rel="canonical" href="https://www\.youtube\.com/channel/(UC[0-9A-Za-z_-]{22})"'),
    re.compile(r'"externalId":"(UC[0-9A-Za-z_-]{22})"'),
    re.compile(r'"channelId":"(UC[0-9A-Za-z_-]{22})"'),
)

EMPTY_QUERY_MESSAGE = "Provide a YouTube channel URL, handle, or ID"


@dataclass(frozen=True, slots=True)
class ResolvedChannel:
    """Canonical channel id plus the display handle the user supplied, if any."""

    id: str
    handle: str | None = None


class HandleDirectory(Protocol):
    """Looks up the canonical channel id behind a ``@handle``."""

    async def resolve_handle(self, handle: str) -> str: ...


class YouTubeHandleDirectory:
    """Resolve handles through the Data API, or the public channel page without a key."""

    def __init__(self, client: httpx.AsyncClient, *, api_key: str | None = None) -> None:
        self._client = client
        self._api_key = api_key

    async def resolve_handle(self, handle: str) -> str:
        normalised_handle = handle.lstrip("@").strip()
        if not normalised_handle:
            raise InvalidQueryError("Invalid YouTube channel handle")

        if self._api_key:
            return await self._resolve_with_api(normalised_handle)
        return await self._resolve_with_page(normalised_handle)

    async def _resolve_with_api(self, handle: str) -> str:
        url = f"{YOUTUBE_API_BASE}/channels"
        params = {
            "part": "id",
            "forHandle": handle,
            "key": self._api_key,
        }
        response = await _get(self._client, url, params=params)
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamUnavailableError("Invalid response from YouTube Data API") from exc

        for item in payload.get("items", []):
            channel_id = item.get("id")
            if channel_id and CHANNEL_ID_REGEX.match(channel_id):
                return channel_id

        raise NotFoundError(f"No YouTube channel found for @{handle}")

    async def _resolve_with_page(self, handle: str) -> str:
        response = await _get(self._client, f"{YOUTUBE_WEB_BASE}/@{handle}")
        for pattern in _PAGE_CHANNEL_ID_PATTERNS:
            match = pattern.search(response.text)
            if match:
                return match.group(1)

        raise NotFoundError(f"No YouTube channel found for @{handle}")


async def _get(client: httpx.AsyncClient, url: str, *, params: dict[str, str] | None = None) -> httpx.Response:
    try:
        response = await client.get(url, params=params)
    except httpx.HTTPError as exc:
        logger.warning("Handle lookup request failed: %s", exc)
        raise UpstreamUnavailableError("Unable to contact YouTube") from exc

    if response.status_code == 404:
        raise NotFoundError("No YouTube channel matches that handle")
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.warning("Handle lookup returned HTTP %s for %s", response.status_code, url)
        raise UpstreamUnavailableError(f"YouTube returned HTTP {response.status_code}") from exc
    return response


def _normalise_handle(raw: str) -> str:
    candidate = unquote(raw).lstrip("@").strip()
    if not HANDLE_REGEX.match(candidate):
        raise InvalidQueryError(f"'{raw}' is not a valid YouTube handle")
    return f"@{candidate}"


def classify_url(raw: str) -> str:
    """Return the channel id or ``@handle`` embedded in a YouTube URL.

    Supports:
      * Feed URLs carrying a `channel_id` query parameter
      * Standard channel URLs (`/channel/UC...`)
      * Handle URLs (`/@name`)
      * Legacy custom URLs (`/c/name`, `/user/name`), treated as handles

    """

    url = raw if "://" in raw else f"https://{raw}"
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if host in SHORT_LINK_HOSTS:
        raise InvalidQueryError("That is a video link, not a channel link")
    if host not in YOUTUBE_HOSTS:
        raise InvalidQueryError("Only youtube.com channel links are supported")

    # Check query param first (feed URLs)
    channel_ids = parse_qs(parsed.query).get("channel_id")
    if channel_ids:
        candidate = channel_ids[-1]
        if CHANNEL_ID_REGEX.match(candidate):
            return candidate

    parts = [part for part in parsed.path.split("/") if part]
    if not parts:
        raise InvalidQueryError("That YouTube link does not point at a channel")

    head = parts[0]
    if head.startswith("@"):
        return _normalise_handle(head)
    if head == "channel" and len(parts) >= 2:
        if CHANNEL_ID_REGEX.match(parts[1]):
            return parts[1]
        raise InvalidQueryError("That channel link has a malformed channel ID")
    if head in {"c", "user"} and len(parts) >= 2:
        return _normalise_handle(parts[1])

    raise InvalidQueryError("That YouTube link does not point at a channel")


def _looks_like_url(identifier: str) -> bool:
    if identifier.startswith(("http://", "https://")):
        return True
    host = identifier.split("/", 1)[0].lower()
    return host in YOUTUBE_HOSTS or host in SHORT_LINK_HOSTS


async def resolve(query: str | None, directory: HandleDirectory) -> ResolvedChannel:
    """Normalise a user-supplied channel reference into a :class:`ResolvedChannel`.

    Canonical ids win over handle lookups because they need no network call.
    """

    identifier = (query or "").strip()
    if not identifier:
        raise InvalidQueryError(EMPTY_QUERY_MESSAGE)

    if CHANNEL_ID_REGEX.match(identifier):
        return ResolvedChannel(id=identifier)

    if _looks_like_url(identifier):
        identifier = classify_url(identifier)
        if CHANNEL_ID_REGEX.match(identifier):
            return ResolvedChannel(id=identifier)

    handle = _normalise_handle(identifier)
    logger.info("Resolving handle %s", handle)
    channel_id = await directory.resolve_handle(handle)
    if not CHANNEL_ID_REGEX.match(channel_id):
        raise NotFoundError(f"No YouTube channel found for {handle}")
    return ResolvedChannel(id=channel_id, handle=handle)


def default_directory(client: httpx.AsyncClient) -> HandleDirectory:
    """Build the handle directory configured for this deployment."""

    return YouTubeHandleDirectory(client, api_key=settings.youtube_api_key)
