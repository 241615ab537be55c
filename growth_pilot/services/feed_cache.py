"""Bounded TTL cache of normalised channel feeds, keyed by canonical channel id."""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import Callable

from growth_pilot.schema.analysis import ChannelFeed


class FeedCache:
    """In-memory feed cache owned by the application instance."""

    def __init__(
        self,
        *,
        ttl_seconds: float,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, ChannelFeed]] = OrderedDict()

    @property
    def enabled(self) -> bool:
        return self._ttl > 0

    def get(self, channel_id: str) -> ChannelFeed | None:
        if not self.enabled:
            return None
        cached = self._entries.get(channel_id)
        if cached is None:
            return None
        expires_at, feed = cached
        if self._clock() >= expires_at:
            del self._entries[channel_id]
            return None
        self._entries.move_to_end(channel_id)
        return feed

    def put(self, channel_id: str, feed: ChannelFeed) -> None:
        if not self.enabled:
            return
        self._entries[channel_id] = (self._clock() + self._ttl, feed)
        self._entries.move_to_end(channel_id)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
