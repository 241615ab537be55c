"""Sequence resolution, retrieval and analysis into one channel report."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

from growth_pilot.core.config import settings
from growth_pilot.schema.analysis import AnalysisReport, ChannelFeed
from growth_pilot.services.cadence import analyze_cadence
from growth_pilot.services.channel_resolver import HandleDirectory, ResolvedChannel, resolve
from growth_pilot.services.channel_feed import UploadSource
from growth_pilot.services.errors import UpstreamUnavailableError
from growth_pilot.services.feed_cache import FeedCache
from growth_pilot.services.insights import synthesize
from growth_pilot.services.keywords import extract_keywords

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChannelAnalyzer:
    """Run the analysis pipeline for a single query.

    Errors from resolution and retrieval propagate unchanged; upstream calls
    that exceed ``timeout_seconds`` surface as :class:`UpstreamUnavailableError`.
    """

    def __init__(
        self,
        directory: HandleDirectory,
        source: UploadSource,
        *,
        cache: FeedCache | None = None,
        timeout_seconds: float | None = None,
        keyword_min_length: int | None = None,
        keyword_top_n: int | None = None,
    ) -> None:
        self._directory = directory
        self._source = source
        self._cache = cache
        self._timeout = timeout_seconds if timeout_seconds is not None else settings.upstream_timeout_seconds
        self._keyword_min_length = keyword_min_length if keyword_min_length is not None else settings.keyword_min_length
        self._keyword_top_n = keyword_top_n if keyword_top_n is not None else settings.keyword_top_n

    async def _bounded(self, awaitable: Awaitable[T], label: str) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("%s exceeded %.1fs", label, self._timeout)
            raise UpstreamUnavailableError(f"{label} timed out after {self._timeout}s") from exc

    async def _feed_for(self, resolved: ResolvedChannel) -> ChannelFeed:
        if self._cache is not None:
            cached = self._cache.get(resolved.id)
            if cached is not None:
                logger.info("Feed cache hit for %s", resolved.id)
                return cached

        feed = await self._bounded(self._source.fetch_uploads(resolved.id), "Feed fetch")
        if self._cache is not None:
            self._cache.put(resolved.id, feed)
        return feed

    async def analyze(self, query: str | None) -> AnalysisReport:
        resolved = await self._bounded(resolve(query, self._directory), "Channel lookup")
        logger.info("Resolved %r to %s", query, resolved.id)
        feed = await self._feed_for(resolved)

        if resolved.handle:
            feed = feed.model_copy(update={"channel": feed.channel.model_copy(update={"handle": resolved.handle})})

        cadence = analyze_cadence(feed.videos)
        keywords = extract_keywords(feed.videos, min_length=self._keyword_min_length, top_n=self._keyword_top_n)
        insights = synthesize(feed, cadence, keywords)

        return AnalysisReport(
            channel=feed.channel,
            latest_uploads=feed.videos,
            upload_cadence=cadence,
            keyword_insights=keywords,
            actions=insights.actions,
            playbook=insights.playbook,
        )
