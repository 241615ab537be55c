"""Pydantic models for the channel analysis API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising attributes with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyzeRequest(BaseModel):
    """Inbound payload for a channel analysis."""

    query: str | None = Field(default=None, description="YouTube channel URL, handle, or UC id")


class ErrorResponse(BaseModel):
    error: str


class ChannelInfo(CamelModel):
    id: str
    title: str
    url: str
    description: str = ""
    handle: str | None = None
    subscriber_count: int | None = None
    published_at: datetime | None = None


class VideoRecord(CamelModel):
    """One upload. ``views``/``description`` stay ``None`` when unknown."""

    id: str
    title: str
    published_at: datetime
    link: str
    description: str | None = None
    views: int | None = None


class ChannelFeed(CamelModel):
    """Channel metadata plus uploads ordered newest first."""

    channel: ChannelInfo
    videos: list[VideoRecord] = Field(default_factory=list)


class CadenceStats(CamelModel):
    average_days: float | None = None
    last30_days: int = Field(default=0, ge=0, alias="last30Days")
    consistency_score: float = Field(default=0.0, ge=0.0, le=1.0)
    summary: str


class KeywordInsight(CamelModel):
    keyword: str
    count: int = Field(ge=1)


class ActionItem(CamelModel):
    title: str
    description: str


class Playbook(CamelModel):
    narrative_hook: str
    cadence_focus: str
    packaging_tips: list[str]
    collaboration_ideas: list[str]


class AnalysisReport(CamelModel):
    """Full analysis returned by ``POST /api/analyze``."""

    channel: ChannelInfo
    latest_uploads: list[VideoRecord]
    upload_cadence: CadenceStats
    keyword_insights: list[KeywordInsight]
    actions: list[ActionItem]
    playbook: Playbook
