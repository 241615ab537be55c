"""Upload cadence statistics derived from a channel's recent videos."""

from __future__ import annotations

import statistics
from datetime import timedelta
from typing import Iterable

from growth_pilot.schema.analysis import CadenceStats, VideoRecord

SECONDS_PER_DAY = 86400
RECENT_WINDOW = timedelta(days=30)
NOT_ENOUGH_DATA = "Not enough data"

# Upper bounds (exclusive) on the average gap in days; the dashboard buckets the same way.
CADENCE_BUCKETS: tuple[tuple[float, str], ...] = (
    (1, "Multiple uploads per day"),
    (2, "~ every other day"),
    (4, "2-3 videos per week"),
    (8, "Weekly"),
    (15, "Bi-weekly"),
    (30, "Monthly"),
)
SPORADIC = "Sporadic"


def describe_interval(average_days: float | None) -> str:
    """Return the human label for an average upload gap."""

    if not average_days:
        return NOT_ENOUGH_DATA
    for upper_bound, label in CADENCE_BUCKETS:
        if average_days < upper_bound:
            return label
    return SPORADIC


def upload_gaps(videos: Iterable[VideoRecord]) -> list[float]:
    """Return gaps in days between consecutive uploads, oldest first."""

    timestamps = sorted(video.published_at for video in videos)
    return [
        (later - earlier).total_seconds() / SECONDS_PER_DAY
        for earlier, later in zip(timestamps, timestamps[1:])
    ]


def consistency_score(gaps: list[float]) -> float:
    """Score gap regularity in [0, 1] as ``1 - stddev/mean``.

    Fewer than two gaps cannot show a pattern and score 0.
    """

    if len(gaps) < 2:
        return 0.0
    mean = statistics.fmean(gaps)
    if mean <= 0:
        return 0.0
    score = 1 - statistics.pstdev(gaps) / mean
    return min(1.0, max(0.0, score))


def analyze_cadence(videos: Iterable[VideoRecord]) -> CadenceStats:
    """Compute cadence statistics; ``last30Days`` is anchored on the latest upload."""

    videos = list(videos)
    if not videos:
        return CadenceStats(summary=NOT_ENOUGH_DATA)

    latest = max(video.published_at for video in videos)
    window_start = latest - RECENT_WINDOW
    last_30_days = sum(1 for video in videos if video.published_at >= window_start)

    gaps = upload_gaps(videos)
    average_days = statistics.fmean(gaps) if gaps else None

    return CadenceStats(
        average_days=average_days,
        last30_days=last_30_days,
        consistency_score=consistency_score(gaps),
        summary=describe_interval(average_days),
    )
