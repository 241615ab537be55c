"""Recurring keyword extraction over video titles and descriptions."""

from __future__ import annotations

import re
from collections import Counter
from typing import Iterable

from growth_pilot.schema.analysis import KeywordInsight, VideoRecord

_TOKEN_RE = re.compile(r"[^\W_]+(?:'[^\W_]+)*")
_URL_RE = re.compile(r"https?://\S+")

STOPWORDS = frozenset(
    """
    a about above after again against all am an and any are aren't as at be because been before being below
    between both but by can can't cannot could couldn't did didn't do does doesn't doing don't down during each
    few for from further had hadn't has hasn't have haven't having he he'd he'll he's her here here's hers herself
    him himself his how how's i i'd i'll i'm i've if in into is isn't it it's its itself let's me more most
    mustn't my myself no nor not of off on once only or other ought our ours ourselves out over own same shan't
    she she'd she'll she's should shouldn't so some such than that that's the their theirs them themselves then
    there there's these they they'd they'll they're they've this those through to too under until up very was
    wasn't we we'd we'll we're we've were weren't what what's when when's where where's which while who who's
    whom why why's will with won't would wouldn't you you'd you'll you're you've your yours yourself yourselves
    also just get got like may might must now one s t via vs
    """.split()
)


def tokenize(text: str) -> list[str]:
    """Split text into case-folded word tokens, ignoring links."""

    text = _URL_RE.sub(" ", text.replace("’", "'"))
    return _TOKEN_RE.findall(text.casefold())


def _keep(token: str, min_length: int) -> bool:
    return len(token) >= min_length and not token.isdigit() and token not in STOPWORDS


def extract_keywords(
    videos: Iterable[VideoRecord],
    *,
    min_length: int = 2,
    top_n: int = 10,
) -> list[KeywordInsight]:
    """Rank recurring terms across titles and descriptions.

    Ordered by count descending, then alphabetically, so repeated runs agree.
    """

    counts: Counter[str] = Counter()
    for video in videos:
        for text in (video.title, video.description):
            if not text:
                continue
            counts.update(token for token in tokenize(text) if _keep(token, min_length))

    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [KeywordInsight(keyword=keyword, count=count) for keyword, count in ranked[: max(0, top_n)]]
