"""Turn cadence and keyword signals into recommendations and a publishing playbook."""

from __future__ import annotations

import statistics
from dataclasses import dataclass
from typing import Callable, Sequence

from jinja2 import DictLoader, Environment, StrictUndefined

from growth_pilot.schema.analysis import ActionItem, CadenceStats, ChannelFeed, KeywordInsight, Playbook, VideoRecord

MIN_ACTIONS = 2
MAX_ACTIONS = 4
LOW_CONSISTENCY = 0.5
HIGH_CONSISTENCY = 0.75
DOMINANT_SHARE = 0.35
DIFFUSE_SHARE = 0.2
BREAKOUT_RATIO = 1.5

_TEMPLATES = {
    "action/baseline": (
        "{{ title }} has {{ video_count }} recent upload{{ '' if video_count == 1 else 's' }}, too few to read a rhythm. "
        "Publish two more videos a week apart so viewers and the algorithm learn when to expect you."
    ),
    "action/tighten": (
        "Gaps between uploads swing widely (consistency {{ (consistency * 100)|round|int }}%). "
        "Pick a fixed publishing day and bank one video ahead so a busy week never breaks the streak."
    ),
    "action/frequency": (
        "Your cadence reads as {{ summary|lower }}, roughly one upload every {{ '%.0f'|format(average_days) }} days. "
        "Add a lighter format such as a Short or a quick update between main uploads to stay in subscribers' feeds."
    ),
    "action/batch": (
        "You are shipping {{ summary|lower }}. Batch scripting and filming so the pace holds without "
        "sacrificing packaging on each upload."
    ),
    "action/double_down": (
        "\"{{ keyword }}\" shows up in {{ keyword_count }} places across your recent uploads. "
        "Turn it into a named series with a recurring title format so new viewers binge the back catalogue."
    ),
    "action/series": (
        "Your recent topics are spread thin, with \"{{ keyword }}\" leading at only {{ keyword_count }} mentions. "
        "Group upcoming uploads into a signature series so the channel promise is obvious at a glance."
    ),
    "action/titles": (
        "Titles and descriptions share almost no recurring terms. Repeat the core topic in every title "
        "and the first line of each description so search can place the channel."
    ),
    "action/breakout": (
        "\"{{ breakout_title }}\" pulled {{ '{:,}'.format(breakout_views) }} views, well ahead of your other recent uploads. "
        "Make a follow-up that reuses its angle, thumbnail style and title structure."
    ),
    "action/hook": (
        "State the payoff of each video in the first 15 seconds and show it on screen. "
        "Strong openings lift retention, which drives recommendations."
    ),
    "action/regulars": (
        "Close every upload by pointing to the next one and pin a comment asking what viewers want covered. "
        "Returning viewers compound faster than new ones."
    ),
    "playbook/hook": (
        "{% if keyword %}{{ title }} is where viewers go for {{ keyword }}. Open each upload with the sharpest "
        "{{ keyword }} takeaway, then promise what the next episode will unlock."
        "{% else %}{{ title }} needs a signature promise. Choose the one topic viewers should associate with you "
        "and say it out loud in every intro.{% endif %}"
    ),
    "playbook/cadence": (
        "{% if average_days is none %}Publish at least two uploads a week apart so a rhythm can be measured, "
        "then commit to that slot."
        "{% else %}Current rhythm: {{ summary }} ({{ '%.1f'|format(average_days) }} days between uploads, "
        "{{ last30_days }} in the 30 days before the latest one). "
        "{% if consistency >= high_consistency %}Lock that slot in and announce it in the channel banner."
        "{% else %}Hold one fixed day and time for the next eight weeks before changing frequency.{% endif %}"
        "{% endif %}"
    ),
    "playbook/tip_front_load": (
        "{% if keyword %}Put \"{{ keyword }}\" in the first 40 characters of the title so it survives truncation in search."
        "{% else %}Front-load the core topic in the first 40 characters of each title.{% endif %}"
    ),
    "playbook/tip_pairing": (
        "{% if second_keyword %}Pair {{ keyword }} with {{ second_keyword }} in thumbnail text to signal both themes at a glance."
        "{% else %}Keep thumbnail text to three words that restate the title's promise.{% endif %}"
    ),
    "playbook/tip_frame": "Reuse one thumbnail frame and colour palette so returning viewers spot {{ title }} uploads instantly.",
    "playbook/tip_breakout": "Model the next thumbnail on \"{{ breakout_title }}\", your most-viewed recent upload.",
    "playbook/collab_challenge": (
        "Co-host a {{ keyword or 'niche' }} challenge with a creator of similar size and swap end screens."
    ),
    "playbook/collab_qna": "Invite viewers to send {{ keyword or 'channel' }} questions for a community Q&A episode.",
    "playbook/collab_shorts": (
        "{% if latest_title %}Cut a Short from \"{{ latest_title }}\" and ask a collaborator to feature it on their "
        "community tab.{% else %}Guest on a bigger channel in your space before launching your first series.{% endif %}"
    ),
}

_env = Environment(
    loader=DictLoader(_TEMPLATES),
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=False,
)


def _render(name: str, context: dict[str, object]) -> str:
    return _env.get_template(name).render(**context).strip()


@dataclass(slots=True)
class InsightBundle:
    """Recommendations and playbook for one analysis."""

    actions: list[ActionItem]
    playbook: Playbook


@dataclass(slots=True)
class _Signals:
    video_count: int
    top: KeywordInsight | None
    second: KeywordInsight | None
    top_share: float
    breakout: VideoRecord | None


@dataclass(frozen=True, slots=True)
class _ActionTemplate:
    title: str
    template: str
    applies: Callable[[CadenceStats, _Signals], bool]


def find_breakout(videos: Sequence[VideoRecord]) -> VideoRecord | None:
    """Return the upload whose known views clearly beat the rest, if any.

    Videos with unknown views are left out rather than counted as zero.
    """

    known = [video for video in videos if video.views is not None]
    if len(known) < 2:
        return None
    best = max(known, key=lambda video: video.views or 0)
    others = [video.views or 0 for video in known if video is not best]
    baseline = statistics.median(others)
    if best.views and best.views > baseline * BREAKOUT_RATIO:
        return best
    return None


def _signals(feed: ChannelFeed, keywords: Sequence[KeywordInsight]) -> _Signals:
    total = sum(insight.count for insight in keywords)
    top = keywords[0] if keywords else None
    return _Signals(
        video_count=len(feed.videos),
        top=top,
        second=keywords[1] if len(keywords) > 1 else None,
        top_share=(top.count / total) if top and total else 0.0,
        breakout=find_breakout(feed.videos),
    )


ACTION_CATALOG: tuple[_ActionTemplate, ...] = (
    _ActionTemplate(
        "Establish a publishing baseline",
        "action/baseline",
        lambda cadence, signals: cadence.average_days is None,
    ),
    _ActionTemplate(
        "Tighten your schedule",
        "action/tighten",
        lambda cadence, signals: signals.video_count >= 3
        and cadence.average_days is not None
        and cadence.consistency_score < LOW_CONSISTENCY,
    ),
    _ActionTemplate(
        "Increase upload frequency",
        "action/frequency",
        lambda cadence, signals: cadence.average_days is not None and cadence.average_days >= 15,
    ),
    _ActionTemplate(
        "Batch your production",
        "action/batch",
        lambda cadence, signals: bool(cadence.average_days) and cadence.average_days < 2,
    ),
    _ActionTemplate(
        "Double down on your strongest theme",
        "action/double_down",
        lambda cadence, signals: signals.top is not None
        and signals.top.count >= 2
        and signals.top_share >= DOMINANT_SHARE,
    ),
    _ActionTemplate(
        "Build a signature series",
        "action/series",
        lambda cadence, signals: signals.top is not None and signals.top_share < DIFFUSE_SHARE,
    ),
    _ActionTemplate(
        "Sharpen your titles",
        "action/titles",
        lambda cadence, signals: signals.top is None,
    ),
    _ActionTemplate(
        "Remix your breakout upload",
        "action/breakout",
        lambda cadence, signals: signals.breakout is not None,
    ),
)

FALLBACK_ACTIONS: tuple[_ActionTemplate, ...] = (
    _ActionTemplate("Hook viewers in the first 15 seconds", "action/hook", lambda cadence, signals: True),
    _ActionTemplate("Turn viewers into regulars", "action/regulars", lambda cadence, signals: True),
)


def synthesize(feed: ChannelFeed, cadence: CadenceStats, keywords: Sequence[KeywordInsight]) -> InsightBundle:
    """Select recommendations and fill the playbook. Deterministic for identical inputs."""

    signals = _signals(feed, keywords)
    context: dict[str, object] = {
        "title": feed.channel.title,
        "video_count": signals.video_count,
        "summary": cadence.summary,
        "average_days": cadence.average_days,
        "last30_days": cadence.last30_days,
        "consistency": cadence.consistency_score,
        "high_consistency": HIGH_CONSISTENCY,
        "keyword": signals.top.keyword if signals.top else None,
        "keyword_count": signals.top.count if signals.top else 0,
        "second_keyword": signals.second.keyword if signals.second else None,
        "breakout_title": signals.breakout.title if signals.breakout else None,
        "breakout_views": signals.breakout.views if signals.breakout else None,
        "latest_title": feed.videos[0].title if feed.videos else None,
    }

    selected = [item for item in ACTION_CATALOG if item.applies(cadence, signals)][:MAX_ACTIONS]
    for fallback in FALLBACK_ACTIONS:
        if len(selected) >= MIN_ACTIONS:
            break
        selected.append(fallback)

    actions = [ActionItem(title=item.title, description=_render(item.template, context)) for item in selected]

    packaging_tips = [
        _render("playbook/tip_front_load", context),
        _render("playbook/tip_pairing", context),
        _render("playbook/tip_frame", context),
    ]
    if signals.breakout is not None:
        packaging_tips.append(_render("playbook/tip_breakout", context))

    playbook = Playbook(
        narrative_hook=_render("playbook/hook", context),
        cadence_focus=_render("playbook/cadence", context),
        packaging_tips=packaging_tips,
        collaboration_ideas=[
            _render("playbook/collab_challenge", context),
            _render("playbook/collab_qna", context),
            _render("playbook/collab_shorts", context),
        ],
    )
    return InsightBundle(actions=actions, playbook=playbook)
