"""Human-readable copy for match signals and scores."""

from typing import Iterable, List

from .config import DEFAULT_WEIGHTS, ScoringWeights
from .models import (
    MATCH_DIRECT,
    MATCH_GENRE,
    MATCH_RECENT,
    MATCH_RELATED,
    TIER_AFFINITY,
    TIER_DIRECT,
    TIER_GENRE,
    TIER_PARTIAL,
    TIER_RECENT,
    TIER_RELATED,
    MatchSignal,
)

DISCOVERY_REASON = "Discover something near you"

_MATCH_TYPE_TAGS = {
    MATCH_DIRECT: "Must-see",
    MATCH_RELATED: "For you",
    MATCH_RECENT: "Fresh pick",
    MATCH_GENRE: "Your vibe",
}

# (genre keywords, tag)
_MOOD_TAGS = [
    (("chill", "ambient", "lo-fi"), "Chill"),
    (("dance", "house", "edm"), "High energy"),
    (("indie", "alternative"), "Intimate"),
    (("metal", "punk", "rock"), "Loud"),
    (("jazz", "classical", "acoustic"), "Sophisticated"),
]


def _describe_direct(signal: MatchSignal, weights: ScoringWeights) -> str:
    rank = signal.rank_index if signal.rank_index is not None else weights.rank_tier_mid
    if rank < weights.rank_tier_top:
        return f"{signal.artist} is one of your top {weights.rank_tier_top} artists"
    if rank < weights.rank_tier_high:
        return f"{signal.artist} is in your top {weights.rank_tier_high} artists"
    if rank < weights.rank_tier_mid:
        return f"You love {signal.artist}"
    return f"{signal.artist} is in your library"


def describe_signal(signal: MatchSignal, weights: ScoringWeights = DEFAULT_WEIGHTS) -> str:
    """Turn a match signal into a reason string."""
    if signal.tier == TIER_DIRECT:
        return _describe_direct(signal, weights)
    if signal.tier == TIER_PARTIAL:
        return f"Features {signal.artist}, one of your artists"
    if signal.tier == TIER_RELATED:
        return f"Similar to {signal.related_to}, who you listen to"
    if signal.tier == TIER_RECENT:
        return f"You recently played {signal.artist}"
    if signal.tier == TIER_GENRE:
        return f"Matches your {signal.genre} taste"
    if signal.tier == TIER_AFFINITY:
        return f"You might enjoy this {signal.genre} show"
    return DISCOVERY_REASON


def display_score(score: float) -> int:
    """Map a raw match score onto a 0-100 display scale.

    100+ points land in 95-100, 60-99 in 65-78, 30-59 in 45-59 and anything
    lower scales linearly.
    """
    if score >= 100:
        return min(100, 85 + int(score // 10))
    if score >= 60:
        return 65 + int((score - 60) // 3)
    if score >= 30:
        return 45 + int((score - 30) // 2)
    return max(0, int(score * 1.5))


def vibe_tags(match_type: str, genres: Iterable[str]) -> List[str]:
    """Short mood tags for a concert card, at most two."""
    tags = []
    if match_type in _MATCH_TYPE_TAGS:
        tags.append(_MATCH_TYPE_TAGS[match_type])

    joined = " ".join(g.lower() for g in genres or ())
    for keywords, tag in _MOOD_TAGS:
        if any(k in joined for k in keywords):
            tags.append(tag)

    return tags[:2]
