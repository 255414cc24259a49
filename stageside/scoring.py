"""Pure tier functions for concert-to-profile matching.

Each function inspects one kind of evidence and returns a ``MatchSignal`` or
``None``. Ordering, exclusivity and totals are decided by ``MatchScorer``.
"""

from typing import Iterable, List, Optional, Sequence

from .affinity import GenreAffinityTable
from .config import ScoringWeights
from .models import (
    CONFIDENCE_HIGH,
    CONFIDENCE_LOW,
    CONFIDENCE_MEDIUM,
    TIER_AFFINITY,
    TIER_DIRECT,
    TIER_GENRE,
    TIER_PARTIAL,
    TIER_RECENT,
    TIER_RELATED,
    AggregatedArtist,
    MatchSignal,
    RelatedArtist,
)
from .normalize import (
    are_aliases,
    genres_overlap,
    is_fuzzy_match,
    is_partial_match,
    normalize_genre,
    normalize_name,
)


def normalize_all(names: Iterable[str]) -> List[str]:
    """Normalize names, dropping ones that normalize to nothing."""
    return [n for n in (normalize_name(name) for name in names or ()) if n]


def lower_genres(genres: Iterable[str]) -> List[str]:
    """Lower-case genres, dropping blanks and duplicates while keeping order."""
    seen = []
    for genre in genres or ():
        g = normalize_genre(genre)
        if g and g not in seen:
            seen.append(g)
    return seen


# --- Artist tiers ---


def rank_bonus(rank_index: int, weights: ScoringWeights) -> float:
    """Bonus for earlier-ranked artists, floored at zero."""
    return max(0.0, weights.rank_bonus_max - weights.rank_bonus_step * rank_index)


def match_direct_artist(
    concert_artists: Sequence[str],
    top_artists: Sequence[AggregatedArtist],
    weights: ScoringWeights,
) -> Optional[MatchSignal]:
    """Find the best-ranked user artist that plays this concert.

    Walking the user's list in rank order means the first hit is the best
    one, so several headliners never add up.
    """
    lineup = set(concert_artists)
    if not lineup:
        return None
    for index, artist in enumerate(top_artists):
        key = normalize_name(artist.normalized_name or artist.display_name)
        if key and key in lineup:
            return MatchSignal(
                tier=TIER_DIRECT,
                points=weights.direct_artist + rank_bonus(index, weights),
                artist=artist.display_name,
                rank_index=index,
            )
    return None


def _same_act(concert_artist: str, key: str, weights: ScoringWeights) -> bool:
    """Containment, a known alias, or a near-identical spelling."""
    return (
        is_partial_match(concert_artist, key, weights.partial_min_length)
        or are_aliases(concert_artist, key)
        or is_fuzzy_match(concert_artist, key, weights.fuzzy_threshold, weights.partial_min_length)
    )


def match_partial_artist(
    concert_artists: Sequence[str],
    top_artists: Sequence[AggregatedArtist],
    weights: ScoringWeights,
) -> Optional[MatchSignal]:
    """Loose match between concert and user artist names.

    Catches "Bon Iver & Friends" for Bon Iver, "21 Pilots" for Twenty One
    Pilots and typos such as "Radiohed". Exact equality belongs to the direct
    tier and never matches here.
    """
    for concert_artist in concert_artists:
        for index, artist in enumerate(top_artists):
            key = normalize_name(artist.normalized_name or artist.display_name)
            if _same_act(concert_artist, key, weights):
                return MatchSignal(
                    tier=TIER_PARTIAL,
                    points=weights.partial_artist,
                    artist=artist.display_name,
                    rank_index=index,
                )
    return None


def match_related_artist(
    concert_artists: Sequence[str],
    related_artists: Sequence[RelatedArtist],
    weights: ScoringWeights,
) -> Optional[MatchSignal]:
    """Concert features an artist similar to one the user listens to."""
    lineup = set(concert_artists)
    for related in related_artists:
        if normalize_name(related.name) in lineup:
            return MatchSignal(
                tier=TIER_RELATED,
                points=weights.related_artist,
                artist=related.name,
                related_to=related.related_to,
            )
    return None


def match_recent_artist(
    concert_artists: Sequence[str],
    recent_artists: Sequence[str],
    weights: ScoringWeights,
) -> Optional[MatchSignal]:
    """Concert features an artist from the user's recent listens."""
    lineup = set(concert_artists)
    for name in recent_artists:
        if normalize_name(name) in lineup:
            return MatchSignal(tier=TIER_RECENT, points=weights.recent_artist, artist=name)
    return None


# --- Genre tiers ---


def score_genre_matches(match_count: int, weights: ScoringWeights) -> float:
    """Points for ``match_count`` overlapping genres, including versatility."""
    if match_count <= 0:
        return 0.0
    points = weights.genre_base + weights.genre_step * (match_count - 1)
    if match_count >= weights.genre_versatility_min:
        points += weights.genre_versatility
    return points


def match_genres(
    concert_genres: Sequence[str],
    user_genres: Sequence[str],
    weights: ScoringWeights,
) -> Optional[MatchSignal]:
    """Count concert genres that overlap any of the user's top genres."""
    if not concert_genres or not user_genres:
        return None
    matched = [
        cg for cg in concert_genres if any(genres_overlap(cg, ug) for ug in user_genres)
    ]
    if not matched:
        return None
    return MatchSignal(
        tier=TIER_GENRE,
        points=score_genre_matches(len(matched), weights),
        genre=matched[0],
        match_count=len(matched),
    )


def match_genre_affinity(
    concert_genres: Sequence[str],
    user_genres: Sequence[str],
    affinity: GenreAffinityTable,
    weights: ScoringWeights,
) -> Optional[MatchSignal]:
    """Last-resort match through the genre adjacency table."""
    if not concert_genres:
        return None
    for user_genre in user_genres[: weights.affinity_genre_cap]:
        hit = affinity.find_adjacent(user_genre, concert_genres)
        if hit:
            concert_genre, _ = hit
            return MatchSignal(
                tier=TIER_AFFINITY,
                points=weights.genre_affinity,
                genre=concert_genre,
                related_to=user_genre,
            )
    return None


# --- Confidence ---


def confidence_for_score(score: float, weights: ScoringWeights) -> str:
    """Coarse confidence bucket, monotonic in score."""
    if score >= weights.confidence_high:
        return CONFIDENCE_HIGH
    if score >= weights.confidence_medium:
        return CONFIDENCE_MEDIUM
    return CONFIDENCE_LOW
