"""Single-user concert matching and listing ranking."""

from typing import Dict, Iterable, List, Sequence

from .affinity import DEFAULT_AFFINITY_TABLE, GenreAffinityTable
from .config import DEFAULT_WEIGHTS, ScoringWeights
from .logging_config import get_logger
from .models import (
    MATCH_DIRECT,
    MATCH_GENRE,
    MATCH_RECENT,
    MATCH_RELATED,
    TIER_NONE,
    TIER_TO_MATCH_TYPE,
    ConcertListing,
    MatchResult,
    MatchSignal,
    ScoredConcert,
    UserMusicProfile,
)
from .presentation import describe_signal, display_score
from .scoring import (
    confidence_for_score,
    lower_genres,
    match_direct_artist,
    match_genre_affinity,
    match_genres,
    match_partial_artist,
    match_recent_artist,
    match_related_artist,
    normalize_all,
)

logger = get_logger(__name__)

# Listings without a date sort after every dated one
_NO_DATE = "9999-12-31"


class MatchScorer:
    """Scores concerts against a single user's music profile."""

    def __init__(
        self,
        weights: ScoringWeights = None,
        affinity: GenreAffinityTable = None,
    ):
        """Initialize scorer with weights and a genre affinity table.

        Args:
            weights: Point values and thresholds. Uses DEFAULT_WEIGHTS if not provided.
            affinity: Genre adjacency lookup. Uses DEFAULT_AFFINITY_TABLE if not provided.
        """
        self.weights = weights or DEFAULT_WEIGHTS
        self.affinity = affinity or DEFAULT_AFFINITY_TABLE

    def score(
        self,
        concert_artists: Sequence[str],
        concert_genres: Sequence[str],
        profile: UserMusicProfile,
    ) -> MatchResult:
        """Score one concert for one profile.

        Artist tiers are exclusive (direct, then partial, then related, then
        recent); the genre tier always adds on top; the affinity fallback only
        runs when nothing else fired. The result always carries a reason.

        Args:
            concert_artists: Performer names as listed by the provider.
            concert_genres: Genre labels as listed by the provider.
            profile: Aggregated user profile.

        Returns:
            MatchResult: Score, match type, confidence, reasons and signals.
        """
        w = self.weights
        artists = normalize_all(concert_artists)
        genres = lower_genres(concert_genres)
        user_genres = lower_genres(profile.top_genres)

        signals: List[MatchSignal] = []

        artist_signal = match_direct_artist(artists, profile.top_artists, w)
        if artist_signal is None:
            artist_signal = match_partial_artist(artists, profile.top_artists, w)
        if artist_signal is None:
            artist_signal = match_related_artist(artists, profile.related_artists, w)
        if artist_signal is None:
            artist_signal = match_recent_artist(artists, profile.recent_artists, w)
        if artist_signal is not None:
            signals.append(artist_signal)

        genre_signal = match_genres(genres, user_genres, w)
        if genre_signal is not None:
            signals.append(genre_signal)

        if not signals:
            affinity_signal = match_genre_affinity(genres, user_genres, self.affinity, w)
            if affinity_signal is not None:
                signals.append(affinity_signal)

        if not signals:
            signals.append(MatchSignal(tier=TIER_NONE))

        total = sum(s.points for s in signals)
        primary = signals[0]
        logger.debug(
            "Scored %s: %.1f via %s",
            ", ".join(concert_artists or ()) or "<no artists>",
            total,
            " + ".join(s.tier for s in signals),
        )

        return MatchResult(
            score=total,
            match_type=TIER_TO_MATCH_TYPE[primary.tier],
            confidence=confidence_for_score(total, w),
            reasons=(describe_signal(primary, w),),
            signals=tuple(signals),
        )

    def score_listing(self, listing: ConcertListing, profile: UserMusicProfile) -> MatchResult:
        """Score a provider listing."""
        return self.score(listing.artists, listing.genres, profile)

    def rank_concerts(
        self, listings: Iterable[ConcertListing], profile: UserMusicProfile
    ) -> List[ScoredConcert]:
        """Score listings and order them by score, then by earliest date."""
        scored = [ScoredConcert(listing, self.score_listing(listing, profile)) for listing in listings]
        scored.sort(key=lambda s: (-s.result.score, s.listing.date or _NO_DATE))
        logger.debug("Ranked %d concerts", len(scored))
        return scored


def categorize(scored: Iterable[ScoredConcert]) -> Dict[str, int]:
    """Count ranked concerts per display category."""
    counts = {"must_see": 0, "for_you": 0, "vibe_match": 0}
    for item in scored:
        match_type = item.result.match_type
        if match_type == MATCH_DIRECT:
            counts["must_see"] += 1
        elif match_type in (MATCH_RELATED, MATCH_RECENT):
            counts["for_you"] += 1
        elif match_type == MATCH_GENRE:
            counts["vibe_match"] += 1
    return counts


def filter_for_notification(
    scored: Sequence[ScoredConcert], min_display_score: int = 0, limit: int = 10
) -> List[ScoredConcert]:
    """Select ranked concerts worth emailing about.

    Args:
        scored: Concerts already ranked by ``MatchScorer.rank_concerts``.
        min_display_score: Minimum 0-100 display score to keep.
        limit: Maximum number of concerts returned.

    Returns:
        Concerts in rank order, each with a populated score and reasons.
    """
    kept = [s for s in scored if display_score(s.result.score) >= min_display_score]
    return kept[: max(0, limit)]
