"""Fold per-service artist lists into one unified taste profile."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .config import DEFAULT_AGGREGATION, AggregationConfig
from .logging_config import get_logger
from .models import (
    AggregatedArtist,
    ArtistRef,
    RelatedArtist,
    ServiceArtistList,
    UserMusicProfile,
)
from .normalize import normalize_genre, normalize_name

logger = get_logger(__name__)


@dataclass
class _Accumulator:
    """Running totals for one normalized artist while folding."""

    display_name: str
    score: float
    genres: List[str] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)

    def add_genres(self, genres: Iterable[str]) -> List[str]:
        """Union genres case-insensitively, returning the ones that were new."""
        known = {g.lower() for g in self.genres}
        added = []
        for genre in genres:
            genre = genre.strip()
            if genre and genre.lower() not in known:
                known.add(genre.lower())
                self.genres.append(genre)
                added.append(genre)
        return added


class ProfileAggregator:
    """Combines artist lists from several services into a UserMusicProfile."""

    def __init__(self, config: AggregationConfig = None):
        """Initialize aggregator.

        Args:
            config: Aggregation settings. Uses DEFAULT_AGGREGATION if not provided.
        """
        self.config = config or DEFAULT_AGGREGATION

    def _position_score(self, ref: ArtistRef, index: int) -> float:
        """Weight of one list entry before the service multiplier."""
        if ref.source_score is not None:
            return max(0.0, float(ref.source_score))
        position = ref.rank if ref.rank is not None else index
        return max(self.config.position_base - position, self.config.position_floor)

    def aggregate(self, sources: Iterable[Optional[ServiceArtistList]]) -> UserMusicProfile:
        """Build a profile from any number of service artist lists.

        Artists are keyed by normalized name; the same artist reported by
        several services accumulates score from each, so cross-service
        favorites rise above single-service entries. Missing or empty sources
        are skipped.

        Args:
            sources: One entry per connected service, manual entry or expansion.

        Returns:
            UserMusicProfile with score-sorted artists and frequency-sorted genres.
        """
        cfg = self.config
        artists: Dict[str, _Accumulator] = {}
        genre_counts: Counter = Counter()
        recent: Dict[str, str] = {}
        related: Dict[str, RelatedArtist] = {}
        services: List[str] = []

        for source in sources or ():
            if source is None:
                continue
            if source.service not in services:
                services.append(source.service)
            weight = cfg.weight_for(source.service)

            for index, ref in enumerate(source.artists):
                key = normalize_name(ref.name)
                if not key:
                    continue
                # Expansions feed the related tier, not the user's own artists
                if ref.related_to:
                    if key not in related:
                        related[key] = RelatedArtist(name=ref.name.strip(), related_to=ref.related_to)
                    continue
                points = self._position_score(ref, index) * weight

                entry = artists.get(key)
                if entry is None:
                    entry = _Accumulator(display_name=ref.name.strip(), score=0.0)
                    artists[key] = entry
                elif len(ref.name.strip()) > len(entry.display_name):
                    # Longer spelling is usually the properly punctuated one
                    entry.display_name = ref.name.strip()
                entry.score += points
                if source.service not in entry.sources:
                    entry.sources.append(source.service)
                # Each artist counts a genre once, however many services report it
                for genre in entry.add_genres(ref.genres):
                    genre_counts[normalize_genre(genre)] += 1

            for name in source.recent_artists[: cfg.recent_per_source]:
                key = normalize_name(name)
                if key and key not in recent:
                    recent[key] = name.strip()

            for genre in source.genres:
                g = normalize_genre(genre)
                if g:
                    genre_counts[g] += 1

        ranked = sorted(artists.items(), key=lambda item: -item[1].score)[: cfg.max_artists]
        top_artists = tuple(
            AggregatedArtist(
                normalized_name=key,
                display_name=entry.display_name,
                score=round(entry.score, 2),
                genres=tuple(entry.genres),
                sources=tuple(entry.sources),
            )
            for key, entry in ranked
        )

        # Counter keeps insertion order, so ties stay in discovery order
        top_genres = tuple(
            genre
            for genre, _ in sorted(genre_counts.items(), key=lambda item: -item[1])[
                : cfg.max_genres
            ]
        )

        logger.debug(
            "Aggregated %d artists and %d genres from %s",
            len(top_artists),
            len(top_genres),
            ", ".join(services) or "no services",
        )

        return UserMusicProfile(
            top_artists=top_artists,
            top_genres=top_genres,
            recent_artists=tuple(recent.values()),
            connected_services=tuple(services),
            related_artists=tuple(related.values()),
        )


def aggregate_profiles(
    sources: Iterable[Optional[ServiceArtistList]], config: AggregationConfig = None
) -> UserMusicProfile:
    """Convenience wrapper around ``ProfileAggregator.aggregate``."""
    return ProfileAggregator(config).aggregate(sources)


def profile_from_names(
    artists: Iterable[str],
    genres: Iterable[str] = (),
    recent: Iterable[str] = (),
    service: str = "manual",
) -> UserMusicProfile:
    """Build a profile from a plain ranked list of artist names.

    Example:
        >>> profile_from_names(["Tame Impala", "Khruangbin"], genres=["psych rock"]).top_genres
        ('psych rock',)
    """
    source = ServiceArtistList(
        service=service,
        artists=[ArtistRef(name=name) for name in artists],
        recent_artists=list(recent),
        genres=list(genres),
    )
    return ProfileAggregator().aggregate([source])
