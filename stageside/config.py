"""Configuration for Stageside matching, aggregation and scheduling."""

from dataclasses import dataclass, field
from typing import Dict

from .exceptions import InvalidConfigurationError

MINUTES_PER_DAY = 24 * 60

# Itinerary tie-break policies
TIE_BREAK_MEMBERS = "members"
TIE_BREAK_SCORE = "score"
TIE_BREAK_POLICIES = (TIE_BREAK_MEMBERS, TIE_BREAK_SCORE)

DAY_ROLLOVER_HOUR = 6
MAX_ROLLOVER_HOUR = 12


@dataclass(frozen=True)
class ScoringWeights:
    """Point values and thresholds for single-user match scoring."""

    # Direct artist match: base + max(0, rank_bonus_max - rank_bonus_step * rank_index)
    direct_artist: float = 100.0
    rank_bonus_max: float = 50.0
    rank_bonus_step: float = 2.0

    # Weaker artist signals
    partial_artist: float = 80.0
    partial_min_length: int = 5
    # Known alias or edit-distance similarity at or above this also counts as partial
    fuzzy_threshold: float = 0.85
    related_artist: float = 60.0
    recent_artist: float = 70.0

    # Genre tier: genre_base + genre_step * (matches - 1), plus versatility at 2+
    genre_base: float = 20.0
    genre_step: float = 10.0
    genre_versatility: float = 5.0
    genre_versatility_min: int = 2

    # Affinity fallback
    genre_affinity: float = 15.0
    affinity_genre_cap: int = 10

    # Confidence thresholds (score >= threshold)
    confidence_high: float = 100.0
    confidence_medium: float = 50.0

    # Reason tiers by rank index (exclusive upper bounds)
    rank_tier_top: int = 3
    rank_tier_high: int = 10
    rank_tier_mid: int = 25


def _default_service_weights() -> Dict[str, float]:
    return {
        "spotify": 1.0,
        "apple_music": 0.95,
        "tidal": 0.9,
        "deezer": 0.85,
        "youtube_music": 0.7,
        "manual": 1.0,
        "related": 0.5,
    }


@dataclass(frozen=True)
class AggregationConfig:
    """Configuration for folding per-service artist lists into one profile."""

    service_weights: Dict[str, float] = field(default_factory=_default_service_weights)
    unknown_service_weight: float = 1.0

    # Position score: max(position_base - position, position_floor)
    position_base: float = 100.0
    position_floor: float = 10.0

    max_artists: int = 200
    max_genres: int = 20
    recent_per_source: int = 20

    def weight_for(self, service: str) -> float:
        return self.service_weights.get(service, self.unknown_service_weight)


@dataclass(frozen=True)
class GroupConfig:
    """Configuration for group consensus scoring."""

    # A member counts as matched when their score is strictly above this floor
    match_floor: float = 0.0
    shared_artist_bonus: float = 50.0
    shared_genre_bonus: float = 20.0
    overlap_min_members: int = 2


@dataclass(frozen=True)
class ItineraryConfig:
    """Configuration for festival itinerary generation."""

    max_per_day: int = 8
    rest_break_minutes: int = 60
    include_discoveries: bool = True

    # Unmatched headliners are only used to pad days with fewer slots than this
    sparse_day_threshold: int = 3
    tie_break: str = TIE_BREAK_MEMBERS

    # Member score floor for counting a member as matched on a lineup artist
    match_floor: float = 0.0

    # Sets starting before this hour belong to the previous festival night; 0 disables
    day_rollover_hour: int = DAY_ROLLOVER_HOUR

    def validate(self):
        """Reject settings that would produce a meaningless schedule.

        Raises:
            InvalidConfigurationError: If any value is out of range.
        """
        if self.max_per_day < 0:
            raise InvalidConfigurationError(
                f"max_per_day must be non-negative, got {self.max_per_day}"
            )
        if self.rest_break_minutes < 0:
            raise InvalidConfigurationError(
                f"rest_break_minutes must be non-negative, got {self.rest_break_minutes}"
            )
        if self.rest_break_minutes >= MINUTES_PER_DAY:
            raise InvalidConfigurationError(
                f"rest_break_minutes must be shorter than a day, got {self.rest_break_minutes}"
            )
        if not 0 <= self.day_rollover_hour <= MAX_ROLLOVER_HOUR:
            raise InvalidConfigurationError(
                f"day_rollover_hour must be between 0 and {MAX_ROLLOVER_HOUR}, "
                f"got {self.day_rollover_hour}"
            )
        if self.tie_break not in TIE_BREAK_POLICIES:
            raise InvalidConfigurationError(
                f"Unknown tie_break policy {self.tie_break!r}, "
                f"expected one of {', '.join(TIE_BREAK_POLICIES)}"
            )


# Default configuration instances
DEFAULT_WEIGHTS = ScoringWeights()
DEFAULT_AGGREGATION = AggregationConfig()
DEFAULT_GROUP = GroupConfig()
DEFAULT_ITINERARY = ItineraryConfig()
