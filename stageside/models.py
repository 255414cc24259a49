"""Domain models for Stageside."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

# Match types reported on MatchResult
MATCH_DIRECT = "direct-artist"
MATCH_RELATED = "related-artist"
MATCH_RECENT = "recently-played"
MATCH_GENRE = "genre"
MATCH_NONE = "none"

# Signal tiers produced by the scoring functions
TIER_DIRECT = "direct"
TIER_PARTIAL = "partial"
TIER_RELATED = "related"
TIER_RECENT = "recent"
TIER_GENRE = "genre"
TIER_AFFINITY = "affinity"
TIER_NONE = "none"

TIER_TO_MATCH_TYPE = {
    TIER_DIRECT: MATCH_DIRECT,
    TIER_PARTIAL: MATCH_RELATED,
    TIER_RELATED: MATCH_RELATED,
    TIER_RECENT: MATCH_RECENT,
    TIER_GENRE: MATCH_GENRE,
    TIER_AFFINITY: MATCH_GENRE,
    TIER_NONE: MATCH_NONE,
}

CONFIDENCE_HIGH = "high"
CONFIDENCE_MEDIUM = "medium"
CONFIDENCE_LOW = "low"

# Group match types, best first
GROUP_UNIVERSAL = "universal"
GROUP_MAJORITY = "majority"
GROUP_SOME = "some"
GROUP_TYPE_ORDER = {GROUP_UNIVERSAL: 0, GROUP_MAJORITY: 1, GROUP_SOME: 2}

# Itinerary slot priorities, best first
PRIORITY_MUST_SEE = "must-see"
PRIORITY_RECOMMENDED = "recommended"
PRIORITY_DISCOVERY = "discovery"
PRIORITY_FILLER = "filler"
PRIORITY_ORDER = {
    PRIORITY_MUST_SEE: 0,
    PRIORITY_RECOMMENDED: 1,
    PRIORITY_DISCOVERY: 2,
    PRIORITY_FILLER: 3,
}


@dataclass(frozen=True)
class ArtistRef:
    """An artist as reported by a profile fetcher."""

    name: str
    genres: Tuple[str, ...] = ()
    rank: Optional[int] = None  # position within its source, 0 = favorite
    source_score: Optional[float] = None  # precomputed weight, overrides rank
    related_to: Optional[str] = None  # set by related-artist expansions


@dataclass
class ServiceArtistList:
    """Ranked artists from one connected service, manual entry or expansion."""

    service: str
    artists: List[ArtistRef] = field(default_factory=list)
    recent_artists: List[str] = field(default_factory=list)
    genres: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ConcertListing:
    """A concert as supplied by the ticketing provider."""

    id: str
    artists: Tuple[str, ...] = ()
    genres: Tuple[str, ...] = ()
    date: Optional[str] = None  # ISO format: YYYY-MM-DD
    venue: Optional[str] = None


@dataclass(frozen=True)
class AggregatedArtist:
    """One artist folded across every source that reported it."""

    normalized_name: str
    display_name: str
    score: float
    genres: Tuple[str, ...] = ()
    sources: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RelatedArtist:
    """An artist similar to one of the user's artists."""

    name: str
    related_to: str


@dataclass(frozen=True)
class UserMusicProfile:
    """Unified taste profile used by the scorers."""

    top_artists: Tuple[AggregatedArtist, ...] = ()  # score-sorted, best first
    top_genres: Tuple[str, ...] = ()  # frequency-sorted, lower-case
    recent_artists: Tuple[str, ...] = ()
    connected_services: Tuple[str, ...] = ()
    related_artists: Tuple[RelatedArtist, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.top_artists or self.top_genres or self.recent_artists)


@dataclass(frozen=True)
class MatchSignal:
    """Structured outcome of one scoring tier."""

    tier: str
    points: float = 0.0
    artist: Optional[str] = None
    rank_index: Optional[int] = None
    genre: Optional[str] = None
    related_to: Optional[str] = None
    match_count: int = 0


@dataclass(frozen=True)
class MatchResult:
    """Relevance of one concert for one profile."""

    score: float
    match_type: str
    confidence: str
    reasons: Tuple[str, ...]
    signals: Tuple[MatchSignal, ...] = ()

    @property
    def primary_signal(self) -> Optional[MatchSignal]:
        return self.signals[0] if self.signals else None


@dataclass(frozen=True)
class ScoredConcert:
    """A listing paired with its match result."""

    listing: ConcertListing
    result: MatchResult


@dataclass(frozen=True)
class MemberProfile:
    """A group member and their music profile."""

    member_id: str
    profile: UserMusicProfile
    display_name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name or self.member_id


@dataclass(frozen=True)
class GroupMatchResult:
    """Relevance of one concert for a whole group."""

    score: float
    match_type: str  # universal, majority or some
    matched_members: Tuple[str, ...]
    member_results: Dict[str, MatchResult] = field(default_factory=dict)
    total_members: int = 0


@dataclass(frozen=True)
class LineupArtist:
    """A festival performer with optional day, stage and set times."""

    name: str
    day: Optional[str] = None
    stage: Optional[str] = None
    start_time: Optional[str] = None  # "HH:MM", 24h
    end_time: Optional[str] = None
    headliner: bool = False
    genres: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MemberArtistMatches:
    """Per-member match results keyed by normalized lineup artist name."""

    member_id: str
    matches: Dict[str, MatchResult] = field(default_factory=dict)


@dataclass(frozen=True)
class Conflict:
    """Two sets on the same day whose windows overlap."""

    artist_a: LineupArtist
    artist_b: LineupArtist
    day: str
    overlap_minutes: int


@dataclass(frozen=True)
class ScheduleSlot:
    """One artist placed in an itinerary day."""

    artist: LineupArtist
    priority: str
    score: float
    reason: str
    matched_members: Tuple[str, ...] = ()
    alternatives: Tuple[LineupArtist, ...] = ()


@dataclass(frozen=True)
class ItineraryDay:
    """Ordered slots for a single festival day."""

    day: str
    slots: Tuple[ScheduleSlot, ...] = ()
    total_score: float = 0.0
    must_see_count: int = 0


@dataclass(frozen=True)
class GeneratedItinerary:
    """A complete conflict-aware festival plan."""

    days: Tuple[ItineraryDay, ...] = ()
    total_score: float = 0.0
    coverage: float = 1.0  # fraction of must-see artists placed
    conflicts: Tuple[Conflict, ...] = ()
    highlights: Tuple[str, ...] = ()
    unscheduled: Tuple[LineupArtist, ...] = ()  # artists without usable set times


@dataclass(frozen=True)
class FestivalMatchSummary:
    """How well a festival lineup fits one profile."""

    match_percentage: int
    matched_artist_count: int
    total_artist_count: int
    must_see: Tuple[str, ...] = ()
    discoveries: Tuple[str, ...] = ()
