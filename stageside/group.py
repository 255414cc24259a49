"""Group consensus scoring across several member profiles."""

from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .config import DEFAULT_GROUP, GroupConfig
from .exceptions import DuplicateMemberError
from .logging_config import get_logger
from .matcher import MatchScorer
from .models import (
    GROUP_MAJORITY,
    GROUP_SOME,
    GROUP_TYPE_ORDER,
    GROUP_UNIVERSAL,
    ConcertListing,
    GroupMatchResult,
    MatchResult,
    MemberProfile,
)
from .normalize import genres_overlap, normalize_genre, normalize_name
from .scoring import lower_genres, normalize_all

logger = get_logger(__name__)


def duplicate_member_ids(members: Iterable[MemberProfile]) -> List[str]:
    """Member ids that appear more than once, in first-seen order."""
    counts = Counter(member.member_id for member in members)
    return [member_id for member_id, count in counts.items() if count > 1]


def check_unique_members(members: Sequence[MemberProfile]):
    """Raise DuplicateMemberError if any two members share an id.

    Results are keyed by member id, so duplicates would silently merge and
    skew the universal/majority thresholds.
    """
    duplicates = duplicate_member_ids(members)
    if duplicates:
        raise DuplicateMemberError(f"Duplicate member ids: {', '.join(duplicates)}")


def find_overlap_artists(members: Sequence[MemberProfile], min_members: int = 2) -> List[str]:
    """Artists that appear in at least ``min_members`` members' top lists."""
    if len(members) < min_members:
        return []
    counts: Counter = Counter()
    display: Dict[str, str] = {}
    for member in members:
        seen = set()
        for artist in member.profile.top_artists:
            key = normalize_name(artist.normalized_name or artist.display_name)
            if not key or key in seen:
                continue
            seen.add(key)
            display.setdefault(key, artist.display_name)
            counts[key] += 1
    shared = sorted(
        (item for item in counts.items() if item[1] >= min_members), key=lambda item: -item[1]
    )
    return [display[key] for key, _ in shared]


def find_overlap_genres(members: Sequence[MemberProfile], min_members: int = 2) -> List[str]:
    """Genres that appear in at least ``min_members`` members' top genres."""
    if len(members) < min_members:
        return []
    counts: Counter = Counter()
    for member in members:
        for genre in lower_genres(member.profile.top_genres):
            counts[genre] += 1
    shared = [g for g in counts if counts[g] >= min_members]
    return sorted(shared, key=lambda g: -counts[g])


def classify_group_match(matched: int, total: int) -> Optional[str]:
    """Map a matched/total member count to universal, majority or some."""
    if total <= 0 or matched <= 0:
        return None
    if matched == total:
        return GROUP_UNIVERSAL
    if matched > total / 2:
        return GROUP_MAJORITY
    return GROUP_SOME


def group_sort_key(result: GroupMatchResult) -> Tuple[int, float]:
    """Sort key: match tier first, then score descending."""
    return GROUP_TYPE_ORDER[result.match_type], -result.score


def rank_group_results(results: Iterable[GroupMatchResult]) -> List[GroupMatchResult]:
    """Order group results universal > majority > some, then by score."""
    return sorted(results, key=group_sort_key)


class GroupScorer:
    """Scores concerts for a group by combining per-member match results."""

    def __init__(self, scorer: MatchScorer = None, config: GroupConfig = None):
        """Initialize group scorer.

        Args:
            scorer: Single-user scorer run once per member. A default MatchScorer if not provided.
            config: Group settings. Uses DEFAULT_GROUP if not provided.
        """
        self.scorer = scorer or MatchScorer()
        self.config = config or DEFAULT_GROUP

    def score_for_group(
        self,
        concert_artists: Sequence[str],
        concert_genres: Sequence[str],
        members: Sequence[MemberProfile],
    ) -> Optional[GroupMatchResult]:
        """Score one concert for a group.

        Returns:
            GroupMatchResult, or None when no member clears the match floor.

        Raises:
            DuplicateMemberError: If two members share an id.
        """
        if not members:
            return None
        check_unique_members(members)
        cfg = self.config

        member_results: Dict[str, MatchResult] = {}
        for member in members:
            member_results[member.member_id] = self.scorer.score(
                concert_artists, concert_genres, member.profile
            )

        matched = tuple(
            member_id
            for member_id, result in member_results.items()
            if result.score > cfg.match_floor
        )
        match_type = classify_group_match(len(matched), len(member_results))
        if match_type is None:
            return None

        # Unmatched members pull the mean down, so breadth and depth both count
        contributions = np.array(
            [r.score if m in matched else 0.0 for m, r in member_results.items()], dtype=float
        )
        score = float(np.mean(contributions))
        score += self._overlap_bonus(concert_artists, concert_genres, members)

        logger.debug(
            "Group match %s: %d/%d members, score %.1f",
            match_type,
            len(matched),
            len(member_results),
            score,
        )
        return GroupMatchResult(
            score=round(score, 2),
            match_type=match_type,
            matched_members=matched,
            member_results=member_results,
            total_members=len(member_results),
        )

    def _overlap_bonus(
        self,
        concert_artists: Sequence[str],
        concert_genres: Sequence[str],
        members: Sequence[MemberProfile],
    ) -> float:
        """Bonus for concerts featuring favorites or genres the members share."""
        cfg = self.config
        bonus = 0.0
        shared_artists = {
            normalize_name(a) for a in find_overlap_artists(members, cfg.overlap_min_members)
        }
        if shared_artists & set(normalize_all(concert_artists)):
            bonus += cfg.shared_artist_bonus

        shared_genres = find_overlap_genres(members, cfg.overlap_min_members)
        genres = [normalize_genre(g) for g in concert_genres or ()]
        if any(genres_overlap(cg, sg) for cg in genres for sg in shared_genres):
            bonus += cfg.shared_genre_bonus
        return bonus

    def match_concerts(
        self, listings: Iterable[ConcertListing], members: Sequence[MemberProfile]
    ) -> List[Tuple[ConcertListing, GroupMatchResult]]:
        """Score listings for the group, drop non-matches and rank the rest."""
        check_unique_members(members)
        pairs = []
        for listing in listings:
            result = self.score_for_group(listing.artists, listing.genres, members)
            if result is not None:
                pairs.append((listing, result))
        pairs.sort(key=lambda pair: group_sort_key(pair[1]))
        logger.debug("Group matched %d concerts", len(pairs))
        return pairs
