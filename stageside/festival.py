"""Festival lineup matching, conflict detection and itinerary generation."""

import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .config import (
    DAY_ROLLOVER_HOUR,
    DEFAULT_ITINERARY,
    MINUTES_PER_DAY,
    TIE_BREAK_SCORE,
    ItineraryConfig,
)
from .group import check_unique_members
from .logging_config import get_logger
from .matcher import MatchScorer
from .models import (
    MATCH_DIRECT,
    MATCH_GENRE,
    MATCH_RECENT,
    MATCH_RELATED,
    PRIORITY_DISCOVERY,
    PRIORITY_FILLER,
    PRIORITY_MUST_SEE,
    PRIORITY_ORDER,
    PRIORITY_RECOMMENDED,
    Conflict,
    FestivalMatchSummary,
    GeneratedItinerary,
    ItineraryDay,
    LineupArtist,
    MatchResult,
    MemberArtistMatches,
    MemberProfile,
    ScheduleSlot,
    UserMusicProfile,
)
from .normalize import normalize_name

logger = get_logger(__name__)

DEFAULT_DAY = "Day 1"
WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")

# Match type -> slot priority
_PRIORITY_FOR_TYPE = {
    MATCH_DIRECT: PRIORITY_MUST_SEE,
    MATCH_RELATED: PRIORITY_RECOMMENDED,
    MATCH_RECENT: PRIORITY_RECOMMENDED,
    MATCH_GENRE: PRIORITY_DISCOVERY,
}


# --- Time windows ---


def parse_time(value: Optional[str]) -> Optional[int]:
    """Parse "HH:MM" (24h) into minutes since midnight, or None if unusable.

    Example:
        >>> parse_time("21:30")
        1290
    """
    if not value:
        return None
    match = _TIME_RE.match(str(value))
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 24 or minutes > 59 or (hours == 24 and minutes > 0):
        return None
    return hours * 60 + minutes


def set_window(
    artist: LineupArtist, rollover_hour: int = DAY_ROLLOVER_HOUR
) -> Optional[Tuple[int, int]]:
    """(start, end) in minutes since the start of the festival day.

    Sets starting before ``rollover_hour`` are late-night sets of the previous
    evening and move past midnight, as do sets ending before they start.

    Example:
        >>> set_window(LineupArtist("Late", start_time="00:30", end_time="01:30"))
        (1470, 1530)
    """
    start = parse_time(artist.start_time)
    end = parse_time(artist.end_time)
    if start is None or end is None:
        return None
    if start < rollover_hour * 60:
        start += MINUTES_PER_DAY
    if end < start:
        end += MINUTES_PER_DAY
    return start, end


def day_of(artist: LineupArtist) -> str:
    return (artist.day or "").strip() or DEFAULT_DAY


def day_key(day: str) -> str:
    """Case- and spacing-insensitive key so "Saturday" and "saturday " are one day."""
    return " ".join(day.split()).lower()


def _weekday_index(day: str) -> Optional[int]:
    name = day.strip().lower()
    for index, weekday in enumerate(WEEKDAYS):
        if name == weekday or name == weekday[:3]:
            return index
    return None


def order_days(days: Sequence[str]) -> List[str]:
    """Order festival days chronologically.

    Weekday names are ordered starting after the widest gap in the week, so
    a Saturday-Sunday-Monday festival keeps Monday last. Anything else keeps
    first-appearance order.
    """
    unique = list(dict.fromkeys(days))
    indices = [_weekday_index(d) for d in unique]
    if not unique or any(i is None for i in indices):
        return unique
    present = sorted(set(indices))
    gaps = []
    for k, current in enumerate(present):
        following = present[(k + 1) % len(present)]
        gaps.append(((following - current) % 7 or 7, following))
    start = max(gaps)[1]
    return sorted(unique, key=lambda d: (_weekday_index(d) - start) % 7)


# --- Conflict detection ---


def overlap_minutes(
    a: LineupArtist, b: LineupArtist, rollover_hour: int = DAY_ROLLOVER_HOUR
) -> int:
    """Minutes two sets overlap, ignoring day and stage. Symmetric."""
    wa, wb = set_window(a, rollover_hour), set_window(b, rollover_hour)
    if wa is None or wb is None:
        return 0
    return max(0, min(wa[1], wb[1]) - max(wa[0], wb[0]))


def _canonical_pair(
    a: LineupArtist, b: LineupArtist, rollover_hour: int
) -> Tuple[LineupArtist, LineupArtist]:
    def key(artist: LineupArtist):
        return set_window(artist, rollover_hour), normalize_name(artist.name), artist.stage or ""

    return (a, b) if key(a) <= key(b) else (b, a)


def find_conflict(
    a: LineupArtist, b: LineupArtist, rollover_hour: int = DAY_ROLLOVER_HOUR
) -> Optional[Conflict]:
    """Conflict between two sets on the same day on different stages.

    The result does not depend on argument order.
    """
    if day_key(day_of(a)) != day_key(day_of(b)):
        return None
    if a.stage and b.stage and a.stage.strip().lower() == b.stage.strip().lower():
        return None
    overlap = overlap_minutes(a, b, rollover_hour)
    if overlap <= 0:
        return None
    first, second = _canonical_pair(a, b, rollover_hour)
    return Conflict(artist_a=first, artist_b=second, day=day_of(first), overlap_minutes=overlap)


def _group_by_day(
    pairs: Iterable[Tuple[LineupArtist, Any]],
) -> Tuple[List[str], Dict[str, list]]:
    """Bucket items by their artist's day; returns ordered day labels and buckets.

    Days are compared case-insensitively and labelled with their first
    spelling in the lineup.
    """
    labels: Dict[str, str] = {}
    buckets: Dict[str, list] = {}
    for artist, item in pairs:
        label = labels.setdefault(day_key(day_of(artist)), day_of(artist))
        buckets.setdefault(label, []).append(item)
    return order_days(list(buckets)), buckets


def detect_conflicts(
    lineup: Iterable[LineupArtist], rollover_hour: int = DAY_ROLLOVER_HOUR
) -> List[Conflict]:
    """Every overlapping pair in the full lineup, whether or not it was picked."""
    days, by_day = _group_by_day(
        (artist, artist)
        for artist in lineup or ()
        if set_window(artist, rollover_hour) is not None
    )

    conflicts = []
    for day in days:
        artists = by_day[day]
        for i in range(len(artists) - 1):
            for j in range(i + 1, len(artists)):
                conflict = find_conflict(artists[i], artists[j], rollover_hour)
                if conflict:
                    conflicts.append(replace(conflict, day=day))
    return conflicts


def _too_close(wa: Tuple[int, int], wb: Tuple[int, int], rest_break: int) -> bool:
    """True when the gap between two windows is shorter than ``rest_break``.

    Overlaps give a negative gap, so a zero rest break still rejects them.
    """
    gap = max(wa[0], wb[0]) - min(wa[1], wb[1])
    return gap < rest_break


# --- Lineup matching ---


def match_lineup(
    lineup: Iterable[LineupArtist],
    members: Sequence[MemberProfile],
    scorer: MatchScorer = None,
) -> List[MemberArtistMatches]:
    """Score every lineup artist for every member.

    Raises:
        DuplicateMemberError: If two members share an id.
    """
    check_unique_members(members)
    scorer = scorer or MatchScorer()
    lineup = list(lineup or ())
    results = []
    for member in members:
        matches: Dict[str, MatchResult] = {}
        for artist in lineup:
            key = normalize_name(artist.name)
            if key and key not in matches:
                matches[key] = scorer.score([artist.name], artist.genres, member.profile)
        results.append(MemberArtistMatches(member_id=member.member_id, matches=matches))
    return results


def festival_match(
    lineup: Sequence[LineupArtist], profile: UserMusicProfile, scorer: MatchScorer = None
) -> FestivalMatchSummary:
    """Summarize how well a festival lineup fits one profile."""
    lineup = list(lineup or ())
    if not lineup or profile.is_empty:
        return FestivalMatchSummary(
            match_percentage=0, matched_artist_count=0, total_artist_count=len(lineup)
        )
    scorer = scorer or MatchScorer()
    scored = [(artist, scorer.score([artist.name], artist.genres, profile)) for artist in lineup]
    scored.sort(key=lambda pair: -pair[1].score)

    must_see = tuple(a.name for a, r in scored if r.match_type == MATCH_DIRECT)
    discoveries = tuple(
        a.name for a, r in scored if r.match_type in (MATCH_RELATED, MATCH_RECENT, MATCH_GENRE)
    )

    percentage = float(np.mean([min(r.score, 100.0) for _, r in scored]))
    if len(must_see) >= 5:
        percentage = max(percentage, min(95.0, percentage + 10))
    if len(must_see) >= 10:
        percentage = max(percentage, min(98.0, percentage + 5))

    return FestivalMatchSummary(
        match_percentage=int(round(percentage)),
        matched_artist_count=len(must_see) + len(discoveries),
        total_artist_count=len(lineup),
        must_see=must_see,
        discoveries=discoveries,
    )


# --- Itinerary ---


@dataclass
class _Candidate:
    """A timed lineup artist with its combined group evaluation."""

    artist: LineupArtist
    window: Tuple[int, int]
    priority: str
    best_score: float
    matched_members: Tuple[str, ...]
    reason: str
    order: int


class ItineraryBuilder:
    """Builds conflict-aware, capacity-bounded daily festival schedules."""

    def __init__(self, config: ItineraryConfig = None):
        """Initialize builder.

        Args:
            config: Itinerary settings. Uses DEFAULT_ITINERARY if not provided.

        Raises:
            InvalidConfigurationError: If the configuration is out of range.
        """
        self.config = config or DEFAULT_ITINERARY
        self.config.validate()

    def _evaluate(
        self, artist: LineupArtist, member_matches: Sequence[MemberArtistMatches]
    ) -> Tuple[str, float, Tuple[str, ...], str]:
        """Combine member results for one artist into (priority, score, members, reason)."""
        key = normalize_name(artist.name)
        matched = []
        best: Optional[MatchResult] = None
        best_rank = len(PRIORITY_ORDER)
        for member in member_matches:
            result = member.matches.get(key)
            if result is None or result.score <= self.config.match_floor:
                continue
            matched.append(member.member_id)
            rank = PRIORITY_ORDER[_PRIORITY_FOR_TYPE.get(result.match_type, PRIORITY_FILLER)]
            if best is None or (rank, -result.score) < (best_rank, -best.score):
                best, best_rank = result, rank

        if best is None:
            reason = "Popular headliner" if artist.headliner else "Open slot"
            return PRIORITY_FILLER, 0.0, (), reason

        priority = _PRIORITY_FOR_TYPE.get(best.match_type, PRIORITY_FILLER)
        reason = best.reasons[0] if best.reasons else "Matches your taste"
        if len(member_matches) > 1:
            reason = f"{reason} ({len(matched)}/{len(member_matches)} members)"
        return priority, best.score, tuple(matched), reason

    def _rank_key(self, candidate: _Candidate):
        members = -len(candidate.matched_members)
        score = -candidate.best_score
        if self.config.tie_break == TIE_BREAK_SCORE:
            policy = (score, members)
        else:
            policy = (members, score)
        return (PRIORITY_ORDER[candidate.priority],) + policy + (candidate.window[0], candidate.order)

    def _eligible(self, candidate: _Candidate, selected_count: int) -> bool:
        if candidate.priority == PRIORITY_DISCOVERY:
            return self.config.include_discoveries
        if candidate.priority == PRIORITY_FILLER:
            return candidate.artist.headliner and selected_count < self.config.sparse_day_threshold
        return True

    def _build_day(self, day: str, candidates: List[_Candidate]) -> Tuple[ItineraryDay, int, int]:
        """Greedy selection for one day. Returns (day, must-see placed, must-see total)."""
        cfg = self.config
        ranked = sorted(candidates, key=self._rank_key)

        selected: List[_Candidate] = []
        for candidate in ranked:
            if len(selected) >= cfg.max_per_day:
                break
            if not self._eligible(candidate, len(selected)):
                continue
            if any(_too_close(candidate.window, s.window, cfg.rest_break_minutes) for s in selected):
                continue
            selected.append(candidate)

        alternatives: Dict[int, List[LineupArtist]] = {id(s): [] for s in selected}
        for candidate in ranked:
            if candidate in selected or candidate.priority == PRIORITY_FILLER:
                continue
            if not self._eligible(candidate, len(selected)):
                continue
            for winner in selected:
                if _too_close(candidate.window, winner.window, cfg.rest_break_minutes):
                    alternatives[id(winner)].append(candidate.artist)
                    break

        slots = tuple(
            ScheduleSlot(
                artist=c.artist,
                priority=c.priority,
                score=c.best_score,
                reason=c.reason,
                matched_members=c.matched_members,
                alternatives=tuple(alternatives[id(c)]),
            )
            for c in sorted(selected, key=lambda c: (c.window[0], c.order))
        )
        must_see_total = sum(1 for c in candidates if c.priority == PRIORITY_MUST_SEE)
        must_see_placed = sum(1 for s in slots if s.priority == PRIORITY_MUST_SEE)
        itinerary_day = ItineraryDay(
            day=day,
            slots=slots,
            total_score=round(sum(s.score for s in slots), 2),
            must_see_count=must_see_placed,
        )
        return itinerary_day, must_see_placed, must_see_total

    def build(
        self,
        lineup: Iterable[LineupArtist],
        member_matches: Sequence[MemberArtistMatches],
    ) -> GeneratedItinerary:
        """Generate a festival itinerary for one or more members.

        Artists without usable set times are left out of the schedule and
        reported in ``unscheduled``. Conflicts are computed on the full lineup.

        Args:
            lineup: Festival performers.
            member_matches: Per-member results from ``match_lineup``.

        Returns:
            GeneratedItinerary with days, coverage, conflicts and highlights.
        """
        lineup = list(lineup or ())
        if not lineup:
            logger.warning("Empty lineup, nothing to schedule")
            return GeneratedItinerary()

        rollover = self.config.day_rollover_hour
        timed = []
        unscheduled = []
        for order, artist in enumerate(lineup):
            window = set_window(artist, rollover)
            if window is None:
                unscheduled.append(artist)
                continue
            priority, score, matched, reason = self._evaluate(artist, member_matches)
            timed.append((artist, _Candidate(artist, window, priority, score, matched, reason, order)))
        if unscheduled:
            logger.warning("%d lineup artists have no usable set times", len(unscheduled))

        day_labels, by_day = _group_by_day(timed)
        days = []
        placed_total = 0
        must_see_total = 0
        for day in day_labels:
            itinerary_day, placed, total = self._build_day(day, by_day[day])
            days.append(itinerary_day)
            placed_total += placed
            must_see_total += total

        conflicts = tuple(detect_conflicts(lineup, rollover))
        coverage = placed_total / must_see_total if must_see_total else 1.0
        itinerary = GeneratedItinerary(
            days=tuple(days),
            total_score=round(sum(d.total_score for d in days), 2),
            coverage=round(coverage, 3),
            conflicts=conflicts,
            highlights=tuple(self._highlights(days, conflicts, unscheduled)),
            unscheduled=tuple(unscheduled),
        )
        logger.info(
            "Built itinerary: %d days, %d slots, %.0f%% must-see coverage, %d conflicts",
            len(days),
            sum(len(d.slots) for d in days),
            itinerary.coverage * 100,
            len(conflicts),
        )
        return itinerary

    @staticmethod
    def _highlights(days, conflicts, unscheduled) -> List[str]:
        highlights = []
        slots = [s for d in days for s in d.slots]
        must_see = sum(1 for s in slots if s.priority == PRIORITY_MUST_SEE)
        discoveries = sum(1 for s in slots if s.priority == PRIORITY_DISCOVERY)
        if must_see:
            highlights.append(f"{must_see} must-see artists scheduled")
        if conflicts:
            highlights.append(f"{len(conflicts)} schedule conflicts to consider")
        if discoveries:
            highlights.append(f"{discoveries} new artists to discover")
        if unscheduled:
            highlights.append(f"{len(unscheduled)} artists without set times yet")
        return highlights

    def swap(
        self,
        itinerary: GeneratedItinerary,
        day_index: int,
        slot_index: int,
        new_artist: LineupArtist,
        member_matches: Sequence[MemberArtistMatches] = (),
        priority: Optional[str] = None,
    ) -> GeneratedItinerary:
        """Replace one slot's artist, keeping the old one as the first alternative.

        Returns a new itinerary; out-of-range indices return the input
        unchanged. Coverage is left as generated.
        """
        if not 0 <= day_index < len(itinerary.days):
            return itinerary
        day = itinerary.days[day_index]
        if not 0 <= slot_index < len(day.slots):
            return itinerary

        old = day.slots[slot_index]
        evaluated, score, matched, reason = self._evaluate(new_artist, member_matches)
        if evaluated == PRIORITY_FILLER:
            evaluated, reason = PRIORITY_RECOMMENDED, "Your choice"
        new_slot = ScheduleSlot(
            artist=new_artist,
            priority=priority or evaluated,
            score=score,
            reason=reason,
            matched_members=matched,
            alternatives=(old.artist,) + tuple(a for a in old.alternatives if a != new_artist),
        )

        slots = list(day.slots)
        slots[slot_index] = new_slot
        rollover = self.config.day_rollover_hour
        slots.sort(key=lambda s: (set_window(s.artist, rollover) or (MINUTES_PER_DAY * 2, 0))[0])
        new_day = replace(
            day,
            slots=tuple(slots),
            total_score=round(sum(s.score for s in slots), 2),
            must_see_count=sum(1 for s in slots if s.priority == PRIORITY_MUST_SEE),
        )
        days = list(itinerary.days)
        days[day_index] = new_day
        return replace(
            itinerary,
            days=tuple(days),
            total_score=round(sum(d.total_score for d in days), 2),
        )


def build_itinerary(
    lineup: Iterable[LineupArtist],
    member_matches: Sequence[MemberArtistMatches],
    config: ItineraryConfig = None,
) -> GeneratedItinerary:
    """Convenience wrapper around ``ItineraryBuilder.build``."""
    return ItineraryBuilder(config).build(lineup, member_matches)


def swap_itinerary_artist(
    itinerary: GeneratedItinerary,
    day_index: int,
    slot_index: int,
    new_artist: LineupArtist,
    priority: Optional[str] = None,
    member_matches: Sequence[MemberArtistMatches] = (),
    config: ItineraryConfig = None,
) -> GeneratedItinerary:
    """Convenience wrapper around ``ItineraryBuilder.swap``."""
    return ItineraryBuilder(config).swap(
        itinerary, day_index, slot_index, new_artist, member_matches, priority=priority
    )
