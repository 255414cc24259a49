"""Tests for conflict detection and itinerary generation."""

import pytest

from stageside.aggregator import profile_from_names
from stageside.config import ItineraryConfig
from stageside.exceptions import DuplicateMemberError, InvalidConfigurationError
from stageside.festival import (
    DEFAULT_DAY,
    ItineraryBuilder,
    build_itinerary,
    detect_conflicts,
    festival_match,
    find_conflict,
    match_lineup,
    order_days,
    overlap_minutes,
    parse_time,
    set_window,
    swap_itinerary_artist,
)
from stageside.models import (
    PRIORITY_DISCOVERY,
    PRIORITY_FILLER,
    PRIORITY_MUST_SEE,
    PRIORITY_RECOMMENDED,
    LineupArtist,
    MemberProfile,
)


def _act(name, start, end, stage="Main", day="Saturday", **kwargs):
    return LineupArtist(name=name, day=day, stage=stage, start_time=start, end_time=end, **kwargs)


def _solo(artists, genres=(), recent=()):
    return [MemberProfile("me", profile_from_names(artists, genres=genres, recent=recent))]


def _plan(lineup, members, **config):
    return ItineraryBuilder(ItineraryConfig(**config)).build(lineup, match_lineup(lineup, members))


def _names(day):
    return [slot.artist.name for slot in day.slots]


# --- Time windows ---


class TestTimes:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("21:30", 1290),
            ("9:05", 545),
            ("00:00", 0),
            ("24:00", 1440),
            (" 18:00 ", 1080),
            ("25:00", None),
            ("12:60", None),
            ("9pm", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parse_time(self, raw, expected):
        assert parse_time(raw) == expected

    def test_set_past_midnight(self):
        assert set_window(_act("Late", "23:30", "01:00")) == (1410, 1500)

    def test_early_morning_belongs_to_previous_night(self):
        later = _act("Later", "00:30", "01:30")
        assert set_window(later) == (1470, 1530)
        assert set_window(later, rollover_hour=0) == (30, 90)
        assert set_window(_act("Dawn", "05:00", "07:00")) == (1740, 1860)

    def test_missing_time(self):
        assert set_window(_act("TBA", "20:00", None)) is None


# --- Conflicts ---


class TestConflicts:
    def test_overlap_is_symmetric(self):
        a = _act("Tame Impala", "21:00", "22:30", stage="Main")
        b = _act("Khruangbin", "21:30", "22:30", stage="Second")
        assert overlap_minutes(a, b) == overlap_minutes(b, a) == 60
        assert find_conflict(a, b) == find_conflict(b, a)
        conflict = find_conflict(b, a)
        assert conflict.artist_a == a
        assert conflict.overlap_minutes == 60
        assert conflict.day == "Saturday"

    def test_same_stage_or_other_day_is_not_a_conflict(self):
        a = _act("Tame Impala", "21:00", "22:30", stage="Main")
        assert find_conflict(a, _act("Opener", "21:00", "21:30", stage="main")) is None
        assert find_conflict(a, _act("Sunday Act", "21:00", "22:00", stage="B", day="Sunday")) is None

    def test_touching_sets_do_not_conflict(self):
        a = _act("First", "20:00", "21:00", stage="A")
        b = _act("Second", "21:00", "22:00", stage="B")
        assert find_conflict(a, b) is None

    def test_sets_after_midnight_conflict(self):
        late = _act("Late", "23:00", "01:00", stage="A", day="Friday")
        later = _act("Later", "00:30", "01:30", stage="B", day="Friday")
        conflicts = detect_conflicts([later, late])
        assert len(conflicts) == 1
        assert conflicts[0].artist_a == late
        assert conflicts[0].overlap_minutes == 30
        assert detect_conflicts([later, late], rollover_hour=0) == []

    def test_day_names_compared_case_insensitively(self):
        a = _act("Tame Impala", "21:00", "22:30", stage="Main", day="Saturday")
        b = _act("Khruangbin", "21:30", "22:30", stage="Second", day=" saturday")
        assert find_conflict(a, b) is not None
        conflicts = detect_conflicts([a, b])
        assert [c.day for c in conflicts] == ["Saturday"]

    def test_detect_conflicts_skips_untimed(self):
        lineup = [
            _act("Tame Impala", "21:00", "22:30", stage="Main"),
            _act("Khruangbin", "21:30", "22:30", stage="Second"),
            LineupArtist("Mystery Guest", day="Saturday", stage="Tent"),
            _act("Early", "14:00", "15:00", stage="Tent"),
        ]
        conflicts = detect_conflicts(lineup)
        assert len(conflicts) == 1
        assert {conflicts[0].artist_a.name, conflicts[0].artist_b.name} == {
            "Tame Impala",
            "Khruangbin",
        }


class TestDayOrder:
    def test_weekdays(self):
        assert order_days(["Sunday", "Friday", "Saturday"]) == ["Friday", "Saturday", "Sunday"]

    def test_weekend_into_monday(self):
        assert order_days(["Monday", "Saturday", "Sunday"]) == ["Saturday", "Sunday", "Monday"]

    def test_other_names_keep_first_appearance(self):
        assert order_days(["Day 2", "Day 1", "Day 2"]) == ["Day 2", "Day 1"]


# --- Itinerary ---


class TestItineraryBuilder:
    def test_capacity_bound(self):
        lineup = [_act(f"Band {i}", f"{12 + i}:00", f"{12 + i}:30", stage=f"S{i}") for i in range(6)]
        members = _solo([a.name for a in lineup])
        for cap in (0, 1, 2, 4):
            plan = _plan(lineup, members, max_per_day=cap, rest_break_minutes=0)
            assert all(len(day.slots) <= cap for day in plan.days)
        plan = _plan(lineup, members, max_per_day=2, rest_break_minutes=0)
        assert _names(plan.days[0]) == ["Band 0", "Band 1"]

    def test_rest_break_and_alternatives(self):
        lineup = [
            _act("Tame Impala", "18:00", "19:00", stage="Main"),
            _act("Khruangbin", "19:30", "20:30", stage="Second"),
        ]
        members = _solo(["Tame Impala", "Khruangbin"])

        plan = _plan(lineup, members, rest_break_minutes=60)
        day = plan.days[0]
        assert _names(day) == ["Tame Impala"]
        assert [a.name for a in day.slots[0].alternatives] == ["Khruangbin"]
        assert plan.coverage == 0.5

        plan = _plan(lineup, members, rest_break_minutes=0)
        assert _names(plan.days[0]) == ["Tame Impala", "Khruangbin"]
        assert plan.coverage == 1.0

    def test_slots_sorted_by_start(self):
        lineup = [
            _act("Headliner", "22:00", "23:30", stage="Main"),
            _act("Opener", "14:00", "14:45", stage="Main"),
        ]
        plan = _plan(lineup, _solo(["Headliner", "Opener"]))
        assert _names(plan.days[0]) == ["Opener", "Headliner"]

    def test_priorities(self):
        lineup = [
            _act("Tame Impala", "12:00", "13:00"),
            _act("Green Day", "14:00", "15:00"),
            _act("Unknown Indie", "16:00", "17:00", genres=("indie",)),
        ]
        members = _solo(["Tame Impala"], genres=["indie"], recent=["Green Day"])
        plan = _plan(lineup, members)
        priorities = {s.artist.name: s.priority for s in plan.days[0].slots}
        assert priorities == {
            "Tame Impala": PRIORITY_MUST_SEE,
            "Green Day": PRIORITY_RECOMMENDED,
            "Unknown Indie": PRIORITY_DISCOVERY,
        }
        assert plan.days[0].must_see_count == 1

    def test_discoveries_can_be_disabled(self):
        lineup = [_act("Unknown Indie", "16:00", "17:00", genres=("indie",))]
        plan = _plan(lineup, _solo([], genres=["indie"]), include_discoveries=False)
        assert plan.days[0].slots == ()

    def test_filler_headliner_pads_sparse_day(self):
        lineup = [
            _act("Tame Impala", "12:00", "13:00"),
            _act("Big Headliner", "22:00", "23:30", headliner=True),
            _act("Random Opener", "15:00", "16:00"),
        ]
        plan = _plan(lineup, _solo(["Tame Impala"]))
        slots = {s.artist.name: s for s in plan.days[0].slots}
        assert set(slots) == {"Tame Impala", "Big Headliner"}
        assert slots["Big Headliner"].priority == PRIORITY_FILLER
        assert slots["Big Headliner"].reason == "Popular headliner"

    def test_filler_skipped_on_full_day(self):
        lineup = [_act(f"Band {i}", f"{12 + i}:00", f"{12 + i}:30") for i in range(3)]
        lineup.append(_act("Big Headliner", "22:00", "23:30", headliner=True))
        plan = _plan(lineup, _solo([a.name for a in lineup[:3]]), rest_break_minutes=0)
        assert "Big Headliner" not in _names(plan.days[0])

    def test_tie_break_policies(self):
        lineup = [
            _act("Crowd Pleaser", "20:00", "21:00", stage="Main"),
            _act("Deep Cut", "20:00", "21:00", stage="Tent"),
        ]
        members = [
            MemberProfile("ana", profile_from_names(["Deep Cut", "Filler", "Crowd Pleaser"])),
            MemberProfile("ben", profile_from_names(["Other", "Crowd Pleaser"])),
        ]
        matches = match_lineup(lineup, members)

        by_members = ItineraryBuilder(ItineraryConfig(tie_break="members")).build(lineup, matches)
        assert _names(by_members.days[0]) == ["Crowd Pleaser"]
        assert by_members.days[0].slots[0].matched_members == ("ana", "ben")
        assert "(2/2 members)" in by_members.days[0].slots[0].reason

        by_score = ItineraryBuilder(ItineraryConfig(tie_break="score")).build(lineup, matches)
        assert _names(by_score.days[0]) == ["Deep Cut"]

    def test_untimed_and_dayless_artists(self):
        lineup = [
            LineupArtist("No Day", stage="Main", start_time="12:00", end_time="13:00"),
            LineupArtist("No Times", day="Saturday"),
        ]
        plan = _plan(lineup, _solo(["No Day", "No Times"]))
        assert [d.day for d in plan.days] == [DEFAULT_DAY]
        assert _names(plan.days[0]) == ["No Day"]
        assert [a.name for a in plan.unscheduled] == ["No Times"]
        assert "1 artists without set times yet" in plan.highlights

    def test_days_ordered_by_weekday(self):
        lineup = [
            _act("Sunday Act", "12:00", "13:00", day="Sunday"),
            _act("Saturday Act", "12:00", "13:00", day="Saturday"),
        ]
        plan = _plan(lineup, _solo(["Sunday Act", "Saturday Act"]))
        assert [d.day for d in plan.days] == ["Saturday", "Sunday"]

    def test_late_night_sets_follow_evening_sets(self):
        lineup = [
            _act("Later", "01:00", "02:00", day="Friday"),
            _act("Late", "23:00", "00:30", day="Friday"),
        ]
        plan = _plan(lineup, _solo(["Later", "Late"]), rest_break_minutes=30)
        assert _names(plan.days[0]) == ["Late", "Later"]

    def test_day_spellings_merge(self):
        lineup = [
            _act("Tame Impala", "12:00", "13:00", day="Saturday"),
            _act("Khruangbin", "15:00", "16:00", day="SATURDAY"),
        ]
        plan = _plan(lineup, _solo(["Tame Impala", "Khruangbin"]))
        assert [d.day for d in plan.days] == ["Saturday"]
        assert _names(plan.days[0]) == ["Tame Impala", "Khruangbin"]

    def test_disabled_discoveries_are_not_alternatives(self):
        lineup = [
            _act("Tame Impala", "18:00", "19:00", stage="Main"),
            _act("Unknown Indie", "18:30", "19:30", stage="Tent", genres=("indie",)),
        ]
        members = _solo(["Tame Impala"], genres=["indie"])

        plan = _plan(lineup, members, include_discoveries=False)
        assert plan.days[0].slots[0].alternatives == ()

        plan = _plan(lineup, members)
        assert [a.name for a in plan.days[0].slots[0].alternatives] == ["Unknown Indie"]

    def test_duplicate_members_rejected(self):
        lineup = [_act("Tame Impala", "18:00", "19:00")]
        members = _solo(["Tame Impala"]) + _solo(["Khruangbin"])
        with pytest.raises(DuplicateMemberError):
            match_lineup(lineup, members)

    def test_summary(self):
        lineup = [
            _act("Tame Impala", "21:00", "22:30", stage="Main"),
            _act("Khruangbin", "21:30", "22:30", stage="Second"),
            _act("Unknown Indie", "16:00", "17:00", genres=("indie",)),
        ]
        plan = _plan(lineup, _solo(["Tame Impala", "Khruangbin"], genres=["indie"]))
        assert len(plan.conflicts) == 1
        assert plan.total_score == sum(d.total_score for d in plan.days)
        assert plan.highlights[0] == "1 must-see artists scheduled"
        assert "1 schedule conflicts to consider" in plan.highlights
        assert "1 new artists to discover" in plan.highlights

    def test_empty_lineup(self):
        plan = build_itinerary([], [])
        assert plan.days == ()
        assert plan.coverage == 1.0

    def test_no_must_see_gives_full_coverage(self):
        lineup = [_act("Unknown Indie", "16:00", "17:00", genres=("indie",))]
        assert _plan(lineup, _solo([], genres=["indie"])).coverage == 1.0

    @pytest.mark.parametrize(
        "config",
        [
            {"max_per_day": -1},
            {"rest_break_minutes": -5},
            {"rest_break_minutes": 1440},
            {"tie_break": "random"},
            {"day_rollover_hour": -1},
            {"day_rollover_hour": 13},
        ],
    )
    def test_invalid_config(self, config):
        with pytest.raises(InvalidConfigurationError):
            ItineraryBuilder(ItineraryConfig(**config))


class TestSwap:
    def _plan(self):
        lineup = [
            _act("Tame Impala", "21:00", "22:30", stage="Main"),
            _act("Khruangbin", "21:30", "22:30", stage="Second"),
        ]
        members = _solo(["Tame Impala", "Khruangbin"])
        return lineup, members, _plan(lineup, members)

    def test_swap_moves_old_artist_to_alternatives(self):
        lineup, members, plan = self._plan()
        swapped = swap_itinerary_artist(
            plan, 0, 0, lineup[1], member_matches=match_lineup(lineup, members)
        )
        slot = swapped.days[0].slots[0]
        assert slot.artist.name == "Khruangbin"
        assert slot.priority == PRIORITY_MUST_SEE
        assert [a.name for a in slot.alternatives] == ["Tame Impala"]
        assert swapped.days[0].total_score == 148.0
        assert swapped.total_score == 148.0
        assert plan.days[0].slots[0].artist.name == "Tame Impala"

    def test_swap_without_matches_uses_given_priority(self):
        lineup, _, plan = self._plan()
        swapped = swap_itinerary_artist(plan, 0, 0, lineup[1], priority=PRIORITY_DISCOVERY)
        assert swapped.days[0].slots[0].priority == PRIORITY_DISCOVERY

    def test_out_of_range_returns_same_itinerary(self):
        lineup, _, plan = self._plan()
        assert swap_itinerary_artist(plan, 5, 0, lineup[1]) is plan
        assert swap_itinerary_artist(plan, 0, 5, lineup[1]) is plan


# --- Festival match ---


class TestFestivalMatch:
    def test_percentage_and_lists(self):
        lineup = [
            LineupArtist("Tame Impala", genres=("psych rock",)),
            LineupArtist("Kamasi Washington", genres=("jazz",)),
        ]
        summary = festival_match(lineup, profile_from_names(["Tame Impala"], genres=["psych rock"]))
        assert summary.match_percentage == 50
        assert summary.must_see == ("Tame Impala",)
        assert summary.matched_artist_count == 1
        assert summary.total_artist_count == 2

    def test_must_see_bonus(self):
        favorites = [f"Fave {i}" for i in range(5)]
        lineup = [LineupArtist(n) for n in favorites] + [LineupArtist(f"Other {i}") for i in range(5)]
        summary = festival_match(lineup, profile_from_names(favorites))
        assert summary.match_percentage == 60

    def test_empty_profile(self):
        summary = festival_match([LineupArtist("Tame Impala")], profile_from_names([]))
        assert summary.match_percentage == 0
        assert summary.total_artist_count == 1
