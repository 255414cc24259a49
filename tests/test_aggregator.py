"""Tests for folding service artist lists into a profile."""

from stageside.aggregator import ProfileAggregator, aggregate_profiles, profile_from_names
from stageside.config import AggregationConfig
from stageside.models import ArtistRef, ServiceArtistList


def _source(service, names, **kwargs):
    return ServiceArtistList(service=service, artists=[ArtistRef(n) for n in names], **kwargs)


class TestAggregate:
    def test_cross_service_artists_rise(self):
        profile = aggregate_profiles(
            [
                _source("spotify", ["Tame Impala", "Khruangbin"]),
                _source("apple_music", ["Khruangbin"]),
            ]
        )
        top = profile.top_artists
        assert [a.display_name for a in top] == ["Khruangbin", "Tame Impala"]
        assert top[0].score == 194.0  # 99 + 100 * 0.95
        assert top[0].sources == ("spotify", "apple_music")
        assert profile.connected_services == ("spotify", "apple_music")

    def test_service_weights(self):
        profile = aggregate_profiles([_source("youtube_music", ["Mitski"])])
        assert profile.top_artists[0].score == 70.0

    def test_unknown_service_uses_default_weight(self):
        profile = aggregate_profiles([_source("bandcamp", ["Mitski"])])
        assert profile.top_artists[0].score == 100.0

    def test_position_floor(self):
        names = [f"Artist {i}" for i in range(100)]
        profile = aggregate_profiles([_source("spotify", names)])
        assert profile.top_artists[-1].score == 10.0

    def test_explicit_rank_and_source_score(self):
        source = ServiceArtistList(
            service="spotify",
            artists=[ArtistRef("Ranked", rank=50), ArtistRef("Weighted", source_score=500)],
        )
        profile = aggregate_profiles([source])
        scores = {a.display_name: a.score for a in profile.top_artists}
        assert scores == {"Weighted": 500.0, "Ranked": 50.0}
        assert profile.top_artists[0].display_name == "Weighted"

    def test_fold_on_normalized_name(self):
        profile = aggregate_profiles(
            [
                _source("spotify", ["Tyler The Creator"]),
                _source("tidal", ["Tyler, The Creator"]),
            ]
        )
        assert len(profile.top_artists) == 1
        assert profile.top_artists[0].display_name == "Tyler, The Creator"
        assert profile.top_artists[0].normalized_name == "tyler the creator"

    def test_skips_missing_sources_and_blank_names(self):
        profile = aggregate_profiles([None, _source("spotify", ["", "!!!", "Mitski"]), None])
        assert [a.display_name for a in profile.top_artists] == ["Mitski"]

    def test_no_sources(self):
        profile = aggregate_profiles([])
        assert profile.is_empty
        assert aggregate_profiles(None).top_artists == ()

    def test_equal_scores_keep_discovery_order(self):
        profile = aggregate_profiles(
            [
                _source("spotify", ["Mitski"]),
                _source("tidal", ["Big Thief"]),
                _source("manual", ["Alvvays"]),
            ]
        )
        assert [a.score for a in profile.top_artists] == [100.0, 100.0, 100.0]
        assert [a.display_name for a in profile.top_artists] == ["Mitski", "Big Thief", "Alvvays"]

    def test_max_artists(self):
        aggregator = ProfileAggregator(AggregationConfig(max_artists=2))
        profile = aggregator.aggregate([_source("spotify", ["A1", "B2", "C3"])])
        assert [a.display_name for a in profile.top_artists] == ["A1", "B2"]


class TestGenres:
    def test_frequency_sorted(self):
        source = ServiceArtistList(
            service="spotify",
            artists=[
                ArtistRef("Alvvays", genres=("Indie Pop", "Rock")),
                ArtistRef("Snail Mail", genres=("rock",)),
            ],
            genres=["shoegaze"],
        )
        profile = aggregate_profiles([source])
        assert profile.top_genres == ("rock", "indie pop", "shoegaze")

    def test_ties_keep_discovery_order(self):
        profile = aggregate_profiles(
            [
                ServiceArtistList("spotify", genres=["jazz"]),
                ServiceArtistList("tidal", [ArtistRef("X", genres=("rock",))]),
            ]
        )
        assert profile.top_genres == ("jazz", "rock")

    def test_artist_reported_twice_counts_genre_once(self):
        profile = aggregate_profiles(
            [
                ServiceArtistList("spotify", [ArtistRef("Alvvays", genres=("jangle",))]),
                ServiceArtistList(
                    "deezer",
                    [ArtistRef("Alvvays", genres=("Jangle",)), ArtistRef("Mitski", genres=("indie",))],
                    genres=["indie"],
                ),
            ]
        )
        assert profile.top_genres == ("indie", "jangle")

    def test_artist_genres_unioned_case_insensitively(self):
        profile = aggregate_profiles(
            [
                ServiceArtistList("spotify", [ArtistRef("Alvvays", genres=("Indie Pop",))]),
                ServiceArtistList("deezer", [ArtistRef("Alvvays", genres=("indie pop", "jangle"))]),
            ]
        )
        assert profile.top_artists[0].genres == ("Indie Pop", "jangle")

    def test_max_genres(self):
        source = ServiceArtistList("spotify", genres=[f"genre {i}" for i in range(30)])
        profile = aggregate_profiles([source])
        assert len(profile.top_genres) == 20


class TestRecentAndRelated:
    def test_recent_deduped_and_capped(self):
        config = AggregationConfig(recent_per_source=2)
        profile = ProfileAggregator(config).aggregate(
            [
                ServiceArtistList("spotify", recent_artists=["Mitski", "MITSKI", "Japanese Breakfast"]),
                ServiceArtistList("tidal", recent_artists=["Mitski", "Big Thief"]),
            ]
        )
        assert profile.recent_artists == ("Mitski", "Big Thief")

    def test_related_expansion_kept_apart(self):
        profile = aggregate_profiles(
            [
                _source("spotify", ["Mac DeMarco"]),
                ServiceArtistList(
                    "related", [ArtistRef("Mild High Club", related_to="Mac DeMarco")]
                ),
            ]
        )
        assert [a.display_name for a in profile.top_artists] == ["Mac DeMarco"]
        assert profile.related_artists[0].name == "Mild High Club"
        assert profile.related_artists[0].related_to == "Mac DeMarco"


class TestProfileFromNames:
    def test_builds_ranked_profile(self):
        profile = profile_from_names(["Tame Impala", "Khruangbin"], genres=["Psych Rock"])
        assert [a.display_name for a in profile.top_artists] == ["Tame Impala", "Khruangbin"]
        assert profile.top_genres == ("psych rock",)
        assert profile.connected_services == ("manual",)
