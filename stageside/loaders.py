"""Load profiles, concerts, members and lineups from JSON files."""

import json
from pathlib import Path
from typing import Any, List, Sequence

from .aggregator import ProfileAggregator
from .config import AggregationConfig
from .exceptions import InputLoadError
from .group import duplicate_member_ids
from .logging_config import get_logger
from .models import (
    ArtistRef,
    ConcertListing,
    LineupArtist,
    MemberProfile,
    ServiceArtistList,
    UserMusicProfile,
)

logger = get_logger(__name__)


def load_json(path) -> Any:
    """Read and decode a JSON file.

    Raises:
        InputLoadError: If the file is missing, unreadable or not valid JSON.
    """
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        raise InputLoadError(f"File not found: {path}")
    except (OSError, UnicodeDecodeError) as e:
        raise InputLoadError(f"Unable to read {path}: {e}")
    except json.JSONDecodeError as e:
        raise InputLoadError(f"Invalid JSON in {path}: {e}")


def _unwrap(data: Any, key: str, path) -> list:
    """Accept either a bare list or an object holding the list under ``key``."""
    if isinstance(data, dict) and key in data:
        data = data[key]
    if not isinstance(data, list):
        raise InputLoadError(f"Expected a list of {key} in {path}")
    return data


def _strings(value: Any) -> tuple:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def parse_artist_ref(data: Any) -> ArtistRef:
    """Build an ArtistRef from a name string or an object."""
    if isinstance(data, str):
        return ArtistRef(name=data)
    return ArtistRef(
        name=str(data["name"]),
        genres=_strings(data.get("genres")),
        rank=data.get("rank"),
        source_score=data.get("source_score"),
        related_to=data.get("related_to"),
    )


def parse_source(data: dict, default_service: str = "manual") -> ServiceArtistList:
    return ServiceArtistList(
        service=data.get("service", default_service),
        artists=[parse_artist_ref(a) for a in data.get("artists", ())],
        recent_artists=list(_strings(data.get("recent_artists"))),
        genres=list(_strings(data.get("genres"))),
    )


def _sources_from(data: Any) -> List[ServiceArtistList]:
    if isinstance(data, list):
        return [parse_source(s) for s in data]
    if "sources" in data:
        return [parse_source(s) for s in data["sources"]]
    # A single source written inline
    return [parse_source(data)]


def parse_profile(data: Any, config: AggregationConfig = None) -> UserMusicProfile:
    """Aggregate the profile sources described by ``data``."""
    return ProfileAggregator(config).aggregate(_sources_from(data))


def parse_concert(data: dict, index: int = 0) -> ConcertListing:
    return ConcertListing(
        id=str(data.get("id", index)),
        artists=_strings(data.get("artists")),
        genres=_strings(data.get("genres")),
        date=data.get("date"),
        venue=data.get("venue"),
    )


def parse_member(data: dict, index: int = 0, config: AggregationConfig = None) -> MemberProfile:
    member_id = str(data.get("member_id") or data.get("id") or f"member-{index + 1}")
    return MemberProfile(
        member_id=member_id,
        profile=parse_profile(data, config),
        display_name=data.get("name"),
    )


def parse_lineup_artist(data: Any) -> LineupArtist:
    if isinstance(data, str):
        return LineupArtist(name=data)
    return LineupArtist(
        name=str(data["name"]),
        day=data.get("day"),
        stage=data.get("stage"),
        start_time=data.get("start_time"),
        end_time=data.get("end_time"),
        headliner=bool(data.get("headliner", False)),
        genres=_strings(data.get("genres")),
    )


def _parse_all(items: Sequence, parser, path, what: str) -> list:
    try:
        return [parser(item, i) for i, item in enumerate(items)]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise InputLoadError(f"Malformed {what} in {path}: {e!r}")


def load_profile(path, config: AggregationConfig = None) -> UserMusicProfile:
    """Load and aggregate a single user's profile sources.

    Raises:
        InputLoadError: If the file cannot be read or has the wrong shape.
    """
    data = load_json(path)
    if not isinstance(data, (dict, list)):
        raise InputLoadError(f"Expected profile sources in {path}")
    try:
        profile = parse_profile(data, config)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise InputLoadError(f"Malformed profile in {path}: {e!r}")
    logger.debug("Loaded profile from %s with %d artists", Path(path).name, len(profile.top_artists))
    return profile


def load_concerts(path) -> List[ConcertListing]:
    """Load concert listings from a list or a ``{"concerts": [...]}`` object."""
    items = _unwrap(load_json(path), "concerts", path)
    return _parse_all(items, parse_concert, path, "concert")


def load_members(path, config: AggregationConfig = None) -> List[MemberProfile]:
    """Load group members, each carrying their own profile sources."""
    items = _unwrap(load_json(path), "members", path)
    members = _parse_all(items, lambda d, i: parse_member(d, i, config), path, "member")
    if not members:
        raise InputLoadError(f"No members in {path}")
    duplicates = duplicate_member_ids(members)
    if duplicates:
        raise InputLoadError(f"Duplicate member ids in {path}: {', '.join(duplicates)}")
    return members


def load_lineup(path) -> List[LineupArtist]:
    """Load festival performers from a list or a ``{"lineup": [...]}`` object."""
    items = _unwrap(load_json(path), "lineup", path)
    return _parse_all(items, lambda d, i: parse_lineup_artist(d), path, "lineup artist")
