"""Command-line interface for Stageside concert matching."""

import json
import sys

import click

from .config import (
    DEFAULT_ITINERARY,
    TIE_BREAK_POLICIES,
    ItineraryConfig,
)
from .exceptions import StagesideError
from .festival import ItineraryBuilder, match_lineup
from .group import GroupScorer
from .loaders import load_concerts, load_lineup, load_members, load_profile
from .logging_config import setup_logging
from .matcher import MatchScorer, categorize, filter_for_notification
from .presentation import display_score, vibe_tags
from .visualizer import render_itinerary, score_bar


def _listing_title(listing):
    """Headline for a concert: artists, then venue and date when known."""
    title = ", ".join(listing.artists) or listing.id
    if listing.venue:
        title += f" @ {listing.venue}"
    if listing.date:
        title += f" ({listing.date})"
    return title


def _result_dict(result):
    """Convert a MatchResult to a JSON-serializable dict."""
    return {
        "score": result.score,
        "display_score": display_score(result.score),
        "match_type": result.match_type,
        "confidence": result.confidence,
        "reasons": list(result.reasons),
    }


def _artist_dict(artist):
    return {
        "name": artist.name,
        "day": artist.day,
        "stage": artist.stage,
        "start_time": artist.start_time,
        "end_time": artist.end_time,
        "headliner": artist.headliner,
    }


def _itinerary_dict(itinerary):
    """Convert a GeneratedItinerary to a JSON-serializable dict."""
    return {
        "total_score": itinerary.total_score,
        "coverage": itinerary.coverage,
        "highlights": list(itinerary.highlights),
        "days": [
            {
                "day": day.day,
                "total_score": day.total_score,
                "must_see_count": day.must_see_count,
                "slots": [
                    {
                        "artist": _artist_dict(slot.artist),
                        "priority": slot.priority,
                        "score": slot.score,
                        "reason": slot.reason,
                        "matched_members": list(slot.matched_members),
                        "alternatives": [a.name for a in slot.alternatives],
                    }
                    for slot in day.slots
                ],
            }
            for day in itinerary.days
        ],
        "conflicts": [
            {
                "day": c.day,
                "artist_a": c.artist_a.name,
                "artist_b": c.artist_b.name,
                "overlap_minutes": c.overlap_minutes,
            }
            for c in itinerary.conflicts
        ],
        "unscheduled": [a.name for a in itinerary.unscheduled],
    }


def _fail(message):
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, verbose):
    """Stageside - Match concerts and festival lineups to your music taste."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("profile_file", type=click.Path())
@click.argument("concerts_file", type=click.Path())
@click.option("--format", "output_format", default="text", type=click.Choice(["text", "json"]))
@click.option("--min-score", default=0, type=int, help="Minimum 0-100 display score to show")
@click.option("--limit", default=10, type=int, help="Maximum concerts to show (default: 10)")
def score(profile_file, concerts_file, output_format, min_score, limit):
    """Rank concerts for one listener.

    PROFILE_FILE holds the listener's per-service artist lists and
    CONCERTS_FILE the concert listings.

    Example:
        stageside score me.json concerts.json --min-score 60
    """
    try:
        profile = load_profile(profile_file)
        listings = load_concerts(concerts_file)
    except StagesideError as e:
        _fail(e)

    ranked = MatchScorer().rank_concerts(listings, profile)
    picks = filter_for_notification(ranked, min_display_score=min_score, limit=limit)

    if output_format == "json":
        output = {
            "categories": categorize(ranked),
            "concerts": [
                {"id": s.listing.id, "artists": list(s.listing.artists), **_result_dict(s.result)}
                for s in picks
            ],
        }
        click.echo(json.dumps(output, indent=2))
        return

    if not picks:
        click.echo("No matching concerts found")
        return
    for i, item in enumerate(picks):
        if i > 0:
            click.echo()
        shown = display_score(item.result.score)
        click.echo(_listing_title(item.listing))
        click.echo(f"Match: {score_bar(shown).plain} {shown}% ({item.result.match_type})")
        for reason in item.result.reasons:
            click.echo(f"  {reason}")
        tags = vibe_tags(item.result.match_type, item.listing.genres)
        if tags:
            click.echo(f"  [{' / '.join(tags)}]")


@cli.command()
@click.argument("members_file", type=click.Path())
@click.argument("concerts_file", type=click.Path())
@click.option("--format", "output_format", default="text", type=click.Choice(["text", "json"]))
def group(members_file, concerts_file, output_format):
    """Rank concerts for a group of friends.

    Concerts everyone matches come first, then majority and partial matches.

    Example:
        stageside group crew.json concerts.json --format json
    """
    try:
        members = load_members(members_file)
        listings = load_concerts(concerts_file)
    except StagesideError as e:
        _fail(e)

    pairs = GroupScorer().match_concerts(listings, members)
    labels = {m.member_id: m.label for m in members}

    if output_format == "json":
        output = [
            {
                "id": listing.id,
                "artists": list(listing.artists),
                "score": result.score,
                "match_type": result.match_type,
                "matched_members": list(result.matched_members),
                "members": {m: _result_dict(r) for m, r in result.member_results.items()},
            }
            for listing, result in pairs
        ]
        click.echo(json.dumps(output, indent=2))
        return

    if not pairs:
        click.echo("No concerts match anyone in the group")
        return
    for i, (listing, result) in enumerate(pairs):
        if i > 0:
            click.echo()
        click.echo(f"{_listing_title(listing)} [{result.match_type}] score {result.score:.0f}")
        who = ", ".join(labels.get(m, m) for m in result.matched_members)
        click.echo(f"  {len(result.matched_members)}/{result.total_members} members: {who}")
        for member_id in result.matched_members:
            reason = result.member_results[member_id].reasons[0]
            click.echo(f"  {labels.get(member_id, member_id)}: {reason}")


@cli.command()
@click.argument("lineup_file", type=click.Path())
@click.argument("members_file", type=click.Path())
@click.option(
    "--max-per-day",
    default=DEFAULT_ITINERARY.max_per_day,
    type=int,
    help=f"Maximum sets per day (default: {DEFAULT_ITINERARY.max_per_day})",
)
@click.option(
    "--rest-break",
    default=DEFAULT_ITINERARY.rest_break_minutes,
    type=int,
    help=f"Minutes between sets (default: {DEFAULT_ITINERARY.rest_break_minutes})",
)
@click.option(
    "--tie-break",
    default=DEFAULT_ITINERARY.tie_break,
    type=click.Choice(list(TIE_BREAK_POLICIES)),
    help="Prefer sets more members like, or the single highest score",
)
@click.option(
    "--day-rollover",
    default=DEFAULT_ITINERARY.day_rollover_hour,
    type=int,
    help=(
        "Sets starting before this hour count as the previous night "
        f"(default: {DEFAULT_ITINERARY.day_rollover_hour}, 0 disables)"
    ),
)
@click.option("--no-discoveries", is_flag=True, help="Only schedule artists you already know")
@click.option("--format", "output_format", default="text", type=click.Choice(["text", "json"]))
def itinerary(
    lineup_file, members_file, max_per_day, rest_break, tie_break, day_rollover, no_discoveries, output_format
):
    """Plan a conflict-free festival schedule.

    MEMBERS_FILE may list a single member for a solo plan.

    Example:
        stageside itinerary lineup.json crew.json --max-per-day 6 --rest-break 30
    """
    config = ItineraryConfig(
        max_per_day=max_per_day,
        rest_break_minutes=rest_break,
        include_discoveries=not no_discoveries,
        tie_break=tie_break,
        day_rollover_hour=day_rollover,
    )
    try:
        builder = ItineraryBuilder(config)
        lineup = load_lineup(lineup_file)
        members = load_members(members_file)
    except StagesideError as e:
        _fail(e)

    plan = builder.build(lineup, match_lineup(lineup, members))

    if output_format == "json":
        click.echo(json.dumps(_itinerary_dict(plan), indent=2))
    else:
        render_itinerary(plan)


if __name__ == "__main__":
    cli()
