"""Rich terminal renderer for festival itineraries."""

from typing import Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import (
    PRIORITY_DISCOVERY,
    PRIORITY_FILLER,
    PRIORITY_MUST_SEE,
    PRIORITY_RECOMMENDED,
    Conflict,
    GeneratedItinerary,
    ItineraryDay,
)

BLOCKS = " ▁▂▃▄▅▆▇█"
PRIORITY_COLORS = {
    PRIORITY_MUST_SEE: "bold red",
    PRIORITY_RECOMMENDED: "yellow",
    PRIORITY_DISCOVERY: "cyan",
    PRIORITY_FILLER: "dim",
}


def score_bar(display: int, width: int = 10) -> Text:
    """Block-character bar for a 0-100 display score."""
    level = max(0, min(display, 100)) / 100
    full = int(level * width)
    text = Text("█" * full, style="green")
    remainder = level * width - full
    if full < width:
        text.append(BLOCKS[int(remainder * (len(BLOCKS) - 1))], style="green")
        text.append(" " * (width - full - 1))
    return text


def _set_time(artist) -> str:
    if artist.start_time and artist.end_time:
        return f"{artist.start_time}-{artist.end_time}"
    return "TBA"


def build_day_table(day: ItineraryDay) -> Table:
    """One table row per scheduled slot, in set order."""
    table = Table(
        title=f"{day.day}  (score {day.total_score:.0f}, {day.must_see_count} must-see)",
        expand=False,
    )
    table.add_column("Time", no_wrap=True)
    table.add_column("Artist")
    table.add_column("Stage")
    table.add_column("Priority")
    table.add_column("Why")
    table.add_column("Instead")

    for slot in day.slots:
        table.add_row(
            _set_time(slot.artist),
            slot.artist.name,
            slot.artist.stage or "",
            Text(slot.priority, style=PRIORITY_COLORS.get(slot.priority, "white")),
            slot.reason,
            ", ".join(a.name for a in slot.alternatives),
        )
    return table


def build_conflicts_panel(conflicts: Sequence[Conflict]) -> Panel:
    """Panel listing every overlapping pair in the lineup."""
    content = Text()
    for i, c in enumerate(conflicts):
        if i:
            content.append("\n")
        content.append(f"{c.day}: ", style="bold")
        content.append(f"{c.artist_a.name} ({c.artist_a.stage or '?'}) vs ")
        content.append(f"{c.artist_b.name} ({c.artist_b.stage or '?'})")
        content.append(f"  {c.overlap_minutes} min", style="red")
    return Panel(content, title="Conflicts", expand=False)


def render_itinerary(itinerary: GeneratedItinerary, console: Console = None) -> None:
    """Print an itinerary as one table per day plus highlights and conflicts.

    Args:
        itinerary: Result of ``ItineraryBuilder.build``.
        console: Rich console to print to. A new stdout console if not provided.
    """
    console = console or Console()

    header = Text(
        f"Total score: {itinerary.total_score:.0f}  "
        f"Must-see coverage: {itinerary.coverage * 100:.0f}%"
    )
    for highlight in itinerary.highlights:
        header.append(f"\n• {highlight}")
    console.print(Panel(header, title="Itinerary", expand=False))

    for day in itinerary.days:
        console.print(build_day_table(day))

    if itinerary.conflicts:
        console.print(build_conflicts_panel(itinerary.conflicts))

    if itinerary.unscheduled:
        names = ", ".join(a.name for a in itinerary.unscheduled)
        console.print(Text(f"No set times yet: {names}", style="dim"))
