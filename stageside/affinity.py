"""Static genre adjacency used by the affinity fallback."""

from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from .normalize import genres_overlap, normalize_genre

# Genres that tend to appeal to the same listeners
_AFFINITY_DATA = {
    # Rock family
    "rock": ("alternative", "indie", "punk", "metal", "grunge", "indie rock", "hard rock"),
    "alternative": ("indie", "rock", "indie rock", "alternative rock", "grunge"),
    "indie": ("indie rock", "indie pop", "alternative", "folk", "lo-fi"),
    "indie rock": ("indie", "alternative", "rock", "indie pop", "garage rock"),
    "punk": ("punk rock", "rock", "hardcore", "pop punk", "alternative"),
    "metal": ("hard rock", "rock", "heavy metal", "progressive metal"),
    # Electronic family
    "electronic": ("edm", "house", "techno", "dance", "electronica", "synth"),
    "edm": ("electronic", "house", "dance", "dubstep", "trance"),
    "house": ("electronic", "edm", "deep house", "tech house", "dance"),
    "techno": ("electronic", "house", "minimal", "industrial"),
    # Hip-hop family
    "hip-hop": ("rap", "hip hop", "trap", "r&b", "urban"),
    "hip hop": ("rap", "hip-hop", "trap", "r&b", "urban"),
    "rap": ("hip-hop", "hip hop", "trap", "r&b", "underground hip hop"),
    "trap": ("hip-hop", "rap", "southern hip hop"),
    # Pop family
    "pop": ("indie pop", "synth-pop", "dance pop", "electropop", "art pop"),
    "indie pop": ("indie", "pop", "dream pop", "indie rock", "synth-pop"),
    "synth-pop": ("electronic", "pop", "new wave", "synthwave"),
    # R&B / soul family
    "r&b": ("soul", "neo-soul", "hip-hop", "contemporary r&b", "urban"),
    "soul": ("r&b", "neo-soul", "funk", "motown"),
    "neo-soul": ("soul", "r&b", "jazz", "funk"),
    # Folk / acoustic family
    "folk": ("indie folk", "acoustic", "singer-songwriter", "americana", "country"),
    "singer-songwriter": ("folk", "acoustic", "indie", "americana"),
    "acoustic": ("folk", "singer-songwriter", "unplugged"),
    # Jazz / blues
    "jazz": ("smooth jazz", "jazz fusion", "bebop", "blues", "soul"),
    "blues": ("jazz", "soul", "rock", "rhythm and blues"),
    # Country
    "country": ("americana", "folk", "country rock", "bluegrass", "outlaw country"),
    "americana": ("folk", "country", "roots", "alt-country"),
    # Latin
    "latin": ("reggaeton", "latin pop", "salsa", "bachata", "cumbia"),
    "reggaeton": ("latin", "latin trap", "urban latin", "hip-hop"),
}

GENRE_AFFINITIES: Mapping[str, Tuple[str, ...]] = MappingProxyType(_AFFINITY_DATA)


class GenreAffinityTable:
    """Read-only lookup of stylistically adjacent genres."""

    def __init__(self, adjacency: Mapping[str, Iterable[str]] = GENRE_AFFINITIES):
        self._adjacency = MappingProxyType(
            {
                normalize_genre(genre): tuple(normalize_genre(r) for r in related)
                for genre, related in adjacency.items()
            }
        )

    def related(self, genre: str) -> Tuple[str, ...]:
        """Genres adjacent to ``genre``, or an empty tuple if unknown."""
        return self._adjacency.get(normalize_genre(genre), ())

    def find_adjacent(
        self, user_genre: str, concert_genres: Iterable[str]
    ) -> Optional[Tuple[str, str]]:
        """Return (concert_genre, adjacent_genre) for the first related hit."""
        related = self.related(user_genre)
        if not related:
            return None
        for concert_genre in concert_genres:
            for adjacent in related:
                if genres_overlap(concert_genre, adjacent):
                    return concert_genre, adjacent
        return None

    def __contains__(self, genre: str) -> bool:
        return normalize_genre(genre) in self._adjacency

    def __len__(self) -> int:
        return len(self._adjacency)


DEFAULT_AFFINITY_TABLE = GenreAffinityTable()
