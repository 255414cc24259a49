"""Canonical forms for artist and genre names."""

import re
import unicodedata
from typing import Dict, FrozenSet

from rapidfuzz.distance import Levenshtein

_DISALLOWED_RE = re.compile(r"[^a-z0-9 ]+")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    """Canonicalize a free-text artist name for equality checks.

    Accents are folded to ASCII first so "Beyoncé" and "Beyonce" compare
    equal, then anything outside ``[a-z0-9 ]`` is dropped and whitespace is
    collapsed.

    Example:
        >>> normalize_name("  Tyler,   The Creator! ")
        'tyler the creator'
    """
    if not name:
        return ""
    folded = unicodedata.normalize("NFKD", name)
    folded = folded.encode("ascii", "ignore").decode("ascii").lower()
    # Tabs and newlines become spaces before the character filter
    folded = _WHITESPACE_RE.sub(" ", folded)
    folded = _DISALLOWED_RE.sub("", folded)
    return _WHITESPACE_RE.sub(" ", folded).strip()


def normalize_genre(genre: str) -> str:
    """Lower-case and trim a genre label."""
    return (genre or "").strip().lower()


def is_partial_match(a: str, b: str, min_length: int = 5) -> bool:
    """Check whether one normalized name contains the other.

    The contained name must be at least ``min_length`` characters so short
    names like "sia" do not match everything.
    """
    if not a or not b or a == b:
        return False
    shorter, longer = (a, b) if len(a) <= len(b) else (b, a)
    return len(shorter) >= min_length and shorter in longer


def genres_overlap(a: str, b: str) -> bool:
    """Check whether either lower-cased genre is a substring of the other."""
    if not a or not b:
        return False
    return a in b or b in a


# Well-known alternate spellings, in raw form; keys and aliases are run
# through normalize_name when the lookup is built.
ARTIST_ALIASES = {
    "kanye west": ("ye", "kanye"),
    "the weeknd": ("weeknd", "the weekend"),
    "post malone": ("posty", "post"),
    "tyler the creator": ("tyler", "tyler, the creator"),
    "childish gambino": ("donald glover",),
    "bon iver": ("boniver",),
    "a$ap rocky": ("asap rocky", "aap rocky"),
    "joey badass": ("joey bada$$",),
    "twenty one pilots": ("21 pilots", "twentyone pilots"),
    "blink-182": ("blink 182", "blink182"),
    "n.e.r.d": ("nerd", "n*e*r*d"),
}


def _alias_groups(aliases) -> Dict[str, FrozenSet[str]]:
    groups = {}
    for canonical, others in aliases.items():
        names = frozenset(n for n in map(normalize_name, (canonical, *others)) if n)
        for name in names:
            groups[name] = groups.get(name, frozenset()) | names
    return groups


_ALIAS_GROUPS = _alias_groups(ARTIST_ALIASES)


def are_aliases(a: str, b: str) -> bool:
    """Check whether two different normalized names are known spellings of one act.

    Example:
        >>> are_aliases("21 pilots", "twenty one pilots")
        True
    """
    if not a or not b or a == b:
        return False
    return b in _ALIAS_GROUPS.get(a, ())


def name_similarity(a: str, b: str) -> float:
    """Edit-distance similarity of two normalized names, from 0.0 to 1.0."""
    if not a or not b:
        return 0.0
    return Levenshtein.normalized_similarity(a, b)


def is_fuzzy_match(a: str, b: str, threshold: float = 0.85, min_length: int = 5) -> bool:
    """Typo-tolerant comparison for names long enough to carry a typo.

    Names shorter than ``min_length`` never fuzzy-match, otherwise one letter
    of difference would already fall below any useful threshold.
    """
    if not a or not b or a == b:
        return False
    if min(len(a), len(b)) < min_length:
        return False
    return name_similarity(a, b) >= threshold
