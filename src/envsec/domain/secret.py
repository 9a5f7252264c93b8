"""Secret entry model and ordering."""

import re
import unicodedata
from dataclasses import dataclass
from typing import Iterable, List, Tuple

_CHUNK_RE = re.compile(r"\d+|\D")

# Collation ranks: punctuation < digits < letters
_RANK_PUNCT = 0
_RANK_DIGIT = 1
_RANK_ALPHA = 2


@dataclass(frozen=True)
class SecretEntry:
    """A named secret value."""

    name: str
    value: str


def _fold(text: str) -> str:
    """Strip accents and case."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


def collation_key(name: str) -> Tuple[Tuple[Tuple[int, int, str], ...], str]:
    """Sort key for loose, numeric-aware English collation.

    Case and accents are ignored and digit runs compare by numeric value, so
    ``var2`` sorts before ``var10`` and ``Var1`` before both. Names equal under
    that comparison fall back to a lowercase-first comparison.
    """
    elements = []
    for chunk in _CHUNK_RE.findall(_fold(name)):
        if chunk.isdigit():
            elements.append((_RANK_DIGIT, int(chunk), ""))
        elif chunk.isalpha():
            elements.append((_RANK_ALPHA, 0, chunk))
        else:
            elements.append((_RANK_PUNCT, 0, chunk))
    return tuple(elements), name.swapcase()


def sort_entries(entries: Iterable[SecretEntry]) -> List[SecretEntry]:
    """Return entries ordered by name."""
    return sorted(entries, key=lambda e: collation_key(e.name))
