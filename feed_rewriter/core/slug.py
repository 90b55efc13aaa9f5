"""Slug derivation and unique slug allocation for articles."""

from __future__ import annotations

import re
import unicodedata
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..store.base import ArticleStore


# French-locale replacements applied before ASCII folding
_FR_CHARMAP = {
    "&": " et ",
    "%": " pourcent ",
    "<": " inferieur a ",
    ">": " superieur a ",
    "|": " ou ",
    "€": " euro ",
    "$": " dollar ",
    "œ": "oe",
    "Œ": "OE",
    "æ": "ae",
    "Æ": "AE",
    "ß": "ss",
    "ø": "o",
    "Ø": "O",
    "ł": "l",
    "Ł": "L",
    "đ": "d",
    "Đ": "D",
}

_NOT_STRICT_RE = re.compile(r"[^A-Za-z0-9\s]")
_WS_RE = re.compile(r"\s+")

DEFAULT_SLUG = "article"


def slugify(text: str, max_length: int = 80) -> str:
    """Convert a French title to a lowercase, ASCII, hyphenated slug.

    Hyphens in the title act as word separators, apostrophes and other
    punctuation are dropped, and accented letters are folded to ASCII.

    Examples:
        >>> slugify("L'A350 d'Air France décolle")
        'la350-dair-france-decolle'
        >>> slugify("Boeing 737-MAX & Airbus")
        'boeing-737-max-et-airbus'
    """
    text = unicodedata.normalize("NFC", text or "")
    text = "".join(_FR_CHARMAP.get(ch, ch) for ch in text.replace("-", " "))
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = _NOT_STRICT_RE.sub("", folded).strip()
    slug = _WS_RE.sub("-", slug).lower()
    if max_length and len(slug) > max_length:
        slug = slug[:max_length].rstrip("-")
    return slug or DEFAULT_SLUG


class SlugAllocator:
    """Allocate a slug that no stored article uses yet.

    Checks the store sequentially: base, base-1, base-2, ... Assumes a single
    writer; a concurrent writer can still take the slug between the check
    and the insert, which the store reports as PersistenceConflict.
    """

    def __init__(self, store: ArticleStore, max_length: int = 80) -> None:
        self.store = store
        self.max_length = max_length

    def allocate(self, title_fr: str) -> str:
        base = slugify(title_fr, self.max_length)
        candidate = base
        counter = 1
        while self.store.find_by_slug(candidate) is not None:
            candidate = f"{base}-{counter}"
            counter += 1
        return candidate
