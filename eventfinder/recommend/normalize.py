"""Text folding shared by prompt parsing, scoring and scheduling.

`contains_phrase` matches whole words only: a phrase must be bounded by
non-alphanumerics or the string edges, so "online" never fires inside
"onlineshop". Plain substring matching is left to the store queries.
"""

from __future__ import annotations

import re
import unicodedata

_DISALLOWED = re.compile(r"[^a-z0-9.\s-]")
_WHITESPACE = re.compile(r"\s+")


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", str(text or ""))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower()


def normalize_text(text: str) -> str:
    """Lower-case, drop diacritics and punctuation, squash whitespace.

    Idempotent: the output only contains ``[a-z0-9.-]`` and single spaces.
    """
    cleaned = _DISALLOWED.sub("", _fold(text))
    return _WHITESPACE.sub(" ", cleaned).strip()


def tokenize(text: str) -> list[str]:
    # Punctuation separates words here ("rock/jazz" -> rock, jazz).
    spaced = _DISALLOWED.sub(" ", _fold(text))
    collapsed = _WHITESPACE.sub(" ", spaced).strip()
    return collapsed.split(" ") if collapsed else []


def contains_phrase(haystack: str, phrase: str) -> bool:
    """Whole-word containment of an already-normalized phrase."""
    if not phrase:
        return False
    pattern = rf"(?<![a-z0-9]){re.escape(phrase)}(?![a-z0-9])"
    return re.search(pattern, haystack) is not None


__all__ = ["contains_phrase", "normalize_text", "tokenize"]
