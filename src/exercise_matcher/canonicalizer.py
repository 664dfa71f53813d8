"""
Text normalization and bilingual alias canonicalization for exercise names.

Every comparison in the matcher happens on normalized text, so
``normalize`` must stay deterministic and idempotent.
"""
import json
import re
import unicodedata
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Union

# Shared Italian/English articles and prepositions
STOP_WORDS = frozenset({
    "con", "with", "using", "su", "on", "at", "per", "for", "di", "of",
    "alla", "al", "to", "the", "a", "an", "un", "una", "uno",
})

DEFAULT_ALIASES_PATH = Path(__file__).parent / "data" / "exercise_aliases.json"

_PUNCTUATION_RE = re.compile(r"[^\w\s]|_")
_WHITESPACE_RE = re.compile(r"\s+")


def strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize(text: Optional[str]) -> str:
    """
    Canonical comparison form of an exercise name.

    Lowercases, strips diacritics, turns punctuation into spaces, collapses
    whitespace and drops stop words:

        normalize(" Panca-Piana ") == normalize("PANCA PIANA") == "panca piana"

    :param text: Raw name (None is treated as empty)
    :return: Normalized name, possibly empty
    """
    if not text:
        return ""

    cleaned = strip_diacritics(text).lower()
    cleaned = _PUNCTUATION_RE.sub(" ", cleaned)
    tokens = [t for t in _WHITESPACE_RE.split(cleaned) if t and t not in STOP_WORDS]
    return " ".join(tokens)


class AliasTable:
    """
    Reverse-indexed synonym dictionary.

    Each canonical group key lists its aliases in any supported language
    ("bench press" -> "panca piana", "distensioni su panca", ...). Lookups
    normalize the text and return the group key, or None.
    """

    def __init__(self, groups: Mapping[str, Iterable[str]]):
        """
        :param groups: Mapping of canonical group key to its aliases
        """
        self._groups: Dict[str, tuple] = {key: tuple(aliases) for key, aliases in groups.items()}
        self._reverse: Dict[str, str] = {}
        self._build_reverse_index()

    def _build_reverse_index(self):
        for canonical, aliases in self._groups.items():
            self._reverse[normalize(canonical)] = canonical
            for alias in aliases:
                # Later groups overwrite earlier ones for shared aliases
                self._reverse[normalize(alias)] = canonical

    @classmethod
    def from_groups(cls, groups: Mapping[str, Iterable[str]]) -> "AliasTable":
        return cls(groups)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "AliasTable":
        """Load groups from a JSON object of ``{"canonical": ["alias", ...]}``."""
        with open(path, encoding="utf-8") as f:
            return cls(json.load(f))

    @classmethod
    def default(cls) -> "AliasTable":
        """Bundled IT/EN exercise alias groups, read once per process."""
        return _default_table()

    def canonical(self, text: str) -> Optional[str]:
        """Return the canonical group key for ``text``, or None."""
        normalized = normalize(text)
        if not normalized:
            return None
        return self._reverse.get(normalized)

    def groups(self) -> Dict[str, tuple]:
        return dict(self._groups)

    def __len__(self) -> int:
        return len(self._reverse)


@lru_cache(maxsize=1)
def _default_table() -> AliasTable:
    return AliasTable.from_file(DEFAULT_ALIASES_PATH)
