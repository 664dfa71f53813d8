"""
Inverted trigram index over catalog names and search terms.

The index turns "score every catalog entry" into "score the entries that
share trigrams with the query", which bounds the edit-distance work done
per lookup.
"""
import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..canonicalizer import normalize
from ..models import CatalogEntry

logger = logging.getLogger(__name__)

NGRAM_SIZE = 3
PAD = "$$"
# Tunable: admission floor for trigram overlap, kept from the production matcher
MIN_JACCARD = 0.1
DEFAULT_MAX_CANDIDATES = 50


def generate_ngrams(text: str, n: int = NGRAM_SIZE) -> FrozenSet[str]:
    """
    Character n-grams of ``text`` padded with sentinels on both sides.

    Padding makes prefixes and suffixes produce their own grams, so
    "squat" and "squats" differ at the end but share their start.
    """
    padded = f"{PAD}{text}{PAD}"
    return frozenset(padded[i:i + n] for i in range(len(padded) - n + 1))


def jaccard_similarity(a: FrozenSet[str], b: FrozenSet[str]) -> float:
    """|a ∩ b| / |a ∪ b|; two empty sets are identical."""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0

    intersection = len(a & b)
    return intersection / (len(a) + len(b) - intersection)


@dataclass(frozen=True)
class NgramIndexEntry:
    """
    One catalog translation name.

    Search terms add this entry to more posting lists but never replace
    ``normalized_name`` or ``ngrams``, so scores are always against the name.
    """
    exercise_id: str
    name: str
    slug: str
    locale: str
    normalized_name: str
    ngrams: FrozenSet[str]

    @property
    def key(self) -> Tuple[str, str]:
        return (self.exercise_id, self.name)


@dataclass(frozen=True)
class NgramCandidate:
    entry: NgramIndexEntry
    score: float


class NgramIndex:
    """
    Immutable trigram index for one catalog snapshot.

    Besides the posting lists it keeps one entry per translation name in
    catalog order, plus the normalized search terms of every translation,
    for the stages that scan the whole catalog.
    """

    def __init__(
        self,
        postings: Dict[str, Tuple[NgramIndexEntry, ...]],
        name_entries: Tuple[NgramIndexEntry, ...],
        search_terms: Dict[Tuple[str, str], Tuple[str, ...]],
    ):
        self._postings = postings
        self._name_entries = name_entries
        self._search_terms = search_terms
        self._by_normalized_name: Dict[str, NgramIndexEntry] = {}
        for entry in name_entries:
            self._by_normalized_name.setdefault(entry.normalized_name, entry)

    @property
    def name_entries(self) -> Tuple[NgramIndexEntry, ...]:
        return self._name_entries

    def search_terms_for(self, entry: NgramIndexEntry) -> Tuple[str, ...]:
        return self._search_terms.get(entry.key, ())

    def lookup_exact(self, normalized_name: str) -> Optional[NgramIndexEntry]:
        """First translation (in catalog order) whose normalized name is identical."""
        if not normalized_name:
            return None
        return self._by_normalized_name.get(normalized_name)

    def postings(self, ngram: str) -> Tuple[NgramIndexEntry, ...]:
        return self._postings.get(ngram, ())

    def find_candidates(
        self,
        normalized_query: str,
        max_candidates: int = DEFAULT_MAX_CANDIDATES,
    ) -> List[NgramCandidate]:
        """
        Shortlist translations sharing trigrams with the query.

        Each (exercise, translation) pair appears once, scored by the Jaccard
        similarity of its name, even when only a search term shared trigrams
        with the query. Candidates under MIN_JACCARD are dropped; the rest
        are sorted best first (ties by exercise id) and capped at
        ``max_candidates``.

        :param normalized_query: Query already passed through ``normalize``
        :param max_candidates: Shortlist size
        :return: Scored candidates, best first
        """
        query_ngrams = generate_ngrams(normalized_query)
        best: Dict[Tuple[str, str], NgramCandidate] = {}

        for ngram in query_ngrams:
            for entry in self._postings.get(ngram, ()):
                if entry.key in best:
                    continue
                best[entry.key] = NgramCandidate(
                    entry=entry,
                    score=jaccard_similarity(query_ngrams, entry.ngrams),
                )

        candidates = [c for c in best.values() if c.score >= MIN_JACCARD]
        candidates.sort(key=lambda c: (-c.score, c.entry.exercise_id, c.entry.name))
        return candidates[:max_candidates]

    def __len__(self) -> int:
        return len(self._postings)


def build_ngram_index(entries: Iterable[CatalogEntry]) -> NgramIndex:
    """
    Build the trigram index for a catalog snapshot.

    The trigrams of every translation name and of its search terms point to
    the name entry. A posting list holds a translation at most once.
    Search terms are kept per translation for the exhaustive fuzzy scan,
    where they are weighted below names.
    """
    postings: Dict[str, List[NgramIndexEntry]] = {}
    name_entries: List[NgramIndexEntry] = []
    search_terms: Dict[Tuple[str, str], Tuple[str, ...]] = {}

    for exercise in entries:
        for translation in exercise.translations:
            normalized_name = normalize(translation.name)
            name_entry = NgramIndexEntry(
                exercise_id=exercise.id,
                name=translation.name,
                slug=exercise.slug,
                locale=translation.locale,
                normalized_name=normalized_name,
                ngrams=generate_ngrams(normalized_name),
            )
            name_entries.append(name_entry)

            covered = set(name_entry.ngrams)
            terms: List[str] = []
            for term in translation.search_terms:
                normalized_term = normalize(term)
                if not normalized_term:
                    continue
                terms.append(normalized_term)
                covered.update(generate_ngrams(normalized_term))

            for ngram in covered:
                postings.setdefault(ngram, []).append(name_entry)
            # Same display name in two locales shares one key
            search_terms[name_entry.key] = search_terms.get(name_entry.key, ()) + tuple(terms)

    index = NgramIndex(
        postings={ngram: tuple(posting) for ngram, posting in postings.items()},
        name_entries=tuple(name_entries),
        search_terms=search_terms,
    )
    logger.info(f"Built n-gram index: {len(name_entries)} names, {len(index)} trigrams")
    return index
