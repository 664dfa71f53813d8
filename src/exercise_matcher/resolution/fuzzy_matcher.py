"""
N-gram shortlist plus Levenshtein scoring, with an exhaustive fallback.

Handles typos, missing letters and near-misses.
"""
import logging
from typing import Optional

from rapidfuzz.distance import Levenshtein

from .ngram_index import DEFAULT_MAX_CANDIDATES
from .semantic_resolver import MatchContext, MatchStrategy, ScoredCandidate

logger = logging.getLogger(__name__)

# Tunable blend of trigram overlap and edit similarity; not verified optimal
NGRAM_WEIGHT = 0.4
LEVENSHTEIN_WEIGHT = 0.6
SEARCH_TERM_WEIGHT = 0.9
# Candidates must reach threshold * SHORTLIST_FACTOR to be kept
SHORTLIST_FACTOR = 0.7
# Fewer kept n-gram candidates than this triggers the full catalog scan
MIN_SHORTLIST = 3


def levenshtein_distance(a: str, b: str) -> int:
    """
    Edit distance with early exits.

    Identical strings cost 0. When the lengths differ by more than half of
    the longer string, the pair is rejected with the longer length as the
    distance, without computing the full table.
    """
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    longest = max(len(a), len(b))
    if abs(len(a) - len(b)) > longest * 0.5:
        return longest

    return Levenshtein.distance(a, b)


def similarity(a: str, b: str) -> float:
    """1 - distance / max length, in [0, 1]."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest


class NgramFuzzyMatcher(MatchStrategy):
    """
    Scores the n-gram shortlist with a Jaccard/Levenshtein blend.

    When fewer than MIN_SHORTLIST candidates survive, every translation name
    and search term in the catalog is scored instead (search terms weighted
    by SEARCH_TERM_WEIGHT), trading speed for recall.
    """

    name = "ngram"

    def __init__(self, max_candidates: int = DEFAULT_MAX_CANDIDATES):
        """
        :param max_candidates: Size of the n-gram shortlist
        """
        if max_candidates < 1:
            raise ValueError(f"max_candidates must be >= 1, got {max_candidates}")
        self.max_candidates = max_candidates

    def attempt(self, context: MatchContext) -> Optional[ScoredCandidate]:
        query = context.normalized_query
        floor = context.threshold * SHORTLIST_FACTOR

        shortlist = context.index.find_candidates(query, self.max_candidates)
        kept = 0
        for candidate in shortlist:
            edit_similarity = similarity(query, candidate.entry.normalized_name)
            combined = NGRAM_WEIGHT * candidate.score + LEVENSHTEIN_WEIGHT * edit_similarity
            if combined >= floor and context.add_candidate(
                ScoredCandidate.from_entry(candidate.entry, combined, "ngram")
            ):
                kept += 1

        logger.debug(
            f"N-gram stage for '{context.original_query}': "
            f"{len(shortlist)} shortlisted, {kept} kept"
        )

        if kept < MIN_SHORTLIST:
            self._exhaustive_scan(context, floor)

        return context.best_candidate()

    def _exhaustive_scan(self, context: MatchContext, floor: float):
        query = context.normalized_query
        added = 0

        for entry in context.index.name_entries:
            if context.has_candidate(entry.exercise_id, entry.name):
                continue

            name_similarity = similarity(query, entry.normalized_name)
            term_similarity = max(
                (similarity(query, term) for term in context.index.search_terms_for(entry)),
                default=0.0,
            )
            score = max(name_similarity, term_similarity * SEARCH_TERM_WEIGHT)

            if score >= floor and context.add_candidate(
                ScoredCandidate.from_entry(entry, score, "fuzzy")
            ):
                added += 1

        logger.debug(
            f"Exhaustive scan for '{context.original_query}': "
            f"{len(context.index.name_entries)} names scored, {added} added"
        )
