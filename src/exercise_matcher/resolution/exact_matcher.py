"""
Exact matching strategy.

Fast, deterministic matching on normalized names.
"""
import logging
from typing import Optional

from .semantic_resolver import MatchContext, MatchStrategy, ScoredCandidate

logger = logging.getLogger(__name__)

EXACT_CONFIDENCE = 1.0


class ExactMatcher(MatchStrategy):
    """
    Exact match strategy.

    Case-, diacritic- and punctuation-insensitive equality between the
    normalized query and a translation name. Used as the first strategy.
    """

    name = "exact"

    def attempt(self, context: MatchContext) -> Optional[ScoredCandidate]:
        entry = context.index.lookup_exact(context.normalized_query)
        if entry is None:
            return None

        logger.debug(f"Exact match for '{context.original_query}': {entry.exercise_id}")
        candidate = ScoredCandidate.from_entry(entry, EXACT_CONFIDENCE, "exact")
        context.add_candidate(candidate)
        return candidate
