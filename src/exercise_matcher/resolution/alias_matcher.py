"""
Alias matching strategy using the bilingual synonym dictionary.
"""
import logging
from typing import Optional

from ..canonicalizer import AliasTable
from .semantic_resolver import MatchContext, MatchStrategy, ScoredCandidate

logger = logging.getLogger(__name__)

ALIAS_CONFIDENCE = 0.95


class AliasMatcher(MatchStrategy):
    """
    Resolves synonyms across languages ("panca piana" -> "Bench Press").

    The query and each translation name are mapped to their canonical alias
    group; the first translation in the same group wins.
    """

    name = "alias"

    def __init__(self, aliases: AliasTable):
        """
        :param aliases: Reverse-indexed alias dictionary
        """
        self.aliases = aliases

    def attempt(self, context: MatchContext) -> Optional[ScoredCandidate]:
        group = self.aliases.canonical(context.normalized_query)
        if group is None:
            return None

        for entry in context.index.name_entries:
            if self.aliases.canonical(entry.normalized_name) == group:
                logger.debug(
                    f"Alias match for '{context.original_query}' via group '{group}': "
                    f"{entry.exercise_id} ({entry.name})"
                )
                candidate = ScoredCandidate.from_entry(entry, ALIAS_CONFIDENCE, "alias")
                context.add_candidate(candidate)
                return candidate

        return None
