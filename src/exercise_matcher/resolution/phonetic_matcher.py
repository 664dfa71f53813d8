"""
Sound-alike fallback for names that defeat edit distance.
"""
import logging
from typing import Optional

from ..canonicalizer import normalize
from .semantic_resolver import MatchContext, MatchStrategy, ScoredCandidate

logger = logging.getLogger(__name__)

PHONETIC_CONFIDENCE = 0.75
CODE_LENGTH = 4
MIN_CODE_LENGTH = 2

CONSONANT_CLASSES = {
    **dict.fromkeys("bfpv", "1"),
    **dict.fromkeys("cgjkqsxz", "2"),
    **dict.fromkeys("dt", "3"),
    "l": "4",
    **dict.fromkeys("mn", "5"),
    "r": "6",
}


def phonetic_code(text: str) -> str:
    """
    Soundex-like code for Italian and English exercise names.

    The first character is kept (upper-cased); following consonants map to
    their class digit, repeated classes collapse, and vowels, digits and
    spaces reset the repeat tracking. Padded with zeros to four characters.
    Empty text gives an empty code.
    """
    normalized = normalize(text)
    if not normalized:
        return ""

    code = normalized[0].upper()
    last_class = CONSONANT_CLASSES.get(normalized[0], "")

    for char in normalized[1:]:
        if len(code) >= CODE_LENGTH:
            break
        char_class = CONSONANT_CLASSES.get(char)
        if char_class is None:
            last_class = ""
        elif char_class != last_class:
            code += char_class
            last_class = char_class

    return (code + "0" * CODE_LENGTH)[:CODE_LENGTH]


class PhoneticMatcher(MatchStrategy):
    """
    Last-resort strategy: same phonetic code, fixed confidence.

    Adds at most one candidate per catalog entry not already scored.
    """

    name = "phonetic"

    def attempt(self, context: MatchContext) -> Optional[ScoredCandidate]:
        query_code = phonetic_code(context.normalized_query)
        if len(query_code) < MIN_CODE_LENGTH:
            return None

        added = 0
        for entry in context.index.name_entries:
            if context.has_exercise(entry.exercise_id):
                continue
            if phonetic_code(entry.normalized_name) == query_code:
                context.add_candidate(ScoredCandidate.from_entry(entry, PHONETIC_CONFIDENCE, "phonetic"))
                added += 1

        logger.debug(f"Phonetic stage for '{context.original_query}' ({query_code}): {added} added")
        return context.best_candidate()
