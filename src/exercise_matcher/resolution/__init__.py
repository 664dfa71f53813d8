"""
Resolution layer for exercise name matching.

Converts free-text exercise names into canonical catalog entries.

Key components:
- MatchStrategy: Protocol for resolution stages
- ExactMatcher, AliasMatcher, NgramFuzzyMatcher, PhoneticMatcher: the stages
- ResolutionPolicy: Escalation logic over the stages
- NgramIndex: Trigram shortlist over catalog names and search terms
- ExerciseMatcher: Cached single and batch matching, entry creation
"""
from .semantic_resolver import MatchStrategy, MatchContext, ScoredCandidate
from .ngram_index import NgramIndex, NgramIndexEntry, build_ngram_index, generate_ngrams, jaccard_similarity
from .exact_matcher import ExactMatcher
from .alias_matcher import AliasMatcher
from .fuzzy_matcher import NgramFuzzyMatcher, levenshtein_distance, similarity
from .phonetic_matcher import PhoneticMatcher, phonetic_code
from .resolution_policy import ResolutionPolicy
from .exercise_resolver import ExerciseMatcher, default_strategies, slugify
from .resolver_factory import create_exercise_matcher
from .resolution_metadata import summarize_matches, summary_to_dict

__all__ = [
    "MatchStrategy",
    "MatchContext",
    "ScoredCandidate",
    "NgramIndex",
    "NgramIndexEntry",
    "build_ngram_index",
    "generate_ngrams",
    "jaccard_similarity",
    "ExactMatcher",
    "AliasMatcher",
    "NgramFuzzyMatcher",
    "levenshtein_distance",
    "similarity",
    "PhoneticMatcher",
    "phonetic_code",
    "ResolutionPolicy",
    "ExerciseMatcher",
    "default_strategies",
    "slugify",
    "create_exercise_matcher",
    "summarize_matches",
    "summary_to_dict",
]
