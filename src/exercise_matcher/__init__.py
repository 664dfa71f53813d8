"""
Exercise name matching against a multilingual catalog.
"""
from .cache import TTLCache
from .canonicalizer import AliasTable, normalize
from .catalog_source import CatalogSource, InMemoryCatalogSource, JsonFileCatalogSource
from .config import MatcherConfig
from .config_loader import load_config_from_env
from .exceptions import CatalogValidationError, ConfigurationError, ExerciseMatcherError
from .models import CatalogEntry, ImportedExercise, NewCatalogEntry, Translation
from .resolution import ExerciseMatcher, create_exercise_matcher, summarize_matches
from .schemas import MatchResult, MatchSummary, Suggestion

__all__ = [
    "TTLCache",
    "AliasTable",
    "normalize",
    "CatalogSource",
    "InMemoryCatalogSource",
    "JsonFileCatalogSource",
    "MatcherConfig",
    "load_config_from_env",
    "CatalogValidationError",
    "ConfigurationError",
    "ExerciseMatcherError",
    "CatalogEntry",
    "ImportedExercise",
    "NewCatalogEntry",
    "Translation",
    "ExerciseMatcher",
    "create_exercise_matcher",
    "summarize_matches",
    "MatchResult",
    "MatchSummary",
    "Suggestion",
]
