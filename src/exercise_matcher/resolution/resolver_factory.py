"""
Factory for creating exercise matchers.

Picks the catalog source from config when none is given.
"""
from typing import Optional

from ..canonicalizer import AliasTable
from ..catalog_source import CatalogSource, JsonFileCatalogSource
from ..config import MatcherConfig
from ..exceptions import ConfigurationError
from .exercise_resolver import ExerciseMatcher


def create_exercise_matcher(
    config: Optional[MatcherConfig] = None,
    source: Optional[CatalogSource] = None,
    aliases: Optional[AliasTable] = None,
) -> ExerciseMatcher:
    """
    Factory function to create an ExerciseMatcher.

    Uses a JsonFileCatalogSource on config.catalog_path if no source is
    provided.

    :param config: MatcherConfig instance (defaults to MatcherConfig())
    :param source: Optional catalog source
    :param aliases: Optional alias table (defaults to the bundled one)
    :return: Configured ExerciseMatcher
    :raises: ConfigurationError if neither a source nor a catalog path is available
    """
    config = config or MatcherConfig()

    if source is None:
        if not config.catalog_path:
            raise ConfigurationError(
                "No catalog source given and EXERCISE_MATCHER_CATALOG_PATH is not set."
            )
        source = JsonFileCatalogSource(config.catalog_path)

    return ExerciseMatcher(source=source, config=config, aliases=aliases)
