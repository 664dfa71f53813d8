"""
Configuration loader with validation.

Builds MatcherConfig from EXERCISE_MATCHER_* environment variables.
"""
from dotenv import load_dotenv
from .config import MatcherConfig
from .config_validator import (
    get_optional_env,
    get_float_env,
    get_int_env,
    validate_threshold,
    validate_path,
)

ENV_PREFIX = "EXERCISE_MATCHER_"


def load_config_from_env(load_env_file: bool = True) -> MatcherConfig:
    """
    Load configuration from environment variables with validation.

    Usage:
        config = load_config_from_env()
        matcher = create_exercise_matcher(config)

    :param load_env_file: Load a local .env file first (development)
    :return: Validated MatcherConfig instance
    :raises: ConfigurationError if a value is invalid
    """
    if load_env_file:
        load_dotenv()

    defaults = MatcherConfig()

    config = MatcherConfig(
        default_locale=get_optional_env(
            f"{ENV_PREFIX}DEFAULT_LOCALE", default=defaults.default_locale
        ),
        match_threshold=get_float_env(
            f"{ENV_PREFIX}MATCH_THRESHOLD", defaults.match_threshold
        ),
        duplicate_threshold=get_float_env(
            f"{ENV_PREFIX}DUPLICATE_THRESHOLD", defaults.duplicate_threshold
        ),
        max_ngram_candidates=get_int_env(
            f"{ENV_PREFIX}MAX_NGRAM_CANDIDATES", defaults.max_ngram_candidates
        ),
        catalog_ttl_seconds=get_float_env(
            f"{ENV_PREFIX}CATALOG_TTL_SECONDS", defaults.catalog_ttl_seconds
        ),
        match_ttl_seconds=get_float_env(
            f"{ENV_PREFIX}MATCH_TTL_SECONDS", defaults.match_ttl_seconds
        ),
        catalog_cache_size=get_int_env(
            f"{ENV_PREFIX}CATALOG_CACHE_SIZE", defaults.catalog_cache_size
        ),
        index_cache_size=get_int_env(
            f"{ENV_PREFIX}INDEX_CACHE_SIZE", defaults.index_cache_size
        ),
        match_cache_size=get_int_env(
            f"{ENV_PREFIX}MATCH_CACHE_SIZE", defaults.match_cache_size
        ),
        batch_concurrency=get_int_env(
            f"{ENV_PREFIX}BATCH_CONCURRENCY", defaults.batch_concurrency
        ),
        catalog_path=get_optional_env(f"{ENV_PREFIX}CATALOG_PATH"),
        log_level=get_optional_env(f"{ENV_PREFIX}LOG_LEVEL", default=defaults.log_level).upper(),
    )

    validate_threshold(config.match_threshold, f"{ENV_PREFIX}MATCH_THRESHOLD")
    validate_threshold(config.duplicate_threshold, f"{ENV_PREFIX}DUPLICATE_THRESHOLD")

    if config.catalog_path:
        validate_path(config.catalog_path, f"{ENV_PREFIX}CATALOG_PATH", must_exist=True)

    return config
