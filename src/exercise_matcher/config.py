from dataclasses import dataclass
from typing import Optional


@dataclass
class MatcherConfig:
    # Matching
    default_locale: str = "en"
    match_threshold: float = 0.7
    duplicate_threshold: float = 0.95
    max_ngram_candidates: int = 50

    # Caches
    catalog_ttl_seconds: float = 60 * 30
    match_ttl_seconds: float = 60 * 5
    catalog_cache_size: int = 10
    index_cache_size: int = 5
    match_cache_size: int = 1000

    # Batch processing
    batch_concurrency: int = 10

    # Catalog file used by JsonFileCatalogSource
    catalog_path: Optional[str] = None

    log_level: str = "INFO"
