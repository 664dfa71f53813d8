"""
Exercise matcher: cached, batched resolution of exercise names.

Combines the catalog loader, the n-gram index and the strategy pipeline
into the operations import pipelines and admin tools call.
"""
import asyncio
import logging
import re
import time
import uuid
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..cache import TTLCache
from ..canonicalizer import AliasTable, normalize, strip_diacritics
from ..catalog_source import CatalogSource
from ..config import MatcherConfig
from ..data_loader import CatalogLoader, CatalogSnapshot
from ..models import ImportedExercise, NewCatalogEntry, Translation
from ..schemas import MatchResult
from .alias_matcher import AliasMatcher
from .exact_matcher import ExactMatcher
from .fuzzy_matcher import NgramFuzzyMatcher
from .ngram_index import NgramIndex, build_ngram_index
from .phonetic_matcher import PhoneticMatcher
from .resolution_policy import ResolutionPolicy
from .semantic_resolver import MatchContext, MatchStrategy

logger = logging.getLogger(__name__)

MatchCacheKey = Tuple[str, str, float]

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    slug = _SLUG_RE.sub("-", strip_diacritics(name).lower()).strip("-")
    return slug or "exercise"


def default_strategies(aliases: AliasTable, max_candidates: int) -> List[MatchStrategy]:
    """Production escalation order."""
    return [
        ExactMatcher(),
        AliasMatcher(aliases),
        NgramFuzzyMatcher(max_candidates=max_candidates),
        PhoneticMatcher(),
    ]


class ExerciseMatcher:
    """
    Resolves free-text exercise names against the catalog.

    Pipeline per query: match cache → exact → alias → n-gram/fuzzy →
    phonetic, with the result written back to the cache on every exit.

    Owns three caches (catalog snapshot and n-gram index per locale, match
    results per query). They are passed in or built from the config, so test
    instances never share state.

    Usage:
        matcher = ExerciseMatcher(InMemoryCatalogSource(rows))
        result = await matcher.match_one("panca pian", "it")
        if result.found:
            exercise_id = result.matched_id
    """

    def __init__(
        self,
        source: CatalogSource,
        config: Optional[MatcherConfig] = None,
        aliases: Optional[AliasTable] = None,
        strategies: Optional[Sequence[MatchStrategy]] = None,
        catalog_cache: Optional[TTLCache[str, CatalogSnapshot]] = None,
        index_cache: Optional[TTLCache[str, NgramIndex]] = None,
        match_cache: Optional[TTLCache[MatchCacheKey, MatchResult]] = None,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ):
        """
        :param source: Catalog data source
        :param config: Matcher settings (defaults to MatcherConfig())
        :param aliases: Alias dictionary (defaults to the bundled IT/EN table)
        :param strategies: Ordered strategies (defaults to exact/alias/ngram/phonetic)
        :param catalog_cache: Cache for catalog snapshots keyed by locale
        :param index_cache: Cache for n-gram indexes keyed by locale
        :param match_cache: Cache for match results keyed by (locale, query, threshold)
        :param id_factory: Generates ids for created catalog entries
        """
        self.config = config or MatcherConfig()
        if self.config.batch_concurrency < 1:
            raise ValueError(f"batch_concurrency must be >= 1, got {self.config.batch_concurrency}")
        self._check_threshold(self.config.match_threshold)
        self._check_threshold(self.config.duplicate_threshold)

        self.source = source
        self.aliases = aliases if aliases is not None else AliasTable.default()

        # Empty caches are falsy, so compare against None
        if catalog_cache is None:
            catalog_cache = TTLCache(self.config.catalog_cache_size, self.config.catalog_ttl_seconds)
        if index_cache is None:
            index_cache = TTLCache(self.config.index_cache_size, self.config.catalog_ttl_seconds)
        if match_cache is None:
            match_cache = TTLCache(self.config.match_cache_size, self.config.match_ttl_seconds)

        self._loader = CatalogLoader(source, catalog_cache)
        self._index_cache = index_cache
        self._match_cache = match_cache
        self._policy = ResolutionPolicy(
            strategies or default_strategies(self.aliases, self.config.max_ngram_candidates)
        )
        self._id_factory = id_factory
        # Bumped on invalidation; results computed against an older generation are not cached
        self._generation = 0

    @staticmethod
    def _check_threshold(threshold: float):
        # A zero threshold would accept "no candidate" as a match
        if not 0.0 < threshold <= 1.0:
            raise ValueError(f"Threshold must be in (0.0, 1.0], got {threshold}")

    def _resolve_args(self, locale: Optional[str], threshold: Optional[float]) -> Tuple[str, float]:
        locale = locale or self.config.default_locale
        threshold = self.config.match_threshold if threshold is None else threshold
        self._check_threshold(threshold)
        return locale, threshold

    async def load_catalog(self, locale: Optional[str] = None) -> CatalogSnapshot:
        """Approved catalog entries for ``locale`` (cached)."""
        return await self._loader.load(locale or self.config.default_locale)

    async def get_index(self, locale: Optional[str] = None) -> NgramIndex:
        """N-gram index for ``locale``, built from the cached catalog snapshot."""
        locale = locale or self.config.default_locale
        cached = self._index_cache.get(locale)
        if cached is not None:
            return cached

        generation = self._generation
        catalog = await self._loader.load(locale)
        index = build_ngram_index(catalog)
        if generation == self._generation:
            self._index_cache.set(locale, index)
        return index

    async def match_one(
        self,
        name: str,
        locale: Optional[str] = None,
        threshold: Optional[float] = None,
    ) -> MatchResult:
        """
        Resolve a single exercise name.

        :param name: Raw name as typed or imported
        :param locale: Catalog locale (defaults to config.default_locale)
        :param threshold: Minimum confidence to report a match (defaults to config.match_threshold)
        :return: MatchResult; found is True exactly when confidence >= threshold
        :raises: ValueError for a threshold outside (0, 1]; catalog source errors propagate
        """
        locale, threshold = self._resolve_args(locale, threshold)
        normalized = normalize(name)
        key = (locale, normalized, threshold)

        cached = self._match_cache.get(key)
        if cached is not None:
            logger.debug(f"Match cache hit for '{name}' ({locale})")
            return replace(cached, original_query=name)

        generation = self._generation
        if not normalized:
            result = MatchResult.not_found(name)
        else:
            index = await self.get_index(locale)
            context = MatchContext(
                original_query=name,
                normalized_query=normalized,
                locale=locale,
                threshold=threshold,
                index=index,
            )
            result = self._policy.resolve(context)

        if generation == self._generation:
            self._match_cache.set(key, result)
        return result

    async def match_batch(
        self,
        names: Iterable[str],
        locale: Optional[str] = None,
        threshold: Optional[float] = None,
    ) -> Dict[str, MatchResult]:
        """
        Resolve many names with bounded concurrency.

        Names that normalize to the same text are resolved once. Unique
        queries run in windows of ``config.batch_concurrency``.

        :param names: Raw names, duplicates allowed
        :param locale: Catalog locale
        :param threshold: Minimum confidence to report a match
        :return: Mapping of each distinct raw name to its result
        """
        locale, threshold = self._resolve_args(locale, threshold)

        # Pre-warm catalog and index once for the whole batch
        await self.get_index(locale)

        unique_names = list(dict.fromkeys(names))
        groups: Dict[str, List[str]] = {}
        for raw in unique_names:
            groups.setdefault(normalize(raw), []).append(raw)

        queries = list(groups)
        by_query: Dict[str, MatchResult] = {}
        window = self.config.batch_concurrency

        for start in range(0, len(queries), window):
            chunk = queries[start:start + window]
            chunk_results = await asyncio.gather(
                *(self.match_one(groups[q][0], locale, threshold) for q in chunk)
            )
            by_query.update(zip(chunk, chunk_results))

        results = {
            raw: replace(by_query[normalize(raw)], original_query=raw)
            for raw in unique_names
        }

        found = sum(1 for r in results.values() if r.found)
        logger.info(
            f"Matched batch of {len(unique_names)} names "
            f"({len(queries)} unique queries, locale '{locale}'): "
            f"{found} found, {len(results) - found} not found"
        )
        return results

    @staticmethod
    def apply_matches(
        records: Iterable[Union[ImportedExercise, Mapping]],
        matches: Mapping[str, MatchResult],
    ) -> List[ImportedExercise]:
        """
        Annotate imported records with their match.

        Records without an entry in ``matches`` are marked not_found.

        :param records: Imported exercises (models or mappings with a "name")
        :param matches: Output of match_batch
        :return: New annotated records, input order preserved
        """
        annotated: List[ImportedExercise] = []
        for record in records:
            if not isinstance(record, ImportedExercise):
                record = ImportedExercise.model_validate(record)

            match = matches.get(record.name)
            if match is None:
                annotated.append(record.model_copy(update={"not_found": True}))
                continue

            annotated.append(record.model_copy(update={
                "catalog_id": match.matched_id,
                "match_confidence": match.confidence,
                "not_found": not match.found,
            }))
        return annotated

    def invalidate_cache(self) -> None:
        """Drop catalog, index and match caches."""
        self._generation += 1
        self._loader.invalidate()
        self._index_cache.clear()
        self._match_cache.clear()
        logger.info("Exercise matcher caches invalidated")

    async def create_missing_exercise(
        self,
        name: str,
        locale: Optional[str],
        author_id: str,
    ) -> str:
        """
        Create a pending catalog entry for a name that has no match.

        Re-checks for a near duplicate (config.duplicate_threshold) right
        before inserting and returns the existing id when one is found. The
        re-check narrows but does not close the window in which two
        concurrent callers both create the same name.

        :param name: Exercise name as imported
        :param locale: Locale of the initial translation
        :param author_id: User creating the entry
        :return: Id of the existing or newly created entry
        :raises: ValueError for an empty name; catalog source errors propagate
        """
        clean_name = (name or "").strip()
        if not normalize(clean_name):
            raise ValueError("Cannot create an exercise from an empty name")

        locale = locale or self.config.default_locale
        existing = await self.match_one(clean_name, locale, self.config.duplicate_threshold)
        if existing.found and existing.matched_id:
            logger.info(
                f"Skipping creation of '{clean_name}': near duplicate {existing.matched_id} "
                f"({existing.confidence:.3f})"
            )
            return existing.matched_id

        exercise_id = self._id_factory()
        entry = NewCatalogEntry(
            id=exercise_id,
            slug=f"imported-{slugify(clean_name)}-{int(time.time() * 1000)}",
            status="pending",
            created_by=author_id,
            translations=(
                Translation(locale=locale, name=clean_name, search_terms=(clean_name.lower(),)),
            ),
        )

        await self.source.create_entry(entry)
        self.invalidate_cache()
        logger.info(f"Created pending exercise {exercise_id} for '{clean_name}' ({locale})")
        return exercise_id

    async def create_missing_exercises(
        self,
        names: Iterable[str],
        locale: Optional[str],
        author_id: str,
    ) -> Tuple[Dict[str, str], List[str]]:
        """
        Create entries for several unmatched names, one at a time.

        A failure for one name is logged and reported as a warning so the
        rest of an import can proceed.

        :return: (name -> created or existing id, warning messages)
        """
        created: Dict[str, str] = {}
        warnings: List[str] = []

        for name in dict.fromkeys(names):
            try:
                created[name] = await self.create_missing_exercise(name, locale, author_id)
            except Exception as e:
                message = f"Could not create exercise '{name}': {e}"
                logger.warning(message)
                warnings.append(message)

        return created, warnings
