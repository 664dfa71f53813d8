import logging
from typing import Tuple

from pydantic import ValidationError

from .cache import TTLCache
from .catalog_source import CatalogRow, CatalogSource
from .exceptions import CatalogValidationError
from .models import CatalogEntry

logger = logging.getLogger(__name__)

CatalogSnapshot = Tuple[CatalogEntry, ...]


class CatalogLoader:
    """
    Loads approved catalog entries per locale and caches the snapshot.

    Source failures propagate to the caller; an empty catalog is never
    substituted, since that would turn every lookup into a false "not found".
    """

    def __init__(self, source: CatalogSource, cache: TTLCache[str, CatalogSnapshot]):
        self.source = source
        self._cache = cache
        self._generation = 0

    async def load(self, locale: str) -> CatalogSnapshot:
        cached = self._cache.get(locale)
        if cached is not None:
            return cached

        generation = self._generation
        rows = await self.source.fetch_approved(locale)
        entries = tuple(sorted((self._parse_row(row) for row in rows), key=lambda e: e.id))

        # A load that raced with invalidate() must not repopulate the cache
        if generation == self._generation:
            self._cache.set(locale, entries)
        logger.info(f"Loaded {len(entries)} catalog entries for locale '{locale}'")
        return entries

    def invalidate(self) -> None:
        self._generation += 1
        self._cache.clear()

    def _parse_row(self, row: CatalogRow) -> CatalogEntry:
        if isinstance(row, CatalogEntry):
            return row
        try:
            return CatalogEntry.model_validate(row)
        except ValidationError as e:
            row_id = row.get("id") if hasattr(row, "get") else None
            raise CatalogValidationError(f"Invalid catalog row {row_id!r}: {e}") from e
