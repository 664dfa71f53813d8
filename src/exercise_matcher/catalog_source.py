"""
Catalog data source contract and the bundled implementations.

The matcher only needs two operations from the catalog store: read the
matchable entries and persist a new pending entry. Storage and query
engines live behind this boundary.
"""
import asyncio
import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Union

from .models import CatalogEntry, NewCatalogEntry

logger = logging.getLogger(__name__)

CatalogRow = Union[Mapping[str, Any], CatalogEntry]


class CatalogSource(ABC):
    """
    Read/write contract for the exercise catalog.

    Failures raised by implementations are never caught by the matcher.
    """

    @abstractmethod
    async def fetch_approved(self, locale: str) -> Iterable[CatalogRow]:
        """
        Fetch the matchable entries with all their translations.

        Matchable means approved. Implementations may also return entries
        still ``pending`` review; the bundled sources do so unless built with
        ``include_pending=False``, so a name created moments ago is found by
        the duplicate re-check instead of being inserted again. Entries with
        any other status, such as ``rejected``, are never returned.

        Rows have the shape ``{id, slug, translations: [{locale, name, searchTerms}]}``.

        :param locale: Locale the caller is matching in
        :return: Iterable of rows or CatalogEntry objects
        """

    @abstractmethod
    async def create_entry(self, entry: NewCatalogEntry) -> None:
        """Persist a new pending entry."""


def _is_matchable(row: Mapping[str, Any], include_pending: bool) -> bool:
    status = str(row.get("status", "approved")).lower()
    if status == "approved":
        return True
    return include_pending and status == "pending"


class InMemoryCatalogSource(CatalogSource):
    """
    Catalog kept in a Python list.

    Pending entries created through ``create_entry`` stay matchable unless
    ``include_pending`` is False, so the duplicate re-check before an insert
    sees entries created earlier in the same process.
    """

    def __init__(self, rows: Iterable[Mapping[str, Any]] = (), include_pending: bool = True):
        self._rows: List[Dict[str, Any]] = [dict(row) for row in rows]
        self.include_pending = include_pending
        self.fetch_count = 0

    async def fetch_approved(self, locale: str) -> List[Dict[str, Any]]:
        """Approved rows, plus pending ones when ``include_pending`` is set."""
        self.fetch_count += 1
        return [row for row in self._rows if _is_matchable(row, self.include_pending)]

    async def create_entry(self, entry: NewCatalogEntry) -> None:
        self._rows.append(entry.model_dump(by_alias=True))

    @property
    def rows(self) -> List[Dict[str, Any]]:
        return list(self._rows)


class JsonFileCatalogSource(CatalogSource):
    """
    Catalog stored as a JSON array of entries in a local file.

    File I/O runs in a worker thread so the event loop is not blocked.
    Appends are serialized per source instance and each one writes its own
    temporary file before replacing the catalog, so concurrent
    ``create_entry`` calls neither lose rows nor leave a truncated file.
    Processes sharing one file are not coordinated.
    """

    def __init__(self, path: Union[str, Path], include_pending: bool = True):
        self.path = Path(path)
        self.include_pending = include_pending
        self._write_lock = threading.Lock()

    def _read(self) -> List[Dict[str, Any]]:
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"Catalog file {self.path} must contain a JSON array")
        return data

    def _append(self, row: Dict[str, Any]) -> None:
        with self._write_lock:
            rows = self._read() if self.path.exists() else []
            rows.append(row)

            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(rows, f, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self.path)
            except Exception:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise

    async def fetch_approved(self, locale: str) -> List[Dict[str, Any]]:
        """Approved rows, plus pending ones when ``include_pending`` is set."""
        rows = await asyncio.to_thread(self._read)
        return [row for row in rows if _is_matchable(row, self.include_pending)]

    async def create_entry(self, entry: NewCatalogEntry) -> None:
        await asyncio.to_thread(self._append, entry.model_dump(by_alias=True))
        logger.info(f"Appended catalog entry {entry.id} to {self.path}")
