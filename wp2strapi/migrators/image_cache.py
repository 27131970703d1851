from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Set

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageRecord:
    """A rehosted asset: where it came from and where it lives now."""

    source_key: str
    destination_url: str
    destination_filename: str


class ImageCache:
    """
    In-memory store of rehosted images for one import run.

    Records are keyed by normalized source URL.  A second index keyed by
    normalized filename lets the pipeline recognise the same file served
    from different URLs.  Create one instance per run and pass it to the
    pipeline; nothing is persisted.
    """

    def __init__(self) -> None:
        self._store: Dict[str, ImageRecord] = {}
        self._by_filename: Dict[str, ImageRecord] = {}
        self._destinations: Set[str] = set()

    def has(self, key: str) -> bool:
        return key in self._store

    def get(self, key: str) -> Optional[ImageRecord]:
        return self._store.get(key)

    def set(self, key: str, record: ImageRecord) -> None:
        self._store[key] = record
        self._destinations.add(record.destination_url)
        logger.debug("+ Cache set: %s -> %s", key, record.destination_filename)

    def find_by_filename(self, normalized_filename: str) -> Optional[ImageRecord]:
        if not normalized_filename:
            return None
        return self._by_filename.get(normalized_filename)

    def remember_filename(self, normalized_filename: str, record: ImageRecord) -> None:
        if normalized_filename:
            self._by_filename.setdefault(normalized_filename, record)

    def stats(self) -> Dict[str, Any]:
        return {
            "size": len(self._store),
            "entries": [record.destination_filename for record in self._store.values()],
        }

    def is_destination(self, url: str) -> bool:
        """True if ``url`` is where a rehosted image now lives."""
        return url in self._destinations

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)
