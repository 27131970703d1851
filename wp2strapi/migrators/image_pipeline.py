"""
Rehosting of the images referenced by a Markdown document.

:class:`ImagePipeline` scans Markdown for ``![alt](src "title")`` references
and points each one at a copy of the asset stored in Strapi.  Source URLs are
normalized so that resized variants of the same picture (``-300x200``,
``/medium/``, query strings ...) share one cache entry, and files with the
same normalized name are only uploaded once per run.  A reference whose
download or upload fails is left exactly as it was.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from wp2strapi.parsers.markdown_renderer import markdown_image
from wp2strapi.utils.errors import FormatError, MigrationError, report_error

from .image_cache import ImageCache, ImageRecord

logger = logging.getLogger(__name__)

IMAGE_REFERENCE_RE = re.compile(r'!\[(.*?)\]\((.*?)(?:\s+"(.*?)")?\)')

_SIZE_SEGMENT_RE = re.compile(r"/(quality|width|height)/\d+/")
_DIMENSIONS_RE = re.compile(r"[-_]\d+x\d+")
_SIZE_TIER_RE = re.compile(r"/(small|medium|large|thumbnail)/")
_REPEATED_SLASHES_RE = re.compile(r"(?<=[^:/])/{2,}")


def normalize_url(url: str) -> str:
    """
    Canonical cache key for an image URL.

    Drops query string and fragment, lowercases, and removes size hints
    (``/width/300/``, ``-300x200``, ``/thumbnail/``) and repeated slashes.
    Never raises: anything that cannot be normalized is returned unchanged.
    """
    try:
        clean = re.split(r"[?#]", url)[0].lower()
        clean = _SIZE_SEGMENT_RE.sub("/", clean)
        clean = _DIMENSIONS_RE.sub("", clean)
        clean = _SIZE_TIER_RE.sub("/", clean)
        return _REPEATED_SLASHES_RE.sub("/", clean)
    except (TypeError, AttributeError):
        logger.error("Invalid URL: %r", url)
        return url


def get_filename(url: str) -> Optional[str]:
    try:
        return url.split("/")[-1].split("#")[0].split("?")[0]
    except AttributeError:
        logger.error("Failed to extract filename from %r", url)
        return None


def normalize_filename(filename: str) -> str:
    name = re.sub(r"[_-]", "", filename.lower())
    return re.sub(r"\.[^/.]+$", "", name)


@dataclass
class ImageStats:
    processed: int = 0
    cached: int = 0
    uploaded: int = 0
    failed: int = 0

    def merge(self, other: "ImageStats") -> None:
        self.processed += other.processed
        self.cached += other.cached
        self.uploaded += other.uploaded
        self.failed += other.failed

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


class ImagePipeline:
    """
    Rehosts the images of Markdown documents through a shared cache.

    Concurrent documents that reference the same image share one upload:
    the first one starts it and the others wait on it.

    :param cache: The run's :class:`ImageCache`.
    :param client: Object with a blocking ``rehost_image(url)`` returning
        ``{"url": ..., "name": ...}``, normally a
        :class:`~wp2strapi.migrators.strapi_client.StrapiClient`.
    """

    def __init__(self, cache: ImageCache, client: Any) -> None:
        self.cache = cache
        self.client = client
        self.stats = ImageStats()
        self._pending: Dict[str, asyncio.Future] = {}

    def is_rehosted(self, url: str) -> bool:
        return self.cache.is_destination(url)

    def _lookup(self, key: str, stats: ImageStats) -> Optional[ImageRecord]:
        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Cache hit: %s", cached.destination_filename)
            stats.cached += 1
            return cached

        source_filename = get_filename(key)
        if not source_filename:
            return None
        existing = self.cache.find_by_filename(normalize_filename(source_filename))
        if existing is not None:
            logger.info(
                "Duplicate file detected: %s matches %s", source_filename, existing.destination_filename
            )
            self.cache.set(key, existing)
            stats.cached += 1
        return existing

    async def _wait_for(self, key: str, pending: asyncio.Future, stats: ImageStats) -> ImageRecord:
        logger.info("Upload in progress, waiting: %s", key)
        record = await asyncio.shield(pending)
        stats.cached += 1
        return record

    async def _rehost(self, key: str, stats: ImageStats) -> ImageRecord:
        logger.info("Cache miss - uploading: %s", key)
        pending = asyncio.get_running_loop().create_future()
        self._pending[key] = pending
        try:
            uploaded = await asyncio.to_thread(self.client.rehost_image, key)
            if not isinstance(uploaded, dict) or not uploaded.get("url") or not uploaded.get("name"):
                raise FormatError(f"Invalid upload result for {key}")
        except MigrationError as e:
            pending.set_exception(e)
            # Retrieved here so a future nobody waited on does not log it.
            pending.exception()
            raise
        except BaseException:
            pending.cancel()
            raise
        finally:
            self._pending.pop(key, None)

        record = ImageRecord(
            source_key=key,
            destination_url=uploaded["url"],
            destination_filename=uploaded["name"],
        )
        self.cache.set(key, record)
        source_filename = get_filename(key)
        if source_filename:
            self.cache.remember_filename(normalize_filename(source_filename), record)
        self.cache.remember_filename(normalize_filename(record.destination_filename), record)
        pending.set_result(record)
        stats.uploaded += 1
        return record

    async def process(self, markdown: str, post: Optional[Dict[str, Any]] = None) -> str:
        """
        Return ``markdown`` with every image reference pointing at Strapi.

        References are handled left to right.  Titles are kept.  A reference
        whose asset cannot be rehosted is copied through unchanged and, when
        ``post`` is given, reported against that post.
        """
        stats = ImageStats()
        parts: List[str] = []
        pos = 0

        logger.debug("Initial cache status: %s", self.cache.stats())
        for match in IMAGE_REFERENCE_RE.finditer(markdown):
            parts.append(markdown[pos:match.start()])
            pos = match.end()
            src, title = match.group(2), match.group(3)
            stats.processed += 1
            key = normalize_url(src)
            logger.debug("Processing image: %s (normalized: %s)", src, key)

            record = self._lookup(key, stats)
            if record is None:
                pending = self._pending.get(key)
                try:
                    if pending is not None:
                        record = await self._wait_for(key, pending, stats)
                    else:
                        record = await self._rehost(key, stats)
                except MigrationError as e:
                    logger.error("Failed to process image %s: %s", src, e)
                    stats.failed += 1
                    if post is not None:
                        await asyncio.to_thread(report_error, "IMAGE_REHOST_FAILED", post, e)
                    parts.append(match.group(0))
                    continue

            parts.append(markdown_image(record.destination_filename, record.destination_url, title))
        parts.append(markdown[pos:])

        self.stats.merge(stats)
        logger.info("Image stats: %s, cache size: %d", stats.as_dict(), len(self.cache))
        return "".join(parts)
