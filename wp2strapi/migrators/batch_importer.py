"""
Concurrent import of a batch of WordPress posts into Strapi.

Every post runs through the same steps (render HTML to Markdown, rehost its
images, parse the Markdown into blocks, submit the entry) in its own asyncio
task.  All tasks are created before any is awaited; a semaphore bounds how
many are in flight.  Results are collected with
``asyncio.gather(..., return_exceptions=True)`` so a failing post becomes a
rejected :class:`ImportOutcome` and never cancels its siblings.  Outcomes
are written to the JSONL reports once the whole batch has settled.  Failed
posts are not retried.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from wp2strapi.models.strapi_post import SourcePost, StrapiPost
from wp2strapi.parsers.block_parser import parse
from wp2strapi.parsers.markdown_renderer import render
from wp2strapi.utils.errors import InvalidInputError, report_error, report_ok

from .image_cache import ImageCache
from .image_pipeline import ImagePipeline

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 8


@dataclass
class ImportOutcome:
    post_id: Optional[int]
    slug: Optional[str]
    status: str
    value: Any = None
    reason: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status == "fulfilled"


def _source_post(raw: Any) -> SourcePost:
    if isinstance(raw, SourcePost):
        return raw
    if not isinstance(raw, dict):
        raise InvalidInputError(f"Unsupported post object: {type(raw).__name__}")
    return SourcePost.from_wordpress(raw)


def _post_fields(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, SourcePost):
        return raw.report_fields()
    if not isinstance(raw, dict):
        return {}
    title = raw.get("title")
    if isinstance(title, dict):
        title = title.get("rendered")
    return {"id": raw.get("id"), "slug": raw.get("slug"), "title": title}


class BatchImporter:
    """
    Imports posts into Strapi.

    :param client: A :class:`~wp2strapi.migrators.strapi_client.StrapiClient`
        or any object with blocking ``rehost_image`` and ``create_post``.
    :param pipeline: Image pipeline to share across batches.  When omitted
        one is built around ``cache`` (or a fresh :class:`ImageCache`).
    :param dry_run: Convert only.  No image is rehosted and nothing is
        submitted; the outcome value is the payload that would be sent.
    :param concurrency: Maximum number of posts in flight.
    :param image_blocks: Passed to the block parser.  Only images the
        pipeline actually rehosted become ``image`` blocks.
    """

    def __init__(
        self,
        client: Any,
        pipeline: Optional[ImagePipeline] = None,
        *,
        cache: Optional[ImageCache] = None,
        dry_run: bool = False,
        concurrency: int = DEFAULT_CONCURRENCY,
        image_blocks: bool = False,
    ) -> None:
        self.client = client
        self.pipeline = pipeline or ImagePipeline(cache if cache is not None else ImageCache(), client)
        self.dry_run = dry_run
        self.concurrency = max(1, int(concurrency or DEFAULT_CONCURRENCY))
        self.image_blocks = image_blocks

    async def import_post(self, raw: Any) -> Dict[str, Any]:
        """Run one post through the pipeline and return the Strapi response."""
        source = _source_post(raw)
        logger.info("Migrating post '%s'", source.slug or source.id)

        markdown = render(source.content)
        if self.dry_run:
            logger.info("Dry-run: would rehost images for '%s'", source.slug)
        else:
            markdown = await self.pipeline.process(markdown, post=source.report_fields())
        blocks = parse(markdown, image_blocks=self.image_blocks, is_rehosted=self.pipeline.is_rehosted)

        post = StrapiPost(
            title=source.title or source.slug,
            slug=source.slug,
            content=markdown,
            blocks_content=blocks,
        )
        payload = post.to_strapi_payload()
        if self.dry_run:
            logger.info("Dry-run: would submit post '%s'", post.slug)
            return payload
        return await asyncio.to_thread(self.client.create_post, payload)

    async def import_all(self, source_posts: Sequence) -> List[ImportOutcome]:
        """
        Import every post concurrently.

        :return: One :class:`ImportOutcome` per post, in input order.
        :raises InvalidInputError: if ``source_posts`` is not a sequence.
        """
        if isinstance(source_posts, (str, bytes)) or not isinstance(source_posts, Sequence):
            raise InvalidInputError("source_posts must be a sequence of posts")

        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(raw: Any) -> Dict[str, Any]:
            async with semaphore:
                return await self.import_post(raw)

        tasks = [asyncio.create_task(bounded(raw)) for raw in source_posts]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        outcomes: List[ImportOutcome] = []
        for raw, result in zip(source_posts, results):
            fields = _post_fields(raw)
            if isinstance(result, BaseException):
                outcomes.append(ImportOutcome(fields.get("id"), fields.get("slug"), "rejected", reason=result))
                await asyncio.to_thread(report_error, "POST_IMPORT_FAILED", fields, result)
            elif self.dry_run:
                outcomes.append(ImportOutcome(fields.get("id"), fields.get("slug"), "fulfilled", value=result))
                await asyncio.to_thread(report_ok, "POST_DRY_RUN", fields)
            else:
                outcomes.append(ImportOutcome(fields.get("id"), fields.get("slug"), "fulfilled", value=result))
                entry = result.get("data") if isinstance(result, dict) else None
                await asyncio.to_thread(report_ok, "POST_IMPORTED", fields, {"strapi_id": (entry or {}).get("id")})

        failed = [o for o in outcomes if not o.ok]
        if failed:
            logger.error(
                "%d of %d posts failed to import: %s",
                len(failed),
                len(outcomes),
                ", ".join(str(o.slug or o.post_id) for o in failed),
            )
        return outcomes
