"""
High-level orchestration of the WordPress → Strapi migration.

This module defines a :class:`StrapiMigrationTool` class that ties
together the extractors, parsers, migrators and utilities into a
complete pipeline: it fetches posts from the WordPress REST API, converts
their HTML to Markdown, rehosts the images in the Strapi media library,
builds the blocks document and creates one Strapi entry per post.

Configuration is supplied via a JSON file path or directly as a
dictionary.  The ``strapi`` section must include ``base_url``,
``upload_path`` and ``posts_path``; the ``wordpress`` section tells the
tool where to fetch posts from.  Optional migration settings (dry-run,
limit, concurrency) are provided under the ``migration`` key.  Missing
values are filled from environment variables.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from wp2strapi.extractors.wordpress_extractor import fetch_wp_posts
from wp2strapi.migrators.batch_importer import BatchImporter, ImportOutcome
from wp2strapi.migrators.image_cache import ImageCache
from wp2strapi.migrators.image_pipeline import ImagePipeline
from wp2strapi.migrators.strapi_client import StrapiClient
from wp2strapi.utils.errors import ConfigError
from wp2strapi.utils.pre_flight_checks import validate_config

logger = logging.getLogger(__name__)

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


@dataclass
class RunSummary:
    posts_total: int = 0
    posts_succeeded: int = 0
    posts_failed: int = 0
    images_processed: int = 0
    images_cached: int = 0
    images_uploaded: int = 0
    images_failed: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


class StrapiMigrationTool:
    """
    Encapsulates the state required to migrate a set of WordPress posts
    to Strapi.  One instance owns one :class:`ImageCache`, so images are
    uploaded at most once across every batch it imports.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, *, config_file: Optional[str] = None) -> None:
        if config_file and os.path.exists(config_file):
            try:
                with open(config_file, "r", encoding="utf-8") as f:
                    config = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Could not decode {config_file}: {e}") from e
        else:
            if config_file:
                logger.warning("Configuration file %s not found, using environment defaults", config_file)
            config = copy.deepcopy(config) if config is not None else {}

        # Ensure essential keys exist to prevent KeyErrors
        config.setdefault("strapi", {})
        config["strapi"].setdefault("base_url", os.getenv("STRAPI_BASE_URL", "http://localhost:1337"))
        config["strapi"].setdefault("upload_path", os.getenv("STRAPI_UPLOAD_PATH", "/api/upload"))
        config["strapi"].setdefault("posts_path", os.getenv("STRAPI_POSTS_PATH", "/api/posts"))
        config["strapi"].setdefault("api_token", os.getenv("STRAPI_API_TOKEN", ""))
        config["strapi"].setdefault("timeout", 30)

        config.setdefault("wordpress", {})
        config["wordpress"].setdefault("base_url", os.getenv("WP_BASE_URL", ""))
        config["wordpress"].setdefault("posts_path", os.getenv("WP_POSTS_PATH", "/wp-json/wp/v2/posts"))
        config["wordpress"].setdefault("per_page", 100)
        config["wordpress"].setdefault("timeout", 30)

        config.setdefault("migration", {})
        config["migration"].setdefault("dry_run", False)
        config["migration"].setdefault("limit", None)
        config["migration"].setdefault("concurrency", 8)
        config["migration"].setdefault("image_blocks", False)

        self.config = config
        self.cache = ImageCache()
        self._client: Optional[StrapiClient] = None
        self._pipeline: Optional[ImagePipeline] = None

    def log_message(self, message: str, level: str = "INFO") -> None:
        logger.log(_LEVELS.get(level.upper(), logging.INFO), message)

    @property
    def client(self) -> StrapiClient:
        if self._client is None:
            self._client = StrapiClient(self.config["strapi"])
        return self._client

    @property
    def pipeline(self) -> ImagePipeline:
        if self._pipeline is None:
            self._pipeline = ImagePipeline(self.cache, self.client)
        return self._pipeline

    def fetch_posts(self) -> List[Dict[str, Any]]:
        wordpress = self.config["wordpress"]
        self.log_message(f"Fetching posts from {wordpress['base_url']}")
        posts = fetch_wp_posts(
            wordpress["base_url"],
            wordpress["posts_path"],
            per_page=wordpress["per_page"],
            limit=self.config["migration"]["limit"],
            timeout=wordpress["timeout"],
        )
        self.log_message(f"Fetched {len(posts)} posts from WordPress")
        return posts

    def import_posts(self, posts: List[Any]) -> List[ImportOutcome]:
        """
        Import ``posts`` into Strapi.  If ``dry_run`` is enabled in the
        configuration, posts are converted and logged but no image is
        uploaded and no entry is created.

        :param posts: WordPress post objects or
            :class:`~wp2strapi.models.strapi_post.SourcePost` instances.
        :return: One outcome per post, in input order.
        """
        migration = self.config["migration"]
        limit = migration.get("limit")
        if limit is not None:
            posts = posts[:limit]

        importer = BatchImporter(
            self.client,
            self.pipeline,
            dry_run=bool(migration.get("dry_run")),
            concurrency=migration.get("concurrency") or 8,
            image_blocks=bool(migration.get("image_blocks")),
        )
        return asyncio.run(importer.import_all(posts))

    def summarize(self, outcomes: List[ImportOutcome]) -> RunSummary:
        stats = self.pipeline.stats
        succeeded = sum(1 for o in outcomes if o.ok)
        return RunSummary(
            posts_total=len(outcomes),
            posts_succeeded=succeeded,
            posts_failed=len(outcomes) - succeeded,
            images_processed=stats.processed,
            images_cached=stats.cached,
            images_uploaded=stats.uploaded,
            images_failed=stats.failed,
        )

    def run(self) -> RunSummary:
        """
        Validate the configuration, fetch every post and import them.

        :raises ConfigError: before any network call if the configuration
            is incomplete.
        """
        validate_config(self.config, require_source=True)
        self.log_message("Starting WordPress to Strapi migration.")

        posts = self.fetch_posts()
        if not posts:
            self.log_message("No posts found on the WordPress site.", level="WARNING")

        summary = self.summarize(self.import_posts(posts))
        self.log_message(f"Migration finished: {json.dumps(summary.as_dict())}")
        return summary
