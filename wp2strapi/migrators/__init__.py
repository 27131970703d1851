"""
Strapi migrators and helpers.

This subpackage rehosts images through a per-run cache, talks to the
Strapi upload and content APIs and imports batches of posts concurrently.
"""

from .batch_importer import BatchImporter, ImportOutcome
from .image_cache import ImageCache, ImageRecord
from .image_pipeline import ImagePipeline, normalize_url
from .strapi_client import StrapiClient

__all__ = [
    "BatchImporter",
    "ImageCache",
    "ImagePipeline",
    "ImageRecord",
    "ImportOutcome",
    "StrapiClient",
    "normalize_url",
]
