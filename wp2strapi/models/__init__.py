"""
Pydantic models for the posts moving through the migration.
"""

from .strapi_post import SourcePost, StrapiPost

__all__ = ["SourcePost", "StrapiPost"]
