"""
Top-level package for the WordPress → Strapi migration utility.

This package bundles all components required to fetch posts from the
WordPress REST API, convert their HTML to Markdown, rehost images in the
Strapi media library, build the Strapi blocks document and create the
entries.  Modules are split into subpackages:

* :mod:`wp2strapi.extractors` – WordPress REST API fetch
* :mod:`wp2strapi.parsers` – HTML → Markdown → blocks converters
* :mod:`wp2strapi.migrators` – image rehosting and Strapi API interactions
* :mod:`wp2strapi.models` – pydantic models for source and destination posts
* :mod:`wp2strapi.utils` – errors, event reports and configuration checks

Each layer has no direct knowledge of configuration or execution
strategy; orchestration is handled in :mod:`wp2strapi.migration_tool`.
"""

__version__ = "0.1.0"
