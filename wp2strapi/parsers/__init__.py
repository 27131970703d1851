"""
Parsers and converters used by the migration pipeline.

HTML is rendered to Markdown by :mod:`wp2strapi.parsers.markdown_renderer`
and Markdown is parsed into Strapi blocks by
:mod:`wp2strapi.parsers.block_parser`.
"""

from .block_parser import blocks_to_markdown, parse
from .inline_parser import parse_inline
from .markdown_renderer import render

__all__ = ["blocks_to_markdown", "parse", "parse_inline", "render"]
