"""
Markdown to Strapi blocks conversion.

mistune tokenizes the document into block tokens (AST mode).  A
``before_render_hooks`` hook copies each block's raw inline source into the
token before mistune replaces it with inline children, so every block
handler below works on the same raw text a reader sees in the Markdown.
Inline formatting is then handled by :mod:`wp2strapi.parsers.inline_parser`.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Optional

import mistune

from wp2strapi.utils.errors import FormatError, InvalidInputError

from .block_schema import (
    BlockNode,
    CodeBlock,
    HeadingBlock,
    ImageBlock,
    ListBlock,
    ListItemNode,
    ParagraphBlock,
    QuoteBlock,
    ThematicBreakBlock,
    code_block,
    heading,
    image_block,
    list_container,
    list_item,
    paragraph,
    quote,
    text_node,
    thematic_break,
)
from .inline_parser import inline_to_markdown, parse_inline, unescape_markdown

__all__ = ["parse", "blocks_to_markdown", "IMAGE_RE"]

logger = logging.getLogger(__name__)

Token = Dict[str, Any]
ImageFilter = Optional[Callable[[str], bool]]

IMAGE_RE = re.compile(r"!\[(.*?)\]\((.*?)\)")
_SOLE_IMAGE_RE = re.compile(r'!\[(?P<alt>[^\]]*)\]\((?P<url>\S+?)(?:\s+"(?P<title>[^"]*)")?\)')
_BOLD_MARKER_RE = re.compile(r"(\*\*|__)(.*?)\1")


def _keep_inline_source(md: mistune.Markdown, state: Any) -> None:
    _copy_sources(state.tokens)


def _copy_sources(tokens: Iterable[Token]) -> None:
    for tok in tokens:
        if "text" in tok:
            tok["source"] = tok["text"]
        if "children" in tok:
            _copy_sources(tok["children"])


def _create_tokenizer() -> mistune.Markdown:
    md = mistune.create_markdown(renderer=None)
    md.before_render_hooks.append(_keep_inline_source)
    return md


_tokenizer = _create_tokenizer()


def _source(tok: Token) -> str:
    return (tok.get("source") or "").strip()


def _heading(tok: Token, accept_image: ImageFilter) -> HeadingBlock:
    text = _source(tok)
    bold = bool(_BOLD_MARKER_RE.search(text))
    if bold:
        text = _BOLD_MARKER_RE.sub(r"\2", text)
    return heading(tok["attrs"]["level"], [text_node(unescape_markdown(text), bold=bold)])


def _paragraph(tok: Token, accept_image: ImageFilter) -> BlockNode:
    text = _source(tok)
    if IMAGE_RE.search(text):
        sole = _SOLE_IMAGE_RE.fullmatch(text)
        if accept_image is not None and sole and accept_image(sole.group("url")):
            return image_block(sole.group("url"), sole.group("alt"))
        # references are kept verbatim, rehosted or not
        return paragraph([text_node(text)])
    return paragraph(parse_inline(text))


def _list_items(tok: Token) -> List[ListItemNode]:
    items: List[ListItemNode] = []
    for item in tok.get("children", []):
        lines: List[str] = []
        nested: List[ListItemNode] = []
        for child in item.get("children", []):
            if child["type"] in ("block_text", "paragraph"):
                lines.append(_source(child))
            elif child["type"] == "list":
                nested.extend(_list_items(child))
            elif child["type"] != "blank_line":
                logger.warning("Dropping %s inside list item", child["type"])
        items.append(list_item(parse_inline("\n".join(lines))))
        # nested levels are flattened after their parent item
        items.extend(nested)
    return items


def _list(tok: Token, accept_image: ImageFilter) -> ListBlock:
    return list_container(bool(tok["attrs"].get("ordered")), _list_items(tok))


def _quoted_sources(tokens: Iterable[Token]) -> List[str]:
    sources: List[str] = []
    for tok in tokens:
        if "source" in tok:
            sources.append(_source(tok))
        elif "children" in tok:
            sources.extend(_quoted_sources(tok["children"]))
    return sources


def _quote(tok: Token, accept_image: ImageFilter) -> QuoteBlock:
    text = " ".join(_quoted_sources(tok.get("children", [])))
    return quote(parse_inline(text.replace("\n", " ").strip()))


def _code(tok: Token, accept_image: ImageFilter) -> CodeBlock:
    info = (tok.get("attrs") or {}).get("info") or ""
    language = info.split()[0] if info.strip() else ""
    return code_block(tok.get("raw", "").strip(), language)


def _thematic_break(tok: Token, accept_image: ImageFilter) -> ThematicBreakBlock:
    return thematic_break()


_HANDLERS = {
    "heading": _heading,
    "paragraph": _paragraph,
    "list": _list,
    "block_quote": _quote,
    "block_code": _code,
    "thematic_break": _thematic_break,
}


def _convert(tok: Token, accept_image: ImageFilter) -> Optional[BlockNode]:
    kind = tok.get("type")
    if kind == "blank_line":
        return None
    handler = _HANDLERS.get(kind)
    if handler is None:
        raise FormatError(f"Unsupported block type: {kind}")
    return handler(tok, accept_image)


def parse(
    markdown: str,
    *,
    image_blocks: bool = False,
    is_rehosted: Optional[Callable[[str], bool]] = None,
) -> List[BlockNode]:
    """
    Parse Markdown into an ordered list of Strapi block nodes.

    :param markdown: Markdown text, normally already processed by the image
        pipeline.
    :param image_blocks: Emit an ``image`` block for paragraphs made of a
        single image reference instead of keeping the reference as text.
    :param is_rehosted: With ``image_blocks``, only URLs it accepts become
        ``image`` blocks; any other sole image stays a text paragraph.  When
        omitted every URL is assumed to be rehosted already.
    :return: Block nodes in document order.
    :raises InvalidInputError: if ``markdown`` is not a string.
    """
    if not isinstance(markdown, str):
        raise InvalidInputError("Markdown input must be a string")

    accept_image: ImageFilter = None
    if image_blocks:
        accept_image = is_rehosted or (lambda url: True)

    blocks: List[BlockNode] = []
    for tok in _tokenizer(markdown):
        try:
            block = _convert(tok, accept_image)
        except FormatError as e:
            logger.warning("Skipping block: %s", e)
            continue
        if block is not None:
            blocks.append(block)
    return blocks


def blocks_to_markdown(blocks: Iterable[BlockNode]) -> str:
    """Render a block tree back to Markdown."""
    parts: List[str] = []
    for block in blocks:
        if isinstance(block, HeadingBlock):
            parts.append(f"{'#' * block.level} {inline_to_markdown(block.children)}")
        elif isinstance(block, ParagraphBlock):
            parts.append(inline_to_markdown(block.children))
        elif isinstance(block, ListBlock):
            lines = []
            for index, item in enumerate(block.items, start=1):
                prefix = f"{index}. " if block.ordered else "- "
                lines.append(prefix + inline_to_markdown(item.children))
            parts.append("\n".join(lines))
        elif isinstance(block, QuoteBlock):
            parts.append(f"> {inline_to_markdown(block.children)}")
        elif isinstance(block, CodeBlock):
            parts.append(f"```{block.language}\n{block.text}\n```")
        elif isinstance(block, ImageBlock):
            parts.append(f"![{block.alternative_text}]({block.url})")
        elif isinstance(block, ThematicBreakBlock):
            parts.append("---")
        else:
            logger.warning("Unsupported node type: %s", type(block).__name__)
    return "\n\n".join(parts)
