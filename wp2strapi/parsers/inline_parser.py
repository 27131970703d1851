"""
Inline Markdown formatting to Strapi inline nodes.

Text is scanned once, left to right, against a single pattern whose
alternatives follow ``INLINE_STYLES``.  The leftmost span wins and, when two
styles start at the same position, the one listed first wins.  The scan
produces a token stream which is then folded into ``TextNode`` and
``LinkNode`` objects; styled content is parsed again with the style added so
flags combine on one text node (``**_x_**`` is bold and italic).
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple
from urllib.parse import urlparse

from .block_schema import InlineNode, LinkNode, TextNode, link_node, text_node

logger = logging.getLogger(__name__)

# Priority order matters: bold must be tried before italic at the same offset.
INLINE_STYLES: Tuple[Tuple[str, str], ...] = (
    ("bold", r"\*\*(.+?)\*\*|__(.+?)__"),
    ("italic", r"(?<!\w)_(.+?)_(?!\w)|\*(?!\s)(.+?)(?<!\s)\*"),
    ("strikethrough", r"~~(.+?)~~"),
    ("underline", r"<u>(.+?)</u>"),
    ("code", r"`([^`]+)`"),
    ("link", r"(?<!!)\[([^\]]*)\]\(([^)]*)\)"),
)

_ESCAPE = r"\\[\\`*_{}\[\]()#+\-.!~<>|]"

_STYLE_RES: Dict[str, "re.Pattern[str]"] = {name: re.compile(pattern) for name, pattern in INLINE_STYLES}
_ESCAPE_RE = re.compile(_ESCAPE)
_SCANNER = re.compile(
    "|".join([f"(?P<escape>{_ESCAPE})"] + [f"(?P<{name}>{pattern})" for name, pattern in INLINE_STYLES])
)
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*$")
_TITLED_TARGET_RE = re.compile(r'^(\S+)\s+"[^"]*"$')


class InlineToken(NamedTuple):
    kind: str
    raw: str
    groups: Tuple[Optional[str], ...] = ()


def is_valid_url(value: Optional[str]) -> bool:
    """True for an absolute URL with a scheme and no whitespace."""
    if not value or any(ch.isspace() for ch in value):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(_SCHEME_RE.match(parsed.scheme or "")) and bool(parsed.netloc or parsed.path)


def unescape_markdown(text: str) -> str:
    """Drop the backslash of Markdown escapes such as ``\\_``."""
    return _ESCAPE_RE.sub(lambda m: m.group(0)[1:], text)


def tokenize_inline(text: str) -> Iterator[InlineToken]:
    """Split ``text`` into plain and styled tokens in document order."""
    pos = 0
    for match in _SCANNER.finditer(text):
        if match.start() > pos:
            yield InlineToken("text", text[pos:match.start()])
        kind = match.lastgroup or "text"
        raw = match.group(0)
        inner = _STYLE_RES[kind].fullmatch(raw) if kind in _STYLE_RES else None
        yield InlineToken(kind, raw, inner.groups() if inner else ())
        pos = match.end()
    if pos < len(text):
        yield InlineToken("text", text[pos:])


def _first(groups: Tuple[Optional[str], ...]) -> str:
    return next((g for g in groups if g is not None), "")


def _link_target(target: str) -> str:
    target = target.strip()
    titled = _TITLED_TARGET_RE.match(target)
    return titled.group(1) if titled else target


def _build(text: str, flags: Dict[str, bool]) -> List[InlineNode]:
    nodes: List[InlineNode] = []
    for token in tokenize_inline(text):
        if token.kind == "text":
            nodes.append(text_node(token.raw, **flags))
        elif token.kind == "escape":
            nodes.append(text_node(token.raw[1:], **flags))
        elif token.kind == "code":
            nodes.append(text_node(_first(token.groups), **{**flags, "code": True}))
        elif token.kind == "link":
            label, target = token.groups[0] or "", _link_target(token.groups[1] or "")
            if not is_valid_url(target):
                logger.warning("Invalid URL found: %s", target)
                nodes.append(text_node(token.raw, **flags))
                continue
            children = _build(label, flags) if label else [text_node("", **flags)]
            nodes.append(link_node(target, children))
        else:
            nodes.extend(_build(_first(token.groups), {**flags, token.kind: True}))
    return _coalesce(nodes)


def _coalesce(nodes: List[InlineNode]) -> List[InlineNode]:
    merged: List[InlineNode] = []
    for node in nodes:
        if isinstance(node, TextNode) and not node.text:
            continue
        last = merged[-1] if merged else None
        if isinstance(node, TextNode) and isinstance(last, TextNode) and last.flags() == node.flags():
            merged[-1] = last.model_copy(update={"text": last.text + node.text})
        else:
            merged.append(node)
    return merged


def parse_inline(text: str) -> List[InlineNode]:
    """Parse inline Markdown formatting into Strapi inline nodes.

    Recognises ``**bold**``/``__bold__``, ``_italic_``/``*italic*``,
    ``~~strikethrough~~``, ``<u>underline</u>``, ```code``` and
    ``[text](url)``.  A link whose target is not a well-formed URL is kept as
    plain text with its bracket syntax.  Literal text between spans is
    preserved and adjacent text runs with equal styles are merged.

    >>> [n.model_dump(exclude_none=True) for n in parse_inline("**bold** text")]
    [{'type': 'text', 'text': 'bold', 'bold': True}, {'type': 'text', 'text': ' text'}]
    """
    if not text:
        return []
    return _build(text, {})


def inline_to_markdown(nodes: List[InlineNode]) -> str:
    """Render inline nodes back to Markdown."""
    parts: List[str] = []
    for node in nodes:
        if isinstance(node, LinkNode):
            parts.append(f"[{inline_to_markdown(node.children)}]({node.url})")
            continue
        value = node.text
        if node.code:
            value = f"`{value}`"
        if node.strikethrough:
            value = f"~~{value}~~"
        if node.underline:
            value = f"<u>{value}</u>"
        if node.italic:
            value = f"_{value}_"
        if node.bold:
            value = f"**{value}**"
        parts.append(value)
    return "".join(parts)
