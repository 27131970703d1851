from __future__ import annotations

import re
from typing import Any, Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from markdownify import ATX, MarkdownConverter

from wp2strapi.utils.errors import InvalidInputError

_SHORTCODE_RE = re.compile(r"\[/?caption[^\]]*\]", re.IGNORECASE)
_BLANK_LINES_RE = re.compile(r"\n{3,}")


def markdown_image(alt: str, src: str, title: Optional[str] = None) -> str:
    """The image reference shape the image pipeline scans for."""
    title_part = f' "{title}"' if title else ""
    return f"![{alt}]({src}{title_part})"


def _attr(el: Tag, name: str) -> str:
    value: Any = el.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return value or ""


def _sole_image(anchor: Tag) -> Optional[Tag]:
    """Return the ``<img>`` if it is the only non-blank child of ``anchor``."""
    children = [
        child for child in anchor.children
        if not (isinstance(child, NavigableString) and not str(child).strip())
    ]
    if len(children) == 1 and isinstance(children[0], Tag) and children[0].name == "img":
        return children[0]
    return None


class StrapiMarkdownConverter(MarkdownConverter):
    """
    markdownify converter that keeps image markup verbatim.

    Images always become ``![alt](src "title")`` with the original ``src``
    and ``title``, also inside headings and table cells where markdownify
    would fall back to the alt text.  An anchor that only wraps an image is
    dropped in favour of the image itself.
    """

    class Options(MarkdownConverter.DefaultOptions):
        heading_style = ATX
        bullets = "-"

    def convert_img(self, el, text, parent_tags):
        return markdown_image(_attr(el, "alt") or "image", _attr(el, "src"), _attr(el, "title"))

    def convert_a(self, el, text, parent_tags):
        if _sole_image(el) is not None:
            return text
        return super().convert_a(el, text, parent_tags)


def clean_html(html: str) -> BeautifulSoup:
    # WordPress leaves [caption] shortcodes around figures
    cleaned = _SHORTCODE_RE.sub("", html).replace("&nbsp;", " ").replace("\xa0", " ")
    soup = BeautifulSoup(cleaned, "html.parser")
    for bad in soup.find_all(["script", "style"]):
        bad.decompose()
    return soup


def render(html: str) -> str:
    """
    Convert a WordPress post body from HTML to Markdown.

    :param html: The rendered HTML of the post.
    :return: Markdown text, images kept as ``![alt](src "title")``.
    :raises InvalidInputError: if ``html`` is not a non-empty string.
    """
    if not isinstance(html, str) or not html:
        raise InvalidInputError("Invalid HTML input")

    markdown = StrapiMarkdownConverter().convert_soup(clean_html(html))
    return _BLANK_LINES_RE.sub("\n\n", markdown).strip()
