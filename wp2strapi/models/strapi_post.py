from __future__ import annotations

import html
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wp2strapi.parsers.block_schema import BlockNode, dump_blocks


def _slugify(value: str) -> str:
    text = value.strip().lower()
    out = []
    prev_dash = False
    for ch in text:
        if ch.isalnum():
            out.append(ch)
            prev_dash = False
        else:
            if not prev_dash:
                out.append("-")
            prev_dash = True
    slug = "".join(out).strip("-")
    return slug[:200]


def _rendered(value: Any) -> str:
    if isinstance(value, dict):
        value = value.get("rendered")
    return value if isinstance(value, str) else ""


class SourcePost(BaseModel):
    """A post as read from the WordPress REST API."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    id: Optional[int] = None
    slug: str = ""
    title: str = ""
    content: str = ""

    @classmethod
    def from_wordpress(cls, raw: Dict[str, Any]) -> "SourcePost":
        """Build from ``{id, slug, title: {rendered}, content: {rendered}}``."""
        return cls(
            id=raw.get("id"),
            slug=raw.get("slug") or "",
            title=html.unescape(_rendered(raw.get("title"))),
            content=_rendered(raw.get("content")),
        )

    def report_fields(self) -> Dict[str, Any]:
        return {"id": self.id, "slug": self.slug, "title": self.title}


class StrapiPost(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    title: str = Field(..., min_length=1)
    slug: Optional[str] = None
    content: str = ""
    blocks_content: List[BlockNode] = Field(default_factory=list, alias="blocksContent")

    @field_validator("title", mode="before")
    @classmethod
    def _decode_title(cls, v: Any):
        return html.unescape(v) if isinstance(v, str) else v

    @field_validator("slug", mode="before")
    @classmethod
    def _ensure_slug(cls, v: Optional[str], info):  # type: ignore[override]
        if v is not None and v.strip():
            return v
        title = info.data.get("title")
        if isinstance(title, str) and title.strip():
            return _slugify(title)
        return v

    def to_strapi_payload(self) -> Dict[str, Any]:
        return {
            "data": {
                "title": self.title,
                "slug": self.slug,
                "content": self.content,
                "blocksContent": dump_blocks(self.blocks_content),
            }
        }
