"""
Typed nodes of the Strapi blocks document.

Block and inline nodes are closed sum types: pydantic models discriminated
by their ``type`` field, so a block tree can be validated from (and dumped
to) the JSON the Strapi blocks editor stores.  The small builder functions
at the bottom are what the parsers use to create nodes.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

STYLE_FLAGS = ("bold", "italic", "underline", "strikethrough", "code")


class TextNode(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["text"] = "text"
    text: str = ""
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    underline: Optional[bool] = None
    strikethrough: Optional[bool] = None
    code: Optional[bool] = None

    def flags(self) -> Dict[str, bool]:
        """Style flags that are switched on."""
        return {name: True for name in STYLE_FLAGS if getattr(self, name)}


class LinkNode(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["link"] = "link"
    url: str
    children: List[InlineNode] = Field(default_factory=list)


InlineNode = Annotated[Union[TextNode, LinkNode], Field(discriminator="type")]
LinkNode.model_rebuild()


class HeadingBlock(BaseModel):
    type: Literal["heading"] = "heading"
    level: int = Field(1, ge=1, le=6)
    children: List[TextNode] = Field(default_factory=list)


class ParagraphBlock(BaseModel):
    type: Literal["paragraph"] = "paragraph"
    children: List[InlineNode] = Field(default_factory=list)


class ListItemNode(BaseModel):
    type: Literal["list-item"] = "list-item"
    children: List[InlineNode] = Field(default_factory=list)


class ListBlock(BaseModel):
    type: Literal["list"] = "list"
    format: Literal["ordered", "unordered"] = "unordered"
    children: List[ListItemNode] = Field(default_factory=list)

    @property
    def ordered(self) -> bool:
        return self.format == "ordered"

    @property
    def items(self) -> List[ListItemNode]:
        return self.children


class QuoteBlock(BaseModel):
    type: Literal["quote"] = "quote"
    children: List[InlineNode] = Field(default_factory=list)


class CodeBlock(BaseModel):
    type: Literal["code"] = "code"
    language: str = ""
    children: List[TextNode] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(child.text for child in self.children)


class ImageData(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    url: str
    alternative_text: str = Field("", alias="alternativeText")


class ImageBlock(BaseModel):
    type: Literal["image"] = "image"
    image: ImageData
    children: List[TextNode] = Field(default_factory=lambda: [TextNode(text="")])

    @property
    def url(self) -> str:
        return self.image.url

    @property
    def alternative_text(self) -> str:
        return self.image.alternative_text


class ThematicBreakBlock(BaseModel):
    type: Literal["thematicBreak"] = "thematicBreak"


BlockNode = Annotated[
    Union[
        HeadingBlock,
        ParagraphBlock,
        ListBlock,
        QuoteBlock,
        CodeBlock,
        ImageBlock,
        ThematicBreakBlock,
    ],
    Field(discriminator="type"),
]


def dump_blocks(blocks: Iterable[BaseModel]) -> List[Dict[str, Any]]:
    """Serialize a block tree to the JSON shape Strapi stores."""
    return [block.model_dump(by_alias=True, exclude_none=True) for block in blocks]


# --- Builders ---

def text_node(text: str, **flags: bool) -> TextNode:
    return TextNode(text=text or "", **{name: True for name, on in flags.items() if on})


def link_node(url: str, children: Optional[List[InlineNode]] = None) -> LinkNode:
    return LinkNode(url=url, children=children or [text_node("")])


def heading(level: int, children: Optional[List[TextNode]] = None) -> HeadingBlock:
    lvl = max(1, min(6, int(level or 1)))
    return HeadingBlock(level=lvl, children=children or [])


def paragraph(children: Optional[List[InlineNode]] = None) -> ParagraphBlock:
    return ParagraphBlock(children=children or [])


def list_item(children: Optional[List[InlineNode]] = None) -> ListItemNode:
    return ListItemNode(children=children or [])


def list_container(ordered: bool, items: List[ListItemNode]) -> ListBlock:
    return ListBlock(format="ordered" if ordered else "unordered", children=items)


def quote(children: Optional[List[InlineNode]] = None) -> QuoteBlock:
    return QuoteBlock(children=children or [])


def code_block(text: str, language: Optional[str] = None) -> CodeBlock:
    return CodeBlock(language=language or "", children=[text_node(text)])


def image_block(url: str, alternative_text: Optional[str] = None) -> ImageBlock:
    return ImageBlock(image=ImageData(url=url, alternative_text=alternative_text or "image"))


def thematic_break() -> ThematicBreakBlock:
    return ThematicBreakBlock()
