import pytest

pytest.importorskip("pydantic")

from wp2strapi.parsers.block_schema import (
    HeadingBlock,
    LinkNode,
    ListBlock,
    ParagraphBlock,
    dump_blocks,
    heading,
    image_block,
    link_node,
    list_container,
    list_item,
    paragraph,
    text_node,
)
from pydantic import ValidationError

from wp2strapi.models.strapi_post import StrapiPost


def test_text_node_omits_false_flags():
    node = text_node("x", bold=True, italic=False)
    assert node.model_dump(exclude_none=True) == {"type": "text", "text": "x", "bold": True}
    assert node.flags() == {"bold": True}


def test_heading_level_is_clamped():
    assert heading(0).level == 1
    assert heading(9).level == 6


def test_image_block_defaults_alternative_text():
    block = image_block("https://ex.com/a.png")
    assert block.alternative_text == "image"
    assert dump_blocks([block])[0]["image"] == {"url": "https://ex.com/a.png", "alternativeText": "image"}


def test_wire_format_of_a_list_with_a_link():
    blocks = [
        list_container(
            False,
            [list_item([text_node("see "), link_node("https://ex.com", [text_node("here", bold=True)])])],
        )
    ]
    assert dump_blocks(blocks) == [
        {
            "type": "list",
            "format": "unordered",
            "children": [
                {
                    "type": "list-item",
                    "children": [
                        {"type": "text", "text": "see "},
                        {
                            "type": "link",
                            "url": "https://ex.com",
                            "children": [{"type": "text", "text": "here", "bold": True}],
                        },
                    ],
                }
            ],
        }
    ]


def test_wire_blocks_validate_back_into_typed_nodes():
    data = [
        {"type": "heading", "level": 3, "children": [{"type": "text", "text": "Hi"}]},
        {
            "type": "paragraph",
            "children": [
                {"type": "text", "text": "a", "italic": True},
                {"type": "link", "url": "https://ex.com", "children": [{"type": "text", "text": "b"}]},
            ],
        },
        {"type": "list", "format": "ordered", "children": [{"type": "list-item", "children": []}]},
        {"type": "thematicBreak"},
    ]
    blocks = StrapiPost(title="t", blocks_content=data).blocks_content
    assert isinstance(blocks[0], HeadingBlock)
    assert isinstance(blocks[1], ParagraphBlock)
    assert isinstance(blocks[1].children[1], LinkNode)
    assert isinstance(blocks[2], ListBlock) and blocks[2].ordered
    assert dump_blocks(blocks) == data


def test_unknown_block_types_are_rejected():
    with pytest.raises(ValidationError):
        StrapiPost(title="t", blocks_content=[{"type": "table", "children": []}])


def test_paragraph_default_children_are_empty():
    assert paragraph().children == []
