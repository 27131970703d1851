import pytest

pytest.importorskip("bs4")
pytest.importorskip("markdownify")

from wp2strapi.parsers.markdown_renderer import render
from wp2strapi.utils.errors import InvalidInputError


def test_basic_paragraph_and_emphasis():
    assert render("<p>Hello <strong>world</strong></p>") == "Hello **world**"


def test_headings_use_atx_style():
    assert render("<h2>Title</h2><p>Body</p>") == "## Title\n\nBody"


def test_image_keeps_src_alt_and_title_verbatim():
    html = '<p><img src="https://ex.com/a-300x200.jpg?v=2" alt="Cat" title="A cat"></p>'
    assert render(html) == '![Cat](https://ex.com/a-300x200.jpg?v=2 "A cat")'


def test_image_without_alt_gets_placeholder():
    assert render('<p><img src="https://ex.com/a.jpg"></p>') == "![image](https://ex.com/a.jpg)"


def test_anchor_wrapping_only_an_image_renders_the_image():
    html = '<p><a href="https://ex.com/full.jpg"> <img src="https://ex.com/thumb.jpg" alt="x"> </a></p>'
    assert render(html) == "![x](https://ex.com/thumb.jpg)"


def test_regular_links_stay_links():
    assert render('<p>Visit <a href="https://ex.com">the site</a></p>') == "Visit [the site](https://ex.com)"


def test_image_inside_heading_is_not_flattened():
    out = render('<h3><img src="https://ex.com/h.png" alt="H"></h3>')
    assert "![H](https://ex.com/h.png)" in out


def test_scripts_and_caption_shortcodes_are_removed():
    html = (
        '<p>[caption id="attachment_1"]<img src="https://ex.com/a.jpg" alt="A">Caption[/caption]</p>'
        "<script>alert(1)</script>"
    )
    out = render(html)
    assert "[caption" not in out
    assert "[/caption]" not in out
    assert "alert" not in out
    assert "![A](https://ex.com/a.jpg)" in out


def test_nbsp_becomes_space():
    assert render("<p>a&nbsp;b</p>") == "a b"


def test_lists_use_dash_bullets():
    out = render("<ul><li>one</li><li>two</li></ul>")
    assert out.splitlines() == ["- one", "- two"]


def test_no_runs_of_blank_lines():
    out = render("<p>a</p><p></p><p></p><p>b</p>")
    assert "\n\n\n" not in out
    assert out == "a\n\nb"


@pytest.mark.parametrize("bad", ["", None, 42, b"<p>x</p>"])
def test_invalid_input_raises(bad):
    with pytest.raises(InvalidInputError):
        render(bad)
