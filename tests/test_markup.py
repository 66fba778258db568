"""Tests for the HTML field renderer."""

import asyncio
import time
from pathlib import Path
from unittest.mock import patch

import pytest
from PIL import Image

from midiator.markup import HtmlMarkupRenderer, MarkupRenderer, build_html, contains_markup, get_css
from midiator.style import resolve_style


def leftover_files(renderer):
    return [p for p in Path(renderer.temp_dir.name).iterdir() if p.suffix in (".html", ".png")]


@pytest.mark.parametrize("value,expected", [
    ("<b>Dear</b> John", True),
    ("a <br/> b", True),
    ("<>", True),
    ("plain text", False),
    ("3 < 4 and 5 > 2", True),
    ("x < y", False),
    ("", False),
    (None, False),
])
def test_contains_markup(value, expected):
    assert contains_markup(value) is expected


def test_get_css_box_and_font():
    """Tests the `get_css` function for the box size and font properties."""
    css = get_css(resolve_style({"fontFamily": "Georgia", "fontSize": 32, "color": "#ff0000", "textAlign": "right"}), 640, 120)
    assert "width: 640px;" in css
    assert "height: 120px;" in css
    assert "overflow: hidden;" in css
    assert "font-family: Georgia;" in css
    assert "font-size: 32px;" in css
    assert "color: #ff0000;" in css
    assert "text-align: right;" in css
    assert "background-color: transparent;" in css
    assert "line-height" not in css
    assert "text-shadow: none;" in css


def test_get_css_line_height_and_shadow():
    style = resolve_style({
        "fontSize": 20,
        "lineHeightMultiplier": 1.5,
        "textShadow": True,
        "shadowOffsetX": 3,
        "shadowOffsetY": 4,
        "shadowBlur": 5,
        "shadowColor": "#333333",
    })
    css = get_css(style, 100, 50)
    assert "line-height: 30px;" in css
    assert "text-shadow: 3px 4px 5px #333333;" in css


def test_get_css_ignores_stroke():
    """Tests that text stroke is not emitted for HTML fields."""
    css = get_css(resolve_style({"textStroke": True, "strokeWidth": 4, "strokeColor": "#00ff00"}), 100, 50)
    assert "stroke" not in css
    assert "#00ff00" not in css


def test_build_html_embeds_markup():
    html = build_html("<b>Hi</b>", 100, 50, resolve_style())
    assert '<div id="field"><b>Hi</b></div>' in html
    assert "<style>" in html


def test_markup_renderer_interface():
    with pytest.raises(NotImplementedError):
        asyncio.run(MarkupRenderer().render("<b>x</b>", 10, 10, resolve_style()))


@patch("midiator.markup.Html2Image")
def test_html_renderer_returns_screenshot(mock_hti_cls):
    """Tests that a screenshot is decoded and its temp files are removed."""
    with HtmlMarkupRenderer() as renderer:
        temp_dir = Path(renderer.temp_dir.name)

        def load_str(html, as_filename):
            (temp_dir / as_filename).write_text(html, encoding="utf-8")

        def screenshot(file, output_file, size):
            assert (temp_dir / file).exists()
            Image.new("RGBA", size, (0, 0, 255, 255)).save(temp_dir / output_file)

        renderer.hti.load_str.side_effect = load_str
        renderer.hti.screenshot_loaded_file.side_effect = screenshot

        bitmap = asyncio.run(renderer.render("<b>Hi</b>", 120, 40, resolve_style()))

        assert bitmap.mode == "RGBA"
        assert bitmap.size == (120, 40)
        assert bitmap.getpixel((5, 5)) == (0, 0, 255, 255)
        html = renderer.hti.load_str.call_args.args[0]
        assert "<b>Hi</b>" in html
        assert leftover_files(renderer) == []

    kwargs = mock_hti_cls.call_args.kwargs
    assert "--hide-scrollbars" in kwargs["custom_flags"]
    assert kwargs["output_path"] == kwargs["temp_path"]


@patch("midiator.markup.Html2Image")
def test_html_renderer_failure_returns_none(mock_hti_cls):
    """Tests that a browser failure yields None and still cleans up."""
    with HtmlMarkupRenderer() as renderer:
        temp_dir = Path(renderer.temp_dir.name)

        def load_str(html, as_filename):
            (temp_dir / as_filename).write_text(html, encoding="utf-8")

        renderer.hti.load_str.side_effect = load_str
        renderer.hti.screenshot_loaded_file.side_effect = RuntimeError("browser crashed")

        assert asyncio.run(renderer.render("<i>x</i>", 50, 20, resolve_style())) is None
        assert leftover_files(renderer) == []


@patch("midiator.markup.Html2Image")
def test_html_renderer_missing_screenshot_returns_none(mock_hti_cls):
    with HtmlMarkupRenderer() as renderer:
        assert asyncio.run(renderer.render("<i>x</i>", 50, 20, resolve_style())) is None


@patch("midiator.markup.Html2Image")
def test_html_renderer_timeout_returns_none(mock_hti_cls):
    """Tests that a screenshot exceeding the timeout is abandoned."""
    with HtmlMarkupRenderer(timeout=0.05) as renderer:
        temp_dir = Path(renderer.temp_dir.name)

        def slow_screenshot(file, output_file, size):
            time.sleep(0.5)
            Image.new("RGBA", size).save(temp_dir / output_file)

        renderer.hti.screenshot_loaded_file.side_effect = slow_screenshot

        assert asyncio.run(renderer.render("<i>x</i>", 50, 20, resolve_style())) is None
        renderer.executor.shutdown(wait=True)
        assert leftover_files(renderer) == []


@patch("midiator.markup.Html2Image")
def test_html_renderer_empty_box(mock_hti_cls):
    with HtmlMarkupRenderer() as renderer:
        assert asyncio.run(renderer.render("<i>x</i>", 0, 20, resolve_style())) is None
        renderer.hti.screenshot_loaded_file.assert_not_called()
