"""Tests for the greedy word wrap."""

import pytest
from PIL import ImageFont

from midiator.layout import line_height, max_lines, wrap_text
from tests.conftest import FakeFont


@pytest.mark.parametrize("text", [None, "", " ", "    ", "\t"])
def test_wrap_text_empty_or_blank_yields_no_lines(fake_font, text):
    assert wrap_text(text, fake_font, 640, 120) == []


def test_line_height_and_max_lines():
    assert line_height(24) == pytest.approx(28.8)
    assert max_lines(24, 120) == 4
    assert max_lines(24, 28) == 0
    assert max_lines(0, 120) == 0


def test_three_words_fitting_in_two_lines_yield_two_lines(fake_font):
    """An 80% x 20% box on 800x600 is 640x120 pixels and holds 4 lines of 24px text."""
    text = " ".join(["a" * 30, "b" * 30, "c" * 30])
    lines = wrap_text(text, fake_font, 640, 120)
    assert lines == ["a" * 30 + " " + "b" * 30, "c" * 30]


def test_wrap_text_drops_words_beyond_the_line_capacity(fake_font):
    text = " ".join(["word"] * 200)
    lines = wrap_text(text, fake_font, 100, 120)
    assert len(lines) == 4
    assert all(line.split(" ") == ["word"] * 2 for line in lines)


def test_wrap_text_box_shorter_than_one_line_yields_nothing(fake_font):
    assert wrap_text("some words here", fake_font, 640, 20) == []


@pytest.mark.parametrize("text", [
    "the quick brown fox jumps over the lazy dog",
    "a bb ccc dddd eeeee ffffff ggggggg hhhhhhhh",
    "one two three four five six seven eight nine ten eleven twelve",
])
@pytest.mark.parametrize("max_width", [80, 120, 200, 333])
def test_every_line_fits_the_box_width(fake_font, text, max_width):
    lines = wrap_text(text, fake_font, max_width, 10_000)
    assert lines
    assert all(fake_font.getlength(line) <= max_width for line in lines)
    assert " ".join(lines) == text


@pytest.mark.parametrize("font_size,max_height", [(12, 10), (12, 50), (24, 120), (40, 500), (10, 1000)])
def test_line_count_never_exceeds_capacity(font_size, max_height):
    font = FakeFont(size=font_size, advance=7)
    text = " ".join(f"w{i}" for i in range(500))
    lines = wrap_text(text, font, 90, max_height)
    assert len(lines) <= max_lines(font_size, max_height)


def test_word_wider_than_the_box_gets_its_own_line(fake_font):
    lines = wrap_text("hi " + "x" * 100 + " there", fake_font, 200, 1000)
    assert lines == ["hi", "x" * 100, "there"]


def test_wrap_text_is_deterministic(fake_font):
    text = "lorem ipsum dolor sit amet consectetur adipiscing elit sed do"
    assert wrap_text(text, fake_font, 150, 200) == wrap_text(text, fake_font, 150, 200)


def test_wrap_text_measures_with_the_real_font():
    font = ImageFont.load_default(size=24)
    width = font.getlength("hello world")
    assert wrap_text("hello world", font, width, 100) == ["hello world"]
    assert wrap_text("hello world", font, width - 1, 100) == ["hello", "world"]


def test_wrap_text_accepts_non_string_values(fake_font):
    assert wrap_text(12345, fake_font, 640, 120) == ["12345"]


def test_wrap_text_treats_line_breaks_as_spaces(fake_font):
    """Tests that embedded line breaks never produce extra drawn lines."""
    assert wrap_text("a\nb\r\nc\rd", fake_font, 640, 120) == ["a b c d"]
    assert wrap_text("one\ntwo\nthree\nfour", fake_font, 640, 30) == ["one two three four"]
    assert wrap_text("\n\r\n", fake_font, 640, 120) == []
