"""Shared fixtures for the midiator tests."""

import pytest
from PIL import Image

from midiator.compositor import FieldCompositor
from midiator.fonts import FontResolver
from midiator.markup import MarkupRenderer


class FakeFont:
    """A font whose every character advances by the same amount."""

    def __init__(self, size=24, advance=10):
        self.size = size
        self.advance = advance

    def getlength(self, text):
        return len(text) * self.advance


class FakeMarkupRenderer(MarkupRenderer):
    """Returns a solid bitmap per call, coloured by the markup it was given."""

    def __init__(self, colors=None, default=(255, 0, 0, 255), fail=False):
        self.colors = colors or {}
        self.default = default
        self.fail = fail
        self.calls = []
        self.closed = False

    async def render(self, markup, width, height, style):
        self.calls.append((markup, width, height, style))
        if self.fail:
            return None
        return Image.new("RGBA", (width, height), self.colors.get(markup, self.default))

    def close(self):
        self.closed = True


@pytest.fixture
def fake_font():
    return FakeFont()


@pytest.fixture
def fonts():
    """A font resolver that only ever returns Pillow's bundled font."""
    return FontResolver(font_dirs=[], include_system_fonts=False)


@pytest.fixture
def markup_renderer():
    return FakeMarkupRenderer()


@pytest.fixture
def compositor(fonts, markup_renderer):
    return FieldCompositor(fonts=fonts, markup_renderer=markup_renderer)


@pytest.fixture
def background():
    """An 800x600 opaque background with a gradient, so copies are distinguishable."""
    img = Image.new("RGBA", (800, 600))
    img.putdata([(x % 256, y % 256, 128, 255) for y in range(600) for x in range(800)])
    return img


@pytest.fixture
def white_surface():
    return Image.new("RGBA", (800, 600), (255, 255, 255, 255))
