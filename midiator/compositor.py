"""Composition of one record's fields onto its image surface.

Each field of a record is drawn by one of two field renderers, picked per
field by looking at its value:

- `PlainTextFieldRenderer` wraps the text with the greedy layout engine and
  draws it with Pillow, with optional stroke and drop shadow. Lines are
  spaced `font_size * 1.2` apart.
- `MarkupFieldRenderer` hands HTML fragments to a `MarkupRenderer` and pastes
  the returned bitmap over the field box. Line spacing there follows the
  style's `line_height_multiplier`, when set.

Fields are drawn strictly in the record's key order, so a later field paints
over an earlier one where their boxes overlap.
"""

import numpy as np
from loguru import logger
from PIL import Image, ImageColor, ImageDraw, ImageFilter

from midiator.fonts import FontResolver
from midiator.layout import line_height, wrap_text
from midiator.markup import HtmlMarkupRenderer, contains_markup
from midiator.schemas import as_position
from midiator.style import resolve_style


def paint(mask, color):
    """Fills a colour through an alpha mask.

    Args:
        mask (Image.Image): An "L" image whose values are the coverage.
        color (str): Any colour string understood by Pillow; its own alpha,
            if any, scales the coverage.

    Returns:
        Image.Image: An RGBA image of the same size as the mask.
    """
    rgba = ImageColor.getrgb(color)
    if len(rgba) == 3:
        rgba = (*rgba, 255)
    coverage = np.asarray(mask, dtype=np.uint16)
    out = np.zeros((mask.height, mask.width, 4), dtype=np.uint8)
    out[:, :, :3] = rgba[:3]
    out[:, :, 3] = (coverage * rgba[3] // 255).astype(np.uint8)
    return Image.fromarray(out, "RGBA")


def cast_shadow(layer, color, blur, offset_x, offset_y):
    """Creates the drop shadow of an RGBA layer.

    The shadow has the layer's alpha, the given colour, a gaussian blur of
    standard deviation `blur / 2` and is shifted by the given offsets.
    """
    shadow = paint(layer.getchannel("A"), color)
    if blur > 0:
        shadow = shadow.filter(ImageFilter.GaussianBlur(blur / 2))
    shifted = Image.new("RGBA", layer.size, (0, 0, 0, 0))
    shifted.paste(shadow, (round(offset_x), round(offset_y)))
    return shifted


def stroke_pixels(stroke_width):
    # Pillow strokes outward only; a centred stroke puts half its width outside the glyph.
    return max(1, round(stroke_width / 2))


class PlainTextFieldRenderer:
    """Draws plain text fields with Pillow."""

    def __init__(self, fonts):
        self.fonts = fonts

    def text_mask(self, size, lines, origin, font, style, stroke_width=0):
        mask = Image.new("L", size, 0)
        draw = ImageDraw.Draw(mask)
        x, y = origin
        step = line_height(style.font_size)
        for i, line in enumerate(lines):
            draw.text((x, y + i * step), line, font=font, fill=255, stroke_width=stroke_width, stroke_fill=255)
        return mask

    async def draw(self, surface, text, box, style):
        """Wraps `text` into `box` and draws it onto `surface`.

        Returns:
            bool: True if at least one line was drawn.
        """
        x, y, width, height = box
        font = self.fonts.for_style(style)
        lines = wrap_text(text, font, width, height)
        if not lines:
            return False

        layer = Image.new("RGBA", surface.size, (0, 0, 0, 0))
        if style.text_stroke:
            stroke_mask = self.text_mask(surface.size, lines, (x, y), font, style, stroke_pixels(style.stroke_width))
            layer.alpha_composite(paint(stroke_mask, style.stroke_color))
        fill_mask = self.text_mask(surface.size, lines, (x, y), font, style)
        layer.alpha_composite(paint(fill_mask, style.color))

        if style.text_shadow:
            surface.alpha_composite(
                cast_shadow(layer, style.shadow_color, style.shadow_blur, style.shadow_offset_x, style.shadow_offset_y)
            )
        surface.alpha_composite(layer)
        return True


class MarkupFieldRenderer:
    """Draws HTML fields from bitmaps produced by a `MarkupRenderer`.

    When no renderer is given, an `HtmlMarkupRenderer` is created on first
    use from `renderer_options` and closed by `close()`.
    """

    def __init__(self, renderer=None, **renderer_options):
        self.renderer = renderer
        self.renderer_options = renderer_options
        self._owns_renderer = renderer is None
        self._unavailable = False

    def _get_renderer(self):
        if self.renderer is None:
            if self._unavailable:
                return None
            try:
                self.renderer = HtmlMarkupRenderer(**self.renderer_options)
            except Exception as e:
                logger.warning(f"HTML renderer unavailable, HTML fields will be skipped: {e}")
                self._unavailable = True
                return None
        return self.renderer

    async def draw(self, surface, markup, box, style):
        """Renders `markup` at the size of `box` and pastes it onto `surface`.

        Returns:
            bool: True if a bitmap was drawn.
        """
        x, y, width, height = (round(v) for v in box)
        if width <= 0 or height <= 0:
            return False
        renderer = self._get_renderer()
        if renderer is None:
            return False

        bitmap = await renderer.render(markup, width, height, style)
        if bitmap is None:
            return False
        if bitmap.size != (width, height):
            bitmap = bitmap.resize((width, height))

        layer = Image.new("RGBA", surface.size, (0, 0, 0, 0))
        layer.paste(bitmap.convert("RGBA"), (x, y))
        surface.alpha_composite(layer)
        return True

    def close(self):
        if self._owns_renderer and self.renderer is not None:
            self.renderer.close()
            self.renderer = None


class FieldCompositor:
    """Draws the fields of one record onto an image surface.

    Attributes:
        plain (PlainTextFieldRenderer): The renderer for plain text values.
        markup (MarkupFieldRenderer): The renderer for HTML values.
    """

    def __init__(self, fonts=None, markup_renderer=None, **renderer_options):
        """Initializes the compositor.

        Args:
            fonts (FontResolver, optional): The font lookup for plain text.
            markup_renderer (MarkupRenderer, optional): The renderer for HTML
                values. An `HtmlMarkupRenderer` built from `renderer_options`
                is used when omitted.
        """
        self.plain = PlainTextFieldRenderer(fonts if fonts is not None else FontResolver())
        self.markup = MarkupFieldRenderer(markup_renderer, **renderer_options)

    def renderer_for(self, value):
        return self.markup if contains_markup(value) else self.plain

    async def composite(self, surface, record, positions, styles):
        """Draws every visible, non-empty field of `record` onto `surface`.

        Args:
            surface (Image.Image): An RGBA image at the background's natural
                size. It is modified in place.
            record (Mapping[str, str]): The field values.
            positions (Mapping[str, FieldPosition | Mapping]): Field boxes in
                percent of the surface size.
            styles (Mapping[str, FieldStyle | Mapping]): Field styles.

        Returns:
            list[str]: The names of the fields that were drawn.
        """
        drawn = []
        for field, value in record.items():
            position = as_position(positions.get(field))
            style = styles.get(field)
            if position is None or not position.visible or style is None:
                continue
            if value is None or value == "":
                continue

            box = position.to_pixels(*surface.size)
            resolved = resolve_style(style)
            renderer = self.renderer_for(value)
            if await renderer.draw(surface, str(value), box, resolved):
                drawn.append(field)
            else:
                logger.debug(f"Field '{field}' produced no drawing")
        return drawn

    def close(self):
        self.markup.close()
