"""Resolution of field styles into concrete paint parameters.

A `FieldStyle` leaves every property optional and may carry values that make
no sense for drawing (a negative stroke width, a colour string Pillow cannot
parse). `resolve_style` turns it into a `ResolvedStyle` in which every
property has a usable value, substituting the documented default wherever
the input is absent or malformed. It never raises.
"""

import math
from dataclasses import dataclass
from typing import Optional

from PIL import ImageColor

from midiator.schemas import FieldStyle, as_style

DEFAULT_FONT_FAMILY = "Arial"
DEFAULT_FONT_SIZE = 24
DEFAULT_COLOR = "#000000"
DEFAULT_SHADOW_COLOR = "#000000"
DEFAULT_SHADOW_BLUR = 4
DEFAULT_SHADOW_OFFSET = 2
DEFAULT_STROKE_COLOR = "#ffffff"
DEFAULT_STROKE_WIDTH = 2
TEXT_ALIGNMENTS = ("left", "center", "right", "justify")


@dataclass(frozen=True)
class ResolvedStyle:
    """Fully specified paint parameters for one field."""

    font_family: str = DEFAULT_FONT_FAMILY
    font_size: float = DEFAULT_FONT_SIZE
    font_weight: str = "normal"
    font_style: str = "normal"
    color: str = DEFAULT_COLOR
    text_align: str = "left"
    text_shadow: bool = False
    shadow_color: str = DEFAULT_SHADOW_COLOR
    shadow_blur: float = DEFAULT_SHADOW_BLUR
    shadow_offset_x: float = DEFAULT_SHADOW_OFFSET
    shadow_offset_y: float = DEFAULT_SHADOW_OFFSET
    text_stroke: bool = False
    stroke_color: str = DEFAULT_STROKE_COLOR
    stroke_width: float = DEFAULT_STROKE_WIDTH
    line_height_multiplier: Optional[float] = None

    @property
    def is_bold(self):
        weight = self.font_weight.lower()
        if weight.isdigit():
            return int(weight) >= 600
        return weight in ("bold", "bolder")

    @property
    def is_italic(self):
        return self.font_style.lower() in ("italic", "oblique")


def _color(value, default):
    if not isinstance(value, str) or not value.strip():
        return default
    try:
        ImageColor.getrgb(value.strip())
    except ValueError:
        return default
    return value.strip()


def _finite(value, default):
    if value is None or not math.isfinite(value):
        return default
    return value


def _positive(value, default):
    if value is None or not math.isfinite(value) or not value > 0:
        return default
    return value


def _non_negative(value, default):
    if value is None or not math.isfinite(value) or not value >= 0:
        return default
    return value


def _keyword(value, default):
    if value is None or not str(value).strip():
        return default
    return str(value).strip()


def resolve_style(style=None) -> ResolvedStyle:
    """Resolves a field style into concrete paint parameters.

    Args:
        style (FieldStyle | Mapping | None): The field's style record. Mappings
            may use either camelCase or snake_case keys.

    Returns:
        ResolvedStyle: The paint parameters, with defaults filled in.
    """
    if style is None:
        return ResolvedStyle()
    if not isinstance(style, FieldStyle):
        style = as_style(style)

    text_align = _keyword(style.text_align, "left").lower()
    if text_align not in TEXT_ALIGNMENTS:
        text_align = "left"

    return ResolvedStyle(
        font_family=_keyword(style.font_family, DEFAULT_FONT_FAMILY),
        font_size=_positive(style.font_size, DEFAULT_FONT_SIZE),
        font_weight=_keyword(style.font_weight, "normal"),
        font_style=_keyword(style.font_style, "normal"),
        color=_color(style.color, DEFAULT_COLOR),
        text_align=text_align,
        text_shadow=bool(style.text_shadow),
        shadow_color=_color(style.shadow_color, DEFAULT_SHADOW_COLOR),
        shadow_blur=_non_negative(style.shadow_blur, DEFAULT_SHADOW_BLUR),
        shadow_offset_x=_finite(style.shadow_offset_x, DEFAULT_SHADOW_OFFSET),
        shadow_offset_y=_finite(style.shadow_offset_y, DEFAULT_SHADOW_OFFSET),
        text_stroke=bool(style.text_stroke),
        stroke_color=_color(style.stroke_color, DEFAULT_STROKE_COLOR),
        stroke_width=_positive(style.stroke_width, DEFAULT_STROKE_WIDTH),
        line_height_multiplier=_positive(style.line_height_multiplier, None),
    )
