"""Pydantic schemas for field layout and style configuration.

A layout describes, for every field name of the input records, where the
field's box sits on the background (as percentages of its natural size) and
how its text is styled. The key names follow the camelCase convention used
by the layout editor that produces these files; snake_case names are
accepted as well.
"""

from typing import Dict, Iterable, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel


class FieldPosition(BaseModel):
    """The box of a field, in percent of the background's width and height."""

    model_config = ConfigDict(extra="ignore", frozen=True, allow_inf_nan=False)

    x: float = Field(..., description="Left edge, in percent of the background width.")
    y: float = Field(..., description="Top edge, in percent of the background height.")
    width: float = Field(..., description="Box width, in percent of the background width.")
    height: float = Field(..., description="Box height, in percent of the background height.")
    visible: bool = Field(True, description="Whether the field is drawn at all.")

    def to_pixels(self, surface_width, surface_height):
        """Converts the box to pixel geometry on a surface of the given size.

        Returns:
            tuple[float, float, float, float]: `(x, y, width, height)` in pixels.
        """
        return (
            self.x / 100 * surface_width,
            self.y / 100 * surface_height,
            self.width / 100 * surface_width,
            self.height / 100 * surface_height,
        )


class FieldStyle(BaseModel):
    """The style record of a single field.

    Every property is optional. A value that fails validation is stored as
    `None` instead of rejecting the whole style, so that the style resolver
    can substitute its default for it.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore", frozen=True)

    font_family: Optional[str] = None
    font_size: Optional[float] = None
    font_weight: Optional[Union[int, str]] = None
    font_style: Optional[str] = None
    color: Optional[str] = None
    text_align: Optional[str] = None
    text_shadow: Optional[bool] = None
    shadow_color: Optional[str] = None
    shadow_blur: Optional[float] = None
    shadow_offset_x: Optional[float] = None
    shadow_offset_y: Optional[float] = None
    text_stroke: Optional[bool] = None
    stroke_color: Optional[str] = None
    stroke_width: Optional[float] = None
    line_height_multiplier: Optional[float] = None

    @field_validator("*", mode="wrap")
    @classmethod
    def drop_malformed(cls, value, handler):
        try:
            return handler(value)
        except ValidationError:
            return None


class FieldLayout(BaseModel):
    """Position and style of one field."""

    position: FieldPosition
    style: FieldStyle = Field(default_factory=FieldStyle)


class Layout(BaseModel):
    """The position and style of every configured field."""

    fields: Dict[str, FieldLayout] = Field(default_factory=dict)

    def positions(self) -> Dict[str, FieldPosition]:
        return {name: field.position for name, field in self.fields.items()}

    def styles(self) -> Dict[str, FieldStyle]:
        return {name: field.style for name, field in self.fields.items()}

    def merged_over(self, base: "Layout") -> "Layout":
        """Returns a layout with this layout's fields taking precedence over `base`."""
        return Layout(fields={**base.fields, **self.fields})


DEFAULT_STYLE = FieldStyle(
    font_family="Arial",
    font_size=24,
    font_weight="normal",
    font_style="normal",
    color="#000000",
    text_align="left",
    text_stroke=False,
    stroke_color="#ffffff",
    stroke_width=2,
    text_shadow=False,
    shadow_color="#000000",
    shadow_blur=4,
    shadow_offset_x=2,
    shadow_offset_y=2,
)
"""The style assigned to a field that has not been styled yet."""


def default_layout(headers: Iterable[str]) -> Layout:
    """Places fields on a three-column grid with the default style.

    Field `i` gets a 25% x 15% box at `x = 10 + (i % 3) * 30` and
    `y = 10 + (i // 3) * 25`.
    """
    fields = {}
    for index, header in enumerate(headers):
        position = FieldPosition(
            x=10 + (index % 3) * 30,
            y=10 + (index // 3) * 25,
            width=25,
            height=15,
            visible=True,
        )
        fields[header] = FieldLayout(position=position, style=DEFAULT_STYLE)
    return Layout(fields=fields)


def as_position(value: Union[FieldPosition, Mapping, None]) -> Optional[FieldPosition]:
    if value is None or isinstance(value, FieldPosition):
        return value
    return FieldPosition.model_validate(value)


def as_style(value: Union[FieldStyle, Mapping, None]) -> Optional[FieldStyle]:
    if value is None or isinstance(value, FieldStyle):
        return value
    return FieldStyle.model_validate(value)
