"""Runtime settings and layout file loading.

`Settings` collects the knobs of the generator that depend on the machine it
runs on (font folders, the browser used for HTML fields, timeouts). It is a
`pydantic_settings.BaseSettings`, so every field can also be set from an
environment variable prefixed with `MIDIATOR_` or from a `.env` file.

`load_layout` reads the per-field position and style configuration from a
YAML file and validates it with the schemas in `midiator.schemas`.
"""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from midiator.env import FONTS_ROOT, OUTPUT_ROOT
from midiator.exceptions import LayoutError
from midiator.schemas import Layout


class Settings(BaseSettings):
    """Machine-dependent configuration of the generator."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="MIDIATOR_",
    )

    font_dirs: List[Path] = Field(default_factory=lambda: [FONTS_ROOT], description="Folders searched for font files before the system font folders.")
    browser: str = Field("chrome", description="The html2image browser used to rasterize HTML fields.")
    browser_executable: Optional[str] = Field(None, description="Path to the browser executable; discovered automatically when unset.")
    render_timeout: float = Field(30.0, description="Seconds to wait for one HTML field screenshot before giving up on it.")
    download_delay: float = Field(0.2, description="Seconds to wait between two saved files when saving a whole batch.")
    output_dir: Path = Field(OUTPUT_ROOT, description="Default folder for saved images.")
    debug: bool = Field(False, description="Keeps browser logging enabled and logs the generated HTML.")


def load_layout(layout_path) -> Layout:
    """Loads and validates a layout YAML file.

    The file is expected to look like::

        fields:
          name:
            position: {x: 10, y: 10, width: 80, height: 20, visible: true}
            style: {fontFamily: Arial, fontSize: 32, color: "#222222"}

    Args:
        layout_path (str | Path): The path to the YAML file.

    Returns:
        Layout: The validated layout.

    Raises:
        LayoutError: If the file is missing, is not valid YAML, or does not
            match the layout schema.
    """
    layout_path = Path(layout_path)
    try:
        with open(layout_path, "r", encoding="utf-8") as f:
            layout_dict = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise LayoutError(f"Could not read layout file {layout_path}: {e}") from e

    if layout_dict is None:
        layout_dict = {}
    try:
        return Layout.model_validate(layout_dict)
    except ValidationError as e:
        raise LayoutError(f"Invalid layout file {layout_path}: {e}") from e
