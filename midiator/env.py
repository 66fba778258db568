"""This file defines the default paths used by midiator.

All paths are constructed relative to the project's root directory and can be
overridden through `midiator.config.Settings`.
"""

from pathlib import Path


ROOT_DIR = Path(__file__).parent.parent
"""The root directory of the project."""

FONTS_ROOT = ROOT_DIR / "fonts"
"""The project-local font directory, searched before the system font folders."""

OUTPUT_ROOT = ROOT_DIR / "out"
"""The default directory where generated images are saved."""
