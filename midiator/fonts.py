"""Font lookup for plain-text fields.

Styles name fonts the way CSS does: a family name plus a weight and a style
(`"Arial"`, `"bold"`, `"italic"`). Pillow needs a font file. `FontResolver`
bridges the two by scanning font folders once, reading each file's family
and subfamily names with fontTools, and indexing the files by
`(family, bold, italic)`.

Lookups fall back from the exact variant to the regular variant of the same
family, then to the configured default family, then to Pillow's bundled
default font, so a missing font never stops a batch.
"""

import os
import platform
from functools import lru_cache
from pathlib import Path

from fontTools.ttLib import TTFont
from loguru import logger
from PIL import ImageFont

FONT_SUFFIXES = {".ttf", ".otf", ".ttc", ".otc"}
FALLBACK_FAMILIES = ("Arial", "Liberation Sans", "DejaVu Sans", "Helvetica")


def system_font_dirs():
    """Returns the conventional font folders of the current platform."""
    system = platform.system().lower()
    if "windows" in system:
        windows_dir = Path(os.environ.get("WINDIR", r"C:\Windows"))
        dirs = [windows_dir / "Fonts"]
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            dirs.append(Path(local_app_data) / "Microsoft" / "Windows" / "Fonts")
        return dirs
    if "darwin" in system:
        return [Path("/System/Library/Fonts"), Path("/Library/Fonts"), Path.home() / "Library" / "Fonts"]
    return [
        Path("/usr/share/fonts"),
        Path("/usr/local/share/fonts"),
        Path.home() / ".fonts",
        Path.home() / ".local" / "share" / "fonts",
    ]


def _name(ttfont, *name_ids):
    name_table = ttfont["name"]
    for name_id in name_ids:
        record = name_table.getName(name_id, 3, 1, 0x409) or name_table.getName(name_id, 1, 0, 0)
        if record is not None:
            return record.toUnicode().strip()
    return None


def read_font_names(font_path):
    """Reads the family and subfamily names of a font file.

    For collections (`.ttc`, `.otc`) the first font of the collection is used.
    Typographic names (name IDs 16/17) are preferred over the legacy ones
    (1/2), so that e.g. "Arial Black" is not reported as "Arial".

    Returns:
        tuple[str, str] | None: `(family, subfamily)`, or None if the file
        cannot be parsed.
    """
    try:
        kwargs = {"fontNumber": 0} if Path(font_path).suffix.lower() in (".ttc", ".otc") else {}
        with TTFont(str(font_path), lazy=True, **kwargs) as ttfont:
            family = _name(ttfont, 16, 1)
            subfamily = _name(ttfont, 17, 2) or "Regular"
    except Exception as e:
        logger.debug(f"Skipping unreadable font {font_path}: {e}")
        return None
    if not family:
        return None
    return family, subfamily


def _variant(subfamily):
    words = subfamily.lower().replace("-", " ").split()
    bold = any(w in ("bold", "black", "heavy", "semibold", "demibold", "extrabold") for w in words)
    italic = any(w in ("italic", "oblique") for w in words)
    return bold, italic


class FontResolver:
    """Maps CSS-like font descriptions to Pillow fonts.

    Attributes:
        font_dirs (list[Path]): The folders scanned for font files, in
            priority order. A family found in an earlier folder shadows the
            same family in later ones.
        default_family (str): The family used when the requested one is not
            installed.
    """

    def __init__(self, font_dirs=None, default_family="Arial", include_system_fonts=True):
        self.font_dirs = [Path(d) for d in (font_dirs or [])]
        if include_system_fonts:
            self.font_dirs.extend(system_font_dirs())
        self.default_family = default_family
        self._index = None

    @property
    def index(self):
        """The `(family, bold, italic) -> path` index, built on first use."""
        if self._index is None:
            self._index = self._build_index()
        return self._index

    def _build_index(self):
        index = {}
        for font_dir in self.font_dirs:
            if not font_dir.is_dir():
                continue
            for path in sorted(font_dir.glob("**/*")):
                if path.suffix.lower() not in FONT_SUFFIXES:
                    continue
                names = read_font_names(path)
                if names is None:
                    continue
                family, subfamily = names
                bold, italic = _variant(subfamily)
                index.setdefault((family.lower(), bold, italic), path)
        logger.debug(f"Indexed {len(index)} font variants from {len(self.font_dirs)} folders")
        return index

    def find_font_file(self, family, bold=False, italic=False):
        """Returns the best matching font file, or None if nothing matches."""
        families = [family] + [f for f in (self.default_family, *FALLBACK_FAMILIES) if f.lower() != family.lower()]
        for candidate in families:
            key = candidate.strip().strip("'\"").lower()
            for variant in ((bold, italic), (bold, False), (False, italic), (False, False)):
                path = self.index.get((key, *variant))
                if path is not None:
                    if candidate != family:
                        logger.debug(f"Font '{family}' not installed, using '{candidate}'")
                    return path
        return None

    def get_font(self, family, size, bold=False, italic=False):
        """Loads a font of the given family, size and variant.

        Args:
            family (str): The CSS font family name.
            size (float): The font size in pixels.
            bold (bool, optional): Whether a bold variant is wanted.
            italic (bool, optional): Whether an italic variant is wanted.

        Returns:
            ImageFont.FreeTypeFont: The loaded font.
        """
        path = self.find_font_file(family, bold, italic)
        return _load_font(str(path) if path else None, float(size))

    def for_style(self, style):
        """Loads the font described by a `ResolvedStyle`."""
        return self.get_font(style.font_family, style.font_size, style.is_bold, style.is_italic)


@lru_cache(maxsize=256)
def _load_font(font_path, size):
    if font_path is not None:
        try:
            return ImageFont.truetype(font_path, size=size)
        except OSError as e:
            logger.warning(f"Could not load font {font_path}: {e}")
    return ImageFont.load_default(size=size)
