"""Rasterization of HTML-formatted field values.

Field values edited with the rich-text editor arrive as HTML fragments
(`<b>Dear</b> <i>John</i>`). They are not wrapped by the plain-text layout
engine; instead, the fragment is laid out by a real browser engine inside a
box of exactly the field's size and the result is composited as a bitmap.

`MarkupRenderer` is the interface the compositor depends on.
`HtmlMarkupRenderer` implements it with `html2image` driving a headless
Chrome, in the same way the text images of a synthetic data generator are
produced: build an HTML page with inline CSS, load it into the browser's temp
folder, screenshot it at a fixed size, decode the PNG.

Text stroke is not supported in this path. The style's stroke settings are
ignored here; only fill colour and shadow are applied.
"""

import asyncio
import os
import re
import tempfile
import uuid
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from html2image import Html2Image
from loguru import logger
from PIL import Image

MARKUP_PATTERN = re.compile(r"<[^>]*>")


def contains_markup(value):
    """Checks whether a field value contains HTML-like tags."""
    if not value:
        return False
    return MARKUP_PATTERN.search(str(value)) is not None


def get_css(style, width, height):
    """Generates the CSS for a field box of the given size.

    Args:
        style (ResolvedStyle): The field's resolved style.
        width (int): The box width in pixels.
        height (int): The box height in pixels.

    Returns:
        str: A stylesheet for the page and its `#field` container.
    """
    styles = [
        f"width: {width}px;",
        f"height: {height}px;",
        "overflow: hidden;",
        "box-sizing: border-box;",
        "overflow-wrap: break-word;",
        f"font-family: {style.font_family};",
        f"font-size: {style.font_size:g}px;",
        f"font-weight: {style.font_weight};",
        f"font-style: {style.font_style};",
        f"color: {style.color};",
        f"text-align: {style.text_align};",
    ]
    if style.line_height_multiplier:
        styles.append(f"line-height: {style.line_height_multiplier * style.font_size:g}px;")
    if style.text_shadow:
        styles.append(
            f"text-shadow: {style.shadow_offset_x:g}px {style.shadow_offset_y:g}px "
            f"{style.shadow_blur:g}px {style.shadow_color};"
        )
    else:
        styles.append("text-shadow: none;")

    styles_str = "\n".join(styles)
    css = "html, body {\nmargin: 0;\npadding: 0;\nbackground-color: transparent;\noverflow: hidden;\n}\n"
    css += "p {\nmargin: 0;\n}\n"
    css += f"#field {{\n{styles_str}\n}}"
    return css


def build_html(markup, width, height, style):
    """Wraps a markup fragment into a complete page sized to the field box."""
    css = get_css(style, width, height)
    return (
        f'<html><head><meta charset="UTF-8"><style>{css}</style></head>'
        f'<body><div id="field">{markup}</div></body></html>'
    )


class MarkupRenderer:
    """Interface of the renderers used for HTML-formatted fields.

    Implementations must never raise from `render`: a field that cannot be
    rendered yields None and is left out of the image.
    """

    async def render(self, markup, width, height, style):
        """Rasterizes a markup fragment into a bitmap.

        Args:
            markup (str): The HTML fragment.
            width (int): The target box width in pixels.
            height (int): The target box height in pixels.
            style (ResolvedStyle): The field's resolved style.

        Returns:
            Image.Image | None: An RGBA bitmap, or None if nothing could be
            rendered.
        """
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class HtmlMarkupRenderer(MarkupRenderer):
    """Renders HTML fragments with `html2image` and a headless browser.

    Screenshots are taken on a single worker thread, one at a time, so that
    the browser is never driven concurrently. The page and screenshot files
    written for one field live in a private temp folder and are deleted as
    soon as the bitmap has been decoded, whether or not rendering succeeded.
    """

    def __init__(self, browser="chrome", browser_executable=None, timeout=30.0, debug=False):
        """Initializes the renderer.

        Args:
            browser (str, optional): The html2image browser name.
            browser_executable (str | None, optional): The path to the browser
                executable. Discovered by html2image when None.
            timeout (float, optional): Seconds to wait for one screenshot.
            debug (bool, optional): If True, keeps browser logging and logs
                every generated page.
        """
        self.debug = debug
        self.timeout = timeout
        self.temp_dir = tempfile.TemporaryDirectory(ignore_cleanup_errors=True)

        flags = [
            "--hide-scrollbars", "--default-background-color=00000000",
            "--no-sandbox", "--disable-dev-shm-usage", "--disable-gpu",
            "--disable-extensions", "--disable-background-networking",
            "--disable-sync", "--disable-default-apps", "--disable-notifications",
            f"--user-data-dir={os.path.join(self.temp_dir.name, 'user-data')}",
        ]
        if not self.debug:
            flags.append("--disable-logging")

        self.hti = Html2Image(
            browser=browser,
            browser_executable=browser_executable,
            output_path=self.temp_dir.name,
            temp_path=self.temp_dir.name,
            custom_flags=flags,
        )
        self.executor = ThreadPoolExecutor(max_workers=1)

    def close(self):
        self.executor.shutdown(wait=False)
        self.temp_dir.cleanup()

    async def render(self, markup, width, height, style):
        if width <= 0 or height <= 0:
            return None

        html = build_html(markup, width, height, style)
        if self.debug:
            logger.debug(f"Rendering HTML field at {width}x{height}: {html}")

        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(self.executor, self._screenshot, html, width, height),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Skipping HTML field '{markup[:30]}...' due to timeout.")
        except Exception as e:
            logger.warning(f"HTML field rendering failed: {e}")
        return None

    def _screenshot(self, html, width, height):
        """Loads the page, screenshots it and decodes the result."""
        name = uuid.uuid4().hex
        html_filename = f"{name}.html"
        png_filename = f"{name}.png"
        try:
            self.hti.load_str(html, as_filename=html_filename)
            self.hti.screenshot_loaded_file(file=html_filename, output_file=png_filename, size=(width, height))
            with Image.open(Path(self.temp_dir.name) / png_filename) as img:
                return img.convert("RGBA")
        finally:
            for filename in (html_filename, png_filename):
                (Path(self.temp_dir.name) / filename).unlink(missing_ok=True)
