"""Batch generation of one image per record.

`BatchGenerator` takes the records, the background and the field layout,
decodes the background once, and for every record draws the fields onto a
fresh copy of it. Each finished surface is encoded to PNG and registered in
the generator's `PreviewStore`, which hands out the transient display handle
stored on the artifact.

A batch is all-or-nothing. Any unexpected failure aborts the run, releases
the handles created so far, and surfaces as a single `BatchGenerationError`;
the generator then holds no artifacts and can be run again from scratch.
"""

import asyncio
import io
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List

from loguru import logger
from PIL import Image
from pydantic import ValidationError
from tqdm import tqdm

from midiator.compositor import FieldCompositor
from midiator.config import Settings
from midiator.exceptions import BatchGenerationError, BatchValidationError
from midiator.fonts import FontResolver
from midiator.preview import PreviewStore
from midiator.schemas import as_position


@dataclass
class GeneratedArtifact:
    """One generated image and its metadata.

    Attributes:
        data (bytes): The PNG-encoded image.
        handle (str): The transient display handle of the image. Valid until
            the artifact is replaced or the generator is closed.
        record (dict): The record the image was generated from.
        index (int): The position of the record in the input.
        filename (str): The suggested file name, e.g. `midiator_001.png`.
    """

    data: bytes
    handle: str
    record: Dict[str, str] = field(repr=False)
    index: int
    filename: str


def artifact_filename(index):
    """Returns the file name of the image generated for record `index`."""
    return f"midiator_{index + 1:03d}.png"


def decode_background(source):
    """Decodes a background image into an RGBA image.

    Args:
        source (str | Path | bytes | BinaryIO | Image.Image): The background
            as a path, encoded bytes, a binary stream or an open image.

    Returns:
        Image.Image: The fully loaded background, in RGBA mode, at its
        natural resolution.
    """
    if isinstance(source, Image.Image):
        return source.convert("RGBA")
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    with Image.open(source) as img:
        img.load()
        return img.convert("RGBA")


def encode_png(surface):
    """Encodes a surface as PNG bytes."""
    buffer = io.BytesIO()
    surface.save(buffer, format="PNG")
    return buffer.getvalue()


def count_visible_fields(positions):
    return sum(1 for position in positions.values() if position is not None and as_position(position).visible)


class BatchGenerator:
    """Generates one image per record and owns the resulting artifacts.

    Attributes:
        compositor (FieldCompositor): Draws the fields of a record.
        previews (PreviewStore): Issues and revokes the artifacts' handles.
        artifacts (list[GeneratedArtifact]): The artifacts of the last
            successful batch, in input order.
        background (Image.Image | None): The background decoded for the last
            batch, shared read-only by every record of that batch.
        progress (bool): Whether a progress bar is shown while generating.
    """

    def __init__(self, compositor=None, previews=None, settings=None, progress=False):
        if settings is None:
            settings = Settings()
        if compositor is None:
            compositor = FieldCompositor(
                fonts=FontResolver(settings.font_dirs),
                browser=settings.browser,
                browser_executable=settings.browser_executable,
                timeout=settings.render_timeout,
                debug=settings.debug,
            )
        self.compositor = compositor
        self.previews = previews if previews is not None else PreviewStore()
        self.executor = ThreadPoolExecutor(max_workers=1)
        self.progress = progress
        self.artifacts: List[GeneratedArtifact] = []
        self.background = None
        self.is_generating = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @staticmethod
    def validate(records, background, positions):
        """Checks that a batch can produce images before any work starts.

        Raises:
            BatchValidationError: If the background is missing, there are no
                records, no field is visible, or a position is malformed.
        """
        if background is None:
            raise BatchValidationError("A background image is required.")
        if not records:
            raise BatchValidationError("At least one record is required.")
        try:
            visible = count_visible_fields(positions) if positions else 0
        except ValidationError as e:
            raise BatchValidationError(f"Invalid field position: {e}") from e
        if visible == 0:
            raise BatchValidationError("At least one field must be visible.")

    def release(self):
        """Revokes the handles of the current artifacts and forgets them."""
        for artifact in self.artifacts:
            self.previews.revoke(artifact.handle)
        self.artifacts = []

    async def _run(self, fn, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, fn, *args)

    async def generate_one(self, background, index, record, positions, styles):
        """Generates the artifact of a single record."""
        surface = background.copy()
        await self.compositor.composite(surface, record, positions, styles)
        data = await self._run(encode_png, surface)
        handle = self.previews.create(data, owner=index)
        return GeneratedArtifact(
            data=data,
            handle=handle,
            record=dict(record),
            index=index,
            filename=artifact_filename(index),
        )

    async def generate(self, records, background, positions, styles):
        """Generates one image per record.

        Args:
            records (Sequence[Mapping[str, str]]): The records, in output order.
            background (str | Path | bytes | BinaryIO | Image.Image): The
                background image.
            positions (Mapping[str, FieldPosition | Mapping]): Field boxes.
            styles (Mapping[str, FieldStyle | Mapping]): Field styles.

        Returns:
            list[GeneratedArtifact]: One artifact per record, in input order.

        Raises:
            BatchValidationError: If the inputs cannot produce any image.
            BatchGenerationError: If the batch was aborted by a failure.
        """
        records = list(records) if records is not None else []
        if self.is_generating:
            raise BatchValidationError("A batch is already being generated.")
        self.validate(records, background, positions)

        self.release()
        self.is_generating = True
        logger.info(f"Generating {len(records)} images")

        artifacts = []
        completed = False
        try:
            self.background = await self._run(decode_background, background)
            for index, record in enumerate(tqdm(records, desc="Generating images", disable=not self.progress)):
                artifacts.append(await self.generate_one(self.background, index, record, positions, styles))
            completed = True
        except Exception as e:
            logger.exception(f"Image generation failed after {len(artifacts)} of {len(records)} records")
            raise BatchGenerationError(f"Image generation failed: {e}") from e
        finally:
            self.is_generating = False
            if not completed:
                for artifact in artifacts:
                    self.previews.revoke(artifact.handle)

        self.artifacts = artifacts
        logger.info(f"Generated {len(artifacts)} images")
        return list(artifacts)

    def generate_sync(self, records, background, positions, styles):
        """Runs `generate` to completion from synchronous code."""
        return asyncio.run(self.generate(records, background, positions, styles))

    def close(self):
        """Releases every artifact handle and the resources of the generator."""
        self.release()
        self.background = None
        self.previews.close()
        self.compositor.close()
        self.executor.shutdown(wait=False)
