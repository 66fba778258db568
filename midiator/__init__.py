"""Batch synthesis of images from tabular records.

Each record is rendered into its own copy of a background image, with every
field drawn as styled, word-wrapped text (or as rasterized HTML) inside its
configured box.

Example:
    >>> from midiator import BatchGenerator
    >>> with BatchGenerator() as generator:
    ...     artifacts = generator.generate_sync(records, "background.png", positions, styles)
"""

from ._version import __version__ as __version__
from midiator.exceptions import BatchGenerationError as BatchGenerationError
from midiator.exceptions import BatchValidationError as BatchValidationError
from midiator.exceptions import MidiatorError as MidiatorError
from midiator.generator import BatchGenerator as BatchGenerator
from midiator.generator import GeneratedArtifact as GeneratedArtifact
from midiator.schemas import FieldPosition as FieldPosition
from midiator.schemas import FieldStyle as FieldStyle
from midiator.style import resolve_style as resolve_style
