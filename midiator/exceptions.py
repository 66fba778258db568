"""Exception types raised by the synthesis pipeline."""


class MidiatorError(Exception):
    """Base class for every error raised by midiator."""
    pass


class BatchValidationError(MidiatorError):
    """Raised before a batch starts when its inputs cannot produce any image.

    This covers a missing background, an empty record list, and a layout in
    which no field is marked visible. No work is done and no artifact is
    created when this is raised.
    """
    pass


class BatchGenerationError(MidiatorError):
    """Raised once when a batch is aborted by an unexpected failure.

    The original exception is chained as `__cause__`. When this is raised the
    generator holds no artifacts from the failed run.
    """
    pass


class LayoutError(MidiatorError):
    """Raised when a layout file cannot be read or validated."""
    pass
