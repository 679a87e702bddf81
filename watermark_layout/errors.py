"""
Exception types.

Layout errors are raised before any geometry is computed and subclass
``ValueError`` so callers validating user input can catch them generically.
``EngineError`` covers failed ImageMagick invocations.
"""


class LayoutError(ValueError):
    """Base class for invalid layout input."""


class InvalidDimension(LayoutError):
    """A width or height is not a positive integer."""


class InvalidRatio(LayoutError):
    """A margin, size or opacity ratio is outside its allowed range."""


class InvalidGravity(LayoutError):
    """An anchor name does not match any gravity."""


class TextOverflow(LayoutError):
    """Overlay text does not fit inside the text panel."""


class EngineError(RuntimeError):
    """ImageMagick is missing or exited with an error."""
