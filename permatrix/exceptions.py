# permatrix/exceptions.py


class PermatrixError(Exception):
    """Base class for errors raised by permatrix."""


class DocumentShapeError(PermatrixError, ValueError):
    """The metadata document matches none of the accepted top-level shapes."""
