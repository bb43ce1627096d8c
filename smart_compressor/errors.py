"""
errors.py - Exception hierarchy for the compression pipeline.

Stage errors (parse, render, encode, assemble) are raised by the component
that failed. The pipeline re-raises the first one as a CompressionError.
"""

from typing import Optional


class SmartCompressorError(Exception):
    """Base class for all errors raised by this package."""


class ParseError(SmartCompressorError):
    """Input bytes are not a usable PDF (malformed, locked or empty)."""


class RenderError(SmartCompressorError):
    """A page could not be rasterized."""


class EncodeError(SmartCompressorError):
    """A raster frame could not be encoded."""


class AssemblyError(SmartCompressorError):
    """The output document could not be built or serialized."""


class CompressionError(SmartCompressorError):
    """
    A compression run failed.

    The failing stage error is kept in ``cause`` and is also chained as
    ``__cause__``.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class CompressionCancelled(CompressionError):
    """The run was cancelled between two pages."""
