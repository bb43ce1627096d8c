"""
Smart PDF Compressor - target-size PDF compression by page rasterization.

Every page is rendered to a raster and re-encoded as JPEG, with resolution
and quality picked once per document from the requested output size.
"""

from .errors import (
    AssemblyError,
    CompressionCancelled,
    CompressionError,
    EncodeError,
    ParseError,
    RenderError,
    SmartCompressorError,
)
from .planner import CompressionPlan, mb_to_bytes, plan
from .pipeline import CompressionResult, compress, compress_file, default_target_bytes
from .analysis import AnalysisResult, AnalysisStatus, analyze_document, extract_text, get_summarizer
from .config import Settings

__version__ = "1.0.0"

__all__ = [
    "AnalysisResult",
    "AnalysisStatus",
    "AssemblyError",
    "CompressionCancelled",
    "CompressionError",
    "CompressionPlan",
    "CompressionResult",
    "EncodeError",
    "ParseError",
    "RenderError",
    "Settings",
    "SmartCompressorError",
    "analyze_document",
    "compress",
    "compress_file",
    "default_target_bytes",
    "extract_text",
    "get_summarizer",
    "mb_to_bytes",
    "plan",
]
