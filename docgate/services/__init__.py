"""
Services package for the docgate gateway.

This package contains the converter adapters, pipeline selection, batch
runner, URL fetcher and external tool probing.
"""

from .batch import BatchResult, BatchRunner
from .converter import DocumentConverter
from .dependencies import ToolStatus, assert_startup_dependencies, check_dependencies
from .docx import DocxToHTMLService
from .fetcher import FetchedResource, URLFetcher
from .formats import FormatTag, detect
from .html_pdf import HTMLToPDFService, normalize_html, wrap_html
from .rtf import RTFToHTMLService
from .text_pdf import TextToPDFService

__all__ = [
    # Adapters
    "TextToPDFService",
    "HTMLToPDFService",
    "RTFToHTMLService",
    "DocxToHTMLService",
    "normalize_html",
    "wrap_html",
    # Pipelines
    "DocumentConverter",
    "BatchRunner",
    "BatchResult",
    "URLFetcher",
    "FetchedResource",
    # Format detection
    "FormatTag",
    "detect",
    # External tools
    "ToolStatus",
    "check_dependencies",
    "assert_startup_dependencies",
]
