"""
docgate: document-to-PDF conversion gateway.

Accepts TXT, RTF, DOCX, HTML and ZIP uploads (or remote URLs) and answers
with a PDF, or a ZIP of PDFs for archives.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
