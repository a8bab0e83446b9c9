"""
Pipeline selection for single-document conversions.

Each input format maps to a fixed chain of adapters:

- txt:  text layout                         -> PDF
- rtf:  unrtf -> shared shell -> wkhtmltopdf -> PDF
- docx: mammoth -> shared shell -> wkhtmltopdf -> PDF
- html: shell if needed -> wkhtmltopdf      -> PDF
"""

from pathlib import Path, PurePosixPath

from loguru import logger

from docgate.config import Settings
from docgate.exceptions import UnsupportedTypeError
from docgate.services.docx import DocxToHTMLService
from docgate.services.formats import FormatTag
from docgate.services.html_pdf import HTMLToPDFService, normalize_html, wrap_html
from docgate.services.rtf import RTFToHTMLService
from docgate.services.text_pdf import TextToPDFService
from docgate.utils.fs import ScratchArena

CONVERTIBLE_FORMATS = frozenset({FormatTag.TXT, FormatTag.RTF, FormatTag.DOCX, FormatTag.HTML})


class DocumentConverter:
    """Dispatch one document to the adapter chain for its format."""

    def __init__(
        self,
        text_service: TextToPDFService,
        html_service: HTMLToPDFService,
        rtf_service: RTFToHTMLService,
        docx_service: DocxToHTMLService,
    ):
        self.text_service = text_service
        self.html_service = html_service
        self.rtf_service = rtf_service
        self.docx_service = docx_service

    @classmethod
    def from_settings(cls, settings: Settings) -> "DocumentConverter":
        return cls(
            text_service=TextToPDFService(),
            html_service=HTMLToPDFService(settings.WKHTMLTOPDF_PATH, settings.TOOL_TIMEOUT),
            rtf_service=RTFToHTMLService(settings.UNRTF_PATH, settings.TOOL_TIMEOUT),
            docx_service=DocxToHTMLService(),
        )

    @staticmethod
    def supports(tag: FormatTag) -> bool:
        return tag in CONVERTIBLE_FORMATS

    def convert(self, tag: FormatTag, data: bytes, filename: str, arena: ScratchArena) -> Path:
        """
        Convert one document to a PDF inside the scratch arena.

        Args:
            tag: Detected input format
            data: Raw document bytes
            filename: Original filename, used for output naming
            arena: Scratch arena owning all intermediates

        Returns:
            Path to the rendered PDF

        Raises:
            UnsupportedTypeError: If the format has no pipeline
            ToolExecutionError: If an external tool fails
            DocumentConversionError: If a conversion library fails
        """
        stem = PurePosixPath(filename.replace("\\", "/")).stem or "document"
        logger.debug(f"Converting {filename} as {tag.value}")

        if tag is FormatTag.TXT:
            return self.text_service.convert(data, filename, arena)
        if tag is FormatTag.RTF:
            fragment = self.rtf_service.to_html(data, arena, stem)
            return self.html_service.render(wrap_html(fragment), stem, arena)
        if tag is FormatTag.DOCX:
            fragment = self.docx_service.to_html(data, filename)
            return self.html_service.render(wrap_html(fragment), stem, arena)
        if tag is FormatTag.HTML:
            html = data.decode("utf-8", errors="replace")
            return self.html_service.render(normalize_html(html), stem, arena)

        raise UnsupportedTypeError(
            f"No conversion pipeline for {tag.value} input.", tag.value
        )

    def convert_html_text(self, html: str, name_hint: str, arena: ScratchArena) -> Path:
        """Render an inline HTML string, wrapping it in the shared shell if needed."""
        return self.html_service.render(normalize_html(html), name_hint, arena)
