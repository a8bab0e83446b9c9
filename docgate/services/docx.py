"""
DOCX to HTML conversion through mammoth.
"""

from io import BytesIO

import mammoth
from loguru import logger

from docgate.exceptions import DocumentConversionError


class DocxToHTMLService:
    """Service wrapping mammoth's DOCX reader."""

    def to_html(self, data: bytes, name_hint: str = "document.docx") -> str:
        """
        Convert raw DOCX bytes to an HTML fragment.

        Raises:
            DocumentConversionError: If mammoth cannot read the document
        """
        try:
            result = mammoth.convert_to_html(BytesIO(data))
        except Exception as exc:
            logger.error(f"mammoth could not read {name_hint}: {exc}")
            raise DocumentConversionError(
                f"DOCX conversion failed for {name_hint}: {exc}",
                {"file": name_hint},
            ) from exc

        for message in result.messages:
            logger.debug(f"mammoth [{name_hint}]: {message}")
        return result.value
