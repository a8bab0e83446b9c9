"""
HTML to PDF rendering through wkhtmltopdf.

RTF and DOCX conversions also end here: their HTML intermediates are
wrapped in the shared document shell and rendered by this service.
"""

import re
import subprocess
from pathlib import Path

from loguru import logger

from docgate.exceptions import ToolExecutionError
from docgate.utils.fs import ScratchArena
from docgate.utils.shell import COMMAND_NOT_FOUND, run_command_safely

BASE_CSS = """
  body{font-family:"Liberation Serif","DejaVu Serif",serif;font-size:12pt;line-height:1.35}
  h1,h2,h3{margin:0.6em 0 0.3em} p,li{margin:0.3em 0}
  table{border-collapse:collapse;width:100%} td,th{border:1px solid #ccc;padding:4px}
"""

PAGE_MARGIN = "12mm"

_HTML_TAG = re.compile(r"<html[\s>]", re.IGNORECASE)


def wrap_html(fragment: str) -> str:
    """Place an HTML fragment inside a full document carrying the shared stylesheet."""
    return (
        '<!doctype html><html><head><meta charset="utf-8">'
        f"<style>{BASE_CSS}</style></head><body>{fragment}</body></html>"
    )


def normalize_html(html: str) -> str:
    """Return complete documents unchanged and wrap bare fragments."""
    if _HTML_TAG.search(html):
        return html
    return wrap_html(html)


class HTMLToPDFService:
    """Service for rendering HTML documents with wkhtmltopdf."""

    def __init__(self, wkhtmltopdf_path: str = "wkhtmltopdf", timeout: int = 300):
        """
        Initialize the HTML rendering service.

        Args:
            wkhtmltopdf_path: Path to the wkhtmltopdf executable
            timeout: Seconds before a render is abandoned
        """
        self.wkhtmltopdf_path = wkhtmltopdf_path
        self.timeout = timeout

    def build_command(self, html_path: Path, pdf_path: Path) -> list[str]:
        """Build the wkhtmltopdf invocation for one document."""
        return [
            self.wkhtmltopdf_path,
            "--quiet",
            "--enable-local-file-access",
            "--print-media-type",
            "--margin-top", PAGE_MARGIN,
            "--margin-right", PAGE_MARGIN,
            "--margin-bottom", PAGE_MARGIN,
            "--margin-left", PAGE_MARGIN,
            str(html_path),
            str(pdf_path),
        ]

    def render(self, html: str, name_hint: str, arena: ScratchArena) -> Path:
        """
        Render a complete HTML document to a PDF inside the scratch arena.

        Args:
            html: Full HTML document
            name_hint: Basename used for the intermediate and output files
            arena: Scratch arena owning the artifacts

        Returns:
            Path to the rendered PDF

        Raises:
            ToolExecutionError: If wkhtmltopdf exits non-zero or cannot run
        """
        html_path = arena.write_text(html, name_hint, ".html")
        pdf_path = arena.path_for(name_hint, ".pdf")
        cmd = self.build_command(html_path, pdf_path)

        logger.info(f"Rendering HTML to PDF: {html_path.name} -> {pdf_path.name}")
        try:
            result = run_command_safely(cmd, timeout=self.timeout)
        except FileNotFoundError as exc:
            raise ToolExecutionError(
                f"wkhtmltopdf failed ({COMMAND_NOT_FOUND})\nSTDOUT:\n\nSTDERR:\n{exc}",
                "wkhtmltopdf", COMMAND_NOT_FOUND, "", str(exc),
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise ToolExecutionError(
                f"wkhtmltopdf timed out after {self.timeout} seconds",
                "wkhtmltopdf", -1,
            ) from exc

        if result.returncode != 0:
            logger.error(f"wkhtmltopdf exited with {result.returncode}")
            raise ToolExecutionError(
                f"wkhtmltopdf failed ({result.returncode})\n"
                f"STDOUT:\n{result.stdout}\nSTDERR:\n{result.stderr}",
                "wkhtmltopdf", result.returncode, result.stdout, result.stderr,
            )
        return pdf_path
