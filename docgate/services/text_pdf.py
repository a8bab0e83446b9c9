"""
Plain text to PDF rendering.

This is the one converter that does its own layout instead of delegating
to an external tool: a greedy word wrap measured with the real font
metrics, forced character splitting for words wider than the page,
top-down pagination and a filename footer on the first page.
"""

from dataclasses import dataclass
from io import BytesIO
from pathlib import Path, PurePosixPath

from loguru import logger
from reportlab.lib.pagesizes import letter
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from docgate.utils.fs import ScratchArena


@dataclass(frozen=True)
class PageLayout:
    """Geometry of a rendered text page, in points."""

    page_size: tuple[float, float] = letter
    margin: float = 50.0
    font_name: str = "Times-Roman"
    font_size: float = 12.0
    line_spacing: float = 1.3
    footer_font_size: float = 9.0
    footer_y: float = 20.0

    @property
    def line_height(self) -> float:
        return self.font_size * self.line_spacing

    @property
    def max_width(self) -> float:
        return self.page_size[0] - self.margin * 2

    @property
    def top(self) -> float:
        return self.page_size[1] - self.margin

    def text_width(self, text: str, size: float | None = None) -> float:
        return stringWidth(text, self.font_name, size or self.font_size)


DEFAULT_LAYOUT = PageLayout()


def split_word(word: str, layout: PageLayout = DEFAULT_LAYOUT) -> list[str]:
    """
    Break a single over-wide word into the longest fragments that fit.

    Every fragment but possibly the last is as long as the width allows.
    """
    fragments: list[str] = []
    chunk = ""
    for ch in word:
        trial = chunk + ch
        if layout.text_width(trial) <= layout.max_width:
            chunk = trial
        else:
            if chunk:
                fragments.append(chunk)
            chunk = ch
    if chunk:
        fragments.append(chunk)
    return fragments


def wrap_words(text: str, layout: PageLayout = DEFAULT_LAYOUT) -> list[str]:
    """
    Greedily pack whitespace-delimited words into lines that fit the page width.

    Line breaks in the source are treated as ordinary whitespace.
    """
    lines: list[str] = []
    current = ""
    for word in text.replace("\r\n", "\n").split():
        trial = f"{current} {word}" if current else word
        if layout.text_width(trial) <= layout.max_width:
            current = trial
            continue

        if current:
            lines.append(current)
        if layout.text_width(word) > layout.max_width:
            fragments = split_word(word, layout)
            lines.extend(fragments[:-1])
            current = fragments[-1]
        else:
            current = word
    if current:
        lines.append(current)
    return lines


def paginate(lines: list[str], layout: PageLayout = DEFAULT_LAYOUT) -> list[list[tuple[float, str]]]:
    """
    Assign each line a page and a baseline, breaking pages top-down.

    Returns:
        One list of ``(y, line)`` pairs per page; never empty
    """
    pages: list[list[tuple[float, str]]] = [[]]
    y = layout.top
    for line in lines:
        if y < layout.margin + layout.line_height:
            pages.append([])
            y = layout.top
        pages[-1].append((y, line))
        y -= layout.line_height
    return pages


class TextToPDFService:
    """Render plain text files as paginated PDFs."""

    def __init__(self, layout: PageLayout = DEFAULT_LAYOUT):
        self.layout = layout

    def render(self, text: str, filename: str = "document.txt") -> bytes:
        """
        Lay out ``text`` and return the PDF bytes.

        Args:
            text: Decoded text content
            filename: Original filename, stamped as the first-page footer

        Returns:
            PDF document bytes
        """
        layout = self.layout
        pages = paginate(wrap_words(text, layout), layout)
        footer = PurePosixPath(filename.replace("\\", "/")).name

        buffer = BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=layout.page_size)
        for index, page in enumerate(pages):
            pdf.setFont(layout.font_name, layout.font_size)
            pdf.setFillColorRGB(0, 0, 0)
            for y, line in page:
                pdf.drawString(layout.margin, y, line)
            if index == 0:
                self._draw_footer(pdf, footer)
            pdf.showPage()
        pdf.save()

        logger.debug(f"Rendered {len(pages)} page(s) for {footer}")
        return buffer.getvalue()

    def convert(self, data: bytes, filename: str, arena: ScratchArena) -> Path:
        """
        Convert raw text bytes to a PDF file inside the scratch arena.

        Invalid UTF-8 sequences are replaced rather than rejected.
        """
        text = data.decode("utf-8", errors="replace")
        pdf_bytes = self.render(text, filename)
        stem = PurePosixPath(filename.replace("\\", "/")).stem or "document"
        output = arena.write_bytes(pdf_bytes, stem, ".pdf")
        logger.info(f"Text converted to PDF: {filename} -> {output.name}")
        return output

    def _draw_footer(self, pdf: canvas.Canvas, footer: str) -> None:
        layout = self.layout
        width = layout.text_width(footer, layout.footer_font_size)
        pdf.setFont(layout.font_name, layout.footer_font_size)
        pdf.setFillColorRGB(0.3, 0.3, 0.3)
        pdf.drawString((layout.page_size[0] - width) / 2, layout.footer_y, footer)
