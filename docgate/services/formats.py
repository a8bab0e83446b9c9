"""
Format detection for uploads and remote resources.

Maps a file extension or a ``Content-Type`` header to a canonical format
tag. Extension wins; the content-type table is the fallback.
"""

import re
from enum import Enum
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse


class FormatTag(str, Enum):
    """Canonical input formats."""

    PDF = "pdf"
    DOCX = "docx"
    TXT = "txt"
    HTML = "html"
    RTF = "rtf"
    ZIP = "zip"
    UNKNOWN = "unknown"


DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

EXTENSION_FORMATS: dict[str, FormatTag] = {
    ".pdf": FormatTag.PDF,
    ".docx": FormatTag.DOCX,
    ".txt": FormatTag.TXT,
    ".html": FormatTag.HTML,
    ".htm": FormatTag.HTML,
    ".xhtml": FormatTag.HTML,
    ".rtf": FormatTag.RTF,
    ".zip": FormatTag.ZIP,
}

CONTENT_TYPE_FORMATS: dict[str, FormatTag] = {
    "application/pdf": FormatTag.PDF,
    DOCX_MIME: FormatTag.DOCX,
    "text/plain": FormatTag.TXT,
    "text/html": FormatTag.HTML,
    "application/rtf": FormatTag.RTF,
    "application/zip": FormatTag.ZIP,
    "application/x-zip-compressed": FormatTag.ZIP,
}

CANONICAL_EXTENSIONS: dict[FormatTag, str] = {
    FormatTag.PDF: ".pdf",
    FormatTag.DOCX: ".docx",
    FormatTag.TXT: ".txt",
    FormatTag.HTML: ".html",
    FormatTag.RTF: ".rtf",
    FormatTag.ZIP: ".zip",
}

# filename="a b.pdf", filename=a.pdf, filename*=UTF-8''a%20b.pdf
_DISPOSITION_FILENAME = re.compile(r"filename\*?=(?:UTF-8''|\")?([^\";]+)", re.IGNORECASE)


def normalize_content_type(content_type: str | None) -> str | None:
    """Strip parameters and lowercase a content-type header value."""
    if not content_type:
        return None
    value = content_type.split(";", 1)[0].strip().lower()
    return value or None


def format_for_extension(extension: str | None) -> FormatTag:
    if not extension:
        return FormatTag.UNKNOWN
    ext = extension.lower()
    if not ext.startswith("."):
        ext = "." + ext
    return EXTENSION_FORMATS.get(ext, FormatTag.UNKNOWN)


def format_for_content_type(content_type: str | None) -> FormatTag:
    normalized = normalize_content_type(content_type)
    if normalized is None:
        return FormatTag.UNKNOWN
    return CONTENT_TYPE_FORMATS.get(normalized, FormatTag.UNKNOWN)


def detect(extension: str | None, content_type: str | None = None) -> FormatTag:
    """
    Resolve the format of an input.

    Args:
        extension: File extension with or without the leading dot
        content_type: Raw ``Content-Type`` header value

    Returns:
        The matching FormatTag, or FormatTag.UNKNOWN
    """
    tag = format_for_extension(extension)
    if tag is not FormatTag.UNKNOWN:
        return tag
    return format_for_content_type(content_type)


def extension_for_content_type(content_type: str | None) -> str | None:
    """Canonical extension (``.pdf`` ...) for a content type, if known."""
    tag = format_for_content_type(content_type)
    return CANONICAL_EXTENSIONS.get(tag)


def extension_of(name: str) -> str:
    """Lowercased final suffix of a path-like name (``""`` when absent)."""
    return PurePosixPath(name).suffix.lower()


def filename_from_disposition(content_disposition: str | None) -> str | None:
    """Extract and percent-decode the filename parameter of a Content-Disposition header."""
    if not content_disposition:
        return None
    match = _DISPOSITION_FILENAME.search(content_disposition)
    if not match:
        return None
    name = unquote(match.group(1).replace('"', "").strip())
    return name or None


def extension_from_url_or_disposition(url: str, content_disposition: str | None = None) -> str | None:
    """
    Find an extension in the Content-Disposition filename, else in the URL path.

    Returns:
        Lowercased extension including the dot, or None
    """
    name = filename_from_disposition(content_disposition)
    if name:
        ext = extension_of(name)
        if ext:
            return ext
    try:
        path = urlparse(url).path
    except ValueError:
        return None
    ext = extension_of(unquote(path or ""))
    return ext or None
