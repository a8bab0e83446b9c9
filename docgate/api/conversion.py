"""
Conversion API endpoints for the docgate gateway.

Each endpoint validates its input, applies the size ceiling, runs the
matching adapter chain inside a request-scoped scratch arena and streams
the result back. The arena is removed after the response body has been
sent, or immediately when the request fails.
"""

import asyncio
from pathlib import Path, PurePosixPath

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import FileResponse
from loguru import logger
from pydantic import ValidationError
from starlette.background import BackgroundTask
from starlette.datastructures import FormData
from starlette.datastructures import UploadFile as FormFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from docgate.config import Settings, get_settings
from docgate.exceptions import InvalidInputError, PayloadTooLargeError, UnsupportedTypeError
from docgate.models.request import URLConversionRequest
from docgate.models.response import ErrorResponse
from docgate.services.batch import BatchResult, BatchRunner
from docgate.services.converter import DocumentConverter
from docgate.services.fetcher import URLFetcher
from docgate.services.formats import FormatTag, detect, extension_of, format_for_content_type
from docgate.utils.fs import ScratchArena
from docgate.utils.limits import enforce_text_limit, read_upload_limited

router = APIRouter()

PDF_MEDIA_TYPE = "application/pdf"
ZIP_MEDIA_TYPE = "application/zip"
HTML_EXTENSIONS = (".html", ".htm", ".xhtml")

# Percent-encoding can triple the wire size of a urlencoded field.
FORM_ENCODING_OVERHEAD = 3

ERROR_RESPONSES: dict[int | str, dict] = {
    status: {"model": ErrorResponse} for status in (400, 413, 415, 500, 502)
}

HTML_FORM_BODY = {
    "requestBody": {
        "content": {
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "properties": {
                        "file": {"type": "string", "format": "binary"},
                        "html": {"type": "string"},
                    },
                }
            },
            "application/x-www-form-urlencoded": {
                "schema": {"type": "object", "properties": {"html": {"type": "string"}}}
            },
        }
    }
}


# ============================================================================
# Dependencies
# ============================================================================

def get_converter(settings: Settings = Depends(get_settings)) -> DocumentConverter:
    return DocumentConverter.from_settings(settings)


def get_batch_runner(
    converter: DocumentConverter = Depends(get_converter),
    settings: Settings = Depends(get_settings),
) -> BatchRunner:
    return BatchRunner(converter, settings.MAX_FILE_SIZE)


def get_fetcher(settings: Settings = Depends(get_settings)) -> URLFetcher:
    return URLFetcher(settings.MAX_FILE_SIZE, settings.FETCH_TIMEOUT)


# ============================================================================
# Helper Functions
# ============================================================================

def stream_file(
    path: Path,
    filename: str,
    media_type: str,
    arena: ScratchArena,
    headers: dict[str, str] | None = None,
) -> FileResponse:
    """
    Stream an artifact as an attachment and drop the arena afterwards.

    Content-Length comes from the file on disk.
    """
    response_headers = {"Cache-Control": "no-store"}
    if headers:
        response_headers.update(headers)
    return FileResponse(
        path,
        media_type=media_type,
        filename=filename,
        headers=response_headers,
        background=BackgroundTask(arena.cleanup),
    )


def _require_file(file: UploadFile | None, key: str = "file") -> UploadFile:
    if file is None:
        raise InvalidInputError(f"Expected multipart/form-data with a '{key}' file field.")
    return file


def _require_extension(name: str, extensions: tuple[str, ...], message: str) -> None:
    if extension_of(name) not in extensions:
        raise InvalidInputError(message)


def _stem(name: str, default: str = "document") -> str:
    return PurePosixPath(name.replace("\\", "/")).stem or default


def _batch_headers(result: BatchResult) -> dict[str, str]:
    return {
        "X-Batch-Converted": str(len(result.converted)),
        "X-Batch-Skipped": str(len(result.skipped)),
        "X-Batch-Failed": str(len(result.failed)),
    }


async def _convert_upload(
    file: UploadFile | None,
    tag: FormatTag,
    settings: Settings,
    converter: DocumentConverter,
) -> FileResponse:
    """Shared flow for the single-format upload endpoints."""
    upload = _require_file(file)
    ext = f".{tag.value}"
    name = upload.filename or f"document{ext}"
    data = await read_upload_limited(upload, settings.MAX_FILE_SIZE)
    _require_extension(name, (ext,), f"Please upload a {ext} file.")

    arena = ScratchArena(settings.TEMP_DIR)
    try:
        pdf_path = await asyncio.to_thread(converter.convert, tag, data, name, arena)
        return stream_file(pdf_path, f"{_stem(name)}.pdf", PDF_MEDIA_TYPE, arena)
    except BaseException:
        arena.cleanup()
        raise


async def _read_form(request: Request, settings: Settings, label: str) -> FormData:
    """
    Parse a form body with a per-field limit sized to the byte ceiling.

    Starlette's default field limit is far below the ceiling; a field the
    parser still rejects for size is reported as 413 like any other input.
    """
    try:
        return await request.form(
            max_part_size=settings.MAX_FILE_SIZE * FORM_ENCODING_OVERHEAD + 1
        )
    except StarletteHTTPException as exc:
        if "exceeded maximum size" in str(exc.detail):
            raise PayloadTooLargeError(label, settings.MAX_FILE_SIZE) from exc
        raise


async def _read_url(request: Request, settings: Settings) -> str:
    """Pull the target URL from a JSON body or a form field."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = URLConversionRequest.model_validate(await request.json())
        except (ValueError, ValidationError):
            body = None
        if body is not None:
            return body.url
    elif content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await _read_form(request, settings, "URL field")
        try:
            value = form.get("url")
        finally:
            await form.close()
        if isinstance(value, str) and value.strip():
            enforce_text_limit(value, settings.MAX_FILE_SIZE, "URL field")
            return value.strip()
    raise InvalidInputError(
        'Provide a URL via JSON { "url": "<https://...>" } or form-data field "url".'
    )


# ============================================================================
# Endpoints
# ============================================================================

@router.post("/api/convert/txt", responses=ERROR_RESPONSES)
async def convert_txt(
    file: UploadFile | None = File(None),
    settings: Settings = Depends(get_settings),
    converter: DocumentConverter = Depends(get_converter),
) -> FileResponse:
    """Convert a plain text upload to PDF."""
    return await _convert_upload(file, FormatTag.TXT, settings, converter)


@router.post("/api/convert/rtf", responses=ERROR_RESPONSES)
async def convert_rtf(
    file: UploadFile | None = File(None),
    settings: Settings = Depends(get_settings),
    converter: DocumentConverter = Depends(get_converter),
) -> FileResponse:
    """Convert an RTF upload to PDF (unrtf, then wkhtmltopdf)."""
    return await _convert_upload(file, FormatTag.RTF, settings, converter)


@router.post("/api/convert/docx", responses=ERROR_RESPONSES)
async def convert_docx(
    file: UploadFile | None = File(None),
    settings: Settings = Depends(get_settings),
    converter: DocumentConverter = Depends(get_converter),
) -> FileResponse:
    """Convert a DOCX upload to PDF (mammoth, then wkhtmltopdf)."""
    return await _convert_upload(file, FormatTag.DOCX, settings, converter)


@router.post("/api/convert/html", responses=ERROR_RESPONSES, openapi_extra=HTML_FORM_BODY)
async def convert_html(
    request: Request,
    settings: Settings = Depends(get_settings),
    converter: DocumentConverter = Depends(get_converter),
) -> FileResponse:
    """
    Convert HTML to PDF.

    Accepts either a ``file`` upload (.html/.htm/.xhtml) or an inline
    ``html`` text field; the file wins when both are sent.
    """
    form = await _read_form(request, settings, "HTML content")
    try:
        file = form.get("file")
        html = form.get("html")
        if isinstance(file, FormFile):
            name = file.filename or "document.html"
            data = await read_upload_limited(file, settings.MAX_FILE_SIZE)
            _require_extension(
                name, HTML_EXTENSIONS, 'Please upload a .html/.htm file or provide an "html" field.'
            )
            content = data.decode("utf-8", errors="replace")
        elif isinstance(html, str):
            enforce_text_limit(html, settings.MAX_FILE_SIZE, "HTML content")
            content = html
        else:
            raise InvalidInputError('Provide either file=*.html or a text field "html".')
    finally:
        await form.close()

    arena = ScratchArena(settings.TEMP_DIR)
    try:
        pdf_path = await asyncio.to_thread(
            converter.convert_html_text, content, "html-upload", arena
        )
        return stream_file(pdf_path, "document.pdf", PDF_MEDIA_TYPE, arena)
    except BaseException:
        arena.cleanup()
        raise


@router.post("/convert/zip", responses=ERROR_RESPONSES)
async def convert_zip(
    file: UploadFile | None = File(None),
    settings: Settings = Depends(get_settings),
    runner: BatchRunner = Depends(get_batch_runner),
) -> FileResponse:
    """
    Convert every supported entry of a ZIP archive and return a ZIP of PDFs.

    Unsupported entries are left out; entries that fail are skipped and
    counted in the ``X-Batch-Failed`` header.
    """
    upload = _require_file(file)
    name = upload.filename or "archive.zip"
    data = await read_upload_limited(upload, settings.MAX_FILE_SIZE)
    _require_extension(name, (".zip",), "Please upload a .zip file.")

    arena = ScratchArena(settings.TEMP_DIR)
    try:
        result = await asyncio.to_thread(runner.run, data, arena, name)
        return stream_file(
            result.archive_path,
            f"{_stem(name, 'archive')}-pdfs.zip",
            ZIP_MEDIA_TYPE,
            arena,
            headers=_batch_headers(result),
        )
    except BaseException:
        arena.cleanup()
        raise


@router.post("/convert/url", responses=ERROR_RESPONSES)
async def convert_url(
    request: Request,
    settings: Settings = Depends(get_settings),
    fetcher: URLFetcher = Depends(get_fetcher),
    converter: DocumentConverter = Depends(get_converter),
    runner: BatchRunner = Depends(get_batch_runner),
) -> FileResponse:
    """
    Fetch a remote document and convert it.

    PDFs pass through untouched, ZIP archives go through the batch runner
    and everything else through the single-document pipelines.
    """
    url = await _read_url(request, settings)

    arena = ScratchArena(settings.TEMP_DIR)
    try:
        resource = await fetcher.fetch(url, arena)
        tag = detect(extension_of(resource.filename), resource.content_type)

        if tag is FormatTag.PDF or format_for_content_type(resource.content_type) is FormatTag.PDF:
            logger.info(f"Passing through remote PDF: {resource.filename}")
            return stream_file(resource.path, resource.filename, PDF_MEDIA_TYPE, arena)

        if tag is FormatTag.ZIP:
            data = await asyncio.to_thread(resource.path.read_bytes)
            result = await asyncio.to_thread(runner.run, data, arena, resource.filename)
            return stream_file(
                result.archive_path,
                f"{_stem(resource.filename, 'archive')}-pdfs.zip",
                ZIP_MEDIA_TYPE,
                arena,
                headers=_batch_headers(result),
            )

        if converter.supports(tag):
            data = await asyncio.to_thread(resource.path.read_bytes)
            pdf_path = await asyncio.to_thread(
                converter.convert, tag, data, resource.filename, arena
            )
            return stream_file(pdf_path, f"{_stem(resource.filename)}.pdf", PDF_MEDIA_TYPE, arena)

        raise UnsupportedTypeError(
            "Unsupported remote type. Allowed: pdf, docx, txt, rtf, html, zip.", tag.value
        )
    except BaseException:
        arena.cleanup()
        raise
