"""
Remote resource fetching with a streamed size ceiling.

The body is written to the scratch arena chunk by chunk. Once the running
byte count crosses the ceiling the transfer is abandoned and the partial
file removed, so an oversized resource is never fully downloaded.
"""

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse

import httpx
from loguru import logger

from docgate.exceptions import (
    InvalidInputError,
    PayloadTooLargeError,
    UnsupportedSchemeError,
    UpstreamFetchError,
)
from docgate.services.formats import (
    extension_for_content_type,
    extension_from_url_or_disposition,
    filename_from_disposition,
)
from docgate.utils.fs import ScratchArena, sanitize_filename

ALLOWED_SCHEMES = ("http", "https")


@dataclass(frozen=True)
class FetchedResource:
    """A downloaded resource sitting in the scratch arena."""

    path: Path
    filename: str
    content_type: str | None


def validate_url(url: str) -> str:
    """
    Check that ``url`` is an absolute http(s) URL.

    Raises:
        UnsupportedSchemeError: For any other scheme
        InvalidInputError: If the URL cannot be parsed or has no host
    """
    candidate = url.strip()
    try:
        parsed = urlparse(candidate)
    except ValueError as exc:
        raise InvalidInputError(f"Invalid URL: {exc}") from exc
    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise UnsupportedSchemeError(parsed.scheme)
    if not parsed.netloc:
        raise InvalidInputError("Invalid URL: missing host.")
    return candidate


def resolve_filename(url: str, content_type: str | None, content_disposition: str | None) -> str:
    """
    Decide the local filename of a fetched resource.

    Name: Content-Disposition filename, else URL basename, else ``download``.
    Extension: Content-Disposition/URL extension, else the content-type table.
    The extension is appended only when the sanitised name lacks it.
    """
    ext = extension_from_url_or_disposition(url, content_disposition) or extension_for_content_type(content_type) or ""
    base = filename_from_disposition(content_disposition)
    if not base:
        base = PurePosixPath(unquote(urlparse(url).path or "")).name
    safe = sanitize_filename(base or "download")
    if ext and not safe.lower().endswith(ext):
        safe += ext
    return safe


class URLFetcher:
    """Stream remote documents into the scratch arena."""

    def __init__(
        self,
        max_bytes: int,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the fetcher.

        Args:
            max_bytes: Byte ceiling for a single download
            timeout: Network timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.max_bytes = max_bytes
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            follow_redirects=True,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def fetch(self, url: str, arena: ScratchArena) -> FetchedResource:
        """
        Download ``url`` into the arena.

        Raises:
            UnsupportedSchemeError: If the URL is not http(s)
            UpstreamFetchError: On transport failure or a non-2xx answer
            PayloadTooLargeError: If the body exceeds the ceiling
        """
        url = validate_url(url)
        logger.info(f"Fetching remote document: {url}")

        try:
            async with self._client() as client:
                async with client.stream("GET", url) as response:
                    if not response.is_success:
                        raise UpstreamFetchError(
                            f"Failed to fetch URL (status {response.status_code}).",
                            response.status_code,
                        )
                    content_type = response.headers.get("content-type")
                    filename = resolve_filename(
                        url, content_type, response.headers.get("content-disposition")
                    )
                    path = arena.path_for(PurePosixPath(filename).stem, PurePosixPath(filename).suffix)
                    await self._stream_to_file(response, path)
        except httpx.HTTPError as exc:
            logger.error(f"Fetch failed for {url}: {exc}")
            raise UpstreamFetchError(f"Failed to fetch URL: {exc}") from exc

        logger.info(f"Fetched {filename} ({path.stat().st_size} bytes, {content_type})")
        return FetchedResource(path=path, filename=filename, content_type=content_type)

    async def _stream_to_file(self, response: httpx.Response, path: Path) -> None:
        received = 0
        try:
            with path.open("wb") as out:
                async for chunk in response.aiter_bytes():
                    received += len(chunk)
                    if received > self.max_bytes:
                        raise PayloadTooLargeError("Remote file", self.max_bytes, received)
                    out.write(chunk)
        except BaseException:
            path.unlink(missing_ok=True)
            raise
