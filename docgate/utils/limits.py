"""
Size guard shared by every entry point.

The same byte ceiling applies to uploaded files, inline string fields,
archive entries and streamed downloads.
"""

from starlette.datastructures import UploadFile

from docgate.exceptions import PayloadTooLargeError

CHUNK_SIZE = 1024 * 1024


def enforce_size(size: int, max_bytes: int, label: str = "File") -> None:
    """
    Reject a payload whose size exceeds the ceiling.

    Raises:
        PayloadTooLargeError: If ``size`` is larger than ``max_bytes``
    """
    if size > max_bytes:
        raise PayloadTooLargeError(label, max_bytes, size)


def enforce_text_limit(text: str, max_bytes: int, label: str) -> None:
    """Apply the ceiling to the UTF-8 encoded length of a string field."""
    enforce_size(len(text.encode("utf-8")), max_bytes, label)


async def read_upload_limited(upload: UploadFile, max_bytes: int, label: str = "File") -> bytes:
    """
    Read an uploaded file into memory without ever holding more than the ceiling.

    The declared size is checked first; the running total is checked again
    per chunk because clients can misreport it.
    """
    if upload.size is not None:
        enforce_size(upload.size, max_bytes, label)

    chunks: list[bytes] = []
    received = 0
    while True:
        chunk = await upload.read(CHUNK_SIZE)
        if not chunk:
            break
        received += len(chunk)
        enforce_size(received, max_bytes, label)
        chunks.append(chunk)
    return b"".join(chunks)
