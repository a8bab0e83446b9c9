"""
Filesystem utilities for request-scoped scratch storage.

Every request gets its own directory under the scratch root. Intermediate
artifacts (uploaded bytes, generated HTML, rendered PDFs, output archives)
are allocated inside it, and the whole directory is removed once the
response has been streamed or the request has failed.
"""

import re
import secrets
import shutil
import time
import uuid
from pathlib import Path

from loguru import logger

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def ensure_directory(path: str | Path) -> Path:
    """
    Ensure directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure

    Returns:
        Path object of the directory

    Raises:
        OSError: If directory cannot be created
    """
    path = Path(path)

    try:
        path.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Directory ensured: {path}")
        return path
    except OSError as exc:
        logger.error(f"Failed to create directory {path}: {exc}")
        raise


def sanitize_filename(name: str, default: str = "download") -> str:
    """
    Reduce a filename to letters, digits, dot, dash and underscore.

    Runs of any other character collapse to a single underscore. Leading
    dots are stripped so the result can never name a parent directory.
    """
    cleaned = _UNSAFE_CHARS.sub("_", name).lstrip(".")
    return cleaned or default


class ScratchArena:
    """
    A private scratch directory owned by a single request.

    Paths handed out by the arena are unique: each name embeds a
    millisecond timestamp and a random suffix in front of the basename.
    """

    def __init__(self, root: str | Path):
        self.root = ensure_directory(root)
        self.directory = ensure_directory(self.root / uuid.uuid4().hex)
        self._closed = False

    def path_for(self, basename: str, ext: str = "") -> Path:
        """Allocate a fresh path named ``<ms>-<random>-<basename><ext>``."""
        if self._closed:
            raise RuntimeError("Scratch arena already cleaned up")
        stamp = int(time.time() * 1000)
        suffix = secrets.token_hex(4)
        safe = sanitize_filename(basename, default="file")
        return self.directory / f"{stamp}-{suffix}-{safe}{ext}"

    def write_bytes(self, data: bytes, basename: str, ext: str = "") -> Path:
        path = self.path_for(basename, ext)
        path.write_bytes(data)
        return path

    def write_text(self, text: str, basename: str, ext: str = "") -> Path:
        path = self.path_for(basename, ext)
        path.write_text(text, encoding="utf-8")
        return path

    def cleanup(self) -> None:
        """Remove the arena directory and everything in it. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        shutil.rmtree(self.directory, ignore_errors=True)
        logger.debug(f"Cleaned up scratch directory: {self.directory}")

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "ScratchArena":
        return self

    def __exit__(self, *exc_info) -> None:
        self.cleanup()
