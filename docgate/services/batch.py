"""
Batch conversion of ZIP archives.

Every supported entry of the input archive is converted to a PDF and the
results are packed into a new archive with the same directory layout.
Unsupported entries are dropped, and an entry that fails to convert is
recorded and skipped without aborting the rest of the batch.
"""

import zipfile
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path, PurePosixPath

from loguru import logger

from docgate.exceptions import BaseServiceError, InvalidInputError, PayloadTooLargeError
from docgate.services.converter import DocumentConverter
from docgate.services.formats import FormatTag
from docgate.utils.fs import ScratchArena

BATCH_FORMATS: dict[str, FormatTag] = {
    ".txt": FormatTag.TXT,
    ".docx": FormatTag.DOCX,
    ".rtf": FormatTag.RTF,
    ".html": FormatTag.HTML,
    ".htm": FormatTag.HTML,
}


@dataclass
class BatchResult:
    """Outcome of one archive conversion."""

    archive_path: Path
    converted: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


def output_name(entry_name: str) -> str:
    """Same directory and stem, ``.pdf`` extension."""
    return str(PurePosixPath(entry_name).with_suffix(".pdf"))


class BatchRunner:
    """Convert the eligible entries of a ZIP archive one at a time, in archive order."""

    def __init__(self, converter: DocumentConverter, max_entry_bytes: int):
        self.converter = converter
        self.max_entry_bytes = max_entry_bytes

    def run(self, zip_bytes: bytes, arena: ScratchArena, archive_name: str = "archive.zip") -> BatchResult:
        """
        Convert an archive and write the output archive into the scratch arena.

        Args:
            zip_bytes: Raw bytes of the uploaded archive
            arena: Scratch arena owning the intermediates and the output
            archive_name: Original archive filename, used to name the output

        Returns:
            BatchResult describing the output archive and each entry's fate

        Raises:
            InvalidInputError: If the input is not a readable ZIP archive
        """
        try:
            source = zipfile.ZipFile(BytesIO(zip_bytes))
        except zipfile.BadZipFile as exc:
            raise InvalidInputError(f"Invalid ZIP archive: {exc}") from exc

        outputs: dict[str, bytes] = {}
        converted: list[str] = []
        skipped: list[str] = []
        failed: dict[str, str] = {}

        with source:
            for info in source.infolist():
                if info.is_dir():
                    continue
                name = info.filename
                tag = BATCH_FORMATS.get(PurePosixPath(name).suffix.lower())
                if tag is None:
                    skipped.append(name)
                    continue

                try:
                    pdf_bytes = self._convert_entry(source, info, tag, arena)
                # RuntimeError: encrypted entries
                except (BaseServiceError, zipfile.BadZipFile, OSError, RuntimeError) as exc:
                    logger.warning(f"Batch entry failed, skipping {name}: {exc}")
                    failed[name] = str(exc)
                    continue

                outputs[output_name(name)] = pdf_bytes
                converted.append(name)

        stem = PurePosixPath(archive_name).stem or "archive"
        archive_path = arena.path_for(f"{stem}-pdfs", ".zip")
        with zipfile.ZipFile(archive_path, "w", zipfile.ZIP_DEFLATED) as target:
            for path, data in outputs.items():
                target.writestr(path, data)

        logger.info(
            f"Batch {archive_name}: {len(converted)} converted, "
            f"{len(skipped)} skipped, {len(failed)} failed"
        )
        return BatchResult(archive_path, converted, skipped, failed)

    def _convert_entry(
        self, source: zipfile.ZipFile, info: zipfile.ZipInfo, tag: FormatTag, arena: ScratchArena
    ) -> bytes:
        if info.file_size > self.max_entry_bytes:
            raise PayloadTooLargeError(f"Entry {info.filename}", self.max_entry_bytes, info.file_size)
        data = source.read(info)
        pdf_path = self.converter.convert(tag, data, PurePosixPath(info.filename).name, arena)
        return pdf_path.read_bytes()
