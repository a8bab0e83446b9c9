"""
Shared builders and fakes for the docgate tests.
"""

import sys
import zipfile
from io import BytesIO
from pathlib import Path

from docgate.utils.shell import CommandResult

FAKE_PDF = b"%PDF-1.4\n% rendered by the fake wkhtmltopdf\n%%EOF\n"
FAKE_RTF_HTML = "<p>converted rtf body</p>"


def fake_run(cmd, cwd=None, timeout=300, env=None):
    """Stand-in for run_command_safely that behaves like a healthy tool."""
    tool = Path(cmd[0]).name
    if tool == "wkhtmltopdf":
        Path(cmd[-1]).write_bytes(FAKE_PDF)
        return CommandResult(0, "", "")
    if tool == "unrtf":
        return CommandResult(0, FAKE_RTF_HTML, "")
    raise AssertionError(f"unexpected command: {cmd}")


def build_docx(text: str = "Hello from docx") -> bytes:
    """Build a minimal WordprocessingML package mammoth can read."""
    content_types = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
        '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
        '<Default Extension="xml" ContentType="application/xml"/>'
        '<Override PartName="/word/document.xml" '
        'ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>'
        "</Types>"
    )
    rels = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
        '<Relationship Id="rId1" '
        'Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument" '
        'Target="word/document.xml"/>'
        "</Relationships>"
    )
    document = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
        f"<w:body><w:p><w:r><w:t>{text}</w:t></w:r></w:p></w:body>"
        "</w:document>"
    )
    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as docx:
        docx.writestr("[Content_Types].xml", content_types)
        docx.writestr("_rels/.rels", rels)
        docx.writestr("word/document.xml", document)
    return buffer.getvalue()


def build_zip(entries: dict[str, bytes]) -> bytes:
    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, data in entries.items():
            archive.writestr(name, data)
    return buffer.getvalue()


def make_stub_tool(directory: Path, name: str, exit_code: int = 0, stdout: str = "", stderr: str = "") -> Path:
    """Write a small executable that prints fixed output and exits with ``exit_code``."""
    script = directory / name
    script.write_text(
        f"#!{sys.executable}\n"
        "import sys\n"
        f"sys.stdout.write({stdout!r})\n"
        f"sys.stderr.write({stderr!r})\n"
        f"sys.exit({exit_code})\n",
        encoding="utf-8",
    )
    script.chmod(0o755)
    return script
