"""
Tests for the shell, filesystem and size guard utilities, and the startup check.
"""

import asyncio
from io import BytesIO

import pytest
from fastapi import UploadFile

from docgate.exceptions import DependencyError, PayloadTooLargeError
from docgate.main import initialize_dependencies
from docgate.services.dependencies import assert_startup_dependencies, check_dependencies
from docgate.utils.fs import ScratchArena, sanitize_filename
from docgate.utils.limits import enforce_size, enforce_text_limit, read_upload_limited
from docgate.utils.shell import get_command_version, run_command_safely
from tests.helpers import make_stub_tool


class TestShell:
    """Subprocess execution without a shell."""

    def test_captures_output_and_status(self, tmp_path):
        stub = make_stub_tool(tmp_path, "tool", exit_code=4, stdout="out", stderr="err")
        result = run_command_safely([str(stub)])
        assert result.returncode == 4
        assert result.stdout == "out"
        assert result.stderr == "err"

    def test_arguments_with_shell_metacharacters_are_literal(self, tmp_path):
        stub = make_stub_tool(tmp_path, "tool")
        result = run_command_safely([str(stub), "; rm -rf / && echo", "$(format del)"])
        assert result.returncode == 0

    def test_rejects_empty_command(self):
        with pytest.raises(ValueError):
            run_command_safely([])

    def test_rejects_nul_bytes(self):
        with pytest.raises(ValueError):
            run_command_safely(["echo", "bad\x00arg"])

    def test_missing_executable(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            run_command_safely([str(tmp_path / "nothing-here")])

    def test_version_first_line(self, tmp_path):
        stub = make_stub_tool(tmp_path, "tool", stdout="tool 1.2.3\nextra detail\n")
        assert get_command_version(str(stub)) == "tool 1.2.3"

    def test_version_none_on_failure(self, tmp_path):
        stub = make_stub_tool(tmp_path, "tool", exit_code=2, stdout="usage")
        assert get_command_version(str(stub)) is None
        assert get_command_version(str(tmp_path / "absent")) is None


class TestScratchArena:
    """Per-request scratch directories."""

    def test_paths_are_unique_and_inside_arena(self, scratch_root):
        arena = ScratchArena(scratch_root)
        first = arena.path_for("report", ".pdf")
        second = arena.path_for("report", ".pdf")
        assert first != second
        assert first.parent == arena.directory
        assert arena.directory.parent == scratch_root
        assert first.name.endswith("-report.pdf")

    def test_cleanup_removes_everything(self, scratch_root):
        arena = ScratchArena(scratch_root)
        arena.write_bytes(b"x", "a", ".bin")
        arena.write_text("y", "b", ".html")
        arena.cleanup()
        assert not arena.directory.exists()
        assert arena.closed
        arena.cleanup()

    def test_no_allocation_after_cleanup(self, scratch_root):
        arena = ScratchArena(scratch_root)
        arena.cleanup()
        with pytest.raises(RuntimeError):
            arena.path_for("late", ".pdf")

    def test_context_manager(self, scratch_root):
        with ScratchArena(scratch_root) as arena:
            arena.write_bytes(b"x", "a")
            directory = arena.directory
        assert not directory.exists()

    def test_arenas_are_isolated(self, scratch_root):
        one, two = ScratchArena(scratch_root), ScratchArena(scratch_root)
        one.write_bytes(b"x", "shared", ".txt")
        one.cleanup()
        assert two.directory.exists()
        two.cleanup()

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("report.pdf", "report.pdf"),
            ("Q1 notes (final).docx", "Q1_notes_final_.docx"),
            ("../../etc/passwd", "_.._etc_passwd"),
            ("...", "download"),
            ("", "download"),
        ],
    )
    def test_sanitize_filename(self, raw, expected):
        assert sanitize_filename(raw) == expected


class TestSizeGuard:
    """The byte ceiling."""

    def test_enforce_size_boundary(self):
        enforce_size(100, 100)
        with pytest.raises(PayloadTooLargeError) as exc_info:
            enforce_size(101, 100)
        assert exc_info.value.status_code == 413

    def test_text_limit_counts_utf8_bytes(self):
        enforce_text_limit("é" * 50, 100, "HTML content")
        with pytest.raises(PayloadTooLargeError):
            enforce_text_limit("é" * 51, 100, "HTML content")

    def test_message_uses_megabytes(self):
        with pytest.raises(PayloadTooLargeError) as exc_info:
            enforce_size(60 * 1024 * 1024, 50 * 1024 * 1024)
        assert exc_info.value.message == "File too large. Max size is 50MB."

    def test_read_upload_limited(self):
        upload = UploadFile(BytesIO(b"abc" * 10), filename="a.txt")
        assert asyncio.run(read_upload_limited(upload, 30)) == b"abc" * 10

    def test_read_upload_counts_actual_bytes(self):
        # declared size missing, so only the running total can catch it
        upload = UploadFile(BytesIO(b"x" * 64), filename="a.txt", size=None)
        with pytest.raises(PayloadTooLargeError):
            asyncio.run(read_upload_limited(upload, 63))

    def test_read_upload_rejects_declared_size(self):
        upload = UploadFile(BytesIO(b""), filename="a.txt", size=10_000)
        with pytest.raises(PayloadTooLargeError):
            asyncio.run(read_upload_limited(upload, 100))


class TestStartupCheck:
    """External tools must be present before serving."""

    def test_all_present(self, test_settings, tmp_path):
        test_settings.WKHTMLTOPDF_PATH = str(make_stub_tool(tmp_path, "wkhtmltopdf", stdout="wkhtmltopdf 0.12.6"))
        test_settings.UNRTF_PATH = str(make_stub_tool(tmp_path, "unrtf", stdout="0.21.10"))
        statuses = assert_startup_dependencies(test_settings)
        assert statuses["wkhtmltopdf"].version == "wkhtmltopdf 0.12.6"
        assert statuses["unrtf"].as_dict() == {
            "path": test_settings.UNRTF_PATH,
            "present": True,
            "version": "0.21.10",
        }

    def test_missing_tool_raises(self, test_settings, tmp_path):
        test_settings.WKHTMLTOPDF_PATH = str(make_stub_tool(tmp_path, "wkhtmltopdf", stdout="wkhtmltopdf 0.12.6"))
        test_settings.UNRTF_PATH = str(tmp_path / "no-unrtf")
        with pytest.raises(DependencyError, match="Missing dependency: unrtf"):
            assert_startup_dependencies(test_settings)
        assert check_dependencies(test_settings)["unrtf"].present is False

    def test_initialize_exits_when_tool_missing(self, test_settings, tmp_path):
        test_settings.WKHTMLTOPDF_PATH = str(tmp_path / "no-wkhtmltopdf")
        with pytest.raises(SystemExit) as exc_info:
            initialize_dependencies(test_settings)
        assert exc_info.value.code == 1
