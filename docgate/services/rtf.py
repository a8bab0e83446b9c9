"""
RTF to HTML conversion through unrtf.
"""

import subprocess

from loguru import logger

from docgate.exceptions import ToolExecutionError
from docgate.utils.fs import ScratchArena
from docgate.utils.shell import COMMAND_NOT_FOUND, run_command_safely


class RTFToHTMLService:
    """Service wrapping the unrtf command line converter."""

    def __init__(self, unrtf_path: str = "unrtf", timeout: int = 300):
        self.unrtf_path = unrtf_path
        self.timeout = timeout

    def to_html(self, data: bytes, arena: ScratchArena, name_hint: str = "document") -> str:
        """
        Convert raw RTF bytes to HTML.

        The bytes are written to the scratch arena and unrtf's standard
        output is taken as the HTML body.

        Raises:
            ToolExecutionError: If unrtf exits non-zero or cannot run
        """
        rtf_path = arena.write_bytes(data, name_hint, ".rtf")
        cmd = [self.unrtf_path, "--html", "--quiet", str(rtf_path)]

        logger.info(f"Converting RTF to HTML: {rtf_path.name}")
        try:
            result = run_command_safely(cmd, timeout=self.timeout)
        except FileNotFoundError as exc:
            raise ToolExecutionError(
                f"unrtf failed ({COMMAND_NOT_FOUND})\nSTDERR:\n{exc}",
                "unrtf", COMMAND_NOT_FOUND, "", str(exc),
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise ToolExecutionError(
                f"unrtf timed out after {self.timeout} seconds", "unrtf", -1
            ) from exc

        if result.returncode != 0:
            logger.error(f"unrtf exited with {result.returncode}")
            raise ToolExecutionError(
                f"unrtf failed ({result.returncode})\nSTDERR:\n{result.stderr}",
                "unrtf", result.returncode, result.stdout, result.stderr,
            )
        return result.stdout
