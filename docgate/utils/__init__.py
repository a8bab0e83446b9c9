"""
Utilities package for the docgate gateway.

This package contains utility modules for common operations.
"""

from .fs import ScratchArena, ensure_directory, sanitize_filename
from .limits import enforce_size, enforce_text_limit, read_upload_limited
from .shell import (
    CommandResult,
    get_command_version,
    run_command_safely,
)

__all__ = [
    "run_command_safely", "get_command_version", "CommandResult",
    "ScratchArena", "ensure_directory", "sanitize_filename",
    "enforce_size", "enforce_text_limit", "read_upload_limited",
]
