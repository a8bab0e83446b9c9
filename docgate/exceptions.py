"""
Base exception classes for the docgate conversion gateway.

Every error raised by the services carries an ``error_type`` tag and the
HTTP status code the API layer should answer with, so the boundary can
turn any failure into the same JSON envelope.
"""

from typing import Any


class BaseServiceError(Exception):
    """Base exception for all service errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_type: str,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code


class InvalidInputError(BaseServiceError):
    """Raised when a request is missing a field or carries the wrong kind of file."""

    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorTypes.INVALID_INPUT, details)


class UnsupportedSchemeError(BaseServiceError):
    """Raised when a remote URL uses anything other than http(s)."""

    status_code = 400

    def __init__(self, scheme: str):
        super().__init__(
            "Only http(s) URLs are supported.",
            ErrorTypes.UNSUPPORTED_SCHEME,
            {"scheme": scheme},
        )


class PayloadTooLargeError(BaseServiceError):
    """Raised when an input exceeds the configured byte ceiling."""

    status_code = 413

    def __init__(self, label: str, max_bytes: int, size: int | None = None):
        limit_mb = max_bytes // (1024 * 1024)
        super().__init__(
            f"{label} too large. Max size is {limit_mb}MB.",
            ErrorTypes.FILE_SIZE_EXCEEDED,
            {"max_bytes": max_bytes, "size": size},
        )


class UnsupportedTypeError(BaseServiceError):
    """Raised when an input format has no conversion pipeline."""

    status_code = 415

    def __init__(self, message: str, detected: str | None = None):
        super().__init__(message, ErrorTypes.UNSUPPORTED_TYPE, {"detected": detected})


class UpstreamFetchError(BaseServiceError):
    """Raised when a remote resource cannot be fetched."""

    status_code = 502

    def __init__(self, message: str, upstream_status: int | None = None):
        super().__init__(
            message, ErrorTypes.UPSTREAM_FETCH_ERROR, {"upstream_status": upstream_status}
        )
        self.upstream_status = upstream_status


class ToolExecutionError(BaseServiceError):
    """Raised when an external converter exits non-zero or cannot be run."""

    status_code = 500

    def __init__(self, message: str, tool: str, returncode: int, stdout: str = "", stderr: str = ""):
        super().__init__(
            message,
            ErrorTypes.TOOL_ERROR,
            {"tool": tool, "returncode": returncode, "stdout": stdout, "stderr": stderr},
        )
        self.tool = tool
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class DocumentConversionError(BaseServiceError):
    """Raised when a conversion library rejects its input."""

    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorTypes.CONVERSION_ERROR, details)


class DependencyError(BaseServiceError):
    """Raised at startup when a required external tool is unavailable."""

    def __init__(self, message: str, tool: str):
        super().__init__(message, ErrorTypes.DEPENDENCY_ERROR, {"tool": tool})


# Common error types for consistency
class ErrorTypes:
    """Common error type constants."""

    INVALID_INPUT = "INVALID_INPUT"
    UNSUPPORTED_SCHEME = "UNSUPPORTED_SCHEME"
    FILE_SIZE_EXCEEDED = "FILE_SIZE_EXCEEDED"
    UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"
    UPSTREAM_FETCH_ERROR = "UPSTREAM_FETCH_ERROR"
    TOOL_ERROR = "TOOL_ERROR"
    CONVERSION_ERROR = "CONVERSION_ERROR"
    DEPENDENCY_ERROR = "DEPENDENCY_ERROR"
