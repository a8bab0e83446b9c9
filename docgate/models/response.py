"""
Response models for the docgate API.

This module defines Pydantic models for the JSON endpoints. Conversion
endpoints stream files and have no JSON body on success.
"""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Uniform error envelope returned for every failure."""

    ok: bool = Field(default=False)
    error: str = Field(..., description="Human readable error message")


class ToolInfo(BaseModel):
    """Presence and version of one external tool."""

    present: bool
    version: str | None = None
    path: str


class HealthConfig(BaseModel):
    max_upload_bytes: int


class RuntimeInfo(BaseModel):
    pid: int
    python_version: str
    platform: str
    uptime_secs: int
    env: str


class HealthResponse(BaseModel):
    """
    Response model for the health check.

    ``ok`` is true only when every external tool is present.
    """

    ok: bool
    deps: dict[str, ToolInfo]
    config: HealthConfig
    runtime: RuntimeInfo
    timestamp: str


class EndpointInfo(BaseModel):
    method: str
    path: str
    desc: str


class IndexResponse(BaseModel):
    """Service description and capability list."""

    ok: bool = True
    service: str
    version: str
    endpoints: list[EndpointInfo]
