"""
Health and index endpoints for the docgate API.

This module provides the health check, a readiness probe and the
capability index served at the root path.
"""

import asyncio
import os
import platform
import time
from datetime import datetime, timezone

import psutil
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from docgate.config import Settings, get_settings
from docgate.models.response import (
    EndpointInfo,
    HealthConfig,
    HealthResponse,
    IndexResponse,
    RuntimeInfo,
    ToolInfo,
)
from docgate.services.dependencies import check_dependencies

router = APIRouter()

ENDPOINTS = [
    EndpointInfo(method="GET", path="/health", desc="Check dependency health & versions"),
    EndpointInfo(method="GET", path="/ready", desc="Readiness probe (503 when a tool is missing)"),
    EndpointInfo(method="POST", path="/api/convert/txt", desc="file=*.txt  -> PDF (reportlab)"),
    EndpointInfo(method="POST", path="/api/convert/rtf", desc="file=*.rtf  -> PDF (unrtf -> wkhtmltopdf)"),
    EndpointInfo(method="POST", path="/api/convert/docx", desc="file=*.docx -> PDF (mammoth -> wkhtmltopdf)"),
    EndpointInfo(method="POST", path="/api/convert/html", desc='file=*.html or field "html" -> PDF (wkhtmltopdf)'),
    EndpointInfo(method="POST", path="/convert/zip", desc="file=*.zip  -> ZIP (PDF-only inside)"),
    EndpointInfo(method="POST", path="/convert/url", desc="JSON {url} or form field url -> fetch & convert"),
]


def _uptime_seconds() -> int:
    started = psutil.Process(os.getpid()).create_time()
    return max(0, round(time.time() - started))


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """
    Report external tool availability, the byte ceiling and runtime details.

    Always answers 200; ``ok`` is false when either tool is missing.
    """
    statuses = await asyncio.to_thread(check_dependencies, settings)
    return HealthResponse(
        ok=all(status.present for status in statuses.values()),
        deps={name: ToolInfo(**status.as_dict()) for name, status in statuses.items()},
        config=HealthConfig(max_upload_bytes=settings.MAX_FILE_SIZE),
        runtime=RuntimeInfo(
            pid=os.getpid(),
            python_version=platform.python_version(),
            platform=platform.system(),
            uptime_secs=_uptime_seconds(),
            env=settings.ENVIRONMENT,
        ),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/ready")
async def readiness_check(settings: Settings = Depends(get_settings)) -> JSONResponse:
    """
    Readiness check endpoint for container health checks.

    Returns:
        JSONResponse: 200 when both tools are present, otherwise 503
    """
    statuses = await asyncio.to_thread(check_dependencies, settings)
    missing = [name for name, status in statuses.items() if not status.present]
    if missing:
        return JSONResponse(
            status_code=503,
            content={"ok": False, "status": "not_ready", "missing_dependencies": missing},
        )
    return JSONResponse(status_code=200, content={"ok": True, "status": "ready"})


@router.get("/", response_model=IndexResponse)
async def index(settings: Settings = Depends(get_settings)) -> IndexResponse:
    """Describe the service and list its endpoints."""
    return IndexResponse(service=settings.APP_NAME, version=settings.VERSION, endpoints=ENDPOINTS)
