"""
Custom middleware for the docgate gateway.

Request logging with a short request id, status code and timing. The id
is echoed to the client in the ``X-Request-ID`` response header.
"""

import time
import uuid
from typing import Any

from loguru import logger
from starlette.datastructures import MutableHeaders

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware:
    """
    Custom logging middleware for request/response logging.

    This middleware logs all incoming requests and outgoing responses
    with timing information and request IDs for better debugging.
    """

    def __init__(self, app: Any) -> None:
        """
        Initialize the logging middleware.

        Args:
            app: ASGI application to wrap
        """
        self.app = app

    async def __call__(self, scope: dict[str, Any], receive: Any, send: Any) -> None:
        """
        Process the request and add logging.

        Args:
            scope: ASGI scope
            receive: ASGI receive callable
            send: ASGI send callable
        """
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())[:8]

        start_time = time.time()
        client = scope.get("client")
        client_host = client[0] if client else "unknown"
        logger.info(f"[{request_id}] {scope['method']} {scope['path']} - Client: {client_host}")

        status_code = 500

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                MutableHeaders(scope=message).append(REQUEST_ID_HEADER, request_id)
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            process_time = time.time() - start_time
            logger.info(f"[{request_id}] {status_code} completed in {process_time:.3f}s")
