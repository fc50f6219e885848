"""Correlation ID middleware.

Generates or extracts a correlation ID per request and logs request
start/completion with it. Paths are logged without their query string,
and share-token secrets in the path are masked, so bearer credentials
never reach the logs.

Uses the pure ASGI middleware pattern to avoid the event loop issues
Starlette's BaseHTTPMiddleware has with asyncpg connections.
"""

import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.logging_config import correlation_id_ctx, get_logger, mask_credentials

logger = get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"


class CorrelationIdMiddleware:
    """Pure ASGI middleware that adds correlation IDs to requests.

    An incoming X-Correlation-ID header is reused; otherwise a UUID is
    generated. The ID is set in context for logging and echoed in the
    response headers.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        correlation_id = headers.get(b"x-correlation-id", b"").decode() or str(
            uuid.uuid4()
        )
        token = correlation_id_ctx.set(correlation_id)

        start_time = time.perf_counter()
        status_code: int | None = None

        method = scope.get("method", "")
        path = mask_credentials(scope.get("path", ""))
        client = scope.get("client")
        client_ip = client[0] if client else None

        logger.info(
            "Request started",
            method=method,
            path=path,
            client_ip=client_ip,
        )

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code

            if message["type"] == "http.response.start":
                status_code = message.get("status")
                response_headers = list(message.get("headers", []))
                response_headers.append(
                    (CORRELATION_ID_HEADER.lower().encode(), correlation_id.encode())
                )
                message = {**message, "headers": response_headers}

            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)

            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "Request completed",
                method=method,
                path=path,
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
            )
        except Exception:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.exception(
                "Request failed",
                method=method,
                path=path,
                duration_ms=round(duration_ms, 2),
            )
            raise
        finally:
            correlation_id_ctx.reset(token)
