"""Security response headers middleware.

Adds standard security headers to every HTTP response. API responses may
carry report contents or share secrets, so they are also marked
non-cacheable.

Strict-Transport-Security is set by the reverse proxy, not here.
"""

from collections.abc import Callable, MutableMapping
from typing import Any

# ASGI type aliases
Scope = MutableMapping[str, Any]
Receive = Callable[..., Any]
Send = Callable[..., Any]

# Headers applied to every response, pre-encoded for ASGI.
_SECURITY_HEADERS: list[tuple[bytes, bytes]] = [
    (b"x-content-type-options", b"nosniff"),
    (b"x-frame-options", b"DENY"),
    (b"referrer-policy", b"no-referrer"),
    (b"cache-control", b"no-store"),
    (b"permissions-policy", b"camera=(), microphone=(), geolocation=()"),
]

_MANAGED_HEADER_NAMES: set[bytes] = {h[0] for h in _SECURITY_HEADERS}


class SecurityHeadersMiddleware:
    """Pure ASGI middleware that injects security headers into every response."""

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: MutableMapping[str, Any]) -> None:
            if message["type"] == "http.response.start":
                # Replace upstream values for the headers we manage
                headers = [
                    (k, v)
                    for k, v in message.get("headers", [])
                    if k not in _MANAGED_HEADER_NAMES
                ]
                headers.extend(_SECURITY_HEADERS)
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_with_headers)
