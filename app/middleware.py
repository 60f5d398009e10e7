"""Inbound request guards: rate limiting and body size ceiling."""

from __future__ import annotations

import logging
import time
from collections import defaultdict, deque
from typing import Callable

from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS_MESSAGE = "Te veel verzoeken. Probeer het later opnieuw."
BODY_TOO_LARGE_MESSAGE = "Het verzoek is te groot."

# Multipart envelopes add boundaries and part headers on top of the file itself.
_MULTIPART_OVERHEAD = 64 * 1024


class SlidingWindowLimiter:
    """Per-key request counter over a sliding time window."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: defaultdict[str, deque[float]] = defaultdict(deque)

    def allow(self, key: str) -> tuple[bool, float]:
        """Record a hit for ``key``; return whether it is allowed and the retry delay."""

        now = self._clock()
        hits = self._hits[key]
        while hits and now - hits[0] >= self.window_seconds:
            hits.popleft()

        if len(hits) >= self.max_requests:
            return False, self.window_seconds - (now - hits[0])

        hits.append(now)
        return True, 0.0

    def prune(self) -> None:
        """Drop keys whose window has fully expired."""

        now = self._clock()
        stale = [key for key, hits in self._hits.items() if not hits or now - hits[-1] >= self.window_seconds]
        for key in stale:
            del self._hits[key]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects excess requests per client address on ``/api`` routes."""

    def __init__(self, app: ASGIApp, limiter: SlidingWindowLimiter, prefix: str = "/api") -> None:
        super().__init__(app)
        self._limiter = limiter
        self._prefix = prefix
        self._requests_seen = 0

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not request.url.path.startswith(self._prefix):
            return await call_next(request)

        self._requests_seen += 1
        if self._requests_seen % 1000 == 0:
            self._limiter.prune()

        client = request.client.host if request.client else "unknown"
        allowed, retry_after = self._limiter.allow(client)
        if not allowed:
            logger.warning("Inbound rate limit exceeded", extra={"client": client})
            return JSONResponse(
                {"success": False, "error": TOO_MANY_REQUESTS_MESSAGE},
                status_code=429,
                headers={"Retry-After": str(max(1, int(retry_after)))},
            )
        return await call_next(request)


class _BodyTooLarge(Exception):
    """Raised from ``receive`` once a streamed body passes the ceiling."""


class BodySizeLimitMiddleware:
    """Rejects request bodies above the ceiling with 413.

    JSON requests are held to ``max_body_bytes``; multipart uploads to
    ``max_upload_bytes`` plus envelope overhead. A declared Content-Length is
    checked up front; bodies without one are counted as they stream in.
    Rejections on ``upload_path`` use the upload endpoint's ``{error}`` shape.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_body_bytes: int,
        max_upload_bytes: int,
        upload_path: str = "/api/upload-file",
    ) -> None:
        self.app = app
        self._max_body_bytes = max_body_bytes
        self._max_upload_bytes = max_upload_bytes
        self._upload_path = upload_path

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        if headers.get("content-type", "").startswith("multipart/form-data"):
            limit = self._max_upload_bytes + _MULTIPART_OVERHEAD
        else:
            limit = self._max_body_bytes

        declared = headers.get("content-length")
        if declared is not None:
            try:
                size = int(declared)
            except ValueError:
                response = self._error_response(scope, "Ongeldige Content-Length.", 400)
                await response(scope, receive, send)
                return
            if size > limit:
                await self._reject(scope, receive, send, size, limit)
                return
            await self.app(scope, receive, send)
            return

        received = 0
        exceeded = False
        started = False

        async def counting_receive() -> Message:
            nonlocal received, exceeded
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    exceeded = True
                    raise _BodyTooLarge()
            return message

        async def guarded_send(message: Message) -> None:
            nonlocal started
            # Whatever the app answers to a truncated body is replaced by the 413.
            if exceeded:
                return
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        try:
            await self.app(scope, counting_receive, guarded_send)
        except _BodyTooLarge:
            if started:
                raise
        if exceeded and not started:
            await self._reject(scope, receive, send, received, limit)

    async def _reject(
        self, scope: Scope, receive: Receive, send: Send, size: int, limit: int
    ) -> None:
        logger.warning(
            "Request body too large",
            extra={"path": scope["path"], "content_length": size, "limit": limit},
        )
        if scope["path"] == self._upload_path:
            message = (
                f"Bestand is te groot. Maximaal "
                f"{self._max_upload_bytes // (1024 * 1024)} MB toegestaan."
            )
        else:
            message = BODY_TOO_LARGE_MESSAGE
        response = self._error_response(scope, message, 413)
        await response(scope, receive, send)

    def _error_response(self, scope: Scope, message: str, status_code: int) -> JSONResponse:
        if scope["path"] == self._upload_path:
            return JSONResponse({"error": message}, status_code=status_code)
        return JSONResponse({"success": False, "error": message}, status_code=status_code)
