from __future__ import annotations

import hashlib
from contextvars import ContextVar
from uuid import uuid4

from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from .settings import settings

# Context variable for request ID (accessible throughout the request lifecycle)
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")


def add_cors(app):
    origins = settings.allow_origins
    if not origins:
        # Default is explicit opt-in; skip middleware when nothing configured
        return
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add request ID tracing.

    Reuses an incoming X-Request-ID header or generates a UUID, stores it in a
    context variable for the structlog processors and echoes it on the response.
    """

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = request.headers.get("X-Request-ID")
        if not request_id:
            request_id = str(uuid4())

        request_id_ctx.set(request_id)
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


def add_request_id_tracing(app):
    """Add request ID middleware; the log processors read the id from request_id_ctx."""
    app.add_middleware(RequestIDMiddleware)


def prompt_fingerprint(prompt: str) -> str:
    """Short stable hash so prompts can be correlated in logs without storing them."""
    return hashlib.sha256(prompt.encode("utf-8")).hexdigest()[:10]
