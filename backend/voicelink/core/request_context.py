# backend/voicelink/core/request_context.py
"""
Per-request context.

``RequestContext`` carries tracing data (request id, IP, path) for log lines and
the ``X-Request-ID`` response header. ``RequestIdentityContext`` is the
explicit value the usage accountant works from; it is built by the
``get_identity_context`` dependency and never read from ambient state.
"""

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from voicelink.core.rate_limit import get_real_client_ip

ANONYMOUS_IDENTITY = "anonymous"


def resolve_identity(
    user_id: str | None = None,
    session_id: str | None = None,
    session_is_persisted: bool = False,
    ip_address: str | None = None,
) -> str:
    """
    Pick the key that usage is counted against.

    Precedence is user, then persisted guest session, then IP. A session id
    that has not yet round-tripped through storage is ignored, otherwise a
    guest could refresh for a fresh id and a fresh quota.
    """
    if user_id:
        return f"user:{user_id}"
    if session_id and session_is_persisted:
        return f"session:{session_id}"
    if ip_address:
        return f"ip:{ip_address}"
    return ANONYMOUS_IDENTITY


@dataclass(frozen=True)
class RequestIdentityContext:
    """Who is asking, as far as usage accounting is concerned."""

    user_id: str | None = None
    session_id: str | None = None
    session_is_persisted: bool = False
    ip_address: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def identity_key(self) -> str:
        return resolve_identity(
            user_id=self.user_id,
            session_id=self.session_id,
            session_is_persisted=self.session_is_persisted,
            ip_address=self.ip_address,
        )


@dataclass
class RequestContext:
    """Tracing data attached to each request."""

    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    ip_address: str | None = None
    user_agent: str | None = None
    request_method: str | None = None
    request_path: str | None = None


_request_context: ContextVar[RequestContext | None] = ContextVar("request_context", default=None)


def get_request_context() -> RequestContext | None:
    """Get the current request context."""
    return _request_context.get()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Creates the request context and echoes its id back as ``X-Request-ID``.

    Must be added early in the middleware stack.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        user_agent = request.headers.get("User-Agent", "")
        if user_agent and len(user_agent) > 512:
            user_agent = user_agent[:509] + "..."

        ctx = RequestContext(
            request_id=request.headers.get("X-Request-ID", "")[:64] or str(uuid.uuid4()),
            ip_address=get_real_client_ip(request),
            user_agent=user_agent or None,
            request_method=request.method,
            request_path=request.url.path[:255],
        )

        token = _request_context.set(ctx)
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = ctx.request_id
            return response
        finally:
            _request_context.reset(token)
