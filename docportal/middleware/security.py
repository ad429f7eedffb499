"""Default security headers for every HTTP response."""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

DEFAULT_CSP = "default-src 'self'; frame-ancestors 'none'; form-action 'self'"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach a hardened set of default security headers."""

    def __init__(
        self, app: ASGIApp, *, content_security_policy: str | None = DEFAULT_CSP
    ) -> None:
        super().__init__(app)
        self._content_security_policy = content_security_policy

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        headers = response.headers
        headers.setdefault("X-Content-Type-Options", "nosniff")
        headers.setdefault("X-Frame-Options", "DENY")
        headers.setdefault("Referrer-Policy", "no-referrer")
        headers.setdefault(
            "Permissions-Policy", "geolocation=(), microphone=(), camera=()"
        )
        if self._content_security_policy:
            headers.setdefault("Content-Security-Policy", self._content_security_policy)
        return response


__all__ = ["DEFAULT_CSP", "SecurityHeadersMiddleware"]
