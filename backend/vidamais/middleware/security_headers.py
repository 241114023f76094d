"""
Vida Mais Backend — Security Headers Middleware
===============================================

What:  Adds hardening headers to every response (helmet-style defaults).
How:   Sets each header only when the route has not set it already.
Who:   Applied to every request via Starlette middleware.
"""

from typing import Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

DEFAULT_SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
    "Cross-Origin-Resource-Policy": "same-origin",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Applies DEFAULT_SECURITY_HEADERS (or a custom mapping) to responses."""

    def __init__(self, app, headers: Dict[str, str] = None, **kwargs):
        super().__init__(app, **kwargs)
        self._headers = dict(DEFAULT_SECURITY_HEADERS if headers is None else headers)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        for name, value in self._headers.items():
            if name not in response.headers:
                response.headers[name] = value
        return response
