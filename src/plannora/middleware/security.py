"""Security headers middleware.

Learn: Every response gets a fixed set of hardening headers (no MIME
sniffing, no framing, trimmed referrers). Two more depend on the request:

- /api/auth/* responses carry the session token in the body, so they are
  marked Cache-Control: no-store.
- HSTS is only sent when the client reached us over HTTPS, either
  directly or through a proxy that says so in X-Forwarded-Proto.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

STATIC_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

HSTS = "max-age=31536000; includeSubDomains"
NO_STORE_PREFIX = "/api/auth/"


def _is_https(request: Request) -> bool:
    forwarded = request.headers.get("X-Forwarded-Proto", "")
    return request.url.scheme == "https" or forwarded.split(",")[0].strip() == "https"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers.update(STATIC_HEADERS)
        if request.url.path.startswith(NO_STORE_PREFIX):
            response.headers["Cache-Control"] = "no-store"
        if _is_https(request):
            response.headers["Strict-Transport-Security"] = HSTS
        return response
