"""Security headers applied to every gateway response."""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# The gateway only serves JSON, so nothing may be framed, embedded or cached
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Cache-Control": "no-store, no-cache, must-revalidate",
    "Pragma": "no-cache",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": (
        "default-src 'none'; script-src 'none'; style-src 'none'; img-src 'none'; "
        "connect-src 'none'; font-src 'none'; object-src 'none'; media-src 'none'; "
        "frame-src 'none'; frame-ancestors 'none'"
    ),
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds SECURITY_HEADERS, plus HSTS when the request arrived over https."""

    def __init__(self, app, hsts_max_age: int = 31536000):
        super().__init__(app)
        self.hsts_max_age = hsts_max_age

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
        if "server" in response.headers:
            del response.headers["server"]

        forwarded_proto = request.headers.get("x-forwarded-proto", "")
        if forwarded_proto == "https" or request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = (
                f"max-age={self.hsts_max_age}; includeSubDomains"
            )

        return response
