import logging
from typing import Dict, Mapping, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..config import Settings

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "dev-secret-please-change"

# JSON-only API: nothing should be framed, sniffed or cached.
API_SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cache-Control": "no-store",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}
HSTS_VALUE = "max-age=31536000; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Stamp API security headers onto responses that do not set their own."""

    def __init__(self, app, *, headers: Optional[Mapping[str, str]] = None, enable_hsts: bool = True) -> None:
        super().__init__(app)
        self.headers = dict(API_SECURITY_HEADERS if headers is None else headers)
        self.enable_hsts = enable_hsts

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        if self.enable_hsts and request.url.scheme == "https":
            response.headers.setdefault("Strict-Transport-Security", HSTS_VALUE)
        return response


def log_security_warnings(settings: Settings) -> None:
    if settings.jwt_secret == DEFAULT_JWT_SECRET:
        logger.warning("JWT secret is using the insecure default; set JWT_SECRET in the environment.")
    if settings.allow_admin_signup:
        logger.warning("Admin self-signup is enabled; disable ALLOW_ADMIN_SIGNUP once the first admin exists.")
    if settings.database_url.startswith("sqlite"):
        logger.warning("Using SQLite at %s; configure DATABASE_URL for production.", settings.database_url)
