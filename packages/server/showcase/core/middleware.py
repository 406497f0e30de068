"""
Request middleware: environment gate and security headers.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from urllib.parse import urlencode

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.types import ASGIApp

from showcase.core.environment import Mode
from showcase.core.validation import EnvironmentValidator

log = structlog.get_logger()

# ---------------------------------------------------------------------------
# Environment Gate
# ---------------------------------------------------------------------------

STATIC_EXTENSIONS = (
    ".js", ".css", ".map", ".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp",
    ".ico", ".woff", ".woff2", ".ttf", ".eot", ".txt", ".xml",
)

SKIP_PREFIXES = (
    "/static/",
    "/api/",
    "/favicon.ico",
    "/robots.txt",
    "/sitemap.xml",
    "/.well-known/",
)


def should_skip_validation(path: str, error_path: str = "/env-error") -> bool:
    """Static assets, API routes and the error page itself bypass the gate."""
    if path.lower().endswith(STATIC_EXTENSIONS):
        return True
    if path.startswith(error_path):
        return True
    return path.startswith(SKIP_PREFIXES)


def error_redirect_url(
    error_path: str,
    mode: Mode,
    errors: list[str],
    warnings: list[str],
    now: datetime | None = None,
) -> str:
    """Build the error-page URL. Only development gets the details."""
    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    if mode is Mode.DEVELOPMENT:
        params = {
            "errors": json.dumps(errors),
            "warnings": json.dumps(warnings),
            "timestamp": timestamp,
        }
    else:
        params = {"production": "true", "timestamp": timestamp}
    return f"{error_path}?{urlencode(params)}"


class EnvironmentGateMiddleware(BaseHTTPMiddleware):
    """
    Redirect page requests to the configuration-error page while the
    environment is invalid.

    Skipped for:
    - Static assets and API routes (APIs validate on their own)
    - The error page (avoids a redirect loop)
    - Everything during the build phase
    """

    def __init__(
        self,
        app: ASGIApp,
        validator: EnvironmentValidator,
        *,
        error_path: str = "/env-error",
        build_phase: bool = False,
    ):
        super().__init__(app)
        self.validator = validator
        self.error_path = error_path
        self.build_phase = build_phase
        self.warnings_logged = False

    async def dispatch(self, request: Request, call_next) -> Response:
        if self.build_phase or should_skip_validation(request.url.path, self.error_path):
            return await call_next(request)

        result = self.validator.current()
        if not result.is_valid:
            log.error(
                "env_gate.validation_failed",
                path=request.url.path,
                errors=result.errors,
            )
            url = error_redirect_url(
                self.error_path, self.validator.mode, result.errors, result.warnings
            )
            return RedirectResponse(url=url, status_code=307)

        if result.warnings and not self.warnings_logged:
            log.warning("env_gate.configuration_warnings", warnings=result.warnings)
            self.warnings_logged = True

        return await call_next(request)


# ---------------------------------------------------------------------------
# Security Headers
# ---------------------------------------------------------------------------

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

PRODUCTION_HEADERS = {
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains; preload",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach security headers to every response."""

    def __init__(self, app: ASGIApp, *, production: bool = False):
        super().__init__(app)
        self.headers = dict(SECURITY_HEADERS)
        if production:
            self.headers.update(PRODUCTION_HEADERS)

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for header, value in self.headers.items():
            response.headers[header] = value
        return response
