"""
Security headers middleware.

Adds the usual protective headers (X-Frame-Options, X-Content-Type-Options,
X-XSS-Protection, Referrer-Policy and, when serving TLS, HSTS) to every
response.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp


@dataclass
class SecurityHeadersConfig:
    """
    Configuration for security headers.

    Attributes:
        enable_hsts: Enable HTTP Strict Transport Security
        hsts_max_age: HSTS max-age in seconds (default: 1 year)
        x_frame_options: X-Frame-Options value (DENY, SAMEORIGIN, or None)
        x_content_type_options: Whether to send X-Content-Type-Options: nosniff
        x_xss_protection: X-XSS-Protection value
        referrer_policy: Referrer-Policy header value
    """

    enable_hsts: bool = False
    hsts_max_age: int = 31536000  # 1 year
    x_frame_options: str | None = "SAMEORIGIN"
    x_content_type_options: bool = True
    x_xss_protection: str = "1; mode=block"
    referrer_policy: str = "strict-origin-when-cross-origin"

    def headers(self) -> dict[str, str]:
        headers = {"X-XSS-Protection": self.x_xss_protection}
        if self.x_content_type_options:
            headers["X-Content-Type-Options"] = "nosniff"
        if self.x_frame_options:
            headers["X-Frame-Options"] = self.x_frame_options
        if self.referrer_policy:
            headers["Referrer-Policy"] = self.referrer_policy
        if self.enable_hsts:
            headers["Strict-Transport-Security"] = f"max-age={self.hsts_max_age}"
        return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Set the configured security headers unless a route already set them."""

    def __init__(self, app: ASGIApp, config: SecurityHeadersConfig | None = None) -> None:
        super().__init__(app)
        self.config = config or SecurityHeadersConfig()
        self._headers = self.config.headers()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for name, value in self._headers.items():
            response.headers.setdefault(name, value)
        return response
