# ==============================================================================
# MIDDLEWARE PACKAGE INITIALIZATION
# ==============================================================================

"""
Middleware Module
=================

Starlette middleware installed by the server:
- Request logging
- Security headers
"""

from minimal.middleware.request_logger import RequestLoggerMiddleware
from minimal.middleware.security import SecurityHeadersConfig, SecurityHeadersMiddleware

__all__ = [
    "RequestLoggerMiddleware",
    "SecurityHeadersConfig",
    "SecurityHeadersMiddleware",
]
