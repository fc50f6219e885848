"""Middleware package for the sharing API."""

from src.middleware.correlation import CORRELATION_ID_HEADER, CorrelationIdMiddleware
from src.middleware.security_headers import SecurityHeadersMiddleware

__all__ = ["CorrelationIdMiddleware", "CORRELATION_ID_HEADER", "SecurityHeadersMiddleware"]
