"""
Middleware components for the mentoring API
"""

from .request_logging import RequestLoggingMiddleware
from .security import SecurityHeadersMiddleware

__all__ = ["RequestLoggingMiddleware", "SecurityHeadersMiddleware"]
