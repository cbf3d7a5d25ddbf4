"""Middleware for the ThiQaX verification service."""

from .error_handler import setup_exception_handlers
from .auth import AuthMiddleware
from .logging import LoggingMiddleware

__all__ = ["AuthMiddleware", "setup_exception_handlers", "LoggingMiddleware"]
