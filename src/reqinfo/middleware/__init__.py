"""
Middleware for cross-cutting concerns around the router.

    base.py      Middleware ABC and MiddlewarePipeline
    logging.py   Access log lines on "reqinfo.access"
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "RequestLog",
]
