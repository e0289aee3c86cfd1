"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

One line per request on the "reqinfo.access" logger, in a shape close to
the Apache combined log format, plus the handling time:

    ::ffff:192.0.2.10 - - [19/Oct/2026:10:00:00 +0000] "GET /ua" 200 12 "-" "curl/8.5.0" 0.41ms

The client address is logged exactly as the dual-stack socket reports
it, so IPv4 clients appear as IPv4-mapped addresses.

=============================================================================
"""

import logging
import time
from dataclasses import dataclass

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("reqinfo.access")


@dataclass
class RequestLog:
    """Access log entry for one request, in Apache combined log order."""

    method: str
    path: str
    client_ip: str
    referer: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} "{self.referer}" "{self.user_agent}" '
            f'{self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware.

    Should be added first so its timing covers everything below it.

    Args:
        log_level: Level for access lines (default INFO).
    """

    def __init__(self, log_level: int = logging.INFO):
        self.log_level = log_level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        start_time = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000

        entry = RequestLog(
            method=request.method,
            path=request.path,
            client_ip=request.client_ip,
            referer=request.get_header("referer") or "-",
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        logger.log(self.log_level, entry.to_text())
        return response
