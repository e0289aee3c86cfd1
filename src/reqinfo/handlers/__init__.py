"""
Request handlers.

    info.py   The request info endpoints (/, /ip, /ua, ..., /all.json)
"""

from .info import (
    ROUTES,
    register_routes,
    request_info,
    ip_handler,
    ua_handler,
    lang_handler,
    encoding_handler,
    mime_handler,
    forwarded_handler,
    all_handler,
    all_json_handler,
)

__all__ = [
    "ROUTES",
    "register_routes",
    "request_info",
    "ip_handler",
    "ua_handler",
    "lang_handler",
    "encoding_handler",
    "mime_handler",
    "forwarded_handler",
    "all_handler",
    "all_json_handler",
]
