"""Shared core utilities.

Provides the structured logging used by the directory client.
"""

from .logging_config import (
    setup_logging,
    get_logger,
    RequestLoggingHooks,
    set_request_context,
    generate_request_id,
    LoggerAdapter,
    REQUEST_ID_HEADER,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "RequestLoggingHooks",
    "set_request_context",
    "generate_request_id",
    "LoggerAdapter",
    "REQUEST_ID_HEADER",
]
