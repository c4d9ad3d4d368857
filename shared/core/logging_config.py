"""
Structured logging configuration for the directory client
JSON records compatible with:
- ELK Stack
- CloudWatch Insights
- Datadog Log Management
"""

import logging
import logging.handlers
import os
import re
import sys
import json
import time
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from contextvars import ContextVar

import httpx

# Context variables for outbound request tracking
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_ID_HEADER = "X-Correlation-ID"


class StructuredFormatter(logging.Formatter):
    """JSON structured logging formatter"""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "@timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": os.getenv('SERVICE_NAME', 'customer-directory'),
            "environment": os.getenv('ENVIRONMENT', 'development'),
            "version": os.getenv('SERVICE_VERSION', '1.0.0'),
        }

        trace_context = self._get_trace_context(record)
        if trace_context:
            log_obj["trace"] = trace_context

        log_obj["location"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
            "module": record.module
        }

        if record.exc_info and record.exc_info[0] is not None:
            log_obj["error"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stacktrace": traceback.format_exception(*record.exc_info)
            }

        if hasattr(record, 'extra_fields'):
            log_obj["custom"] = record.extra_fields

        if hasattr(record, 'duration_ms'):
            log_obj["performance"] = {
                "duration_ms": record.duration_ms
            }

        return json.dumps(log_obj, default=str)

    def _get_trace_context(self, record: logging.LogRecord) -> Optional[Dict[str, Any]]:
        """Request id from the record (set by LoggerAdapter) or the current context"""
        request_id = getattr(record, 'request_id', None) or request_id_var.get()
        correlation_id = getattr(record, 'correlation_id', None) or correlation_id_var.get()

        context = {}
        if request_id:
            context["request_id"] = request_id
        if correlation_id:
            context["correlation_id"] = correlation_id
        return context or None


class PerformanceFilter(logging.Filter):
    """Filter to add performance metrics to log records"""

    def filter(self, record: logging.LogRecord) -> bool:
        duration = getattr(record, 'duration', None)
        if duration is not None:
            record.duration_ms = duration * 1000
        return True


class SecurityFilter(logging.Filter):
    """Filter to redact sensitive information from logs"""

    SENSITIVE_FIELDS = [
        'password', 'token', 'api_key', 'secret',
        'authorization', 'cookie', 'session'
    ]

    # keyword, separator, optional auth scheme, then the value that gets masked
    PATTERN = re.compile(
        r"\b(" + "|".join(SENSITIVE_FIELDS) + r")(\s*[=:]\s*|\s+)((?:bearer|basic)\s+)?[^\s,;]+",
        re.IGNORECASE,
    )

    def filter(self, record: logging.LogRecord) -> bool:
        if not isinstance(record.msg, str):
            return True
        message = record.getMessage()
        redacted = self.PATTERN.sub(
            lambda m: f"{m.group(1)}{m.group(2)}{m.group(3) or ''}***REDACTED***", message
        )
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def setup_logging(
    service_name: str,
    level: str = "INFO",
    enable_console: bool = True,
    enable_file: bool = False,
    log_file: Optional[str] = None
) -> None:
    """
    Setup structured logging for the client process

    Args:
        service_name: Name reported in every record
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_console: Enable stderr output
        enable_file: Enable file output
        log_file: Path to log file
    """
    os.environ['SERVICE_NAME'] = service_name

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers = []

    formatter = StructuredFormatter()

    # stdout is reserved for the rendered directory
    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(PerformanceFilter())
        console_handler.addFilter(SecurityFilter())
        root_logger.addHandler(console_handler)

    if enable_file and log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10485760,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(formatter)
        file_handler.addFilter(PerformanceFilter())
        file_handler.addFilter(SecurityFilter())
        root_logger.addHandler(file_handler)

    # Third-party loggers
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)

    root_logger.info(
        "Logging initialized",
        extra={
            'extra_fields': {
                'service': service_name,
                'level': level,
                'handlers': {
                    'console': enable_console,
                    'file': enable_file
                }
            }
        }
    )


class LoggerAdapter(logging.LoggerAdapter):
    """Injects the current request context into every record"""

    def process(self, msg, kwargs):
        extra = kwargs.get('extra', {})

        # An id passed explicitly for this record wins over the context
        request_id = request_id_var.get()
        if request_id:
            extra.setdefault('request_id', request_id)

        correlation_id = correlation_id_var.get()
        if correlation_id:
            extra.setdefault('correlation_id', correlation_id)

        kwargs['extra'] = extra
        return msg, kwargs


def get_logger(name: str) -> LoggerAdapter:
    """
    Get a logger instance with request context support

    Args:
        name: Logger name (usually __name__)
    """
    return LoggerAdapter(logging.getLogger(name), {})


def set_request_context(
    request_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> None:
    """Set request context for the current task"""
    if request_id:
        request_id_var.set(request_id)
    if correlation_id:
        correlation_id_var.set(correlation_id)


def generate_request_id() -> str:
    """Generate a unique request ID"""
    return str(uuid.uuid4())


class RequestLoggingHooks:
    """
    httpx event hooks that log every outbound request and response.

    Stamps an X-Request-ID header on each request and records the
    round-trip duration on the response log line.
    """

    def __init__(self, logger_name: str = __name__):
        self.logger = get_logger(logger_name)

    def as_event_hooks(self) -> Dict[str, list]:
        return {"request": [self.on_request], "response": [self.on_response]}

    async def on_request(self, request: httpx.Request) -> None:
        request_id = (
            request.headers.get(REQUEST_ID_HEADER)
            or request_id_var.get()
            or generate_request_id()
        )
        request.headers[REQUEST_ID_HEADER] = request_id
        correlation_id = correlation_id_var.get()
        if correlation_id and CORRELATION_ID_HEADER not in request.headers:
            request.headers[CORRELATION_ID_HEADER] = correlation_id
        request.extensions["started_at"] = time.monotonic()

        self.logger.info(
            f"Request started: {request.method} {request.url.path}",
            extra={
                'request_id': request_id,
                'extra_fields': {
                    'method': request.method,
                    'path': request.url.path,
                }
            }
        )

    async def on_response(self, response: httpx.Response) -> None:
        request = response.request
        started_at = request.extensions.get("started_at")
        duration_ms = (time.monotonic() - started_at) * 1000 if started_at else None

        self.logger.info(
            f"Request completed: {request.method} {request.url.path}",
            extra={
                'request_id': request.headers.get(REQUEST_ID_HEADER),
                'duration': duration_ms / 1000 if duration_ms is not None else None,
                'extra_fields': {
                    'method': request.method,
                    'path': request.url.path,
                    'status_code': response.status_code,
                    'duration_ms': duration_ms
                }
            }
        )
