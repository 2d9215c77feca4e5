"""
Structured JSON logging for the storefront services.

Every record carries the service name, environment and, while a request
is being handled, the request/correlation/admin identifiers set by
``RequestLoggingMiddleware`` and the admin authenticators.
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
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

# Context variables for request tracking
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar('user_id', default=None)

class StructuredFormatter(logging.Formatter):
    """Format log records as one JSON object per line"""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "@timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": os.getenv('SERVICE_NAME', 'unknown-service'),
            "environment": os.getenv('ENVIRONMENT', 'development'),
            "version": os.getenv('SERVICE_VERSION', '1.0.0'),
        }

        trace_context = self._get_trace_context()
        if trace_context:
            log_obj["trace"] = trace_context

        log_obj["location"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }

        if record.exc_info:
            log_obj["error"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stacktrace": traceback.format_exception(*record.exc_info)
            }

        if hasattr(record, 'extra_fields'):
            log_obj["custom"] = record.extra_fields

        if hasattr(record, 'duration_ms'):
            log_obj["performance"] = {"duration_ms": record.duration_ms}

        return json.dumps(log_obj, default=str)

    def _get_trace_context(self) -> Optional[Dict[str, Any]]:
        context = {
            "request_id": request_id_var.get(),
            "correlation_id": correlation_id_var.get(),
            "user_id": user_id_var.get(),
        }
        context = {k: v for k, v in context.items() if v}
        return context or None

class SecurityFilter(logging.Filter):
    """Redact secret-looking key=value pairs from messages and structured fields"""

    SENSITIVE_KEYS = (
        'password', 'token', 'api_key', 'secret',
        'signature', 'authorization', 'cookie',
    )
    _pattern = re.compile(
        r"(?i)\b([\w-]*(?:%s)[\w-]*)\s*[=:]\s*([^\s,;]+)" % "|".join(SENSITIVE_KEYS)
    )

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self._pattern.sub(r"\1=***REDACTED***", record.msg)
        extra_fields = getattr(record, 'extra_fields', None)
        if isinstance(extra_fields, dict):
            record.extra_fields = {
                key: "***REDACTED***" if self._is_sensitive(key) else value
                for key, value in extra_fields.items()
            }
        return True

    def _is_sensitive(self, key: str) -> bool:
        lowered = key.lower()
        return any(marker in lowered for marker in self.SENSITIVE_KEYS)

def setup_logging(
    service_name: str,
    level: str = "INFO",
    enable_console: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Install the JSON formatter on the root logger

    Args:
        service_name: Name reported in every record
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_console: Log to stdout
        log_file: Optional path of a rotating log file
    """
    os.environ['SERVICE_NAME'] = service_name

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers = []

    formatter = StructuredFormatter()
    handlers = []
    if enable_console:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10485760,  # 10MB
            backupCount=5
        ))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(SecurityFilter())
        root_logger.addHandler(handler)

    logging.getLogger('uvicorn').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

    root_logger.info(
        "Logging initialized",
        extra={'extra_fields': {'service': service_name, 'level': level, 'file': log_file}}
    )

class LoggerAdapter(logging.LoggerAdapter):
    """Pass ``extra`` through untouched so ``extra_fields`` reaches the formatter"""

    def process(self, msg, kwargs):
        kwargs.setdefault('extra', {})
        return msg, kwargs

def get_logger(name: str) -> LoggerAdapter:
    return LoggerAdapter(logging.getLogger(name), {})

def set_request_context(
    request_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
    user_id: Optional[str] = None
) -> None:
    if request_id:
        request_id_var.set(request_id)
    if correlation_id:
        correlation_id_var.set(correlation_id)
    if user_id:
        user_id_var.set(user_id)

def generate_request_id() -> str:
    return str(uuid.uuid4())

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every request with its duration and echo X-Request-ID back
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get('X-Request-ID') or generate_request_id()
        set_request_context(
            request_id=request_id,
            correlation_id=request.headers.get('X-Correlation-ID')
        )

        logger = get_logger(__name__)
        fields = {'method': request.method, 'path': request.url.path}
        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                exc_info=True,
                extra={'extra_fields': {**fields, 'duration_ms': (time.time() - start_time) * 1000}}
            )
            raise

        logger.info(
            f"Request completed: {request.method} {request.url.path}",
            extra={'extra_fields': {
                **fields,
                'status_code': response.status_code,
                'duration_ms': (time.time() - start_time) * 1000,
            }}
        )
        response.headers['X-Request-ID'] = request_id
        return response
