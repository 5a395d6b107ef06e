"""
Structured logging configuration

Every record is emitted as one JSON object so log files can be shipped to
ELK / CloudWatch / Datadog without extra parsing. Console operations carry an
operation id (one per menu action) instead of an HTTP request id.
"""

import logging
import logging.handlers
import os
import sys
import json
import time
import traceback
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, Optional, TextIO
from contextvars import ContextVar
import uuid

from ordership.domain.errors import OrderShipmentError

# Context variables for operation tracking
operation_id_var: ContextVar[Optional[str]] = ContextVar('operation_id', default=None)
operation_name_var: ContextVar[Optional[str]] = ContextVar('operation_name', default=None)
operator_var: ContextVar[Optional[str]] = ContextVar('operator', default=None)

class StructuredFormatter(logging.Formatter):
    """JSON structured logging formatter"""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON"""

        log_obj = {
            "@timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self._get_service_name(),
            "environment": self._get_environment(),
            "version": self._get_version(),
        }

        trace_context = self._get_trace_context()
        if trace_context:
            log_obj["trace"] = trace_context

        log_obj["location"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
            "module": record.module
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
            log_obj["performance"] = {
                "duration_ms": record.duration_ms
            }

        return json.dumps(log_obj, default=str)

    def _get_service_name(self) -> str:
        return os.getenv('SERVICE_NAME', 'ordership')

    def _get_environment(self) -> str:
        return os.getenv('ENVIRONMENT', 'development')

    def _get_version(self) -> str:
        return os.getenv('SERVICE_VERSION', '1.0.0')

    def _get_trace_context(self) -> Optional[Dict[str, Any]]:
        """Collect the operation context of the current menu action"""
        operation_id = operation_id_var.get()
        operation_name = operation_name_var.get()
        operator = operator_var.get()

        if not any([operation_id, operation_name, operator]):
            return None

        context = {}
        if operation_id:
            context["operation_id"] = operation_id
        if operation_name:
            context["operation"] = operation_name
        if operator:
            context["operator"] = operator

        return context

class PerformanceFilter(logging.Filter):
    """Filter to add performance metrics to log records"""

    def filter(self, record: logging.LogRecord) -> bool:
        if hasattr(record, 'duration'):
            record.duration_ms = record.duration * 1000
        return True

class SecurityFilter(logging.Filter):
    """Filter to redact sensitive information from logs"""

    SENSITIVE_FIELDS = [
        'password', 'token', 'api_key', 'secret',
        'authorization', 'cookie', 'session'
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        for field in self.SENSITIVE_FIELDS:
            if field in message.lower() and isinstance(record.msg, str):
                record.msg = record.msg.replace(field, f"{field}=***REDACTED***")

        return True

def setup_logging(
    service_name: str,
    level: str = "INFO",
    enable_console: bool = True,
    enable_file: bool = False,
    log_file: Optional[str] = None,
    stream: TextIO = sys.stderr,
) -> None:
    """
    Setup structured logging for the application

    Args:
        service_name: Name reported in every record
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_console: Enable console output
        enable_file: Enable file output
        log_file: Path to log file
        stream: Console stream; stderr keeps the menu's stdout readable
    """
    os.environ['SERVICE_NAME'] = service_name

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers = []

    formatter = StructuredFormatter()

    if enable_console:
        console_handler = logging.StreamHandler(stream)
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

    if not root_logger.handlers:
        root_logger.addHandler(logging.NullHandler())

    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('alembic').setLevel(logging.WARNING)

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
    """
    Logger adapter to inject operation context into all log messages
    """

    def process(self, msg, kwargs):
        extra = kwargs.get('extra', {})

        operation_id = operation_id_var.get()
        if operation_id:
            extra['operation_id'] = operation_id

        operator = operator_var.get()
        if operator:
            extra['operator'] = operator

        kwargs['extra'] = extra
        return msg, kwargs

def get_logger(name: str) -> LoggerAdapter:
    """
    Get a logger instance with operation context support

    Args:
        name: Logger name (usually __name__)

    Returns:
        LoggerAdapter with context injection
    """
    base_logger = logging.getLogger(name)
    return LoggerAdapter(base_logger, {})

def set_operation_context(
    operation_id: Optional[str] = None,
    operation_name: Optional[str] = None,
    operator: Optional[str] = None
) -> None:
    """
    Set the context attached to every record logged during an operation

    Args:
        operation_id: Unique identifier of the current menu action
        operation_name: Human readable action name
        operator: Console user running the tool
    """
    if operation_id:
        operation_id_var.set(operation_id)
    if operation_name:
        operation_name_var.set(operation_name)
    if operator:
        operator_var.set(operator)

def clear_operation_context() -> None:
    operation_id_var.set(None)
    operation_name_var.set(None)
    operator_var.set(None)

def generate_operation_id() -> str:
    """Generate a unique operation ID"""
    return str(uuid.uuid4())

@contextmanager
def operation_logging(operation_name: str, operator: Optional[str] = None) -> Iterator[str]:
    """
    Log start, completion and failure of one console operation

    Yields the generated operation id. Exceptions are logged and re-raised;
    reporting them to the operator is the caller's job. Errors the operator
    caused (bad input, unknown ids) are warnings; anything else is an error
    with its stacktrace.
    """
    operation_id = generate_operation_id()
    set_operation_context(operation_id=operation_id, operation_name=operation_name, operator=operator)

    logger = get_logger(__name__)
    logger.info(
        f"Operation started: {operation_name}",
        extra={'extra_fields': {'operation': operation_name}}
    )

    start_time = time.time()
    try:
        yield operation_id
    except OrderShipmentError as e:
        logger.warning(
            f"Operation rejected: {operation_name}",
            extra={
                'extra_fields': {'operation': operation_name, 'kind': e.kind.value, 'reason': str(e)},
                'duration': time.time() - start_time
            }
        )
        raise
    except Exception:
        logger.error(
            f"Operation failed: {operation_name}",
            exc_info=True,
            extra={
                'extra_fields': {'operation': operation_name},
                'duration': time.time() - start_time
            }
        )
        raise
    else:
        logger.info(
            f"Operation completed: {operation_name}",
            extra={
                'extra_fields': {'operation': operation_name},
                'duration': time.time() - start_time
            }
        )
    finally:
        clear_operation_context()
