"""Shared core utilities.

Provides structured logging for the coordinators and the console menu.
"""

from .logging_config import (
    setup_logging,
    get_logger,
    operation_logging,
    set_operation_context,
    clear_operation_context,
    generate_operation_id,
    LoggerAdapter,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "operation_logging",
    "set_operation_context",
    "clear_operation_context",
    "generate_operation_id",
    "LoggerAdapter",
]
