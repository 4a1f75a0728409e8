"""
Utilities package for cannedns.

Contains common utility functions used across the cannedns codebase.
"""

from .logging_utils import (
    log_answer_event,
    log_connection_event,
    log_debug_operation,
    log_dropped_query,
    log_parse_event,
    log_query_event,
)

__all__ = [
    "log_query_event",
    "log_answer_event",
    "log_dropped_query",
    "log_connection_event",
    "log_parse_event",
    "log_debug_operation",
]
