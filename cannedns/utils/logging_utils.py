"""
Centralized logging utilities for cannedns.

Provides standardized logging functions for the query path and data file
loading so that log lines keep one format across the codebase.
"""

import logging
from typing import Any


def log_query_event(
    logger: logging.Logger,
    sequence: int,
    query_id: int,
    transport: str,
    length: int,
    question: str,
) -> None:
    """Log a decoded inbound query."""
    logger.info(
        f"query {sequence}: id {query_id}: {transport} {length} bytes: {question}",
        extra={
            "sequence_number": sequence,
            "query_id": query_id,
            "transport": transport,
        },
    )


def log_answer_event(logger: logging.Logger, size: int) -> None:
    """Log the size of an encoded answer."""
    logger.info(f"Answer packet size: {size} bytes.")


def log_dropped_query(logger: logging.Logger, transport: str, reason: str) -> None:
    """Log a query that gets no answer."""
    logger.warning(f"[{transport}] dropped query: {reason}")


def log_connection_event(
    logger: logging.Logger, event_type: str, host: str = "", port: int = 0
) -> None:
    """Log connection events with consistent format."""
    if host and port:
        logger.info(f"[CONNECTION] {event_type} - {host}:{port}")
    else:
        logger.info(f"[CONNECTION] {event_type}")


def log_parse_event(logger: logging.Logger, details: str) -> None:
    logger.info(f"[DATAFILE] {details}")


def log_debug_operation(
    logger: logging.Logger, operation: str, details: Any = None
) -> None:
    """Log debug information for operations."""
    if details is not None:
        logger.debug(f"{operation}: {details}")
    else:
        logger.debug(f"{operation}")
