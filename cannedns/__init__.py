"""
cannedns package init.
Exports the data file parser, the canned reply server and the CLI entry point.
"""

import argparse
import asyncio
import datetime
import json
import logging
import os
import sys
from typing import List, NoReturn, Optional

from .config import ServerConfig
from .datafile import parse_text, read_datafile
from .entry import Entry, EntryList, Transport
from .exceptions import CannednsError, ConfigurationError, DataFileError
from .protocol.responder import build_response, get_answer
from .protocol.server import CannedServer

__version__ = "0.1.0"


class JSONFormatter(logging.Formatter):
    """JSON formatter carrying the query fields attached by the server."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.datetime.now().isoformat(),
            "level": record.levelname,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        for key in ("transport", "query_id", "sequence_number"):
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    """
    Send log records to standard output.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    use_json = os.environ.get("CANNEDNS_LOG_JSON", "false").lower() == "true"
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    if use_json:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
    else:
        logging.basicConfig(
            level=getattr(logging, level.upper()),
            stream=sys.stdout,
            format="%(message)s",
        )


def _fail(message: str) -> NoReturn:
    print(f"cannedns error: {message}")
    sys.exit(1)


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point: serve canned replies from a data file."""
    parser = argparse.ArgumentParser(
        prog="cannedns",
        description="Answers DNS queries with canned replies from the datafile.",
    )
    parser.add_argument("datafile", help="Data file with canned replies")
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=None,
        help="Listen on the specified port (default 53, or CANNEDNS_PORT)",
    )
    parser.add_argument("--host", default=None, help="Address to bind to")
    parser.add_argument(
        "--tcp-timeout",
        type=float,
        default=None,
        help="Close TCP connections that do not deliver a query in time",
    )
    parser.add_argument("--log-level", default=None, help="Logging level")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject a data file whose last entry has no ENTRY_END",
    )
    args = parser.parse_args(argv)

    try:
        config = ServerConfig.from_env()
        if args.port is not None:
            if args.port < 1:
                raise ConfigurationError(f"Invalid port {args.port}, use a number.")
            config.port = args.port
        if args.host is not None:
            config.host = args.host
        if args.tcp_timeout is not None:
            config.tcp_timeout = args.tcp_timeout
        if args.log_level is not None:
            config.log_level = args.log_level.upper()
        if not isinstance(getattr(logging, config.log_level, None), int):
            raise ConfigurationError(f"Unknown log level {config.log_level}")
        config.validate()
    except ConfigurationError as e:
        _fail(str(e))

    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)

    try:
        entries = read_datafile(args.datafile, strict=args.strict)
    except DataFileError as e:
        _fail(str(e))

    server = CannedServer(entries, config)
    logger.info(f"Listening on port {config.port}")
    try:
        asyncio.run(server.serve_forever())
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except OSError as e:
        _fail(f"cannot bind(): {e}")


__all__ = [
    "CannedServer",
    "CannednsError",
    "ConfigurationError",
    "DataFileError",
    "Entry",
    "EntryList",
    "ServerConfig",
    "Transport",
    "build_response",
    "get_answer",
    "main",
    "parse_text",
    "read_datafile",
    "setup_logging",
]
