"""Data file grammar and parser."""

from .parser import DataFileParser, ParseContext, parse_lines, parse_text, read_datafile

__all__ = [
    "DataFileParser",
    "ParseContext",
    "parse_lines",
    "parse_text",
    "read_datafile",
]
