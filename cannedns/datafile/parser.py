"""
Data file parser.

Reads a canned reply file top to bottom in a single pass and produces an
``EntryList``. File scoped state ($ORIGIN, $TTL, the target section and the
owner of the previous record) lives in a ``ParseContext`` that is threaded
through the pass; nothing is kept at module level.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

import dns.name

from ..entry import Entry, EntryList
from ..exceptions import DataFileError
from ..protocol import codec
from ..utils.logging_utils import log_parse_event
from .directives import adjust_line, match_line, reply_line, section_line
from .grammar import GrammarError, LineCursor

logger = logging.getLogger(__name__)

TTL_MAX = 0xFFFFFFFF


@dataclass
class ParseContext:
    """Mutable state of one parsing pass."""

    filename: str = "<string>"
    lineno: int = 0
    origin: Optional[dns.name.Name] = None
    default_ttl: int = 0
    section: int = codec.QUESTION
    previous_name: Optional[dns.name.Name] = None
    current: Optional[Entry] = None
    entry_count: int = 0

    def error(
        self, message: str, original_exception: Optional[Exception] = None
    ) -> DataFileError:
        return DataFileError(
            message,
            filename=self.filename,
            lineno=self.lineno,
            original_exception=original_exception,
        )


class DataFileParser:
    """Turns data file lines into an ordered list of entries.

    Args:
        strict: treat a missing ENTRY_END at end of file as a fatal error.
            By default the unterminated entry is kept and a warning is logged.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict

    def parse_lines(
        self, lines: Iterable[str], filename: str = "<string>"
    ) -> EntryList:
        ctx = ParseContext(filename=filename)
        entries = EntryList(filename)
        for line in lines:
            ctx.lineno += 1
            self._parse_line(ctx, entries, line)

        if ctx.current is not None:
            message = f"entry from line {ctx.current.lineno} has no ENTRY_END"
            if self.strict:
                raise DataFileError(message, filename=filename, lineno=ctx.lineno)
            logger.warning(f"{filename}: {message}")

        entries.completed = ctx.entry_count
        log_parse_event(logger, entries.summary())
        return entries

    def _parse_line(self, ctx: ParseContext, entries: EntryList, line: str) -> None:
        cursor = LineCursor(line)
        cursor.skip_whitespace()
        if cursor.at_end():
            return

        if cursor.try_consume_keyword("ENTRY_BEGIN"):
            if ctx.current is not None:
                raise ctx.error("previous entry does not ENTRY_END")
            ctx.current = Entry(lineno=ctx.lineno)
            ctx.section = codec.QUESTION
            entries.append(ctx.current)
            return
        if cursor.try_consume_keyword("$ORIGIN"):
            ctx.origin = self._origin(ctx, cursor)
            return
        if cursor.try_consume_keyword("$TTL"):
            try:
                ctx.default_ttl = cursor.read_unsigned(TTL_MAX)
            except GrammarError as e:
                raise ctx.error(f"bad $TTL: {e}", e) from e
            return

        entry = ctx.current
        if entry is None:
            raise ctx.error(f"expected ENTRY_BEGIN but got {line.strip()}")

        try:
            if cursor.try_consume_keyword("MATCH"):
                match_line(cursor, entry)
            elif cursor.try_consume_keyword("REPLY"):
                reply_line(cursor, entry)
            elif cursor.try_consume_keyword("ADJUST"):
                adjust_line(cursor, entry)
            elif cursor.try_consume_keyword("SECTION"):
                ctx.section = section_line(cursor)
            elif cursor.try_consume_keyword("ENTRY_END"):
                ctx.current = None
                ctx.entry_count += 1
            else:
                self._record(ctx, entry, cursor.rest())
        except GrammarError as e:
            raise ctx.error(str(e), e) from e

    def _origin(self, ctx: ParseContext, cursor: LineCursor) -> dns.name.Name:
        text = cursor.read_token()
        if not text:
            raise ctx.error("$ORIGIN without a domain name")
        logger.debug(f"parsing '{text}'")
        try:
            return codec.parse_name(text)
        except codec.RecordSyntaxError as e:
            raise ctx.error(str(e), e) from e

    def _record(self, ctx: ParseContext, entry: Entry, text: str) -> None:
        try:
            rrset = codec.parse_record(
                text, ctx.origin, ctx.default_ttl, ctx.previous_name
            )
        except codec.RecordSyntaxError as e:
            raise ctx.error(str(e), e) from e
        ctx.previous_name = rrset.name
        codec.append_record(entry.reply, ctx.section, rrset)


def parse_lines(
    lines: Iterable[str], filename: str = "<string>", strict: bool = False
) -> EntryList:
    return DataFileParser(strict=strict).parse_lines(lines, filename)


def parse_text(
    text: str, filename: str = "<string>", strict: bool = False
) -> EntryList:
    return parse_lines(text.splitlines(keepends=True), filename, strict)


def read_datafile(path: Union[str, Path], strict: bool = False) -> EntryList:
    """
    Read and parse a data file.

    Args:
        path: Path to the data file
        strict: Reject a final entry that has no ENTRY_END

    Returns:
        The entries in file order

    Raises:
        DataFileError: the file cannot be read or is malformed
    """
    filename = str(path)
    logger.info(f"Reading datafile {filename}")
    try:
        with open(filename, "r", encoding="utf-8", errors="replace") as f:
            return parse_lines(f, filename, strict)
    except OSError as e:
        raise DataFileError(
            f"could not open file {filename}: {e.strerror or e}",
            original_exception=e,
        ) from e
