"""
MATCH, REPLY, ADJUST and SECTION line grammars.

Each interpreter receives a ``LineCursor`` positioned after its directive
keyword and applies every keyword on the line to the open entry. Keywords are
looked up in ordered tables; the first keyword that is a textual prefix of the
remaining line wins.
"""

import logging
from typing import Callable, Tuple

import dns.flags
import dns.opcode
import dns.rcode

from ..entry import Entry, Transport
from ..protocol import codec
from .grammar import GrammarError, LineCursor

logger = logging.getLogger(__name__)

SERIAL_MAX = 0xFFFFFFFF

Action = Callable[[Entry], None]


def _set_match_opcode(entry: Entry) -> None:
    entry.match_opcode = True


def _set_match_qtype(entry: Entry) -> None:
    entry.match_qtype = True


def _set_match_qname(entry: Entry) -> None:
    entry.match_qname = True


def _set_transport(transport: Transport) -> Action:
    def action(entry: Entry) -> None:
        entry.match_transport = transport

    return action


def _opcode(opcode: int) -> Action:
    def action(entry: Entry) -> None:
        codec.set_opcode(entry.reply, opcode)

    return action


def _rcode(rcode: int) -> Action:
    def action(entry: Entry) -> None:
        codec.set_rcode(entry.reply, rcode)

    return action


def _flag(flag: int) -> Action:
    def action(entry: Entry) -> None:
        codec.set_flag(entry.reply, flag)

    return action


def _set_copy_id(entry: Entry) -> None:
    entry.copy_id = True


# "serial" is handled separately since it takes a value
MATCH_KEYWORDS: Tuple[Tuple[str, Action], ...] = (
    ("opcode", _set_match_opcode),
    ("qtype", _set_match_qtype),
    ("qname", _set_match_qname),
    ("UDP", _set_transport(Transport.UDP)),
    ("TCP", _set_transport(Transport.TCP)),
)

REPLY_KEYWORDS: Tuple[Tuple[str, Action], ...] = (
    # opcodes
    ("QUERY", _opcode(dns.opcode.QUERY)),
    ("IQUERY", _opcode(dns.opcode.IQUERY)),
    ("STATUS", _opcode(dns.opcode.STATUS)),
    ("NOTIFY", _opcode(dns.opcode.NOTIFY)),
    ("UPDATE", _opcode(dns.opcode.UPDATE)),
    # rcodes
    ("NOERROR", _rcode(dns.rcode.NOERROR)),
    ("FORMERR", _rcode(dns.rcode.FORMERR)),
    ("SERVFAIL", _rcode(dns.rcode.SERVFAIL)),
    ("NXDOMAIN", _rcode(dns.rcode.NXDOMAIN)),
    ("NOTIMPL", _rcode(dns.rcode.NOTIMP)),
    ("REFUSED", _rcode(dns.rcode.REFUSED)),
    ("YXDOMAIN", _rcode(dns.rcode.YXDOMAIN)),
    ("YXRRSET", _rcode(dns.rcode.YXRRSET)),
    ("NXRRSET", _rcode(dns.rcode.NXRRSET)),
    ("NOTAUTH", _rcode(dns.rcode.NOTAUTH)),
    ("NOTZONE", _rcode(dns.rcode.NOTZONE)),
    # flags
    ("QR", _flag(dns.flags.QR)),
    ("AA", _flag(dns.flags.AA)),
    ("TC", _flag(dns.flags.TC)),
    ("RD", _flag(dns.flags.RD)),
    ("CD", _flag(dns.flags.CD)),
    ("RA", _flag(dns.flags.RA)),
    ("AD", _flag(dns.flags.AD)),
)

ADJUST_KEYWORDS: Tuple[Tuple[str, Action], ...] = (("copy_id", _set_copy_id),)

SECTION_KEYWORDS: Tuple[Tuple[str, int], ...] = (
    ("QUESTION", codec.QUESTION),
    ("ANSWER", codec.ANSWER),
    ("AUTHORITY", codec.AUTHORITY),
    ("ADDITIONAL", codec.ADDITIONAL),
)


def _apply_keyword(
    cursor: LineCursor, table: Tuple[Tuple[str, Action], ...], entry: Entry
) -> bool:
    for keyword, action in table:
        if cursor.try_consume_keyword(keyword):
            action(entry)
            return True
    return False


def match_line(cursor: LineCursor, entry: Entry) -> None:
    """Interpret the rest of a MATCH line."""
    while not cursor.at_end():
        if _apply_keyword(cursor, MATCH_KEYWORDS, entry):
            continue
        if cursor.try_consume_keyword("serial"):
            if cursor.peek() not in ("=", ":"):
                raise GrammarError(f"expected = or : in MATCH: {cursor.text.strip()}")
            cursor.advance()
            cursor.skip_whitespace()
            entry.match_serial = True
            entry.ixfr_soa_serial = cursor.read_unsigned(SERIAL_MAX)
            continue
        raise GrammarError(f"could not parse MATCH: '{cursor.rest()}'")


def reply_line(cursor: LineCursor, entry: Entry) -> None:
    """Interpret the rest of a REPLY line."""
    while not cursor.at_end():
        if not _apply_keyword(cursor, REPLY_KEYWORDS, entry):
            raise GrammarError(f"could not parse REPLY: '{cursor.rest()}'")


def adjust_line(cursor: LineCursor, entry: Entry) -> None:
    """Interpret the rest of an ADJUST line."""
    while not cursor.at_end():
        if not _apply_keyword(cursor, ADJUST_KEYWORDS, entry):
            raise GrammarError(f"could not parse ADJUST: '{cursor.rest()}'")


def section_line(cursor: LineCursor) -> int:
    """Return the section named on a SECTION line."""
    for keyword, section in SECTION_KEYWORDS:
        if cursor.try_consume_keyword(keyword):
            return section
    raise GrammarError(f"bad section {cursor.rest()}")
