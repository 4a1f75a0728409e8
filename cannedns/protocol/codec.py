"""
Thin layer over dnspython used by the data file parser, the matcher and the
server.

Keeps every direct use of the DNS codec in one place: building an empty canned
reply, decoding one resource record line, cloning a message, and the small
accessors the matcher needs (first question type and owner, authority serial).
"""

import logging
from typing import Optional, Tuple

import dns.exception
import dns.flags
import dns.message
import dns.name
import dns.opcode
import dns.rcode
import dns.rdata
import dns.rdataclass
import dns.rdatatype
import dns.rrset
import dns.tokenizer
import dns.ttl

from ..exceptions import ProtocolError

logger = logging.getLogger(__name__)

QUESTION = 0
ANSWER = 1
AUTHORITY = 2
ADDITIONAL = 3


class RecordSyntaxError(Exception):
    """A resource record line or domain name the codec could not decode."""


def new_reply() -> dns.message.Message:
    """Empty canned reply: id 0, QUERY, NOERROR, no flags, no records."""
    return dns.message.Message(id=0)


def parse_name(text: str, origin: Optional[dns.name.Name] = None) -> dns.name.Name:
    """Decode a domain name, relative names are made absolute under ``origin``."""
    if origin is None:
        origin = dns.name.root
    try:
        if text == "@":
            return origin
        return dns.name.from_text(text, origin)
    except dns.exception.DNSException as e:
        raise RecordSyntaxError(f"{_describe(e)}: {text}") from e


def parse_record(
    text: str,
    origin: Optional[dns.name.Name] = None,
    default_ttl: int = 0,
    previous_name: Optional[dns.name.Name] = None,
) -> dns.rrset.RRset:
    """Decode one resource record line into a single-record RRset.

    Format: ``[owner|@] [ttl] [class] type [rdata]`` with ttl and class in
    either order. Text that starts with whitespace has no owner and reuses
    ``previous_name`` (or the origin when there is none). The data file parser
    strips leading whitespace before calling this, so owner elision is only
    available to direct callers; every data file record names its owner.
    Without rdata the RRset is empty, which is how question section entries
    are written.

    Raises:
        RecordSyntaxError: the line is not a valid record.
    """
    if origin is None:
        origin = dns.name.root
    tok = dns.tokenizer.Tokenizer(text)
    try:
        token = tok.get(want_leading=True)
        if token.is_whitespace():
            name = previous_name if previous_name is not None else origin
        elif token.is_identifier():
            name = parse_name(token.value, origin)
        else:
            raise RecordSyntaxError(f"missing owner name: {text.strip()}")

        ttl, rdclass, token = _ttl_and_class(tok)
        if not token.is_identifier():
            raise RecordSyntaxError(f"missing record type: {text.strip()}")
        try:
            rdtype = dns.rdatatype.from_text(token.value)
        except dns.exception.DNSException as e:
            raise RecordSyntaxError(f"unknown record type {token.value}") from e
        if ttl is None:
            ttl = default_ttl

        rrset = dns.rrset.RRset(name, rdclass, rdtype)
        rrset.update_ttl(ttl)
        token = tok.get()
        if token.is_eol_or_eof():
            return rrset
        tok.unget(token)
        rdata = dns.rdata.from_text(
            rdclass, rdtype, tok, origin=origin, relativize=False
        )
        rrset.add(rdata, ttl)
        return rrset
    except RecordSyntaxError:
        raise
    except dns.exception.DNSException as e:
        raise RecordSyntaxError(f"{_describe(e)}: {text.strip()}") from e


def _ttl_and_class(
    tok: dns.tokenizer.Tokenizer,
) -> Tuple[Optional[int], int, dns.tokenizer.Token]:
    ttl: Optional[int] = None
    rdclass: Optional[int] = None
    token = tok.get()
    # ttl and class may appear in either order, each at most once
    for _ in range(2):
        if not token.is_identifier():
            break
        if ttl is None:
            try:
                ttl = dns.ttl.from_text(token.value)
                token = tok.get()
                continue
            except dns.ttl.BadTTL:
                pass
        if rdclass is None:
            try:
                rdclass = dns.rdataclass.from_text(token.value)
                token = tok.get()
                continue
            except dns.exception.DNSException:
                pass
        break
    if rdclass is None:
        rdclass = dns.rdataclass.IN
    return ttl, rdclass, token


def _describe(exc: Exception) -> str:
    text = str(exc)
    return text if text else exc.__class__.__name__


def append_record(
    message: dns.message.Message, section: int, rrset: dns.rrset.RRset
) -> None:
    """Append a record to a message section, keeping file order."""
    message.sections[section].append(rrset)


def clone_message(message: dns.message.Message) -> dns.message.Message:
    """Copy a message so the copy can be adjusted without touching the source."""
    clone = dns.message.Message(id=message.id)
    clone.flags = message.flags
    if message.edns >= 0:
        clone.use_edns(
            message.edns, message.ednsflags, message.payload, options=message.options
        )
    for index, section in enumerate(message.sections):
        clone.sections[index] = [rrset.copy() for rrset in section]
    return clone


def decode(wire: bytes) -> dns.message.Message:
    """
    Decode an inbound query.

    Raises:
        ProtocolError: the bytes are not a DNS message.
    """
    try:
        return dns.message.from_wire(wire)
    except dns.exception.DNSException as e:
        raise ProtocolError(
            f"Got bad packet: {_describe(e)}", {"length": len(wire)}, e
        ) from e


def encode(message: dns.message.Message) -> bytes:
    """
    Encode an outbound reply.

    Raises:
        ProtocolError: the message cannot be rendered.
    """
    try:
        return message.to_wire()
    except dns.exception.DNSException as e:
        raise ProtocolError(f"Error creating answer: {_describe(e)}", None, e) from e


def first_question(message: dns.message.Message) -> Optional[dns.rrset.RRset]:
    if not message.question:
        return None
    return message.question[0]


def get_qtype(message: dns.message.Message) -> int:
    """Type of the first question, 0 when there is none."""
    question = first_question(message)
    if question is None:
        return 0
    return int(question.rdtype)


def get_owner(message: dns.message.Message) -> Optional[dns.name.Name]:
    question = first_question(message)
    if question is None:
        return None
    return question.name


def get_serial(message: dns.message.Message) -> int:
    """SOA serial of the first authority record, 0 if there is no such value."""
    if not message.authority:
        return 0
    rrset = message.authority[0]
    if rrset.rdtype != dns.rdatatype.SOA or len(rrset) == 0:
        return 0
    serial = int(next(iter(rrset)).serial)
    logger.debug(f"found serial {serial} in msg")
    return serial


def question_text(message: dns.message.Message) -> str:
    """Render the first question like a zone file line, for logs."""
    question = first_question(message)
    if question is None:
        return "(no question)"
    rdclass = dns.rdataclass.to_text(question.rdclass)
    rdtype = dns.rdatatype.to_text(question.rdtype)
    return f"{question.name} {rdclass} {rdtype}"


def set_opcode(message: dns.message.Message, opcode: int) -> None:
    message.set_opcode(opcode)


def set_rcode(message: dns.message.Message, rcode: int) -> None:
    message.set_rcode(rcode)


def set_flag(message: dns.message.Message, flag: int) -> None:
    message.flags |= flag
