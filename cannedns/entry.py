"""Canned match/reply entries loaded from a data file."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional

import dns.message

from .protocol.codec import new_reply, question_text


class Transport(Enum):
    """Transport a query arrived on. ``ANY`` is the wildcard for matching."""

    ANY = "any"
    UDP = "UDP"
    TCP = "TCP"


@dataclass
class Entry:
    """One canned rule: match predicates, the canned reply and adjustments."""

    match_opcode: bool = False
    match_qtype: bool = False
    match_qname: bool = False
    match_serial: bool = False
    ixfr_soa_serial: int = 0
    match_transport: Transport = Transport.ANY
    reply: dns.message.Message = field(default_factory=new_reply)
    copy_id: bool = False
    lineno: Optional[int] = None

    def active_predicates(self) -> List[str]:
        active = []
        if self.match_opcode:
            active.append("opcode")
        if self.match_qtype:
            active.append("qtype")
        if self.match_qname:
            active.append("qname")
        if self.match_serial:
            active.append(f"serial={self.ixfr_soa_serial}")
        if self.match_transport is not Transport.ANY:
            active.append(self.match_transport.value)
        return active

    def describe(self) -> str:
        """Short one-line description used in startup and debug logs."""
        predicates = " ".join(self.active_predicates()) or "*"
        where = f"line {self.lineno}" if self.lineno is not None else "entry"
        adjust = " copy_id" if self.copy_id else ""
        return f"{where}: MATCH {predicates} -> {question_text(self.reply)}{adjust}"


class EntryList:
    """Entries in file order.

    Order decides which entry answers a query (first match wins), so entries
    are never reordered or deduplicated. The list is not modified once the
    parser has finished with it.
    """

    def __init__(self, filename: str = "<string>") -> None:
        self.filename = filename
        self.completed = 0
        self._entries: List[Entry] = []

    def append(self, entry: Entry) -> None:
        self._entries.append(entry)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> Entry:
        return self._entries[index]

    def summary(self) -> str:
        return f"Read {self.completed} entries from {self.filename}"
