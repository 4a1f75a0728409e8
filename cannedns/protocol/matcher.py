"""Selects the entry that answers a query: first match in file order wins."""

import logging
from typing import Iterable, Optional

import dns.message

from ..entry import Entry, Transport
from . import codec

logger = logging.getLogger(__name__)


def entry_matches(
    entry: Entry, query: dns.message.Message, transport: Transport
) -> bool:
    """True when every active predicate of ``entry`` holds for ``query``.

    Inactive predicates are wildcards. The serial predicate looks at the canned
    reply's authority section, not at the query.
    """
    reply = entry.reply
    if entry.match_opcode and query.opcode() != reply.opcode():
        return False
    if entry.match_qtype and codec.get_qtype(query) != codec.get_qtype(reply):
        return False
    if entry.match_qname:
        query_owner = codec.get_owner(query)
        reply_owner = codec.get_owner(reply)
        if query_owner is None or reply_owner is None or query_owner != reply_owner:
            return False
    if entry.match_serial and codec.get_serial(reply) != entry.ixfr_soa_serial:
        return False
    if (
        entry.match_transport is not Transport.ANY
        and entry.match_transport is not transport
    ):
        return False
    return True


def find_match(
    entries: Iterable[Entry], query: dns.message.Message, transport: Transport
) -> Optional[Entry]:
    """Return the first entry matching ``query``, or None."""
    for entry in entries:
        if entry_matches(entry, query, transport):
            logger.debug(f"query matched {entry.describe()}")
            return entry
    return None
