"""Builds the outbound message from a matched entry."""

from typing import Iterable, Optional

import dns.message

from ..entry import Entry, Transport
from . import codec
from .matcher import find_match


def build_response(entry: Entry, query: dns.message.Message) -> dns.message.Message:
    """Clone the canned reply and apply the entry's adjustments.

    The entry's own reply is left untouched so it can answer later queries.
    """
    answer = codec.clone_message(entry.reply)
    if entry.copy_id:
        answer.id = query.id
    return answer


def get_answer(
    entries: Iterable[Entry], query: dns.message.Message, transport: Transport
) -> Optional[dns.message.Message]:
    """Answer for ``query``, or None when no entry matches."""
    entry = find_match(entries, query, transport)
    if entry is None:
        return None
    return build_response(entry, query)
