import dns.flags
import dns.opcode
import dns.rcode
import pytest

from cannedns.datafile.directives import (
    adjust_line,
    match_line,
    reply_line,
    section_line,
)
from cannedns.datafile.grammar import GrammarError, LineCursor
from cannedns.entry import Entry, Transport
from cannedns.protocol import codec


@pytest.fixture
def entry():
    return Entry()


def test_new_entry_is_all_wildcards(entry):
    assert not entry.match_opcode
    assert not entry.match_qtype
    assert not entry.match_qname
    assert not entry.match_serial
    assert entry.match_transport is Transport.ANY
    assert not entry.copy_id
    assert entry.reply.id == 0
    assert entry.active_predicates() == []


class TestMatchLine:
    def test_predicates(self, entry):
        match_line(LineCursor("opcode qtype qname\n"), entry)
        assert entry.match_opcode and entry.match_qtype and entry.match_qname
        assert not entry.match_serial

    @pytest.mark.parametrize(
        "text,transport", [("UDP", Transport.UDP), ("TCP", Transport.TCP)]
    )
    def test_transport(self, entry, text, transport):
        match_line(LineCursor(text), entry)
        assert entry.match_transport is transport

    @pytest.mark.parametrize("text", ["serial=1023", "serial:1023", "serial = 1023"])
    def test_serial(self, entry, text):
        match_line(LineCursor(text), entry)
        assert entry.match_serial
        assert entry.ixfr_soa_serial == 1023

    def test_later_serial_overwrites(self, entry):
        match_line(LineCursor("serial=1 serial=2"), entry)
        assert entry.ixfr_soa_serial == 2

    def test_repeated_keyword_is_harmless(self, entry):
        match_line(LineCursor("qname qname ; twice"), entry)
        assert entry.match_qname

    def test_serial_without_separator(self, entry):
        with pytest.raises(GrammarError, match="expected = or :"):
            match_line(LineCursor("serial 100"), entry)

    def test_serial_out_of_range(self, entry):
        with pytest.raises(GrammarError, match="out of range"):
            match_line(LineCursor("serial=4294967296"), entry)

    def test_unknown_keyword_names_remainder(self, entry):
        with pytest.raises(GrammarError, match="could not parse MATCH: 'bogus qname'"):
            match_line(LineCursor("qtype bogus qname"), entry)


class TestReplyLine:
    def test_flags(self, entry):
        reply_line(LineCursor("QR AA TC RD CD RA AD"), entry)
        for flag in (
            dns.flags.QR,
            dns.flags.AA,
            dns.flags.TC,
            dns.flags.RD,
            dns.flags.CD,
            dns.flags.RA,
            dns.flags.AD,
        ):
            assert entry.reply.flags & flag

    @pytest.mark.parametrize(
        "text,opcode",
        [
            ("QUERY", dns.opcode.QUERY),
            ("IQUERY", dns.opcode.IQUERY),
            ("STATUS", dns.opcode.STATUS),
            ("NOTIFY", dns.opcode.NOTIFY),
            ("UPDATE", dns.opcode.UPDATE),
        ],
    )
    def test_opcodes(self, entry, text, opcode):
        reply_line(LineCursor(text), entry)
        assert entry.reply.opcode() == opcode

    @pytest.mark.parametrize(
        "text,rcode",
        [
            ("NOERROR", dns.rcode.NOERROR),
            ("FORMERR", dns.rcode.FORMERR),
            ("SERVFAIL", dns.rcode.SERVFAIL),
            ("NXDOMAIN", dns.rcode.NXDOMAIN),
            ("NOTIMPL", dns.rcode.NOTIMP),
            ("REFUSED", dns.rcode.REFUSED),
            ("YXDOMAIN", dns.rcode.YXDOMAIN),
            ("YXRRSET", dns.rcode.YXRRSET),
            ("NXRRSET", dns.rcode.NXRRSET),
            ("NOTAUTH", dns.rcode.NOTAUTH),
            ("NOTZONE", dns.rcode.NOTZONE),
        ],
    )
    def test_rcodes(self, entry, text, rcode):
        reply_line(LineCursor(text), entry)
        assert entry.reply.rcode() == rcode

    def test_opcode_and_rcode_coexist(self, entry):
        reply_line(LineCursor("NOTIFY NXDOMAIN QR"), entry)
        assert entry.reply.opcode() == dns.opcode.NOTIFY
        assert entry.reply.rcode() == dns.rcode.NXDOMAIN
        assert entry.reply.flags & dns.flags.QR

    def test_unknown_token(self, entry):
        with pytest.raises(GrammarError, match="could not parse REPLY: 'XX'"):
            reply_line(LineCursor("QR XX"), entry)


class TestAdjustLine:
    def test_copy_id(self, entry):
        adjust_line(LineCursor("copy_id"), entry)
        assert entry.copy_id

    def test_unknown_token(self, entry):
        with pytest.raises(GrammarError, match="could not parse ADJUST"):
            adjust_line(LineCursor("copy_flags"), entry)


@pytest.mark.parametrize(
    "text,section",
    [
        ("QUESTION", codec.QUESTION),
        ("ANSWER", codec.ANSWER),
        ("AUTHORITY", codec.AUTHORITY),
        ("ADDITIONAL", codec.ADDITIONAL),
    ],
)
def test_section_line(text, section):
    assert section_line(LineCursor(text)) == section


def test_section_line_rejects_unknown():
    with pytest.raises(GrammarError, match="bad section PREREQ"):
        section_line(LineCursor("PREREQ"))
