import hashlib
import logging

from conftest import build_event2, build_specid, both_digests, extend
from tpm2eventlog import MAX_PCRS, EventLog, LogSession
from tpm2eventlog.algorithms import Digest
from tpm2eventlog.events import Event

ZERO1 = bytes(20)
ZERO256 = bytes(32)


def warnings_of(caplog):
    return [r for r in caplog.records if r.levelno == logging.WARNING]


def test_banks_start_at_zero():
    pcrs = LogSession().pcrs()
    assert set(pcrs) == {"sha1", "sha256"}
    assert pcrs["sha1"] == {i: ZERO1 for i in range(MAX_PCRS)}
    assert pcrs["sha256"] == {i: ZERO256 for i in range(MAX_PCRS)}


def test_single_extend():
    d = hashlib.sha256(b"kernel").digest()
    session = LogSession()
    session.pcr = 4
    session.extend(Digest.sha256, d)
    assert session.pcrs()["sha256"][4] == hashlib.sha256(ZERO256 + d).digest()
    assert session.pcrs()["sha1"][4] == ZERO1


def test_no_pcr_selected_is_a_noop(caplog):
    session = LogSession()
    session.extend(Digest.sha1, ZERO1)
    assert session.pcrs() == LogSession().pcrs()
    assert warnings_of(caplog) == []


def test_extends_accumulate_in_log_order():
    d1 = both_digests(b"one")
    d2 = both_digests(b"two")
    e1 = build_event2(0, Event.EV_SEPARATOR, d1, b"\x00" * 4)
    e2 = build_event2(0, Event.EV_SEPARATOR, d2, b"\x00" * 4)

    forward = EventLog(build_specid() + e1 + e2).pcrs()
    backward = EventLog(build_specid() + e2 + e1).pcrs()

    expected = extend(hashlib.sha256, extend(hashlib.sha256, ZERO256, d1[1][1]), d2[1][1])
    assert forward["sha256"][0] == expected
    assert forward["sha256"][0] != backward["sha256"][0]
    assert forward["sha1"][0] != backward["sha1"][0]


def test_size_mismatch_leaves_bank_untouched(caplog):
    algs = ((Digest.sha1, 19), (Digest.sha256, 32))
    short = [(Digest.sha1, b"\x11" * 19), (Digest.sha256, b"\x22" * 32)]
    good = [(Digest.sha1, b"\x33" * 19), (Digest.sha256, b"\x44" * 32)]
    log = build_specid(algs=algs) + build_event2(0, Event.EV_POST_CODE, short, b"a")

    with caplog.at_level(logging.WARNING):
        pcrs = EventLog(log).pcrs()
    assert pcrs["sha1"][0] == ZERO1
    assert pcrs["sha256"][0] == extend(hashlib.sha256, ZERO256, b"\x22" * 32)
    assert len(warnings_of(caplog)) == 1
    assert "PCR0" in warnings_of(caplog)[0].getMessage()
    assert "sha1" in warnings_of(caplog)[0].getMessage()
    assert "19" in warnings_of(caplog)[0].getMessage()

    # later events still extend the bank that matches
    pcrs = EventLog(log + build_event2(0, Event.EV_POST_CODE, good, b"b")).pcrs()
    assert pcrs["sha1"][0] == ZERO1
    assert pcrs["sha256"][0] == extend(
        hashlib.sha256, extend(hashlib.sha256, ZERO256, b"\x22" * 32), b"\x44" * 32
    )


def test_out_of_range_pcr_is_never_extended(caplog):
    log = (
        build_specid()
        + build_event2(MAX_PCRS, Event.EV_POST_CODE, both_digests(b"x"), b"x")
        + build_event2(1000, Event.EV_POST_CODE, both_digests(b"y"), b"y")
    )
    with caplog.at_level(logging.WARNING):
        evlog = EventLog(log)
    assert evlog.pcrs() == LogSession().pcrs()
    assert evlog[1].evpcr == MAX_PCRS
    assert "PCR24 is invalid" in caplog.text
    # one warning per digest of each event
    assert len(warnings_of(caplog)) == 4


def test_out_of_range_then_valid():
    d = both_digests(b"z")
    log = (
        build_specid()
        + build_event2(24, Event.EV_POST_CODE, both_digests(b"y"), b"y")
        + build_event2(23, Event.EV_POST_CODE, d, b"z")
    )
    pcrs = EventLog(log).pcrs()
    assert pcrs["sha1"][23] == extend(hashlib.sha1, ZERO1, d[0][1])
    assert pcrs["sha256"][23] == extend(hashlib.sha256, ZERO256, d[1][1])


def test_unsupported_bank_is_rendered_not_folded(caplog):
    algs = ((Digest.sha256, 32), (Digest.sha384, 48))
    digests = [(Digest.sha256, b"\x01" * 32), (Digest.sha384, b"\x02" * 48)]
    with caplog.at_level(logging.WARNING):
        evlog = EventLog(
            build_specid(algs=algs) + build_event2(2, Event.EV_POST_CODE, digests, b"c")
        )
    assert evlog[1].to_json()["Digests"][1]["AlgorithmId"] == "sha384"
    assert set(evlog.pcrs()) == {"sha1", "sha256"}
    assert len(warnings_of(caplog)) == 1
    assert "sha384" in caplog.text


def test_legacy_specid_digest_is_folded_unless_no_action():
    d = hashlib.sha1(b"crtm").digest()
    pcrs = EventLog(build_specid(evtype=Event.EV_POST_CODE, pcr=0, digest=d)).pcrs()
    assert pcrs["sha1"][0] == extend(hashlib.sha1, ZERO1, d)

    pcrs = EventLog(build_specid(evtype=Event.EV_NO_ACTION, pcr=0, digest=d)).pcrs()
    assert pcrs["sha1"][0] == ZERO1


def test_event_counter():
    log = build_specid() + build_event2(0, Event.EV_SEPARATOR, both_digests(b""), b"")
    evlog = EventLog(log)
    assert evlog.session.count == 2
