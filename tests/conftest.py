import hashlib
import struct

import pytest

from tpm2eventlog.algorithms import Digest
from tpm2eventlog.events import Event

SHA1_SHA256 = ((Digest.sha1, 20), (Digest.sha256, 32))


def build_specid(
    algs=SHA1_SHA256,
    evtype=Event.EV_NO_ACTION,
    pcr=0,
    digest=bytes(20),
    vendor=b"",
):
    """legacy TCG_PCClientPCREvent carrying a TCG_EfiSpecIDEventStruct"""
    body = struct.pack("<16sIBBBBI", b"Spec ID Event03\0", 0, 0, 2, 0, 2, len(algs))
    for algid, size in algs:
        body += struct.pack("<HH", algid, size)
    body += struct.pack("<B", len(vendor)) + vendor
    return struct.pack("<II20sI", pcr, evtype, digest, len(body)) + body


def build_event2(pcr, evtype, digests, data=b""):
    """TCG_PCR_EVENT2; digests is a list of (algorithm id, digest bytes)"""
    out = struct.pack("<III", pcr, evtype, len(digests))
    for algid, digest in digests:
        out += struct.pack("<H", algid) + digest
    return out + struct.pack("<I", len(data)) + data


def both_digests(seed: bytes):
    return [
        (Digest.sha1, hashlib.sha1(seed).digest()),
        (Digest.sha256, hashlib.sha256(seed).digest()),
    ]


def extend(hashalg, old: bytes, digest: bytes) -> bytes:
    return hashalg(old + digest).digest()


@pytest.fixture
def reference_digest():
    return hashlib.sha256(b"POST CODE").digest()


@pytest.fixture
def reference_log(reference_digest):
    """one SpecID event, one post code on PCR 7 with a single SHA-256 digest"""
    return build_specid(algs=((Digest.sha256, 32),)) + build_event2(
        7, Event.EV_POST_CODE, [(Digest.sha256, reference_digest)], b"POST CODE"
    )
