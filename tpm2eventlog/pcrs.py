#!/usr/bin/env python3

import logging
from typing import Dict, Optional

from .algorithms import Digest, algtostr, digest_size, hash_function
from .events import EfiEventDigest, Event, EventHeader, SpecIdEvent
from .walker import EventLogVisitor

logger = logging.getLogger(__name__)

# TPM2_MAX_PCRS of the TPM2 software stack
MAX_PCRS = 24

# the banks that are simulated; digests of any other algorithm are shown, never folded
SUPPORTED_BANKS = (Digest.sha1, Digest.sha256)


class PcrBank:
    """
    MAX_PCRS simulated registers for one hash algorithm, all zero at start
    """

    def __init__(self, algid: Digest):
        self.algid = algid
        self.hashalg = hash_function(algid)
        self.digest_size = digest_size(algid)
        self.pcrs = [bytes(self.digest_size)] * MAX_PCRS

    def extend(self, pcridx: int, digest: bytes):
        """
        TPM2_PCR_Extend: new = H(old || digest)
        """
        newpcr = self.hashalg(self.pcrs[pcridx] + digest).digest()
        self.pcrs[pcridx] = newpcr


class LogSession(EventLogVisitor):
    """
    Replay state of one pass over one event log: the ordinal of the
    event being processed, the PCR it extends (None: do not extend) and
    the simulated banks. A session is never reused across logs.
    """

    def __init__(self):
        self.count = 0
        self.pcr: Optional[int] = None
        self.banks = {algid: PcrBank(algid) for algid in SUPPORTED_BANKS}

    def extend(self, algid: int, digest: bytes):
        """
        update the current PCR with this digest.
        Mismatches of algorithm or size are warned about, but are not fatal errors.
        """
        if self.pcr is None:
            return
        if self.pcr >= MAX_PCRS:
            logger.warning("PCR%d is invalid", self.pcr)
            return
        bank = self.banks.get(algid)
        if bank is None or len(digest) != bank.digest_size:
            logger.warning(
                "PCR%d: extended with invalid algorithm %s and size %d",
                self.pcr,
                algtostr(algid),
                len(digest),
            )
            return
        bank.extend(self.pcr, digest)

    # the legacy SpecID event extends SHA-1, unless it is informational
    def on_specid(self, event: SpecIdEvent):
        self.count += 1
        if event.evtype == Event.EV_NO_ACTION:
            self.pcr = None
            return
        self.pcr = event.evpcr
        for digest in event.digests:
            self.extend(digest.algid, digest.digest)

    def on_event_header(self, header: EventHeader):
        self.count += 1
        self.pcr = header.evpcr

    def on_digest(self, header: EventHeader, digest: EfiEventDigest):
        self.extend(digest.algid, digest.digest)

    def pcrs(self) -> Dict[str, Dict[int, bytes]]:
        """
        final bank contents: algorithm name -> PCR index -> value
        """
        return {
            algid.name: dict(enumerate(bank.pcrs)) for algid, bank in self.banks.items()
        }
