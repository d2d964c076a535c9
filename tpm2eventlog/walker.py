#!/usr/bin/env python3

from .errors import LogFormatError
from .events import EfiEventDigest, EventHeader, GenericEvent, SpecIdEvent, handler
from .reader import ByteReader


class EventLogVisitor:
    """
    Receives the pieces of the log as the walker decodes them.
    For every crypto agile event the order is fixed:
    on_event_header, on_digest (once per digest), on_event.
    The default implementation ignores everything.
    """

    def on_specid(self, event: SpecIdEvent):
        pass

    def on_event_header(self, header: EventHeader):
        pass

    def on_digest(self, header: EventHeader, digest: EfiEventDigest):
        pass

    def on_event(self, event: GenericEvent):
        pass


def parse_eventlog(buffer: bytes, *visitors: EventLogVisitor) -> int:
    """
    ----------------------------------------
    walk a crypto agile event log, start to end
    ----------------------------------------
    NOTE The first event is parsed differently because it has a different
    structure from all the others: it is a legacy TCG_PCClientPCREvent
    carrying the SpecID structure, whose algorithm list says which digests
    (and how large) every following TCG_PCR_EVENT2 carries.
    inputs:
      buffer: the raw event log
      visitors: notified of every decoded piece, in log order
    outputs:
      number of events in the log
    raises LogFormatError unless the log ends exactly at the end of an event.
    """
    reader = ByteReader(buffer)

    hdr = EventHeader.parse_pcrevent(reader, 0)
    specid = SpecIdEvent(hdr, reader.sub(hdr.evsize, "SpecID event data"))
    for visitor in visitors:
        visitor.on_specid(specid)

    digest_sizes = specid.digest_sizes
    evidx = 1
    while not reader.at_end():
        hdr = EventHeader.parse_pcrevent2(reader, evidx)
        if hdr.digest_count != specid.numberOfAlgorithms:
            raise LogFormatError(
                f"Event {evidx} has {hdr.digest_count} digests, "
                f"SpecID declares {specid.numberOfAlgorithms} algorithms"
            )
        for visitor in visitors:
            visitor.on_event_header(hdr)

        for _ in range(hdr.digest_count):
            digest = EfiEventDigest.parse(reader, digest_sizes)
            hdr.digests.append(digest)
            for visitor in visitors:
                visitor.on_digest(hdr, digest)

        hdr.evsize = reader.u32("event size")
        evt = handler(hdr)(hdr, reader.sub(hdr.evsize, "event data"))
        for visitor in visitors:
            visitor.on_event(evt)
        evidx += 1

    return evidx
