#!/usr/bin/env python3

from typing import Dict

from .events import GenericEvent, SpecIdEvent
from .pcrs import LogSession
from .walker import EventLogVisitor, parse_eventlog

# ########################################
# Event Log parser
# ########################################


class EventLog(list, EventLogVisitor):
    """
    EventLog is really a list of GenericEvent objects (the first one is the SpecIdEvent).
    Ref: TCG PC Client Platform Firmware Profile Specification, Section 10
    """

    def __init__(self, buffer: bytes):
        """
        The constructor, when invoked on a buffer, performs the parsing
        and replays the PCR extends of the whole log.
        """
        super().__init__()
        self.session = LogSession()
        parse_eventlog(buffer, self.session, self)

    def on_specid(self, event: SpecIdEvent):
        self.append(event)

    def on_event(self, event: GenericEvent):
        self.append(event)

    @property
    def specid(self) -> SpecIdEvent:
        return self[0]

    def pcrs(self) -> Dict[str, Dict[int, bytes]]:
        """
        the expected PCR values: bank name -> PCR index -> value
        """
        return self.session.pcrs()

    def to_json(self) -> dict:
        return {
            "events": list(self),
            "pcrs": {
                name: {pcridx: value.hex() for pcridx, value in bank.items()}
                for name, bank in self.pcrs().items()
            },
        }
