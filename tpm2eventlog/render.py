#!/usr/bin/env python3

from typing import IO

import yaml

from .events import GenericEvent, SpecIdEvent, hexint
from .pcrs import LogSession
from .strings import hexstr
from .walker import EventLogVisitor, parse_eventlog

##################################################################################
#
# yaml by default outputs numbers in decimal format, and this allows us to
# represent addresses in hexadecimal
#
##################################################################################


class EventLogDumper(yaml.SafeDumper):
    pass


def hexint_representer(dumper, data):
    return dumper.represent_scalar("tag:yaml.org,2002:int", hex(data))


EventLogDumper.add_representer(hexint, hexint_representer)


def dump(data) -> str:
    """
    block style, keys in insertion order, one field per line
    """
    return yaml.dump(
        data,
        Dumper=EventLogDumper,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
        width=1 << 16,
    )


class YamlRenderer(EventLogVisitor):
    """
    Streams the event log as one YAML document:
    an "events" list, written one event at a time as each is decoded,
    followed by the simulated "pcrs" tables once the walk is complete.
    """

    def __init__(self, stream: IO[str]):
        self.stream = stream

    def start(self):
        self.stream.write("---\nevents:\n")

    def write_event(self, event: GenericEvent):
        self.stream.write(dump([event.to_json()]))

    def on_specid(self, event: SpecIdEvent):
        self.write_event(event)

    def on_event(self, event: GenericEvent):
        self.write_event(event)

    def write_pcrs(self, session: LogSession):
        tables = {
            name: {pcridx: hexstr(value) for pcridx, value in bank.items()}
            for name, bank in session.pcrs().items()
        }
        self.stream.write(dump({"pcrs": tables}))


def yaml_eventlog(buffer: bytes, stream: IO[str]) -> LogSession:
    """
    Render an event log and its replayed PCR banks as YAML on stream.
    The PCR tables are only written when the whole log parsed; a
    LogFormatError leaves the events streamed so far, for diagnostics.
    """
    session = LogSession()
    renderer = YamlRenderer(stream)
    renderer.start()
    parse_eventlog(buffer, session, renderer)
    renderer.write_pcrs(session)
    return session
