from .errors import EventLogError, LogFormatError
from .eventlog import EventLog
from .pcrs import MAX_PCRS, LogSession
from .render import yaml_eventlog
from .walker import EventLogVisitor, parse_eventlog

__all__ = [
    "EventLog",
    "EventLogError",
    "EventLogVisitor",
    "LogFormatError",
    "LogSession",
    "MAX_PCRS",
    "parse_eventlog",
    "yaml_eventlog",
]
