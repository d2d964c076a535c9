class EventLogError(Exception):
    """
    base class for all errors raised while processing an event log
    """


class LogFormatError(EventLogError):
    """
    the event log is structurally broken: truncated, a length field points
    past the end of its record, or a field cannot be decoded.
    Nothing rendered before this error is raised is authoritative.
    """
