#!/usr/bin/env python3

from .errors import LogFormatError

# ########################################
# hex and text conversions for event fields
# ########################################


def hexstr(buffer: bytes) -> str:
    """
    lower case hex, two characters per byte, no separators
    """
    return buffer.hex()


def nullterm8(buffer: bytes) -> str:
    """
    convert byte buffers with (maybe) null terminated 8 bit C strings to python strings.
    The buffer length is authoritative; bytes that are not UTF-8 are escaped, not fatal.
    """
    return buffer.decode("utf-8", errors="backslashreplace").split("\x00")[0]


def nullterm16(buffer: bytes) -> str:
    """
    convert byte buffers with UTF-16LE C strings to python strings.
    Unpaired surrogates and odd lengths cannot be represented and raise LogFormatError.
    """
    try:
        text = buffer.decode("utf-16-le")
    except UnicodeDecodeError as e:
        raise LogFormatError(f"Invalid UTF-16 string: {e.reason}") from e
    return text.split("\u0000")[0]
