#!/usr/bin/env python3

import struct
from typing import Tuple

from .errors import LogFormatError


class ByteReader:
    """
    Bounds-checked cursor over an immutable byte buffer.
    Every field of the event log is extracted through one of these;
    a read that does not fit in what is left raises LogFormatError.
    """

    def __init__(self, buffer: bytes, start: int = 0, end: int = -1):
        self.buffer = bytes(buffer)
        self.idx = start
        self.end = len(self.buffer) if end < 0 else end

    @property
    def remaining(self) -> int:
        return self.end - self.idx

    @property
    def offset(self) -> int:
        return self.idx

    def at_end(self) -> bool:
        return self.idx == self.end

    def _check(self, size: int, what: str):
        if size < 0 or size > self.remaining:
            raise LogFormatError(
                f"Event log truncated reading {what} at offset {self.idx}: "
                f"need {size} bytes, {self.remaining} left"
            )

    def read(self, size: int, what: str = "bytes") -> bytes:
        """
        read exactly size bytes and advance
        """
        self._check(size, what)
        data = self.buffer[self.idx : self.idx + size]
        self.idx += size
        return data

    def unpack(self, fmt: str, what: str = "structure") -> Tuple:
        """
        read a fixed-size little endian structure, struct notation without the byte order
        """
        fmt = "<" + fmt
        size = struct.calcsize(fmt)
        self._check(size, what)
        values = struct.unpack_from(fmt, self.buffer, self.idx)
        self.idx += size
        return values

    def u8(self, what: str = "uint8") -> int:
        return self.unpack("B", what)[0]

    def u16(self, what: str = "uint16") -> int:
        return self.unpack("H", what)[0]

    def u32(self, what: str = "uint32") -> int:
        return self.unpack("I", what)[0]

    def u64(self, what: str = "uint64") -> int:
        return self.unpack("Q", what)[0]

    def sub(self, size: int, what: str = "record") -> "ByteReader":
        """
        carve the next size bytes out as a reader of their own.
        The child cannot read past its own end, the parent skips over it.
        """
        self._check(size, what)
        child = ByteReader(self.buffer, self.idx, self.idx + size)
        self.idx += size
        return child

    def peek(self) -> bytes:
        """
        what is left, without advancing
        """
        return self.buffer[self.idx : self.end]

    def rest(self) -> bytes:
        return self.read(self.remaining)
