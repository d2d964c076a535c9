#!/usr/bin/env python3

import enum
import hashlib
from typing import Callable, Optional


class Digest(enum.IntEnum):
    """
    TPM2_ALG_<digesttype> from TCG algorithm registry
    """

    sha1 = 0x4
    sha256 = 0xB
    sha384 = 0xC
    sha512 = 0xD
    sm3_256 = 0x12
    sha3_256 = 0x27
    sha3_384 = 0x28
    sha3_512 = 0x29


# canonical digest sizes, TCG algorithm registry Table 3
DIGEST_SIZES = {
    Digest.sha1: 20,
    Digest.sha256: 32,
    Digest.sha384: 48,
    Digest.sha512: 64,
    Digest.sm3_256: 32,
    Digest.sha3_256: 32,
    Digest.sha3_384: 48,
    Digest.sha3_512: 64,
}

hashalgmap = {
    Digest.sha1: hashlib.sha1,
    Digest.sha256: hashlib.sha256,
    Digest.sha384: hashlib.sha384,
    Digest.sha512: hashlib.sha512,
    Digest.sha3_256: hashlib.sha3_256,
    Digest.sha3_384: hashlib.sha3_384,
    Digest.sha3_512: hashlib.sha3_512,
}


def algtostr(algid: int) -> str:
    """
    human readable name of an algorithm id; ids outside the registry are shown in hex
    """
    try:
        return Digest(algid).name
    except ValueError:
        return f"0x{algid:04x}"


def digest_size(algid: int) -> Optional[int]:
    try:
        return DIGEST_SIZES[Digest(algid)]
    except ValueError:
        return None


def hash_function(algid: int) -> Optional[Callable]:
    try:
        return hashalgmap.get(Digest(algid))
    except ValueError:
        return None
