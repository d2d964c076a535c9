#!/usr/bin/env python3

import enum
import uuid
from typing import Callable, List

from .algorithms import Digest, algtostr
from .errors import LogFormatError
from .reader import ByteReader
from .strings import hexstr, nullterm8, nullterm16

# ########################################
# Enumeration of all event types
# ########################################


class Event(enum.IntEnum):
    """
    All UEFI event log events (an enumeration)
    TCG PC Client Platform Firmware Profile Spec, v1.05 Rev 22, Table 14, page 91.
    """

    EV_PREBOOT_CERT = 0x0
    EV_POST_CODE = 0x1
    EV_UNUSED = 0x2
    EV_NO_ACTION = 0x3
    EV_SEPARATOR = 0x4
    EV_ACTION = 0x5
    EV_EVENT_TAG = 0x6
    EV_S_CRTM_CONTENTS = 0x7
    EV_S_CRTM_VERSION = 0x8
    EV_CPU_MICROCODE = 0x9
    EV_PLATFORM_CONFIG_FLAGS = 0xA
    EV_TABLE_OF_DEVICES = 0xB
    EV_COMPACT_HASH = 0xC
    EV_IPL = 0xD
    EV_IPL_PARTITION_DATA = 0xE
    EV_NONHOST_CODE = 0xF
    EV_NONHOST_CONFIG = 0x10
    EV_NONHOST_INFO = 0x11
    EV_OMIT_BOOT_DEVICE_EVENTS = 0x12
    EV_EFI_EVENT_BASE = 0x80000000
    EV_EFI_VARIABLE_DRIVER_CONFIG = EV_EFI_EVENT_BASE + 0x1
    EV_EFI_VARIABLE_BOOT = EV_EFI_EVENT_BASE + 0x2
    EV_EFI_BOOT_SERVICES_APPLICATION = EV_EFI_EVENT_BASE + 0x3
    EV_EFI_BOOT_SERVICES_DRIVER = EV_EFI_EVENT_BASE + 0x4
    EV_EFI_RUNTIME_SERVICES_DRIVER = EV_EFI_EVENT_BASE + 0x5
    EV_EFI_GPT_EVENT = EV_EFI_EVENT_BASE + 0x6
    EV_EFI_ACTION = EV_EFI_EVENT_BASE + 0x7
    EV_EFI_PLATFORM_FIRMWARE_BLOB = EV_EFI_EVENT_BASE + 0x8
    EV_EFI_HANDOFF_TABLES = EV_EFI_EVENT_BASE + 0x9
    EV_EFI_PLATFORM_FIRMWARE_BLOB2 = EV_EFI_EVENT_BASE + 0xA
    EV_EFI_HANDOFF_TABLES2 = EV_EFI_EVENT_BASE + 0xB
    EV_EFI_VARIABLE_BOOT2 = EV_EFI_EVENT_BASE + 0xC
    EV_EFI_VARIABLE_AUTHORITY = EV_EFI_EVENT_BASE + 0xE0

    EV_UNKNOWN = 0xFFFFFFFF

    @staticmethod
    def int2evt(evtnum: int):
        """
        we use this function to transform any integer into an event type
        """
        try:
            return Event(evtnum)
        except ValueError:
            return Event.EV_UNKNOWN


class hexint(int):
    """
    an integer that prefers to be shown in hexadecimal (addresses, blob lengths)
    """


# ########################################
# Event digests
# ########################################


class EfiEventDigest:
    """
    Event digests
    TCG PC Client platform firmware profile, TPML_DIGEST_VALUES, Section 10.2.2
    The size is whatever the SpecID event declared for the algorithm,
    which is not necessarily the canonical size of that algorithm.
    """

    def __init__(self, algid: int, digest: bytes):
        self.algid = algid
        self.digest = digest

    def to_json(self) -> dict:
        return {"AlgorithmId": algtostr(self.algid), "Digest": hexstr(self.digest)}

    @staticmethod
    def parse(reader: ByteReader, digest_sizes: dict) -> "EfiEventDigest":
        """
        TCG PC client platform firmware profile spec, structure: TPMT_HA
        digest_sizes: algorithm id -> size, from the SpecID event
        """
        algid = reader.u16("digest algorithm id")
        if algid not in digest_sizes:
            raise LogFormatError(
                f"Digest algorithm {algtostr(algid)} not declared in SpecID event"
            )
        digest = reader.read(digest_sizes[algid], f"{algtostr(algid)} digest")
        return EfiEventDigest(algid, digest)


# ########################################
# EFI event classes
# ########################################


class EventHeader:
    """
    TCG PC client platform firmware profile spec, Section 10.2
    Event header encodes 4 elements present in any event object (event type, pcr index, event data size, list of digests)
    In addition we also use the event header to transmit the ordinal number of the event in the log.
    """

    def __init__(self):
        self.evtype = Event.int2evt(0)
        self.evpcr = 0
        self.digest_count = 0
        self.digests: List[EfiEventDigest] = []
        self.evsize = 0
        self.evidx = 0

    @staticmethod
    def parse_pcrevent(reader: ByteReader, evidx: int) -> "EventHeader":
        """
        TCG PC client platform firmware profile spec, structure: TCG_PCClientPCREvent, Section 10.2.1
        """
        hdr = EventHeader()
        hdr.evidx = evidx
        (hdr.evpcr, evtype, digestbuf, hdr.evsize) = reader.unpack(
            "II20sI", "legacy event header"
        )
        hdr.evtype = Event.int2evt(evtype)
        hdr.digest_count = 1
        hdr.digests = [EfiEventDigest(Digest.sha1, digestbuf)]
        return hdr

    @staticmethod
    def parse_pcrevent2(reader: ByteReader, evidx: int) -> "EventHeader":
        """
        TCG PC client platform firmware profile spec, structure: TCG_PCR_EVENT2, Section 10.2.2
        Only the fixed part; the digests and the event size follow and are read by the walker.
        """
        hdr = EventHeader()
        hdr.evidx = evidx
        (hdr.evpcr, evtype, hdr.digest_count) = reader.unpack(
            "III", "event header"
        )
        hdr.evtype = Event.int2evt(evtype)
        return hdr


class GenericEvent:
    """
    # ########################################
    # base class for all EFI events.
    # ########################################
    # GenericEvent is the superclass of all Events
    # parsed by this code. A parsed Event ends up
    # being a GenericEvent type if there is no specialized
    # parser to further interpret it; its payload is shown in hex.
    # ########################################
    # * Each Event type has a constructor, which decodes the payload
    #   through a ByteReader bounded to the event size, so a length
    #   field can never make it read into the next event.
    # * The main entry point is the parse class method, selected
    #   from the event type by handler() below.
    # * Each Event class has a "to_json" method to convert it into
    #   data structures accepted by the JSON and YAML picklers
    #   (i.e. dictionaries, lists, strings)
    """

    def __init__(self, evt_header: EventHeader, reader: ByteReader):
        self.evpcr = evt_header.evpcr
        self.digests = evt_header.digests
        self.evsize = evt_header.evsize
        self.evidx = evt_header.evidx
        self.evtype = evt_header.evtype
        self.evbuf = reader.peek()

    @classmethod
    def parse(cls, evt_header: EventHeader, reader: ByteReader):
        return cls(evt_header, reader)

    def event_data(self):
        """
        the decoded payload, as it goes under the "Event" key
        """
        return hexstr(self.evbuf)

    def to_json(self) -> dict:
        j = {
            "EventNum": self.evidx,
            "PCRIndex": self.evpcr,
            "EventType": self.evtype.name,
            "DigestCount": len(self.digests),
            "Digests": [d.to_json() for d in self.digests],
            "EventSize": self.evsize,
        }
        if self.evsize > 0:
            j["Event"] = self.event_data()
        return j


class EmptyEvent(GenericEvent):
    """
    Any event with a zero length payload: no further fields, whatever the type.
    """


class TextEvent(GenericEvent):
    """
    EV_POST_CODE, EV_EFI_ACTION -- the payload is a string, the event size is its length.
    TCG PC Client PFP section 9.4.4; post codes carry "POST CODE", "SMM CODE", "ACPI DATA" ...
    """

    def __init__(self, evt_header: EventHeader, reader: ByteReader):
        super().__init__(evt_header, reader)
        self.text = nullterm8(reader.rest())

    def event_data(self):
        return self.text


class FirmwareBlobEvent(GenericEvent):
    """
    Firmware blob measurement
    EV_S_CRTM_CONTENTS EV_EFI_PLATFORM_FIRMWARE_BLOB
    TCG PC Client FPF section 9.2.5, UEFI_PLATFORM_FIRMWARE_BLOB
    """

    def __init__(self, evt_header: EventHeader, reader: ByteReader):
        super().__init__(evt_header, reader)
        (self.base, self.length) = reader.unpack("QQ", "firmware blob")

    def event_data(self):
        return {"BlobBase": hexint(self.base), "BlobLength": hexint(self.length)}


class SpecIdEvent(GenericEvent):
    """
    This is the first event in the log, and it gets a lot of
    special processing. It uses the legacy event layout, and its
    algorithm list decides how every following event is read.
    TCG PC Client platform firmware profile, TCG_EfiSpecIDEventStruct, Section 10.4.5.1
    """

    def __init__(self, evt_header: EventHeader, reader: ByteReader):
        super().__init__(evt_header, reader)
        (
            self.signature,
            self.platformClass,
            self.specVersionMinor,
            self.specVersionMajor,
            self.specErrata,
            self.uintnSize,
            self.numberOfAlgorithms,
        ) = reader.unpack("16sIBBBBI", "SpecID event")
        if self.numberOfAlgorithms == 0:
            raise LogFormatError("SpecID event declares no digest algorithms")
        self.algorithms = []
        for _ in range(self.numberOfAlgorithms):
            self.algorithms.append(reader.unpack("HH", "SpecID algorithm entry"))
        self.vendorInfoSize = reader.u8("SpecID vendor info size")
        self.vendorInfo = reader.read(self.vendorInfoSize, "SpecID vendor info")

    @property
    def digest_sizes(self) -> dict:
        """
        algorithm id -> digest size, as declared by the log
        """
        return dict(self.algorithms)

    def to_json(self) -> dict:
        specid = {
            "Signature": nullterm8(self.signature),
            "platformClass": self.platformClass,
            "specVersionMinor": self.specVersionMinor,
            "specVersionMajor": self.specVersionMajor,
            "specErrata": self.specErrata,
            "uintnSize": self.uintnSize,
            "numberOfAlgorithms": self.numberOfAlgorithms,
            "Algorithms": [
                {
                    f"Algorithm[{x}]": None,
                    "algorithmId": algtostr(algid),
                    "digestSize": digsize,
                }
                for x, (algid, digsize) in enumerate(self.algorithms)
            ],
            "vendorInfoSize": self.vendorInfoSize,
        }
        if self.vendorInfoSize > 0:
            specid["vendorInfo"] = hexstr(self.vendorInfo)
        return {
            "EventNum": self.evidx,
            "PCRIndex": self.evpcr,
            "EventType": self.evtype.name,
            "Digest": hexstr(self.digests[0].digest),
            "EventSize": self.evsize,
            "SpecID": [specid],
        }


class EfiVarEvent(GenericEvent):
    """
    EV_EFI_VARIABLE_DRIVER_CONFIG, EV_EFI_VARIABLE_BOOT, EV_EFI_VARIABLE_AUTHORITY:
    EfiVarEvent is used to cover multiple types of EFI variable measurements.
    TCG PC Client FPF section 9.2.6, UEFI_VARIABLE_DATA
    """

    def __init__(self, evt_header: EventHeader, reader: ByteReader):
        super().__init__(evt_header, reader)
        self.guid = uuid.UUID(bytes_le=reader.read(16, "variable GUID"))
        (self.namelen, self.datalen) = reader.unpack("QQ", "variable lengths")
        self.name = nullterm16(reader.read(2 * self.namelen, "variable name"))
        self.data = reader.read(self.datalen, "variable data")

    def event_data(self):
        evt = {
            "VariableName": str(self.guid),
            "UnicodeNameLength": self.namelen,
            "VariableDataLength": self.datalen,
            "UnicodeName": self.name,
        }
        if self.datalen > 0:
            evt["VariableData"] = hexstr(self.data)
        return evt


# ########################################
# Event type: uefi image load
# TCG PC Client platform firmware profile, UEFI_IMAGE_LOAD_EVENT, Section 10.2.3
# ########################################


class UefiImageLoadEvent(GenericEvent):
    def __init__(self, evt_header: EventHeader, reader: ByteReader):
        super().__init__(evt_header, reader)
        (
            self.addrinmem,
            self.lengthinmem,
            self.linktimeaddr,
            self.lengthofdevpath,
        ) = reader.unpack("QQQQ", "image load event")

        # the device path runs to the end of the event, whatever LengthOfDevicePath says
        self.devpath = reader.rest()

    def event_data(self):
        return {
            "ImageLocationInMemory": hexint(self.addrinmem),
            "ImageLengthInMemory": self.lengthinmem,
            "ImageLinkTimeAddress": hexint(self.linktimeaddr),
            "LengthOfDevicePath": self.lengthofdevpath,
            "DevicePath": hexstr(self.devpath),
        }


# ########################################
# Event type dispatch
# ########################################

EventHandlers = {
    Event.EV_POST_CODE: TextEvent.parse,
    Event.EV_EFI_ACTION: TextEvent.parse,
    Event.EV_S_CRTM_CONTENTS: FirmwareBlobEvent.parse,
    Event.EV_EFI_PLATFORM_FIRMWARE_BLOB: FirmwareBlobEvent.parse,
    Event.EV_EFI_VARIABLE_DRIVER_CONFIG: EfiVarEvent.parse,
    Event.EV_EFI_VARIABLE_BOOT: EfiVarEvent.parse,
    Event.EV_EFI_VARIABLE_AUTHORITY: EfiVarEvent.parse,
    Event.EV_EFI_BOOT_SERVICES_APPLICATION: UefiImageLoadEvent.parse,
    Event.EV_EFI_BOOT_SERVICES_DRIVER: UefiImageLoadEvent.parse,
    Event.EV_EFI_RUNTIME_SERVICES_DRIVER: UefiImageLoadEvent.parse,
}


def handler(evt_header: EventHeader) -> Callable:
    """
    figure out which Event constructor to call depending on event type and size
    """
    if evt_header.evsize == 0:
        return EmptyEvent.parse
    return EventHandlers.get(evt_header.evtype, GenericEvent.parse)
