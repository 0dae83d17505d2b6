"""
Question and resource record codecs, and the typed RDATA payloads.

Supported RDATA: A, CNAME, SOA, TXT, AAAA. Every other type is carried as
Raw(type_code, data) and written back verbatim.
"""

import logging
from dataclasses import dataclass, field
from ipaddress import IPv4Address, IPv6Address
from typing import ClassVar, Union

from .enums import Class, Type
from .errors import EncodingError, ParsingError
from .names import NamePart, encode_name, flatten, read_name, read_names
from .wire import WireReader, WireWriter

logger = logging.getLogger(__name__)


# --- rdata ---

@dataclass(frozen=True)
class A:
    address: IPv4Address
    rtype: ClassVar[Type] = Type.A

    def __post_init__(self):
        object.__setattr__(self, "address", IPv4Address(self.address))

    def to_bytes(self, writer: WireWriter) -> int:
        return writer.write_bytes(self.address.packed)

    def __str__(self):
        return f"A({self.address})"


@dataclass(frozen=True)
class CNAME:
    name: str
    rtype: ClassVar[Type] = Type.CNAME

    def to_bytes(self, writer: WireWriter) -> int:
        return encode_name(self.name, writer)

    def __str__(self):
        return f"CNAME({self.name})"


@dataclass(frozen=True)
class SOA:
    """
    Start of a zone of authority (RFC1035 3.3.13).

    mname is the primary name server for the zone and rname the mailbox of
    the person responsible for it. The remaining fields are unsigned 32 bit
    values: the zone serial, then the refresh, retry and expire intervals and
    the minimum TTL, all in seconds.
    """

    mname: str
    rname: str
    serial: int
    refresh: int
    retry: int
    expire: int
    minimum: int
    rtype: ClassVar[Type] = Type.SOA

    def to_bytes(self, writer: WireWriter) -> int:
        count = encode_name(self.mname, writer)
        count += encode_name(self.rname, writer)
        for value in (self.serial, self.refresh, self.retry, self.expire, self.minimum):
            count += writer.write_u32(value)
        return count

    def __str__(self):
        return (
            f"SOA({self.mname}, {self.rname}, {self.serial}, {self.refresh}, "
            f"{self.retry}, {self.expire}, {self.minimum})"
        )


@dataclass(frozen=True)
class TXT:
    text: str
    rtype: ClassVar[Type] = Type.TXT

    def to_bytes(self, writer: WireWriter) -> int:
        try:
            encoded = self.text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodingError(f"TXT data cannot be encoded: {e}") from e
        return writer.write_bytes(encoded)

    def __str__(self):
        return f"TXT({self.text})"


@dataclass(frozen=True)
class AAAA:
    address: IPv6Address
    rtype: ClassVar[Type] = Type.AAAA

    def __post_init__(self):
        object.__setattr__(self, "address", IPv6Address(self.address))

    def to_bytes(self, writer: WireWriter) -> int:
        return writer.write_bytes(self.address.packed)

    def __str__(self):
        return f"AAAA({self.address})"


@dataclass(frozen=True)
class Raw:
    """
    RDATA of a type without a dedicated payload class, kept verbatim.

    A, CNAME, SOA, TXT and AAAA codes are refused: decode always turns those
    into their typed classes, so a Raw copy would not read back.
    """

    type_code: int
    data: bytes = b""

    def __post_init__(self):
        code = Type(self.type_code)
        if code in _TYPED:
            raise EncodingError(f"{code.mnemonic} rdata must use the {code.mnemonic} class, not Raw")
        object.__setattr__(self, "type_code", int(code))
        object.__setattr__(self, "data", bytes(self.data))

    @property
    def rtype(self) -> Type:
        return Type(self.type_code)

    def to_bytes(self, writer: WireWriter) -> int:
        return writer.write_bytes(self.data)

    def __str__(self):
        return f"Raw({self.type_code}: {self.data.hex()})"


RData = Union[A, CNAME, SOA, TXT, AAAA, Raw]

_TYPED = frozenset(cls.rtype for cls in (A, CNAME, SOA, TXT, AAAA))


def parse_rdata(rtype: Type, rdata: bytes, data: bytes) -> RData:
    """
    Interpret raw RDATA bytes according to `rtype`.

    `data` is the complete message, against which compression pointers
    inside CNAME and SOA payloads are resolved.
    """
    if rtype == Type.A:
        return A(IPv4Address(_fixed(rdata, 4, rtype)))
    elif rtype == Type.CNAME:
        return CNAME(read_name(WireReader(rdata), data))
    elif rtype == Type.SOA:
        reader = WireReader(rdata)
        mname = read_name(reader, data)
        rname = read_name(reader, data)
        return SOA(
            mname,
            rname,
            serial=reader.read_u32(),
            refresh=reader.read_u32(),
            retry=reader.read_u32(),
            expire=reader.read_u32(),
            minimum=reader.read_u32(),
        )
    elif rtype == Type.TXT:
        try:
            return TXT(rdata.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise EncodingError(f"TXT data is not UTF-8: {e}") from e
    elif rtype == Type.AAAA:
        return AAAA(IPv6Address(_fixed(rdata, 16, rtype)))
    else:
        return Raw(int(rtype), rdata)


def _fixed(rdata: bytes, length: int, rtype: Type) -> bytes:
    if len(rdata) < length:
        raise ParsingError(
            f"{rtype.mnemonic} rdata needs {length} bytes, got {len(rdata)}"
        )
    return rdata[:length]


# --- question ---

@dataclass
class Question:
    q_name: str
    q_type: Type = Type.A
    q_class: Class = Class.IN

    def __post_init__(self):
        self.q_type = Type(self.q_type)
        self.q_class = Class(self.q_class)

    def to_bytes(self, writer: WireWriter) -> int:
        count = encode_name(self.q_name, writer)
        count += writer.write_u16(int(self.q_type))
        count += writer.write_u16(int(self.q_class))
        logger.debug(f"Wrote {count} question bytes")
        return count


@dataclass
class RawQuestion:
    """A question whose name may still hold compression pointers."""

    names: list[NamePart]
    q_type: Type
    q_class: Class

    def to_question(self) -> Question:
        return Question(flatten(self.names), self.q_type, self.q_class)


def read_question(reader: WireReader) -> RawQuestion:
    names = read_names(reader)
    q_type = Type(reader.read_u16())
    q_class = Class(reader.read_u16())
    return RawQuestion(names, q_type, q_class)


# --- resource record ---

@dataclass
class ResourceRecord:
    name: str
    data: RData
    rclass: Class = Class.IN
    ttl: int = 0

    def __post_init__(self):
        self.rclass = Class(self.rclass)

    @property
    def rtype(self) -> Type:
        return self.data.rtype

    def to_bytes(self, writer: WireWriter) -> int:
        count = encode_name(self.name, writer)
        count += writer.write_u16(int(self.rtype))
        count += writer.write_u16(int(self.rclass))
        count += writer.write_u32(self.ttl)

        # The length precedes the rdata, so encode it separately first.
        scratch = bytearray()
        rdlength = self.data.to_bytes(WireWriter(scratch))
        count += writer.write_u16(rdlength)
        count += writer.write_bytes(scratch)

        logger.debug(f"Wrote {count} bytes for {self.name} {self.data}")
        return count


@dataclass
class RawRecord:
    """A record as read off the wire, before names and rdata are interpreted."""

    names: list[NamePart]
    rtype: Type
    rclass: Class
    ttl: int
    rdata: bytes = field(repr=False)

    def to_record(self, data: bytes) -> ResourceRecord:
        rdata = parse_rdata(self.rtype, self.rdata, data)
        logger.debug(f"Parsed rdata as {rdata}")
        return ResourceRecord(
            name=flatten(self.names), data=rdata, rclass=self.rclass, ttl=self.ttl
        )


def read_record(reader: WireReader) -> RawRecord:
    names = read_names(reader)
    rtype = Type(reader.read_u16())
    rclass = Class(reader.read_u16())
    ttl = reader.read_u32()
    rdlength = reader.read_u16()
    logger.debug(f"Found rdata of length: {rdlength}")
    rdata = reader.read_bytes(rdlength)
    return RawRecord(names, rtype, rclass, ttl, rdata)
