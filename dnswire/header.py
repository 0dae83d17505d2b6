"""
DNS message header (RFC1035 4.1.1, with the RFC2535 AD and CD bits).

    0  1  2  3  4  5  6  7  8  9  0  1  2  3  4  5
  +--+--+--+--+--+--+--+--+--+--+--+--+--+--+--+--+
  |                      ID                       |
  |QR|   Opcode  |AA|TC|RD|RA| Z|AD|CD|   RCODE   |
  |                    QDCOUNT                    |
  |                    ANCOUNT                    |
  |                    NSCOUNT                    |
  |                    ARCOUNT                    |
  +--+--+--+--+--+--+--+--+--+--+--+--+--+--+--+--+
"""

import logging
from dataclasses import dataclass

from .enums import OpCode, RCode
from .errors import EncodingError, ParsingError, ReservedOpCode
from .wire import WireReader, WireWriter

logger = logging.getLogger(__name__)

HEADER_LENGTH = 12


@dataclass
class Header:
    id: int = 0
    qr: bool = False
    opcode: OpCode = OpCode.QUERY
    aa: bool = False
    tc: bool = False
    rd: bool = False
    ra: bool = False
    ad: bool = False
    cd: bool = False
    rcode: RCode = RCode.NOERROR


@dataclass
class SectionCounts:
    qd_count: int = 0
    an_count: int = 0
    ns_count: int = 0
    ar_count: int = 0


def read_header(reader: WireReader) -> tuple[Header, SectionCounts]:
    """Read the 12 byte header; unknown opcodes and rcodes are preserved."""
    msg_id = reader.read_u16()

    qr = reader.read_bits(1) == 1
    opcode = OpCode(reader.read_bits(4))
    aa = reader.read_bits(1) == 1
    tc = reader.read_bits(1) == 1
    rd = reader.read_bits(1) == 1
    ra = reader.read_bits(1) == 1
    if reader.read_bits(1) != 0:
        raise ParsingError("Reserved Z bit is set in header flags")
    ad = reader.read_bits(1) == 1
    cd = reader.read_bits(1) == 1
    rcode = RCode(reader.read_bits(4))

    counts = SectionCounts(
        qd_count=reader.read_u16(),
        an_count=reader.read_u16(),
        ns_count=reader.read_u16(),
        ar_count=reader.read_u16(),
    )
    header = Header(
        id=msg_id, qr=qr, opcode=opcode, aa=aa, tc=tc,
        rd=rd, ra=ra, ad=ad, cd=cd, rcode=rcode,
    )
    return header, counts


def write_header(header: Header, counts: SectionCounts, writer: WireWriter) -> int:
    opcode = int(header.opcode)
    if not 0 <= opcode <= 0xF:
        raise ReservedOpCode(opcode)
    rcode = int(header.rcode)
    if not 0 <= rcode <= 0xF:
        raise EncodingError(f"RCode {rcode} does not fit in 4 bits")

    count = writer.write_u16(header.id)
    count += writer.write_u8(
        header.qr << 7 | opcode << 3 | header.aa << 2 | header.tc << 1 | header.rd
    )
    count += writer.write_u8(header.ra << 7 | header.ad << 5 | header.cd << 4 | rcode)
    count += writer.write_u16(counts.qd_count)
    count += writer.write_u16(counts.an_count)
    count += writer.write_u16(counts.ns_count)
    count += writer.write_u16(counts.ar_count)

    logger.debug(f"Wrote {count} header bytes")
    return count
