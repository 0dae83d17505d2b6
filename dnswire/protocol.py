"""
DNS message parsing and building.

decode() reads a whole message in two passes: the header and the four
sections are read structurally first, then every compression pointer is
resolved against the complete input. encode() writes names uncompressed.
"""

import logging
from dataclasses import dataclass, field

from .header import Header, SectionCounts, read_header, write_header
from .names import resolve_names
from .records import (
    Question, RawRecord, ResourceRecord,
    read_question, read_record,
)
from .wire import WireReader, WireWriter

logger = logging.getLogger(__name__)

MAX_UDP_PAYLOAD = 512


@dataclass
class Message:
    header: Header = field(default_factory=Header)
    questions: list[Question] = field(default_factory=list)
    answers: list[ResourceRecord] = field(default_factory=list)
    name_servers: list[ResourceRecord] = field(default_factory=list)
    additional_records: list[ResourceRecord] = field(default_factory=list)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Message":
        """Parse a message, dereferencing compression pointers."""
        return decode(data)

    def to_bytes(self, buf: bytearray) -> int:
        """Append the encoded message to `buf`; returns the bytes written."""
        return encode(self, buf)

    def to_wire(self) -> bytes:
        buf = bytearray()
        encode(self, buf)
        return bytes(buf)

    @property
    def counts(self) -> SectionCounts:
        return SectionCounts(
            qd_count=len(self.questions),
            an_count=len(self.answers),
            ns_count=len(self.name_servers),
            ar_count=len(self.additional_records),
        )

    def __str__(self):
        questions = ", ".join(f"{q.q_name}({q.q_type.mnemonic})" for q in self.questions)
        text = f"Message(id:{self.header.id}) - Query [{questions}]"
        if self.header.qr:
            answers = ", ".join(f"{a.name} => {a.data}" for a in self.answers)
            text += f" - Response [{answers}]"
        return text


def decode(data: bytes) -> Message:
    """Parse raw DNS message bytes into a Message."""
    data = bytes(data)
    reader = WireReader(data)

    header, counts = read_header(reader)

    questions = [read_question(reader) for _ in range(counts.qd_count)]
    answers = [read_record(reader) for _ in range(counts.an_count)]
    name_servers = [read_record(reader) for _ in range(counts.ns_count)]
    additional = [read_record(reader) for _ in range(counts.ar_count)]

    if reader.remaining:
        logger.debug(f"Ignoring {reader.remaining} trailing bytes")

    logger.debug("Resolving name pointers")
    for q in questions:
        resolve_names(data, q.names)
    for section in (answers, name_servers, additional):
        for rr in section:
            resolve_names(data, rr.names)

    message = Message(
        header=header,
        questions=[q.to_question() for q in questions],
        answers=_to_records(answers, data),
        name_servers=_to_records(name_servers, data),
        additional_records=_to_records(additional, data),
    )
    logger.debug(f"Read input as: {message}")
    return message


def _to_records(raw: list[RawRecord], data: bytes) -> list[ResourceRecord]:
    return [rr.to_record(data) for rr in raw]


def encode(message: Message, buf: bytearray) -> int:
    """
    Serialize `message`, appending to `buf`. Returns the number of bytes written.

    Section counts are taken from the section lists. Nothing is appended if
    encoding fails. Messages over the 512 byte UDP limit are written in full;
    truncation is the caller's call.
    """
    scratch = bytearray()
    writer = WireWriter(scratch)

    count = write_header(message.header, message.counts, writer)
    for q in message.questions:
        count += q.to_bytes(writer)
    for section in (message.answers, message.name_servers, message.additional_records):
        for rr in section:
            count += rr.to_bytes(writer)

    if count > MAX_UDP_PAYLOAD:
        logger.debug(f"Message {message.header.id} is {count} bytes, over the UDP limit")

    buf += scratch
    logger.debug(f"Wrote {count} bytes")
    return count

