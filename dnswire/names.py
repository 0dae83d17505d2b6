"""
Domain name encoding and decoding, including RFC1035 message compression.

Decoding happens in two passes. read_names() turns the bytes at the cursor
into a list of Label and Pointer parts; once the whole message has been
read, resolve_names() replaces every Pointer with the ResolvedPointer parts
found at that offset of the full message, and flatten() joins the result
into a dotted string.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from .errors import CircularReference, EncodingError, NameLengthExceeded, ParsingError
from .wire import WireReader, WireWriter

logger = logging.getLogger(__name__)

MAX_LABEL_LENGTH = 63
POINTER_TAG = 0b11


@dataclass
class Label:
    text: str


@dataclass
class Pointer:
    offset: int


@dataclass
class ResolvedPointer:
    names: list = field(default_factory=list)


NamePart = Union[Label, Pointer, ResolvedPointer]


def read_names(reader: WireReader) -> list[NamePart]:
    """
    Read one label sequence at the reader's cursor.

    The sequence ends at the root label or at a compression pointer; the
    pointer is kept unresolved for resolve_names().
    """
    names: list[NamePart] = []
    while True:
        tag = reader.read_bits(2)
        if tag == POINTER_TAG:
            offset = reader.read_bits(14)
            logger.debug(f"Name pointer at offset: {offset}")
            names.append(Pointer(offset))
            return names

        length = (tag << 6) | reader.read_bits(6)
        if length == 0:
            return names

        start = reader.offset
        raw = reader.read_bytes(length)
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(f"Label at offset {start} is not UTF-8: {e}") from e
        # a dot inside a label cannot survive flatten()
        if "." in text:
            raise ParsingError(f"Label at offset {start} contains a dot: {text!r}")
        names.append(Label(text))


def resolve_names(
    data: bytes,
    names: list[NamePart],
    seen: Optional[set[int]] = None,
) -> list[NamePart]:
    """
    Replace every Pointer in `names` (in place) with the parts it refers to.

    `data` must be the complete message: compression offsets are always
    absolute. `seen` tracks the offsets followed for this one name; pass a
    fresh set (or None) per top-level name. A chain of pointers is followed
    to the end, and revisiting an offset raises CircularReference.
    """
    if seen is None:
        seen = set()

    pending = [names]
    while pending:
        parts = pending.pop()
        for i, part in enumerate(parts):
            if not isinstance(part, Pointer):
                continue
            if part.offset in seen:
                raise CircularReference(part.offset)
            seen.add(part.offset)
            resolved = read_names(WireReader(data, part.offset))
            parts[i] = ResolvedPointer(resolved)
            pending.append(resolved)
    return names


def flatten(names: list[NamePart]) -> str:
    """Join resolved name parts into a dotted name without a trailing dot."""
    labels: list[str] = []
    stack = [iter(names)]
    while stack:
        part = next(stack[-1], None)
        if part is None:
            stack.pop()
        elif isinstance(part, Label):
            labels.append(part.text)
        elif isinstance(part, ResolvedPointer):
            stack.append(iter(part.names))
        else:
            # resolve_names() always runs first
            logger.error(f"Found unresolved pointer to offset {part.offset}, skipping")
    return ".".join(labels)


def read_name(reader: WireReader, data: bytes) -> str:
    """Read, resolve against `data` and flatten a single name."""
    names = read_names(reader)
    resolve_names(data, names)
    return flatten(names)


def decode_name(data: bytes, offset: int) -> tuple[str, int]:
    """Decode the name at `offset` of a full message; returns (name, end offset)."""
    reader = WireReader(data, offset)
    name = read_name(reader, data)
    return name, reader.offset


def encode_name(name: str, writer: WireWriter) -> int:
    """
    Write `name` as uncompressed length-prefixed labels.

    A single trailing dot is accepted; "" and "." encode the root name.
    """
    if name.endswith("."):
        name = name[:-1]

    count = 0
    if name:
        for label in name.split("."):
            try:
                encoded = label.encode("utf-8")
            except UnicodeEncodeError as e:
                raise EncodingError(f"Label {label!r} cannot be encoded: {e}") from e
            if not encoded:
                raise EncodingError(f"Empty label in name {name!r}")
            if len(encoded) > MAX_LABEL_LENGTH:
                raise NameLengthExceeded(len(encoded), label)
            count += writer.write_u8(len(encoded))
            count += writer.write_bytes(encoded)
    count += writer.write_u8(0)
    return count
