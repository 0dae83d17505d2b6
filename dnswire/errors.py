"""
Errors raised by the DNS message codec.
"""


class MessageError(ValueError):
    """Base class for every decode/encode failure."""


class ParsingError(MessageError):
    """Malformed or truncated wire data."""


class EncodingError(MessageError):
    """A value could not be converted to or from its wire representation."""


class CircularReference(MessageError):
    """A compression pointer was followed twice while resolving one name."""

    def __init__(self, offset: int):
        self.offset = offset
        super().__init__(
            f"Circular reference - detected a pointer we have seen already: {offset}"
        )


class ReservedOpCode(MessageError):
    """An opcode does not fit in the 4-bit header field."""

    def __init__(self, value: int):
        self.value = value
        super().__init__(f"OpCode {value} does not fit in 4 bits")


class NameLengthExceeded(MessageError):
    """A label is longer than 63 bytes."""

    def __init__(self, length: int, label: str):
        self.length = length
        self.label = label
        super().__init__(f"Label of length {length} exceeds 63 bytes: {label!r}")
