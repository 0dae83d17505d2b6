"""
dnswire — a DNS message codec with a small UDP relay.
"""

__version__ = "0.1.0"

from .builder import MessageBuilder, QuestionBuilder, ResourceRecordBuilder
from .enums import Class, OpCode, RCode, Type
from .errors import (
    CircularReference, EncodingError, MessageError,
    NameLengthExceeded, ParsingError, ReservedOpCode,
)
from .header import Header
from .protocol import Message, decode, encode
from .records import AAAA, CNAME, SOA, TXT, A, Question, Raw, RData, ResourceRecord
