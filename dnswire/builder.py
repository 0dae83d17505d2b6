"""
Fluent helpers for assembling messages by hand.

    message = (
        MessageBuilder()
        .id(1234)
        .rd(True)
        .question(QuestionBuilder().name("example.com").q_type(Type.AAAA).build())
        .build()
    )

Anything left unset takes the default: OpCode.QUERY, RCode.NOERROR,
Class.IN, a ttl of 0 and every flag cleared.
"""

from dataclasses import replace

from .enums import Class, OpCode, RCode, Type
from .header import Header
from .protocol import Message
from .records import Question, RData, ResourceRecord


class MessageBuilder:
    def __init__(self):
        self._header = Header()
        self._questions: list[Question] = []
        self._answers: list[ResourceRecord] = []
        self._name_servers: list[ResourceRecord] = []
        self._additional_records: list[ResourceRecord] = []

    def build(self) -> Message:
        return Message(
            header=replace(self._header),
            questions=list(self._questions),
            answers=list(self._answers),
            name_servers=list(self._name_servers),
            additional_records=list(self._additional_records),
        )

    def id(self, msg_id: int) -> "MessageBuilder":
        """16 bit identifier, copied into the reply to match it to the query."""
        self._header.id = msg_id
        return self

    def qr(self, qr: bool) -> "MessageBuilder":
        """Whether the message is a response (True) or a query."""
        self._header.qr = qr
        return self

    def opcode(self, opcode: OpCode) -> "MessageBuilder":
        self._header.opcode = OpCode(opcode)
        return self

    def aa(self, aa: bool) -> "MessageBuilder":
        """Authoritative Answer."""
        self._header.aa = aa
        return self

    def tc(self, tc: bool) -> "MessageBuilder":
        """TrunCation."""
        self._header.tc = tc
        return self

    def rd(self, rd: bool) -> "MessageBuilder":
        """Recursion Desired."""
        self._header.rd = rd
        return self

    def ra(self, ra: bool) -> "MessageBuilder":
        """Recursion Available."""
        self._header.ra = ra
        return self

    def ad(self, ad: bool) -> "MessageBuilder":
        """Authentic Data (RFC2535)."""
        self._header.ad = ad
        return self

    def cd(self, cd: bool) -> "MessageBuilder":
        """Checking Disabled (RFC2535)."""
        self._header.cd = cd
        return self

    def rcode(self, rcode: RCode) -> "MessageBuilder":
        self._header.rcode = RCode(rcode)
        return self

    def question(self, question: Question) -> "MessageBuilder":
        self._questions.append(question)
        return self

    def answer(self, answer: ResourceRecord) -> "MessageBuilder":
        self._answers.append(answer)
        return self

    def name_server(self, ns: ResourceRecord) -> "MessageBuilder":
        self._name_servers.append(ns)
        return self

    def additional_record(self, ar: ResourceRecord) -> "MessageBuilder":
        self._additional_records.append(ar)
        return self


class QuestionBuilder:
    def __init__(self):
        self._name = ""
        self._type = Type.A
        self._class = Class.IN

    def build(self) -> Question:
        return Question(self._name, self._type, self._class)

    def name(self, name: str) -> "QuestionBuilder":
        """Domain name to ask about; each label must be 63 bytes or less."""
        self._name = name
        return self

    def q_type(self, q_type: Type) -> "QuestionBuilder":
        self._type = Type(q_type)
        return self

    def q_class(self, q_class: Class) -> "QuestionBuilder":
        self._class = Class(q_class)
        return self


class ResourceRecordBuilder:
    """A record always needs an owner name and its rdata."""

    def __init__(self, name: str, data: RData):
        self._name = name
        self._data = data
        self._class = Class.IN
        self._ttl = 0

    def build(self) -> ResourceRecord:
        return ResourceRecord(
            name=self._name, data=self._data, rclass=self._class, ttl=self._ttl
        )

    def rclass(self, rclass: Class) -> "ResourceRecordBuilder":
        self._class = Class(rclass)
        return self

    def ttl(self, ttl: int) -> "ResourceRecordBuilder":
        self._ttl = ttl
        return self
