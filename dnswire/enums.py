"""
Numeric code points used in DNS messages.

Each enum is open: calling it with a value outside the known set returns an
"unknown" pseudo-member carrying that value instead of raising, so codes a
peer sends are preserved as-is. Use `.is_unknown` to tell them apart.
"""

from enum import IntEnum


class OpenIntEnum(IntEnum):

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, int) or isinstance(value, bool):
            return None
        member = int.__new__(cls, value)
        member._name_ = f"UNKNOWN_{value}"
        member._value_ = value
        return cls._value2member_map_.setdefault(value, member)

    @property
    def is_unknown(self) -> bool:
        return self._name_ not in type(self).__members__

    @property
    def mnemonic(self) -> str:
        if self.is_unknown:
            return f"Unknown({self.value})"
        return self._name_


class OpCode(OpenIntEnum):
    QUERY = 0
    IQUERY = 1
    STATUS = 2


class RCode(OpenIntEnum):
    NOERROR = 0
    FORMERR = 1
    SERVFAIL = 2
    NXDOMAIN = 3
    NOTIMP = 4
    REFUSED = 5


class Type(OpenIntEnum):
    A = 1
    NS = 2
    MD = 3
    MF = 4
    CNAME = 5
    SOA = 6
    MB = 7
    MG = 8
    MR = 9
    NULL = 10
    WKS = 11
    PTR = 12
    HINFO = 13
    MINFO = 14
    MX = 15
    TXT = 16
    AAAA = 28
    AXFR = 252
    MAILB = 253
    MAILA = 254
    STAR = 255

    @property
    def mnemonic(self) -> str:
        if self is Type.STAR:
            return "*"
        return super().mnemonic


class Class(OpenIntEnum):
    IN = 1
    CS = 2
    CH = 3
    HS = 4
    STAR = 255
