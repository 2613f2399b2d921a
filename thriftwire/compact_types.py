"""Type nibbles of the compact protocol and their mapping to wire types."""

from __future__ import annotations

import enum

from thriftwire.protocol import TType


class CompactType(enum.IntEnum):
    """Type identifiers of the compact protocol.

    Any byte converts to a ``CompactType``; only its low nibble carries
    the type, so ``to_ttype`` looks at that alone.
    """

    STOP = 0x00
    BOOLEAN_TRUE = 0x01
    BOOLEAN_FALSE = 0x02
    BYTE = 0x03
    I16 = 0x04
    I32 = 0x05
    I64 = 0x06
    DOUBLE = 0x07
    BINARY = 0x08
    LIST = 0x09
    SET = 0x0A
    MAP = 0x0B
    STRUCT = 0x0C

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, int) or not 0 <= value <= 0xFF:
            return None
        member = int.__new__(cls, value)
        member._name_ = None
        member._value_ = value
        return cls._value2member_map_.setdefault(value, member)

    def to_ttype(self) -> TType:
        """Wire type named by the low nibble; STOP when it names none."""
        return _TO_TTYPE.get(int(self) & 0x0F, TType.STOP)


_TO_TTYPE = {
    CompactType.BOOLEAN_FALSE: TType.BOOL,
    CompactType.BOOLEAN_TRUE: TType.BOOL,
    CompactType.BYTE: TType.BYTE,
    CompactType.I16: TType.I16,
    CompactType.I32: TType.I32,
    CompactType.I64: TType.I64,
    CompactType.DOUBLE: TType.DOUBLE,
    CompactType.BINARY: TType.STRING,
    CompactType.LIST: TType.LIST,
    CompactType.SET: TType.SET,
    CompactType.MAP: TType.MAP,
    CompactType.STRUCT: TType.STRUCT,
}

_FROM_TTYPE = {
    TType.STOP: CompactType.STOP,
    TType.BOOL: CompactType.BOOLEAN_TRUE,
    TType.BYTE: CompactType.BYTE,
    TType.I16: CompactType.I16,
    TType.I32: CompactType.I32,
    TType.I64: CompactType.I64,
    TType.DOUBLE: CompactType.DOUBLE,
    TType.STRING: CompactType.BINARY,
    TType.LIST: CompactType.LIST,
    TType.SET: CompactType.SET,
    TType.MAP: CompactType.MAP,
    TType.STRUCT: CompactType.STRUCT,
}


def compact_type_of(ttype: TType) -> CompactType:
    """Compact type written for ``ttype``; STOP for types it has none for."""
    return _FROM_TTYPE.get(ttype, CompactType.STOP)