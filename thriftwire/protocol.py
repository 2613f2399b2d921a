"""Core Thrift wire types, message headers and the protocol error."""

from __future__ import annotations

import enum
from dataclasses import dataclass

BINARY_VERSION_MASK = 0xFFFF0000
BINARY_VERSION_1 = 0x80010000

COMPACT_PROTOCOL_ID = 0x082
COMPACT_VERSION = 0x01
COMPACT_VERSION_BE = 0x02
COMPACT_VERSION_MASK = 0x1F
COMPACT_TYPE_BITS = 0x07
COMPACT_TYPE_SHIFT_AMOUNT = 5


class TType(enum.IntEnum):
    """Type identifiers used on the Thrift wire.

    Values read from the wire that have no name still convert to a
    ``TType``; they print as ``Unknown``.
    """

    STOP = 0
    VOID = 1
    BOOL = 2
    BYTE = 3
    I08 = 3
    DOUBLE = 4
    I16 = 6
    I32 = 8
    I64 = 10
    STRING = 11
    UTF7 = 11
    STRUCT = 12
    MAP = 13
    SET = 14
    LIST = 15
    UTF8 = 16
    UTF16 = 17

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, int) or not 0 <= value <= 0xFF:
            return None
        member = int.__new__(cls, value)
        member._name_ = None
        member._value_ = value
        return cls._value2member_map_.setdefault(value, member)

    def __str__(self) -> str:
        return _TYPE_NAMES.get(int(self), "Unknown")


_TYPE_NAMES = {
    TType.STOP: "Stop",
    TType.VOID: "Void",
    TType.BOOL: "Bool",
    TType.BYTE: "Byte",
    TType.DOUBLE: "Double",
    TType.I16: "I16",
    TType.I32: "I32",
    TType.I64: "I64",
    TType.STRING: "String",
    TType.STRUCT: "Struct",
    TType.MAP: "Map",
    TType.SET: "Set",
    TType.LIST: "List",
    TType.UTF8: "UTF8",
    TType.UTF16: "UTF16",
}


class MessageType(enum.IntEnum):
    """Kind of a Thrift message."""

    INVALID = 0
    CALL = 1
    REPLY = 2
    EXCEPTION = 3
    ONEWAY = 4

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, int) or not -(1 << 31) <= value < (1 << 31):
            return None
        member = int.__new__(cls, value)
        member._name_ = None
        member._value_ = value
        return cls._value2member_map_.setdefault(value, member)


@dataclass
class MessageHeader:
    """Name, kind and sequence id that open every Thrift message."""

    message_name: str = ""
    message_type: MessageType = MessageType.INVALID
    seq_id: int = 0


class ProtocolError(Exception):
    """Raised when data cannot be read or written in the Thrift format."""

    def __init__(self, operation: str, detail: str) -> None:
        super().__init__(f"{operation}: {detail}")
        self.operation = operation
        self.detail = detail