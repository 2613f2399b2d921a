"""Reader and writer for the Thrift compact protocol."""

from __future__ import annotations

import struct
from typing import BinaryIO, Callable

from thriftwire.compact_types import CompactType, compact_type_of
from thriftwire.protocol import (
    COMPACT_PROTOCOL_ID,
    COMPACT_TYPE_BITS,
    COMPACT_TYPE_SHIFT_AMOUNT,
    COMPACT_VERSION,
    COMPACT_VERSION_MASK,
    MessageHeader,
    MessageType,
    ProtocolError,
    TType,
)
from thriftwire.spi import (
    Iterator,
    Stream,
    discard_list,
    discard_map,
    discard_struct,
)

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"

_MASK16 = 0xFFFF
_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF


def _signed(value: int, bits: int) -> int:
    """Interpret the low ``bits`` bits of ``value`` as a two's complement number."""
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


class CompactIterator(Iterator):
    """Reads compact-protocol values from a byte buffer, then from a reader.

    Bytes in ``buf`` are consumed first; once they run out, further bytes
    come from ``reader`` (any object with a ``read(n)`` method).
    """

    def __init__(self, reader: BinaryIO | None = None, buf: bytes = b"") -> None:
        self._reader = reader
        self._preread = bytes(buf or b"")
        self._pos = 0
        self._skipped: bytearray | None = None
        self._field_id_stack: list[int] = []
        self._last_field_id = 0
        self._pending_bool: bool | None = None

    def _read(self, n: int) -> bytes:
        start = self._pos
        data = self._preread[start:start + n]
        self._pos = start + len(data)
        missing = n - len(data)
        if missing:
            if self._reader is None:
                raise ProtocolError("read", "EOF")
            parts = [data]
            while missing:
                chunk = self._reader.read(missing)
                if not chunk:
                    raise ProtocolError("read", "unexpected EOF")
                parts.append(chunk)
                missing -= len(chunk)
            data = b"".join(parts)
        if self._skipped is not None:
            self._skipped += data
        return data

    def _read_byte(self) -> int:
        return self._read(1)[0]

    def _read_varint64(self) -> int:
        result = 0
        shift = 0
        while True:
            byte = self._read_byte()
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                break
            shift += 7
        return _signed(result, 64)

    def _read_varint32(self) -> int:
        return _signed(self._read_varint64(), 32)

    def spawn(self) -> CompactIterator:
        """A fresh iterator with no input."""
        return CompactIterator()

    def reset(self, reader: BinaryIO | None, buf: bytes = b"") -> None:
        """Start reading from new input."""
        self._reader = reader
        self._preread = bytes(buf or b"")
        self._pos = 0

    def read_message_header(self) -> MessageHeader:
        protocol_id = self._read_byte()
        if protocol_id != COMPACT_PROTOCOL_ID:
            raise ProtocolError("ReadMessageHeader", "invalid protocol")
        version_and_type = self._read_byte()
        version = version_and_type & COMPACT_VERSION_MASK
        message_type = MessageType(
            (version_and_type >> COMPACT_TYPE_SHIFT_AMOUNT) & COMPACT_TYPE_BITS
        )
        if version != COMPACT_VERSION:
            raise ProtocolError(
                "ReadMessageHeader",
                f"expected version {COMPACT_VERSION:02x} but got {version:02x}",
            )
        seq_id = self._read_varint32()
        name = self.read_string()
        return MessageHeader(message_name=name, message_type=message_type, seq_id=seq_id)

    def read_struct_header(self) -> None:
        self._field_id_stack.append(self._last_field_id)
        self._last_field_id = 0

    def read_struct_field(self) -> tuple[TType, int]:
        first = self._read_byte()
        if first == 0:
            if not self._field_id_stack:
                raise ProtocolError("ReadStructField", "stop outside of a struct")
            self._last_field_id = self._field_id_stack.pop()
            self._pending_bool = None
            return TType.STOP, 0
        modifier = (first & 0xF0) >> 4
        if modifier == 0:
            field_id = self.read_int16()
        else:
            field_id = _signed(self._last_field_id + modifier, 16)
        compact_type = CompactType(first & 0x0F)
        if compact_type == CompactType.BOOLEAN_TRUE:
            field_type = TType.BOOL
            self._pending_bool = True
        elif compact_type == CompactType.BOOLEAN_FALSE:
            field_type = TType.BOOL
            self._pending_bool = False
        else:
            field_type = compact_type.to_ttype()
            self._pending_bool = None
        self._last_field_id = field_id
        return field_type, field_id

    def read_list_header(self) -> tuple[TType, int]:
        len_and_type = self._read_byte()
        length = (len_and_type >> 4) & 0x0F
        if length == 15:
            length = self._read_varint32()
            if length < 0:
                raise ProtocolError("ReadListHeader", "invalid length")
        return CompactType(len_and_type).to_ttype(), length

    def read_map_header(self) -> tuple[TType, TType, int]:
        length = self._read_varint32()
        if length == 0:
            return TType.STOP, TType.STOP, 0
        if length < 0:
            raise ProtocolError("ReadMapHeader", "invalid length")
        types = self._read_byte()
        key_type = CompactType(types >> 4).to_ttype()
        elem_type = CompactType(types & 0x0F).to_ttype()
        return key_type, elem_type, length

    def read_bool(self) -> bool:
        if self._pending_bool is None:
            return self.read_uint8() == 1
        return self._pending_bool

    def read_int(self) -> int:
        return self.read_int64()

    def read_uint(self) -> int:
        return self.read_int64() & _MASK64

    def read_int8(self) -> int:
        return _signed(self.read_uint8(), 8)

    def read_uint8(self) -> int:
        return self._read_byte()

    def read_int16(self) -> int:
        return _signed(self.read_int32(), 16)

    def read_uint16(self) -> int:
        return self.read_uint32() & _MASK16

    def read_int32(self) -> int:
        result = self._read_varint32()
        return (result & _MASK32) >> 1 ^ -(result & 1)

    def read_uint32(self) -> int:
        return self.read_int32() & _MASK32

    def read_int64(self) -> int:
        result = self._read_varint64()
        return (result & _MASK64) >> 1 ^ -(result & 1)

    def read_uint64(self) -> int:
        return self.read_int64() & _MASK64

    def read_float64(self) -> float:
        return struct.unpack("<d", self._read(8))[0]

    def read_string(self) -> str:
        return self.read_binary().decode(_ENCODING, _ERRORS)

    def read_binary(self) -> bytes:
        length = self._read_varint32()
        if length < 0:
            raise ProtocolError("ReadBinary", "invalid length")
        return self._read(length)

    def discard(self, ttype: TType) -> None:
        if ttype == TType.BOOL:
            self.read_bool()
        elif ttype == TType.I08:
            self.read_int8()
        elif ttype == TType.I16:
            self.read_int16()
        elif ttype == TType.I32:
            self.read_int32()
        elif ttype == TType.I64:
            self.read_int64()
        elif ttype == TType.DOUBLE:
            self.read_float64()
        elif ttype == TType.STRING:
            self.skip_binary()
        elif ttype == TType.LIST:
            discard_list(self)
        elif ttype == TType.STRUCT:
            discard_struct(self)
        elif ttype == TType.MAP:
            discard_map(self)
        else:
            raise ProtocolError("Discard", f"unsupported type {ttype}")

    def _capture(self, action: Callable[[], object]) -> bytes:
        self._skipped = bytearray()
        try:
            action()
            return bytes(self._skipped)
        finally:
            self._skipped = None

    def skip(self, ttype: TType) -> bytes:
        """Read past one value and return its encoded bytes."""
        return self._capture(lambda: self.discard(ttype))

    def skip_message_header(self) -> bytes:
        return self._capture(self.read_message_header)

    def skip_struct(self) -> bytes:
        return self.skip(TType.STRUCT)

    def skip_list(self) -> bytes:
        return self.skip(TType.LIST)

    def skip_map(self) -> bytes:
        return self.skip(TType.MAP)

    def skip_binary(self) -> bytes:
        """Read past a binary value and return its content."""
        return self.read_binary()


class CompactStream(Stream):
    """Writes compact-protocol values into a buffer, optionally flushed to a writer."""

    def __init__(self, writer: BinaryIO | None = None, buf: bytes | None = None) -> None:
        self._writer = writer
        self._buf = bytearray(buf or b"")
        self._field_id_stack: list[int] = []
        self._last_field_id = 0
        self._pending_bool_field: int | None = None

    def spawn(self) -> CompactStream:
        """A fresh stream with no writer."""
        return CompactStream()

    def reset(self, writer: BinaryIO | None) -> None:
        """Use a new writer and drop buffered bytes."""
        self._writer = writer
        self._buf.clear()

    def buffer(self) -> bytes:
        """Bytes written and not yet flushed."""
        return bytes(self._buf)

    def flush(self) -> None:
        """Hand buffered bytes to the writer, if there is one."""
        if self._writer is None:
            return
        try:
            self._writer.write(bytes(self._buf))
            flush = getattr(self._writer, "flush", None)
            if callable(flush):
                flush()
        except OSError as exc:
            raise ProtocolError("Flush", str(exc)) from exc
        self._buf.clear()

    def write(self, buf: bytes) -> None:
        """Append already encoded bytes and flush."""
        self._buf += buf
        self.flush()

    def _write_varint(self, n: int) -> None:
        while n > 0x7F:
            self._buf.append((n & 0x7F) | 0x80)
            n >>= 7
        self._buf.append(n)

    def _write_varint32(self, n: int) -> None:
        self._write_varint(n & _MASK32)

    def _write_varint64(self, n: int) -> None:
        self._write_varint(n & _MASK64)

    def _write_field_header(self, compact_type: int, field_id: int) -> None:
        field_id = _signed(field_id, 16)
        delta = field_id - self._last_field_id
        if field_id > self._last_field_id and delta <= 15:
            self.write_uint8((delta << 4) | compact_type)
        else:
            self.write_uint8(compact_type)
            self.write_int16(field_id)
        self._last_field_id = field_id

    def write_message_header(self, header: MessageHeader) -> None:
        self._buf.append(COMPACT_PROTOCOL_ID)
        self._buf.append(
            (COMPACT_VERSION & COMPACT_VERSION_MASK)
            | ((int(header.message_type) << COMPACT_TYPE_SHIFT_AMOUNT) & 0xE0)
        )
        self._write_varint32(header.seq_id)
        self.write_string(header.message_name)

    def write_list_header(self, elem_type: TType, length: int) -> None:
        compact_type = int(compact_type_of(elem_type))
        if length <= 14:
            self.write_uint8((length << 4) | compact_type)
            return
        self.write_uint8(0xF0 | compact_type)
        self._write_varint32(length)

    def write_struct_header(self) -> None:
        self._field_id_stack.append(self._last_field_id)
        self._last_field_id = 0

    def write_struct_field(self, field_type: TType, field_id: int) -> None:
        if field_type == TType.BOOL:
            self._pending_bool_field = _signed(field_id, 16)
            return
        self._write_field_header(int(compact_type_of(field_type)), field_id)

    def write_struct_field_stop(self) -> None:
        if not self._field_id_stack:
            raise ProtocolError("WriteStructFieldStop", "stop outside of a struct")
        self._buf.append(CompactType.STOP)
        self._last_field_id = self._field_id_stack.pop()
        self._pending_bool_field = None

    def write_map_header(self, key_type: TType, elem_type: TType, length: int) -> None:
        if length == 0:
            self.write_uint8(0)
            return
        self._write_varint32(length)
        self.write_uint8(
            (int(compact_type_of(key_type)) << 4) | int(compact_type_of(elem_type))
        )

    def write_bool(self, val: bool) -> None:
        if self._pending_bool_field is None:
            self.write_uint8(1 if val else 0)
            return
        compact_type = CompactType.BOOLEAN_TRUE if val else CompactType.BOOLEAN_FALSE
        self._write_field_header(int(compact_type), self._pending_bool_field)
        self._pending_bool_field = None

    def write_int(self, val: int) -> None:
        self.write_int64(val)

    def write_uint(self, val: int) -> None:
        self.write_uint64(val)

    def write_int8(self, val: int) -> None:
        self.write_uint8(val)

    def write_uint8(self, val: int) -> None:
        self._buf.append(val & 0xFF)

    def write_int16(self, val: int) -> None:
        self.write_int32(_signed(val, 16))

    def write_uint16(self, val: int) -> None:
        self.write_int32(val & _MASK16)

    def write_int32(self, val: int) -> None:
        val = _signed(val, 32)
        self._write_varint32((val << 1) ^ (val >> 31))

    def write_uint32(self, val: int) -> None:
        self.write_int32(val)

    def write_int64(self, val: int) -> None:
        val = _signed(val, 64)
        self._write_varint64((val << 1) ^ (val >> 63))

    def write_uint64(self, val: int) -> None:
        self.write_int64(val)

    def write_float64(self, val: float) -> None:
        self._buf += struct.pack("<d", val)

    def write_binary(self, val: bytes) -> None:
        self._write_varint32(len(val))
        self._buf += val

    def write_string(self, val: str) -> None:
        self.write_binary(val.encode(_ENCODING, _ERRORS))