"""Reader and writer for the Thrift binary protocol."""

from __future__ import annotations

import struct
from typing import BinaryIO, Callable

from thriftwire.protocol import (
    BINARY_VERSION_1,
    BINARY_VERSION_MASK,
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


class BinaryIterator(Iterator):
    """Reads binary-protocol values from a byte buffer, then from a reader.

    Bytes in ``buf`` are consumed first; once they run out, further bytes
    come from ``reader`` (any object with a ``read(n)`` method).
    """

    def __init__(self, reader: BinaryIO | None = None, buf: bytes = b"") -> None:
        self._reader = reader
        self._preread = bytes(buf)
        self._pos = 0
        self._skipped: bytearray | None = None

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

    def _unpack(self, fmt: str) -> int | float:
        return struct.unpack(fmt, self._read(struct.calcsize(fmt)))[0]

    def spawn(self) -> BinaryIterator:
        """A fresh iterator with no input."""
        return BinaryIterator()

    def reset(self, reader: BinaryIO | None, buf: bytes = b"") -> None:
        """Start reading from new input."""
        self._reader = reader
        self._preread = bytes(buf or b"")
        self._pos = 0

    def read_message_header(self) -> MessageHeader:
        version_and_type = self.read_uint32()
        if version_and_type & BINARY_VERSION_MASK != BINARY_VERSION_1:
            raise ProtocolError("ReadMessageHeader", "unexpected version")
        message_type = MessageType(version_and_type & 0xFF)
        name = self.read_string()
        seq_id = self.read_int32()
        return MessageHeader(message_name=name, message_type=message_type, seq_id=seq_id)

    def read_struct_header(self) -> None:
        pass

    def read_struct_field(self) -> tuple[TType, int]:
        field_type = TType(self._read(1)[0])
        if field_type == TType.STOP:
            return TType.STOP, 0
        return field_type, self.read_int16()

    def read_list_header(self) -> tuple[TType, int]:
        header = self._read(5)
        return TType(header[0]), int.from_bytes(header[1:5], "big")

    def read_map_header(self) -> tuple[TType, TType, int]:
        header = self._read(6)
        return TType(header[0]), TType(header[1]), int.from_bytes(header[2:6], "big")

    def read_bool(self) -> bool:
        return self.read_uint8() == 1

    def read_int(self) -> int:
        return self.read_int64()

    def read_uint(self) -> int:
        return self.read_uint64()

    def read_int8(self) -> int:
        return self._unpack(">b")

    def read_uint8(self) -> int:
        return self._read(1)[0]

    def read_int16(self) -> int:
        return self._unpack(">h")

    def read_uint16(self) -> int:
        return self._unpack(">H")

    def read_int32(self) -> int:
        return self._unpack(">i")

    def read_uint32(self) -> int:
        return self._unpack(">I")

    def read_int64(self) -> int:
        return self._unpack(">q")

    def read_uint64(self) -> int:
        return self._unpack(">Q")

    def read_float64(self) -> float:
        return self._unpack(">d")

    def read_string(self) -> str:
        return self.read_binary().decode(_ENCODING, _ERRORS)

    def read_binary(self) -> bytes:
        return self._read(self.read_uint32())

    def discard(self, ttype: TType) -> None:
        if ttype in (TType.BOOL, TType.I08):
            self._read(1)
        elif ttype == TType.I16:
            self._read(2)
        elif ttype == TType.I32:
            self._read(4)
        elif ttype in (TType.I64, TType.DOUBLE):
            self._read(8)
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


class BinaryStream(Stream):
    """Writes binary-protocol values into a buffer, optionally flushed to a writer."""

    def __init__(self, writer: BinaryIO | None = None, buf: bytes | None = None) -> None:
        self._writer = writer
        self._buf = bytearray(buf or b"")

    def spawn(self) -> BinaryStream:
        """A fresh stream with no writer."""
        return BinaryStream()

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

    def write_message_header(self, header: MessageHeader) -> None:
        self.write_uint32(BINARY_VERSION_1 | (int(header.message_type) & 0xFFFFFFFF))
        self.write_string(header.message_name)
        self.write_int32(header.seq_id)

    def write_list_header(self, elem_type: TType, length: int) -> None:
        self._buf.append(int(elem_type) & 0xFF)
        self._buf += (length & 0xFFFFFFFF).to_bytes(4, "big")

    def write_struct_header(self) -> None:
        pass

    def write_struct_field(self, field_type: TType, field_id: int) -> None:
        self._buf.append(int(field_type) & 0xFF)
        self._buf += (field_id & 0xFFFF).to_bytes(2, "big")

    def write_struct_field_stop(self) -> None:
        self._buf.append(TType.STOP)

    def write_map_header(self, key_type: TType, elem_type: TType, length: int) -> None:
        self._buf.append(int(key_type) & 0xFF)
        self._buf.append(int(elem_type) & 0xFF)
        self._buf += (length & 0xFFFFFFFF).to_bytes(4, "big")

    def write_bool(self, val: bool) -> None:
        self.write_uint8(1 if val else 0)

    def write_int(self, val: int) -> None:
        self.write_int64(val)

    def write_uint(self, val: int) -> None:
        self.write_uint64(val)

    def write_int8(self, val: int) -> None:
        self.write_uint8(val)

    def write_uint8(self, val: int) -> None:
        self._buf.append(val & 0xFF)

    def write_int16(self, val: int) -> None:
        self.write_uint16(val)

    def write_uint16(self, val: int) -> None:
        self._buf += (val & 0xFFFF).to_bytes(2, "big")

    def write_int32(self, val: int) -> None:
        self.write_uint32(val)

    def write_uint32(self, val: int) -> None:
        self._buf += (val & 0xFFFFFFFF).to_bytes(4, "big")

    def write_int64(self, val: int) -> None:
        self.write_uint64(val)

    def write_uint64(self, val: int) -> None:
        self._buf += (val & 0xFFFFFFFFFFFFFFFF).to_bytes(8, "big")

    def write_float64(self, val: float) -> None:
        self._buf += struct.pack(">d", val)

    def write_binary(self, val: bytes) -> None:
        self.write_uint32(len(val))
        self._buf += val

    def write_string(self, val: str) -> None:
        self.write_binary(val.encode(_ENCODING, _ERRORS))