"""Schema-less Thrift values: lists, maps, structs and messages read and
written without generated code."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from thriftwire.protocol import MessageHeader, ProtocolError, TType
from thriftwire.spi import Extension as _ExtensionBase
from thriftwire.spi import Iterator, Stream, ValDecoder, ValEncoder

Reader = Callable[[Iterator], Any]
Writer = Callable[[Any, Stream], None]


class _FixedInt(int):
    """An integer that remembers the Thrift width it is written with."""

    bits = 64

    def __new__(cls, value: int = 0) -> _FixedInt:
        value = int(value)
        limit = 1 << (cls.bits - 1)
        if not -limit <= value < limit:
            raise ValueError(f"{value} does not fit in {cls.__name__}")
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({int(self)})"


class Int8(_FixedInt):
    """A signed 8-bit integer, written as a Thrift byte."""

    bits = 8


class Int16(_FixedInt):
    """A signed 16-bit integer, written as a Thrift i16."""

    bits = 16


class Int32(_FixedInt):
    """A signed 32-bit integer, written as a Thrift i32."""

    bits = 32


class Int64(_FixedInt):
    """A signed 64-bit integer, written as a Thrift i64."""

    bits = 64


def _descend(elem: Any, path: tuple) -> Any:
    if not path:
        return elem
    if not isinstance(elem, (List, Map, Struct)):
        raise TypeError(f"cannot look up {path[0]!r} in {type(elem).__name__}")
    return elem.get(*path)


class List(list):
    """A Thrift list whose element type is taken from its contents."""

    def get(self, *path: Any) -> Any:
        """Follow a path of indexes and keys into nested values."""
        if not path:
            return self
        return _descend(self[path[0]], path[1:])


class Map(dict):
    """A Thrift map whose key and element types are taken from its contents."""

    def get(self, *path: Any) -> Any:
        """Follow a path of keys and indexes; a missing key gives ``None``."""
        if not path:
            return self
        return _descend(dict.get(self, path[0]), path[1:])


class Struct(dict):
    """A Thrift struct as a mapping from field id to value."""

    def get(self, *path: Any) -> Any:
        """Follow a path of field ids and keys; a missing field gives ``None``."""
        if not path:
            return self
        return _descend(dict.get(self, path[0]), path[1:])


@dataclass
class Message(MessageHeader):
    """A message header followed by its argument struct."""

    arguments: Struct = field(default_factory=Struct)


def reader_of(ttype: TType) -> Reader:
    """Function that reads one value of wire type ``ttype``."""
    try:
        return _READERS[ttype]
    except KeyError:
        raise ProtocolError("read", f"unsupported type {TType(ttype)}") from None


def read_list(iterator: Iterator) -> List:
    """Read a list of any element type."""
    elem_type, length = iterator.read_list_header()
    result = List()
    if length == 0:
        return result
    read = reader_of(elem_type)
    for _ in range(length):
        result.append(read(iterator))
    return result


def read_map(iterator: Iterator) -> Map:
    """Read a map of any key and element type."""
    key_type, elem_type, length = iterator.read_map_header()
    result = Map()
    if length == 0:
        return result
    read_key = reader_of(key_type)
    read_elem = reader_of(elem_type)
    for _ in range(length):
        key = read_key(iterator)
        result[key] = read_elem(iterator)
    return result


def read_struct(iterator: Iterator) -> Struct:
    """Read a struct, keeping every field by its id."""
    result = Struct()
    iterator.read_struct_header()
    while True:
        field_type, field_id = iterator.read_struct_field()
        if field_type == TType.STOP:
            return result
        result[field_id] = reader_of(field_type)(iterator)


def read_message(iterator: Iterator) -> Message:
    """Read a message header and its argument struct."""
    header = iterator.read_message_header()
    return Message(
        message_name=header.message_name,
        message_type=header.message_type,
        seq_id=header.seq_id,
        arguments=read_struct(iterator),
    )


_READERS: dict[int, Reader] = {
    TType.BOOL: lambda it: it.read_bool(),
    TType.I08: lambda it: Int8(it.read_int8()),
    TType.I16: lambda it: Int16(it.read_int16()),
    TType.I32: lambda it: Int32(it.read_int32()),
    TType.I64: lambda it: Int64(it.read_int64()),
    TType.STRING: lambda it: it.read_string(),
    TType.DOUBLE: lambda it: it.read_float64(),
    TType.LIST: read_list,
    TType.MAP: read_map,
    TType.STRUCT: read_struct,
}


def write_list(obj: list, stream: Stream) -> None:
    """Write a list; its element type comes from the first element."""
    if not obj:
        stream.write_list_header(TType.I64, 0)
        return
    elem_type, write = writer_of(obj[0])
    stream.write_list_header(elem_type, len(obj))
    for elem in obj:
        write(elem, stream)


def write_map(obj: dict, stream: Stream) -> None:
    """Write a map; its key and element types come from one entry."""
    if not obj:
        stream.write_map_header(TType.I64, TType.I64, 0)
        return
    key_sample, elem_sample = next(iter(obj.items()))
    key_type, write_key = writer_of(key_sample)
    elem_type, write_elem = writer_of(elem_sample)
    stream.write_map_header(key_type, elem_type, len(obj))
    for key, elem in obj.items():
        write_key(key, stream)
        write_elem(elem, stream)


def write_struct(obj: Struct, stream: Stream) -> None:
    """Write a struct; each field's type comes from its value."""
    stream.write_struct_header()
    for field_id, elem in obj.items():
        field_type, write = writer_of(elem)
        stream.write_struct_field(field_type, field_id)
        write(elem, stream)
    stream.write_struct_field_stop()


def write_message(msg: Message, stream: Stream) -> None:
    """Write a message header and its argument struct."""
    stream.write_message_header(msg)
    write_struct(msg.arguments, stream)


def writer_of(sample: Any) -> tuple[TType, Writer]:
    """Wire type and writing function for values like ``sample``."""
    if isinstance(sample, bool):
        return TType.BOOL, lambda val, s: s.write_bool(val)
    if isinstance(sample, Int8):
        return TType.I08, lambda val, s: s.write_int8(val)
    if isinstance(sample, Int16):
        return TType.I16, lambda val, s: s.write_int16(val)
    if isinstance(sample, Int32):
        return TType.I32, lambda val, s: s.write_int32(val)
    if isinstance(sample, int):
        return TType.I64, lambda val, s: s.write_int64(val)
    if isinstance(sample, float):
        return TType.DOUBLE, lambda val, s: s.write_float64(val)
    if isinstance(sample, str):
        return TType.STRING, lambda val, s: s.write_string(val)
    if isinstance(sample, (bytes, bytearray, memoryview)):
        return TType.STRING, lambda val, s: s.write_binary(bytes(val))
    if isinstance(sample, Struct):
        return TType.STRUCT, write_struct
    if isinstance(sample, dict):
        return TType.MAP, write_map
    if isinstance(sample, (list, tuple)):
        return TType.LIST, write_list
    raise TypeError(f"unsupported type: {type(sample).__name__}")


class _Decoder(ValDecoder):
    def __init__(self, read: Reader) -> None:
        self._read = read

    def decode(self, iterator: Iterator) -> Any:
        return self._read(iterator)


class _Encoder(ValEncoder):
    def __init__(self, write: Writer, ttype: TType) -> None:
        self._write = write
        self._ttype = ttype

    def encode(self, val: Any, stream: Stream) -> None:
        self._write(val, stream)

    def thrift_type(self) -> TType:
        return self._ttype


def _read_header(iterator: Iterator) -> MessageHeader:
    return iterator.read_message_header()


def _write_header(header: MessageHeader, stream: Stream) -> None:
    stream.write_message_header(header)


class Extension(_ExtensionBase):
    """Supplies codecs for List, Map, Struct, Message and MessageHeader."""

    _DECODERS: dict[type, Reader] = {
        List: read_list,
        Map: read_map,
        Struct: read_struct,
        Message: read_message,
        MessageHeader: _read_header,
    }

    _ENCODERS: dict[type, tuple[Writer, TType]] = {
        List: (write_list, TType.LIST),
        Map: (write_map, TType.MAP),
        Struct: (write_struct, TType.STRUCT),
        Message: (write_message, TType.STRUCT),
        MessageHeader: (_write_header, TType.STRUCT),
    }

    def decoder_of(self, val_type: type) -> ValDecoder | None:
        read = self._DECODERS.get(val_type)
        return None if read is None else _Decoder(read)

    def encoder_of(self, val_type: type) -> ValEncoder | None:
        entry = self._ENCODERS.get(val_type)
        return None if entry is None else _Encoder(*entry)