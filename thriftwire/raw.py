"""Thrift containers kept as encoded bytes.

A raw list, map or struct is read one level deep. Each element stays in
its wire form, so single fields can be decoded, replaced and written
back without knowing the schema of the rest.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from thriftwire.protocol import ProtocolError, TType
from thriftwire.spi import Extension as _ExtensionBase
from thriftwire.spi import Iterator, Stream, ValDecoder, ValEncoder


@dataclass
class StructField:
    """One struct field: its encoded value and its wire type."""

    buffer: bytes = b""
    type: TType = TType.STOP


class Struct(dict):
    """A struct as a mapping from field id to ``StructField``."""


@dataclass
class List:
    """A list whose elements are kept encoded."""

    element_type: TType = TType.STOP
    elements: list[bytes] = field(default_factory=list)


@dataclass
class MapEntry:
    """One map entry: the encoded key and the encoded element."""

    key: bytes = b""
    element: bytes = b""


@dataclass
class Map:
    """A map whose entries are kept encoded, indexed by their decoded keys."""

    key_type: TType = TType.STOP
    element_type: TType = TType.STOP
    entries: dict[Any, MapEntry] = field(default_factory=dict)


_KEY_READERS: dict[int, Callable[[Any], Any]] = {
    TType.BOOL: lambda it: it.read_bool(),
    TType.I08: lambda it: it.read_int8(),
    TType.I16: lambda it: it.read_int16(),
    TType.I32: lambda it: it.read_int32(),
    TType.I64: lambda it: it.read_int64(),
    TType.DOUBLE: lambda it: it.read_float64(),
    TType.STRING: lambda it: it.read_string(),
}


def _key_reader(key_type: TType) -> Callable[[Any], Any]:
    try:
        return _KEY_READERS[key_type]
    except KeyError:
        raise ProtocolError(
            "ReadMapKey", f"unsupported type {TType(key_type)}"
        ) from None


def decode_list(iterator: Iterator) -> List:
    """Read a list, keeping every element encoded."""
    elem_type, length = iterator.read_list_header()
    elements = [iterator.skip(elem_type) for _ in range(length)]
    return List(element_type=elem_type, elements=elements)


def decode_map(iterator: Iterator) -> Map:
    """Read a map, keeping entries encoded and decoding keys for lookup."""
    key_type, elem_type, length = iterator.read_map_header()
    entries: dict[Any, MapEntry] = {}
    if length:
        read_key = _key_reader(key_type)
        key_iterator = iterator.spawn()
        for _ in range(length):
            key_buf = iterator.skip(key_type)
            key_iterator.reset(None, key_buf)
            key = read_key(key_iterator)
            elem_buf = iterator.skip(elem_type)
            entries[key] = MapEntry(key=key_buf, element=elem_buf)
    return Map(key_type=key_type, element_type=elem_type, entries=entries)


def decode_struct(iterator: Iterator) -> Struct:
    """Read a struct, keeping every field value encoded."""
    fields = Struct()
    iterator.read_struct_header()
    while True:
        field_type, field_id = iterator.read_struct_field()
        if field_type == TType.STOP:
            return fields
        fields[field_id] = StructField(buffer=iterator.skip(field_type), type=field_type)


def encode_list(obj: List, stream: Stream) -> None:
    """Write a raw list."""
    stream.write_list_header(obj.element_type, len(obj.elements))
    for elem in obj.elements:
        stream.write(elem)


def encode_map(obj: Map, stream: Stream) -> None:
    """Write a raw map."""
    stream.write_map_header(obj.key_type, obj.element_type, len(obj.entries))
    for entry in obj.entries.values():
        stream.write(entry.key)
        stream.write(entry.element)


def encode_struct(obj: Struct, stream: Stream) -> None:
    """Write a raw struct."""
    stream.write_struct_header()
    for field_id, struct_field in obj.items():
        stream.write_struct_field(struct_field.type, field_id)
        stream.write(struct_field.buffer)
    stream.write_struct_field_stop()


class _Decoder(ValDecoder):
    def __init__(self, read: Callable[[Iterator], Any]) -> None:
        self._read = read

    def decode(self, iterator: Iterator) -> Any:
        return self._read(iterator)


class _Encoder(ValEncoder):
    def __init__(self, write: Callable[[Any, Stream], None], ttype: TType) -> None:
        self._write = write
        self._ttype = ttype

    def encode(self, val: Any, stream: Stream) -> None:
        self._write(val, stream)

    def thrift_type(self) -> TType:
        return self._ttype


class Extension(_ExtensionBase):
    """Supplies codecs for raw List, Map and Struct."""

    _DECODERS: dict[type, Callable[[Iterator], Any]] = {
        List: decode_list,
        Map: decode_map,
        Struct: decode_struct,
    }

    _ENCODERS: dict[type, tuple[Callable[[Any, Stream], None], TType]] = {
        List: (encode_list, TType.LIST),
        Map: (encode_map, TType.MAP),
        Struct: (encode_struct, TType.STRUCT),
    }

    def decoder_of(self, val_type: type) -> ValDecoder | None:
        read = self._DECODERS.get(val_type)
        return None if read is None else _Decoder(read)

    def encoder_of(self, val_type: type) -> ValEncoder | None:
        entry = self._ENCODERS.get(val_type)
        return None if entry is None else _Encoder(*entry)