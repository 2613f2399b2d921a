# thriftwire

Read and write Thrift-encoded data without generated code.

`thriftwire` has low-level iterators and streams for the Thrift **binary** and
**compact** protocols, and two schema-less value models built on them:

- **general** values (`thriftwire.general`): `List`, `Map`, `Struct` and
  `Message` hold decoded data as ordinary Python containers. Plain `int` values
  are written as i64; `Int8`, `Int16` and `Int32` choose a narrower width, and
  integers read back come as `Int8`, `Int16`, `Int32` or `Int64`.
- **raw** values (`thriftwire.raw`): `List`, `Map` and `Struct` keep each
  element or field as its still-encoded bytes, so one field can be replaced and
  the value written again without decoding the rest.

The package has no dependencies outside the standard library.

## Modules

| Module | Contents |
| --- | --- |
| `thriftwire.protocol` | `TType`, `MessageType`, `MessageHeader`, `ProtocolError` and the protocol constants |
| `thriftwire.binary` | `BinaryIterator`, `BinaryStream` |
| `thriftwire.compact` | `CompactIterator`, `CompactStream` |
| `thriftwire.compact_types` | `CompactType`, `compact_type_of` |
| `thriftwire.general` | general values, `read_*` / `write_*` functions, `reader_of`, `writer_of`, `Extension` |
| `thriftwire.raw` | raw values, `decode_*` / `encode_*` functions, `Extension` |
| `thriftwire.spi` | the `Iterator`, `Stream`, `ValEncoder`, `ValDecoder` and `Extension` interfaces, `Extensions`, `discard_list` / `discard_map` / `discard_struct` |

## Streams and iterators

A stream collects what it writes in a buffer; `buffer()` returns the bytes not
yet flushed. Given a writer (any object with `write`), `flush()` hands the
buffer to it, calls its `flush` if it has one, and clears the buffer.

An iterator reads first from the bytes it was given and then, if it has a
reader (any object with `read(n)`), from that reader.

```python
from thriftwire.binary import BinaryIterator, BinaryStream
from thriftwire.protocol import TType

stream = BinaryStream(None, b"")
stream.write_list_header(TType.I64, 3)
for n in (1, 2, 3):
    stream.write_int64(n)

it = BinaryIterator(None, stream.buffer())
elem_type, size = it.read_list_header()
values = [it.read_int64() for _ in range(size)]
assert (elem_type, size, values) == (TType.I64, 3, [1, 2, 3])
```

`CompactIterator` and `CompactStream` have the same methods for the compact
protocol. Iterators can also step over a value and hand back its encoded
bytes: `skip(ttype)`, `skip_struct()`, `skip_list()`, `skip_map()` and
`skip_message_header()`.

## General values

```python
from thriftwire.compact import CompactIterator, CompactStream
from thriftwire.general import Int64, Struct, read_struct, write_struct

stream = CompactStream(None, b"")
write_struct(Struct({1: Int64(1024), 2: "hello"}), stream)

decoded = read_struct(CompactIterator(None, stream.buffer()))
assert decoded.get(1) == 1024
assert decoded.get(2) == "hello"
```

`get` on `List`, `Map` and `Struct` also takes a path into nested values, such
as `decoded.get(3, "key", 0)`.

A list takes its element type from its first element and a map its key and
element types from one entry. A value of a type `writer_of` does not know
raises `TypeError`.

Messages go through `write_message` and `read_message`:

```python
from thriftwire.binary import BinaryIterator, BinaryStream
from thriftwire.general import Int64, Message, Struct, read_message, write_message
from thriftwire.protocol import MessageType

stream = BinaryStream(None, b"")
write_message(
    Message(
        message_name="hello",
        message_type=MessageType.CALL,
        seq_id=17,
        arguments=Struct({1: Int64(1), 2: Int64(2)}),
    ),
    stream,
)

msg = read_message(BinaryIterator(None, stream.buffer()))
assert (msg.message_name, msg.message_type, msg.seq_id) == ("hello", MessageType.CALL, 17)
assert msg.arguments == {1: 1, 2: 2}
```

## Raw values

```python
from thriftwire.binary import BinaryIterator, BinaryStream
from thriftwire.general import Map, Struct, read_map, read_struct, write_map, write_struct
from thriftwire.protocol import TType
from thriftwire.raw import StructField, decode_struct, encode_struct

stream = BinaryStream(None, b"")
write_struct(Struct({0: Map({"key1": "value1"}), 1: "hello"}), stream)

fields = decode_struct(BinaryIterator(None, stream.buffer()))
assert fields[1].type == TType.STRING

arg0 = read_map(BinaryIterator(None, fields[0].buffer))
arg0["key2"] = "value2"
encoded_arg0 = BinaryStream(None, b"")
write_map(arg0, encoded_arg0)
fields[0] = StructField(buffer=encoded_arg0.buffer(), type=TType.MAP)

out = BinaryStream(None, b"")
encode_struct(fields, out)
result = read_struct(BinaryIterator(None, out.buffer()))
assert result.get(0) == {"key1": "value1", "key2": "value2"}
```

`decode_map` indexes its entries by their decoded keys; keys must be of a
scalar type (bool, integer, double or string).

## Extensions

`thriftwire.general.Extension` and `thriftwire.raw.Extension` answer
`decoder_of(val_type)` and `encoder_of(val_type)` with a codec for their own
types and `None` for any other. `thriftwire.spi.Extensions` is a list of
extensions that returns the first codec found.

## Errors

Errors in the data, such as a wrong protocol version, an unsupported type or
input that ends too soon, raise `thriftwire.protocol.ProtocolError`.

## What it does not do

There is no transport, framing or RPC client or server, no one-call
marshal/unmarshal entry point that picks a protocol, and no mapping of Thrift
structs onto your own Python classes. Work with the iterators and streams
directly, or through the general and raw value models.

## Running the tests

```
pip install -e ".[test]"
pytest
```