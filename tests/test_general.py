import io

import pytest

from thriftwire.binary import BinaryIterator, BinaryStream
from thriftwire.compact import CompactIterator, CompactStream
from thriftwire.general import (
    Extension,
    Int8,
    Int16,
    Int32,
    Int64,
    List,
    Map,
    Message,
    Struct,
    read_list,
    read_map,
    read_message,
    read_struct,
    reader_of,
    write_list,
    write_map,
    write_message,
    write_struct,
    writer_of,
)
from thriftwire.protocol import MessageHeader, MessageType, ProtocolError, TType

BINARY_MESSAGE = (
    "800100010000000568656c6c6f0000000c0b00010000000a73657373696f6e2d69640c00020c"
    "00010a000100000000000000010a000200000000000000000b00030000000f43616c6c46726f"
    "6d496e626f756e64000c00020b0001000000093132372e302e302e310a000200000000000004"
    "d2000b00030000000568656c6c6f000c00030c00010a000100000000000000020a0002000000"
    "00000000000b00030000000d52657475726e496e626f756e64000b000200000005776f726c64"
    "000f00040c000000010c00020c00010a000100000000000000020a0002000000000000000000"
    "0b00030000000d52657475726e496e626f756e64000b000200000005776f726c64000000"
)

COMPACT_MESSAGE = (
    "82210c0568656c6c6f180a73657373696f6e2d69641c1c16021600180f43616c6c46726f6d49"
    "6e626f756e64001c18093132372e302e302e3116a41300180568656c6c6f001c1c1604160018"
    "0d52657475726e496e626f756e64001805776f726c6400191c2c1c16041600180d5265747572"
    "6e496e626f756e64001805776f726c64000000"
)

RETURN_INBOUND = {1: {1: 2, 2: 0, 3: "ReturnInbound"}, 2: "world"}

EXPECTED_ARGUMENTS = {
    1: "session-id",
    2: {
        1: {1: 1, 2: 0, 3: "CallFromInbound"},
        2: {1: "127.0.0.1", 2: 1234},
        3: "hello",
    },
    3: RETURN_INBOUND,
    4: [{2: RETURN_INBOUND}],
}

PROTOCOLS = [
    pytest.param((BinaryIterator, BinaryStream), id="binary"),
    pytest.param((CompactIterator, CompactStream), id="compact"),
]


def _iterator(protocol, data):
    return protocol[0](None, data)


def _stream(protocol):
    return protocol[1]()


def _hello_message():
    return Message(
        message_name="hello",
        message_type=MessageType.CALL,
        seq_id=17,
        arguments=Struct({1: Int64(1), 2: Int64(2)}),
    )


@pytest.mark.parametrize("protocol", PROTOCOLS)
def test_marshal_message(protocol):
    stream = _stream(protocol)
    write_message(_hello_message(), stream)
    msg = read_message(_iterator(protocol, stream.buffer()))
    assert msg == _hello_message()
    assert msg.message_type == MessageType.CALL
    assert msg.arguments == {1: 1, 2: 2}


def test_encode_message_to_writer():
    sink = io.BytesIO()
    stream = BinaryStream(sink)
    write_message(_hello_message(), stream)
    stream.flush()
    msg = read_message(BinaryIterator(None, sink.getvalue()))
    assert msg.message_name == "hello"
    assert msg.seq_id == 17
    assert msg.arguments == {1: 1, 2: 2}


@pytest.mark.parametrize("protocol", PROTOCOLS)
def test_marshal_nested_struct_round_trip(protocol):
    example = Struct(
        {
            1: "xxxxxxxxxxxxxxxx",
            2: Int64(12345678),
            3: List(["a", "b", "c", "d", "1", "2", "3", "4", "5"]),
            4: Map(
                {
                    "t1": Struct(
                        {1: "sss", 2: Int32(987654321), 3: List(["1", "2", "3"])}
                    )
                }
            ),
        }
    )
    stream = _stream(protocol)
    write_struct(example, stream)
    decoded = read_struct(_iterator(protocol, stream.buffer()))
    assert decoded == example
    assert isinstance(decoded.get(4, "t1", 2), Int32)


@pytest.mark.parametrize("protocol", PROTOCOLS)
def test_unmarshal_general_list(protocol):
    stream = _stream(protocol)
    stream.write_list_header(TType.I64, 3)
    for value in (1, 2, 3):
        stream.write_int64(value)
    val = read_list(_iterator(protocol, stream.buffer()))
    assert val == List([Int64(1), Int64(2), Int64(3)])
    assert all(isinstance(elem, Int64) for elem in val)


@pytest.mark.parametrize("protocol", PROTOCOLS)
def test_marshal_general_list(protocol):
    stream = _stream(protocol)
    write_list(List([Int64(1), Int64(2), Int64(3)]), stream)
    iterator = _iterator(protocol, stream.buffer())
    assert iterator.read_list_header() == (TType.I64, 3)
    assert [iterator.read_uint64() for _ in range(3)] == [1, 2, 3]


@pytest.mark.parametrize("protocol", PROTOCOLS)
def test_marshal_empty_general_list(protocol):
    stream = _stream(protocol)
    write_list(List(), stream)
    iterator = _iterator(protocol, stream.buffer())
    assert iterator.read_list_header() == (TType.I64, 0)


@pytest.mark.parametrize("protocol", PROTOCOLS)
def test_unmarshal_general_map(protocol):
    stream = _stream(protocol)
    stream.write_map_header(TType.I32, TType.I64, 3)
    for value in (1, 2, 3):
        stream.write_int32(value)
        stream.write_int64(value)
    val = read_map(_iterator(protocol, stream.buffer()))
    assert val == Map({Int32(1): Int64(1), Int32(2): Int64(2), Int32(3): Int64(3)})
    assert all(isinstance(key, Int32) for key in val)


@pytest.mark.parametrize("protocol", PROTOCOLS)
def test_marshal_general_map(protocol):
    original = Map({Int32(1): Int64(1), Int32(2): Int64(2), Int32(3): Int64(3)})
    stream = _stream(protocol)
    write_map(original, stream)
    output = stream.buffer()
    header = _iterator(protocol, output).read_map_header()
    assert header == (TType.I32, TType.I64, 3)
    assert read_map(_iterator(protocol, output)) == {1: 1, 2: 2, 3: 3}


@pytest.mark.parametrize("protocol", PROTOCOLS)
def test_marshal_plain_dict(protocol):
    stream = _stream(protocol)
    write_map({"k1": 1, "k2": 2, "k3": 3}, stream)
    val = read_map(_iterator(protocol, stream.buffer()))
    assert val == Map({"k1": Int64(1), "k2": Int64(2), "k3": Int64(3)})


@pytest.mark.parametrize("protocol", PROTOCOLS)
def test_marshal_empty_map(protocol):
    stream = _stream(protocol)
    write_map(Map(), stream)
    assert read_map(_iterator(protocol, stream.buffer())) == Map()


@pytest.mark.parametrize("protocol", PROTOCOLS)
def test_unmarshal_general_struct(protocol):
    stream = _stream(protocol)
    stream.write_struct_header()
    stream.write_struct_field(TType.I64, 1)
    stream.write_int64(1024)
    stream.write_struct_field_stop()
    assert read_struct(_iterator(protocol, stream.buffer())) == Struct({1: Int64(1024)})


@pytest.mark.parametrize("protocol", PROTOCOLS)
def test_marshal_general_struct(protocol):
    stream = _stream(protocol)
    write_struct(Struct({1: Int64(1024)}), stream)
    assert read_struct(_iterator(protocol, stream.buffer())) == {1: 1024}


@pytest.mark.parametrize("protocol", PROTOCOLS)
def test_struct_with_bool_and_small_ints(protocol):
    original = Struct(
        {1: True, 2: Int8(-5), 3: Int16(300), 5: False, 40: 2.5, 41: b"\x00\x01"}
    )
    stream = _stream(protocol)
    write_struct(original, stream)
    decoded = read_struct(_iterator(protocol, stream.buffer()))
    assert decoded == {1: True, 2: -5, 3: 300, 5: False, 40: 2.5, 41: "\x00\x01"}
    assert isinstance(decoded[2], Int8)
    assert isinstance(decoded[3], Int16)


def test_writer_of_types():
    assert writer_of(True)[0] == TType.BOOL
    assert writer_of(Int8(1))[0] == TType.I08
    assert writer_of(Int16(1))[0] == TType.I16
    assert writer_of(Int32(1))[0] == TType.I32
    assert writer_of(Int64(1))[0] == TType.I64
    assert writer_of(7)[0] == TType.I64
    assert writer_of(1.5)[0] == TType.DOUBLE
    assert writer_of("s")[0] == TType.STRING
    assert writer_of(b"s")[0] == TType.STRING
    assert writer_of(List())[0] == TType.LIST
    assert writer_of(Map())[0] == TType.MAP
    assert writer_of(Struct())[0] == TType.STRUCT


def test_writer_of_unsupported():
    with pytest.raises(TypeError, match="unsupported type"):
        writer_of(object())


def test_reader_of_unsupported():
    with pytest.raises(ProtocolError):
        reader_of(TType.SET)


def test_fixed_int_range():
    with pytest.raises(ValueError):
        Int8(128)
    assert Int8(-128) == -128
    assert repr(Int32(5)) == "Int32(5)"


def test_get_paths():
    obj = Struct({1: List([Map({"a": Int64(3)})])})
    assert obj.get() is obj
    assert obj.get(1, 0, "a") == 3
    assert obj.get(2) is None
    assert Map({"x": 1}).get("y") is None
    with pytest.raises(IndexError):
        obj.get(1, 5)
    with pytest.raises(TypeError):
        obj.get(1, 0, "a", "b")


def test_extension_codecs():
    ext = Extension()
    assert ext.decoder_of(int) is None
    assert ext.encoder_of(int) is None
    encoder = ext.encoder_of(Struct)
    assert encoder.thrift_type() == TType.STRUCT
    stream = BinaryStream()
    encoder.encode(Struct({1: "hello"}), stream)
    decoded = ext.decoder_of(Struct).decode(BinaryIterator(None, stream.buffer()))
    assert decoded == {1: "hello"}


def test_extension_message_header():
    ext = Extension()
    header = MessageHeader(message_name="ping", message_type=MessageType.ONEWAY, seq_id=3)
    stream = CompactStream()
    ext.encoder_of(MessageHeader).encode(header, stream)
    decoded = ext.decoder_of(MessageHeader).decode(CompactIterator(None, stream.buffer()))
    assert decoded == header
    assert ext.encoder_of(List).thrift_type() == TType.LIST
    assert ext.encoder_of(Map).thrift_type() == TType.MAP
    assert ext.encoder_of(Message).thrift_type() == TType.STRUCT