import struct

import pytest

from jclassfile.binary import ByteReader, ByteWriter, ClassFormatError
from jclassfile.constant_pool import (
    ClassInfo,
    ConstantPool,
    CpTag,
    Double,
    Dynamic,
    Fieldref,
    Float,
    Integer,
    InterfaceMethodref,
    InvokeDynamic,
    Long,
    MethodHandle,
    Methodref,
    MethodType,
    Module,
    NameAndType,
    Package,
    StringInfo,
    Utf8,
    join_long,
    read_constant,
    read_constant_pool,
    split_long,
)


def _f32(value):
    return struct.unpack(">f", struct.pack(">f", value))[0]


ALL_CONSTANTS = [
    Utf8("java/lang/Object"),
    Utf8("h\u00e9llo"),
    Integer(0xFFFFFFFF),
    Float(_f32(1.25)),
    ClassInfo(1),
    StringInfo(2),
    Fieldref(3, 4),
    Methodref(5, 6),
    InterfaceMethodref(7, 8),
    NameAndType(9, 10),
    MethodHandle(6, 11),
    MethodType(12),
    Dynamic(0, 13),
    InvokeDynamic(1, 14),
    Module(15),
    Package(16),
]


def _roundtrip(constant):
    writer = ByteWriter()
    constant.write(writer)
    reader = ByteReader(bytes(writer))
    result = read_constant(reader)
    assert reader.is_empty()
    return result, bytes(writer)


@pytest.mark.parametrize("constant", ALL_CONSTANTS)
def test_constant_round_trip(constant):
    result, data = _roundtrip(constant)
    assert result == constant
    assert data[0] == constant.tag


@pytest.mark.parametrize("value", [0, 1, 0x7FFFFFFFFFFFFFFF, 0xFFFFFFFFFFFFFFFF, 0x123456789])
def test_long_round_trip(value):
    result, data = _roundtrip(Long(value))
    assert result == Long(value)
    assert len(data) == 9


@pytest.mark.parametrize("value", [0.0, -2.5, 1e300, float("inf")])
def test_double_round_trip(value):
    result, _ = _roundtrip(Double(value))
    assert result == Double(value)


@pytest.mark.parametrize("value", [0, 1, 0xDEADBEEF, 0xFFFFFFFFFFFFFFFF])
def test_split_and_join_are_inverse(value):
    high, low = split_long(value)
    assert high < 1 << 32 and low < 1 << 32
    assert join_long(high, low) == value


def test_read_class_constant_from_wire_bytes():
    assert read_constant(ByteReader(bytes([7, 0, 5]))) == ClassInfo(5)
    assert CpTag.Class == 7


def test_unknown_tag_is_rejected():
    with pytest.raises(ClassFormatError) as info:
        read_constant(ByteReader(bytes([2, 0, 0])))
    assert str(info.value) == "Unexpected Constant type ID `2`!"


def test_invalid_utf8_is_replaced():
    result = read_constant(ByteReader(bytes([1, 0, 2, 0x41, 0xFF])))
    assert result.string.startswith("A")
    assert "\ufffd" in result.string


def test_content_strings():
    assert str(Integer(7)) == "7"
    assert str(Long(5)) == "5L"
    assert str(ClassInfo(3)) == "#3"
    assert str(Fieldref(1, 2)) == "#1.#2"
    assert str(NameAndType(4, 5)) == "#4:#5"
    assert str(CpTag.NameAndType) == "NameAndType"


def test_float_string_uses_shortest_single_precision_form():
    assert str(Float(_f32(0.1))) == "0.1f"


def _sample_pool():
    pool = ConstantPool()
    name = pool.push(Utf8("Foo"))
    cls = pool.push(ClassInfo(name))
    descriptor = pool.push(Utf8("I"))
    nat = pool.push(NameAndType(name, descriptor))
    text = pool.push(StringInfo(name))
    number = pool.push(Integer(42))
    return pool, dict(name=name, cls=cls, descriptor=descriptor, nat=nat, text=text, number=number)


def test_push_returns_consecutive_indices():
    pool, idx = _sample_pool()
    assert idx["name"] == 1
    assert idx["number"] == len(pool) - 1
    assert pool[0] is None
    assert pool[idx["cls"]] == ClassInfo(idx["name"])


def test_lookups():
    pool, idx = _sample_pool()
    assert pool.utf8(idx["name"]) == "Foo"
    assert pool.class_name(idx["cls"]) == "Foo"
    assert pool.name_and_type(idx["nat"]) == ("Foo", "I")
    assert pool.constant_as_string(idx["text"]) == '"Foo"'
    assert pool.constant_as_string(idx["number"]) == "42"


def test_invalid_index_errors():
    pool, _ = _sample_pool()
    with pytest.raises(ClassFormatError) as info:
        pool.utf8(0)
    assert str(info.value) == "Invalid index: 0"
    with pytest.raises(ClassFormatError) as info:
        pool.class_name(len(pool))
    assert str(info.value) == f"Invalid index: {len(pool)}"


def test_wrong_type_errors():
    pool, idx = _sample_pool()
    with pytest.raises(ClassFormatError) as info:
        pool.class_name(idx["name"])
    assert str(info.value) == "Wrong constant type at index 1: expected `Class`, found `Utf8`"
    with pytest.raises(ClassFormatError) as info:
        pool.utf8(idx["cls"])
    assert str(info.value) == "Wrong constant type at index 2: expected `Utf8`, found `Class`"
    with pytest.raises(ClassFormatError) as info:
        pool.name_and_type(idx["cls"])
    assert "expected `NameAndType`" in str(info.value)
    with pytest.raises(ClassFormatError) as info:
        pool.constant_as_string(idx["cls"])
    assert str(info.value) == (
        "Wrong constant type at index 2: expected "
        "[Integer, Float, Long, Double, String], found `Class`"
    )


def test_pool_display():
    pool = ConstantPool()
    pool.push(Utf8("Foo"))
    pool.push(ClassInfo(1))
    assert str(pool) == "Constant Pool [3]:\n\t#1 = Foo\n\t#2 = #1\n\n"


def test_pool_round_trip_with_wide_entries():
    pool = ConstantPool()
    pool.push(Utf8("x"))
    pool.push(Long(0x123456789))
    pool.push_empty()
    pool.push(Double(-0.5))
    pool.push_empty()
    pool.push(ClassInfo(1))

    writer = ByteWriter()
    pool.write(writer)
    reader = ByteReader(bytes(writer))
    result = read_constant_pool(reader)

    assert reader.is_empty()
    assert len(result) == len(pool)
    assert [result[i] for i in range(len(result))] == [pool[i] for i in range(len(pool))]
    assert result[3] is None
    assert result.constant_as_string(2) == "4886718345L"


def test_empty_pool_count():
    assert len(read_constant_pool(ByteReader(bytes([0, 0])))) == 1
    assert len(read_constant_pool(ByteReader(bytes([0, 1])))) == 1


def test_truncated_pool_fails():
    with pytest.raises(ClassFormatError):
        read_constant_pool(ByteReader(bytes([0, 3, 1, 0, 5, 0x41])))