import pytest

from jclassfile.binary import ByteReader, ByteWriter, ClassFormatError
from jclassfile.constant_pool import ClassInfo, ConstantPool, Integer, Utf8
from jclassfile.tables import (
    ExceptionTableElement,
    LineNumberTableElement,
    LocalVariableTableElement,
    read_exception_table,
    read_line_number_table,
    read_local_variable_table,
    write_exception_table,
    write_line_number_table,
    write_local_variable_table,
)


def test_line_number_table_wire_bytes():
    writer = ByteWriter()
    write_line_number_table(writer, [LineNumberTableElement(start_pc=0, line_number=3)])
    assert bytes(writer) == b"\x00\x01\x00\x00\x00\x03"


def test_line_number_table_round_trip():
    table = [LineNumberTableElement(0, 10), LineNumberTableElement(4, 11)]
    writer = ByteWriter()
    write_line_number_table(writer, table)
    reader = ByteReader(bytes(writer))
    assert read_line_number_table(reader) == table
    assert reader.is_empty()


def test_line_number_table_truncated():
    with pytest.raises(ClassFormatError):
        read_line_number_table(ByteReader(b"\x00\x02\x00\x00\x00\x01"))


def test_local_variable_table_round_trip():
    table = [
        LocalVariableTableElement(0, 5, "this", "LHello;", 0),
        LocalVariableTableElement(2, 3, "x", "I", 1),
    ]
    pool = ConstantPool()
    data = write_local_variable_table(table, pool)
    assert pool.utf8(1) == "this"
    assert pool.utf8(2) == "LHello;"
    reader = ByteReader(data)
    assert read_local_variable_table(reader, pool) == table
    assert reader.is_empty()


def test_local_variable_table_wrong_constant():
    pool = ConstantPool()
    pool.push(Integer(7))
    data = b"\x00\x01" + b"\x00\x00\x00\x01\x00\x01\x00\x01\x00\x00"
    with pytest.raises(ClassFormatError, match="expected `Utf8`"):
        read_local_variable_table(ByteReader(data), pool)


def test_exception_table_round_trip():
    table = [
        ExceptionTableElement(0, 8, 9, "java/lang/Exception"),
        ExceptionTableElement(0, 8, 12, None),
    ]
    pool = ConstantPool()
    writer = ByteWriter()
    write_exception_table(writer, table, pool)
    assert pool[2] == ClassInfo(1)
    reader = ByteReader(bytes(writer))
    assert read_exception_table(reader, pool) == table
    assert reader.is_empty()


def test_exception_table_any_type_pushes_nothing():
    pool = ConstantPool()
    writer = ByteWriter()
    write_exception_table(writer, [ExceptionTableElement(1, 2, 3)], pool)
    assert len(pool) == 1
    assert bytes(writer)[-2:] == b"\x00\x00"


def test_exception_table_bad_catch_index():
    pool = ConstantPool()
    pool.push(Utf8("java/lang/Exception"))
    data = b"\x00\x01\x00\x00\x00\x01\x00\x02\x00\x01"
    with pytest.raises(ClassFormatError, match="Failed finding exception class name at index 1"):
        read_exception_table(ByteReader(data), pool)


@pytest.mark.parametrize(
    "element",
    [
        LineNumberTableElement(4, 11),
        LocalVariableTableElement(0, 5, "args", "[Ljava/lang/String;", 0),
        ExceptionTableElement(0, 8, 9, "java/lang/Exception"),
        ExceptionTableElement(0, 8, 9, None),
    ],
)
def test_json_round_trip(element):
    assert type(element).from_json(element.to_json()) == element


def test_exception_json_null_catch_type():
    element = ExceptionTableElement(1, 2, 3, None)
    assert element.to_json()["catch_type"] is None
    assert ExceptionTableElement.from_json(
        {"start_pc": 1, "end_pc": 2, "handler_pc": 3}
    ) == element