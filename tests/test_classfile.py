import pytest

from jclassfile.access import ClassAccessModifier, FieldAccessModifier, MethodAccessModifier
from jclassfile.attributes import Code, ConstantValue, ConstantValueKind, SourceFile
from jclassfile.binary import ByteReader, ClassFormatError
from jclassfile.classfile import ClassFile, Field, Method, Version, read_class, write_class
from jclassfile.code import ClassRef, FieldRef, Instruction, MethodRef, Opcode
from jclassfile.constant_pool import read_constant_pool


def hello_world():
    code = Code(
        max_stack=3,
        max_locals=1,
        code=[
            Instruction(Opcode.ldc, {"index": 2}),
            Instruction(
                Opcode.invokevirtual,
                {"method": MethodRef(ClassRef("java/lang/Class"), "getName",
                                     "()Ljava/lang/String;")},
            ),
            Instruction(
                Opcode.getstatic,
                {"field": FieldRef(ClassRef("java/lang/System"), "out",
                                   "Ljava/io/PrintStream;")},
            ),
            Instruction(Opcode.swap),
            Instruction(
                Opcode.invokevirtual,
                {"method": MethodRef(ClassRef("java/io/PrintStream"), "println",
                                     "(Ljava/lang/String;)V")},
            ),
            Instruction(Opcode["return"]),
        ],
    )
    main = Method(
        access_flags=[MethodAccessModifier.PUBLIC, MethodAccessModifier.STATIC],
        name="main",
        descriptor="([Ljava/lang/String;)V",
        attributes=[code],
    )
    return ClassFile(
        version=Version(0xCAFEBABE, 53, 0),
        access_flags=[ClassAccessModifier.PUBLIC],
        this_class="HelloWorld",
        super_class="java/lang/Object",
        methods=[main],
    )


EXAMPLE_JSON = {
    "version": {"magic": 3405691582, "major": 53, "minor": 0},
    "access_flags": ["PUBLIC", "SUPER"],
    "this_class": "Example",
    "super_class": "java/lang/Object",
    "interfaces": [],
    "fields": [
        {"access_flags": ["PRIVATE"], "name": "x", "descriptor": "I", "attributes": []}
    ],
    "methods": [
        {
            "access_flags": ["PUBLIC"],
            "name": "<init>",
            "descriptor": "()V",
            "attributes": [
                {
                    "Code": {
                        "max_stack": 1,
                        "max_locals": 1,
                        "code": [
                            "aload_0",
                            {"invokespecial": {"method": {
                                "class": "java/lang/Object",
                                "name": "<init>",
                                "descriptor": "()V",
                            }}},
                            "return",
                        ],
                        "exception_table": [],
                        "attributes": [
                            {"LineNumberTable": [{"start_pc": 0, "line_number": 1}]}
                        ],
                    }
                }
            ],
        }
    ],
    "attributes": [{"SourceFile": "Example.java"}],
}


def test_hello_world_header():
    data = write_class(hello_world())
    assert data[:4] == b"\xca\xfe\xba\xbe"
    assert int.from_bytes(data[4:6], "big") == 0
    assert int.from_bytes(data[6:8], "big") == 53


def test_hello_world_ldc_index_is_this_class():
    data = write_class(hello_world())
    reader = ByteReader(data)
    reader.take_bytes(8)
    pool = read_constant_pool(reader)
    assert pool.class_name(2) == "HelloWorld"


def test_hello_world_round_trip():
    original = hello_world()
    parsed = read_class(write_class(original))
    assert parsed == original
    assert parsed.this_class == "HelloWorld"
    assert parsed.super_class == "java/lang/Object"


def test_hello_world_json_shape():
    data = hello_world().to_json()
    code = data["methods"][0]["attributes"][0]["Code"]["code"]
    assert code[-1] == "return"
    assert code[0] == {"ldc": {"index": 2}}
    assert data["methods"][0]["access_flags"] == ["PUBLIC", "STATIC"]


def test_json2class2json():
    class_file = ClassFile.from_json(EXAMPLE_JSON)
    assert class_file.to_json() == EXAMPLE_JSON


def test_json_through_bytes():
    class_file = ClassFile.from_json(EXAMPLE_JSON)
    assert read_class(write_class(class_file)).to_json() == EXAMPLE_JSON


def test_write_is_deterministic_through_json():
    original = hello_world()
    again = ClassFile.from_json(original.to_json())
    assert write_class(again) == write_class(original)


def test_version_str():
    assert str(Version(0xCAFEBABE, 53, 0)) == "magic: 0xCAFEBABE\nmajor: 53\nminor: 0"


def test_wrong_magic():
    data = b"\x00\x00\x00\x00\x00\x00\x00\x35"
    with pytest.raises(ClassFormatError, match="Wrong 'magic' field: `0x0`!"):
        read_class(data)


def test_truncated_data():
    data = write_class(hello_world())
    with pytest.raises(ClassFormatError):
        read_class(data[:-3])


def test_invalid_this_class_index():
    data = bytes.fromhex("cafebabe" "0000" "0035" "0001" "0021" "0001")
    with pytest.raises(ClassFormatError, match="Invalid index: 1"):
        read_class(data)


def test_no_super_class():
    class_file = ClassFile(Version(0xCAFEBABE, 52, 0), [ClassAccessModifier.PUBLIC],
                           "java/lang/Object")
    data = write_class(class_file)
    parsed = read_class(data)
    assert parsed.super_class is None
    assert parsed == class_file


def test_interfaces_and_fields_round_trip():
    class_file = ClassFile(
        version=Version(0xCAFEBABE, 53, 0),
        access_flags=[ClassAccessModifier.PUBLIC, ClassAccessModifier.FINAL],
        this_class="Widget",
        super_class="java/lang/Object",
        interfaces=["java/lang/Runnable", "java/io/Serializable"],
        fields=[Field([FieldAccessModifier.PRIVATE, FieldAccessModifier.STATIC], "count", "I")],
        attributes=[SourceFile("Widget.java")],
    )
    assert read_class(write_class(class_file)) == class_file


def test_constant_value_reads_back_as_string():
    class_file = ClassFile(
        version=Version(0xCAFEBABE, 53, 0),
        access_flags=[ClassAccessModifier.PUBLIC],
        this_class="Consts",
        super_class="java/lang/Object",
        fields=[
            Field(
                [FieldAccessModifier.STATIC, FieldAccessModifier.FINAL],
                "FIVE",
                "I",
                [ConstantValue(ConstantValueKind.Integer, 5)],
            )
        ],
    )
    parsed = read_class(write_class(class_file))
    assert parsed.fields[0].attributes == [ConstantValue(ConstantValueKind.String, "5")]