"""Bytecode instructions of a ``Code`` attribute and the symbolic references they carry."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from jclassfile.binary import ByteReader, ByteWriter, ClassFormatError
from jclassfile.constant_pool import (
    ClassInfo,
    Fieldref,
    InterfaceMethodref,
    Methodref,
    NameAndType,
    Utf8,
)


def _referenced_entry(constant_pool, index, kind, label):
    entry = constant_pool[index] if 0 <= index < len(constant_pool) else None
    if entry is None:
        raise ClassFormatError(f"Invalid index: {index}")
    if not isinstance(entry, kind):
        raise ClassFormatError(
            f"Wrong constant type at index {index}: expected `{label}`, found `{entry.tag}`"
        )
    return entry


@dataclass(frozen=True)
class ClassRef:
    """A class referred to by name."""

    name: str

    @classmethod
    def decode(cls, reader, constant_pool):
        """Read a class constant index and resolve it to a name."""
        return cls(constant_pool.class_name(reader.u2()))

    def _push(self, constant_pool):
        name_index = constant_pool.push(Utf8(self.name))
        return constant_pool.push(ClassInfo(name_index))

    def encode(self, constant_pool, writer):
        """Add the class to the pool and write its index."""
        writer.write_u2(self._push(constant_pool))


@dataclass(frozen=True)
class _MemberRef:
    class_ref: ClassRef
    name: str
    descriptor: str

    _ENTRY = Fieldref
    _LABEL = ""

    @classmethod
    def _decode_member(cls, reader, constant_pool):
        index = reader.u2()
        entry = _referenced_entry(constant_pool, index, cls._ENTRY, cls._LABEL)
        class_ref = ClassRef(constant_pool.class_name(entry.class_index))
        name, descriptor = constant_pool.name_and_type(entry.name_and_type_index)
        return cls(class_ref, name, descriptor)

    def _encode_member(self, constant_pool, writer):
        class_index = self.class_ref._push(constant_pool)
        name_index = constant_pool.push(Utf8(self.name))
        descriptor_index = constant_pool.push(Utf8(self.descriptor))
        name_and_type_index = constant_pool.push(NameAndType(name_index, descriptor_index))
        writer.write_u2(constant_pool.push(self._ENTRY(class_index, name_and_type_index)))

    def _to_json(self):
        return {"class": self.class_ref.name, "name": self.name, "descriptor": self.descriptor}

    @classmethod
    def _from_json(cls, data):
        return cls(ClassRef(data["class"]), data["name"], data["descriptor"])


@dataclass(frozen=True)
class FieldRef(_MemberRef):
    """A field referred to by owner class, name and descriptor."""

    _ENTRY = Fieldref
    _LABEL = "FieldRef"

    @classmethod
    def decode(cls, reader, constant_pool):
        """Read a field reference index and resolve its class, name and descriptor."""
        return cls._decode_member(reader, constant_pool)

    def encode(self, constant_pool, writer):
        """Add the field reference and what it names to the pool, then write its index."""
        self._encode_member(constant_pool, writer)


@dataclass(frozen=True)
class MethodRef(_MemberRef):
    """A class method referred to by owner class, name and descriptor."""

    _ENTRY = Methodref
    _LABEL = "MethodRef"

    @classmethod
    def decode(cls, reader, constant_pool):
        """Read a method reference index and resolve its class, name and descriptor."""
        return cls._decode_member(reader, constant_pool)

    def encode(self, constant_pool, writer):
        """Add the method reference and what it names to the pool, then write its index."""
        self._encode_member(constant_pool, writer)


@dataclass(frozen=True)
class InterfaceMethodRef(_MemberRef):
    """An interface method referred to by owner class, name and descriptor."""

    _ENTRY = InterfaceMethodref
    _LABEL = "InterfaceMethodref"

    @classmethod
    def decode(cls, reader, constant_pool):
        """Read an interface method reference index and resolve it."""
        return cls._decode_member(reader, constant_pool)

    def encode(self, constant_pool, writer):
        """Add the interface method reference to the pool, then write its index."""
        self._encode_member(constant_pool, writer)


_OPCODE_TABLE = [
    ("aaload", 0x32), ("aastore", 0x53), ("aconst_null", 0x01), ("aload", 0x19),
    ("aload_0", 0x2A), ("aload_1", 0x2B), ("aload_2", 0x2C), ("aload_3", 0x2D),
    ("anewarray", 0xBD), ("areturn", 0xB0), ("arraylength", 0xBE), ("astore", 0x3A),
    ("astore_0", 0x4B), ("astore_1", 0x4C), ("astore_2", 0x4D), ("astore_3", 0x4E),
    ("athrow", 0xBF), ("baload", 0x33), ("bastore", 0x54), ("bipush", 0x10),
    ("caload", 0x34), ("castore", 0x55), ("checkcast", 0xC0), ("d2f", 0x90),
    ("d2i", 0x8E), ("d2l", 0x8F), ("dadd", 0x63), ("daload", 0x31), ("dastore", 0x52),
    ("dcmpg", 0x98), ("dcmpl", 0x97), ("dconst_0", 0x0E), ("dconst_1", 0x0F),
    ("ddiv", 0x6F), ("dload", 0x18), ("dload_0", 0x26), ("dload_1", 0x27),
    ("dload_2", 0x28), ("dload_3", 0x29), ("dmul", 0x6B), ("dneg", 0x77), ("drem", 0x73),
    ("dreturn", 0xAF), ("dstore", 0x39), ("dstore_0", 0x47), ("dstore_1", 0x48),
    ("dstore_2", 0x49), ("dstore_3", 0x4A), ("dsub", 0x67), ("dup", 0x59),
    ("dup_x1", 0x5A), ("dup_x2", 0x5B), ("dup2", 0x5C), ("dup2_x1", 0x5D),
    ("dup2_x2", 0x5E), ("f2d", 0x8D), ("f2i", 0x8B), ("f2l", 0x8C), ("fadd", 0x62),
    ("faload", 0x30), ("fastore", 0x51), ("fcmpg", 0x96), ("fcmpl", 0x95),
    ("fconst_0", 0x0B), ("fconst_1", 0x0C), ("fconst_2", 0x0D), ("fdiv", 0x6E),
    ("fload", 0x17), ("fload_0", 0x22), ("fload_1", 0x23), ("fload_2", 0x24),
    ("fload_3", 0x25), ("fmul", 0x6A), ("fneg", 0x76), ("frem", 0x72), ("freturn", 0xAE),
    ("fstore", 0x38), ("fstore_0", 0x43), ("fstore_1", 0x44), ("fstore_2", 0x45),
    ("fstore_3", 0x46), ("fsub", 0x66), ("getfield", 0xB4), ("getstatic", 0xB2),
    ("goto", 0xA7), ("goto_w", 0xC8), ("i2b", 0x91), ("i2c", 0x92), ("i2d", 0x87),
    ("i2f", 0x86), ("i2l", 0x85), ("i2s", 0x93), ("iadd", 0x60), ("iaload", 0x2E),
    ("iand", 0x7E), ("iastore", 0x4F), ("iconst_m1", 0x02), ("iconst_0", 0x03),
    ("iconst_1", 0x04), ("iconst_2", 0x05), ("iconst_3", 0x06), ("iconst_4", 0x07),
    ("iconst_5", 0x08), ("idiv", 0x6C), ("if_acmpeq", 0xA5), ("if_acmpne", 0xA6),
    ("if_icmpeq", 0x9F), ("if_icmpne", 0xA0), ("if_icmplt", 0xA1), ("if_icmpge", 0xA2),
    ("if_icmpgt", 0xA3), ("if_icmple", 0xA4), ("ifeq", 0x99), ("ifne", 0x9A),
    ("iflt", 0x9B), ("ifge", 0x9C), ("ifgt", 0x9D), ("ifle", 0x9E), ("ifnonnull", 0xC7),
    ("ifnull", 0xC6), ("iinc", 0x84), ("iload", 0x15), ("iload_0", 0x1A),
    ("iload_1", 0x1B), ("iload_2", 0x1C), ("iload_3", 0x1D), ("imul", 0x68),
    ("ineg", 0x74), ("instanceof", 0xC1), ("invokedynamic", 0xBA),
    ("invokeinterface", 0xB9), ("invokespecial", 0xB7), ("invokestatic", 0xB8),
    ("invokevirtual", 0xB6), ("ior", 0x80), ("irem", 0x70), ("ireturn", 0xAC),
    ("ishl", 0x78), ("ishr", 0x7A), ("istore", 0x36), ("istore_0", 0x3B),
    ("istore_1", 0x3C), ("istore_2", 0x3D), ("istore_3", 0x3E), ("isub", 0x64),
    ("iushr", 0x7C), ("ixor", 0x82), ("jsr", 0xA8), ("jsr_w", 0xC9), ("l2d", 0x8A),
    ("l2f", 0x89), ("l2i", 0x88), ("ladd", 0x61), ("laload", 0x2F), ("land", 0x7F),
    ("lastore", 0x50), ("lcmp", 0x94), ("lconst_0", 0x09), ("lconst_1", 0x0A),
    ("ldc", 0x12), ("ldc_w", 0x13), ("ldc2_w", 0x14), ("ldiv", 0x6D), ("lload", 0x16),
    ("lload_0", 0x1E), ("lload_1", 0x1F), ("lload_2", 0x20), ("lload_3", 0x21),
    ("lmul", 0x69), ("lneg", 0x75), ("lor", 0x81), ("lrem", 0x71), ("lreturn", 0xAD),
    ("lshl", 0x79), ("lshr", 0x7B), ("lstore", 0x37), ("lstore_0", 0x3F),
    ("lstore_1", 0x40), ("lstore_2", 0x41), ("lstore_3", 0x42), ("lsub", 0x65),
    ("lushr", 0x7D), ("lxor", 0x83), ("monitorenter", 0xC2), ("monitorexit", 0xC3),
    ("multianewarray", 0xC5), ("new", 0xBB), ("newarray", 0xBC), ("nop", 0x00),
    ("pop", 0x57), ("pop2", 0x58), ("putfield", 0xB5), ("putstatic", 0xB3),
    ("ret", 0xA9), ("return", 0xB1), ("saload", 0x35), ("sastore", 0x56),
    ("sipush", 0x11), ("swap", 0x5F),
]

Opcode = IntEnum("Opcode", _OPCODE_TABLE, module=__name__)
Opcode.__doc__ = "Supported JVM opcodes; ``Opcode['return']`` names the void return."

_U1, _U2, _U4 = 1, 2, 4

_OPERANDS = {
    **{name: (("index", _U1),) for name in (
        "aload", "astore", "dload", "dstore", "fload", "fstore", "iload", "istore",
        "lload", "lstore", "ldc",
    )},
    **{name: (("class", ClassRef),) for name in ("anewarray", "checkcast", "instanceof", "new")},
    **{name: (("field", FieldRef),) for name in ("getfield", "getstatic", "putfield", "putstatic")},
    **{name: (("method", MethodRef),) for name in ("invokespecial", "invokestatic", "invokevirtual")},
    **{name: (("branch", _U2),) for name in (
        "goto", "ifeq", "ifne", "iflt", "ifge", "ifgt", "ifle", "ifnonnull", "ifnull", "jsr",
    )},
    "goto_w": (("branch", _U4),),
    "jsr_w": (("branch", _U4),),
    "iinc": (("index", _U1), ("constant", _U1)),
    "invokedynamic": (("index", _U2), ("_zero", _U2)),
    "invokeinterface": (("method", InterfaceMethodRef), ("count", _U1), ("_zero", _U1)),
    "ldc_w": (("index", _U2),),
    "ldc2_w": (("index", _U2),),
    "multianewarray": (("class", ClassRef), ("dimensions", _U1)),
    "newarray": (("atype", _U1),),
    "sipush": (("short", _U2),),
}


def _schema(opcode):
    return _OPERANDS.get(opcode.name, ())


def _read_operand(kind, reader, constant_pool):
    if isinstance(kind, int):
        return int.from_bytes(reader.take_bytes(kind), "big")
    return kind.decode(reader, constant_pool)


def _write_operand(kind, value, constant_pool, writer):
    if kind == _U1:
        writer.write_u1(value)
    elif kind == _U2:
        writer.write_u2(value)
    elif kind == _U4:
        writer.write_u4(value)
    else:
        value.encode(constant_pool, writer)


def _operand_to_json(value):
    if isinstance(value, ClassRef):
        return value.name
    if isinstance(value, _MemberRef):
        return value._to_json()
    return value


def _operand_from_json(kind, data):
    if kind is ClassRef:
        return ClassRef(data)
    if isinstance(kind, type) and issubclass(kind, _MemberRef):
        return kind._from_json(data)
    return int(data)


@dataclass
class Instruction:
    """One opcode together with its named operands."""

    opcode: Opcode
    operands: dict = field(default_factory=dict)

    def __post_init__(self):
        self.opcode = Opcode(self.opcode)
        expected = [name for name, _ in _schema(self.opcode)]
        if sorted(self.operands) != sorted(expected):
            raise ValueError(
                f"Opcode `{self.opcode.name}` takes operands {expected}, "
                f"got {sorted(self.operands)}"
            )

    def encode(self, constant_pool, writer):
        """Write the opcode and its operands, adding referenced constants to the pool."""
        writer.write_u1(self.opcode)
        for name, kind in _schema(self.opcode):
            _write_operand(kind, self.operands[name], constant_pool, writer)

    def to_json(self):
        """A bare name for plain opcodes, else ``{name: {operand: value}}``."""
        schema = _schema(self.opcode)
        if not schema:
            return self.opcode.name
        return {
            self.opcode.name: {
                name: _operand_to_json(self.operands[name]) for name, _ in schema
            }
        }

    @classmethod
    def from_json(cls, data):
        """Build an instruction from the form produced by :meth:`to_json`."""
        if isinstance(data, str):
            name, raw_operands = data, {}
        elif isinstance(data, dict) and len(data) == 1:
            ((name, raw_operands),) = data.items()
        else:
            raise ValueError(f"Malformed instruction: {data!r}")
        try:
            opcode = Opcode[name]
        except KeyError:
            raise ValueError(f"Unknown opcode name `{name}`") from None
        schema = _schema(opcode)
        if sorted(raw_operands) != sorted(name for name, _ in schema):
            raise ValueError(f"Malformed operands for `{opcode.name}`: {raw_operands!r}")
        return cls(
            opcode,
            {name: _operand_from_json(kind, raw_operands[name]) for name, kind in schema},
        )


def decode_instruction(reader, constant_pool):
    """Read one instruction, resolving any constant pool references."""
    value = reader.u1()
    try:
        opcode = Opcode(value)
    except ValueError:
        raise ClassFormatError(f"Invalid opcode {value}") from None
    return Instruction(
        opcode,
        {name: _read_operand(kind, reader, constant_pool) for name, kind in _schema(opcode)},
    )


def decode_code(data, constant_pool):
    """Decode a whole bytecode array into instructions."""
    reader = ByteReader(data)
    instructions = []
    while not reader.is_empty():
        instructions.append(decode_instruction(reader, constant_pool))
    return instructions


def encode_code(instructions, constant_pool):
    """Encode instructions into a bytecode array."""
    writer = ByteWriter()
    for instruction in instructions:
        instruction.encode(constant_pool, writer)
    return bytes(writer)