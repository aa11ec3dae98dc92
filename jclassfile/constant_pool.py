"""The class file constant pool and its entries."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass, fields
from decimal import Decimal
from enum import IntEnum

from jclassfile.binary import ByteWriter, ClassFormatError


class CpTag(IntEnum):
    """Constant pool entry tags."""

    Utf8 = 1
    Integer = 3
    Float = 4
    Long = 5
    Double = 6
    Class = 7
    String = 8
    Fieldref = 9
    Methodref = 10
    InterfaceMethodref = 11
    NameAndType = 12
    MethodHandle = 15
    MethodType = 16
    Dynamic = 17
    InvokeDynamic = 18
    Module = 19
    Package = 20

    def __str__(self):
        return self.name


def join_long(high, low):
    """Combine two 32-bit halves into a 64-bit unsigned value."""
    return (high << 32) + low


def split_long(value):
    """Split a 64-bit unsigned value into its high and low 32-bit halves."""
    return value >> 32, value & 0xFFFFFFFF


def _plain_decimal(text):
    """Render a numeric literal without an exponent or a redundant fraction."""
    rendered = format(Decimal(text), "f")
    if "." in rendered:
        rendered = rendered.rstrip("0").rstrip(".")
    return rendered


def _format_special(value):
    if math.isnan(value):
        return "NaN"
    return "inf" if value > 0 else "-inf"


def _format_f64(value):
    if not math.isfinite(value):
        return _format_special(value)
    return _plain_decimal(repr(value))


def _format_f32(value):
    if not math.isfinite(value):
        return _format_special(value)
    target = struct.pack(">f", value)
    for precision in range(1, 10):
        text = f"{value:.{precision}g}"
        if struct.pack(">f", float(text)) == target:
            return _plain_decimal(text)
    return _plain_decimal(repr(value))


class Constant:
    """Base of all constant pool entries.

    Subclasses made only of unsigned indices describe their layout with ``_FORMAT``.
    """

    tag: CpTag
    _FORMAT = ""

    def _values(self):
        return [getattr(self, f.name) for f in fields(self)]

    @classmethod
    def _read_info(cls, reader):
        return cls(*struct.unpack(cls._FORMAT, reader.take_bytes(struct.calcsize(cls._FORMAT))))

    def _write_info(self, writer):
        writer.write_bytes(struct.pack(self._FORMAT, *self._values()))

    def write(self, writer):
        """Write the tag byte followed by the entry's contents."""
        writer.write_u1(self.tag)
        self._write_info(writer)


@dataclass(frozen=True)
class Utf8(Constant):
    string: str
    tag = CpTag.Utf8

    @classmethod
    def _read_info(cls, reader):
        length = reader.u2()
        return cls(reader.take_bytes(length).decode("utf-8", errors="replace"))

    def _write_info(self, writer):
        data = self.string.encode("utf-8")
        writer.write_u2(len(data))
        writer.write_bytes(data)

    def __str__(self):
        return self.string


@dataclass(frozen=True)
class Integer(Constant):
    value: int
    tag = CpTag.Integer
    _FORMAT = ">I"

    def __str__(self):
        return str(self.value)


@dataclass(frozen=True)
class Float(Constant):
    value: float
    tag = CpTag.Float
    _FORMAT = ">f"

    def __str__(self):
        return f"{_format_f32(self.value)}f"


@dataclass(frozen=True)
class Long(Constant):
    value: int
    tag = CpTag.Long

    @classmethod
    def _read_info(cls, reader):
        high = reader.u4()
        low = reader.u4()
        return cls(join_long(high, low))

    def _write_info(self, writer):
        high, low = split_long(self.value)
        writer.write_u4(high)
        writer.write_u4(low)

    def __str__(self):
        return f"{self.value}L"


@dataclass(frozen=True)
class Double(Constant):
    value: float
    tag = CpTag.Double

    @classmethod
    def _read_info(cls, reader):
        high = reader.u4()
        low = reader.u4()
        bits = join_long(high, low)
        return cls(struct.unpack(">d", bits.to_bytes(8, "big"))[0])

    def _write_info(self, writer):
        (bits,) = struct.unpack(">Q", struct.pack(">d", self.value))
        high, low = split_long(bits)
        writer.write_u4(high)
        writer.write_u4(low)

    def __str__(self):
        return _format_f64(self.value)


@dataclass(frozen=True)
class ClassInfo(Constant):
    name_index: int
    tag = CpTag.Class
    _FORMAT = ">H"

    def __str__(self):
        return f"#{self.name_index}"


@dataclass(frozen=True)
class StringInfo(Constant):
    string_index: int
    tag = CpTag.String
    _FORMAT = ">H"

    def __str__(self):
        return f"#{self.string_index}"


@dataclass(frozen=True)
class Fieldref(Constant):
    class_index: int
    name_and_type_index: int
    tag = CpTag.Fieldref
    _FORMAT = ">HH"

    def __str__(self):
        return f"#{self.class_index}.#{self.name_and_type_index}"


@dataclass(frozen=True)
class Methodref(Constant):
    class_index: int
    name_and_type_index: int
    tag = CpTag.Methodref
    _FORMAT = ">HH"

    def __str__(self):
        return f"#{self.class_index}.#{self.name_and_type_index}"


@dataclass(frozen=True)
class InterfaceMethodref(Constant):
    class_index: int
    name_and_type_index: int
    tag = CpTag.InterfaceMethodref
    _FORMAT = ">HH"

    def __str__(self):
        return f"#{self.class_index}.#{self.name_and_type_index}"


@dataclass(frozen=True)
class NameAndType(Constant):
    name_index: int
    descriptor_index: int
    tag = CpTag.NameAndType
    _FORMAT = ">HH"

    def __str__(self):
        return f"#{self.name_index}:#{self.descriptor_index}"


@dataclass(frozen=True)
class MethodHandle(Constant):
    reference_kind: int
    reference_index: int
    tag = CpTag.MethodHandle
    _FORMAT = ">BH"

    def __str__(self):
        return (
            f"MethodHandle {{ reference_kind: {self.reference_kind}, "
            f"reference_index: {self.reference_index} }}"
        )


@dataclass(frozen=True)
class MethodType(Constant):
    descriptor_index: int
    tag = CpTag.MethodType
    _FORMAT = ">H"

    def __str__(self):
        return f"#{self.descriptor_index}"


@dataclass(frozen=True)
class Dynamic(Constant):
    bootstrap_method_attr_index: int
    name_and_type_index: int
    tag = CpTag.Dynamic
    _FORMAT = ">HH"

    def __str__(self):
        return (
            f"Dynamic {{ bootstrap_method_attr_index: {self.bootstrap_method_attr_index}, "
            f"name_and_type_index: {self.name_and_type_index} }}"
        )


@dataclass(frozen=True)
class InvokeDynamic(Constant):
    bootstrap_method_attr_index: int
    name_and_type_index: int
    tag = CpTag.InvokeDynamic
    _FORMAT = ">HH"

    def __str__(self):
        return (
            f"InvokeDynamic {{ bootstrap_method_attr_index: {self.bootstrap_method_attr_index}, "
            f"name_and_type_index: {self.name_and_type_index} }}"
        )


@dataclass(frozen=True)
class Module(Constant):
    name_index: int
    tag = CpTag.Module
    _FORMAT = ">H"

    def __str__(self):
        return f"#{self.name_index}"


@dataclass(frozen=True)
class Package(Constant):
    name_index: int
    tag = CpTag.Package
    _FORMAT = ">H"

    def __str__(self):
        return f"#{self.name_index}"


_CONSTANT_TYPES = {
    kind.tag: kind
    for kind in (
        Utf8, Integer, Float, Long, Double, ClassInfo, StringInfo, Fieldref, Methodref,
        InterfaceMethodref, NameAndType, MethodHandle, MethodType, Dynamic, InvokeDynamic,
        Module, Package,
    )
}

_LOADABLE = (Integer, Float, Long, Double)


def read_constant(reader):
    """Read one tagged constant pool entry."""
    tag_byte = reader.u1()
    try:
        tag = CpTag(tag_byte)
    except ValueError:
        raise ClassFormatError(f"Unexpected Constant type ID `{tag_byte}`!") from None
    return _CONSTANT_TYPES[tag]._read_info(reader)


class ConstantPool:
    """Constant pool with 1-based indices; slot 0 and slots after wide entries are empty."""

    def __init__(self):
        self._pool = [None]

    def __len__(self):
        return len(self._pool)

    def __getitem__(self, index):
        if index < 0:
            raise IndexError(f"Invalid index: {index}")
        return self._pool[index]

    def push(self, constant):
        """Append a constant and return its index."""
        self._pool.append(constant)
        return len(self._pool) - 1

    def push_empty(self):
        """Append an unusable slot, as follows a Long or Double."""
        self._pool.append(None)

    def _lookup(self, index):
        constant = self._pool[index] if 0 <= index < len(self._pool) else None
        if constant is None:
            raise ClassFormatError(f"Invalid index: {index}")
        return constant

    def _expect(self, index, kind, label):
        constant = self._lookup(index)
        if not isinstance(constant, kind):
            raise ClassFormatError(
                f"Wrong constant type at index {index}: expected `{label}`, "
                f"found `{constant.tag}`"
            )
        return constant

    def utf8(self, index):
        """Return the string of the Utf8 entry at ``index``."""
        return self._expect(index, Utf8, "Utf8").string

    def class_name(self, index):
        """Return the name of the Class entry at ``index``."""
        return self.utf8(self._expect(index, ClassInfo, "Class").name_index)

    def name_and_type(self, index):
        """Return ``(name, descriptor)`` of the NameAndType entry at ``index``."""
        entry = self._expect(index, NameAndType, "NameAndType")
        return self.utf8(entry.name_index), self.utf8(entry.descriptor_index)

    def constant_as_string(self, index):
        """Render a loadable constant (String or a number) as text."""
        constant = self._lookup(index)
        if isinstance(constant, StringInfo):
            return f'"{self.utf8(constant.string_index)}"'
        if isinstance(constant, _LOADABLE):
            return str(constant)
        raise ClassFormatError(
            f"Wrong constant type at index {index}: expected "
            f"[Integer, Float, Long, Double, String], found `{constant.tag}`"
        )

    def write(self, writer):
        """Write the pool count followed by every non-empty entry."""
        body = ByteWriter()
        for constant in self._pool[1:]:
            if constant is not None:
                constant.write(body)
        writer.write_u2(len(self._pool))
        writer.write_bytes(bytes(body))

    def __str__(self):
        lines = [f"Constant Pool [{len(self._pool)}]:"]
        lines.extend(
            f"\t#{index} = {constant}"
            for index, constant in enumerate(self._pool)
            if index > 0 and constant is not None
        )
        return "\n".join(lines) + "\n\n"


def read_constant_pool(reader):
    """Read a constant pool, leaving an empty slot after each Long and Double."""
    count = reader.u2()
    pool = ConstantPool()
    skip = False
    for _ in range(1, count):
        if skip:
            skip = False
            pool.push_empty()
            continue
        constant = read_constant(reader)
        skip = isinstance(constant, (Long, Double))
        pool.push(constant)
    return pool