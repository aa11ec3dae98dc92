"""Whole class files: reading, writing and conversion to and from JSON-ready data."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple

from jclassfile.access import (
    ClassAccessModifier,
    FieldAccessModifier,
    MethodAccessModifier,
    read_flags,
    write_flags,
)
from jclassfile.attributes import (
    attribute_from_json,
    attribute_to_json,
    read_raw_attributes,
    resolve_attributes,
    unresolve_attributes,
    write_raw_attributes,
)
from jclassfile.binary import ByteReader, ByteWriter, ClassFormatError
from jclassfile.constant_pool import ClassInfo, ConstantPool, Utf8, read_constant_pool

MAGIC = 0xCAFEBABE


@dataclass(frozen=True)
class Version:
    """The magic number and format version of a class file."""

    magic: int
    major: int
    minor: int

    def __str__(self):
        return f"magic: 0x{self.magic:X}\nmajor: {self.major}\nminor: {self.minor}"

    def _to_json(self):
        return {"magic": self.magic, "major": self.major, "minor": self.minor}

    @classmethod
    def _from_json(cls, data):
        return cls(data["magic"], data["major"], data["minor"])


def _read_version(reader):
    magic = reader.u4()
    minor = reader.u2()
    major = reader.u2()
    if magic != MAGIC:
        raise ClassFormatError(f"Wrong 'magic' field: `0x{magic:X}`!")
    return Version(magic, major, minor)


def _write_version(writer, version):
    writer.write_u4(version.magic)
    writer.write_u2(version.minor)
    writer.write_u2(version.major)


class _RawMember(NamedTuple):
    access_flags: list
    name_index: int
    descriptor_index: int
    attributes: list


@dataclass
class _Member:
    access_flags: list
    name: str
    descriptor: str
    attributes: list = field(default_factory=list)

    _MODIFIERS = FieldAccessModifier

    @classmethod
    def _read_raw(cls, reader):
        return _RawMember(
            read_flags(reader, cls._MODIFIERS),
            reader.u2(),
            reader.u2(),
            read_raw_attributes(reader),
        )

    @classmethod
    def _resolve(cls, raw, constant_pool):
        return cls(
            list(raw.access_flags),
            constant_pool.utf8(raw.name_index),
            constant_pool.utf8(raw.descriptor_index),
            resolve_attributes(raw.attributes, constant_pool),
        )

    def _unresolve(self, constant_pool):
        name_index = constant_pool.push(Utf8(self.name))
        descriptor_index = constant_pool.push(Utf8(self.descriptor))
        return _RawMember(
            list(self.access_flags),
            name_index,
            descriptor_index,
            unresolve_attributes(self.attributes, constant_pool),
        )

    def _to_json(self):
        return {
            "access_flags": [flag.name for flag in self.access_flags],
            "name": self.name,
            "descriptor": self.descriptor,
            "attributes": [attribute_to_json(a) for a in self.attributes],
        }

    @classmethod
    def _from_json(cls, data):
        return cls(
            [cls._MODIFIERS[flag] for flag in data["access_flags"]],
            data["name"],
            data["descriptor"],
            [attribute_from_json(item) for item in data["attributes"]],
        )


@dataclass
class Field(_Member):
    """A field declared by a class."""

    _MODIFIERS = FieldAccessModifier


@dataclass
class Method(_Member):
    """A method declared by a class."""

    _MODIFIERS = MethodAccessModifier


def _read_members(reader, member_type):
    count = reader.u2()
    return [member_type._read_raw(reader) for _ in range(count)]


def _write_members(writer, raw_members):
    writer.write_u2(len(raw_members))
    for raw in raw_members:
        write_flags(writer, raw.access_flags)
        writer.write_u2(raw.name_index)
        writer.write_u2(raw.descriptor_index)
        write_raw_attributes(writer, raw.attributes)


def _push_class(constant_pool, name):
    return constant_pool.push(ClassInfo(constant_pool.push(Utf8(name))))


@dataclass
class ClassFile:
    """A parsed class file with every constant pool reference resolved."""

    version: Version
    access_flags: list
    this_class: str
    super_class: str | None = None
    interfaces: list = field(default_factory=list)
    fields: list = field(default_factory=list)
    methods: list = field(default_factory=list)
    attributes: list = field(default_factory=list)

    def to_json(self):
        """Return a JSON-ready dictionary describing the class."""
        return {
            "version": self.version._to_json(),
            "access_flags": [flag.name for flag in self.access_flags],
            "this_class": self.this_class,
            "super_class": self.super_class,
            "interfaces": list(self.interfaces),
            "fields": [member._to_json() for member in self.fields],
            "methods": [member._to_json() for member in self.methods],
            "attributes": [attribute_to_json(a) for a in self.attributes],
        }

    @classmethod
    def from_json(cls, data):
        """Build a class from the form produced by :meth:`to_json`."""
        return cls(
            version=Version._from_json(data["version"]),
            access_flags=[ClassAccessModifier[flag] for flag in data["access_flags"]],
            this_class=data["this_class"],
            super_class=data.get("super_class"),
            interfaces=list(data["interfaces"]),
            fields=[Field._from_json(item) for item in data["fields"]],
            methods=[Method._from_json(item) for item in data["methods"]],
            attributes=[attribute_from_json(item) for item in data["attributes"]],
        )


def _wrapped(message, action):
    try:
        return action()
    except ClassFormatError as error:
        raise ClassFormatError(f"{message}:\n\t{error}") from error


def read_class(data):
    """Parse class file bytes (or a ByteReader positioned at its start)."""
    reader = data if isinstance(data, ByteReader) else ByteReader(data)

    version = _wrapped("Error parsing version", lambda: _read_version(reader))
    constant_pool = _wrapped("Error parsing constant pool", lambda: read_constant_pool(reader))
    access_flags = _wrapped(
        "Error parsing access flags", lambda: read_flags(reader, ClassAccessModifier)
    )

    this_class = constant_pool.class_name(reader.u2())
    super_index = reader.u2()
    super_class = None if super_index == 0 else constant_pool.class_name(super_index)

    interface_count = reader.u2()
    interface_indices = [reader.u2() for _ in range(interface_count)]
    interfaces = [constant_pool.class_name(index) for index in interface_indices]

    raw_fields = _read_members(reader, Field)
    fields_ = [Field._resolve(raw, constant_pool) for raw in raw_fields]

    raw_methods = _read_members(reader, Method)
    methods = [Method._resolve(raw, constant_pool) for raw in raw_methods]

    raw_attributes = read_raw_attributes(reader)
    attributes = _wrapped(
        "Error resolving class attributes",
        lambda: resolve_attributes(raw_attributes, constant_pool),
    )

    return ClassFile(
        version=version,
        access_flags=access_flags,
        this_class=this_class,
        super_class=super_class,
        interfaces=interfaces,
        fields=fields_,
        methods=methods,
        attributes=attributes,
    )


def write_class(class_file):
    """Encode a class into class file bytes, building a fresh constant pool."""
    constant_pool = ConstantPool()

    this_class_index = _push_class(constant_pool, class_file.this_class)
    super_class_index = (
        0 if class_file.super_class is None else _push_class(constant_pool, class_file.super_class)
    )
    interface_indices = [_push_class(constant_pool, name) for name in class_file.interfaces]
    raw_fields = [member._unresolve(constant_pool) for member in class_file.fields]
    raw_methods = [member._unresolve(constant_pool) for member in class_file.methods]
    raw_attributes = unresolve_attributes(class_file.attributes, constant_pool)

    writer = ByteWriter()
    _write_version(writer, class_file.version)
    constant_pool.write(writer)
    write_flags(writer, class_file.access_flags)
    writer.write_u2(this_class_index)
    writer.write_u2(super_class_index)
    writer.write_u2(len(interface_indices))
    for index in interface_indices:
        writer.write_u2(index)
    _write_members(writer, raw_fields)
    _write_members(writer, raw_methods)
    write_raw_attributes(writer, raw_attributes)
    return bytes(writer)