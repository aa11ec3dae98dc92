"""Attributes attached to classes, fields, methods and code, and their encoding."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from jclassfile.access import MethodParameterAccessFlags, read_flags, write_flags
from jclassfile.binary import ByteReader, ByteWriter, ClassFormatError
from jclassfile.code import Instruction, decode_code, encode_code
from jclassfile.constant_pool import Double, Float, Integer, Long, StringInfo, Utf8
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


class ConstantValueKind(Enum):
    """The type of value held by a ``ConstantValue`` attribute."""

    Integer = "Integer"
    Long = "Long"
    Float = "Float"
    Double = "Double"
    String = "String"


_CONSTANT_TYPES = {
    ConstantValueKind.Integer: Integer,
    ConstantValueKind.Long: Long,
    ConstantValueKind.Float: Float,
    ConstantValueKind.Double: Double,
}


class _Attribute:
    NAME = ""

    @property
    def name(self):
        return self.NAME

    def _encode(self, constant_pool):
        return b""

    def _to_json(self):
        return self.NAME


@dataclass(frozen=True)
class ConstantValue(_Attribute):
    """The initial value of a constant field."""

    kind: ConstantValueKind
    value: object
    NAME = "ConstantValue"

    def _encode(self, constant_pool):
        if self.kind is ConstantValueKind.String:
            string_index = constant_pool.push(Utf8(self.value))
            constant = StringInfo(string_index)
        else:
            constant = _CONSTANT_TYPES[self.kind](self.value)
        return constant_pool.push(constant).to_bytes(2, "big")

    def _to_json(self):
        return {self.NAME: {self.kind.value: self.value}}


@dataclass
class Code(_Attribute):
    """A method body: limits, instructions, handlers and nested attributes."""

    max_stack: int
    max_locals: int
    code: list = field(default_factory=list)
    exception_table: list = field(default_factory=list)
    attributes: list = field(default_factory=list)
    NAME = "Code"

    def _encode(self, constant_pool):
        writer = ByteWriter()
        writer.write_u2(self.max_stack)
        writer.write_u2(self.max_locals)
        code_bytes = encode_code(self.code, constant_pool)
        writer.write_u4(len(code_bytes))
        writer.write_bytes(code_bytes)
        write_exception_table(writer, self.exception_table, constant_pool)
        write_raw_attributes(writer, unresolve_attributes(self.attributes, constant_pool))
        return bytes(writer)

    def _to_json(self):
        return {
            self.NAME: {
                "max_stack": self.max_stack,
                "max_locals": self.max_locals,
                "code": [instruction.to_json() for instruction in self.code],
                "exception_table": [entry.to_json() for entry in self.exception_table],
                "attributes": [attribute_to_json(a) for a in self.attributes],
            }
        }


@dataclass(frozen=True)
class SourceFile(_Attribute):
    """The name of the source file a class was compiled from."""

    file_name: str
    NAME = "SourceFile"

    def _encode(self, constant_pool):
        return constant_pool.push(Utf8(self.file_name)).to_bytes(2, "big")

    def _to_json(self):
        return {self.NAME: self.file_name}


@dataclass
class LineNumberTable(_Attribute):
    """Mapping from bytecode offsets to source lines."""

    entries: list = field(default_factory=list)
    NAME = "LineNumberTable"

    def _encode(self, constant_pool):
        writer = ByteWriter()
        write_line_number_table(writer, self.entries)
        return bytes(writer)

    def _to_json(self):
        return {self.NAME: [entry.to_json() for entry in self.entries]}


@dataclass
class LocalVariableTable(_Attribute):
    """Names and types of local variables over bytecode ranges."""

    entries: list = field(default_factory=list)
    NAME = "LocalVariableTable"

    def _encode(self, constant_pool):
        return write_local_variable_table(self.entries, constant_pool)

    def _to_json(self):
        return {self.NAME: [entry.to_json() for entry in self.entries]}


@dataclass(frozen=True)
class Synthetic(_Attribute):
    """Marks a member that does not appear in the source."""

    NAME = "Synthetic"


@dataclass(frozen=True)
class Deprecated(_Attribute):
    """Marks a deprecated element."""

    NAME = "Deprecated"


@dataclass(frozen=True)
class Signature(_Attribute):
    """A generic signature, kept as its raw constant pool index."""

    signature_index: int
    NAME = "Signature"

    def _encode(self, constant_pool):
        return self.signature_index.to_bytes(2, "big")

    def _to_json(self):
        return {self.NAME: {"signature_index": self.signature_index}}


@dataclass
class MethodParameter:
    """A formal parameter; ``name`` is None when the class file gives none."""

    name: str | None = None
    access_flags: list = field(default_factory=list)

    def _to_json(self):
        return {"name": self.name, "access_flags": [flag.name for flag in self.access_flags]}

    @classmethod
    def _from_json(cls, data):
        return cls(
            data.get("name"),
            [MethodParameterAccessFlags[flag] for flag in data.get("access_flags", [])],
        )


@dataclass
class MethodParameters(_Attribute):
    """Names and flags of a method's formal parameters."""

    parameters: list = field(default_factory=list)
    NAME = "MethodParameters"

    def _encode(self, constant_pool):
        writer = ByteWriter()
        writer.write_u1(len(self.parameters))
        for parameter in self.parameters:
            name_index = 0 if parameter.name is None else constant_pool.push(Utf8(parameter.name))
            writer.write_u2(name_index)
            write_flags(writer, parameter.access_flags)
        return bytes(writer)

    def _to_json(self):
        return {self.NAME: [parameter._to_json() for parameter in self.parameters]}


@dataclass(frozen=True)
class UnknownAttribute(_Attribute):
    """An attribute kept as its name and uninterpreted contents."""

    attribute_name: str
    info: bytes = b""

    @property
    def name(self):
        return self.attribute_name

    def _encode(self, constant_pool):
        return bytes(self.info)

    def _to_json(self):
        return {
            "UNIMPLEMENTED_ATTRIBUTE_TODO": {
                "name": self.attribute_name,
                "info": list(self.info),
            }
        }


@dataclass(frozen=True)
class RawAttribute:
    """An attribute as stored: a name index and its bytes."""

    name_index: int
    info: bytes = b""

    @property
    def length(self):
        return len(self.info)


def attribute_name(attribute):
    """Return the name an attribute is stored under."""
    return attribute.name


def read_raw_attributes(reader):
    """Read a counted list of raw attributes."""
    count = reader.u2()
    raw_attributes = []
    for _ in range(count):
        name_index = reader.u2()
        length = reader.u4()
        raw_attributes.append(RawAttribute(name_index, reader.take_bytes(length)))
    return raw_attributes


def write_raw_attributes(writer, raw_attributes):
    """Write a counted list of raw attributes."""
    writer.write_u2(len(raw_attributes))
    for raw in raw_attributes:
        writer.write_u2(raw.name_index)
        writer.write_u4(raw.length)
        writer.write_bytes(raw.info)


def _parse_constant_value(reader, constant_pool):
    return ConstantValue(ConstantValueKind.String, constant_pool.constant_as_string(reader.u2()))


def _parse_line_number_table(reader, constant_pool):
    try:
        return LineNumberTable(read_line_number_table(reader))
    except ClassFormatError as error:
        raise ClassFormatError(f"Failed parsing line number table: {error}") from error


def _parse_local_variable_table(reader, constant_pool):
    return LocalVariableTable(read_local_variable_table(reader, constant_pool))


def _parse_code(reader, constant_pool):
    max_stack = reader.u2()
    max_locals = reader.u2()
    code_length = reader.u4()
    code = decode_code(reader.take_bytes(code_length), constant_pool)
    exception_table = read_exception_table(reader, constant_pool)
    attributes = resolve_attributes(read_raw_attributes(reader), constant_pool)
    return Code(max_stack, max_locals, code, exception_table, attributes)


def _parse_method_parameters(reader, constant_pool):
    count = reader.u1()
    parameters = []
    for position in range(count):
        name_index = reader.u2()
        name = None
        if name_index != 0:
            try:
                name = constant_pool.utf8(name_index)
            except ClassFormatError as error:
                raise ClassFormatError(
                    f"Couldn't get name for parameter #{position} from index "
                    f"{name_index}:\n\t{error}"
                ) from error
        parameters.append(
            MethodParameter(name, read_flags(reader, MethodParameterAccessFlags))
        )
    return MethodParameters(parameters)


def _parse_source_file(reader, constant_pool):
    try:
        return SourceFile(constant_pool.utf8(reader.u2()))
    except ClassFormatError as error:
        raise ClassFormatError(f"Couldn't get source file name:\n\t{error}") from error


_PARSERS = {
    "ConstantValue": _parse_constant_value,
    "LineNumberTable": _parse_line_number_table,
    "LocalVariableTable": _parse_local_variable_table,
    "Code": _parse_code,
    "MethodParameters": _parse_method_parameters,
    "Synthetic": lambda reader, constant_pool: Synthetic(),
    "Deprecated": lambda reader, constant_pool: Deprecated(),
    "Signature": lambda reader, constant_pool: Signature(reader.u2()),
    "SourceFile": _parse_source_file,
}


def resolve_attribute(raw, constant_pool):
    """Turn a raw attribute into its model, resolving constant pool references."""
    name = constant_pool.utf8(raw.name_index)
    reader = ByteReader(raw.info)
    parser = _PARSERS.get(name)
    if parser is None:
        return UnknownAttribute(name, reader.deplete())
    try:
        return parser(reader, constant_pool)
    except ClassFormatError as error:
        raise ClassFormatError(f"Attribute resolution failure:\n {error}") from error


def unresolve_attribute(attribute, constant_pool):
    """Encode an attribute, adding its name and references to the pool."""
    name_index = constant_pool.push(Utf8(attribute.name))
    return RawAttribute(name_index, attribute._encode(constant_pool))


def resolve_attributes(raw_attributes, constant_pool):
    """Resolve every raw attribute in order."""
    return [resolve_attribute(raw, constant_pool) for raw in raw_attributes]


def unresolve_attributes(attributes, constant_pool):
    """Encode every attribute in order."""
    return [unresolve_attribute(attribute, constant_pool) for attribute in attributes]


def attribute_to_json(attribute):
    """Return the JSON-ready form of an attribute."""
    return attribute._to_json()


def _code_from_json(data):
    return Code(
        max_stack=data["max_stack"],
        max_locals=data["max_locals"],
        code=[Instruction.from_json(item) for item in data.get("code", [])],
        exception_table=[
            ExceptionTableElement.from_json(item) for item in data.get("exception_table", [])
        ],
        attributes=[attribute_from_json(item) for item in data.get("attributes", [])],
    )


def _constant_value_from_json(data):
    if not isinstance(data, dict) or len(data) != 1:
        raise ValueError(f"Malformed constant value: {data!r}")
    ((kind_name, value),) = data.items()
    try:
        kind = ConstantValueKind(kind_name)
    except ValueError:
        raise ValueError(f"Unknown constant value kind `{kind_name}`") from None
    if kind in (ConstantValueKind.Float, ConstantValueKind.Double):
        value = float(value)
    elif kind in (ConstantValueKind.Integer, ConstantValueKind.Long):
        value = int(value)
    return ConstantValue(kind, value)


_JSON_READERS = {
    "ConstantValue": _constant_value_from_json,
    "Code": _code_from_json,
    "SourceFile": SourceFile,
    "LineNumberTable": lambda data: LineNumberTable(
        [LineNumberTableElement.from_json(item) for item in data]
    ),
    "LocalVariableTable": lambda data: LocalVariableTable(
        [LocalVariableTableElement.from_json(item) for item in data]
    ),
    "Signature": lambda data: Signature(data["signature_index"]),
    "MethodParameters": lambda data: MethodParameters(
        [MethodParameter._from_json(item) for item in data]
    ),
    "UNIMPLEMENTED_ATTRIBUTE_TODO": lambda data: UnknownAttribute(
        data["name"], bytes(data.get("info", []))
    ),
}

_UNIT_ATTRIBUTES = {"Synthetic": Synthetic, "Deprecated": Deprecated}


def attribute_from_json(data):
    """Build an attribute from the form produced by :func:`attribute_to_json`."""
    if isinstance(data, str):
        try:
            return _UNIT_ATTRIBUTES[data]()
        except KeyError:
            raise ValueError(f"Unknown attribute `{data}`") from None
    if not isinstance(data, dict) or len(data) != 1:
        raise ValueError(f"Malformed attribute: {data!r}")
    ((name, content),) = data.items()
    reader = _JSON_READERS.get(name)
    if reader is None:
        raise ValueError(f"Unknown attribute `{name}`")
    return reader(content)