"""Line number, local variable and exception tables found inside attributes."""

from __future__ import annotations

from dataclasses import dataclass

from jclassfile.binary import ByteWriter, ClassFormatError
from jclassfile.constant_pool import ClassInfo, Utf8


@dataclass(frozen=True)
class LineNumberTableElement:
    """Maps a bytecode offset to a source line."""

    start_pc: int
    line_number: int

    def to_json(self):
        return {"start_pc": self.start_pc, "line_number": self.line_number}

    @classmethod
    def from_json(cls, data):
        return cls(start_pc=data["start_pc"], line_number=data["line_number"])


@dataclass(frozen=True)
class LocalVariableTableElement:
    """Describes a local variable over a range of bytecode."""

    start_pc: int
    length: int
    name: str
    descriptor: str
    index: int

    def to_json(self):
        return {
            "start_pc": self.start_pc,
            "length": self.length,
            "name": self.name,
            "descriptor": self.descriptor,
            "index": self.index,
        }

    @classmethod
    def from_json(cls, data):
        return cls(
            start_pc=data["start_pc"],
            length=data["length"],
            name=data["name"],
            descriptor=data["descriptor"],
            index=data["index"],
        )


@dataclass(frozen=True)
class ExceptionTableElement:
    """An exception handler range; ``catch_type`` None catches everything."""

    start_pc: int
    end_pc: int
    handler_pc: int
    catch_type: str | None = None

    def to_json(self):
        return {
            "start_pc": self.start_pc,
            "end_pc": self.end_pc,
            "handler_pc": self.handler_pc,
            "catch_type": self.catch_type,
        }

    @classmethod
    def from_json(cls, data):
        return cls(
            start_pc=data["start_pc"],
            end_pc=data["end_pc"],
            handler_pc=data["handler_pc"],
            catch_type=data.get("catch_type"),
        )


def read_line_number_table(reader):
    """Read a length-prefixed line number table."""
    count = reader.u2()
    return [
        LineNumberTableElement(start_pc=reader.u2(), line_number=reader.u2())
        for _ in range(count)
    ]


def write_line_number_table(writer, table):
    """Write a length-prefixed line number table."""
    writer.write_u2(len(table))
    for element in table:
        writer.write_u2(element.start_pc)
        writer.write_u2(element.line_number)


def read_local_variable_table(reader, constant_pool):
    """Read a local variable table, resolving names and descriptors."""
    count = reader.u2()
    table = []
    for _ in range(count):
        start_pc = reader.u2()
        length = reader.u2()
        name = constant_pool.utf8(reader.u2())
        descriptor = constant_pool.utf8(reader.u2())
        index = reader.u2()
        table.append(LocalVariableTableElement(start_pc, length, name, descriptor, index))
    return table


def write_local_variable_table(table, constant_pool):
    """Encode a local variable table, adding its strings to the pool."""
    writer = ByteWriter()
    writer.write_u2(len(table))
    for element in table:
        writer.write_u2(element.start_pc)
        writer.write_u2(element.length)
        writer.write_u2(constant_pool.push(Utf8(element.name)))
        writer.write_u2(constant_pool.push(Utf8(element.descriptor)))
        writer.write_u2(element.index)
    return bytes(writer)


def read_exception_table(reader, constant_pool):
    """Read an exception table, resolving catch types to class names."""
    count = reader.u2()
    table = []
    for _ in range(count):
        start_pc = reader.u2()
        end_pc = reader.u2()
        handler_pc = reader.u2()
        catch_index = reader.u2()
        catch_type = None
        if catch_index != 0:
            try:
                catch_type = constant_pool.class_name(catch_index)
            except ClassFormatError as error:
                raise ClassFormatError(
                    f"Failed finding exception class name at index {catch_index}: {error}"
                ) from error
        table.append(ExceptionTableElement(start_pc, end_pc, handler_pc, catch_type))
    return table


def write_exception_table(writer, table, constant_pool):
    """Write an exception table, adding catch type classes to the pool."""
    writer.write_u2(len(table))
    for element in table:
        writer.write_u2(element.start_pc)
        writer.write_u2(element.end_pc)
        writer.write_u2(element.handler_pc)
        if element.catch_type is None:
            catch_index = 0
        else:
            name_index = constant_pool.push(Utf8(element.catch_type))
            catch_index = constant_pool.push(ClassInfo(name_index))
        writer.write_u2(catch_index)