"""Access modifiers and their packing into 16-bit flag words."""

from __future__ import annotations

from enum import IntEnum


class ClassAccessModifier(IntEnum):
    """Access flags of a class or interface."""

    PUBLIC = 0x0001
    FINAL = 0x0010
    SUPER = 0x0020
    INTERFACE = 0x0200
    ABSTRACT = 0x0400
    SYNTHETIC = 0x1000
    ANNOTATION = 0x2000
    ENUM = 0x4000
    MODULE = 0x8000

    def __str__(self):
        return self.name


class FieldAccessModifier(IntEnum):
    """Access flags of a field."""

    PUBLIC = 0x0001
    PRIVATE = 0x0002
    PROTECTED = 0x0004
    STATIC = 0x0008
    FINAL = 0x0010
    VOLATILE = 0x0040
    TRANSIENT = 0x0080
    SYNTHETIC = 0x1000
    ENUM = 0x4000

    def __str__(self):
        return self.name


class MethodAccessModifier(IntEnum):
    """Access flags of a method."""

    PUBLIC = 0x0001
    PRIVATE = 0x0002
    PROTECTED = 0x0004
    STATIC = 0x0008
    FINAL = 0x0010
    SYNCHRONIZED = 0x0020
    BRIDGE = 0x0040
    VARARGS = 0x0080
    NATIVE = 0x0100
    ABSTRACT = 0x0400
    STRICT = 0x0800
    SYNTHETIC = 0x1000

    def __str__(self):
        return self.name


class MethodParameterAccessFlags(IntEnum):
    """Access flags of a method parameter."""

    FINAL = 0x0010
    SYNTHETIC = 0x1000
    MANDATED = 0x8000

    def __str__(self):
        return self.name


def decode_flags(flags, modifier_type):
    """Return the members of ``modifier_type`` set in ``flags``, in declaration order.

    Bits with no matching member are ignored.
    """
    return [modifier for modifier in modifier_type if modifier & flags]


def encode_flags(modifiers):
    """Combine modifiers into a single flag word."""
    flags = 0
    for modifier in modifiers:
        flags |= int(modifier)
    return flags


def read_flags(reader, modifier_type):
    """Read a 16-bit flag word and decode it into modifiers."""
    return decode_flags(reader.u2(), modifier_type)


def write_flags(writer, modifiers):
    """Write modifiers as a 16-bit flag word."""
    writer.write_u2(encode_flags(modifiers))