# jclassfile

`jclassfile` reads JVM `.class` files into a plain Python model, writes that
model back out as class file bytes, and converts it to and from JSON-ready
dictionaries.

It understands the class header and version, the constant pool, access flags,
interfaces, fields, methods and these attributes: `ConstantValue`, `Code`
(with its instructions, exception table and nested attributes), `SourceFile`,
`LineNumberTable`, `LocalVariableTable`, `Synthetic`, `Deprecated`,
`Signature` and `MethodParameters`. Any other attribute is kept as an
`UnknownAttribute` holding its name and raw bytes, and is written back
unchanged.

## Installation

```
pip install .
```

## Using the library

Parse a class file:

```python
from pathlib import Path
from jclassfile.classfile import read_class

class_file = read_class(Path("Example.class").read_bytes())
print(class_file.this_class, class_file.super_class)
for method in class_file.methods:
    print(method.name, method.descriptor)
```

`read_class` also accepts a `jclassfile.binary.ByteReader` positioned at the
start of a class.

Convert to JSON and back:

```python
import json
from jclassfile.classfile import ClassFile, write_class

document = class_file.to_json()
text = json.dumps(document)

rebuilt = ClassFile.from_json(json.loads(text))
Path("Example.out.class").write_bytes(write_class(rebuilt))
```

`write_class` builds a fresh constant pool from the model: every name,
descriptor and reference gets new entries, so the output's constant pool
layout differs from the input's.

Instructions are `jclassfile.code.Instruction` objects: an `Opcode` plus a
dictionary of named operands. Operands that refer to the constant pool are
resolved to `ClassRef`, `FieldRef`, `MethodRef` or `InterfaceMethodRef`
values; other operands are plain integers.

Malformed input raises `jclassfile.binary.ClassFormatError` (a `ValueError`)
with a message describing where parsing failed. A malformed JSON document
raises `ValueError` or `KeyError`.

## Files on disk

`jclassfile.cli` offers two helpers that work on paths directly; each returns
the `ClassFile` it handled:

```python
from jclassfile.cli import class_to_json_file, json_to_class_file

class_to_json_file("Example.class", "Example.class.json")
json_to_class_file("Example.class.json", "Example.out.class")
```

## Command line

```
jclassfile to-json [CLASS_PATH] [JSON_PATH]
jclassfile to-class [JSON_PATH] [CLASS_PATH]
```

`to-json` defaults to reading `./data/Example.class` and writing
`./data/Example.class.json`; `to-class` defaults to reading
`./data/Example.class.json` and writing `./data/Example.out.class`. The command
exits with status 1 and prints the error when a file cannot be read or parsed.
See all options with:

```
jclassfile --help
```

## Limitations

- The `lookupswitch`, `tableswitch` and `wide` instructions are not
  supported; a method body containing them fails to decode with
  "Invalid opcode".
- `bipush`, `ret`, and the `if_icmp*` / `if_acmp*` comparisons are handled
  as taking no operand bytes.
- A `ConstantValue` attribute read from a class file is kept as text
  (`ConstantValueKind.String`), so writing it back stores a string constant.
- `Signature` keeps its raw constant pool index, which is not remapped when
  the class is written with a fresh constant pool.
- There is no textual disassembly listing beyond `str()` of a
  `ConstantPool`; the package produces a data model and JSON, not a
  `javap`-style report.

## Running the tests

```
pip install .[test]
pytest
```