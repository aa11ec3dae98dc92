"""Command line conversion between class files and their JSON description."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from jclassfile.classfile import ClassFile, read_class, write_class


def class_to_json_file(class_path, json_path):
    """Parse the class file at ``class_path`` and write its JSON to ``json_path``."""
    class_file = read_class(Path(class_path).read_bytes())
    Path(json_path).write_text(
        json.dumps(class_file.to_json(), separators=(",", ":")), encoding="utf-8"
    )
    return class_file


def json_to_class_file(json_path, class_path):
    """Read a JSON description from ``json_path`` and write the class file to ``class_path``."""
    data = json.loads(Path(json_path).read_text(encoding="utf-8"))
    class_file = ClassFile.from_json(data)
    Path(class_path).write_bytes(write_class(class_file))
    return class_file


def _parser():
    parser = argparse.ArgumentParser(
        prog="jclassfile", description="Convert between class files and JSON."
    )
    commands = parser.add_subparsers(dest="command", required=True)

    to_json = commands.add_parser("to-json", help="describe a class file as JSON")
    to_json.add_argument("class_path", nargs="?", default="./data/Example.class")
    to_json.add_argument("json_path", nargs="?", default="./data/Example.class.json")

    to_class = commands.add_parser("to-class", help="build a class file from JSON")
    to_class.add_argument("json_path", nargs="?", default="./data/Example.class.json")
    to_class.add_argument("class_path", nargs="?", default="./data/Example.out.class")
    return parser


def main(argv=None):
    """Run the converter; returns the process exit status."""
    args = _parser().parse_args(argv)
    try:
        if args.command == "to-json":
            class_to_json_file(args.class_path, args.json_path)
        else:
            json_to_class_file(args.json_path, args.class_path)
    except (OSError, ValueError, KeyError, TypeError) as error:
        print(f"jclassfile: {error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())