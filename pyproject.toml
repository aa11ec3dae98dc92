[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "jclassfile"
version = "0.1.0"
description = "Read, write and convert JVM class files to and from a JSON model"
requires-python = ">=3.10"
dependencies = []
keywords = ["jvm", "java", "classfile", "bytecode", "disassembler", "json"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Disassemblers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
jclassfile = "jclassfile.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["jclassfile"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
