"""Reading, writing and JSON conversion of JVM class files."""

__version__ = "0.1.0"