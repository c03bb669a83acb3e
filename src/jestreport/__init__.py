"""Jest-style and spec-style reporters for test runner event streams."""

__version__ = "0.1.0"
