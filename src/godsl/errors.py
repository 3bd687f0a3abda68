"""
godsl Error Hierarchy
=====================

All exceptions raised by godsl inherit from GodslError, so callers can
catch every transpiler failure with a single except clause.

Exception Hierarchy
-------------------
GodslError (base)
├── TranspileError - the parser reported one or more errors
└── BuildError - one or more files failed during ``godsl generate``

Error Message Format
--------------------
A TranspileError lists every parser message under a header::

    Parser errors:
      expected next token to be IDENT, got LBRACE instead
      no prefix parse function for RBRACE found

A BuildError lists each failed file followed by its message.
"""

from typing import Optional


class GodslError(Exception):
    """
    Base exception for all godsl errors.

        try:
            transpile_file(source)
        except GodslError as e:
            print(f"Error: {e}")
    """
    pass


class TranspileError(GodslError):
    """
    The source could not be parsed.

    Attributes:
        errors: Parser messages in the order they were found
        filename: Source file, when known
    """

    HEADER = "Parser errors:"

    def __init__(self, errors: list[str], filename: Optional[str] = None):
        self.errors = list(errors)
        self.filename = filename
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        header = self.HEADER
        if self.filename:
            header = f"{self.filename}: {header}"
        lines = [header]
        lines.extend(f"  {message}" for message in self.errors)
        return "\n".join(lines) + "\n"


class BuildError(GodslError):
    """
    One or more files failed to transpile or write.

    Attributes:
        failures: (source path, message) pairs, one per failed file
    """

    def __init__(self, failures: list[tuple[str, str]]):
        self.failures = list(failures)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        count = len(self.failures)
        lines = [f"{count} file{'s' if count != 1 else ''} failed to transpile"]
        for path, message in self.failures:
            lines.append(f"{path}:")
            lines.extend(f"  {line}" for line in message.rstrip().splitlines())
        return "\n".join(lines)
