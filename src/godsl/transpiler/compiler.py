"""
godsl Transpiler Entry Points
=============================

This module wires the pipeline together:

    Source → Lex → Parse → Generate → Go source

Usage
-----
Command line:
    $ godsl transpile main.godsl

Programmatic:
    >>> from godsl.transpiler import transpile_file
    >>> print(transpile_file('package main'))
    package main

Generation only runs when parsing produced no errors. Each call builds its
own lexer, parser and generator, so the functions here may be called from
several threads at once.
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Optional

from godsl.errors import TranspileError
from godsl.transpiler.ast import Program
from godsl.transpiler.codegen import CodeGenerator
from godsl.transpiler.lexer import Lexer
from godsl.transpiler.parser import Parser


logger = logging.getLogger(__name__)


@dataclass
class TranspileResult:
    """
    Outcome of transpiling one source text.

    Attributes:
        output: Generated Go source, or None when parsing failed
        errors: Parser error messages
        program: The parsed AST (partial when errors is non-empty)
        filename: Source filename, when known
    """
    output: Optional[str] = None
    errors: list[str] = field(default_factory=list)
    program: Optional[Program] = None
    filename: Optional[str] = None

    @property
    def success(self) -> bool:
        return not self.errors

    def raise_if_errors(self) -> None:
        if self.errors:
            raise TranspileError(self.errors, self.filename)


def transpile_program(program: Program) -> str:
    """Generate Go source for an already parsed program."""
    return CodeGenerator().generate(program)


def transpile_source(source: str, filename: Optional[str] = None) -> TranspileResult:
    """
    Transpile source text without raising on parse errors.

    Args:
        source: godsl source code
        filename: Source filename for diagnostics

    Returns:
        TranspileResult with either output or errors set
    """
    parser = Parser(Lexer(source))
    program = parser.parse_program()
    result = TranspileResult(program=program, errors=parser.errors, filename=filename)

    if result.errors:
        logger.debug(f"{filename or '<input>'}: {len(result.errors)} parser error(s)")
        return result

    result.output = transpile_program(program)
    return result


def transpile_file(source: str, filename: Optional[str] = None) -> str:
    """
    Transpile godsl source text to Go.

    Args:
        source: godsl source code
        filename: Source filename for diagnostics

    Returns:
        Generated Go source

    Raises:
        TranspileError: If the parser reported any errors
    """
    result = transpile_source(source, filename)
    result.raise_if_errors()
    return result.output


def transpile_path(path: Path) -> str:
    """Read a .godsl file and transpile it."""
    path = Path(path)
    return transpile_file(path.read_text(encoding="utf-8"), str(path))
