"""
godsl Transpiler
================

Lexer, Pratt parser and Go code generator for godsl, a Go dialect with
try/catch/throw/finally.

Modules
-------
- lexer: source text to tokens
- ast: AST node definitions
- parser: tokens to AST
- codegen: AST to Go source, lowering exception handling
- compiler: end-to-end entry points
"""

from godsl.transpiler.lexer import Lexer, Token, TokenType, Position
from godsl.transpiler.parser import Parser, parse_source
from godsl.transpiler.codegen import CodeGenerator, needs_error_handling
from godsl.transpiler.compiler import (
    TranspileResult,
    transpile_file,
    transpile_path,
    transpile_program,
    transpile_source,
)

__all__ = [
    "Lexer",
    "Token",
    "TokenType",
    "Position",
    "Parser",
    "parse_source",
    "CodeGenerator",
    "needs_error_handling",
    "TranspileResult",
    "transpile_file",
    "transpile_path",
    "transpile_program",
    "transpile_source",
]
