"""
godsl - Go with try/catch/throw/finally
=======================================

godsl is a source-to-source transpiler. It reads Go extended with
exception-handling statements and writes plain Go, lowering every try,
catch, throw and finally into Go's multi-value ``error`` idiom.

Main Components
---------------
- **transpiler**: lexer, Pratt parser, AST and Go code generator
- **cli**: the ``godsl`` command (generate, transpile, version)
- **config**: build settings with environment overrides

Quick Start
-----------
Transpile a string:
    >>> from godsl import transpile_file
    >>> go_source = transpile_file('package main')

Or use the command-line tool:
    $ godsl generate src/
    $ godsl transpile main.godsl
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from godsl.errors import GodslError, TranspileError, BuildError
from godsl.config import BuildConfig
from godsl.transpiler import (
    Lexer,
    Parser,
    CodeGenerator,
    TranspileResult,
    transpile_file,
    transpile_path,
    transpile_program,
    transpile_source,
)

__all__ = [
    "__version__",
    "GodslError",
    "TranspileError",
    "BuildError",
    "BuildConfig",
    "Lexer",
    "Parser",
    "CodeGenerator",
    "TranspileResult",
    "transpile_file",
    "transpile_path",
    "transpile_program",
    "transpile_source",
]
