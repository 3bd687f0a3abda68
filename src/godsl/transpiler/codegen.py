"""
Go Code Generator for godsl
===========================

This module turns a godsl AST back into Go source, lowering the
exception-handling statements into Go's ``error`` return idiom.

Lowering Strategy
-----------------
A function "needs error handling" when its body contains a try or throw
statement at any depth. Such a function gets an ``error`` result:

| Declared result | Emitted result      |
|-----------------|---------------------|
| (none)          | error               |
| T               | (T, error)          |
| error           | error (unchanged)   |
| (A, B)          | (A, B, error)       |
| (A, error)      | (A, error)          |

A try statement becomes an immediately invoked closure whose error result
is inspected by the catch clauses::

    try {                        err := func() error {
        risky()                      risky()
    } catch (e *NotFound) {          return nil
        log(e)                   }()
    } catch {                    if err != nil {
        recover()                    if e, ok := err.(*NotFound); ok {
    } finally {                          _ = e
        cleanup()                        log(e)
    }                                } else {
                                         recover()
                                     }
                                 }
                                 cleanup()

A throw becomes a return of a freshly constructed error. Inside a try
closure that is ``return errors.New(fmt.Sprintf("%v", x))``; in a function
with more results, zero values fill the slots before the error.

Known Limitations
-----------------
- The try closure always ends with ``return nil``; a failing call inside
  the body only reaches the catches through an explicit ``return`` or a
  throw.
- Finally statements are appended after the try, so they do not run when
  a catch body returns early.
"""

from dataclasses import dataclass
import logging
from typing import Optional

from godsl.transpiler.lexer import keyword_for
from godsl.transpiler.parser import OPERATOR_PRECEDENCE, Precedence
from godsl.transpiler.ast import (
    Program,
    Statement,
    Expression,
    Identifier,
    IntegerLiteral,
    FloatLiteral,
    StringLiteral,
    CharLiteral,
    BooleanLiteral,
    NilLiteral,
    PrefixExpression,
    InfixExpression,
    CallExpression,
    DotExpression,
    IndexExpression,
    PackageStatement,
    ImportStatement,
    VarStatement,
    ConstStatement,
    AssignStatement,
    DefineStatement,
    ReturnStatement,
    ExpressionStatement,
    IncrementStatement,
    BranchStatement,
    CommentStatement,
    BlockStatement,
    IfStatement,
    ForStatement,
    FunctionStatement,
    CatchBlock,
    TryStatement,
    ThrowStatement,
)


logger = logging.getLogger(__name__)


INDENT = "\t"

ERROR_TYPE = "error"

# Packages used by the throw lowering
ERROR_IMPORTS = ("errors", "fmt")

NUMERIC_TYPES = frozenset({
    "int", "int8", "int16", "int32", "int64",
    "uint", "uint8", "uint16", "uint32", "uint64", "uintptr",
    "byte", "rune",
    "float32", "float64",
    "complex64", "complex128",
})

NIL_TYPE_PREFIXES = ("*", "[]", "map[", "chan ", "<-chan ", "func(", "interface")


# =============================================================================
# Error Handling Analysis
# =============================================================================

def needs_error_handling(node) -> bool:
    """
    Return True if node contains a try or throw statement.

    Blocks, both branches of an if, and for-loop bodies are searched.
    """
    if isinstance(node, (TryStatement, ThrowStatement)):
        return True
    if isinstance(node, FunctionStatement):
        return needs_error_handling(node.body)
    if isinstance(node, BlockStatement):
        return any(needs_error_handling(stmt) for stmt in node.statements)
    if isinstance(node, IfStatement):
        return needs_error_handling(node.consequence) or needs_error_handling(node.alternative)
    if isinstance(node, ForStatement):
        return needs_error_handling(node.body)
    return False


def contains_throw(node) -> bool:
    """
    Return True if a throw appears anywhere below node.

    Only statement containers are searched; expressions cannot hold a throw.
    """
    if isinstance(node, ThrowStatement):
        return True
    if isinstance(node, (Program, BlockStatement)):
        return any(contains_throw(stmt) for stmt in node.statements)
    if isinstance(node, (FunctionStatement, ForStatement, CatchBlock)):
        return contains_throw(node.body)
    if isinstance(node, IfStatement):
        return contains_throw(node.consequence) or contains_throw(node.alternative)
    if isinstance(node, TryStatement):
        return (
            contains_throw(node.body)
            or any(contains_throw(catch) for catch in node.catch_blocks)
            or contains_throw(node.finally_block)
        )
    return False


def split_result_types(return_type: Optional[str]) -> list[str]:
    """
    Split a declared result into its individual types.

    >>> split_result_types("(int, map[string]int, error)")
    ['int', 'map[string]int', 'error']
    """
    if not return_type:
        return []
    if not return_type.startswith("("):
        return [return_type]

    inner = return_type[1:-1]
    results: list[str] = []
    depth = 0
    current = ""
    for char in inner:
        if char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        if char == "," and depth == 0:
            results.append(current.strip())
            current = ""
        else:
            current += char
    if current.strip():
        results.append(current.strip())
    return results


def augment_return_type(return_type: Optional[str]) -> str:
    """Add an error result to a declared result unless it already has one."""
    results = split_result_types(return_type)
    if not results:
        return ERROR_TYPE
    if results[-1] == ERROR_TYPE:
        return return_type
    return f"({', '.join([*results, ERROR_TYPE])})"


def zero_value(type_name: str) -> str:
    """Return a Go expression for the zero value of type_name."""
    if type_name in NUMERIC_TYPES:
        return "0"
    if type_name == "string":
        return '""'
    if type_name == "bool":
        return "false"
    if type_name in (ERROR_TYPE, "any") or type_name.startswith(NIL_TYPE_PREFIXES):
        return "nil"
    return f"*new({type_name})"


# =============================================================================
# Code Generator
# =============================================================================

@dataclass
class ReturnFrame:
    """
    Result shape of the function or closure being generated.

    Attributes:
        results: Result types as emitted
        augmented: True if an error result was added to a user function,
            so its own return statements need a trailing nil
    """
    results: tuple[str, ...] = ()
    augmented: bool = False


class CodeGenerator:
    """
    Generates Go source from a godsl Program.

    The generator is total: node kinds it does not know are emitted as a
    placeholder comment rather than raising.

    Usage:
        generator = CodeGenerator()
        go_source = generator.generate(program)
    """

    def __init__(self):
        self._output: list[str] = []
        self._depth = 0
        self._frames: list[ReturnFrame] = []
        self._scopes: list[set[str]] = []

    def generate(self, program: Program) -> str:
        """
        Generate Go source for program.

        Returns:
            Go source text, newline terminated
        """
        self._output = []
        self._depth = 0
        self._frames = []
        self._scopes = [set()]

        previous: Optional[Statement] = None
        for stmt in self._with_error_imports(program):
            if previous is not None and self._needs_blank_line(previous, stmt):
                self._emit()
            self._generate_statement(stmt)
            previous = stmt

        if not self._output:
            return ""
        return "\n".join(self._output) + "\n"

    # =========================================================================
    # Output Helpers
    # =========================================================================

    def _emit(self, line: str = "") -> None:
        """Emit a line at the current indentation depth."""
        if line:
            self._output.append(f"{INDENT * self._depth}{line}")
        else:
            self._output.append("")

    def _enter_block(self) -> None:
        self._depth += 1
        self._scopes.append(set())

    def _exit_block(self) -> None:
        self._scopes.pop()
        self._depth -= 1

    def _declare(self, *names: str) -> None:
        self._scopes[-1].update(names)

    @staticmethod
    def _placeholder(node) -> str:
        return f"/* unsupported node: {node.__class__.__name__} */"

    @staticmethod
    def _needs_blank_line(previous: Statement, current: Statement) -> bool:
        if isinstance(previous, (PackageStatement, ImportStatement, FunctionStatement)):
            return True
        return isinstance(current, FunctionStatement) and not isinstance(previous, CommentStatement)

    # =========================================================================
    # Imports
    # =========================================================================

    def _with_error_imports(self, program: Program) -> list[Statement]:
        """
        Return the top-level statements with the packages needed by throw
        lowering added to the imports.
        """
        statements = list(program.statements)
        if not contains_throw(program):
            return statements

        existing = {
            path
            for stmt in statements if isinstance(stmt, ImportStatement)
            for path in stmt.paths
        }
        missing = tuple(path for path in ERROR_IMPORTS if path not in existing)
        if not missing:
            return statements

        logger.debug(f"injecting imports: {', '.join(missing)}")

        for index, stmt in enumerate(statements):
            if isinstance(stmt, ImportStatement):
                statements[index] = ImportStatement(stmt.token, stmt.paths + missing)
                return statements

        insert_at = 0
        for index, stmt in enumerate(statements):
            if isinstance(stmt, PackageStatement):
                insert_at = index + 1
                break
        statements.insert(insert_at, ImportStatement(program.token, missing))
        return statements

    # =========================================================================
    # Statement Generation
    # =========================================================================

    def _generate_statements(self, statements) -> None:
        for stmt in statements:
            self._generate_statement(stmt)

    def _generate_block_body(self, block: Optional[BlockStatement], declared=()) -> None:
        """Generate block contents one level deeper, in a new scope."""
        self._enter_block()
        self._declare(*declared)
        if block is not None:
            self._generate_statements(block.statements)
        self._exit_block()

    def _generate_statement(self, stmt) -> None:
        """Generate code for any statement."""
        if isinstance(stmt, PackageStatement):
            self._emit(f"package {stmt.name}")
        elif isinstance(stmt, ImportStatement):
            self._generate_import(stmt)
        elif isinstance(stmt, FunctionStatement):
            self._generate_function(stmt)
        elif isinstance(stmt, (VarStatement, DefineStatement, AssignStatement,
                               IncrementStatement, ExpressionStatement)):
            self._emit(self._simple_statement(stmt))
        elif isinstance(stmt, ReturnStatement):
            self._generate_return(stmt)
        elif isinstance(stmt, BlockStatement):
            self._emit("{")
            self._generate_block_body(stmt)
            self._emit("}")
        elif isinstance(stmt, IfStatement):
            self._generate_if(stmt)
        elif isinstance(stmt, ForStatement):
            self._generate_for(stmt)
        elif isinstance(stmt, CommentStatement):
            self._emit(str(stmt))
        elif isinstance(stmt, BranchStatement):
            self._emit(keyword_for(stmt.token.type))
        elif isinstance(stmt, TryStatement):
            self._generate_try(stmt)
        elif isinstance(stmt, ThrowStatement):
            self._generate_throw(stmt)
        else:
            self._emit(self._placeholder(stmt))

    def _simple_statement(self, stmt) -> str:
        """
        Render a statement that fits on one line.

        Also used for the init and update clauses of a for loop.
        """
        if isinstance(stmt, VarStatement):
            keyword = "const" if isinstance(stmt, ConstStatement) else "var"
            text = f"{keyword} {stmt.name}"
            if stmt.type:
                text += f" {stmt.type}"
            if stmt.value is not None:
                text += f" = {self._expr(stmt.value)}"
            self._declare(str(stmt.name))
            return text
        if isinstance(stmt, DefineStatement):
            self._declare(*(name.value for name in stmt.names))
            return f"{self._expr_list(stmt.names)} := {self._expr_list(stmt.values)}"
        if isinstance(stmt, AssignStatement):
            return f"{self._expr_list(stmt.targets)} {stmt.operator} {self._expr_list(stmt.values)}"
        if isinstance(stmt, IncrementStatement):
            return f"{self._expr(stmt.target, Precedence.CALL)}{stmt.operator}"
        if isinstance(stmt, ExpressionStatement):
            return self._expr(stmt.expression)
        return self._placeholder(stmt)

    def _generate_import(self, stmt: ImportStatement) -> None:
        if len(stmt.paths) == 1:
            self._emit(f'import "{stmt.paths[0]}"')
            return
        self._emit("import (")
        self._depth += 1
        for path in stmt.paths:
            self._emit(f'"{path}"')
        self._depth -= 1
        self._emit(")")

    def _generate_function(self, func: FunctionStatement) -> None:
        return_type = func.return_type
        augmented = False

        if needs_error_handling(func.body):
            new_type = augment_return_type(return_type)
            augmented = new_type != return_type
            if augmented:
                logger.debug(f"function {func.name}: result {return_type or '(none)'} -> {new_type}")
            return_type = new_type

        signature = f"func {func.name}({func.parameter_list()})"
        if return_type:
            signature += f" {return_type}"
        self._emit(f"{signature} {{")

        self._frames.append(ReturnFrame(tuple(split_result_types(return_type)), augmented))
        self._generate_block_body(func.body, declared=[p.value for p in func.parameters])

        # A function that gained its only result needs a final return
        statements = func.body.statements if func.body is not None else ()
        if augmented and func.return_type is None:
            if not statements or not isinstance(statements[-1], (ReturnStatement, ThrowStatement)):
                self._depth += 1
                self._emit("return nil")
                self._depth -= 1

        self._frames.pop()
        self._emit("}")

    def _generate_return(self, stmt: ReturnStatement) -> None:
        values = [self._expr(value) for value in stmt.values]
        frame = self._frames[-1] if self._frames else None
        if frame is not None and frame.augmented:
            values.append("nil")
        self._emit(f"return {', '.join(values)}" if values else "return")

    def _generate_if(self, stmt: IfStatement, prefix: str = "") -> None:
        self._emit(f"{prefix}if {self._expr(stmt.condition)} {{")
        self._generate_block_body(stmt.consequence)

        alternative = stmt.alternative
        if isinstance(alternative, IfStatement):
            self._generate_if(alternative, prefix="} else ")
            return
        if alternative is not None:
            self._emit("} else {")
            self._generate_block_body(alternative)
        self._emit("}")

    def _generate_for(self, stmt: ForStatement) -> None:
        # Names defined in the init clause belong to the loop scope
        self._scopes.append(set())

        if stmt.init is None and stmt.update is None:
            if stmt.condition is None:
                header = "for {"
            else:
                header = f"for {self._expr(stmt.condition)} {{"
        else:
            init = "" if stmt.init is None else self._simple_statement(stmt.init)
            condition = "" if stmt.condition is None else self._expr(stmt.condition)
            update = "" if stmt.update is None else self._simple_statement(stmt.update)
            header = f"for {init}; {condition}; {update}".rstrip() + " {"

        self._emit(header)
        self._generate_block_body(stmt.body)
        self._emit("}")
        self._scopes.pop()

    # =========================================================================
    # Exception Handling Lowering
    # =========================================================================

    def _generate_try(self, stmt: TryStatement) -> None:
        operator = "=" if "err" in self._scopes[-1] else ":="
        self._declare("err")

        self._emit(f"err {operator} func() error {{")
        self._frames.append(ReturnFrame((ERROR_TYPE,)))
        self._enter_block()
        if stmt.body is not None:
            self._generate_statements(stmt.body.statements)
        self._emit("return nil")
        self._exit_block()
        self._frames.pop()
        self._emit("}()")

        if stmt.catch_blocks:
            self._generate_catch_chain(stmt.catch_blocks)
        else:
            self._emit("_ = err")

        if stmt.finally_block is not None:
            self._generate_statements(stmt.finally_block.statements)

    def _generate_catch_chain(self, catches: tuple[CatchBlock, ...]) -> None:
        """
        Emit the catch clauses as one if/else-if chain inside
        ``if err != nil``. A catch-all ends the chain.
        """
        self._emit("if err != nil {")
        self._enter_block()

        chain_open = False
        for index, catch in enumerate(catches):
            if catch.is_catch_all:
                if chain_open:
                    self._emit("} else {")
                    self._enter_block()
                    self._generate_catch_body(catch)
                    self._exit_block()
                    self._emit("}")
                else:
                    self._generate_catch_body(catch)

                unreachable = len(catches) - index - 1
                if unreachable:
                    logger.warning(
                        f"{unreachable} catch clause(s) after a catch-all at "
                        f"line {catch.token.position.line} can never run and were dropped"
                    )
                break

            binding = self._catch_binding(catch) or "_"
            test = f"if {binding}, ok := err.({catch.type_name}); ok {{"
            self._emit(f"}} else {test}" if chain_open else test)
            chain_open = True
            self._enter_block()
            self._generate_catch_body(catch)
            self._exit_block()
        else:
            if chain_open:
                self._emit("}")

        self._exit_block()
        self._emit("}")

    @staticmethod
    def _catch_binding(catch: CatchBlock) -> Optional[str]:
        if catch.exception is None or catch.exception.value == "_":
            return None
        return catch.exception.value

    def _generate_catch_body(self, catch: CatchBlock) -> None:
        binding = self._catch_binding(catch)
        if binding is not None:
            if catch.is_catch_all:
                self._emit(f"{binding} := err")
                self._declare(binding)
            self._emit(f"_ = {binding}")
        if catch.body is not None:
            self._generate_statements(catch.body.statements)

    def _generate_throw(self, stmt: ThrowStatement) -> None:
        frame = self._frames[-1] if self._frames else None
        values = [zero_value(t) for t in frame.results[:-1]] if frame is not None else []
        values.append(f'errors.New(fmt.Sprintf("%v", {self._expr(stmt.value)}))')
        self._emit(f"return {', '.join(values)}")

    # =========================================================================
    # Expression Generation
    # =========================================================================

    @staticmethod
    def _precedence(expr) -> int:
        if isinstance(expr, InfixExpression):
            return OPERATOR_PRECEDENCE.get(expr.operator, Precedence.LOWEST)
        if isinstance(expr, PrefixExpression):
            return Precedence.PREFIX
        return Precedence.DOT

    def _expr_list(self, exprs) -> str:
        return ", ".join(self._expr(expr) for expr in exprs)

    def _expr(self, expr: Optional[Expression], parent: int = Precedence.LOWEST) -> str:
        """
        Render an expression.

        Args:
            expr: Expression to render
            parent: Lowest precedence that may appear here without
                parentheses
        """
        text = self._expr_text(expr)
        if self._precedence(expr) < parent:
            return f"({text})"
        return text

    def _expr_text(self, expr) -> str:
        if isinstance(expr, Identifier):
            return expr.value
        if isinstance(expr, (IntegerLiteral, FloatLiteral)):
            # Keep the original spelling (0x1F, 1e9, ...)
            return expr.token.literal
        if isinstance(expr, (StringLiteral, CharLiteral, BooleanLiteral, NilLiteral)):
            return str(expr)
        if isinstance(expr, PrefixExpression):
            operand = self._expr(expr.right, Precedence.PREFIX)
            if isinstance(expr.right, PrefixExpression):
                operand = f"({operand})"
            return f"{expr.operator}{operand}"
        if isinstance(expr, InfixExpression):
            return self._infix_text(expr)
        if isinstance(expr, CallExpression):
            return f"{self._expr(expr.function, Precedence.CALL)}({self._expr_list(expr.arguments)})"
        if isinstance(expr, DotExpression):
            return f"{self._expr(expr.left, Precedence.CALL)}.{expr.property}"
        if isinstance(expr, IndexExpression):
            return f"{self._expr(expr.left, Precedence.CALL)}[{self._expr(expr.index)}]"
        return self._placeholder(expr)

    def _infix_text(self, expr: InfixExpression) -> str:
        """
        Render an infix expression.

        Left operands that need no parentheses are walked in a loop, so a
        long left-associative chain such as ``a + b + c + ...`` does not
        recurse once per operator.
        """
        spine = [expr]
        while (
            isinstance(spine[-1].left, InfixExpression)
            and self._precedence(spine[-1].left) >= self._precedence(spine[-1])
        ):
            spine.append(spine[-1].left)

        innermost = spine[-1]
        text = self._expr(innermost.left, self._precedence(innermost))
        for node in reversed(spine):
            right = self._expr(node.right, self._precedence(node) + 1)
            text = f"{text} {node.operator} {right}"
        return text
