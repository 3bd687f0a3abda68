"""
godsl Abstract Syntax Tree (AST) Definitions
============================================

This module defines the AST node types built by the godsl parser and
consumed by the code generator.

Node Hierarchy
--------------
Node (base)
├── Program - root node containing all top-level statements
├── Statements
│   ├── PackageStatement - package clause
│   ├── ImportStatement - single or grouped import
│   ├── VarStatement / ConstStatement - declarations
│   ├── AssignStatement - x = y, x += y, a, b = c, d
│   ├── DefineStatement - x := y, a, b := f()
│   ├── ReturnStatement - return with zero or more values
│   ├── ExpressionStatement - expression as statement
│   ├── BlockStatement - { ... }
│   ├── IfStatement - if/else, else-if chains
│   ├── ForStatement - three-clause, condition-only, infinite
│   ├── FunctionStatement - func declaration
│   ├── CommentStatement - // and /* */ comments kept in output
│   ├── IncrementStatement - x++ / x--
│   ├── BranchStatement - break / continue
│   ├── TryStatement - try { } catch { } finally { }
│   ├── CatchBlock - one catch clause of a try
│   └── ThrowStatement - throw expr
└── Expressions
    ├── Identifier, NilLiteral
    ├── IntegerLiteral, FloatLiteral, StringLiteral, CharLiteral, BooleanLiteral
    ├── PrefixExpression - !x, -x, ^x
    ├── InfixExpression - a + b, a && b, ...
    ├── CallExpression - f(a, b)
    ├── DotExpression - pkg.Name, obj.field
    └── IndexExpression - a[i]

Design Notes
------------
- All nodes are frozen dataclasses; sequences are tuples
- Each node keeps the token that introduced it for diagnostics
- str(node) renders a compact source-like form, used in debugging and
  in parser error messages
"""

from dataclasses import dataclass, field, fields
from typing import Any, Optional

from godsl.transpiler.lexer import Token


# =============================================================================
# AST Node Base Classes
# =============================================================================

@dataclass(frozen=True)
class Node:
    """
    Base class for all AST nodes.

    Attributes:
        token: The token that starts this node
    """
    token: Token = field(compare=False, repr=False)

    @property
    def token_literal(self) -> str:
        return self.token.literal


@dataclass(frozen=True)
class Statement(Node):
    """Base class for all statement nodes."""
    pass


@dataclass(frozen=True)
class Expression(Node):
    """Base class for all expression nodes."""
    pass


def _join(items) -> str:
    return ", ".join(str(item) for item in items)


# =============================================================================
# Program Root Node
# =============================================================================

@dataclass(frozen=True)
class Program(Node):
    """
    Root node of the AST.

    Attributes:
        statements: Top-level statements in source order
    """
    statements: tuple[Statement, ...] = ()

    def __str__(self) -> str:
        return "".join(str(s) for s in self.statements)


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass(frozen=True)
class Identifier(Expression):
    value: str = ""

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class IntegerLiteral(Expression):
    """Integer constant. The token literal keeps the original spelling."""
    value: int = 0

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class FloatLiteral(Expression):
    value: float = 0.0

    def __str__(self) -> str:
        return f"{self.value:f}"


@dataclass(frozen=True)
class StringLiteral(Expression):
    """
    String constant.

    Attributes:
        value: Text between the delimiters, escapes kept verbatim
        raw: True for a backtick raw string
    """
    value: str = ""
    raw: bool = False

    def __str__(self) -> str:
        quote = "`" if self.raw else '"'
        return f"{quote}{self.value}{quote}"


@dataclass(frozen=True)
class CharLiteral(Expression):
    value: str = ""

    def __str__(self) -> str:
        return f"'{self.value}'"


@dataclass(frozen=True)
class BooleanLiteral(Expression):
    value: bool = False

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class NilLiteral(Expression):
    def __str__(self) -> str:
        return "nil"


@dataclass(frozen=True)
class PrefixExpression(Expression):
    operator: str = ""
    right: Optional[Expression] = None

    def __str__(self) -> str:
        return f"({self.operator}{self.right})"


@dataclass(frozen=True)
class InfixExpression(Expression):
    left: Optional[Expression] = None
    operator: str = ""
    right: Optional[Expression] = None

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


@dataclass(frozen=True)
class CallExpression(Expression):
    """
    Function call.

    Attributes:
        function: Callee expression (Identifier or DotExpression)
        arguments: Argument expressions in order
    """
    function: Optional[Expression] = None
    arguments: tuple[Expression, ...] = ()

    def __str__(self) -> str:
        return f"{self.function}({_join(self.arguments)})"


@dataclass(frozen=True)
class DotExpression(Expression):
    left: Optional[Expression] = None
    property: Optional[Identifier] = None

    def __str__(self) -> str:
        return f"({self.left}.{self.property})"


@dataclass(frozen=True)
class IndexExpression(Expression):
    left: Optional[Expression] = None
    index: Optional[Expression] = None

    def __str__(self) -> str:
        return f"({self.left}[{self.index}])"


# =============================================================================
# Simple Statement Nodes
# =============================================================================

@dataclass(frozen=True)
class PackageStatement(Statement):
    name: str = ""

    def __str__(self) -> str:
        return f"package {self.name}"


@dataclass(frozen=True)
class ImportStatement(Statement):
    """
    Import declaration.

    Attributes:
        paths: Import paths without quotes; more than one means the
            grouped ``import ( ... )`` form
    """
    paths: tuple[str, ...] = ()

    def __str__(self) -> str:
        if len(self.paths) == 1:
            return f"import {self.paths[0]}"
        return f"import ({_join(self.paths)})"


@dataclass(frozen=True)
class VarStatement(Statement):
    name: Optional[Identifier] = None
    type: Optional[str] = None
    value: Optional[Expression] = None

    keyword = "var"

    def __str__(self) -> str:
        text = f"{self.keyword} {self.name}"
        if self.type:
            text += f" {self.type}"
        if self.value is not None:
            text += f" = {self.value}"
        return text


@dataclass(frozen=True)
class ConstStatement(VarStatement):
    keyword = "const"


@dataclass(frozen=True)
class AssignStatement(Statement):
    """
    Assignment, plain or compound.

    Attributes:
        targets: Assigned expressions (identifiers, fields, index expressions)
        operator: "=" or a compound operator such as "+="
        values: Right-hand side expressions
    """
    targets: tuple[Expression, ...] = ()
    operator: str = "="
    values: tuple[Expression, ...] = ()

    def __str__(self) -> str:
        return f"{_join(self.targets)} {self.operator} {_join(self.values)}"


@dataclass(frozen=True)
class DefineStatement(Statement):
    names: tuple[Identifier, ...] = ()
    values: tuple[Expression, ...] = ()

    def __str__(self) -> str:
        return f"{_join(self.names)} := {_join(self.values)}"


@dataclass(frozen=True)
class ReturnStatement(Statement):
    values: tuple[Expression, ...] = ()

    def __str__(self) -> str:
        if self.values:
            return f"return {_join(self.values)}"
        return "return"


@dataclass(frozen=True)
class ExpressionStatement(Statement):
    expression: Optional[Expression] = None

    def __str__(self) -> str:
        return "" if self.expression is None else str(self.expression)


@dataclass(frozen=True)
class IncrementStatement(Statement):
    target: Optional[Expression] = None
    operator: str = "++"

    def __str__(self) -> str:
        return f"{self.target}{self.operator}"


@dataclass(frozen=True)
class BranchStatement(Statement):
    """break or continue; the keyword is the token type."""

    def __str__(self) -> str:
        return self.token.literal


@dataclass(frozen=True)
class CommentStatement(Statement):
    """
    Comment preserved in the output.

    Attributes:
        text: Comment text with the // or /* */ markers removed
        multiline: True for a block comment
    """
    text: str = ""
    multiline: bool = False

    def __str__(self) -> str:
        if self.multiline:
            return f"/* {self.text} */"
        return f"//{self.text}"


# =============================================================================
# Compound Statement Nodes
# =============================================================================

@dataclass(frozen=True)
class BlockStatement(Statement):
    statements: tuple[Statement, ...] = ()

    def __str__(self) -> str:
        body = "".join(f"{s}\n" for s in self.statements)
        return f"{{\n{body}}}"


@dataclass(frozen=True)
class IfStatement(Statement):
    """
    if/else statement.

    Attributes:
        condition: Tested expression
        consequence: Block run when the condition holds
        alternative: Else block, a nested IfStatement for ``else if``,
            or None
    """
    condition: Optional[Expression] = None
    consequence: Optional[BlockStatement] = None
    alternative: Optional[Statement] = None

    def __str__(self) -> str:
        text = f"if {self.condition} {self.consequence}"
        if self.alternative is not None:
            text += f" else {self.alternative}"
        return text


@dataclass(frozen=True)
class ForStatement(Statement):
    """
    for loop. Every clause is optional; a loop with only a condition is
    ``for cond { }`` and a loop with no clauses is ``for { }``.
    """
    init: Optional[Statement] = None
    condition: Optional[Expression] = None
    update: Optional[Statement] = None
    body: Optional[BlockStatement] = None

    def __str__(self) -> str:
        init = "" if self.init is None else str(self.init)
        condition = "" if self.condition is None else str(self.condition)
        update = "" if self.update is None else str(self.update)
        return f"for {init}; {condition}; {update} {self.body}"


@dataclass(frozen=True)
class FunctionStatement(Statement):
    """
    Function declaration.

    Attributes:
        name: Function name
        parameters: Parameter names in order
        parameter_types: Type written after each parameter, None where the
            parameter shares the type of the next one (``a, b int``)
        return_type: Declared result: a type, a parenthesised result list
            such as ``(int, error)``, or None
        body: Function body
    """
    name: Optional[Identifier] = None
    parameters: tuple[Identifier, ...] = ()
    parameter_types: tuple[Optional[str], ...] = ()
    return_type: Optional[str] = None
    body: Optional[BlockStatement] = None

    def parameter_list(self) -> str:
        """Render the parameters the way they were written."""
        parts = []
        for name, param_type in zip(self.parameters, self.parameter_types):
            parts.append(f"{name} {param_type}" if param_type else str(name))
        return ", ".join(parts)

    def __str__(self) -> str:
        text = f"func {self.name}({self.parameter_list()})"
        if self.return_type:
            text += f" {self.return_type}"
        return f"{text} {self.body}"


@dataclass(frozen=True)
class CatchBlock(Node):
    """
    One catch clause.

    Attributes:
        exception: Bound variable, or None for a bare ``catch { }``
        type_name: Matched error type, or None for a catch-all
        body: Handler block
    """
    exception: Optional[Identifier] = None
    type_name: Optional[str] = None
    body: Optional[BlockStatement] = None

    @property
    def is_catch_all(self) -> bool:
        return not self.type_name

    def __str__(self) -> str:
        text = "catch"
        if self.exception is not None:
            clause = str(self.exception)
            if self.type_name:
                clause += f" {self.type_name}"
            text += f" ({clause})"
        return f"{text} {self.body}"


@dataclass(frozen=True)
class TryStatement(Statement):
    body: Optional[BlockStatement] = None
    catch_blocks: tuple[CatchBlock, ...] = ()
    finally_block: Optional[BlockStatement] = None

    def __str__(self) -> str:
        text = f"try {self.body}"
        for catch in self.catch_blocks:
            text += f" {catch}"
        if self.finally_block is not None:
            text += f" finally {self.finally_block}"
        return text


@dataclass(frozen=True)
class ThrowStatement(Statement):
    value: Optional[Expression] = None

    def __str__(self) -> str:
        return f"throw {self.value}"


# =============================================================================
# AST Visitor Base Class
# =============================================================================

class ASTVisitor:
    """
    Base class for AST visitors.

    Subclasses override visit_<ClassName> methods for the node types they
    care about; everything else goes to generic_visit, which walks the
    children.

    Usage:
        class ThrowCounter(ASTVisitor):
            def __init__(self):
                self.count = 0

            def visit_ThrowStatement(self, node):
                self.count += 1

        counter = ThrowCounter()
        counter.visit(program)
    """

    def visit(self, node: Any) -> Any:
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: Any) -> None:
        """Visit all child nodes of node."""
        for child in iter_child_nodes(node):
            self.visit(child)


def iter_child_nodes(node: Any):
    """Yield the direct child nodes of node in field order."""
    if not isinstance(node, Node):
        return
    for f in fields(node):
        value = getattr(node, f.name)
        if isinstance(value, Node):
            yield value
        elif isinstance(value, tuple):
            for item in value:
                if isinstance(item, Node):
                    yield item


# =============================================================================
# AST Pretty Printer
# =============================================================================

class ASTPrinter(ASTVisitor):
    """
    Pretty printer for AST debugging.

    Usage:
        printer = ASTPrinter()
        print(printer.print(program))
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

    def print(self, node: Node) -> str:
        """Print the AST and return it as a string."""
        self.output = []
        self.indent_level = 0
        self.visit(node)
        return "\n".join(self.output)

    def _emit(self, text: str) -> None:
        indent = "  " * self.indent_level
        self.output.append(f"{indent}{text}")

    def _children(self, label: str, node: Node) -> None:
        self._emit(label)
        self.indent_level += 1
        for child in iter_child_nodes(node):
            self.visit(child)
        self.indent_level -= 1

    def visit_Program(self, node: Program):
        self._children("Program", node)

    def visit_FunctionStatement(self, node: FunctionStatement):
        signature = f"Function: {node.name}({node.parameter_list()})"
        if node.return_type:
            signature += f" {node.return_type}"
        self._emit(signature)
        self.indent_level += 1
        self.visit(node.body)
        self.indent_level -= 1

    def visit_BlockStatement(self, node: BlockStatement):
        self._children("Block", node)

    def visit_IfStatement(self, node: IfStatement):
        self._emit(f"If {node.condition}")
        self.indent_level += 1
        self.visit(node.consequence)
        if node.alternative is not None:
            self._emit("Else:")
            self.indent_level += 1
            self.visit(node.alternative)
            self.indent_level -= 1
        self.indent_level -= 1

    def visit_ForStatement(self, node: ForStatement):
        init = "" if node.init is None else str(node.init)
        condition = "" if node.condition is None else str(node.condition)
        update = "" if node.update is None else str(node.update)
        self._emit(f"For {init}; {condition}; {update}")
        self.indent_level += 1
        self.visit(node.body)
        self.indent_level -= 1

    def visit_TryStatement(self, node: TryStatement):
        self._emit("Try")
        self.indent_level += 1
        self.visit(node.body)
        for catch in node.catch_blocks:
            self.visit(catch)
        if node.finally_block is not None:
            self._emit("Finally:")
            self.indent_level += 1
            self.visit(node.finally_block)
            self.indent_level -= 1
        self.indent_level -= 1

    def visit_CatchBlock(self, node: CatchBlock):
        binding = node.exception.value if node.exception is not None else "_"
        kind = node.type_name or "any"
        self._emit(f"Catch ({binding} {kind})")
        self.indent_level += 1
        self.visit(node.body)
        self.indent_level -= 1

    def generic_visit(self, node: Any) -> None:
        # Leaf statements print on a single line using their str() form
        self._emit(f"{node.__class__.__name__}: {node}")
