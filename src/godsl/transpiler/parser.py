"""
godsl Pratt Parser
==================

This module implements a Pratt (top-down operator precedence) parser for
godsl. It pulls tokens from the lexer on demand, keeping the current token
and one token of lookahead, and builds the AST defined in ast.py.

Grammar (Simplified EBNF)
-------------------------
program     ::= statement*
statement   ::= package | import | var | const | func | return | if | for
              | try | throw | comment | block | branch | simple ';'?
simple      ::= IDENT ':=' exprs | IDENT ('++' | '--')
              | exprs (assign_op exprs | ':=' exprs | '++' | '--')?
func        ::= 'func' IDENT '(' params? ')' result? block
result      ::= type | '(' type (',' type)* ')'
if          ::= 'if' expr block ('else' (if | block))?
for         ::= 'for' block | 'for' expr block
              | 'for' simple? ';' expr? ';' simple? block
try         ::= 'try' block catch* ('finally' block)?
catch       ::= 'catch' ('(' IDENT type? ')')? block
throw       ::= 'throw' expr

Expression Precedence (lowest to highest)
-----------------------------------------
1. logical_or   ||
2. logical_and  &&
3. equality     == !=
4. relational   < > <= >=
5. additive     + - | ^
6. multiplicative * / % & << >>
7. prefix       ! - ^
8. call/index   f(x)  a[i]
9. member       a.b

Error Handling
--------------
The parser never raises. Each problem is recorded as a message in
``errors``, the construct being parsed yields None, and parsing resumes
at the next token. Callers must check ``errors`` before using the tree.

Example Usage
-------------
>>> from godsl.transpiler.parser import parse_source
>>> program, errors = parse_source('x := 1 + 2 * 3')
>>> str(program)
'x := (1 + (2 * 3))'
"""

from enum import IntEnum
import logging
from typing import Callable, Optional

from godsl.transpiler.lexer import Lexer, Token, TokenType
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


# =============================================================================
# Operator Precedence
# =============================================================================

class Precedence(IntEnum):
    """Binding power of infix operators, lowest first."""
    LOWEST = 1
    LOGICAL_OR = 2      # ||
    LOGICAL_AND = 3     # &&
    EQUALS = 4          # == !=
    LESSGREATER = 5     # < > <= >=
    SUM = 6             # + - | ^
    PRODUCT = 7         # * / % & << >>
    PREFIX = 8          # -x !x ^x
    CALL = 9            # f(x) a[i]
    DOT = 10            # a.b


PRECEDENCES: dict[TokenType, Precedence] = {
    TokenType.OR: Precedence.LOGICAL_OR,
    TokenType.AND: Precedence.LOGICAL_AND,
    TokenType.EQ: Precedence.EQUALS,
    TokenType.NOT_EQ: Precedence.EQUALS,
    TokenType.LT: Precedence.LESSGREATER,
    TokenType.GT: Precedence.LESSGREATER,
    TokenType.LE: Precedence.LESSGREATER,
    TokenType.GE: Precedence.LESSGREATER,
    TokenType.PLUS: Precedence.SUM,
    TokenType.MINUS: Precedence.SUM,
    TokenType.BIT_OR: Precedence.SUM,
    TokenType.BIT_XOR: Precedence.SUM,
    TokenType.ASTERISK: Precedence.PRODUCT,
    TokenType.SLASH: Precedence.PRODUCT,
    TokenType.PERCENT: Precedence.PRODUCT,
    TokenType.BIT_AND: Precedence.PRODUCT,
    TokenType.SHL: Precedence.PRODUCT,
    TokenType.SHR: Precedence.PRODUCT,
    TokenType.LPAREN: Precedence.CALL,
    TokenType.LBRACKET: Precedence.CALL,
    TokenType.DOT: Precedence.DOT,
}

# Operator text to precedence, used by the code generator to decide
# where parentheses are required
OPERATOR_PRECEDENCE: dict[str, Precedence] = {
    "||": Precedence.LOGICAL_OR,
    "&&": Precedence.LOGICAL_AND,
    "==": Precedence.EQUALS,
    "!=": Precedence.EQUALS,
    "<": Precedence.LESSGREATER,
    ">": Precedence.LESSGREATER,
    "<=": Precedence.LESSGREATER,
    ">=": Precedence.LESSGREATER,
    "+": Precedence.SUM,
    "-": Precedence.SUM,
    "|": Precedence.SUM,
    "^": Precedence.SUM,
    "*": Precedence.PRODUCT,
    "/": Precedence.PRODUCT,
    "%": Precedence.PRODUCT,
    "&": Precedence.PRODUCT,
    "<<": Precedence.PRODUCT,
    ">>": Precedence.PRODUCT,
}

ASSIGN_OPERATORS = frozenset({
    TokenType.ASSIGN,
    TokenType.PLUS_ASSIGN,
    TokenType.MINUS_ASSIGN,
    TokenType.MUL_ASSIGN,
    TokenType.DIV_ASSIGN,
    TokenType.MOD_ASSIGN,
    TokenType.AND_ASSIGN,
    TokenType.OR_ASSIGN,
    TokenType.XOR_ASSIGN,
    TokenType.SHL_ASSIGN,
    TokenType.SHR_ASSIGN,
})

# Tokens that can begin a type expression
TYPE_START = frozenset({
    TokenType.IDENT,
    TokenType.ASTERISK,
    TokenType.LBRACKET,
    TokenType.MAP,
    TokenType.CHAN,
    TokenType.ARROW,
    TokenType.INTERFACE,
    TokenType.STRUCT,
    TokenType.FUNC,
})

# Tokens after which a return statement carries no value
BARE_RETURN_FOLLOWERS = frozenset({
    TokenType.SEMICOLON,
    TokenType.RBRACE,
    TokenType.EOF,
    TokenType.COMMENT,
    TokenType.BLOCK_COMMENT,
})


PrefixParseFn = Callable[[], Optional[Expression]]
InfixParseFn = Callable[[Optional[Expression]], Optional[Expression]]


def _int_value(literal: str) -> int:
    """Convert an integer literal, treating a leading 0 as octal."""
    if len(literal) > 1 and literal[0] == "0" and literal[1].isdigit():
        return int(literal, 8)
    return int(literal, 0)


# =============================================================================
# Parser Implementation
# =============================================================================

class Parser:
    """
    Pratt parser for godsl source.

    Usage:
        parser = Parser(Lexer(source))
        program = parser.parse_program()
        if parser.errors:
            ...

    Invariant: every _parse_* method starts with the current token on the
    first token of its construct and leaves it on the last one.
    """

    def __init__(self, lexer: Lexer):
        self._lexer = lexer
        self._errors: list[str] = []
        # Comments read while looking for catch/finally after a try, to be
        # placed after the try statement
        self._trailing_comments: list[CommentStatement] = []

        self._prefix_parse_fns: dict[TokenType, PrefixParseFn] = {
            TokenType.IDENT: self._parse_identifier,
            TokenType.INT: self._parse_integer_literal,
            TokenType.FLOAT: self._parse_float_literal,
            TokenType.STRING: self._parse_string_literal,
            TokenType.RAW_STRING: self._parse_string_literal,
            TokenType.CHAR: self._parse_char_literal,
            TokenType.TRUE: self._parse_boolean,
            TokenType.FALSE: self._parse_boolean,
            TokenType.NIL: self._parse_nil,
            TokenType.BANG: self._parse_prefix_expression,
            TokenType.MINUS: self._parse_prefix_expression,
            TokenType.BIT_XOR: self._parse_prefix_expression,
            TokenType.LPAREN: self._parse_grouped_expression,
        }

        self._infix_parse_fns: dict[TokenType, InfixParseFn] = {
            kind: self._parse_infix_expression
            for kind, precedence in PRECEDENCES.items()
            if precedence < Precedence.CALL
        }
        self._infix_parse_fns[TokenType.LPAREN] = self._parse_call_expression
        self._infix_parse_fns[TokenType.LBRACKET] = self._parse_index_expression
        self._infix_parse_fns[TokenType.DOT] = self._parse_dot_expression

        # Prime current and peek tokens
        self._cur_token: Token = lexer.next_token()
        self._peek_token: Token = lexer.next_token()

    @property
    def errors(self) -> list[str]:
        """Error messages recorded so far, in the order they occurred."""
        return list(self._errors)

    def parse_program(self) -> Program:
        """
        Parse the whole input.

        Always returns a Program. Statements that failed to parse are
        left out and reported through ``errors``.
        """
        program_token = self._cur_token
        statements: list[Statement] = []

        while not self._cur_is(TokenType.EOF):
            stmt = self._parse_statement()
            if stmt is not None:
                statements.append(stmt)
            statements.extend(self._take_trailing_comments())
            self._next_token()

        return Program(program_token, tuple(statements))

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _next_token(self) -> None:
        self._cur_token = self._peek_token
        self._peek_token = self._lexer.next_token()

    def _cur_is(self, kind: TokenType) -> bool:
        return self._cur_token.type == kind

    def _peek_is(self, kind: TokenType) -> bool:
        return self._peek_token.type == kind

    def _expect_peek(self, kind: TokenType) -> bool:
        """
        Advance if the peek token has the expected kind.

        Otherwise record an error and stay put.
        """
        if self._peek_is(kind):
            self._next_token()
            return True
        self._peek_error(kind)
        return False

    def _peek_precedence(self) -> Precedence:
        return PRECEDENCES.get(self._peek_token.type, Precedence.LOWEST)

    def _cur_precedence(self) -> Precedence:
        return PRECEDENCES.get(self._cur_token.type, Precedence.LOWEST)

    # =========================================================================
    # Error Recording
    # =========================================================================

    def _error(self, message: str) -> None:
        logger.debug(f"parse error at {self._cur_token.position}: {message}")
        self._errors.append(message)

    def _peek_error(self, kind: TokenType) -> None:
        self._error(
            f"expected next token to be {kind}, got {self._peek_token.type} instead"
        )

    def _no_prefix_parse_fn_error(self, kind: TokenType) -> None:
        self._error(f"no prefix parse function for {kind} found")

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _parse_statement(self) -> Optional[Statement]:
        """Parse one statement and swallow an optional trailing semicolon."""
        kind = self._cur_token.type

        if kind == TokenType.SEMICOLON:
            return None

        if kind == TokenType.PACKAGE:
            stmt = self._parse_package_statement()
        elif kind == TokenType.IMPORT:
            stmt = self._parse_import_statement()
        elif kind == TokenType.VAR:
            stmt = self._parse_var_statement()
        elif kind == TokenType.CONST:
            stmt = self._parse_const_statement()
        elif kind == TokenType.FUNC:
            stmt = self._parse_function_statement()
        elif kind == TokenType.RETURN:
            stmt = self._parse_return_statement()
        elif kind == TokenType.IF:
            stmt = self._parse_if_statement()
        elif kind == TokenType.FOR:
            stmt = self._parse_for_statement()
        elif kind in (TokenType.COMMENT, TokenType.BLOCK_COMMENT):
            stmt = self._parse_comment_statement()
        elif kind == TokenType.TRY:
            stmt = self._parse_try_statement()
        elif kind == TokenType.THROW:
            stmt = self._parse_throw_statement()
        elif kind in (TokenType.BREAK, TokenType.CONTINUE):
            stmt = BranchStatement(self._cur_token)
        elif kind == TokenType.LBRACE:
            stmt = self._parse_block_statement()
        else:
            stmt = self._parse_simple_statement()

        if self._peek_is(TokenType.SEMICOLON):
            self._next_token()

        return stmt

    def _parse_simple_statement(self) -> Optional[Statement]:
        """
        Parse a statement that may also appear in a for-loop header.

        Does not consume a trailing semicolon.
        """
        if self._cur_is(TokenType.IDENT):
            if self._peek_is(TokenType.DEFINE):
                return self._parse_define_statement()
            if self._peek_is(TokenType.INC) or self._peek_is(TokenType.DEC):
                return self._parse_increment_statement()
        return self._parse_expression_statement()

    def _parse_package_statement(self) -> Optional[PackageStatement]:
        token = self._cur_token
        if not self._expect_peek(TokenType.IDENT):
            return None
        return PackageStatement(token, self._cur_token.literal)

    def _parse_import_statement(self) -> Optional[ImportStatement]:
        token = self._cur_token

        if not self._peek_is(TokenType.LPAREN):
            if not self._expect_peek(TokenType.STRING):
                return None
            return ImportStatement(token, (self._cur_token.literal,))

        self._next_token()
        paths: list[str] = []
        while True:
            # Comments inside an import group are dropped
            while self._peek_token.type in (TokenType.COMMENT, TokenType.BLOCK_COMMENT):
                self._next_token()
            if self._peek_is(TokenType.RPAREN):
                break
            if not self._expect_peek(TokenType.STRING):
                return None
            paths.append(self._cur_token.literal)
            if self._peek_is(TokenType.SEMICOLON):
                self._next_token()

        self._next_token()
        return ImportStatement(token, tuple(paths))

    def _parse_var_statement(self, node_class=VarStatement) -> Optional[VarStatement]:
        token = self._cur_token

        if not self._expect_peek(TokenType.IDENT):
            return None
        name = Identifier(self._cur_token, self._cur_token.literal)

        var_type = None
        if self._peek_token.type in TYPE_START:
            self._next_token()
            var_type = self._parse_type()
            if var_type is None:
                return None

        value = None
        if node_class is ConstStatement:
            if not self._expect_peek(TokenType.ASSIGN):
                return None
            self._next_token()
            value = self._parse_expression(Precedence.LOWEST)
        elif self._peek_is(TokenType.ASSIGN):
            self._next_token()
            self._next_token()
            value = self._parse_expression(Precedence.LOWEST)

        return node_class(token, name, var_type, value)

    def _parse_const_statement(self) -> Optional[ConstStatement]:
        return self._parse_var_statement(ConstStatement)

    def _parse_return_statement(self) -> Optional[ReturnStatement]:
        token = self._cur_token

        if self._peek_token.type in BARE_RETURN_FOLLOWERS:
            return ReturnStatement(token)

        self._next_token()
        values = self._parse_expression_list()
        if values is None:
            return None
        return ReturnStatement(token, values)

    def _parse_define_statement(self) -> Optional[DefineStatement]:
        token = self._cur_token
        name = Identifier(self._cur_token, self._cur_token.literal)

        self._next_token()  # :=
        self._next_token()

        values = self._parse_expression_list()
        if values is None:
            return None
        return DefineStatement(token, (name,), values)

    def _parse_increment_statement(self) -> IncrementStatement:
        token = self._cur_token
        target = Identifier(self._cur_token, self._cur_token.literal)
        self._next_token()
        return IncrementStatement(token, target, self._cur_token.literal)

    def _parse_expression_statement(self) -> Optional[Statement]:
        """
        Parse an expression statement, or an assignment, definition or
        increment whose left side is an expression list.
        """
        token = self._cur_token
        exprs = self._parse_expression_list()
        if exprs is None:
            return None

        if self._peek_is(TokenType.DEFINE):
            for expr in exprs:
                if not isinstance(expr, Identifier):
                    self._error(f"expected identifier on left side of :=, got {expr}")
                    return None
            self._next_token()
            self._next_token()
            values = self._parse_expression_list()
            if values is None:
                return None
            return DefineStatement(token, exprs, values)

        if self._peek_token.type in ASSIGN_OPERATORS:
            self._next_token()
            operator = self._cur_token.literal
            self._next_token()
            values = self._parse_expression_list()
            if values is None:
                return None
            return AssignStatement(token, exprs, operator, values)

        if len(exprs) == 1 and self._peek_token.type in (TokenType.INC, TokenType.DEC):
            self._next_token()
            return IncrementStatement(token, exprs[0], self._cur_token.literal)

        if len(exprs) > 1:
            self._peek_error(TokenType.ASSIGN)
            return None

        return ExpressionStatement(token, exprs[0])

    def _parse_comment_statement(self) -> CommentStatement:
        token = self._cur_token
        if token.type == TokenType.BLOCK_COMMENT:
            text = token.literal.removeprefix("/*").removesuffix("*/").strip()
            return CommentStatement(token, text, multiline=True)
        return CommentStatement(token, token.literal.removeprefix("//"))

    def _parse_block_statement(self) -> BlockStatement:
        """Parse statements up to the matching closing brace."""
        token = self._cur_token
        statements: list[Statement] = []

        self._next_token()
        while not self._cur_is(TokenType.RBRACE):
            if self._cur_is(TokenType.EOF):
                self._error(
                    f"expected next token to be {TokenType.RBRACE}, got {TokenType.EOF} instead"
                )
                break
            stmt = self._parse_statement()
            if stmt is not None:
                statements.append(stmt)
            statements.extend(self._take_trailing_comments())
            self._next_token()

        return BlockStatement(token, tuple(statements))

    def _parse_if_statement(self) -> Optional[IfStatement]:
        token = self._cur_token

        self._next_token()
        condition = self._parse_expression(Precedence.LOWEST)

        if not self._expect_peek(TokenType.LBRACE):
            return None
        consequence = self._parse_block_statement()

        alternative: Optional[Statement] = None
        if self._peek_is(TokenType.ELSE):
            self._next_token()
            if self._peek_is(TokenType.IF):
                self._next_token()
                alternative = self._parse_if_statement()
                if alternative is None:
                    return None
            else:
                if not self._expect_peek(TokenType.LBRACE):
                    return None
                alternative = self._parse_block_statement()

        return IfStatement(token, condition, consequence, alternative)

    def _parse_for_statement(self) -> Optional[ForStatement]:
        """
        Parse a for loop.

        Three forms are accepted: ``for { }``, ``for cond { }`` and the
        three-clause form where each clause may be empty.
        """
        token = self._cur_token

        if self._peek_is(TokenType.LBRACE):
            self._next_token()
            return ForStatement(token, body=self._parse_block_statement())

        self._next_token()

        init = None
        if not self._cur_is(TokenType.SEMICOLON):
            init = self._parse_simple_statement()
            if init is None:
                return None
            if self._peek_is(TokenType.LBRACE) and isinstance(init, ExpressionStatement):
                self._next_token()
                body = self._parse_block_statement()
                return ForStatement(token, condition=init.expression, body=body)
            if not self._expect_peek(TokenType.SEMICOLON):
                return None

        self._next_token()

        condition = None
        if not self._cur_is(TokenType.SEMICOLON):
            condition = self._parse_expression(Precedence.LOWEST)
            if not self._expect_peek(TokenType.SEMICOLON):
                return None

        self._next_token()

        update = None
        if not self._cur_is(TokenType.LBRACE):
            update = self._parse_simple_statement()
            if not self._expect_peek(TokenType.LBRACE):
                return None

        body = self._parse_block_statement()
        return ForStatement(token, init, condition, update, body)

    def _parse_function_statement(self) -> Optional[FunctionStatement]:
        token = self._cur_token

        if not self._expect_peek(TokenType.IDENT):
            return None
        name = Identifier(self._cur_token, self._cur_token.literal)

        if not self._expect_peek(TokenType.LPAREN):
            return None

        params = self._parse_function_parameters()
        if params is None:
            return None
        parameters, parameter_types = params

        return_type = None
        if self._peek_is(TokenType.LPAREN):
            self._next_token()
            return_type = self._parse_result_list()
            if return_type is None:
                return None
        elif self._peek_token.type in TYPE_START:
            self._next_token()
            return_type = self._parse_type()
            if return_type is None:
                return None

        if not self._expect_peek(TokenType.LBRACE):
            return None
        body = self._parse_block_statement()

        return FunctionStatement(token, name, parameters, parameter_types, return_type, body)

    def _parse_function_parameters(self):
        """
        Parse ``name [type], ...`` up to the closing parenthesis.

        Returns:
            (names, types) tuples, or None on error
        """
        names: list[Identifier] = []
        types: list[Optional[str]] = []

        if self._peek_is(TokenType.RPAREN):
            self._next_token()
            return (), ()

        while True:
            if not self._expect_peek(TokenType.IDENT):
                return None
            names.append(Identifier(self._cur_token, self._cur_token.literal))

            param_type = None
            if self._peek_token.type in TYPE_START or self._peek_is(TokenType.ELLIPSIS):
                self._next_token()
                param_type = self._parse_type()
                if param_type is None:
                    return None
            types.append(param_type)

            if not self._peek_is(TokenType.COMMA):
                break
            self._next_token()

        if not self._expect_peek(TokenType.RPAREN):
            return None
        return tuple(names), tuple(types)

    def _parse_result_list(self) -> Optional[str]:
        """Parse a parenthesised result list into its source form."""
        results: list[str] = []

        if self._peek_is(TokenType.RPAREN):
            self._next_token()
            return "()"

        while True:
            self._next_token()
            result = self._parse_type()
            if result is None:
                return None
            results.append(result)

            if not self._peek_is(TokenType.COMMA):
                break
            self._next_token()

        if not self._expect_peek(TokenType.RPAREN):
            return None
        return f"({', '.join(results)})"

    def _parse_type(self) -> Optional[str]:
        """
        Parse a type expression starting at the current token.

        Returns:
            The type rendered as Go source, or None on error
        """
        kind = self._cur_token.type

        if kind == TokenType.IDENT:
            name = self._cur_token.literal
            if self._peek_is(TokenType.DOT):
                self._next_token()
                if not self._expect_peek(TokenType.IDENT):
                    return None
                name = f"{name}.{self._cur_token.literal}"
            return name

        if kind in (TokenType.ASTERISK, TokenType.ELLIPSIS):
            marker = self._cur_token.literal
            self._next_token()
            inner = self._parse_type()
            return None if inner is None else f"{marker}{inner}"

        if kind == TokenType.LBRACKET:
            size = ""
            if not self._peek_is(TokenType.RBRACKET):
                self._next_token()
                size = self._cur_token.literal
            if not self._expect_peek(TokenType.RBRACKET):
                return None
            self._next_token()
            elem = self._parse_type()
            return None if elem is None else f"[{size}]{elem}"

        if kind == TokenType.MAP:
            if not self._expect_peek(TokenType.LBRACKET):
                return None
            self._next_token()
            key = self._parse_type()
            if key is None or not self._expect_peek(TokenType.RBRACKET):
                return None
            self._next_token()
            value = self._parse_type()
            return None if value is None else f"map[{key}]{value}"

        if kind == TokenType.CHAN:
            self._next_token()
            elem = self._parse_type()
            return None if elem is None else f"chan {elem}"

        if kind == TokenType.ARROW:
            if not self._expect_peek(TokenType.CHAN):
                return None
            self._next_token()
            elem = self._parse_type()
            return None if elem is None else f"<-chan {elem}"

        if kind in (TokenType.INTERFACE, TokenType.STRUCT):
            keyword = self._cur_token.literal
            if not self._expect_peek(TokenType.LBRACE):
                return None
            if not self._expect_peek(TokenType.RBRACE):
                return None
            return f"{keyword}{{}}"

        if kind == TokenType.FUNC:
            return self._parse_func_type()

        self._error(f"expected type, got {kind} instead")
        return None

    def _parse_func_type(self) -> Optional[str]:
        if not self._expect_peek(TokenType.LPAREN):
            return None

        params: list[str] = []
        if self._peek_is(TokenType.RPAREN):
            self._next_token()
        else:
            while True:
                self._next_token()
                param = self._parse_type()
                if param is None:
                    return None
                params.append(param)
                if not self._peek_is(TokenType.COMMA):
                    break
                self._next_token()
            if not self._expect_peek(TokenType.RPAREN):
                return None

        signature = f"func({', '.join(params)})"
        if self._peek_is(TokenType.LPAREN):
            self._next_token()
            results = self._parse_result_list()
            return None if results is None else f"{signature} {results}"
        if self._peek_token.type in TYPE_START:
            self._next_token()
            result = self._parse_type()
            return None if result is None else f"{signature} {result}"
        return signature

    # =========================================================================
    # Exception Handling Statements
    # =========================================================================

    def _parse_try_statement(self) -> Optional[TryStatement]:
        token = self._cur_token

        if not self._expect_peek(TokenType.LBRACE):
            return None
        body = self._parse_block_statement()

        # Comments between the clauses are dropped; comments that turn out
        # to follow the whole statement are kept as trailing statements
        comments = self._skip_comments()

        catch_blocks: list[CatchBlock] = []
        while self._peek_is(TokenType.CATCH):
            self._next_token()
            catch = self._parse_catch_block()
            if catch is not None:
                catch_blocks.append(catch)
            comments = self._skip_comments()

        finally_block = None
        if self._peek_is(TokenType.FINALLY):
            comments = []
            self._next_token()
            if not self._expect_peek(TokenType.LBRACE):
                return None
            finally_block = self._parse_block_statement()

        self._trailing_comments.extend(comments)
        return TryStatement(token, body, tuple(catch_blocks), finally_block)

    def _skip_comments(self) -> list[CommentStatement]:
        """Consume comment tokens at the peek position and return them."""
        comments: list[CommentStatement] = []
        while self._peek_token.type in (TokenType.COMMENT, TokenType.BLOCK_COMMENT):
            self._next_token()
            comments.append(self._parse_comment_statement())
        return comments

    def _take_trailing_comments(self) -> list[CommentStatement]:
        comments, self._trailing_comments = self._trailing_comments, []
        return comments

    def _parse_catch_block(self) -> Optional[CatchBlock]:
        """Parse ``catch [(name [Type])] { ... }``."""
        token = self._cur_token
        exception = None
        type_name = None

        if self._peek_is(TokenType.LPAREN):
            self._next_token()
            if not self._expect_peek(TokenType.IDENT):
                return None
            exception = Identifier(self._cur_token, self._cur_token.literal)

            if not self._peek_is(TokenType.RPAREN):
                self._next_token()
                type_name = self._parse_type()
                if type_name is None:
                    return None

            if not self._expect_peek(TokenType.RPAREN):
                return None

        if not self._expect_peek(TokenType.LBRACE):
            return None
        body = self._parse_block_statement()

        return CatchBlock(token, exception, type_name, body)

    def _parse_throw_statement(self) -> Optional[ThrowStatement]:
        token = self._cur_token
        self._next_token()
        value = self._parse_expression(Precedence.LOWEST)
        if value is None:
            return None
        return ThrowStatement(token, value)

    # =========================================================================
    # Expression Parsing
    # =========================================================================

    def _parse_expression(self, precedence: Precedence) -> Optional[Expression]:
        prefix = self._prefix_parse_fns.get(self._cur_token.type)
        if prefix is None:
            self._no_prefix_parse_fn_error(self._cur_token.type)
            return None
        left = prefix()

        while not self._peek_is(TokenType.SEMICOLON) and precedence < self._peek_precedence():
            infix = self._infix_parse_fns.get(self._peek_token.type)
            if infix is None:
                return left
            self._next_token()
            left = infix(left)

        return left

    def _parse_expression_list(self) -> Optional[tuple[Expression, ...]]:
        """Parse one or more comma-separated expressions."""
        first = self._parse_expression(Precedence.LOWEST)
        if first is None:
            return None
        exprs = [first]

        while self._peek_is(TokenType.COMMA):
            self._next_token()
            self._next_token()
            expr = self._parse_expression(Precedence.LOWEST)
            if expr is None:
                return None
            exprs.append(expr)

        return tuple(exprs)

    def _parse_identifier(self) -> Identifier:
        return Identifier(self._cur_token, self._cur_token.literal)

    def _parse_integer_literal(self) -> Optional[IntegerLiteral]:
        literal = self._cur_token.literal
        try:
            value = _int_value(literal)
        except ValueError:
            self._error(f'could not parse "{literal}" as integer')
            return None
        return IntegerLiteral(self._cur_token, value)

    def _parse_float_literal(self) -> Optional[FloatLiteral]:
        literal = self._cur_token.literal
        try:
            value = float(literal)
        except ValueError:
            self._error(f'could not parse "{literal}" as float')
            return None
        return FloatLiteral(self._cur_token, value)

    def _parse_string_literal(self) -> StringLiteral:
        token = self._cur_token
        return StringLiteral(token, token.literal, raw=token.type == TokenType.RAW_STRING)

    def _parse_char_literal(self) -> CharLiteral:
        return CharLiteral(self._cur_token, self._cur_token.literal)

    def _parse_boolean(self) -> BooleanLiteral:
        return BooleanLiteral(self._cur_token, self._cur_is(TokenType.TRUE))

    def _parse_nil(self) -> NilLiteral:
        return NilLiteral(self._cur_token)

    def _parse_prefix_expression(self) -> PrefixExpression:
        token = self._cur_token
        self._next_token()
        right = self._parse_expression(Precedence.PREFIX)
        return PrefixExpression(token, token.literal, right)

    def _parse_infix_expression(self, left: Optional[Expression]) -> InfixExpression:
        token = self._cur_token
        precedence = self._cur_precedence()
        self._next_token()
        right = self._parse_expression(precedence)
        return InfixExpression(token, left, token.literal, right)

    def _parse_grouped_expression(self) -> Optional[Expression]:
        self._next_token()
        expr = self._parse_expression(Precedence.LOWEST)
        if not self._expect_peek(TokenType.RPAREN):
            return None
        return expr

    def _parse_call_expression(self, function: Optional[Expression]) -> CallExpression:
        token = self._cur_token
        arguments: tuple[Expression, ...] = ()

        if self._peek_is(TokenType.RPAREN):
            self._next_token()
        else:
            self._next_token()
            parsed = self._parse_expression_list()
            if parsed is not None and self._expect_peek(TokenType.RPAREN):
                arguments = parsed

        return CallExpression(token, function, arguments)

    def _parse_index_expression(self, left: Optional[Expression]) -> Optional[IndexExpression]:
        token = self._cur_token
        self._next_token()
        index = self._parse_expression(Precedence.LOWEST)
        if not self._expect_peek(TokenType.RBRACKET):
            return None
        return IndexExpression(token, left, index)

    def _parse_dot_expression(self, left: Optional[Expression]) -> Optional[DotExpression]:
        token = self._cur_token
        if not self._expect_peek(TokenType.IDENT):
            return None
        prop = Identifier(self._cur_token, self._cur_token.literal)
        return DotExpression(token, left, prop)


# =============================================================================
# Convenience Function
# =============================================================================

def parse_source(source: str) -> tuple[Program, list[str]]:
    """
    Parse godsl source into an AST.

    Returns:
        (program, errors); the program is only trustworthy when errors
        is empty
    """
    parser = Parser(Lexer(source))
    program = parser.parse_program()
    return program, parser.errors
