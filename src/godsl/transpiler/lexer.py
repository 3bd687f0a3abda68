"""
godsl Lexer (Tokenizer)
=======================

This module converts godsl source text (Go extended with try/catch/throw/
finally) into a stream of tokens for the Pratt parser.

Token Categories
----------------
- Keywords: every Go keyword, ``true``/``false``/``nil`` and the
  exception keywords ``try``, ``catch``, ``throw``, ``finally``
- Identifiers: ``[A-Za-z_][A-Za-z0-9_]*``
- Numbers: decimal integers, floats (``1.5``, ``2e10``), and
  prefixed integers (``0x1F``, ``0b1010``, ``0o17``)
- Strings: double-quoted strings and backtick raw strings
- Characters: ``'c'``
- Operators: longest match, so ``<<=`` is one token and ``...`` is one token
- Comments: ``// line`` and ``/* block */``, kept as tokens

Error Behaviour
---------------
The lexer never raises. An unexpected character becomes an ILLEGAL token
holding that character, and unterminated strings or block comments simply
run to the end of input. Deciding what is an error is the parser's job.

Example Usage
-------------
>>> from godsl.transpiler.lexer import Lexer
>>> for token in Lexer("x := 5").tokenize():
...     print(token)
Token(IDENT, 'x', 1:1)
Token(DEFINE, ':=', 1:3)
Token(INT, '5', 1:6)
Token(EOF, '', 1:7)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator
import string


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """
    Token kinds for the godsl language.

    The string form of a kind is its name, which is also how kinds are
    spelled in parser error messages (``expected next token to be RPAREN``).
    """

    # === Special ===
    ILLEGAL = auto()        # Unknown character
    EOF = auto()            # End of input

    # === Identifiers and Literals ===
    IDENT = auto()          # Variable/function/type names
    INT = auto()            # 123, 0x7F
    FLOAT = auto()          # 1.5, 2e10
    STRING = auto()         # "..."
    RAW_STRING = auto()     # `...`
    CHAR = auto()           # '...'

    # === Arithmetic Operators ===
    PLUS = auto()           # +
    MINUS = auto()          # -
    ASTERISK = auto()       # *
    SLASH = auto()          # /
    PERCENT = auto()        # %

    # === Assignment Operators ===
    ASSIGN = auto()         # =
    PLUS_ASSIGN = auto()    # +=
    MINUS_ASSIGN = auto()   # -=
    MUL_ASSIGN = auto()     # *=
    DIV_ASSIGN = auto()     # /=
    MOD_ASSIGN = auto()     # %=
    AND_ASSIGN = auto()     # &=
    OR_ASSIGN = auto()      # |=
    XOR_ASSIGN = auto()     # ^=
    SHL_ASSIGN = auto()     # <<=
    SHR_ASSIGN = auto()     # >>=
    DEFINE = auto()         # :=

    # === Increment/Decrement ===
    INC = auto()            # ++
    DEC = auto()            # --

    # === Comparison Operators ===
    EQ = auto()             # ==
    NOT_EQ = auto()         # !=
    LT = auto()             # <
    GT = auto()             # >
    LE = auto()             # <=
    GE = auto()             # >=

    # === Logical Operators ===
    AND = auto()            # &&
    OR = auto()             # ||
    BANG = auto()           # !

    # === Bitwise Operators ===
    BIT_AND = auto()        # &
    BIT_OR = auto()         # |
    BIT_XOR = auto()        # ^
    SHL = auto()            # <<
    SHR = auto()            # >>

    # === Delimiters ===
    COMMA = auto()          # ,
    SEMICOLON = auto()      # ;
    COLON = auto()          # :
    DOT = auto()            # .
    ELLIPSIS = auto()       # ...
    LPAREN = auto()         # (
    RPAREN = auto()         # )
    LBRACE = auto()         # {
    RBRACE = auto()         # }
    LBRACKET = auto()       # [
    RBRACKET = auto()       # ]

    # === Arrows ===
    ARROW = auto()          # <- (channel send/receive)
    FUNC_ARROW = auto()     # ->

    # === Comments ===
    COMMENT = auto()        # // ...
    BLOCK_COMMENT = auto()  # /* ... */

    # === Go Keywords ===
    BREAK = auto()
    CASE = auto()
    CHAN = auto()
    CONST = auto()
    CONTINUE = auto()
    DEFAULT = auto()
    DEFER = auto()
    ELSE = auto()
    FALLTHROUGH = auto()
    FOR = auto()
    FUNC = auto()
    GO = auto()
    GOTO = auto()
    IF = auto()
    IMPORT = auto()
    INTERFACE = auto()
    MAP = auto()
    PACKAGE = auto()
    RANGE = auto()
    RETURN = auto()
    SELECT = auto()
    STRUCT = auto()
    SWITCH = auto()
    TYPE = auto()
    VAR = auto()

    # === Predeclared Values ===
    TRUE = auto()
    FALSE = auto()
    NIL = auto()

    # === Exception Keywords ===
    TRY = auto()
    CATCH = auto()
    THROW = auto()
    FINALLY = auto()

    def __str__(self) -> str:
        return self.name


# =============================================================================
# Keyword Mapping
# =============================================================================

# Map keyword strings to their token types
KEYWORDS: dict[str, TokenType] = {
    # Go keywords
    "break": TokenType.BREAK,
    "case": TokenType.CASE,
    "chan": TokenType.CHAN,
    "const": TokenType.CONST,
    "continue": TokenType.CONTINUE,
    "default": TokenType.DEFAULT,
    "defer": TokenType.DEFER,
    "else": TokenType.ELSE,
    "fallthrough": TokenType.FALLTHROUGH,
    "for": TokenType.FOR,
    "func": TokenType.FUNC,
    "go": TokenType.GO,
    "goto": TokenType.GOTO,
    "if": TokenType.IF,
    "import": TokenType.IMPORT,
    "interface": TokenType.INTERFACE,
    "map": TokenType.MAP,
    "package": TokenType.PACKAGE,
    "range": TokenType.RANGE,
    "return": TokenType.RETURN,
    "select": TokenType.SELECT,
    "struct": TokenType.STRUCT,
    "switch": TokenType.SWITCH,
    "type": TokenType.TYPE,
    "var": TokenType.VAR,

    # Predeclared values
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "nil": TokenType.NIL,

    # Exception handling
    "try": TokenType.TRY,
    "catch": TokenType.CATCH,
    "throw": TokenType.THROW,
    "finally": TokenType.FINALLY,
}

# Reverse mapping: token type back to keyword text
KEYWORD_TEXT: dict[TokenType, str] = {kind: text for text, kind in KEYWORDS.items()}


def lookup_ident(text: str) -> TokenType:
    """Return the keyword kind for text, or IDENT if it is not a keyword."""
    return KEYWORDS.get(text, TokenType.IDENT)


def keyword_for(kind: TokenType) -> str:
    """Return the source spelling of a keyword kind."""
    return KEYWORD_TEXT[kind]


# =============================================================================
# Token Data Classes
# =============================================================================

@dataclass(frozen=True)
class Position:
    """
    Location of a token's first character.

    Attributes:
        line: Line number (1-indexed)
        column: Column number (1-indexed, resets after each newline)
        offset: Absolute character index into the source (0-indexed)
    """
    line: int
    column: int
    offset: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Token:
    """
    A single lexical token.

    Attributes:
        type: The TokenType classification
        literal: Source text of the token (string/char contents exclude
            their delimiters, comments include theirs)
        position: Where the token starts
    """
    type: TokenType
    literal: str
    position: Position

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.literal!r}, {self.position})"


# =============================================================================
# Operator Tables
# =============================================================================

# Single-character tokens that never start a longer operator
SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
}

# Operator characters followed by "=" form a compound assignment
COMPOUND_ASSIGN: dict[str, TokenType] = {
    "+": TokenType.PLUS_ASSIGN,
    "-": TokenType.MINUS_ASSIGN,
    "*": TokenType.MUL_ASSIGN,
    "/": TokenType.DIV_ASSIGN,
    "%": TokenType.MOD_ASSIGN,
    "&": TokenType.AND_ASSIGN,
    "|": TokenType.OR_ASSIGN,
    "^": TokenType.XOR_ASSIGN,
}


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes godsl source code on demand.

    The parser pulls one token at a time with next_token(). Once the end
    of input is reached every further call returns another EOF token.

    Usage:
        lexer = Lexer(source)
        tokens = lexer.tokenize_all()
    """

    # Characters that can start an identifier
    IDENT_START = string.ascii_letters + "_"

    # Characters that can continue an identifier
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    def __init__(self, source: str):
        self.source = source

        # Position of the next unread character
        self._pos = 0
        self._line = 1
        self._column = 1

    def next_token(self) -> Token:
        """Scan and return the next token."""
        self._skip_whitespace()

        start = Position(self._line, self._column, self._pos)
        if self._at_end():
            return Token(TokenType.EOF, "", start)

        char = self._peek()

        if char in self.IDENT_START:
            return self._scan_identifier(start)
        if char in string.digits:
            return self._scan_number(start)
        if char == '"':
            return self._scan_quoted(start, '"', TokenType.STRING)
        if char == "'":
            return self._scan_quoted(start, "'", TokenType.CHAR)
        if char == "`":
            return self._scan_raw_string(start)
        if char == "/" and self._peek(1) == "/":
            return self._scan_line_comment(start)
        if char == "/" and self._peek(1) == "*":
            return self._scan_block_comment(start)

        return self._scan_operator(start)

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens until end of input.

        Yields:
            Every token in order, finishing with exactly one EOF token
        """
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                return

    def tokenize_all(self) -> list[Token]:
        """Return the complete token list, ending with EOF."""
        return list(self.tokenize())

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """
        Look at the character at current position + offset without advancing.

        Returns empty string if past end of source.
        """
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume and return the current character, tracking line/column."""
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1

        return char

    def _match(self, expected: str) -> bool:
        """Consume the next character if it matches expected."""
        if self._peek() == expected:
            self._advance()
            return True
        return False

    def _skip_whitespace(self) -> None:
        while not self._at_end() and self._peek() in " \t\n\r":
            self._advance()

    def _text_from(self, start: Position) -> str:
        return self.source[start.offset:self._pos]

    # =========================================================================
    # Token Scanners
    # =========================================================================

    def _scan_identifier(self, start: Position) -> Token:
        while not self._at_end() and self._peek() in self.IDENT_CHARS:
            self._advance()

        text = self._text_from(start)
        return Token(lookup_ident(text), text, start)

    def _scan_number(self, start: Position) -> Token:
        """
        Scan a numeric literal.

        A digit run is INT unless followed by '.digit' or an exponent, in
        which case it is FLOAT. An exponent marker is taken even when no
        digits follow it; the parser then reports the malformed float.
        """
        if self._peek() == "0" and self._peek(1) in ("x", "X", "b", "B", "o", "O"):
            digits = {
                "x": string.hexdigits,
                "b": "01",
                "o": string.octdigits,
            }[self._peek(1).lower()]
            self._advance()
            self._advance()
            while not self._at_end() and self._peek() in digits:
                self._advance()
            return Token(TokenType.INT, self._text_from(start), start)

        self._consume_digits()
        kind = TokenType.INT

        if self._peek() == "." and self._peek(1) and self._peek(1) in string.digits:
            kind = TokenType.FLOAT
            self._advance()
            self._consume_digits()

        if self._peek() in ("e", "E"):
            kind = TokenType.FLOAT
            self._advance()
            if self._peek() in ("+", "-"):
                self._advance()
            self._consume_digits()

        return Token(kind, self._text_from(start), start)

    def _consume_digits(self) -> None:
        while not self._at_end() and self._peek() in string.digits:
            self._advance()

    def _scan_quoted(self, start: Position, quote: str, kind: TokenType) -> Token:
        """
        Scan a string or character literal.

        Backslash escapes are skipped over (so an escaped quote does not end
        the literal) but are kept verbatim in the token text.
        """
        self._advance()  # opening quote
        content_start = self._pos

        while not self._at_end() and self._peek() != quote:
            if self._peek() == "\\":
                self._advance()
            self._advance()

        content = self.source[content_start:self._pos]
        self._match(quote)
        return Token(kind, content, start)

    def _scan_raw_string(self, start: Position) -> Token:
        self._advance()  # opening backtick
        content_start = self._pos

        while not self._at_end() and self._peek() != "`":
            self._advance()

        content = self.source[content_start:self._pos]
        self._match("`")
        return Token(TokenType.RAW_STRING, content, start)

    def _scan_line_comment(self, start: Position) -> Token:
        while not self._at_end() and self._peek() != "\n":
            self._advance()
        return Token(TokenType.COMMENT, self._text_from(start), start)

    def _scan_block_comment(self, start: Position) -> Token:
        self._advance()
        self._advance()

        while not self._at_end():
            if self._peek() == "*" and self._peek(1) == "/":
                self._advance()
                self._advance()
                break
            self._advance()

        return Token(TokenType.BLOCK_COMMENT, self._text_from(start), start)

    def _scan_operator(self, start: Position) -> Token:
        """Scan an operator or delimiter using longest match."""
        char = self._advance()

        if char in SINGLE_CHAR_TOKENS:
            return Token(SINGLE_CHAR_TOKENS[char], char, start)

        kind = TokenType.ILLEGAL

        if char == "+":
            if self._match("+"):
                kind = TokenType.INC
            elif self._match("="):
                kind = TokenType.PLUS_ASSIGN
            else:
                kind = TokenType.PLUS
        elif char == "-":
            if self._match("-"):
                kind = TokenType.DEC
            elif self._match("="):
                kind = TokenType.MINUS_ASSIGN
            elif self._match(">"):
                kind = TokenType.FUNC_ARROW
            else:
                kind = TokenType.MINUS
        elif char == "&":
            if self._match("&"):
                kind = TokenType.AND
            elif self._match("="):
                kind = TokenType.AND_ASSIGN
            else:
                kind = TokenType.BIT_AND
        elif char == "|":
            if self._match("|"):
                kind = TokenType.OR
            elif self._match("="):
                kind = TokenType.OR_ASSIGN
            else:
                kind = TokenType.BIT_OR
        elif char in ("*", "/", "%", "^"):
            if self._match("="):
                kind = COMPOUND_ASSIGN[char]
            else:
                kind = {
                    "*": TokenType.ASTERISK,
                    "/": TokenType.SLASH,
                    "%": TokenType.PERCENT,
                    "^": TokenType.BIT_XOR,
                }[char]
        elif char == "<":
            if self._match("<"):
                kind = TokenType.SHL_ASSIGN if self._match("=") else TokenType.SHL
            elif self._match("="):
                kind = TokenType.LE
            elif self._match("-"):
                kind = TokenType.ARROW
            else:
                kind = TokenType.LT
        elif char == ">":
            if self._match(">"):
                kind = TokenType.SHR_ASSIGN if self._match("=") else TokenType.SHR
            elif self._match("="):
                kind = TokenType.GE
            else:
                kind = TokenType.GT
        elif char == "=":
            kind = TokenType.EQ if self._match("=") else TokenType.ASSIGN
        elif char == "!":
            kind = TokenType.NOT_EQ if self._match("=") else TokenType.BANG
        elif char == ":":
            kind = TokenType.DEFINE if self._match("=") else TokenType.COLON
        elif char == ".":
            if self._peek() == "." and self._peek(1) == ".":
                self._advance()
                self._advance()
                kind = TokenType.ELLIPSIS
            else:
                kind = TokenType.DOT

        return Token(kind, self._text_from(start), start)
