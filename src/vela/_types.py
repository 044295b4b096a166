"""Token types shared by the lexer and parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenType(Enum):
    """All token types produced by the lexer."""

    # Template structure
    DATA = "data"
    VARIABLE_BEGIN = "variable_begin"  # {{
    VARIABLE_END = "variable_end"  # }}
    BLOCK_BEGIN = "block_begin"  # {%
    BLOCK_END = "block_end"  # %}

    # Literals and names
    NAME = "name"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"

    # Operators
    ADD = "add"  # +
    SUB = "sub"  # -
    MUL = "mul"  # *
    DIV = "div"  # /
    FLOORDIV = "floordiv"  # //
    MOD = "mod"  # %
    POW = "pow"  # **
    TILDE = "tilde"  # ~
    PIPE = "pipe"  # |
    DOT = "dot"  # .
    COMMA = "comma"  # ,
    COLON = "colon"  # :
    ASSIGN = "assign"  # =
    EQ = "eq"  # ==
    NE = "ne"  # !=
    LT = "lt"  # <
    LE = "le"  # <=
    GT = "gt"  # >
    GE = "ge"  # >=
    LPAREN = "lparen"
    RPAREN = "rparen"
    LBRACKET = "lbracket"
    RBRACKET = "rbracket"
    LBRACE = "lbrace"
    RBRACE = "rbrace"

    EOF = "eof"


@dataclass(frozen=True, slots=True)
class Token:
    """A lexed token with its 1-based line and 0-based column."""

    type: TokenType
    value: str
    lineno: int
    col_offset: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.lineno}:{self.col_offset})"
