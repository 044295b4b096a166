"""Lexer for Vela templates.

Splits template source into a flat token stream:

    Hello {{ user.name | upper }}!{% set x = 1 %}

    DATA("Hello ") VARIABLE_BEGIN NAME(user) DOT NAME(name) PIPE NAME(upper)
    VARIABLE_END DATA("!") BLOCK_BEGIN NAME(set) NAME(x) ASSIGN INTEGER(1)
    BLOCK_END EOF

Comments (``{# ... #}``) produce no tokens. Every delimiter accepts a
``-`` modifier that strips whitespace on that side (``{{- x -}}``), and
``{%+`` opts a block tag out of ``lstrip_blocks``.

Patterns are compiled once at module level and shared by all instances.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass

from vela._types import Token, TokenType
from vela.environment.exceptions import ErrorCode, TemplateSyntaxError

_TAG_START_RE = re.compile(r"\{\{|\{%|\{#")
_WHITESPACE_RE = re.compile(r"\s+")
_FLOAT_RE = re.compile(r"[0-9](?:_?[0-9])*(?:\.[0-9](?:_?[0-9])*(?:[eE][+-]?[0-9]+)?|[eE][+-]?[0-9]+)")
_INTEGER_RE = re.compile(r"[0-9](?:_?[0-9])*")
_NAME_RE = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
_STRING_RE = re.compile(r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"", re.DOTALL)
_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|.)", re.DOTALL)
_TRAILING_INDENT_RE = re.compile(r"[ \t]*$")

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "\\": "\\",
    "'": "'",
    '"': '"',
}

# Longest operators first so "**" wins over "*"
_OPERATORS: tuple[tuple[str, TokenType], ...] = (
    ("**", TokenType.POW),
    ("//", TokenType.FLOORDIV),
    ("==", TokenType.EQ),
    ("!=", TokenType.NE),
    ("<=", TokenType.LE),
    (">=", TokenType.GE),
    ("+", TokenType.ADD),
    ("-", TokenType.SUB),
    ("*", TokenType.MUL),
    ("/", TokenType.DIV),
    ("%", TokenType.MOD),
    ("~", TokenType.TILDE),
    ("|", TokenType.PIPE),
    (".", TokenType.DOT),
    (",", TokenType.COMMA),
    (":", TokenType.COLON),
    ("=", TokenType.ASSIGN),
    ("<", TokenType.LT),
    (">", TokenType.GT),
    ("(", TokenType.LPAREN),
    (")", TokenType.RPAREN),
    ("[", TokenType.LBRACKET),
    ("]", TokenType.RBRACKET),
    ("{", TokenType.LBRACE),
    ("}", TokenType.RBRACE),
)

_TAG_ENDS = {
    "{{": ("}}", TokenType.VARIABLE_BEGIN, TokenType.VARIABLE_END),
    "{%": ("%}", TokenType.BLOCK_BEGIN, TokenType.BLOCK_END),
}


@dataclass(frozen=True, slots=True)
class LexerConfig:
    """Whitespace handling options, taken from the Environment."""

    trim_blocks: bool = False
    lstrip_blocks: bool = False
    keep_trailing_newline: bool = False


DEFAULT_LEXER_CONFIG = LexerConfig()


def unescape_string(raw: str) -> str:
    """Decode backslash escapes in a string literal body."""

    def _replace(match: re.Match[str]) -> str:
        esc = match.group(1)
        if esc[0] in "ux" and len(esc) > 1:
            return chr(int(esc[1:], 16))
        return _SIMPLE_ESCAPES.get(esc, "\\" + esc)

    return _ESCAPE_RE.sub(_replace, raw)


class Lexer:
    """Tokenizer for template source.

    Usage:
        tokens = Lexer(source, name="page.txt").tokenize()

    ``tokenize_expression()`` lexes a bare expression (no delimiters),
    as used by ``Environment.compile_expression``.
    """

    def __init__(
        self,
        source: str,
        name: str | None = None,
        config: LexerConfig = DEFAULT_LEXER_CONFIG,
    ):
        self.source = source
        self.name = name
        self.config = config
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", source)]
        self._tokens: list[Token] = []

    def _position(self, pos: int) -> tuple[int, int]:
        line_index = bisect_right(self._line_starts, pos) - 1
        return line_index + 1, pos - self._line_starts[line_index]

    def _error(self, message: str, pos: int, code: ErrorCode) -> TemplateSyntaxError:
        lineno, col = self._position(pos)
        return TemplateSyntaxError(message, lineno, self.name, self.source, col, code=code)

    def _emit(self, type_: TokenType, value: str, pos: int) -> None:
        lineno, col = self._position(pos)
        self._tokens.append(Token(type_, value, lineno, col))

    # ------------------------------------------------------------------
    # Template mode
    # ------------------------------------------------------------------

    def tokenize(self) -> list[Token]:
        source = self.source
        end_of_source = len(source)
        if not self.config.keep_trailing_newline and source.endswith("\n"):
            end_of_source -= 2 if source.endswith("\r\n") else 1

        self._tokens = []
        pos = 0
        strip_next_data = False
        while pos < end_of_source:
            match = _TAG_START_RE.search(source, pos, end_of_source)
            tag_start = match.start() if match else end_of_source
            data_start = pos
            data = source[pos:tag_start]
            if strip_next_data:
                stripped = data.lstrip()
                data_start += len(data) - len(stripped)
                data = stripped
                strip_next_data = False

            if match is None:
                self._emit_data(data, data_start)
                break

            opener = match.group()
            body_start = match.end()
            modifier = source[body_start : body_start + 1]
            if modifier == "-":
                data = data.rstrip()
                body_start += 1
            elif modifier == "+" and opener == "{%":
                body_start += 1
            elif opener == "{%" and self.config.lstrip_blocks:
                indent = _TRAILING_INDENT_RE.search(data)
                before = data[: indent.start()] if indent else data
                at_line_start = data_start == 0 or source[data_start - 1] == "\n"
                if before.endswith("\n") or (not before and at_line_start):
                    data = before
            self._emit_data(data, data_start)

            if opener == "{#":
                pos, strip_next_data = self._skip_comment(tag_start, body_start, end_of_source)
                continue

            closer, begin_type, end_type = _TAG_ENDS[opener]
            self._emit(begin_type, opener, tag_start)
            pos, strip_next_data = self._lex_tag(body_start, closer, end_type, tag_start)
            if (
                opener == "{%"
                and not strip_next_data
                and self.config.trim_blocks
                and source.startswith("\n", pos)
            ):
                pos += 1

        self._emit(TokenType.EOF, "", end_of_source)
        return self._tokens

    def _emit_data(self, data: str, pos: int) -> None:
        if data:
            self._emit(TokenType.DATA, data, pos)

    def _skip_comment(self, tag_start: int, body_start: int, limit: int) -> tuple[int, bool]:
        end = self.source.find("#}", body_start, limit)
        if end == -1:
            raise self._error("Unclosed comment", tag_start, ErrorCode.UNCLOSED_COMMENT)
        strip = end > body_start and self.source[end - 1] == "-"
        return end + 2, strip

    def _lex_tag(
        self, pos: int, closer: str, end_type: TokenType, tag_start: int
    ) -> tuple[int, bool]:
        """Lex expression tokens until ``closer``; return (next pos, strip-right)."""
        source = self.source
        depth = 0
        while pos < len(source):
            if depth <= 0 or closer == "%}":
                if source.startswith("-" + closer, pos):
                    self._emit(end_type, closer, pos + 1)
                    return pos + 1 + len(closer), True
                if source.startswith(closer, pos):
                    self._emit(end_type, closer, pos)
                    return pos + len(closer), False
            pos, depth = self._lex_expression_token(pos, depth)
        raise self._error(
            f"Unclosed tag, expected '{closer}'",
            tag_start,
            ErrorCode.UNCLOSED_TAG,
        )

    # ------------------------------------------------------------------
    # Expression mode
    # ------------------------------------------------------------------

    def tokenize_expression(self) -> list[Token]:
        self._tokens = []
        pos = 0
        depth = 0
        while pos < len(self.source):
            pos, depth = self._lex_expression_token(pos, depth)
        self._emit(TokenType.EOF, "", len(self.source))
        return self._tokens

    def _lex_expression_token(self, pos: int, depth: int) -> tuple[int, int]:
        source = self.source

        match = _WHITESPACE_RE.match(source, pos)
        if match:
            return match.end(), depth

        ch = source[pos]
        match = _FLOAT_RE.match(source, pos)
        if match:
            self._emit(TokenType.FLOAT, match.group().replace("_", ""), pos)
            return match.end(), depth
        match = _INTEGER_RE.match(source, pos)
        if match:
            self._emit(TokenType.INTEGER, match.group().replace("_", ""), pos)
            return match.end(), depth

        match = _NAME_RE.match(source, pos)
        if match:
            self._emit(TokenType.NAME, match.group(), pos)
            return match.end(), depth

        if ch in "'\"":
            match = _STRING_RE.match(source, pos)
            if match is None:
                raise self._error("Unclosed string literal", pos, ErrorCode.UNCLOSED_STRING)
            self._emit(TokenType.STRING, unescape_string(match.group()[1:-1]), pos)
            return match.end(), depth

        for text, type_ in _OPERATORS:
            if source.startswith(text, pos):
                if type_ is TokenType.LBRACE:
                    depth += 1
                elif type_ is TokenType.RBRACE:
                    depth -= 1
                self._emit(type_, text, pos)
                return pos + len(text), depth

        raise self._error(f"Unexpected character {ch!r}", pos, ErrorCode.UNEXPECTED_CHAR)
