"""Vela parser: token stream → immutable node tree.

The parser resolves no names. Every identifier stays a ``Name`` node
until the evaluator looks it up, so one compiled tree can be rendered
against any context and analysed without one.
"""

from __future__ import annotations

from vela._types import Token, TokenType
from vela.environment.exceptions import ErrorCode
from vela.nodes import Data, Expr, Node, Output, Template
from vela.parser.statements import StatementParsingMixin
from vela.parser.tokens import describe


class Parser(StatementParsingMixin):
    """Recursive-descent parser for Vela templates.

    Example:
        >>> from vela.lexer import Lexer
        >>> tokens = Lexer("Hello {{ name }}!").tokenize()
        >>> Parser(tokens).parse().body[1]
        Output(lineno=1, col_offset=9, expr=Name(..., name='name', ctx='load'))
    """

    def __init__(
        self,
        tokens: list[Token],
        name: str | None = None,
        source: str | None = None,
    ):
        self._tokens = tokens
        self._pos = 0
        self._name = name
        self._source = source

    def parse(self) -> Template:
        """Parse a full template."""
        body: list[Node] = []
        while not self._match(TokenType.EOF):
            token = self._current
            if token.type is TokenType.DATA:
                self._advance()
                body.append(Data(token.lineno, token.col_offset, token.value))
            elif token.type is TokenType.VARIABLE_BEGIN:
                self._advance()
                expr = self._parse_expression()
                self._expect(TokenType.VARIABLE_END)
                body.append(Output(token.lineno, token.col_offset, expr))
            elif token.type is TokenType.BLOCK_BEGIN:
                body.append(self._parse_block_tag())
            else:
                raise self._error(f"Unexpected {describe(token)}")
        return Template(1, 0, tuple(body), self._name)

    def parse_expression(self) -> Expr:
        """Parse a standalone expression; the whole stream must be consumed."""
        expr = self._parse_expression()
        if not self._match(TokenType.EOF):
            raise self._error(
                f"Unexpected {describe(self._current)} after expression",
                code=ErrorCode.INVALID_EXPRESSION,
            )
        return expr
