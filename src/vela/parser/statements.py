"""Statement parsing for the Vela parser.

Block tags are dispatched through ``_BLOCK_PARSERS``: keyword → method
name on the parser. Anything else inside ``{% %}`` is a syntax error.
"""

from __future__ import annotations

from vela._types import TokenType
from vela.environment.exceptions import ErrorCode
from vela.nodes import Name, Node, Set
from vela.parser.expressions import RESERVED_WORDS, ExpressionParsingMixin
from vela.parser.tokens import describe

_BLOCK_PARSERS: dict[str, str] = {
    "set": "_parse_set",
}

_VALID_KEYWORDS = frozenset(_BLOCK_PARSERS)


class StatementParsingMixin(ExpressionParsingMixin):
    """Parses the contents of ``{% ... %}`` tags."""

    def _parse_block_tag(self) -> Node:
        self._advance()  # consume '{%'
        keyword = self._current
        if keyword.type is not TokenType.NAME:
            raise self._error(f"Expected tag name, got {describe(keyword)}")
        method_name = _BLOCK_PARSERS.get(keyword.value)
        if method_name is None:
            supported = ", ".join(sorted(_VALID_KEYWORDS))
            raise self._error(
                f"Unknown tag '{keyword.value}'",
                token=keyword,
                suggestion=f"Supported tags: {supported}",
                code=ErrorCode.UNKNOWN_TAG,
            )
        node: Node = getattr(self, method_name)()
        self._expect(TokenType.BLOCK_END)
        return node

    def _parse_set(self) -> Set:
        """Parse {% set name = expr %}."""
        start = self._advance()  # consume 'set'
        target = self._current
        if target.type is not TokenType.NAME or target.value in RESERVED_WORDS:
            raise self._error(f"Expected variable name after 'set', got {describe(target)}")
        self._advance()
        if self._match(TokenType.DOT) or self._match(TokenType.LBRACKET):
            raise self._error(
                "Only plain names can be assigned",
                suggestion="Build a new dict instead of assigning into an existing one",
                code=ErrorCode.INVALID_EXPRESSION,
            )
        self._expect(TokenType.ASSIGN, "'='")
        value = self._parse_expression()
        return Set(
            lineno=start.lineno,
            col_offset=start.col_offset,
            target=Name(target.lineno, target.col_offset, target.value, ctx="store"),
            value=value,
        )
