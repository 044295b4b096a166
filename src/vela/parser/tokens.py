"""Token stream navigation shared by the parser mixins."""

from __future__ import annotations

from vela._types import Token, TokenType
from vela.environment.exceptions import ErrorCode
from vela.parser.errors import ParseError

_DESCRIPTIONS = {
    TokenType.VARIABLE_END: "'}}'",
    TokenType.BLOCK_END: "'%}'",
    TokenType.EOF: "end of template",
    TokenType.DATA: "template data",
}


def describe(token: Token) -> str:
    """Human-readable token description for error messages."""
    if token.type in _DESCRIPTIONS:
        return _DESCRIPTIONS[token.type]
    return repr(token.value)


class TokenNavigationMixin:
    """Cursor over the token list.

    Required Host Attributes:
        - _tokens: list[Token]
        - _pos: int
        - _source: str | None
        - _name: str | None
    """

    _tokens: list[Token]
    _pos: int
    _source: str | None
    _name: str | None

    @property
    def _current(self) -> Token:
        return self._tokens[self._pos]

    def _peek(self, offset: int = 1) -> Token:
        index = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        if token.type is not TokenType.EOF:
            self._pos += 1
        return token

    def _match(self, type_: TokenType, value: str | None = None) -> bool:
        token = self._current
        return token.type is type_ and (value is None or token.value == value)

    def _match_keyword(self, *keywords: str) -> bool:
        token = self._current
        return token.type is TokenType.NAME and token.value in keywords

    def _expect(self, type_: TokenType, what: str | None = None) -> Token:
        if not self._match(type_):
            expected = what or _DESCRIPTIONS.get(type_, type_.value)
            raise self._error(f"Expected {expected}, got {describe(self._current)}")
        return self._advance()

    def _error(
        self,
        message: str,
        token: Token | None = None,
        suggestion: str | None = None,
        code: ErrorCode = ErrorCode.UNEXPECTED_TOKEN,
    ) -> ParseError:
        return ParseError(
            message,
            token or self._current,
            source=self._source,
            name=self._name,
            suggestion=suggestion,
            code=code,
        )
