"""Parser error handling for Vela.

Provides ParseError, a TemplateSyntaxError that remembers the token it
was raised at.
"""

from __future__ import annotations

from vela._types import Token
from vela.environment.exceptions import ErrorCode, TemplateSyntaxError


class ParseError(TemplateSyntaxError):
    """Syntax error raised at a specific token.

    Displays the offending source line with a caret under the token:

        Syntax Error: Expected expression, got '%}'
          --> page.txt:1:10
           |
        >  1 | {% set x = %}
             |            ^
    """

    def __init__(
        self,
        message: str,
        token: Token,
        source: str | None = None,
        name: str | None = None,
        suggestion: str | None = None,
        code: ErrorCode = ErrorCode.UNEXPECTED_TOKEN,
    ):
        self.token = token
        super().__init__(
            message,
            token.lineno,
            name,
            source,
            token.col_offset,
            code=code,
            suggestion=suggestion,
        )
